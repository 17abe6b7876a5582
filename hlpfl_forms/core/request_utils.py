"""Request helpers: client identification and bearer token extraction."""

import ipaddress
import logging

from starlette.requests import Request

logger = logging.getLogger(__name__)

UNKNOWN_CLIENT = "unknown"


def _is_valid_ip(ip_str: str) -> bool:
    """Check if a string is a valid IP address."""
    try:
        ipaddress.ip_address(ip_str)
        return True
    except ValueError:
        return False


def get_client_id(request: Request) -> str:
    """Resolve the identifier used for rate limiting a request.

    Priority order:
    1. CF-Connecting-IP (set by Cloudflare at the edge)
    2. First entry of X-Forwarded-For
    3. Direct client connection
    4. "unknown"

    Malformed header values are skipped with a warning rather than used as a
    bucket key.
    """
    cf_ip = request.headers.get("CF-Connecting-IP")
    if cf_ip:
        ip = cf_ip.strip()
        if _is_valid_ip(ip):
            return ip
        logger.warning(f"Invalid CF-Connecting-IP: {cf_ip}")

    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        ip = forwarded.split(",")[0].strip()
        if _is_valid_ip(ip):
            return ip
        logger.warning(f"Invalid IP in X-Forwarded-For header: {ip}")

    if request.client and request.client.host:
        return request.client.host

    return UNKNOWN_CLIENT


def extract_bearer_token(request: Request) -> str | None:
    """Return the token from ``Authorization: Bearer <token>``, if present."""
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        token = auth_header[7:].strip()
        return token or None
    return None
