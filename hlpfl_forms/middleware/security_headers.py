"""Security and CORS response headers."""

from starlette.responses import Response

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "geolocation=(), microphone=(), camera=()",
    "Content-Security-Policy": (
        "default-src 'self'; script-src 'self' 'unsafe-inline' 'unsafe-eval'; "
        "style-src 'self' 'unsafe-inline'; img-src 'self' data: https:; "
        "font-src 'self' data:; connect-src 'self'"
    ),
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains; preload",
}

CORS_ALLOW_METHODS = "GET, POST, PUT, DELETE, OPTIONS"
CORS_ALLOW_HEADERS = "Content-Type, Authorization, X-CSRF-Token"
CORS_MAX_AGE = "86400"


def cors_headers(origin: str = "*") -> dict[str, str]:
    return {
        "Access-Control-Allow-Origin": origin,
        "Access-Control-Allow-Methods": CORS_ALLOW_METHODS,
        "Access-Control-Allow-Headers": CORS_ALLOW_HEADERS,
        "Access-Control-Max-Age": CORS_MAX_AGE,
    }


def response_headers(origin: str = "*") -> dict[str, str]:
    """The merged header set every response carries."""
    return {**SECURITY_HEADERS, **cors_headers(origin)}


def apply_headers(response: Response, headers: dict[str, str]) -> Response:
    """Overwrite ``headers`` onto ``response`` so handlers cannot weaken them."""
    for key, value in headers.items():
        response.headers[key] = value
    return response
