"""Input sanitisation and password strength rules."""

import re
from typing import Any

PASSWORD_MIN_LENGTH = 8
PASSWORD_SPECIAL_CHARS = re.compile(r"[!@#$%^&*(),.?\":{}|<>]")

_SCRIPT_BLOCK = re.compile(r"<script[^>]*>.*?</script>", re.IGNORECASE | re.DOTALL)
_JS_SCHEME = re.compile(r"javascript:", re.IGNORECASE)
_INLINE_HANDLER = re.compile(r"on\w+\s*=", re.IGNORECASE)


def sanitize_input(value: Any) -> Any:
    """Strip script blocks, ``javascript:`` URLs and inline event handlers.

    Non-string values are returned unchanged.
    """
    if not isinstance(value, str):
        return value
    value = _SCRIPT_BLOCK.sub("", value)
    value = _JS_SCHEME.sub("", value)
    value = _INLINE_HANDLER.sub("", value)
    return value.strip()


def validate_password_strength(password: str) -> list[str]:
    """Return the list of rules ``password`` breaks (empty when it is strong)."""
    errors = []
    if len(password) < PASSWORD_MIN_LENGTH:
        errors.append(f"Password must be at least {PASSWORD_MIN_LENGTH} characters")
    if not re.search(r"[A-Z]", password):
        errors.append("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", password):
        errors.append("Password must contain at least one lowercase letter")
    if not re.search(r"\d", password):
        errors.append("Password must contain at least one number")
    if not PASSWORD_SPECIAL_CHARS.search(password):
        errors.append("Password must contain at least one special character")
    return errors
