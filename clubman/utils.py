"""Normalization and token helpers."""

import secrets
import uuid


def normalize_phone(phone: str) -> str:
    """Strip all whitespace. Applied on every customer write and lookup."""
    return "".join((phone or "").split())


def normalize_redemption_code(raw: str) -> str:
    """Trim, uppercase and drop the optional "R:" prefix printed on tickets."""
    code = (raw or "").strip().upper()
    if code.startswith("R:"):
        code = code[2:].strip()
    return code


def new_access_token() -> str:
    """128-bit URL-safe access token."""
    return secrets.token_urlsafe(16)


def new_redemption_code(length: int = 8) -> str:
    """Short uppercase code cut from a random UUID."""
    return uuid.uuid4().hex[:length].upper()


def new_otp_code() -> str:
    """Six-digit numeric one-time password."""
    return str(100000 + secrets.randbelow(900000))
