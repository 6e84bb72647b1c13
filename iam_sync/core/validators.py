"""Input validation helpers for account data."""
from __future__ import annotations
import re
from email.utils import parseaddr

from .errors import ErrorKind, IdentityError

EMAIL_MAX_LENGTH = 254

# Dotted or quoted local part; domain name or bracketed IPv4 literal.
EMAIL_PATTERN = re.compile(
    r"^(([^<>()\[\]\\.,;:\s@\"]+(\.[^<>()\[\]\\.,;:\s@\"]+)*)|(\".+\"))"
    r"@((\[[0-9]{1,3}\.[0-9]{1,3}\.[0-9]{1,3}\.[0-9]{1,3}\])|(([a-zA-Z\-0-9]+\.)+[a-zA-Z]{2,}))$",
    re.IGNORECASE,
)


def is_valid_email(email: str) -> bool:
    """Return True when ``email`` is a well-formed address."""
    if not email or len(email) > EMAIL_MAX_LENGTH:
        return False
    return EMAIL_PATTERN.match(email) is not None


def email_local_part(email: str) -> str:
    """Extract the part before ``@`` from an address.

    Accepts display-name forms such as ``"John Doe <john@example.com>"``.
    Case is preserved.

    Raises:
        IdentityError: ``INVALID_EMAIL`` if the address is empty or unparsable
    """
    if not email or not email.strip():
        raise IdentityError(ErrorKind.INVALID_EMAIL, "Email is empty")

    _, address = parseaddr(email.strip())
    local, sep, domain = address.rpartition("@")
    if not sep or not local or not domain:
        raise IdentityError(ErrorKind.INVALID_EMAIL, f"Email '{email}' cannot be parsed")
    return local


def validate_name(name: str, field: str) -> str:
    """Validate first/last name fields.

    Args:
        name: Name to validate
        field: Field name for error messages (e.g., "First name")

    Returns:
        Trimmed name

    Raises:
        ValueError: If name is invalid
    """
    name = name.strip()
    if not name:
        raise ValueError(f"{field} is required")
    if len(name) > 128:
        raise ValueError(f"{field} exceeds maximum length")
    if any(char in name for char in "<>\"'`;&|$"):
        raise ValueError(f"{field} contains invalid characters")
    return name
