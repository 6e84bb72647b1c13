"""Password policy: validation, composite error messages and generation.

Character classes follow Unicode general categories rather than ASCII ranges:
digits are ``Nd``, upper-case letters are ``Lu`` and a special symbol is any
character that is not a word character (letter, decimal digit, non-spacing
mark or connector punctuation).
"""
from __future__ import annotations
import secrets
import unicodedata
from typing import Optional

from .errors import ErrorKind, IdentityError
from .models import PasswordSettings

NOISE = "1234567890mnbasdflkjqwerpoiqweyuvcxnzhdkqpsdk@%&;"
BASE_ALPHABET = NOISE[:-4]
DIGIT_ALPHABET = NOISE[:10]
UPPER_ALPHABET = NOISE[10:30].upper()
SPECIAL_ALPHABET = NOISE[-4:]

_WORD_CATEGORIES = ("Nd", "Mn", "Pc")


def _is_digit(char: str) -> bool:
    return unicodedata.category(char) == "Nd"


def _is_upper(char: str) -> bool:
    return unicodedata.category(char) == "Lu"


def _is_special(char: str) -> bool:
    category = unicodedata.category(char)
    return not (category.startswith("L") or category in _WORD_CATEGORIES)


def _length_rule(settings: PasswordSettings) -> str:
    return f"at least {settings.min_length} characters"


def unmet_rules(password: str, settings: PasswordSettings) -> list[str]:
    """Return a description of every rule ``password`` fails, in policy order."""
    password = password or ""
    failures = []
    if len(password) < settings.min_length:
        failures.append(_length_rule(settings))
    if settings.require_upper_case and not any(_is_upper(c) for c in password):
        failures.append("an upper-case letter")
    if settings.require_digits and not any(_is_digit(c) for c in password):
        failures.append("a digit")
    if settings.require_special_symbols and not any(_is_special(c) for c in password):
        failures.append("a special symbol")
    return failures


def validate(password: Optional[str], settings: PasswordSettings) -> bool:
    """Return True when ``password`` is non-empty and satisfies every rule."""
    if not password:
        return False
    return not unmet_rules(password, settings)


def describe_policy(settings: PasswordSettings) -> str:
    """Render the policy as a help string for end users."""
    rules = [_length_rule(settings)]
    if settings.require_upper_case:
        rules.append("an upper-case letter")
    if settings.require_digits:
        rules.append("a digit")
    if settings.require_special_symbols:
        rules.append("a special symbol")
    return "Password must contain " + ", ".join(rules)


def check_or_fail(password: Optional[str], settings: PasswordSettings) -> None:
    """Raise :class:`IdentityError` when ``password`` is empty or violates the policy.

    Raises:
        IdentityError: ``EMPTY_CREDENTIAL`` for an empty/absent password,
            ``POLICY_VIOLATION`` listing every unmet rule otherwise
    """
    if not password:
        raise IdentityError(ErrorKind.EMPTY_CREDENTIAL, "Password is empty")

    failures = unmet_rules(password, settings)
    if failures:
        raise IdentityError(
            ErrorKind.POLICY_VIOLATION,
            "Password does not meet the policy, it needs " + ", ".join(failures),
        )


def _draw(alphabet: str, count: int) -> str:
    return "".join(secrets.choice(alphabet) for _ in range(count))


def generate(settings: PasswordSettings) -> str:
    """Generate a password that satisfies ``settings`` by construction.

    ``min_length`` characters are drawn from the base alphabet, then exactly one
    character of each required class is appended. The required classes always
    sit at the end of the password.
    """
    parts = [_draw(BASE_ALPHABET, settings.min_length)]
    if settings.require_digits:
        parts.append(_draw(DIGIT_ALPHABET, 1))
    if settings.require_upper_case:
        parts.append(_draw(UPPER_ALPHABET, 1))
    if settings.require_special_symbols:
        parts.append(_draw(SPECIAL_ALPHABET, 1))
    return "".join(parts)
