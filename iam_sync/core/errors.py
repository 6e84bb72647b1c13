"""Error kinds and the Ok/Err result type returned by public operations."""
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Generic, TypeVar, Union

T = TypeVar("T")


class ErrorKind(str, Enum):
    """Structured failure reasons. Callers map these to user-facing text."""

    EMPTY_CREDENTIAL = "emptyCredential"
    POLICY_VIOLATION = "policyViolation"
    DUPLICATE_EMAIL = "duplicateEmail"
    INVALID_EMAIL = "invalidEmail"
    USERNAME_COLLISION = "usernameCollision"
    ACCOUNT_NOT_FOUND = "accountNotFound"
    TERMINATED_ACCOUNT = "terminatedAccount"
    CANCELLED = "cancelled"


class IdentityError(Exception):
    """Failure raised inside a single identity operation.

    Also raised by account stores when a unique constraint (username, email)
    is violated on ``save``.
    """

    def __init__(self, kind: ErrorKind, detail: str = ""):
        self.kind = kind
        self.detail = detail or kind.value
        super().__init__(self.detail)


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Err:
    kind: ErrorKind
    detail: str = ""

    @property
    def ok(self) -> bool:
        return False

    def unwrap(self):
        """Re-raise as :class:`IdentityError` for exception-style callers."""
        raise IdentityError(self.kind, self.detail)

    def to_dict(self) -> dict:
        return {"error": self.kind.value, "detail": self.detail}

    @classmethod
    def from_error(cls, error: IdentityError) -> "Err":
        return cls(kind=error.kind, detail=error.detail)


Result = Union[Ok[T], Err]


def capture(func: Callable[..., T], *args: Any, **kwargs: Any) -> "Result[T]":
    """Run ``func`` and convert an :class:`IdentityError` into ``Err``.

    Any other exception propagates unchanged.
    """
    try:
        return Ok(func(*args, **kwargs))
    except IdentityError as exc:
        return Err.from_error(exc)
