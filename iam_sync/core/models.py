"""Account data model and the pure merge rules used by directory sync.

Accounts are immutable values. Every change produces a new ``Account`` through
``dataclasses.replace`` and is committed with a single explicit ``save`` call on
the account store.
"""
from __future__ import annotations
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import IntEnum, IntFlag
from typing import FrozenSet, Optional


class ActivationStatus(IntEnum):
    """E-mail activation state of an account."""

    NOT_ACTIVATED = 0
    ACTIVATED = 1
    PENDING = 2


class EmployeeStatus(IntFlag):
    """Employment status bit-flags."""

    ACTIVE = 1
    TERMINATED = 2
    LEAVE_OF_ABSENCE = 4

    DEFAULT = ACTIVE | LEAVE_OF_ABSENCE
    ALL = ACTIVE | TERMINATED | LEAVE_OF_ABSENCE


VISITOR_GROUP_ID = "aced04fa-dd96-4b35-af3e-346bf1eb972d"


@dataclass(frozen=True)
class Contact:
    """Single contact entry (e.g. ``Contact("phone", "+41 21 000 00 00")``)."""

    kind: str
    value: str

    def to_string(self) -> str:
        return f"{self.kind}:{self.value}"

    @classmethod
    def from_string(cls, raw: str) -> "Contact":
        kind, _, value = raw.partition(":")
        return cls(kind=kind, value=value)


@dataclass(frozen=True)
class Account:
    """Identity record of a tenant user.

    Attributes:
        id: Opaque identifier, assigned once by the provisioner and never changed
        username: Unique login name, set by the username allocator
        email: Unique among non-terminated accounts
        sid: External directory SID (``None`` for locally created accounts)
        contacts: Unordered set of contact entries
        is_owner: Tenant owner flag (at most one account per tenant)
        is_visitor: Guest account flag
        work_from: Work-start timestamp in tenant-local time
    """

    id: str = ""
    username: str = ""
    email: str = ""
    sid: Optional[str] = None
    first_name: str = ""
    last_name: str = ""
    title: str = ""
    location: str = ""
    contacts: FrozenSet[Contact] = field(default_factory=frozenset)
    activation_status: ActivationStatus = ActivationStatus.NOT_ACTIVATED
    status: EmployeeStatus = EmployeeStatus.ACTIVE
    is_owner: bool = False
    is_visitor: bool = False
    work_from: Optional[datetime] = None

    @property
    def is_directory_linked(self) -> bool:
        """True when the account originates from an external directory."""
        return bool(self.sid)

    @property
    def is_active(self) -> bool:
        return (self.status & EmployeeStatus.ACTIVE) == EmployeeStatus.ACTIVE

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip() or self.username


@dataclass(frozen=True)
class PasswordSettings:
    """Per-tenant password policy configuration."""

    min_length: int = 6
    require_digits: bool = False
    require_upper_case: bool = False
    require_special_symbols: bool = False

    def __post_init__(self):
        if self.min_length < 1:
            raise ValueError("min_length must be at least 1")


def needs_update(local: Account, candidate: Account) -> bool:
    """Return True when the directory candidate differs from the local account.

    Contacts are compared as a subset: every candidate contact must already be
    present locally. Extra local contacts do not trigger an update.
    """
    return (
        local.first_name != candidate.first_name
        or local.last_name != candidate.last_name
        or local.email != candidate.email
        or local.sid != candidate.sid
        or local.activation_status != candidate.activation_status
        or local.status != candidate.status
        or local.title != candidate.title
        or local.location != candidate.location
        or not candidate.contacts.issubset(local.contacts)
    )


def merge_from(target: Account, source: Account) -> Account:
    """Copy directory-owned fields from ``source`` onto ``target``.

    The employment status is copied unless ``target`` is the tenant owner: the
    owner can never be terminated through directory sync. Identity fields
    (id, username, owner/visitor flags, work-start) always stay with ``target``.
    """
    status = target.status if target.is_owner else source.status
    return replace(
        target,
        first_name=source.first_name,
        last_name=source.last_name,
        email=source.email,
        sid=source.sid,
        activation_status=source.activation_status,
        contacts=source.contacts,
        title=source.title,
        location=source.location,
        status=status,
    )
