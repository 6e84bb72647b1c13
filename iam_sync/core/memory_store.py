"""In-memory collaborators with real unique-constraint semantics.

Used for tests, dry runs of the sync CLI and embedding the core without a
backing identity provider. ``save`` holds a lock while checking and writing,
so username and e-mail uniqueness hold even under concurrent callers.
"""
from __future__ import annotations
import hashlib
import hmac
import secrets
import threading
from typing import Dict, Iterable, List, Optional, Set, Tuple

from .errors import ErrorKind, IdentityError
from .models import Account, EmployeeStatus


def _fold(value: Optional[str]) -> str:
    return (value or "").casefold()


def _is_terminated(account: Account) -> bool:
    return account.status == EmployeeStatus.TERMINATED


class InMemoryAccountStore:
    """Account store keyed by id.

    Username and e-mail lookups are case-insensitive; SID lookups are exact.
    """

    def __init__(self, accounts: Iterable[Account] = ()):
        self._lock = threading.RLock()
        self._accounts: Dict[str, Account] = {}
        self._groups: Dict[str, Set[str]] = {}
        for account in accounts:
            self.save(account)

    def find_by_username(self, username: str) -> Optional[Account]:
        key = _fold(username)
        with self._lock:
            return next((a for a in self._accounts.values() if _fold(a.username) == key), None)

    def find_by_email(self, email: str) -> Optional[Account]:
        """Return the account holding ``email``, preferring non-terminated ones."""
        key = _fold(email)
        if not key:
            return None
        with self._lock:
            matches = [a for a in self._accounts.values() if _fold(a.email) == key]
        matches.sort(key=_is_terminated)
        return matches[0] if matches else None

    def find_by_sid(self, sid: str) -> Optional[Account]:
        if not sid:
            return None
        with self._lock:
            return next((a for a in self._accounts.values() if a.sid == sid), None)

    def exists(self, account_id: str) -> bool:
        with self._lock:
            return account_id in self._accounts

    def save(self, account: Account) -> Account:
        """Insert or replace ``account``.

        Raises:
            IdentityError: ``USERNAME_COLLISION`` or ``DUPLICATE_EMAIL`` when
                another account holds the same username or e-mail
            ValueError: If the account has no id or username, or if a second
                owner would be stored
        """
        if not account.id:
            raise ValueError("Account id is required")
        if not account.username:
            raise ValueError("Account username is required")

        with self._lock:
            others = [a for a in self._accounts.values() if a.id != account.id]
            # E-mail conflicts are reported before username conflicts
            if account.email and not _is_terminated(account):
                if any(_fold(o.email) == _fold(account.email) and not _is_terminated(o) for o in others):
                    raise IdentityError(
                        ErrorKind.DUPLICATE_EMAIL, f"Duplicate email '{account.email}'"
                    )
            if any(_fold(o.username) == _fold(account.username) for o in others):
                raise IdentityError(
                    ErrorKind.USERNAME_COLLISION, f"Duplicate username '{account.username}'"
                )
            owner = next((o for o in others if o.is_owner), None)
            if account.is_owner and owner is not None:
                raise ValueError(f"Account '{owner.username}' is already the tenant owner")
            self._accounts[account.id] = account
        return account

    def delete(self, account_id: str) -> None:
        with self._lock:
            self._accounts.pop(account_id, None)
            for members in self._groups.values():
                members.discard(account_id)

    def add_to_group(self, account_id: str, group_id: str) -> None:
        with self._lock:
            self._groups.setdefault(group_id, set()).add(account_id)

    def get(self, account_id: str) -> Optional[Account]:
        with self._lock:
            return self._accounts.get(account_id)

    def all(self) -> List[Account]:
        with self._lock:
            return list(self._accounts.values())

    def group_members(self, group_id: str) -> Set[str]:
        with self._lock:
            return set(self._groups.get(group_id, set()))

    def active_count(self) -> int:
        """Number of active, non-visitor accounts (counted against the quota)."""
        with self._lock:
            return sum(1 for a in self._accounts.values() if a.is_active and not a.is_visitor)


class InMemoryCredentialStore:
    """Credential store keeping salted PBKDF2 hashes only."""

    ITERATIONS = 100_000

    def __init__(self):
        self._lock = threading.Lock()
        self._hashes: Dict[str, Tuple[bytes, bytes]] = {}

    def _hash(self, password: str, salt: bytes) -> bytes:
        return hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, self.ITERATIONS)

    def set_password(self, account_id: str, password: str) -> None:
        salt = secrets.token_bytes(16)
        digest = self._hash(password, salt)
        with self._lock:
            self._hashes[account_id] = (salt, digest)

    def verify(self, account_id: str, password: str) -> bool:
        with self._lock:
            stored = self._hashes.get(account_id)
        if stored is None:
            return False
        salt, digest = stored
        return hmac.compare_digest(digest, self._hash(password, salt))

    def has_password(self, account_id: str) -> bool:
        with self._lock:
            return account_id in self._hashes
