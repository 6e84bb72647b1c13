"""Keycloak-backed account and credential stores."""
from __future__ import annotations
import logging
from dataclasses import replace
from typing import Optional

from ..directory_transformer import DirectoryTransformer, SID_ATTRIBUTE
from ..errors import ErrorKind, IdentityError
from ..models import Account, EmployeeStatus
from .client import KeycloakClient
from .exceptions import KeycloakAPIError

logger = logging.getLogger(__name__)


def _conflict_to_identity_error(exc: KeycloakAPIError, account: Account) -> IdentityError:
    """Translate a Keycloak 409 into the matching uniqueness failure."""
    if "email" in exc.message.lower():
        return IdentityError(ErrorKind.DUPLICATE_EMAIL, f"Duplicate email '{account.email}'")
    return IdentityError(ErrorKind.USERNAME_COLLISION, f"Duplicate username '{account.username}'")


class KeycloakAccountStore:
    """AccountStore backed by the users of one Keycloak realm.

    Keycloak's own unique constraints on username and email back the store's
    uniqueness guarantees.
    """

    def __init__(self, client: KeycloakClient, realm: str):
        """Initialize the store.

        Args:
            client: Authenticated Keycloak client
            realm: Realm holding the tenant's users
        """
        self.client = client
        self.realm = realm

    @property
    def _users_path(self) -> str:
        return f"/admin/realms/{self.realm}/users"

    def _search(self, **params) -> list[Account]:
        resp = self.client.get(self._users_path, params=params)
        return [DirectoryTransformer.keycloak_to_account(u) for u in resp.json() or []]

    def find_by_username(self, username: str) -> Optional[Account]:
        """Return the account that exactly matches the username."""
        wanted = username.lower()
        return next(
            (a for a in self._search(username=username, exact="true") if a.username.lower() == wanted),
            None,
        )

    def find_by_email(self, email: str) -> Optional[Account]:
        """Return the account holding ``email``, preferring non-terminated ones."""
        if not email:
            return None
        wanted = email.lower()
        matches = [a for a in self._search(email=email, exact="true") if a.email.lower() == wanted]
        matches.sort(key=lambda a: a.status == EmployeeStatus.TERMINATED)
        return matches[0] if matches else None

    def find_by_sid(self, sid: str) -> Optional[Account]:
        if not sid:
            return None
        return next(
            (a for a in self._search(q=f"{SID_ATTRIBUTE}:{sid}") if a.sid == sid),
            None,
        )

    def exists(self, account_id: str) -> bool:
        if not account_id:
            return False
        try:
            self.client.get(f"{self._users_path}/{account_id}")
        except KeycloakAPIError as exc:
            if exc.status_code == 404:
                return False
            raise
        return True

    def save(self, account: Account) -> Account:
        """Create or update the Keycloak user for ``account``.

        Raises:
            IdentityError: ``USERNAME_COLLISION`` or ``DUPLICATE_EMAIL`` on HTTP 409
            KeycloakAPIError: On any other HTTP error
        """
        payload = DirectoryTransformer.account_to_keycloak(account)
        try:
            if self.exists(account.id):
                self.client.put(f"{self._users_path}/{account.id}", json=payload)
                logger.debug("Updated Keycloak user '%s' (id=%s)", account.username, account.id)
            else:
                resp = self.client.post(self._users_path, json=payload)
                # Keycloak assigns its own id and returns it in the Location header
                location = resp.headers.get("Location", "")
                if location:
                    account = replace(account, id=location.rstrip("/").rsplit("/", 1)[-1])
                logger.debug("Created Keycloak user '%s' (id=%s)", account.username, account.id)
        except KeycloakAPIError as exc:
            if exc.status_code == 409:
                raise _conflict_to_identity_error(exc, account) from exc
            raise
        return account

    def delete(self, account_id: str) -> None:
        try:
            self.client.delete(f"{self._users_path}/{account_id}")
        except KeycloakAPIError as exc:
            if exc.status_code != 404:
                raise
        logger.info("Deleted Keycloak user id=%s", account_id)

    def add_to_group(self, account_id: str, group_id: str) -> None:
        """Add a user to a group (idempotent)."""
        try:
            self.client.put(f"{self._users_path}/{account_id}/groups/{group_id}")
        except KeycloakAPIError as exc:
            if exc.status_code != 409:
                raise

    def count_enabled(self) -> int:
        resp = self.client.get(f"{self._users_path}/count", params={"enabled": "true"})
        return int(resp.json())


class KeycloakCredentialStore:
    """CredentialStore writing non-temporary passwords through reset-password."""

    def __init__(self, client: KeycloakClient, realm: str):
        self.client = client
        self.realm = realm

    def set_password(self, account_id: str, password: str) -> None:
        self.client.put(
            f"/admin/realms/{self.realm}/users/{account_id}/reset-password",
            json={"type": "password", "temporary": False, "value": password},
        )
