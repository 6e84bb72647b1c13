"""Collaborator contracts consumed by the identity core.

The core never reaches for global singletons: every component receives a
:class:`Services` bundle and talks to storage, notifications and tenant data
exclusively through these protocols.
"""
from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol

from .models import Account, PasswordSettings


class AccountStore(Protocol):
    """Account persistence.

    ``find_by_*`` return ``None`` when nothing matches. ``save`` is the place
    where uniqueness is enforced: it raises ``IdentityError`` with
    ``USERNAME_COLLISION`` or ``DUPLICATE_EMAIL`` when a unique constraint
    would be violated.
    """

    def find_by_username(self, username: str) -> Optional[Account]: ...

    def find_by_email(self, email: str) -> Optional[Account]: ...

    def find_by_sid(self, sid: str) -> Optional[Account]: ...

    def exists(self, account_id: str) -> bool: ...

    def save(self, account: Account) -> Account: ...

    def delete(self, account_id: str) -> None: ...

    def add_to_group(self, account_id: str, group_id: str) -> None: ...


class CredentialStore(Protocol):
    def set_password(self, account_id: str, password: str) -> None: ...


class NotificationService(Protocol):
    """Fire-and-forget notification dispatch, one method per event."""

    def user_welcome_personal(self, account: Account) -> None: ...

    def user_info_activation(self, account: Account) -> None: ...

    def guest_info_activation(self, account: Account) -> None: ...

    def user_info_added_after_invite(self, account: Account, password: str) -> None: ...

    def guest_info_added_after_invite(self, account: Account, password: str) -> None: ...

    def email_activation_instructions(self, account: Account, email: str) -> None: ...

    def user_password_changed(self, account_id: str) -> None: ...

    def user_password_change_requested(self, account: Account) -> None: ...


class TenantContext(Protocol):
    @property
    def tenant_id(self) -> str: ...

    @property
    def personal_mode(self) -> bool: ...

    def now(self) -> datetime: ...

    def active_user_count(self) -> int: ...

    def user_quota(self) -> int: ...


class SettingsStore(Protocol):
    def load_password_settings(self, tenant_id: str) -> PasswordSettings: ...


@dataclass
class Services:
    """Capability bundle injected into every core component."""

    accounts: AccountStore
    credentials: CredentialStore
    notifier: NotificationService
    tenant: TenantContext
    settings: SettingsStore

    def password_settings(self) -> PasswordSettings:
        return self.settings.load_password_settings(self.tenant.tenant_id)
