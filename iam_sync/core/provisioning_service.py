"""
Provisioning Service Layer: account creation and password operations

This module creates new accounts with uniqueness guarantees, applies the tenant
password policy and triggers the matching notification events. It is used by
the directory reconciler (through the retry wrapper) and by any outer layer
that invites or registers users.

Architecture:
    DirectoryReconciler ──> DirectoryUserProvisioner ──┐
                                                        ├──> AccountProvisioner ──> Services
    Invite / registration flows ────────────────────────┘

Features:
    - Password policy enforcement before anything is persisted
    - E-mail uniqueness check and unique username allocation
    - Activation status derived from invite flags and deployment mode
    - Best-effort notifications (failures are logged, never surfaced)
    - Ok/Err results carrying a structured ErrorKind
"""

from __future__ import annotations
import logging
import uuid
from dataclasses import dataclass, replace
from typing import Any

from . import password_policy
from .contracts import Services
from .errors import Err, ErrorKind, IdentityError, Ok, Result, capture
from .models import Account, ActivationStatus, EmployeeStatus, VISITOR_GROUP_ID
from .username_allocator import UsernameAllocator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProvisionOptions:
    """Flags controlling activation status and notifications of a new account."""

    after_invite: bool = False
    notify: bool = True
    is_visitor: bool = False
    from_invite_link: bool = False
    assign_unique_username: bool = True


class AccountProvisioner:
    """Creates accounts and manages their credentials."""

    def __init__(self, services: Services, visitor_group_id: str = VISITOR_GROUP_ID):
        self.services = services
        self.visitor_group_id = visitor_group_id
        self.usernames = UsernameAllocator(services.accounts)

    # ─────────────────────────────────────────────────────────────────────────
    # Joiner
    # ─────────────────────────────────────────────────────────────────────────

    def check_unique_email(self, account_id: str, email: str) -> bool:
        """Return True when no other non-terminated account holds ``email``."""
        found = self.services.accounts.find_by_email(email)
        if found is None or found.status == EmployeeStatus.TERMINATED:
            return True
        return bool(account_id) and found.id == account_id

    def add_user(
        self,
        account: Account,
        password: str,
        options: ProvisionOptions = ProvisionOptions(),
    ) -> Result[Account]:
        """Persist a new account and dispatch its notifications.

        Returns:
            ``Ok(saved_account)`` or ``Err`` with ``EMPTY_CREDENTIAL``,
            ``POLICY_VIOLATION``, ``DUPLICATE_EMAIL``, ``INVALID_EMAIL`` or
            ``USERNAME_COLLISION`` (raised by the store on a concurrent insert)
        """
        return capture(self._add_user, account, password, options)

    def _add_user(self, account: Account, password: str, options: ProvisionOptions) -> Account:
        services = self.services
        password_policy.check_or_fail(password, services.password_settings())

        if not self.check_unique_email(account.id, account.email):
            raise IdentityError(
                ErrorKind.DUPLICATE_EMAIL,
                f"An account with email '{account.email}' already exists",
            )

        changes: dict[str, Any] = {"is_visitor": options.is_visitor}
        if not account.id:
            changes["id"] = str(uuid.uuid4())
        if options.assign_unique_username:
            changes["username"] = self.usernames.allocate(account.email)
        if account.work_from is None:
            changes["work_from"] = services.tenant.now()
        if not services.tenant.personal_mode and not options.from_invite_link:
            changes["activation_status"] = (
                ActivationStatus.ACTIVATED if options.after_invite else ActivationStatus.PENDING
            )
        account = replace(account, **changes)

        saved = services.accounts.save(account)
        services.credentials.set_password(saved.id, password)
        logger.info("Account '%s' created (id=%s)", saved.username, saved.id)

        if services.tenant.personal_mode:
            self._notify("user_welcome_personal", saved)
            return saved

        if saved.is_active and options.notify:
            self._dispatch_joiner_notifications(saved, password, options)

        if options.is_visitor:
            services.accounts.add_to_group(saved.id, self.visitor_group_id)

        return saved

    def _dispatch_joiner_notifications(self, account: Account, password: str, options: ProvisionOptions) -> None:
        if options.after_invite:
            if options.is_visitor:
                self._notify("guest_info_added_after_invite", account, password)
            else:
                self._notify("user_info_added_after_invite", account, password)
            if options.from_invite_link:
                self._notify("email_activation_instructions", account, account.email)
        elif options.is_visitor:
            self._notify("guest_info_activation", account)
        else:
            self._notify("user_info_activation", account)

    def _notify(self, event: str, *args: Any) -> None:
        """Dispatch a notification; failures are logged and swallowed."""
        try:
            getattr(self.services.notifier, event)(*args)
        except Exception as exc:
            logger.warning("Notification '%s' failed: %s", event, exc)

    # ─────────────────────────────────────────────────────────────────────────
    # Passwords
    # ─────────────────────────────────────────────────────────────────────────

    def set_user_password(self, account_id: str, password: str, skip_policy: bool = False) -> Result[None]:
        """Replace an account's password and notify the owner of the change."""
        return capture(self._set_user_password, account_id, password, skip_policy)

    def _set_user_password(self, account_id: str, password: str, skip_policy: bool) -> None:
        if not skip_policy:
            password_policy.check_or_fail(password, self.services.password_settings())
        if not self.services.accounts.exists(account_id):
            raise IdentityError(ErrorKind.ACCOUNT_NOT_FOUND, f"Account '{account_id}' not found")

        self.services.credentials.set_password(account_id, password)
        logger.info("Password changed for account id=%s", account_id)
        self._notify("user_password_changed", account_id)

    def send_user_password(self, email: str) -> Result[Account]:
        """Send password-reset instructions to the account holding ``email``."""
        if not email:
            return Err(ErrorKind.INVALID_EMAIL, "Email is empty")

        found = self.services.accounts.find_by_email(email)
        if found is None or not self.services.accounts.exists(found.id) or not found.email:
            return Err(ErrorKind.ACCOUNT_NOT_FOUND, f"No account found for email '{email}'")
        if found.status == EmployeeStatus.TERMINATED:
            return Err(ErrorKind.TERMINATED_ACCOUNT, "The account is disabled")

        self._notify("user_password_change_requested", found)
        return Ok(found)
