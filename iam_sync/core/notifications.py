"""Notification service recording every dispatched message on the audit trail.

The actual mail delivery lives outside this package; this implementation gives
operators a signed record of which notifications the core asked for. Password
arguments are accepted to honour the contract but are never written.
"""
from __future__ import annotations
from typing import Any

from . import audit
from .models import Account


class AuditTrailNotifier:
    """NotificationService writing ``notification`` audit events."""

    def __init__(self, tenant: str = "default", operator: str = "system"):
        self.tenant = tenant
        self.operator = operator

    def _record(self, template: str, username: str, **details: Any) -> None:
        audit.safe_log_event(
            "notification",
            username,
            operator=self.operator,
            tenant=self.tenant,
            details={"template": template, **details},
        )

    def user_welcome_personal(self, account: Account) -> None:
        self._record("welcome_personal", account.username, email=account.email)

    def user_info_activation(self, account: Account) -> None:
        self._record("user_activation", account.username, email=account.email)

    def guest_info_activation(self, account: Account) -> None:
        self._record("guest_activation", account.username, email=account.email)

    def user_info_added_after_invite(self, account: Account, password: str) -> None:
        self._record("user_added_after_invite", account.username, email=account.email)

    def guest_info_added_after_invite(self, account: Account, password: str) -> None:
        self._record("guest_added_after_invite", account.username, email=account.email)

    def email_activation_instructions(self, account: Account, email: str) -> None:
        self._record("email_activation_instructions", account.username, email=email)

    def user_password_changed(self, account_id: str) -> None:
        self._record("password_changed", account_id)

    def user_password_change_requested(self, account: Account) -> None:
        self._record("password_change_requested", account.username, email=account.email)
