"""Bounded-retry provisioning of directory-sourced accounts.

Two directory syncs running at the same time can allocate the same username;
the account store rejects the second insert with ``USERNAME_COLLISION``. The
wrapper waits a fixed interval and provisions again (allocating a fresh
username) up to a fixed number of attempts.
"""
from __future__ import annotations
import logging
import threading
from dataclasses import dataclass
from typing import Callable, Optional

from . import password_policy
from .errors import Err, ErrorKind, Result
from .models import Account
from .provisioning_service import AccountProvisioner, ProvisionOptions

logger = logging.getLogger(__name__)

# Waits for ``delay`` seconds; returns True if the wait was cancelled.
Waiter = Callable[[float], bool]


@dataclass(frozen=True)
class RetryPolicy:
    """Fixed backoff retry policy."""

    max_attempts: int = 3
    delay_seconds: float = 10.0

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    def should_retry(self, attempt: int) -> bool:
        return attempt < self.max_attempts

    def get_delay(self, attempt: int) -> float:
        return self.delay_seconds


class DirectoryUserProvisioner:
    """Provision directory accounts, absorbing transient username collisions."""

    def __init__(
        self,
        provisioner: AccountProvisioner,
        policy: RetryPolicy = RetryPolicy(),
        wait: Optional[Waiter] = None,
    ):
        self.provisioner = provisioner
        self.policy = policy
        self._cancelled = threading.Event()
        self._wait = wait or self._cancelled.wait

    def cancel(self) -> None:
        """Abort any pending backoff wait.

        The flag stays set: every later ``add_directory_user`` fails with
        ``CANCELLED`` until :meth:`reset` is called. Only the default wait is
        interrupted; an injected ``wait`` runs to completion and the
        cancellation is seen before the next attempt.
        """
        self._cancelled.set()

    def reset(self) -> None:
        """Clear a previous :meth:`cancel` so the provisioner can be reused."""
        self._cancelled.clear()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def add_directory_user(self, account: Account, as_visitor: bool) -> Result[Account]:
        """Create ``account`` with a generated password and no notification.

        Only ``USERNAME_COLLISION`` is retried; every other failure is returned
        immediately.
        """
        options = ProvisionOptions(after_invite=True, notify=False, is_visitor=as_visitor)
        attempt = 0
        while True:
            if self._cancelled.is_set():
                return Err(ErrorKind.CANCELLED, "Directory provisioning cancelled")

            attempt += 1
            password = password_policy.generate(self.provisioner.services.password_settings())
            result = self.provisioner.add_user(account, password, options)
            if result.ok or result.kind != ErrorKind.USERNAME_COLLISION:
                return result

            if not self.policy.should_retry(attempt):
                logger.warning(
                    "Username collision for '%s' persisted after %d attempts", account.email, attempt
                )
                return result

            delay = self.policy.get_delay(attempt)
            logger.warning(
                "Username collision for '%s' (attempt %d/%d), retrying in %.1fs",
                account.email, attempt, self.policy.max_attempts, delay,
            )
            if self._wait(delay):
                return Err(ErrorKind.CANCELLED, "Directory provisioning cancelled")
