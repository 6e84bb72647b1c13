"""Unique username derivation from e-mail addresses."""
from __future__ import annotations
import logging

from .contracts import AccountStore
from .validators import email_local_part

logger = logging.getLogger(__name__)


class UsernameAllocator:
    """Derive a free username from the local part of an e-mail address.

    The probe is check-then-act: two concurrent callers may obtain the same
    name. The account store rejects the second ``save`` with
    ``USERNAME_COLLISION``, which directory provisioning retries.
    """

    def __init__(self, accounts: AccountStore):
        self.accounts = accounts

    def is_free(self, username: str) -> bool:
        if not username:
            return False
        return self.accounts.find_by_username(username) is None

    def allocate(self, email: str) -> str:
        """Return ``local``, ``local1``, ``local2``... whichever is free first.

        Raises:
            IdentityError: ``INVALID_EMAIL`` when ``email`` is empty or unparsable
        """
        base = email_local_part(email)
        candidate = base
        suffix = 0
        while not self.is_free(candidate):
            suffix += 1
            candidate = f"{base}{suffix}"
        if suffix:
            logger.debug("Username '%s' taken, allocated '%s'", base, candidate)
        return candidate
