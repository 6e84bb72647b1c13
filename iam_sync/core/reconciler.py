"""Directory (LDAP) to local account reconciliation.

One directory record is synced at a time:

    find ──> no match ──> inactive candidate ──> Ok(None)
      │                └─> active candidate ──> provision (with retry)
      └──> match ──> unchanged ──> Ok(local)
                  └─> changed ──> first matching rule of RULES wins

The rule table is evaluated in order. Rows after the third are not reachable
once the first three have been evaluated (a directory-linked account always
satisfies one of rows 2 and 3) but they are kept as part of the canonical
decision table.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from .contracts import Services
from .errors import Ok, Result, capture
from .models import Account, EmployeeStatus, merge_from, needs_update
from .retry import DirectoryUserProvisioner

logger = logging.getLogger(__name__)


class SyncAction(str, Enum):
    MERGE = "merge"
    REPLACE = "replace"
    MERGE_INTO_EMAIL_HOLDER = "merge_into_email_holder"


@dataclass
class SyncContext:
    """Facts gathered for one reconciliation decision."""

    local: Account
    candidate: Account
    services: Services
    _email_holder: Optional[Account] = None
    _email_holder_loaded: bool = False

    @property
    def emails_match(self) -> bool:
        return self.local.email == self.candidate.email

    @property
    def sids_match(self) -> bool:
        return self.local.sid == self.candidate.sid

    @property
    def email_holder(self) -> Optional[Account]:
        """Account already holding the candidate's e-mail (looked up once)."""
        if not self._email_holder_loaded:
            self._email_holder = self.services.accounts.find_by_email(self.candidate.email)
            self._email_holder_loaded = True
        return self._email_holder


@dataclass(frozen=True)
class SyncRule:
    name: str
    applies: Callable[[SyncContext], bool]
    action: SyncAction


RULES = (
    SyncRule(
        "local account not directory-linked, or email/SID match",
        lambda ctx: not ctx.local.is_directory_linked or ctx.emails_match or ctx.sids_match,
        SyncAction.MERGE,
    ),
    SyncRule(
        "directory-linked owner",
        lambda ctx: ctx.local.is_directory_linked and ctx.local.is_owner,
        SyncAction.MERGE,
    ),
    SyncRule(
        "directory-linked account with foreign email and SID",
        lambda ctx: ctx.local.is_directory_linked and not ctx.local.is_owner,
        SyncAction.REPLACE,
    ),
    SyncRule(
        "new email is free",
        lambda ctx: not ctx.emails_match and ctx.email_holder is None,
        SyncAction.MERGE,
    ),
    SyncRule(
        "new email taken, local account is owner",
        lambda ctx: not ctx.emails_match and ctx.local.is_owner,
        SyncAction.MERGE,
    ),
    SyncRule(
        "new email taken by another account",
        lambda ctx: not ctx.emails_match,
        SyncAction.MERGE_INTO_EMAIL_HOLDER,
    ),
)


def choose_rule(ctx: SyncContext) -> Optional[SyncRule]:
    """Return the first rule of :data:`RULES` that applies to ``ctx``."""
    return next((rule for rule in RULES if rule.applies(ctx)), None)


class DirectoryReconciler:
    """Sync externally sourced accounts into the local account store."""

    def __init__(self, services: Services, directory_provisioner: DirectoryUserProvisioner):
        self.services = services
        self.directory_provisioner = directory_provisioner

    def search_existing(self, candidate: Account) -> Optional[Account]:
        """Find the local account by SID, falling back to e-mail."""
        found = self.services.accounts.find_by_sid(candidate.sid) if candidate.sid else None
        if found is None and candidate.email:
            found = self.services.accounts.find_by_email(candidate.email)
        return found

    def as_visitor(self) -> bool:
        """New directory accounts become visitors once the user quota is reached."""
        tenant = self.services.tenant
        return tenant.active_user_count() >= tenant.user_quota()

    def sync_user(self, candidate: Account) -> Result[Optional[Account]]:
        """Reconcile one directory record.

        Returns:
            ``Ok(account)`` with the resulting local account, ``Ok(None)`` when
            an inactive candidate has no local match, or the ``Err`` of a failed
            provisioning.
        """
        local = self.search_existing(candidate)

        if local is None:
            if candidate.status != EmployeeStatus.ACTIVE:
                logger.debug("Skipping inactive directory account sid=%s", candidate.sid)
                return Ok(None)
            logger.info("Provisioning directory account sid=%s", candidate.sid)
            return self.directory_provisioner.add_directory_user(candidate, self.as_visitor())

        if not needs_update(local, candidate):
            return Ok(local)

        ctx = SyncContext(local=local, candidate=candidate, services=self.services)
        rule = choose_rule(ctx)
        if rule is None:
            return Ok(local)

        logger.info("Sync of '%s' (id=%s): %s -> %s", local.username, local.id, rule.name, rule.action.value)

        if rule.action is SyncAction.MERGE:
            return self._merge(local, candidate)

        if rule.action is SyncAction.REPLACE:
            # The replaced account still counts toward the quota
            as_visitor = self.as_visitor()
            self.services.accounts.delete(local.id)
            return self.directory_provisioner.add_directory_user(candidate, as_visitor)

        self.services.accounts.delete(local.id)
        return self._merge(ctx.email_holder, candidate)

    def _merge(self, target: Account, candidate: Account) -> Result[Account]:
        return capture(self.services.accounts.save, merge_from(target, candidate))
