"""Tenant context and password settings store backed by the app config."""
from __future__ import annotations
from datetime import datetime, timezone as dt_timezone, tzinfo
from typing import Callable, Dict, Optional
from zoneinfo import ZoneInfo

from .models import PasswordSettings


class StaticTenantContext:
    """Tenant context with a fixed quota and a pluggable user counter.

    Args:
        tenant_id: Current tenant identifier
        personal_mode: Personal deployment mode (no invitation/activation flows)
        user_quota: Maximum number of active (non-visitor) users
        count_active_users: Callable returning the current active user count
        timezone: IANA zone used for tenant-local time
        clock: Optional clock override, receives the tenant zone
    """

    def __init__(
        self,
        tenant_id: str = "default",
        personal_mode: bool = False,
        user_quota: int = 100,
        count_active_users: Optional[Callable[[], int]] = None,
        timezone: str = "UTC",
        clock: Optional[Callable[[tzinfo], datetime]] = None,
    ):
        self._tenant_id = tenant_id
        self._personal_mode = personal_mode
        self._user_quota = user_quota
        self._count_active_users = count_active_users or (lambda: 0)
        self._zone = dt_timezone.utc if timezone.upper() == "UTC" else ZoneInfo(timezone)
        self._clock = clock or datetime.now

    @property
    def tenant_id(self) -> str:
        return self._tenant_id

    @property
    def personal_mode(self) -> bool:
        return self._personal_mode

    def now(self) -> datetime:
        return self._clock(self._zone)

    def active_user_count(self) -> int:
        return self._count_active_users()

    def user_quota(self) -> int:
        return self._user_quota


class ConfigSettingsStore:
    """Serve password settings per tenant, falling back to a default policy."""

    def __init__(self, default: PasswordSettings, overrides: Optional[Dict[str, PasswordSettings]] = None):
        self.default = default
        self.overrides = dict(overrides or {})

    def load_password_settings(self, tenant_id: str) -> PasswordSettings:
        return self.overrides.get(tenant_id, self.default)

    def save_password_settings(self, tenant_id: str, settings: PasswordSettings) -> None:
        self.overrides[tenant_id] = settings
