"""Pytest shared fixtures for the identity core."""
import pathlib
import sys
import uuid
from datetime import datetime, timezone
from unittest.mock import MagicMock

# Add project root to Python path
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest
import requests

from iam_sync.core import audit
from iam_sync.core.contracts import Services
from iam_sync.core.memory_store import InMemoryAccountStore, InMemoryCredentialStore
from iam_sync.core.models import Account, PasswordSettings
from iam_sync.core.provisioning_service import AccountProvisioner
from iam_sync.core.tenancy import ConfigSettingsStore, StaticTenantContext

FIXED_NOW = datetime(2024, 1, 15, 9, 0, tzinfo=timezone.utc)


# ─────────────────────────────────────────────────────────────────────────────
# Guard Rails
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture(autouse=True)
def _block_network(monkeypatch, request):
    """Fail loudly if a unit test reaches for the network."""
    if request.node.get_closest_marker("integration"):
        return

    def _refuse(*args, **kwargs):
        raise RuntimeError(f"Unexpected HTTP call in unit test: {args} {kwargs.get('url', '')}")

    monkeypatch.setattr(requests, "request", _refuse)
    monkeypatch.setattr(requests, "post", _refuse)
    monkeypatch.setattr(requests, "get", _refuse)


@pytest.fixture(autouse=True)
def _isolated_audit_log(monkeypatch, tmp_path):
    """Keep audit events written during tests out of the working tree."""
    audit_dir = tmp_path / "audit"
    monkeypatch.setattr(audit, "AUDIT_LOG_DIR", audit_dir)
    monkeypatch.setattr(audit, "AUDIT_LOG_FILE", audit_dir / "identity-events.jsonl")
    return audit_dir


# ─────────────────────────────────────────────────────────────────────────────
# Accounts
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture()
def make_account():
    """Factory for stored accounts; id and username default from the e-mail."""

    def _make(email: str = "alice@example.com", **fields) -> Account:
        fields.setdefault("id", str(uuid.uuid4()))
        fields.setdefault("username", email.split("@")[0] if email else "user")
        return Account(email=email, **fields)

    return _make


# ─────────────────────────────────────────────────────────────────────────────
# Services
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture()
def password_settings():
    return PasswordSettings(min_length=6)


@pytest.fixture()
def accounts():
    return InMemoryAccountStore()


@pytest.fixture()
def credentials():
    return InMemoryCredentialStore()


@pytest.fixture()
def notifier():
    return MagicMock(name="notifier")


@pytest.fixture()
def make_services(accounts, credentials, notifier, password_settings):
    """Build a Services bundle around the shared in-memory stores."""

    def _make(personal_mode: bool = False, user_quota: int = 100, settings: PasswordSettings = None) -> Services:
        return Services(
            accounts=accounts,
            credentials=credentials,
            notifier=notifier,
            tenant=StaticTenantContext(
                tenant_id="acme",
                personal_mode=personal_mode,
                user_quota=user_quota,
                count_active_users=accounts.active_count,
                clock=lambda zone: FIXED_NOW.astimezone(zone),
            ),
            settings=ConfigSettingsStore(settings or password_settings),
        )

    return _make


@pytest.fixture()
def services(make_services):
    return make_services()


@pytest.fixture()
def provisioner(services):
    return AccountProvisioner(services)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests (requires running stack)"
    )
