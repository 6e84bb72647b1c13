"""Unit tests for identity audit logging."""

import json

import pytest

from iam_sync.core import audit
from iam_sync.core.models import Account
from iam_sync.core.notifications import AuditTrailNotifier


@pytest.fixture
def audit_file(monkeypatch):
    """Audit file inside the per-test audit directory, with a signing key."""
    monkeypatch.setenv("AUDIT_LOG_SIGNING_KEY", "test-signing-key-for-audit-trail")
    return audit.AUDIT_LOG_FILE


def read_events(path):
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines() if line.strip()]


def test_log_event_creates_file_with_restricted_permissions(audit_file):
    assert not audit_file.exists()

    audit.log_event("account_created", "alice", operator="cli", tenant="acme", details={"visitor": False})

    assert audit_file.exists()
    assert audit_file.stat().st_mode & 0o777 == 0o600
    assert audit.AUDIT_LOG_DIR.stat().st_mode & 0o777 == 0o700


def test_log_event_writes_json_line(audit_file):
    audit.log_event("sync_failed", "bob@example.com", operator="directory-sync", tenant="acme",
                    details={"error": "duplicateEmail"}, success=False)

    (event,) = read_events(audit_file)
    assert event["event_type"] == "sync_failed"
    assert event["username"] == "bob@example.com"
    assert event["operator"] == "directory-sync"
    assert event["tenant"] == "acme"
    assert event["success"] is False
    assert event["details"] == {"error": "duplicateEmail"}
    assert event["signature"]


def test_verify_audit_log_accepts_untouched_events(audit_file):
    audit.log_event("account_created", "alice")
    audit.log_event("account_synced", "bob")

    assert audit.verify_audit_log() == (2, 2)


def test_verify_audit_log_detects_tampering(audit_file):
    audit.log_event("account_created", "alice")
    event = read_events(audit_file)[0]
    event["username"] = "mallory"
    audit_file.write_text(json.dumps(event) + "\n", encoding="utf-8")

    assert audit.verify_audit_log() == (1, 0)


def test_unsigned_events_when_no_key(monkeypatch):
    monkeypatch.delenv("AUDIT_LOG_SIGNING_KEY", raising=False)
    monkeypatch.delenv("AUDIT_LOG_SIGNING_KEY_FILE", raising=False)

    audit.log_event("account_skipped", "carol")

    assert "signature" not in read_events(audit.AUDIT_LOG_FILE)[0]
    assert audit.verify_audit_log() == (1, 0)


def test_signing_key_from_file(monkeypatch, tmp_path):
    key_file = tmp_path / "audit_key"
    key_file.write_text("file-key\n", encoding="utf-8")
    monkeypatch.delenv("AUDIT_LOG_SIGNING_KEY", raising=False)
    monkeypatch.setenv("AUDIT_LOG_SIGNING_KEY_FILE", str(key_file))

    assert audit._get_signing_key() == b"file-key"


def test_verify_without_log_file():
    assert audit.verify_audit_log() == (0, 0)


def test_safe_log_event_never_raises(monkeypatch):
    def broken(*args, **kwargs):
        raise OSError("disk full")

    monkeypatch.setattr(audit, "log_event", broken)
    assert audit.safe_log_event("account_created", "alice") is False


def test_notifier_records_templates_without_passwords(audit_file):
    notifier = AuditTrailNotifier(tenant="acme", operator="directory-sync")
    account = Account(id="1", username="alice", email="alice@example.com")

    notifier.user_info_added_after_invite(account, "Sup3r-Secret!")
    notifier.user_password_changed("1")

    events = read_events(audit_file)
    assert [e["details"]["template"] for e in events] == ["user_added_after_invite", "password_changed"]
    assert all(e["event_type"] == "notification" and e["tenant"] == "acme" for e in events)
    assert "Sup3r-Secret!" not in audit_file.read_text(encoding="utf-8")
