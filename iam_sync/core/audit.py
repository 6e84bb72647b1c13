"""Audit logging utilities for identity operations (provisioning, sync, notifications)."""

from __future__ import annotations
import datetime
import hashlib
import hmac
import json
import logging
import os
from pathlib import Path
from typing import Any, Literal

logger = logging.getLogger(__name__)

AUDIT_LOG_DIR = Path(os.environ.get("AUDIT_LOG_DIR", ".runtime/audit"))
AUDIT_LOG_FILE = AUDIT_LOG_DIR / "identity-events.jsonl"


def _get_signing_key() -> bytes:
    """Get the audit signing key from the environment or a secret file."""
    key = os.environ.get("AUDIT_LOG_SIGNING_KEY", "").strip()
    if key:
        return key.encode("utf-8")
    key_file = os.environ.get("AUDIT_LOG_SIGNING_KEY_FILE")
    if key_file:
        path = Path(key_file)
        if path.exists():
            try:
                return path.read_text(encoding="utf-8").strip().encode("utf-8")
            except OSError:
                logger.warning("Cannot read audit signing key file %s", path)
    return b""


EventType = Literal[
    "account_created", "account_synced", "account_skipped",
    "notification", "sync_failed",
]


def _ensure_audit_dir() -> None:
    """Create audit directory with restricted permissions."""
    AUDIT_LOG_DIR.mkdir(parents=True, exist_ok=True)
    AUDIT_LOG_DIR.chmod(0o700)


def _sign_event(event: dict[str, Any]) -> str:
    """Generate HMAC-SHA256 signature for audit event."""
    signing_key = _get_signing_key()
    if not signing_key:
        return ""
    canonical = json.dumps(event, sort_keys=True, separators=(",", ":"))
    return hmac.new(signing_key, canonical.encode("utf-8"), hashlib.sha256).hexdigest()


def log_event(
    event_type: EventType,
    username: str,
    *,
    operator: str = "system",
    tenant: str = "default",
    details: dict[str, Any] | None = None,
    success: bool = True,
) -> None:
    """Append a signed identity event to the audit trail.

    Args:
        event_type: Type of operation (account_created, notification, ...)
        username: Target account affected by the operation
        operator: Who performed the operation (user, "directory-sync", "cli")
        tenant: Tenant where the operation occurred
        details: Additional context (never password material)
        success: Whether the operation succeeded
    """
    _ensure_audit_dir()

    event = {
        "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        "event_type": event_type,
        "tenant": tenant,
        "username": username,
        "operator": operator,
        "success": success,
        "details": details or {},
    }

    signature = _sign_event(event)
    if signature:
        event["signature"] = signature

    with AUDIT_LOG_FILE.open("a", encoding="utf-8") as f:
        f.write(json.dumps(event, ensure_ascii=False) + "\n")

    AUDIT_LOG_FILE.chmod(0o600)


def safe_log_event(
    event_type: EventType,
    username: str,
    *,
    operator: str = "system",
    tenant: str = "default",
    details: dict[str, Any] | None = None,
    success: bool = True,
) -> bool:
    """Log an event without ever raising.

    Returns:
        True if event was logged successfully, False if logging failed
    """
    try:
        log_event(
            event_type,
            username,
            operator=operator,
            tenant=tenant,
            details=details,
            success=success,
        )
        return True
    except Exception as e:
        logger.warning("Failed to log %s event for %s: %s", event_type, username, e)
        return False


def verify_audit_log() -> tuple[int, int]:
    """Verify all signatures in the audit log.

    Returns:
        Tuple of (total_events, valid_signatures)
    """
    if not AUDIT_LOG_FILE.exists():
        return 0, 0

    total = 0
    valid = 0

    with AUDIT_LOG_FILE.open("r", encoding="utf-8") as f:
        for line in f:
            if not line.strip():
                continue
            total += 1
            try:
                event = json.loads(line)
                stored_sig = event.pop("signature", "")
                if not stored_sig:
                    continue
                computed_sig = _sign_event(event)
                if hmac.compare_digest(stored_sig, computed_sig):
                    valid += 1
            except (json.JSONDecodeError, KeyError):
                continue

    return total, valid
