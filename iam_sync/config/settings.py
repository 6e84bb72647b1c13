"""Settings loader with environment variable and Docker secrets integration."""
from __future__ import annotations
import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

from iam_sync.core.models import PasswordSettings, VISITOR_GROUP_ID

logger = logging.getLogger(__name__)

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _load_secret_from_file(secret_name: str, env_var: str | None = None) -> str | None:
    """
    Load secret from /run/secrets (Docker secrets pattern).

    Priority:
    1. /run/secrets/{secret_name} (Docker secrets mount)
    2. Environment variable (fallback)

    Args:
        secret_name: Name of the secret file in /run/secrets
        env_var: Optional environment variable name to check as fallback

    Returns:
        Secret value or None if not found
    """
    secret_file = Path("/run/secrets") / secret_name

    if secret_file.exists() and secret_file.is_file():
        try:
            secret_value = secret_file.read_text().strip()
            if secret_value:
                logger.info("Loaded %s from /run/secrets", secret_name)
                return secret_value
        except OSError as e:
            logger.warning("Failed to read /run/secrets/%s: %s", secret_name, e)

    if env_var:
        secret_value = os.getenv(env_var)
        if secret_value:
            return secret_value

    return None


def _env_bool(var_name: str, default: bool = False) -> bool:
    raw = os.environ.get(var_name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in _TRUE_VALUES


def _env_int(var_name: str, default: int) -> int:
    raw = os.environ.get(var_name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"Environment variable {var_name} must be an integer, got '{raw}'")


def _env_float(var_name: str, default: float) -> float:
    raw = os.environ.get(var_name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise RuntimeError(f"Environment variable {var_name} must be a number, got '{raw}'")


@dataclass
class AppConfig:
    """Application configuration container."""
    # Mode
    demo_mode: bool

    # Tenant
    tenant_id: str = "default"
    tenant_timezone: str = "UTC"
    personal_mode: bool = False
    user_quota: int = 100
    visitor_group_id: str = VISITOR_GROUP_ID

    # Password policy defaults (served per tenant by ConfigSettingsStore)
    password_min_length: int = 6
    password_require_digits: bool = False
    password_require_upper_case: bool = False
    password_require_special_symbols: bool = False

    # Directory provisioning retry
    directory_retry_attempts: int = 3
    directory_retry_delay_seconds: float = 10.0

    # Keycloak
    keycloak_url: str = ""
    keycloak_realm: str = "demo"
    keycloak_service_realm: str = "demo"
    keycloak_service_client_id: str = "automation-cli"
    keycloak_service_client_secret: str = ""

    # Audit
    audit_log_signing_key: str = ""

    @property
    def password_settings(self) -> PasswordSettings:
        return PasswordSettings(
            min_length=self.password_min_length,
            require_digits=self.password_require_digits,
            require_upper_case=self.password_require_upper_case,
            require_special_symbols=self.password_require_special_symbols,
        )

    @property
    def service_client_secret_resolved(self) -> str:
        """Get Keycloak service account client secret with smart fallback.

        Priority:
        1. Demo mode: hardcoded "demo-service-secret"
        2. Configured value in keycloak_service_client_secret
        3. Docker secrets: /run/secrets/keycloak_service_client_secret
        4. Environment variable: KEYCLOAK_SERVICE_CLIENT_SECRET

        Raises:
            ValueError: If secret not found in production mode
        """
        if self.demo_mode:
            return "demo-service-secret"

        if self.keycloak_service_client_secret:
            return self.keycloak_service_client_secret

        secret = _load_secret_from_file("keycloak_service_client_secret", "KEYCLOAK_SERVICE_CLIENT_SECRET")
        if secret:
            return secret

        raise ValueError(
            "KEYCLOAK_SERVICE_CLIENT_SECRET not found. "
            "Set DEMO_MODE=true or provide secret via Docker secrets or environment variable."
        )


def _get_or_default(var_name: str, demo_default: Optional[str] = None, required: bool = True, demo_mode: bool = False) -> str:
    """Get environment variable or fall back to the demo default."""
    value = os.environ.get(var_name)
    if value:
        return value

    if demo_mode and demo_default is not None:
        logger.info("[demo-mode] Using default for %s", var_name)
        return demo_default

    if not required:
        return ""

    raise RuntimeError(f"Environment variable {var_name} is required in production mode.")


def load_settings() -> AppConfig:
    """Load application settings from environment and /run/secrets."""
    demo_mode = _env_bool("DEMO_MODE")

    keycloak_url = _get_or_default("KEYCLOAK_URL", demo_default="http://127.0.0.1:8080", demo_mode=demo_mode)
    keycloak_realm = os.environ.get("KEYCLOAK_REALM", "demo")
    keycloak_service_realm = os.environ.get("KEYCLOAK_SERVICE_REALM", keycloak_realm)
    keycloak_service_client_id = os.environ.get("KEYCLOAK_SERVICE_CLIENT_ID", "automation-cli")
    keycloak_service_client_secret = _load_secret_from_file(
        "keycloak_service_client_secret",
        "KEYCLOAK_SERVICE_CLIENT_SECRET",
    ) or ""

    audit_log_signing_key = _load_secret_from_file("audit_log_signing_key", "AUDIT_LOG_SIGNING_KEY") or ""
    if not audit_log_signing_key and demo_mode:
        audit_log_signing_key = os.environ.get(
            "AUDIT_LOG_SIGNING_KEY_DEMO", "demo-audit-signing-key-change-in-production"
        )

    password_min_length = _env_int("PASSWORD_MIN_LENGTH", 6)
    if password_min_length < 1:
        raise RuntimeError("PASSWORD_MIN_LENGTH must be at least 1")

    config = AppConfig(
        demo_mode=demo_mode,
        tenant_id=os.environ.get("IAM_TENANT_ID", "default"),
        tenant_timezone=os.environ.get("IAM_TENANT_TIMEZONE", "UTC"),
        personal_mode=_env_bool("IAM_PERSONAL_MODE"),
        user_quota=_env_int("IAM_USER_QUOTA", 100),
        visitor_group_id=os.environ.get("IAM_VISITOR_GROUP_ID", VISITOR_GROUP_ID),
        password_min_length=password_min_length,
        password_require_digits=_env_bool("PASSWORD_REQUIRE_DIGITS"),
        password_require_upper_case=_env_bool("PASSWORD_REQUIRE_UPPERCASE"),
        password_require_special_symbols=_env_bool("PASSWORD_REQUIRE_SPECIAL"),
        directory_retry_attempts=_env_int("DIRECTORY_RETRY_ATTEMPTS", 3),
        directory_retry_delay_seconds=_env_float("DIRECTORY_RETRY_DELAY_SECONDS", 10.0),
        keycloak_url=keycloak_url,
        keycloak_realm=keycloak_realm,
        keycloak_service_realm=keycloak_service_realm,
        keycloak_service_client_id=keycloak_service_client_id,
        keycloak_service_client_secret=keycloak_service_client_secret,
        audit_log_signing_key=audit_log_signing_key,
    )

    mode_label = "DEMO" if demo_mode else "PRODUCTION"
    logger.info(
        "Mode=%s; tenant=%s; realm=%s; personal=%s",
        mode_label, config.tenant_id, config.keycloak_realm, config.personal_mode,
    )
    if demo_mode:
        logger.warning("Demo credentials in use. Do not deploy with these defaults.")

    return config


@lru_cache(maxsize=1)
def get_settings() -> AppConfig:
    """Return the cached AppConfig for the running process."""
    return load_settings()
