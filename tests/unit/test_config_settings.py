import pytest

from iam_sync.config import settings

ENV_VARS = [
    "DEMO_MODE",
    "KEYCLOAK_URL",
    "KEYCLOAK_REALM",
    "KEYCLOAK_SERVICE_REALM",
    "KEYCLOAK_SERVICE_CLIENT_SECRET",
    "IAM_TENANT_ID",
    "IAM_PERSONAL_MODE",
    "IAM_USER_QUOTA",
    "PASSWORD_MIN_LENGTH",
    "PASSWORD_REQUIRE_DIGITS",
    "PASSWORD_REQUIRE_UPPERCASE",
    "PASSWORD_REQUIRE_SPECIAL",
    "DIRECTORY_RETRY_ATTEMPTS",
    "DIRECTORY_RETRY_DELAY_SECONDS",
    "AUDIT_LOG_SIGNING_KEY",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Start every test from an empty environment and an empty /run/secrets."""
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)

    real_path = settings.Path

    def fake_path(target):
        if str(target) == "/run/secrets":
            return tmp_path
        return real_path(target)

    monkeypatch.setattr(settings, "Path", fake_path)
    settings.get_settings.cache_clear()
    yield tmp_path
    settings.get_settings.cache_clear()


def make_config(**overrides):
    base = dict(
        demo_mode=False,
        keycloak_url="https://localhost",
        keycloak_realm="demo",
        keycloak_service_realm="demo",
        keycloak_service_client_id="automation-cli",
        keycloak_service_client_secret="",
    )
    base.update(overrides)
    return settings.AppConfig(**base)


def test_service_client_secret_demo_mode():
    cfg = make_config(demo_mode=True)
    assert cfg.service_client_secret_resolved == "demo-service-secret"


def test_service_client_secret_prefers_config_value():
    cfg = make_config(keycloak_service_client_secret="from-config")
    assert cfg.service_client_secret_resolved == "from-config"


def test_service_client_secret_reads_from_run_secrets(clean_env):
    (clean_env / "keycloak_service_client_secret").write_text("file-secret")
    assert make_config().service_client_secret_resolved == "file-secret"


def test_service_client_secret_falls_back_to_env(monkeypatch):
    monkeypatch.setenv("KEYCLOAK_SERVICE_CLIENT_SECRET", "env-secret")
    assert make_config().service_client_secret_resolved == "env-secret"


def test_service_client_secret_missing_raises():
    with pytest.raises(ValueError, match="KEYCLOAK_SERVICE_CLIENT_SECRET not found"):
        make_config().service_client_secret_resolved


def test_production_requires_keycloak_url():
    with pytest.raises(RuntimeError, match="KEYCLOAK_URL is required"):
        settings.load_settings()


def test_demo_mode_defaults(monkeypatch):
    monkeypatch.setenv("DEMO_MODE", "true")

    cfg = settings.load_settings()

    assert cfg.demo_mode is True
    assert cfg.keycloak_url == "http://127.0.0.1:8080"
    assert cfg.audit_log_signing_key
    assert cfg.password_settings.min_length == 6
    assert cfg.directory_retry_attempts == 3
    assert cfg.directory_retry_delay_seconds == 10.0


def test_tenant_and_policy_from_env(monkeypatch):
    monkeypatch.setenv("KEYCLOAK_URL", "https://kc.example.com")
    monkeypatch.setenv("KEYCLOAK_REALM", "acme")
    monkeypatch.setenv("IAM_TENANT_ID", "acme")
    monkeypatch.setenv("IAM_PERSONAL_MODE", "yes")
    monkeypatch.setenv("IAM_USER_QUOTA", "25")
    monkeypatch.setenv("PASSWORD_MIN_LENGTH", "12")
    monkeypatch.setenv("PASSWORD_REQUIRE_DIGITS", "1")
    monkeypatch.setenv("PASSWORD_REQUIRE_SPECIAL", "true")
    monkeypatch.setenv("DIRECTORY_RETRY_DELAY_SECONDS", "0.5")

    cfg = settings.load_settings()

    assert cfg.keycloak_service_realm == "acme"
    assert cfg.tenant_id == "acme"
    assert cfg.personal_mode is True
    assert cfg.user_quota == 25
    assert cfg.password_settings.min_length == 12
    assert cfg.password_settings.require_digits is True
    assert cfg.password_settings.require_upper_case is False
    assert cfg.password_settings.require_special_symbols is True
    assert cfg.directory_retry_delay_seconds == 0.5


@pytest.mark.parametrize(
    "var, value, message",
    [
        ("PASSWORD_MIN_LENGTH", "0", "PASSWORD_MIN_LENGTH must be at least 1"),
        ("IAM_USER_QUOTA", "many", "IAM_USER_QUOTA must be an integer"),
        ("DIRECTORY_RETRY_DELAY_SECONDS", "soon", "DIRECTORY_RETRY_DELAY_SECONDS must be a number"),
    ],
)
def test_invalid_values_are_rejected(monkeypatch, var, value, message):
    monkeypatch.setenv("DEMO_MODE", "true")
    monkeypatch.setenv(var, value)
    with pytest.raises(RuntimeError, match=message):
        settings.load_settings()


def test_get_settings_is_cached(monkeypatch):
    monkeypatch.setenv("DEMO_MODE", "true")
    assert settings.get_settings() is settings.get_settings()
