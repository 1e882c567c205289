import pytest

from auth0_admin.config import settings
from auth0_admin.config.settings import load_settings, _load_secret_from_file

ENV_VARS = [
    "DEMO_MODE",
    "AUTH0_DOMAIN",
    "AUTH0_CLIENT_ID",
    "AUTH0_CLIENT_SECRET",
    "AUTH0_MANAGEMENT_AUDIENCE",
    "AUTH0_API_IDENTIFIER",
    "AUTH0_TOKEN_REFRESH_SECONDS",
    "PASSWORD_TICKET_TTL_SECONDS",
    "API_AUTH_ENABLED",
    "API_AUDIENCE",
    "AUTH0_DEFAULT_CONNECTION",
    "AUDIT_LOG_SIGNING_KEY",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    # No Docker secrets mounted in tests
    monkeypatch.setattr(settings, "SECRETS_DIR", tmp_path / "secrets")


def _production_env(monkeypatch):
    monkeypatch.setenv("DEMO_MODE", "false")
    monkeypatch.setenv("AUTH0_DOMAIN", "tenant.eu.auth0.com")
    monkeypatch.setenv("AUTH0_CLIENT_ID", "m2m-client")
    monkeypatch.setenv("AUTH0_CLIENT_SECRET", "m2m-secret")
    monkeypatch.setenv("AUTH0_API_IDENTIFIER", "https://api.example.com")


def test_demo_mode_uses_defaults(monkeypatch):
    monkeypatch.setenv("DEMO_MODE", "true")

    cfg = load_settings()

    assert cfg.demo_mode is True
    assert cfg.auth0_domain == "demo.auth0.local"
    assert cfg.auth0_client_id == "demo-client"
    assert cfg.auth0_client_secret == "demo-secret"
    assert cfg.api_identifier == "https://api.demo.local"
    assert cfg.api_auth_enabled is False


def test_production_requires_domain(monkeypatch):
    _production_env(monkeypatch)
    monkeypatch.delenv("AUTH0_DOMAIN")

    with pytest.raises(RuntimeError, match="AUTH0_DOMAIN"):
        load_settings()


def test_production_requires_client_secret(monkeypatch):
    _production_env(monkeypatch)
    monkeypatch.delenv("AUTH0_CLIENT_SECRET")

    with pytest.raises(RuntimeError, match="AUTH0_CLIENT_SECRET"):
        load_settings()


def test_production_defaults(monkeypatch):
    _production_env(monkeypatch)

    cfg = load_settings()

    assert cfg.demo_mode is False
    assert cfg.management_audience == "https://tenant.eu.auth0.com/api/v2/"
    assert cfg.token_refresh_seconds == 21600
    assert cfg.ticket_ttl_seconds == 86400
    assert cfg.default_connection == "Username-Password-Authentication"
    assert cfg.api_auth_enabled is True
    assert cfg.api_audience == "https://api.example.com"
    assert cfg.issuer == "https://tenant.eu.auth0.com/"
    assert cfg.jwks_url == "https://tenant.eu.auth0.com/.well-known/jwks.json"


def test_domain_scheme_and_trailing_slash_are_stripped(monkeypatch):
    _production_env(monkeypatch)
    monkeypatch.setenv("AUTH0_DOMAIN", "https://tenant.eu.auth0.com/")

    assert load_settings().auth0_domain == "tenant.eu.auth0.com"


def test_overrides_are_read(monkeypatch):
    _production_env(monkeypatch)
    monkeypatch.setenv("AUTH0_TOKEN_REFRESH_SECONDS", "600")
    monkeypatch.setenv("PASSWORD_TICKET_TTL_SECONDS", "3600")
    monkeypatch.setenv("API_AUTH_ENABLED", "false")
    monkeypatch.setenv("API_AUDIENCE", "https://other-audience")
    monkeypatch.setenv("AUTH0_DEFAULT_CONNECTION", "corp-db")

    cfg = load_settings()

    assert cfg.token_refresh_seconds == 600
    assert cfg.ticket_ttl_seconds == 3600
    assert cfg.api_auth_enabled is False
    assert cfg.api_audience == "https://other-audience"
    assert cfg.default_connection == "corp-db"


@pytest.mark.parametrize("value", ["abc", "0", "-5"])
def test_invalid_interval_is_rejected(monkeypatch, value):
    _production_env(monkeypatch)
    monkeypatch.setenv("AUTH0_TOKEN_REFRESH_SECONDS", value)

    with pytest.raises(RuntimeError, match="AUTH0_TOKEN_REFRESH_SECONDS"):
        load_settings()


def test_client_secret_prefers_docker_secret(monkeypatch, tmp_path):
    _production_env(monkeypatch)
    secrets_dir = tmp_path / "secrets"
    secrets_dir.mkdir()
    (secrets_dir / "auth0_client_secret").write_text("from-file\n")

    assert load_settings().auth0_client_secret == "from-file"


def test_load_secret_falls_back_to_env(monkeypatch):
    monkeypatch.setenv("SOME_SECRET", "from-env")
    assert _load_secret_from_file("some_secret", "SOME_SECRET") == "from-env"
    assert _load_secret_from_file("missing_secret") is None
