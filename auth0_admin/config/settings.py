"""Settings loader with environment variable and Docker secrets integration."""
from __future__ import annotations
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

SECRETS_DIR = Path("/run/secrets")

DEFAULT_TOKEN_REFRESH_SECONDS = 6 * 60 * 60
DEFAULT_TICKET_TTL_SECONDS = 24 * 60 * 60
DEFAULT_CONNECTION = "Username-Password-Authentication"

DEMO_DEFAULTS = {
    "AUTH0_DOMAIN": "demo.auth0.local",
    "AUTH0_CLIENT_ID": "demo-client",
    "AUTH0_CLIENT_SECRET": "demo-secret",
    "AUTH0_API_IDENTIFIER": "https://api.demo.local",
}


def _load_secret_from_file(secret_name: str, env_var: str | None = None) -> str | None:
    """
    Load secret from /run/secrets (Docker secrets pattern).

    Priority:
    1. /run/secrets/{secret_name} (Docker secrets mount)
    2. Environment variable (fallback)

    Returns:
        Secret value or None if not found
    """
    secret_file = SECRETS_DIR / secret_name

    if secret_file.exists() and secret_file.is_file():
        try:
            secret_value = secret_file.read_text().strip()
            if secret_value:
                print(f"[settings] ✓ Loaded {secret_name} from /run/secrets")
                return secret_value
        except OSError as e:
            print(f"[settings] ✗ Failed to read /run/secrets/{secret_name}: {e}")

    if env_var:
        secret_value = os.getenv(env_var)
        if secret_value:
            return secret_value

    return None


@dataclass
class AppConfig:
    """Application configuration container."""
    demo_mode: bool

    # Auth0 tenant and Management API credentials
    auth0_domain: str
    auth0_client_id: str
    auth0_client_secret: str
    api_identifier: str
    management_audience: str = ""

    # Credential refresh / password tickets
    token_refresh_seconds: int = DEFAULT_TOKEN_REFRESH_SECONDS
    ticket_ttl_seconds: int = DEFAULT_TICKET_TTL_SECONDS
    default_connection: str = DEFAULT_CONNECTION

    # Inbound bearer token validation
    api_auth_enabled: bool = True
    api_audience: str = ""

    # Audit
    audit_log_signing_key: str = ""

    @property
    def issuer(self) -> str:
        return f"https://{self.auth0_domain}/"

    @property
    def jwks_url(self) -> str:
        return f"https://{self.auth0_domain}/.well-known/jwks.json"


def _get_or_default(var_name: str, demo_mode: bool, value: Optional[str] = None) -> str:
    """Return ``value`` or the env var, falling back to the demo default."""
    value = value or os.environ.get(var_name)
    if value:
        return value

    if demo_mode and var_name in DEMO_DEFAULTS:
        print(f"[demo-mode] Using default for {var_name}")
        return DEMO_DEFAULTS[var_name]

    raise RuntimeError(f"Environment variable {var_name} is required in production mode.")


def _get_int(var_name: str, default: int) -> int:
    raw = os.environ.get(var_name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{var_name} must be an integer, got {raw!r}") from exc
    if value <= 0:
        raise RuntimeError(f"{var_name} must be positive, got {value}")
    return value


def load_settings() -> AppConfig:
    """Load application settings from environment and /run/secrets."""
    demo_mode = os.environ.get("DEMO_MODE", "false").lower() == "true"

    auth0_domain = _get_or_default("AUTH0_DOMAIN", demo_mode).strip().rstrip("/")
    if auth0_domain.startswith("https://"):
        auth0_domain = auth0_domain[len("https://"):]

    auth0_client_id = _get_or_default("AUTH0_CLIENT_ID", demo_mode)
    auth0_client_secret = _get_or_default(
        "AUTH0_CLIENT_SECRET",
        demo_mode,
        value=_load_secret_from_file("auth0_client_secret", "AUTH0_CLIENT_SECRET"),
    )
    api_identifier = _get_or_default("AUTH0_API_IDENTIFIER", demo_mode)
    management_audience = os.environ.get("AUTH0_MANAGEMENT_AUDIENCE") or f"https://{auth0_domain}/api/v2/"

    token_refresh_seconds = _get_int("AUTH0_TOKEN_REFRESH_SECONDS", DEFAULT_TOKEN_REFRESH_SECONDS)
    ticket_ttl_seconds = _get_int("PASSWORD_TICKET_TTL_SECONDS", DEFAULT_TICKET_TTL_SECONDS)
    default_connection = os.environ.get("AUTH0_DEFAULT_CONNECTION", DEFAULT_CONNECTION).strip() or DEFAULT_CONNECTION

    api_auth_enabled = os.environ.get("API_AUTH_ENABLED", str(not demo_mode)).lower() == "true"
    api_audience = os.environ.get("API_AUDIENCE") or api_identifier

    # Audit log signing key
    audit_log_signing_key = _load_secret_from_file("audit_log_signing_key", "AUDIT_LOG_SIGNING_KEY") or ""
    if audit_log_signing_key:
        os.environ["AUDIT_LOG_SIGNING_KEY"] = audit_log_signing_key

    mode_label = "DEMO" if demo_mode else "PRODUCTION"
    print(f"[settings] Mode={mode_label}; domain={auth0_domain}; client_id={auth0_client_id}")

    if demo_mode:
        print("[settings] WARNING: Demo credentials in use. Do not deploy with these defaults.")
    if not api_auth_enabled:
        print("[settings] WARNING: API_AUTH_ENABLED=false, /api/v1 routes accept unauthenticated calls")

    return AppConfig(
        demo_mode=demo_mode,
        auth0_domain=auth0_domain,
        auth0_client_id=auth0_client_id,
        auth0_client_secret=auth0_client_secret,
        api_identifier=api_identifier,
        management_audience=management_audience,
        token_refresh_seconds=token_refresh_seconds,
        ticket_ttl_seconds=ticket_ttl_seconds,
        default_connection=default_connection,
        api_auth_enabled=api_auth_enabled,
        api_audience=api_audience,
        audit_log_signing_key=audit_log_signing_key,
    )
