"""Pytest shared fixtures."""
import os
import pathlib
import sys
import time
from typing import Optional
from unittest.mock import MagicMock

# Add project root to Python path
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Configure test environment BEFORE any app imports
os.environ.setdefault("DEMO_MODE", "true")

import jwt
import pytest
import requests
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.backends import default_backend

from auth0_admin.config import AppConfig
from auth0_admin.core.auth0 import UserService, RoleService, ResourceServerService
from auth0_admin.core.context import ServiceContext
from auth0_admin.flask_app import create_app
from scripts import audit

TEST_DOMAIN = "tenant.test.auth0.com"
TEST_API_IDENTIFIER = "https://api.test.local"


# ─────────────────────────────────────────────────────────────────────────────
# Network Guard Rails
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture(autouse=True)
def _block_network(monkeypatch, request):
    """
    Prevent unit tests from hitting a live Auth0 tenant.

    Integration tests are explicitly marked with @pytest.mark.integration and
    are allowed to perform real HTTP calls by skipping this fixture.
    """
    if request.node.get_closest_marker("integration"):
        return

    def _guard(method):
        def _stub(url, *args, **kwargs):
            raise RuntimeError(f"Unexpected HTTP {method} in unit test: {url}")
        return _stub

    for method in ("get", "post", "patch", "put", "delete"):
        monkeypatch.setattr(requests, method, _guard(method.upper()))


@pytest.fixture(autouse=True)
def _isolated_audit_log(monkeypatch, tmp_path):
    """Send audit events of every test to a throwaway directory."""
    audit_dir = tmp_path / "audit"
    monkeypatch.setattr(audit, "AUDIT_LOG_DIR", audit_dir)
    monkeypatch.setattr(audit, "AUDIT_LOG_FILE", audit_dir / "admin-events.jsonl")
    monkeypatch.setenv("AUDIT_LOG_SIGNING_KEY", "test-signing-key-for-audit-trail")
    monkeypatch.delenv("AUDIT_LOG_SIGNING_KEY_FILE", raising=False)
    return audit_dir / "admin-events.jsonl"


class StubResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, payload=None, status_code: int = 200, url: str = "", text: Optional[str] = None):
        self._payload = payload
        self.status_code = status_code
        self.url = url
        self.text = text if text is not None else ("" if payload is None else str(payload))

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON body")
        return self._payload


# ─────────────────────────────────────────────────────────────────────────────
# Configuration and Service Context
# ─────────────────────────────────────────────────────────────────────────────
def make_config(**overrides) -> AppConfig:
    values = dict(
        demo_mode=True,
        auth0_domain=TEST_DOMAIN,
        auth0_client_id="test-client",
        auth0_client_secret="test-secret",
        api_identifier=TEST_API_IDENTIFIER,
        management_audience=f"https://{TEST_DOMAIN}/api/v2/",
        api_auth_enabled=False,
        api_audience=TEST_API_IDENTIFIER,
    )
    values.update(overrides)
    return AppConfig(**values)


@pytest.fixture()
def app_config() -> AppConfig:
    return make_config()


@pytest.fixture()
def service_context() -> ServiceContext:
    """Service context whose Auth0 services are MagicMocks."""
    return ServiceContext(
        users=MagicMock(spec=UserService),
        roles=MagicMock(spec=RoleService),
        resource_servers=MagicMock(spec=ResourceServerService),
        api_identifier=TEST_API_IDENTIFIER,
        tenant=TEST_DOMAIN,
        default_connection="Username-Password-Authentication",
    )


@pytest.fixture()
def app(app_config, service_context):
    flask_app = create_app(app_config, service_context)
    flask_app.config.update(TESTING=True)
    return flask_app


# ─────────────────────────────────────────────────────────────────────────────
# Flask Test Client
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture()
def client(app):
    """Flask test client backed by the mocked service context."""
    with app.test_client() as client:
        with app.app_context():
            yield client


# ─────────────────────────────────────────────────────────────────────────────
# RSA Key Pair for JWT Testing
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture(scope="session")
def rsa_key_pair():
    """Generate RSA key pair for JWT signing in tests."""
    private_key = rsa.generate_private_key(
        public_exponent=65537,
        key_size=2048,
        backend=default_backend()
    )

    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption()
    )

    return {
        "private_key": private_key,
        "private_pem": private_pem,
        "public_key": private_key.public_key(),
    }


@pytest.fixture()
def mock_jwks(monkeypatch, rsa_key_pair):
    """Serve the test public key instead of fetching the tenant's JWKS."""
    from auth0_admin.api import decorators

    jwks_client = MagicMock()
    jwks_client.get_signing_key_from_jwt.return_value = MagicMock(key=rsa_key_pair["public_key"])
    monkeypatch.setattr(decorators, "get_jwks_client", lambda: jwks_client)
    return jwks_client


# ─────────────────────────────────────────────────────────────────────────────
# JWT Token Helpers
# ─────────────────────────────────────────────────────────────────────────────
def create_valid_jwt(
    rsa_key_pair: dict,
    issuer: str = f"https://{TEST_DOMAIN}/",
    audience: str = TEST_API_IDENTIFIER,
    sub: str = "client-123@clients",
    scope: str = "read:users write:users read:roles write:roles read:permissions write:permissions",
    exp_offset: int = 3600,
    kid: str = "default-key-id",
) -> str:
    """Create a valid RS256-signed Auth0-style access token for testing."""
    now = int(time.time())
    payload = {
        "iss": issuer,
        "aud": audience,
        "sub": sub,
        "azp": "client-123",
        "exp": now + exp_offset,
        "iat": now,
        "scope": scope,
        "gty": "client-credentials",
    }
    return jwt.encode(payload, rsa_key_pair["private_pem"], algorithm="RS256", headers={"kid": kid})


# ─────────────────────────────────────────────────────────────────────────────
# Pytest Configuration
# ─────────────────────────────────────────────────────────────────────────────
def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests (requires a real Auth0 tenant)"
    )
