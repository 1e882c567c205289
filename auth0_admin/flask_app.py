"""Flask application factory and bootstrap.

This module provides the create_app() factory function for initializing
the Flask application with all blueprints and configuration.
"""
from __future__ import annotations
import logging
import os
from pathlib import Path
from typing import Optional

from flask import Flask

from auth0_admin.config import AppConfig, load_settings
from auth0_admin.core.auth0 import ManagementTokenProvider
from auth0_admin.core.context import ServiceContext, build_context

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Application Factory
# ─────────────────────────────────────────────────────────────────────────────
def create_app(cfg: Optional[AppConfig] = None, context: Optional[ServiceContext] = None) -> Flask:
    """Create and configure Flask application.

    Args:
        cfg: Settings (defaults to load_settings())
        context: Service context override; tests pass one built on mocks
    """
    if cfg is None:
        cfg = load_settings()

    app = Flask(__name__)
    app.config.setdefault(
        "OPENAPI_SPEC_PATH",
        str(Path(app.root_path).parent / "openapi" / "user_management_openapi.yaml"),
    )
    app.config["APP_CONFIG"] = cfg
    app.config["JSON_SORT_KEYS"] = False

    if context is None:
        context = build_context(cfg)
    app.extensions["auth0_admin"] = context

    from auth0_admin.api import errors, health, users, roles, permissions
    from auth0_admin.api import docs as docs_routes

    app.register_blueprint(health.bp)
    app.register_blueprint(users.bp)
    app.register_blueprint(roles.bp)
    app.register_blueprint(permissions.bp)
    app.register_blueprint(docs_routes.bp)

    errors.register_error_handlers(app)

    # Under gunicorn each worker starts its own refresher in post_fork
    if os.environ.get("AUTH0_START_TOKEN_REFRESH", "false").lower() == "true":
        start_token_refresh(app)

    mode_label = "DEMO" if cfg.demo_mode else "PRODUCTION"
    print(f"[flask_app] Mode={mode_label}")
    print(f"[flask_app] User management API registered at /api/v1 (tenant={cfg.auth0_domain})")

    if cfg.demo_mode:
        print("[flask_app] WARNING: Demo mode active - do not deploy with demo credentials")

    return app


def start_token_refresh(app: Flask) -> bool:
    """Start the Management API token refresher of ``app`` if it has one.

    Returns:
        True if a refresher was started
    """
    cfg: AppConfig = app.config["APP_CONFIG"]
    provider = getattr(app.extensions.get("auth0_admin"), "token_provider", None)
    if not isinstance(provider, ManagementTokenProvider):
        return False

    provider.start(interval=cfg.token_refresh_seconds)
    logger.info("Token refresh scheduled every %s seconds", cfg.token_refresh_seconds)
    return True
