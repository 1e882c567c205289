"""OpenAPI description of the user management API."""
from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from flask import Blueprint, Response, current_app, jsonify, request

bp = Blueprint("docs", __name__)


def _document_path() -> Path:
    override = current_app.config.get("OPENAPI_SPEC_PATH")
    if override:
        return Path(override)
    return Path(current_app.root_path).parent / "openapi" / "user_management_openapi.yaml"


def _read_document() -> str:
    path = _document_path()
    if not path.exists():
        raise FileNotFoundError(f"OpenAPI document not found: {path}")
    return path.read_text(encoding="utf-8")


@bp.route("/openapi.json", methods=["GET"])
def openapi_document() -> Response:
    """Serve the OpenAPI document as JSON, pointed at the serving host.

    With API_AUTH_ENABLED=false the global bearer requirement is removed so
    generated clients do not ask for a token the server ignores.
    """
    document: dict[str, Any] = yaml.safe_load(_read_document()) or {}
    document["servers"] = [{"url": request.host_url.rstrip("/")}]

    cfg = current_app.config.get("APP_CONFIG")
    if cfg is not None and not cfg.api_auth_enabled:
        document.pop("security", None)
    return jsonify(document)


@bp.route("/openapi.yaml", methods=["GET"])
def openapi_yaml() -> Response:
    """Serve the OpenAPI document as written."""
    return Response(_read_document(), status=200, mimetype="application/yaml")
