"""Permission endpoints (/api/v1/permissions): scopes of the configured API."""
from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from auth0_admin.api.decorators import get_operator, require_oauth_token
from auth0_admin.core import directory_service

bp = Blueprint("permissions", __name__, url_prefix="/api/v1/permissions")


@bp.route("", methods=["GET"])
@require_oauth_token(scopes=["read:permissions"])
def list_permissions():
    ctx = current_app.extensions["auth0_admin"]
    return jsonify(directory_service.list_permissions(ctx)), 200


@bp.route("", methods=["PUT"])
@require_oauth_token(scopes=["write:permissions"])
def update_permissions():
    ctx = current_app.extensions["auth0_admin"]
    directory_service.update_permissions(ctx, request.get_json(silent=True), operator=get_operator())
    return "", 204
