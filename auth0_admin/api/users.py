"""User endpoints (/api/v1/users).

Architecture:
    /api/v1/users -> core/directory_service.py -> core/auth0 -> Auth0 Management API
"""
from __future__ import annotations
import logging

from flask import Blueprint, current_app, jsonify, request

from auth0_admin.api.decorators import get_operator, require_oauth_token
from auth0_admin.core import directory_service

bp = Blueprint("users", __name__, url_prefix="/api/v1/users")

logger = logging.getLogger(__name__)


def _context():
    return current_app.extensions["auth0_admin"]


@bp.route("", methods=["POST"])
@require_oauth_token(scopes=["write:users"])
def create_user():
    """Provision a user and return the password-setup ticket URL."""
    payload = request.get_json(silent=True)
    body = directory_service.create_user(_context(), payload, operator=get_operator())
    return jsonify(body), 200


@bp.route("", methods=["GET"])
@require_oauth_token(scopes=["read:users"])
def list_users():
    page, size = directory_service.normalize_paging(
        request.args.get("page", 0), request.args.get("size", directory_service.DEFAULT_PAGE_SIZE)
    )
    return jsonify(directory_service.list_users(_context(), page, size)), 200


@bp.route("/<path:user_id>", methods=["GET"])
@require_oauth_token(scopes=["read:users"])
def get_user(user_id: str):
    user = directory_service.get_user(_context(), user_id)
    if user is None:
        return jsonify({"error": "Not Found", "message": f"User '{user_id}' not found"}), 404
    return jsonify(user), 200


@bp.route("/<path:user_id>", methods=["PUT"])
@require_oauth_token(scopes=["write:users"])
def update_user(user_id: str):
    """Replace the user's role assignments."""
    payload = request.get_json(silent=True)
    directory_service.update_user_roles(_context(), user_id, payload, operator=get_operator())
    return "", 204


@bp.route("/<path:user_id>", methods=["DELETE"])
@require_oauth_token(scopes=["write:users"])
def delete_user(user_id: str):
    directory_service.delete_user(_context(), user_id, operator=get_operator())
    return "", 204
