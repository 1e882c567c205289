"""
Flask decorators for authentication and authorization.

This module provides OAuth 2.0 Bearer Token validation for the /api/v1
endpoints. Access tokens are issued by the same Auth0 tenant the facade
manages and are validated against the tenant's JWKS.

Security:
- RSA-SHA256 signature verification via JWKS (RFC 7517)
- Expiration, issuer, audience validation (RFC 7519)
- JWKS caching (1-hour refresh)
"""

import logging
from functools import wraps
from typing import Any, Dict, List, Optional

import jwt
from jwt import PyJWKClient
from jwt.exceptions import (
    ExpiredSignatureError,
    InvalidIssuerError,
    InvalidAudienceError,
    InvalidSignatureError,
    DecodeError,
    PyJWTError,
)
from flask import request, jsonify, current_app, g

logger = logging.getLogger(__name__)

_jwks_client: Optional[PyJWKClient] = None


class TokenValidationError(Exception):
    """Exception raised when JWT token validation fails."""
    pass


def get_jwks_client() -> PyJWKClient:
    """
    Get cached JWKS client for the configured tenant.

    The client is rebuilt when the configured JWKS URL changes (for example
    between test apps with different domains).
    """
    global _jwks_client

    cfg = current_app.config["APP_CONFIG"]
    jwks_url = cfg.jwks_url

    if _jwks_client is None or _jwks_client.uri != jwks_url:
        logger.info("Initializing JWKS client for: %s", jwks_url)
        _jwks_client = PyJWKClient(
            jwks_url,
            cache_keys=True,
            max_cached_keys=16,
            lifespan=3600,
            headers={"User-Agent": "auth0-admin/1.0"},
        )

    return _jwks_client


def validate_jwt_token(token: str) -> Dict[str, Any]:
    """
    Validate an Auth0 access token.

    Validations performed:
    1. Signature verification (RS256 via JWKS)
    2. Expiration and not-before
    3. Issuer (``https://{domain}/``)
    4. Audience (``API_AUDIENCE``)

    Returns:
        dict: Validated token claims

    Raises:
        TokenValidationError: If any validation fails
    """
    cfg = current_app.config["APP_CONFIG"]

    try:
        signing_key = get_jwks_client().get_signing_key_from_jwt(token)
        claims = jwt.decode(
            token,
            signing_key.key,
            algorithms=["RS256"],
            issuer=cfg.issuer,
            audience=cfg.api_audience,
            options={
                "verify_signature": True,
                "verify_exp": True,
                "verify_nbf": True,
                "verify_iss": True,
                "verify_aud": True,
                "require": ["exp", "iat"],
            },
            leeway=5,
        )
    except ExpiredSignatureError:
        raise TokenValidationError("Token expired (exp claim)")
    except InvalidIssuerError as e:
        raise TokenValidationError(f"Invalid issuer: {e}")
    except InvalidAudienceError as e:
        raise TokenValidationError(f"Invalid audience (token not for this API): {e}")
    except InvalidSignatureError:
        raise TokenValidationError("Invalid signature (token tampered or wrong key)")
    except DecodeError as e:
        raise TokenValidationError(f"Token decode error (malformed JWT): {e}")
    except PyJWTError as e:
        logger.error("JWT validation failed: %s", e)
        raise TokenValidationError(f"Token validation failed: {e}")

    logger.debug("JWT validated for client %s, scopes: %s", claims.get("azp"), claims.get("scope"))
    return claims


def _token_scopes(claims: Dict[str, Any]) -> List[str]:
    # Auth0 puts RBAC permissions in "permissions" when the API enables them
    scopes = claims.get("scope", "").split()
    scopes.extend(claims.get("permissions") or [])
    return scopes


def _unauthorized(message: str):
    return jsonify({"error": "Unauthorized", "message": message}), 401


def require_oauth_token(scopes: Optional[List[str]] = None):
    """
    Decorator to require a valid OAuth 2.0 Bearer Token.

    Passes through when ``API_AUTH_ENABLED`` is false.

    Args:
        scopes: Required scopes; the token must carry at least one of them

    Example:
        @bp.route("", methods=["POST"])
        @require_oauth_token(scopes=["write:users"])
        def create_user():
            ...
    """
    if scopes is None:
        scopes = []

    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            cfg = current_app.config["APP_CONFIG"]
            if not cfg.api_auth_enabled:
                g.oauth_claims = None
                return fn(*args, **kwargs)

            auth_header = request.headers.get("Authorization", "")
            if not auth_header:
                logger.warning("Request to %s missing Authorization header", request.path)
                return _unauthorized("Authorization header required. Use 'Authorization: Bearer <token>'")

            if not auth_header.startswith("Bearer "):
                return _unauthorized("Invalid Authorization header format. Expected 'Bearer <token>'")

            token = auth_header[7:].strip()
            if not token:
                return _unauthorized("Bearer token is empty")

            try:
                claims = validate_jwt_token(token)
            except TokenValidationError as e:
                logger.warning("JWT validation failed: %s", e)
                return _unauthorized(str(e))

            if scopes:
                token_scopes = _token_scopes(claims)
                if not any(scope in token_scopes for scope in scopes):
                    logger.warning(
                        "Request lacks required scopes. Required: %s, Token has: %s",
                        scopes,
                        token_scopes,
                    )
                    return jsonify({
                        "error": "Forbidden",
                        "message": f"Insufficient scope. Required: {', '.join(scopes)}",
                    }), 403

            g.oauth_claims = claims
            g.oauth_client_id = claims.get("azp") or claims.get("client_id")
            return fn(*args, **kwargs)

        return wrapper
    return decorator


def get_operator() -> str:
    """Audit operator for the current request: token subject, or 'anonymous'."""
    claims = getattr(g, "oauth_claims", None)
    if not claims:
        return "anonymous"
    return claims.get("sub") or claims.get("azp") or "unknown"
