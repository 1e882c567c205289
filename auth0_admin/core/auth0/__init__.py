"""Auth0 Management API client library.

This package provides a narrow, testable interface to the Management API
operations the facade needs.

Architecture:
- tokens.py: Management API credential with periodic refresh
- client.py: HTTP client with bearer authentication and error handling
- users.py: User lifecycle, role assignment, password change tickets
- roles.py: Role CRUD and role permission assignment
- resource_servers.py: Scope catalogue of the protected API
- exceptions.py: Typed exceptions for error handling

Usage:
    from auth0_admin.core.auth0 import Auth0Client, ManagementTokenProvider, UserService

    provider = ManagementTokenProvider("tenant.eu.auth0.com", client_id, client_secret)
    provider.start()

    user_service = UserService(Auth0Client("tenant.eu.auth0.com", provider))
    user = user_service.get_user("auth0|123")
"""
from .client import (
    Auth0Client,
    create_client_with_token,
    encode_id,
    REQUEST_TIMEOUT,
)
from .exceptions import (
    Auth0Error,
    Auth0APIError,
    TokenUnavailableError,
    UserNotFoundError,
    RoleNotFoundError,
)
from .tokens import (
    TokenProvider,
    StaticTokenProvider,
    ManagementTokenProvider,
)
from .users import UserService, PASSWORD_TICKET_TTL_SECONDS
from .roles import RoleService
from .resource_servers import ResourceServerService

__all__ = [
    # Client
    "Auth0Client",
    "create_client_with_token",
    "encode_id",
    "REQUEST_TIMEOUT",

    # Tokens
    "TokenProvider",
    "StaticTokenProvider",
    "ManagementTokenProvider",

    # Exceptions
    "Auth0Error",
    "Auth0APIError",
    "TokenUnavailableError",
    "UserNotFoundError",
    "RoleNotFoundError",

    # Services
    "UserService",
    "RoleService",
    "ResourceServerService",
    "PASSWORD_TICKET_TTL_SECONDS",
]
