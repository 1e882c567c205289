"""Wiring of Auth0 services shared by the HTTP layer and the CLI."""
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

from auth0_admin.core.auth0 import (
    Auth0Client,
    TokenProvider,
    ManagementTokenProvider,
    UserService,
    RoleService,
    ResourceServerService,
    PASSWORD_TICKET_TTL_SECONDS,
)


@dataclass
class ServiceContext:
    """Everything a directory operation needs to talk to one Auth0 tenant."""
    users: UserService
    roles: RoleService
    resource_servers: ResourceServerService
    api_identifier: str
    tenant: str = ""
    ticket_ttl_seconds: int = PASSWORD_TICKET_TTL_SECONDS
    default_connection: Optional[str] = None
    token_provider: Optional[TokenProvider] = None

    @classmethod
    def from_client(cls, client: Auth0Client, api_identifier: str, **kwargs) -> "ServiceContext":
        kwargs.setdefault("tenant", client.domain)
        kwargs.setdefault("token_provider", client.token_provider)
        return cls(
            users=UserService(client),
            roles=RoleService(client),
            resource_servers=ResourceServerService(client),
            api_identifier=api_identifier,
            **kwargs,
        )


def create_token_provider(cfg) -> ManagementTokenProvider:
    """Management API token provider from application settings (not started)."""
    return ManagementTokenProvider(
        cfg.auth0_domain,
        cfg.auth0_client_id,
        cfg.auth0_client_secret,
        cfg.management_audience,
    )


def build_context(cfg, token_provider: Optional[TokenProvider] = None) -> ServiceContext:
    """Build the service context for the configured tenant.

    Args:
        cfg: AppConfig
        token_provider: Override (tests, CLI --token); defaults to a ManagementTokenProvider
    """
    provider = token_provider or create_token_provider(cfg)
    client = Auth0Client(cfg.auth0_domain, provider)
    return ServiceContext.from_client(
        client,
        cfg.api_identifier,
        ticket_ttl_seconds=cfg.ticket_ttl_seconds,
        default_connection=cfg.default_connection,
    )
