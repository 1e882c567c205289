"""Auth0 resource server (API) scope catalogue operations."""
from __future__ import annotations
import logging
from typing import List

from .client import Auth0Client, encode_id

logger = logging.getLogger(__name__)


class ResourceServerService:
    """Service for reading and replacing a resource server's scopes."""

    def __init__(self, client: Auth0Client):
        """Initialize resource server service.

        Args:
            client: Authenticated Auth0 client
        """
        self.client = client

    def get_scopes(self, identifier: str) -> List[dict]:
        """Return the scope catalogue (``[{value, description}]``) of an API.

        Args:
            identifier: Resource server id or audience identifier
        """
        resp = self.client.get(f"/resource-servers/{encode_id(identifier)}")
        scopes = resp.json().get("scopes") or []
        logger.info("Fetched scopes for resource server: %s", identifier)
        return scopes

    def update_scopes(self, identifier: str, scopes: List[dict]) -> None:
        """Replace ALL scopes of the resource server with ``scopes``."""
        self.client.patch(f"/resource-servers/{encode_id(identifier)}", json={"scopes": scopes})
        logger.info("Successfully updated scopes for resource server: %s", identifier)
