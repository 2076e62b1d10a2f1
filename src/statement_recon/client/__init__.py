"""Clients for the remote reconciliation service."""

from .api_client import ReconciliationApiClient, env_token_provider
from .base import ReconciliationGateway, TokenProvider

__all__ = [
    "ReconciliationApiClient",
    "ReconciliationGateway",
    "TokenProvider",
    "env_token_provider",
]
