"""Keycloak adapters for the identity core.

Architecture:
- client.py: HTTP client with service-account authentication and auto-refresh
- users.py: AccountStore / CredentialStore implementations over the Admin API
- exceptions.py: Typed exceptions for error handling

Usage:
    from iam_sync.core.keycloak import KeycloakClient, KeycloakAccountStore

    client = KeycloakClient("http://keycloak:8080")
    client.authenticate_service_account("demo", "automation-cli", secret)
    accounts = KeycloakAccountStore(client, "demo")
"""
from .client import (
    KeycloakClient,
    create_client_with_token,
    REQUEST_TIMEOUT,
)
from .exceptions import (
    KeycloakError,
    KeycloakAPIError,
)
from .users import (
    KeycloakAccountStore,
    KeycloakCredentialStore,
)

__all__ = [
    "KeycloakClient",
    "create_client_with_token",
    "REQUEST_TIMEOUT",
    "KeycloakError",
    "KeycloakAPIError",
    "KeycloakAccountStore",
    "KeycloakCredentialStore",
]
