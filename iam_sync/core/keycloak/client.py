"""Low-level HTTP client for Keycloak Admin API.

Handles service-account authentication, token refresh, and HTTP operations.
"""
from __future__ import annotations
import os
from typing import Optional, Dict, Any
from datetime import datetime, timedelta

import requests

from .exceptions import KeycloakAPIError

REQUEST_TIMEOUT = 5


class KeycloakClient:
    """HTTP client for Keycloak Admin API with automatic token management.

    Usage:
        client = KeycloakClient("http://keycloak:8080")
        client.authenticate_service_account("demo", "automation-cli", secret)
        response = client.get("/admin/realms/demo/users")
    """

    def __init__(self, base_url: Optional[str] = None):
        """Initialize Keycloak client.

        Args:
            base_url: Keycloak base URL (defaults to KEYCLOAK_INTERNAL_URL env var)
        """
        self.base_url = (base_url or os.environ.get("KEYCLOAK_INTERNAL_URL", "http://keycloak:8080")).rstrip("/")
        self._token: Optional[str] = None
        self._token_expires_at: Optional[datetime] = None
        self._auth_params: Dict[str, Any] = {}

    def authenticate_service_account(self, auth_realm: str, client_id: str, client_secret: str) -> str:
        """Authenticate as service account and store credentials for auto-refresh.

        Args:
            auth_realm: Realm where service account client exists
            client_id: Service account client ID
            client_secret: Service account client secret

        Returns:
            Access token
        """
        self._auth_params = {
            "auth_realm": auth_realm,
            "client_id": client_id,
            "client_secret": client_secret,
        }
        self._token, expires_in = self._get_service_account_token(auth_realm, client_id, client_secret)
        self._token_expires_at = datetime.now() + timedelta(seconds=expires_in)
        return self._token

    def _ensure_authenticated(self) -> None:
        """Ensure we have a valid token, refreshing if necessary."""
        if not self._token or not self._token_expires_at:
            raise KeycloakAPIError(401, "Not authenticated - call authenticate_service_account first", "")

        # Refresh if token expired or expiring soon (within 10 seconds)
        if datetime.now() >= self._token_expires_at - timedelta(seconds=10) and self._auth_params:
            self._token, expires_in = self._get_service_account_token(
                self._auth_params["auth_realm"],
                self._auth_params["client_id"],
                self._auth_params["client_secret"],
            )
            self._token_expires_at = datetime.now() + timedelta(seconds=expires_in)

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        self._ensure_authenticated()
        url = f"{self.base_url}{path}"
        headers = kwargs.pop("headers", {})
        headers["Authorization"] = f"Bearer {self._token}"

        resp = requests.request(method, url, headers=headers, timeout=REQUEST_TIMEOUT, **kwargs)
        self._handle_error(resp)
        return resp

    def get(self, path: str, params: Optional[Dict] = None, **kwargs) -> requests.Response:
        """Execute GET request with automatic authentication.

        Raises:
            KeycloakAPIError: On HTTP error
        """
        return self._request("GET", path, params=params, **kwargs)

    def post(self, path: str, json: Optional[Dict] = None, **kwargs) -> requests.Response:
        """Execute POST request with automatic authentication.

        Raises:
            KeycloakAPIError: On HTTP error
        """
        return self._request("POST", path, json=json, **kwargs)

    def put(self, path: str, json: Optional[Dict] = None, **kwargs) -> requests.Response:
        """Execute PUT request with automatic authentication.

        Raises:
            KeycloakAPIError: On HTTP error
        """
        return self._request("PUT", path, json=json, **kwargs)

    def delete(self, path: str, **kwargs) -> requests.Response:
        """Execute DELETE request with automatic authentication.

        Raises:
            KeycloakAPIError: On HTTP error
        """
        return self._request("DELETE", path, **kwargs)

    def _get_service_account_token(self, auth_realm: str, client_id: str, client_secret: str) -> tuple[str, int]:
        """Fetch a service account token using client credentials flow."""
        url = f"{self.base_url}/realms/{auth_realm}/protocol/openid-connect/token"
        data = {
            "grant_type": "client_credentials",
            "client_id": client_id,
            "client_secret": client_secret,
        }
        resp = requests.post(url, data=data, timeout=REQUEST_TIMEOUT)
        if resp.status_code != 200:
            raise KeycloakAPIError(resp.status_code, resp.text, url)
        payload = resp.json()
        return payload["access_token"], int(payload.get("expires_in", 60))

    def _handle_error(self, resp: requests.Response) -> None:
        """Raise KeycloakAPIError if response status indicates error."""
        if resp.status_code >= 400:
            raise KeycloakAPIError(resp.status_code, resp.text, resp.url)


def create_client_with_token(kc_url: str, token: str, expires_in: int = 3600) -> KeycloakClient:
    """Create a KeycloakClient around a pre-obtained access token.

    The client cannot refresh the token on its own.
    """
    client = KeycloakClient(kc_url)
    client._token = token
    client._token_expires_at = datetime.now() + timedelta(seconds=expires_in)
    return client
