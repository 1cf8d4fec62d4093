"""Google Service Account credentials.

Service accounts are used for server-to-server authentication without user interaction.
A single key yields the credentials every gcp-utils client is built from:
- Sheets API services (discovery based)
- Pub/Sub publisher and subscriber clients
- Cloud Monitoring query clients

Example:
    >>> auth = GoogleServiceAccount.from_file(
    ...     "service_account_key.json",
    ...     scopes=["sheets", "pubsub"],
    ... )
    >>> token = auth.get_access_token()
    >>> sheets_service = auth.build_service("sheets", "v4")
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

import google.auth.exceptions
from google.auth.transport.requests import Request
from google.oauth2 import service_account
from googleapiclient.discovery import build

from gcp_utils.google.exceptions import CredentialError, CredentialsNotFoundError
from gcp_utils.google.scopes import resolve_scopes

logger = logging.getLogger(__name__)

# Fields that must be present for a key to mint tokens for a project
REQUIRED_KEY_FIELDS = ("client_email", "private_key", "token_uri", "project_id")


@dataclass
class AccessToken:
    """A bearer token issued for a service account."""

    token: str
    expiry: datetime | None = None
    token_type: str = "Bearer"

    def to_dict(self) -> dict[str, Any]:
        return {
            "access_token": self.token,
            "token_type": self.token_type,
            "expiry": self.expiry.isoformat() if self.expiry else None,
        }


def load_key_info(key: dict | str | Path) -> dict[str, Any]:
    """Load service account key info from a dict, a JSON string or a file path.

    Args:
        key: Parsed key, literal JSON key, or path to a JSON key file.

    Returns:
        Key info dictionary.

    Raises:
        CredentialsNotFoundError: If a key path does not exist.
        CredentialError: If the key is not a JSON object.
    """
    if isinstance(key, dict):
        return dict(key)

    if isinstance(key, str) and key.lstrip().startswith("{"):
        source = "service account key"
        try:
            info = json.loads(key)
        except json.JSONDecodeError as e:
            raise CredentialError(f"Invalid JSON in {source}: {e}") from e
    else:
        key_path = Path(key).expanduser()
        if not key_path.exists():
            raise CredentialsNotFoundError(str(key_path))

        source = f"key file {key_path}"
        try:
            with open(key_path, encoding="utf-8") as f:
                info = json.load(f)
        except ValueError as e:
            # JSONDecodeError and UnicodeDecodeError
            raise CredentialError(f"Invalid JSON in {source}: {e}") from e

    if not isinstance(info, dict):
        raise CredentialError(
            f"Invalid {source}: expected a JSON object, got {type(info).__name__}"
        )
    return info


class GoogleServiceAccount:
    """Google Service Account credential provider.

    Turns service account key material plus a scope list into reusable
    credentials. Tokens are minted on demand; nothing is retried, a failed
    exchange is raised to the caller.

    Note: Spreadsheets must be shared with the service account email
    before the Sheets API will let it read or write them.
    """

    def __init__(
        self,
        key_info: dict[str, Any],
        scopes: list[str] | None = None,
    ):
        """Initialize service account credentials.

        Args:
            key_info: Parsed service account JSON key.
            scopes: List of scope names (e.g., ["sheets", "pubsub"]) or full URLs.
                   If None, defaults to cloud-platform.

        Raises:
            CredentialError: If the key is invalid or missing required fields.
        """
        if not isinstance(key_info, dict):
            raise CredentialError(
                f"Invalid key: expected a JSON object, got {type(key_info).__name__}"
            )
        if key_info.get("type") != "service_account":
            raise CredentialError(
                f"Invalid key: expected type 'service_account', got '{key_info.get('type')}'"
            )

        missing = [field for field in REQUIRED_KEY_FIELDS if not key_info.get(field)]
        if missing:
            raise CredentialError(f"Service account key missing required fields: {missing}")

        self.scopes = resolve_scopes(scopes)
        self.client_email = key_info["client_email"]
        self.project_id = key_info["project_id"]
        self._key_info = key_info

        try:
            self._credentials = service_account.Credentials.from_service_account_info(
                key_info,
                scopes=self.scopes,
            )
        except ValueError as e:
            raise CredentialError(
                f"Failed to obtain JWT config for scope {self.scopes}: {e}"
            ) from e

        logger.info(f"Service account initialized: {self.client_email}")
        logger.info(f"Scopes: {self.scopes}")

    @classmethod
    def from_file(
        cls, key_path: str | Path, scopes: list[str] | None = None
    ) -> GoogleServiceAccount:
        """Create credentials from a JSON key file."""
        return cls(load_key_info(Path(key_path)), scopes=scopes)

    @classmethod
    def from_env(
        cls,
        env_var: str = "GOOGLE_SERVICE_ACCOUNT_KEY",
        scopes: list[str] | None = None,
    ) -> GoogleServiceAccount:
        """Create credentials from an environment variable.

        The variable may hold either the literal JSON key or a path to a key file.

        Raises:
            CredentialError: If the variable is not set.
        """
        value = os.environ.get(env_var)
        if not value:
            raise CredentialError(f"Environment variable {env_var} not found")
        return cls(load_key_info(value), scopes=scopes)

    @property
    def credentials(self) -> service_account.Credentials:
        """Get the service account credentials."""
        return self._credentials

    @property
    def email(self) -> str:
        """Get the service account email address.

        Share your spreadsheets with this email to grant access.
        """
        return self.client_email

    def with_scopes(self, scopes: list[str]) -> GoogleServiceAccount:
        """Create a provider for the same key with different scopes.

        Clients already built from this provider keep their original scopes.
        """
        return GoogleServiceAccount(self._key_info, scopes=scopes)

    def get_access_token(self) -> AccessToken:
        """Exchange a signed JWT for an OAuth2 access token.

        Performs exactly one round trip to the key's token endpoint.

        Returns:
            AccessToken with token string and expiry.

        Raises:
            CredentialError: On network or authorization failure.
        """
        credentials = self._credentials.with_always_use_jwt_access(False)
        try:
            credentials.refresh(Request())
        except google.auth.exceptions.GoogleAuthError as e:
            raise CredentialError(
                f"Failed to obtain access token with scope {self.scopes}: {e}"
            ) from e

        return AccessToken(token=credentials.token, expiry=credentials.expiry)

    def get_self_signed_token(self) -> AccessToken:
        """Create a self-signed JWT access token carrying the scopes as a claim.

        Google APIs accept these directly, no token endpoint is contacted.

        Raises:
            CredentialError: If the JWT cannot be signed.
        """
        credentials = self._credentials.with_always_use_jwt_access(True)
        try:
            credentials.refresh(Request())
        except (google.auth.exceptions.GoogleAuthError, ValueError) as e:
            raise CredentialError(
                f"Failed to obtain self-signed JWT for scope {self.scopes}: {e}"
            ) from e

        return AccessToken(token=credentials.token, expiry=credentials.expiry)

    def build_service(self, service_name: str = "sheets", version: str = "v4"):
        """Build a Google API service with service account credentials.

        Args:
            service_name: Name of the service (e.g., 'sheets').
            version: API version (e.g., 'v4').

        Returns:
            Google API service object.
        """
        return build(service_name, version, credentials=self._credentials, cache_discovery=False)

    def get_info(self) -> dict:
        """Get information about the service account.

        Returns:
            Dictionary with service account details.
        """
        return {
            "type": "service_account",
            "email": self.client_email,
            "project_id": self.project_id,
            "scopes": self.scopes,
        }
