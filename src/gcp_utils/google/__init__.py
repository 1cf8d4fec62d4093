"""Google Cloud service account authentication utilities."""

from gcp_utils.google.exceptions import (
    CredentialError,
    CredentialsNotFoundError,
    GcpError,
)
from gcp_utils.google.scopes import DEFAULT_SCOPES, SCOPES
from gcp_utils.google.service_account import AccessToken, GoogleServiceAccount

__all__ = [
    "GoogleServiceAccount",
    "AccessToken",
    "SCOPES",
    "DEFAULT_SCOPES",
    "GcpError",
    "CredentialError",
    "CredentialsNotFoundError",
]
