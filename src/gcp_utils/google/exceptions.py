"""Google Cloud credential exceptions."""


class GcpError(Exception):
    """Base exception for all gcp-utils errors."""

    pass


class CredentialError(GcpError):
    """Raised when key material is invalid or a token cannot be obtained."""

    pass


class CredentialsNotFoundError(CredentialError):
    """Raised when the service account key file is not found."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(
            f"Service account key not found at {path}. "
            "Please download a key from Google Cloud Console."
        )
