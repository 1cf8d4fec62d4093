"""OAuth2 scopes for the Google Cloud APIs used by gcp-utils."""

from __future__ import annotations

SCOPES = {
    "cloud_platform": "https://www.googleapis.com/auth/cloud-platform",
    "cloud_platform_readonly": "https://www.googleapis.com/auth/cloud-platform.read-only",
    "sheets": "https://www.googleapis.com/auth/spreadsheets",
    "sheets_readonly": "https://www.googleapis.com/auth/spreadsheets.readonly",
    "pubsub": "https://www.googleapis.com/auth/pubsub",
    "monitoring": "https://www.googleapis.com/auth/monitoring",
    "monitoring_read": "https://www.googleapis.com/auth/monitoring.read",
}

DEFAULT_SCOPES = [SCOPES["cloud_platform"]]


def resolve_scopes(scopes: list[str] | None) -> list[str]:
    """Resolve scope names to full URLs.

    Args:
        scopes: Scope names (e.g., ["sheets", "pubsub"]) or full URLs.
               If None or empty, defaults to cloud-platform.

    Returns:
        List of scope URLs in the order given.

    Raises:
        ValueError: If a scope name is unknown.
    """
    if not scopes:
        return list(DEFAULT_SCOPES)

    resolved = []
    for scope in scopes:
        if scope.startswith("https://"):
            resolved.append(scope)
        elif scope in SCOPES:
            resolved.append(SCOPES[scope])
        else:
            raise ValueError(
                f"Unknown scope: {scope}. Use full URL or one of: {list(SCOPES.keys())}"
            )
    return resolved
