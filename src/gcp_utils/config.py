"""Configuration for gcp-utils.

Everything a ``Gcp`` object needs is passed in a ``GcpConfig``:
    key             - service account key (dict, literal JSON, or path to a JSON file)
    scopes          - OAuth2 scope names or URLs (default: cloud-platform)
    project_id      - project for Pub/Sub (default: the key's project_id)
    emulator_host   - host:port of a Pub/Sub emulator

``GcpConfig.from_env()`` builds one from the environment, optionally after
loading a .env file:
    GOOGLE_SERVICE_ACCOUNT_KEY  - literal JSON key or path to a key file
    GCP_SCOPES                  - comma-separated scopes
    GCP_PROJECT_ID              - project ID
    PUBSUB_EMULATOR_HOST        - emulator host:port
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

KEY_ENV = "GOOGLE_SERVICE_ACCOUNT_KEY"
SCOPES_ENV = "GCP_SCOPES"
PROJECT_ENV = "GCP_PROJECT_ID"
EMULATOR_ENV = "PUBSUB_EMULATOR_HOST"


def load_env_file(env_path: str | Path) -> dict[str, str]:
    """Load environment variables from a file.

    Args:
        env_path: Path to .env file.

    Returns:
        Dictionary of loaded variables.
    """
    env_path = Path(env_path)
    loaded = {}
    if not env_path.exists():
        return loaded

    with open(env_path) as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" not in line:
                continue

            key, _, value = line.partition("=")
            key = key.strip()
            value = value.strip()

            # Remove surrounding quotes
            if (value.startswith('"') and value.endswith('"')) or (
                value.startswith("'") and value.endswith("'")
            ):
                value = value[1:-1]

            # Only set if not already in environment (env vars take precedence)
            if key and key not in os.environ:
                os.environ[key] = value
                loaded[key] = value

    return loaded


def parse_scopes(scope_str: str | None) -> list[str]:
    """Parse comma-separated scopes."""
    if not scope_str:
        return []
    return [s.strip() for s in scope_str.split(",") if s.strip()]


@dataclass
class GcpConfig:
    """Settings for a ``Gcp`` object."""

    key: dict[str, Any] | str | Path | None = None
    scopes: list[str] = field(default_factory=list)
    project_id: str | None = None
    emulator_host: str | None = None

    @classmethod
    def from_env(cls, env_file: str | Path | None = None) -> GcpConfig:
        """Build configuration from environment variables.

        Args:
            env_file: Optional .env file loaded first. Variables already set
                in the environment take precedence over the file.
        """
        if env_file is not None:
            load_env_file(env_file)

        return cls(
            key=os.environ.get(KEY_ENV) or None,
            scopes=parse_scopes(os.environ.get(SCOPES_ENV)),
            project_id=os.environ.get(PROJECT_ENV) or None,
            emulator_host=os.environ.get(EMULATOR_ENV) or None,
        )


def get_config_status(config: GcpConfig) -> dict:
    """Get status of the configured settings.

    Returns:
        Dictionary with configuration status. Key material is never included.
    """
    if isinstance(config.key, dict):
        key_source = "dict"
    elif isinstance(config.key, str) and config.key.lstrip().startswith("{"):
        key_source = "json"
    elif config.key:
        key_source = str(config.key)
    else:
        key_source = None

    return {
        "key": key_source,
        "scopes": config.scopes,
        "project_id": config.project_id,
        "emulator_host": config.emulator_host,
    }
