"""Uniform access to Google Cloud services for scripts.

A ``Gcp`` object owns one service account credential provider and one
cached client per service, built on first use:

    >>> gcp = Gcp(GcpConfig(key="credentials.json", scopes=["sheets", "pubsub"]))
    >>> user_id = gcp.spreadsheet_get_or_create(
    ...     spreadsheet_id, "users", {"name": "bob"}, {"name": "bob", "status": "new"}
    ... )
    >>> gcp.pubsub_publish(gcp.pubsub_topic("users"), {"id": user_id})
    >>> gcp.close()

Clients keep the scopes they were built with; changing scopes afterwards
only affects tokens requested through ``get_oauth2_access_token``.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Mapping
from enum import Enum
from pathlib import Path
from typing import Any

from gcp_utils.config import GcpConfig
from gcp_utils.google import AccessToken, CredentialError, GoogleServiceAccount
from gcp_utils.google.service_account import load_key_info
from gcp_utils.monitoring import MonitoringClient
from gcp_utils.pubsub import PubsubClient, ReceivedMessage
from gcp_utils.sheets import RecordStore, SheetsClient
from gcp_utils.sheets.rows import CellValue, Record

logger = logging.getLogger(__name__)


class ServiceKind(str, Enum):
    """Remote services with a cached client."""

    PUBSUB = "pubsub"
    SHEETS = "sheets"
    MONITORING = "monitoring"


class ClientCache:
    """Holds at most one client per service, created on first use.

    Creation is serialized by a lock, so concurrent first use builds a
    single client. A factory that raises leaves nothing cached.
    """

    def __init__(self, factories: Mapping[ServiceKind, Callable[[], Any]]) -> None:
        self._factories = dict(factories)
        self._clients: dict[ServiceKind, Any] = {}
        self._lock = threading.Lock()

    def __contains__(self, kind: ServiceKind) -> bool:
        return kind in self._clients

    def get(self, kind: ServiceKind) -> Any:
        """Get the client for a service, building it if needed."""
        client = self._clients.get(kind)
        if client is not None:
            return client

        with self._lock:
            client = self._clients.get(kind)
            if client is None:
                factory = self._factories.get(kind)
                if factory is None:
                    raise ValueError(f"No client factory registered for {kind.value}")
                client = factory()
                self._clients[kind] = client
                logger.info(f"Initialized {kind.value} client")
        return client

    def clear(self) -> None:
        """Drop all cached clients, closing those that support it."""
        with self._lock:
            clients = list(self._clients.values())
            self._clients.clear()

        for client in clients:
            close = getattr(client, "close", None)
            if callable(close):
                close()


class Gcp:
    """Google Cloud services behind one object.

    Provides OAuth2 tokens, Sheets record operations, Pub/Sub messaging and
    Monitoring queries, all authenticated with one service account.

    Usage:
        with Gcp.from_env() as gcp:
            token = gcp.get_oauth2_access_token()
            row = gcp.spreadsheet_get_row_by_filters(spreadsheet_id, "users", {"name": "alice"})
            series = gcp.query_time_series("my-project", query)

    Note:
        Sheets operations are not transactional. Concurrent writers to the
        same sheet can allocate duplicate ids.
    """

    def __init__(self, config: GcpConfig | None = None) -> None:
        """Initialize from explicit configuration.

        Args:
            config: Key, scopes, project and emulator settings.

        Raises:
            CredentialError: If no key is configured and no Pub/Sub emulator is
                set, or if the key is invalid.
        """
        self.config = config or GcpConfig()

        self._auth: GoogleServiceAccount | None = None
        if self.config.key:
            self._auth = GoogleServiceAccount(
                load_key_info(self.config.key), scopes=self.config.scopes
            )
        elif not self.config.emulator_host:
            raise CredentialError(
                "No service account key configured. "
                "Set GOOGLE_SERVICE_ACCOUNT_KEY or pass GcpConfig(key=...)."
            )

        self.project_id = self.config.project_id or (self._auth.project_id if self._auth else None)

        self._cache = ClientCache(
            {
                ServiceKind.SHEETS: self._build_sheets,
                ServiceKind.PUBSUB: self._build_pubsub,
                ServiceKind.MONITORING: self._build_monitoring,
            }
        )

    @classmethod
    def from_env(cls, env_file: str | Path | None = None) -> Gcp:
        """Create from environment variables (see ``gcp_utils.config``)."""
        return cls(GcpConfig.from_env(env_file))

    def __enter__(self) -> Gcp:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        """Release cached clients. They are rebuilt if used again."""
        self._cache.clear()

    @property
    def auth(self) -> GoogleServiceAccount:
        """The service account credential provider."""
        if self._auth is None:
            raise CredentialError("No service account key configured")
        return self._auth

    @property
    def cache(self) -> ClientCache:
        return self._cache

    # =========================================================================
    # Client factories
    # =========================================================================

    def _build_sheets(self) -> SheetsClient:
        return SheetsClient.from_service_account(self.auth)

    def _build_pubsub(self) -> PubsubClient:
        if self.config.emulator_host:
            return PubsubClient(self.project_id, emulator_host=self.config.emulator_host)
        return PubsubClient.from_service_account(self.auth, project_id=self.project_id)

    def _build_monitoring(self) -> MonitoringClient:
        return MonitoringClient.from_service_account(self.auth)

    # =========================================================================
    # OAuth2
    # =========================================================================

    def get_oauth2_access_token(self, scopes: list[str] | None = None) -> AccessToken:
        """Get an OAuth2 access token.

        Args:
            scopes: Scopes for this token. Defaults to the configured scopes.
        """
        auth = self.auth.with_scopes(scopes) if scopes else self.auth
        return auth.get_access_token()

    def get_oauth2_id_token(self, scopes: list[str] | None = None) -> AccessToken:
        """Get a self-signed JWT access token, without contacting the token endpoint."""
        auth = self.auth.with_scopes(scopes) if scopes else self.auth
        return auth.get_self_signed_token()

    # =========================================================================
    # Sheets
    # =========================================================================

    @property
    def sheets(self) -> SheetsClient:
        return self._cache.get(ServiceKind.SHEETS)

    @property
    def records(self) -> RecordStore:
        return RecordStore(self.sheets)

    def spreadsheet_get(
        self, spreadsheet_id: str, sheet_name: str, cell_range: str
    ) -> list[list[CellValue]]:
        return self.sheets.get(spreadsheet_id, sheet_name, cell_range)

    def spreadsheet_append(
        self, spreadsheet_id: str, sheet_name: str, values: list[CellValue]
    ) -> str:
        return self.sheets.append(spreadsheet_id, sheet_name, values)

    def spreadsheet_update(
        self,
        spreadsheet_id: str,
        sheet_name: str,
        cell_range: str,
        values: list[CellValue],
    ) -> int:
        return self.sheets.update(spreadsheet_id, sheet_name, cell_range, values)

    def spreadsheet_get_records(self, spreadsheet_id: str, sheet_name: str) -> list[Record]:
        return self.records.read_records(spreadsheet_id, sheet_name)

    def spreadsheet_get_row_by_filters(
        self, spreadsheet_id: str, sheet_name: str, filters: Mapping[str, str]
    ) -> Record | None:
        return self.records.get_by_filter(spreadsheet_id, sheet_name, filters)

    def spreadsheet_append_record(
        self, spreadsheet_id: str, sheet_name: str, record: Mapping[str, CellValue]
    ) -> str:
        return self.records.append(spreadsheet_id, sheet_name, record)

    def spreadsheet_append_with_unique_id(
        self, spreadsheet_id: str, sheet_name: str, record: Mapping[str, CellValue]
    ) -> int:
        return self.records.append_with_unique_id(spreadsheet_id, sheet_name, record)

    def spreadsheet_get_or_create(
        self,
        spreadsheet_id: str,
        sheet_name: str,
        filters: Mapping[str, str],
        record: Mapping[str, CellValue],
    ) -> int:
        return self.records.get_or_create(spreadsheet_id, sheet_name, filters, record)

    # =========================================================================
    # Pub/Sub
    # =========================================================================

    @property
    def pubsub(self) -> PubsubClient:
        return self._cache.get(ServiceKind.PUBSUB)

    def pubsub_topic(self, name: str) -> str:
        return self.pubsub.topic(name)

    def pubsub_subscription(self, name: str) -> str:
        return self.pubsub.subscription(name)

    def pubsub_publish(self, topic: str, message: dict[str, Any]) -> str:
        return self.pubsub.publish(topic, message)

    def pubsub_receive(
        self, subscription: str, max_messages: int = 10, timeout: float = 10.0
    ) -> list[ReceivedMessage]:
        return self.pubsub.receive(subscription, max_messages=max_messages, timeout=timeout)

    # =========================================================================
    # Monitoring
    # =========================================================================

    @property
    def monitoring(self) -> MonitoringClient:
        return self._cache.get(ServiceKind.MONITORING)

    def query_time_series(self, project_id: str, query: str) -> list[dict[str, Any]]:
        return self.monitoring.query_time_series(project_id, query)
