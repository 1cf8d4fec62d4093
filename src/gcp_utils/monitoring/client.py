"""Google Cloud Monitoring query client implementation."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

import google.auth.exceptions
from google.api_core.exceptions import GoogleAPIError
from google.cloud import monitoring_v3

from gcp_utils.google import GoogleServiceAccount
from gcp_utils.monitoring.exceptions import QueryError

logger = logging.getLogger(__name__)


class MonitoringClient:
    """Run Monitoring Query Language queries against a project.

    A query client is opened for each query and closed when its results
    have been drained.

    Usage:
        client = MonitoringClient.from_service_account(auth)
        series = client.query_time_series(
            "my-project",
            "fetch k8s_container | metric 'kubernetes.io/container/cpu/limit_utilization' | every 1m",
        )
    """

    def __init__(
        self,
        credentials: Any,
        client_factory: Callable[..., Any] = monitoring_v3.QueryServiceClient,
    ) -> None:
        """Initialize Monitoring client.

        Args:
            credentials: google-auth credentials.
            client_factory: Builds the underlying query client from credentials.
        """
        self._credentials = credentials
        self._client_factory = client_factory

    @classmethod
    def from_service_account(cls, auth: GoogleServiceAccount) -> MonitoringClient:
        return cls(auth.credentials)

    def query_time_series(self, project_id: str, query: str) -> list[dict[str, Any]]:
        """Run a query and collect every page of results.

        Args:
            project_id: Project to query.
            query: Query in Monitoring Query Language, passed through verbatim.

        Returns:
            One dict per ``TimeSeriesData`` result; empty if nothing matched.

        Raises:
            QueryError: If the client cannot be created or the query fails.
        """
        request = monitoring_v3.QueryTimeSeriesRequest(
            name=f"projects/{project_id}",
            query=query,
        )

        try:
            client = self._client_factory(credentials=self._credentials)
        except (GoogleAPIError, google.auth.exceptions.GoogleAuthError) as e:
            raise QueryError(f"Could not initialize query client: {e}") from e

        try:
            results = [
                monitoring_v3.TimeSeriesData.to_dict(item)
                for item in client.query_time_series(request=request)
            ]
        except (GoogleAPIError, google.auth.exceptions.GoogleAuthError) as e:
            raise QueryError(f"Could not list time series for project {project_id}: {e}") from e
        finally:
            client.transport.close()

        logger.info(f"Query returned {len(results)} time series for project {project_id}")
        return results
