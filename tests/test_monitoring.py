"""Tests for the Monitoring query client."""

from unittest.mock import MagicMock

import google.auth.exceptions
import pytest
from google.api_core.exceptions import PermissionDenied
from google.cloud import monitoring_v3

from gcp_utils.monitoring import MonitoringClient, QueryError

QUERY = "fetch k8s_container | metric 'kubernetes.io/container/cpu/limit_utilization' | every 1m"


@pytest.fixture
def query_client():
    client = MagicMock()
    client.query_time_series.return_value = [
        monitoring_v3.TimeSeriesData(
            label_values=[monitoring_v3.LabelValue(string_value="pod-a")]
        ),
        monitoring_v3.TimeSeriesData(
            label_values=[monitoring_v3.LabelValue(string_value="pod-b")]
        ),
    ]
    return client


@pytest.fixture
def factory(query_client):
    return MagicMock(return_value=query_client)


class TestQueryTimeSeries:
    """Test time series queries."""

    def test_query(self, factory, query_client):
        """Should return every result as a dict."""
        credentials = object()
        client = MonitoringClient(credentials, client_factory=factory)

        series = client.query_time_series("my-project", QUERY)

        assert [s["label_values"][0]["string_value"] for s in series] == ["pod-a", "pod-b"]
        factory.assert_called_once_with(credentials=credentials)

    def test_request(self, factory, query_client):
        """Should query the project resource with the query passed through."""
        MonitoringClient(object(), client_factory=factory).query_time_series("my-project", QUERY)

        request = query_client.query_time_series.call_args.kwargs["request"]
        assert request.name == "projects/my-project"
        assert request.query == QUERY

    def test_client_closed(self, factory, query_client):
        """Should close the query client after draining results."""
        MonitoringClient(object(), client_factory=factory).query_time_series("my-project", QUERY)
        query_client.transport.close.assert_called_once()

    def test_empty(self, factory, query_client):
        """Should return an empty list when nothing matches."""
        query_client.query_time_series.return_value = []
        assert MonitoringClient(object(), client_factory=factory).query_time_series("p", QUERY) == []

    def test_query_failure(self, factory, query_client):
        """Should raise QueryError and still close the client."""
        query_client.query_time_series.side_effect = PermissionDenied("monitoring.timeSeries.list")
        client = MonitoringClient(object(), client_factory=factory)

        with pytest.raises(QueryError, match="project my-project"):
            client.query_time_series("my-project", QUERY)

        query_client.transport.close.assert_called_once()

    def test_client_creation_failure(self):
        """Should raise QueryError when the client cannot be built."""
        factory = MagicMock(
            side_effect=google.auth.exceptions.DefaultCredentialsError("no credentials")
        )
        with pytest.raises(QueryError, match="initialize query client"):
            MonitoringClient(object(), client_factory=factory).query_time_series("p", QUERY)
