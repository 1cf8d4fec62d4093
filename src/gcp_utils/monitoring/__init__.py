"""Google Cloud Monitoring time series queries.

Usage:
    from gcp_utils.monitoring import MonitoringClient

    client = MonitoringClient.from_service_account(auth)
    series = client.query_time_series("my-project", "fetch gce_instance | ...")
"""

from gcp_utils.monitoring.client import MonitoringClient
from gcp_utils.monitoring.exceptions import QueryError

__all__ = ["MonitoringClient", "QueryError"]
