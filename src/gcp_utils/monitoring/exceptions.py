"""Cloud Monitoring exceptions."""

from __future__ import annotations

from gcp_utils.google.exceptions import GcpError


class QueryError(GcpError):
    """A time series query failed."""
