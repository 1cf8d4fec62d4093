"""Google Cloud service access for scripts: tokens, Sheets records, Pub/Sub and Monitoring."""

from gcp_utils.config import GcpConfig
from gcp_utils.gcp import ClientCache, Gcp, ServiceKind
from gcp_utils.google.exceptions import GcpError

__all__ = ["Gcp", "GcpConfig", "ClientCache", "ServiceKind", "GcpError"]
