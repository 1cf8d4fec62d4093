"""Pub/Sub exceptions."""

from __future__ import annotations

from gcp_utils.google.exceptions import GcpError


class PubsubError(GcpError):
    """Base exception for Pub/Sub errors."""


class PublishError(PubsubError):
    """Failed to serialize or publish a message."""


class ReceiveError(PubsubError):
    """Failed to pull messages from a subscription."""
