"""Google Cloud Pub/Sub client implementation."""

from __future__ import annotations

import concurrent.futures
import json
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

import grpc
from google.api_core.exceptions import GoogleAPIError
from google.cloud import pubsub_v1
from google.pubsub_v1.services.publisher.transports import PublisherGrpcTransport
from google.pubsub_v1.services.subscriber.transports import SubscriberGrpcTransport

from gcp_utils.google import CredentialError, GoogleServiceAccount
from gcp_utils.pubsub.exceptions import PublishError, ReceiveError

logger = logging.getLogger(__name__)


@dataclass
class ReceivedMessage:
    """A message pulled from a subscription.

    ``data`` holds the decoded JSON object. If the payload could not be
    decoded, ``data`` is None and ``error`` says why.
    """

    message_id: str
    data: dict[str, Any] | None
    attributes: dict[str, str] = field(default_factory=dict)
    publish_time: datetime | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        return {
            "message_id": self.message_id,
            "data": self.data,
            "attributes": self.attributes,
            "publish_time": self.publish_time.isoformat() if self.publish_time else None,
            "error": self.error,
        }


class PubsubClient:
    """Google Cloud Pub/Sub client for JSON messages.

    Usage:
        client = PubsubClient.from_service_account(auth)

        # Publish
        topic = client.topic("orders")
        message_id = client.publish(topic, {"order": 42})

        # Receive up to 10 messages, waiting at most 5 seconds
        subscription = client.subscription("orders-worker")
        for message in client.receive(subscription, max_messages=10, timeout=5):
            print(message.data)

    Emulator:
        Pass ``emulator_host="localhost:8085"`` to talk to the Pub/Sub emulator.
        The emulator does not authenticate, so no credentials are needed.
    """

    def __init__(
        self,
        project_id: str,
        credentials: Any = None,
        emulator_host: str | None = None,
        publisher: Any = None,
        subscriber: Any = None,
    ) -> None:
        """Initialize Pub/Sub client.

        Args:
            project_id: Project owning the topics and subscriptions.
            credentials: google-auth credentials. Not needed with an emulator.
            emulator_host: host:port of a Pub/Sub emulator.
            publisher: Publisher client to use instead of building one.
            subscriber: Subscriber client to use instead of building one.

        Raises:
            CredentialError: If neither credentials nor an emulator host are given.
        """
        if not project_id:
            raise ValueError("project_id is required for Pub/Sub")

        self.project_id = project_id
        self.emulator_host = emulator_host

        if emulator_host:
            # The emulator speaks plaintext gRPC and does not authenticate
            self._publisher = publisher or pubsub_v1.PublisherClient(
                transport=PublisherGrpcTransport(
                    channel=grpc.insecure_channel(emulator_host), host=emulator_host
                )
            )
            self._subscriber = subscriber or pubsub_v1.SubscriberClient(
                transport=SubscriberGrpcTransport(
                    channel=grpc.insecure_channel(emulator_host), host=emulator_host
                )
            )
            logger.info(f"Using Pub/Sub emulator at {emulator_host}")
        else:
            if credentials is None and (publisher is None or subscriber is None):
                raise CredentialError("Pub/Sub requires credentials or an emulator host")
            self._publisher = publisher or pubsub_v1.PublisherClient(credentials=credentials)
            self._subscriber = subscriber or pubsub_v1.SubscriberClient(credentials=credentials)

        logger.info(f"Pub/Sub client initialized for project {project_id}")

    @classmethod
    def from_service_account(
        cls,
        auth: GoogleServiceAccount,
        project_id: str | None = None,
    ) -> PubsubClient:
        """Create a client from service account credentials.

        Args:
            auth: Service account credential provider.
            project_id: Project ID. Defaults to the key's project.
        """
        return cls(project_id or auth.project_id, credentials=auth.credentials)

    # =========================================================================
    # Handles
    # =========================================================================

    def topic(self, name: str) -> str:
        """Get the resource path of a topic (no existence check)."""
        return self._publisher.topic_path(self.project_id, name)

    def subscription(self, name: str) -> str:
        """Get the resource path of a subscription (no existence check)."""
        return self._subscriber.subscription_path(self.project_id, name)

    # =========================================================================
    # Messaging
    # =========================================================================

    def publish(
        self,
        topic: str,
        message: dict[str, Any],
        timeout: float | None = None,
    ) -> str:
        """Publish a JSON message and wait for its server-assigned id.

        Args:
            topic: Topic path from ``topic()``.
            message: JSON-serializable mapping.
            timeout: Seconds to wait for the publish to be acknowledged.

        Returns:
            Message ID.

        Raises:
            PublishError: If the message cannot be serialized or published.
        """
        try:
            data = json.dumps(message).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise PublishError(f"Failed to marshal data to JSON: {e}") from e

        try:
            future = self._publisher.publish(topic, data)
            message_id = future.result(timeout=timeout)
        except (GoogleAPIError, concurrent.futures.TimeoutError, RuntimeError) as e:
            raise PublishError(f"Failed to publish to {topic}: {e}") from e

        logger.debug(f"Published message {message_id} to {topic}")
        return message_id

    def _decode(self, message: Any) -> ReceivedMessage:
        """Decode a pulled message, recording failures on the message itself."""
        received = ReceivedMessage(
            message_id=message.message_id,
            data=None,
            attributes=dict(message.attributes or {}),
            publish_time=getattr(message, "publish_time", None),
        )
        try:
            data = json.loads(message.data)
        except (TypeError, ValueError) as e:
            received.error = f"Unable to unmarshal message data: {e}"
        else:
            if isinstance(data, dict):
                received.data = data
            else:
                received.error = f"Message data is not a JSON object: {type(data).__name__}"

        if received.error:
            logger.warning(f"Message {received.message_id}: {received.error}")
        return received

    def receive(
        self,
        subscription: str,
        max_messages: int = 10,
        timeout: float = 10.0,
    ) -> list[ReceivedMessage]:
        """Pull messages from a subscription, acknowledging each one.

        Blocks until ``max_messages`` messages have been received or
        ``timeout`` seconds have passed, whichever comes first. A message
        whose payload cannot be decoded is still acknowledged and returned
        with ``error`` set.

        Args:
            subscription: Subscription path from ``subscription()``.
            max_messages: Maximum outstanding and returned messages.
            timeout: Seconds to wait, also the maximum lease extension.

        Returns:
            Messages in the order they arrived.

        Raises:
            ReceiveError: If the streaming pull fails.
        """
        if max_messages < 1:
            raise ValueError(f"max_messages must be >= 1, got {max_messages}")

        received: list[ReceivedMessage] = []
        lock = threading.Lock()
        done = threading.Event()

        def callback(message: Any) -> None:
            with lock:
                if done.is_set():
                    message.nack()
                    return
                received.append(self._decode(message))
                message.ack()
                if len(received) >= max_messages:
                    done.set()

        flow_control = pubsub_v1.types.FlowControl(
            max_messages=max_messages,
            max_lease_duration=timeout,
        )

        try:
            streaming_pull = self._subscriber.subscribe(
                subscription, callback=callback, flow_control=flow_control
            )
        except GoogleAPIError as e:
            raise ReceiveError(f"Unable to receive data from subscription {subscription}: {e}") from e

        # Wake up early if the stream dies
        streaming_pull.add_done_callback(lambda _: done.set())
        done.wait(timeout)

        streaming_pull.cancel()
        try:
            streaming_pull.result()
        except concurrent.futures.CancelledError:
            pass  # expected after cancel()
        except GoogleAPIError as e:
            raise ReceiveError(
                f"Unable to receive data from subscription {subscription}: {e}"
            ) from e

        with lock:
            done.set()
            messages = list(received)

        logger.info(f"Received {len(messages)} messages from {subscription}")
        return messages

    def close(self) -> None:
        """Stop the publisher and close the subscriber."""
        self._publisher.stop()
        self._subscriber.close()
