"""Google Cloud Pub/Sub publish and receive for JSON messages.

Usage:
    from gcp_utils.pubsub import PubsubClient

    client = PubsubClient.from_service_account(auth)
    message_id = client.publish(client.topic("orders"), {"order": 42})
    messages = client.receive(client.subscription("orders-worker"), max_messages=5)

Emulator:
    client = PubsubClient("project-id", emulator_host="localhost:8085")
"""

from gcp_utils.pubsub.client import PubsubClient, ReceivedMessage
from gcp_utils.pubsub.exceptions import PublishError, PubsubError, ReceiveError

__all__ = [
    "PubsubClient",
    "ReceivedMessage",
    "PubsubError",
    "PublishError",
    "ReceiveError",
]
