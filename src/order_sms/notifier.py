import json
from typing import Any, Dict, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .errors import QueueError
from .utils.logger import get_logger

logger = get_logger("notifier")

# SMS templates by lifecycle event
EVENT_TEMPLATES = {
    "order_created": lambda msg: (
        f"Hi {msg['name']}, your order {msg['order_id']} is confirmed, "
        f"track: {msg['link']}"
    ),
    "order_packed": lambda msg: (
        f"Hi {msg['name']}, your order {msg['order_id']} has been packed, "
        f"track: {msg['link']}"
    ),
    "order_shipped": lambda msg: (
        f"Hi {msg['name']}, your order {msg['order_id']} is now shipped, "
        f"track: {msg['link']}"
    ),
    "order_delivered": lambda msg: (
        f"Hi {msg['name']}, your order {msg['order_id']} has been delivered, thank you"
    ),
}

TEST_MESSAGE = "Test SMS from your order notification backend"


def build_body(event: str, msg: Dict[str, Any]) -> str:
    """
    Build the SMS body for a lifecycle event.
    """
    if event not in EVENT_TEMPLATES:
        raise ValueError(f"Unsupported event type: {event}")
    return EVENT_TEMPLATES[event](msg)


class Notifier:
    """
    Hands a composed SMS off for delivery.

    Without a queue the message goes straight to the gateway and the Twilio
    SID is returned; GatewayError propagates to the caller. With a queue the
    message is enqueued for the worker and the SQS message id is returned.
    """

    def __init__(self, sender, queue_url: Optional[str] = None, sqs=None, region_name: Optional[str] = None):
        self.sender = sender
        self.queue_url = queue_url
        self._sqs = sqs
        self.region_name = region_name

    @property
    def queued(self) -> bool:
        return bool(self.queue_url)

    @property
    def sqs(self):
        if self._sqs is None:
            self._sqs = boto3.client("sqs", region_name=self.region_name)
        return self._sqs

    def notify(self, event: str, order_id: str, phone: str, body: str) -> str:
        if not self.queued:
            sid = self.sender.send(phone, body)
            logger.info(
                "notify.sent",
                extra={"event": event, "order_id": order_id, "sid": sid},
            )
            return sid

        message = {
            "event": event,
            "order_id": order_id,
            "phone": phone,
            "body": body,
        }
        try:
            resp = self.sqs.send_message(
                QueueUrl=self.queue_url,
                MessageBody=json.dumps(message),
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(
                "notify.queue_error",
                extra={"error": str(e), "queue_url": self.queue_url, "order_id": order_id},
            )
            raise QueueError(str(e)) from e

        logger.info(
            "notify.enqueued",
            extra={
                "event": event,
                "order_id": order_id,
                "queue_url": self.queue_url,
                "message_id": resp["MessageId"],
            },
        )
        return resp["MessageId"]
