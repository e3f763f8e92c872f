import pytest

from order_sms.config import Settings
from order_sms.context import AppContext
from order_sms.notifier import Notifier
from order_sms.store import MemoryOrderStore
from order_sms.utils.twilio_client import SmsSender


class StubTwilioMsg:
    def __init__(self, sid):
        self.sid = sid


class StubTwilioClient:
    """Stands in for twilio.rest.Client; records every messages.create call."""

    def __init__(self, error=None):
        self.sent = []
        self.error = error
        self.messages = self

    def create(self, from_, to, body):
        if self.error is not None:
            raise self.error
        self.sent.append({"from": from_, "to": to, "body": body})
        return StubTwilioMsg(f"SM{len(self.sent):032d}")


class StubSQS:
    def __init__(self, error=None):
        self.sent = []
        self.error = error

    def send_message(self, QueueUrl, MessageBody):
        if self.error is not None:
            raise self.error
        self.sent.append({"QueueUrl": QueueUrl, "MessageBody": MessageBody})
        return {"MessageId": f"msg-{len(self.sent)}"}


def make_settings(**overrides) -> Settings:
    values = dict(
        twilio_sid="ACxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx",
        twilio_auth_token="tok",
        twilio_phone="+1 555 000 1111",
        public_base_url="https://orders.example.com",
        order_store="memory",
    )
    values.update(overrides)
    return Settings(**values)


def make_ctx(client=None, store=None, sqs=None, **settings_overrides) -> AppContext:
    settings = make_settings(**settings_overrides)
    sender = SmsSender(client or StubTwilioClient(), settings.twilio_phone)
    notifier = Notifier(sender, queue_url=settings.notify_queue_url, sqs=sqs)
    return AppContext(
        settings=settings,
        store=store if store is not None else MemoryOrderStore(),
        notifier=notifier,
    )


@pytest.fixture
def twilio():
    return StubTwilioClient()


@pytest.fixture
def ctx(twilio):
    return make_ctx(client=twilio)
