from dataclasses import dataclass
from typing import Optional

from .config import Settings, load_settings
from .notifier import Notifier
from .store import OrderStore, build_store
from .utils.logger import get_logger
from .utils.twilio_client import SmsSender

logger = get_logger("context")


@dataclass
class AppContext:
    """Everything a request handler needs, built once per process."""

    settings: Settings
    store: OrderStore
    notifier: Notifier

    @property
    def sender(self) -> SmsSender:
        return self.notifier.sender


def build_context(settings: Optional[Settings] = None) -> AppContext:
    settings = settings or load_settings()
    store = build_store(settings)
    sender = SmsSender.from_settings(settings)
    notifier = Notifier(
        sender,
        queue_url=settings.notify_queue_url,
        region_name=settings.aws_region,
    )
    logger.info(
        "context.ready",
        extra={
            "order_store": settings.order_store,
            "queued_notifications": notifier.queued,
            "public_base_url": settings.public_base_url,
        },
    )
    return AppContext(settings=settings, store=store, notifier=notifier)
