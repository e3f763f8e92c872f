"""
Commerce-platform webhook handlers.

Each handler takes the decoded JSON body and the AppContext, updates the
order store, sends (or queues) the matching SMS and returns an API Gateway
style response dict. Missing phone numbers and unknown orders are answered
with 200 and a short explanation; notification and storage failures are
logged and answered with 500.
"""

from typing import Any, Dict

from .errors import NotificationError, StoreError
from .models import OrderRecord, Stage, normalize_order, stage_order_id
from .notifier import build_body
from .responses import text_response
from .utils.logger import get_logger

logger = get_logger("webhooks")

NO_PHONE = "No phone found"
NOT_FOUND = "Order not found"
SERVER_ERROR = "Server error"

# event name → stage the order moves to
STAGE_EVENTS = {
    "order_packed": Stage.PACKED,
    "order_shipped": Stage.SHIPPED,
    "order_delivered": Stage.DELIVERED,
}


def _sent_text(ctx) -> str:
    return "SMS queued" if ctx.notifier.queued else "SMS sent"


def order_created(payload: Dict[str, Any], ctx) -> dict:
    try:
        order = normalize_order(payload)
        logger.info(
            "webhook.order_created.received",
            extra={"order_id": order.order_id, "shape": order.shape},
        )

        if not order.phone:
            logger.warning(
                "webhook.order_created.no_phone",
                extra={"order_id": order.order_id},
            )
            return text_response(200, NO_PHONE)

        record = OrderRecord(name=order.name, phone=order.phone, status=Stage.CONFIRMED.value)
        ctx.store.upsert(order.order_id, record)

        body = build_body(
            "order_created",
            {
                "name": record.name,
                "order_id": order.order_id,
                "link": ctx.settings.tracking_link(order.order_id),
            },
        )
        ctx.notifier.notify("order_created", order.order_id, record.phone, body)
        return text_response(200, _sent_text(ctx))

    except (NotificationError, StoreError) as e:
        logger.error("webhook.order_created.error", extra={"error": str(e)})
        return text_response(500, SERVER_ERROR)
    except Exception:
        logger.exception("webhook.order_created.unexpected_error")
        return text_response(500, SERVER_ERROR)


def _advance(event: str, order_id, ctx, fallback_phone=None, template=None) -> dict:
    """
    Move a stored order to the stage for ``event`` and text the customer.

    ``template`` names the message to send when it differs from ``event``;
    ``fallback_phone`` is used when the stored record has no phone.
    """
    template = template or event
    stage = STAGE_EVENTS[template]

    if order_id is None:
        logger.warning(f"webhook.{event}.missing_order_id")
        return text_response(200, NOT_FOUND)

    previous = ctx.store.get(order_id)
    if previous is None:
        logger.warning(f"webhook.{event}.unknown_order", extra={"order_id": order_id})
        return text_response(200, NOT_FOUND)

    if Stage.index_of(previous.status) > Stage.index_of(stage.value):
        # Applied anyway; the store does not enforce forward-only moves.
        logger.warning(
            f"webhook.{event}.out_of_order",
            extra={"order_id": order_id, "from": previous.status, "to": stage.value},
        )

    record = ctx.store.set_status(order_id, stage.value)
    if record is None:
        return text_response(200, NOT_FOUND)

    phone = record.phone or fallback_phone
    if not phone:
        logger.warning(f"webhook.{event}.no_phone", extra={"order_id": order_id})
        return text_response(200, NO_PHONE)

    body = build_body(
        template,
        {
            "name": record.name,
            "order_id": order_id,
            "link": ctx.settings.tracking_link(order_id),
        },
    )
    ctx.notifier.notify(template, order_id, phone, body)
    return text_response(200, _sent_text(ctx))


def stage_update(event: str, payload: Dict[str, Any], ctx) -> dict:
    """Shared body of the packed / shipped / delivered webhooks."""
    try:
        order_id = stage_order_id(payload)
        logger.info(f"webhook.{event}.received", extra={"order_id": order_id})
        return _advance(event, order_id, ctx)

    except (NotificationError, StoreError) as e:
        logger.error(f"webhook.{event}.error", extra={"error": str(e)})
        return text_response(500, SERVER_ERROR)
    except Exception:
        logger.exception(f"webhook.{event}.unexpected_error")
        return text_response(500, SERVER_ERROR)


def order_packed(payload, ctx):
    return stage_update("order_packed", payload, ctx)


def order_shipped(payload, ctx):
    return stage_update("order_shipped", payload, ctx)


def order_delivered(payload, ctx):
    return stage_update("order_delivered", payload, ctx)


def order_fulfilled(payload: Dict[str, Any], ctx) -> dict:
    """
    Shopify fulfillment webhook: the order object itself or one nested under
    ``order``. Resolved with the same id precedence as order creation, then
    treated as delivery.
    """
    try:
        order = normalize_order(payload)
        logger.info(
            "webhook.order_fulfilled.received",
            extra={"order_id": order.order_id, "shape": order.shape},
        )
        return _advance(
            "order_fulfilled",
            order.order_id,
            ctx,
            fallback_phone=order.phone,
            template="order_delivered",
        )

    except (NotificationError, StoreError) as e:
        logger.error("webhook.order_fulfilled.error", extra={"error": str(e)})
        return text_response(500, SERVER_ERROR)
    except Exception:
        logger.exception("webhook.order_fulfilled.unexpected_error")
        return text_response(500, SERVER_ERROR)
