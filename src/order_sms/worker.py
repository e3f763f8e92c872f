import json

from .config import load_settings
from .errors import GatewayError
from .utils.logger import get_logger
from .utils.twilio_client import SmsSender

logger = get_logger("worker")

_sender = None


def _get_sender() -> SmsSender:
    """Twilio sender, built once per container."""
    global _sender
    if _sender is None:
        _sender = SmsSender.from_settings(load_settings())
    return _sender


def process_records(records, sender) -> dict:
    processed = failed = 0

    for rec in records:
        raw_body = rec.get("body") or ""
        message_id = rec.get("messageId", "<no-id>")

        # 1) Parse JSON from SQS
        try:
            msg = json.loads(raw_body)
        except json.JSONDecodeError:
            logger.warning(
                "worker.payload_invalid_json: preview=%s message_id=%s",
                raw_body[:200],
                message_id,
            )
            failed += 1
            continue

        # 2) Phone and body are composed by the webhook; nothing to template here
        phone = msg.get("phone") if isinstance(msg, dict) else None
        body = msg.get("body") if isinstance(msg, dict) else None
        if not phone or not body:
            logger.warning(
                "worker.missing_fields: msg=%s message_id=%s",
                msg,
                message_id,
            )
            failed += 1
            continue

        # 3) Send via Twilio; no retries
        try:
            sid = sender.send(phone, body)
        except GatewayError as e:
            logger.error(
                "worker.twilio_error: error=%s order_id=%s event=%s",
                str(e),
                msg.get("order_id"),
                msg.get("event"),
            )
            failed += 1
            continue

        logger.info(
            "worker.twilio_sent: sid=%s order_id=%s event=%s",
            sid,
            msg.get("order_id"),
            msg.get("event"),
        )
        processed += 1

    return {"processed": processed, "failed": failed}


def lambda_handler(event, context):
    records = event.get("Records", [])
    logger.info("worker.lambda_start: received %d records", len(records))
    result = process_records(records, _get_sender())
    logger.info(
        "worker.lambda_done: processed=%d failed=%d",
        result["processed"],
        result["failed"],
    )
    return result
