"""
HTTP routing shared by the Lambda entry point and the Flask dev server.

``dispatch`` maps (method, path) to a handler; ``lambda_handler`` adapts an
API Gateway HTTP API (payload format 2.0) event onto it.
"""

import base64
import binascii
import json
from typing import Any, Mapping, Optional, Tuple
from urllib.parse import unquote

from . import health, tracking, webhooks
from .context import build_context
from .errors import ConfigError, GatewayError, StoreError
from .notifier import TEST_MESSAGE
from .responses import html_response, json_response, text_response
from .utils.logger import get_logger

logger = get_logger("app")

WEBHOOK_ROUTES = {
    "/webhook/order-created": webhooks.order_created,
    "/webhook/order-packed": webhooks.order_packed,
    "/webhook/order-shipped": webhooks.order_shipped,
    "/webhook/order-delivered": webhooks.order_delivered,
    "/webhook/order-fulfilled": webhooks.order_fulfilled,
}

TRACK_PREFIX = "/track/"

_context = None


def _parse_body(raw_body: Optional[str]) -> Any:
    """
    Decode a JSON request body. An empty body is an empty object.
    """
    if raw_body is None or (isinstance(raw_body, str) and not raw_body.strip()):
        return {}
    if isinstance(raw_body, (dict, list)):
        return raw_body
    try:
        return json.loads(raw_body)
    except json.JSONDecodeError:
        logger.warning(
            "app.invalid_json",
            extra={"body_preview": str(raw_body)[:200]},
        )
        raise


def send_test_message(query: Mapping[str, str], ctx) -> dict:
    to = (query or {}).get("to")
    if not to:
        return text_response(400, "Provide ?to=+15551234567 in the URL for testing")

    try:
        sid = ctx.sender.send(to, TEST_MESSAGE)
    except GatewayError as e:
        logger.error("app.test_message_error", extra={"error": str(e), "to": to})
        return json_response(500, {"ok": False, "error": str(e)})

    logger.info("app.test_message_sent", extra={"sid": sid, "to": to})
    return json_response(200, {"ok": True, "sid": sid})


def track(order_id: str, ctx) -> dict:
    try:
        return html_response(200, tracking.render(order_id, ctx.store))
    except StoreError as e:
        logger.error("app.track_error", extra={"order_id": order_id, "error": str(e)})
        return text_response(500, "Server error")


def dispatch(
    method: str,
    path: str,
    query: Optional[Mapping[str, str]],
    raw_body: Optional[str],
    ctx,
) -> dict:
    method = (method or "GET").upper()
    path = path or "/"
    if len(path) > 1:
        path = path.rstrip("/")

    if method == "GET" and path == "/":
        return health.home(method)

    if method == "GET" and path == "/test-message":
        return send_test_message(query, ctx)

    if method == "GET" and path.startswith(TRACK_PREFIX) and len(path) > len(TRACK_PREFIX):
        return track(path[len(TRACK_PREFIX):], ctx)

    if method == "POST" and path in WEBHOOK_ROUTES:
        try:
            payload = _parse_body(raw_body)
        except json.JSONDecodeError:
            return text_response(400, "Invalid JSON")
        if not isinstance(payload, dict):
            logger.warning("app.payload_not_object", extra={"path": path})
            return text_response(400, "Invalid JSON")
        return WEBHOOK_ROUTES[path](payload, ctx)

    logger.info("app.route_not_found", extra={"method": method, "path": path})
    return json_response(404, {"error": "not_found"})


def _request_from_event(event: dict) -> Tuple[str, str, Mapping[str, str], Optional[str]]:
    http = event.get("requestContext", {}).get("http", {})
    method = http.get("method") or event.get("httpMethod") or "GET"
    path = unquote(event.get("rawPath") or http.get("path") or event.get("path") or "/")
    query = event.get("queryStringParameters") or {}

    body = event.get("body")
    if body and event.get("isBase64Encoded"):
        body = base64.b64decode(body).decode("utf-8")

    return method, path, query, body


def _get_context():
    """Build the AppContext once per Lambda container."""
    global _context
    if _context is None:
        _context = build_context()
    return _context


def lambda_handler(event, context):
    logger.info(
        "app.lambda_start",
        extra={
            "request_id": getattr(context, "aws_request_id", None),
            "event_preview": str(event)[:500],
        },
    )

    try:
        ctx = _get_context()
    except ConfigError as e:
        # Misconfiguration is a 500, not a 4xx
        logger.error("app.env_error", extra={"error": str(e)})
        return json_response(500, {"error": "server_misconfigured"})
    except StoreError as e:
        logger.error("app.store_error", extra={"error": str(e)})
        return json_response(500, {"error": "store_unavailable"})

    try:
        method, path, query, body = _request_from_event(event)
    except (binascii.Error, UnicodeDecodeError) as e:
        logger.warning("app.invalid_body_encoding", extra={"error": str(e)})
        return text_response(400, "Invalid JSON")

    return dispatch(method, path, query, body, ctx)
