import base64
import json

from twilio.base.exceptions import TwilioRestException

from conftest import StubTwilioClient, make_ctx
from order_sms import app
from order_sms.models import OrderRecord
from order_sms.server import create_app


def _http_event(method, path, body=None, query=None, b64=False):
    event = {
        "version": "2.0",
        "rawPath": path,
        "requestContext": {"http": {"method": method, "path": path}},
        "queryStringParameters": query,
    }
    if body is not None:
        raw = json.dumps(body) if not isinstance(body, str) else body
        if b64:
            raw = base64.b64encode(raw.encode("utf-8")).decode("ascii")
        event["body"] = raw
        event["isBase64Encoded"] = b64
    return event


def test_lambda_order_created_scenario(monkeypatch, ctx, twilio):
    monkeypatch.setattr(app, "_context", ctx)

    resp = app.lambda_handler(
        _http_event(
            "POST",
            "/webhook/order-created",
            {"id": "1001", "customer": {"phone": "+15551234567", "first_name": "Ana"}},
        ),
        None,
    )

    assert resp["statusCode"] == 200
    assert resp["body"] == "SMS sent"
    assert ctx.store.snapshot() == {
        "1001": {"name": "Ana", "phone": "+15551234567", "status": "Confirmed"}
    }
    assert len(twilio.sent) == 1
    assert "order 1001" in twilio.sent[0]["body"]
    assert twilio.sent[0]["body"].endswith("/track/1001")


def test_lambda_base64_body(monkeypatch, ctx):
    monkeypatch.setattr(app, "_context", ctx)
    ctx.store.upsert("7", OrderRecord(name="Bo", phone="+1555", status="Confirmed"))

    resp = app.lambda_handler(
        _http_event("POST", "/webhook/order-packed", {"order_id": "7"}, b64=True), None
    )

    assert resp["statusCode"] == 200
    assert ctx.store.get("7").status == "Packed"


def test_home(ctx):
    resp = app.dispatch("GET", "/", None, None, ctx)

    assert resp["statusCode"] == 200
    assert "running" in resp["body"]


def test_test_message_requires_to(ctx, twilio):
    resp = app.dispatch("GET", "/test-message", {}, None, ctx)

    assert resp["statusCode"] == 400
    assert twilio.sent == []


def test_test_message_sends(ctx, twilio):
    resp = app.dispatch("GET", "/test-message", {"to": "+15557654321"}, None, ctx)

    assert resp["statusCode"] == 200
    body = json.loads(resp["body"])
    assert body["ok"] is True
    assert body["sid"].startswith("SM")
    assert twilio.sent[0]["to"] == "+15557654321"


def test_test_message_gateway_failure():
    error = TwilioRestException(400, "/Messages.json", msg="Invalid 'To' Phone Number", code=21211)
    ctx = make_ctx(client=StubTwilioClient(error=error))

    resp = app.dispatch("GET", "/test-message", {"to": "nope"}, None, ctx)

    assert resp["statusCode"] == 500
    assert json.loads(resp["body"]) == {"ok": False, "error": "Invalid 'To' Phone Number"}


def test_invalid_json_is_400(ctx, twilio):
    resp = app.dispatch("POST", "/webhook/order-created", None, "{oops", ctx)

    assert resp["statusCode"] == 400
    assert twilio.sent == []


def test_non_object_body_is_400(ctx):
    resp = app.dispatch("POST", "/webhook/order-packed", None, "[1, 2]", ctx)

    assert resp["statusCode"] == 400


def test_fulfilled_route_accepts_nested_order(ctx, twilio):
    ctx.store.upsert("1", OrderRecord(name="Bo", phone="+1", status="Shipped"))

    resp = app.dispatch(
        "POST",
        "/webhook/order-fulfilled",
        None,
        '{"order":{"id":1,"customer":{"phone":"+1"}}}',
        ctx,
    )

    assert resp["statusCode"] == 200
    assert ctx.store.get("1").status == "Delivered"
    assert len(twilio.sent) == 1


def test_lambda_bad_base64_body_is_400(monkeypatch, ctx, twilio):
    monkeypatch.setattr(app, "_context", ctx)
    event = _http_event("POST", "/webhook/order-created", "abc")
    event["isBase64Encoded"] = True

    resp = app.lambda_handler(event, None)

    assert resp["statusCode"] == 400
    assert twilio.sent == []


def test_lambda_non_utf8_body_is_400(monkeypatch, ctx, twilio):
    monkeypatch.setattr(app, "_context", ctx)
    event = _http_event("POST", "/webhook/order-created", "//4=")
    event["isBase64Encoded"] = True

    resp = app.lambda_handler(event, None)

    assert resp["statusCode"] == 400
    assert twilio.sent == []


def test_unknown_route_is_404(ctx):
    assert app.dispatch("GET", "/webhook/order-created", None, None, ctx)["statusCode"] == 404
    assert app.dispatch("DELETE", "/track/1", None, None, ctx)["statusCode"] == 404
    assert app.dispatch("GET", "/nope", None, None, ctx)["statusCode"] == 404


def test_lambda_track_decodes_path(monkeypatch, ctx):
    monkeypatch.setattr(app, "_context", ctx)
    app.dispatch(
        "POST",
        "/webhook/order-created",
        None,
        json.dumps({"name": "#1001", "customer": {"phone": "+15551234567"}}),
        ctx,
    )

    resp = app.lambda_handler(_http_event("GET", "/track/%231001"), None)

    assert resp["statusCode"] == 200
    assert resp["headers"]["Content-Type"].startswith("text/html")
    assert 'class="stage completed"' in resp["body"]


def test_lambda_misconfigured(monkeypatch):
    monkeypatch.setattr(app, "_context", None)
    for name in ("TWILIO_SID", "TWILIO_AUTH_TOKEN", "TWILIO_PHONE", "TWILIO_SECRET_NAME"):
        monkeypatch.delenv(name, raising=False)

    resp = app.lambda_handler(_http_event("GET", "/"), None)

    assert resp["statusCode"] == 500
    assert json.loads(resp["body"]) == {"error": "server_misconfigured"}


def test_flask_server_routes(ctx, twilio):
    client = create_app(ctx).test_client()

    assert client.get("/").status_code == 200

    resp = client.post(
        "/webhook/order-created",
        json={"id": 1001, "customer": {"phone": "+15551234567", "first_name": "Ana"}},
    )
    assert resp.status_code == 200
    assert resp.get_data(as_text=True) == "SMS sent"

    resp = client.post("/webhook/order-shipped", json={"order_id": "1001"})
    assert resp.status_code == 200

    page = client.get("/track/1001")
    assert page.status_code == 200
    assert page.mimetype == "text/html"
    assert page.get_data(as_text=True).count('class="stage completed"') == 3

    missing = client.get("/track/unknown-id")
    assert missing.status_code == 200
    assert "No tracking info" in missing.get_data(as_text=True)

    assert len(twilio.sent) == 2
