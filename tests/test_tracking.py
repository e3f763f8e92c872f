from order_sms import tracking, webhooks
from order_sms.models import OrderRecord
from order_sms.store import MemoryOrderStore


def _completed(html):
    return html.count('class="stage completed"')


def test_full_lifecycle_marks_every_stage_completed(ctx):
    webhooks.order_created(
        {"id": "1001", "customer": {"phone": "+15551234567", "first_name": "Ana"}}, ctx
    )
    for handler in (webhooks.order_packed, webhooks.order_shipped, webhooks.order_delivered):
        handler({"order_id": "1001"}, ctx)

    html = tracking.render("1001", ctx.store)

    assert _completed(html) == 4
    assert html.count('class="stage"') == 0
    assert "Current status: <strong>Delivered</strong>" in html
    for stage in ("Confirmed", "Packed", "Shipped", "Delivered"):
        assert stage in html


def test_partial_progress():
    store = MemoryOrderStore({"5": OrderRecord(name="Di", phone="+1555", status="Packed")})

    html = tracking.render("5", store)

    assert _completed(html) == 2
    assert html.count('class="stage"') == 2
    assert "Hi Di" in html


def test_unknown_order_has_no_progress_markup():
    html = tracking.render("unknown-id", MemoryOrderStore())

    assert "No tracking info" in html
    assert "<ol" not in html
    assert "<li" not in html


def test_status_outside_sequence_completes_nothing():
    store = MemoryOrderStore({"5": OrderRecord(name="Di", phone="+1555", status="Lost")})

    html = tracking.render("5", store)

    assert _completed(html) == 0
    assert html.count('class="stage"') == 4
    assert "Current status: <strong>Lost</strong>" in html


def test_values_are_escaped():
    store = MemoryOrderStore(
        {"<x>": OrderRecord(name="<script>alert(1)</script>", phone="+1555", status="Confirmed")}
    )

    html = tracking.render("<x>", store)

    assert "<script>" not in html
    assert "&lt;script&gt;" in html
    assert "Order &lt;x&gt;" in html
