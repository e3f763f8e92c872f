import time
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, Optional

DEFAULT_CUSTOMER_NAME = "Customer"


class Stage(str, Enum):
    CONFIRMED = "Confirmed"
    PACKED = "Packed"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"

    @classmethod
    def index_of(cls, status: Optional[str]) -> int:
        """Position of ``status`` in the stage sequence, or -1 if it is not a stage."""
        for i, stage in enumerate(cls):
            if stage.value == status:
                return i
        return -1


STAGES = [stage.value for stage in Stage]


@dataclass
class OrderRecord:
    name: str
    phone: str
    status: str

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OrderRecord":
        return cls(
            name=str(data.get("name") or DEFAULT_CUSTOMER_NAME),
            phone=str(data.get("phone") or ""),
            status=str(data.get("status") or ""),
        )


@dataclass(frozen=True)
class InboundOrder:
    """Canonical shape of an "order created" payload after normalization."""

    order_id: str
    name: str
    phone: Optional[str]
    shape: str


def _unwrap(payload: Dict[str, Any]):
    # Shopify posts the order itself; fulfillment-style senders nest it.
    nested = payload.get("order")
    if isinstance(nested, dict):
        return "nested", nested
    return "bare", payload


def resolve_order_id(order: Dict[str, Any], now=time.time) -> str:
    """
    Pick the identifier an order is stored under.

    Precedence: explicit ``id``, then the human-readable ``name``
    (e.g. "#1001"), then a millisecond timestamp. Later stage events must
    reference the same value or they will not find the record.
    """
    for key in ("id", "name"):
        value = order.get(key)
        if value is not None and value != "":
            return str(value)
    return str(int(now() * 1000))


def normalize_order(payload: Dict[str, Any], now=time.time) -> InboundOrder:
    shape, order = _unwrap(payload)
    customer = order.get("customer") or {}
    phone = customer.get("phone") or None
    return InboundOrder(
        order_id=resolve_order_id(order, now=now),
        name=customer.get("first_name") or DEFAULT_CUSTOMER_NAME,
        phone=str(phone) if phone else None,
        shape=shape,
    )


def stage_order_id(payload: Dict[str, Any]) -> Optional[str]:
    order_id = payload.get("order_id")
    if order_id is None or order_id == "":
        return None
    return str(order_id)
