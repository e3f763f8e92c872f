import json
import os
import tempfile
import threading
from typing import Dict, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .errors import StoreError
from .models import OrderRecord
from .utils.logger import get_logger

logger = get_logger("store")


class OrderStore:
    """Order id → OrderRecord. ``set_status`` on an unknown id is a no-op."""

    def get(self, order_id: str) -> Optional[OrderRecord]:
        raise NotImplementedError

    def upsert(self, order_id: str, record: OrderRecord) -> None:
        raise NotImplementedError

    def set_status(self, order_id: str, status: str) -> Optional[OrderRecord]:
        raise NotImplementedError


class MemoryOrderStore(OrderStore):
    """Process-lifetime store; everything is lost on restart."""

    def __init__(self, orders: Optional[Dict[str, OrderRecord]] = None):
        self._orders: Dict[str, OrderRecord] = dict(orders or {})
        self._lock = threading.Lock()

    def get(self, order_id):
        with self._lock:
            record = self._orders.get(str(order_id))
            return OrderRecord(**record.to_dict()) if record else None

    def upsert(self, order_id, record):
        with self._lock:
            orders = dict(self._orders)
            orders[str(order_id)] = OrderRecord(**record.to_dict())
            self._persist(orders)
            self._orders = orders

    def set_status(self, order_id, status):
        with self._lock:
            current = self._orders.get(str(order_id))
            if current is None:
                return None
            updated = OrderRecord(name=current.name, phone=current.phone, status=str(status))
            orders = dict(self._orders)
            orders[str(order_id)] = updated
            self._persist(orders)
            self._orders = orders
            return OrderRecord(**updated.to_dict())

    def _persist(self, orders: Dict[str, OrderRecord]) -> None:
        """Called with the lock held before ``orders`` replaces the current map."""

    def snapshot(self) -> Dict[str, Dict[str, str]]:
        with self._lock:
            return {k: v.to_dict() for k, v in self._orders.items()}


class FileOrderStore(MemoryOrderStore):
    """
    In-memory store with write-through snapshots to a single JSON document.

    The document is read once at construction. Every mutation rewrites it
    through a temporary file and ``os.replace`` while the lock is held, so
    concurrent writers in this process cannot lose each other's updates.
    The in-memory map is swapped only after the write succeeds.
    A missing or empty file is an empty store; a corrupt one is a StoreError.
    """

    def __init__(self, path: str):
        self.path = path
        super().__init__(self._load(path))

    @staticmethod
    def _load(path: str) -> Dict[str, OrderRecord]:
        try:
            with open(path, "r", encoding="utf-8") as f:
                raw = f.read()
        except FileNotFoundError:
            return {}
        except OSError as e:
            logger.error("store.read_failed", extra={"path": path, "error": str(e)})
            raise StoreError(f"Unable to read order store '{path}': {e}") from e

        if not raw.strip():
            return {}

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error("store.corrupt", extra={"path": path, "error": str(e)})
            raise StoreError(f"Order store '{path}' is not valid JSON: {e}") from e

        if not isinstance(data, dict):
            raise StoreError(f"Order store '{path}' must hold a JSON object")

        return {str(k): OrderRecord.from_dict(v) for k, v in data.items()}

    def _persist(self, orders: Dict[str, OrderRecord]) -> None:
        data = {k: v.to_dict() for k, v in orders.items()}
        directory = os.path.dirname(os.path.abspath(self.path))
        try:
            fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".orders-", suffix=".json")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(data, f, indent=2)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as e:
            logger.error("store.write_failed", extra={"path": self.path, "error": str(e)})
            raise StoreError(f"Unable to write order store '{self.path}': {e}") from e


class DynamoOrderStore(OrderStore):
    """One item per order, keyed by ``pk``; status updates are conditional per key."""

    def __init__(self, table_name: str, client=None, region_name: Optional[str] = None):
        self.table_name = table_name
        self._ddb = client or boto3.client("dynamodb", region_name=region_name)

    @staticmethod
    def _to_record(item: Dict) -> OrderRecord:
        return OrderRecord.from_dict({k: v.get("S") for k, v in item.items()})

    def get(self, order_id):
        try:
            resp = self._ddb.get_item(
                TableName=self.table_name,
                Key={"pk": {"S": str(order_id)}},
                ConsistentRead=True,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error("store.get_failed", extra={"order_id": order_id, "error": str(e)})
            raise StoreError(str(e)) from e

        item = resp.get("Item")
        return self._to_record(item) if item else None

    def upsert(self, order_id, record):
        try:
            self._ddb.put_item(
                TableName=self.table_name,
                Item={
                    "pk": {"S": str(order_id)},
                    "name": {"S": record.name},
                    "phone": {"S": record.phone},
                    "status": {"S": record.status},
                },
            )
        except (BotoCoreError, ClientError) as e:
            logger.error("store.put_failed", extra={"order_id": order_id, "error": str(e)})
            raise StoreError(str(e)) from e

    def set_status(self, order_id, status):
        try:
            resp = self._ddb.update_item(
                TableName=self.table_name,
                Key={"pk": {"S": str(order_id)}},
                UpdateExpression="SET #s = :s",
                ConditionExpression="attribute_exists(pk)",
                ExpressionAttributeNames={"#s": "status"},
                ExpressionAttributeValues={":s": {"S": str(status)}},
                ReturnValues="ALL_NEW",
            )
        except ClientError as e:
            if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
                return None
            logger.error("store.update_failed", extra={"order_id": order_id, "error": str(e)})
            raise StoreError(str(e)) from e
        except BotoCoreError as e:
            logger.error("store.update_failed", extra={"order_id": order_id, "error": str(e)})
            raise StoreError(str(e)) from e

        return self._to_record(resp["Attributes"])


def build_store(settings) -> OrderStore:
    if settings.order_store == "memory":
        return MemoryOrderStore()
    if settings.order_store == "dynamodb":
        return DynamoOrderStore(settings.orders_table, region_name=settings.aws_region)
    return FileOrderStore(settings.order_store_path)
