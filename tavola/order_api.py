"""RPC handlers of the order service."""

from __future__ import annotations

import uuid
from collections import defaultdict
from collections.abc import Mapping
from enum import IntEnum
from typing import Any, Protocol

from tavola.errors import ApiError, StatusCode
from tavola.order_models import (
    OrderCreated,
    OrderFilter,
    OrderItem,
    OrderToCreate,
    StoredOrder,
)

_NIL = uuid.UUID(int=0)

_ORDER_TYPE_NAMES = ("ORDER_TYPE_UNSPECIFIED", "ORDER_TYPE_DELIVERY", "ORDER_TYPE_TAKEAWAY")


class OrderStatusCode(IntEnum):
    ORDER_STATUS_UNSPECIFIED = 0
    ORDER_STATUS_CREATED = 1
    ORDER_STATUS_CONFIRMED = 2
    ORDER_STATUS_COOKING = 3
    ORDER_STATUS_READY = 4
    ORDER_STATUS_DELIVERED = 5
    ORDER_STATUS_CANCELLED = 6


_TO_PROTO = {
    "created": OrderStatusCode.ORDER_STATUS_CREATED,
    "process": OrderStatusCode.ORDER_STATUS_CONFIRMED,
    "on_kitchen": OrderStatusCode.ORDER_STATUS_COOKING,
    "delivery": OrderStatusCode.ORDER_STATUS_READY,
    "delivered": OrderStatusCode.ORDER_STATUS_DELIVERED,
    "declined": OrderStatusCode.ORDER_STATUS_CANCELLED,
}
_FROM_PROTO = {code: name for name, code in _TO_PROTO.items()}


def status_to_proto(status: Any) -> OrderStatusCode:
    """Map a stored status name to its wire code; unknown names map to UNSPECIFIED."""
    text = status.value if hasattr(status, "value") and isinstance(status.value, str) else status
    return _TO_PROTO.get(str(text), OrderStatusCode.ORDER_STATUS_UNSPECIFIED)


def status_from_proto(status: Any) -> str:
    """Map a wire status code to its stored name; unknown codes give "unspecified"."""
    try:
        code = OrderStatusCode(int(status))
    except (ValueError, TypeError):
        return "unspecified"
    return _FROM_PROTO.get(code, "unspecified")


class _OrderProvider(Protocol):
    def create(self, order: OrderToCreate) -> OrderCreated: ...

    def get_order(self, order_id: str) -> StoredOrder: ...

    def list_orders(self, filter: OrderFilter) -> list[StoredOrder]: ...

    def update_order_status(self, order_id: str, status: str) -> None: ...


def _value(request: Mapping[str, Any], key: str) -> str:
    holder = request.get(key) or {}
    return str(holder.get("value", ""))


def _order_type_name(order_type: Any) -> str:
    if isinstance(order_type, str):
        return order_type
    index = int(order_type or 0)
    return _ORDER_TYPE_NAMES[index] if 0 <= index < len(_ORDER_TYPE_NAMES) else ""


class OrderAPI:
    """Handlers taking and returning messages as plain mappings."""

    def __init__(self, order_provider: _OrderProvider) -> None:
        self.order_provider = order_provider
        self._payment_log: defaultdict[str, list[dict[str, Any]]] = defaultdict(list)

    def create_order(self, request: Mapping[str, Any]) -> dict[str, Any]:
        """Create an order; an unparsable user id is taken as the nil id."""
        try:
            user_id = uuid.UUID(_value(request, "user_id"))
        except ValueError:
            user_id = _NIL

        items = []
        for item in request.get("items") or ():
            try:
                item_id = uuid.UUID(_value(item, "dish_id"))
            except ValueError as exc:
                raise ApiError(StatusCode.INVALID_ARGUMENT, f"invalid item ID: {exc}") from exc
            items.append(OrderItem(item=item_id, quantity=int(item.get("quantity", 0)) & 0xFF))

        to_create = OrderToCreate(
            user_id=user_id,
            order_type=_order_type_name(request.get("order_type", 0)),
            delivery_address=bytes(request.get("delivery_address") or b""),
            items=items,
        )
        try:
            created = self.order_provider.create(to_create)
        except Exception as exc:
            raise ApiError(StatusCode.INTERNAL, f"failed to create order: {exc}") from exc
        return {
            "id": {"value": created.id},
            "status": created.status,
            "total_amount": created.total,
        }

    def get_order(self, request: Mapping[str, Any]) -> dict[str, Any]:
        try:
            order = self.order_provider.get_order(_value(request, "order_id"))
        except Exception as exc:
            raise ApiError(StatusCode.INTERNAL, f"failed to get order: {exc}") from exc
        return {
            "id": {"value": str(order.id)},
            "status": status_to_proto(order.status).name,
            "total_amount": order.price,
        }

    def list_orders(self, request: Mapping[str, Any]) -> dict[str, Any]:
        filter = OrderFilter()
        if request.get("user_id") is not None:
            filter.user_id = _value(request, "user_id")
        if request.get("status") is not None:
            filter.status = status_from_proto(request["status"])
        filter.limit = int(request.get("page_size", 0))
        filter.offset = int(request.get("page", 0)) * filter.limit
        try:
            orders = self.order_provider.list_orders(filter)
        except Exception as exc:
            raise ApiError(StatusCode.INTERNAL, f"failed to list orders: {exc}") from exc
        return {
            "orders": [
                {
                    "id": {"value": str(order.id)},
                    "status": status_to_proto(order.status),
                    "total_amount": order.price,
                }
                for order in orders
            ]
        }

    def update_order_status(self, request: Mapping[str, Any]) -> dict[str, Any]:
        try:
            self.order_provider.update_order_status(
                _value(request, "order_id"), status_from_proto(request.get("status", 0))
            )
        except Exception as exc:
            raise ApiError(
                StatusCode.INTERNAL, f"failed to update order status: {exc}"
            ) from exc
        return {}

    def initiate_payment(self, request: Mapping[str, Any]) -> dict[str, Any]:
        """Record a payment request for the order and accept it."""
        self._payment_log[_value(request, "order_id")].append(
            {"event": "payment_initiated", "request": dict(request)}
        )
        return {"status": "success"}

    def process_payment_callback(self, request: Mapping[str, Any]) -> dict[str, Any]:
        """Record a payment provider's callback for the order."""
        self._payment_log[_value(request, "order_id")].append(
            {"event": "payment_callback", "request": dict(request)}
        )
        return {}

    def get_order_history(self, request: Mapping[str, Any]) -> dict[str, Any]:
        """Return the payment events recorded for the order, oldest first."""
        order_id = _value(request, "order_id")
        return {"events": list(self._payment_log.get(order_id, ()))}