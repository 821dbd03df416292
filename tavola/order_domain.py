"""Order domain model: dishes, orders, their status lifecycle and events."""

from __future__ import annotations

import json
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from tavola.errors import EmptyDishListError, InvalidStatusTransitionError


class OrderType(str, Enum):
    UNSPECIFIED = "unspecified"
    DELIVERY = "delivery"
    TAKEAWAY = "takeaway"


class Status(str, Enum):
    CREATED = "created"
    PROCESS = "process"
    ON_KITCHEN = "on_kitchen"
    DELIVERY = "delivery"
    DELIVERED = "delivered"
    DECLINED = "declined"


class EventType(str, Enum):
    CREATED = "created"
    STATUS_CHANGE = "changeStatus"
    FINALIZE = "finalize"


_STATUS_VALUES = frozenset(s.value for s in Status)


def _text(value: Any) -> str:
    return value.value if isinstance(value, Enum) else str(value)


def is_valid_status(value: Any) -> bool:
    """Tell whether a value names one of the known order statuses."""
    return _text(value) in _STATUS_VALUES


@dataclass(frozen=True)
class Dish:
    id: uuid.UUID
    name: str
    price: int


def dish_from_dto(dto: Any) -> Dish:
    """Build a domain dish from any object with id, name and price."""
    return Dish(id=dto.id, name=dto.name, price=dto.price)


def validate_dish_list(dishes: Mapping[Dish, int]) -> None:
    """Raise EmptyDishListError when no dishes are given."""
    if not dishes:
        raise EmptyDishListError()


def calculate_price(dishes: Mapping[Dish, int]) -> int:
    """Total price of the dishes times their quantities."""
    return sum(dish.price * quantity for dish, quantity in dishes.items())


@dataclass(frozen=True)
class DishQuantity:
    dish: uuid.UUID
    quantity: int


@dataclass(frozen=True)
class OrderEvent:
    occurred_at: datetime
    event_type: EventType
    payload: bytes


def new_order_event(
    order_id: uuid.UUID,
    order_num: int,
    client_id: uuid.UUID,
    status: Any,
    occurred_at: datetime,
) -> OrderEvent:
    """Create the event describing an order entering the given status."""
    status_text = _text(status)
    if status_text == Status.CREATED.value:
        event_type = EventType.CREATED
    elif status_text in (Status.DELIVERED.value, Status.DECLINED.value):
        event_type = EventType.FINALIZE
    else:
        event_type = EventType.STATUS_CHANGE

    body: dict[str, Any] = {"order_id": str(order_id)}
    if order_num:
        body["order_num"] = order_num
    body["client_id"] = str(client_id)
    if status_text:
        body["status"] = status_text

    payload = json.dumps(body, separators=(",", ":")).encode()
    return OrderEvent(occurred_at=occurred_at, event_type=event_type, payload=payload)


@dataclass
class Order:
    id: uuid.UUID
    user: uuid.UUID
    price: int
    created_at: datetime
    updated_at: datetime
    status: Status
    order_type: str
    address: str
    dishes: tuple[DishQuantity, ...] = ()
    num: int = 0

    def set_num(self, n: int) -> None:
        """Assign the order number; only an already numbered order accepts it."""
        if self.num != 0:
            self.num = n

    def _change_status(self, status: Status) -> OrderEvent:
        self.status = status
        self.updated_at = datetime.now(timezone.utc)
        return new_order_event(self.id, self.num, self.user, status, self.updated_at)

    def _transition(self, expected: Status, target: Status) -> OrderEvent:
        if self.status != expected:
            raise InvalidStatusTransitionError()
        return self._change_status(target)

    def process(self) -> OrderEvent:
        return self._transition(Status.CREATED, Status.PROCESS)

    def send_to_kitchen(self) -> OrderEvent:
        return self._transition(Status.PROCESS, Status.ON_KITCHEN)

    def start_delivery(self) -> OrderEvent:
        return self._transition(Status.ON_KITCHEN, Status.DELIVERY)

    def complete(self) -> OrderEvent:
        return self._transition(Status.DELIVERY, Status.DELIVERED)

    def decline(self) -> OrderEvent:
        if self.status in (Status.DELIVERED, Status.DECLINED):
            raise InvalidStatusTransitionError()
        return self._change_status(Status.DECLINED)


def new_order(
    user: uuid.UUID,
    dishes: Mapping[Dish, int],
    order_type: Any,
    address: str,
) -> Order:
    """Create a fresh order in the created status."""
    items = tuple(DishQuantity(dish=dish.id, quantity=q) for dish, q in dishes.items())
    if not items:
        raise EmptyDishListError()
    now = datetime.now(timezone.utc)
    return Order(
        id=uuid.uuid4(),
        user=user,
        price=calculate_price(dishes),
        created_at=now,
        updated_at=now,
        status=Status.CREATED,
        order_type=_text(order_type),
        address=address,
        dishes=items,
        num=0,
    )