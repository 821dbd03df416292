"""Data carried between the order service layers and its storage."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

from tavola.order_domain import Order

_NIL = uuid.UUID(int=0)


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class DishInfo:
    id: uuid.UUID
    name: str
    price: int


def new_dish_info(id: str, name: str, price: int) -> DishInfo:
    """Build dish information, parsing the id; raises ValueError on a bad id."""
    return DishInfo(id=uuid.UUID(id), name=name, price=price)


@dataclass
class OrderItem:
    item: uuid.UUID
    quantity: int


@dataclass
class OrderToCreate:
    user_id: uuid.UUID
    order_type: str
    delivery_address: bytes
    items: list[OrderItem] = field(default_factory=list)


@dataclass
class OrderCreated:
    id: str
    num: int
    user_id: str
    total: int
    status: str


def new_order_created(
    id: uuid.UUID, num: int, user_id: uuid.UUID, total: int, status: str
) -> OrderCreated:
    return OrderCreated(id=str(id), num=num, user_id=str(user_id), total=total, status=status)


@dataclass
class OrderFilter:
    user_id: str = ""
    product_id: str = ""
    status: str = ""
    limit: int = 0
    offset: int = 0


@dataclass
class StoredEvent:
    id: str
    type: str
    payload: bytes
    published: bool = False
    occurred_at: datetime = field(default_factory=_now)


def new_event(id: str, event_type: str, payload: bytes) -> StoredEvent:
    """Create an unpublished event stamped with the current time."""
    return StoredEvent(id=id, type=event_type, payload=payload, published=False)


@dataclass
class StoredDishQuantity:
    dish_id: uuid.UUID
    quantity: int


@dataclass
class StoredOrder:
    id: uuid.UUID = _NIL
    user_id: uuid.UUID = _NIL
    num: int = 0
    price: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None
    status: str = ""
    order_type: str = ""
    address: str = ""
    dish_quantities: list[StoredDishQuantity] = field(default_factory=list)


def stored_order_from_domain(order: Order) -> StoredOrder:
    """Flatten a domain order into its storage record (the number is left unset)."""
    status = order.status
    return StoredOrder(
        id=order.id,
        user_id=order.user,
        price=order.price,
        created_at=order.created_at,
        updated_at=order.updated_at,
        status=status.value if hasattr(status, "value") else str(status),
        order_type=order.order_type,
        address=order.address,
        dish_quantities=[
            StoredDishQuantity(dish_id=d.dish, quantity=d.quantity) for d in order.dishes
        ],
    )