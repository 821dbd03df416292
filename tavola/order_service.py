"""Order business logic and the outbox worker that publishes order events."""

from __future__ import annotations

import logging
import threading
import uuid
from datetime import datetime, timezone
from typing import Protocol

from tavola.order_domain import Dish, new_order
from tavola.order_models import (
    DishInfo,
    OrderCreated,
    OrderFilter,
    OrderToCreate,
    StoredEvent,
    StoredOrder,
    new_order_created,
    stored_order_from_domain,
)

ANSWER_TIMEOUT = 15.0
DEFAULT_ADDRESS = "any"


class OrderRepository(Protocol):
    """Persistent storage for orders."""

    def save(self, order: StoredOrder) -> int: ...

    def get(self, order_id: uuid.UUID) -> StoredOrder: ...


class EventRepository(Protocol):
    """Outbox storage for order events."""

    def save(self, event: StoredEvent) -> None: ...

    def get_unpublished_events(self) -> list[StoredEvent]: ...

    def mark_as_published(self, event_id: str) -> None: ...


class EventPublisher(Protocol):
    def publish_event(self, event: StoredEvent) -> None: ...


class DishGetter(Protocol):
    """Looks up dishes in the menu service."""

    def get(self, dish_ids: list[uuid.UUID], timeout: float) -> list[DishInfo]: ...


class OrderService:
    """Creates orders and reads or changes stored ones."""

    def __init__(self, repo: OrderRepository, events: EventRepository, dishes: DishGetter) -> None:
        self.repo = repo
        self.events = events
        self.dishes = dishes

    def create(self, order: OrderToCreate) -> OrderCreated:
        """Price the requested dishes, store the order and report it."""
        dish_ids = [item.item for item in order.items]
        found = self.dishes.get(dish_ids, timeout=ANSWER_TIMEOUT)

        dish_map: dict[Dish, int] = {}
        for info in found:
            for item in order.items:
                if info.id == item.item:
                    dish_map[Dish(id=info.id, name=info.name, price=info.price)] = item.quantity

        domain_order = new_order(order.user_id, dish_map, order.order_type, DEFAULT_ADDRESS)
        number = self.repo.save(stored_order_from_domain(domain_order))
        domain_order.set_num(number)

        return new_order_created(
            domain_order.id,
            domain_order.num,
            domain_order.user,
            domain_order.price,
            domain_order.status.value,
        )

    def update_status(self, order_id: uuid.UUID, new_status: str) -> None:
        """Set the status of the order with the given id."""
        self.update_order_status(str(order_id), new_status)

    def get_order(self, order_id: str) -> StoredOrder:
        """Fetch an order by its textual id; raises ValueError on a bad id."""
        return self.repo.get(uuid.UUID(order_id))

    def list_orders(self, filter: OrderFilter) -> list[StoredOrder]:
        lister = getattr(self.repo, "list_orders", None)
        if lister is None:
            raise TypeError("order repository cannot list orders")
        return lister(filter)

    def update_order_status(self, order_id: str, status: str) -> None:
        """Set a stored order's status, saving it if the repository can update."""
        order = self.repo.get(uuid.UUID(order_id))
        order.status = status
        order.updated_at = datetime.now(timezone.utc)
        updater = getattr(self.repo, "update", None)
        if updater is not None:
            updater(order)


class EventService:
    """Saves order events and publishes the ones not yet sent."""

    def __init__(
        self,
        repo: EventRepository,
        publisher: EventPublisher,
        process_timeout: float,
        log: logging.Logger | None = None,
    ) -> None:
        self.repo = repo
        self.publisher = publisher
        self.process_timeout = process_timeout
        self.log = (log or logging.getLogger(__name__)).getChild("event")

    def save_event(self, event: StoredEvent) -> None:
        self.repo.save(event)

    def publish_unpublished_events(self) -> None:
        """Publish pending events in order, stopping at the first failure."""
        for event in self.repo.get_unpublished_events():
            self.publisher.publish_event(event)
            self.repo.mark_as_published(event.id)

    def start_background_processing(self, stop_event: threading.Event) -> threading.Thread:
        """Publish pending events every process_timeout seconds until stop_event is set."""
        if self.process_timeout <= 0:
            raise ValueError("process timeout must be positive")
        self.log.info("starting background, process timeout %ss", self.process_timeout)

        def run() -> None:
            while not stop_event.wait(self.process_timeout):
                try:
                    self.publish_unpublished_events()
                except Exception:
                    self.log.exception("failed to publish events")

        worker = threading.Thread(target=run, name="event-publisher", daemon=True)
        worker.start()
        return worker