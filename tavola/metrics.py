"""In-memory metric instruments and the dish-specific metrics built on them."""

from __future__ import annotations

import threading
from collections import defaultdict
from collections.abc import Mapping
from typing import Any

_Key = tuple[str, tuple[tuple[str, Any], ...]]


def _key(name: str, attributes: Mapping[str, Any] | None) -> _Key:
    return name, tuple(sorted((attributes or {}).items()))


class MetricsRegistry:
    """Thread-safe store of counters and histograms keyed by name and attributes."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counters: dict[_Key, float] = defaultdict(int)
        self._histograms: dict[_Key, list[float]] = defaultdict(list)

    def counter_add(
        self, name: str, value: float, attributes: Mapping[str, Any] | None = None
    ) -> None:
        with self._lock:
            self._counters[_key(name, attributes)] += value

    def histogram_record(
        self, name: str, value: float, attributes: Mapping[str, Any] | None = None
    ) -> None:
        with self._lock:
            self._histograms[_key(name, attributes)].append(value)

    def counter_value(self, name: str, attributes: Mapping[str, Any] | None = None) -> float:
        with self._lock:
            return self._counters.get(_key(name, attributes), 0)

    def histogram_values(
        self, name: str, attributes: Mapping[str, Any] | None = None
    ) -> list[float]:
        with self._lock:
            return list(self._histograms.get(_key(name, attributes), ()))


DISH_CREATED_TOTAL = "dish_created_total"
DISH_UPDATED_TOTAL = "dish_updated_total"
DISH_DELETED_TOTAL = "dish_deleted_total"
DISH_LISTED_TOTAL = "dish_listed_total"
DISH_CREATE_DURATION = "dish_create_duration_seconds"
DISH_UPDATE_DURATION = "dish_update_duration_seconds"
DISH_GET_DURATION = "dish_get_duration_seconds"
DISH_LIST_DURATION = "dish_list_duration_seconds"
ACTIVE_DISHES_COUNT = "active_dishes_count"


def _category(category_id: int) -> dict[str, int]:
    return {"category_id": int(category_id)}


class DishMetrics:
    """Business metrics for dish operations."""

    def __init__(self, registry: MetricsRegistry | None = None) -> None:
        self.registry = registry or MetricsRegistry()

    def record_dish_created(self, category_id: int) -> None:
        self.registry.counter_add(DISH_CREATED_TOTAL, 1, _category(category_id))

    def record_dish_updated(self, category_id: int) -> None:
        self.registry.counter_add(DISH_UPDATED_TOTAL, 1, _category(category_id))

    def record_dish_deleted(self, category_id: int) -> None:
        self.registry.counter_add(DISH_DELETED_TOTAL, 1, _category(category_id))

    def record_dish_listed(self, category_id: int | None, only_available: bool) -> None:
        attributes: dict[str, Any] = {"only_available": bool(only_available)}
        if category_id is not None:
            attributes.update(_category(category_id))
        self.registry.counter_add(DISH_LISTED_TOTAL, 1, attributes)

    def record_dish_create_duration(self, duration: float, category_id: int) -> None:
        self.registry.histogram_record(DISH_CREATE_DURATION, duration, _category(category_id))

    def record_dish_update_duration(self, duration: float, category_id: int) -> None:
        self.registry.histogram_record(DISH_UPDATE_DURATION, duration, _category(category_id))

    def record_dish_get_duration(self, duration: float) -> None:
        self.registry.histogram_record(DISH_GET_DURATION, duration)

    def record_dish_list_duration(self, duration: float, category_id: int | None) -> None:
        attributes = _category(category_id) if category_id is not None else {}
        self.registry.histogram_record(DISH_LIST_DURATION, duration, attributes)

    def set_active_dishes_count(self, count: int) -> None:
        """Add count to the active-dishes up/down counter."""
        self.registry.counter_add(ACTIVE_DISHES_COUNT, count)