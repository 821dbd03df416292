"""Requests and records handled by the menu service."""

from __future__ import annotations

import math
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any


@dataclass
class CreateCategoryRequest:
    name: str
    description: str
    display_order: int


@dataclass
class UpdateCategoryRequest:
    id: uuid.UUID
    name: str | None = None
    description: str | None = None
    display_order: int | None = None
    is_active: bool | None = None


@dataclass
class DeleteCategoryRequest:
    id: uuid.UUID
    force: bool = False


@dataclass
class ListCategoriesRequest:
    only_active: bool = False
    page: int = 0
    page_size: int = 0


@dataclass
class Category:
    id: uuid.UUID
    name: str
    description: str
    display_order: int
    is_active: bool


@dataclass
class CreateDishRequest:
    name: str
    description: str
    price: int
    category_id: uuid.UUID
    cooking_time_min: int
    image_url: str | None = None
    is_available: bool = False
    calories: int | None = None


@dataclass
class UpdateDishRequest:
    id: uuid.UUID
    name: str | None = None
    description: str | None = None
    price: int | None = None
    category_id: int | None = None
    cooking_time_min: int | None = None
    image_url: str | None = None
    is_available: bool | None = None
    calories: int | None = None


@dataclass
class ListDishFilter:
    category_id: int | None = None
    only_available: bool = False
    page: int = 0
    page_size: int = 0


def _seconds(moment: datetime | None, label: str) -> dict[str, int]:
    if moment is None:
        raise ValueError(f"dish has no {label} time")
    return {"seconds": math.floor(moment.timestamp())}


@dataclass
class MenuDish:
    id: uuid.UUID
    name: str = ""
    description: str = ""
    price: int = 0
    category_id: int = 0
    cooking_time_min: int = 0
    image_url: str = ""
    is_available: bool = False
    calories: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def to_message(self) -> dict[str, Any]:
        """Wire form of the dish; raises ValueError if a timestamp is missing."""
        return {
            "id": {"value": str(self.id)},
            "name": self.name,
            "description": self.description,
            "price": self.price,
            "category_id": self.category_id,
            "cooking_time_min": self.cooking_time_min,
            "image_url": self.image_url,
            "is_available": self.is_available,
            "calories": self.calories,
            "created_at": _seconds(self.created_at, "creation"),
            "updated_at": _seconds(self.updated_at, "update"),
        }


def new_dish(
    name: str,
    description: str,
    price: int,
    category_id: int,
    image_url: str,
    cooking_time_min: int,
    calories: int,
    is_available: bool,
) -> MenuDish:
    """Create a dish with a fresh id and both timestamps set to now."""
    created = datetime.now(timezone.utc)
    return MenuDish(
        id=uuid.uuid4(),
        name=name,
        description=description,
        price=price,
        category_id=category_id,
        cooking_time_min=cooking_time_min,
        image_url=image_url,
        is_available=is_available,
        calories=calories,
        created_at=created,
        updated_at=created,
    )