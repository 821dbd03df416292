"""RPC handlers of the menu service: dishes and image upload URLs."""

from __future__ import annotations

import uuid
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any, Protocol

from tavola.errors import ApiError, InternalError, InvalidUUIDError, StatusCode
from tavola.menu_models import ListDishFilter, MenuDish, UpdateDishRequest, new_dish


class _DishProvider(Protocol):
    def create(self, dish: MenuDish) -> MenuDish: ...

    def get(self, dish_id: uuid.UUID) -> MenuDish: ...

    def update(self, request: UpdateDishRequest) -> MenuDish: ...

    def list(self, filter: ListDishFilter) -> list[MenuDish]: ...


class _ImageURLCreator(Protocol):
    def create_url(self, filename: str, content_type: str) -> tuple[str, str]: ...


@contextmanager
def _translated() -> Iterator[None]:
    """Turn service failures into RPC errors: internal ones as INTERNAL, the rest as invalid."""
    try:
        yield
    except ApiError:
        raise
    except InternalError as exc:
        raise ApiError(StatusCode.INTERNAL, str(exc)) from exc
    except Exception as exc:
        raise ApiError(StatusCode.INVALID_ARGUMENT, str(exc)) from exc


def _parse_id(request: Mapping[str, Any], key: str) -> uuid.UUID:
    holder = request.get(key) or {}
    try:
        return uuid.UUID(str(holder.get("value", "")))
    except (ValueError, AttributeError) as exc:
        raise ApiError(StatusCode.INVALID_ARGUMENT, str(InvalidUUIDError())) from exc


class MenuAPI:
    """Handlers taking and returning messages as plain mappings."""

    def __init__(self, dish: _DishProvider, image: _ImageURLCreator) -> None:
        self.dish = dish
        self.image = image

    def create_dish(self, request: Mapping[str, Any]) -> dict[str, Any]:
        dish = new_dish(
            request.get("name", ""),
            request.get("description", ""),
            request.get("price", 0),
            request.get("category_id", 0),
            request.get("image_url", ""),
            request.get("cooking_time_min", 0),
            request.get("calories", 0),
            request.get("is_available", False),
        )
        with _translated():
            created = self.dish.create(dish)
        return {"dish": created.to_message()}

    def update_dish(self, request: Mapping[str, Any]) -> dict[str, Any]:
        dish_id = _parse_id(request, "id")
        update = UpdateDishRequest(
            id=dish_id,
            name=request.get("name"),
            description=request.get("description"),
            price=request.get("price"),
            category_id=request.get("category_id"),
            cooking_time_min=request.get("cooking_time_min"),
            image_url=request.get("image_url"),
            is_available=request.get("is_available"),
            calories=request.get("calories"),
        )
        with _translated():
            dish = self.dish.update(update)
        return {"dish": dish.to_message()}

    def get_dish(self, request: Mapping[str, Any]) -> dict[str, Any]:
        dish_id = _parse_id(request, "dish_id")
        with _translated():
            dish = self.dish.get(dish_id)
        return {"dish": dish.to_message()}

    def list_dishes(self, request: Mapping[str, Any]) -> dict[str, Any]:
        """List dishes; availability filtering applies only with a non-zero category."""
        category_id = request.get("category_id")
        if not category_id:
            category_id = None
        only_available = bool(request.get("only_available", False)) and category_id is not None
        filter = ListDishFilter(
            category_id=category_id,
            only_available=only_available,
            page=request.get("page", 0),
            page_size=request.get("page_size", 0),
        )
        with _translated():
            dishes = self.dish.list(filter)
        return {
            "dishes": [dish.to_message() for dish in dishes],
            "total_count": len(dishes),
        }

    def generate_upload_url(self, request: Mapping[str, Any]) -> dict[str, Any]:
        with _translated():
            url, object_key = self.image.create_url(
                request.get("filename", ""), request.get("content_type", "")
            )
        return {"url": url, "object_key": object_key}