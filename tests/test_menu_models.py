import uuid
from datetime import datetime, timezone

import pytest

from tavola.menu_models import (
    ListCategoriesRequest,
    ListDishFilter,
    MenuDish,
    UpdateCategoryRequest,
    UpdateDishRequest,
    new_dish,
)


def _dish():
    return new_dish("borscht", "beet soup", 350, 2, "uploads/b.png", 20, 180, True)


def test_new_dish_sets_fields():
    dish = _dish()
    assert dish.name == "borscht"
    assert dish.description == "beet soup"
    assert dish.price == 350
    assert dish.category_id == 2
    assert dish.image_url == "uploads/b.png"
    assert dish.cooking_time_min == 20
    assert dish.calories == 180
    assert dish.is_available is True
    assert dish.created_at == dish.updated_at


def test_new_dish_ids_are_unique():
    assert _dish().id != _dish().id or False
    ids = {_dish().id for _ in range(5)}
    assert len(ids) == 5


def test_to_message_round_trips_fields():
    dish = _dish()
    msg = dish.to_message()
    assert uuid.UUID(msg["id"]["value"]) == dish.id
    assert msg["name"] == dish.name
    assert msg["price"] == dish.price
    assert msg["category_id"] == dish.category_id
    assert msg["image_url"] == dish.image_url
    assert msg["is_available"] is True
    restored = datetime.fromtimestamp(msg["created_at"]["seconds"], timezone.utc)
    assert restored == dish.created_at.replace(microsecond=0)
    assert msg["updated_at"] == msg["created_at"]


def test_to_message_with_explicit_times():
    created = datetime(2024, 5, 1, 12, 0, 30, 999, tzinfo=timezone.utc)
    updated = datetime(2024, 5, 2, 8, 15, tzinfo=timezone.utc)
    dish = MenuDish(id=uuid.uuid4(), created_at=created, updated_at=updated)
    msg = dish.to_message()
    assert datetime.fromtimestamp(msg["created_at"]["seconds"], timezone.utc) == created.replace(
        microsecond=0
    )
    assert datetime.fromtimestamp(msg["updated_at"]["seconds"], timezone.utc) == updated


def test_to_message_without_timestamps_raises():
    dish = MenuDish(id=uuid.uuid4())
    with pytest.raises(ValueError):
        dish.to_message()


def test_update_dish_request_defaults_to_no_changes():
    request = UpdateDishRequest(id=uuid.uuid4())
    fields = [
        request.name,
        request.description,
        request.price,
        request.category_id,
        request.cooking_time_min,
        request.image_url,
        request.is_available,
        request.calories,
    ]
    assert fields == [None] * 8


def test_list_dish_filter_defaults():
    flt = ListDishFilter()
    assert (flt.category_id, flt.only_available, flt.page, flt.page_size) == (None, False, 0, 0)


def test_category_requests_defaults():
    update = UpdateCategoryRequest(id=uuid.uuid4())
    assert update.is_active is None
    listing = ListCategoriesRequest()
    assert (listing.only_active, listing.page, listing.page_size) == (False, 0, 0)