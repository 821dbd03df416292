import dataclasses
import uuid
from datetime import timedelta

import pytest

from tavola.errors import ApiError, InvalidArgumentError, StatusCode
from tavola.menu_api import MenuAPI
from tavola.menu_service import PUBLIC_HOST, DishService, ImageService


class MemoryRepo:
    def __init__(self):
        self.dishes = {}

    def create(self, dish):
        self.dishes[dish.id] = dataclasses.replace(dish)

    def get_by_id(self, dish_id):
        if dish_id not in self.dishes:
            raise InvalidArgumentError("invalid argument: dish not found")
        return dataclasses.replace(self.dishes[dish_id])

    def get_by_filter(self, filter):
        return [
            dataclasses.replace(d)
            for d in self.dishes.values()
            if filter.category_id is None or d.category_id == filter.category_id
        ]

    def update(self, dish):
        self.dishes[dish.id] = dataclasses.replace(dish)

    def delete(self, dish_id):
        self.dishes.pop(dish_id, None)


class FakeStorage:
    def __init__(self, exists=True):
        self.exists = exists

    def bucket_exists(self, bucket_name):
        return self.exists

    def presigned_put_object(self, bucket_name, object_name, expiry):
        return f"https://storage.internal:9443/{bucket_name}/{object_name}?sig=abc"

    def presigned_get_object(self, bucket_name, object_name, expiry):
        return f"https://storage.internal:9443/{bucket_name}/{object_name}?sig=abc"


class RecordingDishes:
    def __init__(self):
        self.filters = []

    def list(self, filter):
        self.filters.append(filter)
        return []


def make_api(exists=True):
    repo = MemoryRepo()
    images = ImageService(FakeStorage(exists), "images", timedelta(minutes=15))
    return MenuAPI(DishService(repo, images), images), repo


def dish_request(**overrides):
    request = {
        "name": "Soup",
        "description": "Hot",
        "price": 350,
        "category_id": 2,
        "image_url": "",
        "cooking_time_min": 10,
        "calories": 200,
        "is_available": True,
    }
    request.update(overrides)
    return request


def test_create_dish_returns_message():
    api, repo = make_api()
    response = api.create_dish(dish_request())
    dish = response["dish"]
    assert dish["name"] == "Soup"
    assert dish["price"] == 350
    assert uuid.UUID(dish["id"]["value"]) in repo.dishes


def test_create_dish_resolves_image_key():
    api, _ = make_api()
    response = api.create_dish(dish_request(image_url="dishes/soup.png"))
    url = response["dish"]["image_url"]
    assert url == f"http://{PUBLIC_HOST}/images/dishes/soup.png?sig=abc"


def test_create_dish_missing_bucket_is_internal():
    api, _ = make_api(exists=False)
    with pytest.raises(ApiError) as info:
        api.create_dish(dish_request(image_url="dishes/soup.png"))
    assert info.value.code == StatusCode.INTERNAL


def test_get_dish_round_trip():
    api, _ = make_api()
    created = api.create_dish(dish_request())["dish"]
    fetched = api.get_dish({"dish_id": created["id"]})["dish"]
    assert fetched["id"] == created["id"]
    assert fetched["name"] == created["name"]


def test_get_dish_bad_uuid():
    api, _ = make_api()
    with pytest.raises(ApiError) as info:
        api.get_dish({"dish_id": {"value": "nope"}})
    assert info.value.code == StatusCode.INVALID_ARGUMENT
    assert info.value.message == "invalid argument: invalid uuid"


def test_get_unknown_dish_is_invalid_argument():
    api, _ = make_api()
    with pytest.raises(ApiError) as info:
        api.get_dish({"dish_id": {"value": str(uuid.uuid4())}})
    assert info.value.code == StatusCode.INVALID_ARGUMENT


def test_update_dish_changes_only_given_fields():
    api, _ = make_api()
    created = api.create_dish(dish_request())["dish"]
    updated = api.update_dish({"id": created["id"], "name": "Stew"})["dish"]
    assert updated["name"] == "Stew"
    assert updated["description"] == created["description"]
    assert updated["price"] == created["price"]


def test_update_dish_bad_uuid():
    api, _ = make_api()
    with pytest.raises(ApiError) as info:
        api.update_dish({"id": {"value": ""}, "name": "x"})
    assert info.value.code == StatusCode.INVALID_ARGUMENT


def test_list_dishes_counts_results():
    api, _ = make_api()
    api.create_dish(dish_request())
    api.create_dish(dish_request(name="Salad", category_id=3))
    response = api.list_dishes({"category_id": 3, "page": 1, "page_size": 10})
    assert response["total_count"] == len(response["dishes"]) == 1
    assert response["dishes"][0]["name"] == "Salad"


def test_list_dishes_ignores_availability_without_category():
    recorder = RecordingDishes()
    api = MenuAPI(recorder, None)
    api.list_dishes({"only_available": True, "category_id": 0, "page": 1, "page_size": 5})
    filter = recorder.filters[0]
    assert filter.category_id is None
    assert filter.only_available is False
    assert filter.page_size == 5


def test_list_dishes_keeps_availability_with_category():
    recorder = RecordingDishes()
    api = MenuAPI(recorder, None)
    api.list_dishes({"only_available": True, "category_id": 4})
    assert recorder.filters[0].category_id == 4
    assert recorder.filters[0].only_available is True


def test_generate_upload_url():
    api, _ = make_api()
    response = api.generate_upload_url({"filename": "photo.png", "content_type": "image/png"})
    assert response["object_key"].startswith("uploads/")
    assert response["object_key"].endswith("-photo.png")
    assert response["url"].startswith(f"http://{PUBLIC_HOST}/images/")


def test_generate_upload_url_missing_bucket():
    api, _ = make_api(exists=False)
    with pytest.raises(ApiError) as info:
        api.generate_upload_url({"filename": "photo.png", "content_type": "image/png"})
    assert info.value.code == StatusCode.INTERNAL