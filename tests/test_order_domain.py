import json
import uuid
from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from tavola.errors import EmptyDishListError, InvalidStatusTransitionError
from tavola.order_domain import (
    Dish,
    EventType,
    OrderType,
    Status,
    calculate_price,
    dish_from_dto,
    is_valid_status,
    new_order,
    new_order_event,
    validate_dish_list,
)


def _dishes():
    return {
        Dish(uuid.uuid4(), "soup", 120): 2,
        Dish(uuid.uuid4(), "bread", 30): 1,
    }


@pytest.mark.parametrize("status", list(Status))
def test_known_statuses_are_valid(status):
    assert is_valid_status(status)
    assert is_valid_status(status.value)


def test_unknown_status_is_invalid():
    assert not is_valid_status("unknown")


def test_dish_from_dto_copies_fields():
    dish_id = uuid.uuid4()
    dish = dish_from_dto(SimpleNamespace(id=dish_id, name="tea", price=50))
    assert dish == Dish(dish_id, "tea", 50)


def test_validate_empty_dish_list_raises():
    with pytest.raises(EmptyDishListError):
        validate_dish_list({})


def test_validate_non_empty_dish_list_passes():
    dishes = _dishes()
    validate_dish_list(dishes)
    assert len(dishes) == 2


def test_calculate_price_of_empty_list_is_zero():
    assert calculate_price({}) == 0


def test_calculate_price_single_dish():
    dish = Dish(uuid.uuid4(), "tea", 75)
    assert calculate_price({dish: 1}) == 75


def test_new_order_defaults():
    user = uuid.uuid4()
    dishes = _dishes()
    order = new_order(user, dishes, OrderType.DELIVERY, "street 1")
    assert order.status is Status.CREATED
    assert order.num == 0
    assert order.user == user
    assert order.address == "street 1"
    assert order.order_type == "delivery"
    assert order.price == calculate_price(dishes)
    assert order.created_at == order.updated_at
    assert {d.dish for d in order.dishes} == {d.id for d in dishes}


def test_new_order_accepts_free_form_type():
    order = new_order(uuid.uuid4(), _dishes(), "ORDER_TYPE_DELIVERY", "any")
    assert order.order_type == "ORDER_TYPE_DELIVERY"


def test_new_order_requires_dishes():
    with pytest.raises(EmptyDishListError):
        new_order(uuid.uuid4(), {}, OrderType.TAKEAWAY, "")


def test_set_num_does_not_change_unnumbered_order():
    order = new_order(uuid.uuid4(), _dishes(), OrderType.DELIVERY, "a")
    order.set_num(42)
    assert order.num == 0


def test_set_num_changes_numbered_order():
    order = new_order(uuid.uuid4(), _dishes(), OrderType.DELIVERY, "a")
    order.num = 1
    order.set_num(42)
    assert order.num == 42


def test_full_lifecycle():
    order = new_order(uuid.uuid4(), _dishes(), OrderType.DELIVERY, "a")
    steps = [
        (order.process, Status.PROCESS, EventType.STATUS_CHANGE),
        (order.send_to_kitchen, Status.ON_KITCHEN, EventType.STATUS_CHANGE),
        (order.start_delivery, Status.DELIVERY, EventType.STATUS_CHANGE),
        (order.complete, Status.DELIVERED, EventType.FINALIZE),
    ]
    for step, status, event_type in steps:
        event = step()
        assert order.status is status
        assert event.event_type is event_type
        assert event.occurred_at == order.updated_at
        assert json.loads(event.payload)["status"] == status.value


@pytest.mark.parametrize("method", ["send_to_kitchen", "start_delivery", "complete"])
def test_out_of_order_transition_raises(method):
    order = new_order(uuid.uuid4(), _dishes(), OrderType.DELIVERY, "a")
    with pytest.raises(InvalidStatusTransitionError):
        getattr(order, method)()
    assert order.status is Status.CREATED


def test_decline_from_created():
    order = new_order(uuid.uuid4(), _dishes(), OrderType.DELIVERY, "a")
    event = order.decline()
    assert order.status is Status.DECLINED
    assert event.event_type is EventType.FINALIZE


def test_decline_twice_raises():
    order = new_order(uuid.uuid4(), _dishes(), OrderType.DELIVERY, "a")
    order.decline()
    with pytest.raises(InvalidStatusTransitionError):
        order.decline()


def test_process_twice_raises():
    order = new_order(uuid.uuid4(), _dishes(), OrderType.DELIVERY, "a")
    order.process()
    with pytest.raises(InvalidStatusTransitionError):
        order.process()


def test_event_payload_omits_zero_number():
    order_id = uuid.UUID(int=1)
    client_id = uuid.UUID(int=2)
    at = datetime(2024, 1, 1, tzinfo=timezone.utc)
    event = new_order_event(order_id, 0, client_id, Status.CREATED, at)
    assert event.payload == (
        b'{"order_id":"00000000-0000-0000-0000-000000000001",'
        b'"client_id":"00000000-0000-0000-0000-000000000002","status":"created"}'
    )
    assert event.event_type is EventType.CREATED
    assert event.occurred_at == at


def test_event_payload_includes_number():
    order_id = uuid.uuid4()
    client_id = uuid.uuid4()
    at = datetime.now(timezone.utc)
    event = new_order_event(order_id, 7, client_id, "process", at)
    body = json.loads(event.payload)
    assert body == {
        "order_id": str(order_id),
        "order_num": 7,
        "client_id": str(client_id),
        "status": "process",
    }
    assert event.event_type is EventType.STATUS_CHANGE


def test_event_payload_omits_empty_status():
    event = new_order_event(uuid.uuid4(), 0, uuid.uuid4(), "", datetime.now(timezone.utc))
    assert "status" not in json.loads(event.payload)
    assert event.event_type is EventType.STATUS_CHANGE