import pytest

from tavola.errors import (
    ApiError,
    DomainError,
    EmptyDishListError,
    InternalError,
    InvalidArgumentError,
    InvalidStatusError,
    InvalidStatusTransitionError,
    InvalidUUIDError,
    StatusCode,
)


@pytest.mark.parametrize(
    "cls, message",
    [
        (InternalError, "internal error"),
        (InvalidArgumentError, "invalid argument"),
        (InvalidUUIDError, "invalid argument: invalid uuid"),
        (EmptyDishListError, "empty dish list"),
        (InvalidStatusError, "invalid status"),
        (InvalidStatusTransitionError, "invalid status transition"),
    ],
)
def test_default_messages(cls, message):
    assert str(cls()) == message


def test_custom_message_replaces_default():
    err = InternalError("bucket missing")
    assert str(err) == "bucket missing"


def test_invalid_uuid_is_an_invalid_argument():
    err = InvalidUUIDError()
    assert isinstance(err, InvalidArgumentError)
    assert str(err) == "invalid argument: invalid uuid"


@pytest.mark.parametrize(
    "cls",
    [InternalError, InvalidArgumentError, EmptyDishListError, InvalidStatusTransitionError],
)
def test_all_domain_errors_share_a_base(cls):
    err = cls("custom")
    assert isinstance(err, DomainError)
    assert str(err) == "custom"


def test_internal_is_not_invalid_argument():
    err = InternalError()
    assert not isinstance(err, InvalidArgumentError)
    assert str(err) == "internal error"


def test_api_error_carries_code_and_message():
    err = ApiError(StatusCode.INTERNAL, "failed to create order")
    assert err.code is StatusCode.INTERNAL
    assert err.message == "failed to create order"
    assert str(err) == "failed to create order"