"""Server-side call interceptors: logging, panic recovery and dish metrics."""

from __future__ import annotations

import functools
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from tavola.errors import ApiError, StatusCode
from tavola.metrics import DishMetrics

ZERO_TRACE_ID = "0" * 32

CREATE_DISH = "/menu.MenuService/CreateDish"
UPDATE_DISH = "/menu.MenuService/UpdateDish"
GET_DISH = "/menu.MenuService/GetDish"
LIST_DISHES = "/menu.MenuService/ListDishes"

Handler = Callable[[Any], Any]
Interceptor = Callable[[Any, "CallInfo", Handler], Any]


@dataclass(frozen=True)
class CallInfo:
    """What an interceptor knows about the call being served."""

    full_method: str
    trace_id: str = ZERO_TRACE_ID


def _step(interceptor: Interceptor, info: CallInfo, next_handler: Handler, request: Any) -> Any:
    return interceptor(request, info, next_handler)


def chain(handler: Handler, *interceptors: Interceptor) -> Callable[[Any, CallInfo], Any]:
    """Wrap a handler so that the first interceptor given runs outermost."""

    def call(request: Any, info: CallInfo) -> Any:
        wrapped = handler
        for interceptor in reversed(interceptors):
            wrapped = functools.partial(_step, interceptor, info, wrapped)
        return wrapped(request)

    return call


def logging_interceptor(log: logging.Logger) -> Interceptor:
    """Log each request, then its response or its failure."""

    def intercept(request: Any, info: CallInfo, handler: Handler) -> Any:
        log.info(
            "REQ",
            extra={"method": info.full_method, "request": request, "trace_id": info.trace_id},
        )
        try:
            response = handler(request)
        except Exception as exc:
            log.error(
                "REQ FAIL",
                extra={"method": info.full_method, "error": exc, "trace_id": info.trace_id},
            )
            raise
        log.info(
            "RESP",
            extra={"method": info.full_method, "response": response, "trace_id": info.trace_id},
        )
        return response

    return intercept


def recovery_interceptor(log: logging.Logger) -> Interceptor:
    """Turn unexpected exceptions into an INTERNAL error; RPC errors pass through."""

    def intercept(request: Any, info: CallInfo, handler: Handler) -> Any:
        try:
            return handler(request)
        except ApiError:
            raise
        except Exception as exc:
            log.error("Recovered from panic", extra={"panic": exc})
            raise ApiError(StatusCode.INTERNAL, "internal error") from exc

    return intercept


def record_basic_metrics(
    metrics: DishMetrics, method: str, duration: float, error: BaseException | None
) -> None:
    """Record duration and outcome of a menu call; other methods are ignored."""
    if method == CREATE_DISH:
        metrics.record_dish_create_duration(duration, 0)
        if error is None:
            metrics.record_dish_created(0)
    elif method == UPDATE_DISH:
        metrics.record_dish_update_duration(duration, 0)
        if error is None:
            metrics.record_dish_updated(0)
    elif method == GET_DISH:
        metrics.record_dish_get_duration(duration)
    elif method == LIST_DISHES:
        metrics.record_dish_list_duration(duration, None)
        metrics.record_dish_listed(None, False)


def metrics_interceptor(metrics: DishMetrics) -> Interceptor:
    """Time each call and record it in the dish metrics."""

    def intercept(request: Any, info: CallInfo, handler: Handler) -> Any:
        start = time.perf_counter()
        error: BaseException | None = None
        try:
            return handler(request)
        except Exception as exc:
            error = exc
            raise
        finally:
            record_basic_metrics(metrics, info.full_method, time.perf_counter() - start, error)

    return intercept