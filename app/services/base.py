"""Service helpers - ApiError to Result conversion and grouping."""

import functools
from collections import defaultdict
from collections.abc import Awaitable, Callable, Iterable
from typing import Any, ParamSpec, TypeVar

from loguru import logger

from app.models.common import Err, Ok, Result
from ballot_client.errors import ApiError, ErrorKind

P = ParamSpec("P")
T = TypeVar("T")


def as_result(action: str) -> Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[Result[T]]]]:
    """Run a coroutine and wrap its value in Ok, or its ApiError in Err."""

    def decorator(fn: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[Result[T]]]:
        @functools.wraps(fn)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> Result[T]:
            try:
                return Ok(await fn(*args, **kwargs))
            except ApiError as e:
                if e.kind is ErrorKind.ALREADY_VOTED:
                    logger.info("{}: {}", action, e.message)
                else:
                    logger.error("{} failed: {} [{}]", action, e.message, e.kind)
                return Err.from_api(e)

        return wrapper

    return decorator


def invalid(message: str) -> ApiError:
    """Client-side validation failure."""
    return ApiError(ErrorKind.INVALID_DATA, message, 422)


def not_found(what: str) -> ApiError:
    return ApiError(ErrorKind.UNKNOWN_ERROR, f"{what} not found", 404)


def group_by_position(items: Iterable[Any]) -> dict[str, list[Any]]:
    """Group rows by their `position`, keeping input order."""
    grouped: dict[str, list[Any]] = defaultdict(list)
    for item in items:
        grouped[item.position].append(item)
    return dict(grouped)
