import inspect
from collections.abc import Awaitable
from typing import TypeVar

T = TypeVar("T")


async def resolve(value: T | Awaitable[T]) -> T:
    """Await ``value`` if the callback handed back an awaitable, else return it."""
    if inspect.isawaitable(value):
        return await value
    return value
