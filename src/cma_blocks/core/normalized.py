"""Uniform handling of localized and non-localized field values.

A localized field stores ``{"en": value, "it": value}``; a non-localized one
stores the value directly. ``to_entries`` turns either form into a list of
``FieldValueEntry(locale, value)`` (``locale`` is ``None`` for non-localized
fields) and ``from_entries`` turns such a list back. Every combinator below
is written in terms of those two functions, with callbacks receiving
``(locale, value)``.
"""

from __future__ import annotations

import re
from collections.abc import Awaitable, Callable, Iterable, Mapping
from typing import Any, NamedTuple, TypeVar

from cma_blocks.core.awaitables import resolve
from cma_blocks.errors import FieldValueEntriesError
from cma_blocks.models import Field

R = TypeVar("R")

LOCALE_PATTERN = re.compile(r"^[A-Za-z]{2,4}(-[A-Za-z]{4})?(-([A-Za-z]{2}|[0-9]{3}))?$")

EntryCallback = Callable[[str | None, Any], R]
AsyncEntryCallback = Callable[[str | None, Any], R | Awaitable[R]]


class FieldValueEntry(NamedTuple):
    locale: str | None
    value: Any


def is_localized(field: Field) -> bool:
    return field.localized


def is_localized_field_value(value: Any) -> bool:
    """Guess whether ``value`` is locale-keyed: a non-empty mapping whose keys all look like locale codes."""
    if not isinstance(value, Mapping) or not value:
        return False
    return all(isinstance(key, str) and LOCALE_PATTERN.match(key) for key in value)


def to_entries(field: Field, value: Any) -> list[FieldValueEntry]:
    if is_localized(field):
        return [FieldValueEntry(locale, locale_value) for locale, locale_value in (value or {}).items()]
    return [FieldValueEntry(None, value)]


def from_entries(field: Field, entries: Iterable[FieldValueEntry]) -> Any:
    entries = list(entries)
    if is_localized(field):
        return {locale: value for locale, value in entries}
    if not entries:
        raise FieldValueEntriesError("There must be at least one entry")
    return entries[0].value


def _unwrap_filtered(field: Field, kept: list[FieldValueEntry]) -> Any:
    if is_localized(field):
        return from_entries(field, kept)
    return kept[0].value if kept else None


def map_field_value(field: Field, value: Any, mapper: EntryCallback[Any]) -> Any:
    return from_entries(
        field, [FieldValueEntry(locale, mapper(locale, v)) for locale, v in to_entries(field, value)]
    )


async def map_field_value_async(field: Field, value: Any, mapper: AsyncEntryCallback[Any]) -> Any:
    mapped = []
    for locale, v in to_entries(field, value):
        mapped.append(FieldValueEntry(locale, await resolve(mapper(locale, v))))
    return from_entries(field, mapped)


def filter_field_value(field: Field, value: Any, predicate: EntryCallback[bool]) -> Any:
    """Drop the locales failing ``predicate``; a rejected non-localized value becomes ``None``."""
    kept = [entry for entry in to_entries(field, value) if predicate(entry.locale, entry.value)]
    return _unwrap_filtered(field, kept)


async def filter_field_value_async(field: Field, value: Any, predicate: AsyncEntryCallback[bool]) -> Any:
    kept = []
    for entry in to_entries(field, value):
        if await resolve(predicate(entry.locale, entry.value)):
            kept.append(entry)
    return _unwrap_filtered(field, kept)


def some_field_value(field: Field, value: Any, predicate: EntryCallback[bool]) -> bool:
    return any(predicate(locale, v) for locale, v in to_entries(field, value))


async def some_field_value_async(field: Field, value: Any, predicate: AsyncEntryCallback[bool]) -> bool:
    for locale, v in to_entries(field, value):
        if await resolve(predicate(locale, v)):
            return True
    return False


def every_field_value(field: Field, value: Any, predicate: EntryCallback[bool]) -> bool:
    return all(predicate(locale, v) for locale, v in to_entries(field, value))


async def every_field_value_async(field: Field, value: Any, predicate: AsyncEntryCallback[bool]) -> bool:
    for locale, v in to_entries(field, value):
        if not await resolve(predicate(locale, v)):
            return False
    return True


def visit_field_value(field: Field, value: Any, visitor: EntryCallback[None]) -> None:
    for locale, v in to_entries(field, value):
        visitor(locale, v)


async def visit_field_value_async(field: Field, value: Any, visitor: AsyncEntryCallback[None]) -> None:
    for locale, v in to_entries(field, value):
        await resolve(visitor(locale, v))
