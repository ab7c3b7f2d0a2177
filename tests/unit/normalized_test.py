"""Tests for localized / non-localized field value normalization."""

from typing import Any

import pytest

from cma_blocks.core.normalized import (
    FieldValueEntry,
    every_field_value,
    every_field_value_async,
    filter_field_value,
    filter_field_value_async,
    from_entries,
    is_localized,
    is_localized_field_value,
    map_field_value,
    map_field_value_async,
    some_field_value,
    some_field_value_async,
    to_entries,
    visit_field_value,
    visit_field_value_async,
)
from cma_blocks.errors import FieldValueEntriesError
from cma_blocks.models import Field

LOCALIZED = Field(id="1", api_key="title", field_type="string", localized=True)
PLAIN = Field(id="2", api_key="sku", field_type="string")


def test_is_localized() -> None:
    assert is_localized(LOCALIZED)
    assert not is_localized(PLAIN)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ({"en": "a", "it": "b"}, True),
        ({"en-US": "a", "zh-Hant-TW": "b", "es-419": "c"}, True),
        ({"en": "a", "title": "b"}, False),
        ({}, False),
        (["en"], False),
        ("en", False),
        (None, False),
    ],
)
def test_is_localized_field_value(value: Any, expected: bool) -> None:
    assert is_localized_field_value(value) is expected


class TestEntries:
    def test_localized_entries_keep_mapping_order(self) -> None:
        assert to_entries(LOCALIZED, {"it": "Ciao", "en": "Hi"}) == [
            FieldValueEntry("it", "Ciao"),
            FieldValueEntry("en", "Hi"),
        ]

    def test_non_localized_is_a_single_entry(self) -> None:
        assert to_entries(PLAIN, {"en": "not a locale map"}) == [FieldValueEntry(None, {"en": "not a locale map"})]

    def test_localized_none_has_no_entries(self) -> None:
        assert to_entries(LOCALIZED, None) == []

    def test_from_entries_inverts_to_entries(self) -> None:
        value = {"en": "Hi", "it": "Ciao"}
        assert from_entries(LOCALIZED, to_entries(LOCALIZED, value)) == value
        assert from_entries(PLAIN, to_entries(PLAIN, "ABC-1")) == "ABC-1"

    def test_from_zero_entries(self) -> None:
        assert from_entries(LOCALIZED, []) == {}
        with pytest.raises(FieldValueEntriesError, match="at least one entry"):
            from_entries(PLAIN, [])


class TestCombinators:
    def test_map(self) -> None:
        assert map_field_value(LOCALIZED, {"en": "hi", "it": "ciao"}, lambda locale, v: f"{locale}:{v}") == {
            "en": "en:hi",
            "it": "it:ciao",
        }
        assert map_field_value(PLAIN, "abc", lambda locale, v: (locale, v.upper())) == (None, "ABC")

    def test_filter(self) -> None:
        assert filter_field_value(LOCALIZED, {"en": "hi", "it": ""}, lambda _locale, v: bool(v)) == {"en": "hi"}
        assert filter_field_value(PLAIN, "abc", lambda _locale, v: v == "abc") == "abc"
        assert filter_field_value(PLAIN, "abc", lambda _locale, v: False) is None

    def test_some_and_every(self) -> None:
        value = {"en": "hi", "it": ""}
        assert some_field_value(LOCALIZED, value, lambda _locale, v: v == "")
        assert not every_field_value(LOCALIZED, value, lambda _locale, v: bool(v))
        assert every_field_value(LOCALIZED, {}, lambda _locale, v: False)
        assert not some_field_value(PLAIN, "x", lambda _locale, v: v == "y")

    def test_visit(self) -> None:
        seen: list[tuple] = []
        visit_field_value(LOCALIZED, {"en": 1, "it": 2}, lambda locale, v: seen.append((locale, v)))
        assert seen == [("en", 1), ("it", 2)]


class TestAsyncCombinators:
    @pytest.mark.asyncio
    async def test_map_runs_locales_in_order(self) -> None:
        order: list[str] = []

        async def _mapper(locale: str | None, value: Any) -> Any:
            order.append(locale)
            return value * 2

        assert await map_field_value_async(LOCALIZED, {"en": 1, "it": 2, "de": 3}, _mapper) == {
            "en": 2,
            "it": 4,
            "de": 6,
        }
        assert order == ["en", "it", "de"]

    @pytest.mark.asyncio
    async def test_filter(self) -> None:
        async def _positive(_locale: str | None, value: Any) -> bool:
            return value > 0

        assert await filter_field_value_async(LOCALIZED, {"en": 1, "it": -1}, _positive) == {"en": 1}
        assert await filter_field_value_async(PLAIN, -5, _positive) is None

    @pytest.mark.asyncio
    async def test_some_every_visit(self) -> None:
        seen: list[Any] = []

        async def _visit(locale: str | None, value: Any) -> None:
            seen.append(value)

        async def _positive(_locale: str | None, value: Any) -> bool:
            return value > 0

        await visit_field_value_async(PLAIN, 3, _visit)
        assert seen == [3]
        assert await some_field_value_async(LOCALIZED, {"en": -1, "it": 1}, _positive)
        assert not await every_field_value_async(LOCALIZED, {"en": -1, "it": 1}, _positive)
