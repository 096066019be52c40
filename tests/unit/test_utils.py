"""Unit tests for sitescrape.utils helpers."""

from __future__ import annotations

import pytest

from sitescrape.utils import boolify, clean_whitespace, email_from_mailto, listify, merge, phone_from_tel, sleep_ms


class TestListify:
    def test_none(self) -> None:
        assert listify(None) == []

    def test_scalars_and_strings(self) -> None:
        assert listify(3) == [3]
        assert listify("https://example.test/") == ["https://example.test/"]
        assert listify({"url": "x"}) == [{"url": "x"}]

    def test_sequences_are_copied(self) -> None:
        original = [1, 2]
        result = listify(original)
        assert result == [1, 2]
        assert result is not original
        assert listify((1, 2)) == [1, 2]


class TestSmallHelpers:
    def test_boolify(self) -> None:
        assert boolify(None, True) is True
        assert boolify(0, True) is False
        assert boolify("yes", False) is True

    def test_merge_skips_none(self) -> None:
        assert merge({"a": 1}, None, {"a": 2, "b": 3}) == {"a": 2, "b": 3}
        assert merge() == {}

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("  A\tB\n  C  ", "A B C"),
            ("single", "single"),
            ("", ""),
            (None, None),
        ],
    )
    def test_clean_whitespace(self, raw, expected) -> None:
        assert clean_whitespace(raw) == expected

    def test_email_from_mailto(self) -> None:
        assert email_from_mailto("mailto:Ada@Example.test?subject=hi") == "ada@example.test"
        assert email_from_mailto("https://example.test/") is None
        assert email_from_mailto("mailto:") is None
        assert email_from_mailto(None) is None

    def test_phone_from_tel(self) -> None:
        assert phone_from_tel("tel:+1-555-0100") == "+1-555-0100"
        assert phone_from_tel("mailto:x@y.test") is None
        assert phone_from_tel(None) is None

    @pytest.mark.anyio
    async def test_sleep_ms_zero_returns(self) -> None:
        await sleep_ms(0)
        await sleep_ms(-5)
