"""Tests for formatting and datetime helpers."""

from datetime import datetime, timedelta, timezone

import pytest

from core.utils.datetime import ensure_utc, now
from core.utils.formatting import format_currency, format_salary_range, mask_email, slugify


class TestSlugify:

    @pytest.mark.parametrize("title,slug", [
        ("Senior Backend Engineer", "senior-backend-engineer"),
        ("  C++ / Rust Developer!  ", "c-rust-developer"),
        ("QA -- Lead", "qa-lead"),
        ("Data Scientist II", "data-scientist-ii"),
    ])
    def test_slugify(self, title, slug):
        assert slugify(title) == slug


class TestSalary:

    @pytest.mark.parametrize("minimum,maximum,text", [
        (60000, 110000, "$60,000 - $110,000"),
        (60000, None, "From $60,000"),
        (None, 110000, "Up to $110,000"),
        (None, None, ""),
        (90000, 90000, "$90,000"),
    ])
    def test_salary_range(self, minimum, maximum, text):
        assert format_salary_range(minimum, maximum) == text

    def test_other_currencies(self):
        assert format_currency(50000, "EUR") == "€50,000"
        assert format_currency(1500, "CHF") == "CHF 1,500"


class TestMaskEmail:

    def test_local_part_is_masked(self):
        masked = mask_email("maya.okafor@example.com")
        assert masked.endswith("@example.com")
        assert "okafor" not in masked

    def test_non_email_passes_through(self):
        assert mask_email("not an email") == "not an email"


class TestDatetime:

    def test_now_is_utc(self):
        assert now().tzinfo == timezone.utc

    def test_naive_values_are_taken_as_utc(self):
        naive = datetime(2024, 5, 1, 12, 0)
        assert ensure_utc(naive) == datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    def test_aware_values_are_converted(self):
        plus_two = datetime(2024, 5, 1, 14, 0, tzinfo=timezone(timedelta(hours=2)))
        assert ensure_utc(plus_two).hour == 12

    def test_none(self):
        assert ensure_utc(None) is None
