"""Tests for date windows, rounding helpers and sequence numbers."""

from datetime import date, datetime, timedelta

import pytest
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from apps.memberships.models import Membership, SequenceCounter
from apps.memberships.services import MembershipService
from core.utils.utils import (
    add_months, generate_sequence_number, growth_rate, month_window, percentage,
    previous_window, resolve_window, round_half_up, start_of_day,
)


class TestAddMonths:
    def test_clamps_to_month_end(self):
        assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
        assert add_months(date(2023, 1, 31), 1) == date(2023, 2, 28)

    def test_crosses_year_boundary(self):
        assert add_months(date(2024, 11, 15), 3) == date(2025, 2, 15)
        assert add_months(date(2024, 1, 15), -2) == date(2023, 11, 15)

    def test_keeps_time_of_day(self):
        value = datetime(2024, 3, 31, 14, 30)
        assert add_months(value, 1) == datetime(2024, 4, 30, 14, 30)


class TestNumbers:
    @pytest.mark.parametrize("current, previous, expected", [
        (0, 0, 100),
        (5, 0, 100),
        (150, 100, 50.0),
        (50, 100, -50.0),
        (1, 3, -66.7),
    ])
    def test_growth_rate(self, current, previous, expected):
        assert growth_rate(current, previous) == expected

    def test_percentage_rounds_half_up(self):
        assert percentage(1, 3) == 33
        assert percentage(1, 8) == 13
        assert percentage(5, 0) == 0

    def test_round_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(0.25, 1) == 0.3
        assert isinstance(round_half_up(2.4), int)


class TestWindows:
    def test_previous_window_has_equal_length(self):
        start = start_of_day(date(2024, 3, 11))
        end = start_of_day(date(2024, 3, 21))

        prev_start, prev_end = previous_window(start, end)

        assert prev_start == start_of_day(date(2024, 3, 1))
        assert prev_end == start - timedelta(milliseconds=1)

    def test_month_window_covers_whole_month(self):
        now = timezone.make_aware(datetime(2024, 2, 10, 12, 0))
        start, end = month_window(now)

        assert timezone.localtime(start).date() == date(2024, 2, 1)
        assert timezone.localtime(end).date() == date(2024, 2, 29)

    def test_resolve_window_uses_both_dates(self):
        start, end = resolve_window({"startDate": "2024-01-01", "endDate": "2024-01-31"})

        assert timezone.localtime(start).date() == date(2024, 1, 1)
        assert timezone.localtime(end).date() == date(2024, 1, 31)

    def test_resolve_window_defaults_to_current_month(self):
        assert resolve_window({}) == month_window()

    @pytest.mark.parametrize("params, missing", [
        ({"startDate": "2024-01-01"}, "endDate"),
        ({"end_date": "2024-01-31"}, "startDate"),
    ])
    def test_resolve_window_requires_both_dates(self, params, missing):
        with pytest.raises(ValidationError) as excinfo:
            resolve_window(params)

        assert missing in excinfo.value.detail

    def test_resolve_window_rejects_bad_input(self):
        with pytest.raises(ValidationError):
            resolve_window({"startDate": "2024/01/01", "endDate": "2024-01-31"})
        with pytest.raises(ValidationError):
            resolve_window({"startDate": "2024-02-01", "endDate": "2024-01-31"})


@pytest.mark.django_db
class TestSequenceNumbers:
    def test_counter_increments_per_prefix(self):
        first = generate_sequence_number("MK202401", 3, Membership, "card_number")
        second = generate_sequence_number("MK202401", 3, Membership, "card_number")
        other = generate_sequence_number("MK202402", 3, Membership, "card_number")

        assert (first, second, other) == ("MK202401001", "MK202401002", "MK202402001")
        assert SequenceCounter.objects.get(prefix="MK202401").last_value == 2

    def test_new_counter_is_seeded_from_stored_identifiers(self, issue_card):
        card = issue_card("period")
        prefix = card.card_number[:8]
        Membership.objects.filter(pk=card.pk).update(card_number=f"{prefix}007")
        SequenceCounter.objects.filter(prefix=prefix).delete()

        assert generate_sequence_number(prefix, 3, Membership, "card_number") == f"{prefix}008"

    def test_cards_in_one_month_are_numbered_in_order(self, issue_card):
        numbers = [issue_card("period").card_number for _ in range(3)]
        prefix = "MK" + timezone.localtime(timezone.now()).strftime("%Y%m")

        assert all(number.startswith(prefix) for number in numbers)
        assert [number[-3:] for number in numbers] == ["001", "002", "003"]

    def test_receipts_are_numbered_per_day(self, value_card):
        _, consumption = MembershipService.record_consumption(
            value_card.id, service_name="Tuina", amount="10.00", count=1
        )
        today = timezone.localtime(timezone.now()).strftime("%Y%m%d")

        assert value_card.recharges.get().receipt_number == f"RC{today}0001"
        assert consumption.receipt_number == f"CS{today}0001"
