"""
Unit tests for the period model: parsing, end instants, labels and the
overdue predicate.
"""
from datetime import datetime, timezone

import pytest

from hr_compliance.services.periods import (
    InvalidPeriodIdentifier,
    Period,
    PeriodKind,
    current_indices,
    current_period,
    is_period_overdue,
    parse_period,
    sub_periods,
)


class TestParsePeriod:
    @pytest.mark.parametrize(
        "identifier, kind, year, index",
        [
            ("2024", PeriodKind.YEAR, 2024, 1),
            ("2024-01", PeriodKind.MONTH, 2024, 1),
            ("2024-12", PeriodKind.MONTH, 2024, 12),
            ("2024-Q3", PeriodKind.QUARTER, 2024, 3),
            ("2024-H2", PeriodKind.HALF, 2024, 2),
            ("2025-W07", PeriodKind.WEEK, 2025, 7),
        ],
    )
    def test_valid_identifiers(self, identifier, kind, year, index):
        period = parse_period(identifier)
        assert (period.kind, period.year, period.index) == (kind, year, index)
        assert period.identifier == identifier

    @pytest.mark.parametrize(
        "identifier",
        ["", "24", "abcd", "2024-", "2024-1", "2024-00", "2024-13", "2024-Q0", "2024-Q5",
         "2024-q1", "2024-H0", "2024-H3", "2024-W00", "2024-W54", "2024-Q1-extra", "0000"],
    )
    def test_malformed_identifiers_raise(self, identifier):
        with pytest.raises(InvalidPeriodIdentifier):
            parse_period(identifier)

    def test_non_string_raises(self):
        with pytest.raises(InvalidPeriodIdentifier):
            parse_period(None)

    def test_invalid_identifier_is_a_value_error(self):
        with pytest.raises(ValueError) as exc_info:
            parse_period("2024-Q9")
        assert exc_info.value.identifier == "2024-Q9"
        assert "quarter" in exc_info.value.reason


class TestEndInstant:
    @pytest.mark.parametrize(
        "identifier, expected",
        [
            ("2024-02", datetime(2024, 2, 29, 23, 59, 59)),
            ("2023-02", datetime(2023, 2, 28, 23, 59, 59)),
            ("2024-04", datetime(2024, 4, 30, 23, 59, 59)),
            ("2024-Q1", datetime(2024, 3, 31, 23, 59, 59)),
            ("2024-Q2", datetime(2024, 6, 30, 23, 59, 59)),
            ("2024-Q4", datetime(2024, 12, 31, 23, 59, 59)),
            ("2024-H1", datetime(2024, 6, 30, 23, 59, 59)),
            ("2024-H2", datetime(2024, 12, 31, 23, 59, 59)),
            ("2024", datetime(2024, 12, 31, 23, 59, 59)),
            ("2024-W20", datetime(2024, 5, 19, 23, 59, 59)),
        ],
    )
    def test_last_second_of_period(self, identifier, expected):
        assert parse_period(identifier).end_instant() == expected

    def test_week_53_missing_in_iso_year_falls_back_to_year_end(self):
        # 2024 has only 52 ISO weeks
        assert parse_period("2024-W53").end_instant() == datetime(2024, 12, 31, 23, 59, 59)

    def test_carries_timezone(self):
        end = parse_period("2024-Q1").end_instant(timezone.utc)
        assert end.tzinfo is timezone.utc


class TestLabels:
    def test_quarter_labels(self):
        assert [p.label for p in sub_periods(PeriodKind.QUARTER, 2024)] == [
            "Q1 Jan to Mar",
            "Q2 Apr to Jun",
            "Q3 Jul to Sep",
            "Q4 Oct to Dec",
        ]

    def test_month_labels(self):
        labels = [p.label for p in sub_periods(PeriodKind.MONTH, 2024)]
        assert labels[0] == "Jan" and labels[-1] == "Dec" and len(labels) == 12

    def test_half_labels(self):
        assert [p.label for p in sub_periods(PeriodKind.HALF, 2024)] == ["H1 Jan to Jun", "H2 Jul to Dec"]

    def test_monthly_identifiers_are_zero_padded(self):
        assert sub_periods(PeriodKind.MONTH, 2024)[2].identifier == "2024-03"


class TestCurrent:
    @pytest.mark.parametrize(
        "month, quarter, half",
        [(1, 1, 1), (3, 1, 1), (4, 2, 1), (6, 2, 1), (7, 3, 2), (9, 3, 2), (10, 4, 2), (12, 4, 2)],
    )
    def test_current_indices(self, month, quarter, half):
        cur = current_indices(datetime(2024, month, 15))
        assert (cur.quarter, cur.half) == (quarter, half)

    @pytest.mark.parametrize(
        "frequency, expected",
        [
            ("annual", "2024"),
            ("quarterly", "2024-Q2"),
            ("monthly", "2024-05"),
            ("bi-annual", "2024-H1"),
            ("weekly", "2024-W20"),
        ],
    )
    def test_current_period(self, frequency, expected):
        assert current_period(frequency, datetime(2024, 5, 15)).identifier == expected

    @pytest.mark.parametrize(
        "now, expected, week_end",
        [
            (datetime(2024, 12, 30), "2025-W01", datetime(2025, 1, 5, 23, 59, 59)),
            (datetime(2025, 12, 29), "2026-W01", datetime(2026, 1, 4, 23, 59, 59)),
            (datetime(2021, 1, 1), "2020-W53", datetime(2021, 1, 3, 23, 59, 59)),
        ],
    )
    def test_weekly_period_uses_iso_year(self, now, expected, week_end):
        period = current_period("weekly", now)
        assert period.identifier == expected
        assert parse_period(period.identifier).end_instant() == week_end
        assert now < period.end_instant()

    def test_unknown_frequency_has_no_current_period(self):
        assert current_period("fortnightly", datetime(2024, 5, 15)) is None


class TestIsPeriodOverdue:
    def test_quarter_boundary(self):
        assert is_period_overdue("2024-Q1", "quarterly", datetime(2024, 3, 31, 23, 59, 59)) is False
        assert is_period_overdue("2024-Q1", "quarterly", datetime(2024, 4, 1, 0, 0, 0)) is True

    def test_month_boundary(self):
        assert is_period_overdue("2024-02", "monthly", datetime(2024, 2, 29, 23, 0)) is False
        assert is_period_overdue("2024-02", "monthly", datetime(2024, 3, 1)) is True

    def test_half_boundary(self):
        assert is_period_overdue("2024-H1", "bi-annual", datetime(2024, 6, 30, 12, 0)) is False
        assert is_period_overdue("2024-H1", "bi-annual", datetime(2024, 7, 1)) is True
        assert is_period_overdue("2024-H2", "bi-annual", datetime(2024, 12, 31, 23, 59, 59)) is False

    def test_annual_is_never_overdue_here(self):
        assert is_period_overdue("2020", "annual", datetime(2024, 5, 15)) is False

    def test_timezone_aware_now(self):
        now = datetime(2024, 4, 1, 0, 0, 1, tzinfo=timezone.utc)
        assert is_period_overdue("2024-Q1", "quarterly", now) is True

    def test_malformed_identifier_raises(self):
        with pytest.raises(InvalidPeriodIdentifier):
            is_period_overdue("2024-QX", "quarterly", datetime(2024, 5, 15))

    def test_identifier_must_match_frequency(self):
        with pytest.raises(InvalidPeriodIdentifier):
            is_period_overdue("2024-05", "quarterly", datetime(2024, 5, 15))

    def test_period_value_round_trips_through_str(self):
        assert str(Period(2024, PeriodKind.HALF, 2)) == "2024-H2"
