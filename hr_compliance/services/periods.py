# hr_compliance/services/periods.py
from __future__ import annotations

import calendar
import re
from dataclasses import dataclass
from datetime import date, datetime, tzinfo
from enum import Enum
from typing import List, NamedTuple, Optional


# ---- Frequencies -------------------------------------------------------------
ANNUAL = "annual"
QUARTERLY = "quarterly"
MONTHLY = "monthly"
BI_ANNUAL = "bi-annual"
WEEKLY = "weekly"


class PeriodKind(str, Enum):
    YEAR = "year"
    MONTH = "month"
    QUARTER = "quarter"
    HALF = "half"
    WEEK = "week"


# Frequencies that are tracked per sub-period of the year (timeline view)
SUBDIVIDED_FREQUENCIES = {
    QUARTERLY: PeriodKind.QUARTER,
    MONTHLY: PeriodKind.MONTH,
    BI_ANNUAL: PeriodKind.HALF,
}

_SUB_PERIOD_COUNT = {
    PeriodKind.QUARTER: 4,
    PeriodKind.MONTH: 12,
    PeriodKind.HALF: 2,
}


# ---- Labels (fixed) ----------------------------------------------------------
QUARTER_LABELS = {
    1: "Q1 Jan to Mar",
    2: "Q2 Apr to Jun",
    3: "Q3 Jul to Sep",
    4: "Q4 Oct to Dec",
}
MONTH_LABELS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
HALF_LABELS = {
    1: "H1 Jan to Jun",
    2: "H2 Jul to Dec",
}


class InvalidPeriodIdentifier(ValueError):
    """Raised for period identifiers outside the YYYY[-MM|-Qn|-Hn|-Www] scheme."""

    def __init__(self, identifier: object, reason: str = "unrecognised format"):
        self.identifier = identifier
        self.reason = reason
        super().__init__(f"Invalid period identifier {identifier!r}: {reason}")


# YYYY | YYYY-MM | YYYY-Qn | YYYY-Hn | YYYY-Www
_PERIOD_RE = re.compile(
    r"^(?P<year>\d{4})"
    r"(?:-(?:(?P<month>\d{2})|Q(?P<quarter>\d)|H(?P<half>\d)|W(?P<week>\d{2})))?$"
)


@dataclass(frozen=True)
class Period:
    year: int
    kind: PeriodKind
    index: int = 1  # 1 for YEAR

    @property
    def identifier(self) -> str:
        if self.kind is PeriodKind.YEAR:
            return f"{self.year}"
        if self.kind is PeriodKind.MONTH:
            return f"{self.year}-{self.index:02d}"
        if self.kind is PeriodKind.QUARTER:
            return f"{self.year}-Q{self.index}"
        if self.kind is PeriodKind.HALF:
            return f"{self.year}-H{self.index}"
        return f"{self.year}-W{self.index:02d}"

    @property
    def label(self) -> str:
        if self.kind is PeriodKind.MONTH:
            return MONTH_LABELS[self.index - 1]
        if self.kind is PeriodKind.QUARTER:
            return QUARTER_LABELS[self.index]
        if self.kind is PeriodKind.HALF:
            return HALF_LABELS[self.index]
        if self.kind is PeriodKind.WEEK:
            return f"Week {self.index:02d}"
        return str(self.year)

    def _last_day(self) -> date:
        if self.kind is PeriodKind.WEEK:
            try:
                return date.fromisocalendar(self.year, self.index, 7)
            except ValueError:
                # W53 in a year without one
                return date(self.year, 12, 31)

        if self.kind is PeriodKind.MONTH:
            last_month = self.index
        elif self.kind is PeriodKind.QUARTER:
            last_month = self.index * 3
        elif self.kind is PeriodKind.HALF:
            last_month = 6 if self.index == 1 else 12
        else:
            last_month = 12
        return date(self.year, last_month, calendar.monthrange(self.year, last_month)[1])

    def end_instant(self, tz: Optional[tzinfo] = None) -> datetime:
        """Last second of the period: 23:59:59 on its last day (in tz, naive if None)."""
        d = self._last_day()
        return datetime(d.year, d.month, d.day, 23, 59, 59, tzinfo=tz)

    def __str__(self) -> str:
        return self.identifier


def parse_period(identifier: str) -> Period:
    """
    Parse a period identifier into a tagged Period.
    Raises InvalidPeriodIdentifier for anything outside the scheme, including
    out-of-range sub-period numbers ("2024-13", "2024-Q5", "2024-H3").
    """
    if not isinstance(identifier, str):
        raise InvalidPeriodIdentifier(identifier, "not a string")

    m = _PERIOD_RE.match(identifier.strip())
    if not m:
        raise InvalidPeriodIdentifier(identifier)

    year = int(m.group("year"))
    if year < 1:
        raise InvalidPeriodIdentifier(identifier, "year out of range")

    if m.group("month") is not None:
        kind, index, upper = PeriodKind.MONTH, int(m.group("month")), 12
    elif m.group("quarter") is not None:
        kind, index, upper = PeriodKind.QUARTER, int(m.group("quarter")), 4
    elif m.group("half") is not None:
        kind, index, upper = PeriodKind.HALF, int(m.group("half")), 2
    elif m.group("week") is not None:
        kind, index, upper = PeriodKind.WEEK, int(m.group("week")), 53
    else:
        return Period(year=year, kind=PeriodKind.YEAR)

    if not 1 <= index <= upper:
        raise InvalidPeriodIdentifier(identifier, f"{kind.value} must be between 1 and {upper}")
    return Period(year=year, kind=kind, index=index)


# ---- "Now" helpers -----------------------------------------------------------
class CurrentIndices(NamedTuple):
    year: int
    month: int
    quarter: int
    half: int
    week: int


def iso_week(now: datetime | date) -> int:
    return now.isocalendar()[1]


def current_indices(now: datetime) -> CurrentIndices:
    month = now.month
    return CurrentIndices(
        year=now.year,
        month=month,
        quarter=(month + 2) // 3,
        half=1 if month <= 6 else 2,
        week=iso_week(now),
    )


def current_index(kind: PeriodKind, cur: CurrentIndices) -> int:
    if kind is PeriodKind.MONTH:
        return cur.month
    if kind is PeriodKind.QUARTER:
        return cur.quarter
    if kind is PeriodKind.HALF:
        return cur.half
    if kind is PeriodKind.WEEK:
        return cur.week
    return 1


def sub_periods(kind: PeriodKind, year: int) -> List[Period]:
    """All sub-periods of `year` for a subdivided kind, ascending."""
    return [Period(year=year, kind=kind, index=i) for i in range(1, _SUB_PERIOD_COUNT[kind] + 1)]


_FREQUENCY_KIND = {
    ANNUAL: PeriodKind.YEAR,
    QUARTERLY: PeriodKind.QUARTER,
    MONTHLY: PeriodKind.MONTH,
    BI_ANNUAL: PeriodKind.HALF,
    WEEKLY: PeriodKind.WEEK,
}


def current_period(frequency: str, now: datetime) -> Optional[Period]:
    """
    The period `now` falls into for a frequency; None for unknown frequencies.
    Weekly periods use the ISO year, so 2024-12-30 is "2025-W01".
    """
    kind = _FREQUENCY_KIND.get(frequency)
    if kind is None:
        return None
    if kind is PeriodKind.WEEK:
        iso_year, week, _ = now.isocalendar()
        return Period(year=iso_year, kind=kind, index=week)
    cur = current_indices(now)
    return Period(year=cur.year, kind=kind, index=current_index(kind, cur))


# ---- Overdue predicate -------------------------------------------------------
def is_past_end(period: Period, now: datetime) -> bool:
    return now > period.end_instant(now.tzinfo)


def is_period_overdue(period_identifier: str, frequency: str, now: datetime) -> bool:
    """
    True once `now` is past the last second of a monthly/quarterly/bi-annual
    period. Annual and other frequencies are never overdue here.

    Raises InvalidPeriodIdentifier for malformed identifiers or ones whose
    shape does not belong to `frequency`.
    """
    period = parse_period(period_identifier)
    kind = SUBDIVIDED_FREQUENCIES.get(frequency)
    if kind is None:
        return False
    if period.kind is not kind:
        raise InvalidPeriodIdentifier(
            period_identifier, f"not a {frequency} period"
        )
    return is_past_end(period, now)
