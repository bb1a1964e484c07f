"""
Frequency grammar and calendar step arithmetic.

Contract:
    ``parse_frequency(text)`` turns a compact frequency string such as
    ``"1y2mo3w4d"`` into a ``FrequencyOffset``.  ``next_date(d, offset)``
    applies one step of that offset to a calendar day.  Both are PURE.

Architecture: ledger_scheduling/domain.  ZERO I/O.

Grammar:
    ``(\\d*y)?(\\d*mo)?(\\d*w)?(\\d*d)?`` matched from the start of the text.
    Weeks fold into days (``weeks * 7 + days``).  A unit without digits
    counts as zero.  Trailing text after the longest matching prefix is
    ignored in permissive mode.

Invariants enforced:
    - Permissive parsing never raises; unmatched text yields the zero offset.
    - One step adds years, then months, then days, in that order.  Month
      and year overflow clamp to the last day of the target month.
    - Approximate day counts are for reporting ratios only and never feed
      date arithmetic.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal

from dateutil.relativedelta import relativedelta

from ledger_kernel.exceptions import InvalidFrequencyError

DAYS_PER_YEAR = 365
DAYS_PER_MONTH = Decimal("30.4167")

_FREQUENCY_RE = re.compile(r"(?:(\d*)y)?(?:(\d*)mo)?(?:(\d*)w)?(?:(\d*)d)?")


@dataclass(frozen=True)
class FrequencyOffset:
    """Composite calendar offset.  ``days`` already includes week units."""

    years: int = 0
    months: int = 0
    days: int = 0

    @property
    def is_zero(self) -> bool:
        return self.years == 0 and self.months == 0 and self.days == 0

    def to_string(self) -> str:
        """Canonical frequency text; the zero offset renders as ``"0d"``."""
        if self.is_zero:
            return "0d"
        parts = []
        if self.years:
            parts.append(f"{self.years}y")
        if self.months:
            parts.append(f"{self.months}mo")
        if self.days:
            parts.append(f"{self.days}d")
        return "".join(parts)

    def __str__(self) -> str:
        return self.to_string()


ZERO_OFFSET = FrequencyOffset()


def _group_value(raw: str | None) -> int:
    return int(raw) if raw else 0


def parse_frequency(text: str | None, *, strict: bool = False) -> FrequencyOffset:
    """Parse frequency text into a ``FrequencyOffset``.

    Permissive by default: empty, ``None`` or unrecognised text becomes the
    zero offset, which callers treat as "no recurrence".

    With ``strict=True`` the whole text must match the grammar and describe
    a non-zero offset.

    Raises:
        InvalidFrequencyError: strict mode only.
    """
    source = (text or "").strip()
    match = _FREQUENCY_RE.match(source)
    years_raw, months_raw, weeks_raw, days_raw = match.groups()

    offset = FrequencyOffset(
        years=_group_value(years_raw),
        months=_group_value(months_raw),
        days=_group_value(weeks_raw) * 7 + _group_value(days_raw),
    )

    if strict and (match.end() != len(source) or offset.is_zero):
        raise InvalidFrequencyError(text)
    return offset


def to_approximate_days(offset: FrequencyOffset) -> Decimal:
    """Approximate length of one step in days: ``y*365 + mo*30.4167 + d``."""
    return offset.years * DAYS_PER_YEAR + offset.months * DAYS_PER_MONTH + offset.days


def monthly_factor(offset: FrequencyOffset | None) -> Decimal:
    """How many steps of ``offset`` fit in an average month.

    A missing or zero offset counts as a single occurrence (factor 1).
    """
    if offset is None or offset.is_zero:
        return Decimal(1)
    return DAYS_PER_MONTH / to_approximate_days(offset)


def normalize_date(value: date | datetime) -> date:
    """Reduce a datetime to its calendar day; dates pass through."""
    if isinstance(value, datetime):
        return value.date()
    return value


def next_date(current: date | datetime, offset: FrequencyOffset) -> date:
    """Apply one step of ``offset`` to ``current``.

    Years are added first, then months, then days.  The order matters:
    ``2024-02-29 + 1y1mo`` is ``2025-03-28`` because the year step clamps to
    Feb 28 before the month step runs.  The zero offset returns the same day.
    """
    result = normalize_date(current)
    if offset.years:
        result = result + relativedelta(years=offset.years)
    if offset.months:
        result = result + relativedelta(months=offset.months)
    if offset.days:
        result = result + timedelta(days=offset.days)
    return result
