"""
Billing period resolution.

A billing period is a calendar month written as ``YYYY-MM``. The text form
sorts chronologically, so periods can be compared and ordered as strings.

Clocks:
    SystemClock: Current month in the configured TIME_ZONE
    FixedClock: Always returns the same period (tests, back-fills)

Usage:
    from billing.periods import SystemClock, parse_period

    period = SystemClock().current_period()  # "2025-03"
    period = parse_period("2025-03")         # validated operator input
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from django.utils import timezone

from billing.exceptions import InvalidPeriod

if TYPE_CHECKING:
    from datetime import date

PERIOD_FORMAT = "%Y-%m"

_PERIOD_RE = re.compile(r"^(?P<year>\d{4})-(?P<month>0[1-9]|1[0-2])$", re.ASCII)


def format_period(day: date) -> str:
    """Return the ``YYYY-MM`` period containing ``day``."""
    return day.strftime(PERIOD_FORMAT)


def parse_period(value: str) -> str:
    """
    Validate a ``YYYY-MM`` period string.

    Args:
        value: Period text, surrounding whitespace is ignored

    Returns:
        The normalized period string

    Raises:
        InvalidPeriod: If the value is not a valid calendar month
    """
    text = value.strip() if isinstance(value, str) else ""
    match = _PERIOD_RE.match(text)
    if not match or int(match.group("year")) < 1:
        raise InvalidPeriod(
            f"Invalid billing period {value!r}, expected YYYY-MM",
            details={"period": str(value)},
        )
    return text


class SystemClock:
    """
    Wall-clock billing period.

    Uses the local date in settings.TIME_ZONE, so the month boundary
    follows the tuition center's time zone rather than UTC.
    """

    def current_period(self) -> str:
        return format_period(timezone.localdate())


class FixedClock:
    """Clock that always reports the same period."""

    def __init__(self, period: str):
        self.period = parse_period(period)

    def current_period(self) -> str:
        return self.period
