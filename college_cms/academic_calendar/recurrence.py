"""
Recurrence rules for calendar events.

Rules are stored as RFC 5545 text, e.g.::

    RRULE:FREQ=WEEKLY;INTERVAL=1;BYDAY=MO

Everything that touches python-dateutil lives in this module. The rest of the
calendar only sees RecurrenceSpec objects and plain datetimes.

All datetimes handled here are naive and interpreted as UTC.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Optional

from dateutil.rrule import rrulestr

logger = logging.getLogger(__name__)

# Accepted spellings of a weekday -> RFC 5545 two-letter code
WEEKDAY_CODES = {
    "MO": "MO", "MON": "MO", "MONDAY": "MO",
    "TU": "TU", "TUE": "TU", "TUES": "TU", "TUESDAY": "TU",
    "WE": "WE", "WED": "WE", "WEDNESDAY": "WE",
    "TH": "TH", "THU": "TH", "THUR": "TH", "THURS": "TH", "THURSDAY": "TH",
    "FR": "FR", "FRI": "FR", "FRIDAY": "FR",
    "SA": "SA", "SAT": "SA", "SATURDAY": "SA",
    "SU": "SU", "SUN": "SU", "SUNDAY": "SU",
}

_UNTIL_FORMAT = "%Y%m%dT%H%M%S"

DEFAULT_MAX_OCCURRENCES = 1000


class RecurrenceRuleError(ValueError):
    """Raised when a recurrence rule cannot be parsed."""


@dataclass(frozen=True)
class RecurrenceSpec:
    """A parsed rule anchored at the start of its first occurrence."""

    rule: str
    dtstart: datetime
    _ruleset: Any = field(repr=False, compare=False, default=None)


def normalize_weekday(day_of_week: str) -> str:
    """
    Map 'Monday', 'mon' or 'MO' to 'MO'.

    Unknown values are returned upper-cased and stripped, so the rule built
    from them fails to parse later instead of silently meaning another day.
    """
    key = (day_of_week or "").strip().upper()
    return WEEKDAY_CODES.get(key, key.replace(" ", ""))


def weekly_rule(day_of_week: str, until: Optional[datetime] = None) -> str:
    """Build the weekly rule for a timetable slot meeting on ``day_of_week``."""
    rule = f"RRULE:FREQ=WEEKLY;BYDAY={normalize_weekday(day_of_week)}"
    if until is not None:
        rule += f";UNTIL={until.strftime(_UNTIL_FORMAT)}"
    return rule


def parse(rule: Optional[str], dtstart: datetime) -> RecurrenceSpec:
    """
    Parse ``rule`` anchored at ``dtstart``.

    Raises RecurrenceRuleError for blank or malformed rules, and for rules
    with a zero or negative INTERVAL, which dateutil accepts but cannot expand.
    """
    text = (rule or "").strip()
    if not text:
        raise RecurrenceRuleError("Empty recurrence rule")
    try:
        ruleset = rrulestr(text, dtstart=dtstart, forceset=True)
    except (ValueError, TypeError, KeyError) as e:
        raise RecurrenceRuleError(f"Invalid recurrence rule {text!r}: {e}") from e
    for r in ruleset._rrule:
        if r._interval < 1:
            raise RecurrenceRuleError(f"Invalid recurrence rule {text!r}: INTERVAL must be at least 1")
    return RecurrenceSpec(rule=text, dtstart=dtstart, _ruleset=ruleset)


def occurrences_between(spec: RecurrenceSpec, start: datetime, end: datetime,
                        limit: int = DEFAULT_MAX_OCCURRENCES) -> List[datetime]:
    """
    Start instants of occurrences in [start, end], both ends inclusive.

    At most ``limit`` instants are returned; the rest of the window is dropped
    with a warning.
    """
    if end < start:
        return []
    occurrences = []
    try:
        for occurrence in spec._ruleset.xafter(start, inc=True):
            if occurrence > end:
                break
            if len(occurrences) >= limit:
                logger.warning(
                    "Rule %r has more than %d occurrences between %s and %s; truncating",
                    spec.rule, limit, start, end,
                )
                break
            occurrences.append(occurrence)
    except (TypeError, ValueError, OverflowError) as e:
        # TypeError: naive/aware mix between the rule (e.g. a DTSTART with TZID) and the window
        raise RecurrenceRuleError(f"Cannot expand recurrence rule {spec.rule!r}: {e}") from e
    logger.debug("Rule %r: %d occurrences between %s and %s", spec.rule, len(occurrences), start, end)
    return occurrences
