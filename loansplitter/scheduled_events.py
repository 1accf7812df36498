"""
scheduled_events.py - Deferred ("maybe") Events

A MaybeEvent is a unit of deferred work: a check date plus a factory that is
evaluated lazily, at its turn in the replay, against the state as it is then.
The factory may decline by returning None, in which case the maybe-event is
simply dropped.

Core concepts:
1. MaybeEvent: Immutable (check_date, factory) pair, no threads or timers
2. Month-end helpers: Date arithmetic used by recurring loan payments
"""

from __future__ import annotations
import calendar
from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING, Callable, Optional

if TYPE_CHECKING:
    from .events import Event
    from .state import State


# Factory type: (state at fire time) -> Event or None
EventFactory = Callable[['State'], Optional['Event']]


# ============================================================================
# MAYBE EVENT
# ============================================================================

@dataclass(frozen=True, slots=True, eq=False)
class MaybeEvent:
    """
    Deferred, conditionally-realized event.

    Compared by identity: two maybe-events with the same date are still two
    separate pieces of pending work.

    Attributes:
        check_date: Earliest date at which the factory is consulted. The
            replay fires it only once no user event on or before this date
            is left.
        factory: Called with the then-current State; returns the Event to
            apply or None to decline.
        description: Label used in verbose replay output.
    """
    check_date: date
    factory: EventFactory
    description: str = ""

    def evaluate(self, state: 'State') -> Optional['Event']:
        """Run the factory against state."""
        return self.factory(state)

    def __repr__(self) -> str:
        label = f" {self.description}" if self.description else ""
        return f"MaybeEvent({self.check_date.isoformat()}{label})"


# ============================================================================
# DATE HELPERS
# ============================================================================

def last_day_of_month(year: int, month: int) -> date:
    """Last calendar day of the given month."""
    return date(year, month, calendar.monthrange(year, month)[1])


def last_day_of_next_month(current: date) -> date:
    """
    Last calendar day of the month after current's month.

    Example:
        >>> last_day_of_next_month(date(2025, 11, 1))
        datetime.date(2025, 12, 31)
        >>> last_day_of_next_month(date(2026, 1, 31))
        datetime.date(2026, 2, 28)
    """
    year, month = current.year, current.month + 1
    if month > 12:
        month -= 12
        year += 1
    return last_day_of_month(year, month)
