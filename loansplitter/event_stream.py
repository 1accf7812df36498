"""
event_stream.py - Event Stream Replay Engine

Replays an ordered list of user events, interleaving the system events that
MaybeEvents produce, and records the State after every step.

Execution order of one merge step:
1. Look at the next user event (list order, never re-sorted)
2. Pick the first pending MaybeEvent whose check date is strictly before it
   (any pending one once the user events are exhausted)
3. If one is picked, evaluate its factory against the current State:
   - an Event comes back: apply it as a system event
   - None comes back: drop the MaybeEvent, record nothing
4. Otherwise consume the user event, or stop when there is none left

Applying an event drains a worklist: inline events are pushed to the front, so
they run depth-first, right after the event that produced them. One
(date, State) snapshot is recorded per step.

The whole replay runs inside __init__. A stream that does not terminate within
max_steps iterations raises ReplayLimitExceeded; any error raised by an event
propagates and no stream is produced.
"""

from __future__ import annotations
from collections import deque
from datetime import date
from typing import Deque, List, Optional, Sequence, Tuple

from .core import MAX_REPLAY_STEPS, ReplayLimitExceeded
from .events import Event
from .scheduled_events import MaybeEvent
from .state import State


# One recorded snapshot: (date of the event that started the step, State after it)
Snapshot = Tuple[date, State]


class EventStream:
    """
    Immutable result of replaying a list of user events.

    Attributes:
        user_events: The events as given, in the given order.
        history: (date, State) after every step, in replay order.
        processed_events: Every applied event (user, system and inline) in
            application order.
        system_events: The subset of processed_events generated by the system
            (MaybeEvent factories and inline events).
        pending_maybe_events: MaybeEvents still pending when the replay ended
            (always empty for a stream that terminated normally).

    Example:
        stream = EventStream([
            AccountCreatedEvent(date(2025, 11, 1), "acct"),
            LoanContractedEvent(date(2025, 11, 1), "loan", 1000000, 4.5, 360, "acct", "A", "B"),
        ])
        stream.get_state_for_date(date(2026, 3, 1)).get_loan("loan")
    """

    def __init__(
        self,
        user_events: Sequence[Event],
        max_steps: int = MAX_REPLAY_STEPS,
        verbose: bool = False,
    ):
        """
        Replay user_events.

        Args:
            user_events: Events in the order they should be applied.
            max_steps: Iteration cap for the merge loop.
            verbose: Print one line per applied event.

        Raises:
            ReplayLimitExceeded: If the merge loop runs more than max_steps times.
            LoanSplitterError: Whatever an event's apply() raises.
        """
        self.user_events: Tuple[Event, ...] = tuple(user_events)
        self.max_steps = max_steps
        self.verbose = verbose

        self.history: List[Snapshot] = []
        self.processed_events: List[Event] = []
        self.system_events: List[Event] = []
        self.pending_maybe_events: List[MaybeEvent] = []

        self._state = State()
        self._replay()

    # ========================================================================
    # REPLAY
    # ========================================================================

    def _replay(self) -> None:
        cursor = 0
        steps = 0

        while True:
            steps += 1
            if steps > self.max_steps:
                raise ReplayLimitExceeded(
                    f"Replay did not terminate within {self.max_steps} steps "
                    f"({len(self.processed_events)} events applied, "
                    f"{len(self.pending_maybe_events)} pending)"
                )

            next_user = self.user_events[cursor] if cursor < len(self.user_events) else None
            maybe_index = self._first_eligible(next_user)

            if maybe_index is not None:
                maybe = self.pending_maybe_events[maybe_index]
                event = maybe.evaluate(self._state)
                if event is None:
                    del self.pending_maybe_events[maybe_index]
                    if self.verbose:
                        print(f"[DISCARDED] {maybe!r}")
                    continue
                self._apply_step(event, system=True)
                continue

            if next_user is None:
                break

            cursor += 1
            self._apply_step(next_user, system=False)

        if self.verbose:
            print(f"[REPLAY] {len(self.processed_events)} events applied "
                  f"({len(self.system_events)} system), {len(self.history)} snapshots")

    def _first_eligible(self, next_user: Optional[Event]) -> Optional[int]:
        """Index of the first pending MaybeEvent due before next_user, in insertion order."""
        for index, maybe in enumerate(self.pending_maybe_events):
            if next_user is None or maybe.check_date < next_user.date:
                return index
        return None

    def _apply_step(self, root: Event, system: bool) -> None:
        worklist: Deque[Tuple[Event, str]] = deque([(root, "SYSTEM" if system else "USER")])

        while worklist:
            event, tag = worklist.popleft()
            outcome = event.apply(self._state)
            self._state = self._state.with_updates(outcome.updates)

            if outcome.maybe_event is not None:
                self.pending_maybe_events.append(outcome.maybe_event)

            self.processed_events.append(event)
            if tag != "USER":
                self.system_events.append(event)
            if self.verbose:
                print(f"[{tag}] {event.date.isoformat()} {event.event_type}")

            worklist.extendleft((inline, "INLINE") for inline in reversed(outcome.inline_events))

        self.history.append((root.date, self._state))

    # ========================================================================
    # QUERY METHODS
    # ========================================================================

    @property
    def final_state(self) -> State:
        """State after the last step (empty State for an empty stream)."""
        return self._state

    def get_state_for_date(self, as_of: date) -> Optional[State]:
        """
        State as of the end of the given date.

        Returns the last snapshot whose date is on or before as_of, scanning
        history from the end, or None when every snapshot is later.
        """
        for snapshot_date, state in reversed(self.history):
            if snapshot_date <= as_of:
                return state
        return None

    def get_events_up_to_date(self, as_of: date) -> List[Event]:
        """All applied events dated on or before as_of, in application order."""
        return [event for event in self.processed_events if event.date <= as_of]

    def __repr__(self) -> str:
        return (f"EventStream({len(self.user_events)} user events, "
                f"{len(self.processed_events)} processed, {len(self.history)} snapshots)")
