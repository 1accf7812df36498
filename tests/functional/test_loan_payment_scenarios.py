"""
test_loan_payment_scenarios.py - Multi-month replay scenarios

Replays the reference household (1,000,000 at 4.5% over 360 months, split
between A and B) with different user histories and checks the generated
monthly payments, bills and loan balances.
"""

import pytest
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import ClassVar

from loansplitter import (
    AccountTransaction,
    AccountTransactionEvent,
    AdvancePaymentEvent,
    BillAddedEvent,
    BillCreatedEvent,
    CorrectNextLoanPaymentEvent,
    CorrectNextLoanPaymentSplitEvent,
    EntityNotFound,
    Event,
    EventOutcome,
    EventStream,
    InterestRateChangedEvent,
    LoanPaymentEvent,
    MaybeEvent,
    ReplayLimitExceeded,
    UnknownParticipant,
)

from tests.helpers import ACCOUNT, CONTRACT_DATE, LOAN, assert_close, contract_events


def payment_bill_name(day: date) -> str:
    return f"{LOAN}_payment_{day.isoformat()}"


def loan_at(stream: EventStream, day: date):
    return stream.get_state_for_date(day).get_loan(LOAN)


# ============================================================================
# GENERATED PAYMENTS
# ============================================================================

class TestMonthlyPayments:

    def test_first_bill_matches_quoted_payment(self, base_stream):
        quoted = loan_at(base_stream, CONTRACT_DATE).next_monthly_payment().total

        state = base_stream.get_state_for_date(date(2025, 12, 31))
        bill = state.get_bill(payment_bill_name(date(2025, 12, 31)))

        assert abs(bill.total_amount - quoted) < Decimal("1.0")
        assert bill.description == f"Loan payment for {LOAN}"
        assert bill.paid_by == ACCOUNT
        assert {item.person for item in bill.items} == {"A", "B"}

    def test_month_end_bills_by_march(self, base_stream):
        state = base_stream.get_state_for_date(date(2026, 3, 1))

        for day in (date(2025, 12, 31), date(2026, 1, 31), date(2026, 2, 28)):
            assert payment_bill_name(day) in state
        assert payment_bill_name(date(2026, 3, 31)) not in state
        assert state.get_loan(LOAN).remaining_term_months == 357

    def test_payments_recorded_on_backing_account(self, base_stream):
        state = base_stream.get_state_for_date(date(2026, 1, 1))
        account = state.get_account(ACCOUNT)
        totals = account.total_by_person()

        assert len(account.transactions) == 2
        assert_close(totals["A"], totals["B"])

    def test_no_state_before_first_event(self, base_stream):
        assert base_stream.get_state_for_date(date(2025, 10, 31)) is None

    def test_recurrence_stops_after_last_payment(self):
        stream = EventStream(contract_events(term=3))
        payments = [event for event in stream.processed_events if isinstance(event, LoanPaymentEvent)]

        assert [event.date for event in payments] == [
            date(2025, 12, 31), date(2026, 1, 31), date(2026, 2, 28), date(2026, 3, 31),
        ]
        final_loan = stream.final_state.get_loan(LOAN)
        assert final_loan.remaining_term_months == -1
        assert_close(final_loan.remaining_amount, Decimal("0"), Decimal("1e-20"))
        assert stream.pending_maybe_events == []

    def test_inline_bill_follows_its_payment(self):
        stream = EventStream(contract_events(term=2))
        kinds = [type(event) for event in stream.system_events]
        assert kinds == [LoanPaymentEvent, BillCreatedEvent] * 3

        # user events + one snapshot per payment
        assert len(stream.history) == 2 + 3
        assert len(stream.processed_events) == 2 + 6

    def test_events_up_to_date(self, base_stream):
        events = base_stream.get_events_up_to_date(date(2026, 1, 1))
        assert [event.event_type for event in events] == [
            "AccountCreated", "LoanContracted", "LoanPayment", "BillCreated",
        ]


# ============================================================================
# USER CHANGES TO THE LOAN
# ============================================================================

class TestAdvancePayments:

    def test_advance_reduces_payer_and_parent_at_next_payment(self, base_events):
        amount = Decimal("10000")
        baseline = EventStream(base_events)
        with_advance = EventStream(base_events + [
            AdvancePaymentEvent(date(2026, 1, 15), LOAN, AccountTransaction(amount, "A")),
        ])

        # queued until the 2026-01-31 payment
        before = loan_at(with_advance, date(2026, 1, 30))
        assert before.remaining_amount == loan_at(baseline, date(2026, 1, 30)).remaining_amount
        assert len(before.advance_payments) == 1

        day = date(2026, 1, 31)
        paid, reference = loan_at(with_advance, day), loan_at(baseline, day)
        tolerance = Decimal("1e-20")
        assert_close(reference.remaining_amount - paid.remaining_amount, amount, tolerance)
        assert_close(
            reference.sub_loans["A"].remaining_amount - paid.sub_loans["A"].remaining_amount,
            amount, tolerance,
        )
        assert paid.sub_loans["B"].remaining_amount == reference.sub_loans["B"].remaining_amount
        assert paid.advance_payments == ()

    def test_advance_shifts_next_split(self, base_events):
        stream = EventStream(base_events + [
            AdvancePaymentEvent(date(2026, 1, 15), LOAN, AccountTransaction(Decimal("10000"), "A")),
        ])
        split = loan_at(stream, date(2026, 2, 1)).next_monthly_split_payment()
        assert split["A"].principal < split["B"].principal
        assert split["A"].fee == split["B"].fee

    def test_same_day_user_event_precedes_payment(self, base_events):
        advance = AdvancePaymentEvent(date(2025, 12, 31), LOAN, AccountTransaction(Decimal("5000"), "B"))
        stream = EventStream(base_events + [advance])

        types = [event.event_type for event in stream.processed_events]
        assert types.index("AdvancePayment") < types.index("LoanPayment")

        loan = loan_at(stream, date(2025, 12, 31))
        assert loan.advance_payments == ()
        assert loan.sub_loans["B"].remaining_amount < loan.sub_loans["A"].remaining_amount

    def test_unknown_participant_aborts_replay(self, base_events):
        with pytest.raises(UnknownParticipant):
            EventStream(base_events + [
                AdvancePaymentEvent(date(2026, 1, 15), LOAN, AccountTransaction(Decimal("1"), "C")),
            ])

    def test_unknown_loan_aborts_replay(self, base_events):
        with pytest.raises(EntityNotFound):
            EventStream(base_events + [
                AdvancePaymentEvent(date(2026, 1, 15), "other", AccountTransaction(Decimal("1"), "A")),
            ])


class TestRateAndCorrections:

    def test_rate_change_applies_after_next_payment(self, base_events):
        stream = EventStream(base_events + [
            InterestRateChangedEvent(date(2026, 1, 10), LOAN, Decimal("6")),
        ])
        quoted = loan_at(stream, date(2026, 1, 30))
        assert quoted.annual_interest_rate == Decimal("4.5")
        assert quoted.upcoming_interest_rate == Decimal("6")

        bill = stream.get_state_for_date(date(2026, 1, 31)).get_bill(payment_bill_name(date(2026, 1, 31)))
        assert_close(bill.total_amount, quoted.next_monthly_payment().total, Decimal("1e-6"))

        paid = loan_at(stream, date(2026, 1, 31))
        assert paid.annual_interest_rate == Decimal("6")
        assert all(sub.annual_interest_rate == Decimal("6") for sub in paid.sub_loans.values())
        assert paid.next_monthly_payment().interest == paid.remaining_amount * Decimal("0.005")

    def test_corrected_payment_used_once(self, base_events):
        stream = EventStream(base_events + [
            CorrectNextLoanPaymentEvent(date(2026, 2, 10), LOAN, Decimal("1350.25"), Decimal("3712.80")),
        ])
        day = date(2026, 2, 28)
        bill = stream.get_state_for_date(day).get_bill(payment_bill_name(day))
        assert_close(bill.total_amount, Decimal("5128.05"), Decimal("1e-6"))

        paid = loan_at(stream, day)
        assert paid.payment_override is None
        assert_close(
            loan_at(stream, date(2026, 2, 27)).remaining_amount - paid.remaining_amount,
            Decimal("1350.25"), Decimal("1e-20"),
        )

    def test_split_correction(self, base_events):
        stream = EventStream(base_events + [
            CorrectNextLoanPaymentSplitEvent(date(2026, 1, 5), LOAN, {"A": 3, "B": 1}),
        ])
        day = date(2026, 1, 31)
        bill = stream.get_state_for_date(day).get_bill(payment_bill_name(day))
        by_person = bill.amounts_by_person()

        assert by_person["A"] > by_person["B"]
        assert loan_at(stream, day).split_override is None

        following = stream.get_state_for_date(date(2026, 2, 28)).get_bill(payment_bill_name(date(2026, 2, 28)))
        following_by_person = following.amounts_by_person()
        assert following_by_person["A"] < following_by_person["B"]


class TestOtherUserEvents:

    def test_shared_bills_and_manual_transactions(self, base_events):
        stream = EventStream(base_events + [
            BillAddedEvent(date(2026, 1, 3), "groceries", "Groceries", "A",
                           amount=Decimal("240"), shares={"A": 0.5, "B": 0.5}),
            AccountTransactionEvent(date(2026, 1, 4), ACCOUNT, AccountTransaction(Decimal("-100"), "B")),
        ])
        state = stream.get_state_for_date(date(2026, 1, 4))
        assert state.get_person_balances().owed("B", "A") == Decimal("120")
        assert state.get_account(ACCOUNT).transactions[-1] == AccountTransaction(Decimal("-100"), "B")


# ============================================================================
# REPLAY GUARD AND OUTPUT
# ============================================================================

@dataclass(frozen=True, slots=True)
class EchoEvent(Event):
    """Schedules a maybe-event that always fires another EchoEvent."""

    event_type: ClassVar[str] = "Echo"

    def apply(self, state):
        return EventOutcome({}, maybe_event=MaybeEvent(self.date, lambda current: EchoEvent(self.date)))


class TestReplayGuard:

    def test_runaway_stream_hits_step_cap(self):
        with pytest.raises(ReplayLimitExceeded):
            EventStream([EchoEvent(date(2026, 1, 1))], max_steps=50)

    def test_default_cap_allows_full_term(self, base_stream):
        assert base_stream.final_state.get_loan(LOAN).remaining_term_months == -1


class TestVerboseOutput:

    def test_tags_printed(self, capsys):
        EventStream(contract_events(term=1), verbose=True)
        output = capsys.readouterr().out

        for tag in ("[USER]", "[SYSTEM]", "[INLINE]", "[DISCARDED]", "[REPLAY]"):
            assert tag in output

    def test_quiet_by_default(self, capsys):
        EventStream(contract_events(term=1))
        assert capsys.readouterr().out == ""
