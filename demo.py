#!/usr/bin/env python3
"""
demo.py - Walkthrough: One Household, One Mortgage, Two Borrowers

Replays a small household history step by step and shows how the loan and
the shared expenses evolve.

WHAT YOU'LL SEE:
  1: The event list    - What the user actually records
  2: Replay            - Monthly payments generated between user events
  3: Loan summaries    - Next payment split, remaining principal, interest
  4: Time travel       - The same stream queried at several dates
  5: Shared bills      - Who owes whom
  6: Wire format       - The events as JSON

Run:
    python demo.py           # Interactive mode (press Enter for each step)
    python demo.py --quick   # Run all steps without pausing
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
import sys

from loansplitter import (
    AccountCreatedEvent, AccountTransaction, AdvancePaymentEvent, BillAddedEvent,
    CorrectNextLoanPaymentEvent, EventStream, InterestRateChangedEvent,
    LoanContractedEvent, serialize_events, summarize_loan,
)


# ============================================================================
# CONFIGURATION
# ============================================================================

@dataclass
class DemoConfig:
    """Scenario parameters. Modify these to experiment."""
    account: str = "acct"
    loan: str = "apartLoan"
    borrower_a: str = "A"
    borrower_b: str = "B"

    principal: Decimal = Decimal("1000000")
    nominal_rate: Decimal = Decimal("4.5")
    term_months: int = 360
    contracted_on: date = date(2025, 11, 1)

    advance_a: Decimal = Decimal("10000")
    advance_b: Decimal = Decimal("2500")
    new_rate: Decimal = Decimal("4.2")

    report_dates: tuple = (date(2025, 11, 30), date(2026, 1, 1), date(2026, 3, 1), date(2026, 7, 1))


CONFIG = DemoConfig()

QUICK_MODE = "--quick" in sys.argv


def wait_for_enter():
    """Pause for user input unless in quick mode."""
    if not QUICK_MODE:
        input("\n[Press Enter to continue...]")


def step_header(number: int, title: str, objective: str):
    """Print a step header with its objective."""
    print(f"\n{'='*70}")
    print(f"STEP {number}: {title}")
    print(f"{'='*70}")
    print(f"\nObjective: {objective}\n")


def money(value: Decimal) -> str:
    return f"{value:,.2f}"


# ============================================================================
# SCENARIO
# ============================================================================

def build_events():
    """The user-recorded history, in the order it was entered."""
    return [
        AccountCreatedEvent(CONFIG.contracted_on, CONFIG.account),
        LoanContractedEvent(
            CONFIG.contracted_on, CONFIG.loan,
            CONFIG.principal, CONFIG.nominal_rate, CONFIG.term_months,
            CONFIG.account, CONFIG.borrower_a, CONFIG.borrower_b,
        ),
        AdvancePaymentEvent(date(2026, 1, 15), CONFIG.loan,
                            AccountTransaction(CONFIG.advance_a, CONFIG.borrower_a)),
        CorrectNextLoanPaymentEvent(date(2026, 2, 10), CONFIG.loan,
                                    Decimal("1350.25"), Decimal("3712.80")),
        AdvancePaymentEvent(date(2026, 3, 20), CONFIG.loan,
                            AccountTransaction(CONFIG.advance_b, CONFIG.borrower_b)),
        InterestRateChangedEvent(date(2026, 4, 2), CONFIG.loan, CONFIG.new_rate),
        BillAddedEvent(date(2026, 4, 10), "groceries", "Weekly groceries", CONFIG.borrower_a,
                       amount=Decimal("240"), shares={CONFIG.borrower_a: 0.5, CONFIG.borrower_b: 0.5}),
        BillAddedEvent(date(2026, 5, 3), "utilities", "Utilities", CONFIG.borrower_b,
                       amount=Decimal("180"), shares={CONFIG.borrower_a: 0.6, CONFIG.borrower_b: 0.4}),
    ]


# ============================================================================
# STEPS
# ============================================================================

def step_01_events(events):
    step_header(1, "The Event List",
        "Only facts the household records; no monthly payments yet.")
    for event in events:
        print(f"  {event.date.isoformat()}  {event.event_type}")
    wait_for_enter()


def step_02_replay(events) -> EventStream:
    step_header(2, "Replay",
        "Each month-end payment is generated from the loan as it is at that point.")
    stream = EventStream(events, verbose=True)
    print(f"\n{stream!r}")
    wait_for_enter()
    return stream


def print_summary(stream: EventStream, as_of: date):
    state = stream.get_state_for_date(as_of)
    if state is None or CONFIG.loan not in state:
        print(f"\n{as_of.isoformat()}: no loan yet")
        return

    summary = summarize_loan(CONFIG.loan, state.get_loan(CONFIG.loan), as_of)
    print(f"\n{as_of.isoformat()}  remaining {money(summary.remaining_amount)}"
          f"  projected interest {money(summary.projected_interest_remaining)}")
    print(f"  next payment {money(summary.next_payment.total)}")
    for person, payment in summary.next_payment_by_person.items():
        print(f"    {person}: {money(payment.total)}"
              f"  (principal {money(payment.principal)}, interest {money(payment.interest)},"
              f" fee {money(payment.fee)})"
              f"  remaining {money(summary.remaining_amount_by_person[person])}")


def step_03_summaries(stream: EventStream):
    step_header(3, "Loan Summaries",
        "Advance payments shift each borrower's share of the next installment.")
    for as_of in CONFIG.report_dates:
        print_summary(stream, as_of)
    wait_for_enter()


def step_04_time_travel(stream: EventStream):
    step_header(4, "Time Travel",
        "Every snapshot is kept; older states never change.")
    for as_of in CONFIG.report_dates:
        events = stream.get_events_up_to_date(as_of)
        payments = [event for event in events if event.event_type == "LoanPayment"]
        print(f"  {as_of.isoformat()}: {len(events)} events applied, {len(payments)} loan payments")
    wait_for_enter()


def step_05_bills(stream: EventStream):
    step_header(5, "Shared Bills",
        "Share-based bills turn into debts towards whoever paid.")
    balances = stream.final_state.get_person_balances()
    a, b = CONFIG.borrower_a, CONFIG.borrower_b
    print(f"  {a} owes {b}: {money(balances.owed(a, b))}")
    print(f"  {b} owes {a}: {money(balances.owed(b, a))}")
    print(f"  net {a} -> {b}: {money(balances.net(a, b))}")

    account = stream.final_state.get_account(CONFIG.account)
    print(f"\n  Loan payments recorded on '{CONFIG.account}':")
    for person, total in account.total_by_person().items():
        print(f"    {person}: {money(total)}")
    wait_for_enter()


def step_06_wire_format(events):
    step_header(6, "Wire Format",
        "The same history as the JSON an API client would send.")
    print(serialize_events(events[:3], indent=2))


def main():
    """Run the walkthrough."""
    print("=" * 70)
    print("LOAN SPLITTER WALKTHROUGH")
    print("=" * 70)

    events = build_events()
    step_01_events(events)
    stream = step_02_replay(events)
    step_03_summaries(stream)
    step_04_time_travel(stream)
    step_05_bills(stream)
    step_06_wire_format(events)


if __name__ == "__main__":
    main()
