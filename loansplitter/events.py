"""
events.py - Domain Events

Every event is an immutable fact with a date. Applying it to a State is a pure
function returning an EventOutcome:

    outcome = event.apply(state)
    outcome.updates         # name -> new entity, merged into the next State
    outcome.maybe_event     # optional deferred event (e.g. next loan payment)
    outcome.inline_events   # events applied immediately, before the replay moves on

Events are data; apply() only reads the State it is given and the event's own
fields. Lookups that fail (unknown loan) and transitions that reject their
inputs raise, which aborts the replay that is building the stream.

Conventions:
- One frozen dataclass per event type
- A registry dict (EVENT_TYPES) instead of a class hierarchy lookup
- Thin apply() methods delegating to the entity transitions
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import ClassVar, Dict, Mapping, Optional, Tuple, Type

from .core import (
    AccountTransaction, EntityKind, EntityKindMismatch, LOAN_PAYMENT_CATEGORY,
    PERSON_BALANCES_KEY, ValidationError, freeze_map, to_decimal, to_decimal_map,
)
from .entities import Bill, BillItem, Entity, create_loan
from .scheduled_events import MaybeEvent, last_day_of_next_month
from .state import State


# ============================================================================
# EVENT BASE AND OUTCOME
# ============================================================================

@dataclass(frozen=True, slots=True)
class Event:
    """
    Base class for all events.

    Attributes:
        date: When the event happens. Replay order follows the caller's list
            for user events; dates drive interleaving with scheduled events.
    """
    date: date

    event_type: ClassVar[str] = ""

    def apply(self, state: State) -> EventOutcome:
        raise NotImplementedError(f"{type(self).__name__} does not implement apply()")

    def _coerce_decimals(self, *names: str) -> None:
        for name in names:
            value = getattr(self, name)
            if not isinstance(value, Decimal):
                object.__setattr__(self, name, to_decimal(value))


@dataclass(frozen=True, slots=True)
class EventOutcome:
    """
    Result of applying an event to a state.

    Attributes:
        updates: Entities to merge into the next State (update wins).
        maybe_event: Deferred event to add to the replay's pending set.
        inline_events: Events applied right away, in order, within the same
            replay step.
    """
    updates: Mapping[str, Entity] = field(default_factory=dict)
    maybe_event: Optional[MaybeEvent] = None
    inline_events: Tuple[Event, ...] = ()


def _check_name_free_for(state: State, name: str, kind: EntityKind) -> None:
    existing = state.find(name)
    if existing is not None and existing.kind is not kind:
        raise EntityKindMismatch(
            f"Cannot store a {kind.value} under '{name}': it already holds a {existing.kind.value}"
        )


# ============================================================================
# ACCOUNT EVENTS
# ============================================================================

@dataclass(frozen=True, slots=True)
class AccountCreatedEvent(Event):
    """
    Bind an Account to a name before any money flows.

    Re-creating an existing account keeps it as it is.
    """
    account_name: str

    event_type: ClassVar[str] = "AccountCreated"

    def apply(self, state: State) -> EventOutcome:
        return EventOutcome({self.account_name: state.get_account(self.account_name)})


@dataclass(frozen=True, slots=True)
class AccountTransactionEvent(Event):
    """Manual deposit/withdrawal outside the automated loan flow."""
    account_name: str
    transaction: AccountTransaction

    event_type: ClassVar[str] = "AccountTransaction"

    def apply(self, state: State) -> EventOutcome:
        account = state.get_account(self.account_name)
        return EventOutcome({self.account_name: account.with_transaction(self.transaction)})


# ============================================================================
# LOAN EVENTS
# ============================================================================

@dataclass(frozen=True, slots=True)
class LoanContractedEvent(Event):
    """
    Signing a new loan contract.

    Adds the Loan with one sub-loan per borrower (half the principal each, the
    remainder going to name2) and schedules the first LoanPaymentEvent.
    """
    loan_name: str
    principal: Decimal
    nominal_rate: Decimal
    term: int
    backing_account_name: str
    name1: str
    name2: str

    event_type: ClassVar[str] = "LoanContracted"

    def __post_init__(self):
        self._coerce_decimals('principal', 'nominal_rate')

    def apply(self, state: State) -> EventOutcome:
        if state.find(self.loan_name) is not None:
            raise ValidationError(f"'{self.loan_name}' already exists; a loan name can be contracted once")
        loan = create_loan(self.principal, self.nominal_rate, self.term, (self.name1, self.name2))
        return EventOutcome(
            {self.loan_name: loan},
            maybe_event=schedule_loan_payment(
                self.date, self.backing_account_name, self.loan_name, loan.remaining_term_months,
            ),
        )


@dataclass(frozen=True, slots=True)
class AdvancePaymentEvent(Event):
    """
    Someone pays extra principal outside the schedule.

    Queued on the loan; balances drop at the next payment execution.
    """
    loan_name: str
    transaction: AccountTransaction

    event_type: ClassVar[str] = "AdvancePayment"

    def apply(self, state: State) -> EventOutcome:
        loan = state.get_loan(self.loan_name)
        return EventOutcome({self.loan_name: loan.with_advance_payment(self.transaction)})


@dataclass(frozen=True, slots=True)
class InterestRateChangedEvent(Event):
    """Bank announces a new rate, effective after the next payment."""
    loan_name: str
    rate: Decimal

    event_type: ClassVar[str] = "InterestRateChanged"

    def __post_init__(self):
        self._coerce_decimals('rate')

    def apply(self, state: State) -> EventOutcome:
        loan = state.get_loan(self.loan_name)
        return EventOutcome({self.loan_name: loan.with_interest_rate(self.rate)})


@dataclass(frozen=True, slots=True)
class CorrectNextLoanPaymentEvent(Event):
    """Bank issued corrected principal/interest figures for the next payment."""
    loan_name: str
    principal: Decimal
    interest: Decimal

    event_type: ClassVar[str] = "CorrectNextLoanPayment"

    def __post_init__(self):
        self._coerce_decimals('principal', 'interest')

    def apply(self, state: State) -> EventOutcome:
        loan = state.get_loan(self.loan_name)
        return EventOutcome({self.loan_name: loan.with_correct_next_payment(self.principal, self.interest)})


@dataclass(frozen=True, slots=True)
class CorrectNextLoanPaymentSplitEvent(Event):
    """
    One participant fronts a different part of the next installment.

    Contributions are relative (3 and 1 means 75% / 25%) and are normalized by
    the loan.
    """
    loan_name: str
    contributions: Mapping[str, Decimal]

    event_type: ClassVar[str] = "CorrectNextLoanPaymentSplit"

    def __post_init__(self):
        object.__setattr__(self, 'contributions', freeze_map(to_decimal_map(self.contributions)))

    def apply(self, state: State) -> EventOutcome:
        loan = state.get_loan(self.loan_name)
        return EventOutcome({self.loan_name: loan.with_correct_next_payment_split(self.contributions)})


@dataclass(frozen=True, slots=True)
class LoanPaymentEvent(Event):
    """
    Scheduled monthly payment.

    Splits the next payment between borrowers, records it as a bill on the
    paying account (through an inline BillCreatedEvent), executes the payment
    on the loan and schedules the following one.
    """
    from_account_name: str
    loan_name: str

    event_type: ClassVar[str] = "LoanPayment"

    @property
    def bill_name(self) -> str:
        return f"{self.loan_name}_payment_{self.date.isoformat()}"

    def apply(self, state: State) -> EventOutcome:
        loan = state.get_loan(self.loan_name)
        split = loan.next_monthly_split_payment()

        if split:
            items = tuple(
                BillItem(payment.total, person, LOAN_PAYMENT_CATEGORY)
                for person, payment in split.items()
            )
        else:
            items = (BillItem(loan.next_monthly_payment().total, self.from_account_name, LOAN_PAYMENT_CATEGORY),)

        bill_event = BillCreatedEvent(
            date=self.date,
            bill_name=self.bill_name,
            description=f"Loan payment for {self.loan_name}",
            items=items,
            account_name=self.from_account_name,
        )

        paid_loan = loan.with_execute_next_payment()
        return EventOutcome(
            {self.loan_name: paid_loan},
            maybe_event=schedule_loan_payment(
                self.date, self.from_account_name, self.loan_name, paid_loan.remaining_term_months,
            ),
            inline_events=(bill_event,),
        )


def schedule_loan_payment(
    event_date: date,
    from_account_name: str,
    loan_name: str,
    expected_term: int,
) -> MaybeEvent:
    """
    Schedule the next LoanPaymentEvent at the end of the following month.

    The factory re-checks the loan when it fires: if its remaining term is no
    longer expected_term (something else moved the loan) or has gone negative,
    it declines and the recurrence stops.
    """
    check_date = last_day_of_next_month(event_date)

    def next_payment(state: State) -> Optional[Event]:
        loan = state.get_loan(loan_name)
        if loan.remaining_term_months == expected_term and loan.remaining_term_months >= 0:
            return LoanPaymentEvent(check_date, from_account_name, loan_name)
        return None

    return MaybeEvent(check_date, next_payment, f"payment of {loan_name}")


# ============================================================================
# BILL EVENTS
# ============================================================================

@dataclass(frozen=True, slots=True)
class BillCreatedEvent(Event):
    """
    Record an itemized bill paid from an account.

    Adds the Bill and writes one transaction per item to the account.
    """
    bill_name: str
    description: str
    items: Tuple[BillItem, ...]
    account_name: str

    event_type: ClassVar[str] = "BillCreated"

    def __post_init__(self):
        if not isinstance(self.items, tuple):
            object.__setattr__(self, 'items', tuple(self.items))

    def apply(self, state: State) -> EventOutcome:
        _check_name_free_for(state, self.bill_name, EntityKind.BILL)
        bill = Bill(
            description=self.description,
            date=self.date,
            items=self.items,
            paid_by=self.account_name,
        )
        account = state.get_account(self.account_name)
        return EventOutcome({
            self.bill_name: bill,
            self.account_name: bill.apply_to_account(account),
        })


@dataclass(frozen=True, slots=True)
class BillAddedEvent(Event):
    """
    Record a shared expense between people.

    Either itemized (items) or share-based (amount + shares). Everyone other
    than paid_by ends up owing paid_by their portion in the PersonBalances
    ledger.
    """
    bill_name: str
    description: str
    paid_by: str
    items: Tuple[BillItem, ...] = ()
    amount: Optional[Decimal] = None
    shares: Optional[Mapping[str, Decimal]] = None

    event_type: ClassVar[str] = "BillAdded"

    def __post_init__(self):
        if not isinstance(self.items, tuple):
            object.__setattr__(self, 'items', tuple(self.items))
        if self.amount is not None:
            self._coerce_decimals('amount')
        if self.shares is not None:
            object.__setattr__(self, 'shares', freeze_map(to_decimal_map(self.shares)))

    def apply(self, state: State) -> EventOutcome:
        _check_name_free_for(state, self.bill_name, EntityKind.BILL)
        bill = Bill(
            description=self.description,
            date=self.date,
            items=self.items,
            paid_by=self.paid_by,
            shares=self.shares,
            amount=self.amount,
        )
        balances = state.get_person_balances()
        return EventOutcome({
            self.bill_name: bill,
            PERSON_BALANCES_KEY: bill.apply_to_balances(balances),
        })


# ============================================================================
# EVENT REGISTRY
# ============================================================================

# Map wire discriminators to event classes
EVENT_TYPES: Dict[str, Type[Event]] = {
    cls.event_type: cls
    for cls in (
        AccountCreatedEvent,
        AccountTransactionEvent,
        LoanContractedEvent,
        AdvancePaymentEvent,
        InterestRateChangedEvent,
        CorrectNextLoanPaymentEvent,
        CorrectNextLoanPaymentSplitEvent,
        LoanPaymentEvent,
        BillCreatedEvent,
        BillAddedEvent,
    )
}
