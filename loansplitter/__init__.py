"""
loansplitter - Event-Sourced Loan and Expense Splitting

Replays a list of domain events (loan contracts, advance payments, rate
changes, bills) into immutable State snapshots, generating the monthly loan
payments on the way.

Usage:
    from datetime import date
    from loansplitter import (
        EventStream, AccountCreatedEvent, LoanContractedEvent,
        AdvancePaymentEvent, AccountTransaction,
    )

    stream = EventStream([
        AccountCreatedEvent(date(2025, 11, 1), "acct"),
        LoanContractedEvent(date(2025, 11, 1), "apartLoan",
                            1000000, 4.5, 360, "acct", "A", "B"),
        AdvancePaymentEvent(date(2026, 1, 15), "apartLoan",
                            AccountTransaction(10000, "A")),
    ])

    state = stream.get_state_for_date(date(2026, 3, 1))
    loan = state.get_loan("apartLoan")
    loan.next_monthly_split_payment()
"""

# Core types
from .core import (
    EntityKind,
    AccountTransaction,
    LoanSplitterError,
    EntityNotFound,
    EntityKindMismatch,
    ValidationError,
    InvalidShares,
    UnknownParticipant,
    InvalidSplitOverride,
    ReplayLimitExceeded,
    EventDecodeError,
    to_decimal,
    MAX_REPLAY_STEPS,
    SHARE_TOLERANCE,
    DEFAULT_MONTHLY_FEE,
    LOAN_PAYMENT_CATEGORY,
    PERSON_BALANCES_KEY,
)

# Entities
from .entities import (
    Account,
    PersonBalances,
    Bill,
    BillItem,
    create_split_bill,
    Loan,
    LoanPayment,
    create_loan,
    calculate_monthly_rate,
    calculate_annuity_payment,
    calculate_projected_interest,
    normalize_contributions,
    Entity,
)

# State
from .state import State

# Scheduling
from .scheduled_events import MaybeEvent, last_day_of_month, last_day_of_next_month

# Events
from .events import (
    Event,
    EventOutcome,
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
    schedule_loan_payment,
    EVENT_TYPES,
)

# Replay
from .event_stream import EventStream

# Adapters
from .serialization import (
    event_to_dict,
    event_from_dict,
    serialize_events,
    deserialize_events,
)
from .store import EventStreamStore
from .projections import LoanSummary, StateSnapshot, summarize_loan, snapshot_state


__all__ = [
    # Core
    'EntityKind', 'AccountTransaction', 'to_decimal',
    'LoanSplitterError', 'EntityNotFound', 'EntityKindMismatch', 'ValidationError',
    'InvalidShares', 'UnknownParticipant', 'InvalidSplitOverride',
    'ReplayLimitExceeded', 'EventDecodeError',
    'MAX_REPLAY_STEPS', 'SHARE_TOLERANCE', 'DEFAULT_MONTHLY_FEE',
    'LOAN_PAYMENT_CATEGORY', 'PERSON_BALANCES_KEY',
    # Entities
    'Account', 'PersonBalances', 'Bill', 'BillItem', 'create_split_bill',
    'Loan', 'LoanPayment', 'create_loan',
    'calculate_monthly_rate', 'calculate_annuity_payment',
    'calculate_projected_interest', 'normalize_contributions', 'Entity',
    # State
    'State',
    # Scheduling
    'MaybeEvent', 'last_day_of_month', 'last_day_of_next_month',
    # Events
    'Event', 'EventOutcome',
    'AccountCreatedEvent', 'AccountTransactionEvent', 'LoanContractedEvent',
    'AdvancePaymentEvent', 'InterestRateChangedEvent', 'CorrectNextLoanPaymentEvent',
    'CorrectNextLoanPaymentSplitEvent', 'LoanPaymentEvent', 'BillCreatedEvent',
    'BillAddedEvent', 'schedule_loan_payment', 'EVENT_TYPES',
    # Replay
    'EventStream',
    # Adapters
    'event_to_dict', 'event_from_dict', 'serialize_events', 'deserialize_events',
    'EventStreamStore',
    'LoanSummary', 'StateSnapshot', 'summarize_loan', 'snapshot_state',
]

__version__ = '1.0.0'
