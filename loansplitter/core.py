"""
Core types and constants for the loan splitting system.

This module provides the foundational pieces every other module builds on:
1. Decimal context configuration shared by all money arithmetic
2. Constants: replay limits, share tolerance, default fees, well-known state keys
3. EntityKind: the explicit discriminant carried by every state entity
4. Exceptions: LoanSplitterError and its lookup/validation/replay subclasses
5. AccountTransaction: the smallest money record (amount + person)

Nothing in this module touches State or events; it is safe to import anywhere.
"""

from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_EVEN, getcontext
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Dict


# ============================================================================
# DECIMAL CONTEXT CONFIGURATION
# ============================================================================
#
# Loan amortization raises (1 + r) to powers of up to several hundred, so the
# default 28 digits leave too little headroom for the annuity denominator.
#
# PRECONDITION: No other code should modify the global Decimal context.
#
_LOANSPLITTER_DECIMAL_CONTEXT = getcontext()
_LOANSPLITTER_DECIMAL_CONTEXT.prec = 50
_LOANSPLITTER_DECIMAL_CONTEXT.rounding = ROUND_HALF_EVEN


# ============================================================================
# CONSTANTS
# ============================================================================

ZERO = Decimal("0")

# Hard cap on merge-loop iterations while replaying one stream.
MAX_REPLAY_STEPS = 5000

# Shares of a share-based bill must sum to 1 within this tolerance.
SHARE_TOLERANCE = Decimal("0.0001")

# Flat monthly fee charged by the bank on every loan payment.
DEFAULT_MONTHLY_FEE = Decimal("65")

# Category used for bill items generated by loan payments.
LOAN_PAYMENT_CATEGORY = "LoanPayment"

# State key under which the PersonBalances ledger lives.
PERSON_BALANCES_KEY = "Balances"


# ============================================================================
# ENUMS
# ============================================================================

class EntityKind(Enum):
    """
    Discriminant stored on every state entity.

    State lookups name the kind they expect, and a mismatch is an error rather
    than a silent cast.
    """
    ACCOUNT = "account"
    LOAN = "loan"
    BILL = "bill"
    PERSON_BALANCES = "person_balances"


# ============================================================================
# EXCEPTIONS
# ============================================================================

class LoanSplitterError(Exception):
    """Base exception for all loan splitter errors."""
    pass


class EntityNotFound(LoanSplitterError, LookupError):
    """Raised when a state lookup names an entity that does not exist."""
    pass


class EntityKindMismatch(LoanSplitterError, TypeError):
    """Raised when a state entity exists but is of a different kind than requested."""
    pass


class ValidationError(LoanSplitterError, ValueError):
    """Raised when a transition receives inputs that violate its rules."""
    pass


class InvalidShares(ValidationError):
    """Raised when bill shares are empty or do not sum to 1."""
    pass


class UnknownParticipant(ValidationError):
    """Raised when a person is referenced who is not a participant of the loan."""
    pass


class InvalidSplitOverride(ValidationError):
    """Raised when a next-payment split override cannot be normalized."""
    pass


class ReplayLimitExceeded(LoanSplitterError):
    """Raised when replaying an event stream does not terminate within the step cap."""
    pass


class EventDecodeError(LoanSplitterError, ValueError):
    """Raised when a serialized event cannot be turned back into an Event."""
    pass


# ============================================================================
# HELPERS
# ============================================================================

def to_decimal(value: Any) -> Decimal:
    """
    Convert a number to Decimal.

    Floats go through str() so that 4.74 becomes Decimal("4.74") rather than
    its binary expansion.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError("Boolean is not a valid amount")
    if isinstance(value, (int, float, str)):
        return Decimal(str(value))
    raise TypeError(f"Cannot convert {type(value).__name__} to Decimal")


def to_decimal_map(values: Mapping[str, Any]) -> Dict[str, Decimal]:
    """Convert the values of a mapping to Decimal, preserving key order."""
    return {key: to_decimal(value) for key, value in values.items()}


def freeze_map(values: Mapping[str, Any]) -> Mapping[str, Any]:
    """Read-only copy of a mapping, preserving key order."""
    return MappingProxyType(dict(values))


# ============================================================================
# CORE DATA STRUCTURES
# ============================================================================

@dataclass(frozen=True, slots=True)
class AccountTransaction:
    """
    A single amount attributed to a person.

    Used for manual account entries, for the per-item entries a bill writes to
    an account, and for advance payments queued on a loan.

    Attributes:
        amount: Money amount (positive for payments made by the person).
        person: Name of the person the amount is attributed to.
    """
    amount: Decimal
    person: str

    def __post_init__(self):
        if not isinstance(self.amount, Decimal):
            object.__setattr__(self, 'amount', to_decimal(self.amount))
        if not self.person or not self.person.strip():
            raise ValidationError("AccountTransaction person cannot be empty")
        if self.amount.is_infinite() or self.amount.is_nan():
            raise ValidationError(f"AccountTransaction amount must be finite, got {self.amount}")

    def __repr__(self) -> str:
        return f"AccountTransaction({self.amount} by {self.person})"
