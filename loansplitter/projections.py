"""
projections.py - Read-Side Views of a State

Shapes a State (or one Loan in it) into response objects for callers that
want numbers rather than entities:

- LoanSummary: next payment (total and per person), remaining principal and
  projected interest, each aggregated and per borrower
- StateSnapshot: every entity grouped by kind

Both are frozen dataclasses with a to_dict() producing JSON-friendly output
(floats, ISO dates, camelCase keys like the event wire format).
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional

from .core import EntityKind
from .entities import Account, Bill, Loan, LoanPayment, PersonBalances
from .state import State


def _payment_to_dict(payment: LoanPayment) -> Dict[str, float]:
    return {
        "principal": float(payment.principal),
        "interest": float(payment.interest),
        "fee": float(payment.fee),
        "total": float(payment.total),
    }


def _floats(values: Mapping[str, Decimal]) -> Dict[str, float]:
    return {key: float(value) for key, value in values.items()}


# ============================================================================
# LOAN SUMMARY
# ============================================================================

@dataclass(frozen=True, slots=True)
class LoanSummary:
    """
    Computed figures for one loan as of a date.

    Attributes:
        loan_name: Name of the loan in State.
        snapshot_date: Date the State was taken at.
        next_payment: Next installment for the whole loan.
        next_payment_by_person: Next installment split by participant.
        remaining_amount: Outstanding principal.
        remaining_amount_by_person: Outstanding principal per sub-loan.
        projected_interest_remaining: Interest still to pay if nothing changes.
        projected_interest_remaining_by_person: Same, per sub-loan.
    """
    loan_name: str
    snapshot_date: date
    next_payment: LoanPayment
    next_payment_by_person: Dict[str, LoanPayment] = field(default_factory=dict)
    remaining_amount: Decimal = Decimal("0")
    remaining_amount_by_person: Dict[str, Decimal] = field(default_factory=dict)
    projected_interest_remaining: Decimal = Decimal("0")
    projected_interest_remaining_by_person: Dict[str, Decimal] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "loanName": self.loan_name,
            "snapshotDate": self.snapshot_date.isoformat(),
            "nextPaymentTotal": _payment_to_dict(self.next_payment),
            "nextPaymentByPerson": {
                person: _payment_to_dict(payment)
                for person, payment in self.next_payment_by_person.items()
            },
            "remainingAmount": float(self.remaining_amount),
            "remainingAmountByPerson": _floats(self.remaining_amount_by_person),
            "projectedInterestRemaining": float(self.projected_interest_remaining),
            "projectedInterestRemainingByPerson": _floats(self.projected_interest_remaining_by_person),
        }


def summarize_loan(loan_name: str, loan: Loan, snapshot_date: date) -> LoanSummary:
    """
    Build a LoanSummary for a loan.

    Raises:
        ValueError: If loan_name is blank.
    """
    if not loan_name or not loan_name.strip():
        raise ValueError("loan_name cannot be empty")

    return LoanSummary(
        loan_name=loan_name,
        snapshot_date=snapshot_date,
        next_payment=loan.next_monthly_payment(),
        next_payment_by_person=loan.next_monthly_split_payment(),
        remaining_amount=loan.remaining_amount,
        remaining_amount_by_person={
            person: sub_loan.remaining_amount for person, sub_loan in loan.sub_loans.items()
        },
        projected_interest_remaining=loan.projected_interest_remaining(),
        projected_interest_remaining_by_person={
            person: sub_loan.projected_interest_remaining()
            for person, sub_loan in loan.sub_loans.items()
        },
    )


# ============================================================================
# STATE SNAPSHOT
# ============================================================================

def _loan_to_dict(loan: Loan) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "remainingAmount": float(loan.remaining_amount),
        "annualInterestRate": float(loan.annual_interest_rate),
        "remainingTermMonths": loan.remaining_term_months,
        "monthlyFee": float(loan.monthly_fee),
        "totalInterestPaid": float(loan.total_interest_paid),
        "totalFeesPaid": float(loan.total_fees_paid),
    }
    if loan.upcoming_interest_rate is not None:
        data["upcomingInterestRate"] = float(loan.upcoming_interest_rate)
    if loan.advance_payments:
        data["advancePayments"] = [
            {"amount": float(tx.amount), "person": tx.person} for tx in loan.advance_payments
        ]
    if loan.sub_loans:
        data["subLoans"] = {person: _loan_to_dict(sub) for person, sub in loan.sub_loans.items()}
    return data


def _account_to_dict(account: Account) -> Dict[str, Any]:
    return {
        "transactions": [{"amount": float(tx.amount), "person": tx.person} for tx in account.transactions],
        "total": float(account.total),
    }


def _bill_to_dict(bill: Bill) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "description": bill.description,
        "date": bill.date.isoformat(),
        "total": float(bill.total_amount),
    }
    if bill.paid_by is not None:
        data["paidBy"] = bill.paid_by
    if bill.items:
        data["items"] = [
            {"amount": float(item.amount), "person": item.person, "category": item.category}
            for item in bill.items
        ]
    else:
        data["amount"] = float(bill.amount)
        data["shares"] = _floats(bill.shares)
    return data


@dataclass(frozen=True, slots=True)
class StateSnapshot:
    """Every entity of a State, grouped by kind."""
    snapshot_date: date
    loans: Dict[str, Loan] = field(default_factory=dict)
    accounts: Dict[str, Account] = field(default_factory=dict)
    bills: Dict[str, Bill] = field(default_factory=dict)
    balances: Optional[PersonBalances] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "snapshotDate": self.snapshot_date.isoformat(),
            "loans": {name: _loan_to_dict(loan) for name, loan in self.loans.items()},
            "accounts": {name: _account_to_dict(account) for name, account in self.accounts.items()},
            "bills": {name: _bill_to_dict(bill) for name, bill in self.bills.items()},
        }
        if self.balances is not None:
            data["balances"] = {
                debtor: _floats(creditors) for debtor, creditors in self.balances.balances.items()
            }
        return data


def snapshot_state(state: State, snapshot_date: date) -> StateSnapshot:
    """Group the entities of state by kind."""
    balances = state.of_kind(EntityKind.PERSON_BALANCES)
    return StateSnapshot(
        snapshot_date=snapshot_date,
        loans=state.of_kind(EntityKind.LOAN),
        accounts=state.of_kind(EntityKind.ACCOUNT),
        bills=state.of_kind(EntityKind.BILL),
        balances=next(iter(balances.values()), None),
    )
