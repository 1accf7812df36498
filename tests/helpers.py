"""
helpers.py - Scenario builders and comparison utilities shared by the tests.
"""

from datetime import date
from decimal import Decimal
from typing import List

from loansplitter import (
    AccountCreatedEvent,
    Event,
    Loan,
    LoanContractedEvent,
)


CONTRACT_DATE = date(2025, 11, 1)
ACCOUNT = "acct"
LOAN = "apartLoan"
PRINCIPAL = Decimal("1000000")
RATE = Decimal("4.5")
TERM = 360


def contract_events(
    principal: Decimal = PRINCIPAL,
    rate: Decimal = RATE,
    term: int = TERM,
    contract_date: date = CONTRACT_DATE,
) -> List[Event]:
    """Account creation followed by the loan contract."""
    return [
        AccountCreatedEvent(contract_date, ACCOUNT),
        LoanContractedEvent(contract_date, LOAN, principal, rate, term, ACCOUNT, "A", "B"),
    ]


def assert_close(actual: Decimal, expected: Decimal, tolerance: Decimal = Decimal("1e-9")):
    """Assert two Decimals agree within tolerance."""
    assert abs(Decimal(actual) - Decimal(expected)) <= tolerance, f"{actual} != {expected}"


def uneven_loan(rate: Decimal = RATE, term: int = TERM) -> Loan:
    """1,000,000 loan where A holds 600,000 and B 400,000."""
    return Loan(
        remaining_amount=Decimal("1000000"),
        annual_interest_rate=rate,
        remaining_term_months=term,
        sub_loans={
            "A": Loan(Decimal("600000"), rate, term),
            "B": Loan(Decimal("400000"), rate, term),
        },
    )
