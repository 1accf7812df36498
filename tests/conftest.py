"""
conftest.py - Shared pytest fixtures for loansplitter tests

Provides common fixtures used across unit, functional and conformance tests:
- The reference household scenario (account + 1,000,000 loan split A/B)
- Hand-built loans with uneven sub-loans

Scenario builders and comparison helpers live in tests/helpers.py.
"""

import pytest
from typing import List

from loansplitter import Event, EventStream, Loan, create_loan

from tests.helpers import PRINCIPAL, RATE, TERM, contract_events, uneven_loan


@pytest.fixture
def base_events() -> List[Event]:
    """Reference scenario: account and 1,000,000 / 4.5% / 360 months loan."""
    return contract_events()


@pytest.fixture
def base_stream(base_events) -> EventStream:
    """Replay of the reference scenario with no further user events."""
    return EventStream(base_events)


@pytest.fixture
def split_loan() -> Loan:
    """Reference loan split 50/50 between A and B."""
    return create_loan(PRINCIPAL, RATE, TERM, ("A", "B"))


@pytest.fixture
def loan_60_40() -> Loan:
    """Loan with uneven sub-loans (A 60%, B 40%)."""
    return uneven_loan()
