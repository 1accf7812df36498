"""
test_projections.py - Unit tests for LoanSummary and StateSnapshot
"""

import json
import pytest
from datetime import date
from decimal import Decimal

from loansplitter import (
    Account,
    BillAddedEvent,
    EventStream,
    State,
    create_loan,
    snapshot_state,
    summarize_loan,
)

from tests.helpers import LOAN, contract_events


AS_OF = date(2026, 3, 1)


class TestLoanSummary:

    def test_summary_figures(self, loan_60_40):
        summary = summarize_loan("loan", loan_60_40, AS_OF)

        assert summary.next_payment == loan_60_40.next_monthly_payment()
        assert set(summary.next_payment_by_person) == {"A", "B"}
        assert summary.remaining_amount == Decimal("1000000")
        assert summary.remaining_amount_by_person == {"A": Decimal("600000"), "B": Decimal("400000")}
        assert summary.projected_interest_remaining == loan_60_40.projected_interest_remaining()
        assert summary.projected_interest_remaining_by_person["A"] == (
            loan_60_40.sub_loans["A"].projected_interest_remaining()
        )

    def test_summary_without_sub_loans(self):
        summary = summarize_loan("solo", create_loan(Decimal("1000"), Decimal("4.5"), 12), AS_OF)
        assert summary.next_payment_by_person == {}
        assert summary.remaining_amount_by_person == {}

    def test_blank_name_rejected(self, split_loan):
        with pytest.raises(ValueError):
            summarize_loan(" ", split_loan, AS_OF)

    def test_to_dict_is_json_ready(self, split_loan):
        data = summarize_loan("loan", split_loan, AS_OF).to_dict()

        assert data["loanName"] == "loan"
        assert data["snapshotDate"] == "2026-03-01"
        assert data["remainingAmount"] == 1000000.0
        assert data["nextPaymentTotal"]["fee"] == 65.0
        assert data["nextPaymentByPerson"]["A"]["fee"] == 32.5
        json.dumps(data)


class TestStateSnapshot:

    def test_groups_by_kind(self):
        events = contract_events(term=12) + [
            BillAddedEvent(date(2026, 1, 5), "rent", "Rent", "A", amount=100, shares={"A": 0.5, "B": 0.5}),
        ]
        state = EventStream(events).get_state_for_date(AS_OF)
        snapshot = snapshot_state(state, AS_OF)

        assert list(snapshot.loans) == [LOAN]
        assert list(snapshot.accounts) == ["acct"]
        assert "rent" in snapshot.bills
        assert "apartLoan_payment_2025-12-31" in snapshot.bills
        assert snapshot.balances.owed("B", "A") == Decimal("50")

        data = snapshot.to_dict()
        assert data["balances"] == {"B": {"A": 50.0}}
        assert data["bills"]["rent"]["shares"] == {"A": 0.5, "B": 0.5}
        assert data["loans"][LOAN]["remainingTermMonths"] == 9
        json.dumps(data)

    def test_empty_state(self):
        snapshot = snapshot_state(State(), AS_OF)
        assert snapshot.balances is None
        assert snapshot.to_dict() == {
            "snapshotDate": "2026-03-01", "loans": {}, "accounts": {}, "bills": {},
        }

    def test_account_serialized_with_transactions(self):
        state = State().with_updates({"acct": Account()})
        assert snapshot_state(state, AS_OF).to_dict()["accounts"] == {
            "acct": {"transactions": [], "total": 0.0},
        }
