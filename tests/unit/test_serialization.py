"""
test_serialization.py - Unit tests for the JSON event codec

Tests:
- Every event type survives encode -> decode
- Wire property names and lower-camel type aliases
- Amounts written as exact strings, floats parsed as Decimal
- Malformed payloads raise EventDecodeError
"""

import json
import pytest
from datetime import date
from decimal import Decimal

from loansplitter import (
    AccountCreatedEvent,
    AccountTransaction,
    AccountTransactionEvent,
    AdvancePaymentEvent,
    BillAddedEvent,
    BillCreatedEvent,
    BillItem,
    CorrectNextLoanPaymentEvent,
    CorrectNextLoanPaymentSplitEvent,
    EventDecodeError,
    EVENT_TYPES,
    InterestRateChangedEvent,
    LoanContractedEvent,
    LoanPaymentEvent,
    deserialize_events,
    event_from_dict,
    event_to_dict,
    serialize_events,
)


DAY = date(2026, 1, 15)

ALL_EVENTS = [
    AccountCreatedEvent(DAY, "acct"),
    AccountTransactionEvent(DAY, "acct", AccountTransaction(Decimal("-20.5"), "B")),
    LoanContractedEvent(DAY, "loan", Decimal("1000000"), Decimal("4.5"), 360, "acct", "A", "B"),
    AdvancePaymentEvent(DAY, "loan", AccountTransaction(Decimal("10000"), "A")),
    InterestRateChangedEvent(DAY, "loan", Decimal("4.74")),
    CorrectNextLoanPaymentEvent(DAY, "loan", Decimal("1350.25"), Decimal("3712.8")),
    CorrectNextLoanPaymentSplitEvent(DAY, "loan", {"A": Decimal("3"), "B": Decimal("1")}),
    LoanPaymentEvent(DAY, "acct", "loan"),
    BillCreatedEvent(DAY, "dinner", "Dinner", (BillItem(Decimal("12.5"), "A", "Food"),), "acct"),
    BillAddedEvent(DAY, "rent", "Rent", "A", amount=Decimal("1000"),
                   shares={"A": Decimal("0.6"), "B": Decimal("0.4")}),
    BillAddedEvent(DAY, "lunch", "Lunch", "B", items=(BillItem(Decimal("9.9"), "A", "Food"),)),
]


class TestRoundTrip:

    def test_every_event_type_covered(self):
        assert {event.event_type for event in ALL_EVENTS} == set(EVENT_TYPES)

    @pytest.mark.parametrize("event", ALL_EVENTS, ids=lambda event: event.event_type)
    def test_json_round_trip(self, event):
        (decoded,) = deserialize_events(serialize_events([event]))
        assert decoded == event

    def test_order_preserved(self):
        assert deserialize_events(serialize_events(ALL_EVENTS)) == ALL_EVENTS

    def test_high_precision_amount_kept(self):
        event = AdvancePaymentEvent(DAY, "loan", AccountTransaction(Decimal("12345678.123456789012"), "A"))
        (decoded,) = deserialize_events(serialize_events([event]))
        assert decoded.transaction.amount == Decimal("12345678.123456789012")
        assert decoded == event

    def test_generated_payment_bills_round_trip(self, base_stream):
        bills = [event for event in base_stream.system_events if isinstance(event, BillCreatedEvent)][:24]
        assert bills
        assert any(len(item.amount.as_tuple().digits) > 17 for bill in bills for item in bill.items)
        assert deserialize_events(serialize_events(bills)) == bills


class TestWireShape:

    def test_loan_contracted_keys(self):
        data = event_to_dict(ALL_EVENTS[2])
        assert data == {
            "type": "LoanContracted",
            "date": "2026-01-15",
            "loanName": "loan",
            "principal": "1000000",
            "nominalRate": "4.5",
            "term": 360,
            "backingAccountName": "acct",
            "name1": "A",
            "name2": "B",
        }

    def test_unset_optional_properties_omitted(self):
        data = event_to_dict(ALL_EVENTS[9])
        assert "items" not in data
        assert data["shares"] == {"A": "0.6", "B": "0.4"}

    def test_lower_camel_type_accepted(self):
        event = event_from_dict({"type": "accountCreated", "date": "2026-01-15", "acctName": "acct"})
        assert event == AccountCreatedEvent(DAY, "acct")

    def test_numeric_strings_accepted(self):
        event = event_from_dict({
            "type": "InterestRateChanged", "date": "2026-01-15", "loanName": "loan", "rate": "4.74",
        })
        assert event.rate == Decimal("4.74")

    def test_floats_parsed_exactly(self):
        (event,) = deserialize_events(
            '[{"type": "InterestRateChanged", "date": "2026-01-15", "loanName": "loan", "rate": 4.74}]'
        )
        assert event.rate == Decimal("4.74")

    def test_datetime_strings_accepted(self):
        event = event_from_dict({"type": "AccountCreated", "date": "2026-01-15T00:00:00", "acctName": "a"})
        assert event.date == DAY

    def test_pretty_printed_output_is_json(self):
        assert isinstance(json.loads(serialize_events(ALL_EVENTS, indent=2)), list)


class TestDecodeErrors:

    @pytest.mark.parametrize("payload", [
        {"date": "2026-01-15", "acctName": "acct"},
        {"type": "Nope", "date": "2026-01-15"},
        {"type": "AccountCreated", "acctName": "acct"},
        {"type": "AccountCreated", "date": "15/01/2026", "acctName": "acct"},
        {"type": "AccountCreated", "date": "2026-01-15"},
        {"type": "AccountCreated", "date": "2026-01-15", "acctName": 42},
        {"type": "InterestRateChanged", "date": "2026-01-15", "loanName": "l", "rate": "abc"},
        {"type": "InterestRateChanged", "date": "2026-01-15", "loanName": "l", "rate": True},
        {"type": "LoanContracted", "date": "2026-01-15", "loanName": "l", "principal": 1,
         "nominalRate": 1, "term": 1.5, "backingAccountName": "a", "name1": "A", "name2": "B"},
        {"type": "AdvancePayment", "date": "2026-01-15", "loanName": "l", "transaction": {"amount": 1}},
        {"type": "AdvancePayment", "date": "2026-01-15", "loanName": "l",
         "transaction": {"amount": 1, "person": ""}},
        {"type": "BillCreated", "date": "2026-01-15", "billName": "b", "description": "d",
         "items": [], "acctName": "a"},
        {"type": "CorrectNextLoanPaymentSplit", "date": "2026-01-15", "loanName": "l", "contributions": {}},
        "not an object",
    ])
    def test_malformed_event(self, payload):
        with pytest.raises(EventDecodeError):
            event_from_dict(payload)

    def test_not_an_array(self):
        with pytest.raises(EventDecodeError):
            deserialize_events('{"type": "AccountCreated"}')

    def test_invalid_json(self):
        with pytest.raises(EventDecodeError):
            deserialize_events("[{")

    def test_decode_error_is_value_error(self):
        with pytest.raises(ValueError):
            deserialize_events("[1]")
