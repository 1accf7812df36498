"""
serialization.py - JSON Wire Format for Events

Events travel as JSON objects with a "type" discriminator, an ISO "date" and
camelCase properties:

    {"type": "LoanContracted", "date": "2025-11-01", "loanName": "loan",
     "principal": "1000000", "nominalRate": "4.5", "term": 360,
     "backingAccountName": "acct", "name1": "A", "name2": "B"}

Each event type declares its properties once in EVENT_FIELDS; encoding and
decoding are both driven by that table. Lower-camel type names
("accountCreated") are accepted on input. Amounts are written as numeric
strings so every digit of a Decimal survives. On input they may be JSON numbers
or numeric strings; floats are parsed straight to Decimal so 4.74 stays 4.74.

Anything malformed raises EventDecodeError.
"""

from __future__ import annotations
import json
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from .core import AccountTransaction, EventDecodeError, to_decimal
from .entities import BillItem
from .events import (
    EVENT_TYPES, Event,
    AccountCreatedEvent, AccountTransactionEvent, AdvancePaymentEvent,
    BillAddedEvent, BillCreatedEvent, CorrectNextLoanPaymentEvent,
    CorrectNextLoanPaymentSplitEvent, InterestRateChangedEvent,
    LoanContractedEvent, LoanPaymentEvent,
)


# ============================================================================
# VALUE CODECS
# ============================================================================

def _number_out(value: Decimal) -> str:
    return str(value)


def _decimal_in(value: Any) -> Decimal:
    if isinstance(value, (bool, list, dict)) or value is None:
        raise EventDecodeError(f"Expected a number, got {value!r}")
    try:
        result = to_decimal(value)
    except (InvalidOperation, TypeError) as exc:
        raise EventDecodeError(f"Expected a number, got {value!r}") from exc
    if not result.is_finite():
        raise EventDecodeError(f"Expected a finite number, got {value!r}")
    return result


def _int_in(value: Any) -> int:
    number = _decimal_in(value)
    if number != number.to_integral_value():
        raise EventDecodeError(f"Expected a whole number, got {value!r}")
    return int(number)


def _str_in(value: Any) -> str:
    if not isinstance(value, str):
        raise EventDecodeError(f"Expected a string, got {value!r}")
    return value


def _object_in(value: Any) -> Mapping[str, Any]:
    if not isinstance(value, dict):
        raise EventDecodeError(f"Expected an object, got {value!r}")
    return value


def _transaction_out(tx: AccountTransaction) -> Dict[str, Any]:
    return {"amount": _number_out(tx.amount), "person": tx.person}


def _transaction_in(value: Any) -> AccountTransaction:
    data = _object_in(value)
    return AccountTransaction(_decimal_in(_require(data, "amount")), _str_in(_require(data, "person")))


def _items_out(items: Tuple[BillItem, ...]) -> List[Dict[str, Any]]:
    return [
        {"amount": _number_out(item.amount), "person": item.person, "category": item.category}
        for item in items
    ]


def _items_in(value: Any) -> Tuple[BillItem, ...]:
    if not isinstance(value, list):
        raise EventDecodeError(f"Expected a list of items, got {value!r}")
    if not value:
        raise EventDecodeError("Item list cannot be empty")
    items = []
    for raw in value:
        data = _object_in(raw)
        items.append(BillItem(
            _decimal_in(_require(data, "amount")),
            _str_in(_require(data, "person")),
            _str_in(_require(data, "category")),
        ))
    return tuple(items)


def _decimal_map_out(values: Mapping[str, Decimal]) -> Dict[str, Any]:
    return {key: _number_out(value) for key, value in values.items()}


def _decimal_map_in(value: Any) -> Dict[str, Decimal]:
    data = _object_in(value)
    if not data:
        raise EventDecodeError("Mapping cannot be empty")
    return {key: _decimal_in(amount) for key, amount in data.items()}


def _date_in(value: Any) -> date:
    text = _str_in(value)
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text).date()
    except ValueError as exc:
        raise EventDecodeError(f"Invalid date {text!r}") from exc


def _require(data: Mapping[str, Any], key: str) -> Any:
    if key not in data:
        raise EventDecodeError(f"Missing property '{key}'")
    return data[key]


# (encode, decode) per value kind
Codec = Tuple[Callable[[Any], Any], Callable[[Any], Any]]

STRING: Codec = (str, _str_in)
DECIMAL: Codec = (_number_out, _decimal_in)
INTEGER: Codec = (int, _int_in)
TRANSACTION: Codec = (_transaction_out, _transaction_in)
ITEMS: Codec = (_items_out, _items_in)
DECIMAL_MAP: Codec = (_decimal_map_out, _decimal_map_in)


# ============================================================================
# FIELD TABLE
# ============================================================================

# event class -> [(attribute, wire key, codec, required)]
EVENT_FIELDS: Dict[type, List[Tuple[str, str, Codec, bool]]] = {
    AccountCreatedEvent: [
        ('account_name', 'acctName', STRING, True),
    ],
    AccountTransactionEvent: [
        ('account_name', 'acctName', STRING, True),
        ('transaction', 'transaction', TRANSACTION, True),
    ],
    LoanContractedEvent: [
        ('loan_name', 'loanName', STRING, True),
        ('principal', 'principal', DECIMAL, True),
        ('nominal_rate', 'nominalRate', DECIMAL, True),
        ('term', 'term', INTEGER, True),
        ('backing_account_name', 'backingAccountName', STRING, True),
        ('name1', 'name1', STRING, True),
        ('name2', 'name2', STRING, True),
    ],
    AdvancePaymentEvent: [
        ('loan_name', 'loanName', STRING, True),
        ('transaction', 'transaction', TRANSACTION, True),
    ],
    InterestRateChangedEvent: [
        ('loan_name', 'loanName', STRING, True),
        ('rate', 'rate', DECIMAL, True),
    ],
    CorrectNextLoanPaymentEvent: [
        ('loan_name', 'loanName', STRING, True),
        ('principal', 'principal', DECIMAL, True),
        ('interest', 'interest', DECIMAL, True),
    ],
    CorrectNextLoanPaymentSplitEvent: [
        ('loan_name', 'loanName', STRING, True),
        ('contributions', 'contributions', DECIMAL_MAP, True),
    ],
    LoanPaymentEvent: [
        ('from_account_name', 'fromAccountName', STRING, True),
        ('loan_name', 'loanName', STRING, True),
    ],
    BillCreatedEvent: [
        ('bill_name', 'billName', STRING, True),
        ('description', 'description', STRING, True),
        ('items', 'items', ITEMS, True),
        ('account_name', 'acctName', STRING, True),
    ],
    BillAddedEvent: [
        ('bill_name', 'billName', STRING, True),
        ('description', 'description', STRING, True),
        ('paid_by', 'paidBy', STRING, True),
        ('items', 'items', ITEMS, False),
        ('amount', 'amount', DECIMAL, False),
        ('shares', 'shares', DECIMAL_MAP, False),
    ],
}


# ============================================================================
# EVENT CODEC
# ============================================================================

def event_to_dict(event: Event) -> Dict[str, Any]:
    """
    Convert an event to a JSON-ready dict.

    Optional properties that are unset (None or an empty item list) are left
    out.
    """
    fields = EVENT_FIELDS.get(type(event))
    if fields is None:
        raise TypeError(f"No wire format for {type(event).__name__}")

    data: Dict[str, Any] = {"type": event.event_type, "date": event.date.isoformat()}
    for attribute, key, (encode, _), required in fields:
        value = getattr(event, attribute)
        if not required and (value is None or value == ()):
            continue
        data[key] = encode(value)
    return data


def _resolve_type(name: Any) -> type:
    type_name = _str_in(name)
    cls = EVENT_TYPES.get(type_name) or EVENT_TYPES.get(type_name[:1].upper() + type_name[1:])
    if cls is None:
        raise EventDecodeError(f"Unknown event type '{type_name}'")
    return cls


def event_from_dict(data: Any) -> Event:
    """
    Build an event from its wire dict.

    Raises:
        EventDecodeError: Unknown type, missing or mistyped properties, or
            values the event rejects.
    """
    data = _object_in(data)
    cls = _resolve_type(_require(data, "type"))

    try:
        kwargs: Dict[str, Any] = {"date": _date_in(_require(data, "date"))}
        for attribute, key, (_, decode), required in EVENT_FIELDS[cls]:
            if key in data and data[key] is not None:
                kwargs[attribute] = decode(data[key])
            elif required:
                raise EventDecodeError(f"missing property '{key}'")
        return cls(**kwargs)
    except (TypeError, ValueError) as exc:
        raise EventDecodeError(f"{cls.event_type}: {exc}") from exc


def serialize_events(events: Iterable[Event], indent: Optional[int] = None) -> str:
    """Encode events as a JSON array."""
    return json.dumps([event_to_dict(event) for event in events], indent=indent)


def deserialize_events(text: str) -> List[Event]:
    """
    Decode a JSON array of events, keeping their order.

    Raises:
        EventDecodeError: Invalid JSON, a payload that is not an array, or any
            malformed event.
    """
    try:
        payload = json.loads(text, parse_float=Decimal)
    except json.JSONDecodeError as exc:
        raise EventDecodeError(f"Invalid JSON: {exc}") from exc
    if not isinstance(payload, list):
        raise EventDecodeError("Expected a JSON array of events")
    return [event_from_dict(item) for item in payload]
