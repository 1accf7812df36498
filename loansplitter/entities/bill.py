"""
bill.py - Bills and Debt Computation

A Bill records a monetary event for one or more participants. It comes in two
shapes:

1. Itemized: a list of BillItem(amount, person, category). Each person's debt is
   the sum of their items.
2. Share-based: a total amount plus a share per person (shares sum to 1 within
   SHARE_TOLERANCE). Each person's debt is amount * share.

Either shape may name who paid (paid_by). compute_debts() then reports, for every
participant other than the payer, how much they owe the payer.

Bills are applied in one of two ways:
- apply_to_account(): account-ledger view, one AccountTransaction per participant
- apply_to_balances(): PersonBalances view, debtor -> payer debts
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import ClassVar, Dict, List, Mapping, Optional, Tuple

from ..core import (
    AccountTransaction, EntityKind, InvalidShares, SHARE_TOLERANCE, ZERO,
    ValidationError, freeze_map, to_decimal, to_decimal_map,
)
from .account import Account
from .balances import PersonBalances


@dataclass(frozen=True, slots=True)
class BillItem:
    """
    One line of an itemized bill.

    Attributes:
        amount: Amount attributed to the person.
        person: Participant the amount belongs to.
        category: Free-form spending category ("Groceries", "LoanPayment", ...).
    """
    amount: Decimal
    person: str
    category: str

    def __post_init__(self):
        if not isinstance(self.amount, Decimal):
            object.__setattr__(self, 'amount', to_decimal(self.amount))
        if not self.person or not self.person.strip():
            raise ValidationError("BillItem person cannot be empty")
        if self.category is None:
            raise ValidationError("BillItem category cannot be None")


def validate_shares(shares: Mapping[str, Decimal]) -> None:
    """
    Check that shares are non-empty and sum to 1 within SHARE_TOLERANCE.

    Raises:
        InvalidShares: If the mapping is empty or the sum is off.
    """
    if not shares:
        raise InvalidShares("Shares must contain at least one entry")
    share_sum = sum(shares.values(), ZERO)
    if abs(share_sum - Decimal("1")) > SHARE_TOLERANCE:
        raise InvalidShares(f"Shares must sum to 1.0, but sum is {share_sum}")


@dataclass(frozen=True, slots=True)
class Bill:
    """
    Immutable bill, itemized or share-based.

    Attributes:
        description: Human-readable description.
        date: Date the bill was recorded.
        items: Itemized lines (empty for share-based bills).
        paid_by: Account or person who paid the bill, if known.
        shares: Person -> share of amount (share-based bills only).
        amount: Total for share-based bills; ignored when items are present.
    """
    description: str
    date: date
    items: Tuple[BillItem, ...] = ()
    paid_by: Optional[str] = None
    shares: Optional[Mapping[str, Decimal]] = None
    amount: Optional[Decimal] = None

    kind: ClassVar[EntityKind] = EntityKind.BILL

    def __post_init__(self):
        if self.description is None:
            raise ValidationError("Bill description cannot be None")
        if not isinstance(self.items, tuple):
            object.__setattr__(self, 'items', tuple(self.items))
        if self.amount is not None and not isinstance(self.amount, Decimal):
            object.__setattr__(self, 'amount', to_decimal(self.amount))
        if self.shares is not None:
            shares = to_decimal_map(self.shares)
            validate_shares(shares)
            object.__setattr__(self, 'shares', freeze_map(shares))
        if not self.items:
            if self.shares is None or self.amount is None:
                raise ValidationError(
                    "A bill needs either items or an amount with shares"
                )

    @property
    def is_itemized(self) -> bool:
        return bool(self.items)

    @property
    def total_amount(self) -> Decimal:
        """Sum of items for itemized bills, otherwise the share-based amount."""
        if self.items:
            return sum((item.amount for item in self.items), ZERO)
        return self.amount

    def amounts_by_person(self) -> Dict[str, Decimal]:
        """Each participant's portion of the bill, in first-seen order."""
        if self.items:
            totals: Dict[str, Decimal] = {}
            for item in self.items:
                totals[item.person] = totals.get(item.person, ZERO) + item.amount
            return totals
        return {person: self.amount * share for person, share in self.shares.items()}

    def compute_debts(self) -> Dict[str, Decimal]:
        """
        What each participant owes the payer.

        The payer's own portion is not a debt and is left out.

        Raises:
            ValidationError: If the bill does not name a payer.
        """
        if not self.paid_by:
            raise ValidationError(f"Bill '{self.description}' has no payer; debts are undefined")
        return {
            person: amount
            for person, amount in self.amounts_by_person().items()
            if person != self.paid_by
        }

    def apply_to_account(self, account: Account) -> Account:
        """Record one AccountTransaction per item (or per share) on the account."""
        updated = account
        if self.items:
            for item in self.items:
                updated = updated.with_transaction(AccountTransaction(item.amount, item.person))
        else:
            for person, portion in self.amounts_by_person().items():
                updated = updated.with_transaction(AccountTransaction(portion, person))
        return updated

    def apply_to_balances(self, balances: PersonBalances) -> PersonBalances:
        """Fold this bill's debts into the PersonBalances ledger."""
        updated = balances
        for debtor, amount in self.compute_debts().items():
            updated = updated.with_debt(debtor, self.paid_by, amount)
        return updated


def create_split_bill(
    description: str,
    bill_date: date,
    category: str,
    total_amount: Decimal,
    shares: Mapping[str, Decimal],
    paid_by: Optional[str] = None,
) -> Bill:
    """
    Build an itemized bill by splitting a total across shares.

    Args:
        description: Bill description.
        bill_date: Date of the bill.
        category: Category applied to every generated item.
        total_amount: Amount to split.
        shares: Person -> share (must sum to 1 within SHARE_TOLERANCE).
        paid_by: Optional payer.

    Returns:
        Bill with one item per share entry.

    Raises:
        InvalidShares: If shares are empty or do not sum to 1.

    Example:
        >>> bill = create_split_bill("Utilities", date(2025, 12, 1), "Utilities",
        ...                          Decimal("1000"), {"A": 0.6, "B": 0.4})
        >>> [item.amount for item in bill.items]
        [Decimal('600.0'), Decimal('400.0')]
    """
    total_amount = to_decimal(total_amount)
    shares = to_decimal_map(shares)
    validate_shares(shares)

    items: List[BillItem] = [
        BillItem(total_amount * share, person, category)
        for person, share in shares.items()
    ]
    return Bill(description=description, date=bill_date, items=tuple(items), paid_by=paid_by)
