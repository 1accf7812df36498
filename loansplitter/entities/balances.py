"""
balances.py - PersonBalances Ledger

Running net-debt ledger between participants, accumulated from bills.

A balance entry debtor -> creditor -> amount means the debtor owes the creditor
that cumulative amount. The ledger only ever grows: each bill adds deltas to the
existing (or implicitly zero) balance and a whole new PersonBalances is produced.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from decimal import Decimal
from typing import ClassVar, Dict, Mapping

from ..core import EntityKind, ValidationError, ZERO, freeze_map, to_decimal


@dataclass(frozen=True, slots=True)
class PersonBalances:
    """
    Immutable debtor -> creditor -> cumulative amount owed.

    Use with_debt() to produce updated instances.
    """
    balances: Mapping[str, Mapping[str, Decimal]] = field(default_factory=dict)

    kind: ClassVar[EntityKind] = EntityKind.PERSON_BALANCES

    def __post_init__(self):
        object.__setattr__(self, 'balances', freeze_map(
            {debtor: freeze_map(owed) for debtor, owed in self.balances.items()}
        ))

    def with_debt(self, debtor: str, creditor: str, amount: Decimal) -> PersonBalances:
        """
        Return a new PersonBalances with amount added to debtor's debt to creditor.

        Raises:
            ValidationError: If debtor or creditor is empty, or they are the same person.
        """
        if not debtor or not creditor:
            raise ValidationError("debtor and creditor cannot be empty")
        if debtor == creditor:
            raise ValidationError(f"{debtor} cannot owe themselves")

        amount = to_decimal(amount)
        updated: Dict[str, Dict[str, Decimal]] = {
            name: dict(owed) for name, owed in self.balances.items()
        }
        owed = updated.setdefault(debtor, {})
        owed[creditor] = owed.get(creditor, ZERO) + amount
        return PersonBalances(balances=updated)

    def owed(self, debtor: str, creditor: str) -> Decimal:
        """Amount debtor owes creditor (zero if there is no entry)."""
        return self.balances.get(debtor, {}).get(creditor, ZERO)

    def net(self, person: str, other: str) -> Decimal:
        """What person owes other after offsetting what other owes person."""
        return self.owed(person, other) - self.owed(other, person)
