"""
account.py - Account Entity

An Account is an append-only list of AccountTransaction records. It is the
"account-ledger" view of money: every bill applied to an account adds one
transaction per participant, and manual deposits/withdrawals are recorded the
same way.

Accounts are auto-materialized by State lookups, so an event can write to an
account that was never explicitly created.
"""

from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal
from typing import ClassVar, Dict, Tuple

from ..core import AccountTransaction, EntityKind, ZERO


@dataclass(frozen=True, slots=True)
class Account:
    """
    Immutable account holding the transactions recorded against it.

    Attributes:
        transactions: Transactions in the order they were recorded.
    """
    transactions: Tuple[AccountTransaction, ...] = ()

    kind: ClassVar[EntityKind] = EntityKind.ACCOUNT

    def with_transaction(self, transaction: AccountTransaction) -> Account:
        """Return a new Account with the transaction appended."""
        return Account(transactions=self.transactions + (transaction,))

    @property
    def total(self) -> Decimal:
        """Sum of all transaction amounts."""
        return sum((tx.amount for tx in self.transactions), ZERO)

    def total_by_person(self) -> Dict[str, Decimal]:
        """Sum of transaction amounts per person, in first-seen order."""
        totals: Dict[str, Decimal] = {}
        for tx in self.transactions:
            totals[tx.person] = totals.get(tx.person, ZERO) + tx.amount
        return totals
