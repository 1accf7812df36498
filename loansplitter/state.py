"""
state.py - Immutable Named-Entity Snapshot

State maps entity names to entities (Account, Bill, Loan, PersonBalances).
Every event application produces a new State via with_updates(); the previous
State is never touched, so historical snapshots stay valid forever.

Lookups are typed: callers name the EntityKind they expect. Accounts and the
PersonBalances ledger are auto-materialized on first reference, so reading
an account nobody created returns an empty Account instead of failing.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, Dict, Mapping, Optional

from .core import (
    EntityKind, EntityNotFound, EntityKindMismatch, PERSON_BALANCES_KEY,
)
from .entities import Account, Bill, Entity, Loan, PersonBalances


# Kinds that are created on demand instead of failing the lookup
AUTO_MATERIALIZED: Dict[EntityKind, Callable[[], Entity]] = {
    EntityKind.ACCOUNT: Account,
    EntityKind.PERSON_BALANCES: PersonBalances,
}


@dataclass(frozen=True, slots=True)
class State:
    """
    Immutable snapshot of every named entity.

    Attributes:
        entities: Read-only name -> entity mapping.

    Example:
        state = State()
        state = state.with_updates({"acct": Account()})
        state.get_account("acct")
    """
    entities: Mapping[str, Entity] = field(default_factory=dict)

    def __post_init__(self):
        if not isinstance(self.entities, MappingProxyType):
            object.__setattr__(self, 'entities', MappingProxyType(dict(self.entities)))

    def __contains__(self, name: object) -> bool:
        return name in self.entities

    def find(self, name: str) -> Optional[Entity]:
        """Return the entity under name, or None. No auto-materialization."""
        return self.entities.get(name)

    def get(self, name: str, kind: EntityKind) -> Entity:
        """
        Return the entity under name, checking it is of the expected kind.

        Raises:
            EntityNotFound: If nothing is stored under name and kind is not
                auto-materialized.
            EntityKindMismatch: If the stored entity is of another kind.
        """
        entity = self.entities.get(name)
        if entity is None:
            factory = AUTO_MATERIALIZED.get(kind)
            if factory is None:
                raise EntityNotFound(f"No {kind.value} named '{name}' in state")
            return factory()
        if entity.kind is not kind:
            raise EntityKindMismatch(
                f"Entity '{name}' is a {entity.kind.value}, not a {kind.value}"
            )
        return entity

    def get_loan(self, name: str) -> Loan:
        return self.get(name, EntityKind.LOAN)

    def get_account(self, name: str) -> Account:
        return self.get(name, EntityKind.ACCOUNT)

    def get_bill(self, name: str) -> Bill:
        return self.get(name, EntityKind.BILL)

    def get_person_balances(self) -> PersonBalances:
        return self.get(PERSON_BALANCES_KEY, EntityKind.PERSON_BALANCES)

    def of_kind(self, kind: EntityKind) -> Dict[str, Entity]:
        """All entities of one kind, in insertion order."""
        return {name: entity for name, entity in self.entities.items() if entity.kind is kind}

    def with_updates(self, updates: Mapping[str, Entity]) -> State:
        """
        Return a new State with updates overlaid on this one.

        Updates win on key collisions; untouched entities are shared with this
        State (they are immutable, so no copy is needed).
        """
        if not updates:
            return self
        merged = dict(self.entities)
        merged.update(updates)
        return State(MappingProxyType(merged))
