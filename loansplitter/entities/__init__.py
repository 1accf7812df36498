"""
Entities module - Immutable value types stored in State.

- Account: append-only list of account transactions
- Bill / BillItem: itemized or share-based bills with debt computation
- PersonBalances: debtor -> creditor running ledger
- Loan / LoanPayment: amortizing loan split into participant sub-loans

All entities re-exported here for convenience.
"""

from typing import Union

from .account import Account
from .balances import PersonBalances
from .bill import (
    Bill,
    BillItem,
    create_split_bill,
    validate_shares,
)
from .loan import (
    Loan,
    LoanPayment,
    Shares,
    create_loan,
    calculate_monthly_rate,
    calculate_annuity_payment,
    calculate_projected_interest,
    normalize_contributions,
)

# Any value that can live in State
Entity = Union[Account, Bill, Loan, PersonBalances]

__all__ = [
    'Account',
    'PersonBalances',
    'Bill', 'BillItem', 'create_split_bill', 'validate_shares',
    'Loan', 'LoanPayment', 'Shares', 'create_loan',
    'calculate_monthly_rate', 'calculate_annuity_payment',
    'calculate_projected_interest', 'normalize_contributions',
    'Entity',
]
