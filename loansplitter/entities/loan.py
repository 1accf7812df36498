"""
loan.py - Fixed-Rate Amortizing Loans Split Between Participants

This module provides the loan model using the same layering as the other
entities: pure calculation functions plus an immutable dataclass whose
"with_*" transitions return new values.

ARCHITECTURE:
=============

1. PURE CALCULATION FUNCTIONS (calculate_*):
   - Take all inputs explicitly as parameters
   - No Loan, no State, trivially testable

2. FROZEN DATACLASSES:
   - LoanPayment: principal / interest / fee triple for one installment
   - Loan: remaining principal, rate, term, sub-loans and all pending state

3. TRANSITIONS (Loan.with_*):
   - Return a full new Loan (sub-loans rebuilt, never shared mutably)
   - Pending changes (advance payments, rate change) and one-shot overrides
     live inside the Loan and are consumed by with_execute_next_payment()

Key Formulas:
    r = annual_rate / 12 / 100
    payment = principal * r / (1 - (1 + r) ** -term)
    interest = principal * r
    principal_component = payment - interest
    projected_interest = payment * term - principal

Sub-loans:
    A top-level loan owns one sub-loan per participant. Each month's payment is
    split by share = sub_loan.remaining_amount / loan.remaining_amount, so
    shares drift as advance payments reduce one participant's balance faster.
    The flat fee is split equally regardless of share.
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import ClassVar, Dict, Mapping, Optional, Sequence, Tuple

from ..core import (
    AccountTransaction, EntityKind, DEFAULT_MONTHLY_FEE, ZERO,
    InvalidSplitOverride, UnknownParticipant, ValidationError,
    freeze_map, to_decimal,
)


# Shares: participant -> fraction of the payment (fractions sum to 1)
Shares = Dict[str, Decimal]


# ============================================================================
# PURE CALCULATION FUNCTIONS
# ============================================================================

def calculate_monthly_rate(annual_interest_rate: Decimal) -> Decimal:
    """Convert an annual percentage rate (4.5 = 4.5%) to a monthly fraction."""
    return to_decimal(annual_interest_rate) / Decimal("12") / Decimal("100")


def calculate_annuity_payment(principal: Decimal, monthly_rate: Decimal, term_months: int) -> Decimal:
    """
    Constant monthly payment that amortizes principal over term_months.

    PURE FUNCTION - All inputs explicit, no hidden state.

    Args:
        principal: Outstanding principal.
        monthly_rate: Monthly interest rate as a fraction (0.00375 for 4.5% p.a.).
        term_months: Remaining number of monthly payments.

    Returns:
        principal * r / (1 - (1 + r) ** -n). With a zero rate the principal is
        spread evenly; with no term left the whole principal plus one month of
        interest is due at once.
    """
    if term_months <= 0:
        return principal + principal * monthly_rate
    if monthly_rate == ZERO:
        return principal / Decimal(term_months)
    denominator = Decimal("1") - (Decimal("1") + monthly_rate) ** -term_months
    return principal * monthly_rate / denominator


def calculate_projected_interest(
    principal: Decimal,
    annual_interest_rate: Decimal,
    term_months: int,
) -> Decimal:
    """
    Interest still to be paid if nothing about the loan changes.

    PURE FUNCTION - All inputs explicit, no hidden state.

    Returns:
        payment * term - principal, floored at zero. Zero when the term is
        over, nothing is owed, or the rate is not positive.
    """
    if term_months <= 0 or principal <= ZERO or annual_interest_rate <= ZERO:
        return ZERO
    monthly_rate = calculate_monthly_rate(annual_interest_rate)
    payment = calculate_annuity_payment(principal, monthly_rate, term_months)
    return max(payment * Decimal(term_months) - principal, ZERO)


def normalize_contributions(
    contributions: Mapping[str, Decimal],
    participants: Sequence[str],
) -> Shares:
    """
    Turn raw contributions into shares over every participant.

    Args:
        contributions: Person -> non-negative contribution (any scale, e.g. 3 and 1).
        participants: All participants of the loan.

    Returns:
        Participant -> contribution / total, with 0 for participants not named.

    Raises:
        InvalidSplitOverride: If contributions are empty, the loan has no
            participants, a contribution is negative, or the total is not positive.
        UnknownParticipant: If a contribution names someone outside participants.
    """
    if not contributions:
        raise InvalidSplitOverride("At least one contribution override is required")
    if not participants:
        raise InvalidSplitOverride("Cannot override the split of a loan without sub-loans")

    values = {person: to_decimal(value) for person, value in contributions.items()}
    for person, value in values.items():
        if person not in participants:
            raise UnknownParticipant(
                f"'{person}' is not a participant of this loan (participants: {', '.join(participants)})"
            )
        if value < ZERO:
            raise InvalidSplitOverride(f"Contribution for '{person}' cannot be negative, got {value}")

    total = sum(values.values(), ZERO)
    if total <= ZERO:
        raise InvalidSplitOverride("Contribution overrides must sum to a positive amount")

    return {person: values.get(person, ZERO) / total for person in participants}


# ============================================================================
# FROZEN DATACLASSES
# ============================================================================

@dataclass(frozen=True, slots=True)
class LoanPayment:
    """
    One monthly installment broken into its components.

    Attributes:
        principal: Portion that reduces the remaining principal.
        interest: Interest for the month.
        fee: Flat bank fee.
    """
    principal: Decimal
    interest: Decimal
    fee: Decimal

    def __post_init__(self):
        for name in ('principal', 'interest', 'fee'):
            value = getattr(self, name)
            if not isinstance(value, Decimal):
                object.__setattr__(self, name, to_decimal(value))

    @property
    def total(self) -> Decimal:
        return self.principal + self.interest + self.fee

    def divide(self, shares: Mapping[str, Decimal]) -> Dict[str, LoanPayment]:
        """
        Split this payment by shares.

        Principal and interest are multiplied by each share; the fee is divided
        equally between everyone in shares.
        """
        if not shares:
            return {}
        fee_each = self.fee / Decimal(len(shares))
        return {
            person: LoanPayment(self.principal * share, self.interest * share, fee_each)
            for person, share in shares.items()
        }


@dataclass(frozen=True, slots=True)
class Loan:
    """
    Immutable amortizing loan, optionally split into per-participant sub-loans.

    Attributes:
        remaining_amount: Outstanding principal.
        annual_interest_rate: Nominal annual rate in percent (4.5 = 4.5%).
        remaining_term_months: Payments left; may reach zero or below.
        monthly_fee: Flat fee charged with every payment.
        sub_loans: Participant -> sub-loan (sub-loans have no sub-loans).
        total_interest_paid: Interest paid so far.
        total_fees_paid: Fees paid so far.
        upcoming_interest_rate: Rate that takes effect at the next payment.
        advance_payments: Extra principal payments waiting for the next payment.
        payment_override: Replaces the computed next payment once.
        split_override: Replaces the balance-based shares of the next payment once.
    """
    remaining_amount: Decimal
    annual_interest_rate: Decimal
    remaining_term_months: int
    monthly_fee: Decimal = DEFAULT_MONTHLY_FEE
    sub_loans: Mapping[str, Loan] = field(default_factory=dict)
    total_interest_paid: Decimal = ZERO
    total_fees_paid: Decimal = ZERO
    upcoming_interest_rate: Optional[Decimal] = None
    advance_payments: Tuple[AccountTransaction, ...] = ()
    payment_override: Optional[LoanPayment] = None
    split_override: Optional[Mapping[str, Decimal]] = None

    kind: ClassVar[EntityKind] = EntityKind.LOAN

    def __post_init__(self):
        """Convert float values to Decimal to ensure type consistency."""
        for name in ('remaining_amount', 'annual_interest_rate', 'monthly_fee',
                     'total_interest_paid', 'total_fees_paid'):
            value = getattr(self, name)
            if not isinstance(value, Decimal):
                object.__setattr__(self, name, to_decimal(value))
        if self.upcoming_interest_rate is not None and not isinstance(self.upcoming_interest_rate, Decimal):
            object.__setattr__(self, 'upcoming_interest_rate', to_decimal(self.upcoming_interest_rate))
        if not isinstance(self.advance_payments, tuple):
            object.__setattr__(self, 'advance_payments', tuple(self.advance_payments))
        object.__setattr__(self, 'sub_loans', freeze_map(self.sub_loans))
        if self.split_override is not None:
            object.__setattr__(self, 'split_override', freeze_map(self.split_override))
        for sub_loan in self.sub_loans.values():
            if sub_loan.sub_loans:
                raise ValidationError("Sub-loans cannot have sub-loans of their own")

    # ------------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------------

    @property
    def participants(self) -> Tuple[str, ...]:
        return tuple(self.sub_loans)

    def next_monthly_payment(self) -> LoanPayment:
        """
        The next installment: the one-shot override if set, otherwise the
        annuity payment for the current principal, rate and term.
        """
        if self.payment_override is not None:
            return self.payment_override

        monthly_rate = calculate_monthly_rate(self.annual_interest_rate)
        payment = calculate_annuity_payment(self.remaining_amount, monthly_rate, self.remaining_term_months)
        interest = self.remaining_amount * monthly_rate
        return LoanPayment(payment - interest, interest, self.monthly_fee)

    def projected_interest_remaining(self) -> Decimal:
        return calculate_projected_interest(
            self.remaining_amount, self.annual_interest_rate, self.remaining_term_months,
        )

    def sub_loan_shares(self) -> Shares:
        """
        Share of each participant in the next payment.

        Uses the split override when one is set; otherwise each sub-loan's
        remaining principal over the parent's, recomputed on every call. A
        fully repaid parent splits equally.
        """
        if self.split_override is not None:
            return dict(self.split_override)
        if not self.sub_loans:
            return {}
        if self.remaining_amount <= ZERO:
            equal = Decimal("1") / Decimal(len(self.sub_loans))
            return {person: equal for person in self.sub_loans}
        return {
            person: sub_loan.remaining_amount / self.remaining_amount
            for person, sub_loan in self.sub_loans.items()
        }

    def next_monthly_split_payment(self) -> Dict[str, LoanPayment]:
        """Next payment divided between participants (empty without sub-loans)."""
        return self.next_monthly_payment().divide(self.sub_loan_shares())

    def sub_loan_discrepancy(self) -> Decimal:
        """Parent principal minus the sum of sub-loan principal (zero when consistent)."""
        if not self.sub_loans:
            return ZERO
        return self.remaining_amount - sum(
            (sub_loan.remaining_amount for sub_loan in self.sub_loans.values()), ZERO
        )

    # ------------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------------

    def with_advance_payment(self, transaction: AccountTransaction) -> Loan:
        """
        Queue an extra principal payment until the next payment execution.

        Balances are not touched now; see with_execute_next_payment().

        Raises:
            UnknownParticipant: If the loan is split and the payer is not a participant.
        """
        if self.sub_loans and transaction.person not in self.sub_loans:
            raise UnknownParticipant(
                f"'{transaction.person}' is not a participant of this loan"
            )
        return replace(self, advance_payments=self.advance_payments + (transaction,))

    def with_interest_rate(self, rate: Decimal) -> Loan:
        """
        Queue a rate change on the loan and every sub-loan.

        The change takes effect at the next payment execution, so the currently
        quoted next payment is unaffected.
        """
        rate = to_decimal(rate)
        return replace(
            self,
            upcoming_interest_rate=rate,
            sub_loans={
                person: replace(sub_loan, upcoming_interest_rate=rate)
                for person, sub_loan in self.sub_loans.items()
            },
        )

    def with_correct_next_payment(self, principal: Decimal, interest: Decimal) -> Loan:
        """
        Override the next payment's principal and interest (fee unchanged).

        Pending advance payments and a pending rate change are applied first so
        the correction lands on top of them.
        """
        settled = self._with_pending_changes_applied()
        return replace(
            settled,
            payment_override=LoanPayment(to_decimal(principal), to_decimal(interest), self.monthly_fee),
        )

    def with_correct_next_payment_split(self, contributions: Mapping[str, Decimal]) -> Loan:
        """
        Override how the next payment is divided between participants.

        Raises:
            InvalidSplitOverride: Empty contributions, no sub-loans, a negative
                contribution or a non-positive total.
            UnknownParticipant: A contribution names a non-participant.
        """
        shares = normalize_contributions(contributions, self.participants)
        return replace(self, split_override=shares)

    def with_execute_next_payment(self) -> Loan:
        """
        Pay the next installment.

        Order:
        1. Split the payment using balances as they are now.
        2. Reduce principal, accrue interest and fees, shorten the term by one
           month on the parent and every sub-loan.
        3. Apply pending advance payments and the pending rate change.
        4. Clear the one-shot payment and split overrides.
        """
        if not self.sub_loans:
            payment = self.next_monthly_payment()
            paid = replace(
                self,
                remaining_amount=self.remaining_amount - payment.principal,
                total_interest_paid=self.total_interest_paid + payment.interest,
                total_fees_paid=self.total_fees_paid + payment.fee,
                remaining_term_months=self.remaining_term_months - 1,
            )
        else:
            split = self.next_monthly_split_payment()
            remaining = self.remaining_amount
            interest_paid = self.total_interest_paid
            fees_paid = self.total_fees_paid
            sub_loans: Dict[str, Loan] = {}
            for person, sub_loan in self.sub_loans.items():
                share = split[person]
                remaining -= share.principal
                interest_paid += share.interest
                fees_paid += share.fee
                sub_loans[person] = replace(
                    sub_loan,
                    remaining_amount=sub_loan.remaining_amount - share.principal,
                    total_interest_paid=sub_loan.total_interest_paid + share.interest,
                    total_fees_paid=sub_loan.total_fees_paid + share.fee,
                    remaining_term_months=sub_loan.remaining_term_months - 1,
                )
            paid = replace(
                self,
                remaining_amount=remaining,
                total_interest_paid=interest_paid,
                total_fees_paid=fees_paid,
                remaining_term_months=self.remaining_term_months - 1,
                sub_loans=sub_loans,
            )

        return replace(
            paid._with_pending_changes_applied(),
            payment_override=None,
            split_override=None,
        )

    def _with_pending_changes_applied(self) -> Loan:
        """Fold queued advance payments and the pending rate change into balances."""
        remaining = self.remaining_amount
        sub_loans = dict(self.sub_loans)
        for advance in self.advance_payments:
            remaining -= advance.amount
            if advance.person in sub_loans:
                payer = sub_loans[advance.person]
                sub_loans[advance.person] = replace(
                    payer, remaining_amount=payer.remaining_amount - advance.amount,
                )

        sub_loans = {
            person: _with_pending_rate_applied(sub_loan)
            for person, sub_loan in sub_loans.items()
        }
        return _with_pending_rate_applied(
            replace(self, remaining_amount=remaining, advance_payments=(), sub_loans=sub_loans)
        )


def _with_pending_rate_applied(loan: Loan) -> Loan:
    if loan.upcoming_interest_rate is None:
        return loan
    return replace(loan, annual_interest_rate=loan.upcoming_interest_rate, upcoming_interest_rate=None)


# ============================================================================
# FACTORY
# ============================================================================

def create_loan(
    principal: Decimal,
    annual_interest_rate: Decimal,
    term_months: int,
    participants: Sequence[str] = (),
    monthly_fee: Decimal = DEFAULT_MONTHLY_FEE,
) -> Loan:
    """
    Create a loan, optionally split equally between participants.

    Args:
        principal: Amount borrowed.
        annual_interest_rate: Nominal annual rate in percent.
        term_months: Number of monthly payments.
        participants: Names of the people sharing the loan. Each gets an equal
            sub-loan; the last one absorbs any rounding remainder so the
            sub-loans always sum to the principal.
        monthly_fee: Flat fee charged with every payment.

    Returns:
        A new Loan.

    Raises:
        ValidationError: If principal is negative, term is not positive, or
            participant names are empty or repeated.

    Example:
        loan = create_loan(Decimal("1000000"), Decimal("4.5"), 360, ("A", "B"))
        loan.sub_loans["A"].remaining_amount   # Decimal("500000")
    """
    principal = to_decimal(principal)
    annual_interest_rate = to_decimal(annual_interest_rate)
    monthly_fee = to_decimal(monthly_fee)

    if principal < ZERO:
        raise ValidationError(f"principal cannot be negative, got {principal}")
    if term_months <= 0:
        raise ValidationError(f"term_months must be positive, got {term_months}")
    if any(not name or not name.strip() for name in participants):
        raise ValidationError("participant names cannot be empty")
    if len(set(participants)) != len(participants):
        raise ValidationError(f"participant names must be unique, got {list(participants)}")

    sub_loans: Dict[str, Loan] = {}
    if participants:
        equal_part = principal / Decimal(len(participants))
        allocated = ZERO
        for index, person in enumerate(participants):
            amount = principal - allocated if index == len(participants) - 1 else equal_part
            allocated += amount
            sub_loans[person] = Loan(
                remaining_amount=amount,
                annual_interest_rate=annual_interest_rate,
                remaining_term_months=term_months,
                monthly_fee=monthly_fee,
            )

    return Loan(
        remaining_amount=principal,
        annual_interest_rate=annual_interest_rate,
        remaining_term_months=term_months,
        monthly_fee=monthly_fee,
        sub_loans=sub_loans,
    )
