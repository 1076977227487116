"""
Installment schedule derivation.

The schedule is a pure function of the lease terms: the same start date,
duration, annual rent and frequency always give the same installments.
Nothing here touches the database or the clock; persistence happens in
``leases_crud.create_lease`` inside a single transaction.

    installments per year  MONTHLY=12 BIMONTHLY=6 QUARTERLY=4 SEMIANNUAL=2 ANNUAL=1
    months between         12 / installments per year
    installment count      installments per year * duration years
    installment amount     annual rent / installments per year

The lease start date is never a due date: the first installment falls
``months between`` months after it, and each following one is that many
months after the previous due date.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import List, Sequence, Union

from dateutil.relativedelta import relativedelta

from shared.core.exceptions import InvalidLeaseParameters

from ...enum.leasing_enum import PaidMarker, PaymentFrequency

CENT = Decimal("0.01")


@dataclass(frozen=True)
class LeaseTerms:
    start_date: date
    duration_years: int
    annual_rent: Decimal
    frequency: PaymentFrequency


@dataclass(frozen=True)
class ScheduledInstallment:
    number: int
    due_date: date
    amount: Decimal
    paid: PaidMarker = PaidMarker.UNPAID


def installments_per_year(frequency: Union[PaymentFrequency, str]) -> int:
    return parse_frequency(frequency).installments_per_year


def parse_frequency(frequency: Union[PaymentFrequency, str]) -> PaymentFrequency:
    if isinstance(frequency, PaymentFrequency):
        return frequency
    try:
        return PaymentFrequency(str(frequency).strip().upper())
    except ValueError:
        raise InvalidLeaseParameters(
            f"Unsupported payment frequency: {frequency!r}", field="frequency")


def validate_terms(start_date, duration_years, annual_rent, frequency) -> LeaseTerms:
    if isinstance(start_date, datetime) or not isinstance(start_date, date):
        raise InvalidLeaseParameters(
            "start_date must be a calendar date", field="start_date")

    if isinstance(duration_years, bool) or not isinstance(duration_years, int):
        raise InvalidLeaseParameters(
            "duration_years must be a whole number of years", field="duration_years")
    if duration_years < 1:
        raise InvalidLeaseParameters(
            "duration_years must be at least 1", field="duration_years")

    if isinstance(annual_rent, bool):
        raise InvalidLeaseParameters(
            "annual_rent must be a decimal amount", field="annual_rent")
    try:
        rent = Decimal(str(annual_rent))
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidLeaseParameters(
            "annual_rent must be a decimal amount", field="annual_rent")
    if not rent.is_finite() or rent <= 0:
        raise InvalidLeaseParameters(
            "annual_rent must be positive", field="annual_rent")
    if rent != rent.quantize(CENT, rounding=ROUND_HALF_UP):
        raise InvalidLeaseParameters(
            "annual_rent must not have more than 2 decimal places", field="annual_rent")

    frequency = parse_frequency(frequency)
    if installment_amount(rent, frequency) <= 0:
        raise InvalidLeaseParameters(
            f"annual_rent {rent} is too small for {frequency.value} installments",
            field="annual_rent")

    return LeaseTerms(
        start_date=start_date,
        duration_years=duration_years,
        annual_rent=rent,
        frequency=frequency,
    )


def installment_amount(annual_rent: Decimal, frequency: PaymentFrequency) -> Decimal:
    """Per-installment amount at storage scale (cents)."""
    return (annual_rent / frequency.installments_per_year).quantize(CENT, rounding=ROUND_HALF_UP)


def generate_schedule(terms: LeaseTerms) -> List[ScheduledInstallment]:
    """Derive the full, ordered installment set for ``terms``."""
    terms = validate_terms(
        terms.start_date, terms.duration_years, terms.annual_rent, terms.frequency)

    per_year = terms.frequency.installments_per_year
    step = relativedelta(months=terms.frequency.months_between)
    total = per_year * terms.duration_years
    amount = installment_amount(terms.annual_rent, terms.frequency)

    schedule = []
    due_date = terms.start_date
    for number in range(1, total + 1):
        due_date = due_date + step
        schedule.append(ScheduledInstallment(
            number=number, due_date=due_date, amount=amount))
    return schedule


def expected_total(terms: LeaseTerms) -> Decimal:
    return terms.annual_rent * terms.duration_years


def schedule_matches_terms(terms: LeaseTerms, installments: Sequence) -> bool:
    """
    True when ``installments`` still fit ``terms``: right count, and the sum
    within half a cent per installment of rent * years.

    Updating a lease's rent, duration or frequency does not regenerate its
    installments, so this can turn False after an update.
    """
    try:
        terms = validate_terms(
            terms.start_date, terms.duration_years, terms.annual_rent, terms.frequency)
    except InvalidLeaseParameters:
        return False

    count = terms.frequency.installments_per_year * terms.duration_years
    if len(installments) != count:
        return False

    tolerance = Decimal("0.005") * count
    total = sum((Decimal(str(i.amount)) for i in installments), Decimal("0"))
    return abs(total - expected_total(terms)) <= tolerance
