"""Builders shared by the test modules."""

from datetime import date
from decimal import Decimal

from core.schema import (
    AnnotatedOccurrence,
    Frequency,
    Obligation,
    ObligationKind,
    Occurrence,
    OneOff,
    PaidStatus,
    Periodic,
)


def make_obligation(
    id="1",
    kind=ObligationKind.EXPENSE,
    amount="100",
    frequency=Frequency.MONTHLY,
    anchor=date(2024, 1, 15),
    **kwargs,
):
    if frequency is Frequency.ONE_OFF:
        schedule = OneOff(on=anchor)
    else:
        schedule = Periodic(frequency=frequency, anchor=anchor)
    return Obligation(id=id, kind=kind, amount=Decimal(amount), schedule=schedule, **kwargs)


def make_annotated(
    on,
    amount="100",
    kind=ObligationKind.EXPENSE,
    status=PaidStatus.PENDING,
    obligation_id="1",
    effective_date=None,
):
    occ = Occurrence(obligation_id=obligation_id, kind=kind, due_date=on, amount=Decimal(amount))
    return AnnotatedOccurrence(
        occurrence=occ,
        amount=Decimal(amount),
        status=status,
        effective_date=effective_date or on,
    )


