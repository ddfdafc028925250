"""
Progress overlay — joins occurrences to recorded progress by occurrence key.

Rules per occurrence:
  - no progress row            → passes through as PENDING at nominal amount
  - status CANCELLED (-1)      → dropped; the occurrence does not exist
  - actual_amount set (non-0)  → overrides the nominal amount
  - actual_date set            → moves the effective date (key is unchanged)

Progress rows whose key matches no occurrence are ignored. Applying the
overlay never changes which occurrences exist apart from cancellations.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Dict, Iterable, List, Optional

from core.schema import (
    AnnotatedOccurrence,
    Occurrence,
    OccurrenceKey,
    PaidStatus,
    ProgressEntry,
)

logger = logging.getLogger(__name__)


def index_progress(
    entries: Iterable[ProgressEntry],
    cycle_start: Optional[date] = None,
) -> Dict[OccurrenceKey, ProgressEntry]:
    """
    Map occurrence keys to progress rows, optionally limited to one cycle.
    Later rows for the same key win. Unparseable keys are skipped.
    """
    index: Dict[OccurrenceKey, ProgressEntry] = {}
    for entry in entries:
        if cycle_start is not None and entry.cycle_start != cycle_start:
            continue
        try:
            key = OccurrenceKey.parse(entry.item_key)
        except ValueError:
            logger.debug("Ignoring progress row with malformed key %r", entry.item_key)
            continue
        index[key] = entry
    return index


def annotate(
    occurrences: Iterable[Occurrence],
    progress_entries: Iterable[ProgressEntry],
    *,
    cycle_start: Optional[date] = None,
) -> List[AnnotatedOccurrence]:
    """Apply progress to occurrences, dropping cancelled ones."""
    index = index_progress(progress_entries, cycle_start)
    out: List[AnnotatedOccurrence] = []
    for occ in occurrences:
        entry = index.get(occ.key)
        if entry is not None and entry.status is PaidStatus.CANCELLED:
            logger.debug("Occurrence %s cancelled for this cycle", occ.key)
            continue
        out.append(_apply(occ, entry))
    return out


def cancelled(
    occurrences: Iterable[Occurrence],
    progress_entries: Iterable[ProgressEntry],
    *,
    cycle_start: Optional[date] = None,
) -> List[Occurrence]:
    """The occurrences ``annotate`` would drop (for offering a restore)."""
    index = index_progress(progress_entries, cycle_start)
    out: List[Occurrence] = []
    for occ in occurrences:
        entry = index.get(occ.key)
        if entry is not None and entry.status is PaidStatus.CANCELLED:
            out.append(occ)
    return out


def _apply(occ: Occurrence, entry: Optional[ProgressEntry]) -> AnnotatedOccurrence:
    if entry is None:
        return AnnotatedOccurrence(
            occurrence=occ,
            amount=occ.amount,
            status=PaidStatus.PENDING,
            effective_date=occ.due_date,
        )
    # A zero actual amount is what a bare "mark paid" stores; it is not an override.
    amount = entry.actual_amount if entry.actual_amount else occ.amount
    return AnnotatedOccurrence(
        occurrence=occ,
        amount=amount,
        status=entry.status,
        effective_date=entry.actual_date or occ.due_date,
    )
