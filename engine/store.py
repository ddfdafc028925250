"""
Progress store contract — what the engine needs from household storage.

The engine reads active obligations and a cycle's progress rows, and writes
progress rows. Writes must be visible to the next read in the same process.
Progress reads may return ProgressEntry objects or raw storage rows; the
runner parses them either way.
InMemoryStore is the reference implementation (tests, batch runs over
pre-loaded snapshots); real storage lives outside this package.
"""

from __future__ import annotations

import threading
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Protocol, Tuple

from core.schema import ProgressEntry


class ProgressStore(Protocol):
    def active_obligations(self, tenant_id: str) -> List[Any]: ...

    def progress_for_cycle(self, tenant_id: str, cycle_key: str) -> List[Any]: ...

    def upsert_progress(self, tenant_id: str, entry: ProgressEntry) -> None: ...

    def delete_progress(self, tenant_id: str, cycle_key: str, item_key: str) -> bool: ...

    def tenant_data(self, tenant_id: str) -> "TenantData": ...


@dataclass
class TenantData:
    """Everything one household's projection reads, as raw rows or domain objects."""
    obligations: List[Any] = field(default_factory=list)
    budget_cycles: List[Any] = field(default_factory=list)
    accounts: List[Any] = field(default_factory=list)
    holidays: Any = None  # list of ISO dates, a UK bank-holiday payload, or None
    cards: List[Any] = field(default_factory=list)  # credit-card rows
    loans: List[Any] = field(default_factory=list)  # recurring costs; loan-like ones carry balance metadata


class InMemoryStore:
    """Thread-safe dict-backed store; one lock covers all tenants."""

    def __init__(self, tenants: Optional[Mapping[str, TenantData]] = None):
        self._lock = threading.Lock()
        self._tenants: Dict[str, TenantData] = dict(tenants or {})
        # tenant -> (cycle_key, item_key) -> entry
        self._progress: Dict[str, Dict[Tuple[str, str], ProgressEntry]] = defaultdict(dict)

    def add_tenant(self, tenant_id: str, data: TenantData) -> None:
        with self._lock:
            self._tenants[tenant_id] = data

    def tenant_ids(self) -> List[str]:
        with self._lock:
            return sorted(self._tenants)

    def tenant_data(self, tenant_id: str) -> TenantData:
        with self._lock:
            try:
                return self._tenants[tenant_id]
            except KeyError:
                raise KeyError(f"Unknown tenant {tenant_id!r}") from None

    def active_obligations(self, tenant_id: str) -> List[Any]:
        rows = self.tenant_data(tenant_id).obligations
        return [r for r in rows if _is_active(r)]

    def progress_for_cycle(self, tenant_id: str, cycle_key: str) -> List[ProgressEntry]:
        with self._lock:
            rows = self._progress.get(tenant_id, {})
            return [e for (ck, _), e in sorted(rows.items()) if ck == cycle_key]

    def upsert_progress(self, tenant_id: str, entry: ProgressEntry) -> None:
        with self._lock:
            self._progress[tenant_id][(entry.cycle_start.isoformat(), entry.item_key)] = entry

    def delete_progress(self, tenant_id: str, cycle_key: str, item_key: str) -> bool:
        with self._lock:
            return self._progress[tenant_id].pop((cycle_key, item_key), None) is not None


def _is_active(row: Any) -> bool:
    if isinstance(row, Mapping):
        flag = row.get("active", row.get("is_active", True))
        return flag not in (False, 0, "0", "false")
    return bool(getattr(row, "active", True))
