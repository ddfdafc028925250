"""
Nightly batch — projection and reminder matching for many households.

Households share no state, so each one runs independently on a bounded
thread pool; ordering between households is unspecified. A failure in one
household is logged and recorded without affecting the others.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from core.config import EngineConfig
from core.schema import Occurrence

from .runner import ProjectionOutcome, run_projection, upcoming_reminders
from .store import ProgressStore

logger = logging.getLogger(__name__)


@dataclass
class TenantRun:
    tenant_id: str
    outcome: Optional[ProjectionOutcome] = None
    reminders: List[Occurrence] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _run_tenant(store: ProgressStore, tenant_id: str, now, config: EngineConfig) -> TenantRun:
    outcome = run_projection(store, tenant_id, now, config=config)
    reminders = upcoming_reminders(store, tenant_id, now, config=config)
    return TenantRun(tenant_id=tenant_id, outcome=outcome, reminders=reminders)


def run_nightly(
    store: ProgressStore,
    tenant_ids: Iterable[str],
    now,
    *,
    config: Optional[EngineConfig] = None,
) -> Dict[str, TenantRun]:
    """
    Run every household once.

    Returns
    -------
    Dict of tenant id → TenantRun (outcome + reminders, or the error text).
    """
    cfg = config or EngineConfig()
    tenant_ids = list(dict.fromkeys(tenant_ids))
    results: Dict[str, TenantRun] = {}
    if not tenant_ids:
        return results

    with ThreadPoolExecutor(max_workers=max(1, cfg.max_workers)) as pool:
        futures = {
            pool.submit(_run_tenant, store, tenant_id, now, cfg): tenant_id
            for tenant_id in tenant_ids
        }
        for future in as_completed(futures):
            tenant_id = futures[future]
            try:
                results[tenant_id] = future.result()
            except Exception as exc:
                logger.exception("Nightly run failed for tenant %s", tenant_id)
                results[tenant_id] = TenantRun(tenant_id=tenant_id, error=str(exc))

    logger.info(
        "Nightly run finished: %d households, %d failed.",
        len(results),
        sum(1 for r in results.values() if not r.ok),
    )
    return results
