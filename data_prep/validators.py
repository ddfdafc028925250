"""
Data quality diagnostics for obligation records before they enter the engine.

A malformed record never blocks a household's whole budget view: the
loader skips it and records why here. Catches:
- Missing or invalid anchor dates
- Non-finite or unparseable amounts
- Duplicate obligation ids
- Negative amounts (sign is carried by kind, not amount)
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, List

from core.schema import Obligation


@dataclass
class ValidationResult:
    """Collects all validation warnings/errors for a batch of records."""
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def extend(self, other: "ValidationResult") -> "ValidationResult":
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)
        return self

    def summary(self) -> str:
        lines = []
        if self.errors:
            lines.append(f"ERRORS ({len(self.errors)}):")
            for e in self.errors:
                lines.append(f"  ✗ {e}")
        if self.warnings:
            lines.append(f"WARNINGS ({len(self.warnings)}):")
            for w in self.warnings:
                lines.append(f"  ⚠ {w}")
        if not lines:
            lines.append("✓ All checks passed.")
        return "\n".join(lines)


def validate_obligations(obligations: Iterable[Obligation]) -> ValidationResult:
    """
    Informational checks over already-parsed obligations.
    Everything found here is a warning; blocking problems are caught by the loader.
    """
    result = ValidationResult()
    obligations = list(obligations)

    # --- Ids ---
    counts = Counter(ob.id for ob in obligations)
    dups = sorted(i for i, n in counts.items() if n > 1)
    if dups:
        result.warnings.append(f"{len(dups)} duplicate obligation ids found: {dups}")

    # --- Amounts ---
    n_neg = sum(1 for ob in obligations if ob.amount < 0)
    if n_neg > 0:
        result.warnings.append(
            f"{n_neg} obligations have a negative amount — direction comes from kind, "
            f"check the sign."
        )

    n_zero = sum(1 for ob in obligations if ob.active and ob.amount == 0)
    if n_zero > 0:
        result.warnings.append(f"{n_zero} active obligations have a zero amount.")

    return result
