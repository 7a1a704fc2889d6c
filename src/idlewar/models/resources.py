"""Resource ledger model — the accumulated currencies of a player.

The ledger is immutable; every operation in engine/ledger.py returns a
new instance.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Mapping, Optional

from idlewar.util.constants import RESOURCE_KINDS


def _zero_amounts() -> dict[str, float]:
    return {kind: 0.0 for kind in RESOURCE_KINDS}


@dataclass(frozen=True)
class ResourceLedger:
    """Mapping from resource kind to a non-negative amount.

    Attributes:
        amounts: {kind: amount} for every kind in RESOURCE_KINDS.
    """

    amounts: Mapping[str, float] = field(default_factory=_zero_amounts)

    @classmethod
    def from_amounts(cls, amounts: Optional[Mapping[str, float]] = None) -> ResourceLedger:
        """Build a ledger with every kind present; missing kinds start at zero."""
        full = _zero_amounts()
        for kind, amount in (amounts or {}).items():
            if kind not in full:
                raise ValueError(f"Unknown resource kind: {kind}")
            if amount < 0:
                raise ValueError(f"Resource amount must be non-negative: {kind}={amount}")
            full[kind] = float(amount)
        return cls(amounts=full)

    def __getitem__(self, kind: str) -> float:
        return self.amounts[kind]

    def __iter__(self) -> Iterator[str]:
        return iter(self.amounts)

    def get(self, kind: str, default: float = 0.0) -> float:
        return self.amounts.get(kind, default)

    def as_dict(self) -> dict[str, float]:
        return dict(self.amounts)
