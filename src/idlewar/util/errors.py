"""Exception hierarchy for the simulation core and its collaborators."""

from __future__ import annotations


class IdleWarError(Exception):
    """Base class for all idlewar errors."""


class ConfigurationError(IdleWarError):
    """Configuration is out of range. Raised at construction, never per tick."""


class InvalidStateError(IdleWarError):
    """Persisted state is malformed or partially corrupted.

    A missing state file is not an error; only data that exists but cannot
    be trusted raises this.
    """


class InsufficientResourcesError(IdleWarError):
    """A spend request exceeds the ledger balance."""

    def __init__(self, kind: str, needed: float, available: float) -> None:
        super().__init__(f"Not enough {kind} (need {needed}, have {available:.1f})")
        self.kind = kind
        self.needed = needed
        self.available = available
