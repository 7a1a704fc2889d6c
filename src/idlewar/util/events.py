"""Typed event bus — decoupled notifications from the simulation.

The core never depends on subscribers: events are emitted after a new
state has been computed, and handlers only observe.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, TypeVar, Type

T = TypeVar("T")


# -- Battlefield events --------------------------------------------------

@dataclass(frozen=True)
class UnitSpawned:
    """A unit was placed on the field."""
    unit_id: int
    faction: str
    archetype: str


@dataclass(frozen=True)
class UnitKilled:
    """A unit's health reached zero and it was removed."""
    unit_id: int
    faction: str
    archetype: str


# -- Progression events --------------------------------------------------

@dataclass(frozen=True)
class RankPromoted:
    """The player reached a new rank."""
    old_rank: int
    new_rank: int


@dataclass(frozen=True)
class PassiveIncomeEarned:
    """The passive income timer paid out."""
    earnings: dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class OfflineProgressApplied:
    """Catch-up earnings and reinforcements were applied at startup."""
    elapsed_ms: float
    earnings: dict[str, float] = field(default_factory=dict)
    units_spawned: int = 0


# -- Host events ---------------------------------------------------------

@dataclass(frozen=True)
class StateSaved:
    """The host persisted the simulation state."""
    path: str
    game_time_ms: float


# -- Event Bus -----------------------------------------------------------

class EventBus:
    """Simple synchronous event bus with typed events.

    Usage:
        bus = EventBus()
        bus.on(UnitKilled, lambda e: print(e.unit_id))
        bus.emit(UnitKilled(unit_id=42, faction="hostile", archetype="Ork Boy"))
    """

    def __init__(self) -> None:
        self._handlers: dict[type, list[Callable[[Any], None]]] = defaultdict(list)

    def on(self, event_type: Type[T], handler: Callable[[T], None]) -> None:
        """Register a handler for an event type."""
        self._handlers[event_type].append(handler)

    def off(self, event_type: Type[T], handler: Callable[[T], None]) -> None:
        """Unregister a handler."""
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def emit(self, event: object) -> None:
        """Emit an event to all registered handlers."""
        for handler in self._handlers.get(type(event), []):
            handler(event)

    def clear(self) -> None:
        """Remove all handlers."""
        self._handlers.clear()
