"""Events emitted by the group registry and the verification orchestrator."""

from dataclasses import dataclass, field, fields
from typing import Callable, List, Optional
import logging
import time

logger = logging.getLogger(__name__)

# Small integers kept as JSON numbers; everything else is a field element.
_PLAIN_INT_FIELDS = {
    "leaf_index",
    "depth",
    "root_validity_duration",
    "old_duration",
    "new_duration",
}


@dataclass(frozen=True)
class CredEvent:
    """Base class: every event belongs to one group."""

    cred_id: int

    @property
    def name(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict:
        """Convert to dictionary; ints are rendered as decimal strings."""
        data = {"event": self.name}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, int) and f.name not in _PLAIN_INT_FIELDS:
                value = str(value)
            data[f.name] = value
        return data


@dataclass(frozen=True)
class CredCreated(CredEvent):
    depth: int
    zero_value: int
    uri: str = ""
    root_validity_duration: int = 0


@dataclass(frozen=True)
class AdminChanged(CredEvent):
    old_admin: str
    new_admin: str


@dataclass(frozen=True)
class RootValidityDurationUpdated(CredEvent):
    old_duration: int
    new_duration: int


@dataclass(frozen=True)
class MemberAdded(CredEvent):
    leaf_index: int
    leaf: int
    root: int


@dataclass(frozen=True)
class MemberUpdated(CredEvent):
    leaf_index: int
    old_leaf: int
    new_leaf: int
    root: int


@dataclass(frozen=True)
class MemberRemoved(CredEvent):
    leaf_index: int
    leaf: int
    root: int


@dataclass(frozen=True)
class ProofVerified(CredEvent):
    root: int
    nullifier_hash: int
    external_nullifier: int
    signal: int
    verified_at: float = field(default_factory=time.time)


Subscriber = Callable[[CredEvent], None]


class EventBus:
    """
    Synchronous publish/subscribe for CredEvents.

    Subscribers are called in registration order. A subscriber that raises
    is logged and skipped. The bus keeps every emitted event in ``history``
    so callers can inspect what happened.
    """

    def __init__(self):
        self._subscribers: List[Subscriber] = []
        self.history: List[CredEvent] = []

    def subscribe(self, callback: Subscriber) -> None:
        self._subscribers.append(callback)

    def unsubscribe(self, callback: Subscriber) -> None:
        self._subscribers.remove(callback)

    def emit(self, event: CredEvent) -> None:
        self.history.append(event)
        logger.debug(f"Event {event.name} for group {event.cred_id}")
        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception:
                # state is already committed, so the mutation still succeeds
                logger.exception(f"Subscriber {callback!r} failed on {event.name} for group {event.cred_id}")

    def events_for(self, cred_id: int, event_type: Optional[type] = None) -> List[CredEvent]:
        """Events of one group, optionally filtered by type."""
        return [
            e
            for e in self.history
            if e.cred_id == cred_id and (event_type is None or isinstance(e, event_type))
        ]
