"""
events.py - Event records and notification sinks

Every committed ledger mutation produces exactly one event. The ledger appends
it to its own event log and then hands it to each subscribed sink. Sinks decide
what observing means: capturing for tests, logging, forwarding elsewhere.

Events are plain frozen data; sinks are anything with an emit(event) method.
"""

from __future__ import annotations
from dataclasses import dataclass, fields
import logging
from typing import Any, List, Optional, Protocol, Tuple, Type, Union, runtime_checkable

from .core import Account, TokenId
from .logging import get_logger


# ============================================================================
# EVENT RECORDS
# ============================================================================

@dataclass(frozen=True, slots=True)
class TransferSingle:
    """
    A single-id movement: mint (from_ is zero), burn (to is zero) or transfer.

    Attributes:
        operator: Account that performed the call.
        from_: Debited account.
        to: Credited account.
        id: Token id moved.
        value: Amount moved.
    """
    operator: Account
    from_: Account
    to: Account
    id: TokenId
    value: int

    def __repr__(self) -> str:
        return f"TransferSingle({self.value} of #{self.id}: {self.from_}→{self.to} by {self.operator})"


@dataclass(frozen=True, slots=True)
class TransferBatch:
    """A multi-id movement. ids and values are positional and equal length."""
    operator: Account
    from_: Account
    to: Account
    ids: Tuple[TokenId, ...]
    values: Tuple[int, ...]

    def __repr__(self) -> str:
        return f"TransferBatch({len(self.ids)} ids: {self.from_}→{self.to} by {self.operator})"


@dataclass(frozen=True, slots=True)
class ApprovalForAll:
    """`account` granted or revoked `operator`'s right to move all its tokens."""
    account: Account
    operator: Account
    approved: bool


@dataclass(frozen=True, slots=True)
class URI:
    """Metadata URI published for a token id."""
    value: str
    id: TokenId


LedgerEvent = Union[TransferSingle, TransferBatch, ApprovalForAll, URI]


def event_to_dict(event: LedgerEvent) -> dict:
    """Field dict for an event, plus its name under 'event'."""
    data = {f.name: getattr(event, f.name) for f in fields(event)}
    data["event"] = type(event).__name__
    return data


def find_events(
    events: List[LedgerEvent],
    event_type: Type[Any],
    **expected: Any,
) -> List[LedgerEvent]:
    """
    Return the events of `event_type` whose fields match every `expected` item.

    Sequence fields compare by value, so lists may be passed for ids/values.
    """
    matches = []
    for event in events:
        if not isinstance(event, event_type):
            continue
        if all(_field_matches(getattr(event, name), want) for name, want in expected.items()):
            matches.append(event)
    return matches


def _field_matches(actual: Any, expected: Any) -> bool:
    if isinstance(actual, tuple) and isinstance(expected, (list, tuple)):
        return actual == tuple(expected)
    return actual == expected


# ============================================================================
# SINKS
# ============================================================================

@runtime_checkable
class EventSink(Protocol):
    """
    Receiver of committed ledger events.

    emit() is called while the ledger lock is held, after the mutation has been
    committed, once per event in emission order.
    """

    def emit(self, event: LedgerEvent) -> None:
        ...


class RecordingSink:
    """Sink that keeps every event it receives, in order."""

    def __init__(self):
        self.events: List[LedgerEvent] = []

    def emit(self, event: LedgerEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type: Type[Any]) -> List[LedgerEvent]:
        return [e for e in self.events if isinstance(e, event_type)]

    def clear(self) -> None:
        self.events.clear()

    def __len__(self) -> int:
        return len(self.events)


class LoggingSink:
    """Sink that writes each event to a logger."""

    def __init__(self, logger: Optional[logging.Logger] = None, level: int = logging.INFO):
        self.logger = logger or get_logger("events")
        self.level = level

    def emit(self, event: LedgerEvent) -> None:
        data = event_to_dict(event)
        name = data.pop("event")
        self.logger.log(self.level, "%s %s", name, data)
