"""
helpers.py - Shared constants and assertion helpers for ledger tests

The account roles and token constants follow the ERC1155 behavior suite.
expect_event / expect_rejection play the part of expectEvent.inLogs and
expectRevert.
"""

from typing import Any, List, Type

from multitoken import OperationResult, ErrorKind, find_events


OPERATOR = "0x1000000000000000000000000000000000000001"
TOKEN_HOLDER = "0x2000000000000000000000000000000000000002"
TOKEN_BATCH_HOLDER = "0x3000000000000000000000000000000000000003"
ACC1 = "0x4000000000000000000000000000000000000004"
ACC2 = "0x5000000000000000000000000000000000000005"
ACC3 = "0x6000000000000000000000000000000000000006"

INITIAL_URI = "https://token-cdn-domain/{id}.json"

TOKEN_ID = 1990
MINT_AMOUNT = 1
BURN_AMOUNT = 1
TOKEN_BATCH_IDS = [2000, 2010, 2020]
MINT_AMOUNTS = [1, 1, 1]
BURN_AMOUNTS = [1, 1, 1]
DATA = "0x12345678"


def expect_event(events: List[Any], event_type: Type[Any], **fields: Any) -> Any:
    """Assert that exactly one event of `event_type` matches `fields` and return it."""
    matches = find_events(list(events), event_type, **fields)
    assert len(matches) == 1, f"expected one {event_type.__name__} matching {fields}, got {events}"
    return matches[0]


def expect_rejection(result: OperationResult, kind: ErrorKind, message: str) -> None:
    """Assert that an operation was rejected with the given kind and message."""
    assert not result.ok, f"expected rejection '{message}', got {result!r}"
    assert result.kind is kind
    assert result.message == message
    assert result.reason == "ERC1155: " + message
    assert result.events == ()
