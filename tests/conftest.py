"""
conftest.py - Shared pytest fixtures for multi-token ledger tests

Provides common fixtures used across unit and conformance tests:
- A recording sink
- A fresh ledger per test, owned by OPERATOR, with the sink attached
- A funded ledger with batch and single holdings
"""

import pytest

from multitoken import MultiTokenLedger, RecordingSink

from tests.helpers import (
    OPERATOR, TOKEN_HOLDER, TOKEN_BATCH_HOLDER, TOKEN_BATCH_IDS, TOKEN_ID, INITIAL_URI,
)


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def ledger(sink):
    """Empty ledger whose owner is OPERATOR, with a recording sink attached."""
    return MultiTokenLedger(uri=INITIAL_URI, name="test", owner=OPERATOR, sinks=[sink])


@pytest.fixture
def funded_ledger(ledger):
    """Ledger where TOKEN_BATCH_HOLDER holds 10 of each batch id and TOKEN_HOLDER 5 of TOKEN_ID."""
    ledger.mint_batch(TOKEN_BATCH_HOLDER, TOKEN_BATCH_IDS, [10, 10, 10]).unwrap()
    ledger.mint(TOKEN_HOLDER, TOKEN_ID, 5).unwrap()
    return ledger
