"""
multitoken - ERC1155-style Multi-Token Ledger

An in-memory ledger of (account, token id) balances with atomic single and
batch mint, burn and transfer operations, operator approvals and an explicit
event sink.

Usage:
    from multitoken import MultiTokenLedger, RecordingSink, ZERO_ADDRESS

    sink = RecordingSink()
    ledger = MultiTokenLedger(uri="https://token-cdn-domain/{id}.json", sinks=[sink])

    ledger.mint_batch("0xholder", [2000, 2010, 2020], [1, 1, 1])
    ledger.balance_of_batch(["0xholder"] * 3, [2000, 2010, 2020]).unwrap()
    # [1, 1, 1]

    result = ledger.burn("0xholder", 2000, 5)
    result.ok        # False
    result.message   # "burn amount exceeds balance"
    result.unwrap()  # raises InsufficientBalance
"""

# Core types
from .core import (
    Account,
    TokenId,
    BalanceTable,
    ExecuteResult,
    ErrorKind,
    OperationResult,
    LedgerError,
    InvalidReceiver,
    InvalidSender,
    LengthMismatch,
    InsufficientBalance,
    MissingApproval,
    InvalidOperator,
    InvalidAmount,
    BalanceOverflow,
    ReceiverRejected,
    ReentrantCall,
    exception_for,
    is_zero_address,
    is_uint256,
    ZERO_ADDRESS,
    SYSTEM_OPERATOR,
    MAX_UINT256,
    REASON_PREFIX,
    INTERFACE_ID_ERC165,
    INTERFACE_ID_ERC1155,
    INTERFACE_ID_ERC1155_METADATA_URI,
)

# Events and sinks
from .events import (
    TransferSingle,
    TransferBatch,
    ApprovalForAll,
    URI,
    LedgerEvent,
    EventSink,
    RecordingSink,
    LoggingSink,
    event_to_dict,
    find_events,
)

# Receiver hooks
from .receiver import (
    TokenReceiver,
    ERC1155_RECEIVED,
    ERC1155_BATCH_RECEIVED,
)

# Configuration and logging
from .config import LedgerConfig
from .logging import configure_logging, get_logger

# Ledger
from .ledger import MultiTokenLedger

__all__ = [
    # Core
    'Account', 'TokenId', 'BalanceTable',
    'ExecuteResult', 'ErrorKind', 'OperationResult',
    'LedgerError', 'InvalidReceiver', 'InvalidSender', 'LengthMismatch',
    'InsufficientBalance', 'MissingApproval', 'InvalidOperator', 'InvalidAmount',
    'BalanceOverflow', 'ReceiverRejected', 'ReentrantCall', 'exception_for',
    'is_zero_address', 'is_uint256',
    'ZERO_ADDRESS', 'SYSTEM_OPERATOR', 'MAX_UINT256', 'REASON_PREFIX',
    'INTERFACE_ID_ERC165', 'INTERFACE_ID_ERC1155', 'INTERFACE_ID_ERC1155_METADATA_URI',
    # Events
    'TransferSingle', 'TransferBatch', 'ApprovalForAll', 'URI', 'LedgerEvent',
    'EventSink', 'RecordingSink', 'LoggingSink', 'event_to_dict', 'find_events',
    # Receivers
    'TokenReceiver', 'ERC1155_RECEIVED', 'ERC1155_BATCH_RECEIVED',
    # Config / logging
    'LedgerConfig', 'configure_logging', 'get_logger',
    # Ledger
    'MultiTokenLedger',
]

__version__ = '1.0.0'
