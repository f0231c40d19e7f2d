"""
Core types and pure helpers for the multi-token ledger.

This module provides the foundational pieces the ledger is built from:
1. Constants: zero address, uint256 bounds, interface identifiers
2. Type aliases: Account, TokenId, BalanceTable
3. Error kinds and the literal messages observers match on
4. Exceptions: LedgerError and one subclass per error kind
5. OperationResult: the value every ledger operation returns

Nothing in this module touches ledger state.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Sequence, Tuple, Type


# ============================================================================
# CONSTANTS
# ============================================================================

# Sentinel for "no account". Used as `from_` on mint and `to` on burn.
ZERO_ADDRESS = "0x" + "0" * 40

# Default operator recorded on mint/burn when the caller does not name one.
SYSTEM_OPERATOR = "system"

MAX_UINT256 = 2 ** 256 - 1

# Prefix carried by every revert reason, e.g. "ERC1155: mint to the zero address".
REASON_PREFIX = "ERC1155: "

# ERC165 interface identifiers.
INTERFACE_ID_ERC165 = 0x01FFC9A7
INTERFACE_ID_ERC1155 = 0xD9B67A26
INTERFACE_ID_ERC1155_METADATA_URI = 0x0E89341C
SUPPORTED_INTERFACES = frozenset({
    INTERFACE_ID_ERC165,
    INTERFACE_ID_ERC1155,
    INTERFACE_ID_ERC1155_METADATA_URI,
})


# ============================================================================
# TYPE ALIASES
# ============================================================================

# Address-like identifier of a token holder or operator.
Account = str

# Unsigned integer key of a token class.
TokenId = int

# Mapping from token id to {account: balance}.
BalanceTable = Dict[TokenId, Dict[Account, int]]


def is_zero_address(account: Optional[Account]) -> bool:
    """Return True if `account` denotes the zero account (None and "" included)."""
    if not account:
        return True
    return account.lower() == ZERO_ADDRESS


def is_uint256(value: Any) -> bool:
    """Return True if `value` is an int (not a bool) within [0, MAX_UINT256]."""
    if isinstance(value, bool) or not isinstance(value, int):
        return False
    return 0 <= value <= MAX_UINT256


# ============================================================================
# ENUMS
# ============================================================================

class ExecuteResult(Enum):
    """
    Outcome of a ledger operation.

    APPLIED: all preconditions held and the change was committed.
    REJECTED: a precondition failed; no state was changed.
    """
    APPLIED = "applied"
    REJECTED = "rejected"


class ErrorKind(Enum):
    """Distinguishable failure reasons. Several messages may share a kind."""
    INVALID_RECEIVER = "invalid_receiver"
    INVALID_SENDER = "invalid_sender"
    LENGTH_MISMATCH = "length_mismatch"
    INSUFFICIENT_BALANCE = "insufficient_balance"
    MISSING_APPROVAL = "missing_approval"
    INVALID_OPERATOR = "invalid_operator"
    INVALID_AMOUNT = "invalid_amount"
    BALANCE_OVERFLOW = "balance_overflow"
    RECEIVER_REJECTED = "receiver_rejected"
    REENTRANT_CALL = "reentrant_call"


# Literal messages. Observers match on these, so they must not change.
MSG_MINT_TO_ZERO = "mint to the zero address"
MSG_BURN_FROM_ZERO = "burn from the zero address"
MSG_TRANSFER_TO_ZERO = "transfer to the zero address"
MSG_TRANSFER_FROM_ZERO = "transfer from the zero address"
MSG_IDS_AMOUNTS_MISMATCH = "ids and amounts length mismatch"
MSG_ACCOUNTS_IDS_MISMATCH = "accounts and ids length mismatch"
MSG_BURN_EXCEEDS_BALANCE = "burn amount exceeds balance"
MSG_TRANSFER_EXCEEDS_BALANCE = "insufficient balance for transfer"
MSG_NOT_OWNER_OR_APPROVED = "caller is not token owner or approved"
MSG_APPROVAL_FOR_SELF = "setting approval status for self"
MSG_APPROVAL_NOT_BOOL = "approval must be a boolean"
MSG_INVALID_ID = "token id is not a valid uint256"
MSG_INVALID_AMOUNT = "amount is not a valid uint256"
MSG_BALANCE_OVERFLOW = "balance overflow"
MSG_RECEIVER_REJECTED = "ERC1155Receiver rejected tokens"
MSG_NON_RECEIVER = "transfer to non ERC1155Receiver implementer"
MSG_INVALID_DATA = "data is not valid hex"
MSG_REENTRANT_CALL = "ledger is locked by a receiver hook"


# ============================================================================
# EXCEPTIONS
# ============================================================================

class LedgerError(Exception):
    """
    Base exception for all ledger errors.

    Carries the error kind and the bare message; str() gives the prefixed
    reason so that it reads like the contract's revert string.
    """
    kind: Optional[ErrorKind] = None

    def __init__(self, message: str, kind: Optional[ErrorKind] = None):
        self.message = message
        if kind is not None:
            self.kind = kind
        super().__init__(REASON_PREFIX + message)


class InvalidReceiver(LedgerError):
    """Raised when tokens would be credited to the zero account."""
    kind = ErrorKind.INVALID_RECEIVER


class InvalidSender(LedgerError):
    """Raised when tokens would be debited from the zero account."""
    kind = ErrorKind.INVALID_SENDER


class LengthMismatch(LedgerError):
    """Raised when positional sequences passed together differ in length."""
    kind = ErrorKind.LENGTH_MISMATCH


class InsufficientBalance(LedgerError):
    """Raised when a debit would take a balance below zero."""
    kind = ErrorKind.INSUFFICIENT_BALANCE


class MissingApproval(LedgerError):
    """Raised when an operator moves tokens it is not approved for."""
    kind = ErrorKind.MISSING_APPROVAL


class InvalidOperator(LedgerError):
    kind = ErrorKind.INVALID_OPERATOR


class InvalidAmount(LedgerError):
    """Raised when an id, amount or flag is outside its domain."""
    kind = ErrorKind.INVALID_AMOUNT


class BalanceOverflow(LedgerError):
    kind = ErrorKind.BALANCE_OVERFLOW


class ReceiverRejected(LedgerError):
    """Raised when a contract recipient does not accept incoming tokens."""
    kind = ErrorKind.RECEIVER_REJECTED


class ReentrantCall(LedgerError):
    """Raised when a receiver hook tries to mutate the ledger that called it."""
    kind = ErrorKind.REENTRANT_CALL


_EXCEPTION_BY_KIND: Dict[ErrorKind, Type[LedgerError]] = {
    cls.kind: cls
    for cls in (
        InvalidReceiver, InvalidSender, LengthMismatch, InsufficientBalance,
        MissingApproval, InvalidOperator, InvalidAmount, BalanceOverflow,
        ReceiverRejected, ReentrantCall,
    )
}


def exception_for(kind: ErrorKind, message: str) -> LedgerError:
    """Build the exception matching an error kind."""
    return _EXCEPTION_BY_KIND[kind](message)


# ============================================================================
# OPERATION RESULT
# ============================================================================

@dataclass(frozen=True, slots=True)
class OperationResult:
    """
    Discriminated outcome of a ledger operation.

    Attributes:
        status: APPLIED or REJECTED.
        kind: Error kind when rejected, None otherwise.
        message: Bare error message when rejected, "" otherwise.
        events: Events emitted by the committed change (empty when rejected).
        value: Query payload (e.g. balance_of_batch's list), None for mutations.
    """
    status: ExecuteResult
    kind: Optional[ErrorKind] = None
    message: str = ""
    events: Tuple[Any, ...] = ()
    value: Any = None

    @classmethod
    def applied(cls, events: Sequence[Any] = (), value: Any = None) -> OperationResult:
        return cls(ExecuteResult.APPLIED, events=tuple(events), value=value)

    @classmethod
    def rejected(cls, kind: ErrorKind, message: str) -> OperationResult:
        return cls(ExecuteResult.REJECTED, kind=kind, message=message)

    @property
    def ok(self) -> bool:
        return self.status is ExecuteResult.APPLIED

    @property
    def reason(self) -> str:
        """Prefixed revert reason, or "" when applied."""
        return REASON_PREFIX + self.message if self.message else ""

    def unwrap(self) -> Any:
        """
        Return `value` if applied, otherwise raise the mapped LedgerError.

        Mutating operations carry no value, so unwrap() on them returns None
        and is useful purely for its raise-on-rejection behavior.
        """
        if self.ok:
            return self.value
        raise exception_for(self.kind, self.message)

    def __repr__(self) -> str:
        if self.ok:
            return f"OperationResult(applied, {len(self.events)} events)"
        return f"OperationResult(rejected: {self.reason})"
