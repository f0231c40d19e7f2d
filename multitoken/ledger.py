"""
ledger.py - Stateful Multi-Token Ledger

MultiTokenLedger is the only component that mutates balances. Every operation:
    - Validates all inputs before touching state (batches are all-or-nothing)
    - Returns an OperationResult instead of raising
    - Records exactly one event per committed change in the event log
    - Notifies subscribed sinks after the change is committed

Key responsibilities:
    - Balance table keyed by token id then account
    - Mint, burn and transfer, each in single and batch form
    - Operator approvals for delegated transfers
    - Supply tracking and conservation checks
    - Acceptance hooks for contract recipients
"""

from __future__ import annotations
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union
import threading

from .core import (
    # Types
    Account, TokenId, BalanceTable,
    ErrorKind, OperationResult,
    # Constants
    ZERO_ADDRESS, SYSTEM_OPERATOR, SUPPORTED_INTERFACES, REASON_PREFIX,
    MSG_MINT_TO_ZERO, MSG_BURN_FROM_ZERO, MSG_TRANSFER_TO_ZERO, MSG_TRANSFER_FROM_ZERO,
    MSG_IDS_AMOUNTS_MISMATCH, MSG_ACCOUNTS_IDS_MISMATCH,
    MSG_BURN_EXCEEDS_BALANCE, MSG_TRANSFER_EXCEEDS_BALANCE,
    MSG_NOT_OWNER_OR_APPROVED, MSG_APPROVAL_FOR_SELF, MSG_APPROVAL_NOT_BOOL,
    MSG_INVALID_ID, MSG_INVALID_AMOUNT, MSG_BALANCE_OVERFLOW,
    MSG_RECEIVER_REJECTED, MSG_NON_RECEIVER, MSG_INVALID_DATA, MSG_REENTRANT_CALL,
    MAX_UINT256,
    # Helpers
    is_zero_address, is_uint256,
)
from .config import LedgerConfig
from .events import (
    TransferSingle, TransferBatch, ApprovalForAll, URI,
    LedgerEvent, EventSink, LoggingSink,
)
from .logging import get_logger
from .receiver import TokenReceiver, ERC1155_RECEIVED, ERC1155_BATCH_RECEIVED

logger = get_logger("ledger")

# (token id, account) -> balance before staging, None if the entry did not exist
_Snapshot = Tuple[Dict[Tuple[TokenId, Account], Optional[int]], Dict[TokenId, Optional[int]]]


def _as_bytes(data: Union[bytes, str, None]) -> bytes:
    """Accept raw bytes or a hex string such as "0x12345678". Malformed hex raises ValueError."""
    if data is None:
        return b""
    if isinstance(data, str):
        text = data[2:] if data[:2].lower() == "0x" else data
        return bytes.fromhex(text)
    return bytes(data)


class MultiTokenLedger:
    """
    ERC1155-style multi-token ledger with atomic batches and an audit trail.

    Design Principles:
        - Always validates: every precondition is checked before any balance
          changes, so a rejected call leaves no trace.
        - Always logs: every committed change appends one event to event_log.

    Thread Safety:
        Every public method holds a reentrant lock for its whole duration,
        including sink dispatch and receiver hooks. Receiver hooks may read
        the ledger but any mutation they attempt is rejected with
        REENTRANT_CALL, so a rollback never has to undo a nested change.

    Example:
        ledger = MultiTokenLedger(uri="https://token-cdn-domain/{id}.json")
        ledger.mint("0xholder", 1990, 1)
        assert ledger.balance_of("0xholder", 1990) == 1

        result = ledger.burn("0xholder", 1990, 2)
        assert result.message == "burn amount exceeds balance"
    """

    def __init__(
        self,
        uri: str = "",
        name: str = "main",
        owner: Account = SYSTEM_OPERATOR,
        sinks: Optional[Iterable[EventSink]] = None,
    ):
        """
        Create a ledger.

        Args:
            uri: Shared metadata URI template
            name: Ledger identifier (used in logs)
            owner: Operator recorded on mint/burn calls that do not name one
            sinks: Event sinks notified after each committed change
        """
        self.name = name
        self.owner = owner
        self._uri = uri
        self.balances: BalanceTable = {}
        self._supply: Dict[TokenId, int] = {}
        self._operator_approvals: Dict[Account, Dict[Account, bool]] = {}
        # Accounts that must acknowledge credits; None means no hook implemented
        self._contracts: Dict[Account, Optional[TokenReceiver]] = {}
        self.event_log: List[LedgerEvent] = []
        self._sinks: List[EventSink] = list(sinks or ())
        self._lock = threading.RLock()
        # Receiver hooks currently running on this ledger
        self._hook_depth = 0

    @classmethod
    def from_config(cls, config: LedgerConfig, sinks: Optional[Iterable[EventSink]] = None) -> MultiTokenLedger:
        """
        Build a ledger from a LedgerConfig.

        Sets config.log_level on the multitoken logger. Handlers are left to
        configure_logging().
        """
        get_logger().setLevel(config.log_level)
        all_sinks = list(sinks or ())
        if config.log_events:
            all_sinks.append(LoggingSink())
        return cls(uri=config.uri, name=config.name, owner=config.owner, sinks=all_sinks)

    def __repr__(self) -> str:
        return f"MultiTokenLedger({self.name!r}, {len(self._supply)} ids, {len(self.event_log)} events)"

    # ========================================================================
    # SINKS AND CONTRACT ACCOUNTS
    # ========================================================================

    def subscribe(self, sink: EventSink) -> None:
        with self._lock:
            self._sinks.append(sink)

    def unsubscribe(self, sink: EventSink) -> None:
        with self._lock:
            self._sinks.remove(sink)

    def register_contract(self, account: Account, receiver: Optional[TokenReceiver] = None) -> None:
        """
        Mark an account as a contract recipient.

        Credits to it must be acknowledged by `receiver`. A contract registered
        without a receiver rejects every credit.
        """
        if is_zero_address(account):
            raise ValueError("Cannot register the zero address as a contract")
        with self._lock:
            self._contracts[account] = receiver

    def is_contract(self, account: Account) -> bool:
        with self._lock:
            return account in self._contracts

    # ========================================================================
    # READ-ONLY QUERIES
    # ========================================================================

    def balance_of(self, account: Account, id: TokenId) -> int:
        """Balance of `id` held by `account`; 0 for pairs never credited."""
        with self._lock:
            return self.balances.get(id, {}).get(account, 0)

    def balance_of_batch(self, accounts: Sequence[Account], ids: Sequence[TokenId]) -> OperationResult:
        """
        Positional balance lookups.

        Returns:
            APPLIED result whose value is the list of balances, or REJECTED
            with LENGTH_MISMATCH when the sequences differ in length.
        """
        if len(accounts) != len(ids):
            return self._reject("balance_of_batch", ErrorKind.LENGTH_MISMATCH, MSG_ACCOUNTS_IDS_MISMATCH)
        with self._lock:
            values = [self.balances.get(i, {}).get(a, 0) for a, i in zip(accounts, ids)]
        return OperationResult.applied(value=values)

    def is_approved_for_all(self, account: Account, operator: Account) -> bool:
        with self._lock:
            return self._operator_approvals.get(account, {}).get(operator, False)

    def total_supply(self, id: TokenId) -> int:
        """Total amount of `id` in existence (minted minus burned)."""
        with self._lock:
            return self._supply.get(id, 0)

    def exists(self, id: TokenId) -> bool:
        return self.total_supply(id) > 0

    def holders(self, id: TokenId) -> Dict[Account, int]:
        """Accounts holding a non-zero balance of `id`."""
        with self._lock:
            return {a: b for a, b in self.balances.get(id, {}).items() if b}

    def token_ids(self) -> List[TokenId]:
        """Every id that has a balance entry, sorted."""
        with self._lock:
            return sorted(self.balances)

    def uri(self, id: TokenId) -> str:
        """
        Metadata URI template for `id`.

        The same template serves every id; clients replace "{id}" with the
        lowercase 64-digit hex form of the id (see token_uri()).
        """
        return self._uri

    def token_uri(self, id: TokenId) -> str:
        """uri(id) with the "{id}" placeholder substituted."""
        return self._uri.replace("{id}", f"{id:064x}")

    def supports_interface(self, interface_id: int) -> bool:
        return interface_id in SUPPORTED_INTERFACES

    def verify_supply(self) -> Dict[str, object]:
        """
        Verify that tracked supply equals the sum of balances for every id.

        Returns:
            Dict with keys:
            - 'valid': bool - True if every id is conserved
            - 'supplies': Dict[int, int] - Tracked supply per id
            - 'discrepancies': List[Dict] - id, tracked, actual for each mismatch
        """
        with self._lock:
            supplies = dict(self._supply)
            discrepancies = []
            for id in sorted(set(self._supply) | set(self.balances)):
                actual = sum(self.balances.get(id, {}).values())
                tracked = self._supply.get(id, 0)
                if actual != tracked:
                    discrepancies.append({'id': id, 'tracked': tracked, 'actual': actual})
        return {
            'valid': not discrepancies,
            'supplies': supplies,
            'discrepancies': discrepancies,
        }

    # ========================================================================
    # MINT / BURN (Mutating)
    # ========================================================================

    def mint(
        self,
        to: Account,
        id: TokenId,
        amount: int,
        data: Union[bytes, str, None] = b"",
        operator: Optional[Account] = None,
    ) -> OperationResult:
        """
        Create `amount` tokens of `id` and credit them to `to`.

        Checks, in order: zero destination, id/amount domain, balance overflow,
        recipient acceptance.
        """
        operator = operator or self.owner
        with self._lock:
            if self._hook_depth:
                return self._reject("mint", ErrorKind.REENTRANT_CALL, MSG_REENTRANT_CALL)
            if is_zero_address(to):
                return self._reject("mint", ErrorKind.INVALID_RECEIVER, MSG_MINT_TO_ZERO)
            return self._move("mint", operator, ZERO_ADDRESS, to, [id], [amount], data, batch=False)

    def mint_batch(
        self,
        to: Account,
        ids: Sequence[TokenId],
        amounts: Sequence[int],
        data: Union[bytes, str, None] = b"",
        operator: Optional[Account] = None,
    ) -> OperationResult:
        """
        Mint several ids to `to` in one all-or-nothing step.

        Length mismatch is reported before any per-element check.
        """
        operator = operator or self.owner
        with self._lock:
            if self._hook_depth:
                return self._reject("mint_batch", ErrorKind.REENTRANT_CALL, MSG_REENTRANT_CALL)
            if is_zero_address(to):
                return self._reject("mint_batch", ErrorKind.INVALID_RECEIVER, MSG_MINT_TO_ZERO)
            if len(ids) != len(amounts):
                return self._reject("mint_batch", ErrorKind.LENGTH_MISMATCH, MSG_IDS_AMOUNTS_MISMATCH)
            return self._move("mint_batch", operator, ZERO_ADDRESS, to, ids, amounts, data, batch=True)

    def burn(
        self,
        from_: Account,
        id: TokenId,
        amount: int,
        operator: Optional[Account] = None,
    ) -> OperationResult:
        """Destroy `amount` tokens of `id` held by `from_`."""
        operator = operator or self.owner
        with self._lock:
            if self._hook_depth:
                return self._reject("burn", ErrorKind.REENTRANT_CALL, MSG_REENTRANT_CALL)
            if is_zero_address(from_):
                return self._reject("burn", ErrorKind.INVALID_SENDER, MSG_BURN_FROM_ZERO)
            return self._move("burn", operator, from_, ZERO_ADDRESS, [id], [amount], b"", batch=False)

    def burn_batch(
        self,
        from_: Account,
        ids: Sequence[TokenId],
        amounts: Sequence[int],
        operator: Optional[Account] = None,
    ) -> OperationResult:
        """
        Burn several ids from `from_` in one all-or-nothing step.

        If more than one index lacks balance, the first in sequence order is
        the one reported. Repeated ids are checked against their combined total.
        """
        operator = operator or self.owner
        with self._lock:
            if self._hook_depth:
                return self._reject("burn_batch", ErrorKind.REENTRANT_CALL, MSG_REENTRANT_CALL)
            if is_zero_address(from_):
                return self._reject("burn_batch", ErrorKind.INVALID_SENDER, MSG_BURN_FROM_ZERO)
            if len(ids) != len(amounts):
                return self._reject("burn_batch", ErrorKind.LENGTH_MISMATCH, MSG_IDS_AMOUNTS_MISMATCH)
            return self._move("burn_batch", operator, from_, ZERO_ADDRESS, ids, amounts, b"", batch=True)

    # ========================================================================
    # TRANSFERS AND APPROVALS (Mutating)
    # ========================================================================

    def safe_transfer_from(
        self,
        from_: Account,
        to: Account,
        id: TokenId,
        amount: int,
        data: Union[bytes, str, None] = b"",
        operator: Optional[Account] = None,
    ) -> OperationResult:
        """
        Move `amount` of `id` from `from_` to `to`.

        `operator` defaults to `from_`; any other operator must be approved
        for all of `from_`'s tokens.
        """
        operator = operator or from_
        # Approval is checked and used under one lock acquisition
        with self._lock:
            rejection = self._check_transfer_parties("safe_transfer_from", operator, from_)
            if rejection is not None:
                return rejection
            if is_zero_address(to):
                return self._reject("safe_transfer_from", ErrorKind.INVALID_RECEIVER, MSG_TRANSFER_TO_ZERO)
            return self._move("safe_transfer_from", operator, from_, to, [id], [amount], data, batch=False)

    def safe_batch_transfer_from(
        self,
        from_: Account,
        to: Account,
        ids: Sequence[TokenId],
        amounts: Sequence[int],
        data: Union[bytes, str, None] = b"",
        operator: Optional[Account] = None,
    ) -> OperationResult:
        """Move several ids from `from_` to `to` in one all-or-nothing step."""
        operator = operator or from_
        with self._lock:
            rejection = self._check_transfer_parties("safe_batch_transfer_from", operator, from_)
            if rejection is not None:
                return rejection
            if len(ids) != len(amounts):
                return self._reject("safe_batch_transfer_from", ErrorKind.LENGTH_MISMATCH, MSG_IDS_AMOUNTS_MISMATCH)
            if is_zero_address(to):
                return self._reject("safe_batch_transfer_from", ErrorKind.INVALID_RECEIVER, MSG_TRANSFER_TO_ZERO)
            return self._move("safe_batch_transfer_from", operator, from_, to, ids, amounts, data, batch=True)

    def set_approval_for_all(self, account: Account, operator: Account, approved: bool) -> OperationResult:
        """Grant or revoke `operator`'s right to transfer all of `account`'s tokens."""
        with self._lock:
            if self._hook_depth:
                return self._reject("set_approval_for_all", ErrorKind.REENTRANT_CALL, MSG_REENTRANT_CALL)
            if account == operator:
                return self._reject("set_approval_for_all", ErrorKind.INVALID_OPERATOR, MSG_APPROVAL_FOR_SELF)
            if not isinstance(approved, bool):
                return self._reject("set_approval_for_all", ErrorKind.INVALID_AMOUNT, MSG_APPROVAL_NOT_BOOL)
            self._operator_approvals.setdefault(account, {})[operator] = approved
            event = ApprovalForAll(account=account, operator=operator, approved=approved)
            return self._commit("set_approval_for_all", event)

    def set_uri(self, new_uri: str, ids: Sequence[TokenId] = ()) -> OperationResult:
        """
        Replace the metadata URI template.

        A URI event is published for each id in `ids`; with no ids the change
        is silent.
        """
        with self._lock:
            if self._hook_depth:
                return self._reject("set_uri", ErrorKind.REENTRANT_CALL, MSG_REENTRANT_CALL)
            for id in ids:
                if not is_uint256(id):
                    return self._reject("set_uri", ErrorKind.INVALID_AMOUNT, MSG_INVALID_ID)
            self._uri = new_uri
            events = [URI(value=new_uri, id=id) for id in ids]
            for event in events:
                self._publish(event)
            logger.debug("[%s] set_uri %r (%d URI events)", self.name, new_uri, len(events))
            return OperationResult.applied(events)

    # ========================================================================
    # INTERNALS
    # ========================================================================

    def _check_transfer_parties(self, op: str, operator: Account, from_: Account) -> Optional[OperationResult]:
        if self._hook_depth:
            return self._reject(op, ErrorKind.REENTRANT_CALL, MSG_REENTRANT_CALL)
        if operator != from_ and not self.is_approved_for_all(from_, operator):
            return self._reject(op, ErrorKind.MISSING_APPROVAL, MSG_NOT_OWNER_OR_APPROVED)
        if is_zero_address(from_):
            return self._reject(op, ErrorKind.INVALID_SENDER, MSG_TRANSFER_FROM_ZERO)
        return None

    def _move(
        self,
        op: str,
        operator: Account,
        from_: Account,
        to: Account,
        ids: Sequence[TokenId],
        amounts: Sequence[int],
        data: Union[bytes, str, None],
        batch: bool,
    ) -> OperationResult:
        """
        Validate, stage, confirm with the recipient and commit one movement.

        `from_` is the zero address for mints and `to` for burns. Callers have
        already checked the parties and sequence lengths.
        """
        ids = list(ids)
        amounts = list(amounts)
        for id, amount in zip(ids, amounts):
            if not is_uint256(id):
                return self._reject(op, ErrorKind.INVALID_AMOUNT, MSG_INVALID_ID)
            if not is_uint256(amount):
                return self._reject(op, ErrorKind.INVALID_AMOUNT, MSG_INVALID_AMOUNT)
        try:
            payload = _as_bytes(data)
        except (TypeError, ValueError):
            return self._reject(op, ErrorKind.INVALID_AMOUNT, MSG_INVALID_DATA)
        insufficient = MSG_BURN_EXCEEDS_BALANCE if is_zero_address(to) else MSG_TRANSFER_EXCEEDS_BALANCE

        with self._lock:
            rejection = self._plan(op, from_, ids, amounts, insufficient)
            if rejection is not None:
                return rejection

            snapshot = self._snapshot(from_, to, ids)
            self._apply(from_, to, ids, amounts)
            try:
                message = self._acceptance_check(operator, from_, to, ids, amounts, payload, batch)
            except BaseException:
                self._restore(snapshot)
                raise
            if message is not None:
                self._restore(snapshot)
                return self._reject(op, ErrorKind.RECEIVER_REJECTED, message)

            if batch:
                event = TransferBatch(operator, from_, to, tuple(ids), tuple(amounts))
            else:
                event = TransferSingle(operator, from_, to, ids[0], amounts[0])
            return self._commit(op, event)

    def _plan(
        self,
        op: str,
        from_: Account,
        ids: List[TokenId],
        amounts: List[int],
        insufficient: str,
    ) -> Optional[OperationResult]:
        """
        Dry-run the movement in index order against projected balances.

        Returns the rejection for the first failing index, or None. Only mints
        can overflow: every balance is bounded by its id's total supply, and
        the supply is capped at MAX_UINT256.
        """
        minting = is_zero_address(from_)
        remaining: Dict[TokenId, int] = {}
        supply: Dict[TokenId, int] = {}

        for id, amount in zip(ids, amounts):
            if minting:
                supply[id] = supply.get(id, self._supply.get(id, 0)) + amount
                if supply[id] > MAX_UINT256:
                    return self._reject(op, ErrorKind.BALANCE_OVERFLOW, MSG_BALANCE_OVERFLOW)
            else:
                balance = remaining.get(id, self.balances.get(id, {}).get(from_, 0))
                if balance < amount:
                    return self._reject(op, ErrorKind.INSUFFICIENT_BALANCE, insufficient)
                remaining[id] = balance - amount
        return None

    def _snapshot(self, from_: Account, to: Account, ids: List[TokenId]) -> _Snapshot:
        accounts = [a for a in (from_, to) if not is_zero_address(a)]
        balances = {
            (id, a): self.balances.get(id, {}).get(a)
            for id in ids for a in accounts
        }
        supply = {id: self._supply.get(id) for id in ids}
        return balances, supply

    def _restore(self, snapshot: _Snapshot) -> None:
        balances, supply = snapshot
        for (id, account), value in balances.items():
            if value is None:
                table = self.balances.get(id)
                if table is not None:
                    table.pop(account, None)
                    if not table:
                        del self.balances[id]
            else:
                self.balances.setdefault(id, {})[account] = value
        for id, value in supply.items():
            if value is None:
                self._supply.pop(id, None)
            else:
                self._supply[id] = value

    def _apply(self, from_: Account, to: Account, ids: List[TokenId], amounts: List[int]) -> None:
        minting = is_zero_address(from_)
        burning = is_zero_address(to)
        for id, amount in zip(ids, amounts):
            if not minting:
                self._adjust(id, from_, -amount)
            if not burning:
                self._adjust(id, to, amount)
            if minting and amount:
                self._supply[id] = self._supply.get(id, 0) + amount
            elif burning and amount:
                self._supply[id] = self._supply.get(id, 0) - amount

    def _adjust(self, id: TokenId, account: Account, delta: int) -> None:
        table = self.balances.get(id)
        # Entries appear on the first non-zero credit and are never removed
        if delta == 0 and (table is None or account not in table):
            return
        if table is None:
            table = self.balances[id] = {}
        table[account] = table.get(account, 0) + delta

    def _acceptance_check(
        self,
        operator: Account,
        from_: Account,
        to: Account,
        ids: List[TokenId],
        amounts: List[int],
        data: bytes,
        batch: bool,
    ) -> Optional[str]:
        """Ask a contract recipient to accept the credit. Returns a rejection message or None."""
        if to not in self._contracts:
            return None
        receiver = self._contracts[to]
        if receiver is None:
            return MSG_NON_RECEIVER
        self._hook_depth += 1
        try:
            if batch:
                response = receiver.on_erc1155_batch_received(operator, from_, list(ids), list(amounts), data)
                expected = ERC1155_BATCH_RECEIVED
            else:
                response = receiver.on_erc1155_received(operator, from_, ids[0], amounts[0], data)
                expected = ERC1155_RECEIVED
        finally:
            self._hook_depth -= 1
        if response != expected:
            return MSG_RECEIVER_REJECTED
        return None

    def _publish(self, event: LedgerEvent) -> None:
        """Append to the event log, then notify sinks. A failing sink does not undo the commit."""
        self.event_log.append(event)
        for sink in list(self._sinks):
            try:
                sink.emit(event)
            except Exception:
                logger.exception("[%s] sink %r failed on %r", self.name, sink, event)

    def _commit(self, op: str, event: LedgerEvent) -> OperationResult:
        self._publish(event)
        logger.debug("[%s] %s applied: %r", self.name, op, event)
        return OperationResult.applied([event])

    def _reject(self, op: str, kind: ErrorKind, message: str) -> OperationResult:
        logger.info("[%s] %s rejected: %s%s", self.name, op, REASON_PREFIX, message)
        return OperationResult.rejected(kind, message)

    # ========================================================================
    # LEDGER OPERATIONS
    # ========================================================================

    def clone(self) -> MultiTokenLedger:
        """
        Create an independent copy of this ledger.

        Balances, supply, approvals, URI and the event log are copied.
        Sinks and contract receivers are shared by reference.
        """
        with self._lock:
            cloned = MultiTokenLedger(uri=self._uri, name=self.name, owner=self.owner, sinks=self._sinks)
            cloned.balances = {id: dict(table) for id, table in self.balances.items()}
            cloned._supply = dict(self._supply)
            cloned._operator_approvals = {a: dict(ops) for a, ops in self._operator_approvals.items()}
            cloned._contracts = dict(self._contracts)
            cloned.event_log = list(self.event_log)
            return cloned
