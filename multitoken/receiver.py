"""
receiver.py - Acceptance hooks for contract recipients

An account registered as a contract must acknowledge every credit it receives
by returning the matching magic value. Plain accounts are never asked.
"""

from __future__ import annotations
from typing import Protocol, Sequence, runtime_checkable

from .core import Account, TokenId


# bytes4(keccak256("onERC1155Received(address,address,uint256,uint256,bytes)"))
ERC1155_RECEIVED = bytes.fromhex("f23a6e61")

# bytes4(keccak256("onERC1155BatchReceived(address,address,uint256[],uint256[],bytes)"))
ERC1155_BATCH_RECEIVED = bytes.fromhex("bc197c81")


@runtime_checkable
class TokenReceiver(Protocol):
    """
    Interface a contract recipient implements to accept tokens.

    Hooks run after the credit has been staged but before it is committed;
    they may read the ledger. Returning anything other than the magic value
    rejects the credit. Raising aborts the operation and the exception
    propagates to the caller.
    """

    def on_erc1155_received(
        self,
        operator: Account,
        from_: Account,
        id: TokenId,
        value: int,
        data: bytes,
    ) -> bytes:
        ...

    def on_erc1155_batch_received(
        self,
        operator: Account,
        from_: Account,
        ids: Sequence[TokenId],
        values: Sequence[int],
        data: bytes,
    ) -> bytes:
        ...
