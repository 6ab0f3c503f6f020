"""Interfaces of the external collaborators consumed by the orchestration layer."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from .types import (
    ContractCall,
    PartyIdentity,
    PreparedTransaction,
    Receipt,
    TransactionHandle,
)


class EncryptionCapability(ABC):
    """Party-specific access to the confidential runtime's encryption scheme."""

    @abstractmethod
    async def encrypt_value(
        self, value: int, contract_address: str, function_selector: bytes
    ) -> tuple[int, bytes]:
        """Return ``(ciphertext, signature)`` bound to the address and selector."""

    @abstractmethod
    async def decrypt_value(self, ciphertext: int) -> int:
        pass


EncryptionProvider = Callable[[PartyIdentity], EncryptionCapability]


class ChainClient(ABC):
    """Chain access used by the submission pipeline and result retrieval."""

    @abstractmethod
    async def prepare(self, call: ContractCall) -> PreparedTransaction:
        """Build and sign a transaction without sending it."""

    @abstractmethod
    async def send(self, prepared: PreparedTransaction) -> TransactionHandle:
        pass

    @abstractmethod
    async def confirm(self, handle: TransactionHandle) -> Receipt:
        pass

    @abstractmethod
    async def lookup_receipt(self, tx_hash: str) -> Receipt | None:
        pass

    @abstractmethod
    async def read(self, call: ContractCall) -> Any:
        """Execute a call without sending a transaction."""

    @abstractmethod
    def decode_events(
        self, call: ContractCall, receipt: Receipt, event_name: str
    ) -> list[dict[str, Any]]:
        pass
