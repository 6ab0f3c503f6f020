"""Type definitions and data models for confidential transaction orchestration."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, cast

from eth_abi import encode as abi_encode
from eth_account import Account
from hexbytes import HexBytes
from web3 import Web3
from web3.types import ChecksumAddress

from .utils import serialise_receipt

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from .interface import ContractInterface


class CallState(Enum):
    """Stages of one submission through the pipeline."""

    ENCRYPTING = "encrypting"
    SUBMITTING = "submitting"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    CONFIRMED = "confirmed"
    REVERTED = "reverted"
    FAILED = "failed"


@dataclass(frozen=True)
class PartyIdentity:
    """Signing key and onboarding key bound to one on-chain address."""

    name: str
    address: ChecksumAddress
    private_key: str = field(repr=False)
    aes_key: str | None = field(default=None, repr=False)

    @classmethod
    def from_keys(cls, name: str, private_key: str, aes_key: str | None = None) -> PartyIdentity:
        account = Account.from_key(private_key)
        return cls(
            name=name,
            address=cast(ChecksumAddress, account.address),
            private_key=private_key,
            aes_key=aes_key or None,
        )

    @property
    def can_encrypt(self) -> bool:
        return bool(self.aes_key)


@dataclass(frozen=True)
class CallTarget:
    """One entry point of one contract: address plus 4-byte function selector."""

    contract_address: ChecksumAddress
    function_name: str
    signature: str
    selector: bytes
    interface: ContractInterface | None = field(default=None, compare=False, repr=False)

    @property
    def selector_hex(self) -> str:
        return "0x" + self.selector.hex()

    def describe(self) -> str:
        return f"{self.contract_address}.{self.signature}"


@dataclass(frozen=True)
class Ciphertext:
    """Encrypted integer plus the signature binding it to a call target."""

    ciphertext: int
    signature: bytes
    target: CallTarget

    def as_tuple(self) -> tuple[int, bytes]:
        """Return the value as an ``(uint256 ciphertext, bytes signature)`` struct."""

        return (self.ciphertext, self.signature)

    def digest(self) -> str:
        encoded = abi_encode(["uint256", "bytes"], [self.ciphertext, self.signature])
        return Web3.keccak(encoded).to_0x_hex()

    def serialized(self) -> str:
        return str(self.ciphertext)


@dataclass(frozen=True)
class EncryptedResult:
    """Ciphertext read from contract state, re-encrypted for a single owner."""

    ciphertext: int
    owner: ChecksumAddress
    source: str = ""

    @property
    def is_empty(self) -> bool:
        return self.ciphertext == 0


@dataclass(frozen=True)
class ContractCall:
    """A contract invocation issued by one party."""

    target: CallTarget
    args: tuple[Any, ...]
    sender: PartyIdentity
    gas_limit: int | None = None
    gas_price: int | None = None

    @property
    def label(self) -> str:
        return f"{self.sender.name}:{self.target.function_name}"


@dataclass(frozen=True)
class PreparedTransaction:
    """Signed transaction whose hash is known before it is sent."""

    tx_hash: str
    raw_transaction: bytes
    nonce: int
    call: ContractCall


@dataclass(frozen=True)
class TransactionHandle:
    tx_hash: str
    call: ContractCall | None = None


@dataclass(frozen=True)
class Receipt:
    """Confirmation record of an included transaction."""

    tx_hash: str
    success: bool
    block_number: int | None = None
    logs: tuple[Any, ...] = ()
    raw: Any = field(default=None, compare=False, repr=False)

    @classmethod
    def from_web3(cls, receipt: Mapping[str, Any]) -> Receipt:
        tx_hash = receipt.get("transactionHash")
        if isinstance(tx_hash, bytes | bytearray):
            tx_hash = HexBytes(tx_hash).to_0x_hex()
        logs = serialise_receipt(receipt.get("logs")) or []
        return cls(
            tx_hash=str(tx_hash),
            success=receipt.get("status", 0) == 1,
            block_number=receipt.get("blockNumber"),
            logs=tuple(logs),
            raw=receipt,
        )


@dataclass
class PendingCall:
    """Mutable bookkeeping of one in-flight execution."""

    label: str
    attempts: int = 0
    last_error: BaseException | None = None
    elapsed_backoff: float = 0.0
    delays: list[float] = field(default_factory=list)


@dataclass(frozen=True)
class SubmissionResult:
    """Outcome of a confirmed pipeline run."""

    receipt: Receipt
    target: CallTarget
    state: CallState
    attempts: int
    echoed_value: int | None = None
    ciphertext_digest: str | None = None
    serialized_ciphertext: str | None = None

    @property
    def tx_hash(self) -> str:
        return self.receipt.tx_hash

    @property
    def block_number(self) -> int | None:
        return self.receipt.block_number
