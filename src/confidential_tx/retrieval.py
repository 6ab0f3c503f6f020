"""Fetch encrypted results and decrypt them with the owning party's key."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, cast

from web3.types import ChecksumAddress

from .base import ChainClient
from .config import RetryPolicy
from .constants import DEFAULT_READ_DELAY
from .encryption import SelectorBoundEncryptor
from .exceptions import DecryptionError, EncryptionUnavailable
from .executor import ResilientCallExecutor
from .types import CallTarget, ContractCall, EncryptedResult, PartyIdentity, Receipt

logger = logging.getLogger(__name__)

ReadOperation = Callable[[], Awaitable[EncryptedResult | None]]


class ResultRetriever:
    """Per-party retrieval of re-encrypted contract results.

    Results are re-encrypted per recipient: two parties reading the same
    logical secret receive different ciphertexts, and each may only decrypt
    its own.
    """

    def __init__(
        self,
        chain: ChainClient,
        encryptor: SelectorBoundEncryptor,
        executor: ResilientCallExecutor,
        *,
        retry: RetryPolicy | None = None,
    ) -> None:
        self._chain = chain
        self._encryptor = encryptor
        self._executor = executor
        self._retry = retry or RetryPolicy(initial_delay=DEFAULT_READ_DELAY)

    async def fetch_and_decrypt(
        self, read_operation: ReadOperation, party: PartyIdentity
    ) -> int | None:
        """Run ``read_operation`` and decrypt its result as ``party``.

        Returns:
            The plaintext, or ``None`` when nothing has been stored yet

        Raises:
            DecryptionError: If the result belongs to another party or cannot be decrypted
        """

        result = await self._executor.execute(
            read_operation,
            self._retry.max_attempts,
            self._retry.initial_delay,
            label=f"{party.name}:read",
        )
        if result is None or result.is_empty:
            logger.debug("No encrypted result available for %s", party.name)
            return None

        if result.owner != party.address:
            raise DecryptionError(
                f"Result from {result.source or 'contract'} is encrypted for {result.owner}, "
                f"not for {party.name}",
                party=party.name,
                details={"owner": result.owner, "party_address": party.address},
            )

        try:
            capability = self._encryptor.capability_for(party)
        except EncryptionUnavailable as exc:
            raise DecryptionError(
                f"Party '{party.name}' cannot decrypt results", party=party.name
            ) from exc

        try:
            value = await capability.decrypt_value(result.ciphertext)
        except Exception as exc:
            raise DecryptionError(
                f"Failed to decrypt result from {result.source or 'contract'}",
                party=party.name,
                details={"error": str(exc)},
            ) from exc

        logger.debug("Decrypted result from %s for %s", result.source, party.name)
        return int(value)

    # ------------------------------------------------------------------
    # Read operation builders
    # ------------------------------------------------------------------
    def view(
        self, target: CallTarget, party: PartyIdentity, args: Sequence[Any] = ()
    ) -> ReadOperation:
        """Read an encrypted value through a call issued from ``party``'s address."""

        async def read() -> EncryptedResult | None:
            call = ContractCall(target=target, args=tuple(args), sender=party)
            raw = await self._chain.read(call)
            return _as_encrypted_result(raw, party.address, target.function_name)

        return read

    def event(
        self,
        receipt: Receipt,
        target: CallTarget,
        event_name: str,
        arg_name: str,
        party: PartyIdentity,
    ) -> ReadOperation:
        """Read an encrypted value emitted by ``event_name`` in ``receipt``."""

        async def read() -> EncryptedResult | None:
            call = ContractCall(target=target, args=(), sender=party)
            for event in self._chain.decode_events(call, receipt, event_name):
                if arg_name in event:
                    return _as_encrypted_result(event[arg_name], party.address, event_name)
            logger.debug("No %s event in %s", event_name, receipt.tx_hash)
            return None

        return read


def _as_encrypted_result(raw: Any, owner: str, source: str) -> EncryptedResult | None:
    if raw is None:
        return None
    if isinstance(raw, EncryptedResult):
        return raw
    return EncryptedResult(ciphertext=int(raw), owner=cast(ChecksumAddress, owner), source=source)
