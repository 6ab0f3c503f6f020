"""Encrypt, submit and confirm contract calls."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

from .base import ChainClient
from .config import RetryPolicy
from .constants import DEFAULT_BIT_WIDTH
from .encryption import SelectorBoundEncryptor
from .exceptions import (
    ConfidentialTxError,
    ContractReverted,
    InsufficientBalance,
    NetworkExhausted,
)
from .executor import (
    ErrorKind,
    ResilientCallExecutor,
    classify_error,
    is_already_known,
    is_nonce_error,
    is_revert_error,
)
from .types import (
    CallState,
    CallTarget,
    ContractCall,
    PartyIdentity,
    PendingCall,
    PreparedTransaction,
    Receipt,
    SubmissionResult,
    TransactionHandle,
)
from .utils import coerce_plain_value

logger = logging.getLogger(__name__)

BalanceCheck = Callable[[], Awaitable[int | None]]


class _SendAttempt:
    """Idempotent send operation handed to the executor.

    The transaction is signed once and re-sent unchanged. It is re-signed
    only after a nonce error and only if the previous hash never landed.
    """

    def __init__(self, chain: ChainClient, call: ContractCall) -> None:
        self._chain = chain
        self._call = call
        self._prepared: PreparedTransaction | None = None
        self._stale = False
        self.in_mempool: str | None = None

    async def __call__(self) -> TransactionHandle:
        if self.in_mempool is not None:
            return TransactionHandle(self.in_mempool, self._call)

        if self._prepared is not None and self._stale:
            previous = await self._chain.lookup_receipt(self._prepared.tx_hash)
            if previous is not None:
                logger.info(
                    "%s: earlier send %s already landed", self._call.label, previous.tx_hash
                )
                return TransactionHandle(previous.tx_hash, self._call)
            self._prepared = None

        if self._prepared is None:
            self._prepared = await self._chain.prepare(self._call)
            self._stale = False

        try:
            return await self._chain.send(self._prepared)
        except Exception as exc:
            if is_already_known(exc):
                self.in_mempool = self._prepared.tx_hash
            elif is_nonce_error(exc):
                self._stale = True
            raise


class TransactionPipeline:
    """Run a call through ENCRYPTING, SUBMITTING and AWAITING_CONFIRMATION."""

    def __init__(
        self,
        chain: ChainClient,
        encryptor: SelectorBoundEncryptor,
        executor: ResilientCallExecutor,
        *,
        retry: RetryPolicy | None = None,
        endpoint: str | None = None,
    ) -> None:
        self._chain = chain
        self._encryptor = encryptor
        self._executor = executor
        self._retry = retry or RetryPolicy()
        self._endpoint = endpoint

    async def ensure_balance(
        self,
        plain_value: Any,
        balance_check: BalanceCheck,
        target: CallTarget,
        party: PartyIdentity,
        *,
        bit_width: int = DEFAULT_BIT_WIDTH,
    ) -> int:
        """Pre-flight check run before anything is encrypted or sent.

        Returns:
            The balance reported by ``balance_check``

        Raises:
            InsufficientBalance: When the balance is unknown or below ``plain_value``
        """

        value = coerce_plain_value(plain_value, bit_width)
        available = await balance_check()
        if available is None or available < value:
            raise InsufficientBalance(
                required=value,
                available=available or 0,
                details={"target": target.describe(), "party": party.name},
            )
        return available

    async def submit_encrypted_call(
        self,
        plain_value: Any,
        target: CallTarget,
        party: PartyIdentity,
        gas_budget: int | None,
        *,
        leading_args: Sequence[Any] = (),
        gas_price: int | None = None,
        retry: RetryPolicy | None = None,
        bit_width: int = DEFAULT_BIT_WIDTH,
    ) -> SubmissionResult:
        """Encrypt ``plain_value`` for ``target`` and send it as ``party``.

        The encrypted argument is appended after ``leading_args``.

        Raises:
            InvalidValue, UnknownFunction, EncryptionUnavailable: Before any network call
            ContractReverted: When the node or the receipt reports a revert
            NetworkExhausted: When submission or confirmation gave up on transient errors
        """

        value = coerce_plain_value(plain_value, bit_width)

        self._log_state(party, target, CallState.ENCRYPTING)
        ciphertext = await self._encryptor.encrypt_for_call(
            value, target, party, bit_width=bit_width
        )

        call = ContractCall(
            target=target,
            args=(*leading_args, ciphertext.as_tuple()),
            sender=party,
            gas_limit=gas_budget,
            gas_price=gas_price,
        )
        receipt, attempts = await self._dispatch(call, retry or self._retry)
        return SubmissionResult(
            receipt=receipt,
            target=target,
            state=CallState.CONFIRMED,
            attempts=attempts,
            echoed_value=value,
            ciphertext_digest=ciphertext.digest(),
            serialized_ciphertext=ciphertext.serialized(),
        )

    async def submit_call(
        self,
        target: CallTarget,
        party: PartyIdentity,
        gas_budget: int | None,
        *,
        args: Sequence[Any] = (),
        gas_price: int | None = None,
        retry: RetryPolicy | None = None,
    ) -> SubmissionResult:
        """Send a call that carries no encrypted argument."""

        call = ContractCall(
            target=target,
            args=tuple(args),
            sender=party,
            gas_limit=gas_budget,
            gas_price=gas_price,
        )
        receipt, attempts = await self._dispatch(call, retry or self._retry)
        return SubmissionResult(
            receipt=receipt, target=target, state=CallState.CONFIRMED, attempts=attempts
        )

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------
    async def _dispatch(self, call: ContractCall, retry: RetryPolicy) -> tuple[Receipt, int]:
        party, target = call.sender, call.target

        self._log_state(party, target, CallState.SUBMITTING)
        pending = PendingCall(label=call.label)
        send = _SendAttempt(self._chain, call)
        try:
            handle = await self._executor.execute(
                send, retry.max_attempts, retry.initial_delay, pending=pending
            )
        except Exception as exc:
            if send.in_mempool is None:
                self._raise_for_failure(exc, call, pending, CallState.SUBMITTING)
                raise
            handle = TransactionHandle(send.in_mempool, call)
            logger.info("%s: adopting in-mempool transaction %s", call.label, handle.tx_hash)

        logger.info("Transaction sent for %s hash=%s", call.label, handle.tx_hash)
        self._log_state(party, target, CallState.AWAITING_CONFIRMATION)
        confirming = PendingCall(label=f"{call.label}:confirm")
        try:
            receipt = await self._executor.execute(
                lambda: self._chain.confirm(handle),
                retry.max_attempts,
                retry.initial_delay,
                pending=confirming,
            )
        except Exception as exc:
            self._raise_for_failure(
                exc, call, confirming, CallState.AWAITING_CONFIRMATION, tx_hash=handle.tx_hash
            )
            raise

        if not receipt.success:
            self._log_state(party, target, CallState.REVERTED)
            raise ContractReverted(
                f"Transaction {receipt.tx_hash} reverted calling {target.describe()}",
                receipt=receipt,
                target=target,
                details={"party": party.name, "block_number": receipt.block_number},
            )

        logger.info(
            "Transaction confirmed for %s hash=%s block=%s",
            call.label,
            receipt.tx_hash,
            receipt.block_number,
        )
        self._log_state(party, target, CallState.CONFIRMED)
        return receipt, pending.attempts

    def _raise_for_failure(
        self,
        exc: Exception,
        call: ContractCall,
        pending: PendingCall,
        stage: CallState,
        *,
        tx_hash: str | None = None,
    ) -> None:
        """Map the executor's last error onto the error taxonomy.

        Node-reported reverts become ``ContractReverted`` and transient errors
        the executor gave up on become ``NetworkExhausted``. Library errors and
        other terminal errors return so the caller re-raises them unchanged.
        """

        party, target = call.sender, call.target
        details: dict[str, Any] = {"party": party.name, "error": str(exc)}
        if tx_hash is not None:
            details["tx_hash"] = tx_hash

        if not isinstance(exc, ConfidentialTxError) and is_revert_error(exc):
            self._log_state(party, target, CallState.REVERTED)
            raise ContractReverted(
                f"{target.describe()} reverted: {exc}",
                target=target,
                details={**details, "stage": stage.value},
            ) from exc

        self._log_state(party, target, CallState.FAILED)
        if classify_error(exc) is ErrorKind.TERMINAL:
            logger.error("%s: %s failed with a terminal error: %s", call.label, stage.value, exc)
            return

        action = "submit" if stage is CallState.SUBMITTING else "confirm"
        subject = target.describe() if tx_hash is None else tx_hash
        raise NetworkExhausted(
            f"Failed to {action} {subject}",
            attempts=pending.attempts,
            stage=stage.value,
            endpoint=self._endpoint,
            details=details,
        ) from exc

    def _log_state(self, party: PartyIdentity, target: CallTarget, state: CallState) -> None:
        logger.debug("Stage %s [%s]: %s", target.function_name, party.name, state.value)
