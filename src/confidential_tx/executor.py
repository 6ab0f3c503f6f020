"""Bounded retry with exponential backoff around asynchronous remote calls."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping
from enum import Enum
from typing import Any, TypeVar

from web3.exceptions import ContractLogicError, TimeExhausted

from .constants import (
    ALREADY_KNOWN_MARKER,
    DEFAULT_ALREADY_KNOWN_GRACE,
    DEFAULT_INITIAL_DELAY,
    DEFAULT_MAX_ATTEMPTS,
    NONCE_MARKERS,
    RETRYABLE_CODES,
    RETRYABLE_MARKERS,
    REVERT_MARKER,
)
from .exceptions import ConfidentialTxError, ValidationError
from .types import PendingCall

logger = logging.getLogger(__name__)

T = TypeVar("T")

RetryPredicate = Callable[[BaseException, int], bool]
Sleep = Callable[[float], Awaitable[Any]]


class ErrorKind(Enum):
    ALREADY_SATISFIED = "already_satisfied"
    RETRYABLE = "retryable"
    TERMINAL = "terminal"


def error_text(exc: BaseException) -> str:
    return str(exc).lower()


def error_code(exc: BaseException) -> Any:
    """Extract a JSON-RPC or client error code from an exception, if any."""

    code = getattr(exc, "code", None)
    if code is not None:
        return code

    rpc_response = getattr(exc, "rpc_response", None)
    if isinstance(rpc_response, Mapping):
        error = rpc_response.get("error")
        if isinstance(error, Mapping):
            return error.get("code")

    if exc.args and isinstance(exc.args[0], Mapping):
        return exc.args[0].get("code")
    return None


def is_already_known(exc: BaseException) -> bool:
    return ALREADY_KNOWN_MARKER in error_text(exc)


def is_nonce_error(exc: BaseException) -> bool:
    text = error_text(exc)
    return any(marker in text for marker in NONCE_MARKERS)


def is_revert_error(exc: BaseException) -> bool:
    """True when the node rejected the call because the contract reverted."""

    return isinstance(exc, ContractLogicError) or REVERT_MARKER in error_text(exc)


def is_retryable_error(exc: BaseException) -> bool:
    if isinstance(exc, ConfidentialTxError) or is_revert_error(exc):
        return False
    if isinstance(exc, TimeoutError | ConnectionError | TimeExhausted):
        return True
    text = error_text(exc)
    if any(marker in text for marker in RETRYABLE_MARKERS):
        return True
    code = error_code(exc)
    try:
        return code in RETRYABLE_CODES
    except TypeError:  # unhashable code payloads
        return False


def classify_error(exc: BaseException) -> ErrorKind:
    if isinstance(exc, ConfidentialTxError):
        return ErrorKind.TERMINAL
    if is_already_known(exc):
        return ErrorKind.ALREADY_SATISFIED
    if is_retryable_error(exc):
        return ErrorKind.RETRYABLE
    return ErrorKind.TERMINAL


def backoff_delay(initial_delay: float, attempt: int) -> float:
    """Delay applied after failed ``attempt`` (1-based)."""

    return initial_delay * 2 ** (attempt - 1)


class ResilientCallExecutor:
    """Run an idempotent async operation with bounded retries.

    Each attempt is a fresh invocation of ``operation``. Attempts are strictly
    sequential; state for one execution lives in its own ``PendingCall``.
    """

    def __init__(
        self,
        *,
        already_known_grace: float = DEFAULT_ALREADY_KNOWN_GRACE,
        sleep: Sleep | None = None,
    ) -> None:
        self._already_known_grace = already_known_grace
        self._sleep: Sleep = sleep or asyncio.sleep

    @property
    def already_known_grace(self) -> float:
        return self._already_known_grace

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        initial_delay: float = DEFAULT_INITIAL_DELAY,
        is_retryable: RetryPredicate | None = None,
        *,
        pending: PendingCall | None = None,
        label: str = "call",
    ) -> T:
        """Invoke ``operation`` until it succeeds or the attempt budget is spent.

        Args:
            operation: Zero-argument coroutine function
            max_attempts: Total attempts, at least 1
            initial_delay: Backoff base in seconds
            is_retryable: Optional ``(error, attempt) -> bool`` replacing the default
                classification. "Already known" errors are always handled first.
            pending: Bookkeeping record to update, created when omitted
            label: Name used in log records

        Raises:
            The last error raised by ``operation``, unchanged.
        """

        if max_attempts < 1:
            raise ValidationError(
                "max_attempts must be at least 1", field="max_attempts", value=max_attempts
            )

        record = pending if pending is not None else PendingCall(label=label)

        for attempt in range(1, max_attempts + 1):
            record.attempts = attempt
            try:
                return await operation()
            except Exception as exc:
                record.last_error = exc
                kind = classify_error(exc)

                if kind is ErrorKind.ALREADY_SATISFIED:
                    if attempt == max_attempts:
                        raise
                    logger.info(
                        "%s: transaction already in mempool, waiting %.1fs for confirmation",
                        record.label,
                        self._already_known_grace,
                    )
                    await self._pause(record, self._already_known_grace)
                    continue

                if is_retryable is not None:
                    should_retry = is_retryable(exc, attempt)
                else:
                    should_retry = kind is ErrorKind.RETRYABLE

                if not should_retry or attempt == max_attempts:
                    raise

                delay = backoff_delay(initial_delay, attempt)
                logger.warning(
                    "%s: attempt %s/%s failed, retrying in %.2fs: %s",
                    record.label,
                    attempt,
                    max_attempts,
                    delay,
                    exc,
                )
                await self._pause(record, delay)

        raise RuntimeError(f"{record.label}: retry loop ended without a result")

    async def _pause(self, record: PendingCall, delay: float) -> None:
        record.delays.append(delay)
        record.elapsed_backoff += delay
        await self._sleep(delay)
