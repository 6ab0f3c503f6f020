"""Exception hierarchy for confidential transaction orchestration."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from .types import CallTarget, Receipt


class ConfidentialTxError(Exception):
    """Base exception for all confidential transaction errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(ConfidentialTxError):
    """Raised when a local precondition fails."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.field = field
        self.value = value


class InvalidValue(ValidationError):
    """Raised when a plaintext cannot be encrypted as an unsigned integer."""

    pass


class UnknownFunction(ValidationError):
    """Raised when a function is not part of a contract's published ABI."""

    def __init__(
        self,
        function_name: str,
        contract_address: str | None = None,
        details: dict | None = None,
    ):
        location = f" on {contract_address}" if contract_address else ""
        super().__init__(
            f"Unknown contract function '{function_name}'{location}",
            field="function_name",
            value=function_name,
            details=details,
        )
        self.function_name = function_name
        self.contract_address = contract_address


class InsufficientBalance(ValidationError):
    """Raised by a pre-flight balance check before anything is sent."""

    def __init__(self, required: int, available: int, details: dict | None = None):
        super().__init__(
            f"Insufficient balance. You have {available} tokens but need {required}",
            field="plain_value",
            value=required,
            details=details,
        )
        self.required = required
        self.available = available


class EncryptionUnavailable(ConfidentialTxError):
    """Raised when a party has no usable encryption key material."""

    def __init__(self, message: str, party: str | None = None, details: dict | None = None):
        super().__init__(message, details)
        self.party = party


class NetworkError(ConfidentialTxError):
    """Raised when network/connection issues occur."""

    def __init__(
        self,
        message: str,
        endpoint: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.endpoint = endpoint


class NetworkExhausted(NetworkError):
    """Raised when the executor gave up on a submission or confirmation."""

    def __init__(
        self,
        message: str,
        attempts: int,
        stage: str,
        endpoint: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(f"{message} after {attempts} attempt(s)", endpoint, details)
        self.attempts = attempts
        self.stage = stage


class ContractReverted(ConfidentialTxError):
    """Raised when a confirmed receipt reports an on-chain revert."""

    def __init__(
        self,
        message: str,
        receipt: Receipt | None = None,
        target: CallTarget | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.receipt = receipt
        self.target = target


class DecryptionError(ConfidentialTxError):
    """Raised when an encrypted result cannot be decrypted by the caller."""

    def __init__(self, message: str, party: str | None = None, details: dict | None = None):
        super().__init__(message, details)
        self.party = party


class SagaStepFailed(ConfidentialTxError):
    """Raised when one step of a multi-step flow fails."""

    def __init__(self, saga: str, step: str, completed: tuple[str, ...]):
        super().__init__(
            f"{saga} stopped at step '{step}'",
            details={"completed": list(completed)},
        )
        self.saga = saga
        self.step = step
        self.completed = completed
