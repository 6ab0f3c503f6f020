"""Confidential transaction orchestration for COTI MPC contracts.

This library encrypts plaintext arguments for one contract function,
submits and confirms the resulting transactions with bounded retries, and
decrypts results that contracts re-encrypt for a single party.
"""

from .base import ChainClient, EncryptionCapability, EncryptionProvider
from .cache import SessionCache
from .config import PartyConfig, RetryPolicy, SessionConfig, load_session_config
from .constants import CacheScope, GasLimit, WealthComparison
from .encryption import SelectorBoundEncryptor
from .exceptions import (
    ConfidentialTxError,
    ContractReverted,
    DecryptionError,
    EncryptionUnavailable,
    InsufficientBalance,
    InvalidValue,
    NetworkError,
    NetworkExhausted,
    SagaStepFailed,
    UnknownFunction,
    ValidationError,
)
from .executor import ResilientCallExecutor, classify_error, is_retryable_error
from .interface import ContractInterface
from .pipeline import TransactionPipeline
from .retrieval import ResultRetriever
from .saga import Saga
from .session import ConfidentialSession
from .types import (
    CallState,
    CallTarget,
    Ciphertext,
    ContractCall,
    EncryptedResult,
    PartyIdentity,
    PendingCall,
    Receipt,
    SubmissionResult,
    TransactionHandle,
)
from .utils import coerce_plain_value, function_selector

__version__ = "0.1.0"

__all__ = [
    # Orchestration
    "ConfidentialSession",
    "ResilientCallExecutor",
    "SelectorBoundEncryptor",
    "TransactionPipeline",
    "ResultRetriever",
    "SessionCache",
    "ContractInterface",
    "Saga",
    # Collaborator interfaces
    "ChainClient",
    "EncryptionCapability",
    "EncryptionProvider",
    # Configuration
    "SessionConfig",
    "PartyConfig",
    "RetryPolicy",
    "load_session_config",
    # Types and enums
    "CallState",
    "CallTarget",
    "Ciphertext",
    "ContractCall",
    "EncryptedResult",
    "PartyIdentity",
    "PendingCall",
    "Receipt",
    "SubmissionResult",
    "TransactionHandle",
    "CacheScope",
    "GasLimit",
    "WealthComparison",
    # Exceptions
    "ConfidentialTxError",
    "ValidationError",
    "InvalidValue",
    "UnknownFunction",
    "InsufficientBalance",
    "EncryptionUnavailable",
    "NetworkError",
    "NetworkExhausted",
    "ContractReverted",
    "DecryptionError",
    "SagaStepFailed",
    # Utility functions
    "classify_error",
    "is_retryable_error",
    "coerce_plain_value",
    "function_selector",
]
