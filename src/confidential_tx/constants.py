"""Constants and defaults for confidential transaction orchestration."""

from enum import Enum, IntEnum

DEFAULT_RPC_URL = "https://testnet.coti.io/rpc"

# Error text fragments and codes the executor treats as transient.
ALREADY_KNOWN_MARKER = "already known"
RETRYABLE_MARKERS = (
    "timeout",
    "timed out",
    "network",
    "connection",
    "econnrefused",
    "nonce",
    "pending block is not available",
)
RETRYABLE_CODES = frozenset({"NETWORK_ERROR", "TIMEOUT", "SERVER_ERROR", -32000})
REVERT_MARKER = "execution reverted"
NONCE_MARKERS = ("nonce too low", "nonce too high", "invalid nonce", "replacement transaction")

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_INITIAL_DELAY = 1.0  # seconds
DEFAULT_READ_DELAY = 0.5  # seconds
DEFAULT_ALREADY_KNOWN_GRACE = 3.0  # seconds

DEFAULT_BIT_WIDTH = 64


class GasLimit(IntEnum):
    """Gas budgets used by the demo contracts."""

    STORE_VALUE = 500_000
    COMPARE = 1_000_000
    RESET = 200_000
    APPROVE = 300_000
    HIGHEST_BID = 300_000
    BID = 2_000_000
    CLAIM = 500_000
    WITHDRAW = 500_000
    MINT = 500_000
    VOTING = 15_000_000


VOTING_GAS_PRICE = 10 * 10**9  # 10 gwei


class WealthComparison(IntEnum):
    """Decrypted result codes of the millionaire comparison."""

    ALICE_RICHER = 0
    BOB_RICHER = 1
    EQUAL = 2


WEALTH_COMPARISON_TEXT = {
    WealthComparison.ALICE_RICHER: "Alice is richer",
    WealthComparison.BOB_RICHER: "Bob is richer",
    WealthComparison.EQUAL: "Equal wealth",
}


class CacheScope(str, Enum):
    """Session cache scopes that are not tied to a contract address."""

    PARTIES = "parties"
    ENCRYPTION = "encryption"
    INTERFACES = "interfaces"
