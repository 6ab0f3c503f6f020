"""Tests for session configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from confidential_tx.config import RetryPolicy, SessionConfig, load_session_config
from confidential_tx.constants import DEFAULT_RPC_URL
from confidential_tx.exceptions import ValidationError
from dummies import PRIVATE_KEYS


def test_from_env_reads_prefixed_values() -> None:
    environ = {
        "VITE_APP_NODE_HTTPS_ADDRESS": "https://node.example",
        "VITE_ALICE_PK": PRIVATE_KEYS["alice"],
        "VITE_ALICE_AES_KEY": "aes-alice",
        "VITE_BOB_PK": PRIVATE_KEYS["bob"],
        "VITE_MILLIONAIRE_ADDRESS": "0x" + "a1".rjust(40, "0"),
    }

    config = SessionConfig.from_env(
        environ, ["Alice", "Bob", "Carol"], ["millionaire"], prefix="VITE_"
    )

    assert config.rpc_url == "https://node.example"
    assert set(config.parties) == {"alice", "bob"}
    assert config.party("ALICE").aes_key == "aes-alice"
    assert config.party("bob").aes_key is None
    assert config.contract_address("Millionaire").endswith("a1")


def test_rpc_url_precedence_and_default() -> None:
    assert SessionConfig.from_env({}).rpc_url == DEFAULT_RPC_URL
    environ = {"RPC_URL": "http://rpc", "APP_NODE_HTTPS_ADDRESS": "http://node"}
    assert SessionConfig.from_env(environ).rpc_url == "http://rpc"


def test_unknown_party_and_contract_raise() -> None:
    config = SessionConfig()

    with pytest.raises(ValidationError) as exc_info:
        config.party("dave")
    assert exc_info.value.field == "party"

    with pytest.raises(ValidationError):
        config.contract_address("auction")


def test_blank_values_are_ignored() -> None:
    environ = {"ALICE_PK": "  ", "AUCTION_ADDRESS": ""}
    config = SessionConfig.from_env(environ, ["alice"], ["auction"])
    assert config.parties == {}
    assert config.contracts == {}


def test_retry_policy_validation() -> None:
    assert RetryPolicy().max_attempts == 3
    assert RetryPolicy().initial_delay == 1.0
    with pytest.raises(ValidationError):
        RetryPolicy(max_attempts=0)
    with pytest.raises(ValidationError):
        RetryPolicy(initial_delay=-1)


def test_default_read_policy_is_faster() -> None:
    config = SessionConfig()
    assert config.read_retry.initial_delay == 0.5
    assert config.submit_retry.initial_delay == 1.0


def test_load_session_config_from_dotenv(tmp_path: Path) -> None:
    dotenv = tmp_path / ".env"
    dotenv.write_text(
        "\n".join(
            [
                "RPC_URL=http://localhost:8545",
                f"ADMIN_PK={PRIVATE_KEYS['admin']}",
                "ADMIN_AES_KEY=aes-admin",
                "DATE_GAME_ADDRESS=0x00000000000000000000000000000000000000ff",
            ]
        )
    )

    config = load_session_config(["admin"], ["date_game"], dotenv_path=dotenv)

    assert config.rpc_url == "http://localhost:8545"
    assert config.party("admin").private_key == PRIVATE_KEYS["admin"]
    assert config.contract_address("date_game").endswith("ff")
