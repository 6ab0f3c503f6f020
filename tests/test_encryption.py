"""Tests for selector-bound encryption and contract interfaces."""

from __future__ import annotations

import asyncio

import pytest
from web3 import Web3

from confidential_tx.abi import DATE_GAME_ABI, TOKEN_ABI
from confidential_tx.cache import SessionCache
from confidential_tx.constants import CacheScope
from confidential_tx.encryption import SelectorBoundEncryptor
from confidential_tx.exceptions import (
    EncryptionUnavailable,
    InvalidValue,
    UnknownFunction,
    ValidationError,
)
from confidential_tx.interface import ContractInterface
from confidential_tx.types import CallTarget, ContractCall
from confidential_tx.utils import coerce_plain_value, function_selector
from dummies import DATE_GAME_ADDRESS, DummyEncryption, Revert, open_input, party


def _interface() -> ContractInterface:
    return ContractInterface(DATE_GAME_ADDRESS, DATE_GAME_ABI)


def test_selector_matches_known_signature() -> None:
    assert function_selector("transfer(address,uint256)").hex() == "a9059cbb"


def test_interface_resolves_tuple_arguments() -> None:
    target = ContractInterface(DATE_GAME_ADDRESS, TOKEN_ABI).target("approve")
    assert target.signature == "approve(address,(uint256,bytes))"
    assert target.selector == function_selector(target.signature)
    assert target.contract_address == Web3.to_checksum_address(DATE_GAME_ADDRESS)


def test_interface_rejects_unknown_function() -> None:
    with pytest.raises(UnknownFunction) as exc_info:
        _interface().target("transferFrom")
    assert exc_info.value.function_name == "transferFrom"


def test_interface_rejects_invalid_address() -> None:
    with pytest.raises(ValidationError):
        ContractInterface("0xC0FFEE", DATE_GAME_ABI)


def test_ciphertext_is_only_valid_for_its_target() -> None:
    interface = _interface()
    greater, less = interface.target("greaterThan"), interface.target("lessThan")
    player = party("player")
    encryptor = SelectorBoundEncryptor(DummyEncryption())

    for value in (0, 20, 2**64 - 1):
        ciphertext = asyncio.run(encryptor.encrypt_for_call(value, greater, player))
        assert ciphertext.target == greater

        accepted = ContractCall(target=greater, args=(ciphertext.as_tuple(),), sender=player)
        assert open_input(accepted, ciphertext.as_tuple()) == value

        replayed = ContractCall(target=less, args=(ciphertext.as_tuple(),), sender=player)
        with pytest.raises(Revert):
            open_input(replayed, ciphertext.as_tuple())


def test_ciphertext_digest_and_serialization() -> None:
    target = _interface().target("setAge")
    encryptor = SelectorBoundEncryptor(DummyEncryption())
    ciphertext = asyncio.run(encryptor.encrypt_for_call(25, target, party("admin")))

    assert ciphertext.serialized() == str(ciphertext.ciphertext)
    assert ciphertext.digest().startswith("0x")
    assert len(ciphertext.digest()) == 66


@pytest.mark.parametrize("value", [-1, "abc", "-5", 1.5, True, 2**64, None])
def test_invalid_plaintexts_are_rejected(value: object) -> None:
    encryption = DummyEncryption()
    encryptor = SelectorBoundEncryptor(encryption)
    target = _interface().target("setAge")

    with pytest.raises(InvalidValue) as exc_info:
        asyncio.run(encryptor.encrypt_for_call(value, target, party("admin")))

    assert exc_info.value.field == "plain_value"
    assert encryption.builds == 0


def test_plaintext_coercion_accepts_integral_forms() -> None:
    assert coerce_plain_value("42") == 42
    assert coerce_plain_value(" 7 ") == 7
    assert coerce_plain_value(3.0) == 3
    assert coerce_plain_value(255, bit_width=8) == 255
    with pytest.raises(InvalidValue):
        coerce_plain_value(256, bit_width=8)


def test_target_without_selector_is_rejected() -> None:
    broken = CallTarget(
        contract_address=_interface().address,
        function_name="setAge",
        signature="setAge((uint256,bytes))",
        selector=b"",
    )
    encryptor = SelectorBoundEncryptor(DummyEncryption())

    with pytest.raises(UnknownFunction):
        asyncio.run(encryptor.encrypt_for_call(1, broken, party("admin")))


def test_party_without_aes_key_cannot_encrypt() -> None:
    encryption = DummyEncryption()
    encryptor = SelectorBoundEncryptor(encryption)

    with pytest.raises(EncryptionUnavailable) as exc_info:
        asyncio.run(
            encryptor.encrypt_for_call(
                1, _interface().target("setAge"), party("admin", with_aes_key=False)
            )
        )

    assert exc_info.value.party == "admin"
    assert encryption.builds == 0


def test_provider_failure_is_wrapped() -> None:
    encryptor = SelectorBoundEncryptor(DummyEncryption(failing=RuntimeError("onboarding failed")))

    with pytest.raises(EncryptionUnavailable) as exc_info:
        encryptor.capability_for(party("admin"))

    assert isinstance(exc_info.value.__cause__, RuntimeError)
    assert exc_info.value.details["error"] == "onboarding failed"


def test_capability_is_built_once_per_party() -> None:
    encryption = DummyEncryption()
    cache = SessionCache()
    encryptor = SelectorBoundEncryptor(encryption, cache)
    admin = party("admin")
    target = _interface().target("setAge")

    asyncio.run(encryptor.encrypt_for_call(1, target, admin))
    asyncio.run(encryptor.encrypt_for_call(2, target, admin))

    assert encryption.builds == 1
    assert cache.contains(CacheScope.ENCRYPTION, admin.address)
    assert [item[0] for item in encryption.capabilities["admin"].encrypted] == [1, 2]
