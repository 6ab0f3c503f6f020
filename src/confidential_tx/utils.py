"""Utility helpers shared by the orchestration layer."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from decimal import Decimal
from typing import Any

from hexbytes import HexBytes
from web3 import Web3

from .constants import DEFAULT_BIT_WIDTH
from .exceptions import InvalidValue


def canonical_type(param: Mapping[str, Any]) -> str:
    """Return the canonical ABI type of a parameter, expanding tuples."""

    abi_type = str(param["type"])
    if not abi_type.startswith("tuple"):
        return abi_type

    suffix = abi_type[len("tuple") :]
    components = ",".join(canonical_type(item) for item in param.get("components", []))
    return f"({components}){suffix}"


def canonical_signature(entry: Mapping[str, Any]) -> str:
    """Return ``name(type,...)`` for an ABI function entry."""

    inputs = ",".join(canonical_type(item) for item in entry.get("inputs", []))
    return f"{entry['name']}({inputs})"


def function_selector(signature: str) -> bytes:
    """Return the 4-byte selector of a canonical function signature."""

    return bytes(Web3.keccak(text=signature)[:4])


def coerce_plain_value(value: Any, bit_width: int = DEFAULT_BIT_WIDTH) -> int:
    """Validate a plaintext and return it as an unsigned integer.

    Raises:
        InvalidValue: If the value is negative, non-integral or wider than ``bit_width``
    """

    if isinstance(value, bool):
        raise InvalidValue(
            "Plaintext must be an integer, not a bool", field="plain_value", value=value
        )

    if isinstance(value, int):
        number = value
    elif isinstance(value, str):
        text = value.strip()
        if not text.isdecimal():
            raise InvalidValue(f"Invalid value '{value}'", field="plain_value", value=value)
        number = int(text, 10)
    elif isinstance(value, float | Decimal):
        if not Decimal(value).is_finite() or Decimal(value) != Decimal(value).to_integral_value():
            raise InvalidValue("Plaintext must be integral", field="plain_value", value=value)
        number = int(value)
    else:
        raise InvalidValue(
            f"Unsupported plaintext type {type(value).__name__}", field="plain_value", value=value
        )

    if number < 0:
        raise InvalidValue("Plaintext must not be negative", field="plain_value", value=value)
    if number.bit_length() > bit_width:
        raise InvalidValue(
            f"Plaintext does not fit in {bit_width} bits",
            field="plain_value",
            value=value,
            details={"bit_width": bit_width},
        )
    return number


def serialise_receipt(receipt: Any) -> Any:
    """Convert receipt and log values into hex strings, lists and dicts."""

    if receipt is None:
        return None
    if isinstance(receipt, Mapping):
        return {key: serialise_receipt(value) for key, value in receipt.items()}
    if isinstance(receipt, Sequence) and not isinstance(
        receipt, str | bytes | bytearray | HexBytes
    ):
        return [serialise_receipt(item) for item in receipt]
    if isinstance(receipt, bytes | bytearray | HexBytes):
        return HexBytes(receipt).to_0x_hex()
    return receipt
