"""Contract interface resolution: function names to selector-bound call targets."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, cast

from web3 import Web3
from web3.types import ChecksumAddress

from .exceptions import UnknownFunction, ValidationError
from .types import CallTarget
from .utils import canonical_signature, function_selector


class ContractInterface:
    """ABI of one deployed contract, indexed by function and event name."""

    def __init__(self, address: str, abi: Sequence[Mapping[str, Any]]) -> None:
        try:
            self._address = cast(ChecksumAddress, Web3.to_checksum_address(address))
        except (TypeError, ValueError) as exc:
            raise ValidationError(
                "Invalid contract address",
                field="contract_address",
                value=address,
                details={"error": str(exc)},
            ) from exc

        self._abi = list(abi)
        self._functions: dict[str, list[Mapping[str, Any]]] = {}
        self._events: set[str] = set()
        for entry in self._abi:
            kind = entry.get("type", "function")
            if kind == "function":
                self._functions.setdefault(str(entry["name"]), []).append(entry)
            elif kind == "event":
                self._events.add(str(entry["name"]))
        self._targets: dict[str, CallTarget] = {}

    @property
    def address(self) -> ChecksumAddress:
        return self._address

    @property
    def abi(self) -> list[Mapping[str, Any]]:
        return self._abi

    def has_function(self, name: str) -> bool:
        return name in self._functions

    def has_event(self, name: str) -> bool:
        return name in self._events

    def target(self, function_name: str) -> CallTarget:
        """Resolve a function name into a ``CallTarget``.

        Raises:
            UnknownFunction: If the ABI has no such function or it is overloaded
        """

        cached = self._targets.get(function_name)
        if cached is not None:
            return cached

        if not self.has_function(function_name):
            raise UnknownFunction(function_name, self._address)
        entries = self._functions[function_name]
        if len(entries) > 1:
            raise UnknownFunction(
                function_name,
                self._address,
                details={"overloads": [canonical_signature(item) for item in entries]},
            )

        signature = canonical_signature(entries[0])
        target = CallTarget(
            contract_address=self._address,
            function_name=function_name,
            signature=signature,
            selector=function_selector(signature),
            interface=self,
        )
        self._targets[function_name] = target
        return target
