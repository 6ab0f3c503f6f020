"""Millionaire's problem: Alice and Bob learn who is richer without revealing wealth."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..abi import MILLIONAIRE_COMPARISON_ABI
from ..constants import WEALTH_COMPARISON_TEXT, GasLimit, WealthComparison
from ..exceptions import ValidationError
from ..session import ConfidentialSession
from ..types import PartyIdentity, SubmissionResult

logger = logging.getLogger(__name__)

_SETTERS = {"alice": "setAliceWealth", "bob": "setBobWealth"}
_RESULTS = {"alice": "getAliceResult", "bob": "getBobResult"}
_FLAGS = {"alice": "isAliceWealthSet", "bob": "isBobWealthSet"}


@dataclass(frozen=True)
class WealthStatus:
    alice_set: bool
    bob_set: bool
    both_set: bool


@dataclass(frozen=True)
class WealthResult:
    raw: int
    text: str


def describe_comparison(raw: int) -> str:
    try:
        return WEALTH_COMPARISON_TEXT[WealthComparison(raw)]
    except ValueError:
        return "Unknown result"


class MillionaireGame:
    """Client for the ``MillionaireComparison`` contract.

    Each side's result is re-encrypted for that side only, so Alice and Bob
    read different ciphertexts for the same comparison.
    """

    def __init__(
        self,
        session: ConfidentialSession,
        contract_address: str,
        *,
        alice: str = "alice",
        bob: str = "bob",
    ) -> None:
        self._session = session
        self._interface = session.interface(contract_address, MILLIONAIRE_COMPARISON_ABI)
        self._names = {"alice": alice, "bob": bob}

    @property
    def contract_address(self) -> str:
        return self._interface.address

    async def submit_wealth(self, side: str, wealth: int | str) -> SubmissionResult:
        party = self._party(side)
        logger.info("%s submitting wealth", party.name)
        return await self._session.pipeline.submit_encrypted_call(
            wealth, self._interface.target(_SETTERS[side.lower()]), party, GasLimit.STORE_VALUE
        )

    async def perform_comparison(self, side: str) -> SubmissionResult:
        party = self._party(side)
        both_set = await self._session.is_set(self._interface.target("areBothWealthsSet"), party)
        if not both_set:
            raise ValidationError(
                "Both Alice and Bob must submit their wealth before comparison",
                field="wealth",
            )
        logger.info("%s triggering comparison", party.name)
        return await self._session.pipeline.submit_call(
            self._interface.target("compareWealth"), party, GasLimit.COMPARE
        )

    async def comparison_result(self, side: str) -> WealthResult | None:
        """Decrypt ``side``'s copy of the comparison, or ``None`` before any comparison."""

        party = self._party(side)
        retriever = self._session.retriever
        raw = await retriever.fetch_and_decrypt(
            retriever.view(self._interface.target(_RESULTS[side.lower()]), party), party
        )
        if raw is None:
            return None
        return WealthResult(raw=raw, text=describe_comparison(raw))

    async def check_wealth_status(self) -> WealthStatus:
        party = self._reader()
        alice_set = await self._session.is_set(self._interface.target(_FLAGS["alice"]), party)
        bob_set = await self._session.is_set(self._interface.target(_FLAGS["bob"]), party)
        both_set = await self._session.is_set(self._interface.target("areBothWealthsSet"), party)
        return WealthStatus(alice_set=alice_set, bob_set=bob_set, both_set=both_set)

    async def reset(self) -> SubmissionResult:
        """Clear both submissions on chain and every cached status flag of the contract."""

        party = self._party("alice")
        result = await self._session.pipeline.submit_call(
            self._interface.target("reset"), party, GasLimit.RESET
        )
        self._session.invalidate(self._interface.address)
        return result

    def _party(self, side: str) -> PartyIdentity:
        key = side.lower()
        if key not in self._names:
            raise ValidationError(f"Unknown side '{side}'", field="side", value=side)
        return self._session.party(self._names[key])

    def _reader(self) -> PartyIdentity:
        for name in self._names.values():
            if name.lower() in self._session.config.parties:
                return self._session.party(name)
        raise ValidationError("Neither Alice nor Bob is configured", field="party")
