"""Private voting: encrypted ballots, tallies revealed after the election closes."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from ..abi import VOTING_ABI
from ..constants import VOTING_GAS_PRICE, GasLimit
from ..exceptions import ValidationError
from ..session import ConfidentialSession
from ..types import SubmissionResult

logger = logging.getLogger(__name__)

# Index of ``hasVoted`` in the ``voters(address)`` getter output.
_HAS_VOTED = 4


@dataclass(frozen=True)
class ElectionStatus:
    is_open: bool
    voter_count: int
    owner: str | None = None


@dataclass(frozen=True)
class VoteTally:
    option_id: int
    option_label: str
    vote_count: int


@dataclass(frozen=True)
class ElectionResults:
    tallies: list[VoteTally]
    tx_hash: str


class PrivateVoting:
    """Client for the ``COTIVoting`` contract."""

    def __init__(
        self,
        session: ConfidentialSession,
        contract_address: str,
        *,
        owner: str = "owner",
    ) -> None:
        self._session = session
        self._interface = session.interface(contract_address, VOTING_ABI)
        self._owner = owner

    @property
    def contract_address(self) -> str:
        return self._interface.address

    async def cast_vote(self, voter: str, option: int) -> SubmissionResult:
        party = self._session.party(voter)
        logger.info("%s casting vote", party.name)
        return await self._session.pipeline.submit_encrypted_call(
            option,
            self._interface.target("castVote"),
            party,
            GasLimit.VOTING,
            gas_price=VOTING_GAS_PRICE,
            bit_width=8,
        )

    async def check_if_voted(self, voter: str) -> bool:
        party = self._session.party(voter)
        voter_data = await self._session.read(
            self._interface.target("voters"), party, (party.address,)
        )
        return bool(voter_data[_HAS_VOTED])

    async def election_status(self) -> ElectionStatus:
        owner = self._session.party(self._owner)
        is_open, voter_count, election_owner = await self._session.read(
            self._interface.target("getElectionStatus"), owner
        )
        return ElectionStatus(
            is_open=bool(is_open), voter_count=int(voter_count), owner=election_owner
        )

    async def toggle_election(self) -> SubmissionResult:
        return await self._owner_call("toggleElection")

    async def aggregate_votes(self) -> SubmissionResult:
        return await self._owner_call("aggregateVotes")

    async def results(self) -> ElectionResults:
        """Fetch the decrypted tallies; ``getResults`` mutates state, so it is also sent."""

        status = await self.election_status()
        if status.is_open:
            raise ValidationError(
                "Election is still open. Please close the election first.",
                field="election",
                value="open",
            )

        owner = self._session.party(self._owner)
        target = self._interface.target("getResults")
        raw = await self._session.read(target, owner, gas_limit=GasLimit.VOTING)
        tallies = _parse_tallies(raw)

        submission = await self._session.pipeline.submit_call(
            target, owner, GasLimit.VOTING, gas_price=VOTING_GAS_PRICE
        )
        return ElectionResults(tallies=tallies, tx_hash=submission.tx_hash)

    async def _owner_call(self, function_name: str) -> SubmissionResult:
        owner = self._session.party(self._owner)
        return await self._session.pipeline.submit_call(
            self._interface.target(function_name),
            owner,
            GasLimit.VOTING,
            gas_price=VOTING_GAS_PRICE,
        )


def _parse_tallies(raw: Any) -> list[VoteTally]:
    if not isinstance(raw, Sequence) or isinstance(raw, str | bytes):
        raise ValidationError("Invalid results format returned from contract", field="results")
    tallies = []
    for entry in raw:
        option_id, option_label, vote_count = entry
        tallies.append(
            VoteTally(
                option_id=int(option_id), option_label=str(option_label), vote_count=int(vote_count)
            )
        )
    return tallies
