"""Sealed-bid auction paid in a confidential token."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any

from ..abi import AUCTION_ABI, TOKEN_ABI
from ..constants import GasLimit
from ..exceptions import ConfidentialTxError, InvalidValue, SagaStepFailed
from ..saga import Saga
from ..session import ConfidentialSession
from ..types import ContractCall, Receipt, SubmissionResult
from ..utils import coerce_plain_value

logger = logging.getLogger(__name__)

# One large approval covers several bids.
APPROVAL_AMOUNT = 100_000


@dataclass(frozen=True)
class AuctionInfo:
    end_time: int
    bid_counter: int
    beneficiary: str
    token_transferred: bool
    manually_stopped: bool
    is_active: bool
    time_remaining: int


@dataclass(frozen=True)
class HighestBidCheck:
    is_highest: bool
    receipt: Receipt


@dataclass(frozen=True)
class ClaimOutcome:
    success: bool
    receipt: Receipt
    winner: str | None = None
    message: str | None = None


class PrivateAuction:
    """Client for the ``PrivateAuction`` contract and its bidding token.

    Bidding is a saga: check balance, approve the auction as spender, bid.
    When the bid step fails the approval stays on chain; calling
    ``place_bid`` again for the same bidder and amount resumes at the bid.
    """

    def __init__(
        self,
        session: ConfidentialSession,
        auction_address: str,
        token_address: str,
    ) -> None:
        self._session = session
        self._auction = session.interface(auction_address, AUCTION_ABI)
        self._token = session.interface(token_address, TOKEN_ABI)
        self._bid_sagas: dict[tuple[str, int], Saga] = {}

    @property
    def auction_address(self) -> str:
        return self._auction.address

    @property
    def token_address(self) -> str:
        return self._token.address

    # ------------------------------------------------------------------
    # Bidding
    # ------------------------------------------------------------------
    def bid_saga(self, bidder: str, amount: int | str) -> Saga:
        """Return the (possibly partially completed) bid flow for ``bidder``."""

        value = coerce_plain_value(amount)
        if value <= 0:
            raise InvalidValue("Bid amount must be positive", field="amount", value=amount)

        key = (bidder.lower(), value)
        saga = self._bid_sagas.get(key)
        if saga is not None:
            return saga

        party = self._session.party(bidder)
        pipeline = self._session.pipeline

        async def check_balance() -> int:
            return await pipeline.ensure_balance(
                value, lambda: self.token_balance(bidder), self._auction.target("bid"), party
            )

        async def approve() -> SubmissionResult:
            return await pipeline.submit_encrypted_call(
                APPROVAL_AMOUNT,
                self._token.target("approve"),
                party,
                GasLimit.APPROVE,
                leading_args=(self._auction.address,),
            )

        async def bid() -> SubmissionResult:
            return await pipeline.submit_encrypted_call(
                value, self._auction.target("bid"), party, GasLimit.BID
            )

        saga = Saga(f"bid:{party.name}")
        saga.step("balance", check_balance).step("approve", approve).step("bid", bid)
        self._bid_sagas[key] = saga
        return saga

    async def place_bid(self, bidder: str, amount: int | str) -> SubmissionResult:
        """Run or resume the bid flow.

        Raises:
            InsufficientBalance: When the token balance is below ``amount``
            ContractReverted, NetworkExhausted: From the approve or bid transaction
        """

        saga = self.bid_saga(bidder, amount)
        try:
            results = await saga.run()
        except SagaStepFailed as exc:
            step_error = exc.__cause__
            if not isinstance(step_error, ConfidentialTxError):
                raise
            step_error.details.setdefault("saga_step", exc.step)
            step_error.details.setdefault("completed_steps", list(exc.completed))
        else:
            self._bid_sagas.pop((bidder.lower(), coerce_plain_value(amount)), None)
            return results["bid"]
        # Progress stays in the saga, so a later call resumes at the failed step.
        raise step_error

    async def check_if_highest_bid(self, bidder: str) -> HighestBidCheck:
        party = self._session.party(bidder)
        target = self._auction.target("doIHaveHighestBid")
        submission = await self._session.pipeline.submit_call(target, party, GasLimit.HIGHEST_BID)

        retriever = self._session.retriever
        clear = await retriever.fetch_and_decrypt(
            retriever.event(submission.receipt, target, "HighestBid", "isHighestBid", party),
            party,
        )
        return HighestBidCheck(is_highest=clear == 1, receipt=submission.receipt)

    async def claim(self, bidder: str) -> ClaimOutcome:
        party = self._session.party(bidder)
        target = self._auction.target("claim")
        submission = await self._session.pipeline.submit_call(target, party, GasLimit.CLAIM)

        call = ContractCall(target=target, args=(), sender=party)
        events = self._session.chain.decode_events(call, submission.receipt, "Winner")
        if events:
            return ClaimOutcome(success=True, receipt=submission.receipt, winner=events[0]["who"])
        return ClaimOutcome(
            success=False,
            receipt=submission.receipt,
            message="You are not the winner or auction is still active",
        )

    async def withdraw(self, bidder: str) -> SubmissionResult:
        party = self._session.party(bidder)
        return await self._session.pipeline.submit_call(
            self._auction.target("withdraw"), party, GasLimit.WITHDRAW
        )

    # ------------------------------------------------------------------
    # Token helpers
    # ------------------------------------------------------------------
    async def token_balance(self, bidder: str) -> int:
        party = self._session.party(bidder)
        retriever = self._session.retriever
        balance = await retriever.fetch_and_decrypt(
            retriever.view(self._token.target("balanceOf"), party, (party.address,)), party
        )
        return balance or 0

    async def mint_tokens(self, bidder: str, amount: int | str) -> SubmissionResult:
        party = self._session.party(bidder)
        logger.info("Minting %s tokens for %s", amount, party.name)
        return await self._session.pipeline.submit_encrypted_call(
            amount,
            self._token.target("mint"),
            party,
            GasLimit.MINT,
            leading_args=(party.address,),
        )

    # ------------------------------------------------------------------
    # Auction state
    # ------------------------------------------------------------------
    async def auction_info(self, reader: str, *, now: float | None = None) -> AuctionInfo:
        party = self._session.party(reader)

        async def read(name: str) -> Any:
            return await self._session.read(self._auction.target(name), party)

        end_time = int(await read("endTime"))
        bid_counter = int(await read("bidCounter"))
        beneficiary = str(await read("beneficiary"))
        token_transferred = bool(await read("tokenTransferred"))
        manually_stopped = bool(await read("manuallyStopped"))

        current = int(now if now is not None else time.time())
        is_active = current < end_time and not manually_stopped
        return AuctionInfo(
            end_time=end_time,
            bid_counter=bid_counter,
            beneficiary=beneficiary,
            token_transferred=token_transferred,
            manually_stopped=manually_stopped,
            is_active=is_active,
            time_remaining=end_time - current if is_active else 0,
        )
