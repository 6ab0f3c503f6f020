"""Tests for the demo contract clients."""

from __future__ import annotations

import asyncio
from datetime import date

import pytest

from confidential_tx.apps import (
    AgeGame,
    MillionaireGame,
    PrivateAuction,
    PrivateVoting,
    calculate_age,
)
from confidential_tx.apps.millionaire import describe_comparison
from confidential_tx.constants import VOTING_GAS_PRICE, GasLimit
from confidential_tx.exceptions import (
    ContractReverted,
    InsufficientBalance,
    InvalidValue,
    ValidationError,
)
from dummies import (
    AUCTION_ADDRESS,
    DATE_GAME_ADDRESS,
    MILLIONAIRE_ADDRESS,
    TOKEN_ADDRESS,
    VOTING_ADDRESS,
    DummyAuction,
    DummyChain,
    DummyDateGame,
    DummyMillionaire,
    DummyToken,
    DummyVoting,
    make_session,
    party,
)


def _sent(chain: DummyChain, function_name: str, sender: str | None = None) -> int:
    return sum(
        1
        for prepared in chain.sent
        if prepared.call.target.function_name == function_name
        and (sender is None or prepared.call.sender.name == sender)
    )


# ---------------------------------------------------------------------------
# Age game
# ---------------------------------------------------------------------------
class TestAgeGame:
    def _game(self):
        session, chain, sleep = make_session("admin", "player")
        contract = chain.deploy(DummyDateGame())
        return AgeGame(session, DATE_GAME_ADDRESS), chain, contract

    def test_calculate_age(self) -> None:
        assert calculate_age(date(2000, 6, 15), today=date(2025, 6, 14)) == 24
        assert calculate_age("2000-06-15", today=date(2025, 6, 15)) == 25
        with pytest.raises(ValidationError):
            calculate_age(date(2030, 1, 1), today=date(2025, 1, 1))

    def test_store_and_compare(self) -> None:
        game, chain, contract = self._game()

        async def scenario():
            stored = await game.store_age(date(2000, 1, 1), today=date(2025, 6, 1))
            greater = await game.compare_age(20, "greater")
            less = await game.compare_age(20, "less")
            return stored, greater, less

        stored, greater, less = asyncio.run(scenario())

        assert contract.age == 25
        assert stored.echoed_value == 25
        assert greater.result is True
        assert less.result is False
        assert greater.age == 20
        assert greater.tx_hash.startswith("0x")
        assert greater.ciphertext_digest is not None

    def test_compare_requires_stored_age(self) -> None:
        game, chain, contract = self._game()

        with pytest.raises(ValidationError, match="No age has been stored yet"):
            asyncio.run(game.compare_age(20))

        assert chain.sent == []

    def test_unknown_operation(self) -> None:
        game, chain, contract = self._game()
        with pytest.raises(ValidationError):
            asyncio.run(game.compare_age(20, "equal"))

    def test_check_age_status(self) -> None:
        game, chain, contract = self._game()

        assert asyncio.run(game.check_age_status()) is False
        contract.age = 40
        assert asyncio.run(game.check_age_status()) is True


# ---------------------------------------------------------------------------
# Millionaire
# ---------------------------------------------------------------------------
class TestMillionaireGame:
    def _game(self):
        session, chain, sleep = make_session("alice", "bob")
        contract = chain.deploy(DummyMillionaire())
        return MillionaireGame(session, MILLIONAIRE_ADDRESS), chain, contract

    def test_full_round(self) -> None:
        game, chain, contract = self._game()

        async def scenario():
            await game.submit_wealth("alice", 100)
            await game.submit_wealth("Bob", 250)
            await game.perform_comparison("alice")
            return await game.comparison_result("alice"), await game.comparison_result("bob")

        alice_view, bob_view = asyncio.run(scenario())

        assert alice_view is not None and bob_view is not None
        assert alice_view.raw == bob_view.raw == 1
        assert alice_view.text == "Bob is richer"
        assert _sent(chain, "compareWealth") == 1
        assert chain.sent[-1].call.gas_limit == GasLimit.COMPARE

    def test_comparison_requires_both_wealths(self) -> None:
        game, chain, contract = self._game()

        async def scenario():
            await game.submit_wealth("alice", 100)
            await game.perform_comparison("bob")

        with pytest.raises(ValidationError):
            asyncio.run(scenario())

        assert _sent(chain, "compareWealth") == 0

    def test_result_before_comparison_is_none(self) -> None:
        game, chain, contract = self._game()
        assert asyncio.run(game.comparison_result("alice")) is None

    def test_reset_invalidates_status_flags(self) -> None:
        game, chain, contract = self._game()

        async def scenario():
            await game.submit_wealth("alice", 10)
            await game.submit_wealth("bob", 10)
            before = await game.check_wealth_status()
            await game.reset()
            after = await game.check_wealth_status()
            return before, after

        before, after = asyncio.run(scenario())

        assert before.both_set and before.alice_set and before.bob_set
        assert not (after.both_set or after.alice_set or after.bob_set)

    def test_unknown_side(self) -> None:
        game, chain, contract = self._game()
        with pytest.raises(ValidationError):
            asyncio.run(game.submit_wealth("carol", 1))

    def test_describe_comparison(self) -> None:
        assert describe_comparison(0) == "Alice is richer"
        assert describe_comparison(2) == "Equal wealth"
        assert describe_comparison(7) == "Unknown result"


# ---------------------------------------------------------------------------
# Auction
# ---------------------------------------------------------------------------
class TestPrivateAuction:
    def _auction(self):
        session, chain, sleep = make_session("alice", "bob")
        token = chain.deploy(DummyToken())
        contract = chain.deploy(DummyAuction(token))
        return PrivateAuction(session, AUCTION_ADDRESS, TOKEN_ADDRESS), chain, contract, token

    def test_mint_and_bid(self) -> None:
        auction, chain, contract, token = self._auction()

        async def scenario():
            await auction.mint_tokens("alice", 1_000)
            before = await auction.token_balance("alice")
            result = await auction.place_bid("alice", 300)
            after = await auction.token_balance("alice")
            return before, result, after

        before, result, after = asyncio.run(scenario())

        assert (before, after) == (1_000, 700)
        assert result.echoed_value == 300
        assert contract.bid_counter == 1
        approve = next(p for p in chain.sent if p.call.target.function_name == "approve")
        assert approve.call.args[0] == contract.address
        assert approve.call.gas_limit == GasLimit.APPROVE

    def test_balance_without_tokens_is_zero(self) -> None:
        auction, chain, contract, token = self._auction()
        assert asyncio.run(auction.token_balance("bob")) == 0

    def test_insufficient_balance_stops_before_sending(self) -> None:
        auction, chain, contract, token = self._auction()

        with pytest.raises(InsufficientBalance) as exc_info:
            asyncio.run(auction.place_bid("bob", 50))

        assert exc_info.value.required == 50
        assert exc_info.value.available == 0
        assert exc_info.value.details["saga_step"] == "balance"
        assert exc_info.value.details["completed_steps"] == []
        assert chain.sent == []
        assert auction.bid_saga("bob", 50).pending_step == "balance"

    def test_failed_bid_resumes_without_second_approval(self) -> None:
        auction, chain, contract, token = self._auction()
        contract.fail_bids = 1

        async def scenario():
            await auction.mint_tokens("alice", 500)
            with pytest.raises(ContractReverted) as exc_info:
                await auction.place_bid("alice", 100)
            assert exc_info.value.details["saga_step"] == "bid"
            assert exc_info.value.details["completed_steps"] == ["balance", "approve"]
            assert auction.bid_saga("alice", 100).pending_step == "bid"
            return await auction.place_bid("alice", 100)

        result = asyncio.run(scenario())

        assert result.receipt.success
        assert _sent(chain, "approve") == 1
        assert _sent(chain, "bid") == 2
        assert contract.bids[party("alice").address] == 100

    def test_non_positive_bid_is_rejected(self) -> None:
        auction, chain, contract, token = self._auction()
        with pytest.raises(InvalidValue):
            asyncio.run(auction.place_bid("alice", 0))

    def test_highest_bid_is_private_to_each_bidder(self) -> None:
        auction, chain, contract, token = self._auction()

        async def scenario():
            await auction.mint_tokens("alice", 1_000)
            await auction.mint_tokens("bob", 1_000)
            await auction.place_bid("alice", 300)
            await auction.place_bid("bob", 200)
            return (
                await auction.check_if_highest_bid("alice"),
                await auction.check_if_highest_bid("bob"),
            )

        alice_check, bob_check = asyncio.run(scenario())

        assert alice_check.is_highest is True
        assert bob_check.is_highest is False

    def test_claim_after_auction_end(self) -> None:
        auction, chain, contract, token = self._auction()

        async def scenario():
            await auction.mint_tokens("alice", 1_000)
            await auction.place_bid("alice", 300)
            contract.ended = True
            return await auction.claim("alice"), await auction.claim("bob")

        alice_claim, bob_claim = asyncio.run(scenario())

        assert alice_claim.success
        assert alice_claim.winner == party("alice").address
        assert not bob_claim.success
        assert bob_claim.message == "You are not the winner or auction is still active"

    def test_auction_info(self) -> None:
        auction, chain, contract, token = self._auction()

        info = asyncio.run(auction.auction_info("alice", now=1_500))
        assert info.is_active
        assert info.time_remaining == 500

        contract.ended = True
        info = asyncio.run(auction.auction_info("alice", now=1_500))
        assert not info.is_active
        assert info.time_remaining == 0




# ---------------------------------------------------------------------------
# Voting
# ---------------------------------------------------------------------------
class TestPrivateVoting:
    def _voting(self):
        session, chain, sleep = make_session("owner", "alice", "bob", "carol")
        contract = chain.deploy(DummyVoting(session.party("owner")))
        return PrivateVoting(session, VOTING_ADDRESS), chain, contract

    def test_cast_vote(self) -> None:
        voting, chain, contract = self._voting()

        async def scenario():
            before = await voting.check_if_voted("alice")
            await voting.cast_vote("alice", 2)
            after = await voting.check_if_voted("alice")
            return before, after

        assert asyncio.run(scenario()) == (False, True)
        call = chain.sent[0].call
        assert call.gas_limit == GasLimit.VOTING
        assert call.gas_price == VOTING_GAS_PRICE

    def test_vote_option_must_fit_in_a_byte(self) -> None:
        voting, chain, contract = self._voting()
        with pytest.raises(InvalidValue):
            asyncio.run(voting.cast_vote("alice", 300))

    def test_results_require_closed_election(self) -> None:
        voting, chain, contract = self._voting()

        with pytest.raises(ValidationError, match="still open"):
            asyncio.run(voting.results())

        assert chain.sent == []

    def test_full_election(self) -> None:
        voting, chain, contract = self._voting()

        async def scenario():
            await voting.cast_vote("alice", 1)
            await voting.cast_vote("bob", 2)
            await voting.cast_vote("carol", 2)
            await voting.toggle_election()
            status = await voting.election_status()
            await voting.aggregate_votes()
            return status, await voting.results()

        status, results = asyncio.run(scenario())

        assert not status.is_open
        assert status.voter_count == 3
        assert [tally.vote_count for tally in results.tallies] == [1, 2, 0, 0]
        assert results.tallies[1].option_label == "Raspberry"
        assert results.tx_hash == chain.sent[-1].tx_hash
        assert chain.reads[-1].gas_limit == GasLimit.VOTING
