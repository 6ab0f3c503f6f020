"""Clients for the demo contracts, built on the orchestration layer."""

from .age import AgeComparison, AgeGame, calculate_age
from .auction import AuctionInfo, ClaimOutcome, HighestBidCheck, PrivateAuction
from .millionaire import MillionaireGame, WealthResult, WealthStatus
from .voting import ElectionResults, ElectionStatus, PrivateVoting, VoteTally

__all__ = [
    "AgeGame",
    "AgeComparison",
    "calculate_age",
    "PrivateAuction",
    "AuctionInfo",
    "HighestBidCheck",
    "ClaimOutcome",
    "MillionaireGame",
    "WealthStatus",
    "WealthResult",
    "PrivateVoting",
    "ElectionStatus",
    "ElectionResults",
    "VoteTally",
]
