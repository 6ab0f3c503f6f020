"""ABIs of the demo contracts (only the entries the client uses)."""

from __future__ import annotations

from typing import Any

ABIEntry = dict[str, Any]

# itUint*: ciphertext plus the signature binding it to (contract, selector, sender)
IT_UINT_COMPONENTS = [
    {"name": "ciphertext", "type": "uint256", "internalType": "uint256"},
    {"name": "signature", "type": "bytes", "internalType": "bytes"},
]


def _param(name: str, abi_type: str, components: list[ABIEntry] | None = None) -> ABIEntry:
    param: ABIEntry = {"name": name, "type": abi_type, "internalType": abi_type}
    if components is not None:
        param["components"] = components
    return param


def _encrypted(name: str) -> ABIEntry:
    return _param(name, "tuple", IT_UINT_COMPONENTS)


def _function(
    name: str,
    inputs: list[ABIEntry] | None = None,
    outputs: list[ABIEntry] | None = None,
    mutability: str = "nonpayable",
) -> ABIEntry:
    return {
        "type": "function",
        "name": name,
        "inputs": inputs or [],
        "outputs": outputs or [],
        "stateMutability": mutability,
    }


def _event(name: str, inputs: list[ABIEntry]) -> ABIEntry:
    return {
        "type": "event",
        "name": name,
        "anonymous": False,
        "inputs": [{**item, "indexed": False} for item in inputs],
    }


DATE_GAME_ABI: list[ABIEntry] = [
    _function("setAge", [_encrypted("age")]),
    _function("greaterThan", [_encrypted("value")]),
    _function("lessThan", [_encrypted("value")]),
    _function("isAgeSet", outputs=[_param("", "bool")], mutability="view"),
    _function("comparisonResult", outputs=[_param("", "uint256")], mutability="view"),
]

MILLIONAIRE_COMPARISON_ABI: list[ABIEntry] = [
    _function("setAliceWealth", [_encrypted("wealth")]),
    _function("setBobWealth", [_encrypted("wealth")]),
    _function("compareWealth"),
    _function("isAliceWealthSet", outputs=[_param("", "bool")], mutability="view"),
    _function("isBobWealthSet", outputs=[_param("", "bool")], mutability="view"),
    _function("areBothWealthsSet", outputs=[_param("", "bool")], mutability="view"),
    _function("getAliceResult", outputs=[_param("", "uint256")], mutability="view"),
    _function("getBobResult", outputs=[_param("", "uint256")], mutability="view"),
    _function("getAliceAddress", outputs=[_param("", "address")], mutability="view"),
    _function("getBobAddress", outputs=[_param("", "address")], mutability="view"),
    _function("reset"),
]

AUCTION_ABI: list[ABIEntry] = [
    _function("bid", [_encrypted("itBid")]),
    _function("getBid", outputs=[_param("", "uint256")]),
    _function("doIHaveHighestBid"),
    _function("claim"),
    _function("withdraw"),
    _function("auctionEnd"),
    _function("endTime", outputs=[_param("", "uint256")], mutability="view"),
    _function("bidCounter", outputs=[_param("", "uint256")], mutability="view"),
    _function("beneficiary", outputs=[_param("", "address")], mutability="view"),
    _function("tokenContract", outputs=[_param("", "address")], mutability="view"),
    _function("tokenTransferred", outputs=[_param("", "bool")], mutability="view"),
    _function("manuallyStopped", outputs=[_param("", "bool")], mutability="view"),
    _event("Winner", [_param("who", "address")]),
    _event("HighestBid", [_param("isHighestBid", "uint256")]),
]

TOKEN_ABI: list[ABIEntry] = [
    _function(
        "approve",
        [_param("spender", "address"), _encrypted("amount")],
        [_param("", "bool")],
    ),
    _function(
        "allowance",
        [_param("owner", "address"), _param("spender", "address")],
        [_param("", "uint256")],
        mutability="view",
    ),
    _function(
        "balanceOf", [_param("account", "address")], [_param("", "uint256")], mutability="view"
    ),
    _function(
        "transfer",
        [_param("to", "address"), _encrypted("amount")],
        [_param("", "bool")],
    ),
    _function("mint", [_param("to", "address"), _encrypted("amount")]),
]

_VOTE_RESULT_COMPONENTS = [
    _param("optionId", "uint8"),
    _param("optionLabel", "string"),
    _param("voteCount", "uint64"),
]

VOTING_ABI: list[ABIEntry] = [
    _function("castVote", [_encrypted("encryptedVote")]),
    _function("getVotingQuestion", outputs=[_param("", "string")], mutability="pure"),
    _function(
        "getVotingOptions",
        outputs=[
            _param("", "tuple[]", [_param("id", "uint8"), _param("label", "string")]),
        ],
        mutability="view",
    ),
    _function(
        "isVoterRegistered", [_param("voterId", "address")], [_param("", "bool")], mutability="view"
    ),
    _function(
        "voters",
        [_param("", "address")],
        [
            _param("name", "string"),
            _param("voterId", "address"),
            _param("encryptedVote", "bytes"),
            _param("isRegistered", "bool"),
            _param("hasVoted", "bool"),
            _param("hasAuthorizedOwner", "bool"),
        ],
        mutability="view",
    ),
    _function(
        "getElectionStatus",
        outputs=[
            _param("isOpen", "bool"),
            _param("voterCount", "uint256"),
            _param("electionOwner", "address"),
        ],
        mutability="view",
    ),
    _function("getResults", outputs=[_param("", "tuple[4]", _VOTE_RESULT_COMPONENTS)]),
    _function("aggregateVotes"),
    _function("toggleElection"),
]
