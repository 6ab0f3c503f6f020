"""web3.py adapter for the chain client interface."""

from .client import Web3ChainClient
from .connections import Web3Connections

__all__ = ["Web3ChainClient", "Web3Connections"]
