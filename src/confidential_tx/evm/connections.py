"""Connection helpers for the web3-backed chain client."""

from __future__ import annotations

import logging
from typing import cast

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.contract import AsyncContract

from ..config import SessionConfig
from ..exceptions import NetworkError, ValidationError
from ..interface import ContractInterface
from ..types import PartyIdentity

logger = logging.getLogger(__name__)


class Web3Connections:
    """Manage the async provider, per-party signer accounts and contract handles."""

    def __init__(self, config: SessionConfig):
        self.config = config
        self._provider: AsyncHTTPProvider | None = None
        self._web3: AsyncWeb3 | None = None
        self._chain_id: int | None = None
        self._accounts: dict[str, LocalAccount] = {}
        self._contracts: dict[str, AsyncContract] = {}
        self._connected = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    async def connect(self) -> None:
        """Initialise the provider and read the chain id."""

        provider = AsyncHTTPProvider(
            self.config.rpc_url, request_kwargs={"timeout": self.config.request_timeout}
        )
        web3 = AsyncWeb3(provider)
        if not await web3.is_connected():
            raise NetworkError("Unable to connect to RPC", endpoint=self.config.rpc_url)

        self._provider = provider
        self._web3 = web3
        self._chain_id = await web3.eth.chain_id
        self._connected = True
        logger.info("Connected to RPC at %s (chain id %s)", self.config.rpc_url, self._chain_id)

    def disconnect(self) -> None:
        self._provider = None
        self._web3 = None
        self._chain_id = None
        self._accounts.clear()
        self._contracts.clear()
        self._connected = False

    def is_connected(self) -> bool:
        return self._connected and self._web3 is not None

    def ensure_connected(self) -> None:
        if not self.is_connected():
            raise NetworkError("Chain client is not connected", endpoint=self.config.rpc_url)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def web3(self) -> AsyncWeb3:
        if self._web3 is None:
            raise NetworkError("RPC provider not connected", endpoint=self.config.rpc_url)
        return self._web3

    @property
    def chain_id(self) -> int:
        if self._chain_id is None:
            raise NetworkError(
                "Chain id unknown; call connect() first", endpoint=self.config.rpc_url
            )
        return self._chain_id

    def account(self, party: PartyIdentity) -> LocalAccount:
        signer = self._accounts.get(party.address)
        if signer is not None:
            return signer

        try:
            signer = cast(LocalAccount, Account.from_key(party.private_key))
        except Exception as exc:  # pragma: no cover - defensive
            raise ValidationError(
                "Failed to derive signer account from provided private key",
                field="private_key",
                details={"party": party.name, "error": str(exc)},
            ) from exc

        if signer.address != party.address:
            raise ValidationError(
                "Signer address does not match party address",
                field="private_key",
                details={"party": party.name},
            )
        self._accounts[party.address] = signer
        return signer

    def contract(self, interface: ContractInterface) -> AsyncContract:
        handle = self._contracts.get(interface.address)
        if handle is None:
            handle = self.web3.eth.contract(address=interface.address, abi=interface.abi)
            self._contracts[interface.address] = handle
        return handle
