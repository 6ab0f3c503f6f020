"""Session facade wiring configuration, chain access and the orchestration layer."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from web3 import Web3

from .base import ChainClient, EncryptionProvider
from .cache import SessionCache
from .config import SessionConfig
from .constants import CacheScope
from .encryption import SelectorBoundEncryptor
from .evm import Web3ChainClient, Web3Connections
from .executor import ResilientCallExecutor, Sleep
from .interface import ContractInterface
from .pipeline import TransactionPipeline
from .retrieval import ResultRetriever
from .types import CallTarget, ContractCall, PartyIdentity

logger = logging.getLogger(__name__)


class ConfidentialSession:
    """One client session: parties, contracts and the submission machinery.

    Pass ``chain`` to use a chain client other than the web3 adapter.
    """

    def __init__(
        self,
        config: SessionConfig,
        encryption_provider: EncryptionProvider,
        *,
        chain: ChainClient | None = None,
        sleep: Sleep | None = None,
        cache: SessionCache | None = None,
    ) -> None:
        self._config = config
        self._cache = cache or SessionCache()
        self._connections: Web3Connections | None = None
        if chain is None:
            self._connections = Web3Connections(config)
            chain = Web3ChainClient(self._connections, receipt_timeout=config.receipt_timeout)
        self._chain = chain

        self._executor = ResilientCallExecutor(
            already_known_grace=config.already_known_grace, sleep=sleep
        )
        self._encryptor = SelectorBoundEncryptor(encryption_provider, self._cache)
        self.pipeline = TransactionPipeline(
            chain,
            self._encryptor,
            self._executor,
            retry=config.submit_retry,
            endpoint=config.rpc_url,
        )
        self.retriever = ResultRetriever(
            chain, self._encryptor, self._executor, retry=config.read_retry
        )

    # ------------------------------------------------------------------
    # Connection management
    # ------------------------------------------------------------------
    async def connect(self) -> None:
        if self._connections is not None:
            await self._connections.connect()

    def disconnect(self) -> None:
        if self._connections is not None:
            self._connections.disconnect()
        self._cache.clear()

    def is_connected(self) -> bool:
        return self._connections is None or self._connections.is_connected()

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def config(self) -> SessionConfig:
        return self._config

    @property
    def cache(self) -> SessionCache:
        return self._cache

    @property
    def chain(self) -> ChainClient:
        return self._chain

    @property
    def executor(self) -> ResilientCallExecutor:
        return self._executor

    @property
    def encryptor(self) -> SelectorBoundEncryptor:
        return self._encryptor

    def party(self, name: str) -> PartyIdentity:
        """Return the configured party, building its identity once per session."""

        party_config = self._config.party(name)
        return self._cache.get_or_init(
            CacheScope.PARTIES,
            name.lower(),
            lambda: PartyIdentity.from_keys(
                party_config.name, party_config.private_key, party_config.aes_key
            ),
        )

    def interface(self, address: str, abi: Sequence[Mapping[str, Any]]) -> ContractInterface:
        return self._cache.get_or_init(
            CacheScope.INTERFACES,
            address.lower(),
            lambda: ContractInterface(address, abi),
        )

    # ------------------------------------------------------------------
    # Reads and status flags
    # ------------------------------------------------------------------
    async def read(
        self,
        target: CallTarget,
        party: PartyIdentity,
        args: Sequence[Any] = (),
        *,
        gas_limit: int | None = None,
    ) -> Any:
        """Call ``target`` without sending a transaction, retrying transient failures."""

        call = ContractCall(target=target, args=tuple(args), sender=party, gas_limit=gas_limit)
        retry = self._config.read_retry
        return await self._executor.execute(
            lambda: self._chain.read(call),
            retry.max_attempts,
            retry.initial_delay,
            label=f"{call.label}:read",
        )

    async def is_set(
        self, target: CallTarget, party: PartyIdentity, args: Sequence[Any] = ()
    ) -> bool:
        """Read a boolean status flag, memoizing ``True`` until the contract is invalidated.

        ``False`` is never memoized since another party may set the value at any time.
        """

        async def load() -> bool:
            return bool(await self.read(target, party, args))

        return await self._cache.get_or_load(
            target.contract_address,
            (target.function_name, tuple(args)),
            load,
            store_if=bool,
        )

    def invalidate(self, contract_address: str) -> None:
        """Drop every cached status flag of a contract, e.g. after ``reset()``."""

        self._cache.invalidate(Web3.to_checksum_address(contract_address))
