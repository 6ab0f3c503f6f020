"""Configuration containers for a confidential transaction session."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import dotenv_values

from .constants import (
    DEFAULT_ALREADY_KNOWN_GRACE,
    DEFAULT_INITIAL_DELAY,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_READ_DELAY,
    DEFAULT_RPC_URL,
)
from .exceptions import ValidationError

DEFAULT_REQUEST_TIMEOUT = 10.0
DEFAULT_RECEIPT_TIMEOUT = 120.0


@dataclass(frozen=True)
class RetryPolicy:
    """Attempt budget and backoff base (seconds) for one executor call."""

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    initial_delay: float = DEFAULT_INITIAL_DELAY

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValidationError(
                "max_attempts must be at least 1", field="max_attempts", value=self.max_attempts
            )
        if self.initial_delay < 0:
            raise ValidationError(
                "initial_delay must not be negative",
                field="initial_delay",
                value=self.initial_delay,
            )


@dataclass(frozen=True)
class PartyConfig:
    """Credentials of one party: signing key and optional onboarding (AES) key."""

    name: str
    private_key: str = field(repr=False)
    aes_key: str | None = field(default=None, repr=False)


@dataclass(frozen=True)
class SessionConfig:
    """Everything a session needs, built once at startup."""

    rpc_url: str = DEFAULT_RPC_URL
    parties: Mapping[str, PartyConfig] = field(default_factory=dict)
    contracts: Mapping[str, str] = field(default_factory=dict)
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    receipt_timeout: float = DEFAULT_RECEIPT_TIMEOUT
    already_known_grace: float = DEFAULT_ALREADY_KNOWN_GRACE
    submit_retry: RetryPolicy = RetryPolicy()
    read_retry: RetryPolicy = RetryPolicy(initial_delay=DEFAULT_READ_DELAY)

    def party(self, name: str) -> PartyConfig:
        key = name.lower()
        if key not in self.parties:
            raise ValidationError(
                f"Party '{name}' is not configured",
                field="party",
                value=name,
                details={"known": sorted(self.parties)},
            )
        return self.parties[key]

    def contract_address(self, name: str) -> str:
        key = name.lower()
        address = self.contracts.get(key)
        if not address:
            raise ValidationError(
                f"Contract address for '{name}' is not configured",
                field="contract",
                value=name,
            )
        return address

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str | None],
        party_names: Iterable[str] = (),
        contract_names: Iterable[str] = (),
        *,
        prefix: str = "",
    ) -> SessionConfig:
        """Build a config from an environment-like mapping.

        Reads ``RPC_URL``, ``<PARTY>_PK``, ``<PARTY>_AES_KEY`` and
        ``<CONTRACT>_ADDRESS``, each optionally prefixed (e.g. ``VITE_``).
        Parties without a private key are skipped.
        """

        def read(name: str) -> str | None:
            value = environ.get(f"{prefix}{name}")
            return value.strip() if value else None

        parties: dict[str, PartyConfig] = {}
        for name in party_names:
            upper = name.upper()
            private_key = read(f"{upper}_PK")
            if not private_key:
                continue
            parties[name.lower()] = PartyConfig(
                name=name, private_key=private_key, aes_key=read(f"{upper}_AES_KEY")
            )

        contracts: dict[str, str] = {}
        for name in contract_names:
            address = read(f"{name.upper()}_ADDRESS")
            if address:
                contracts[name.lower()] = address

        return cls(
            rpc_url=read("RPC_URL") or read("APP_NODE_HTTPS_ADDRESS") or DEFAULT_RPC_URL,
            parties=parties,
            contracts=contracts,
        )


def load_session_config(
    party_names: Iterable[str],
    contract_names: Iterable[str],
    *,
    dotenv_path: str | Path | None = None,
    prefix: str = "",
) -> SessionConfig:
    """Read a ``.env`` file into a ``SessionConfig`` without touching ``os.environ``."""

    values = dotenv_values(dotenv_path) if dotenv_path is not None else dotenv_values()
    return SessionConfig.from_env(values, party_names, contract_names, prefix=prefix)
