"""Selector-bound encryption of plaintext call arguments."""

from __future__ import annotations

import logging
from typing import Any

from .base import EncryptionCapability, EncryptionProvider
from .cache import SessionCache
from .constants import DEFAULT_BIT_WIDTH, CacheScope
from .exceptions import EncryptionUnavailable, UnknownFunction
from .types import CallTarget, Ciphertext, PartyIdentity
from .utils import coerce_plain_value

logger = logging.getLogger(__name__)


class SelectorBoundEncryptor:
    """Encrypt values for exactly one (contract address, function selector) pair."""

    def __init__(self, provider: EncryptionProvider, cache: SessionCache | None = None) -> None:
        self._provider = provider
        self._cache = cache or SessionCache()

    def capability_for(self, party: PartyIdentity) -> EncryptionCapability:
        """Return the party's encryption capability, building it on first use."""

        if not party.can_encrypt:
            raise EncryptionUnavailable(
                f"Party '{party.name}' has no onboarding key configured",
                party=party.name,
            )
        try:
            return self._cache.get_or_init(
                CacheScope.ENCRYPTION, party.address, lambda: self._provider(party)
            )
        except EncryptionUnavailable:
            raise
        except Exception as exc:
            raise EncryptionUnavailable(
                f"Could not initialise encryption for party '{party.name}'",
                party=party.name,
                details={"error": str(exc)},
            ) from exc

    async def encrypt_for_call(
        self,
        plain_value: Any,
        target: CallTarget,
        party: PartyIdentity,
        *,
        bit_width: int = DEFAULT_BIT_WIDTH,
    ) -> Ciphertext:
        """Encrypt ``plain_value`` so it is only valid as input to ``target``.

        Raises:
            InvalidValue: If the value is not a representable unsigned integer
            UnknownFunction: If ``target`` carries no 4-byte selector
            EncryptionUnavailable: If the party has no key material or encryption fails
        """

        value = coerce_plain_value(plain_value, bit_width)
        if len(target.selector) != 4:
            raise UnknownFunction(target.function_name, target.contract_address)

        capability = self.capability_for(party)
        try:
            ciphertext, signature = await capability.encrypt_value(
                value, target.contract_address, target.selector
            )
        except Exception as exc:
            raise EncryptionUnavailable(
                f"Encryption failed for {target.describe()}",
                party=party.name,
                details={"error": str(exc)},
            ) from exc

        logger.debug(
            "Encrypted value for %s as %s (selector %s)",
            target.function_name,
            party.name,
            target.selector_hex,
        )
        return Ciphertext(ciphertext=int(ciphertext), signature=bytes(signature), target=target)
