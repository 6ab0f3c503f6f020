"""Age comparison game: the admin stores an encrypted age, a player compares against it."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date

from ..abi import DATE_GAME_ABI
from ..constants import GasLimit
from ..exceptions import DecryptionError, ValidationError
from ..session import ConfidentialSession
from ..types import PartyIdentity, SubmissionResult
from ..utils import coerce_plain_value

logger = logging.getLogger(__name__)

_COMPARISONS = {"greater": "greaterThan", "less": "lessThan"}


@dataclass(frozen=True)
class AgeComparison:
    result: bool
    operation: str
    age: int
    tx_hash: str
    serialized_ciphertext: str | None
    ciphertext_digest: str | None


def calculate_age(birth_date: date | str, today: date | None = None) -> int:
    """Return the age in whole years on ``today``."""

    born = date.fromisoformat(birth_date) if isinstance(birth_date, str) else birth_date
    today = today or date.today()
    age = today.year - born.year
    if (today.month, today.day) < (born.month, born.day):
        age -= 1
    if age < 0:
        raise ValidationError("Birth date lies in the future", field="birth_date", value=birth_date)
    return age


class AgeGame:
    """Client for the ``DateGame`` contract."""

    def __init__(
        self,
        session: ConfidentialSession,
        contract_address: str,
        *,
        admin: str = "admin",
        player: str = "player",
    ) -> None:
        self._session = session
        self._interface = session.interface(contract_address, DATE_GAME_ABI)
        self._admin = admin
        self._player = player

    @property
    def contract_address(self) -> str:
        return self._interface.address

    async def store_age(
        self, birth_date: date | str, *, today: date | None = None
    ) -> SubmissionResult:
        admin = self._session.party(self._admin)
        age = calculate_age(birth_date, today)
        logger.info("Storing age %s as %s", age, admin.name)
        return await self._session.pipeline.submit_encrypted_call(
            age, self._interface.target("setAge"), admin, GasLimit.STORE_VALUE
        )

    async def compare_age(self, age: int | str, operation: str = "greater") -> AgeComparison:
        """Compare ``age`` against the stored age and decrypt the outcome as the player."""

        function_name = _COMPARISONS.get(operation)
        if function_name is None:
            raise ValidationError(
                f"Unknown comparison '{operation}'", field="operation", value=operation
            )

        player = self._session.party(self._player)
        value = coerce_plain_value(age)

        if not await self._session.is_set(self._interface.target("isAgeSet"), player):
            raise ValidationError(
                "No age has been stored yet. Please store an age first.", field="age"
            )

        submission = await self._session.pipeline.submit_encrypted_call(
            value, self._interface.target(function_name), player, GasLimit.STORE_VALUE
        )

        retriever = self._session.retriever
        clear = await retriever.fetch_and_decrypt(
            retriever.view(self._interface.target("comparisonResult"), player), player
        )
        if clear is None:
            raise DecryptionError("Comparison result is not available", party=player.name)

        return AgeComparison(
            result=clear == 1,
            operation=operation,
            age=value,
            tx_hash=submission.tx_hash,
            serialized_ciphertext=submission.serialized_ciphertext,
            ciphertext_digest=submission.ciphertext_digest,
        )

    async def check_age_status(self) -> bool:
        party = self._status_party()
        if party is None:
            return False
        try:
            return await self._session.is_set(self._interface.target("isAgeSet"), party)
        except Exception as exc:  # pragma: no cover - defensive
            logger.warning("Failed to read age status: %s", exc)
            return False

    def _status_party(self) -> PartyIdentity | None:
        for name in (self._admin, self._player):
            if name.lower() in self._session.config.parties:
                return self._session.party(name)
        return None
