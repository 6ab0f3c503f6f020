"""Named, resumable multi-step flows."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from .exceptions import SagaStepFailed

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SagaStep:
    name: str
    action: Callable[[], Awaitable[Any]]


class Saga:
    """Run steps in order and resume after a failure without repeating finished steps.

    There is no rollback: a step that succeeded (e.g. a token approval) stays
    applied on chain, and the next ``run()`` continues after it.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._steps: list[SagaStep] = []
        self._results: dict[str, Any] = {}

    def step(self, name: str, action: Callable[[], Awaitable[Any]]) -> Saga:
        if any(existing.name == name for existing in self._steps):
            raise ValueError(f"Duplicate saga step '{name}'")
        self._steps.append(SagaStep(name, action))
        return self

    @property
    def completed(self) -> tuple[str, ...]:
        return tuple(step.name for step in self._steps if step.name in self._results)

    @property
    def pending_step(self) -> str | None:
        for step in self._steps:
            if step.name not in self._results:
                return step.name
        return None

    @property
    def is_complete(self) -> bool:
        return self.pending_step is None

    @property
    def results(self) -> dict[str, Any]:
        return dict(self._results)

    async def run(self) -> dict[str, Any]:
        """Run every step that has not completed yet.

        Raises:
            SagaStepFailed: Chained to the error of the failing step
        """

        for step in self._steps:
            if step.name in self._results:
                continue
            logger.info("Stage %s [%s]: start", self.name, step.name)
            try:
                self._results[step.name] = await step.action()
            except Exception as exc:
                logger.error("Stage %s [%s] failed: %s", self.name, step.name, exc)
                raise SagaStepFailed(self.name, step.name, self.completed) from exc
            logger.info("Stage %s [%s]: done", self.name, step.name)
        return self.results
