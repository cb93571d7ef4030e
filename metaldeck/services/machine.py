"""Closed step enumerations with explicit transition tables."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Generic, Mapping, TypeVar

from metaldeck.services.errors import InvalidTransition

logger = logging.getLogger(__name__)

S = TypeVar("S", bound=Enum)


class StepMachine(Generic[S]):
    """Holds the current step and refuses edges missing from *transitions*."""

    def __init__(self, name: str, initial: S, transitions: Mapping[S, frozenset[S]]) -> None:
        self.name = name
        self._step = initial
        self._transitions = transitions

    @property
    def step(self) -> S:
        return self._step

    def can_move(self, target: S) -> bool:
        return target in self._transitions.get(self._step, frozenset())

    def move(self, target: S) -> None:
        if not self.can_move(target):
            raise InvalidTransition(f"{self.name}: {self._step.value} → {target.value} is not allowed")
        logger.debug("%s: %s → %s", self.name, self._step.value, target.value)
        self._step = target
