"""Pairing engine: rejection sampling over shuffled rosters."""

from __future__ import annotations

import logging
import random
from collections.abc import Collection, Mapping, MutableSequence, Sequence
from typing import Any

from .errors import InfeasibleError
from .models import Pair

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 100


def shuffle_in_place(items: MutableSequence[Any], rng: random.Random) -> None:
    """Fisher-Yates shuffle, walking from the last index down to the second."""
    for i in range(len(items) - 1, 0, -1):
        j = rng.randint(0, i)
        items[i], items[j] = items[j], items[i]


def is_valid_pairing(
    givers: Sequence[str],
    receivers: Sequence[str],
    history: Mapping[str, Collection[str]],
) -> bool:
    for giver, receiver in zip(givers, receivers):
        if giver == receiver:
            return False
        if receiver in history.get(giver, ()):
            return False
    return True


class PairingGenerator:
    """Assign every giver one receiver, avoiding self-gifts and past matches.

    The working roster is reshuffled on each attempt and the first
    permutation that clears every constraint is returned. After
    ``max_attempts`` rejected permutations the generator gives up with
    :class:`InfeasibleError` instead of searching further.
    """

    def __init__(self, max_attempts: int = DEFAULT_MAX_ATTEMPTS, rng: random.Random | None = None) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self._rng = rng if rng is not None else random.Random()

    def generate(self, roster: Sequence[str], history: Mapping[str, Collection[str]]) -> tuple[Pair, ...]:
        givers = list(roster)
        if len(givers) < 2:
            raise ValueError("At least two participants are required")
        if len(set(givers)) != len(givers):
            raise ValueError("Participant names must be unique")

        receivers = list(givers)
        for attempt in range(1, self.max_attempts + 1):
            shuffle_in_place(receivers, self._rng)
            if is_valid_pairing(givers, receivers, history):
                logger.debug("Found valid pairing for %d participants on attempt %d", len(givers), attempt)
                return tuple(Pair(giver=giver, receiver=receiver) for giver, receiver in zip(givers, receivers))

        logger.warning(
            "No valid pairing for %d participants after %d attempts",
            len(givers),
            self.max_attempts,
        )
        raise InfeasibleError(self.max_attempts)


def generate_pairs(
    roster: Sequence[str],
    history: Mapping[str, Collection[str]],
    *,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    rng: random.Random | None = None,
) -> tuple[Pair, ...]:
    return PairingGenerator(max_attempts=max_attempts, rng=rng).generate(roster, history)
