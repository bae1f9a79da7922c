"""State builders for rosters, previous-match registries and event records."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence

from .errors import (
    DuplicateParticipantError,
    DuplicatePairingError,
    UnknownPairingError,
    UnknownParticipantError,
)
from .models import EventRecord, History, Pair, Participant


def copy_history(history: Mapping[str, Iterable[str]]) -> History:
    """Return a history whose receiver lists share nothing with ``history``."""
    return {giver: list(receivers) for giver, receivers in history.items()}


def add_participant(roster: Sequence[Participant], participant: Participant) -> list[Participant]:
    if any(existing.name == participant.name for existing in roster):
        raise DuplicateParticipantError(participant.name)
    return [*roster, participant]


def remove_participant(
    roster: Sequence[Participant],
    history: Mapping[str, Iterable[str]],
    name: str,
) -> tuple[list[Participant], History]:
    """Drop ``name`` from the roster and from both sides of the history."""
    if not any(participant.name == name for participant in roster):
        raise UnknownParticipantError(name)

    next_roster = [participant for participant in roster if participant.name != name]
    next_history: History = {}
    for giver, receivers in history.items():
        if giver == name:
            continue
        remaining = [receiver for receiver in receivers if receiver != name]
        if remaining:
            next_history[giver] = remaining
    return next_roster, next_history


def add_previous_pairing(history: Mapping[str, Iterable[str]], giver: str, receiver: str) -> History:
    if giver == receiver:
        raise ValueError("A participant cannot be their own previous match.")
    next_history = copy_history(history)
    receivers = next_history.setdefault(giver, [])
    if receiver in receivers:
        raise DuplicatePairingError(giver, receiver)
    receivers.append(receiver)
    return next_history


def remove_previous_pairing(history: Mapping[str, Iterable[str]], giver: str, receiver: str) -> History:
    next_history = copy_history(history)
    receivers = next_history.get(giver)
    if not receivers or receiver not in receivers:
        raise UnknownPairingError(giver, receiver)
    receivers.remove(receiver)
    if not receivers:
        del next_history[giver]
    return next_history


def build_event_record(
    results: Iterable[Pair],
    title: str = "",
    date: str = "",
    max_amount: int | float | str = "",
) -> EventRecord:
    return EventRecord(title=title, date=date, max_amount=max_amount, results=tuple(results))
