"""Giver notifications sent after a new round is generated."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Protocol

from .models import Pair, Participant

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def send(self, phone: str, message: str) -> None:
        """Deliver ``message`` to ``phone``."""


class LoggingNotifier:
    """Write outgoing messages to the log instead of contacting an SMS gateway."""

    def send(self, phone: str, message: str) -> None:
        logger.info("Sending SMS to %s: %s", phone, message)


def build_notification_message(pair: Pair) -> str:
    return f"Hello {pair.giver}! You are the Secret Santa for {pair.receiver}. Happy gifting!"


def notify_givers(notifier: Notifier, roster: Iterable[Participant], pairs: Iterable[Pair]) -> int:
    """Message every giver that has a phone number; return how many were sent."""
    phones = {participant.name: participant.phone for participant in roster}
    sent = 0
    for pair in pairs:
        phone = phones.get(pair.giver, "")
        if not phone:
            logger.debug("Skipping notification for %s: no phone number", pair.giver)
            continue
        notifier.send(phone, build_notification_message(pair))
        sent += 1
    return sent
