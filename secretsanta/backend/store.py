"""Persistence interfaces and implementations for roster, history and results."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
import json
import logging
from typing import Any, Protocol

from secretsanta.backend import state
from secretsanta.backend.models import EventRecord, History, Participant

logger = logging.getLogger(__name__)

PARTICIPANTS_KEY = "participants"
HISTORY_KEY = "previousPairings"
RESULTS_KEY = "results"


class SantaStore(Protocol):
    def list_participants(self) -> list[Participant]:
        """Return the roster in insertion order."""

    def add_participant(self, participant: Participant) -> list[Participant]:
        """Append a participant and return the new roster."""

    def remove_participant(self, name: str) -> list[Participant]:
        """Remove a participant, pruning them from the history in the same write."""

    def get_history(self) -> History:
        """Return the previous-match registry."""

    def add_previous_pairing(self, giver: str, receiver: str) -> History:
        """Record a forbidden giver/receiver pair and return the new registry."""

    def remove_previous_pairing(self, giver: str, receiver: str) -> History:
        """Forget a forbidden pair and return the new registry."""

    def get_results(self) -> EventRecord | None:
        """Return the latest generated event record, if any."""

    def save_results(self, record: EventRecord) -> None:
        """Replace the stored event record."""

    def clear_results(self) -> None:
        """Forget the stored event record."""


class _RecordStore:
    """Roster/history/results operations over named JSON records.

    Subclasses provide ``_read`` for a single record, ``_write`` for a batch
    of records that must land together, and ``_delete`` for one record.
    """

    def _read(self, name: str) -> Any:
        raise NotImplementedError

    def _write(self, records: dict[str, Any]) -> None:
        raise NotImplementedError

    def _delete(self, name: str) -> None:
        raise NotImplementedError

    def list_participants(self) -> list[Participant]:
        return [Participant.model_validate(item) for item in self._read(PARTICIPANTS_KEY) or []]

    def add_participant(self, participant: Participant) -> list[Participant]:
        roster = state.add_participant(self.list_participants(), participant)
        self._write({PARTICIPANTS_KEY: _dump_roster(roster)})
        logger.info("Added participant %s (%d total)", participant.name, len(roster))
        return roster

    def remove_participant(self, name: str) -> list[Participant]:
        roster, history = state.remove_participant(self.list_participants(), self.get_history(), name)
        self._write({PARTICIPANTS_KEY: _dump_roster(roster), HISTORY_KEY: history})
        logger.info("Removed participant %s (%d remaining)", name, len(roster))
        return roster

    def get_history(self) -> History:
        return state.copy_history(self._read(HISTORY_KEY) or {})

    def add_previous_pairing(self, giver: str, receiver: str) -> History:
        history = state.add_previous_pairing(self.get_history(), giver, receiver)
        self._write({HISTORY_KEY: history})
        return history

    def remove_previous_pairing(self, giver: str, receiver: str) -> History:
        history = state.remove_previous_pairing(self.get_history(), giver, receiver)
        self._write({HISTORY_KEY: history})
        return history

    def get_results(self) -> EventRecord | None:
        payload = self._read(RESULTS_KEY)
        if payload is None:
            return None
        return EventRecord.model_validate(payload)

    def save_results(self, record: EventRecord) -> None:
        self._write({RESULTS_KEY: record.model_dump(mode="json", by_alias=True)})

    def clear_results(self) -> None:
        self._delete(RESULTS_KEY)


def _dump_roster(roster: list[Participant]) -> list[dict[str, Any]]:
    return [participant.model_dump(mode="json") for participant in roster]


@dataclass
class InMemorySantaStore(_RecordStore):
    def __post_init__(self) -> None:
        self._records: dict[str, str] = {}

    def _read(self, name: str) -> Any:
        raw = self._records.get(name)
        if raw is None:
            return None
        return json.loads(raw)

    def _write(self, records: dict[str, Any]) -> None:
        # Stored as JSON text; callers never share structure with the store.
        for name, value in records.items():
            self._records[name] = json.dumps(value)

    def _delete(self, name: str) -> None:
        self._records.pop(name, None)


@dataclass
class PostgresSantaStore(_RecordStore):
    database_url: str

    def _connect(self) -> Any:
        import psycopg

        return psycopg.connect(self.database_url)

    def _read(self, name: str) -> Any:
        with self._connect() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    SELECT record_json
                    FROM santa_records
                    WHERE name = %s
                    """,
                    (name,),
                )
                row = cur.fetchone()

        if row is None:
            return None
        (record_json,) = row
        return record_json if isinstance(record_json, (dict, list)) else json.loads(record_json)

    def _write(self, records: dict[str, Any]) -> None:
        now = datetime.now(timezone.utc)
        with self._connect() as conn:
            with conn.cursor() as cur:
                for name, value in records.items():
                    cur.execute(
                        """
                        INSERT INTO santa_records (name, record_json, updated_at)
                        VALUES (%s, %s::jsonb, %s)
                        ON CONFLICT (name)
                        DO UPDATE SET record_json = EXCLUDED.record_json, updated_at = EXCLUDED.updated_at
                        """,
                        (name, json.dumps(value), now),
                    )
            conn.commit()

    def _delete(self, name: str) -> None:
        with self._connect() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    DELETE FROM santa_records
                    WHERE name = %s
                    """,
                    (name,),
                )
            conn.commit()


def create_store(database_url: str | None) -> SantaStore:
    if database_url:
        return PostgresSantaStore(database_url=database_url)
    return InMemorySantaStore()
