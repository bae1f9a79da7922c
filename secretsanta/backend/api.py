"""FastAPI endpoints for the roster, previous matches, generation and share links."""

from __future__ import annotations

import logging
from typing import Literal

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, ConfigDict, Field

from .codec import SHARE_QUERY_PARAM, build_share_url, encode_share_token, try_decode_share_token
from .config import BackendSettings, load_settings
from .engine import PairingGenerator
from .errors import (
    DuplicateParticipantError,
    DuplicatePairingError,
    EncodingError,
    InfeasibleError,
    UnknownPairingError,
    UnknownParticipantError,
)
from .export import format_event_text
from .logging_config import setup_logging
from .models import EventRecord, History, Participant
from .notify import LoggingNotifier, Notifier, notify_givers
from .state import build_event_record
from .store import SantaStore, create_store

logger = logging.getLogger(__name__)


class RosterResponse(BaseModel):
    participants: list[Participant]


class HistoryResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    previous_pairings: History = Field(alias="previousPairings")


class PreviousPairingRequest(BaseModel):
    giver: str = Field(min_length=1)
    receiver: str = Field(min_length=1)


class GenerateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str = ""
    date: str = ""
    max_amount: int | float | str = Field(default="", alias="maxAmount")


class ShareRequest(BaseModel):
    results: EventRecord
    shared: bool = True


class ShareResponse(BaseModel):
    token: str
    url: str


class ViewResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    mode: Literal["form", "shared"]
    actions: list[str]
    results: EventRecord | None = None
    shared: bool = False
    participants: list[Participant] = Field(default_factory=list)
    previous_pairings: History = Field(default_factory=dict, alias="previousPairings")


def create_app(
    store: SantaStore | None = None,
    settings: BackendSettings | None = None,
    notifier: Notifier | None = None,
    generator: PairingGenerator | None = None,
) -> FastAPI:
    active_settings = settings if settings is not None else load_settings()
    setup_logging(active_settings.log_level)

    app = FastAPI(title="Secret Santa API", version="0.1.0")
    santa_store = store if store is not None else create_store(active_settings.database_url)
    active_notifier = notifier if notifier is not None else LoggingNotifier()
    pairing_generator = (
        generator if generator is not None else PairingGenerator(max_attempts=active_settings.max_attempts)
    )

    def get_store() -> SantaStore:
        return santa_store

    def share(record: EventRecord, shared: bool) -> ShareResponse:
        try:
            token = encode_share_token(record, shared)
        except EncodingError as exc:
            logger.error("Share link failed: %s", exc)
            raise HTTPException(status_code=422, detail="Could not produce a shareable link") from exc
        return ShareResponse(token=token, url=build_share_url(active_settings.public_url, token))

    @app.get("/api/participants", response_model=RosterResponse)
    def list_participants(local_store: SantaStore = Depends(get_store)) -> RosterResponse:
        return RosterResponse(participants=local_store.list_participants())

    @app.post("/api/participants", response_model=RosterResponse)
    def add_participant(
        payload: Participant,
        local_store: SantaStore = Depends(get_store),
    ) -> RosterResponse:
        try:
            roster = local_store.add_participant(payload)
        except DuplicateParticipantError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        return RosterResponse(participants=roster)

    @app.delete("/api/participants/{name:path}", response_model=RosterResponse)
    def remove_participant(name: str, local_store: SantaStore = Depends(get_store)) -> RosterResponse:
        try:
            roster = local_store.remove_participant(name)
        except UnknownParticipantError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return RosterResponse(participants=roster)

    @app.get("/api/history", response_model=HistoryResponse)
    def get_history(local_store: SantaStore = Depends(get_store)) -> HistoryResponse:
        return HistoryResponse(previous_pairings=local_store.get_history())

    @app.post("/api/history", response_model=HistoryResponse)
    def add_previous_pairing(
        payload: PreviousPairingRequest,
        local_store: SantaStore = Depends(get_store),
    ) -> HistoryResponse:
        names = {participant.name for participant in local_store.list_participants()}
        missing = [name for name in (payload.giver, payload.receiver) if name not in names]
        if missing:
            raise HTTPException(status_code=422, detail=f"Unknown participant: {missing[0]}")
        try:
            history = local_store.add_previous_pairing(payload.giver, payload.receiver)
        except DuplicatePairingError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        return HistoryResponse(previous_pairings=history)

    @app.delete("/api/history", response_model=HistoryResponse)
    def remove_previous_pairing(
        giver: str = Query(min_length=1),
        receiver: str = Query(min_length=1),
        local_store: SantaStore = Depends(get_store),
    ) -> HistoryResponse:
        try:
            history = local_store.remove_previous_pairing(giver, receiver)
        except UnknownPairingError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return HistoryResponse(previous_pairings=history)

    @app.post("/api/assignments", response_model=EventRecord)
    def generate_assignments(
        payload: GenerateRequest,
        local_store: SantaStore = Depends(get_store),
    ) -> EventRecord:
        roster = local_store.list_participants()
        if len(roster) < 2:
            raise HTTPException(status_code=400, detail="At least two participants are required")
        try:
            pairs = pairing_generator.generate([participant.name for participant in roster], local_store.get_history())
        except InfeasibleError as exc:
            local_store.clear_results()
            raise HTTPException(status_code=409, detail=str(exc)) from exc

        record = build_event_record(pairs, title=payload.title, date=payload.date, max_amount=payload.max_amount)
        local_store.save_results(record)
        notify_givers(active_notifier, roster, pairs)
        logger.info("Generated %d pairings for %r", len(pairs), record.title)
        return record

    def require_results(local_store: SantaStore) -> EventRecord:
        record = local_store.get_results()
        if record is None:
            raise HTTPException(status_code=404, detail="No pairings have been generated yet")
        return record

    @app.get("/api/assignments/latest", response_model=EventRecord)
    def get_latest(local_store: SantaStore = Depends(get_store)) -> EventRecord:
        return require_results(local_store)

    @app.get("/api/assignments/latest/export", response_class=PlainTextResponse)
    def export_latest(local_store: SantaStore = Depends(get_store)) -> str:
        return format_event_text(require_results(local_store))

    @app.post("/api/assignments/latest/share", response_model=ShareResponse)
    def share_latest(
        shared: bool = Query(default=True),
        local_store: SantaStore = Depends(get_store),
    ) -> ShareResponse:
        return share(require_results(local_store), shared)

    @app.post("/api/share", response_model=ShareResponse)
    def share_results(payload: ShareRequest) -> ShareResponse:
        return share(payload.results, payload.shared)

    @app.get("/api/view", response_model=ViewResponse)
    def view(
        token: str | None = Query(default=None, alias=SHARE_QUERY_PARAM),
        local_store: SantaStore = Depends(get_store),
    ) -> ViewResponse:
        incoming = try_decode_share_token(token)
        if incoming is not None:
            actions = ["share"] if incoming.shared else ["share", "regenerate"]
            return ViewResponse(mode="shared", actions=actions, results=incoming.record, shared=incoming.shared)

        roster = local_store.list_participants()
        return ViewResponse(
            mode="form",
            actions=["generate"] if len(roster) >= 2 else [],
            participants=roster,
            previous_pairings=local_store.get_history(),
        )

    return app


app = create_app()
