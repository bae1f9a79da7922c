"""Domain models for rosters, assignments and shareable event records."""

from __future__ import annotations

import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictBool, field_validator

DEFAULT_TITLE = "Secret Santa"

PHONE_PATTERN = re.compile(r"^(\+\d{1,2}\s?)?(\(\d{3}\)|\d{3})[\s.-]?\d{3}[\s.-]?\d{4}$")

History = dict[str, list[str]]


class Participant(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1, max_length=200)
    phone: str = ""

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("phone", mode="before")
    @classmethod
    def _check_phone(cls, value: Any) -> Any:
        if value is None:
            return ""
        if isinstance(value, str):
            value = value.strip()
            if value and PHONE_PATTERN.match(value) is None:
                raise ValueError("Phone number is not valid")
        return value


class Pair(BaseModel):
    model_config = ConfigDict(frozen=True)

    giver: str
    receiver: str


class EventRecord(BaseModel):
    """A generated assignment bundled with its display metadata.

    ``max_amount`` keeps whatever the organizer typed (a number or a numeric
    string) so it survives a trip through a share token unchanged.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    title: str = DEFAULT_TITLE
    date: str = ""
    max_amount: int | float | str = Field(default="", alias="maxAmount")
    results: tuple[Pair, ...] = ()

    @field_validator("title", mode="before")
    @classmethod
    def _default_title(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and value.strip() == ""):
            return DEFAULT_TITLE
        return value

    @field_validator("date", "max_amount", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class SharePayload(BaseModel):
    """Wire shape of a share token: ``{"results": <record>, "shared": <flag>}``."""

    model_config = ConfigDict(frozen=True)

    results: EventRecord
    shared: StrictBool

    @property
    def record(self) -> EventRecord:
        return self.results
