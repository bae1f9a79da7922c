"""Share tokens: event records packed into URL-safe base64 without padding."""

from __future__ import annotations

import base64
import binascii
import logging
from collections.abc import Mapping
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from pydantic import ValidationError
from pydantic_core import PydanticSerializationError

from .errors import DecodingError, EncodingError
from .models import EventRecord, SharePayload

logger = logging.getLogger(__name__)

SHARE_QUERY_PARAM = "r"


def restore_padding(token: str) -> str:
    """Re-append the ``=`` characters stripped when the token was encoded.

    Base64 text always comes in blocks of four characters, so the missing
    padding is ``(4 - len(token) % 4) % 4`` characters long.
    """
    return token + "=" * ((4 - len(token) % 4) % 4)


def encode_share_token(record: EventRecord | Mapping[str, Any], shared: bool) -> str:
    try:
        payload = SharePayload(results=record, shared=shared)
        text = payload.model_dump_json(by_alias=True)
    except (ValidationError, PydanticSerializationError) as exc:
        raise EncodingError("Could not produce a shareable link for these results") from exc
    return base64.urlsafe_b64encode(text.encode("utf-8")).decode("ascii").rstrip("=")


def decode_share_token(token: str) -> SharePayload:
    if not isinstance(token, str) or token == "":
        raise DecodingError("Share token is empty")

    try:
        raw = base64.b64decode(restore_padding(token), altchars=b"-_", validate=True)
    except (binascii.Error, ValueError) as exc:
        raise DecodingError("Share token is not valid URL-safe base64") from exc

    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise DecodingError("Share token does not contain UTF-8 text") from exc

    try:
        return SharePayload.model_validate_json(text)
    except ValidationError as exc:
        raise DecodingError("Share token does not describe a Secret Santa result") from exc


def try_decode_share_token(token: str | None) -> SharePayload | None:
    """Decode an incoming link, treating a broken token as no token at all."""
    if not token:
        return None
    try:
        return decode_share_token(token)
    except DecodingError as exc:
        logger.info("Ignoring invalid share token: %s", exc)
        return None


def build_share_url(base_url: str, token: str, param: str = SHARE_QUERY_PARAM) -> str:
    parts = urlsplit(base_url)
    query = [(key, value) for key, value in parse_qsl(parts.query, keep_blank_values=True) if key != param]
    query.append((param, token))
    return urlunsplit((parts.scheme, parts.netloc, parts.path or "/", urlencode(query), parts.fragment))
