"""Backend package for the Secret Santa organizer."""

from .codec import build_share_url, decode_share_token, encode_share_token, restore_padding, try_decode_share_token
from .config import BackendSettings, load_settings
from .engine import PairingGenerator, generate_pairs
from .errors import DecodingError, EncodingError, InfeasibleError, SecretSantaError
from .export import format_event_text
from .models import EventRecord, Pair, Participant, SharePayload
from .store import InMemorySantaStore, PostgresSantaStore, SantaStore, create_store

__all__ = [
    "BackendSettings",
    "build_share_url",
    "create_store",
    "decode_share_token",
    "DecodingError",
    "encode_share_token",
    "EncodingError",
    "EventRecord",
    "format_event_text",
    "generate_pairs",
    "InfeasibleError",
    "InMemorySantaStore",
    "load_settings",
    "Pair",
    "PairingGenerator",
    "Participant",
    "PostgresSantaStore",
    "restore_padding",
    "SantaStore",
    "SecretSantaError",
    "SharePayload",
    "try_decode_share_token",
]
