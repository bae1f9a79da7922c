"""Domain errors raised by the pairing engine, codec and roster helpers."""

from __future__ import annotations


class SecretSantaError(Exception):
    """Base class for every error the backend reports to its callers."""


class InfeasibleError(SecretSantaError):
    def __init__(self, attempts: int) -> None:
        super().__init__(
            f"Unable to generate valid Secret Santa pairings after {attempts} attempts. "
            "Remove a previous match or add more participants and try again."
        )
        self.attempts = attempts


class CodecError(SecretSantaError):
    pass


class EncodingError(CodecError):
    pass


class DecodingError(CodecError):
    pass


class DuplicateParticipantError(SecretSantaError):
    def __init__(self, name: str) -> None:
        super().__init__("A participant with this name already exists.")
        self.name = name


class UnknownParticipantError(SecretSantaError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Participant {name!r} is not on the roster.")
        self.name = name


class DuplicatePairingError(SecretSantaError):
    def __init__(self, giver: str, receiver: str) -> None:
        super().__init__("This pairing already exists.")
        self.giver = giver
        self.receiver = receiver


class UnknownPairingError(SecretSantaError):
    def __init__(self, giver: str, receiver: str) -> None:
        super().__init__(f"No previous match {giver} → {receiver} is recorded.")
        self.giver = giver
        self.receiver = receiver
