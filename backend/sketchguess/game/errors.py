from __future__ import annotations


class GameError(Exception):
    """Base error carrying a machine-readable code for the client."""

    code = "game_error"

    def __init__(self, code: str | None = None, message: str = "") -> None:
        if code:
            self.code = code
        self.message = message or self.code.replace("_", " ")
        super().__init__(self.message)

    def to_payload(self) -> dict:
        return {"error": self.code, "message": self.message}


class PreconditionViolation(GameError):
    """The caller asked for something the room does not allow right now.

    Reported only to the caller; no state is changed.
    """

    code = "precondition_failed"


class MalformedPayload(PreconditionViolation):
    code = "invalid_payload"


class StaleReference(GameError):
    """A timer fired against a destroyed room or an already-ended round."""

    code = "stale_reference"
