from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from ..game.errors import MalformedPayload


class InboundEvent(str, Enum):
    SET_IDENTITY = "set-identity"
    CREATE_ROOM = "create-room"
    JOIN_ROOM = "join-room"
    LEAVE_ROOM = "leave-room"
    START_GAME = "start-game"
    CHAT_MESSAGE = "chat-message"
    DRAW_STROKE = "draw-stroke"
    CLEAR_CANVAS = "clear-canvas"
    LIST_ROOMS = "list-rooms"


class OutboundEvent(str, Enum):
    ROOM_JOINED = "room-joined"
    ROOM_LEFT = "room-left"
    PLAYER_ROSTER_UPDATE = "player-roster-update"
    ROUND_STARTED = "round-started"
    TIMER_UPDATE = "timer-update"
    HINT_REVEALED = "hint-revealed"
    CHAT_MESSAGE = "chat-message"
    ROUND_ENDED = "round-ended"
    GAME_ENDED = "game-ended"
    ROOMS_LIST = "rooms-list"
    DRAW_STROKE = "draw-stroke"
    CLEAR_CANVAS = "clear-canvas"
    ERROR = "error"


def _payload(data: Any) -> dict:
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise MalformedPayload(message="Payload must be an object")
    return data


def _str_field(data: dict, key: str, required: bool = False) -> str:
    raw = data.get(key)
    if raw is None:
        if required:
            raise MalformedPayload(message=f"Missing field: {key}")
        return ""
    if not isinstance(raw, (str, int)) or isinstance(raw, bool):
        raise MalformedPayload(message=f"Field {key} must be a string")
    value = str(raw).strip()
    if required and not value:
        raise MalformedPayload(message=f"Missing field: {key}")
    return value


def _int_field(data: dict, key: str) -> int | None:
    raw = data.get(key)
    if raw is None or raw == "":
        return None
    if isinstance(raw, bool):
        raise MalformedPayload("invalid_settings", f"Field {key} must be a number")
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise MalformedPayload("invalid_settings", f"Field {key} must be a number") from None


def _bool_field(data: dict, key: str, default: bool) -> bool:
    raw = data.get(key)
    if raw is None:
        return default
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, str) and raw.lower() in ("true", "false", "1", "0"):
        return raw.lower() in ("true", "1")
    raise MalformedPayload("invalid_settings", f"Field {key} must be a boolean")


def validate_name(name: str, max_length: int = 16) -> bool:
    n = (name or "").strip()
    if not n or len(n) > max_length:
        return False
    # Avoid obvious HTML/script injection.
    if "<" in n or ">" in n:
        return False
    return all(ord(ch) >= 32 for ch in n)


@dataclass
class SetIdentity:
    name: str

    @classmethod
    def from_payload(cls, data: Any, max_name_length: int = 16) -> SetIdentity:
        name = _str_field(_payload(data), "name", required=True)
        if not validate_name(name, max_name_length):
            raise MalformedPayload("invalid_name", "Name must be 1-%d plain characters" % max_name_length)
        return cls(name=name)


@dataclass
class CreateRoom:
    name: str = ""
    max_players: int | None = None
    max_rounds: int | None = None
    draw_time: int | None = None
    is_public: bool = True
    difficulty: str = ""

    @classmethod
    def from_payload(cls, data: Any) -> CreateRoom:
        payload = _payload(data)
        return cls(
            name=_str_field(payload, "name"),
            max_players=_int_field(payload, "maxPlayers"),
            max_rounds=_int_field(payload, "maxRounds"),
            draw_time=_int_field(payload, "drawTime"),
            is_public=_bool_field(payload, "isPublic", True),
            difficulty=_str_field(payload, "difficulty").lower(),
        )


@dataclass
class JoinRoom:
    room_code: str

    @classmethod
    def from_payload(cls, data: Any) -> JoinRoom:
        return cls(room_code=_str_field(_payload(data), "roomCode", required=True).upper())


@dataclass
class ChatMessage:
    text: str

    @classmethod
    def from_payload(cls, data: Any, max_length: int = 200) -> ChatMessage:
        payload = _payload(data)
        raw = payload.get("text")
        if not isinstance(raw, str) or not raw.strip():
            raise MalformedPayload("invalid_message", "Message text is required")
        return cls(text=raw.strip()[:max_length])


@dataclass
class DrawStroke:
    data: dict

    @classmethod
    def from_payload(cls, data: Any) -> DrawStroke:
        payload = _payload(data)
        if not payload:
            raise MalformedPayload(message="Stroke data is required")
        return cls(data=payload)
