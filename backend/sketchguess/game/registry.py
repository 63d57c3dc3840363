from __future__ import annotations

import logging
import secrets
from threading import RLock
from typing import Callable

from .models import Player, Room

logger = logging.getLogger(__name__)

# No 0/O or 1/I, codes are read aloud and typed by hand.
CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"


def random_code(length: int = 6) -> str:
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


def normalize_code(code: str) -> str:
    return (code or "").strip().upper()


class RoomRegistry:
    """Owns every live room, keyed by its join code."""

    def __init__(self, code_length: int = 6, code_factory: Callable[[], str] | None = None) -> None:
        self._lock = RLock()
        self._rooms: dict[str, Room] = {}
        self._code_factory = code_factory or (lambda: random_code(code_length))

    def create_room(
        self,
        host: Player,
        name: str,
        *,
        is_public: bool = True,
        max_players: int = 8,
        max_rounds: int = 3,
        draw_time: int = 60,
        word_pool: str = "easy",
    ) -> Room:
        with self._lock:
            code = self._code_factory()
            while code in self._rooms:
                code = self._code_factory()

            host.is_host = True
            host.is_drawing = False
            host.has_guessed = False
            host.score = 0
            room = Room(
                code=code,
                name=name,
                is_public=is_public,
                max_players=max_players,
                max_rounds=max_rounds,
                draw_time=draw_time,
                word_pool=word_pool,
                players=[host],
            )
            self._rooms[code] = room

        logger.info("room %s created by %s (public=%s)", code, host.id, is_public)
        return room

    def find_room(self, code: str) -> Room | None:
        with self._lock:
            return self._rooms.get(normalize_code(code))

    def is_live(self, room: Room) -> bool:
        with self._lock:
            return self._rooms.get(room.code) is room

    def remove_room(self, code: str) -> bool:
        with self._lock:
            room = self._rooms.pop(normalize_code(code), None)
        if room is None:
            return False
        room.cancel_timers()
        logger.info("room %s destroyed", room.code)
        return True

    def list_rooms(self) -> list[Room]:
        with self._lock:
            return list(self._rooms.values())

    def list_public_waiting_rooms(self) -> list[Room]:
        with self._lock:
            return [r for r in self._rooms.values() if r.is_public and r.status == "waiting"]

    def __len__(self) -> int:
        with self._lock:
            return len(self._rooms)
