from __future__ import annotations

from dataclasses import dataclass, field
from threading import RLock
from typing import Any, Literal


RoomStatus = Literal["waiting", "playing", "finished"]


@dataclass
class Player:
    id: str
    name: str
    score: int = 0
    is_host: bool = False
    is_drawing: bool = False
    has_guessed: bool = False

    def to_public(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "score": self.score,
            "isHost": self.is_host,
            "isDrawing": self.is_drawing,
            "hasGuessed": self.has_guessed,
        }


@dataclass
class Room:
    code: str
    name: str
    is_public: bool = True
    max_players: int = 8
    max_rounds: int = 3
    draw_time: int = 60
    word_pool: str = "easy"
    status: RoomStatus = "waiting"
    round: int = 0
    drawer_index: int = 0
    word: str = ""
    time_left: int = 0
    revealed: set[int] = field(default_factory=set)
    players: list[Player] = field(default_factory=list)
    used_words: set[str] = field(default_factory=set)
    # Incremented on every round start; timers carry the value they were armed with.
    turn: int = 0
    round_active: bool = False
    # Set when the drawer leaves mid-round: slot the next turn starts from.
    next_drawer_index: int | None = None
    countdown_timer: Any = field(default=None, repr=False)
    hint_timer: Any = field(default=None, repr=False)
    phase_timer: Any = field(default=None, repr=False)
    lock: RLock = field(default_factory=RLock, repr=False, compare=False)

    def get_player(self, player_id: str) -> Player | None:
        for p in self.players:
            if p.id == player_id:
                return p
        return None

    def index_of(self, player_id: str) -> int:
        for i, p in enumerate(self.players):
            if p.id == player_id:
                return i
        return -1

    @property
    def host(self) -> Player | None:
        return next((p for p in self.players if p.is_host), None)

    @property
    def drawer(self) -> Player | None:
        if self.status != "playing":
            return None
        return next((p for p in self.players if p.is_drawing), None)

    @property
    def is_full(self) -> bool:
        return len(self.players) >= self.max_players

    def masked_word(self) -> str:
        return "".join(
            ch if i in self.revealed else "_" for i, ch in enumerate(self.word)
        )

    def cancel_round_timers(self) -> None:
        for name in ("countdown_timer", "hint_timer"):
            handle = getattr(self, name)
            if handle is not None:
                handle.cancel()
                setattr(self, name, None)

    def cancel_timers(self) -> None:
        self.cancel_round_timers()
        if self.phase_timer is not None:
            self.phase_timer.cancel()
            self.phase_timer = None

    def has_timers(self) -> bool:
        return any(
            t is not None for t in (self.countdown_timer, self.hint_timer, self.phase_timer)
        )
