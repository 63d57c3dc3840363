from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from .models import Player, Room


Verdict = Literal["chat", "correct"]


@dataclass
class GuessResult:
    verdict: Verdict
    player: Player | None = None
    points: int = 0
    round_complete: bool = False

    @property
    def correct(self) -> bool:
        return self.verdict == "correct"


def normalize_guess(text: str) -> str:
    return (text or "").strip().upper()


def everyone_guessed(room: Room) -> bool:
    return all(p.has_guessed for p in room.players if not p.is_drawing)


def pick_winner(players: list[Player]) -> Player | None:
    """Highest score wins; on a tie the earliest player in join order wins."""
    winner = None
    for p in players:
        if winner is None or p.score > winner.score:
            winner = p
    return winner


class GuessAdjudicator:
    def __init__(self, multiplier: int = 2, floor: int = 10) -> None:
        self.multiplier = multiplier
        self.floor = floor

    def points_for(self, time_left: int) -> int:
        return max(self.floor, time_left * self.multiplier)

    def adjudicate(self, room: Room, player_id: str, text: str) -> GuessResult:
        """Judge ``text`` against the room's word and score it.

        Anything that is not a fresh correct guess from a non-drawer during an
        active round comes back as plain chat and leaves the room untouched.
        """
        player = room.get_player(player_id)
        if player is None or room.status != "playing" or not room.round_active:
            return GuessResult("chat", player)
        if player.is_drawing or player.has_guessed:
            return GuessResult("chat", player)
        if not room.word or normalize_guess(text) != room.word:
            return GuessResult("chat", player)

        points = self.points_for(room.time_left)
        player.score += points
        player.has_guessed = True
        return GuessResult("correct", player, points, everyone_guessed(room))
