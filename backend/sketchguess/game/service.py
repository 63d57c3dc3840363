from __future__ import annotations

import random
from dataclasses import dataclass

from .errors import PreconditionViolation
from .guesses import pick_winner
from .models import Player, Room


@dataclass
class Departure:
    player: Player
    new_host: Player | None = None
    was_drawer: bool = False

    @property
    def host_changed(self) -> bool:
        return self.new_host is not None


def add_player(room: Room, player: Player) -> None:
    if room.status != "waiting":
        raise PreconditionViolation("game_in_progress", "The game has already started")
    if room.is_full:
        raise PreconditionViolation("room_full", "Room is full")
    if room.get_player(player.id) is not None:
        raise PreconditionViolation("already_in_room", "Already in this room")

    player.score = 0
    player.is_host = not room.players
    player.is_drawing = False
    player.has_guessed = False
    room.players.append(player)


def remove_player(room: Room, player_id: str) -> Departure | None:
    idx = room.index_of(player_id)
    if idx < 0:
        return None

    player = room.players.pop(idx)
    departure = Departure(player=player)

    if room.status == "playing" and idx == room.drawer_index:
        departure.was_drawer = room.round_active
        if room.next_drawer_index is None:
            # The player who followed the drawer has shifted into its slot.
            room.next_drawer_index = idx
    elif idx < room.drawer_index:
        room.drawer_index -= 1

    if room.next_drawer_index is not None and idx < room.next_drawer_index:
        room.next_drawer_index -= 1

    if room.drawer_index >= len(room.players):
        room.drawer_index = 0

    if player.is_host and room.players:
        room.players[0].is_host = True
        departure.new_host = room.players[0]

    player.is_host = False
    player.is_drawing = False
    return departure


def start_game(room: Room, requester_id: str, min_players: int = 2) -> None:
    requester = room.get_player(requester_id)
    if requester is None:
        raise PreconditionViolation("not_in_room", "You are not in this room")
    if not requester.is_host:
        raise PreconditionViolation("only_host", "Only the host can start the game")
    if room.status != "waiting":
        raise PreconditionViolation("game_in_progress", "The game has already started")
    if len(room.players) < min_players:
        raise PreconditionViolation(
            "not_enough_players", f"At least {min_players} players are needed"
        )

    room.status = "playing"
    room.round = 1
    room.drawer_index = 0
    room.next_drawer_index = None
    room.used_words = set()
    for p in room.players:
        p.score = 0


def begin_round(room: Room, word: str) -> Player:
    room.word = word
    room.used_words.add(word)
    room.time_left = room.draw_time
    room.revealed = set()
    room.turn += 1
    room.round_active = True

    for i, p in enumerate(room.players):
        p.is_drawing = i == room.drawer_index
        p.has_guessed = False

    return room.players[room.drawer_index]


def finish_round(room: Room) -> bool:
    """Close the active round. Returns False if it was already closed."""
    if room.status != "playing" or not room.round_active:
        return False
    room.round_active = False
    room.cancel_round_timers()
    return True


def advance_turn(room: Room) -> bool:
    """Rotate the drawer. Returns False once the configured rounds are used up."""
    if room.next_drawer_index is not None:
        next_index = room.next_drawer_index
        room.next_drawer_index = None
    else:
        next_index = room.drawer_index + 1

    if next_index >= len(room.players):
        room.drawer_index = 0
        room.round += 1
    else:
        room.drawer_index = next_index

    return room.round <= room.max_rounds


def finish_game(room: Room) -> Player | None:
    room.status = "finished"
    room.round_active = False
    room.word = ""
    room.time_left = 0
    room.revealed = set()
    room.next_drawer_index = None
    room.cancel_round_timers()
    for p in room.players:
        p.is_drawing = False
        p.has_guessed = False
    return pick_winner(room.players)


def reset_to_waiting(room: Room) -> None:
    room.status = "waiting"
    room.round = 0
    room.drawer_index = 0
    room.next_drawer_index = None
    room.word = ""
    room.time_left = 0
    room.revealed = set()
    room.round_active = False
    for p in room.players:
        p.score = 0
        p.is_drawing = False
        p.has_guessed = False


def tick(room: Room) -> int:
    room.time_left = max(0, room.time_left - 1)
    return room.time_left


def reveal_hint(room: Room, rng: random.Random | None = None) -> int | None:
    """Reveal one random hidden letter, always keeping at least one hidden."""
    hidden = [i for i in range(len(room.word)) if i not in room.revealed]
    if len(hidden) <= 1:
        return None
    idx = (rng or random).choice(hidden)
    room.revealed.add(idx)
    return idx


def room_public_state(room: Room, viewer_id: str | None = None) -> dict:
    drawer = room.drawer
    payload = {
        "code": room.code,
        "name": room.name,
        "isPublic": room.is_public,
        "status": room.status,
        "round": room.round,
        "maxRounds": room.max_rounds,
        "maxPlayers": room.max_players,
        "drawTime": room.draw_time,
        "difficulty": room.word_pool,
        "timeLeft": room.time_left,
        "drawerId": drawer.id if drawer else None,
        "hostId": room.host.id if room.host else None,
        "players": [p.to_public() for p in room.players],
        "wordHint": room.masked_word() if room.word else None,
    }

    if room.word and (not room.round_active or (drawer and viewer_id == drawer.id)):
        payload["word"] = room.word

    return payload


def room_listing(room: Room) -> dict:
    return {
        "code": room.code,
        "name": room.name,
        "players": len(room.players),
        "maxPlayers": room.max_players,
        "maxRounds": room.max_rounds,
        "drawTime": room.draw_time,
        "difficulty": room.word_pool,
        "host": room.host.name if room.host else None,
    }
