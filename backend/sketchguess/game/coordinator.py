from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from threading import RLock
from typing import Any, Mapping

from ..config import Config
from ..realtime.broadcast import LOBBY
from ..realtime.events import CreateRoom, OutboundEvent
from . import service
from .errors import MalformedPayload, PreconditionViolation
from .guesses import GuessAdjudicator, GuessResult, everyone_guessed
from .models import Player, Room
from .registry import RoomRegistry
from .scheduler import RoundScheduler
from .words import WordSource

logger = logging.getLogger(__name__)


@dataclass
class Session:
    sid: str
    name: str = ""
    room_code: str | None = None


class SessionCoordinator:
    """Routes per-connection events to rooms and fans the results back out."""

    def __init__(
        self,
        broadcaster,
        timers,
        config: Mapping[str, Any] | None = None,
        registry: RoomRegistry | None = None,
        words: WordSource | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.config = config or {}
        self.broadcaster = broadcaster
        self.registry = registry or RoomRegistry(code_length=self.setting("ROOM_CODE_LENGTH"))
        self.words = words or WordSource(default_pool=self.setting("DEFAULT_WORD_POOL"))
        self.adjudicator = GuessAdjudicator(
            multiplier=self.setting("SCORE_MULTIPLIER"),
            floor=self.setting("MIN_GUESS_POINTS"),
        )
        self.scheduler = RoundScheduler(
            timers,
            self.registry,
            broadcaster,
            on_timeout=self.end_round,
            hint_interval=self.setting("HINT_INTERVAL_SEC"),
            rng=rng,
        )
        self._lock = RLock()
        self._sessions: dict[str, Session] = {}

    def setting(self, key: str) -> Any:
        return self.config.get(key, getattr(Config, key))

    # -- connections -------------------------------------------------------

    def connect(self, sid: str) -> Session:
        with self._lock:
            session = self._sessions.setdefault(sid, Session(sid=sid))
        self.broadcaster.enter(sid, LOBBY)
        self.send_rooms_list(sid)
        return session

    def disconnect(self, sid: str) -> None:
        with self._lock:
            session = self._sessions.pop(sid, None)
        if session is None or not session.room_code:
            return
        room = self.registry.find_room(session.room_code)
        if room is not None:
            self._depart(room, sid)

    def session(self, sid: str) -> Session | None:
        with self._lock:
            return self._sessions.get(sid)

    def _require_session(self, sid: str) -> Session:
        with self._lock:
            session = self._sessions.get(sid)
            if session is None:
                session = self._sessions[sid] = Session(sid=sid)
            return session

    def _require_identity(self, sid: str) -> Session:
        session = self._require_session(sid)
        if not session.name:
            raise PreconditionViolation("identity_required", "Set a name first")
        return session

    def _current_room(self, sid: str) -> tuple[Session, Room]:
        session = self._require_session(sid)
        room = self.registry.find_room(session.room_code) if session.room_code else None
        if room is None or room.get_player(sid) is None:
            session.room_code = None
            raise PreconditionViolation("not_in_room", "You are not in a room")
        return session, room

    # -- inbound operations ------------------------------------------------

    def set_identity(self, sid: str, name: str) -> Session:
        session = self._require_session(sid)
        session.name = name

        room = self.registry.find_room(session.room_code) if session.room_code else None
        if room is not None:
            with room.lock:
                player = room.get_player(sid)
                if player is not None:
                    player.name = name
                    self._broadcast_roster(room)
        return session

    def create_room(self, sid: str, request: CreateRoom) -> Room:
        session = self._require_identity(sid)
        if session.room_code and self.registry.find_room(session.room_code):
            raise PreconditionViolation("already_in_room", "Leave your current room first")

        settings = self._room_settings(session, request)
        room = self.registry.create_room(Player(id=sid, name=session.name), **settings)
        session.room_code = room.code

        with room.lock:
            self.broadcaster.leave(sid, LOBBY)
            self.broadcaster.enter(sid, room.code)
            self.broadcaster.emit(
                OutboundEvent.ROOM_JOINED, service.room_public_state(room, viewer_id=sid), to=sid
            )
        if room.is_public:
            self.broadcast_rooms_list()
        return room

    def _room_settings(self, session: Session, request: CreateRoom) -> dict:
        def _bounded(value: int | None, default: int, low: int, high: int, label: str) -> int:
            if value is None:
                return default
            if value < low or value > high:
                raise MalformedPayload("invalid_settings", f"{label} must be between {low} and {high}")
            return value

        name = request.name or f"{session.name}'s room"
        if len(name) > 32 or "<" in name or ">" in name:
            raise MalformedPayload("invalid_settings", "Room name must be at most 32 plain characters")

        difficulty = request.difficulty or self.words.default_pool
        if not self.words.has_pool(difficulty):
            raise MalformedPayload("invalid_settings", f"Unknown difficulty: {difficulty}")

        return {
            "name": name,
            "is_public": request.is_public,
            "max_players": _bounded(
                request.max_players,
                self.setting("DEFAULT_MAX_PLAYERS"),
                self.setting("MIN_PLAYERS"),
                self.setting("MAX_PLAYERS_LIMIT"),
                "maxPlayers",
            ),
            "max_rounds": _bounded(
                request.max_rounds,
                self.setting("DEFAULT_MAX_ROUNDS"),
                1,
                self.setting("MAX_ROUNDS_LIMIT"),
                "maxRounds",
            ),
            "draw_time": _bounded(
                request.draw_time,
                self.setting("DEFAULT_DRAW_TIME_SEC"),
                self.setting("MIN_DRAW_TIME_SEC"),
                self.setting("MAX_DRAW_TIME_SEC"),
                "drawTime",
            ),
            "word_pool": difficulty,
        }

    def join_room(self, sid: str, code: str) -> Room:
        session = self._require_identity(sid)
        if session.room_code and self.registry.find_room(session.room_code):
            raise PreconditionViolation("already_in_room", "Leave your current room first")

        room = self.registry.find_room(code)
        if room is None:
            raise PreconditionViolation("room_not_found", "Room not found")

        with room.lock:
            if not self.registry.is_live(room):
                raise PreconditionViolation("room_not_found", "Room not found")
            player = Player(id=sid, name=session.name)
            service.add_player(room, player)
            session.room_code = room.code

            self.broadcaster.leave(sid, LOBBY)
            self.broadcaster.enter(sid, room.code)
            self.broadcaster.emit(
                OutboundEvent.ROOM_JOINED, service.room_public_state(room, viewer_id=sid), to=sid
            )
            self._broadcast_roster(room, joined=player.id)

        logger.info("room %s: %s joined (%d/%d)", room.code, sid, len(room.players), room.max_players)
        if room.is_public:
            self.broadcast_rooms_list()
        return room

    def leave_room(self, sid: str) -> None:
        session, room = self._current_room(sid)
        self._depart(room, sid)
        self.broadcaster.enter(sid, LOBBY)
        self.broadcaster.emit(OutboundEvent.ROOM_LEFT, {"roomCode": room.code}, to=sid)
        self.send_rooms_list(sid)

    def start_game(self, sid: str) -> Room:
        _, room = self._current_room(sid)
        with room.lock:
            if not self.registry.is_live(room):
                raise PreconditionViolation("room_not_found", "Room not found")
            service.start_game(room, sid, min_players=self.setting("MIN_PLAYERS"))
            logger.info("room %s: game started with %d players", room.code, len(room.players))
            self._start_round(room)
        if room.is_public:
            self.broadcast_rooms_list()
        return room

    def chat(self, sid: str, text: str) -> GuessResult:
        _, room = self._current_room(sid)
        with room.lock:
            if not self.registry.is_live(room):
                raise PreconditionViolation("not_in_room", "You are not in a room")
            result = self.adjudicator.adjudicate(room, sid, text)
            player = result.player
            if not result.correct:
                self.broadcaster.emit(
                    OutboundEvent.CHAT_MESSAGE,
                    {
                        "roomCode": room.code,
                        "type": "chat",
                        "playerId": sid,
                        "playerName": player.name if player else "",
                        "text": text,
                    },
                    to=room.code,
                )
                return result

            self.broadcaster.emit(
                OutboundEvent.CHAT_MESSAGE,
                {
                    "roomCode": room.code,
                    "type": "correct",
                    "playerId": sid,
                    "playerName": player.name,
                    "points": result.points,
                    "text": f"{player.name} guessed the word!",
                },
                to=room.code,
            )
            self._broadcast_roster(room)
            if result.round_complete:
                self.end_round(room)
            return result

    def relay_stroke(self, sid: str, data: dict) -> bool:
        return self._relay(sid, OutboundEvent.DRAW_STROKE, data)

    def clear_canvas(self, sid: str) -> bool:
        return self._relay(sid, OutboundEvent.CLEAR_CANVAS, {})

    def _relay(self, sid: str, event: OutboundEvent, data: dict) -> bool:
        _, room = self._current_room(sid)
        with room.lock:
            drawer = room.drawer
            if room.round_active and (drawer is None or drawer.id != sid):
                return False
            self.broadcaster.emit(event, {**data, "roomCode": room.code}, to=room.code, skip_sid=sid)
        return True

    def list_rooms(self) -> list[dict]:
        rooms = self.registry.list_public_waiting_rooms()
        return [service.room_listing(r) for r in rooms]

    def send_rooms_list(self, sid: str) -> None:
        self.broadcaster.emit(OutboundEvent.ROOMS_LIST, {"rooms": self.list_rooms()}, to=sid)

    def broadcast_rooms_list(self) -> None:
        self.broadcaster.emit(OutboundEvent.ROOMS_LIST, {"rooms": self.list_rooms()}, to=LOBBY)

    # -- round / game state machine ----------------------------------------

    def _start_round(self, room: Room) -> None:
        word = self.words.pick(room.word_pool, exclude=room.used_words)
        drawer = service.begin_round(room, word)
        self.scheduler.arm(room)
        logger.info(
            "room %s: round %d/%d, %s drawing", room.code, room.round, room.max_rounds, drawer.id
        )
        logger.debug("room %s: word is %s", room.code, word)

        self.broadcaster.emit(OutboundEvent.CLEAR_CANVAS, {"roomCode": room.code}, to=room.code)
        base = {
            "roomCode": room.code,
            "round": room.round,
            "maxRounds": room.max_rounds,
            "timeLeft": room.time_left,
            "drawerId": drawer.id,
            "drawerName": drawer.name,
            "wordLength": len(word),
            "players": [p.to_public() for p in room.players],
        }
        for p in room.players:
            if p is drawer:
                self.broadcaster.emit(
                    OutboundEvent.ROUND_STARTED, {**base, "word": word, "isDrawer": True}, to=p.id
                )
            else:
                self.broadcaster.emit(
                    OutboundEvent.ROUND_STARTED,
                    {**base, "word": room.masked_word(), "isDrawer": False},
                    to=p.id,
                )

    def end_round(self, room: Room) -> bool:
        """End the active round once; later calls for the same round do nothing."""
        with room.lock:
            if not self.registry.is_live(room) or not service.finish_round(room):
                return False

            logger.info("room %s: round %d ended", room.code, room.round)
            self.broadcaster.emit(
                OutboundEvent.ROUND_ENDED,
                {
                    "roomCode": room.code,
                    "round": room.round,
                    "word": room.word,
                    "players": [p.to_public() for p in room.players],
                },
                to=room.code,
            )
            self.scheduler.call_later(room, self.setting("ROUND_END_DELAY_SEC"), self._advance)
            return True

    def _advance(self, room: Room) -> None:
        if room.status != "playing" or room.round_active:
            return
        if service.advance_turn(room):
            self._start_round(room)
        else:
            self._end_game(room)

    def _end_game(self, room: Room) -> None:
        winner = service.finish_game(room)
        logger.info("room %s: game finished, winner %s", room.code, winner.id if winner else None)
        self.broadcaster.emit(
            OutboundEvent.GAME_ENDED,
            {
                "roomCode": room.code,
                "winner": winner.to_public() if winner else None,
                "players": [p.to_public() for p in room.players],
            },
            to=room.code,
        )
        self.scheduler.call_later(room, self.setting("GAME_END_COOLDOWN_SEC"), self._reset_room)

    def _reset_room(self, room: Room) -> None:
        if room.status != "finished":
            return
        service.reset_to_waiting(room)
        self._broadcast_roster(room)
        if room.is_public:
            self.broadcast_rooms_list()

    # -- departures --------------------------------------------------------

    def _depart(self, room: Room, sid: str) -> None:
        with room.lock:
            departure = service.remove_player(room, sid)
            if departure is None:
                return

            session = self.session(sid)
            if session is not None and session.room_code == room.code:
                session.room_code = None
            self.broadcaster.leave(sid, room.code)

            if not room.players:
                self.registry.remove_room(room.code)
            else:
                if departure.host_changed:
                    logger.info("room %s: host passed to %s", room.code, departure.new_host.id)
                self._broadcast_roster(room, left=sid)
                self._recount(room, departure)

        if room.is_public:
            self.broadcast_rooms_list()

    def _recount(self, room: Room, departure: service.Departure) -> None:
        if room.status != "playing":
            return
        if len(room.players) < self.setting("MIN_PLAYERS"):
            self._end_game(room)
        elif room.round_active and (departure.was_drawer or everyone_guessed(room)):
            self.end_round(room)

    def _broadcast_roster(self, room: Room, joined: str | None = None, left: str | None = None) -> None:
        payload = {
            "roomCode": room.code,
            "status": room.status,
            "hostId": room.host.id if room.host else None,
            "players": [p.to_public() for p in room.players],
        }
        if joined:
            payload["joined"] = joined
        if left:
            payload["left"] = left
        self.broadcaster.emit(OutboundEvent.PLAYER_ROSTER_UPDATE, payload, to=room.code)
