from __future__ import annotations

import logging
import random
from typing import Callable

from ..realtime.events import OutboundEvent
from . import service
from .errors import StaleReference
from .models import Room
from .registry import RoomRegistry

logger = logging.getLogger(__name__)


class TimerHandle:
    def __init__(self) -> None:
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class SocketIOTimers:
    """Interval and one-shot timers running as Flask-SocketIO background tasks."""

    def __init__(self, socketio) -> None:
        self.socketio = socketio

    def every(self, interval: float, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle()

        def _runner() -> None:
            while True:
                self.socketio.sleep(interval)
                if handle.cancelled:
                    return
                try:
                    callback()
                except Exception:
                    logger.exception("interval timer callback failed")

        self.socketio.start_background_task(_runner)
        return handle

    def later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle()

        def _runner() -> None:
            self.socketio.sleep(delay)
            if handle.cancelled:
                return
            handle.cancelled = True
            try:
                callback()
            except Exception:
                logger.exception("delayed timer callback failed")

        self.socketio.start_background_task(_runner)
        return handle


class RoundScheduler:
    """Countdown and hint timers for the active round of each room.

    Every callback re-checks, under the room lock, that the room is still
    registered and that the round it was armed for is still running. A callback
    that loses that race is dropped.
    """

    def __init__(
        self,
        timers,
        registry: RoomRegistry,
        broadcaster,
        on_timeout: Callable[[Room], None],
        hint_interval: int = 15,
        rng: random.Random | None = None,
    ) -> None:
        self.timers = timers
        self.registry = registry
        self.broadcaster = broadcaster
        self.on_timeout = on_timeout
        self.hint_interval = hint_interval
        self.rng = rng or random.Random()

    def arm(self, room: Room) -> None:
        room.cancel_round_timers()
        turn = room.turn
        # Countdown first: on a shared deadline it must fire before the hint.
        room.countdown_timer = self.timers.every(1, lambda: self._guarded(room, turn, self._tick))
        room.hint_timer = self.timers.every(
            self.hint_interval, lambda: self._guarded(room, turn, self._hint)
        )

    def disarm(self, room: Room) -> None:
        room.cancel_round_timers()

    def call_later(self, room: Room, delay: int, callback: Callable[[Room], None]) -> None:
        """Run ``callback(room)`` after ``delay`` unless the room goes away first."""
        if room.phase_timer is not None:
            room.phase_timer.cancel()

        handle = None

        def _fire() -> None:
            with room.lock:
                if not self.registry.is_live(room) or room.phase_timer is not handle:
                    logger.debug("room %s: dropped stale phase timer", room.code)
                    return
                room.phase_timer = None
                callback(room)

        handle = self.timers.later(delay, _fire)
        room.phase_timer = handle

    def _guarded(self, room: Room, turn: int, step: Callable[[Room], None]) -> None:
        with room.lock:
            try:
                self._check_live(room, turn)
            except StaleReference as exc:
                logger.debug("room %s: %s", room.code, exc.message)
                return
            step(room)

    def _check_live(self, room: Room, turn: int) -> None:
        if not self.registry.is_live(room):
            raise StaleReference(message="timer fired for a destroyed room")
        if room.status != "playing" or not room.round_active or room.turn != turn:
            raise StaleReference(message=f"timer fired for ended turn {turn}")

    def _tick(self, room: Room) -> None:
        time_left = service.tick(room)
        self.broadcaster.emit(
            OutboundEvent.TIMER_UPDATE,
            {"roomCode": room.code, "timeLeft": time_left},
            to=room.code,
        )
        if time_left <= 0:
            self.disarm(room)
            self.on_timeout(room)

    def _hint(self, room: Room) -> None:
        idx = service.reveal_hint(room, self.rng)
        if idx is None:
            return
        payload = {
            "roomCode": room.code,
            "wordHint": room.masked_word(),
            "index": idx,
            "letter": room.word[idx],
        }
        for p in room.players:
            if not p.is_drawing:
                self.broadcaster.emit(OutboundEvent.HINT_REVEALED, payload, to=p.id)
