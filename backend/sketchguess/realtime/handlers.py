from __future__ import annotations

import logging

from flask import request
from flask_socketio import SocketIO, emit

from ..game.coordinator import SessionCoordinator
from ..game.errors import GameError
from .events import (
    ChatMessage,
    CreateRoom,
    DrawStroke,
    InboundEvent,
    JoinRoom,
    OutboundEvent,
    SetIdentity,
)

logger = logging.getLogger(__name__)


def _fail(exc: GameError) -> dict:
    # Errors go back to the caller only.
    emit(OutboundEvent.ERROR.value, exc.to_payload())
    return {"ok": False, "error": exc.code}


def register_socketio_handlers(socketio: SocketIO, coordinator: SessionCoordinator) -> None:
    max_name = coordinator.setting("MAX_NAME_LENGTH")
    max_chat = coordinator.setting("MAX_CHAT_LENGTH")

    @socketio.on("connect")
    def on_connect(auth=None):
        coordinator.connect(request.sid)

    @socketio.on("disconnect")
    def on_disconnect(reason=None):
        logger.debug("%s disconnected (%s)", request.sid, reason)
        coordinator.disconnect(request.sid)

    @socketio.on(InboundEvent.SET_IDENTITY.value)
    def set_identity(data):
        try:
            payload = SetIdentity.from_payload(data, max_name_length=max_name)
            session = coordinator.set_identity(request.sid, payload.name)
        except GameError as exc:
            return _fail(exc)
        return {"ok": True, "id": session.sid, "name": session.name}

    @socketio.on(InboundEvent.CREATE_ROOM.value)
    def create_room(data):
        try:
            payload = CreateRoom.from_payload(data)
            room = coordinator.create_room(request.sid, payload)
        except GameError as exc:
            return _fail(exc)
        return {"ok": True, "roomCode": room.code}

    @socketio.on(InboundEvent.JOIN_ROOM.value)
    def join_room(data):
        try:
            payload = JoinRoom.from_payload(data)
            room = coordinator.join_room(request.sid, payload.room_code)
        except GameError as exc:
            return _fail(exc)
        return {"ok": True, "roomCode": room.code}

    @socketio.on(InboundEvent.LEAVE_ROOM.value)
    def leave_room(data=None):
        try:
            coordinator.leave_room(request.sid)
        except GameError as exc:
            return _fail(exc)
        return {"ok": True}

    @socketio.on(InboundEvent.START_GAME.value)
    def start_game(data=None):
        try:
            room = coordinator.start_game(request.sid)
        except GameError as exc:
            return _fail(exc)
        return {"ok": True, "roomCode": room.code, "round": room.round}

    @socketio.on(InboundEvent.CHAT_MESSAGE.value)
    def chat_message(data):
        try:
            payload = ChatMessage.from_payload(data, max_length=max_chat)
            result = coordinator.chat(request.sid, payload.text)
        except GameError as exc:
            return _fail(exc)
        return {"ok": True, "correct": result.correct, "points": result.points}

    @socketio.on(InboundEvent.DRAW_STROKE.value)
    def draw_stroke(data):
        try:
            payload = DrawStroke.from_payload(data)
            relayed = coordinator.relay_stroke(request.sid, payload.data)
        except GameError as exc:
            return _fail(exc)
        return {"ok": relayed}

    @socketio.on(InboundEvent.CLEAR_CANVAS.value)
    def clear_canvas(data=None):
        try:
            relayed = coordinator.clear_canvas(request.sid)
        except GameError as exc:
            return _fail(exc)
        return {"ok": relayed}

    @socketio.on(InboundEvent.LIST_ROOMS.value)
    def list_rooms(data=None):
        coordinator.send_rooms_list(request.sid)
        return {"ok": True}

    @socketio.on_error_default
    def on_error(exc):
        logger.exception("unhandled error in socket handler for %s", request.sid)
        emit(OutboundEvent.ERROR.value, {"error": "internal_error", "message": "internal error"})
