from __future__ import annotations

from enum import Enum

from flask_socketio import SocketIO

# Connections that are not in a room sit here and receive the rooms directory.
LOBBY = "lobby"


class SocketIOBroadcaster:
    def __init__(self, socketio: SocketIO, namespace: str = "/") -> None:
        self.socketio = socketio
        self.namespace = namespace

    def emit(self, event: Enum | str, payload: dict, to: str | None = None, skip_sid: str | None = None) -> None:
        name = event.value if isinstance(event, Enum) else event
        self.socketio.emit(name, payload, to=to, skip_sid=skip_sid, namespace=self.namespace)

    def enter(self, sid: str, group: str) -> None:
        self.socketio.server.enter_room(sid, group, namespace=self.namespace)

    def leave(self, sid: str, group: str) -> None:
        self.socketio.server.leave_room(sid, group, namespace=self.namespace)
