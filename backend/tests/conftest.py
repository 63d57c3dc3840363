import itertools
import os
import random
import sys
from collections import defaultdict
from enum import Enum

import pytest

# Ensure the backend root (containing the `sketchguess` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from sketchguess.config import Config
from sketchguess.game.coordinator import SessionCoordinator
from sketchguess.game.words import WordSource
from sketchguess.realtime.events import CreateRoom
from sketchguess.server import create_app


class ManualHandle:
    def __init__(self, due, interval, callback, seq):
        self.due = due
        self.interval = interval
        self.callback = callback
        self.seq = seq
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class ManualTimers:
    """Timer backend driven by advance(); one time unit is one second."""

    def __init__(self):
        self.now = 0
        self._handles = []
        self._seq = itertools.count()

    def every(self, interval, callback):
        return self._add(interval, interval, callback)

    def later(self, delay, callback):
        return self._add(delay, None, callback)

    def _add(self, delay, interval, callback):
        handle = ManualHandle(self.now + delay, interval, callback, next(self._seq))
        self._handles.append(handle)
        return handle

    def pending(self):
        return [h for h in self._handles if not h.cancelled]

    def advance(self, seconds=1):
        target = self.now + seconds
        while True:
            due = [h for h in self._handles if not h.cancelled and h.due <= target]
            if not due:
                break
            handle = min(due, key=lambda h: (h.due, h.seq))
            self.now = handle.due
            if handle.interval is None:
                handle.cancelled = True
            else:
                handle.due += handle.interval
            handle.callback()
        self.now = target
        self._handles = [h for h in self._handles if not h.cancelled]


class RecordingBroadcaster:
    def __init__(self):
        self.sent = []
        self.groups = defaultdict(set)

    def emit(self, event, payload, to=None, skip_sid=None):
        name = event.value if isinstance(event, Enum) else event
        if to in self.groups:
            recipients = set(self.groups[to])
        else:
            recipients = {to}
        recipients.discard(skip_sid)
        self.sent.append({'name': name, 'payload': payload, 'to': to, 'recipients': recipients})

    def enter(self, sid, group):
        self.groups[group].add(sid)

    def leave(self, sid, group):
        self.groups[group].discard(sid)

    def events(self, name):
        return [m['payload'] for m in self.sent if m['name'] == name]

    def received(self, sid, name):
        return [m['payload'] for m in self.sent if m['name'] == name and sid in m['recipients']]

    def clear(self):
        self.sent = []


TEST_POOLS = {
    'easy': ['APPLE'],
    'medium': ['GIRAFFE', 'CASTLE'],
}


@pytest.fixture()
def timers():
    return ManualTimers()


@pytest.fixture()
def broadcaster():
    return RecordingBroadcaster()


@pytest.fixture()
def coordinator(timers, broadcaster):
    words = WordSource(TEST_POOLS, rng=random.Random(7))
    return SessionCoordinator(broadcaster, timers, config={}, words=words, rng=random.Random(42))


def seat(coordinator, *sids, **settings):
    """Connect and name every sid, let the first create a room and the rest join."""
    for sid in sids:
        coordinator.connect(sid)
        coordinator.set_identity(sid, sid.title())
    room = coordinator.create_room(sids[0], CreateRoom(**settings))
    for sid in sids[1:]:
        coordinator.join_room(sid, room.code)
    return room


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = 'test-secret'
    SOCKETIO_ASYNC_MODE = 'threading'
    TRUST_PROXY_HEADERS = False
    LOG_LEVEL = 'WARNING'


@pytest.fixture()
def app_timers():
    return ManualTimers()


@pytest.fixture()
def app_and_socketio(app_timers):
    return create_app(TestConfig, timers=app_timers)


@pytest.fixture()
def flask_app(app_and_socketio):
    return app_and_socketio[0]


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_factory(app_and_socketio):
    app, socketio = app_and_socketio
    clients = []

    def _make():
        test_client = socketio.test_client(app, flask_test_client=app.test_client())
        clients.append(test_client)
        return test_client

    yield _make
    for test_client in clients:
        try:
            if test_client.is_connected():
                test_client.disconnect()
        except Exception:
            pass
