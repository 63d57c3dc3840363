from __future__ import annotations

from flask import Blueprint, current_app, jsonify

from ..game import service

bp = Blueprint("rooms", __name__)


@bp.get("/rooms")
def list_rooms():
    coordinator = current_app.extensions["sketchguess"]
    return jsonify({"rooms": coordinator.list_rooms()})


@bp.get("/rooms/<code>")
def get_room(code: str):
    coordinator = current_app.extensions["sketchguess"]
    room = coordinator.registry.find_room(code)
    if not room:
        return jsonify({"error": "room_not_found"}), 404
    with room.lock:
        return jsonify(service.room_public_state(room))
