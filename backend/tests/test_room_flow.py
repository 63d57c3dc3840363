import pytest

from conftest import seat
from sketchguess.game.errors import PreconditionViolation


def _drawing(room):
    return [p for p in room.players if p.is_drawing]


def _hosts(room):
    return [p for p in room.players if p.is_host]


def test_create_room_makes_creator_host(coordinator, broadcaster):
    room = seat(coordinator, 'alice', max_players=4, max_rounds=2, draw_time=60)
    assert room.status == 'waiting'
    assert room.round == 0
    assert [p.id for p in room.players] == ['alice']
    assert _hosts(room)[0].id == 'alice'
    joined = broadcaster.received('alice', 'room-joined')
    assert joined[-1]['code'] == room.code
    assert joined[-1]['maxPlayers'] == 4


def test_join_requires_identity(coordinator):
    coordinator.connect('anon')
    with pytest.raises(PreconditionViolation) as exc:
        coordinator.join_room('anon', 'ABCDEF')
    assert exc.value.code == 'identity_required'


def test_join_unknown_code_is_an_error_not_a_create(coordinator):
    coordinator.connect('bob')
    coordinator.set_identity('bob', 'Bob')
    with pytest.raises(PreconditionViolation) as exc:
        coordinator.join_room('bob', 'NOPE42')
    assert exc.value.code == 'room_not_found'
    assert len(coordinator.registry) == 0


def test_join_full_room_is_rejected(coordinator, broadcaster):
    room = seat(coordinator, 'alice', 'bob', max_players=2)
    coordinator.connect('cara')
    coordinator.set_identity('cara', 'Cara')
    broadcaster.clear()
    with pytest.raises(PreconditionViolation) as exc:
        coordinator.join_room('cara', room.code)
    assert exc.value.code == 'room_full'
    assert len(room.players) == 2
    assert broadcaster.sent == []


def test_join_room_in_progress_is_rejected(coordinator):
    room = seat(coordinator, 'alice', 'bob')
    coordinator.start_game('alice')
    coordinator.connect('cara')
    coordinator.set_identity('cara', 'Cara')
    with pytest.raises(PreconditionViolation) as exc:
        coordinator.join_room('cara', room.code)
    assert exc.value.code == 'game_in_progress'


def test_only_host_can_start(coordinator):
    room = seat(coordinator, 'alice', 'bob')
    with pytest.raises(PreconditionViolation) as exc:
        coordinator.start_game('bob')
    assert exc.value.code == 'only_host'
    assert room.status == 'waiting'


def test_start_needs_two_players(coordinator):
    room = seat(coordinator, 'alice')
    with pytest.raises(PreconditionViolation) as exc:
        coordinator.start_game('alice')
    assert exc.value.code == 'not_enough_players'
    assert room.status == 'waiting'


def test_start_game_begins_round_one(coordinator, broadcaster):
    room = seat(coordinator, 'alice', 'bob', 'cara')
    coordinator.start_game('alice')

    assert room.status == 'playing'
    assert room.round == 1
    assert room.drawer_index == 0
    assert [p.id for p in _drawing(room)] == ['alice']
    assert room.word == 'APPLE'
    assert room.time_left == 60

    drawer_view = broadcaster.received('alice', 'round-started')[-1]
    guesser_view = broadcaster.received('bob', 'round-started')[-1]
    assert drawer_view['isDrawer'] is True
    assert drawer_view['word'] == 'APPLE'
    assert guesser_view['isDrawer'] is False
    assert guesser_view['word'] == '_____'


def test_round_times_out_after_draw_time(coordinator, broadcaster, timers):
    room = seat(coordinator, 'alice', 'bob', max_players=4, max_rounds=2, draw_time=60)
    coordinator.start_game('alice')

    timers.advance(59)
    assert room.round_active
    assert room.time_left == 1
    assert broadcaster.events('round-ended') == []

    timers.advance(1)
    assert not room.round_active
    assert room.countdown_timer is None and room.hint_timer is None
    for sid in ('alice', 'bob'):
        assert broadcaster.received(sid, 'round-ended')[-1]['word'] == 'APPLE'

    ticks = [e['timeLeft'] for e in broadcaster.events('timer-update')]
    assert ticks == list(range(59, -1, -1))


def test_correct_guess_scores_and_waits_for_others(coordinator, broadcaster, timers):
    room = seat(coordinator, 'alice', 'bob', 'cara')
    coordinator.start_game('alice')
    timers.advance(15)
    assert room.time_left == 45

    result = coordinator.chat('bob', '  apple ')

    assert result.correct
    assert result.points == 90
    assert room.get_player('bob').score == 90
    assert room.get_player('bob').has_guessed
    assert room.round_active
    notice = broadcaster.events('chat-message')[-1]
    assert notice['type'] == 'correct'
    assert 'apple' not in notice['text'].lower()


def test_round_ends_early_when_everyone_guessed(coordinator, broadcaster, timers):
    room = seat(coordinator, 'alice', 'bob', 'cara')
    coordinator.start_game('alice')
    timers.advance(10)
    coordinator.chat('bob', 'APPLE')
    coordinator.chat('cara', 'Apple')

    assert not room.round_active
    assert room.time_left == 50
    assert len(broadcaster.events('round-ended')) == 1

    # Late timeout or duplicate trigger must not end the round twice.
    assert coordinator.end_round(room) is False
    timers.advance(2)
    assert len(broadcaster.events('round-ended')) == 1

    timers.advance(1)
    assert room.round_active
    assert [p.id for p in _drawing(room)] == ['bob']


def test_wrong_guess_and_drawer_chat_are_plain_chat(coordinator, broadcaster):
    room = seat(coordinator, 'alice', 'bob')
    coordinator.start_game('alice')

    assert not coordinator.chat('bob', 'banana').correct
    assert not coordinator.chat('alice', 'apple').correct
    assert room.get_player('alice').score == 0
    messages = broadcaster.events('chat-message')
    assert [m['type'] for m in messages] == ['chat', 'chat']
    assert messages[0]['text'] == 'banana'


def test_second_correct_guess_by_same_player_is_chat(coordinator):
    room = seat(coordinator, 'alice', 'bob', 'cara')
    coordinator.start_game('alice')
    coordinator.chat('bob', 'apple')
    assert not coordinator.chat('bob', 'apple').correct
    assert room.get_player('bob').score == 120


def test_drawer_rotates_round_robin_across_game(coordinator, broadcaster, timers):
    room = seat(coordinator, 'alice', 'bob', 'cara', max_rounds=2, draw_time=10)
    coordinator.start_game('alice')

    # six turns of 10s each, with a 3s pause after every turn
    timers.advance(6 * 10 + 6 * 3)

    turns = broadcaster.received('alice', 'round-started')
    drawers = [e['drawerId'] for e in turns]
    rounds = [e['round'] for e in turns]
    assert drawers == ['alice', 'bob', 'cara'] * 2
    assert rounds == [1, 1, 1, 2, 2, 2]
    assert room.status == 'finished'
    assert len(broadcaster.events('game-ended')) == 1


def test_game_finishes_and_cools_down_to_waiting(coordinator, broadcaster, timers):
    room = seat(coordinator, 'alice', 'bob', max_rounds=1, draw_time=10)
    coordinator.start_game('alice')
    coordinator.chat('bob', 'apple')  # ends round 1, turn 1 early
    timers.advance(3)
    assert [p.id for p in _drawing(room)] == ['bob']

    timers.advance(10 + 3)
    assert room.status == 'finished'
    assert room.word == ''
    assert _drawing(room) == []
    ended = broadcaster.events('game-ended')[-1]
    assert ended['winner']['id'] == 'bob'
    assert coordinator.list_rooms() == []

    timers.advance(9)
    assert room.status == 'finished'
    timers.advance(1)
    assert room.status == 'waiting'
    assert room.round == 0
    assert all(p.score == 0 for p in room.players)
    assert [r['code'] for r in coordinator.list_rooms()] == [room.code]
    assert not room.has_timers()

    # and the room can be played again
    coordinator.start_game('alice')
    assert room.status == 'playing'
    assert room.round == 1


def test_host_leaving_passes_host_to_next_in_join_order(coordinator, broadcaster):
    room = seat(coordinator, 'alice', 'bob', 'cara')
    coordinator.leave_room('alice')

    assert [p.id for p in room.players] == ['bob', 'cara']
    assert [p.id for p in _hosts(room)] == ['bob']
    roster = broadcaster.received('cara', 'player-roster-update')[-1]
    assert roster['hostId'] == 'bob'
    assert roster['left'] == 'alice'
    assert coordinator.session('alice').room_code is None


def test_leave_when_not_in_room(coordinator):
    coordinator.connect('alice')
    with pytest.raises(PreconditionViolation) as exc:
        coordinator.leave_room('alice')
    assert exc.value.code == 'not_in_room'


def test_drawer_leaving_ends_round_and_next_player_draws(coordinator, broadcaster, timers):
    room = seat(coordinator, 'alice', 'bob', 'cara')
    coordinator.start_game('alice')
    coordinator.leave_room('alice')

    assert not room.round_active
    assert broadcaster.events('round-ended')[-1]['word'] == 'APPLE'
    assert [p.id for p in _hosts(room)] == ['bob']

    timers.advance(3)
    assert [p.id for p in _drawing(room)] == ['bob']
    assert room.round == 1


def test_last_guesser_leaving_ends_round(coordinator, broadcaster):
    room = seat(coordinator, 'alice', 'bob', 'cara')
    coordinator.start_game('alice')
    coordinator.chat('bob', 'apple')
    coordinator.disconnect('cara')
    assert not room.round_active
    assert len(broadcaster.events('round-ended')) == 1


def test_too_few_players_ends_game(coordinator, broadcaster, timers):
    room = seat(coordinator, 'alice', 'bob')
    coordinator.start_game('alice')
    coordinator.disconnect('bob')

    assert room.status == 'finished'
    assert broadcaster.events('game-ended')[-1]['winner']['id'] == 'alice'
    timers.advance(10)
    assert room.status == 'waiting'


def test_last_player_disconnect_destroys_room_and_timers(coordinator, broadcaster, timers):
    room = seat(coordinator, 'alice', 'bob', 'cara')
    coordinator.start_game('alice')
    timers.advance(5)
    coordinator.disconnect('bob')
    coordinator.disconnect('cara')
    coordinator.disconnect('alice')

    assert coordinator.registry.find_room(room.code) is None
    assert not room.has_timers()
    assert timers.pending() == []

    before = len(broadcaster.sent)
    timers.advance(120)
    assert len(broadcaster.sent) == before


def test_rooms_list_only_public_waiting(coordinator):
    public = seat(coordinator, 'alice', 'bob')
    seat(coordinator, 'cara', is_public=False)
    listed = coordinator.list_rooms()
    assert [r['code'] for r in listed] == [public.code]

    coordinator.start_game('alice')
    assert coordinator.list_rooms() == []


def test_lobby_gets_rooms_list_updates(coordinator, broadcaster):
    coordinator.connect('dave')
    room = seat(coordinator, 'alice')
    lists = broadcaster.received('dave', 'rooms-list')
    assert [r['code'] for r in lists[-1]['rooms']] == [room.code]
    # members of a room are no longer in the lobby
    assert 'alice' not in broadcaster.groups['lobby']


def test_rename_in_room_updates_roster(coordinator, broadcaster):
    room = seat(coordinator, 'alice', 'bob')
    coordinator.set_identity('bob', 'Bobby')
    assert room.get_player('bob').name == 'Bobby'
    assert broadcaster.events('player-roster-update')[-1]['players'][1]['name'] == 'Bobby'


def test_stroke_relay_only_from_drawer_during_round(coordinator, broadcaster):
    seat(coordinator, 'alice', 'bob')
    assert coordinator.relay_stroke('bob', {'x': 1, 'y': 2})
    coordinator.start_game('alice')
    assert not coordinator.relay_stroke('bob', {'x': 1, 'y': 2})
    assert coordinator.relay_stroke('alice', {'x': 3, 'y': 4, 'color': '#000', 'width': 2})

    strokes = [m for m in broadcaster.sent if m['name'] == 'draw-stroke']
    assert len(strokes) == 2
    assert strokes[-1]['payload']['x'] == 3
    assert strokes[-1]['recipients'] == {'bob'}


def test_rooms_are_isolated(coordinator, broadcaster, timers):
    first = seat(coordinator, 'alice', 'bob')
    second = seat(coordinator, 'cara', 'dave')
    coordinator.start_game('alice')
    coordinator.start_game('cara')
    coordinator.disconnect('alice')
    coordinator.disconnect('bob')

    timers.advance(5)
    assert coordinator.registry.find_room(first.code) is None
    assert second.round_active
    assert second.time_left == 55
    codes = {e['roomCode'] for e in broadcaster.events('timer-update')[-5:]}
    assert codes == {second.code}
