from flask_socketio import join_room, leave_room, emit
from rosco import socketio
from rosco.sessions import end_session, find_session, on_session_end
from flask import current_app, request
from typing import Dict, Any, Optional
import time


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_disconnect(reason=None):
    # A session ends when its last owner socket goes away
    ctx = _sid_to_ctx.pop(_get_sid(), None)
    if ctx and ctx.get('is_session_owner'):
        _release_owner(ctx['game_code'])


def handle_join_game(data):
    code = _game_code_from(data)
    if code is None:
        return
    is_session_owner = bool((data or {}).get('is_session_owner'))
    room = f"game:{code}"
    sid = _get_sid()

    # One game per socket: joining another game gives up the previous one
    previous = _sid_to_ctx.get(sid)
    if previous and previous['game_code'] != code:
        leave_room(f"game:{previous['game_code']}")
        _sid_to_ctx.pop(sid, None)
        if previous.get('is_session_owner'):
            _release_owner(previous['game_code'])
        previous = None

    join_room(room)
    already_owner = bool(previous and previous.get('is_session_owner'))
    _sid_to_ctx[sid] = {'game_code': code, 'is_session_owner': is_session_owner or already_owner}
    if is_session_owner and not already_owner:
        _owner_count[code] = _owner_count.get(code, 0) + 1
        _cancel_scheduled_end(code)
    emit('joined', {'room': room})
    # Late joiners get the current wheel straight away
    session = find_session(code)
    if session:
        emit('state_update', session.to_dict())


def handle_leave_game(data):
    code = _game_code_from(data)
    if code is None:
        return
    room = f"game:{code}"
    leave_room(room)
    emit('left', {'room': room})
    # Explicit quit by an owner ends the session immediately
    ctx = _sid_to_ctx.get(_get_sid())
    if ctx and ctx.get('is_session_owner') and ctx.get('game_code') == code:
        _end_session(code)


def handle_ping(data):
    emit('pong', data or {})

# ---- Session owner lifecycle helpers ----

_sid_to_ctx: Dict[str, Dict[str, Any]] = {}
_owner_count: Dict[str, int] = {}
_end_deadline: Dict[str, float] = {}

def _get_sid() -> str:
    return request.sid  # type: ignore[attr-defined]

def _game_code_from(data) -> Optional[str]:
    game_code = (data or {}).get('game_code') if isinstance(data, dict) else None
    if not isinstance(game_code, str) or not game_code.strip():
        emit('error', {'message': 'game_code is required'})
        return None
    return game_code.strip().upper()

def _release_owner(game_code: str) -> None:
    _owner_count[game_code] = max(0, _owner_count.get(game_code, 0) - 1)
    # In tests, end immediately for determinism; in prod, allow grace period
    if current_app.config.get('TESTING'):
        if _owner_count.get(game_code, 0) == 0:
            _end_session(game_code)
        return
    _schedule_end_if_no_owner(game_code, float(current_app.config.get('OWNER_GRACE_SEC', 2.0)))

def _end_session(game_code: str) -> None:
    """Stop the round timer, notify clients and drop the session."""
    if not end_session(game_code):
        # No live round; still drop the owner bookkeeping
        _forget_game(game_code)

def _forget_game(game_code: str) -> None:
    _owner_count.pop(game_code, None)
    _end_deadline.pop(game_code, None)
    for sid, ctx in list(_sid_to_ctx.items()):
        if ctx.get('game_code') == game_code:
            _sid_to_ctx.pop(sid, None)

def _schedule_end_if_no_owner(game_code: str, delay_sec: float = 2.0) -> None:
    if _owner_count.get(game_code, 0) > 0:
        return
    _end_deadline[game_code] = time.time() + delay_sec

    def _runner(code: str, deadline: float):
        sleep_for = max(0.0, deadline - time.time())
        if sleep_for:
            socketio.sleep(sleep_for)
        if _owner_count.get(code, 0) == 0 and _end_deadline.get(code) == deadline:
            _end_session(code)

    socketio.start_background_task(_runner, game_code, _end_deadline[game_code])

def _cancel_scheduled_end(game_code: str) -> None:
    _end_deadline.pop(game_code, None)


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    namespaces = ['/ws', '/'] if testing else ['/ws']
    for ns in namespaces:
        socketio.on_event('connect', handle_connect, namespace=ns)
        socketio.on_event('disconnect', handle_disconnect, namespace=ns)
        socketio.on_event('join_game', handle_join_game, namespace=ns)
        socketio.on_event('leave_game', handle_leave_game, namespace=ns)
        socketio.on_event('ping', handle_ping, namespace=ns)
    # Drop owner bookkeeping however a session ends (HTTP, owner quit, teardown)
    on_session_end(_forget_game)
