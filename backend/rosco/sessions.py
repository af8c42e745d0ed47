"""In-memory registry of rosco sessions.

One session per game code, each owning its own RoundController and ticker.
Nothing here outlives the process.
"""
import random
import string
import threading
import time
from typing import Callable, Dict, List, Optional

from rosco import socketio
from rosco.services.wheel import BackgroundTicker, ManualTicker, RoundController
from rosco.services.wheel.state import LETTERS, ROUND_DURATION_SEC


class SessionNotFound(KeyError):
    def __init__(self, game_code):
        self.game_code = game_code
        super().__init__(f"Session {game_code} not found")


class RoscoSession:
    def __init__(self, game_code: str, controller: RoundController):
        self.game_code = game_code
        self.controller = controller
        self.created_at = time.time()
        # Debounce bookkeeping, keyed by "<action>:<controller_id>"
        self.last_controller_action: Dict[str, float] = {}

    @property
    def room(self) -> str:
        return f"game:{self.game_code}"

    def to_dict(self):
        payload = self.controller.snapshot()
        payload['game_code'] = self.game_code
        return payload


_sessions: Dict[str, RoscoSession] = {}
_registry_lock = threading.Lock()
_end_hooks: List[Callable[[str], None]] = []


def generate_game_code(length=4):
    """Generate a short game code not used by a live session."""
    while True:
        code = ''.join(random.choices(string.ascii_uppercase + string.digits, k=length))
        if code not in _sessions:
            return code


def _make_ticker(app, game_code: str):
    interval = float(app.config.get('TICK_INTERVAL_SEC', 1))
    if app.config.get('TESTING') and not app.config.get('ENABLE_SCHEDULER_IN_TESTS'):
        return ManualTicker(interval=interval)
    return BackgroundTicker(
        socketio,
        interval=interval,
        heartbeat=int(app.config.get('TIMER_HEARTBEAT_SEC', 0)),
        label=game_code,
    )


def _wire_notifications(session: RoscoSession) -> None:
    # socketio.emit works outside a request, so these also fire from the timer task
    code = session.game_code

    def on_started(snapshot):
        socketio.emit('round_started', {'game_code': code, **snapshot}, to=session.room, namespace='/ws')

    def on_changed(snapshot):
        socketio.emit('state_update', {'game_code': code, **snapshot}, to=session.room, namespace='/ws')

    def on_ended(reason, message):
        socketio.emit(
            'round_ended',
            {'game_code': code, 'reason': reason.value, 'message': message},
            to=session.room,
            namespace='/ws',
        )

    session.controller.on('round_started', on_started)
    session.controller.on('state_changed', on_changed)
    session.controller.on('round_ended', on_ended)


def create_session(app) -> RoscoSession:
    with _registry_lock:
        code = generate_game_code()
        controller = RoundController(
            ticker=_make_ticker(app, code),
            duration=int(app.config.get('ROUND_DURATION_SEC', ROUND_DURATION_SEC)),
            letters=LETTERS,
            label=code,
        )
        session = RoscoSession(code, controller)
        _sessions[code] = session
    _wire_notifications(session)
    app.logger.info(f"[session-create] game={code}")
    return session


def get_session(game_code: str) -> RoscoSession:
    session = _sessions.get((game_code or '').upper())
    if session is None:
        raise SessionNotFound(game_code)
    return session


def find_session(game_code: str) -> Optional[RoscoSession]:
    return _sessions.get((game_code or '').upper())


def on_session_end(callback: Callable[[str], None]) -> None:
    """Call ``callback(game_code)`` after any session is ended."""
    if callback not in _end_hooks:
        _end_hooks.append(callback)


def end_session(game_code: str) -> bool:
    """Cancel the session's timer, notify clients and forget it.

    Returns False when no such session exists.
    """
    with _registry_lock:
        session = _sessions.pop((game_code or '').upper(), None)
    if session is None:
        return False
    session.controller.teardown()
    socketio.emit('session_ended', {'game_code': session.game_code}, to=session.room, namespace='/ws')
    for hook in list(_end_hooks):
        hook(session.game_code)
    return True


def clear_sessions() -> None:
    """End every live session (app teardown and tests)."""
    for code in list(_sessions):
        end_session(code)
