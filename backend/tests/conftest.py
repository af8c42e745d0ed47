import os
import sys
import pytest

# Ensure the backend root (containing the `rosco` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from rosco import create_app, socketio
from rosco.sessions import clear_sessions
from rosco.services.wheel import ManualTicker, RoundController


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    ROUND_DURATION_SEC = 150
    TICK_INTERVAL_SEC = 1
    CONTROLLER_DEBOUNCE_MS = 0
    TIMER_HEARTBEAT_SEC = 0
    OWNER_GRACE_SEC = 0


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        yield application
    clear_sessions()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except RuntimeError:
        pass


@pytest.fixture()
def ticker():
    return ManualTicker()


@pytest.fixture()
def controller(ticker):
    return RoundController(ticker=ticker, label='TEST')
