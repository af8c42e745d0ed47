from flask import Blueprint, jsonify, request, current_app
from rosco.sessions import SessionNotFound, create_session, end_session, get_session
from rosco.services.wheel import Verdict
import time


rounds = Blueprint('rounds', __name__)


def _debounced(session, action: str, controller_id) -> bool:
    try:
        debounce_ms = int(current_app.config.get('CONTROLLER_DEBOUNCE_MS', 0))
    except (TypeError, ValueError):
        debounce_ms = 0
    if debounce_ms <= 0:
        return False
    key = f"{action}:{controller_id}"
    now = time.time() * 1000.0
    last = session.last_controller_action.get(key, 0)
    if now - last < debounce_ms:
        return True
    session.last_controller_action[key] = now
    return False


def _not_found():
    return jsonify({'error': 'Game not found'}), 404


@rounds.route('/create', methods=['POST'])
def create_round():
    session = create_session(current_app._get_current_object())
    return jsonify({
        'message': 'New rosco created!',
        'game_code': session.game_code
    }), 201


@rounds.route('/<string:game_code>/state', methods=['GET'])
def get_round_state(game_code):
    try:
        session = get_session(game_code)
    except SessionNotFound:
        return _not_found()
    cfg = current_app.config
    payload = session.to_dict()
    # Include durations so clients can draw the countdown
    payload['durations'] = {
        'round': int(cfg.get('ROUND_DURATION_SEC', 150)),
        'tick_interval': float(cfg.get('TICK_INTERVAL_SEC', 1)),
    }
    return jsonify(payload)


@rounds.route('/<string:game_code>/start', methods=['POST'])
def start_round(game_code):
    data = request.get_json(silent=True) or {}
    try:
        session = get_session(game_code)
    except SessionNotFound:
        return _not_found()
    if _debounced(session, 'start', data.get('controller_id')):
        return jsonify({'message': 'debounced'}), 202

    # Starting again restarts the round and its countdown
    session.controller.start_round()
    return jsonify(session.to_dict())


@rounds.route('/<string:game_code>/answer', methods=['POST'])
def submit_answer(game_code):
    data = request.get_json(silent=True) or {}
    try:
        session = get_session(game_code)
    except SessionNotFound:
        return _not_found()

    raw = data.get('verdict')
    if raw is None:
        return jsonify({'error': 'verdict is required'}), 400
    try:
        verdict = Verdict.parse(raw)
    except ValueError:
        allowed = ', '.join(v.value for v in Verdict)
        return jsonify({'error': f'verdict must be one of: {allowed}'}), 400

    if _debounced(session, 'answer', data.get('controller_id')):
        return jsonify({'message': 'debounced'}), 202

    # Answers outside a running round are ignored; the unchanged state is returned
    session.controller.submit_answer(verdict)
    return jsonify(session.to_dict())


@rounds.route('/<string:game_code>/end', methods=['POST'])
def end_round_session(game_code):
    if not end_session(game_code):
        return _not_found()
    current_app.logger.info(f"[session-end] game={game_code.upper()} reason=requested")
    return jsonify({'ok': True})
