from rosco.sessions import get_session


def _create(client):
    res = client.post('/api/rounds/create')
    assert res.status_code == 201
    return res.get_json()['game_code']


def test_index_and_health(client):
    assert client.get('/').status_code == 200
    assert client.get('/health').get_json() == {'status': 'healthy'}


def test_create_round(client):
    res = client.post('/api/rounds/create')
    assert res.status_code == 201
    data = res.get_json()
    assert len(data['game_code']) == 4


def test_state_before_start(client):
    code = _create(client)
    res = client.get(f'/api/rounds/{code.lower()}/state')
    assert res.status_code == 200
    state = res.get_json()
    assert state['game_code'] == code
    assert state['started'] is False
    assert state['current_letter'] is None
    assert state['time_remaining'] == 150
    assert state['durations'] == {'round': 150, 'tick_interval': 1.0}
    assert len(state['letters']) == 26


def test_unknown_game_is_404(client):
    assert client.get('/api/rounds/ZZZZ/state').status_code == 404
    assert client.post('/api/rounds/ZZZZ/start').status_code == 404
    assert client.post('/api/rounds/ZZZZ/answer', json={'verdict': 'pass'}).status_code == 404
    assert client.post('/api/rounds/ZZZZ/end').status_code == 404


def test_answer_before_start_leaves_state_alone(client):
    code = _create(client)
    before = client.get(f'/api/rounds/{code}/state').get_json()
    res = client.post(f'/api/rounds/{code}/answer', json={'verdict': 'correct'})
    assert res.status_code == 200
    after = res.get_json()
    assert after['letters'] == before['letters']
    assert after['started'] is False


def test_answer_validation(client):
    code = _create(client)
    client.post(f'/api/rounds/{code}/start')
    assert client.post(f'/api/rounds/{code}/answer', json={}).status_code == 400
    res = client.post(f'/api/rounds/{code}/answer', json={'verdict': 'skip'})
    assert res.status_code == 400
    assert 'pass' in res.get_json()['error']


def test_play_through_a_full_rosco(client):
    code = _create(client)
    started = client.post(f'/api/rounds/{code}/start').get_json()
    assert started['started'] is True
    assert started['current_letter'] == 'A'
    assert started['prompt'] == 'Pregunta para la letra "A"'

    state = client.post(f'/api/rounds/{code}/answer', json={'verdict': 'pass'}).get_json()
    assert state['current_letter'] == 'B'
    assert state['letters'][0]['status'] == 'passed'
    for _ in range(25):
        state = client.post(f'/api/rounds/{code}/answer', json={'verdict': 'correct'}).get_json()
    assert state['current_letter'] == 'A'
    assert state['is_over'] is False

    state = client.post(f'/api/rounds/{code}/answer', json={'verdict': 'CORRECT'}).get_json()
    assert state['is_over'] is True
    assert state['end_reason'] == 'all_letters_resolved'
    assert state['accepting_answers'] is False
    assert state['tally']['correct'] == 26


def test_timer_expiry_through_manual_ticks(client):
    code = _create(client)
    client.post(f'/api/rounds/{code}/start')
    ticker = get_session(code).controller.ticker
    ticker.fire(150)
    state = client.get(f'/api/rounds/{code}/state').get_json()
    assert state['is_over'] is True
    assert state['end_reason'] == 'time_expired'
    assert state['clock'] == '00:00'
    assert state['current_index'] == 0


def test_restart_resets_clock(client):
    code = _create(client)
    client.post(f'/api/rounds/{code}/start')
    get_session(code).controller.ticker.fire(20)
    assert client.get(f'/api/rounds/{code}/state').get_json()['time_remaining'] == 130
    state = client.post(f'/api/rounds/{code}/start').get_json()
    assert state['time_remaining'] == 150
    assert state['is_over'] is False


def test_end_session_cancels_timer(client):
    code = _create(client)
    client.post(f'/api/rounds/{code}/start')
    ticker = get_session(code).controller.ticker
    res = client.post(f'/api/rounds/{code}/end')
    assert res.get_json() == {'ok': True}
    assert not ticker.running
    assert client.get(f'/api/rounds/{code}/state').status_code == 404


def test_controller_debounce(flask_app, client):
    flask_app.config['CONTROLLER_DEBOUNCE_MS'] = 60000
    code = _create(client)
    assert client.post(f'/api/rounds/{code}/start', json={'controller_id': 1}).status_code == 200
    assert client.post(f'/api/rounds/{code}/start', json={'controller_id': 1}).status_code == 202
    assert client.post(f'/api/rounds/{code}/answer', json={'verdict': 'pass', 'controller_id': 1}).status_code == 200
    res = client.post(f'/api/rounds/{code}/answer', json={'verdict': 'pass', 'controller_id': 1})
    assert res.status_code == 202
    assert client.get(f'/api/rounds/{code}/state').get_json()['current_letter'] == 'B'


def test_debounce_state_lives_and_dies_with_the_session(flask_app, client):
    flask_app.config['CONTROLLER_DEBOUNCE_MS'] = 60000
    code = _create(client)
    session = get_session(code)
    client.post(f'/api/rounds/{code}/start', json={'controller_id': 7})
    assert list(session.last_controller_action) == ['start:7']

    # a new session for the same controller is not debounced by the old one
    other = _create(client)
    assert client.post(f'/api/rounds/{other}/start', json={'controller_id': 7}).status_code == 200

    client.post(f'/api/rounds/{code}/end')
    assert client.post(f'/api/rounds/{code}/start', json={'controller_id': 7}).status_code == 404
