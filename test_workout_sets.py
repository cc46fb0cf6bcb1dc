import pytest

from errors import SetLogError
from models import Database, WorkoutSessions

BENCH_SETS = [
    {'exerciseName': 'Bench Press', 'setNumber': 1, 'weight': 100, 'reps': 8, 'rpe': 8, 'restSeconds': 120},
    {'exerciseName': 'Bench Press', 'setNumber': 2, 'actualWeight': '100', 'reps': 6},
    {'exerciseName': 'Plank', 'setNumber': 1, 'weight': None, 'reps': None},
]


@pytest.fixture
def sessions(db):
    return WorkoutSessions(db)


@pytest.fixture
def session_id(sessions):
    return sessions.create_session('u1', 'custom', 'Push Day', [{'exercise': 'Bench Press'}])


class TestRepository:
    def test_save_sets_fills_defaults(self, sessions, session_id):
        saved = sessions.save_sets(session_id, BENCH_SETS)

        assert len(saved) == 3
        assert saved[0] == {'exercise_name': 'Bench Press', 'set_number': 1, 'weight': 100.0,
                            'reps': 8, 'rpe': 8.0, 'rest_seconds': 120}
        assert saved[1]['weight'] == 100.0
        assert saved[1]['rpe'] == 7
        assert saved[1]['rest_seconds'] == 90
        assert saved[2]['weight'] is None

    def test_resaving_a_set_overwrites_it(self, sessions, session_id):
        sessions.save_sets(session_id, BENCH_SETS)
        saved = sessions.save_sets(session_id, [{'exerciseName': 'Bench Press', 'setNumber': 2, 'weight': 105, 'reps': 5}])

        assert len(saved) == 3
        assert saved[1]['weight'] == 105.0
        assert saved[1]['reps'] == 5

    def test_missing_set_number_uses_position(self, sessions, session_id):
        saved = sessions.save_sets(session_id, [{'exerciseName': 'Row'}, {'exerciseName': 'Row'}])
        assert [s['set_number'] for s in saved] == [1, 2]

    @pytest.mark.parametrize('bad', [
        'not a set',
        {'reps': 5},
        {'exerciseName': 'Row', 'weight': 'heavy'},
        {'exerciseName': 'Row', 'reps': -3},
        {'exerciseName': 'Row', 'weight': float('inf')},
    ])
    def test_invalid_sets_rejected(self, sessions, session_id, bad):
        with pytest.raises(SetLogError):
            sessions.save_sets(session_id, [bad])
        assert sessions.get_sets(session_id) == []

    def test_complete_workout_totals_volume(self, sessions, session_id):
        sessions.save_sets(session_id, BENCH_SETS)
        assert sessions.complete_workout(session_id) == 1400.0

        session = sessions.get_session(session_id)
        assert session['total_volume'] == 1400.0
        assert session['completed_at']
        assert session['planned_exercises'] == [{'exercise': 'Bench Press'}]

    def test_complete_without_sets_is_zero(self, sessions, session_id):
        assert sessions.complete_workout(session_id) == 0.0

    def test_get_session_checks_owner(self, sessions, session_id):
        assert sessions.get_session(session_id, 'u1')['workout_name'] == 'Push Day'
        assert sessions.get_session(session_id, 'someone-else') is None
        assert sessions.get_session('missing') is None


class TestSetRoutes:
    def test_save_and_complete(self, client, db_path):
        session_id = WorkoutSessions(Database(db_path)).create_session('u1', 'custom', 'Push Day', [])

        response = client.post(f'/api/workouts/{session_id}/sets?user=u1', json={'sets': BENCH_SETS})
        body = response.get_json()
        assert response.status_code == 200
        assert body['sessionId'] == session_id
        assert len(body['sets']) == 3
        assert 'totalVolume' not in body

        body = client.post(f'/api/workouts/{session_id}/sets?user=u1', json={
            'sets': [{'exerciseName': 'Bench Press', 'setNumber': 3, 'weight': 90, 'reps': 10}],
            'complete': True,
        }).get_json()
        assert body['totalVolume'] == 2300.0

        body = client.post(f'/api/workouts/{session_id}/complete', json={'userId': 'u1'}).get_json()
        assert body == {'ok': True, 'sessionId': session_id, 'totalVolume': 2300.0}

    def test_nike_session_accepts_sets(self, client, seeded_db):
        session_id = client.post('/api/nike/next', json={'userId': 'u1'}).get_json()['sessionId']
        response = client.post(f'/api/workouts/{session_id}/sets', json={
            'userId': 'u1',
            'sets': [{'exerciseName': 'Main Lift 1', 'setNumber': 1, 'weight': 20, 'reps': 10}],
            'complete': True,
        })
        assert response.get_json()['totalVolume'] == 200.0

    @pytest.mark.parametrize('body', [{}, {'sets': None}, {'sets': {'exerciseName': 'Row'}}, {'sets': 'Row'}])
    def test_sets_must_be_a_list(self, client, db_path, body):
        session_id = WorkoutSessions(Database(db_path)).create_session('u1', 'custom', 'Push Day', [])
        response = client.post(f'/api/workouts/{session_id}/sets?user=u1', json=body)
        assert response.status_code == 400
        assert response.get_json()['ok'] is False

    def test_invalid_set_is_400(self, client, db_path):
        session_id = WorkoutSessions(Database(db_path)).create_session('u1', 'custom', 'Push Day', [])
        response = client.post(f'/api/workouts/{session_id}/sets?user=u1', json={'sets': [{'reps': 5}]})
        assert response.status_code == 400
        assert 'exerciseName' in response.get_json()['error']

    def test_requires_user(self, client):
        assert client.post('/api/workouts/abc/sets', json={'sets': []}).status_code == 401
        assert client.post('/api/workouts/abc/complete').status_code == 401

    def test_unknown_or_foreign_session_is_404(self, client, db_path):
        session_id = WorkoutSessions(Database(db_path)).create_session('u1', 'custom', 'Push Day', [])
        assert client.post('/api/workouts/missing/sets?user=u1', json={'sets': []}).status_code == 404
        assert client.post(f'/api/workouts/{session_id}/sets?user=u2', json={'sets': []}).status_code == 404
        assert client.post(f'/api/workouts/{session_id}/complete?user=u2').status_code == 404
