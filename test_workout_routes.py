import pytest

from conftest import nike_program_rows
from models import Database, EquipmentStore, Profile
from seed_data import seed_core_lifts, seed_nike_rows


@pytest.fixture
def seeded(db_path):
    db = Database(db_path)
    seed_nike_rows(db, nike_program_rows())
    seed_core_lifts(db)
    return db


class TestPropose:
    def test_requires_user(self, client):
        response = client.post('/api/workouts/propose', json={'focus': 'push', 'minutes': 45})
        assert response.status_code == 401

    def test_picks_core_lift_the_user_can_do(self, client, seeded):
        EquipmentStore(seeded).set_user_equipment('u1', ['Dumbbells', 'Adjustable Bench'])
        plan = client.post('/api/workouts/propose?user=u1', json={'focus': 'push', 'minutes': 45}).get_json()

        assert plan['coreLift'] == 'Dumbbell Bench Press'
        assert plan['mainLift'] == {'name': 'Dumbbell Bench Press', 'sets': 4, 'reps': '8-10', 'rest': '2-3 min'}
        assert plan['accessoriesList'] == 'Dumbbell Flyes, Overhead Press, Lateral Raises'
        assert plan['minutes'] == 45

    def test_full_rack_gets_barbell_lift(self, client, seeded):
        EquipmentStore(seeded).set_user_equipment('u1', ['Barbell', 'Bench', 'Power Rack'])
        plan = client.post('/api/workouts/propose?user=u1', json={'focus': 'legs'}).get_json()
        assert plan['coreLift'] == 'Back Squat'

    def test_no_equipment_falls_back_to_push_up(self, client, seeded):
        plan = client.post('/api/workouts/propose?user=u1', json={'focus': 'back'}).get_json()
        assert plan['coreLift'] == 'Push-up'


class TestNikeRoutes:
    def test_progress(self, client, seeded):
        Profile(seeded).set_nike_progress('u1', 6)
        body = client.get('/api/nike/progress?user=u1').get_json()
        assert body == {'success': True, 'currentProgress': 6, 'nextWorkout': 7}

    def test_progress_requires_user(self, client):
        assert client.get('/api/nike/progress').status_code == 400

    def test_next_and_finish(self, client, seeded):
        first = client.post('/api/nike/next', json={'userId': 'u1'}).get_json()
        assert first['workoutNo'] == 1
        assert first['sessionId']

        body = client.post('/api/nike/finish', json={'userId': 'u1', 'workoutNumber': 3}).get_json()
        assert body['newProgress'] == 3
        body = client.post('/api/nike/finish', json={'userId': 'u1', 'workoutNumber': 2}).get_json()
        assert body['newProgress'] == 3
        assert body['message'] == 'Nike Workout 2 completed!'

    def test_finish_requires_number(self, client):
        response = client.post('/api/nike/finish', json={'userId': 'u1', 'workoutNumber': 'x'})
        assert response.status_code == 400

    def test_next_with_empty_program(self, client):
        response = client.post('/api/nike/next', json={'userId': 'u1'})
        assert response.status_code == 404
        assert response.get_json()['reason'] == 'empty_program'

    def test_workout_by_number_wraps(self, client, seeded):
        body = client.get('/api/nike/25').get_json()
        assert body['ok'] is True
        assert body['number'] == 1
        assert body['name'] == 'Nike Workout 1'
        assert body['workout']['main'][0]['name'] == 'Main Lift 1'
        assert list(body['workout']) == ['warmup', 'main', 'cooldown']

    def test_workout_by_number_without_program(self, client):
        response = client.get('/api/nike/3')
        assert response.status_code == 404
        assert response.get_json()['reason'] == 'empty_program'


class TestProfileAndEquipment:
    def test_profile_round_trip(self, client):
        assert client.get('/api/profile').status_code == 401

        body = client.post('/api/profile?user=u1', json={
            'display_name': 'Sam',
            'preferred_workout_duration': 500,
            'favorite_coach': 'Joe Holder',
        }).get_json()
        profile = body['profile']
        assert profile['display_name'] == 'Sam'
        assert profile['preferred_workout_duration'] == 120
        assert profile['profile_data'] == {'favorite_coach': 'Joe Holder'}

        assert client.get('/api/profile?user=u1').get_json()['profile']['display_name'] == 'Sam'

    def test_equipment_round_trip(self, client):
        body = client.post('/api/equipment?user=u1', json={'equipment': ['Dumbbells', 'DB', 'Bands']}).get_json()
        assert body['equipment'] == ['Dumbbells', 'Bands']
        assert client.get('/api/equipment?user=u1').get_json()['equipment'] == ['Dumbbells', 'Bands']

    def test_equipment_must_be_a_list(self, client):
        response = client.post('/api/equipment?user=u1', json={'equipment': 'Barbell'})
        assert response.status_code == 400
