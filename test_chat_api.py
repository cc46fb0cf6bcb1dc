import json

from conftest import PUSH_PLAN, fenced, nike_program_rows
from models import Database, EquipmentStore, WorkoutSessions
from seed_data import seed_nike_rows


def post_chat(client, body):
    response = client.post('/api/chat', json=body)
    return response, response.get_json()


def test_generation_failure_falls_back_to_backup(client, db_path):
    response, body = post_chat(client, {'split': 'legs', 'minutes': 30, 'equipment': [], 'userId': 'u1'})

    assert response.status_code == 200
    assert body['ok'] is True
    assert body['workout']['main']
    assert body['workout']['main'][0]['name'] == 'Goblet Squat'
    assert body['name'] == 'Legs Session (~30 min)'
    assert body['debug']['route'] == 'backup'
    assert body['debug']['usedBackup'] is True
    assert body['debug']['minutes'] == 30

    saved = WorkoutSessions(Database(db_path)).get_generated('u1')
    assert saved[0]['source'] == 'backup'
    assert saved[0]['split'] == 'legs'


def test_split_generation_with_model(make_app):
    app = make_app([fenced(PUSH_PLAN)])
    response, body = post_chat(app.test_client(), {'split': 'PUSH', 'minutes': 40, 'userId': 'u1'})

    assert response.status_code == 200
    assert body['debug']['route'] == 'llm'
    assert body['debug']['split'] == 'push'
    assert body['debug']['blocked'] == ['Power Clean']
    assert body['debug']['usage']['total_tokens'] == 150
    assert body['debug']['usage']['calls'] == 1

    main_names = [item['name'] for item in body['workout']['main']]
    assert 'Power Clean' not in main_names
    assert main_names[:2] == ['Barbell Bench Press', 'Trap Bar Deadlift']
    assert body['workout']['main'][2]['isAccessory'] is True
    assert [block['phase'] for block in body['plan']['phases']] == ['warmup', 'main', 'accessory', 'cooldown']

    # button path goes straight to generation, no classifier call
    assert len(app.fake_openai.calls) == 1


def test_stored_equipment_used_when_body_has_none(make_app, db_path):
    app = make_app()
    EquipmentStore(Database(db_path)).set_user_equipment('u1', ['Barbell', 'Cable Machine'])

    _, body = post_chat(app.test_client(), {'split': 'push', 'userId': 'u1'})
    assert body['workout']['main'][0]['name'] == 'Barbell Bench Press'
    assert body['debug']['minutes'] == 45


def test_model_prompt_lists_equipment(make_app):
    app = make_app([fenced(PUSH_PLAN)])
    post_chat(app.test_client(), {'split': 'push', 'userId': 'u1', 'equipment': ['Kettlebell']})

    prompt = app.fake_openai.calls[0]['messages'][-1]['content']
    assert 'Kettlebell' in prompt
    assert 'Split: push' in prompt


def test_classified_split_from_text(make_app):
    app = make_app(['{"intent": "split", "split": "legs"}', fenced(PUSH_PLAN)])
    _, body = post_chat(app.test_client(), {'text': 'something for my lower half', 'user': 'u1'})

    assert body['ok'] is True
    assert body['debug']['split'] == 'legs'
    assert body['debug']['intent']['source'] == 'llm'
    assert body['debug']['usage']['calls'] == 2


def test_keyword_fallback_when_classifier_fails(client):
    _, body = post_chat(client, {'text': 'quick hiit session', 'userId': 'u1', 'minutes': 20})

    assert body['ok'] is True
    assert body['debug']['intent']['intent'] == 'split'
    assert body['debug']['intent']['source'] == 'keywords'
    assert body['debug']['split'] == 'hiit'
    assert [block['phase'] for block in body['plan']['phases']] == ['warmup', 'main', 'conditioning', 'cooldown']


def test_free_chat_generates(make_app):
    app = make_app(['{"intent": "chat"}', fenced(PUSH_PLAN)])
    _, body = post_chat(app.test_client(), {'text': 'surprise me', 'userId': 'u1'})

    assert body['debug']['route'] == 'llm-chat'
    assert body['name'] == 'Session (~45 min)'
    assert app.fake_openai.calls[1]['messages'][-1]['content'].endswith('User message: "surprise me"\n')


def test_nike_request_resolves(client, db_path):
    seed_nike_rows(Database(db_path), nike_program_rows())
    _, body = post_chat(client, {'text': 'nike workout 3 upper body', 'userId': 'u1'})

    assert body['ok'] is True
    assert body['debug']['route'] == 'nike-nl'
    assert body['debug']['number'] == 3
    assert body['name'] == 'Nike Workout 3'
    assert [item['name'] for item in body['workout']['main']] == ['Main Lift 3', 'Plank']
    assert body['workout']['main'][1]['isAccessory'] is True


def test_unsure_nike_request_asks_for_confirmation(client, db_path):
    seed_nike_rows(Database(db_path), nike_program_rows())
    response, body = post_chat(client, {'text': 'nike workout please', 'userId': 'u1'})

    assert response.status_code == 200
    assert body['ok'] is True
    assert body['needsConfirmation'] is True
    assert body['debug']['route'] == 'nike-nl-pending'
    assert body['debug']['reason'] == 'low_confidence'
    assert '/nike 1' in body['message']
    assert body['workout'] is None


def test_nike_request_with_duration_asks_instead_of_guessing(client, db_path):
    seed_nike_rows(Database(db_path), nike_program_rows())
    _, body = post_chat(client, {'text': 'nike workout for 30 minutes', 'userId': 'u1'})

    assert body['needsConfirmation'] is True
    assert body['debug']['route'] == 'nike-nl-pending'
    assert body['debug']['intent']['nike']['index'] is None
    assert body['workout'] is None


def test_nike_request_with_empty_program_asks(client):
    _, body = post_chat(client, {'text': 'nike workout 2 upper body', 'userId': 'u1'})
    assert body['needsConfirmation'] is True
    assert body['debug']['reason'] == 'empty_program'


def test_missing_user_is_400(client):
    response, body = post_chat(client, {'split': 'push'})
    assert response.status_code == 400
    assert body == {'ok': False, 'error': 'Missing userId'}


def test_non_json_body_is_400(client):
    response = client.post('/api/chat', data='split=push', content_type='text/plain')
    assert response.status_code == 400
    assert response.get_json()['ok'] is False


def test_router_crash_is_generic_500(app, client, monkeypatch):
    router = app.extensions['workout_trainer']['router']

    def boom(user_id):
        raise RuntimeError('db exploded')

    monkeypatch.setattr(router.equipment, 'get_available_names', boom)
    response, body = post_chat(client, {'split': 'push', 'userId': 'u1'})

    assert response.status_code == 500
    assert body == {'ok': False, 'error': 'Internal server error', 'debug': {'route': 'error'}}


def test_backup_still_returned_when_saving_fails(app, client, monkeypatch):
    router = app.extensions['workout_trainer']['router']

    def broken_save(*args, **kwargs):
        raise RuntimeError('disk full')

    monkeypatch.setattr(router.sessions, 'save_generated', broken_save)
    response, body = post_chat(client, {'split': 'legs', 'minutes': 30, 'userId': 'u1'})

    assert response.status_code == 200
    assert body['debug']['route'] == 'backup'
    assert body['workout']['main']


def test_infinite_minutes_use_the_default(client):
    response = client.post('/api/chat', data='{"split": "legs", "minutes": Infinity, "userId": "u1"}',
                           content_type='application/json')

    assert response.status_code == 200
    assert response.get_json()['debug']['minutes'] == 45


def test_unknown_route_is_json_404(client):
    response = client.get('/api/nope')
    assert response.status_code == 404
    assert json.loads(response.data) == {'ok': False, 'error': 'Not found'}


def test_wrong_method_is_json_405(client):
    response = client.get('/api/chat')
    assert response.status_code == 405
    assert response.get_json()['ok'] is False
