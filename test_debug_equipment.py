import pytest

from models import Database, EquipmentStore


@pytest.fixture
def store(db_path):
    store = EquipmentStore(Database(db_path))
    store.set_user_equipment('u1', ['Barbell', 'Dumbbells'])
    store.set_user_equipment('u2', ['Kettlebell'])
    store.set_user_equipment('u3', ['Bench'])
    return store


def resolved_user(response):
    assert response.status_code == 200
    return response.get_json()['user']


def test_query_user_id(client, store):
    body = client.get('/api/debug/equipment?userId=u1').get_json()
    assert body['ok'] is True
    assert body['user'] == 'u1'
    assert body['equipment_names'] == ['Barbell', 'Dumbbells']
    assert body['counts'] == {'user_equipment': 2, 'equipment_joined': 2, 'available_names': 2}
    assert body['warnings'] == []
    assert [row['name'] for row in body['rows']] == ['Barbell', 'Dumbbells']


def test_query_aliases(client, store):
    assert resolved_user(client.get('/api/debug/equipment?sessionId=u2')) == 'u2'
    assert resolved_user(client.get('/api/debug/equipment?user=u3')) == 'u3'


def test_precedence_order(client, store):
    # query beats path beats header beats body beats session
    assert resolved_user(client.get('/api/debug/equipment/u2?userId=u1')) == 'u1'
    assert resolved_user(client.get('/api/debug/equipment/u2', headers={'X-User-Id': 'u3'})) == 'u2'
    assert resolved_user(client.post('/api/debug/equipment', headers={'X-User-Id': 'u3'},
                                     json={'userId': 'u1'})) == 'u3'
    assert resolved_user(client.post('/api/debug/equipment', json={'userId': 'u1'})) == 'u1'

    with client.session_transaction() as flask_session:
        flask_session['user_id'] = 'u2'
    assert resolved_user(client.get('/api/debug/equipment')) == 'u2'
    assert resolved_user(client.post('/api/debug/equipment', json={'userId': 'u3'})) == 'u3'


def test_missing_user_is_400(client):
    response = client.get('/api/debug/equipment')
    assert response.status_code == 400
    assert response.get_json()['ok'] is False


def test_warns_when_user_has_no_rows(client, store):
    body = client.get('/api/debug/equipment?userId=nobody').get_json()
    assert body['equipment_names'] == []
    assert body['warnings'] == ['No rows in user_equipment for this user_id.']


def test_warns_when_nothing_available(client, store):
    conn = store.db.get_connection()
    conn.execute("UPDATE user_equipment SET is_available = 0 WHERE user_id = 'u2'")
    conn.commit()
    conn.close()

    body = client.get('/api/debug/equipment?userId=u2').get_json()
    assert body['equipment_names'] == []
    assert body['rows'][0]['is_available'] is False
    assert body['warnings'] == ['All items may be is_available=false.']


def test_dangling_equipment_ids_reported(client, store):
    conn = store.db.get_connection()
    conn.execute('PRAGMA foreign_keys = OFF')
    conn.execute("INSERT INTO user_equipment (user_id, equipment_id, is_available) VALUES ('u3', 999, 1)")
    conn.commit()
    conn.close()

    body = client.get('/api/debug/equipment/u3').get_json()
    assert body['counts']['user_equipment'] == 2
    assert body['counts']['equipment_joined'] == 1
    assert body['equipment_names'] == ['Bench']
    assert any('missing equipment ids' in w for w in body['warnings'])
