import json
from types import SimpleNamespace

import pytest

from app import create_app
from models import Database
from seed_data import seed_nike_rows

PUSH_PLAN = {
    "name": "Push Power",
    "duration_min": 40,
    "phases": [
        {"phase": "warmup", "items": [{"name": "Band Pull-Apart", "sets": 2, "reps": 15}]},
        {"phase": "main", "items": [
            {"name": "Barbell Bench Press", "sets": 4, "reps": "6-8"},
            {"name": "Power Clean", "sets": 3, "reps": 3, "instruction": "Explode"},
            {"name": "Cable Fly", "sets": 3, "reps": 12, "isAccessory": True},
        ]},
        {"phase": "cooldown", "items": [{"name": "Doorway Pec Stretch", "duration": "60s"}]},
    ],
}


class FakeCompletions:
    """Replays canned replies in order; the last one repeats. Exceptions are raised."""

    def __init__(self, replies):
        self.replies = list(replies)
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        return SimpleNamespace(
            model=kwargs.get('model'),
            choices=[SimpleNamespace(message=SimpleNamespace(content=reply))],
            usage=SimpleNamespace(prompt_tokens=100, completion_tokens=50),
        )


class FakeOpenAI:
    def __init__(self, replies):
        self.chat = SimpleNamespace(completions=FakeCompletions(replies))

    @property
    def calls(self):
        return self.chat.completions.calls


def fenced(payload):
    return f"Here you go:\n```json\n{json.dumps(payload)}\n```"


def nike_program_rows(length=24):
    rows = []
    for number in range(1, length + 1):
        workout_type = 'Upper Body Strength' if number % 2 else 'Lower Body Power'
        rows += [
            {'workout': number, 'workout_type': workout_type, 'exercise': 'Jog in Place',
             'sets': '1', 'duration': '2 min', 'set_duration_seconds': 120, 'exercise_phase': 'warmup'},
            {'workout': number, 'workout_type': workout_type, 'exercise': f'Main Lift {number}',
             'sets': '3', 'reps': '10', 'set_duration_seconds': 60, 'instructions': 'Slow eccentric',
             'exercise_type': 'main', 'exercise_phase': 'main'},
            {'workout': number, 'workout_type': workout_type, 'exercise': 'Plank',
             'sets': '2', 'reps': '30s', 'set_duration_seconds': 30,
             'exercise_type': 'accessory', 'exercise_phase': 'main'},
            {'workout': number, 'workout_type': workout_type, 'exercise': 'Hamstring Stretch',
             'sets': '1', 'duration': '60s', 'set_duration_seconds': 60, 'exercise_phase': 'cooldown'},
        ]
    return rows


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / 'trainer_test.db')


@pytest.fixture
def db(db_path):
    return Database(db_path)


@pytest.fixture
def seeded_db(db):
    seed_nike_rows(db, nike_program_rows())
    return db


@pytest.fixture
def make_app(db_path):
    """Build an app whose model client replays the given replies (offline by default)"""
    def _make(replies=None):
        fake = FakeOpenAI(replies or [RuntimeError('model offline')])
        app = create_app({
            'TESTING': True,
            'DB_PATH': db_path,
            'OPENAI_API_KEY': 'test-key',
            'OPENAI_MODEL': 'gpt-4o-mini',
            'DEBUG_WORKOUT': False,
            'SECRET_KEY': 'test-secret',
        }, ai_client=fake)
        app.fake_openai = fake
        return app
    return _make


@pytest.fixture
def app(make_app):
    return make_app()


@pytest.fixture
def client(app):
    return app.test_client()
