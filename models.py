import sqlite3
import json
import math
import uuid
from typing import Dict, List, Optional, Any

from equipment import canonical_equipment
from errors import SetLogError

DEFAULT_RPE = 7
DEFAULT_REST_SECONDS = 90


def rows_to_dicts(cursor) -> List[Dict[str, Any]]:
    columns = [col[0] for col in cursor.description]
    return [dict(zip(columns, row)) for row in cursor.fetchall()]


def _optional_number(value: Any, cast, field: str, position: int):
    if value is None or value == '':
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise SetLogError(f"set {position}: {field} must be a number, got {value!r}")
    if not math.isfinite(number) or number < 0:
        raise SetLogError(f"set {position}: {field} must be a non-negative number, got {value!r}")
    return cast(number)


def _clean_set(raw: Any, position: int) -> Dict[str, Any]:
    """Accepts the UI's camelCase set rows (exerciseName, setNumber, restSeconds...)"""
    if not isinstance(raw, dict):
        raise SetLogError(f"set {position} is not an object")
    name = raw.get('exerciseName') or raw.get('exercise_name') or raw.get('exercise')
    if not isinstance(name, str) or not name.strip():
        raise SetLogError(f"set {position} is missing exerciseName")

    weight = raw.get('actualWeight', raw.get('weight'))
    set_number = _optional_number(raw.get('setNumber', raw.get('set_number')), int, 'setNumber', position)
    rpe = _optional_number(raw.get('rpe'), float, 'rpe', position)
    rest = _optional_number(raw.get('restSeconds', raw.get('rest_seconds')), int, 'restSeconds', position)
    return {
        'exercise_name': name.strip(),
        'set_number': set_number or position,
        'weight': _optional_number(weight, float, 'weight', position),
        'reps': _optional_number(raw.get('reps'), int, 'reps', position),
        'rpe': rpe if rpe is not None else DEFAULT_RPE,
        'rest_seconds': rest if rest is not None else DEFAULT_REST_SECONDS,
    }


class Database:
    def __init__(self, db_path: str = 'workout_logs.db'):
        self.db_path = db_path
        self.init_database()

    def get_connection(self):
        conn = sqlite3.connect(self.db_path, timeout=30.0)
        conn.execute('PRAGMA foreign_keys = ON')
        conn.execute('PRAGMA journal_mode = WAL')
        return conn

    def init_database(self):
        conn = self.get_connection()
        cursor = conn.cursor()

        # Profiles - one row per auth user
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS profiles (
                user_id TEXT PRIMARY KEY,
                display_name TEXT,
                preferred_workout_duration INTEGER DEFAULT 45,
                training_goal TEXT,
                fitness_level TEXT,
                last_nike_workout INTEGER DEFAULT 0,
                profile_data TEXT NOT NULL DEFAULT '{}',
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        ''')

        # Equipment catalog
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS equipment (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT UNIQUE NOT NULL
            )
        ''')

        cursor.execute('''
            CREATE TABLE IF NOT EXISTS user_equipment (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id TEXT NOT NULL,
                equipment_id INTEGER,
                is_available BOOLEAN DEFAULT TRUE,
                custom_name TEXT,
                FOREIGN KEY (equipment_id) REFERENCES equipment (id)
            )
        ''')

        # Exercise library
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS exercises (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT UNIQUE NOT NULL,
                exercise_phase TEXT,
                primary_muscle TEXT,
                equipment_required TEXT DEFAULT '[]',
                instructions TEXT
            )
        ''')

        cursor.execute('''
            CREATE TABLE IF NOT EXISTS workout_sessions (
                id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL,
                workout_source TEXT NOT NULL,
                nike_workout_number INTEGER,
                workout_name TEXT,
                planned_exercises TEXT DEFAULT '[]',
                total_volume REAL DEFAULT 0,
                completed_at TIMESTAMP,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        ''')

        # One row per logged set; re-saving a set overwrites it
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS workout_sets (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                session_id TEXT NOT NULL,
                exercise_name TEXT NOT NULL,
                set_number INTEGER NOT NULL,
                weight REAL,
                reps INTEGER,
                rpe REAL DEFAULT 7,
                rest_seconds INTEGER DEFAULT 90,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                UNIQUE (session_id, exercise_name, set_number),
                FOREIGN KEY (session_id) REFERENCES workout_sessions (id)
            )
        ''')

        cursor.execute('''
            CREATE TABLE IF NOT EXISTS chat_sessions (
                id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL,
                messages TEXT NOT NULL DEFAULT '[]',
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        ''')

        # Fixed numbered program; several rows share one workout number
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS nike_workouts (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                workout INTEGER NOT NULL,
                workout_type TEXT,
                exercise TEXT NOT NULL,
                sets TEXT,
                reps TEXT,
                duration TEXT,
                set_duration_seconds INTEGER,
                instructions TEXT,
                exercise_type TEXT,
                exercise_phase TEXT,
                sort_order INTEGER DEFAULT 0
            )
        ''')

        cursor.execute('''
            CREATE TABLE IF NOT EXISTS generated_workouts (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id TEXT NOT NULL,
                session_id TEXT,
                split TEXT,
                minutes INTEGER,
                source TEXT,
                plan_data TEXT NOT NULL DEFAULT '{}',
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        ''')

        conn.commit()
        conn.close()


class Profile:
    def __init__(self, db: Database):
        self.db = db

    def get_profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        conn = self.db.get_connection()
        cursor = conn.cursor()
        cursor.execute('''
            SELECT user_id, display_name, preferred_workout_duration, training_goal,
                   fitness_level, last_nike_workout, profile_data
            FROM profiles WHERE user_id = ?
        ''', (user_id,))
        rows = rows_to_dicts(cursor)
        conn.close()

        if not rows:
            return None
        profile = rows[0]
        profile['profile_data'] = json.loads(profile['profile_data'] or '{}')
        return profile

    def ensure_profile(self, user_id: str):
        conn = self.db.get_connection()
        conn.execute('INSERT OR IGNORE INTO profiles (user_id) VALUES (?)', (user_id,))
        conn.commit()
        conn.close()

    def update_profile(self, user_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        allowed = ['display_name', 'preferred_workout_duration', 'training_goal', 'fitness_level']
        updates = {key: fields[key] for key in allowed if key in fields}
        extra = {key: value for key, value in fields.items() if key not in allowed and key != 'user_id'}

        self.ensure_profile(user_id)
        conn = self.db.get_connection()
        cursor = conn.cursor()
        for column, value in updates.items():
            cursor.execute(
                f'UPDATE profiles SET {column} = ?, updated_at = CURRENT_TIMESTAMP WHERE user_id = ?',
                (value, user_id)
            )
        if extra:
            cursor.execute('SELECT profile_data FROM profiles WHERE user_id = ?', (user_id,))
            data = json.loads(cursor.fetchone()[0] or '{}')
            data.update(extra)
            cursor.execute('''
                UPDATE profiles SET profile_data = ?, updated_at = CURRENT_TIMESTAMP
                WHERE user_id = ?
            ''', (json.dumps(data), user_id))
        conn.commit()
        conn.close()
        return self.get_profile(user_id)

    def preferred_minutes(self, user_id: str, default: int = 45) -> int:
        profile = self.get_profile(user_id)
        try:
            return int((profile or {}).get('preferred_workout_duration') or default)
        except (TypeError, ValueError):
            return default

    def get_nike_progress(self, user_id: str) -> int:
        profile = self.get_profile(user_id)
        return int((profile or {}).get('last_nike_workout') or 0)

    def set_nike_progress(self, user_id: str, workout_number: int):
        self.ensure_profile(user_id)
        conn = self.db.get_connection()
        conn.execute('''
            UPDATE profiles SET last_nike_workout = ?, updated_at = CURRENT_TIMESTAMP
            WHERE user_id = ?
        ''', (workout_number, user_id))
        conn.commit()
        conn.close()


class EquipmentStore:
    def __init__(self, db: Database):
        self.db = db

    def get_user_rows(self, user_id: str) -> List[Dict[str, Any]]:
        """user_equipment rows joined with the catalog name (None when the id is dangling)"""
        conn = self.db.get_connection()
        cursor = conn.cursor()
        cursor.execute('''
            SELECT ue.id, ue.user_id, ue.equipment_id, ue.is_available, ue.custom_name, e.name
            FROM user_equipment ue
            LEFT JOIN equipment e ON e.id = ue.equipment_id
            WHERE ue.user_id = ?
            ORDER BY ue.id
        ''', (user_id,))
        rows = rows_to_dicts(cursor)
        conn.close()

        for row in rows:
            row['is_available'] = None if row['is_available'] is None else bool(row['is_available'])
        return rows

    def get_available_names(self, user_id: str) -> List[str]:
        names = []
        seen = set()
        for row in self.get_user_rows(user_id):
            if row['is_available'] is False:
                continue
            name = row['custom_name'] or row['name']
            canon = canonical_equipment(name)
            if canon and canon not in seen:
                seen.add(canon)
                names.append(name)
        return names

    def get_or_create_equipment_id(self, name: str) -> int:
        conn = self.db.get_connection()
        cursor = conn.cursor()
        cursor.execute('SELECT id FROM equipment WHERE LOWER(name) = LOWER(?)', (name.strip(),))
        row = cursor.fetchone()
        if row:
            equipment_id = row[0]
        else:
            cursor.execute('INSERT INTO equipment (name) VALUES (?)', (name.strip(),))
            equipment_id = cursor.lastrowid
            conn.commit()
        conn.close()
        return equipment_id

    def set_user_equipment(self, user_id: str, names: List[str]) -> List[str]:
        """Replace a user's kit with the given names"""
        ids = [self.get_or_create_equipment_id(name) for name in names if isinstance(name, str) and name.strip()]
        conn = self.db.get_connection()
        cursor = conn.cursor()
        cursor.execute('DELETE FROM user_equipment WHERE user_id = ?', (user_id,))
        for equipment_id in ids:
            cursor.execute('''
                INSERT INTO user_equipment (user_id, equipment_id, is_available)
                VALUES (?, ?, TRUE)
            ''', (user_id, equipment_id))
        conn.commit()
        conn.close()
        return self.get_available_names(user_id)


class ExerciseLibrary:
    def __init__(self, db: Database):
        self.db = db

    def find_by_phase(self, exercise_phase: str, muscles: List[str]) -> List[Dict[str, Any]]:
        if not muscles:
            return []
        placeholders = ', '.join('?' for _ in muscles)
        conn = self.db.get_connection()
        cursor = conn.cursor()
        cursor.execute(f'''
            SELECT id, name, exercise_phase, primary_muscle, equipment_required, instructions
            FROM exercises
            WHERE exercise_phase = ? AND LOWER(primary_muscle) IN ({placeholders})
            ORDER BY id
        ''', [exercise_phase] + [m.lower() for m in muscles])
        rows = rows_to_dicts(cursor)
        conn.close()

        for row in rows:
            try:
                row['equipment_required'] = json.loads(row['equipment_required'] or '[]')
            except json.JSONDecodeError:
                row['equipment_required'] = []
        return rows

    def add_exercise(self, name: str, exercise_phase: str, primary_muscle: str,
                     equipment_required: List[str], instructions: str = None) -> int:
        conn = self.db.get_connection()
        cursor = conn.cursor()
        cursor.execute('''
            INSERT INTO exercises (name, exercise_phase, primary_muscle, equipment_required, instructions)
            VALUES (?, ?, ?, ?, ?)
        ''', (name, exercise_phase, primary_muscle, json.dumps(equipment_required), instructions))
        exercise_id = cursor.lastrowid
        conn.commit()
        conn.close()
        return exercise_id


class WorkoutSessions:
    def __init__(self, db: Database):
        self.db = db

    def create_session(self, user_id: str, workout_source: str, workout_name: str,
                       planned_exercises: Any, nike_workout_number: int = None) -> str:
        session_id = str(uuid.uuid4())
        conn = self.db.get_connection()
        conn.execute('''
            INSERT INTO workout_sessions
            (id, user_id, workout_source, nike_workout_number, workout_name, planned_exercises)
            VALUES (?, ?, ?, ?, ?, ?)
        ''', (session_id, user_id, workout_source, nike_workout_number, workout_name,
              json.dumps(planned_exercises)))
        conn.commit()
        conn.close()
        return session_id

    def get_session(self, session_id: str, user_id: str = None) -> Optional[Dict[str, Any]]:
        conn = self.db.get_connection()
        cursor = conn.cursor()
        cursor.execute('''
            SELECT id, user_id, workout_source, nike_workout_number, workout_name,
                   planned_exercises, total_volume, completed_at, created_at
            FROM workout_sessions WHERE id = ?
        ''', (session_id,))
        rows = rows_to_dicts(cursor)
        conn.close()

        if not rows or (user_id and rows[0]['user_id'] != user_id):
            return None
        session = rows[0]
        session['planned_exercises'] = json.loads(session['planned_exercises'] or '[]')
        return session

    def save_sets(self, session_id: str, sets: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Insert or overwrite logged sets, keyed by exercise and set number"""
        cleaned = [_clean_set(raw, position) for position, raw in enumerate(sets, start=1)]

        conn = self.db.get_connection()
        cursor = conn.cursor()
        for s in cleaned:
            cursor.execute('''
                INSERT INTO workout_sets (session_id, exercise_name, set_number, weight, reps, rpe, rest_seconds)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT (session_id, exercise_name, set_number) DO UPDATE SET
                    weight = excluded.weight,
                    reps = excluded.reps,
                    rpe = excluded.rpe,
                    rest_seconds = excluded.rest_seconds
            ''', (session_id, s['exercise_name'], s['set_number'], s['weight'], s['reps'],
                  s['rpe'], s['rest_seconds']))
        conn.commit()
        conn.close()
        return self.get_sets(session_id)

    def get_sets(self, session_id: str) -> List[Dict[str, Any]]:
        conn = self.db.get_connection()
        cursor = conn.cursor()
        cursor.execute('''
            SELECT exercise_name, set_number, weight, reps, rpe, rest_seconds
            FROM workout_sets
            WHERE session_id = ?
            ORDER BY id
        ''', (session_id,))
        rows = rows_to_dicts(cursor)
        conn.close()
        return rows

    def complete_workout(self, session_id: str) -> float:
        """Total volume (weight x reps over every logged set), stored on the session"""
        conn = self.db.get_connection()
        cursor = conn.cursor()
        cursor.execute('''
            SELECT COALESCE(SUM(COALESCE(weight, 0) * COALESCE(reps, 0)), 0)
            FROM workout_sets WHERE session_id = ?
        ''', (session_id,))
        total_volume = float(cursor.fetchone()[0])
        cursor.execute('''
            UPDATE workout_sessions SET total_volume = ?, completed_at = CURRENT_TIMESTAMP
            WHERE id = ?
        ''', (total_volume, session_id))
        conn.commit()
        conn.close()
        return total_volume

    def save_generated(self, user_id: str, plan: Dict[str, Any], source: str,
                       split: str = None, minutes: int = None, session_id: str = None) -> int:
        conn = self.db.get_connection()
        cursor = conn.cursor()
        cursor.execute('''
            INSERT INTO generated_workouts (user_id, session_id, split, minutes, source, plan_data)
            VALUES (?, ?, ?, ?, ?, ?)
        ''', (user_id, session_id, split, minutes, source, json.dumps(plan)))
        row_id = cursor.lastrowid
        conn.commit()
        conn.close()
        return row_id

    def get_generated(self, user_id: str, limit: int = 10) -> List[Dict[str, Any]]:
        conn = self.db.get_connection()
        cursor = conn.cursor()
        cursor.execute('''
            SELECT id, session_id, split, minutes, source, plan_data, created_at
            FROM generated_workouts
            WHERE user_id = ?
            ORDER BY id DESC LIMIT ?
        ''', (user_id, limit))
        rows = rows_to_dicts(cursor)
        conn.close()

        for row in rows:
            row['plan_data'] = json.loads(row['plan_data'] or '{}')
        return rows
