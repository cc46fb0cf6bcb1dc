import os
import sqlite3
import psycopg2

import config

CREATE_TABLES_SQL = """
CREATE TABLE IF NOT EXISTS profiles (
    user_id TEXT PRIMARY KEY,
    display_name TEXT,
    preferred_workout_duration INTEGER DEFAULT 45,
    training_goal TEXT,
    fitness_level TEXT,
    last_nike_workout INTEGER DEFAULT 0,
    profile_data TEXT NOT NULL DEFAULT '{}',
    created_at TEXT DEFAULT (NOW()::TEXT),
    updated_at TEXT DEFAULT (NOW()::TEXT)
);

CREATE TABLE IF NOT EXISTS equipment (
    id SERIAL PRIMARY KEY,
    name TEXT UNIQUE NOT NULL
);

CREATE TABLE IF NOT EXISTS user_equipment (
    id SERIAL PRIMARY KEY,
    user_id TEXT NOT NULL,
    equipment_id INTEGER REFERENCES equipment (id),
    is_available BOOLEAN DEFAULT TRUE,
    custom_name TEXT
);

CREATE TABLE IF NOT EXISTS exercises (
    id SERIAL PRIMARY KEY,
    name TEXT UNIQUE NOT NULL,
    exercise_phase TEXT,
    primary_muscle TEXT,
    equipment_required TEXT DEFAULT '[]',
    instructions TEXT
);

CREATE TABLE IF NOT EXISTS workout_sessions (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    workout_source TEXT NOT NULL,
    nike_workout_number INTEGER,
    workout_name TEXT,
    planned_exercises TEXT DEFAULT '[]',
    total_volume REAL DEFAULT 0,
    completed_at TEXT,
    created_at TEXT DEFAULT (NOW()::TEXT)
);

CREATE TABLE IF NOT EXISTS workout_sets (
    id SERIAL PRIMARY KEY,
    session_id TEXT NOT NULL REFERENCES workout_sessions (id),
    exercise_name TEXT NOT NULL,
    set_number INTEGER NOT NULL,
    weight REAL,
    reps INTEGER,
    rpe REAL DEFAULT 7,
    rest_seconds INTEGER DEFAULT 90,
    created_at TEXT DEFAULT (NOW()::TEXT),
    UNIQUE (session_id, exercise_name, set_number)
);

CREATE TABLE IF NOT EXISTS chat_sessions (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    messages TEXT NOT NULL DEFAULT '[]',
    created_at TEXT DEFAULT (NOW()::TEXT),
    updated_at TEXT DEFAULT (NOW()::TEXT)
);

CREATE TABLE IF NOT EXISTS nike_workouts (
    id SERIAL PRIMARY KEY,
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
);

CREATE TABLE IF NOT EXISTS generated_workouts (
    id SERIAL PRIMARY KEY,
    user_id TEXT NOT NULL,
    session_id TEXT,
    split TEXT,
    minutes INTEGER,
    source TEXT,
    plan_data TEXT NOT NULL DEFAULT '{}',
    created_at TEXT DEFAULT (NOW()::TEXT)
);
"""

# Parents before children so the foreign keys hold
TABLES_TO_MIGRATE = [
    'profiles', 'equipment', 'user_equipment', 'exercises',
    'workout_sessions', 'workout_sets', 'chat_sessions', 'nike_workouts', 'generated_workouts',
]

# SQLite stores these as 0/1; Postgres wants real booleans
BOOLEAN_COLUMNS = {'user_equipment': ['is_available']}


def _convert_row(table, columns, row):
    row = list(row)
    for column in BOOLEAN_COLUMNS.get(table, []):
        if column in columns:
            index = columns.index(column)
            if row[index] is not None:
                row[index] = bool(row[index])
    return row


def migrate_to_postgres(sqlite_path=None, database_url=None):
    """Copy every trainer table from SQLite into PostgreSQL; returns rows copied per table"""
    database_url = database_url or config.DATABASE_URL or os.environ.get('DATABASE_URL')
    if not database_url:
        raise RuntimeError('DATABASE_URL is not set')

    # Connect to existing SQLite database
    sqlite_conn = sqlite3.connect(sqlite_path or config.DB_PATH)
    sqlite_cursor = sqlite_conn.cursor()

    postgres_conn = psycopg2.connect(database_url)
    postgres_cursor = postgres_conn.cursor()
    migrated = {}

    try:
        postgres_cursor.execute(CREATE_TABLES_SQL)

        for table in TABLES_TO_MIGRATE:
            try:
                sqlite_cursor.execute(f"SELECT * FROM {table}")
            except sqlite3.OperationalError as e:
                print(f"Table {table} doesn't exist in SQLite: {e}")
                continue

            rows = sqlite_cursor.fetchall()
            migrated[table] = len(rows)
            if not rows:
                continue

            columns = [description[0] for description in sqlite_cursor.description]
            columns_str = ', '.join(columns)
            placeholders = ', '.join(['%s'] * len(columns))

            insert_sql = f"INSERT INTO {table} ({columns_str}) VALUES ({placeholders}) ON CONFLICT DO NOTHING"
            postgres_cursor.executemany(insert_sql, [_convert_row(table, columns, row) for row in rows])
            print(f"Migrated {len(rows)} rows from {table}")

        # SERIAL sequences don't advance on explicit ids
        for table in TABLES_TO_MIGRATE:
            if table in migrated and table not in ('profiles', 'workout_sessions', 'chat_sessions'):
                postgres_cursor.execute(
                    f"SELECT setval(pg_get_serial_sequence('{table}', 'id'), "
                    f"COALESCE((SELECT MAX(id) FROM {table}), 1))"
                )

        postgres_conn.commit()
        print("Migration completed successfully!")
        return migrated

    except Exception as e:
        print(f"Migration failed: {e}")
        postgres_conn.rollback()
        raise

    finally:
        sqlite_conn.close()
        postgres_conn.close()


if __name__ == "__main__":
    migrate_to_postgres()
