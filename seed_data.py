import csv
import sqlite3
import sys

import config
from models import Database, ExerciseLibrary

NIKE_COLUMNS = [
    'workout', 'workout_type', 'exercise', 'sets', 'reps', 'duration',
    'set_duration_seconds', 'instructions', 'exercise_type', 'exercise_phase', 'sort_order',
]

CORE_LIFTS = [
    ('Barbell Bench Press', 'chest', ['Barbell', 'Bench', 'Squat Rack']),
    ('Dumbbell Bench Press', 'chest', ['Dumbbells', 'Bench']),
    ('Standing Overhead Press', 'shoulders', ['Barbell']),
    ('Barbell Row', 'back', ['Barbell']),
    ('Pull-Up', 'back', ['Pull-Up Bar']),
    ('Back Squat', 'quadriceps', ['Barbell', 'Squat Rack']),
    ('Goblet Squat', 'quadriceps', ['Kettlebell']),
    ('Romanian Deadlift', 'hamstrings', ['Barbell']),
    ('Hip Thrust', 'glutes', ['Barbell', 'Bench']),
]


def seed_core_lifts(db):
    """Core lifts used by the workout proposal route; skips names already present"""
    library = ExerciseLibrary(db)
    added = 0
    for name, muscle, equipment in CORE_LIFTS:
        try:
            library.add_exercise(name, 'core_lift', muscle, equipment)
            added += 1
        except sqlite3.IntegrityError:
            continue
    print(f"SEED: {added} core lifts added")
    return added


def seed_nike_rows(db, rows):
    """Insert program rows (dicts keyed by NIKE_COLUMNS)"""
    conn = db.get_connection()
    cursor = conn.cursor()
    placeholders = ', '.join('?' for _ in NIKE_COLUMNS)
    for index, row in enumerate(rows):
        values = [row.get(column) for column in NIKE_COLUMNS]
        if values[-1] is None:
            values[-1] = index
        cursor.execute(
            f"INSERT INTO nike_workouts ({', '.join(NIKE_COLUMNS)}) VALUES ({placeholders})",
            values
        )
    conn.commit()
    conn.close()
    return len(rows)


def load_nike_csv(db, path):
    """Replace the program with rows from a CSV export of nike_workouts"""
    with open(path, newline='') as handle:
        rows = [
            {key: (value if value != '' else None) for key, value in row.items() if key in NIKE_COLUMNS}
            for row in csv.DictReader(handle)
        ]

    conn = db.get_connection()
    conn.execute('DELETE FROM nike_workouts')
    conn.commit()
    conn.close()

    count = seed_nike_rows(db, rows)
    print(f"SEED: {count} Nike program rows loaded from {path}")
    return count


if __name__ == '__main__':
    database = Database(config.DB_PATH)
    seed_core_lifts(database)
    if len(sys.argv) > 1:
        load_nike_csv(database, sys.argv[1])
