"""
Nike program lookup.

The program is a fixed, pre-seeded table of numbered workouts (24 of them in the
seeded data); each workout number spans several rows, one per exercise. Numbers
past the end of the program wrap back to workout 1, and the per-user "next
workout" counter wraps the same way. Natural-language requests that can't be
pinned to rows come back unresolved so the caller can ask instead of guessing.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from errors import NikeResolutionError
from intent import extract_nike_hints
from models import Database, Profile, rows_to_dicts

logger = logging.getLogger(__name__)

CONFIDENCE_THRESHOLD = 0.8
DEFAULT_SET_SECONDS = 30


@dataclass
class NikeResolution:
    ok: bool
    rows: List[Dict[str, Any]] = field(default_factory=list)
    reason: Optional[str] = None
    suggestion: Optional[Dict[str, Any]] = None
    number: Optional[int] = None


def wrap_workout_number(number: int, length: int) -> int:
    """1-based wrap: with 24 workouts, 25 -> 1 and 0 -> 24"""
    if length <= 0:
        raise NikeResolutionError('Nike program is empty', reason='empty_program')
    return ((int(number) - 1) % length) + 1


def _to_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def rows_to_workout(rows: List[Dict[str, Any]]) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """Group program rows by phase into a plan and a warmup/main/cooldown workout"""
    def item(row, with_accessory=False):
        entry = {
            'name': row.get('exercise'),
            'sets': row.get('sets'),
            'reps': row.get('reps'),
            'instruction': row.get('instructions'),
        }
        if row.get('duration'):
            entry['duration'] = row['duration']
        if with_accessory:
            entry['isAccessory'] = (row.get('exercise_type') or '').lower() == 'accessory'
        return entry

    warmup = [item(r) for r in rows if r.get('exercise_phase') == 'warmup']
    main = [item(r, True) for r in rows if r.get('exercise_phase') not in ('warmup', 'cooldown')]
    cooldown = [item(r) for r in rows if r.get('exercise_phase') == 'cooldown']

    number = rows[0].get('workout') if rows else 1
    plan = {
        'name': f"Nike Workout {number or 1}",
        'workout_type': rows[0].get('workout_type') if rows else None,
        'source': 'nike',
        'phases': [
            {'phase': 'warmup', 'items': warmup},
            {'phase': 'main', 'items': main},
            {'phase': 'cooldown', 'items': cooldown},
        ],
    }
    return plan, {'warmup': warmup, 'main': main, 'cooldown': cooldown}


class NikeProgram:
    def __init__(self, db: Database):
        self.db = db
        self.profiles = Profile(db)

    def program_length(self) -> int:
        conn = self.db.get_connection()
        cursor = conn.cursor()
        cursor.execute('SELECT MAX(workout) FROM nike_workouts')
        result = cursor.fetchone()[0]
        conn.close()
        return int(result or 0)

    def list_workouts(self) -> List[Dict[str, Any]]:
        conn = self.db.get_connection()
        cursor = conn.cursor()
        cursor.execute('''
            SELECT workout, MIN(workout_type)
            FROM nike_workouts
            GROUP BY workout
            ORDER BY workout
        ''')
        workouts = [{'number': row[0], 'name': row[1] or f"Workout {row[0]}"} for row in cursor.fetchall()]
        conn.close()
        return workouts

    def get_workout_rows(self, number: int, type_hint: str = None, eccentric: bool = False) -> List[Dict[str, Any]]:
        query = '''
            SELECT workout, workout_type, exercise, sets, reps, duration, set_duration_seconds,
                   instructions, exercise_type, exercise_phase
            FROM nike_workouts
            WHERE workout = ?
        '''
        params: List[Any] = [number]
        if type_hint:
            query += ' AND LOWER(workout_type) LIKE ?'
            params.append(f"%{type_hint.lower()}%")
        if eccentric:
            query += " AND (LOWER(instructions) LIKE '%eccent%' OR LOWER(exercise_type) LIKE '%eccent%')"
        query += ' ORDER BY sort_order, id'

        conn = self.db.get_connection()
        cursor = conn.cursor()
        cursor.execute(query, params)
        rows = rows_to_dicts(cursor)
        conn.close()
        return rows

    def resolve_number(self, number: int) -> NikeResolution:
        """Rows for a workout number, wrapping past the end of the program"""
        length = self.program_length()
        if length == 0:
            return NikeResolution(ok=False, reason='empty_program')
        wrapped = wrap_workout_number(number, length)
        rows = self.get_workout_rows(wrapped)
        if not rows:
            return NikeResolution(ok=False, reason='not_found', number=wrapped)
        return NikeResolution(ok=True, rows=rows, number=wrapped)

    def resolve_from_text(self, text: str, guess: Dict[str, Any] = None) -> NikeResolution:
        hints = extract_nike_hints(text)
        guess = guess or {}

        index = guess.get('index') or hints.index
        workout_type = (guess.get('type') or hints.type_hint or '').lower() or None
        confidence = guess.get('confidence') or 0

        # Only run a workout outright on a confident guess or an explicit number plus type
        confident = confidence >= CONFIDENCE_THRESHOLD or bool(index and workout_type)
        if not confident:
            return NikeResolution(
                ok=False,
                reason='low_confidence',
                suggestion={'index': index, 'type': workout_type, 'keywords': hints.keywords}
            )

        length = self.program_length()
        if length == 0:
            return NikeResolution(ok=False, reason='empty_program')
        number = wrap_workout_number(index or 1, length)

        descriptors = list(guess.get('descriptors') or []) + hints.keywords
        eccentric = any('eccent' in d for d in descriptors)

        rows = self.get_workout_rows(number, workout_type, eccentric)
        if not rows and eccentric:
            # descriptor is a preference, not a requirement
            rows = self.get_workout_rows(number, workout_type)
        if not rows:
            return NikeResolution(
                ok=False,
                reason='not_found',
                suggestion={'index': number, 'type': workout_type, 'keywords': hints.keywords},
                number=number
            )
        return NikeResolution(ok=True, rows=rows, number=number)

    def load_next_workout(self, user_id: str) -> Dict[str, Any]:
        """Next workout after the user's last completed one; bumps the counter"""
        length = self.program_length()
        if length == 0:
            raise NikeResolutionError('Nike program is empty', reason='empty_program')

        last = self.profiles.get_nike_progress(user_id)
        number = last + 1 if 0 <= last < length else 1
        rows = self.get_workout_rows(number)
        if not rows:
            raise NikeResolutionError(f"Nike workout {number} has no rows", reason='not_found')

        self.profiles.set_nike_progress(user_id, number)
        logger.info(f"🏃 {user_id} -> Nike workout {number}")

        minutes = sum(
            (_to_int(r.get('set_duration_seconds'), DEFAULT_SET_SECONDS) or DEFAULT_SET_SECONDS)
            * _to_int(r.get('sets'), 1) / 60
            for r in rows
        )
        return {
            'workoutNo': number,
            'workoutType': rows[0].get('workout_type'),
            'minutes': round(minutes),
            'mainSets': [
                {
                    'exercise': r.get('exercise'),
                    'sets': _to_int(r.get('sets'), 1),
                    'reps': r.get('reps'),
                    'notes': r.get('instructions'),
                }
                for r in rows if r.get('exercise_phase') not in ('warmup', 'cooldown')
            ],
            'warmup': [r.get('exercise') for r in rows if r.get('exercise_phase') == 'warmup'],
            'cooldown': [r.get('exercise') for r in rows if r.get('exercise_phase') == 'cooldown'],
            'accessories': [r.get('exercise') for r in rows if (r.get('exercise_type') or '').lower() == 'accessory'],
        }

    def current_number(self, user_id: str) -> Optional[int]:
        """The workout the user is up to next, for highlighting in lists"""
        length = self.program_length()
        if length == 0:
            return None
        last = self.profiles.get_nike_progress(user_id)
        return wrap_workout_number(last + 1, length)

    def finish_workout(self, user_id: str, number: int) -> int:
        """Record a completed workout; progress only ever moves forward"""
        current = self.profiles.get_nike_progress(user_id)
        if number >= current:
            self.profiles.set_nike_progress(user_id, number)
            return number
        return current
