"""
Rule-based backup plans.

Used whenever plan generation fails, times out, or comes back unparseable. No
network, no database, never raises, and never hands back an empty phase, so the
chat route always has something to show.
"""

from typing import Any, Dict, List, Tuple

from config import DEFAULT_MINUTES
from equipment import has_equipment
from intent import canonical_split
from plan_normalize import plan_to_workout

MIN_MINUTES = 10
MAX_MINUTES = 120


def clamp_minutes(minutes: Any) -> int:
    try:
        value = int(minutes)
    except (TypeError, ValueError, OverflowError):
        return DEFAULT_MINUTES
    if value <= 0:
        return DEFAULT_MINUTES
    return max(MIN_MINUTES, min(value, MAX_MINUTES))


def _main_items(split: str, equipment: List[str]) -> List[Dict[str, Any]]:
    def has(needed):
        return has_equipment(equipment, needed)

    if split == 'push':
        return [
            {'name': 'Barbell Bench Press' if has('barbell') else 'Dumbbell Bench Press', 'sets': 4, 'reps': '6-8'},
            {'name': 'Overhead Press (DB or Barbell)', 'sets': 3, 'reps': '8-10'},
            {'name': 'Incline DB Press', 'sets': 3, 'reps': '10-12', 'isAccessory': True},
            {'name': 'Cable Triceps Pressdown' if has('cable') else 'DB Overhead Triceps Extension',
             'sets': 3, 'reps': '10-12', 'isAccessory': True},
        ]
    if split == 'pull':
        return [
            {'name': 'Lat Pulldown' if has('cable') else 'Pull-Up or Assisted Pull-Up', 'sets': 4, 'reps': '6-8'},
            {'name': 'One-Arm DB Row', 'sets': 3, 'reps': '8-10'},
            {'name': 'Chest-Supported Row', 'sets': 3, 'reps': '10-12', 'isAccessory': True},
            {'name': 'DB Hammer Curl', 'sets': 3, 'reps': '10-12', 'isAccessory': True},
        ]
    if split == 'legs':
        return [
            {'name': 'Back Squat' if has('barbell') else 'Goblet Squat', 'sets': 4, 'reps': '6-8'},
            {'name': 'Romanian Deadlift (DB or Barbell)', 'sets': 3, 'reps': '8-10'},
            {'name': 'Walking Lunge (DB)', 'sets': 3, 'reps': '10 each', 'isAccessory': True},
            {'name': 'Seated Calf Raise (Machine or DB on knees)', 'sets': 3, 'reps': '12-15', 'isAccessory': True},
        ]
    if split == 'upper':
        return [
            {'name': 'Barbell Bench Press' if has('barbell') else 'Dumbbell Bench Press', 'sets': 4, 'reps': '6-8'},
            {'name': 'Lat Pulldown' if has('cable') else 'One-Arm DB Row', 'sets': 4, 'reps': '8-10'},
            {'name': 'Shoulder Press', 'sets': 3, 'reps': '8-10'},
            {'name': 'DB Hammer Curl', 'sets': 3, 'reps': '10-12', 'isAccessory': True},
        ]
    if split == 'hiit':
        return [
            {'name': 'Row Erg Intervals 30/30' if has('rower') else 'Bike Intervals 30/30', 'duration': '10 min'},
            {'name': 'Kettlebell Swing EMOM' if has('kettlebell') else 'Burpee EMOM', 'duration': '5 min'},
            {'name': 'Battle Rope 20/10 x 6' if has('battle rope') else 'Mountain Climber 20/10 x 6',
             'duration': '3 min'},
        ]
    return [{'name': 'Full Body Circuit (DB)', 'sets': 3, 'reps': '12'}]


def make_title(split: str, minutes: Any) -> str:
    if not split:
        return f"Session (~{clamp_minutes(minutes)} min)"
    return f"{split[0].upper() + split[1:]} Session (~{clamp_minutes(minutes)} min)"


def build_rule_based_backup(split: str, minutes: Any, equipment: List[str]) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """Deterministic plan + workout for a split, shaped to the user's equipment"""
    split = canonical_split(split) or ''
    minutes = clamp_minutes(minutes)
    equipment = [e for e in (equipment or []) if isinstance(e, str)]

    warmup = [
        {'name': 'Bike Easy' if has_equipment(equipment, 'bike') else 'Jumping Jacks', 'duration': '3 min'},
        {'name': 'Band Pull-Apart', 'sets': 2, 'reps': 15},
    ]
    cooldown = [
        {'name': "Child's Pose", 'duration': '60s'},
        {'name': 'Doorway Pec Stretch', 'duration': '60s'},
    ]
    main = _main_items(split, equipment)

    phases = [{'phase': 'warmup', 'items': warmup}]
    if split == 'hiit':
        phases.append({'phase': 'main', 'items': [{'name': 'Tempo Air Squat', 'sets': 2, 'reps': 15}]})
        phases.append({'phase': 'conditioning', 'items': main})
    else:
        lifts = [item for item in main if not item.get('isAccessory')]
        accessories = [item for item in main if item.get('isAccessory')]
        phases.append({'phase': 'main', 'items': lifts})
        if accessories:
            phases.append({'phase': 'accessory', 'items': accessories})
    phases.append({'phase': 'cooldown', 'items': cooldown})

    plan = {
        'name': make_title(split, minutes),
        'duration_min': minutes,
        'split': split or None,
        'source': 'backup',
        'phases': phases,
    }
    return plan, plan_to_workout(plan)


def fallback_bodyweight_plan(minutes: Any) -> Dict[str, Any]:
    """Small bodyweight session for the chat builder when generation fails"""
    capped = min(clamp_minutes(minutes), 45)
    return {
        'name': 'Bodyweight Strength Focus',
        'duration_min': capped,
        'est_total_minutes': capped,
        'source': 'backup',
        'phases': [
            {'phase': 'warmup', 'items': [
                {'name': 'Arm Circles', 'sets': 1, 'reps': '10 each direction', 'instruction': 'Large, smooth circles'},
                {'name': 'Hip Openers', 'sets': 1, 'reps': '10/side', 'instruction': 'Controlled range'},
            ]},
            {'phase': 'main', 'items': [
                {'name': 'Bodyweight Squat', 'sets': 3, 'reps': '12-15', 'instruction': 'Chest tall'},
                {'name': 'Push-Up', 'sets': 3, 'reps': '8-12', 'instruction': 'Full range'},
            ]},
            {'phase': 'accessory', 'items': [
                {'name': 'Walking Lunge', 'sets': 2, 'reps': '10/side', 'instruction': 'Knee under hip',
                 'isAccessory': True},
                {'name': 'Side Plank', 'sets': 2, 'reps': '20-30s/side', 'instruction': 'Ribs down',
                 'isAccessory': True},
            ]},
            {'phase': 'cooldown', 'items': [
                {'name': "Child's Pose", 'sets': 1, 'reps': '45-60s', 'instruction': 'Easy breathing'},
            ]},
        ],
    }
