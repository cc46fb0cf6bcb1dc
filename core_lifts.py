import logging
from typing import Any, Dict, List

from equipment import requirements_met
from models import ExerciseLibrary

logger = logging.getLogger(__name__)

FOCUS_MAP = {
    'push': ['chest', 'shoulders', 'triceps'],
    'pull': ['back', 'biceps'],
    'legs': ['quadriceps', 'hamstrings', 'glutes'],
    'chest': ['chest'],
    'shoulders': ['shoulders'],
    'back': ['back'],
}

FALLBACK_LIFT = {'name': 'Push-up', 'equipment_required': ['bodyweight']}

DEFAULT_ACCESSORIES = [
    {'name': 'Dumbbell Flyes', 'sets': 3, 'reps': '12-15'},
    {'name': 'Overhead Press', 'sets': 3, 'reps': '10-12'},
    {'name': 'Lateral Raises', 'sets': 3, 'reps': '15-20'},
]


def build_core_lift_pool(library: ExerciseLibrary, focus: str, equipment: List[str]) -> List[Dict[str, Any]]:
    """Core lifts for a focus that the user's equipment can cover; never empty"""
    muscles = FOCUS_MAP.get((focus or '').lower(), [focus] if focus else [])
    candidates = library.find_by_phase('core_lift', muscles)
    pool = [
        {'name': row['name'], 'equipment_required': row['equipment_required']}
        for row in candidates
        if requirements_met(equipment, row['equipment_required'])
    ]
    logger.info(f"🏋️ Core lift pool for {focus}: {[lift['name'] for lift in pool]}")
    return pool or [dict(FALLBACK_LIFT)]


def propose_workout(focus: str, minutes: Any, core_pool: List[Dict[str, Any]]) -> Dict[str, Any]:
    core_lift = core_pool[0] if core_pool else FALLBACK_LIFT
    if core_lift['name'] == FALLBACK_LIFT['name']:
        logger.warning(f"⚠️ Fallback core lift used - no equipment match for focus: {focus}")

    accessories = [dict(a) for a in DEFAULT_ACCESSORIES]
    return {
        'focus': focus,
        'minutes': minutes,
        'coreLift': core_lift['name'],
        'accessoriesList': ', '.join(a['name'] for a in accessories),
        'warmup': [
            {'name': 'Arm Circles', 'reps': '10 each way'},
            {'name': 'Push-up to T', 'reps': '8 each side'},
        ],
        'mainLift': {
            'name': core_lift['name'],
            'sets': 4,
            'reps': '8-10',
            'rest': '2-3 min',
        },
        'accessories': accessories,
        'cooldown': [
            {'name': 'Chest Stretch', 'duration': '30 sec each side'},
            {'name': 'Shoulder Stretch', 'duration': '30 sec each arm'},
        ],
    }
