"""
Plan shape definitions.

A plan is plain JSON-compatible data so it can be stored and returned as-is:

    {
        "name": "Push Session (~45 min)",
        "duration_min": 45,
        "phases": [
            {"phase": "warmup", "items": [{"name": "Band Pull-Apart", "sets": 2, "reps": 15}]},
            {"phase": "main", "items": [...]},
            {"phase": "cooldown", "items": [...]}
        ]
    }

Items carry name (required), sets, reps, duration, instruction and isAccessory.
Anything else on an item is passed through untouched.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

PHASES = ['warmup', 'main', 'accessory', 'conditioning', 'cooldown']
CORE_PHASES = ['warmup', 'main', 'cooldown']

PHASE_ALIASES = {
    'warmup': 'warmup',
    'warm-up': 'warmup',
    'warm_up': 'warmup',
    'warm up': 'warmup',
    'prep': 'warmup',
    'activation': 'warmup',
    'main': 'main',
    'strength': 'main',
    'workout': 'main',
    'main_lifts': 'main',
    'mainexercises': 'main',
    'accessory': 'accessory',
    'accessories': 'accessory',
    'conditioning': 'conditioning',
    'finisher': 'conditioning',
    'carry_block': 'conditioning',
    'metcon': 'conditioning',
    'cooldown': 'cooldown',
    'cool-down': 'cooldown',
    'cool_down': 'cooldown',
    'cool down': 'cooldown',
    'stretch': 'cooldown',
}

DEFAULT_DURATION_MIN = 45
DEFAULT_PLAN_NAME = 'Workout'


def canonical_phase(tag: Any) -> Optional[str]:
    """Map a phase tag (or one of its aliases) onto the closed phase set"""
    if not isinstance(tag, str):
        return None
    return PHASE_ALIASES.get(tag.strip().lower())


def phase_order(tag: str) -> int:
    return PHASES.index(tag) if tag in PHASES else len(PHASES)


@dataclass
class RecognizedPlan:
    """Payload that looks like a plan (phase list or phase-keyed workout)"""
    plan: Dict[str, Any]


@dataclass
class UnrecognizedPayload:
    """Payload that cannot be read as a plan"""
    raw: Any
    reason: str


def _is_phase_keyed(obj: Dict[str, Any]) -> bool:
    return any(canonical_phase(key) and isinstance(value, list) for key, value in obj.items())


def classify_payload(obj: Any):
    """Decide whether extracted model output is a plan we can normalize"""
    if obj is None:
        return UnrecognizedPayload(obj, 'empty')
    if not isinstance(obj, dict):
        return UnrecognizedPayload(obj, f'expected object, got {type(obj).__name__}')

    if isinstance(obj.get('phases'), list):
        return RecognizedPlan(obj)
    if isinstance(obj.get('phases'), dict):
        return RecognizedPlan(obj)
    if isinstance(obj.get('workout'), dict) and _is_phase_keyed(obj['workout']):
        return RecognizedPlan(obj)
    if isinstance(obj.get('plan'), dict):
        inner = classify_payload(obj['plan'])
        if isinstance(inner, RecognizedPlan):
            return inner
    if _is_phase_keyed(obj):
        return RecognizedPlan(obj)

    return UnrecognizedPayload(obj, 'no phases found')


def validate_plan(plan: Any) -> List[str]:
    """Return a list of invariant violations; empty means the plan is valid"""
    problems = []
    if not isinstance(plan, dict):
        return ['plan is not an object']

    if not isinstance(plan.get('duration_min'), int) or isinstance(plan.get('duration_min'), bool):
        problems.append('duration_min must be an integer')

    phases = plan.get('phases')
    if not isinstance(phases, list):
        return problems + ['phases must be a list']

    seen = set()
    for index, block in enumerate(phases):
        if not isinstance(block, dict) or block.get('phase') not in PHASES:
            problems.append(f'phase #{index} has no recognized tag')
            continue
        seen.add(block['phase'])
        items = block.get('items')
        if not isinstance(items, list):
            problems.append(f"phase '{block['phase']}' items must be a list")
            continue
        for item in items:
            name = item.get('name') if isinstance(item, dict) else None
            if not isinstance(name, str) or not name.strip():
                problems.append(f"phase '{block['phase']}' has an item without a name")

    for core in CORE_PHASES:
        if core not in seen:
            problems.append(f"missing '{core}' phase")

    return problems
