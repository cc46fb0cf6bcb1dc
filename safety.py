from typing import Any, Dict, List, Tuple

# High-skill Olympic lifts we never program unsupervised
SWAPS = {
    'Snatch': ['Kettlebell Swing', 'Trap Bar Deadlift'],
    'Power Clean': ['Trap Bar Deadlift', 'Kettlebell Swing'],
    'Hang Clean': ['Romanian Deadlift', 'High Pull (light)'],
    'Clean and Jerk': ['Front Squat', 'Overhead Press'],
    'Clean & Jerk': ['Front Squat', 'Overhead Press'],
    'Clean': ['Trap Bar Deadlift', 'Romanian Deadlift'],
}

BLOCKED = {name.lower(): name for name in SWAPS}
DEFAULT_SWAP = 'Kettlebell Swing'
SWAP_NOTE = '(auto-swapped for safety)'


def blocked_name(name: Any):
    """Canonical blocked-table key for an item name, or None when allowed"""
    if not isinstance(name, str):
        return None
    return BLOCKED.get(' '.join(name.split()).lower())


def sanitize(plan: Dict[str, Any]) -> Tuple[Dict[str, Any], List[str]]:
    """Swap blocked lifts for safe alternatives, in place.

    Returns the same plan plus the original names that were replaced, one entry
    per occurrence.
    """
    blocked = []
    for block in plan.get('phases', []):
        for item in block.get('items', []):
            key = blocked_name(item.get('name'))
            if key is None:
                continue

            blocked.append(item['name'])
            alternatives = SWAPS.get(key) or [DEFAULT_SWAP]
            item['name'] = alternatives[0]
            instruction = item.get('instruction') or ''
            item['instruction'] = f"{instruction} {SWAP_NOTE}".strip()
            item['substitutions'] = alternatives[1:]

    return plan, blocked
