import copy
import json
import re
from typing import Any, Dict, List, Optional

from plan_schema import (
    CORE_PHASES,
    DEFAULT_DURATION_MIN,
    DEFAULT_PLAN_NAME,
    PHASES,
    canonical_phase,
    phase_order,
)

FENCE_RE = re.compile(r'```(?:json)?\s*([\s\S]*?)```', re.IGNORECASE)
DIGITS_RE = re.compile(r'^\d+$', re.ASCII)
TRUTHY_STRINGS = {'true', 'yes', 'y', '1'}

SECTION_LABELS = {
    'warmup': '🔥 Warm-up',
    'main': '💪 Main',
    'accessory': '➕ Accessory',
    'conditioning': '⚡ Conditioning',
    'cooldown': '🧘 Cool-down',
}


def try_extract_json(text: Any) -> Optional[Any]:
    """Pull a JSON value out of model text that may be fenced or wrapped in prose"""
    if not isinstance(text, str):
        return None
    raw = text.strip()
    if not raw:
        return None

    try:
        return json.loads(raw)
    except ValueError:
        pass

    fence = FENCE_RE.search(raw)
    if fence:
        try:
            return json.loads(fence.group(1))
        except ValueError:
            pass

    start = raw.find('{')
    end = raw.rfind('}')
    if start >= 0 and end > start:
        try:
            return json.loads(raw[start:end + 1])
        except ValueError:
            pass

    return None


def _to_int(value: Any) -> Optional[int]:
    """Digit strings and whole numbers become ints; everything else is None"""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(round(value)) if value == value and abs(value) != float('inf') else None
    if isinstance(value, str) and DIGITS_RE.match(value.strip()):
        return int(value.strip())
    return None


def _to_text(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    return None


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in TRUTHY_STRINGS
    return bool(value)


def _item_name(item: Dict[str, Any]) -> str:
    for key in ('name', 'exercise', 'display_name'):
        value = item.get(key)
        if isinstance(value, bool):
            continue
        if isinstance(value, (str, int, float)):
            name = str(value).strip()
            if name:
                return name
    return ''


def _normalize_item(item: Any) -> Optional[Dict[str, Any]]:
    if not isinstance(item, dict):
        return None
    name = _item_name(item)
    if not name:
        return None

    out = dict(item)
    out['name'] = name

    sets = item.get('sets')
    if isinstance(sets, list):
        # per-set prescriptions: keep the count, borrow the first set's reps
        first = sets[0] if sets and isinstance(sets[0], dict) else {}
        if 'reps' not in item and first.get('reps') is not None:
            out['reps'] = first.get('reps')
        sets = len(sets)
    sets = _to_int(sets)
    if sets is None:
        out.pop('sets', None)
    else:
        out['sets'] = sets

    reps = out.get('reps')
    if isinstance(reps, str) or (isinstance(reps, int) and not isinstance(reps, bool)):
        out['reps'] = reps
    elif isinstance(reps, float) and reps.is_integer():
        out['reps'] = int(reps)
    else:
        out.pop('reps', None)

    duration = _to_text(item.get('duration'))
    if duration is None and _to_int(item.get('duration_seconds')) is not None:
        duration = f"{_to_int(item.get('duration_seconds'))}s"
    if duration is None:
        out.pop('duration', None)
    else:
        out['duration'] = duration

    instruction = _to_text(item.get('instruction'))
    if instruction is None:
        instruction = _to_text(item.get('instructions')) or _to_text(item.get('notes'))
    if instruction is None:
        out.pop('instruction', None)
    else:
        out['instruction'] = instruction

    if 'isAccessory' in item:
        out['isAccessory'] = _to_bool(item['isAccessory'])

    return out


def _block_items(value: Any) -> Any:
    if isinstance(value, dict):
        for key in ('items', 'exercises'):
            if key in value:
                return value[key]
    return value


def _raw_blocks(source: Dict[str, Any]) -> List[Any]:
    """Phase blocks from a phase list, a phase dict, or a phase-keyed workout"""
    phases = source.get('phases')
    if isinstance(phases, list):
        return phases
    if isinstance(phases, dict):
        return [{'phase': tag, 'items': _block_items(value)} for tag, value in phases.items()]

    workout = source.get('workout') if isinstance(source.get('workout'), dict) else source
    return [
        {'phase': key, 'items': value}
        for key, value in workout.items()
        if canonical_phase(key) and isinstance(value, list)
    ]


def _unwrap(obj: Any) -> Dict[str, Any]:
    if not isinstance(obj, dict):
        return {}
    if 'phases' not in obj and isinstance(obj.get('plan'), dict):
        inner = obj['plan']
        merged = {key: value for key, value in obj.items() if key != 'plan'}
        merged.update(inner)
        return merged
    return obj


def normalize_plan_shape(obj: Any, drop_empty: bool = True) -> Dict[str, Any]:
    """Coerce arbitrary model output into a structurally valid plan.

    Never raises. The result always has warmup, main and cooldown phases (possibly
    empty), phases in canonical order, and integer ``duration_min``. Running it
    again on its own output changes nothing.
    """
    source = copy.deepcopy(_unwrap(obj))

    plan = {
        key: value for key, value in source.items()
        if key != 'phases' and not canonical_phase(key)
    }

    name = source.get('name')
    plan['name'] = name.strip() if isinstance(name, str) and name.strip() else DEFAULT_PLAN_NAME

    duration = _to_int(source.get('duration_min'))
    if duration is None:
        duration = _to_int(source.get('est_total_minutes'))
    plan['duration_min'] = duration if duration is not None and duration > 0 else DEFAULT_DURATION_MIN

    merged: Dict[str, Dict[str, Any]] = {}
    for block in _raw_blocks(source):
        if not isinstance(block, dict) or 'items' not in block:
            continue
        tag = canonical_phase(block.get('phase'))
        if tag is None:
            continue

        items = block['items']
        if items is None:
            items = []
        elif not isinstance(items, list):
            items = [items]
        items = [it for it in (_normalize_item(i) for i in items) if it]

        if tag in merged:
            merged[tag]['items'].extend(items)
        else:
            extra = {k: v for k, v in block.items() if k not in ('phase', 'items')}
            merged[tag] = dict(extra, phase=tag, items=items)

    main = merged.get('main')
    if main:
        moved = [it for it in main['items'] if it.get('isAccessory')]
        if moved:
            main['items'] = [it for it in main['items'] if not it.get('isAccessory')]
            if 'accessory' in merged:
                merged['accessory']['items'].extend(moved)
            else:
                merged['accessory'] = {'phase': 'accessory', 'items': moved}

    for core in CORE_PHASES:
        if core not in merged:
            merged[core] = {'phase': core, 'items': []}

    blocks = [
        block for tag, block in merged.items()
        if tag in CORE_PHASES or block['items'] or not drop_empty
    ]
    blocks.sort(key=lambda block: phase_order(block['phase']))
    plan['phases'] = blocks
    return plan


def phase_items(plan: Dict[str, Any], tag: str) -> List[Dict[str, Any]]:
    for block in plan.get('phases', []):
        if block.get('phase') == tag:
            return block.get('items', [])
    return []


def plan_to_workout(plan: Dict[str, Any]) -> Dict[str, List[Dict[str, Any]]]:
    """Flatten a normalized plan into the warmup/main/cooldown shape the UI tables use"""
    main = [dict(item) for item in phase_items(plan, 'main')]
    main += [dict(item, isAccessory=True) for item in phase_items(plan, 'accessory')]
    main += [dict(item) for item in phase_items(plan, 'conditioning')]
    return {
        'warmup': [dict(item) for item in phase_items(plan, 'warmup')],
        'main': main,
        'cooldown': [dict(item) for item in phase_items(plan, 'cooldown')],
    }


def plan_to_phase_workout(plan: Dict[str, Any]) -> Dict[str, Any]:
    """Phase-keyed workout used by the chat builder panel"""
    return {
        'name': plan.get('name', DEFAULT_PLAN_NAME),
        'duration_min': plan.get('duration_min', DEFAULT_DURATION_MIN),
        'phases': {
            block['phase']: {'exercises': [dict(item) for item in block.get('items', [])]}
            for block in plan.get('phases', [])
            if block.get('phase') in PHASES
        },
    }


def build_chat_summary(plan: Dict[str, Any]) -> str:
    minutes = plan.get('duration_min')
    lines = [f"{plan.get('name', DEFAULT_PLAN_NAME)}{f' - {minutes} min' if minutes else ''}"]

    for block in plan.get('phases', []):
        items = block.get('items') or []
        if not items:
            continue
        lines.append('')
        lines.append(f"{SECTION_LABELS.get(block.get('phase'), block.get('phase'))}:")
        for index, item in enumerate(items, start=1):
            sets = f"{item['sets']}×" if item.get('sets') else ''
            amount = item.get('duration') or item.get('reps') or ''
            badge = ' (Main Lift)' if block.get('phase') == 'main' and index == 1 else ''
            cue = f" - {item['instruction']}" if item.get('instruction') else ''
            lines.append(f"{index}. {item['name']}{badge} {sets}{amount}{cue}".strip())

    return '\n'.join(lines)
