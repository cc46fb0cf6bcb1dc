"""
Canonical equipment names.

Users type equipment however they like ("Barbells", "DBs", "Cable Machine") and the
catalog is not much tidier. Everything that compares equipment goes through
``canonical_equipment`` so a requirement and a user's kit meet on one name.
"""

import re
from typing import Iterable, List, Optional, Set

BODYWEIGHT = 'bodyweight'

ALIASES = {
    'barbell': 'barbell',
    'barbells': 'barbell',
    'bb': 'barbell',
    'olympic bar': 'barbell',
    'olympic barbell': 'barbell',
    'ez bar': 'ez bar',
    'ez-bar': 'ez bar',
    'ez curl bar': 'ez bar',
    'dumbbell': 'dumbbell',
    'dumbbells': 'dumbbell',
    'db': 'dumbbell',
    'dbs': 'dumbbell',
    'kettlebell': 'kettlebell',
    'kettlebells': 'kettlebell',
    'kb': 'kettlebell',
    'kbs': 'kettlebell',
    'cable': 'cable',
    'cables': 'cable',
    'cable machine': 'cable',
    'cable station': 'cable',
    'cable attachments': 'cable',
    'functional trainer': 'cable',
    'trap bar': 'trap bar',
    'hex bar': 'trap bar',
    'bench': 'bench',
    'adjustable bench': 'bench',
    'flat bench': 'bench',
    'incline bench': 'bench',
    'squat rack': 'squat rack',
    'power rack': 'squat rack',
    'rack': 'squat rack',
    'pull-up bar': 'pull-up bar',
    'pull up bar': 'pull-up bar',
    'pullup bar': 'pull-up bar',
    'chin-up bar': 'pull-up bar',
    'rower': 'rower',
    'row erg': 'rower',
    'rowerg': 'rower',
    'rowing machine': 'rower',
    'concept2': 'rower',
    'bike': 'bike',
    'exercise bike': 'bike',
    'assault bike': 'bike',
    'air bike': 'bike',
    'bike erg': 'bike',
    'stationary bike': 'bike',
    'treadmill': 'treadmill',
    'band': 'band',
    'bands': 'band',
    'resistance band': 'band',
    'resistance bands': 'band',
    'superbands': 'band',
    'minibands': 'band',
    'trx': 'trx',
    'suspension trainer': 'trx',
    'battle rope': 'battle rope',
    'battle ropes': 'battle rope',
    'plyo box': 'box',
    'box': 'box',
    'slam ball': 'medicine ball',
    'medicine ball': 'medicine ball',
    'med ball': 'medicine ball',
    'exercise ball': 'stability ball',
    'stability ball': 'stability ball',
    'bumper plates': 'plates',
    'weight plates': 'plates',
    'plates': 'plates',
    'dip machine': 'dip station',
    'dip station': 'dip station',
    'none': BODYWEIGHT,
    'no equipment': BODYWEIGHT,
    'bodyweight': BODYWEIGHT,
    'body weight': BODYWEIGHT,
}

_SPACES = re.compile(r'\s+')


def canonical_equipment(name) -> Optional[str]:
    """Canonical equipment name, or None for blanks"""
    if not isinstance(name, str):
        return None
    key = _SPACES.sub(' ', name.strip().lower())
    if not key:
        return None
    if key in ALIASES:
        return ALIASES[key]
    if key.endswith('s') and key[:-1] in ALIASES:
        return ALIASES[key[:-1]]
    return key[:-1] if key.endswith('s') and not key.endswith('ss') else key


def equipment_set(names: Iterable) -> Set[str]:
    return {canon for canon in (canonical_equipment(n) for n in names or []) if canon}


def has_equipment(available: Iterable, needed: str) -> bool:
    needed = canonical_equipment(needed)
    if needed is None or needed == BODYWEIGHT:
        return True
    return needed in equipment_set(available)


def requirements_met(available: Iterable, required: Iterable) -> bool:
    """True when every required item is in the user's kit"""
    kit = equipment_set(available)
    for item in required or []:
        canon = canonical_equipment(item)
        if canon and canon != BODYWEIGHT and canon not in kit:
            return False
    return True


def display_names(names: Iterable) -> List[str]:
    """De-duplicated names in first-seen order, compared canonically"""
    seen = set()
    result = []
    for name in names or []:
        canon = canonical_equipment(name)
        if canon and canon not in seen:
            seen.add(canon)
            result.append(name.strip())
    return result
