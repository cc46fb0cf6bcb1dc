import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

SPLITS = ['push', 'pull', 'legs', 'upper', 'full', 'hiit']
INTENTS = ['nike', 'split', 'chat']

SPLIT_ALIASES = {
    'push': 'push',
    'pull': 'pull',
    'legs': 'legs',
    'leg': 'legs',
    'lower': 'legs',
    'upper': 'upper',
    'full': 'full',
    'full body': 'full',
    'fullbody': 'full',
    'hiit': 'hiit',
    'conditioning': 'hiit',
}

SPLIT_KEYWORDS = {
    'push': ['push', 'chest', 'bench', 'triceps', 'shoulders'],
    'pull': ['pull', 'back', 'rows', 'biceps', 'deadlift'],
    'legs': ['legs', 'leg day', 'lower body', 'squat', 'glutes', 'hamstrings', 'quads'],
    'upper': ['upper body', 'upper'],
    'full': ['full body', 'total body', 'whole body'],
    'hiit': ['hiit', 'intervals', 'conditioning', 'cardio', 'sweat', 'tabata', 'emom'],
}

EXPLICIT_NIKE = [
    re.compile(r'\b(ntc|nike training club|nike app|nike workout|nike wod)\b'),
    re.compile(r'\bnike\s*#?\s*\d+\b'),
    re.compile(r'\bnike-?workout\b'),
]
STYLE_REQUEST = re.compile(r'\b(style|in the style of|inspired by|coach|program|custom)\b')

ORDINAL_RE = re.compile(
    r'\b(1st|first|2nd|second|3rd|third|4th|fourth|5th|fifth|6th|sixth|7th|seventh|'
    r'8th|eighth|9th|ninth|10th|tenth)\b'
)
DURATION_RE = re.compile(r'\b\d+\s*-?\s*(?:m|mins?|minutes?|s|secs?|seconds?|hrs?|hours?)\b')
# A bare digit only counts when it is tied to the program ("nike 12", "workout #12", "#12")
PROGRAM_NUMBER_RE = re.compile(r'(?:\b(?:nike|ntc|workout|wod|number|no\.)\s*#?|#)\s*(\d+)\b(?!\s*(?:reps?|sets?)\b)')
ORDINALS = {
    'first': 1, '1st': 1,
    'second': 2, '2nd': 2,
    'third': 3, '3rd': 3,
    'fourth': 4, '4th': 4,
    'fifth': 5, '5th': 5,
    'sixth': 6, '6th': 6,
    'seventh': 7, '7th': 7,
    'eighth': 8, '8th': 8,
    'ninth': 9, '9th': 9,
    'tenth': 10, '10th': 10,
}

NIKE_TYPE_WORDS = {
    'upper body': 'upper body',
    'lower body': 'lower body',
    'legs': 'lower body',
    'push': 'push',
    'pull': 'pull',
    'hiit': 'hiit',
    'strength': 'strength',
    'power': 'power',
    'eccentrics': 'eccentric',
    'eccentric': 'eccentric',
}
NIKE_TYPES = ['upper body', 'lower body', 'push', 'pull', 'hiit', 'strength', 'power']


@dataclass
class NikeHints:
    index: Optional[int] = None
    type_hint: Optional[str] = None
    keywords: List[str] = field(default_factory=list)


@dataclass
class Intent:
    intent: str = 'chat'
    split: Optional[str] = None
    nike: Optional[Dict[str, Any]] = None
    source: str = 'keywords'

    def to_dict(self) -> Dict[str, Any]:
        return {'intent': self.intent, 'split': self.split, 'nike': self.nike, 'source': self.source}


def canonical_split(raw: Any) -> Optional[str]:
    if not isinstance(raw, str):
        return None
    return SPLIT_ALIASES.get(raw.strip().lower())


def should_use_nike(message: str) -> bool:
    """Explicit Nike program reference that isn't asking for a custom/style workout"""
    text = (message or '').lower()
    explicit = any(pattern.search(text) for pattern in EXPLICIT_NIKE)
    return explicit and not STYLE_REQUEST.search(text)


def ordinal_to_number(text: str) -> Optional[int]:
    lowered = DURATION_RE.sub(' ', (text or '').lower())
    match = PROGRAM_NUMBER_RE.search(lowered)
    if match:
        return int(match.group(1)) or None
    match = ORDINAL_RE.search(lowered)
    return ORDINALS[match.group(1)] if match else None


def extract_nike_hints(text: str) -> NikeHints:
    lowered = (text or '').lower()
    found = []
    for word, mapped in NIKE_TYPE_WORDS.items():
        if word in lowered and mapped not in found:
            found.append(mapped)
    type_hint = next((word for word in found if word in NIKE_TYPES), None)
    return NikeHints(index=ordinal_to_number(lowered), type_hint=type_hint, keywords=found)


def detect_split(text: str) -> Optional[str]:
    """Keyword-scored split guess; None when nothing matches"""
    lowered = (text or '').lower()
    scores = {}
    for split, keywords in SPLIT_KEYWORDS.items():
        score = sum(1 for keyword in keywords if re.search(rf'\b{re.escape(keyword)}\b', lowered))
        if score > 0:
            scores[split] = score
    if not scores:
        return None
    # ties resolve in SPLITS order
    return max(SPLITS, key=lambda split: scores.get(split, 0))


def classify_keywords(text: str) -> Intent:
    """Local classifier used when the model classifier is unavailable"""
    if should_use_nike(text):
        hints = extract_nike_hints(text)
        confidence = 0.9 if hints.index else 0.5
        return Intent(
            intent='nike',
            nike={'index': hints.index, 'type': hints.type_hint,
                  'descriptors': hints.keywords, 'confidence': confidence},
        )

    split = detect_split(text)
    if split:
        return Intent(intent='split', split=split)
    return Intent(intent='chat')


def intent_from_payload(payload: Any) -> Optional[Intent]:
    """Validate the classifier's JSON; None when it doesn't fit the schema"""
    if not isinstance(payload, dict) or payload.get('intent') not in INTENTS:
        return None

    intent = Intent(intent=payload['intent'], source='llm')
    if intent.intent == 'split':
        intent.split = canonical_split(payload.get('split'))
        if intent.split is None:
            return None
    elif intent.intent == 'nike':
        nike = payload.get('nike') if isinstance(payload.get('nike'), dict) else {}
        index = nike.get('index')
        try:
            confidence = float(nike.get('confidence', 0) or 0)
        except (TypeError, ValueError):
            confidence = 0.0
        descriptors = nike.get('descriptors') if isinstance(nike.get('descriptors'), list) else []
        intent.nike = {
            'index': index if isinstance(index, int) and not isinstance(index, bool) and index > 0 else None,
            'type': nike.get('type') if isinstance(nike.get('type'), str) else None,
            'descriptors': [str(d).lower() for d in descriptors],
            'confidence': max(0.0, min(confidence, 1.0)),
        }
    return intent
