INTENT_SYSTEM_PROMPT = (
    'Classify the user request into JSON only. Schema: '
    '{"intent":"nike|split|chat",'
    '"nike":{"index":number?,"type":string?,"descriptors":string[],"confidence":0..1}?,'
    '"split":"push|pull|legs|upper|full|hiit"}. Only return JSON. '
    'If the user refers to our programmed Nike templates by order (e.g. "second"), '
    'choose intent:"nike".'
)


def build_intent_messages(text):
    """Chat messages for the intent classifier call"""
    return [
        {"role": "system", "content": INTENT_SYSTEM_PROMPT},
        {"role": "user", "content": text or ""},
    ]
