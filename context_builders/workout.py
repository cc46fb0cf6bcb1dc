import json

from equipment import display_names

WORKOUT_SYSTEM_PROMPT = (
    "You are a meticulous strength coach. Always obey equipment limits; "
    "avoid Olympic lifts (snatch/clean/jerk). Return JSON only."
)

PLAN_SCHEMA_HINT = {
    "name": "string",
    "duration_min": "number",
    "phases": [
        {
            "phase": "warmup | main | accessory | conditioning | cooldown",
            "items": [
                {
                    "name": "string",
                    "sets": "number",
                    "reps": "string or number",
                    "duration": "string, e.g. 45s",
                    "instruction": "short coaching cue",
                    "isAccessory": "boolean"
                }
            ]
        }
    ]
}

KNOWN_COACHES = ['joe holder', 'chris hemsworth', 'david goggins', 'rob gronkowski']


def detect_style_hint(message):
    """Coach/persona name mentioned in the message, if we know it"""
    lowered = (message or '').lower()
    return next((coach for coach in KNOWN_COACHES if coach in lowered), None)


def build_workout_prompt(message, minutes, equipment, split=None, style_hint=None, profile=None):
    """Build the user prompt for plan generation"""
    print(f"🔍 Building workout prompt ({split or 'free-form'}, {minutes} min)")

    context_info = "Return ONLY JSON. No Markdown, no commentary.\n"
    context_info += f"Schema:\n{json.dumps(PLAN_SCHEMA_HINT, indent=2)}\n"

    context_info += "\n=== SESSION ===\n"
    context_info += f"Target duration: {minutes} minutes (duration_min must not exceed it)\n"
    if split:
        context_info += f"Split: {split}\n"
        context_info += "Style: intervals and circuits\n" if split == 'hiit' else "Style: strength, main lift first\n"
    if style_hint:
        context_info += f"Program it in the style of {style_hint.title()}\n"

    if profile:
        context_info += "\n=== USER PROFILE ===\n"
        if profile.get('training_goal'):
            context_info += f"Training goal: {profile['training_goal']}\n"
        if profile.get('fitness_level'):
            context_info += f"Fitness level: {profile['fitness_level']}\n"

    context_info += "\n=== AVAILABLE EQUIPMENT ===\n"
    if equipment:
        context_info += ", ".join(display_names(equipment)) + "\n"
    else:
        context_info += "None on file - bodyweight only\n"

    context_info += "\n=== RULES ===\n"
    context_info += "- Always include warmup, main and cooldown phases\n"
    context_info += "- Mark accessory work with isAccessory: true\n"
    context_info += "- Never program snatches, cleans or jerks\n"

    context_info += f"\nUser message: \"{message}\"\n"
    return context_info
