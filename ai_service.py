import os
import logging
from typing import Dict, List, Any, Optional

from openai import OpenAI

from context_builders.classifier import build_intent_messages
from context_builders.workout import WORKOUT_SYSTEM_PROMPT, build_workout_prompt, detect_style_hint
from errors import IntentClassificationError, PlanGenerationError
from intent import Intent, intent_from_payload
from models import Database, Profile
from plan_normalize import normalize_plan_shape, try_extract_json
from plan_schema import RecognizedPlan, classify_payload
from safety import sanitize

logger = logging.getLogger(__name__)


class UsageLedger:
    """Token usage for one request, passed down the call chain"""

    def __init__(self, model: str = None):
        self.model = model
        self.calls: List[Dict[str, Any]] = []

    def record(self, purpose: str, response) -> None:
        usage = getattr(response, 'usage', None)
        prompt_tokens = getattr(usage, 'prompt_tokens', 0) or 0
        completion_tokens = getattr(usage, 'completion_tokens', 0) or 0
        self.calls.append({
            'purpose': purpose,
            'model': getattr(response, 'model', None) or self.model,
            'prompt_tokens': prompt_tokens,
            'completion_tokens': completion_tokens,
        })

    @property
    def prompt_tokens(self) -> int:
        return sum(call['prompt_tokens'] for call in self.calls)

    @property
    def completion_tokens(self) -> int:
        return sum(call['completion_tokens'] for call in self.calls)

    def summary(self) -> Dict[str, Any]:
        return {
            'calls': len(self.calls),
            'prompt_tokens': self.prompt_tokens,
            'completion_tokens': self.completion_tokens,
            'total_tokens': self.prompt_tokens + self.completion_tokens,
        }


class AIService:
    def __init__(self, db: Database, client=None, model: str = None, api_key: str = None):
        self.db = db
        self.profiles = Profile(db)
        self.model = model or os.environ.get('OPENAI_MODEL', 'gpt-4o')
        self._api_key = api_key or os.environ.get('OPENAI_API_KEY')
        self._client = client

    @property
    def client(self):
        # Built on first use so the app boots without a key; failures surface as generation errors
        if self._client is None:
            self._client = OpenAI(api_key=self._api_key)
        return self._client

    def _complete(self, messages: List[Dict[str, str]], purpose: str, usage: Optional[UsageLedger],
                  temperature: float = 0.4, max_tokens: int = 1600) -> str:
        response = self.client.chat.completions.create(
            model=self.model,
            messages=messages,
            temperature=temperature,
            max_tokens=max_tokens
        )
        if usage is not None:
            usage.record(purpose, response)
        return response.choices[0].message.content or ''

    def classify_intent(self, text: str, usage: UsageLedger = None) -> Intent:
        """Ask the model which route a chat message belongs to"""
        try:
            raw = self._complete(build_intent_messages(text), 'classify', usage, temperature=0, max_tokens=200)
        except Exception as e:
            raise IntentClassificationError(f"Classifier call failed: {e}") from e

        intent = intent_from_payload(try_extract_json(raw))
        if intent is None:
            raise IntentClassificationError(f"Classifier returned no usable intent: {raw[:200]!r}")
        return intent

    def generate_plan(self, message: str, minutes: int, equipment: List[str], split: str = None,
                      user_id: str = None, usage: UsageLedger = None,
                      history: List[Dict[str, str]] = None) -> Dict[str, Any]:
        """Generate, extract, normalize and sanitize a plan.

        Raises PlanGenerationError when the call fails or nothing usable comes back;
        callers fall back to the rule-based backup.
        """
        profile = self.profiles.get_profile(user_id) if user_id else None
        prompt = build_workout_prompt(
            message=message,
            minutes=minutes,
            equipment=equipment,
            split=split,
            style_hint=detect_style_hint(message),
            profile=profile
        )

        messages = [{"role": "system", "content": WORKOUT_SYSTEM_PROMPT}]
        messages.extend(history or [])
        messages.append({"role": "user", "content": prompt})

        try:
            raw = self._complete(messages, 'generate', usage)
        except Exception as e:
            raise PlanGenerationError(f"Generation call failed: {e}") from e

        if not raw.strip():
            raise PlanGenerationError("Generation returned empty output", raw_text=raw)

        payload = classify_payload(try_extract_json(raw))
        if not isinstance(payload, RecognizedPlan):
            raise PlanGenerationError(f"Unusable plan JSON ({payload.reason})", raw_text=raw)

        plan = normalize_plan_shape(payload.plan)
        if not any(block['items'] for block in plan['phases'] if block['phase'] == 'main'):
            raise PlanGenerationError("Plan has no main work", raw_text=raw)

        if split and not plan.get('split'):
            plan['split'] = split
        plan, blocked = sanitize(plan)
        if blocked:
            logger.warning(f"⚠️ Swapped blocked lifts: {blocked}")
            plan['blocked'] = blocked

        logger.info(f"✅ Generated plan '{plan['name']}' ({plan['duration_min']} min)")
        return plan
