import logging
from typing import Any, Dict, List, Optional, Tuple

from ai_service import AIService, UsageLedger
from backup_workouts import build_rule_based_backup, clamp_minutes, make_title
from devlog import devlog
from errors import IntentClassificationError, PlanGenerationError
from intent import Intent, canonical_split, classify_keywords, extract_nike_hints
from models import Database, EquipmentStore, WorkoutSessions
from nike_resolver import NikeProgram, NikeResolution, rows_to_workout
from plan_normalize import normalize_plan_shape, plan_to_workout

logger = logging.getLogger(__name__)


def make_confirm_message(text: str, intent: Intent, resolution: NikeResolution) -> str:
    hints = extract_nike_hints(text)
    guess = intent.nike or {}
    suggestion = resolution.suggestion or {}
    index = suggestion.get('index') or guess.get('index') or hints.index or 1
    workout_type = suggestion.get('type') or guess.get('type') or hints.type_hint or 'upper body'
    return (f'Did you mean Nike workout {index} for {workout_type}? '
            f'Reply "/nike {index}" to run it, or say what you want.')


class ChatRouter:
    """Routes /api/chat requests: split button, Nike program, or free-form generation"""

    def __init__(self, db: Database, ai_service: AIService, nike_program: NikeProgram = None,
                 debug: bool = None):
        self.ai_service = ai_service
        self.equipment = EquipmentStore(db)
        self.sessions = WorkoutSessions(db)
        self.nike = nike_program or NikeProgram(db)
        self.debug = debug

    def route(self, body: Any) -> Tuple[Dict[str, Any], int]:
        """Returns (envelope, http_status); never raises"""
        try:
            return self._route(body if isinstance(body, dict) else {})
        except Exception as e:
            logger.exception(f"⚠️ Chat router error: {e}")
            return {'ok': False, 'error': 'Internal server error', 'debug': {'route': 'error'}}, 500

    def _route(self, body: Dict[str, Any]) -> Tuple[Dict[str, Any], int]:
        raw_split = body.get('split') if isinstance(body.get('split'), str) else ''
        split = canonical_split(raw_split) or raw_split.strip().lower()
        minutes = clamp_minutes(body.get('minutes'))
        equipment = [e for e in body.get('equipment') or [] if isinstance(e, str)] \
            if isinstance(body.get('equipment'), list) else []
        text = str(body.get('text') or '').strip()
        user_id = body.get('userId') or body.get('user')

        if not user_id:
            return {'ok': False, 'error': 'Missing userId'}, 400

        user_id = str(user_id)
        usage = UsageLedger(self.ai_service.model)
        if not equipment:
            equipment = self.equipment.get_available_names(user_id)

        # 1) Button path is authoritative
        if split:
            devlog('router.button', {'split': split, 'minutes': minutes, 'equipmentCount': len(equipment)},
                   self.debug)
            result = self._generate(user_id, split, minutes, equipment, text, usage)
            return self._respond(result, usage, route='backup' if result['usedBackup'] else 'llm',
                                 split=split, minutes=minutes)

        # 2) Classify free text
        intent = self._classify(text, usage) if text else Intent(intent='chat')
        devlog('router.classify', intent.to_dict(), self.debug)

        if intent.intent == 'nike':
            resolution = self.nike.resolve_from_text(text, intent.nike)
            devlog('router.nike.resolved',
                   {'rows': len(resolution.rows)} if resolution.ok else {'reason': resolution.reason},
                   self.debug)
            if resolution.ok:
                plan, _ = rows_to_workout(resolution.rows)
                plan = normalize_plan_shape(plan)
                result = {'plan': plan, 'workout': plan_to_workout(plan), 'usedBackup': False}
                return self._respond(result, usage, route='nike-nl', minutes=minutes,
                                     name=plan['name'], number=resolution.number)

            # low confidence or nothing found: ask rather than guess
            message = make_confirm_message(text, intent, resolution)
            return {
                'ok': True,
                'needsConfirmation': True,
                'name': None,
                'message': message,
                'plan': None,
                'workout': None,
                'debug': {'route': 'nike-nl-pending', 'reason': resolution.reason,
                          'intent': intent.to_dict(), 'usage': usage.summary()},
            }, 200

        # 3) Split intent ("legs for 30 minutes")
        if intent.intent == 'split' and intent.split:
            devlog('router.split', {'split': intent.split, 'minutes': minutes}, self.debug)
            result = self._generate(user_id, intent.split, minutes, equipment, text, usage)
            return self._respond(result, usage, route='backup' if result['usedBackup'] else 'llm',
                                 split=intent.split, minutes=minutes, intent=intent.to_dict())

        # 4) Plain chat -> free-form generation
        devlog('router.chat', {'text': text[:50], 'minutes': minutes}, self.debug)
        result = self._generate(user_id, '', minutes, equipment, text, usage)
        return self._respond(result, usage, route='backup' if result['usedBackup'] else 'llm-chat',
                             minutes=minutes, intent=intent.to_dict())

    def _classify(self, text: str, usage: UsageLedger) -> Intent:
        try:
            return self.ai_service.classify_intent(text, usage)
        except IntentClassificationError as e:
            logger.warning(f"⚠️ Falling back to keyword intent: {e}")
            return classify_keywords(text)

    def _generate(self, user_id: str, split: str, minutes: int, equipment: List[str],
                  text: str, usage: UsageLedger) -> Dict[str, Any]:
        message = text or f"{split or 'full body'} workout {minutes} min use my equipment"
        try:
            plan = self.ai_service.generate_plan(
                message=message,
                minutes=minutes,
                equipment=equipment,
                split=split or None,
                user_id=user_id,
                usage=usage
            )
            result = {'plan': plan, 'workout': plan_to_workout(plan), 'usedBackup': False}
        except PlanGenerationError as e:
            logger.warning(f"⚠️ Generation failed, using backup: {e}")
            result = self._backup(split, minutes, equipment, str(e))
        except Exception as e:
            logger.exception(f"⚠️ Unexpected generation error, using backup: {e}")
            result = self._backup(split, minutes, equipment, f"unexpected: {e}")

        try:
            self.sessions.save_generated(
                user_id, result['plan'], 'backup' if result['usedBackup'] else 'llm',
                split=split or None, minutes=minutes
            )
        except Exception as e:
            logger.warning(f"⚠️ Could not save generated workout for {user_id}: {e}")
        return result

    def _backup(self, split: str, minutes: int, equipment: List[str], reason: str) -> Dict[str, Any]:
        plan, workout = build_rule_based_backup(split, minutes, equipment)
        return {'plan': plan, 'workout': workout, 'usedBackup': True, 'error': reason}

    def _respond(self, result: Dict[str, Any], usage: UsageLedger, route: str, minutes: int,
                 split: str = None, name: Optional[str] = None, **extra) -> Tuple[Dict[str, Any], int]:
        title = name or make_title(split or '', minutes)
        debug = {
            'route': route,
            'split': split or None,
            'minutes': minutes,
            'usedBackup': result.get('usedBackup', False),
            'blocked': result['plan'].get('blocked', []),
            'usage': usage.summary(),
        }
        if result.get('error'):
            debug['error'] = result['error']
        debug.update(extra)
        logger.info(f"📋 /api/chat route={route} tokens={usage.summary()['total_tokens']}")
        return {
            'ok': True,
            'name': title,
            'message': title,
            'plan': result['plan'],
            'workout': result['workout'],
            'debug': debug,
        }, 200
