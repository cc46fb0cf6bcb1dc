from flask import Flask, request, jsonify, session
import logging

import config
from ai_service import AIService, UsageLedger
from backup_workouts import clamp_minutes, fallback_bodyweight_plan
from chat_router import ChatRouter
from conversation_store import ChatSessionStore
from core_lifts import build_core_lift_pool, propose_workout
from errors import NikeResolutionError, PlanGenerationError, SetLogError
from intent import should_use_nike
from models import Database, EquipmentStore, ExerciseLibrary, Profile, WorkoutSessions
from nike_resolver import NikeProgram, rows_to_workout
from plan_normalize import build_chat_summary, normalize_plan_shape, plan_to_phase_workout, plan_to_workout

logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s %(name)s: %(message)s')


def _json_body():
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def current_user_id():
    """Authenticated user from the Flask session, else ?user= (local testing)"""
    user_id = session.get('user_id') or request.args.get('user')
    return str(user_id).strip() if user_id else None


def request_user_id():
    """Session/query user, falling back to a userId in the JSON body"""
    return current_user_id() or (str(_json_body().get('userId') or '').strip() or None)


def resolve_debug_user_id(path_user_id=None):
    """Query (userId, sessionId, user) -> path -> X-User-Id header -> JSON body -> session"""
    candidates = [
        request.args.get('userId'),
        request.args.get('sessionId'),
        request.args.get('user'),
        path_user_id,
        request.headers.get('X-User-Id'),
        _json_body().get('userId'),
        session.get('user_id'),
    ]
    for candidate in candidates:
        if isinstance(candidate, (str, int)) and str(candidate).strip():
            return str(candidate).strip()
    return None


def create_app(overrides=None, ai_client=None):
    app = Flask(__name__)
    app.config.update(config.load_config(overrides))
    app.secret_key = app.config['SECRET_KEY']
    # phase dicts are emitted in workout order
    app.json.sort_keys = False

    # Initialize services
    db = Database(app.config['DB_PATH'])
    ai_service = AIService(db, client=ai_client, model=app.config['OPENAI_MODEL'],
                           api_key=app.config['OPENAI_API_KEY'])
    nike_program = NikeProgram(db)
    router = ChatRouter(db, ai_service, nike_program, debug=app.config['DEBUG_WORKOUT'])
    profiles = Profile(db)
    equipment_store = EquipmentStore(db)
    library = ExerciseLibrary(db)
    workout_sessions = WorkoutSessions(db)
    chat_sessions = ChatSessionStore(db)

    app.extensions['workout_trainer'] = {
        'db': db,
        'ai_service': ai_service,
        'nike_program': nike_program,
        'router': router,
    }

    @app.route('/api/chat', methods=['POST'])
    def api_chat():
        """Split buttons, Nike requests and free-form chat, one JSON envelope"""
        envelope, status = router.route(request.get_json(silent=True))
        if status >= 500:
            app.logger.error(f"❌ /api/chat failed: {envelope.get('error')}")
        return jsonify(envelope), status

    @app.route('/api/chat-workout', methods=['POST'])
    def api_chat_workout():
        """Conversational builder: lists Nike workouts or builds a custom one"""
        user_id = current_user_id()
        if not user_id:
            return jsonify({'ok': False, 'error': 'Unauthenticated'}), 401

        data = _json_body()
        message = str(data.get('message') or '').strip()
        if not message:
            return jsonify({'ok': False, 'error': 'Missing message'}), 400

        try:
            if should_use_nike(message):
                current = nike_program.current_number(user_id)
                workouts = [
                    dict(w, isCurrent=w['number'] == current)
                    for w in nike_program.list_workouts()
                ]
                return jsonify({
                    'type': 'nike_list',
                    'message': 'Here are the Nike workouts. Pick a number to start.',
                    'workouts': workouts,
                })

            minutes = profiles.preferred_minutes(user_id, app.config['DEFAULT_MINUTES'])
            equipment = equipment_store.get_available_names(user_id)
            session_id = data.get('sessionId')
            history = chat_sessions.get_recent_window(session_id) if session_id else []
            usage = UsageLedger(ai_service.model)

            try:
                plan = ai_service.generate_plan(
                    message=message,
                    minutes=minutes,
                    equipment=equipment,
                    user_id=user_id,
                    usage=usage,
                    history=history
                )
                source = 'llm'
            except PlanGenerationError as e:
                app.logger.warning(f"⚠️ Chat workout generation failed, using bodyweight plan: {e}")
                plan = normalize_plan_shape(fallback_bodyweight_plan(minutes))
                source = 'backup'

            summary = build_chat_summary(plan)
            session_id = chat_sessions.append_turn(user_id, message, summary, session_id, workout=plan)
            workout_sessions.save_generated(user_id, plan, source, minutes=minutes, session_id=session_id)
            app.logger.info(f"💬 chat-workout {source} for {user_id} tokens={usage.summary()['total_tokens']}")

            return jsonify({
                'type': 'custom_workout',
                'sessionId': session_id,
                'workout': plan_to_phase_workout(plan),
                'formattedResponse': summary,
            })

        except Exception as e:
            app.logger.error(f"❌ chat-workout error: {e}")
            return jsonify({'ok': False, 'error': 'Failed to generate workout'}), 500

    @app.route('/api/debug/equipment', methods=['GET', 'POST'])
    @app.route('/api/debug/equipment/<user_id>', methods=['GET', 'POST'])
    def api_debug_equipment(user_id=None):
        """What equipment the generator will see for a user, and why"""
        resolved_user = resolve_debug_user_id(user_id)
        if not resolved_user:
            return jsonify({
                'ok': False,
                'error': 'Missing userId. Call /api/debug/equipment?userId=<user id>',
            }), 400

        rows = equipment_store.get_user_rows(resolved_user)
        names = equipment_store.get_available_names(resolved_user)
        joined = [row for row in rows if row['name']]

        warnings = []
        if not rows:
            warnings.append('No rows in user_equipment for this user_id.')
        elif not names:
            warnings.append('All items may be is_available=false.')
        dangling = [row['id'] for row in rows if row['equipment_id'] and not row['name']]
        if dangling:
            warnings.append(f"user_equipment rows point at missing equipment ids: {dangling}")

        return jsonify({
            'ok': True,
            'user': resolved_user,
            'counts': {
                'user_equipment': len(rows),
                'equipment_joined': len(joined),
                'available_names': len(names),
            },
            'equipment_names': names,
            'rows': rows,
            'warnings': warnings,
        })

    @app.route('/api/workouts/propose', methods=['POST'])
    def api_propose_workout():
        """Core-lift proposal for a focus using the user's equipment"""
        user_id = current_user_id()
        if not user_id:
            return jsonify({'error': 'Unauthenticated'}), 401

        try:
            data = _json_body()
            focus = str(data.get('focus') or 'push')
            minutes = data.get('minutes')
            equipment = equipment_store.get_available_names(user_id)
            core_pool = build_core_lift_pool(library, focus, equipment)
            plan = propose_workout(focus, minutes, core_pool)
            app.logger.info(f"[propose] {focus} -> {plan['coreLift']} (equipment: {equipment})")
            return jsonify(plan)
        except Exception as e:
            app.logger.error(f"[propose] Error: {e}")
            return jsonify({'error': 'Failed to generate workout proposal'}), 500

    @app.route('/api/workouts/<session_id>/sets', methods=['POST'])
    def api_save_sets(session_id):
        """Save the editable set/rep table for a session; {"complete": true} also totals it"""
        user_id = request_user_id()
        if not user_id:
            return jsonify({'ok': False, 'error': 'Unauthenticated'}), 401

        data = _json_body()
        sets = data.get('sets')
        if not isinstance(sets, list):
            return jsonify({'ok': False, 'error': 'sets must be a list'}), 400
        if not workout_sessions.get_session(session_id, user_id):
            return jsonify({'ok': False, 'error': 'Workout session not found'}), 404

        try:
            saved = workout_sessions.save_sets(session_id, sets)
        except SetLogError as e:
            return jsonify({'ok': False, 'error': str(e)}), 400

        response = {'ok': True, 'sessionId': session_id, 'sets': saved}
        if data.get('complete'):
            response['totalVolume'] = workout_sessions.complete_workout(session_id)
        app.logger.info(f"📝 Saved {len(sets)} sets for session {session_id}")
        return jsonify(response)

    @app.route('/api/workouts/<session_id>/complete', methods=['POST'])
    def api_complete_workout(session_id):
        user_id = request_user_id()
        if not user_id:
            return jsonify({'ok': False, 'error': 'Unauthenticated'}), 401
        if not workout_sessions.get_session(session_id, user_id):
            return jsonify({'ok': False, 'error': 'Workout session not found'}), 404

        total_volume = workout_sessions.complete_workout(session_id)
        app.logger.info(f"✅ Completed session {session_id}: volume {total_volume}")
        return jsonify({'ok': True, 'sessionId': session_id, 'totalVolume': total_volume})

    @app.route('/api/nike/progress')
    def api_nike_progress():
        user_id = request_user_id()
        if not user_id:
            return jsonify({'error': 'User ID is required'}), 400
        progress = profiles.get_nike_progress(user_id)
        return jsonify({
            'success': True,
            'currentProgress': progress,
            'nextWorkout': nike_program.current_number(user_id) or progress + 1,
        })

    @app.route('/api/nike/next', methods=['POST'])
    def api_nike_next():
        """Load the user's next program workout and advance their counter"""
        user_id = request_user_id()
        if not user_id:
            return jsonify({'error': 'User ID is required'}), 400
        try:
            workout = nike_program.load_next_workout(user_id)
        except NikeResolutionError as e:
            app.logger.warning(f"⚠️ Nike next failed for {user_id}: {e} ({e.reason})")
            return jsonify({'error': str(e), 'reason': e.reason}), 404

        workout['sessionId'] = workout_sessions.create_session(
            user_id, 'nike', f"Nike Workout {workout['workoutNo']}", workout['mainSets'],
            nike_workout_number=workout['workoutNo']
        )
        return jsonify(workout)

    @app.route('/api/nike/finish', methods=['POST'])
    def api_nike_finish():
        user_id = request_user_id()
        if not user_id:
            return jsonify({'error': 'User ID is required'}), 400
        try:
            number = int(_json_body().get('workoutNumber') or 0)
        except (TypeError, ValueError):
            number = 0
        if number <= 0:
            return jsonify({'error': 'Workout number is required'}), 400

        progress = nike_program.finish_workout(user_id, number)
        return jsonify({
            'success': True,
            'message': f"Nike Workout {number} completed!",
            'newProgress': progress,
        })

    @app.route('/api/nike/<int:number>')
    def api_nike_workout(number):
        resolution = nike_program.resolve_number(number)
        if not resolution.ok:
            return jsonify({'ok': False, 'error': f"Nike workout {number} not found",
                            'reason': resolution.reason}), 404

        plan, _ = rows_to_workout(resolution.rows)
        plan = normalize_plan_shape(plan)
        return jsonify({
            'ok': True,
            'number': resolution.number,
            'name': plan['name'],
            'plan': plan,
            'workout': plan_to_workout(plan),
        })

    @app.route('/api/profile', methods=['GET', 'POST'])
    def api_profile():
        user_id = request_user_id()
        if not user_id:
            return jsonify({'ok': False, 'error': 'Unauthenticated'}), 401

        if request.method == 'POST':
            data = _json_body()
            data.pop('userId', None)
            if 'preferred_workout_duration' in data:
                data['preferred_workout_duration'] = clamp_minutes(data['preferred_workout_duration'])
            profile = profiles.update_profile(user_id, data)
            app.logger.info(f"👤 Updated profile for {user_id}")
        else:
            profile = profiles.get_profile(user_id)
        return jsonify({'ok': True, 'profile': profile})

    @app.route('/api/equipment', methods=['GET', 'POST'])
    def api_equipment():
        user_id = request_user_id()
        if not user_id:
            return jsonify({'ok': False, 'error': 'Unauthenticated'}), 401

        if request.method == 'POST':
            names = _json_body().get('equipment')
            if not isinstance(names, list):
                return jsonify({'ok': False, 'error': 'equipment must be a list of names'}), 400
            equipment = equipment_store.set_user_equipment(user_id, names)
            app.logger.info(f"🏋️ Saved {len(equipment)} equipment items for {user_id}")
        else:
            equipment = equipment_store.get_available_names(user_id)
        return jsonify({'ok': True, 'equipment': equipment})

    @app.errorhandler(404)
    def not_found(e):
        return jsonify({'ok': False, 'error': 'Not found'}), 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return jsonify({'ok': False, 'error': 'Method not allowed'}), 405

    @app.errorhandler(500)
    def internal_error(e):
        app.logger.error(f"❌ Unhandled error: {e}")
        return jsonify({'ok': False, 'error': 'Internal server error'}), 500

    return app


if __name__ == '__main__':
    app = create_app()
    app.run(host='0.0.0.0', port=config.PORT, debug=True)
