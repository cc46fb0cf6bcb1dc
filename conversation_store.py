import json
import logging
import uuid
from datetime import datetime
from typing import Dict, List, Any, Optional

from models import Database

logger = logging.getLogger(__name__)

MAX_MESSAGES = 50


class ChatSessionStore:
    """Chat-builder conversations, one JSON message list per session id"""

    def __init__(self, db: Database):
        self.db = db

    def get_session(self, session_id: str, user_id: str = None) -> Optional[Dict[str, Any]]:
        conn = self.db.get_connection()
        cursor = conn.cursor()
        cursor.execute('''
            SELECT id, user_id, messages, created_at, updated_at
            FROM chat_sessions WHERE id = ?
        ''', (session_id,))
        row = cursor.fetchone()
        conn.close()

        if not row or (user_id is not None and row[1] != user_id):
            return None
        return {
            'id': row[0],
            'user_id': row[1],
            'messages': json.loads(row[2] or '[]'),
            'created_at': row[3],
            'updated_at': row[4],
        }

    def append_turn(self, user_id: str, user_text: str, assistant_text: str,
                    session_id: str = None, workout: Dict[str, Any] = None) -> str:
        """Add a user/assistant turn; starts a new session when the id is unknown or not ours"""
        session = self.get_session(session_id, user_id) if session_id else None
        now = datetime.now().isoformat()

        messages = session['messages'] if session else []
        messages.append({'role': 'user', 'content': user_text, 'at': now})
        assistant = {'role': 'assistant', 'content': assistant_text, 'at': now}
        if workout is not None:
            assistant['workout'] = workout
        messages.append(assistant)
        # Keep only the tail to prevent unbounded growth
        messages = messages[-MAX_MESSAGES:]

        conn = self.db.get_connection()
        cursor = conn.cursor()
        if session:
            cursor.execute('''
                UPDATE chat_sessions SET messages = ?, updated_at = CURRENT_TIMESTAMP
                WHERE id = ?
            ''', (json.dumps(messages), session['id']))
            session_id = session['id']
        else:
            session_id = str(uuid.uuid4())
            cursor.execute('''
                INSERT INTO chat_sessions (id, user_id, messages)
                VALUES (?, ?, ?)
            ''', (session_id, user_id, json.dumps(messages)))
            logger.info(f"💬 Started chat session {session_id} for {user_id}")
        conn.commit()
        conn.close()
        return session_id

    def get_recent_window(self, session_id: str, max_turns: int = 3) -> List[Dict[str, str]]:
        """Last few turns as chat messages, trimmed to control token usage"""
        session = self.get_session(session_id) if session_id else None
        if not session:
            return []

        window = []
        for message in session['messages'][-max_turns * 2:]:
            content = message.get('content') or ''
            limit = 200 if message.get('role') == 'user' else 500
            window.append({
                'role': message.get('role', 'user'),
                'content': content[:limit] + '...' if len(content) > limit else content,
            })
        return window
