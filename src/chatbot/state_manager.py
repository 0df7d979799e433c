"""
Session and wizard state management for the bond chatbot
"""

from typing import Dict, Optional, Any
from datetime import datetime
import uuid

FIRST_FLOW = "qa"


def empty_collected_data() -> Dict[str, Any]:
    return {
        "answers": {},
        "match": None,
        "purchase": {},
        "consent": None,
        "delivery": {"channel": None, "value": ""},
    }


class StateManager:
    def __init__(self, redis_cache, session_ttl: int = 1800):
        self.redis = redis_cache
        self.session_ttl = session_ttl

    def create_session(self, user_id: str) -> str:
        """Create new session positioned on the first question"""
        session_id = str(uuid.uuid4())

        session_data = {
            "session_id": session_id,
            "user_id": user_id,
            "current_flow": FIRST_FLOW,
            "current_step": 0,
            "collected_data": empty_collected_data(),
            "created_at": datetime.utcnow().isoformat(),
        }

        self.redis.set_session(session_id, session_data, ttl=self.session_ttl)

        return session_id

    def get_session(self, session_id: str) -> Optional[Dict[str, Any]]:
        """Get session data"""
        return self.redis.get_session(session_id)

    def update_session(self, session_id: str, updates: Dict[str, Any]):
        """Update session data"""
        self.redis.update_session(session_id, updates)

    def set_flow(self, session_id: str, flow_name: str, step: int = 0):
        """Move the wizard to a phase"""
        self.update_session(session_id, {"current_flow": flow_name, "current_step": step})

    def get_collected_data(self, session_id: str) -> Dict[str, Any]:
        session = self.get_session(session_id)
        return session.get("collected_data", {}) if session else {}

    def reset_session(self, session_id: str):
        """Start over: clear everything collected and go back to the first question"""
        self.update_session(
            session_id,
            {"current_flow": FIRST_FLOW, "current_step": 0, "collected_data": empty_collected_data()},
        )

    def end_session(self, session_id: str) -> bool:
        """End session and clean up. False when there was no such session."""
        if not self.get_session(session_id):
            return False
        self.redis.delete_session(session_id)
        return True
