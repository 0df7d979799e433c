"""
Summary flow - look up the exact bond match for the collected answers and show
it for review, or fall back to the service-rep inquiry when nothing matches.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from src.chatbot.flows.common import get_action, unsupported_action
from src.chatbot.flows.qualification import QUESTION_CONFIG
from src.chatbot.matching import build_query
from src.chatbot.validation import FormValidationError, format_money
from src.error_handler import NO_MATCH_MESSAGE, ErrorHandler
from src.integrations.contracts.bond_lookup import BondRecord

logger = logging.getLogger(__name__)

_QUESTION_IDS = [q["id"] for q in QUESTION_CONFIG]


class SummaryFlow:
    """
    Guided flow for the review screen (wizard phase "summary").
    """

    STEPS = ["review"]

    def __init__(self, lookup_client, db, error_handler: Optional[ErrorHandler] = None):
        self.lookup = lookup_client
        self.db = db
        self.error_handler = error_handler or ErrorHandler()

    async def _find_match(self, answers: Dict[str, Any]) -> Optional[BondRecord]:
        query = build_query(answers)
        if query is None:
            return None
        try:
            return await self.lookup.find_exact(query)
        except Exception as e:
            self.error_handler.handle_lookup_failure(e, {"source": getattr(self.lookup, "source", None)})
            return None

    def _record_inquiry(self, data: Dict[str, Any], session_id: str) -> None:
        answers = dict(data.get("answers") or {})
        previous = data.get("inquiry") or {}
        if previous.get("answers") == answers:
            return
        inquiry = self.db.create_inquiry(session_id=session_id, answers=answers)
        data["inquiry"] = {"id": str(inquiry.id), "answers": answers}
        logger.info("Recorded bond inquiry %s for session %s", inquiry.id, session_id)

    def render(self, data: Dict[str, Any]) -> Dict[str, Any]:
        answers = data.get("answers") or {}
        match = data.get("match")
        if not match:
            return {
                "type": "inquiry",
                "message": NO_MATCH_MESSAGE,
                "answers": answers,
                "actions": [{"type": "back", "label": "Back"}],
            }
        premium = match.get("premium")
        return {
            "type": "bond_summary",
            "message": "Bond Summary",
            "bond": match,
            "details": [
                {"label": "Name", "value": str(match.get("name") or ""), "edit_step": 3},
                {"label": "City", "value": str(match.get("city") or ""), "edit_step": 1},
                {"label": "State", "value": str(match.get("state") or ""), "edit_step": 0},
                {"label": "Limit", "value": format_money(match.get("bond_limit")), "edit_step": 2},
                {"label": "Effective Date", "value": answers.get("q5", ""), "edit_step": 4},
                {"label": "Premium", "value": format_money(premium) if premium is not None else "—"},
            ],
            "question": "Have you reviewed enough information to make a decision?",
            "actions": [
                {"type": "yes", "label": "Yes"},
                {"type": "no", "label": "No"},
                {"type": "back", "label": "Back"},
                {"type": "edit", "label": "Edit"},
            ],
        }

    async def start(self, step: int, data: Dict[str, Any], session_id: str, *, prefill: bool = False) -> Dict:
        record = await self._find_match(data.get("answers") or {})
        data["match"] = record.model_dump() if record else None
        if record is None:
            self._record_inquiry(data, session_id)
        return {"response": self.render(data), "collected_data": data}

    async def process_step(
        self,
        payload: Dict[str, Any],
        current_step: int,
        collected_data: Dict[str, Any],
        session_id: str,
    ) -> Dict:
        data = collected_data
        action = get_action(payload, raw_is_action=True)

        if action == "yes":
            if not data.get("match"):
                raise FormValidationError(
                    field_errors={"action": "There is no matching bond to purchase."},
                    message="No exact match found",
                )
            return {"next_flow": "purchase", "next_step": 0, "collected_data": data}

        if action in ("no", "back"):
            return {"next_flow": "qa", "next_step": len(QUESTION_CONFIG) - 1, "prefill": True, "collected_data": data}

        if action == "edit":
            return {"next_flow": "qa", "next_step": self._edit_step(payload), "prefill": True, "collected_data": data}

        raise unsupported_action(action, "summary")

    @staticmethod
    def _edit_step(payload: Dict[str, Any]) -> int:
        target = payload.get("step", payload.get("question_id"))
        if isinstance(target, str) and target in _QUESTION_IDS:
            return _QUESTION_IDS.index(target)
        try:
            step = int(target)
        except (TypeError, ValueError):
            step = -1
        if not 0 <= step < len(QUESTION_CONFIG):
            raise FormValidationError(
                field_errors={"step": f"Choose a question between 0 and {len(QUESTION_CONFIG) - 1}"},
                message="Unknown question to edit",
            )
        return step
