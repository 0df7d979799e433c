"""
Qualification flow - the five questions that identify the bond: state, city,
bond limit, requester and effective date. Answers are normalized as they are
saved so the summary lookup can use them directly.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Callable, Dict, Optional

from src.chatbot.flows.common import get_action, get_value, unsupported_action
from src.chatbot.validation import (
    FormValidationError,
    effective_date_window,
    format_number,
    numeric,
    raise_if_errors,
    state_from_input,
    validate_effective_date,
)

QUESTION_CONFIG = [
    {
        "id": "q1",
        "prompt": "Which state is the bond located in?",
        "lookup_key": "state",
        "mode": "equals",
        "placeholder": "e.g., IL or Illinois",
        "input_type": "text",
    },
    {
        "id": "q2",
        "prompt": "What is the name of the City?",
        "lookup_key": "city",
        "mode": "equals",
        "placeholder": "e.g., Chicago",
        "input_type": "text",
    },
    {
        "id": "q3",
        "prompt": "What is the requested bonding limit amount?",
        "lookup_key": "bond_limit",
        "mode": "equals",
        "placeholder": "e.g., 50000",
        "input_type": "number",
    },
    {
        "id": "q4",
        "prompt": "Who is requesting the bond?",
        "lookup_key": "name",
        "mode": "equals",
        "placeholder": "e.g., City of Chicago",
        "input_type": "text",
    },
    {
        "id": "q5",
        "prompt": "What effective date should the bond be issued on?",
        "lookup_key": None,
        "placeholder": "YYYY-MM-DD",
        "input_type": "date",
    },
]


def interpret_answer(question_id: str, raw: str) -> str:
    """Normalize an answer for storage (state expanded, bond limit as a plain number)."""
    if question_id == "q1":
        return state_from_input(raw)
    if question_id == "q3":
        num = numeric(raw)
        return format_number(num) if num else raw
    return raw


class QualificationFlow:
    """
    Guided flow for the qualifying questions (wizard phase "qa").
    """

    STEPS = [q["id"] for q in QUESTION_CONFIG]

    def __init__(self, window_days: int = 365, today: Optional[Callable[[], date]] = None):
        self.window_days = window_days
        self.today = today or date.today

    def render(self, step: int, data: Dict[str, Any], *, prefill: bool = False) -> Dict[str, Any]:
        q = QUESTION_CONFIG[step]
        response = {
            "type": "question",
            "message": q["prompt"],
            "question_id": q["id"],
            "input_type": q["input_type"],
            "placeholder": q["placeholder"],
            "value": (data.get("answers") or {}).get(q["id"], "") if prefill else "",
            "progress": {"current": step + 1, "total": len(QUESTION_CONFIG)},
            "actions": [
                {"type": "next", "label": "Next"},
                {"type": "back", "label": "Back", "disabled": step == 0},
                {"type": "reset", "label": "Reset"},
            ],
        }
        if q["id"] == "q5":
            min_date, max_date = effective_date_window(self.today(), self.window_days)
            response["min"] = min_date.isoformat()
            response["max"] = max_date.isoformat()
        return response

    async def start(self, step: int, data: Dict[str, Any], session_id: str, *, prefill: bool = False) -> Dict:
        return {"response": self.render(step, data, prefill=prefill), "collected_data": data}

    async def process_step(
        self,
        payload: Dict[str, Any],
        current_step: int,
        collected_data: Dict[str, Any],
        session_id: str,
    ) -> Dict:
        data = collected_data
        data.setdefault("answers", {})
        action = get_action(payload, default="next")

        if action == "reset":
            data["answers"] = {}
            data["match"] = None
            return {"response": self.render(0, data), "next_step": 0, "collected_data": data}

        if action == "back":
            prev = max(current_step - 1, 0)
            return {"response": self.render(prev, data, prefill=True), "next_step": prev, "collected_data": data}

        if action not in ("next", "answer"):
            raise unsupported_action(action, "qa")

        q = QUESTION_CONFIG[current_step]
        raw = (get_value(payload, "answer", q["id"]) or "").strip()
        if not raw:
            raise FormValidationError(field_errors={q["id"]: "Please enter an answer."}, message="An answer is required")

        if q["id"] == "q5":
            errors: Dict[str, str] = {}
            raw = validate_effective_date(raw, errors, q["id"], today=self.today(), window_days=self.window_days)
            raise_if_errors(errors, message=errors.get(q["id"], "Please choose a valid date."))

        data["answers"][q["id"]] = interpret_answer(q["id"], raw)

        if current_step + 1 < len(QUESTION_CONFIG):
            return {"response": self.render(current_step + 1, data), "next_step": current_step + 1, "collected_data": data}
        return {"next_flow": "summary", "next_step": 0, "collected_data": data}
