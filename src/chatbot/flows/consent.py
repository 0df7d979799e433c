"""
Consent flow - text & call consent. Either answer moves on to delivery; the
answer itself is kept with the collected data.
"""

from __future__ import annotations

from typing import Any, Dict

from src.chatbot.flows.common import get_action, unsupported_action
from src.chatbot.flows.purchase import PURCHASE_FIELDS

CONSENT_TEXT = (
    "By providing your phone number, you consent to receive calls and text messages related to your bond "
    "and related services, including payment and renewal reminders. Message and data rates may apply. "
    "Consent is not a condition of purchase. You can opt out at any time by replying STOP."
)


class ConsentFlow:
    STEPS = ["consent"]

    def render(self) -> Dict[str, Any]:
        return {
            "type": "consent",
            "message": "Text & Call Consent",
            "text": CONSENT_TEXT,
            "actions": [
                {"type": "agree", "label": "I Agree"},
                {"type": "disagree", "label": "I Do Not Agree"},
                {"type": "back", "label": "Back"},
            ],
        }

    async def start(self, step: int, data: Dict[str, Any], session_id: str, *, prefill: bool = False) -> Dict:
        return {"response": self.render(), "collected_data": data}

    async def process_step(
        self,
        payload: Dict[str, Any],
        current_step: int,
        collected_data: Dict[str, Any],
        session_id: str,
    ) -> Dict:
        data = collected_data
        action = get_action(payload, raw_is_action=True)

        if action in ("agree", "i_agree"):
            data["consent"] = True
            return {"next_flow": "delivery", "next_step": 0, "collected_data": data}
        if action in ("disagree", "i_do_not_agree"):
            data["consent"] = False
            return {"next_flow": "delivery", "next_step": 0, "collected_data": data}
        if action == "back":
            return {"next_flow": "purchase", "next_step": len(PURCHASE_FIELDS) - 1, "collected_data": data}

        raise unsupported_action(action, "consent")
