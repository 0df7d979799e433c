"""
Delivery flow - choose text or email for the secure payment link, then confirm
the destination (defaults to the purchase phone/email when left blank).
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from src.chatbot.flows.common import get_action, get_value, unsupported_action
from src.chatbot.validation import raise_if_errors, validate_email, validate_phone

logger = logging.getLogger(__name__)

CHANNELS = {
    "text": {"label": "Mobile Number", "noun": "mobile number", "input_type": "tel", "default_field": "contactPhone"},
    "email": {"label": "Email Address", "noun": "email address", "input_type": "email", "default_field": "contactEmail"},
}


class DeliveryFlow:
    """
    Guided flow for delivery preference (wizard phase "delivery").
    """

    STEPS = ["choose_channel", "confirm_destination"]

    def __init__(self, db):
        self.db = db

    def render(self, step: int, data: Dict[str, Any]) -> Dict[str, Any]:
        if step == 0:
            return {
                "type": "options",
                "message": "Delivery Preference",
                "question": "Would you like the secure payment link sent via text or email?",
                "options": [{"id": "text", "label": "Text"}, {"id": "email", "label": "Email"}],
                "actions": [{"type": "back", "label": "Back"}],
            }
        delivery = data.get("delivery") or {}
        channel = CHANNELS[delivery.get("channel") or "email"]
        default = (data.get("purchase") or {}).get(channel["default_field"], "")
        return {
            "type": "form",
            "message": f"Confirm {channel['label']}",
            "text": (
                f"We will send the secure payment link to the {channel['noun']} below. "
                "Update it if needed and submit."
            ),
            "fields": [
                {
                    "name": "destination",
                    "label": channel["label"],
                    "type": channel["input_type"],
                    "placeholder": default or f"Enter {channel['noun']}",
                    "value": delivery.get("value", ""),
                }
            ],
            "actions": [{"type": "submit", "label": "Submit"}, {"type": "back", "label": "Back"}],
        }

    async def start(self, step: int, data: Dict[str, Any], session_id: str, *, prefill: bool = False) -> Dict:
        return {"response": self.render(step, data), "collected_data": data}

    async def process_step(
        self,
        payload: Dict[str, Any],
        current_step: int,
        collected_data: Dict[str, Any],
        session_id: str,
    ) -> Dict:
        if current_step == 0:
            return await self._step_choose_channel(payload, collected_data)
        return await self._step_confirm_destination(payload, collected_data, session_id)

    async def _step_choose_channel(self, payload: Dict, data: Dict) -> Dict:
        action = get_action(payload, raw_is_action=True)
        if action == "back":
            return {"next_flow": "consent", "next_step": 0, "collected_data": data}
        channel = str(payload.get("channel") or action or "").strip().lower()
        if channel not in CHANNELS:
            raise unsupported_action(channel, "delivery")
        data["delivery"] = {"channel": channel, "value": ""}
        return {"response": self.render(1, data), "next_step": 1, "collected_data": data}

    async def _step_confirm_destination(self, payload: Dict, data: Dict, session_id: str) -> Dict:
        delivery = data.setdefault("delivery", {"channel": None, "value": ""})
        action = get_action(payload, default="submit")
        if action == "back":
            data["delivery"] = {"channel": None, "value": ""}
            return {"response": self.render(0, data), "next_step": 0, "collected_data": data}
        if action not in ("submit", "next"):
            raise unsupported_action(action, "delivery")

        channel = delivery.get("channel") or "email"
        entered = (get_value(payload, "destination") or "").strip()
        value = entered or str((data.get("purchase") or {}).get(CHANNELS[channel]["default_field"]) or "")

        errors: Dict[str, str] = {}
        if channel == "text":
            value = validate_phone(value, errors, "destination", message="Please enter a valid mobile phone number.")
        else:
            value = validate_email(value, errors, "destination")
        raise_if_errors(errors, message=errors.get("destination", "Please correct the highlighted fields"))

        data["delivery"] = {"channel": channel, "value": value}
        answers = data.get("answers") or {}
        req = self.db.create_payment_link_request(
            session_id=session_id,
            channel=channel,
            destination=value,
            consent=bool(data.get("consent")),
            contact=data.get("purchase") or {},
            bond=data.get("match") or {},
            effective_date=answers.get("q5"),
        )
        data["payment_link_request_id"] = str(req.id)
        logger.info("Payment link request %s queued via %s", req.id, channel)
        return {"next_flow": "done", "next_step": 0, "collected_data": data}
