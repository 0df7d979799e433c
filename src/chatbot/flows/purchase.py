"""
Purchase flow - collect the purchasing company's contact details one field at
a time. Phone numbers are stored normalized (E.164-like).
"""

from __future__ import annotations

from typing import Any, Dict

from src.chatbot.flows.common import get_action, get_value, unsupported_action
from src.chatbot.validation import raise_if_errors, validate_email, validate_phone

PURCHASE_FIELDS = [
    {"id": "companyName", "prompt": "Company Name", "type": "text", "hint": "The legal entity purchasing the bond"},
    {"id": "contactName", "prompt": "Contact Name", "type": "text", "hint": "Person we should speak with"},
    {"id": "companyAddress", "prompt": "Company Address", "type": "address", "hint": "Start typing to search an address"},
    {
        "id": "contactPhone",
        "prompt": "Contact Cell Phone Number",
        "type": "tel",
        "hint": "SMS-capable number for approval & confirmation",
    },
    {
        "id": "contactEmail",
        "prompt": "Contact Email Address",
        "type": "email",
        "hint": "We'll send documents and receipts here",
    },
]


class PurchaseFlow:
    """
    Guided flow for purchase information (wizard phase "purchase").
    """

    STEPS = [f["id"] for f in PURCHASE_FIELDS]

    def render(self, step: int, data: Dict[str, Any]) -> Dict[str, Any]:
        field = PURCHASE_FIELDS[step]
        return {
            "type": "form",
            "message": "Purchase Information",
            "fields": [
                {
                    "name": field["id"],
                    "label": field["prompt"],
                    "type": field["type"],
                    "placeholder": field["hint"],
                    "required": True,
                    "value": (data.get("purchase") or {}).get(field["id"], ""),
                }
            ],
            "progress": {"current": step + 1, "total": len(PURCHASE_FIELDS)},
            "actions": [{"type": "next", "label": "Next"}, {"type": "back", "label": "Back"}],
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
        data = collected_data
        purchase = data.setdefault("purchase", {})
        action = get_action(payload, default="next")

        if action == "back":
            if current_step == 0:
                return {"next_flow": "summary", "next_step": 0, "collected_data": data}
            return {"response": self.render(current_step - 1, data), "next_step": current_step - 1, "collected_data": data}

        if action != "next":
            raise unsupported_action(action, "purchase")

        field = PURCHASE_FIELDS[current_step]
        submitted = get_value(payload, field["id"])
        if submitted is not None:
            purchase[field["id"]] = submitted
        value = str(purchase.get(field["id"]) or "").strip()

        errors: Dict[str, str] = {}
        if not value:
            errors[field["id"]] = f"{field['prompt']} is required."
        elif field["id"] == "contactEmail":
            value = validate_email(value, errors, field["id"])
        elif field["id"] == "contactPhone":
            value = validate_phone(value, errors, field["id"])
        raise_if_errors(errors, message=errors.get(field["id"], "Please correct the highlighted fields"))

        purchase[field["id"]] = value
        if current_step + 1 < len(PURCHASE_FIELDS):
            return {"response": self.render(current_step + 1, data), "next_step": current_step + 1, "collected_data": data}
        return {"next_flow": "consent", "next_step": 0, "collected_data": data}
