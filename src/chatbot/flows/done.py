"""
Done flow - confirmation screen; "start over" resets the whole wizard.
"""

from __future__ import annotations

from typing import Any, Dict

from src.chatbot.flows.common import get_action, unsupported_action
from src.chatbot.state_manager import empty_collected_data


class DoneFlow:
    STEPS = ["complete"]

    def render(self, data: Dict[str, Any]) -> Dict[str, Any]:
        delivery = data.get("delivery") or {}
        channel = delivery.get("channel") or "email"
        return {
            "type": "complete",
            "message": "Process Complete",
            "text": f"The secure payment link will be sent via {channel} to {delivery.get('value', '')}.",
            "payment_link_request_id": data.get("payment_link_request_id"),
            "actions": [{"type": "start_over", "label": "Start Over"}],
        }

    async def start(self, step: int, data: Dict[str, Any], session_id: str, *, prefill: bool = False) -> Dict:
        return {"response": self.render(data), "collected_data": data}

    async def process_step(
        self,
        payload: Dict[str, Any],
        current_step: int,
        collected_data: Dict[str, Any],
        session_id: str,
    ) -> Dict:
        action = get_action(payload, raw_is_action=True)
        if action in ("start_over", "reset"):
            return {"next_flow": "qa", "next_step": 0, "collected_data": empty_collected_data()}
        raise unsupported_action(action, "done")
