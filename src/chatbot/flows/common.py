"""
Helpers shared by the wizard flows: payload parsing and action lookup.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Optional

from src.chatbot.validation import FormValidationError


def parse_payload(user_input: Any) -> Dict[str, Any]:
    """Normalize user input into a dict.

    The frontend either submits `form_data` (a dict), a JSON string, or free
    text; free text ends up under "_raw".
    """
    if isinstance(user_input, dict):
        return dict(user_input)
    if isinstance(user_input, str) and user_input.strip().startswith("{"):
        try:
            payload = json.loads(user_input)
            if isinstance(payload, dict):
                return payload
        except (json.JSONDecodeError, TypeError):
            pass
    return {"_raw": user_input} if user_input else {}


def get_action(payload: Dict[str, Any], *, raw_is_action: bool = False, default: Optional[str] = None) -> Optional[str]:
    action = payload.get("action")
    if not action and raw_is_action:
        action = payload.get("_raw")
    if not action:
        return default
    return str(action).strip().lower().replace(" ", "_")


def get_value(payload: Dict[str, Any], *keys: str) -> Optional[str]:
    """First present value among "value", the given keys and "_raw"; None if none is present."""
    for key in ("value", *keys, "_raw"):
        if key in payload and payload[key] is not None:
            return str(payload[key])
    return None


def unsupported_action(action: Optional[str], flow: str) -> FormValidationError:
    return FormValidationError(
        field_errors={"action": f"'{action}' is not available here"},
        message=f"Unsupported action for {flow}",
    )
