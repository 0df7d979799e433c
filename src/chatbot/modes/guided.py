"""
Guided mode - the bond wizard: qa → summary → purchase → consent → delivery → done
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from ..flows.common import parse_payload
from ..flows.consent import ConsentFlow
from ..flows.delivery import DeliveryFlow
from ..flows.done import DoneFlow
from ..flows.purchase import PurchaseFlow
from ..flows.qualification import QualificationFlow
from ..flows.summary import SummaryFlow

logger = logging.getLogger(__name__)

PHASES = ["qa", "summary", "purchase", "consent", "delivery", "done"]


class SessionNotFoundError(LookupError):
    pass


class GuidedMode:
    def __init__(self, state_manager, lookup_client, db, *, window_days: int = 365, today=None):
        self.state_manager = state_manager
        self.lookup_client = lookup_client
        self.db = db

        # Initialize flows, one per wizard phase
        self.flows = {
            "qa": QualificationFlow(window_days=window_days, today=today),
            "summary": SummaryFlow(lookup_client, db),
            "purchase": PurchaseFlow(),
            "consent": ConsentFlow(),
            "delivery": DeliveryFlow(db),
            "done": DoneFlow(),
        }

    def _get_session(self, session_id: str) -> Dict[str, Any]:
        session = self.state_manager.get_session(session_id)
        if not session:
            raise SessionNotFoundError(session_id)
        return session

    def _envelope(self, session_id: str, flow_name: str, step: int, response: Optional[Dict]) -> Dict:
        return {
            "mode": "guided",
            "session_id": session_id,
            "flow": flow_name,
            "step": step,
            "response": response,
            "complete": flow_name == "done",
        }

    async def start(self, session_id: str) -> Dict:
        """Render the prompt for wherever the session currently is."""
        session = self._get_session(session_id)
        flow_name = session["current_flow"]
        step = session.get("current_step", 0)
        result = await self.flows[flow_name].start(step, session.get("collected_data", {}), session_id, prefill=True)
        if result.get("collected_data") is not None:
            self.state_manager.update_session(session_id, {"collected_data": result["collected_data"]})
        return self._envelope(session_id, flow_name, step, result.get("response"))

    async def process(self, user_input, session_id: str) -> Dict:
        """Process one step. user_input can be a string or a dict (form_data from frontend)."""
        session = self._get_session(session_id)
        flow_name = session["current_flow"]
        step = session.get("current_step", 0)

        result = await self.flows[flow_name].process_step(
            payload=parse_payload(user_input),
            current_step=step,
            collected_data=session.get("collected_data", {}),
            session_id=session_id,
        )
        data = result.get("collected_data", session.get("collected_data", {}))

        if result.get("next_flow"):
            # Phase transition: the next flow renders its own entry prompt
            next_flow = result["next_flow"]
            next_step = result.get("next_step", 0)
            entered = await self.flows[next_flow].start(next_step, data, session_id, prefill=result.get("prefill", False))
            data = entered.get("collected_data", data)
            self.state_manager.update_session(
                session_id,
                {
                    "current_flow": next_flow,
                    "current_step": next_step,
                    "collected_data": data,
                    "updated_at": datetime.utcnow().isoformat(),
                },
            )
            logger.info("Session %s moved %s -> %s (step %s)", session_id, flow_name, next_flow, next_step)
            return self._envelope(session_id, next_flow, next_step, entered.get("response"))

        next_step = result.get("next_step", step)
        self.state_manager.update_session(
            session_id,
            {"current_step": next_step, "collected_data": data, "updated_at": datetime.utcnow().isoformat()},
        )
        return self._envelope(session_id, flow_name, next_step, result.get("response"))

    def describe(self, session_id: str) -> Dict:
        """Session state for the frontend (phase, step, step name)."""
        session = self._get_session(session_id)
        flow_name = session.get("current_flow")
        step = session.get("current_step", 0)
        step_names = getattr(self.flows.get(flow_name), "STEPS", [])
        data = session.get("collected_data") or {}
        return {
            "session_id": session_id,
            "mode": "guided",
            "current_flow": flow_name,
            "current_step": step,
            "step_name": step_names[step] if step < len(step_names) else None,
            "steps_total": len(step_names),
            "collected_keys": [k for k, v in data.items() if v],
        }
