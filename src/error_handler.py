"""Error handling helpers for the bond lookup."""
from typing import Any, Dict
import logging

logger = logging.getLogger(__name__)

NO_MATCH_MESSAGE = "No exact match found. We’ll route this inquiry to a service rep."


class ErrorHandler:
    def handle_lookup_failure(self, exc: Exception, context: Dict[str, Any] = None) -> Dict[str, Any]:
        """Log a failed lookup; the wizard carries on as if nothing matched."""
        logger.error("Bond lookup failed: %s", exc, exc_info=True)
        return {
            "message": NO_MATCH_MESSAGE,
            "fallback": True,
            "metadata": {"error": str(exc), "context": context or {}},
        }
