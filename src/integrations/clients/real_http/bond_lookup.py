"""
Real Bond Lookup HTTP Client.

Purpose:
- Sends the normalized lookup query to a remote lookup endpoint
  (POST {"state", "city", "bond_limit", "name"})
- Reads `{"match": {...} | null}` and normalizes it into a BondRecord

Errors (non-2xx replies, transport failures, malformed matches) are logged and
reported as "no match" so the wizard falls back to the inquiry screen.
"""

from __future__ import annotations

import logging
import os
from typing import Dict, Optional

import httpx

from src.integrations.contracts.bond_lookup import (
    BondLookupClient,
    BondLookupQuery,
    BondRecord,
    IntegrationResponseError,
    normalize_bond_record,
)

logger = logging.getLogger(__name__)


class HttpBondLookupClient(BondLookupClient):
    def __init__(
        self,
        url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout_seconds: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.url = url or os.getenv("BOND_LOOKUP_URL", "")
        self.api_key = api_key if api_key is not None else os.getenv("BOND_LOOKUP_API_KEY", "")
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    @property
    def source(self) -> str:
        return "http"

    async def find_exact(self, query: BondLookupQuery) -> Optional[BondRecord]:
        if not self.url:
            raise ValueError("BOND_LOOKUP_URL is not configured.")

        headers: Dict[str, str] = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._transport) as client:
                response = await client.post(self.url, json=query.model_dump(), headers=headers)
        except httpx.HTTPError as e:
            logger.error("Bond lookup request failed: %s", e)
            return None

        if response.is_error:
            logger.error("Bond lookup API error %s: %s", response.status_code, response.text)
            return None

        try:
            data = response.json() if response.content else {}
            if not isinstance(data, dict):
                raise IntegrationResponseError("Bond lookup reply must be an object.")
            return normalize_bond_record(data.get("match"))
        except (ValueError, IntegrationResponseError) as e:
            logger.error("Bond lookup returned an unusable payload: %s", e)
            return None
