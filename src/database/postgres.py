"""
Lightweight in-memory PostgresDB replacement for local development.

This provides the subset of the interface used by the API and the wizard
flows (inquiries and payment link requests) so the system can run without a
real database. It is NOT intended for production use.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional
import uuid


@dataclass
class Inquiry:
    id: str
    session_id: str
    answers: Dict[str, Any]
    status: str = "open"
    created_at: datetime = field(default_factory=datetime.utcnow)


@dataclass
class PaymentLinkRequest:
    id: str
    session_id: str
    channel: str
    destination: str
    consent: bool
    contact: Dict[str, Any]
    bond: Dict[str, Any]
    effective_date: Optional[str] = None
    status: str = "pending"
    created_at: datetime = field(default_factory=datetime.utcnow)


class PostgresDB:
    """
    In-memory stand-in for a Postgres-backed data access layer.
    """

    def __init__(self) -> None:
        self._inquiries: Dict[str, Inquiry] = {}
        self._payment_links: Dict[str, PaymentLinkRequest] = {}

    # ------------------------------------------------------------------ #
    # Schema / lifecycle
    # ------------------------------------------------------------------ #
    def create_tables(self) -> None:
        """
        No-op for the in-memory implementation. Kept for compatibility
        with the startup hook in `src/api/main.py`.
        """
        return None

    # ------------------------------------------------------------------ #
    # Inquiries
    # ------------------------------------------------------------------ #
    def create_inquiry(self, *, session_id: str, answers: Dict[str, Any]) -> Inquiry:
        inquiry = Inquiry(id=str(uuid.uuid4()), session_id=session_id, answers=dict(answers or {}))
        self._inquiries[inquiry.id] = inquiry
        return inquiry

    def list_inquiries(self, status: Optional[str] = None) -> List[Inquiry]:
        items = [i for i in self._inquiries.values() if status is None or i.status == status]
        items.sort(key=lambda i: i.created_at, reverse=True)
        return items

    # ------------------------------------------------------------------ #
    # Payment link requests
    # ------------------------------------------------------------------ #
    def create_payment_link_request(
        self,
        *,
        session_id: str,
        channel: str,
        destination: str,
        consent: bool = False,
        contact: Optional[Dict[str, Any]] = None,
        bond: Optional[Dict[str, Any]] = None,
        effective_date: Optional[str] = None,
    ) -> PaymentLinkRequest:
        req = PaymentLinkRequest(
            id=str(uuid.uuid4()),
            session_id=session_id,
            channel=channel,
            destination=destination,
            consent=bool(consent),
            contact=dict(contact or {}),
            bond=dict(bond or {}),
            effective_date=effective_date,
        )
        self._payment_links[req.id] = req
        return req

    def get_payment_link_request(self, request_id: str) -> Optional[PaymentLinkRequest]:
        return self._payment_links.get(str(request_id))
