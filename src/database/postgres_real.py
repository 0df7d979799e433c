"""
Real Postgres-backed DB for production when DATABASE_URL is set.
Implements the same interface as src.database.postgres (in-memory stub), plus
the bond_records table used by the SQL lookup client.
"""

from __future__ import annotations

import re
from contextlib import contextmanager
from typing import Any, Dict, Iterable, List, Optional
from uuid import uuid4

from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import Session, sessionmaker

from src.chatbot.validation import STATE_ABBR_TO_NAME, numeric
from src.database.models import Base, BondRecordRow, Inquiry, PaymentLinkRequest
from src.integrations.contracts.bond_lookup import BondLookupQuery, BondRecord

_STATE_NAME_TO_ABBR = {name.lower(): abbr.lower() for abbr, name in STATE_ABBR_TO_NAME.items()}


def _normalize_connection_string(s: str) -> str:
    """Strip common mistakes: 'psql \'...\'', extra quotes, whitespace."""
    s = s.strip()
    if re.match(r"^psql\s+", s, re.IGNORECASE):
        s = re.sub(r"^psql\s+", "", s, flags=re.IGNORECASE).strip()
    if len(s) >= 2 and s[0] == s[-1] and s[0] in ("'", '"'):
        s = s[1:-1].strip()
    return s


def _state_variants(state: str) -> List[str]:
    """Full name plus abbreviation, lower-cased, so rows may store either."""
    full = state.strip().lower()
    variants = [full]
    abbr = _STATE_NAME_TO_ABBR.get(full)
    if abbr:
        variants.append(abbr)
    return variants


class PostgresDB:
    """
    Postgres data access using SQLAlchemy. Use when DATABASE_URL is set.
    """

    def __init__(self, connection_string: str) -> None:
        connection_string = _normalize_connection_string(connection_string)
        engine_kwargs: Dict[str, Any] = {"pool_pre_ping": True}
        if not connection_string.startswith("sqlite"):
            engine_kwargs.update(pool_size=5, max_overflow=10)
        self.engine = create_engine(connection_string, **engine_kwargs)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine, expire_on_commit=False)

    def create_tables(self) -> None:
        Base.metadata.create_all(bind=self.engine)

    @contextmanager
    def _session(self) -> Session:
        s = self.SessionLocal()
        try:
            yield s
            s.commit()
        except Exception:
            s.rollback()
            raise
        finally:
            s.close()

    # ------------------------------------------------------------------ #
    # Bond records
    # ------------------------------------------------------------------ #
    def add_bond_records(self, records: Iterable[BondRecord]) -> int:
        count = 0
        with self._session() as s:
            for r in records:
                s.add(
                    BondRecordRow(
                        state=r.state.strip(),
                        city=r.city.strip(),
                        bond_limit=numeric(r.bond_limit) or 0.0,
                        name=r.name.strip(),
                        premium=numeric(r.premium) if r.premium is not None else None,
                    )
                )
                count += 1
        return count

    def find_bond_record(self, query: BondLookupQuery) -> Optional[BondRecord]:
        """Single case-insensitive equality query; first row wins."""
        with self._session() as s:
            stmt = (
                select(BondRecordRow)
                .where(func.lower(func.trim(BondRecordRow.state)).in_(_state_variants(query.state)))
                .where(func.lower(func.trim(BondRecordRow.city)) == query.city.strip().lower())
                .where(func.lower(func.trim(BondRecordRow.name)) == query.name.strip().lower())
                .where(BondRecordRow.bond_limit == query.bond_limit)
                .order_by(BondRecordRow.id)
                .limit(1)
            )
            row = s.execute(stmt).scalar_one_or_none()
            if row is None:
                return None
            return BondRecord(
                state=row.state,
                city=row.city,
                bond_limit=row.bond_limit,
                name=row.name,
                premium=row.premium,
            )

    # ------------------------------------------------------------------ #
    # Inquiries
    # ------------------------------------------------------------------ #
    def create_inquiry(self, *, session_id: str, answers: Dict[str, Any]) -> Inquiry:
        with self._session() as s:
            inquiry = Inquiry(id=str(uuid4()), session_id=session_id, answers=dict(answers or {}), status="open")
            s.add(inquiry)
            s.flush()
            s.refresh(inquiry)
            return inquiry

    def list_inquiries(self, status: Optional[str] = None) -> List[Inquiry]:
        with self._session() as s:
            stmt = select(Inquiry)
            if status:
                stmt = stmt.where(Inquiry.status == status)
            stmt = stmt.order_by(Inquiry.created_at.desc())
            return list(s.execute(stmt).scalars().all())

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
        with self._session() as s:
            req = PaymentLinkRequest(
                id=str(uuid4()),
                session_id=session_id,
                channel=channel,
                destination=destination,
                consent=bool(consent),
                contact=dict(contact or {}),
                bond=dict(bond or {}),
                effective_date=effective_date,
                status="pending",
            )
            s.add(req)
            s.flush()
            s.refresh(req)
            return req

    def get_payment_link_request(self, request_id: str) -> Optional[PaymentLinkRequest]:
        with self._session() as s:
            stmt = select(PaymentLinkRequest).where(PaymentLinkRequest.id == str(request_id))
            return s.execute(stmt).scalar_one_or_none()
