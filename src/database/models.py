"""
SQLAlchemy models for bond records, inquiries and payment link requests.
Used by postgres_real when DATABASE_URL is set.
"""
from __future__ import annotations
from datetime import datetime
from typing import Any, Dict, Optional
from uuid import uuid4
from sqlalchemy import JSON, Boolean, DateTime, Float, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class BondRecordRow(Base):
    __tablename__ = "bond_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    state: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    city: Mapped[str] = mapped_column(String(128), nullable=False)
    bond_limit: Mapped[float] = mapped_column(Float, nullable=False)
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    premium: Mapped[Optional[float]] = mapped_column(Float, nullable=True)


class Inquiry(Base):
    """Answer sets with no exact bond match, routed to a service rep."""

    __tablename__ = "bond_inquiries"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    session_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    answers: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    status: Mapped[str] = mapped_column(String(32), default="open")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)


class PaymentLinkRequest(Base):
    __tablename__ = "payment_link_requests"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    session_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    channel: Mapped[str] = mapped_column(String(16), nullable=False)
    destination: Mapped[str] = mapped_column(String(256), nullable=False)
    consent: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    contact: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    bond: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    effective_date: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    status: Mapped[str] = mapped_column(String(32), default="pending")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)
