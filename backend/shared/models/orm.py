"""
SQLAlchemy 2.0 ORM models for the catalog reconciliation tables.
The ``entities`` table belongs to the catalog; these services only read it.
"""
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class EntityORM(Base):
    __tablename__ = "entities"
    __table_args__ = (
        CheckConstraint(
            "status IN ('MUIS Halal-Certified', 'Not Certified', 'Unknown')",
            name="chk_entity_status",
        ),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(300), nullable=False)
    address: Mapped[str] = mapped_column(Text, nullable=False, default="")
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="Unknown")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    socials: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False, default=dict)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


class UpdateProposalORM(Base):
    __tablename__ = "update_proposals"
    __table_args__ = (
        CheckConstraint("confidence >= 0 AND confidence <= 1", name="chk_proposal_confidence"),
        CheckConstraint("status IN ('pending', 'approved', 'rejected')", name="chk_proposal_status"),
        Index("ix_update_proposals_status_confidence", "status", "confidence"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    entity_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    field: Mapped[str] = mapped_column(String(64), nullable=False)
    old_value: Mapped[Optional[Any]] = mapped_column(JSONB)
    new_value: Mapped[Optional[Any]] = mapped_column(JSONB)
    source: Mapped[str] = mapped_column(String(100), nullable=False)
    confidence: Mapped[float] = mapped_column(Float, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending")


class RunLogORM(Base):
    __tablename__ = "run_logs"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    scraper_name: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    entities_checked: Mapped[Optional[int]] = mapped_column(Integer)
    updates_found: Mapped[Optional[int]] = mapped_column(Integer)
    errors: Mapped[list[str]] = mapped_column(JSONB, nullable=False, default=list)
    duration_ms: Mapped[int] = mapped_column(Integer, nullable=False)
