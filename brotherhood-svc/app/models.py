from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum

from sqlalchemy import (
    Index, CheckConstraint, String, Text, Integer, Boolean, JSON,
    Enum as SqlEnum, ForeignKey
)
from sqlalchemy.orm import declarative_base, Mapped, mapped_column
from sqlalchemy.types import Date, DateTime, Numeric

Base = declarative_base()

def utcnow():
    return datetime.now(timezone.utc)

class BrotherDateStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

# Mirror of the membership store; this service only reads it
class Member(Base):
    __tablename__ = "members"
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    first_name: Mapped[str] = mapped_column(String(128), nullable=False)
    last_name: Mapped[str] = mapped_column(String(128), nullable=False)
    role: Mapped[str] = mapped_column(String(32), default="active", nullable=False)
    avatar_url: Mapped[str | None] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    __table_args__ = (Index("ix_members_role", "role"),)

class Semester(Base):
    __tablename__ = "semesters"
    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    dues_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=0, nullable=False)
    is_current: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        CheckConstraint("dues_amount >= 0", name="ck_semester_dues"),
        CheckConstraint("end_date >= start_date", name="ck_semester_range"),
    )

class PointCategory(Base):
    __tablename__ = "point_categories"
    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)
    default_points: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

# Append-only ledger; totals are always summed from here
class PointEntry(Base):
    __tablename__ = "points"
    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    member_id: Mapped[str] = mapped_column(ForeignKey("members.id", ondelete="RESTRICT"), nullable=False)
    semester_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("semesters.id", ondelete="RESTRICT"), nullable=False)
    category_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("point_categories.id", ondelete="RESTRICT"), nullable=False)
    points: Mapped[int] = mapped_column(Integer, nullable=False)  # + award / - deduction
    reason: Mapped[str | None] = mapped_column(Text)
    event_id: Mapped[str | None] = mapped_column(String(64))
    brother_date_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("brother_dates.id"), nullable=True)
    awarded_by: Mapped[str] = mapped_column(String(64), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        CheckConstraint("points <> 0", name="ck_points_nonzero"),
        Index("ix_points_member", "member_id"),
        Index("ix_points_semester_member", "semester_id", "member_id"),
    )

class BrotherDate(Base):
    __tablename__ = "brother_dates"
    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    # canonical order: member1_id < member2_id
    member1_id: Mapped[str] = mapped_column(ForeignKey("members.id", ondelete="RESTRICT"), nullable=False)
    member2_id: Mapped[str] = mapped_column(ForeignKey("members.id", ondelete="RESTRICT"), nullable=False)
    submitted_by: Mapped[str] = mapped_column(String(64), nullable=False)
    semester_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("semesters.id", ondelete="RESTRICT"), nullable=False)
    occurred_on: Mapped[date] = mapped_column("date", Date, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    status: Mapped[BrotherDateStatus] = mapped_column(
        SqlEnum(BrotherDateStatus), default=BrotherDateStatus.PENDING, nullable=False
    )
    points_awarded: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    decided_by: Mapped[str | None] = mapped_column(String(64))
    decided_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        CheckConstraint("member1_id < member2_id", name="ck_brother_date_pair_order"),
        CheckConstraint("points_awarded >= 0", name="ck_brother_date_points"),
        Index("ix_brother_dates_pair", "semester_id", "member1_id", "member2_id", "date"),
        Index("ix_brother_dates_status", "status"),
    )

class AuditLog(Base):
    __tablename__ = "audit_log"
    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    member_id: Mapped[str | None] = mapped_column(String(64))  # actor
    action: Mapped[str] = mapped_column(String(64), nullable=False)
    entity_type: Mapped[str | None] = mapped_column(String(64))
    entity_id: Mapped[str | None] = mapped_column(String(64))
    details: Mapped[dict | None] = mapped_column(JSON)
    ip_address: Mapped[str | None] = mapped_column(String(64))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        Index("ix_audit_member", "member_id"),
        Index("ix_audit_action", "action"),
    )
