from __future__ import annotations
from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import String, Integer, Text, DateTime, ForeignKey
from .base import Base, new_id, utcnow


class ServiceTask(Base):
    __tablename__ = 'service_tasks'
    # Status constants
    STATUS_FUTURE = 'FUTURE'
    STATUS_IN_SHOP = 'IN_SHOP'
    STATUS_IN_PROGRESS = 'IN_PROGRESS'
    STATUS_COMPLETED = 'COMPLETED'
    STATUS_CLOSED = 'CLOSED'
    STATUS_CANCELLED = 'CANCELLED'
    STATUS_ON_HOLD = 'ON_HOLD'
    ALL_STATUSES = (STATUS_FUTURE, STATUS_IN_SHOP, STATUS_IN_PROGRESS, STATUS_COMPLETED,
                    STATUS_CLOSED, STATUS_CANCELLED, STATUS_ON_HOLD)
    FINISHED_STATUSES = (STATUS_COMPLETED, STATUS_CLOSED)
    ACTIVE_STATUSES = (STATUS_FUTURE, STATUS_IN_SHOP, STATUS_IN_PROGRESS, STATUS_ON_HOLD)
    # Priority constants
    PRIORITY_LOW = 'LOW'
    PRIORITY_NORMAL = 'NORMAL'
    PRIORITY_HIGH = 'HIGH'
    PRIORITY_URGENT = 'URGENT'
    ALL_PRIORITIES = (PRIORITY_LOW, PRIORITY_NORMAL, PRIORITY_HIGH, PRIORITY_URGENT)

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    # Customer snapshot; linked to Customer by email value, not by key
    customer_name: Mapped[str] = mapped_column(String(128), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    phone: Mapped[str] = mapped_column(String(32), nullable=False)
    item_model: Mapped[Optional[str]] = mapped_column(String(128))
    serial_number: Mapped[Optional[str]] = mapped_column(String(128))
    service_type: Mapped[str] = mapped_column(String(40), nullable=False, default='OTHER', index=True)
    custom_service: Mapped[Optional[str]] = mapped_column(Text)
    description: Mapped[Optional[str]] = mapped_column(Text)
    notes: Mapped[Optional[str]] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default=STATUS_FUTURE, index=True)
    priority: Mapped[str] = mapped_column(String(16), nullable=False, default=PRIORITY_NORMAL)
    estimated_cost_cents: Mapped[Optional[int]] = mapped_column(Integer)
    actual_cost_cents: Mapped[Optional[int]] = mapped_column(Integer)
    estimated_completion: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    actual_completion: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    created_by_id: Mapped[Optional[str]] = mapped_column(String(32), ForeignKey('users.id'), index=True)
    assigned_to_id: Mapped[Optional[str]] = mapped_column(String(32), ForeignKey('users.id'), index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    created_by = relationship('User', foreign_keys=[created_by_id])
    assigned_to = relationship('User', foreign_keys=[assigned_to_id])


class StatusUpdate(Base):
    """Structured, append-only record of one status transition."""
    __tablename__ = 'status_updates'
    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    # No foreign key: transition history outlives the task row
    task_id: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    from_status: Mapped[str] = mapped_column(String(32), nullable=False)
    to_status: Mapped[str] = mapped_column(String(32), nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text)
    updated_by_id: Mapped[Optional[str]] = mapped_column(String(32), ForeignKey('users.id'), index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, index=True)

    updated_by = relationship('User')
