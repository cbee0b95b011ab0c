from __future__ import annotations
from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import String, Text, JSON, DateTime, ForeignKey
from .base import Base, new_id, utcnow


class ActivityLog(Base):
    __tablename__ = 'activity_logs'
    ACTION_TASK_CREATED = 'TASK_CREATED'
    ACTION_TASK_UPDATED = 'TASK_UPDATED'
    ACTION_TASK_DELETED = 'TASK_DELETED'
    ACTION_STATUS_CHANGED = 'STATUS_CHANGED'
    ACTION_LABEL_PRINTED = 'LABEL_PRINTED'
    ALL_ACTIONS = (ACTION_TASK_CREATED, ACTION_TASK_UPDATED, ACTION_TASK_DELETED,
                   ACTION_STATUS_CHANGED, ACTION_LABEL_PRINTED)
    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    # Plain column, not a foreign key: the log must survive task deletion
    task_id: Mapped[Optional[str]] = mapped_column(String(32), index=True)
    action: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False, default='')
    meta: Mapped[Optional[dict]] = mapped_column('metadata', JSON, default=dict)
    performed_by_id: Mapped[Optional[str]] = mapped_column(String(32), ForeignKey('users.id'), index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, index=True)

    performed_by = relationship('User')
