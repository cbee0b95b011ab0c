from __future__ import annotations
from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import String, Text, Boolean, DateTime, ForeignKey
from .base import Base, new_id, utcnow


class PrintedLabel(Base):
    __tablename__ = 'printed_labels'
    # Label type constants
    TYPE_SERVICE_TAG = 'SERVICE_TAG'
    TYPE_CUSTOMER_RECEIPT = 'CUSTOMER_RECEIPT'
    TYPE_INTERNAL_TAG = 'INTERNAL_TAG'
    ALL_TYPES = (TYPE_SERVICE_TAG, TYPE_CUSTOMER_RECEIPT, TYPE_INTERNAL_TAG)
    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    task_id: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    label_type: Mapped[str] = mapped_column(String(32), nullable=False, default=TYPE_SERVICE_TAG, index=True)
    printed_by_id: Mapped[Optional[str]] = mapped_column(String(32), ForeignKey('users.id'), index=True)
    printer_name: Mapped[Optional[str]] = mapped_column(String(128))
    success: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)
    error_msg: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, index=True)

    printed_by = relationship('User')
