from __future__ import annotations
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Boolean, DateTime
from .base import Base, new_id, utcnow


class User(Base):
    """Local mirror of an identity-provider account."""
    __tablename__ = 'users'
    ROLE_EMPLOYEE = 'EMPLOYEE'
    ROLE_MANAGER = 'MANAGER'
    ROLE_ADMIN = 'ADMIN'
    ALL_ROLES = (ROLE_EMPLOYEE, ROLE_MANAGER, ROLE_ADMIN)
    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    provider_id: Mapped[str] = mapped_column(String(128), unique=True, index=True, nullable=False)
    email: Mapped[str] = mapped_column(String(255), index=True, nullable=False, default='')
    name: Mapped[str] = mapped_column(String(128), nullable=False, default='User')
    role: Mapped[str] = mapped_column(String(16), nullable=False, default=ROLE_EMPLOYEE)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
