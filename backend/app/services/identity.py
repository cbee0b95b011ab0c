"""Resolve the authenticated caller to a local ``User`` row.

Tokens come from the external identity provider; ``sub`` is the provider's
account id. The local mirror is created on first sight.
"""
from __future__ import annotations
from typing import Optional
from flask import abort, g, current_app
from flask_jwt_extended import get_jwt, get_jwt_identity
from sqlalchemy import select
from app import get_db
from app.models.user import User


def _display_name(claims: dict, email: str) -> str:
    meta = claims.get('user_metadata') or {}
    name = claims.get('name') or (meta.get('full_name') if isinstance(meta, dict) else None)
    if name:
        return name
    if email:
        return email.split('@')[0]
    return 'User'


def get_or_create_user(provider_id: str, claims: Optional[dict] = None) -> User:
    claims = claims or {}
    session = get_db()
    user = session.execute(select(User).where(User.provider_id == provider_id)).scalar_one_or_none()
    if user:
        return user
    email = claims.get('email') or ''
    user = User(provider_id=provider_id, email=email, name=_display_name(claims, email), role=User.ROLE_EMPLOYEE)
    session.add(user)
    session.commit()
    current_app.logger.info('Created local user %s for provider account %s', user.id, provider_id)
    return user


def current_user() -> User:
    """Return the caller's local record; requires a verified JWT in the request."""
    provider_id = str(get_jwt_identity())
    user = g.get('current_user')
    # g outlives a single request when an app context is already pushed
    if user is None or user.provider_id != provider_id:
        user = get_or_create_user(provider_id, get_jwt())
        g.current_user = user
    return user


def assert_active(user: User):
    if not user.is_active:
        abort(403, description='Account is deactivated')


def has_role(user: User, *roles: str) -> bool:
    return user.role in roles


def assert_role(user: User, *roles: str, description: str = 'Insufficient permissions'):
    if not has_role(user, *roles):
        abort(403, description=description)
