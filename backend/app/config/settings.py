"""Environment-driven defaults for ``create_app``.

Values are read at call time so tests can set environment variables before
building the app; explicit ``create_app(config=...)`` overrides win over both.
"""
from __future__ import annotations
import os
from typing import Any, Dict


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ('1', 'true', 'yes', 'on')


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == '':
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f'{name} must be a number')


def load_settings() -> Dict[str, Any]:
    settings: Dict[str, Any] = {
        'DATABASE_URL': os.getenv('DATABASE_URL', 'sqlite:///dev.db'),
        'JWT_SECRET_KEY': os.getenv('JWT_SECRET_KEY', 'dev-secret'),
        'JWT_TOKEN_LOCATION': [p.strip() for p in os.getenv('JWT_TOKEN_LOCATION', 'headers').split(',') if p.strip()],
        'APP_URL': os.getenv('APP_URL', 'http://localhost:3000').rstrip('/'),
        'LABEL_PRINT_DELAY_SECONDS': _env_float('LABEL_PRINT_DELAY_SECONDS', 1.0),
        'LABEL_PRINT_FAILURE_RATE': _env_float('LABEL_PRINT_FAILURE_RATE', 0.05),
        'ENFORCE_STATUS_TRANSITIONS': _env_bool('ENFORCE_STATUS_TRANSITIONS', True),
        'RESEND_API_KEY': os.getenv('RESEND_API_KEY'),
        'SUPPORT_FROM_EMAIL': os.getenv('SUPPORT_FROM_EMAIL', 'ServiceTracker Pro <onboarding@resend.dev>'),
        'SUPPORT_TEAM_EMAIL': os.getenv('SUPPORT_TEAM_EMAIL'),
        'LOG_LEVEL': os.getenv('LOG_LEVEL', 'INFO').upper(),
    }
    audience = os.getenv('JWT_DECODE_AUDIENCE')
    if audience:
        # identity-provider tokens carry an audience claim (e.g. "authenticated")
        settings['JWT_DECODE_AUDIENCE'] = audience
    return settings

__all__ = ['load_settings']
