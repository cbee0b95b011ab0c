from functools import wraps
from flask_jwt_extended import verify_jwt_in_request
from app.services.identity import current_user, assert_active, assert_role


def require_user(fn):
    """Verify the identity-provider token and load (or lazily create) the local user."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        verify_jwt_in_request()
        assert_active(current_user())
        return fn(*args, **kwargs)
    return wrapper


def require_roles(*roles: str):
    def outer(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            user = current_user()
            assert_active(user)
            assert_role(user, *roles)
            return fn(*args, **kwargs)
        return wrapper
    return outer
