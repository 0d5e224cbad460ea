from functools import wraps

from flask import g, request

from classes.account_manager import AccountManager
from utils.errors import AuthError, ForbiddenError
from utils.tokens import decode_jwt


def get_bearer_token():
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def _load_requester(token):
    payload = decode_jwt(token)
    if not payload or not payload.get("sub"):
        raise AuthError("Not authorized, token failed")

    account = AccountManager.get_account(payload["sub"])
    if account is None:
        raise AuthError("Not authorized, user no longer exists")

    g.account = account
    g.user = AccountManager.ensure_profile(account)
    return g.user


def login_required(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = get_bearer_token()
        if not token:
            raise AuthError("Not authorized, no token")
        _load_requester(token)
        return f(*args, **kwargs)

    return decorated_function


def optional_auth(f):
    """Resolve the requester when a token is sent; anonymous callers get g.user = None."""

    @wraps(f)
    def decorated_function(*args, **kwargs):
        g.user = None
        g.account = None
        token = get_bearer_token()
        if token:
            _load_requester(token)
        return f(*args, **kwargs)

    return decorated_function


def roles_required(*roles):
    def decorator(f):
        @wraps(f)
        @login_required
        def decorated_function(*args, **kwargs):
            if g.user.role not in roles:
                raise ForbiddenError(f"User role {g.user.role} is not authorized to access this route")
            return f(*args, **kwargs)

        return decorated_function

    return decorator
