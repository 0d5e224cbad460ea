import datetime
import hashlib
import logging

import jwt
from flask import current_app

logger = logging.getLogger(__name__)

ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"
PASSWORD_RESET_TOKEN = "password_reset"

_EXPIRY_SETTINGS = {
    ACCESS_TOKEN: "JWT_ACCESS_TOKEN_EXPIRES",
    REFRESH_TOKEN: "JWT_REFRESH_TOKEN_EXPIRES",
    PASSWORD_RESET_TOKEN: "PASSWORD_RESET_EXPIRES",
}


def get_jwt_token(user_data, token_type=ACCESS_TOKEN):
    """Generate a signed JWT carrying the user payload."""
    if not user_data:
        raise ValueError("User data must be provided to generate JWT token")

    now = datetime.datetime.now(datetime.timezone.utc)
    expiration = now + current_app.config[_EXPIRY_SETTINGS[token_type]]
    payload = {**user_data, "exp": expiration, "iat": now, "type": token_type}

    return jwt.encode(payload, current_app.config["SECRET_KEY"], algorithm="HS256")


def decode_jwt(token, token_type=ACCESS_TOKEN):
    """Decode and validate a JWT; returns None when it is unusable."""
    try:
        payload = jwt.decode(token, current_app.config["SECRET_KEY"], algorithms=["HS256"])
    except jwt.ExpiredSignatureError:
        logger.info("Rejected expired %s token", token_type)
        return None
    except jwt.InvalidTokenError:
        logger.info("Rejected invalid %s token", token_type)
        return None

    if payload.get("type") != token_type:
        logger.info("Rejected token of type %r where %r was expected", payload.get("type"), token_type)
        return None
    return payload


def issue_token_pair(account, profile):
    claims = {"sub": account.id, "email": account.email, "role": profile.role}
    return {
        "token": get_jwt_token(claims, ACCESS_TOKEN),
        "refreshToken": get_jwt_token({"sub": account.id}, REFRESH_TOKEN),
    }


def password_fingerprint(account):
    # Changes whenever the password does, so a used reset link stops working.
    return hashlib.sha256(account.password_hash.encode("utf-8")).hexdigest()[:16]


def get_password_reset_token(account):
    return get_jwt_token({"sub": account.id, "pwd": password_fingerprint(account)}, PASSWORD_RESET_TOKEN)
