import logging

from flask import Blueprint, g, jsonify

from classes.account_manager import AccountManager
from classes.validators import parse_body
from models import db
from schemas import (
    ChangePasswordSchema,
    ForgotPasswordSchema,
    LoginSchema,
    ProfileUpdateSchema,
    RefreshTokenSchema,
    RegisterSchema,
    ResetPasswordSchema,
)
from utils.email import send_password_reset_email
from utils.errors import AuthError
from utils.tokens import REFRESH_TOKEN, decode_jwt, get_password_reset_token, issue_token_pair
from utils.utils import login_required

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth_bp", __name__)


def _user_payload(account, profile):
    return {
        "id": account.id,
        "email": account.email,
        "first_name": profile.first_name,
        "last_name": profile.last_name,
        "role": profile.role,
        "avatar_url": profile.avatar_url,
    }


# Register
@auth_bp.route("/register", methods=["POST"])
def register():
    data = parse_body(RegisterSchema)
    account, profile = AccountManager.register(
        data.email, data.password, data.first_name, data.last_name
    )

    return jsonify({
        "success": True,
        "message": "User registered successfully",
        "user": _user_payload(account, profile),
    }), 201


# Login
@auth_bp.route("/login", methods=["POST"])
def login():
    data = parse_body(LoginSchema)
    account, profile = AccountManager.authenticate(data.email, data.password)
    logger.info("User %s logged in", account.id)

    return jsonify({
        "success": True,
        "user": _user_payload(account, profile),
        **issue_token_pair(account, profile),
    }), 200


# Exchange a refresh token for a new token pair
@auth_bp.route("/refresh", methods=["POST"])
def refresh():
    data = parse_body(RefreshTokenSchema)
    payload = decode_jwt(data.refreshToken, REFRESH_TOKEN)
    account = AccountManager.get_account(payload["sub"]) if payload else None
    if account is None:
        raise AuthError("Invalid or expired refresh token")

    profile = AccountManager.ensure_profile(account)
    return jsonify({"success": True, **issue_token_pair(account, profile)}), 200


#__________________________________________________________________________________________ * Passwords *

@auth_bp.route("/forgot-password", methods=["POST"])
def forgot_password():
    data = parse_body(ForgotPasswordSchema)
    account = AccountManager.get_account_by_email(data.email)

    # Same answer either way so the endpoint cannot be used to probe for accounts.
    if account is not None:
        if not send_password_reset_email(account.email, get_password_reset_token(account)):
            logger.error("Password reset email to account %s was not sent", account.id)

    return jsonify({
        "success": True,
        "message": "If an account exists for that email, a password reset link has been sent",
    }), 200


@auth_bp.route("/reset-password", methods=["POST"])
def reset_password():
    data = parse_body(ResetPasswordSchema)
    AccountManager.reset_password(data.token, data.password)
    return jsonify({"success": True, "message": "Password updated successfully"}), 200


@auth_bp.route("/password", methods=["PUT"])
@login_required
def update_password():
    data = parse_body(ChangePasswordSchema)
    AccountManager.change_password(g.account, data.current_password, data.new_password)
    return jsonify({"success": True, "message": "Password updated successfully"}), 200


#__________________________________________________________________________________________ * Profile *

@auth_bp.route("/profile", methods=["GET"])
@login_required
def get_profile():
    return jsonify({"success": True, "data": g.user.to_dict()}), 200


@auth_bp.route("/profile", methods=["PUT"])
@login_required
def update_profile():
    changes = parse_body(ProfileUpdateSchema).model_dump(exclude_unset=True)
    for field, value in changes.items():
        setattr(g.user, field, value)
    db.session.commit()

    return jsonify({"success": True, "data": g.user.to_dict()}), 200


# Auth Check
@auth_bp.route("/validate", methods=["GET"])
@login_required
def validate_session():
    return jsonify({"success": True, "user": _user_payload(g.account, g.user)}), 200
