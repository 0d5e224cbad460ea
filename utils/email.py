import logging

from flask import current_app
from flask_mail import Message

from extensions import mail

logger = logging.getLogger(__name__)


def send_email(to, subject, body):
    """Sends an email using Flask-Mail."""
    msg = Message(subject=subject, recipients=[to], body=body)
    try:
        mail.send(msg)
        return True
    except Exception:
        logger.exception("Failed to send email to %s", to)
        return False


def send_password_reset_email(email, token):
    reset_link = f"{current_app.config['FRONTEND_URL'].rstrip('/')}/reset-password?token={token}"
    body = (
        "We received a request to reset your password.\n\n"
        f"Open this link to choose a new one: {reset_link}\n\n"
        "The link expires in one hour. If you did not ask for this, ignore this email."
    )
    return send_email(email, "Reset your password", body)
