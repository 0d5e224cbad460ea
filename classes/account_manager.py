import logging

from sqlalchemy.exc import IntegrityError

from classes.course_manager import CourseManager
from models import db
from models.accounts import Account
from models.assignment_submissions import AssignmentSubmission
from models.course_reviews import CourseReview
from models.courses import Course
from models.enrollments import Enrollment
from models.lesson_progress import LessonProgress
from models.profiles import Profile
from utils.errors import AuthError, ConflictError, ValidationError
from utils.tokens import PASSWORD_RESET_TOKEN, decode_jwt, password_fingerprint

logger = logging.getLogger(__name__)


def normalize_email(email):
    return (email or "").strip().lower()


class AccountManager:
    @staticmethod
    def get_account(account_id):
        return db.session.get(Account, account_id)

    @staticmethod
    def get_account_by_email(email):
        return Account.query.filter_by(email=normalize_email(email)).first()

    @staticmethod
    def ensure_profile(account):
        """Return the account's profile, creating a student profile on first use."""
        profile = db.session.get(Profile, account.id)
        if profile is not None:
            return profile

        profile = Profile(id=account.id, email=account.email, role="student")
        db.session.add(profile)
        try:
            db.session.commit()
        except IntegrityError:
            # Another request created it first.
            db.session.rollback()
            return db.session.get(Profile, account.id)
        logger.info("Created missing profile for account %s", account.id)
        return profile

    @staticmethod
    def register(email, password, first_name, last_name, role="student"):
        email = normalize_email(email)
        if Account.query.filter_by(email=email).first():
            raise ConflictError("User already exists")

        account = Account(email=email)
        account.set_password(password)
        db.session.add(account)
        db.session.flush()

        profile = Profile(
            id=account.id,
            email=email,
            first_name=first_name,
            last_name=last_name,
            role=role,
        )
        db.session.add(profile)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise ConflictError("User already exists")

        logger.info("Registered account %s", account.id)
        return account, profile

    @staticmethod
    def authenticate(email, password):
        account = AccountManager.get_account_by_email(email)
        if not account or not account.check_password(password):
            raise AuthError("Invalid credentials")
        return account, AccountManager.ensure_profile(account)

    @staticmethod
    def change_password(account, current_password, new_password):
        if not account.check_password(current_password):
            raise AuthError("Current password is incorrect")
        account.set_password(new_password)
        db.session.commit()

    @staticmethod
    def reset_password(token, new_password):
        payload = decode_jwt(token, PASSWORD_RESET_TOKEN)
        account = AccountManager.get_account(payload["sub"]) if payload else None
        if account is None or payload.get("pwd") != password_fingerprint(account):
            raise ValidationError("Invalid or expired reset token")
        account.set_password(new_password)
        db.session.commit()
        return account

    @staticmethod
    def delete_account(profile):
        """Remove a user and everything they own, children before parents."""
        user_id = profile.id
        try:
            for course in Course.query.filter_by(instructor_id=user_id).all():
                CourseManager.delete_course_rows(course)

            AssignmentSubmission.query.filter_by(user_id=user_id).delete()
            LessonProgress.query.filter_by(user_id=user_id).delete()
            CourseReview.query.filter_by(user_id=user_id).delete()
            Enrollment.query.filter_by(user_id=user_id).delete()
            db.session.flush()

            account = db.session.get(Account, user_id)
            db.session.delete(profile)
            db.session.flush()
            if account is not None:
                db.session.delete(account)
            db.session.commit()
        except Exception:
            db.session.rollback()
            logger.exception("Failed to delete user %s", user_id)
            raise

        logger.info("Deleted user %s", user_id)
