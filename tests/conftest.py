"""Pytest configuration and shared fixtures."""

import pytest

from app import create_app
from classes.account_manager import AccountManager
from classes.course_manager import CourseManager
from models import db
from models.accounts import Account
from utils.helpers import new_uuid
from utils.tokens import issue_token_pair

PASSWORD = "password123"


@pytest.fixture
def app():
    """Create an app bound to a fresh in-memory database."""
    app = create_app("testing")
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    """Factory for registered users with a given role."""

    def _make_user(role="student", email=None, first_name="Test", last_name=None):
        email = email or f"{role}-{new_uuid()[:8]}@example.com"
        _, profile = AccountManager.register(email, PASSWORD, first_name, last_name or role.title(), role=role)
        return profile

    return _make_user


@pytest.fixture
def auth_headers(app):
    """Bearer headers for a profile."""

    def _auth_headers(profile):
        account = db.session.get(Account, profile.id)
        return {"Authorization": f"Bearer {issue_token_pair(account, profile)['token']}"}

    return _auth_headers


@pytest.fixture
def instructor(make_user):
    return make_user("instructor")


@pytest.fixture
def student(make_user):
    return make_user("student")


@pytest.fixture
def admin(make_user):
    return make_user("admin")


@pytest.fixture
def make_course(app):
    def _make_course(instructor, published=False, **fields):
        fields.setdefault("title", "Intro to Testing")
        course = CourseManager.create_course(instructor, fields)
        if published:
            CourseManager.set_published(course, True)
        return course

    return _make_course


@pytest.fixture
def make_section(app):
    def _make_section(course, title="Section"):
        return CourseManager.create_section(course, title)

    return _make_section


@pytest.fixture
def make_lesson(app):
    def _make_lesson(course, section, title="Lesson", is_preview=False, content="Body"):
        lesson, _ = CourseManager.create_lesson(
            course, section, {"title": title, "is_preview": is_preview}, content=content
        )
        return lesson

    return _make_lesson


@pytest.fixture
def published_course(instructor, make_course, make_section, make_lesson):
    """A published course with one section holding a preview lesson and a regular lesson."""
    course = make_course(instructor)
    section = make_section(course, "Basics")
    preview = make_lesson(course, section, "Welcome", is_preview=True)
    lesson = make_lesson(course, section, "Deep dive")
    CourseManager.set_published(course, True)
    return course, section, [preview, lesson]
