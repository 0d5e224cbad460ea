"""Who may see or change a course and the things that hang off it.

Every predicate takes rows that were already fetched and touches nothing else.
A requester of ``None`` is an anonymous caller.
"""

from utils.errors import ForbiddenError


def is_owner(course, requester):
    return requester is not None and course.instructor_id == requester.id


def is_admin(requester):
    return requester is not None and requester.role == "admin"


def can_manage_course(course, requester):
    return is_owner(course, requester) or is_admin(requester)


def can_access_course_content(course, requester, enrollment=None):
    """Lessons, sections content, assignments and materials."""
    if requester is None:
        return False
    if is_owner(course, requester):
        return True
    if is_admin(requester):
        return True
    return bool(course.is_published and enrollment is not None)


def can_view_course(course, requester):
    """Course metadata and listings: published is enough."""
    return course.is_published or can_manage_course(course, requester)


def can_view_lesson(course, lesson, requester, enrollment=None):
    if course.is_published and lesson.is_preview:
        return True
    return can_access_course_content(course, requester, enrollment)


def ensure_can_manage_course(course, requester, message="Not authorized to update this course"):
    if not can_manage_course(course, requester):
        raise ForbiddenError(message)


def ensure_can_access_course_content(course, requester, enrollment=None,
                                     message="Not authorized to access this course content"):
    if not can_access_course_content(course, requester, enrollment):
        raise ForbiddenError(message)


def ensure_can_view_course(course, requester, message="Not authorized to view this course"):
    if not can_view_course(course, requester):
        raise ForbiddenError(message)
