import pytest

from classes.enrollment_manager import EnrollmentManager
from classes.progress_manager import ProgressManager, completion_percentage
from models.lesson_progress import LessonProgress
from utils.errors import ForbiddenError, ValidationError


@pytest.mark.parametrize(
    "completed,total,expected",
    [
        (0, 0, 0),
        (0, 3, 0),
        (1, 3, 33),
        (2, 3, 67),
        (1, 2, 50),
        (1, 8, 13),
        (3, 3, 100),
    ],
)
def test_completion_percentage_rounds_half_up(completed, total, expected):
    assert completion_percentage(completed, total) == expected


def test_mark_lesson_complete_is_idempotent(published_course, student):
    course, _, lessons = published_course
    enrollment = EnrollmentManager.enroll_student(course.id, student)

    first = ProgressManager.mark_lesson_complete(enrollment, lessons[0].id)
    completed_at = first.completed_at
    second = ProgressManager.mark_lesson_complete(enrollment, lessons[0].id)

    assert second.id == first.id
    assert second.completed_at == completed_at
    assert LessonProgress.query.filter_by(user_id=student.id).count() == 1

    summary = ProgressManager.recompute_progress(enrollment)
    assert summary == {"percentage": 50, "completed_count": 1, "total_count": 2}


def test_completion_requires_enrollment_and_matching_course(published_course, student, make_course,
                                                            make_section, make_lesson, instructor):
    course, _, lessons = published_course
    with pytest.raises(ForbiddenError):
        ProgressManager.mark_lesson_complete(None, lessons[0].id)

    other = make_course(instructor, title="Other")
    foreign = make_lesson(other, make_section(other))
    enrollment = EnrollmentManager.enroll_student(course.id, student)
    with pytest.raises(ValidationError):
        ProgressManager.mark_lesson_complete(enrollment, foreign.id)


def test_completed_at_is_never_cleared(published_course, student, make_lesson):
    course, section, lessons = published_course
    enrollment = EnrollmentManager.enroll_student(course.id, student)
    for lesson in lessons:
        ProgressManager.mark_lesson_complete(enrollment, lesson.id)
    ProgressManager.recompute_progress(enrollment)
    assert enrollment.progress_percentage == 100
    finished = enrollment.completed_at
    assert finished is not None

    # New material drops the percentage but the course stays completed.
    make_lesson(course, section, "Bonus")
    summary = ProgressManager.recompute_progress(enrollment)
    assert summary["percentage"] == 67
    assert enrollment.completed_at == finished


def test_viewing_does_not_undo_completion(published_course, student):
    course, _, lessons = published_course
    enrollment = EnrollmentManager.enroll_student(course.id, student)
    ProgressManager.mark_lesson_complete(enrollment, lessons[1].id)

    ProgressManager.record_lesson_viewed(student.id, lessons[1].id)
    ProgressManager.record_lesson_viewed(student.id, lessons[0].id)

    rows = {row.lesson_id: row for row in LessonProgress.query.filter_by(user_id=student.id)}
    assert rows[lessons[1].id].completed is True
    assert rows[lessons[0].id].completed is False


def test_recompute_without_persisting(published_course, student):
    course, _, lessons = published_course
    enrollment = EnrollmentManager.enroll_student(course.id, student)
    ProgressManager.mark_lesson_complete(enrollment, lessons[0].id)

    summary = ProgressManager.recompute_progress(enrollment, persist=False)

    assert summary["percentage"] == 50
    assert enrollment.progress_percentage == 0


def test_course_progress_lists_lessons_in_order(published_course, student):
    course, _, lessons = published_course
    enrollment = EnrollmentManager.enroll_student(course.id, student)
    ProgressManager.mark_lesson_complete(enrollment, lessons[0].id)

    progress = ProgressManager.course_progress(enrollment)

    assert progress["completed_lessons"] == 1
    assert progress["total_lessons"] == 2
    assert progress["completed_at"] is None
    assert [item["lesson_id"] for item in progress["detailed_progress"]] == [lesson.id for lesson in lessons]
    assert [item["completed"] for item in progress["detailed_progress"]] == [True, False]
