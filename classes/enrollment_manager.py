import logging

from sqlalchemy.exc import IntegrityError

from models import db
from models.courses import Course
from models.enrollments import Enrollment
from models.lesson_progress import LessonProgress
from models.lessons import Lesson
from utils.errors import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


class EnrollmentManager:
    @staticmethod
    def enroll_student(course_id, user):
        course = db.session.get(Course, course_id)
        if course is None:
            raise NotFoundError("Course not found")

        if not course.is_published and course.instructor_id != user.id:
            raise ValidationError("This course is not available for enrollment")

        if Enrollment.query.filter_by(user_id=user.id, course_id=course_id).first():
            raise ConflictError("You are already enrolled in this course")

        enrollment = Enrollment(user_id=user.id, course_id=course_id, progress_percentage=0)
        db.session.add(enrollment)
        try:
            db.session.commit()
        except IntegrityError:
            # Lost a race with a concurrent enrollment for the same pair.
            db.session.rollback()
            raise ConflictError("You are already enrolled in this course")

        logger.info("User %s enrolled in course %s", user.id, course_id)
        return enrollment

    @staticmethod
    def unenroll_student(course_id, user):
        enrollment = Enrollment.query.filter_by(user_id=user.id, course_id=course_id).first()
        if enrollment is None:
            raise NotFoundError("Enrollment not found")

        lesson_ids = db.session.query(Lesson.id).filter(Lesson.course_id == course_id)
        LessonProgress.query.filter(
            LessonProgress.user_id == user.id,
            LessonProgress.lesson_id.in_(lesson_ids.scalar_subquery()),
        ).delete(synchronize_session=False)
        db.session.delete(enrollment)
        db.session.commit()

        logger.info("User %s unenrolled from course %s", user.id, course_id)
