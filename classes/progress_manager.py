import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from models import db
from models.enrollments import Enrollment
from models.lesson_progress import LessonProgress
from models.lessons import Lesson
from models.sections import Section
from utils.errors import ForbiddenError, ValidationError
from utils.helpers import format_datetime, utcnow

logger = logging.getLogger(__name__)


def completion_percentage(completed, total):
    """round(100 * completed / total), halves rounded up; 0 for an empty course."""
    if total <= 0:
        return 0
    return min(100, (200 * completed + total) // (2 * total))


class ProgressManager:
    @staticmethod
    def get_enrollment(user_id, course_id):
        return Enrollment.query.filter_by(user_id=user_id, course_id=course_id).first()

    @staticmethod
    def record_lesson_viewed(user_id, lesson_id):
        """Note that a student opened a lesson. Never raises."""
        try:
            exists = LessonProgress.query.filter_by(user_id=user_id, lesson_id=lesson_id).first()
            if exists is None:
                db.session.add(LessonProgress(user_id=user_id, lesson_id=lesson_id, completed=False))
                db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            logger.exception("Failed to record view of lesson %s by user %s", lesson_id, user_id)

    @staticmethod
    def mark_lesson_complete(enrollment, lesson_id):
        if enrollment is None:
            raise ForbiddenError("You are not enrolled in this course")

        lesson = db.session.get(Lesson, lesson_id)
        if lesson is None or lesson.course_id != enrollment.course_id:
            raise ValidationError("Lesson does not belong to this course")

        try:
            progress = ProgressManager._upsert_completed(enrollment, lesson_id)
            db.session.commit()
        except IntegrityError:
            # A concurrent request inserted the row; complete the one that won.
            db.session.rollback()
            progress = ProgressManager._upsert_completed(enrollment, lesson_id)
            db.session.commit()
        return progress

    @staticmethod
    def _upsert_completed(enrollment, lesson_id):
        now = utcnow()
        progress = LessonProgress.query.filter_by(user_id=enrollment.user_id, lesson_id=lesson_id).first()
        if progress is None:
            progress = LessonProgress(
                user_id=enrollment.user_id,
                lesson_id=lesson_id,
                completed=True,
                started_at=now,
                completed_at=now,
            )
            db.session.add(progress)
        elif not progress.completed:
            progress.completed = True
            progress.completed_at = now
        enrollment.last_accessed_at = now
        db.session.flush()
        return progress

    @staticmethod
    def recompute_progress(enrollment, persist=True):
        """Recount completed lessons and store the percentage on the enrollment if it drifted."""
        total = Lesson.query.filter_by(course_id=enrollment.course_id).count()
        completed = (
            LessonProgress.query.join(Lesson, Lesson.id == LessonProgress.lesson_id)
            .filter(
                LessonProgress.user_id == enrollment.user_id,
                LessonProgress.completed.is_(True),
                Lesson.course_id == enrollment.course_id,
            )
            .count()
        )
        percentage = completion_percentage(completed, total)
        if not persist:
            return {"percentage": percentage, "completed_count": completed, "total_count": total}

        changed = False
        if enrollment.progress_percentage != percentage:
            enrollment.progress_percentage = percentage
            changed = True
        # completed_at only ever moves from unset to set.
        if percentage == 100 and enrollment.completed_at is None:
            enrollment.completed_at = utcnow()
            changed = True
        if changed:
            db.session.commit()
            logger.info(
                "Enrollment %s progress now %s%% (%s/%s)", enrollment.id, percentage, completed, total
            )

        return {"percentage": percentage, "completed_count": completed, "total_count": total}

    @staticmethod
    def recompute_after_completion(enrollment):
        """Best-effort recount; the completion that triggered it stands either way."""
        try:
            return ProgressManager.recompute_progress(enrollment)
        except Exception:
            db.session.rollback()
            logger.exception("Failed to recompute progress for enrollment %s", enrollment.id)
            return None

    @staticmethod
    def course_progress(enrollment):
        summary = ProgressManager.recompute_progress(enrollment)

        lessons = (
            Lesson.query.join(Section, Section.id == Lesson.section_id)
            .filter(Lesson.course_id == enrollment.course_id)
            .order_by(Section.order_index, Lesson.order)
            .all()
        )
        rows = LessonProgress.query.filter(
            LessonProgress.user_id == enrollment.user_id,
            LessonProgress.lesson_id.in_([lesson.id for lesson in lessons]),
        ).all() if lessons else []
        by_lesson = {row.lesson_id: row for row in rows}

        detailed = []
        for lesson in lessons:
            row = by_lesson.get(lesson.id)
            detailed.append({
                "lesson_id": lesson.id,
                "title": lesson.title,
                "section_id": lesson.section_id,
                "completed": bool(row and row.completed),
                "completed_at": format_datetime(row.completed_at) if row else None,
            })

        return {
            "enrollment_id": enrollment.id,
            "course_id": enrollment.course_id,
            "progress_percentage": summary["percentage"],
            "completed_lessons": summary["completed_count"],
            "total_lessons": summary["total_count"],
            "completed_at": format_datetime(enrollment.completed_at),
            "detailed_progress": detailed,
        }
