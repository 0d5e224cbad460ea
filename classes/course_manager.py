import logging

from sqlalchemy.exc import SQLAlchemyError

from classes.validators import sanitize_html
from models import db
from models.assignment_submissions import AssignmentSubmission
from models.assignments import Assignment
from models.course_reviews import CourseReview
from models.courses import Course
from models.enrollments import Enrollment
from models.lesson_contents import LessonContent
from models.lesson_progress import LessonProgress
from models.lessons import Lesson
from models.sections import Section
from models.study_materials import StudyMaterial
from utils.errors import ConflictError, NotFoundError
from utils.helpers import utcnow

logger = logging.getLogger(__name__)


class CourseManager:
    # ------------------------------------------------------------------ lookups

    @staticmethod
    def get_course(course_id):
        course = db.session.get(Course, course_id)
        if course is None:
            raise NotFoundError("Course not found")
        return course

    @staticmethod
    def get_section(course, section_id):
        section = Section.query.filter_by(id=section_id, course_id=course.id).first()
        if section is None:
            raise NotFoundError("Section not found")
        return section

    @staticmethod
    def get_lesson(course, section, lesson_id):
        lesson = Lesson.query.filter_by(id=lesson_id, section_id=section.id, course_id=course.id).first()
        if lesson is None:
            raise NotFoundError("Lesson not found")
        return lesson

    @staticmethod
    def get_lesson_content(lesson):
        return LessonContent.query.filter_by(lesson_id=lesson.id).first()

    @staticmethod
    def sections_with_lessons(course):
        sections = Section.query.filter_by(course_id=course.id).order_by(Section.order_index).all()
        lessons = Lesson.query.filter_by(course_id=course.id).order_by(Lesson.order).all()
        grouped = {section.id: [] for section in sections}
        for lesson in lessons:
            grouped.setdefault(lesson.section_id, []).append(lesson)
        return [(section, grouped[section.id]) for section in sections]

    # ------------------------------------------------------------------ courses

    @staticmethod
    def create_course(instructor, fields):
        course = Course(instructor_id=instructor.id, **fields)
        if course.description:
            course.description = sanitize_html(course.description)
        db.session.add(course)
        db.session.commit()
        logger.info("Course %s created by %s", course.id, instructor.id)
        return course

    @staticmethod
    def update_course(course, changes):
        if "description" in changes and changes["description"]:
            changes["description"] = sanitize_html(changes["description"])
        for field, value in changes.items():
            setattr(course, field, value)
        db.session.commit()
        return course

    @staticmethod
    def set_published(course, published):
        if published and course.is_published:
            raise ConflictError("Course is already published")
        if not published and not course.is_published:
            raise ConflictError("Course is not published")

        course.is_published = published
        if published:
            course.published_at = utcnow()
        db.session.commit()
        logger.info("Course %s %s", course.id, "published" if published else "unpublished")
        return course

    @staticmethod
    def delete_course_rows(course):
        """Delete a course and all its children without committing."""
        course_id = course.id
        assignment_ids = db.session.query(Assignment.id).filter(Assignment.course_id == course_id)
        lesson_ids = db.session.query(Lesson.id).filter(Lesson.course_id == course_id)

        AssignmentSubmission.query.filter(
            AssignmentSubmission.assignment_id.in_(assignment_ids.scalar_subquery())
        ).delete(synchronize_session=False)
        Assignment.query.filter_by(course_id=course_id).delete(synchronize_session=False)
        db.session.flush()

        StudyMaterial.query.filter_by(course_id=course_id).delete(synchronize_session=False)
        LessonProgress.query.filter(
            LessonProgress.lesson_id.in_(lesson_ids.scalar_subquery())
        ).delete(synchronize_session=False)
        LessonContent.query.filter(
            LessonContent.lesson_id.in_(lesson_ids.scalar_subquery())
        ).delete(synchronize_session=False)
        Lesson.query.filter_by(course_id=course_id).delete(synchronize_session=False)
        Section.query.filter_by(course_id=course_id).delete(synchronize_session=False)
        db.session.flush()

        CourseReview.query.filter_by(course_id=course_id).delete(synchronize_session=False)
        Enrollment.query.filter_by(course_id=course_id).delete(synchronize_session=False)
        db.session.flush()

        db.session.delete(course)
        db.session.flush()

    @staticmethod
    def delete_course(course):
        course_id = course.id
        try:
            CourseManager.delete_course_rows(course)
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            logger.exception("Failed to delete course %s", course_id)
            raise
        logger.info("Course %s deleted", course_id)

    # ----------------------------------------------------------------- sections

    @staticmethod
    def create_section(course, title):
        section = Section(course_id=course.id, title=title, order_index=Section.get_next_order(course.id))
        db.session.add(section)
        db.session.commit()
        return section

    @staticmethod
    def update_section(section, title):
        section.title = title
        db.session.commit()
        return section

    @staticmethod
    def delete_section(section):
        course_id = section.course_id
        lesson_ids = [lesson_id for (lesson_id,) in db.session.query(Lesson.id).filter_by(section_id=section.id)]

        CourseManager._delete_lesson_rows(lesson_ids)
        Assignment.query.filter_by(section_id=section.id).update({"section_id": None}, synchronize_session=False)
        StudyMaterial.query.filter_by(section_id=section.id).update({"section_id": None}, synchronize_session=False)
        db.session.flush()
        db.session.delete(section)
        db.session.commit()

        CourseManager._compact(Section.reorder_siblings, course_id)

    # ------------------------------------------------------------------ lessons

    @staticmethod
    def create_lesson(course, section, fields, content=None):
        lesson = Lesson(
            course_id=course.id,
            section_id=section.id,
            order=Lesson.get_next_order(section.id),
            **fields,
        )
        db.session.add(lesson)
        db.session.flush()

        lesson_content = LessonContent(lesson_id=lesson.id, content=sanitize_html(content or ""))
        db.session.add(lesson_content)
        db.session.commit()
        return lesson, lesson_content

    @staticmethod
    def update_lesson(lesson, changes, content=None, target_section=None):
        previous_section_id = lesson.section_id
        moved = target_section is not None and target_section.id != previous_section_id
        if moved:
            lesson.section_id = target_section.id
            lesson.order = Lesson.get_next_order(target_section.id)

        for field, value in changes.items():
            setattr(lesson, field, value)

        lesson_content = CourseManager.get_lesson_content(lesson)
        if content is not None:
            if lesson_content is None:
                lesson_content = LessonContent(lesson_id=lesson.id)
                db.session.add(lesson_content)
            lesson_content.content = sanitize_html(content)
        db.session.commit()

        if moved:
            CourseManager._compact(Lesson.reorder_siblings, previous_section_id)
        return lesson, lesson_content

    @staticmethod
    def delete_lesson(lesson):
        section_id = lesson.section_id
        CourseManager._delete_lesson_rows([lesson.id])
        db.session.commit()

        CourseManager._compact(Lesson.reorder_siblings, section_id)

    @staticmethod
    def _delete_lesson_rows(lesson_ids):
        if not lesson_ids:
            return
        LessonProgress.query.filter(LessonProgress.lesson_id.in_(lesson_ids)).delete(synchronize_session=False)
        LessonContent.query.filter(LessonContent.lesson_id.in_(lesson_ids)).delete(synchronize_session=False)
        StudyMaterial.query.filter(StudyMaterial.lesson_id.in_(lesson_ids)).update(
            {"lesson_id": None}, synchronize_session=False
        )
        db.session.flush()
        Lesson.query.filter(Lesson.id.in_(lesson_ids)).delete(synchronize_session=False)
        db.session.flush()

    @staticmethod
    def _compact(reorder, parent_id):
        """Renumber siblings after a removal. Failures are logged, not raised."""
        try:
            reorder(parent_id)
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            logger.exception("Failed to reorder siblings under %s", parent_id)
