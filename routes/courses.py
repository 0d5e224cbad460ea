import logging

from flask import Blueprint, g, jsonify, request
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from classes.access_policy import (
    can_access_course_content,
    can_manage_course,
    can_view_lesson,
    ensure_can_access_course_content,
    ensure_can_manage_course,
    ensure_can_view_course,
)
from classes.course_manager import CourseManager
from classes.progress_manager import ProgressManager
from classes.validators import parse_body, parse_query
from models import db
from models.assignment_submissions import AssignmentSubmission
from models.assignments import Assignment
from models.course_reviews import CourseReview
from models.courses import Course
from models.enrollments import Enrollment
from models.lessons import Lesson
from models.sections import Section
from models.study_materials import StudyMaterial
from schemas import (
    CourseCreateSchema,
    CourseListQuery,
    CourseUpdateSchema,
    InstructorCourseQuery,
    LessonCreateSchema,
    LessonUpdateSchema,
    ReviewSchema,
    SectionSchema,
    StudyMaterialSchema,
)
from utils.dropbox_service import delete_file_from_dropbox, upload_cover_image
from utils.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from utils.helpers import format_datetime, pagination_payload
from utils.utils import login_required, optional_auth, roles_required

logger = logging.getLogger(__name__)

course_bp = Blueprint("course_bp", __name__)


def _order_courses(query, params):
    column = getattr(Course, params.sortBy)
    direction = column.asc() if params.sortOrder == "asc" else column.desc()
    return query.order_by(direction, Course.id)


def _requester_enrollment(course):
    if g.user is None:
        return None
    return ProgressManager.get_enrollment(g.user.id, course.id)


def _store_cover_image(owner_id):
    cover = request.files.get("coverImage")
    if cover is None or not cover.filename:
        return None, None
    return upload_cover_image(cover, owner_id)


#__________________________________________________________________________________________ * Courses *

# Public catalogue of published courses
@course_bp.route("", methods=["GET"])
def list_courses():
    params = parse_query(CourseListQuery)

    query = Course.query.filter(Course.is_published.is_(True))
    if params.category:
        query = query.filter(Course.category == params.category)
    if params.difficulty_level:
        query = query.filter(Course.difficulty_level == params.difficulty_level)
    if params.instructor_id:
        query = query.filter(Course.instructor_id == params.instructor_id)
    if params.price_min is not None:
        query = query.filter(Course.price >= params.price_min)
    if params.price_max is not None:
        query = query.filter(Course.price <= params.price_max)
    if params.search:
        pattern = f"%{params.search}%"
        query = query.filter(or_(Course.title.ilike(pattern), Course.description.ilike(pattern)))

    pagination = _order_courses(query, params).paginate(page=params.page, per_page=params.limit, error_out=False)
    items = [course.to_dict(include_instructor=True) for course in pagination.items]
    return jsonify(pagination_payload(pagination, items)), 200


# Courses the requester teaches, or is enrolled in
@course_bp.route("/me", methods=["GET"])
@login_required
def get_my_courses():
    if g.user.role in ("instructor", "admin"):
        courses = Course.query.filter_by(instructor_id=g.user.id).order_by(Course.created_at.desc()).all()
        data = [course.to_dict() for course in courses]
    else:
        enrollments = Enrollment.query.filter_by(user_id=g.user.id).order_by(Enrollment.enrolled_at.desc()).all()
        data = []
        for enrollment in enrollments:
            item = enrollment.course.to_dict(include_instructor=True)
            item.update({
                "enrollment_id": enrollment.id,
                "enrolled_at": format_datetime(enrollment.enrolled_at),
                "completed_at": format_datetime(enrollment.completed_at),
                "progress_percentage": enrollment.progress_percentage,
            })
            data.append(item)

    return jsonify({"success": True, "count": len(data), "data": data}), 200


@course_bp.route("/instructor", methods=["GET"])
@roles_required("instructor", "admin")
def get_instructor_courses():
    params = parse_query(InstructorCourseQuery)

    query = Course.query.filter_by(instructor_id=g.user.id)
    if params.category:
        query = query.filter(Course.category == params.category)
    if params.is_published is not None:
        query = query.filter(Course.is_published.is_(params.is_published))

    pagination = _order_courses(query, params).paginate(page=params.page, per_page=params.limit, error_out=False)
    return jsonify(pagination_payload(pagination, [course.to_dict() for course in pagination.items])), 200


@course_bp.route("", methods=["POST"])
@roles_required("instructor", "admin")
def create_course():
    data = parse_body(CourseCreateSchema)
    fields = data.model_dump()

    cover_url, cover_path = _store_cover_image(g.user.id)
    if cover_url:
        fields["cover_image_url"] = cover_url
        fields["cover_image_path"] = cover_path

    course = CourseManager.create_course(g.user, fields)
    return jsonify({"success": True, "data": course.to_dict(include_instructor=True)}), 201


@course_bp.route("/<course_id>", methods=["GET"])
@optional_auth
def get_course(course_id):
    course = CourseManager.get_course(course_id)
    ensure_can_view_course(course, g.user)

    data = course.to_dict(include_instructor=True)
    data["sections"] = [
        section.to_dict(lessons=lessons) for section, lessons in CourseManager.sections_with_lessons(course)
    ]
    enrollment = _requester_enrollment(course)
    data["is_enrolled"] = enrollment is not None
    data["enrollment"] = enrollment.to_dict() if enrollment else None
    return jsonify({"success": True, "data": data}), 200


@course_bp.route("/<course_id>", methods=["PUT"])
@login_required
def update_course(course_id):
    course = CourseManager.get_course(course_id)
    ensure_can_manage_course(course, g.user)

    changes = parse_body(CourseUpdateSchema).model_dump(exclude_unset=True)

    old_cover_path = course.cover_image_path
    cover_url, cover_path = _store_cover_image(course.instructor_id)
    if cover_url:
        changes["cover_image_url"] = cover_url
        changes["cover_image_path"] = cover_path

    CourseManager.update_course(course, changes)
    if cover_url and old_cover_path:
        delete_file_from_dropbox(old_cover_path)

    return jsonify({"success": True, "data": course.to_dict(include_instructor=True)}), 200


@course_bp.route("/<course_id>", methods=["DELETE"])
@login_required
def delete_course(course_id):
    course = CourseManager.get_course(course_id)
    ensure_can_manage_course(course, g.user, "Not authorized to delete this course")

    cover_path = course.cover_image_path
    CourseManager.delete_course(course)
    if cover_path:
        delete_file_from_dropbox(cover_path)

    return jsonify({"success": True, "message": "Course deleted successfully"}), 200


@course_bp.route("/<course_id>/publish", methods=["PUT"])
@login_required
def publish_course(course_id):
    course = CourseManager.get_course(course_id)
    ensure_can_manage_course(course, g.user, "Not authorized to publish this course")
    CourseManager.set_published(course, True)
    return jsonify({"success": True, "data": course.to_dict()}), 200


@course_bp.route("/<course_id>/unpublish", methods=["PUT"])
@login_required
def unpublish_course(course_id):
    course = CourseManager.get_course(course_id)
    ensure_can_manage_course(course, g.user, "Not authorized to unpublish this course")
    CourseManager.set_published(course, False)
    return jsonify({"success": True, "data": course.to_dict()}), 200


#__________________________________________________________________________________________ * Sections *

@course_bp.route("/<course_id>/sections", methods=["GET"])
@optional_auth
def get_sections(course_id):
    course = CourseManager.get_course(course_id)
    ensure_can_view_course(course, g.user)

    data = [section.to_dict(lessons=lessons) for section, lessons in CourseManager.sections_with_lessons(course)]
    return jsonify({"success": True, "count": len(data), "data": data}), 200


@course_bp.route("/<course_id>/sections", methods=["POST"])
@login_required
def create_section(course_id):
    course = CourseManager.get_course(course_id)
    ensure_can_manage_course(course, g.user, "Not authorized to add sections to this course")

    data = parse_body(SectionSchema)
    section = CourseManager.create_section(course, data.title)
    return jsonify({"success": True, "data": section.to_dict()}), 201


@course_bp.route("/<course_id>/sections/<section_id>", methods=["PUT"])
@login_required
def update_section(course_id, section_id):
    course = CourseManager.get_course(course_id)
    ensure_can_manage_course(course, g.user, "Not authorized to update sections of this course")
    section = CourseManager.get_section(course, section_id)

    data = parse_body(SectionSchema)
    CourseManager.update_section(section, data.title)
    return jsonify({"success": True, "data": section.to_dict()}), 200


@course_bp.route("/<course_id>/sections/<section_id>", methods=["DELETE"])
@login_required
def delete_section(course_id, section_id):
    course = CourseManager.get_course(course_id)
    ensure_can_manage_course(course, g.user, "Not authorized to delete sections of this course")
    section = CourseManager.get_section(course, section_id)

    CourseManager.delete_section(section)
    return jsonify({"success": True, "message": "Section deleted successfully"}), 200


#__________________________________________________________________________________________ * Lessons *

def _visible_lessons(course, query):
    """Everything for entitled requesters, preview lessons for everyone else."""
    if can_access_course_content(course, g.user, _requester_enrollment(course)):
        return query.all()
    if course.is_published:
        return query.filter(Lesson.is_preview.is_(True)).all()
    raise ForbiddenError("Not authorized to access lessons of this course")


@course_bp.route("/<course_id>/lessons", methods=["GET"])
@optional_auth
def get_course_lessons(course_id):
    course = CourseManager.get_course(course_id)
    query = (
        Lesson.query.join(Section, Section.id == Lesson.section_id)
        .filter(Lesson.course_id == course.id)
        .order_by(Section.order_index, Lesson.order)
    )
    lessons = _visible_lessons(course, query)
    return jsonify({"success": True, "count": len(lessons), "data": [lesson.to_dict() for lesson in lessons]}), 200


@course_bp.route("/<course_id>/sections/<section_id>/lessons", methods=["GET"])
@optional_auth
def get_section_lessons(course_id, section_id):
    course = CourseManager.get_course(course_id)
    section = CourseManager.get_section(course, section_id)

    lessons = _visible_lessons(course, Lesson.query.filter_by(section_id=section.id).order_by(Lesson.order))
    return jsonify({"success": True, "count": len(lessons), "data": [lesson.to_dict() for lesson in lessons]}), 200


@course_bp.route("/<course_id>/sections/<section_id>/lessons", methods=["POST"])
@login_required
def create_lesson(course_id, section_id):
    course = CourseManager.get_course(course_id)
    ensure_can_manage_course(course, g.user, "Not authorized to add lessons to this course")
    section = CourseManager.get_section(course, section_id)

    data = parse_body(LessonCreateSchema)
    lesson, content = CourseManager.create_lesson(
        course, section, data.model_dump(exclude={"content"}), content=data.content
    )
    return jsonify({"success": True, "data": lesson.to_dict(content=content)}), 201


@course_bp.route("/<course_id>/sections/<section_id>/lessons/<lesson_id>", methods=["GET"])
@optional_auth
def get_lesson(course_id, section_id, lesson_id):
    course = CourseManager.get_course(course_id)
    section = CourseManager.get_section(course, section_id)
    lesson = CourseManager.get_lesson(course, section, lesson_id)

    enrollment = _requester_enrollment(course)
    if not can_view_lesson(course, lesson, g.user, enrollment):
        raise ForbiddenError("Not authorized to access this lesson")

    data = lesson.to_dict(content=CourseManager.get_lesson_content(lesson))
    data["section"] = {"id": section.id, "title": section.title}

    if enrollment is not None and not can_manage_course(course, g.user):
        ProgressManager.record_lesson_viewed(g.user.id, lesson.id)

    return jsonify({"success": True, "data": data}), 200


@course_bp.route("/<course_id>/sections/<section_id>/lessons/<lesson_id>", methods=["PUT"])
@login_required
def update_lesson(course_id, section_id, lesson_id):
    course = CourseManager.get_course(course_id)
    ensure_can_manage_course(course, g.user, "Not authorized to update lessons of this course")
    section = CourseManager.get_section(course, section_id)
    lesson = CourseManager.get_lesson(course, section, lesson_id)

    data = parse_body(LessonUpdateSchema)
    changes = data.model_dump(exclude_unset=True, exclude={"content", "section_id"})
    target_section = CourseManager.get_section(course, data.section_id) if data.section_id else None
    content = data.content if "content" in data.model_fields_set else None

    lesson, lesson_content = CourseManager.update_lesson(lesson, changes, content=content, target_section=target_section)
    return jsonify({"success": True, "data": lesson.to_dict(content=lesson_content)}), 200


@course_bp.route("/<course_id>/sections/<section_id>/lessons/<lesson_id>", methods=["DELETE"])
@login_required
def delete_lesson(course_id, section_id, lesson_id):
    course = CourseManager.get_course(course_id)
    ensure_can_manage_course(course, g.user, "Not authorized to delete lessons of this course")
    section = CourseManager.get_section(course, section_id)
    lesson = CourseManager.get_lesson(course, section, lesson_id)

    CourseManager.delete_lesson(lesson)
    return jsonify({"success": True, "message": "Lesson deleted successfully"}), 200


@course_bp.route("/<course_id>/sections/<section_id>/lessons/<lesson_id>/complete", methods=["PUT"])
@login_required
def complete_lesson(course_id, section_id, lesson_id):
    course = CourseManager.get_course(course_id)
    section = CourseManager.get_section(course, section_id)
    lesson = CourseManager.get_lesson(course, section, lesson_id)

    enrollment = ProgressManager.get_enrollment(g.user.id, course.id)
    progress = ProgressManager.mark_lesson_complete(enrollment, lesson.id)
    summary = ProgressManager.recompute_after_completion(enrollment)

    data = {
        "lesson_progress": progress.to_dict(),
        "enrollment_id": enrollment.id,
        "progress_percentage": summary["percentage"] if summary else enrollment.progress_percentage,
        "completed_lessons": summary["completed_count"] if summary else None,
        "total_lessons": summary["total_count"] if summary else None,
        "completed_at": format_datetime(enrollment.completed_at),
    }
    return jsonify({"success": True, "message": "Lesson marked as completed", "data": data}), 200


#__________________________________________________________________________________________ * Assignments *

@course_bp.route("/<course_id>/assignments", methods=["GET"])
@login_required
def get_course_assignments(course_id):
    course = CourseManager.get_course(course_id)
    ensure_can_access_course_content(course, g.user, _requester_enrollment(course))

    assignments = Assignment.query.filter_by(course_id=course.id).order_by(Assignment.created_at).all()
    manages = can_manage_course(course, g.user)

    data = []
    for assignment in assignments:
        item = assignment.to_dict()
        submissions = AssignmentSubmission.query.filter_by(assignment_id=assignment.id)
        if manages:
            item["submission_count"] = submissions.count()
        else:
            own = submissions.filter_by(user_id=g.user.id).first()
            item["submission"] = own.to_dict() if own else None
        data.append(item)

    return jsonify({"success": True, "count": len(data), "data": data}), 200


#__________________________________________________________________________________________ * Reviews *

@course_bp.route("/<course_id>/reviews", methods=["GET"])
@optional_auth
def get_course_reviews(course_id):
    course = CourseManager.get_course(course_id)
    ensure_can_view_course(course, g.user)

    reviews = CourseReview.query.filter_by(course_id=course.id).order_by(CourseReview.created_at.desc()).all()
    average = round(sum(review.rating for review in reviews) / len(reviews), 2) if reviews else None
    return jsonify({
        "success": True,
        "count": len(reviews),
        "average_rating": average,
        "data": [review.to_dict() for review in reviews],
    }), 200


@course_bp.route("/<course_id>/reviews", methods=["POST"])
@login_required
def create_course_review(course_id):
    course = CourseManager.get_course(course_id)
    enrollment = ProgressManager.get_enrollment(g.user.id, course.id)
    if enrollment is None or not enrollment.is_completed:
        raise ForbiddenError("You can only review courses you have completed")

    data = parse_body(ReviewSchema)
    if CourseReview.query.filter_by(course_id=course.id, user_id=g.user.id).first():
        raise ConflictError("You have already reviewed this course")

    review = CourseReview(course_id=course.id, user_id=g.user.id, rating=data.rating, comment=data.comment)
    db.session.add(review)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("You have already reviewed this course")

    return jsonify({"success": True, "data": review.to_dict()}), 201


#__________________________________________________________________________________________ * Study materials *

@course_bp.route("/<course_id>/materials", methods=["GET"])
@login_required
def get_study_materials(course_id):
    course = CourseManager.get_course(course_id)
    ensure_can_access_course_content(course, g.user, _requester_enrollment(course))

    materials = StudyMaterial.query.filter_by(course_id=course.id).order_by(StudyMaterial.created_at).all()
    return jsonify({"success": True, "count": len(materials), "data": [m.to_dict() for m in materials]}), 200


@course_bp.route("/<course_id>/materials", methods=["POST"])
@login_required
def add_study_material(course_id):
    course = CourseManager.get_course(course_id)
    ensure_can_manage_course(course, g.user, "Not authorized to add materials to this course")

    data = parse_body(StudyMaterialSchema)
    if data.section_id:
        CourseManager.get_section(course, data.section_id)
    if data.lesson_id and not Lesson.query.filter_by(id=data.lesson_id, course_id=course.id).first():
        raise ValidationError("Lesson does not belong to this course")

    material = StudyMaterial(course_id=course.id, **data.model_dump())
    db.session.add(material)
    db.session.commit()
    return jsonify({"success": True, "data": material.to_dict()}), 201


@course_bp.route("/<course_id>/materials/<material_id>", methods=["DELETE"])
@login_required
def remove_study_material(course_id, material_id):
    course = CourseManager.get_course(course_id)
    ensure_can_manage_course(course, g.user, "Not authorized to remove materials from this course")

    material = StudyMaterial.query.filter_by(id=material_id, course_id=course.id).first()
    if material is None:
        raise NotFoundError("Study material not found")

    db.session.delete(material)
    db.session.commit()
    return jsonify({"success": True, "message": "Study material removed successfully"}), 200
