from flask import Blueprint, g, jsonify

from classes.access_policy import ensure_can_manage_course
from classes.course_manager import CourseManager
from classes.enrollment_manager import EnrollmentManager
from classes.progress_manager import ProgressManager
from classes.validators import parse_body
from models import db
from models.enrollments import Enrollment
from schemas import EnrollSchema, LessonCompletionSchema
from utils.errors import ForbiddenError, NotFoundError
from utils.helpers import format_datetime
from utils.utils import login_required

enrollment_bp = Blueprint("enrollment_bp", __name__)


# Enroll the requester in a course
@enrollment_bp.route("", methods=["POST"])
@login_required
def enroll_in_course():
    data = parse_body(EnrollSchema)
    enrollment = EnrollmentManager.enroll_student(data.course_id, g.user)
    return jsonify({"success": True, "data": enrollment.to_dict()}), 201


# The requester's own enrollments
@enrollment_bp.route("", methods=["GET"])
@login_required
def get_user_enrollments():
    enrollments = Enrollment.query.filter_by(user_id=g.user.id).order_by(Enrollment.enrolled_at.desc()).all()
    data = [enrollment.to_dict(include_course=True) for enrollment in enrollments]
    return jsonify({"success": True, "count": len(data), "data": data}), 200


# Everyone enrolled in a course (owner or admin)
@enrollment_bp.route("/course/<course_id>", methods=["GET"])
@login_required
def get_course_enrollments(course_id):
    course = CourseManager.get_course(course_id)
    ensure_can_manage_course(course, g.user, "Not authorized to view enrollments for this course")

    enrollments = Enrollment.query.filter_by(course_id=course.id).order_by(Enrollment.enrolled_at.desc()).all()
    data = [enrollment.to_dict(include_user=True) for enrollment in enrollments]
    return jsonify({"success": True, "count": len(data), "data": data}), 200


@enrollment_bp.route("/course/<course_id>", methods=["DELETE"])
@login_required
def unenroll_from_course(course_id):
    EnrollmentManager.unenroll_student(course_id, g.user)
    return jsonify({"success": True, "message": "Successfully unenrolled from course"}), 200


# Mark one lesson complete against an enrollment
@enrollment_bp.route("/<enrollment_id>/progress", methods=["PUT"])
@login_required
def update_enrollment_progress(enrollment_id):
    enrollment = db.session.get(Enrollment, enrollment_id)
    if enrollment is None:
        raise NotFoundError("Enrollment not found")
    if enrollment.user_id != g.user.id:
        raise ForbiddenError("Not authorized to update this enrollment")

    data = parse_body(LessonCompletionSchema)
    ProgressManager.mark_lesson_complete(enrollment, data.lesson_id)
    ProgressManager.recompute_after_completion(enrollment)

    return jsonify({"success": True, "data": enrollment.to_dict()}), 200


@enrollment_bp.route("/progress/<course_id>", methods=["GET"])
@login_required
def get_course_progress(course_id):
    enrollment = ProgressManager.get_enrollment(g.user.id, course_id)
    if enrollment is None:
        raise NotFoundError("You are not enrolled in this course")

    progress = ProgressManager.course_progress(enrollment)
    return jsonify({"success": True, **progress, "last_accessed_at": format_datetime(enrollment.last_accessed_at)}), 200
