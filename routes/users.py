from flask import Blueprint, g, jsonify
from sqlalchemy import func, or_

from classes.account_manager import AccountManager
from classes.validators import parse_body, parse_query
from models import db
from models.assignment_submissions import AssignmentSubmission
from models.assignments import Assignment
from models.courses import Course
from models.enrollments import Enrollment
from models.profiles import Profile
from schemas import RoleUpdateSchema, UserListQuery
from utils.errors import ForbiddenError, NotFoundError, ValidationError
from utils.helpers import pagination_payload
from utils.utils import login_required, roles_required

user_bp = Blueprint("user_bp", __name__)


def _get_profile(user_id):
    profile = db.session.get(Profile, user_id)
    if profile is None:
        raise NotFoundError("User not found")
    return profile


def _resolve_target(user_id):
    """``me`` means the requester; anyone else needs the admin role."""
    if user_id == "me":
        return g.user
    if user_id != g.user.id and g.user.role != "admin":
        raise ForbiddenError("Not authorized to access this data")
    return _get_profile(user_id)


def user_stats(profile):
    stats = {"role": profile.role}

    if profile.role in ("student", "admin"):
        enrollments = Enrollment.query.filter_by(user_id=profile.id)
        stats["total_enrollments"] = enrollments.count()
        stats["completed_courses"] = enrollments.filter(Enrollment.completed_at.isnot(None)).count()

        submissions = AssignmentSubmission.query.filter_by(user_id=profile.id)
        stats["total_submissions"] = submissions.count()
        stats["graded_submissions"] = submissions.filter_by(status="graded").count()
        average = (
            db.session.query(func.avg(AssignmentSubmission.grade))
            .filter(AssignmentSubmission.user_id == profile.id, AssignmentSubmission.grade.isnot(None))
            .scalar()
        )
        stats["average_grade"] = float(average) if average is not None else None

    if profile.role in ("instructor", "admin"):
        course_ids = db.session.query(Course.id).filter(Course.instructor_id == profile.id)
        courses = Course.query.filter_by(instructor_id=profile.id)
        stats["total_courses"] = courses.count()
        stats["published_courses"] = courses.filter(Course.is_published.is_(True)).count()
        stats["total_students"] = (
            db.session.query(func.count(func.distinct(Enrollment.user_id)))
            .filter(Enrollment.course_id.in_(course_ids.scalar_subquery()))
            .scalar()
        )
        stats["total_assignments"] = Assignment.query.filter(
            Assignment.course_id.in_(course_ids.scalar_subquery())
        ).count()

    return stats


#__________________________________________________________________________________________ * Administration *

@user_bp.route("", methods=["GET"])
@roles_required("admin")
def get_users():
    params = parse_query(UserListQuery)

    query = Profile.query
    if params.search:
        pattern = f"%{params.search}%"
        query = query.filter(or_(
            Profile.first_name.ilike(pattern),
            Profile.last_name.ilike(pattern),
            Profile.email.ilike(pattern),
        ))
    if params.role:
        query = query.filter(Profile.role == params.role)

    pagination = query.order_by(Profile.created_at.desc(), Profile.id).paginate(
        page=params.page, per_page=params.limit, error_out=False
    )
    return jsonify(pagination_payload(pagination, [profile.to_dict() for profile in pagination.items])), 200


@user_bp.route("/<user_id>", methods=["GET"])
@roles_required("admin")
def get_user(user_id):
    return jsonify({"success": True, "data": _get_profile(user_id).to_dict()}), 200


@user_bp.route("/<user_id>/role", methods=["PUT"])
@roles_required("admin")
def update_user_role(user_id):
    data = parse_body(RoleUpdateSchema)
    profile = _get_profile(user_id)
    profile.role = data.role
    db.session.commit()
    return jsonify({"success": True, "data": profile.to_dict()}), 200


@user_bp.route("/<user_id>", methods=["DELETE"])
@roles_required("admin")
def delete_user(user_id):
    if user_id == g.user.id:
        raise ValidationError("You cannot delete your own account")

    AccountManager.delete_account(_get_profile(user_id))
    return jsonify({"success": True, "message": "User deleted successfully"}), 200


#__________________________________________________________________________________________ * Self or admin *

@user_bp.route("/<user_id>/courses", methods=["GET"])
@login_required
def get_user_courses(user_id):
    profile = _resolve_target(user_id)

    if profile.role in ("instructor", "admin"):
        courses = Course.query.filter_by(instructor_id=profile.id).order_by(Course.created_at.desc()).all()
        data = [course.to_dict() for course in courses]
    else:
        enrollments = Enrollment.query.filter_by(user_id=profile.id).order_by(Enrollment.enrolled_at.desc()).all()
        data = [enrollment.to_dict(include_course=True) for enrollment in enrollments]

    return jsonify({"success": True, "count": len(data), "data": data}), 200


@user_bp.route("/<user_id>/assignments", methods=["GET"])
@login_required
def get_user_assignments(user_id):
    profile = _resolve_target(user_id)

    submissions = (
        AssignmentSubmission.query.filter_by(user_id=profile.id)
        .order_by(AssignmentSubmission.submitted_at.desc())
        .all()
    )
    data = []
    for submission in submissions:
        item = submission.to_dict()
        item["assignment"] = submission.assignment.to_dict()
        data.append(item)
    return jsonify({"success": True, "count": len(data), "data": data}), 200


@user_bp.route("/<user_id>/enrollments", methods=["GET"])
@login_required
def get_user_enrollments(user_id):
    profile = _resolve_target(user_id)

    enrollments = Enrollment.query.filter_by(user_id=profile.id).order_by(Enrollment.enrolled_at.desc()).all()
    data = [enrollment.to_dict(include_course=True) for enrollment in enrollments]
    return jsonify({"success": True, "count": len(data), "data": data}), 200


@user_bp.route("/<user_id>/stats", methods=["GET"])
@login_required
def get_user_stats(user_id):
    profile = _resolve_target(user_id)
    return jsonify({"success": True, "data": user_stats(profile)}), 200
