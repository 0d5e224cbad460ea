import logging

from flask import Blueprint, g, jsonify
from sqlalchemy.exc import IntegrityError

from classes.access_policy import (
    can_manage_course,
    ensure_can_access_course_content,
    ensure_can_manage_course,
)
from classes.course_manager import CourseManager
from classes.progress_manager import ProgressManager
from classes.validators import parse_body, sanitize_html
from models import db
from models.assignment_submissions import AssignmentSubmission
from models.assignments import Assignment
from schemas import (
    AssignmentCreateSchema,
    AssignmentUpdateSchema,
    GradeSchema,
    ReturnSubmissionSchema,
    SubmissionSchema,
)
from utils.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from utils.helpers import utcnow
from utils.utils import login_required

logger = logging.getLogger(__name__)

assignment_bp = Blueprint("assignment_bp", __name__)


def _get_assignment(assignment_id):
    assignment = db.session.get(Assignment, assignment_id)
    if assignment is None:
        raise NotFoundError("Assignment not found")
    return assignment


def _get_submission(assignment, submission_id):
    submission = AssignmentSubmission.query.filter_by(id=submission_id, assignment_id=assignment.id).first()
    if submission is None:
        raise NotFoundError("Submission not found")
    return submission


#__________________________________________________________________________________________ * Assignments *

@assignment_bp.route("", methods=["POST"])
@login_required
def create_assignment():
    data = parse_body(AssignmentCreateSchema)
    course = CourseManager.get_course(data.course_id)
    ensure_can_manage_course(course, g.user, "Not authorized to create assignments for this course")
    if data.section_id:
        CourseManager.get_section(course, data.section_id)

    assignment = Assignment(**data.model_dump())
    assignment.description = sanitize_html(assignment.description)
    db.session.add(assignment)
    db.session.commit()
    logger.info("Assignment %s created in course %s", assignment.id, course.id)

    return jsonify({"success": True, "data": assignment.to_dict()}), 201


@assignment_bp.route("/<assignment_id>", methods=["GET"])
@login_required
def get_assignment(assignment_id):
    assignment = _get_assignment(assignment_id)
    course = assignment.course
    enrollment = ProgressManager.get_enrollment(g.user.id, course.id)
    ensure_can_access_course_content(course, g.user, enrollment, "Not authorized to view this assignment")

    data = assignment.to_dict()
    data["course"] = {"id": course.id, "title": course.title, "instructor_id": course.instructor_id}
    own = AssignmentSubmission.query.filter_by(assignment_id=assignment.id, user_id=g.user.id).first()
    data["submission"] = own.to_dict() if own else None
    return jsonify({"success": True, "data": data}), 200


@assignment_bp.route("/<assignment_id>", methods=["PUT"])
@login_required
def update_assignment(assignment_id):
    assignment = _get_assignment(assignment_id)
    course = assignment.course
    ensure_can_manage_course(course, g.user, "Not authorized to update this assignment")

    changes = parse_body(AssignmentUpdateSchema).model_dump(exclude_unset=True)
    if changes.get("section_id"):
        CourseManager.get_section(course, changes["section_id"])
    if changes.get("description"):
        changes["description"] = sanitize_html(changes["description"])

    for field, value in changes.items():
        setattr(assignment, field, value)
    db.session.commit()

    return jsonify({"success": True, "data": assignment.to_dict()}), 200


@assignment_bp.route("/<assignment_id>", methods=["DELETE"])
@login_required
def delete_assignment(assignment_id):
    assignment = _get_assignment(assignment_id)
    ensure_can_manage_course(assignment.course, g.user, "Not authorized to delete this assignment")

    AssignmentSubmission.query.filter_by(assignment_id=assignment.id).delete(synchronize_session=False)
    db.session.delete(assignment)
    db.session.commit()

    return jsonify({"success": True, "message": "Assignment deleted successfully"}), 200


#__________________________________________________________________________________________ * Submissions *

@assignment_bp.route("/<assignment_id>/submissions", methods=["GET"])
@login_required
def get_submissions(assignment_id):
    assignment = _get_assignment(assignment_id)
    query = AssignmentSubmission.query.filter_by(assignment_id=assignment.id)

    if can_manage_course(assignment.course, g.user):
        submissions = query.order_by(AssignmentSubmission.submitted_at.desc()).all()
    else:
        enrollment = ProgressManager.get_enrollment(g.user.id, assignment.course_id)
        ensure_can_access_course_content(assignment.course, g.user, enrollment,
                                         "Not authorized to view submissions for this assignment")
        submissions = query.filter_by(user_id=g.user.id).all()

    data = [submission.to_dict(include_user=True) for submission in submissions]
    return jsonify({"success": True, "count": len(data), "data": data}), 200


@assignment_bp.route("/<assignment_id>/submissions", methods=["POST"])
@login_required
def submit_assignment(assignment_id):
    assignment = _get_assignment(assignment_id)
    enrollment = ProgressManager.get_enrollment(g.user.id, assignment.course_id)
    if enrollment is None or not assignment.course.is_published:
        raise ForbiddenError("You must be enrolled in this course to submit assignments")

    data = parse_body(SubmissionSchema)
    if assignment.is_past_due:
        raise ValidationError("This assignment is past its due date")

    submission = AssignmentSubmission.query.filter_by(assignment_id=assignment.id, user_id=g.user.id).first()
    if submission is not None and submission.status == "graded":
        raise ValidationError("Cannot update a submission that has already been graded")

    created = submission is None
    if created:
        submission = AssignmentSubmission(assignment_id=assignment.id, user_id=g.user.id)
        db.session.add(submission)
    submission.content = data.content
    submission.attachments = data.attachments
    submission.status = "submitted"
    submission.submitted_at = utcnow()

    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("A submission for this assignment already exists")

    return jsonify({"success": True, "data": submission.to_dict()}), 201 if created else 200


@assignment_bp.route("/<assignment_id>/submissions/<submission_id>", methods=["GET"])
@login_required
def get_submission(assignment_id, submission_id):
    assignment = _get_assignment(assignment_id)
    submission = _get_submission(assignment, submission_id)
    if submission.user_id != g.user.id and not can_manage_course(assignment.course, g.user):
        raise ForbiddenError("Not authorized to view this submission")

    return jsonify({"success": True, "data": submission.to_dict(include_user=True)}), 200


@assignment_bp.route("/<assignment_id>/submissions/<submission_id>/grade", methods=["PUT"])
@login_required
def grade_submission(assignment_id, submission_id):
    assignment = _get_assignment(assignment_id)
    ensure_can_manage_course(assignment.course, g.user, "Not authorized to grade submissions for this assignment")

    data = parse_body(GradeSchema)
    if assignment.points is not None and data.grade > assignment.points:
        raise ValidationError(f"Grade must be between 0 and {assignment.points}")

    submission = _get_submission(assignment, submission_id)
    submission.grade = data.grade
    submission.feedback = data.feedback
    submission.status = "graded"
    submission.graded_at = utcnow()
    db.session.commit()
    logger.info("Submission %s graded %s by %s", submission.id, data.grade, g.user.id)

    return jsonify({"success": True, "data": submission.to_dict()}), 200


# Hand a submission back so the student can resubmit
@assignment_bp.route("/<assignment_id>/submissions/<submission_id>/return", methods=["PUT"])
@login_required
def return_submission(assignment_id, submission_id):
    assignment = _get_assignment(assignment_id)
    ensure_can_manage_course(assignment.course, g.user, "Not authorized to return submissions for this assignment")

    data = parse_body(ReturnSubmissionSchema)
    submission = _get_submission(assignment, submission_id)
    submission.status = "returned"
    submission.grade = None
    submission.graded_at = None
    if data.feedback is not None:
        submission.feedback = data.feedback
    db.session.commit()

    return jsonify({"success": True, "data": submission.to_dict()}), 200
