from models import db
from sqlalchemy.orm import relationship
from utils.helpers import as_utc, format_datetime, new_uuid, utcnow

class AssignmentSubmission(db.Model):
    __tablename__ = "assignment_submissions"

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    assignment_id = db.Column(db.String(36), db.ForeignKey("assignments.id"), nullable=False, index=True)
    user_id = db.Column(db.String(36), db.ForeignKey("profiles.id"), nullable=False, index=True)
    content = db.Column(db.Text, nullable=True)
    attachments = db.Column(db.JSON, nullable=False, default=list)
    status = db.Column(db.String(20), nullable=False, default="submitted")
    grade = db.Column(db.Float, nullable=True)
    feedback = db.Column(db.Text, nullable=True)
    submitted_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)
    graded_at = db.Column(db.DateTime(timezone=True), nullable=True)

    # Relationships
    assignment = relationship("Assignment")
    user = relationship("Profile")

    __table_args__ = (
        db.UniqueConstraint("assignment_id", "user_id", name="unique_assignment_user_submission"),
        db.CheckConstraint(
            "status IN ('submitted', 'graded', 'returned')", name="check_submission_status"
        ),
    )

    @property
    def is_late(self):
        if self.assignment and self.assignment.due_date and self.submitted_at:
            return as_utc(self.submitted_at) > as_utc(self.assignment.due_date)
        return False

    def __repr__(self):
        return f"<AssignmentSubmission Assignment {self.assignment_id} User {self.user_id} ({self.status})>"

    def to_dict(self, include_user=False):
        data = {
            "id": self.id,
            "assignment_id": self.assignment_id,
            "user_id": self.user_id,
            "content": self.content,
            "attachments": self.attachments or [],
            "status": self.status,
            "grade": self.grade,
            "feedback": self.feedback,
            "submitted_at": format_datetime(self.submitted_at),
            "graded_at": format_datetime(self.graded_at),
            "is_late": self.is_late,
        }
        if include_user:
            data["user"] = self.user.to_summary() if self.user else None
        return data
