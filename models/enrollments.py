from models import db
from sqlalchemy.orm import relationship
from utils.helpers import format_datetime, new_uuid, utcnow


class Enrollment(db.Model):
    __tablename__ = "enrollments"

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    user_id = db.Column(db.String(36), db.ForeignKey("profiles.id"), nullable=False, index=True)
    course_id = db.Column(db.String(36), db.ForeignKey("courses.id"), nullable=False, index=True)
    progress_percentage = db.Column(db.Integer, nullable=False, default=0)
    enrolled_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)
    completed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    last_accessed_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=True)

    user = relationship("Profile")
    course = relationship("Course")

    __table_args__ = (
        db.UniqueConstraint("user_id", "course_id", name="unique_user_course_enrollment"),
        db.CheckConstraint(
            "progress_percentage >= 0 AND progress_percentage <= 100",
            name="check_enrollment_progress_range",
        ),
    )

    @property
    def is_completed(self):
        return self.completed_at is not None

    def __repr__(self):
        return f"<Enrollment User {self.user_id} Course {self.course_id}>"

    def to_dict(self, include_course=False, include_user=False):
        data = {
            "id": self.id,
            "user_id": self.user_id,
            "course_id": self.course_id,
            "progress_percentage": self.progress_percentage,
            "enrolled_at": format_datetime(self.enrolled_at),
            "completed_at": format_datetime(self.completed_at),
            "last_accessed_at": format_datetime(self.last_accessed_at),
        }
        if include_course:
            data["course"] = self.course.to_dict(include_instructor=True) if self.course else None
        if include_user:
            data["user"] = self.user.to_summary() if self.user else None
        return data
