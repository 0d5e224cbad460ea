from models import db
from sqlalchemy.orm import relationship
from utils.helpers import as_utc, format_datetime, new_uuid, utcnow


class Assignment(db.Model):
    __tablename__ = "assignments"

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    course_id = db.Column(db.String(36), db.ForeignKey("courses.id"), nullable=False, index=True)
    section_id = db.Column(db.String(36), db.ForeignKey("sections.id"), nullable=True)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    due_date = db.Column(db.DateTime(timezone=True), nullable=True)
    points = db.Column(db.Integer, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    course = relationship("Course")

    __table_args__ = (
        db.CheckConstraint("points IS NULL OR points >= 0", name="check_assignment_points"),
    )

    @property
    def is_past_due(self):
        return self.due_date is not None and utcnow() > as_utc(self.due_date)

    def __repr__(self):
        return f"<Assignment {self.title} (Course ID {self.course_id})>"

    def to_dict(self):
        return {
            "id": self.id,
            "course_id": self.course_id,
            "section_id": self.section_id,
            "title": self.title,
            "description": self.description,
            "due_date": format_datetime(self.due_date),
            "points": self.points,
            "created_at": format_datetime(self.created_at),
            "updated_at": format_datetime(self.updated_at),
        }
