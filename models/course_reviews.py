from models import db
from sqlalchemy.orm import relationship
from utils.helpers import format_datetime, new_uuid, utcnow


class CourseReview(db.Model):
    __tablename__ = "course_reviews"

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    course_id = db.Column(db.String(36), db.ForeignKey("courses.id"), nullable=False, index=True)
    user_id = db.Column(db.String(36), db.ForeignKey("profiles.id"), nullable=False)
    rating = db.Column(db.Integer, nullable=False)
    comment = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    user = relationship("Profile")

    __table_args__ = (
        db.UniqueConstraint("course_id", "user_id", name="unique_course_user_review"),
        db.CheckConstraint("rating >= 1 AND rating <= 5", name="check_review_rating"),
    )

    def __repr__(self):
        return f"<CourseReview {self.rating} (Course ID {self.course_id})>"

    def to_dict(self):
        return {
            "id": self.id,
            "course_id": self.course_id,
            "user_id": self.user_id,
            "rating": self.rating,
            "comment": self.comment,
            "user": self.user.to_summary() if self.user else None,
            "created_at": format_datetime(self.created_at),
            "updated_at": format_datetime(self.updated_at),
        }
