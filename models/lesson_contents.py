from models import db
from sqlalchemy.orm import relationship
from utils.helpers import new_uuid, utcnow


class LessonContent(db.Model):
    """Sanitised HTML body of a lesson, stored apart from the lesson row."""

    __tablename__ = "lesson_contents"

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    lesson_id = db.Column(db.String(36), db.ForeignKey("lessons.id"), nullable=False, unique=True)
    content = db.Column(db.Text, nullable=False, default="")
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    lesson = relationship("Lesson")

    def __repr__(self):
        return f"<LessonContent (Lesson ID {self.lesson_id})>"
