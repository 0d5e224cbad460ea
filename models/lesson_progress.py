from models import db
from utils.helpers import format_datetime, new_uuid, utcnow


class LessonProgress(db.Model):
    __tablename__ = "lesson_progress"

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    user_id = db.Column(db.String(36), db.ForeignKey("profiles.id"), nullable=False, index=True)
    lesson_id = db.Column(db.String(36), db.ForeignKey("lessons.id"), nullable=False, index=True)
    completed = db.Column(db.Boolean, nullable=False, default=False)
    started_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)
    completed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    __table_args__ = (
        db.UniqueConstraint("user_id", "lesson_id", name="unique_user_lesson_progress"),
    )

    def __repr__(self):
        return f"<LessonProgress User {self.user_id} Lesson {self.lesson_id} completed={self.completed}>"

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "lesson_id": self.lesson_id,
            "completed": self.completed,
            "started_at": format_datetime(self.started_at),
            "completed_at": format_datetime(self.completed_at),
        }
