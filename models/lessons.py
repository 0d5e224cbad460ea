from sqlalchemy.orm import relationship
from models import db
from utils.helpers import format_datetime, new_uuid, utcnow


class Lesson(db.Model):
    __tablename__ = "lessons"

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    course_id = db.Column(db.String(36), db.ForeignKey("courses.id"), nullable=False, index=True)
    section_id = db.Column(db.String(36), db.ForeignKey("sections.id"), nullable=False, index=True)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    video_url = db.Column(db.String(500), nullable=True)
    order = db.Column(db.Integer, nullable=False, default=1)
    duration_minutes = db.Column(db.Integer, nullable=True)
    is_preview = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    course = relationship("Course")
    section = relationship("Section")

    @staticmethod
    def get_next_order(section_id):
        last_lesson = Lesson.query.filter_by(section_id=section_id).order_by(Lesson.order.desc()).first()
        return (last_lesson.order + 1) if last_lesson else 1

    @staticmethod
    def reorder_siblings(section_id):
        lessons = Lesson.query.filter_by(section_id=section_id).order_by(Lesson.order, Lesson.created_at).all()
        for position, lesson in enumerate(lessons, start=1):
            if lesson.order != position:
                lesson.order = position
        return lessons

    def __repr__(self):
        return f"<Lesson {self.title} (Section ID {self.section_id})>"

    def to_dict(self, content=None):
        data = {
            "id": self.id,
            "course_id": self.course_id,
            "section_id": self.section_id,
            "title": self.title,
            "description": self.description if self.description is not None else "",
            "video_url": self.video_url,
            "order": self.order,
            "duration_minutes": self.duration_minutes,
            "is_preview": self.is_preview,
            "created_at": format_datetime(self.created_at),
            "updated_at": format_datetime(self.updated_at),
        }
        if content is not None:
            data["content"] = content.content
        return data
