from models import db
from sqlalchemy.orm import relationship
from utils.helpers import format_datetime, new_uuid, utcnow


class Section(db.Model):
    __tablename__ = "sections"

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    course_id = db.Column(db.String(36), db.ForeignKey("courses.id"), nullable=False, index=True)
    title = db.Column(db.String(255), nullable=False)
    order_index = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    course = relationship("Course")

    @staticmethod
    def get_next_order(course_id):
        last_section = Section.query.filter_by(course_id=course_id).order_by(Section.order_index.desc()).first()
        return (last_section.order_index + 1) if last_section else 1

    @staticmethod
    def reorder_siblings(course_id):
        """Renumber a course's sections to 1..N, keeping their relative order."""
        sections = Section.query.filter_by(course_id=course_id).order_by(
            Section.order_index, Section.created_at
        ).all()
        for position, section in enumerate(sections, start=1):
            if section.order_index != position:
                section.order_index = position
        return sections

    def __repr__(self):
        return f"<Section {self.title} (Course ID {self.course_id})>"

    def to_dict(self, lessons=None):
        data = {
            "id": self.id,
            "course_id": self.course_id,
            "title": self.title,
            "order_index": self.order_index,
            "created_at": format_datetime(self.created_at),
            "updated_at": format_datetime(self.updated_at),
        }
        if lessons is not None:
            data["lessons"] = [lesson.to_dict() for lesson in lessons]
        return data
