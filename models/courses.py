from models import db
from sqlalchemy.orm import relationship
from utils.helpers import format_datetime, new_uuid, utcnow

class Course(db.Model):
    __tablename__ = "courses"

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    cover_image_url = db.Column(db.String(500), nullable=True)
    cover_image_path = db.Column(db.String(500), nullable=True)
    instructor_id = db.Column(db.String(36), db.ForeignKey("profiles.id"), nullable=False, index=True)
    price = db.Column(db.Numeric(10, 2, asdecimal=False), nullable=False, default=0)
    is_published = db.Column(db.Boolean, nullable=False, default=False)
    published_at = db.Column(db.DateTime(timezone=True), nullable=True)
    category = db.Column(db.String(100), nullable=True, index=True)
    tags = db.Column(db.JSON, nullable=False, default=list)
    duration_weeks = db.Column(db.Integer, nullable=True)
    difficulty_level = db.Column(db.String(20), nullable=False, default="beginner")
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    instructor = relationship("Profile")

    __table_args__ = (
        db.CheckConstraint(
            "difficulty_level IN ('beginner', 'intermediate', 'advanced')",
            name="check_course_difficulty_level",
        ),
        db.CheckConstraint("price >= 0", name="check_course_price"),
    )

    def __repr__(self):
        return f"<Course {self.title} (Instructor ID {self.instructor_id})>"

    def to_dict(self, include_instructor=False):
        data = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "cover_image_url": self.cover_image_url,
            "instructor_id": self.instructor_id,
            "price": self.price,
            "is_published": self.is_published,
            "published_at": format_datetime(self.published_at),
            "category": self.category,
            "tags": self.tags or [],
            "duration_weeks": self.duration_weeks,
            "difficulty_level": self.difficulty_level,
            "created_at": format_datetime(self.created_at),
            "updated_at": format_datetime(self.updated_at),
        }
        if include_instructor:
            data["instructor"] = self.instructor.to_summary() if self.instructor else None
        return data
