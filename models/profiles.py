from models import db
from utils.helpers import format_datetime, full_name, utcnow

class Profile(db.Model):
    __tablename__ = "profiles"

    id = db.Column(db.String(36), db.ForeignKey("accounts.id"), primary_key=True)
    email = db.Column(db.String(255), nullable=False, unique=True)
    first_name = db.Column(db.String(100), nullable=True)
    last_name = db.Column(db.String(100), nullable=True)
    avatar_url = db.Column(db.String(500), nullable=True)
    bio = db.Column(db.Text, nullable=True)
    role = db.Column(db.String(20), nullable=False, default="student")  # 'student', 'instructor', 'admin'
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    __table_args__ = (
        db.CheckConstraint("role IN ('student', 'instructor', 'admin')", name="check_profile_role"),
    )

    @property
    def full_name(self):
        return full_name(self.first_name, self.last_name)

    @property
    def is_admin(self):
        return self.role == "admin"

    def __repr__(self):
        return f"<Profile {self.email} ({self.role})>"

    def to_summary(self):
        return {
            "id": self.id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "avatar_url": self.avatar_url,
        }

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "full_name": self.full_name,
            "avatar_url": self.avatar_url,
            "bio": self.bio,
            "role": self.role,
            "created_at": format_datetime(self.created_at),
            "updated_at": format_datetime(self.updated_at),
        }
