# storefront/model/user.py
from ..extensions import db
from .types import utcnow

ADMIN_ROLES = ("admin", "super_admin")


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    display_name = db.Column(db.String(180), nullable=True)
    password_hash = db.Column(db.String(255), nullable=False, default="")
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)

    admin = db.relationship("AdminRole", uselist=False, backref="user", cascade="all, delete-orphan")

    def as_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "display_name": self.display_name,
        }


class AdminRole(db.Model):
    """Presence of a row grants access to the admin area."""
    __tablename__ = "admins"

    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), primary_key=True)
    role = db.Column(db.String(20), nullable=False, default="admin")
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)

    def as_dict(self):
        return {
            "uid": self.user_id,
            "email": self.user.email if self.user else None,
            "display_name": self.user.display_name if self.user else None,
            "role": self.role,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
