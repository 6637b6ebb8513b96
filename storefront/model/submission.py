# storefront/model/submission.py
from ..extensions import db
from .types import GUID, new_id, utcnow


class ContactMessage(db.Model):
    __tablename__ = "contact_messages"

    id = db.Column(GUID(), primary_key=True, default=new_id)
    name = db.Column(db.String(180), nullable=False)
    email = db.Column(db.String(255), nullable=False)
    subject = db.Column(db.String(255), nullable=False)
    message = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, index=True)

    def as_api(self):
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "subject": self.subject,
            "message": self.message,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class InterestCheck(db.Model):
    __tablename__ = "interest_checks"

    id = db.Column(GUID(), primary_key=True, default=new_id)
    mats = db.Column(db.JSON, nullable=False)  # e.g. ["OG CatMat", "PeekMat"]
    interest_level = db.Column(db.Integer, nullable=False)  # 1-5
    price_points = db.Column(db.JSON, nullable=False)
    other_sizes = db.Column(db.Text)
    email = db.Column(db.String(255))
    suggestions = db.Column(db.Text)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, index=True)

    def as_api(self):
        return {
            "id": self.id,
            "mats": self.mats,
            "interest_level": self.interest_level,
            "price_points": self.price_points,
            "other_sizes": self.other_sizes,
            "email": self.email,
            "suggestions": self.suggestions,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
