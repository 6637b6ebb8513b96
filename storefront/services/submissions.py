# storefront/services/submissions.py
"""Contact form and interest-check responses. Append-only."""
import structlog

from ..errors import ValidationError
from ..extensions import db
from ..model import ContactMessage, InterestCheck

log = structlog.get_logger(__name__)


def _required_str(data, key):
    value = data.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{key} is required")
    return value.strip()


def _optional_str(data, key):
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{key} must be a string")
    return value.strip() or None


def _email(value):
    if value is not None and "@" not in value:
        raise ValidationError("Invalid email")
    return value


def _str_list(data, key):
    value = data.get(key)
    if not isinstance(value, list) or not value or not all(isinstance(v, str) and v.strip() for v in value):
        raise ValidationError(f"Select at least one option for {key}")
    return [v.strip() for v in value]


def submit_contact_message(data: dict) -> ContactMessage:
    msg = ContactMessage(
        name=_required_str(data, "name"),
        email=_email(_required_str(data, "email")),
        subject=_required_str(data, "subject"),
        message=_required_str(data, "message"),
    )
    db.session.add(msg)
    db.session.commit()
    log.info("contact_message_received", message_id=msg.id)
    return msg


def submit_interest_check(data: dict) -> InterestCheck:
    level = data.get("interestLevel", data.get("interest_level"))
    try:
        level = int(level)
    except (TypeError, ValueError) as e:
        raise ValidationError("Please select your interest level") from e
    if not 1 <= level <= 5:
        raise ValidationError("interest level must be between 1 and 5")

    entry = InterestCheck(
        mats=_str_list(data, "mats"),
        interest_level=level,
        price_points=_str_list({"pricePoints": data.get("pricePoints", data.get("price_points"))}, "pricePoints"),
        other_sizes=_optional_str(data, "otherSizes") if "otherSizes" in data else _optional_str(data, "other_sizes"),
        email=_email(_optional_str(data, "email")),
        suggestions=_optional_str(data, "suggestions"),
    )
    db.session.add(entry)
    db.session.commit()
    log.info("interest_check_received", interest_check_id=entry.id, interest_level=level)
    return entry


def list_contact_messages():
    return ContactMessage.query.order_by(ContactMessage.created_at.desc()).all()


def list_interest_checks():
    return InterestCheck.query.order_by(InterestCheck.created_at.desc()).all()
