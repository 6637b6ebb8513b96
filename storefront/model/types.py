# storefront/model/types.py
import uuid
from datetime import datetime, timezone

from sqlalchemy.types import TypeDecorator, CHAR
from sqlalchemy.dialects.postgresql import UUID as PG_UUID


def utcnow():
    return datetime.now(timezone.utc)


def new_id():
    return str(uuid.uuid4())


def is_valid_id(value):
    try:
        uuid.UUID(str(value))
    except ValueError:
        return False
    return True


class GUID(TypeDecorator):
    """UUID column that reads back as a plain string id.

    Native uuid on PostgreSQL, CHAR(36) elsewhere. Ids travel through URLs and
    JSON as strings, so the Python side never sees uuid.UUID objects.
    """
    impl = CHAR
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(PG_UUID(as_uuid=False))
        return dialect.type_descriptor(CHAR(36))

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        try:
            return str(uuid.UUID(str(value)))
        except ValueError:
            # not a uuid, cannot match any row
            return str(value)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return str(value)
