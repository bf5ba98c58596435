"""
Base model with common fields and methods
"""
import uuid
from datetime import datetime, timezone
from decimal import Decimal

from gatedrop.extensions import db


def generate_uuid():
    return str(uuid.uuid4())


def utcnow():
    return datetime.now(timezone.utc)


class BaseModel(db.Model):
    """Abstract base model with common fields"""
    __abstract__ = True

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    def to_dict(self, exclude=None):
        """
        Convert model to dictionary

        Args:
            exclude (list): List of fields to exclude

        Returns:
            dict: Model as dictionary
        """
        exclude = exclude or []
        data = {}

        for column in self.__table__.columns:
            if column.name not in exclude:
                value = getattr(self, column.name)

                if isinstance(value, datetime):
                    value = value.isoformat()
                elif isinstance(value, Decimal):
                    value = float(value)

                data[column.name] = value

        return data

    @classmethod
    def get_or_404(cls, record_id, message=None):
        """Load a record by primary key or raise NotFound"""
        from gatedrop.errors import NotFound

        record = db.session.get(cls, record_id)
        if record is None:
            raise NotFound(message or '{} not found'.format(cls.__name__))
        return record
