from datetime import datetime

from ..extensions import db


class TimestampMixin:
    """Mixin to add created_at and updated_at timestamps"""

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class SerializerMixin:
    """Plain column dump used by the JSON blueprints."""

    def column_dict(self):
        data = {}
        for column in self.__table__.columns:
            value = getattr(self, column.name)
            if hasattr(value, 'isoformat'):
                value = value.isoformat()
            data[column.name] = value
        return data
