import uuid

from sqlalchemy import Column, Integer, MetaData, String
from sqlalchemy.orm import DeclarativeBase, validates

# Standardized naming convention for constraints/indexes.
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    """Declarative base class with metadata naming conventions."""
    metadata = MetaData(naming_convention=NAMING_CONVENTION)


class IntegerKeyMixin:
    """Store-assigned integer key."""
    id = Column(Integer, primary_key=True, autoincrement=True)


class UuidKeyMixin:
    """Client-assigned UUID key, generated on insert when left unset."""
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))


class NamedMixin:
    """Required, non-empty name."""
    name = Column(String, nullable=False)

    @validates("name")
    def _validate_name(self, key, value):
        if value is None or not str(value).strip():
            raise ValueError(f"{type(self).__name__}.{key} must not be empty")
        return value
