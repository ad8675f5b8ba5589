from app.models.base import Base, IntegerKeyMixin, NamedMixin, UuidKeyMixin

__all__ = [
    "Base",
    "IntegerKeyMixin",
    "UuidKeyMixin",
    "NamedMixin",
]
