from sqlalchemy import Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from app.models.base import Base, IntegerKeyMixin, NamedMixin, UuidKeyMixin


class Category(IntegerKeyMixin, NamedMixin, Base):
    __tablename__ = "categories"

    widgets = relationship("Widget", back_populates="category", order_by="Widget.id")


class Widget(IntegerKeyMixin, NamedMixin, Base):
    __tablename__ = "widgets"

    sku = Column(String, unique=True, nullable=False)
    price = Column(Integer, default=0)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=True)

    category = relationship("Category", back_populates="widgets")
    tags = relationship("Tag", back_populates="widget", order_by="Tag.label")


class Tag(UuidKeyMixin, Base):
    __tablename__ = "tags"

    label = Column(String, nullable=False)
    widget_id = Column(Integer, ForeignKey("widgets.id"), nullable=False)

    widget = relationship("Widget", back_populates="tags")
