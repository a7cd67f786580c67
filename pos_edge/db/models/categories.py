# pos_edge/db/models/categories.py
from sqlalchemy import Boolean, Column, DateTime, String, Uuid
from sqlalchemy.sql import func
import uuid

from pos_edge.db.base import Base


class Category(Base):
    """Product category; ``code`` seeds the prefix of every SKU in it."""

    __tablename__ = "categories"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    code = Column(String, nullable=False, unique=True)
    active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
