# pos_edge/db/models/products.py
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Numeric, String, Text, Uuid
from sqlalchemy.sql import func
import uuid

from pos_edge.db.base import Base


class Product(Base):
    """A sellable product as the terminal knows it.

    ``sku`` is generated as ``{CATEGORY}-{SEQ}-{RANDOM}`` and is unique across
    the catalog; the constraint is what ultimately guards against two
    terminals generating the same value.
    """

    __tablename__ = "products"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    category_id = Column(Uuid(as_uuid=True), ForeignKey("categories.id"), nullable=True)

    sku = Column(String, nullable=False, unique=True)
    barcode = Column(String, nullable=True, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)

    sell_price = Column(Numeric(18, 2), nullable=False, default=0)
    cost_price = Column(Numeric(18, 2), nullable=False, default=0)
    active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
