# pos_edge/db/models/line_items.py
from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, Numeric, String, Uuid
from sqlalchemy.sql import func
import uuid

from pos_edge.db.base import Base


class LineItem(Base):
    """A single product line within a transaction.

    Prices, discount and quantity are copied at the time of sale so that
    reporting does not depend on the mutable catalog.
    """

    __tablename__ = "line_items"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    transaction_id = Column(Uuid(as_uuid=True), ForeignKey("transactions.id"), nullable=False)
    line_number = Column(Integer, nullable=False)

    product_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    sku = Column(String, nullable=True, index=True)
    name = Column(String, nullable=False, default="")

    unit_price = Column(Numeric(18, 2), nullable=False)
    cost_price = Column(Numeric(18, 2), nullable=False, default=0)
    quantity = Column(Integer, nullable=False, default=1)
    discount_percent = Column(Numeric(5, 2), nullable=False, default=0)
    line_total = Column(Numeric(18, 2), nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        Index("ix_line_items_transaction_line", "transaction_id", "line_number", unique=True),
    )
