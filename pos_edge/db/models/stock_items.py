# pos_edge/db/models/stock_items.py
from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, UniqueConstraint, Uuid
from sqlalchemy.sql import func
import uuid

from pos_edge.db.base import Base


class StockItem(Base):
    """On-hand quantity of one product at one store.

    Finalizing a sale decrements ``on_hand``; the cart only reads it as the
    line's maximum quantity.
    """

    __tablename__ = "stock_items"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    store_id = Column(String, nullable=False)
    product_id = Column(Uuid(as_uuid=True), ForeignKey("products.id"), nullable=False)

    on_hand = Column(Integer, nullable=False, default=0)

    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
    last_txn_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        UniqueConstraint("store_id", "product_id", name="uq_stock_items_store_product"),
    )
