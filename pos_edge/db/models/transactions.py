# pos_edge/db/models/transactions.py
from sqlalchemy import Column, DateTime, Index, Numeric, String, Uuid
from sqlalchemy.sql import func
import uuid

from pos_edge.db.base import Base


class Transaction(Base):
    """A finalized sale at a given store/terminal (receipt header).

    Rows are written once, when checkout completes, carrying the totals that
    were frozen at pricing time. ``order_number`` is generated before insert
    and its unique constraint rejects a number another terminal already took.
    """

    __tablename__ = "transactions"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    store_id = Column(String, nullable=False)
    terminal_id = Column(String, nullable=False)
    cashier_id = Column(String, nullable=True)
    customer_id = Column(String, nullable=True)

    order_number = Column(String, nullable=False, unique=True)
    status = Column(String, nullable=False, default="PAID")

    subtotal = Column(Numeric(18, 2), nullable=False, default=0)
    discount_amount = Column(Numeric(18, 2), nullable=False, default=0)
    tax_amount = Column(Numeric(18, 2), nullable=False, default=0)
    total = Column(Numeric(18, 2), nullable=False, default=0)
    paid_amount = Column(Numeric(18, 2), nullable=False, default=0)
    currency = Column(String, nullable=False, default="BRL")

    completed_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index("ix_transactions_store_terminal_completed", "store_id", "terminal_id", "completed_at"),
    )
