# pos_edge/db/models/payments.py
import enum
from sqlalchemy import Column, DateTime, Enum, ForeignKey, Numeric, String, Uuid
from sqlalchemy.sql import func
import uuid

from pos_edge.db.base import Base


class PaymentStatus(str, enum.Enum):
    CAPTURED = "CAPTURED"


class Payment(Base):
    """How a transaction was paid.

    Stores the method, what the customer tendered, the change handed back and
    the amount actually applied to the sale.
    """

    __tablename__ = "payments"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    transaction_id = Column(Uuid(as_uuid=True), ForeignKey("transactions.id"), unique=True)
    method_kind = Column(String, nullable=False)
    method_id = Column(String, nullable=True)

    amount = Column(Numeric(18, 2), nullable=False)
    tendered_amount = Column(Numeric(18, 2), nullable=False)
    change_due = Column(Numeric(18, 2), nullable=False, default=0)
    currency = Column(String, nullable=False, default="BRL")
    status = Column(Enum(PaymentStatus, name="payment_status_enum"), nullable=False, default=PaymentStatus.CAPTURED)

    captured_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
