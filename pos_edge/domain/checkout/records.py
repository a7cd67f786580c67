# pos_edge/domain/checkout/records.py
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional, Protocol
from uuid import UUID

from pos_edge.domain.payment.settlement import PaymentKind


@dataclass(frozen=True)
class RecordLine:
    line_number: int
    product_id: str
    sku: str
    name: str
    unit_price: Decimal
    cost_price: Decimal
    quantity: int
    discount_percent: Decimal
    line_total: Decimal
    line_id: str = ""


@dataclass(frozen=True)
class RecordPayment:
    method_kind: PaymentKind
    method_id: Optional[str]
    tendered_amount: Decimal
    change_due: Decimal
    paid_amount: Decimal


@dataclass(frozen=True)
class TransactionRecord:
    """Everything persisted for one finalized sale, already rounded to cents."""

    order_number: str
    store_id: str
    terminal_id: str
    cashier_id: Optional[str]
    customer_id: Optional[str]
    currency: str
    subtotal: Decimal
    discount_amount: Decimal
    tax_amount: Decimal
    total: Decimal
    payment: RecordPayment
    lines: List[RecordLine] = field(default_factory=list)


@dataclass(frozen=True)
class PersistedTransaction:
    order_id: UUID
    order_number: str
    record: Optional[TransactionRecord] = None


class TransactionStore(Protocol):
    async def persist_transaction(self, record: TransactionRecord) -> PersistedTransaction:
        """Write ``record`` atomically, decrementing stock.

        Raises ``DuplicateCodeError`` when ``order_number`` is already taken
        and ``RepositoryUnavailableError`` on any other store failure.
        """
        ...
