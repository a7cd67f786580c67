# pos_edge/db/repositories/transactions.py
from typing import List, Optional
from uuid import UUID

import structlog
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import func, select

from pos_edge.core.errors import DuplicateCodeError, RepositoryUnavailableError, ValidationError
from pos_edge.db.models.line_items import LineItem
from pos_edge.db.models.payments import Payment, PaymentStatus
from pos_edge.db.models.stock_items import StockItem
from pos_edge.db.models.transactions import Transaction
from pos_edge.domain.checkout.records import PersistedTransaction, TransactionRecord

logger = structlog.get_logger(__name__)


async def get_transaction_by_id(
    db: AsyncSession,
    transaction_id: UUID
) -> Optional[Transaction]:
    result = await db.execute(
        select(Transaction).where(Transaction.id == transaction_id)
    )
    return result.scalar_one_or_none()


async def get_line_items_for_transaction(
    db: AsyncSession,
    transaction_id: UUID
) -> List[LineItem]:
    result = await db.execute(
        select(LineItem)
        .where(LineItem.transaction_id == transaction_id)
        .order_by(LineItem.line_number)
    )
    return list(result.scalars().all())


def _as_uuid(value: str) -> UUID:
    try:
        return UUID(str(value))
    except ValueError:
        raise ValidationError(f"Invalid product id {value!r}") from None


async def persist_transaction(
    db: AsyncSession,
    record: TransactionRecord,
) -> PersistedTransaction:
    """Insert header, lines and payment and decrement stock in one commit."""
    product_ids = [_as_uuid(line.product_id) for line in record.lines]

    status = "PAID" if record.payment.paid_amount >= record.total else "PARTIAL"
    txn = Transaction(
        store_id=record.store_id,
        terminal_id=record.terminal_id,
        cashier_id=record.cashier_id,
        customer_id=record.customer_id,
        order_number=record.order_number,
        status=status,
        subtotal=record.subtotal,
        discount_amount=record.discount_amount,
        tax_amount=record.tax_amount,
        total=record.total,
        paid_amount=record.payment.paid_amount,
        currency=record.currency,
    )

    try:
        db.add(txn)
        await db.flush()
        order_id = txn.id

        for line, product_id in zip(record.lines, product_ids):
            db.add(
                LineItem(
                    transaction_id=txn.id,
                    line_number=line.line_number,
                    product_id=product_id,
                    sku=line.sku or None,
                    name=line.name,
                    unit_price=line.unit_price,
                    cost_price=line.cost_price,
                    quantity=line.quantity,
                    discount_percent=line.discount_percent,
                    line_total=line.line_total,
                )
            )
            await db.execute(
                update(StockItem)
                .where(
                    StockItem.store_id == record.store_id,
                    StockItem.product_id == product_id,
                )
                .values(on_hand=StockItem.on_hand - line.quantity, last_txn_at=func.now())
            )

        db.add(
            Payment(
                transaction_id=txn.id,
                method_kind=record.payment.method_kind.value,
                method_id=record.payment.method_id,
                amount=record.payment.paid_amount,
                tendered_amount=record.payment.tendered_amount,
                change_due=record.payment.change_due,
                currency=record.currency,
                status=PaymentStatus.CAPTURED,
            )
        )
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        if not _is_order_number_conflict(exc):
            logger.error("transaction_persist_failed", order_number=record.order_number, error=str(exc))
            raise RepositoryUnavailableError("Could not persist transaction") from exc
        logger.warning("transaction_duplicate_code", order_number=record.order_number)
        raise DuplicateCodeError(
            f"Order number {record.order_number} already exists"
        ) from exc
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error("transaction_persist_failed", order_number=record.order_number, error=str(exc))
        raise RepositoryUnavailableError("Could not persist transaction") from exc

    return PersistedTransaction(order_id=order_id, order_number=record.order_number, record=record)


def _is_order_number_conflict(exc: IntegrityError) -> bool:
    # postgres names the constraint transactions_order_number_key, sqlite the column
    message = str(exc.orig).lower()
    return "unique" in message and "order_number" in message


class SqlTransactionStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def persist_transaction(self, record: TransactionRecord) -> PersistedTransaction:
        return await persist_transaction(self.db, record)
