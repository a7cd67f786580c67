# pos_edge/domain/checkout/service.py
"""Checkout orchestration for one sale.

A ``CheckoutSession`` walks a cart through
``open -> priced -> awaiting_payment -> settled -> finalized``; any state but
``finalized`` can be cancelled. Editing the cart after pricing drops the
session back to ``open`` and discards the pending payment.
"""
import enum
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Union

import structlog

from pos_edge.core.errors import DuplicateCodeError, Rejected, ValidationError
from pos_edge.core.money import ZERO, MoneyLike, quantize
from pos_edge.domain.cart.engine import Cart, CartTotals
from pos_edge.domain.checkout.records import (
    PersistedTransaction,
    RecordLine,
    RecordPayment,
    TransactionRecord,
    TransactionStore,
)
from pos_edge.domain.codes.generator import CodeGenerator, CodeNamespace
from pos_edge.domain.payment.settlement import PaymentAttempt, PaymentKind, default_tender, evaluate

logger = structlog.get_logger(__name__)


class CheckoutState(str, enum.Enum):
    OPEN = "open"
    PRICED = "priced"
    AWAITING_PAYMENT = "awaiting_payment"
    SETTLED = "settled"
    FINALIZED = "finalized"
    CANCELLED = "cancelled"


TERMINAL_STATES = (CheckoutState.FINALIZED, CheckoutState.CANCELLED)


@dataclass(frozen=True)
class PaymentAccepted:
    change_due: Decimal
    attempt: PaymentAttempt
    success: bool = True


class CheckoutSession:
    def __init__(
        self,
        cart: Optional[Cart] = None,
        store_id: str = "",
        terminal_id: str = "",
        cashier_id: Optional[str] = None,
        currency: str = "BRL",
    ):
        self.cart = cart if cart is not None else Cart()
        self.store_id = store_id
        self.terminal_id = terminal_id
        self.cashier_id = cashier_id
        self.currency = currency

        self._state = CheckoutState.OPEN
        self._priced: Optional[CartTotals] = None
        self._priced_version: Optional[int] = None
        self._method_kind: Optional[PaymentKind] = None
        self._method_id: Optional[str] = None
        self.payment: Optional[PaymentAttempt] = None
        self.result: Optional[PersistedTransaction] = None

    @property
    def state(self) -> CheckoutState:
        self._sync()
        return self._state

    @property
    def priced_totals(self) -> Optional[CartTotals]:
        self._sync()
        return self._priced

    @property
    def method_kind(self) -> Optional[PaymentKind]:
        return self._method_kind

    def _sync(self) -> None:
        if self._state in TERMINAL_STATES or self._state is CheckoutState.OPEN:
            return
        if self.cart.version != self._priced_version:
            logger.info("checkout_reopened", previous_state=self._state.value)
            self._reopen()

    def _reopen(self) -> None:
        self._state = CheckoutState.OPEN
        self._priced = None
        self._priced_version = None
        self._method_kind = None
        self._method_id = None
        self.payment = None

    def _closed(self) -> Optional[Rejected]:
        state = self.state
        if state in TERMINAL_STATES:
            return Rejected(ValidationError(f"Checkout is already {state.value}"))
        return None

    def price(self) -> Union[CartTotals, Rejected]:
        """Freeze the current totals for the payment step."""
        rejected = self._closed()
        if rejected is not None:
            return rejected
        if self._state not in (CheckoutState.OPEN, CheckoutState.PRICED):
            return Rejected(ValidationError(f"Cannot price while {self._state.value}"))
        if self.cart.is_empty:
            return Rejected(ValidationError("Cart is empty"))

        totals = self.cart.totals()
        if quantize(totals.total) <= ZERO:
            return Rejected(ValidationError("Total must be greater than zero"))

        self._priced = totals
        self._priced_version = self.cart.version
        self._state = CheckoutState.PRICED
        return totals

    def begin_payment(
        self, method_kind: Union[PaymentKind, str], method_id: Optional[str] = None
    ) -> Union[Decimal, Rejected]:
        """Choose a payment method; returns the tender to pre-fill."""
        rejected = self._closed()
        if rejected is not None:
            return rejected
        try:
            kind = PaymentKind(method_kind)
        except ValueError:
            return Rejected(ValidationError(f"Unknown payment method {method_kind!r}"))

        if self._state is CheckoutState.OPEN:
            priced = self.price()
            if isinstance(priced, Rejected):
                return priced

        self._method_kind = kind
        self._method_id = method_id
        self.payment = None
        self._state = CheckoutState.AWAITING_PAYMENT
        return default_tender(self._priced.total)

    def confirm_payment(self, tendered: MoneyLike) -> Union[PaymentAccepted, Rejected]:
        rejected = self._closed()
        if rejected is not None:
            return rejected
        if self._state is not CheckoutState.AWAITING_PAYMENT:
            return Rejected(ValidationError("No payment method selected"))

        settlement = evaluate(self._priced.total, self._method_kind, tendered)
        if not settlement.valid:
            logger.info(
                "payment_rejected",
                method=self._method_kind.value,
                amount_due=str(settlement.amount_due),
                tendered=str(settlement.tendered),
            )
            return Rejected(settlement.reason)

        self.payment = PaymentAttempt(
            method_kind=self._method_kind,
            tendered_amount=settlement.tendered,
            change_due=settlement.change_due,
            method_id=self._method_id,
        )
        self._state = CheckoutState.SETTLED
        return PaymentAccepted(change_due=settlement.change_due, attempt=self.payment)

    def abandon_payment(self) -> None:
        if self.state not in TERMINAL_STATES:
            self._reopen()

    def cancel(self) -> Union[CheckoutState, Rejected]:
        if self.state is CheckoutState.FINALIZED:
            return Rejected(ValidationError("A finalized checkout cannot be cancelled"))
        self._reopen()
        self.cart.clear()
        self._state = CheckoutState.CANCELLED
        return self._state

    def build_record(self, order_number: str) -> TransactionRecord:
        if self.state is not CheckoutState.SETTLED:
            raise ValidationError("Checkout is not settled")

        totals = self._priced.rounded()
        lines = [
            RecordLine(
                line_number=number,
                product_id=line.product_id,
                sku=line.sku,
                name=line.name,
                unit_price=quantize(line.unit_price),
                cost_price=quantize(line.cost_price),
                quantity=line.quantity,
                discount_percent=line.line_discount_percent,
                line_total=quantize(line.gross),
                line_id=line.line_id,
            )
            for number, line in enumerate(self.cart, start=1)
        ]
        payment = RecordPayment(
            method_kind=self.payment.method_kind,
            method_id=self.payment.method_id,
            tendered_amount=quantize(self.payment.tendered_amount),
            change_due=quantize(self.payment.change_due),
            paid_amount=min(quantize(self.payment.paid_amount), totals.total),
        )
        return TransactionRecord(
            order_number=order_number,
            store_id=self.store_id,
            terminal_id=self.terminal_id,
            cashier_id=self.cashier_id,
            customer_id=self.cart.customer_id,
            currency=self.currency,
            subtotal=totals.subtotal,
            discount_amount=totals.discount_amount,
            tax_amount=totals.tax_amount,
            total=totals.total,
            payment=payment,
            lines=lines,
        )

    def mark_finalized(self, result: PersistedTransaction) -> None:
        """Close the session and take the sold units out of the cart.

        If the cart was edited while the record was being written, only the
        recorded quantities are removed; anything else stays for
        ``follow_up``.
        """
        self.result = result
        if result.record is None or self.cart.version == self._priced_version:
            self.cart.clear()
        else:
            logger.warning("cart_changed_during_finalize", order_number=result.order_number)
            for sold in result.record.lines:
                self.cart.update_quantity(sold.line_id, -sold.quantity)
        self._state = CheckoutState.FINALIZED

    def follow_up(self) -> Optional["CheckoutSession"]:
        """An open session over lines left in the cart after finalizing, if any."""
        if self._state is not CheckoutState.FINALIZED or self.cart.is_empty:
            return None
        return CheckoutSession(
            self.cart,
            store_id=self.store_id,
            terminal_id=self.terminal_id,
            cashier_id=self.cashier_id,
            currency=self.currency,
        )


async def finalize_transaction(
    session: CheckoutSession,
    generator: CodeGenerator,
    store: TransactionStore,
    max_attempts: int = 3,
) -> PersistedTransaction:
    """Number, persist and close a settled checkout.

    A duplicate order number reported by the store triggers a fresh number,
    up to ``max_attempts`` times. On any failure the session goes back to
    ``open`` with its lines intact and the error is re-raised.
    """
    if session.state is not CheckoutState.SETTLED:
        raise ValidationError("Only settled checkouts can be finalized")

    attempt = 0
    try:
        while True:
            attempt += 1
            order_number = await generator.generate(CodeNamespace.ORDER)
            record = session.build_record(order_number)
            try:
                result = await store.persist_transaction(record)
                break
            except DuplicateCodeError:
                logger.warning(
                    "order_number_taken",
                    order_number=order_number,
                    attempt=attempt,
                    max_attempts=max_attempts,
                )
                if attempt >= max_attempts:
                    raise
    except BaseException:
        session.abandon_payment()
        raise

    session.mark_finalized(result)
    logger.info(
        "checkout_finalized",
        order_id=str(result.order_id),
        order_number=result.order_number,
        total=str(record.total),
        method=record.payment.method_kind.value,
    )
    return result
