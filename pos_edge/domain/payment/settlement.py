# pos_edge/domain/payment/settlement.py
import enum
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Union

from pos_edge.core.errors import InsufficientPaymentError, ValidationError
from pos_edge.core.money import ZERO, MoneyLike, quantize, to_money

# denominations offered as "+amount" shortcuts when tendering cash
QUICK_AMOUNTS = (5, 10, 20, 50, 100, 200)


class PaymentKind(str, enum.Enum):
    CASH = "cash"
    CARD = "card"
    PIX = "pix"
    OTHER = "other"


@dataclass(frozen=True)
class Settlement:
    """Outcome of checking one tendered amount against the amount due."""

    valid: bool
    amount_due: Decimal
    tendered: Decimal
    change_due: Decimal = ZERO
    reason: Optional[Union[InsufficientPaymentError, ValidationError]] = None


@dataclass(frozen=True)
class PaymentAttempt:
    method_kind: PaymentKind
    tendered_amount: Decimal
    change_due: Decimal
    method_id: Optional[str] = None

    @property
    def paid_amount(self) -> Decimal:
        return self.tendered_amount - self.change_due


def evaluate(total: MoneyLike, method_kind: Union[PaymentKind, str], tendered: MoneyLike) -> Settlement:
    """Validate a tender against ``total``.

    Cash must cover the amount due and yields change. Every other method must
    match the amount due exactly and never yields change.
    """
    amount_due = quantize(to_money(total))
    try:
        kind = PaymentKind(method_kind)
    except ValueError:
        return Settlement(
            False, amount_due, ZERO, reason=ValidationError(f"Unknown payment method {method_kind!r}")
        )
    try:
        offered = to_money(tendered)
    except ValidationError as exc:
        return Settlement(False, amount_due, ZERO, reason=exc)

    if offered < ZERO:
        return Settlement(
            False, amount_due, offered, reason=ValidationError("Tendered amount must not be negative")
        )

    if kind is PaymentKind.CASH:
        if offered < amount_due:
            return Settlement(
                False,
                amount_due,
                offered,
                reason=InsufficientPaymentError(
                    f"Tendered {quantize(offered)} is below the amount due {amount_due}"
                ),
            )
        return Settlement(True, amount_due, offered, change_due=offered - amount_due)

    if offered != amount_due:
        return Settlement(
            False,
            amount_due,
            offered,
            reason=InsufficientPaymentError(
                f"{kind.value} payments must be exactly {amount_due}, got {offered}"
            ),
        )
    return Settlement(True, amount_due, offered)


def default_tender(total: MoneyLike) -> Decimal:
    """Tender pre-filled when a method is picked; non-cash methods cannot change it."""
    return quantize(to_money(total))


def exact_amount(total: MoneyLike) -> Decimal:
    return quantize(to_money(total))


def quick_amount(current: MoneyLike, amount: MoneyLike) -> Decimal:
    """Add a banknote denomination to the tender typed so far.

    An empty or unparsable current value counts as zero.
    """
    try:
        base = to_money(current) if current not in (None, "") else ZERO
    except ValidationError:
        base = ZERO
    return base + to_money(amount)
