# pos_edge/domain/cart/engine.py
"""In-memory cart for one checkout session.

The cart owns its lines. Callers mutate it only through the methods below and
read money figures only through ``totals()``, which recomputes everything
from the lines on each call.
"""
import enum
import uuid
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Iterator, List, Optional, Union

import structlog

from pos_edge.core.errors import Rejected, ValidationError
from pos_edge.core.money import HUNDRED, ZERO, MoneyLike, clamp, percent_of, quantize, to_money

logger = structlog.get_logger(__name__)


class DiscountType(str, enum.Enum):
    PERCENT = "percent"
    FIXED = "fixed"


@dataclass
class CartLine:
    product_id: str
    unit_price: Decimal
    quantity: int
    max_quantity: int
    line_discount_percent: Decimal = ZERO
    name: str = ""
    sku: str = ""
    cost_price: Decimal = ZERO
    line_id: str = ""

    def __post_init__(self):
        if not self.line_id:
            self.line_id = str(uuid.uuid4())

    @property
    def gross(self) -> Decimal:
        return self.unit_price * self.quantity

    @property
    def discount_amount(self) -> Decimal:
        return percent_of(self.gross, self.line_discount_percent)


@dataclass(frozen=True)
class OrderDiscount:
    type: DiscountType = DiscountType.PERCENT
    value: Decimal = ZERO


@dataclass(frozen=True)
class CartTotals:
    subtotal: Decimal
    line_discount_amount: Decimal
    order_discount_amount: Decimal
    discount_amount: Decimal
    taxable_base: Decimal
    tax_amount: Decimal
    total: Decimal

    def rounded(self) -> "CartTotals":
        return CartTotals(
            subtotal=quantize(self.subtotal),
            line_discount_amount=quantize(self.line_discount_amount),
            order_discount_amount=quantize(self.order_discount_amount),
            discount_amount=quantize(self.discount_amount),
            taxable_base=quantize(self.taxable_base),
            tax_amount=quantize(self.tax_amount),
            total=quantize(self.total),
        )


class Cart:
    def __init__(self, tax_rate: MoneyLike = ZERO, customer_id: Optional[str] = None):
        self._lines: List[CartLine] = []
        self.discount = OrderDiscount()
        self.tax_rate = clamp(to_money(tax_rate), ZERO, HUNDRED)
        self.customer_id = customer_id
        self.version = 0

    def __iter__(self) -> Iterator[CartLine]:
        return iter(self._lines)

    def __len__(self) -> int:
        return len(self._lines)

    @property
    def lines(self) -> List[CartLine]:
        return [replace(line) for line in self._lines]

    @property
    def is_empty(self) -> bool:
        return not self._lines

    def get_line(self, line_id: str) -> Optional[CartLine]:
        for line in self._lines:
            if line.line_id == line_id:
                return line
        return None

    def _touch(self) -> None:
        self.version += 1

    def add_item(
        self,
        product_id: str,
        unit_price: MoneyLike,
        max_quantity: int,
        quantity: int = 1,
        name: str = "",
        sku: str = "",
        cost_price: MoneyLike = ZERO,
    ) -> Union[CartLine, Rejected, None]:
        """Add ``quantity`` units of a product, merging into an existing line.

        Returns the affected line, ``None`` when the stock limit would be
        exceeded (nothing changes), or ``Rejected`` for invalid input.
        """
        if not product_id:
            return Rejected(ValidationError("product_id is required"))
        try:
            price = to_money(unit_price)
            cost = to_money(cost_price)
        except ValidationError as exc:
            return Rejected(exc)
        if price < ZERO:
            return Rejected(ValidationError("unit_price must not be negative"))
        if quantity < 1:
            return Rejected(ValidationError("quantity must be at least 1"))

        existing = next((line for line in self._lines if line.product_id == product_id), None)
        if existing is not None:
            new_quantity = existing.quantity + quantity
            if new_quantity > max_quantity:
                logger.debug(
                    "cart_stock_limit",
                    product_id=product_id,
                    requested=new_quantity,
                    max_quantity=max_quantity,
                )
                return None
            existing.quantity = new_quantity
            existing.max_quantity = max_quantity
            self._touch()
            return replace(existing)

        if quantity > max_quantity:
            logger.debug(
                "cart_stock_limit",
                product_id=product_id,
                requested=quantity,
                max_quantity=max_quantity,
            )
            return None

        line = CartLine(
            product_id=product_id,
            unit_price=price,
            quantity=quantity,
            max_quantity=max_quantity,
            name=name,
            sku=sku,
            cost_price=cost,
        )
        self._lines.append(line)
        self._touch()
        return replace(line)

    def update_quantity(self, line_id: str, delta: int) -> Union[CartLine, Rejected, None]:
        """Shift a line's quantity by ``delta``, clamped to ``[0, max_quantity]``.

        A line that reaches zero is removed and ``None`` is returned.
        """
        line = self.get_line(line_id)
        if line is None:
            return Rejected(ValidationError(f"Unknown cart line {line_id}"))

        new_quantity = max(0, min(line.quantity + delta, line.max_quantity))
        if new_quantity == 0:
            self._lines.remove(line)
            self._touch()
            return None
        if new_quantity != line.quantity:
            line.quantity = new_quantity
            self._touch()
        return replace(line)

    def remove_item(self, line_id: str) -> bool:
        line = self.get_line(line_id)
        if line is None:
            return False
        self._lines.remove(line)
        self._touch()
        return True

    def set_line_discount(self, line_id: str, percent: MoneyLike) -> Union[CartLine, Rejected]:
        line = self.get_line(line_id)
        if line is None:
            return Rejected(ValidationError(f"Unknown cart line {line_id}"))
        try:
            value = to_money(percent)
        except ValidationError as exc:
            return Rejected(exc)
        line.line_discount_percent = clamp(value, ZERO, HUNDRED)
        self._touch()
        return replace(line)

    def set_order_discount(
        self, value: MoneyLike, discount_type: Union[DiscountType, str] = DiscountType.PERCENT
    ) -> Union[OrderDiscount, Rejected]:
        try:
            kind = DiscountType(discount_type)
        except ValueError:
            return Rejected(ValidationError(f"Unknown discount type {discount_type!r}"))
        try:
            amount = to_money(value)
        except ValidationError as exc:
            return Rejected(exc)

        if kind is DiscountType.PERCENT:
            amount = clamp(amount, ZERO, HUNDRED)
        else:
            amount = clamp(amount, ZERO, self._subtotal())

        self.discount = OrderDiscount(type=kind, value=amount)
        self._touch()
        return self.discount

    def set_customer(self, customer_id: Optional[str]) -> None:
        self.customer_id = customer_id
        self._touch()

    def set_tax_rate(self, rate: MoneyLike) -> Union[Decimal, Rejected]:
        try:
            value = to_money(rate)
        except ValidationError as exc:
            return Rejected(exc)
        self.tax_rate = clamp(value, ZERO, HUNDRED)
        self._touch()
        return self.tax_rate

    def clear(self) -> None:
        self._lines.clear()
        self.discount = OrderDiscount()
        self.customer_id = None
        self._touch()

    def _subtotal(self) -> Decimal:
        return sum((line.gross for line in self._lines), ZERO)

    def totals(self) -> CartTotals:
        subtotal = self._subtotal()
        line_discount = sum((line.discount_amount for line in self._lines), ZERO)
        order_base = subtotal - line_discount

        if self.discount.type is DiscountType.PERCENT:
            order_discount = percent_of(order_base, self.discount.value)
        else:
            order_discount = min(self.discount.value, order_base)

        discount_amount = line_discount + order_discount
        taxable_base = subtotal - discount_amount
        tax_amount = percent_of(taxable_base, self.tax_rate)

        return CartTotals(
            subtotal=subtotal,
            line_discount_amount=line_discount,
            order_discount_amount=order_discount,
            discount_amount=discount_amount,
            taxable_base=taxable_base,
            tax_amount=tax_amount,
            total=taxable_base + tax_amount,
        )
