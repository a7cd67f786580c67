# pos_edge/domain/checkout/schemas.py
from decimal import Decimal
from pydantic import BaseModel, ConfigDict, Field
from uuid import UUID
from typing import List, Optional

from pos_edge.domain.cart.engine import DiscountType
from pos_edge.domain.checkout.service import CheckoutState
from pos_edge.domain.codes.generator import CodeNamespace
from pos_edge.domain.payment.settlement import PaymentKind


class SessionCreate(BaseModel):
    cashier_id: Optional[str] = None
    customer_id: Optional[str] = None
    tax_rate: Optional[Decimal] = Field(default=None, ge=0, le=100)


class AddItem(BaseModel):
    product_id: UUID
    unit_price: Decimal = Field(ge=0)
    max_quantity: int = Field(ge=0)
    quantity: int = Field(default=1, ge=1)
    name: str = ""
    sku: str = ""
    cost_price: Decimal = Field(default=Decimal("0"), ge=0)


class UpdateQuantity(BaseModel):
    delta: int


class LineDiscount(BaseModel):
    percent: Decimal


class OrderDiscountIn(BaseModel):
    value: Decimal
    type: DiscountType = DiscountType.PERCENT


class CustomerIn(BaseModel):
    customer_id: Optional[str] = None


class BeginPayment(BaseModel):
    method_kind: PaymentKind
    method_id: Optional[str] = None


class ConfirmPayment(BaseModel):
    tendered_amount: Decimal


class LineItemOut(BaseModel):
    line_id: str
    product_id: str
    sku: str
    name: str
    quantity: int
    max_quantity: int
    unit_price: Decimal
    line_discount_percent: Decimal

    model_config = ConfigDict(from_attributes=True)


class TotalsOut(BaseModel):
    subtotal: Decimal
    discount_amount: Decimal
    tax_amount: Decimal
    total: Decimal

    model_config = ConfigDict(from_attributes=True)


class SessionOut(BaseModel):
    id: UUID
    state: CheckoutState
    customer_id: Optional[str]
    tax_rate: Decimal
    discount_type: DiscountType
    discount_value: Decimal
    lines: List[LineItemOut]
    totals: TotalsOut


class PaymentStarted(BaseModel):
    state: CheckoutState
    method_kind: PaymentKind
    tendered_amount: Decimal
    editable: bool


class CheckoutCompleted(BaseModel):
    success: bool = True
    order_id: UUID
    order_number: str
    total: Decimal
    change_due: Decimal


class CodeRequest(BaseModel):
    namespace: CodeNamespace
    seed_text: str = ""


class CodeOut(BaseModel):
    value: str
