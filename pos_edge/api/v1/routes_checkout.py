# pos_edge/api/v1/routes_checkout.py
from fastapi import APIRouter, Depends, status
from uuid import UUID

from pos_edge.api.v1.deps import (
    CheckoutRegistry,
    get_code_generator,
    get_registry,
    get_transaction_store,
)
from pos_edge.core.config import settings
from pos_edge.core.errors import Rejected
from pos_edge.core.money import quantize
from pos_edge.db.repositories.transactions import SqlTransactionStore
from pos_edge.domain.cart.engine import Cart
from pos_edge.domain.checkout.schemas import (
    AddItem,
    BeginPayment,
    CheckoutCompleted,
    ConfirmPayment,
    CustomerIn,
    LineDiscount,
    LineItemOut,
    OrderDiscountIn,
    PaymentStarted,
    SessionCreate,
    SessionOut,
    TotalsOut,
    UpdateQuantity,
)
from pos_edge.domain.checkout.service import CheckoutSession, finalize_transaction
from pos_edge.domain.codes.generator import CodeGenerator
from pos_edge.domain.payment.settlement import PaymentKind


router = APIRouter(prefix="/api/v1/checkout", tags=["checkout"])


def _unwrap(result):
    if isinstance(result, Rejected):
        raise result.error
    return result


def _session_out(session_id: UUID, session: CheckoutSession) -> SessionOut:
    cart = session.cart
    totals = cart.totals().rounded()
    return SessionOut(
        id=session_id,
        state=session.state,
        customer_id=cart.customer_id,
        tax_rate=cart.tax_rate,
        discount_type=cart.discount.type,
        discount_value=cart.discount.value,
        lines=[LineItemOut.model_validate(line) for line in cart.lines],
        totals=TotalsOut.model_validate(totals),
    )


@router.post("/sessions", response_model=SessionOut, status_code=status.HTTP_201_CREATED)
async def open_session_endpoint(
    payload: SessionCreate,
    registry: CheckoutRegistry = Depends(get_registry),
):
    tax_rate = payload.tax_rate if payload.tax_rate is not None else settings.DEFAULT_TAX_RATE
    session = CheckoutSession(
        cart=Cart(tax_rate=tax_rate, customer_id=payload.customer_id),
        store_id=settings.STORE_ID,
        terminal_id=settings.TERMINAL_ID,
        cashier_id=payload.cashier_id,
        currency=settings.CURRENCY,
    )
    session_id = registry.open(session)
    return _session_out(session_id, session)


@router.get("/sessions/{session_id}", response_model=SessionOut)
async def get_session_endpoint(
    session_id: UUID,
    registry: CheckoutRegistry = Depends(get_registry),
):
    return _session_out(session_id, registry.get(session_id))


@router.post("/sessions/{session_id}/items", response_model=SessionOut)
async def add_item_endpoint(
    session_id: UUID,
    payload: AddItem,
    registry: CheckoutRegistry = Depends(get_registry),
):
    session = registry.get(session_id)
    # over the stock limit the cart stays as it was
    _unwrap(
        session.cart.add_item(
            product_id=str(payload.product_id),
            unit_price=payload.unit_price,
            max_quantity=payload.max_quantity,
            quantity=payload.quantity,
            name=payload.name,
            sku=payload.sku,
            cost_price=payload.cost_price,
        )
    )
    return _session_out(session_id, session)


@router.patch("/sessions/{session_id}/items/{line_id}", response_model=SessionOut)
async def update_quantity_endpoint(
    session_id: UUID,
    line_id: str,
    payload: UpdateQuantity,
    registry: CheckoutRegistry = Depends(get_registry),
):
    session = registry.get(session_id)
    _unwrap(session.cart.update_quantity(line_id, payload.delta))
    return _session_out(session_id, session)


@router.put("/sessions/{session_id}/items/{line_id}/discount", response_model=SessionOut)
async def line_discount_endpoint(
    session_id: UUID,
    line_id: str,
    payload: LineDiscount,
    registry: CheckoutRegistry = Depends(get_registry),
):
    session = registry.get(session_id)
    _unwrap(session.cart.set_line_discount(line_id, payload.percent))
    return _session_out(session_id, session)


@router.delete("/sessions/{session_id}/items/{line_id}", response_model=SessionOut)
async def remove_item_endpoint(
    session_id: UUID,
    line_id: str,
    registry: CheckoutRegistry = Depends(get_registry),
):
    session = registry.get(session_id)
    session.cart.remove_item(line_id)
    return _session_out(session_id, session)


@router.delete("/sessions/{session_id}/items", response_model=SessionOut)
async def clear_cart_endpoint(
    session_id: UUID,
    registry: CheckoutRegistry = Depends(get_registry),
):
    session = registry.get(session_id)
    session.cart.clear()
    return _session_out(session_id, session)


@router.put("/sessions/{session_id}/discount", response_model=SessionOut)
async def order_discount_endpoint(
    session_id: UUID,
    payload: OrderDiscountIn,
    registry: CheckoutRegistry = Depends(get_registry),
):
    session = registry.get(session_id)
    _unwrap(session.cart.set_order_discount(payload.value, payload.type))
    return _session_out(session_id, session)


@router.put("/sessions/{session_id}/customer", response_model=SessionOut)
async def customer_endpoint(
    session_id: UUID,
    payload: CustomerIn,
    registry: CheckoutRegistry = Depends(get_registry),
):
    session = registry.get(session_id)
    session.cart.set_customer(payload.customer_id)
    return _session_out(session_id, session)


@router.post("/sessions/{session_id}/payment", response_model=PaymentStarted)
async def begin_payment_endpoint(
    session_id: UUID,
    payload: BeginPayment,
    registry: CheckoutRegistry = Depends(get_registry),
):
    session = registry.get(session_id)
    tender = _unwrap(session.begin_payment(payload.method_kind, payload.method_id))
    return PaymentStarted(
        state=session.state,
        method_kind=payload.method_kind,
        tendered_amount=tender,
        editable=payload.method_kind is PaymentKind.CASH,
    )


@router.delete("/sessions/{session_id}/payment", response_model=SessionOut)
async def abandon_payment_endpoint(
    session_id: UUID,
    registry: CheckoutRegistry = Depends(get_registry),
):
    session = registry.get(session_id)
    session.abandon_payment()
    return _session_out(session_id, session)


@router.post("/sessions/{session_id}/payment/confirm", response_model=CheckoutCompleted)
async def confirm_payment_endpoint(
    session_id: UUID,
    payload: ConfirmPayment,
    registry: CheckoutRegistry = Depends(get_registry),
    generator: CodeGenerator = Depends(get_code_generator),
    store: SqlTransactionStore = Depends(get_transaction_store),
):
    session = registry.get(session_id)
    accepted = _unwrap(session.confirm_payment(payload.tendered_amount))
    result = await finalize_transaction(
        session,
        generator,
        store,
        max_attempts=settings.FINALIZE_MAX_ATTEMPTS,
    )
    # lines added while the sale was being written keep the session id
    follow_up = session.follow_up()
    if follow_up is None:
        registry.close(session_id)
    else:
        registry.replace(session_id, follow_up)
    return CheckoutCompleted(
        order_id=result.order_id,
        order_number=result.order_number,
        total=result.record.total,
        change_due=quantize(accepted.change_due),
    )


@router.post("/sessions/{session_id}/cancel", response_model=SessionOut)
async def cancel_endpoint(
    session_id: UUID,
    registry: CheckoutRegistry = Depends(get_registry),
):
    session = registry.get(session_id)
    _unwrap(session.cancel())
    registry.close(session_id)
    return _session_out(session_id, session)
