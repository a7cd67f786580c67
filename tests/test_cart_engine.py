"""Tests for the cart engine."""

from decimal import Decimal

from pos_edge.core.errors import Rejected, ValidationError
from pos_edge.domain.cart.engine import Cart, DiscountType


def _cart_with_items(tax_rate="0"):
    cart = Cart(tax_rate=tax_rate)
    cart.add_item("p1", "40.00", max_quantity=10)
    cart.add_item("p2", "30.00", max_quantity=10)
    cart.add_item("p1", "40.00", max_quantity=10)
    return cart


class TestAddItem:
    def test_new_product_appends_line_with_quantity_one(self):
        cart = Cart()
        line = cart.add_item("p1", "9.99", max_quantity=3, name="Cable", sku="ELE-001-AB3F")

        assert line.quantity == 1
        assert line.unit_price == Decimal("9.99")
        assert [l.product_id for l in cart.lines] == ["p1"]

    def test_existing_product_increments_quantity(self):
        cart = _cart_with_items()

        assert len(cart) == 2
        assert cart.lines[0].quantity == 2
        assert [l.product_id for l in cart.lines] == ["p1", "p2"]

    def test_exceeding_max_quantity_is_silent_noop(self):
        cart = Cart()
        cart.add_item("p1", "5", max_quantity=1)
        version = cart.version

        assert cart.add_item("p1", "5", max_quantity=1) is None
        assert cart.lines[0].quantity == 1
        assert cart.version == version

    def test_merge_checks_the_current_stock_limit(self):
        cart = Cart()
        cart.add_item("p1", "5", max_quantity=5)

        assert cart.add_item("p1", "5", max_quantity=1) is None
        assert cart.lines[0].quantity == 1
        assert cart.lines[0].max_quantity == 5

    def test_merge_adopts_the_new_stock_limit(self):
        cart = Cart()
        line_id = cart.add_item("p1", "5", max_quantity=5).line_id

        assert cart.add_item("p1", "5", max_quantity=2).quantity == 2
        cart.update_quantity(line_id, 5)

        assert cart.lines[0].quantity == 2
        assert cart.lines[0].max_quantity == 2

    def test_out_of_stock_product_is_not_added(self):
        cart = Cart()
        assert cart.add_item("p1", "5", max_quantity=0) is None
        assert cart.is_empty

    def test_negative_price_is_rejected(self):
        cart = Cart()
        result = cart.add_item("p1", "-1", max_quantity=5)

        assert isinstance(result, Rejected)
        assert isinstance(result.error, ValidationError)
        assert cart.is_empty

    def test_returned_line_is_a_copy(self):
        cart = Cart()
        line = cart.add_item("p1", "5", max_quantity=5)
        line.quantity = 99

        assert cart.lines[0].quantity == 1


class TestUpdateQuantity:
    def test_clamps_to_max_quantity(self):
        cart = Cart()
        line = cart.add_item("p1", "5", max_quantity=4)

        updated = cart.update_quantity(line.line_id, 10)

        assert updated.quantity == 4

    def test_zero_removes_line(self):
        cart = Cart()
        line = cart.add_item("p1", "5", max_quantity=4)

        assert cart.update_quantity(line.line_id, -5) is None
        assert cart.is_empty

    def test_unknown_line_is_rejected(self):
        result = Cart().update_quantity("missing", 1)
        assert isinstance(result, Rejected)


class TestRemoveAndClear:
    def test_remove_item(self):
        cart = _cart_with_items()
        line_id = cart.lines[0].line_id

        assert cart.remove_item(line_id) is True
        assert cart.remove_item(line_id) is False
        assert [l.product_id for l in cart.lines] == ["p2"]

    def test_clear_resets_lines_discount_and_customer(self):
        cart = _cart_with_items()
        cart.set_order_discount("10", "percent")
        cart.set_customer("cust-1")

        cart.clear()

        assert cart.is_empty
        assert cart.discount.value == Decimal("0")
        assert cart.discount.type is DiscountType.PERCENT
        assert cart.customer_id is None
        assert cart.totals().total == Decimal("0")


class TestDiscounts:
    def test_percent_is_clamped_to_hundred(self):
        cart = _cart_with_items()
        cart.set_order_discount("150", "percent")

        assert cart.discount.value == Decimal("100")
        assert cart.totals().total == Decimal("0")

    def test_fixed_is_clamped_to_subtotal(self):
        cart = _cart_with_items()
        cart.set_order_discount("500", "fixed")

        assert cart.discount.value == Decimal("110.00")
        assert cart.totals().discount_amount == Decimal("110.00")

    def test_negative_discount_is_clamped_to_zero(self):
        cart = _cart_with_items()
        cart.set_order_discount("-5", "fixed")
        assert cart.discount.value == Decimal("0")

    def test_fixed_discount_never_exceeds_shrunken_subtotal(self):
        cart = _cart_with_items()
        cart.set_order_discount("100", "fixed")
        cart.remove_item(cart.lines[0].line_id)

        totals = cart.totals()
        assert totals.discount_amount == Decimal("30.00")
        assert totals.total == Decimal("0")

    def test_unknown_type_is_rejected_without_change(self):
        cart = _cart_with_items()
        cart.set_order_discount("10", "percent")

        result = cart.set_order_discount("5", "bogus")

        assert isinstance(result, Rejected)
        assert cart.discount.value == Decimal("10")

    def test_line_discount_applies_before_order_discount(self):
        cart = Cart()
        line = cart.add_item("p1", "100", max_quantity=5)
        cart.set_line_discount(line.line_id, "10")
        cart.set_order_discount("10", "percent")

        totals = cart.totals()
        assert totals.subtotal == Decimal("100")
        assert totals.line_discount_amount == Decimal("10")
        assert totals.order_discount_amount == Decimal("9")
        assert totals.total == Decimal("81")


class TestTotals:
    def test_tax_is_computed_on_discounted_base(self):
        cart = Cart(tax_rate="10")
        cart.add_item("p1", "100", max_quantity=1)
        cart.set_order_discount("10", "percent")

        totals = cart.totals()

        assert totals.subtotal == Decimal("100")
        assert totals.discount_amount == Decimal("10")
        assert totals.taxable_base == Decimal("90")
        assert totals.rounded().tax_amount == Decimal("9.00")
        assert totals.rounded().total == Decimal("99.00")

    def test_subtotal_has_no_drift_across_mutations(self):
        cart = Cart()
        a = cart.add_item("a", "0.10", max_quantity=1000)
        b = cart.add_item("b", "0.20", max_quantity=1000)
        for _ in range(300):
            cart.update_quantity(a.line_id, 1)
            cart.update_quantity(b.line_id, 2)
            cart.update_quantity(b.line_id, -1)

        # a: 301 x 0.10, b: 301 x 0.20
        assert cart.totals().subtotal == Decimal("90.30")

    def test_totals_is_idempotent(self):
        cart = _cart_with_items(tax_rate="7.5")
        cart.set_order_discount("3.33", "fixed")
        version = cart.version

        assert cart.totals() == cart.totals()
        assert cart.version == version

    def test_full_precision_is_kept_until_rounding(self):
        cart = Cart(tax_rate="7")
        cart.add_item("p1", "3.33", max_quantity=3)
        cart.set_order_discount("33.3333", "percent")

        totals = cart.totals()
        assert totals.tax_amount != totals.rounded().tax_amount
        assert totals.rounded().total == Decimal("2.38")

    def test_every_mutation_bumps_version(self):
        cart = Cart()
        line = cart.add_item("p1", "1", max_quantity=5)
        v1 = cart.version
        cart.update_quantity(line.line_id, 1)
        v2 = cart.version
        cart.set_order_discount("1", "fixed")

        assert v1 < v2 < cart.version
