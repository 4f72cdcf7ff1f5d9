"""
Unit tests for the pricing engine: line discounts, cart totals, overall
discount and its allocation down to units.
"""

import pytest
from datetime import datetime
from decimal import Decimal

from salonpos.domain import Cart, CartLine, Discount, PERCENTAGE, AMOUNT
from salonpos.exceptions import BusinessLogicError, DiscountRangeError
from salonpos.services.pricing_service import (
    resolve_discounted_unit_price, aggregate_cart, resolve_overall_discount,
    allocate_overall_discount, split_across_units, price_cart
)
from salonpos.services.sales_service import build_sale_units

D = Decimal


def line(service_id, price, quantity=1, discount=None, staff_id=1):
    return CartLine(
        service_id=service_id,
        service_name=f'Service {service_id}',
        unit_price=D(price),
        quantity=quantity,
        staff_id=staff_id,
        discount=discount or Discount.none(),
    )


def unit_prices(priced):
    """Final price of every unit, in cart order."""
    return [
        p.discounted_unit_price - share
        for p in priced.lines
        for share in p.unit_overall_shares
    ]


class TestLineDiscountResolver:
    """Tests for resolve_discounted_unit_price."""

    def test_no_discount_returns_unit_price(self):
        assert resolve_discounted_unit_price(line(1, '100.00')) == D('100.00')

    def test_percentage_discount(self):
        result = resolve_discounted_unit_price(line(1, '50.00', discount=Discount(PERCENTAGE, D('10'))))
        assert result == D('45.00')

    def test_percentage_rounds_half_up_to_cent(self):
        # 33.33 * 0.85 = 28.3305
        result = resolve_discounted_unit_price(line(1, '33.33', discount=Discount(PERCENTAGE, D('15'))))
        assert result == D('28.33')

    def test_amount_discount_applies_per_unit(self):
        result = resolve_discounted_unit_price(line(1, '100.00', quantity=2, discount=Discount(AMOUNT, D('30'))))
        assert result == D('70.00')

    def test_full_percentage_discount_is_zero(self):
        result = resolve_discounted_unit_price(line(1, '80.00', discount=Discount(PERCENTAGE, D('100'))))
        assert result == D('0.00')

    def test_amount_above_unit_price_is_floored_at_zero(self):
        # Within [0, unit_price * quantity] but larger than one unit
        result = resolve_discounted_unit_price(line(1, '100.00', quantity=2, discount=Discount(AMOUNT, D('150'))))
        assert result == D('0.00')

    def test_percentage_out_of_range_raises(self):
        with pytest.raises(DiscountRangeError):
            resolve_discounted_unit_price(line(1, '100.00', discount=Discount(PERCENTAGE, D('150'))))

    def test_negative_amount_raises(self):
        with pytest.raises(DiscountRangeError):
            resolve_discounted_unit_price(line(1, '100.00', discount=Discount(AMOUNT, D('-5'))))


class TestCartAggregator:
    """Tests for aggregate_cart."""

    def test_empty_cart_sums_to_zero(self):
        priced, subtotal, line_discounts, after = aggregate_cart([])
        assert priced == []
        assert subtotal == D('0.00')
        assert line_discounts == D('0.00')
        assert after == D('0.00')

    def test_totals_and_identity(self):
        lines = [line(1, '100.00', quantity=2), line(2, '50.00', discount=Discount(PERCENTAGE, D('10')))]
        priced, subtotal, line_discounts, after = aggregate_cart(lines)

        assert subtotal == D('250.00')
        assert line_discounts == D('5.00')
        assert after == D('245.00')
        assert after == subtotal - line_discounts
        assert [p.discounted_subtotal for p in priced] == [D('200.00'), D('45.00')]

    def test_zero_quantity_is_rejected(self):
        with pytest.raises(BusinessLogicError):
            aggregate_cart([line(1, '100.00', quantity=0)])


class TestOverallDiscountResolver:
    """Tests for resolve_overall_discount."""

    def test_percentage(self):
        amount, total = resolve_overall_discount(D('300.00'), Discount(PERCENTAGE, D('10')))
        assert amount == D('30.00')
        assert total == D('270.00')

    def test_amount(self):
        amount, total = resolve_overall_discount(D('245.00'), Discount(AMOUNT, D('20')))
        assert amount == D('20.00')
        assert total == D('225.00')

    def test_amount_larger_than_remaining_is_capped(self):
        amount, total = resolve_overall_discount(D('100.00'), Discount(AMOUNT, D('500')))
        assert amount == D('100.00')
        assert total == D('0.00')

    def test_nothing_remaining(self):
        amount, total = resolve_overall_discount(D('0.00'), Discount(PERCENTAGE, D('50')))
        assert amount == D('0.00')
        assert total == D('0.00')

    def test_default_discount_changes_nothing(self):
        amount, total = resolve_overall_discount(D('120.00'), Discount(PERCENTAGE, D('0')))
        assert amount == D('0.00')
        assert total == D('120.00')

    def test_percentage_out_of_range_raises(self):
        with pytest.raises(DiscountRangeError):
            resolve_overall_discount(D('100.00'), Discount(PERCENTAGE, D('101')))


class TestProportionalAllocator:
    """Tests for allocate_overall_discount and split_across_units."""

    def test_shares_sum_to_overall_amount(self):
        shares = allocate_overall_discount([D('200.00'), D('45.00')], D('20.00'))
        assert shares == [D('16.33'), D('3.67')]
        assert sum(shares) == D('20.00')

    def test_leftover_cent_goes_to_earlier_line_on_tie(self):
        shares = allocate_overall_discount([D('10.00'), D('10.00'), D('10.00')], D('10.00'))
        assert shares == [D('3.34'), D('3.33'), D('3.33')]

    def test_no_share_exceeds_its_line(self):
        subtotals = [D('0.01'), D('99.99'), D('0.50')]
        shares = allocate_overall_discount(subtotals, D('100.00'))
        assert sum(shares) == D('100.00')
        assert all(share <= subtotal for share, subtotal in zip(shares, subtotals))

    def test_zero_subtotal_gives_zero_shares(self):
        assert allocate_overall_discount([D('0.00'), D('0.00')], D('5.00')) == [D('0.00'), D('0.00')]

    def test_overall_above_subtotal_is_rejected(self):
        with pytest.raises(BusinessLogicError):
            allocate_overall_discount([D('1.00')], D('2.00'))

    def test_split_across_units_puts_extra_cents_first(self):
        assert split_across_units(D('0.05'), 3) == (D('0.02'), D('0.02'), D('0.01'))
        assert split_across_units(D('16.33'), 2) == (D('8.17'), D('8.16'))
        assert split_across_units(D('0.00'), 2) == (D('0.00'), D('0.00'))


class TestPriceCart:
    """End-to-end pricing of whole carts."""

    def test_mixed_discounts_scenario(self):
        cart = Cart(
            lines=[
                line(1, '100.00', quantity=2),
                line(2, '50.00', discount=Discount(PERCENTAGE, D('10'))),
            ],
            overall_discount=Discount(AMOUNT, D('20')),
        )
        priced = price_cart(cart)

        assert priced.subtotal == D('250.00')
        assert priced.line_discount_total == D('5.00')
        assert priced.subtotal_after_line_discounts == D('245.00')
        assert priced.overall_discount_amount == D('20.00')
        assert priced.grand_total == D('225.00')
        assert priced.total_discount == D('25.00')

        assert [p.overall_share for p in priced.lines] == [D('16.33'), D('3.67')]
        assert unit_prices(priced) == [D('91.83'), D('91.84'), D('41.33')]
        assert sum(unit_prices(priced)) == priced.grand_total

    def test_cart_is_not_mutated(self):
        cart = Cart(lines=[line(1, '100.00', quantity=2)], overall_discount=Discount(PERCENTAGE, D('10')))
        price_cart(cart)
        assert cart.lines[0].quantity == 2
        assert cart.lines[0].unit_price == D('100.00')

    @pytest.mark.parametrize('lines, overall', [
        # Single line, quantity 3, amount overall that does not divide evenly
        ([line(1, '33.33', quantity=3)], Discount(AMOUNT, D('10'))),
        # Several lines with percentage overall and mixed line discounts
        ([
            line(1, '100.00', quantity=2, discount=Discount(AMOUNT, D('7.50'))),
            line(2, '45.50', discount=Discount(PERCENTAGE, D('12.5'))),
            line(3, '19.99', quantity=4),
        ], Discount(PERCENTAGE, D('17'))),
        # Overall discount wipes out the whole cart
        ([line(1, '10.00'), line(2, '0.01', quantity=3)], Discount(PERCENTAGE, D('100'))),
    ])
    def test_unit_prices_always_sum_to_grand_total(self, lines, overall):
        priced = price_cart(Cart(lines=lines, overall_discount=overall))
        prices = unit_prices(priced)

        assert len(prices) == sum(item.quantity for item in lines)
        assert sum(prices) == priced.grand_total
        assert all(price >= 0 for price in prices)
        assert priced.grand_total <= priced.subtotal_after_line_discounts <= priced.subtotal

    @pytest.mark.parametrize('lines, overall, expected_total', [
        # One line, quantity 1
        ([line(1, '100.00')], Discount.none(), D('100.00')),
        # One line, quantity 5, percentage line discount
        ([line(1, '33.33', quantity=5, discount=Discount(PERCENTAGE, D('15')))], Discount.none(), D('141.65')),
        # Three lines, mixed line discounts, fixed-amount overall
        ([
            line(1, '100.00', quantity=2),
            line(2, '50.00', discount=Discount(PERCENTAGE, D('10'))),
            line(3, '29.99', quantity=3, discount=Discount(AMOUNT, D('4.99'))),
        ], Discount(AMOUNT, D('20')), D('300.00')),
    ])
    def test_persisted_units_sum_to_grand_total(self, lines, overall, expected_total):
        priced = price_cart(Cart(lines=lines, overall_discount=overall))
        units = build_sale_units(priced, customer_id=1, payment_mode='cash', date=datetime(2026, 3, 10, 10, 0))

        assert priced.grand_total == expected_total
        assert len(units) == sum(item.quantity for item in lines)
        assert sum(unit.unit_final_price for unit in units) == priced.grand_total
        assert sum(unit.discount_amount for unit in units) == priced.total_discount

    def test_overall_never_exceeds_subtotal_after_line_discounts(self):
        cart = Cart(
            lines=[line(1, '40.00', discount=Discount(PERCENTAGE, D('50')))],
            overall_discount=Discount(AMOUNT, D('100')),
        )
        priced = price_cart(cart)

        assert priced.overall_discount_amount == D('20.00')
        assert priced.grand_total == D('0.00')
        assert unit_prices(priced) == [D('0.00')]

    def test_empty_cart(self):
        priced = price_cart(Cart())
        assert priced.lines == []
        assert priced.grand_total == D('0.00')
