"""
Pricing service: line discounts, cart totals, overall discount and its
allocation down to lines and units.

Pure functions over domain objects, no session and no side effects.
Amounts are Decimals rounded to the cent; allocation runs on integer cents
so the per-unit prices always add up to the grand total.
"""
from dataclasses import replace
from decimal import Decimal
from typing import Iterable, List, Tuple

from salonpos.domain import Cart, CartLine, Discount, PricedLine, PricedCart, PERCENTAGE, AMOUNT
from salonpos.exceptions import BusinessLogicError, DiscountRangeError
from salonpos.utils.money import ZERO, HUNDRED, to_money, to_cents, from_cents, percent_of


def resolve_discounted_unit_price(line: CartLine) -> Decimal:
    """
    Unit price of a line after its own discount.

    Both discount types apply per unit. The value must already be inside
    its range (Discount.clamped); anything else is an invariant violation.
    The result is floored at zero.
    """
    unit_price = to_money(line.unit_price)
    discount = line.discount

    if discount.is_none:
        return unit_price

    if discount.type == PERCENTAGE:
        if not ZERO <= discount.value <= HUNDRED:
            raise DiscountRangeError(PERCENTAGE, discount.value, HUNDRED)
        discounted = to_money(unit_price * (HUNDRED - discount.value) / HUNDRED)
    elif discount.type == AMOUNT:
        upper = unit_price * line.quantity
        if not ZERO <= discount.value <= upper:
            raise DiscountRangeError(AMOUNT, discount.value, upper)
        discounted = unit_price - discount.value
    else:
        raise DiscountRangeError(discount.type, discount.value, ZERO)

    return max(ZERO, discounted)


def price_line(line: CartLine) -> PricedLine:
    """Price one line without any overall discount."""
    if line.quantity < 1:
        raise BusinessLogicError(f'Quantity for "{line.service_name}" must be at least 1')

    unit_price = to_money(line.unit_price)
    discounted_unit_price = resolve_discounted_unit_price(line)
    line_subtotal = unit_price * line.quantity
    discounted_subtotal = discounted_unit_price * line.quantity

    return PricedLine(
        line=replace(line),
        discounted_unit_price=discounted_unit_price,
        line_subtotal=line_subtotal,
        line_discount=line_subtotal - discounted_subtotal,
        discounted_subtotal=discounted_subtotal,
    )


def aggregate_cart(lines: Iterable[CartLine]) -> Tuple[List[PricedLine], Decimal, Decimal, Decimal]:
    """
    Price every line and sum the cart.

    Returns:
        (priced_lines, subtotal, line_discount_total, subtotal_after_line_discounts)
        An empty cart sums to zero.
    """
    priced_lines = [price_line(line) for line in lines]
    subtotal = sum((p.line_subtotal for p in priced_lines), ZERO)
    line_discount_total = sum((p.line_discount for p in priced_lines), ZERO)
    return priced_lines, subtotal, line_discount_total, subtotal - line_discount_total


def resolve_overall_discount(subtotal_after_line_discounts: Decimal, discount: Discount) -> Tuple[Decimal, Decimal]:
    """
    Cart-wide discount applied after line discounts.

    Returns:
        (overall_discount_amount, grand_total). The amount never exceeds
        what remains after line discounts, so the total is never negative.
    """
    remaining = to_money(subtotal_after_line_discounts)

    if discount.is_none or remaining <= 0:
        amount = ZERO
    elif discount.type == PERCENTAGE:
        if not ZERO <= discount.value <= HUNDRED:
            raise DiscountRangeError(PERCENTAGE, discount.value, HUNDRED)
        amount = percent_of(remaining, discount.value)
    elif discount.type == AMOUNT:
        if discount.value < 0:
            raise DiscountRangeError(AMOUNT, discount.value, remaining)
        # The cart may have shrunk since the amount was clamped
        amount = min(discount.value, remaining)
    else:
        raise DiscountRangeError(discount.type, discount.value, ZERO)

    amount = min(amount, remaining)
    return amount, max(ZERO, remaining - amount)


def allocate_overall_discount(discounted_subtotals: List[Decimal], overall_amount: Decimal) -> List[Decimal]:
    """
    Split the overall discount across lines in proportion to each line's
    subtotal after line discounts.

    Largest-remainder in cents: each line gets the floor of its exact share,
    leftover cents go to the largest fractional remainders (earlier line on
    ties). The shares add up to overall_amount exactly and no share exceeds
    its line subtotal.
    """
    subtotal_cents = [to_cents(s) for s in discounted_subtotals]
    total_cents = sum(subtotal_cents)
    overall_cents = to_cents(overall_amount)

    if total_cents <= 0 or overall_cents <= 0:
        return [ZERO for _ in subtotal_cents]

    if overall_cents > total_cents:
        raise BusinessLogicError('Overall discount exceeds the discounted subtotal')

    shares = []
    remainders = []
    for index, cents in enumerate(subtotal_cents):
        share, remainder = divmod(cents * overall_cents, total_cents)
        shares.append(share)
        remainders.append((-remainder, index))

    leftover = overall_cents - sum(shares)
    for _, index in sorted(remainders)[:leftover]:
        shares[index] += 1

    return [from_cents(share) for share in shares]


def split_across_units(line_share: Decimal, quantity: int) -> Tuple[Decimal, ...]:
    """
    Split a line's share of the overall discount across its units.

    The first share % quantity units carry one extra cent.
    """
    base, extra = divmod(to_cents(line_share), quantity)
    return tuple(from_cents(base + 1 if i < extra else base) for i in range(quantity))


def price_cart(cart: Cart) -> PricedCart:
    """Run the full pricing pipeline over a cart."""
    priced_lines, subtotal, line_discount_total, subtotal_after = aggregate_cart(cart.lines)
    overall_amount, grand_total = resolve_overall_discount(subtotal_after, cart.overall_discount)

    shares = allocate_overall_discount([p.discounted_subtotal for p in priced_lines], overall_amount)
    allocated = [
        replace(p, overall_share=share, unit_overall_shares=split_across_units(share, p.line.quantity))
        for p, share in zip(priced_lines, shares)
    ]

    return PricedCart(
        lines=allocated,
        overall_discount=cart.overall_discount,
        subtotal=subtotal,
        line_discount_total=line_discount_total,
        subtotal_after_line_discounts=subtotal_after,
        overall_discount_amount=overall_amount,
        grand_total=grand_total,
    )
