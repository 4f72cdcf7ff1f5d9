"""Cart service - in-progress sale operations.

The cart lives in the Flask session between requests (see get_cart /
save_cart); every mutation clamps its input so the pricing engine only
ever sees valid values.
"""
from decimal import Decimal
from typing import Optional

from salonpos.domain import Cart, CartLine, Discount, default_overall_discount
from salonpos.exceptions import NotFoundError
from salonpos.services.pricing_service import aggregate_cart
from salonpos.utils.money import to_money

SESSION_CART_KEY = 'cart'


def get_cart(session) -> Cart:
    """Load the cart from a session-like mapping."""
    return Cart.from_dict(session.get(SESSION_CART_KEY))


def save_cart(session, cart: Cart) -> None:
    """Store the cart as plain JSON-friendly data."""
    session[SESSION_CART_KEY] = cart.to_dict()
    if hasattr(session, 'modified'):
        session.modified = True


def _get_line_or_error(cart: Cart, service_id: int) -> CartLine:
    line = cart.find(service_id)
    if not line:
        raise NotFoundError('Service is not in the cart.')
    return line


def add_service(cart: Cart, service_id: int, service_name: str, price: Decimal) -> CartLine:
    """
    Add a service with quantity 1, or bump the quantity if already present.

    The catalog price is copied; later catalog changes do not touch the line.
    """
    line = cart.find(service_id)
    if line:
        line.quantity += 1
        return line

    line = CartLine(service_id=service_id, service_name=service_name, unit_price=to_money(price))
    cart.lines.append(line)
    return line


def update_quantity(cart: Cart, service_id: int, quantity: int) -> Optional[CartLine]:
    """Set a line quantity. Zero or less removes the line and returns None."""
    line = _get_line_or_error(cart, service_id)
    if quantity <= 0:
        remove_line(cart, service_id)
        return None

    line.quantity = int(quantity)
    # Amount discounts are per unit, their bound does not move with quantity
    return line


def remove_line(cart: Cart, service_id: int) -> None:
    cart.lines = [line for line in cart.lines if line.service_id != service_id]


def assign_staff(cart: Cart, service_id: int, staff_id: int, staff_name: str) -> CartLine:
    line = _get_line_or_error(cart, service_id)
    line.staff_id = staff_id
    line.staff_name = staff_name
    return line


def set_line_discount(cart: Cart, service_id: int, discount_type: Optional[str], value) -> CartLine:
    """Set a per-unit line discount, clamped to [0, 100] or [0, unit price]."""
    line = _get_line_or_error(cart, service_id)
    line.discount = Discount.clamped(discount_type, value, line.unit_price)
    return line


def set_overall_discount(cart: Cart, discount_type: Optional[str], value) -> Discount:
    """Set the cart-wide discount, an amount is clamped to what remains after line discounts."""
    if discount_type is None:
        cart.overall_discount = default_overall_discount()
        return cart.overall_discount

    _, _, _, subtotal_after = aggregate_cart(cart.lines)
    cart.overall_discount = Discount.clamped(discount_type, value, subtotal_after)
    return cart.overall_discount


def reset(cart: Cart) -> Cart:
    """Empty the cart after a completed or abandoned sale."""
    cart.lines = []
    cart.overall_discount = default_overall_discount()
    return cart
