"""POS blueprint - session cart, checkout and receipt (JSON)."""
from typing import Any, Dict, Optional

from flask import Blueprint, request, session, jsonify, send_file, current_app, Response

from salonpos.database import get_session
from salonpos.domain import Cart, PricedCart
from salonpos.exceptions import BusinessLogicError, NotFoundError
from salonpos.services import cart_service, catalog_service
from salonpos.services.pricing_service import price_cart
from salonpos.services.receipt_service import Receipt, format_receipt, render_receipt_pdf
from salonpos.services.sales_service import complete_sale

pos_bp = Blueprint('pos', __name__, url_prefix='/pos')

LAST_RECEIPT_KEY = 'last_receipt'


def _payload() -> Dict[str, Any]:
    if request.is_json:
        return request.get_json(silent=True) or {}
    return request.form.to_dict()


def _int_arg(payload: Dict[str, Any], key: str, required: bool = True) -> Optional[int]:
    raw = payload.get(key)
    if raw in (None, ''):
        if required:
            raise BusinessLogicError(f'Missing {key}')
        return None
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise BusinessLogicError(f'Invalid {key}: {raw}')


def _business_info() -> Dict[str, str]:
    config = current_app.config
    return {
        'name': config.get('BUSINESS_NAME', ''),
        'address': config.get('BUSINESS_ADDRESS', ''),
        'phone': config.get('BUSINESS_PHONE', ''),
        'currency_symbol': config.get('CURRENCY_SYMBOL', ''),
    }


def _cart_response(cart: Cart) -> Response:
    """Cart lines with the live totals of the pricing engine."""
    priced: PricedCart = price_cart(cart)
    lines = []
    for p in priced.lines:
        data = p.line.to_dict()
        data.update({
            'discounted_unit_price': str(p.discounted_unit_price),
            'line_subtotal': str(p.line_subtotal),
            'line_discount': str(p.line_discount),
            'line_total': str(p.discounted_subtotal),
        })
        lines.append(data)

    return jsonify({
        'lines': lines,
        'overall_discount': cart.overall_discount.to_dict(),
        'unit_count': cart.unit_count,
        'subtotal': str(priced.subtotal),
        'line_discount_total': str(priced.line_discount_total),
        'subtotal_after_line_discounts': str(priced.subtotal_after_line_discounts),
        'overall_discount_amount': str(priced.overall_discount_amount),
        'grand_total': str(priced.grand_total),
    })


# ============================================================================
# Cart
# ============================================================================

@pos_bp.route('/cart', methods=['GET'])
def cart_view() -> Response:
    return _cart_response(cart_service.get_cart(session))


@pos_bp.route('/cart/add', methods=['POST'])
def cart_add() -> Response:
    """Add a catalog service to the cart (quantity +1 if already there)."""
    payload = _payload()
    service = catalog_service.get_service(get_session(), _int_arg(payload, 'service_id'))

    cart = cart_service.get_cart(session)
    cart_service.add_service(cart, service.id, service.name, service.price)
    cart_service.save_cart(session, cart)
    return _cart_response(cart)


@pos_bp.route('/cart/update', methods=['POST'])
def cart_update() -> Response:
    """Set a line quantity, zero removes the line."""
    payload = _payload()
    cart = cart_service.get_cart(session)
    cart_service.update_quantity(cart, _int_arg(payload, 'service_id'), _int_arg(payload, 'quantity'))
    cart_service.save_cart(session, cart)
    return _cart_response(cart)


@pos_bp.route('/cart/staff', methods=['POST'])
def cart_staff() -> Response:
    payload = _payload()
    staff = catalog_service.get_staff(get_session(), _int_arg(payload, 'staff_id'))

    cart = cart_service.get_cart(session)
    cart_service.assign_staff(cart, _int_arg(payload, 'service_id'), staff.id, staff.name)
    cart_service.save_cart(session, cart)
    return _cart_response(cart)


@pos_bp.route('/cart/discount', methods=['POST'])
def cart_discount() -> Response:
    """Line discount: {service_id, type: percentage|amount|null, value}."""
    payload = _payload()
    cart = cart_service.get_cart(session)
    try:
        cart_service.set_line_discount(
            cart, _int_arg(payload, 'service_id'), payload.get('type') or None, payload.get('value')
        )
    except ValueError as e:
        raise BusinessLogicError(str(e))
    cart_service.save_cart(session, cart)
    return _cart_response(cart)


@pos_bp.route('/cart/overall-discount', methods=['POST'])
def cart_overall_discount() -> Response:
    payload = _payload()
    cart = cart_service.get_cart(session)
    try:
        cart_service.set_overall_discount(cart, payload.get('type') or None, payload.get('value'))
    except ValueError as e:
        raise BusinessLogicError(str(e))
    cart_service.save_cart(session, cart)
    return _cart_response(cart)


@pos_bp.route('/cart/clear', methods=['POST'])
def cart_clear() -> Response:
    cart = cart_service.reset(cart_service.get_cart(session))
    cart_service.save_cart(session, cart)
    return _cart_response(cart)


# ============================================================================
# Checkout and receipt
# ============================================================================

@pos_bp.route('/checkout', methods=['POST'])
def checkout():
    """
    Complete the sale: {customer_id, payment_mode}.

    On success the cart is reset and the receipt is kept for /pos/receipt.
    On failure the cart is left as it was.
    """
    payload = _payload()
    cart = cart_service.get_cart(session)
    customer_id = _int_arg(payload, 'customer_id', required=False)

    summary = complete_sale(
        get_session(),
        cart,
        customer_id,
        payment_mode=payload.get('payment_mode') or 'cash',
        retries=current_app.config.get('SALE_WRITE_RETRIES', 0),
    )

    receipt = format_receipt(summary, _business_info())
    session[LAST_RECEIPT_KEY] = receipt.to_state()
    cart_service.save_cart(session, cart_service.reset(cart))

    current_app.logger.info(
        f"Checkout completed: {len(summary.unit_ids)} rows, grand total {summary.grand_total}"
    )
    return jsonify({
        'status': 'ok',
        'unit_ids': summary.unit_ids,
        'grand_total': str(summary.grand_total),
        'receipt': receipt.to_dict(),
    }), 201


def _last_receipt() -> Receipt:
    state = session.get(LAST_RECEIPT_KEY)
    if not state:
        raise NotFoundError('No completed sale to print.')
    return Receipt.from_state(state)


@pos_bp.route('/receipt', methods=['GET'])
def receipt_view() -> Response:
    return jsonify(_last_receipt().to_dict())


@pos_bp.route('/receipt.pdf', methods=['GET'])
def receipt_pdf() -> Response:
    receipt = _last_receipt()
    filename = f"invoice_{receipt.date.strftime('%Y%m%d_%H%M%S')}.pdf"
    return send_file(
        render_receipt_pdf(receipt),
        mimetype='application/pdf',
        as_attachment=True,
        download_name=filename
    )
