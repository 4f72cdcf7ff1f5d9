"""
Sales service - checkout of a cart into persisted unit rows.

One checkout writes one `sale` row per unit of quantity. All rows share the
checkout timestamp and customer, which is how history groups them back
into one logical sale.
"""
import logging
from datetime import datetime
from typing import List, Optional, Sequence

from salonpos.domain import Cart, PricedCart, SaleUnit, CompletedSaleSummary
from salonpos.exceptions import ValidationError, NotFoundError, WriteError
from salonpos.models import Customer, normalize_payment_mode
from salonpos.services.pricing_service import price_cart
from salonpos.services.sale_store import SaleStore, SqlAlchemySaleStore
from salonpos.utils.money import ZERO, to_money

logger = logging.getLogger(__name__)


def validate_checkout(cart: Cart, customer_id: Optional[int], payment_mode) -> str:
    """
    Check every precondition of a checkout.

    Returns:
        Normalized payment mode

    Raises:
        ValidationError: naming the first precondition that failed
    """
    if cart.is_empty:
        raise ValidationError('The cart is empty.', ValidationError.EMPTY_CART)

    if not customer_id:
        raise ValidationError('Select a customer before completing the sale.', ValidationError.MISSING_CUSTOMER)

    for line in cart.lines:
        if not line.staff_id:
            raise ValidationError(
                f'Assign a staff member to "{line.service_name}".',
                ValidationError.MISSING_STAFF,
                service_id=line.service_id
            )

    try:
        return normalize_payment_mode(payment_mode)
    except ValueError as e:
        raise ValidationError(str(e), ValidationError.INVALID_PAYMENT_MODE)


def build_sale_units(priced_cart: PricedCart, customer_id: int, payment_mode: str, date: datetime) -> List[SaleUnit]:
    """
    Expand priced lines into one SaleUnit per unit of quantity.

    unit_final_price = discounted unit price - the unit's share of the
    overall discount; discount_amount = line discount per unit + that share.
    """
    units = []
    for priced in priced_cart.lines:
        line = priced.line
        line_discount_per_unit = to_money(line.unit_price) - priced.discounted_unit_price

        for unit_share in priced.unit_overall_shares:
            units.append(SaleUnit(
                customer_id=customer_id,
                staff_id=line.staff_id,
                service_id=line.service_id,
                unit_final_price=max(priced.discounted_unit_price - unit_share, ZERO),
                discount_amount=line_discount_per_unit + unit_share,
                payment_mode=payment_mode,
                date=date,
            ))
    return units


def persist_units(store: SaleStore, units: Sequence[SaleUnit], retries: int = 0) -> List[int]:
    """
    Write unit rows through the store.

    Batch-capable stores write everything in one transaction. Other stores
    get sequential writes, each retried `retries` times; a row that still
    fails raises WriteError carrying the ids already written (those rows
    are NOT rolled back).
    """
    if store.supports_batch:
        ids = store.write_many(units)
    else:
        ids = []
        for unit in units:
            attempt = 0
            while True:
                try:
                    ids.append(store.write(unit))
                    break
                except WriteError as e:
                    attempt += 1
                    if attempt > retries:
                        logger.error(
                            f"Sale partially persisted: {len(ids)}/{len(units)} rows written ({e.message})"
                        )
                        raise WriteError(
                            f'Sale partially saved: {len(ids)} of {len(units)} rows written. '
                            f'Check the sales history before retrying.',
                            written_ids=ids,
                            total_rows=len(units)
                        )
                    logger.warning(f"Retrying sale row write ({attempt}/{retries}): {e.message}")

    for unit, row_id in zip(units, ids):
        unit.id = row_id
    return ids


def complete_sale(
    session,
    cart: Cart,
    customer_id: Optional[int],
    payment_mode: str = 'cash',
    store: Optional[SaleStore] = None,
    now: Optional[datetime] = None,
    retries: int = 0
) -> CompletedSaleSummary:
    """
    Price the cart, write its unit rows and return the receipt summary.

    Args:
        session: SQLAlchemy session (customer lookup, default store)
        cart: Cart to check out; left untouched, the caller resets it
        customer_id: Selected customer
        payment_mode: cash, card, upi or other
        store: Sale store, SqlAlchemySaleStore(session) by default
        now: Checkout timestamp, shared by every row
        retries: Per-row retries for stores without batch writes

    Raises:
        ValidationError: precondition failed, nothing written
        NotFoundError: customer does not exist, nothing written
        WriteError: persistence failed, possibly after some rows were written
    """
    mode = validate_checkout(cart, customer_id, payment_mode)

    customer = session.query(Customer).filter(Customer.id == customer_id).first()
    if not customer:
        raise NotFoundError('Customer not found')

    priced = price_cart(cart)
    date = now or datetime.now()
    units = build_sale_units(priced, customer.id, mode, date)

    store = store or SqlAlchemySaleStore(session)
    try:
        ids = persist_units(store, units, retries=retries)
    except WriteError:
        _record_sale_metrics(failed=True)
        raise

    logger.info(
        f"Sale completed: customer {customer.id}, {len(ids)} rows, "
        f"total {priced.grand_total}, payment {mode}"
    )
    _record_sale_metrics(units=len(ids))
    _invalidate_reports_cache()

    return CompletedSaleSummary(
        customer_id=customer.id,
        customer_name=customer.name,
        priced_cart=priced,
        payment_mode=mode,
        date=date,
        unit_ids=ids,
        customer_contact=customer.contact,
    )


# =====================================================
# PRIVATE HELPERS
# =====================================================

def _record_sale_metrics(units: int = 0, failed: bool = False):
    from salonpos.blueprints.metrics import record_sale
    record_sale(units=units, failed=failed)


def _invalidate_reports_cache():
    """Gracefully attempt to invalidate the reports cache."""
    try:
        from salonpos.services.cache_service import get_cache
        get_cache().invalidate_module('reports')
    except RuntimeError as e:
        logger.warning(f"Reports cache not invalidated: {e}")
