"""Priced carts, unit rows and the completed-sale summary."""
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from salonpos.domain.cart import CartLine, Discount


@dataclass(frozen=True)
class PricedLine:
    """A cart line with every amount the engine derived for it."""
    line: CartLine
    discounted_unit_price: Decimal
    line_subtotal: Decimal
    line_discount: Decimal
    discounted_subtotal: Decimal
    # Filled by the allocator
    overall_share: Decimal = Decimal('0.00')
    unit_overall_shares: tuple = ()

    @property
    def line_total(self) -> Decimal:
        """What the customer pays for this line."""
        return self.discounted_subtotal - self.overall_share


@dataclass(frozen=True)
class PricedCart:
    lines: List[PricedLine]
    overall_discount: Discount
    subtotal: Decimal
    line_discount_total: Decimal
    subtotal_after_line_discounts: Decimal
    overall_discount_amount: Decimal
    grand_total: Decimal

    @property
    def total_discount(self) -> Decimal:
        return self.line_discount_total + self.overall_discount_amount


@dataclass
class SaleUnit:
    """One unit row, built in memory before it is written."""
    customer_id: int
    staff_id: int
    service_id: int
    unit_final_price: Decimal
    discount_amount: Decimal
    payment_mode: str
    date: datetime
    id: Optional[int] = None


@dataclass(frozen=True)
class CompletedSaleSummary:
    """
    Totals of a persisted checkout, kept only for the receipt flow.

    Built from the same PricedCart the unit rows were materialized from.
    """
    customer_id: int
    customer_name: str
    priced_cart: PricedCart
    payment_mode: str
    date: datetime
    unit_ids: List[int] = field(default_factory=list)
    customer_contact: Optional[str] = None

    @property
    def subtotal(self) -> Decimal:
        return self.priced_cart.subtotal

    @property
    def line_discount_total(self) -> Decimal:
        return self.priced_cart.line_discount_total

    @property
    def overall_discount_amount(self) -> Decimal:
        return self.priced_cart.overall_discount_amount

    @property
    def grand_total(self) -> Decimal:
        return self.priced_cart.grand_total
