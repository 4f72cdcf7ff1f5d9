"""Plain data types shared by the services (no persistence)."""
from salonpos.domain.cart import (
    Cart, CartLine, Discount, PERCENTAGE, AMOUNT, DISCOUNT_TYPES, default_overall_discount
)
from salonpos.domain.sale import PricedLine, PricedCart, SaleUnit, CompletedSaleSummary

__all__ = [
    'Cart', 'CartLine', 'Discount', 'PERCENTAGE', 'AMOUNT', 'DISCOUNT_TYPES',
    'default_overall_discount',
    'PricedLine', 'PricedCart', 'SaleUnit', 'CompletedSaleSummary',
]
