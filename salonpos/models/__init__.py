"""Models package - exports all SQLAlchemy models."""
from salonpos.models.customer import Customer
from salonpos.models.staff import Staff
from salonpos.models.service import Service
from salonpos.models.sale import Sale, PaymentMode, normalize_payment_mode

__all__ = [
    'Customer', 'Staff', 'Service',
    'Sale', 'PaymentMode', 'normalize_payment_mode',
]
