"""Sale model: one row per unit of quantity sold."""
from sqlalchemy import Column, String, Numeric, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from salonpos.database import Base, IdType
import enum


class PaymentMode(str, enum.Enum):
    """Payment mode of a whole checkout."""
    CASH = 'cash'
    CARD = 'card'
    UPI = 'upi'
    OTHER = 'other'


def normalize_payment_mode(value) -> str:
    """
    Normalize payment mode value to string for DB storage.

    Args:
        value: Can be None, PaymentMode enum, or string

    Returns:
        str: 'cash', 'card', 'upi' or 'other'

    Raises:
        ValueError: If value is invalid
    """
    # Default to cash if None
    if value is None:
        return PaymentMode.CASH.value

    if isinstance(value, PaymentMode):
        return value.value

    normalized = str(value).lower().strip()
    if normalized in {mode.value for mode in PaymentMode}:
        return normalized
    raise ValueError(f"Invalid payment mode: {value}. Must be one of cash, card, upi, other.")


class Sale(Base):
    """
    Persisted sale unit.

    A checkout of N units (across all cart lines) writes N rows sharing the
    same `date` and `customer_id`; together they form one logical sale.
    Rows are never updated, only deleted as a group.
    """

    __tablename__ = 'sale'

    id = Column(IdType, primary_key=True, autoincrement=True)
    customer_id = Column(IdType, ForeignKey('customer.id'), nullable=False, index=True)
    staff_id = Column(IdType, ForeignKey('staff.id'), nullable=False, index=True)
    service_id = Column(IdType, ForeignKey('service.id'), nullable=False, index=True)

    # Checkout timestamp, identical for every unit row of one checkout
    date = Column(DateTime(timezone=True), nullable=False, index=True)

    # Unit price after line and overall discounts
    total = Column(Numeric(10, 2), nullable=False)
    # Line discount per unit + share of the overall discount (audit only)
    discount_amount = Column(Numeric(10, 2), nullable=False, default=0, server_default='0')
    payment_mode = Column(String(20), nullable=False, default=PaymentMode.CASH.value)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    customer = relationship('Customer', back_populates='sales')
    staff = relationship('Staff', back_populates='sales')
    service = relationship('Service', back_populates='sales')

    def __repr__(self):
        return f"<Sale(id={self.id}, service_id={self.service_id}, total={self.total})>"
