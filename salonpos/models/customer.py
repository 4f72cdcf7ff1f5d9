"""Customer model."""
from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from salonpos.database import Base, IdType


class Customer(Base):
    """Salon customer."""

    __tablename__ = 'customer'

    id = Column(IdType, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    contact = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    sales = relationship('Sale', back_populates='customer')

    def __repr__(self):
        return f"<Customer(id={self.id}, name='{self.name}')>"
