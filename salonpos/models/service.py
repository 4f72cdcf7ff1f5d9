"""Service (catalog entry) model."""
from sqlalchemy import Column, String, Numeric, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from salonpos.database import Base, IdType


class Service(Base):
    """A salon service that can be sold (haircut, facial...)."""

    __tablename__ = 'service'

    id = Column(IdType, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    sales = relationship('Sale', back_populates='service')

    def __repr__(self):
        return f"<Service(id={self.id}, name='{self.name}', price={self.price})>"
