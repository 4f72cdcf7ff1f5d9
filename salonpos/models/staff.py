"""Staff model."""
from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from salonpos.database import Base, IdType


class Staff(Base):
    """Staff member who performs services."""

    __tablename__ = 'staff'

    id = Column(IdType, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    sales = relationship('Sale', back_populates='staff')

    def __repr__(self):
        return f"<Staff(id={self.id}, name='{self.name}')>"
