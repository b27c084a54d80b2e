# models/sales.py

from sqlalchemy import Column, Index, Integer, DateTime, ForeignKey, String
from sqlalchemy.orm import relationship

from app.database import Base


class Sale(Base):
    __tablename__ = "sales"

    id = Column(Integer, primary_key=True, index=True)

    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False, index=True)

    date = Column(DateTime(timezone=True), nullable=False, index=True)
    description = Column(String, nullable=True)

    # No persisted total: it is always derived from the line items
    items = relationship("SaleItem", back_populates="sale")
    client = relationship("Client", back_populates="sales")
    user = relationship("User")


    # Composite index for owner and date filtering
    __table_args__ = (
        Index("ix_sales_user_date", "user_id", "date"),
    )
