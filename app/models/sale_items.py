# models/sale_items.py

from sqlalchemy import CheckConstraint, Column, Integer, ForeignKey, Numeric, UniqueConstraint
from sqlalchemy.orm import relationship

from app.database import Base


class SaleItem(Base):
    __tablename__ = "sale_items"

    id = Column(Integer, primary_key=True, index=True)

    sale_id = Column(Integer, ForeignKey("sales.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)

    quantity = Column(Integer, nullable=False)

    # Product.total_price copied at creation, never recomputed
    unit_price_at_sale = Column(Numeric(12, 2), nullable=False)

    sale = relationship("Sale", back_populates="items")
    product = relationship("Product")

    __table_args__ = (
        UniqueConstraint("sale_id", "product_id", name="uq_sale_items_sale_product"),
        CheckConstraint("quantity > 0", name="ck_sale_items_quantity_positive"),
    )
