# app/models/products.py
#
# Products are maintained outside this service. The ledger only reads them.

from sqlalchemy import CheckConstraint, Column, Integer, String, Numeric

from app.database import Base


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    net_price = Column(Numeric(12, 2), nullable=False)
    total_price = Column(Numeric(12, 2), nullable=False)

    __table_args__ = (
        CheckConstraint("net_price >= 0", name="ck_net_price_non_negative"),
        CheckConstraint("total_price >= 0", name="ck_total_price_non_negative"),
    )
