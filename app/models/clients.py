# app/models/clients.py

import enum

from sqlalchemy import Column, Enum, Float, ForeignKey, Index, Integer, String, DateTime, UniqueConstraint
from sqlalchemy.orm import relationship

from app.database import Base


class PaymentStatus(str, enum.Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    OVERDUE = "OVERDUE"


class Client(Base):
    __tablename__ = "clients"

    id = Column(Integer, primary_key=True, index=True)

    # Legacy display name, always equal to legal_name
    name = Column(String, nullable=False)
    legal_name = Column(String, nullable=False)
    alias_name = Column(String, nullable=True)
    tax_id = Column(String, nullable=True)
    email = Column(String, nullable=False)
    phone = Column(String, nullable=True)
    address = Column(String, nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)

    payment_terms = Column(String, nullable=True)
    payment_status = Column(
        Enum(PaymentStatus, name="payment_status"),
        default=PaymentStatus.PENDING,
        nullable=False,
    )

    company = Column(String, nullable=True)
    client_code = Column(String, nullable=True)
    dispatch_type = Column(String, nullable=True)
    channel = Column(String, nullable=True)
    sub_channel = Column(String, nullable=True)
    business_line = Column(String, nullable=True)
    contact = Column(String, nullable=True)
    price_list = Column(String, nullable=True)
    sales_rep = Column(String, nullable=True)
    address_type = Column(String, nullable=True)
    city = Column(String, nullable=True)
    district = Column(String, nullable=True)

    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # Set explicitly by the service so an insert has created_at == updated_at
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    sales = relationship("Sale", back_populates="client")

    __table_args__ = (
        Index("ix_clients_user_legal_name", "user_id", "legal_name"),
        UniqueConstraint("email", "user_id", name="uq_clients_email_user"),
        UniqueConstraint("tax_id", "user_id", name="uq_clients_tax_id_user"),
    )
