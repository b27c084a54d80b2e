# schemas/client.py

from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
from typing import List

from app.models.clients import PaymentStatus


class ClientBase(BaseModel):
    alias_name: str | None = None
    tax_id: str | None = None
    phone: str | None = None
    address: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    payment_terms: str | None = None
    payment_status: PaymentStatus | None = None

    company: str | None = None
    client_code: str | None = None
    dispatch_type: str | None = None
    channel: str | None = None
    sub_channel: str | None = None
    business_line: str | None = None
    contact: str | None = None
    price_list: str | None = None
    sales_rep: str | None = None
    address_type: str | None = None
    city: str | None = None
    district: str | None = None


class ClientCreate(ClientBase):
    # Emptiness is checked by the service so it reports a 400, not a 422
    legal_name: str | None = None
    email: str | None = None


class ClientUpdate(ClientBase):
    legal_name: str | None = None
    email: str | None = None


class ClientResponse(ClientBase):
    id: int
    name: str
    legal_name: str
    email: str
    payment_status: PaymentStatus
    user_id: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ClientPage(BaseModel):
    data: List[ClientResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


class ClientSaleSummary(BaseModel):
    id: int
    date: datetime
    description: str | None
    total: Decimal


class ClientDetailResponse(ClientResponse):
    sales: List[ClientSaleSummary] = []


class BulkDeleteRequest(BaseModel):
    ids: List[int] = Field(default_factory=list)


class BulkDeleteResponse(BaseModel):
    message: str
    count: int


class ImportResultResponse(BaseModel):
    message: str
    created_count: int
    updated_count: int
    errors: List[str]
