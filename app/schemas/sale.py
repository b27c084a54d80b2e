# schemas/sale.py

from pydantic import BaseModel
from datetime import datetime
from typing import List
from decimal import Decimal

class SaleItemCreate(BaseModel):
    product_id: int
    quantity: int

class SaleCreate(BaseModel):
    client_id: int | None = None
    items: List[SaleItemCreate] = []
    date: datetime | None = None
    description: str | None = None

class ProductSnapshot(BaseModel):
    id: int
    name: str
    net_price: Decimal
    total_price: Decimal

    class Config:
        from_attributes = True

class SaleItemResponse(BaseModel):
    id: int
    product_id: int
    quantity: int
    unit_price_at_sale: Decimal
    line_total: Decimal
    product: ProductSnapshot | None

class SaleClient(BaseModel):
    id: int
    name: str
    legal_name: str
    email: str
    tax_id: str | None = None
    address: str | None = None
    phone: str | None = None

    class Config:
        from_attributes = True

class SaleSeller(BaseModel):
    id: int
    username: str

    class Config:
        from_attributes = True

class SaleResponse(BaseModel):
    id: int
    client_id: int
    user_id: int
    date: datetime
    description: str | None

    class Config:
        from_attributes = True

class SaleDetailResponse(SaleResponse):
    client: SaleClient
    seller: SaleSeller | None
    items: List[SaleItemResponse]
    total: Decimal

class CalendarClient(BaseModel):
    name: str

class CalendarSaleResponse(BaseModel):
    id: int
    date: datetime
    amount: Decimal
    description: str | None
    client: CalendarClient
