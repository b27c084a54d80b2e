# =========================================================
# SALES ROUTER
#
# GET /sales        -> calendar list (live net price + IVA)
# GET /sales/{id}   -> detail with locked-in total
# POST /sales       -> all-or-nothing creation
# DELETE /sales/{id}
#
# Owner or ADMIN may read/delete a single sale
# =========================================================

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.core.auth import get_current_caller
from app.core.ownership import Caller
from app.core.pricing import line_total
from app.core.rate_limiter import limiter
from app.services import sales as sales_service
from app.services.sales import SaleDetail
from app.schemas.sale import (
    CalendarClient,
    CalendarSaleResponse,
    ProductSnapshot,
    SaleClient,
    SaleCreate,
    SaleDetailResponse,
    SaleItemResponse,
    SaleResponse,
    SaleSeller,
)

router = APIRouter(prefix="/sales", tags=["Sales"])


def _detail_response(detail: SaleDetail) -> SaleDetailResponse:
    sale = detail.sale

    return SaleDetailResponse(
        id=sale.id,
        client_id=sale.client_id,
        user_id=sale.user_id,
        date=sale.date,
        description=sale.description,
        client=SaleClient.model_validate(sale.client),
        seller=SaleSeller.model_validate(sale.user) if sale.user else None,
        items=[
            SaleItemResponse(
                id=item.id,
                product_id=item.product_id,
                quantity=item.quantity,
                unit_price_at_sale=item.unit_price_at_sale,
                line_total=line_total(item.quantity, item.unit_price_at_sale),
                product=ProductSnapshot.model_validate(item.product) if item.product else None,
            )
            for item in sale.items
        ],
        total=detail.total,
    )


# =========================================================
# CREATE SALE
# =========================================================
@router.post("", response_model=SaleResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def create_sale(
    request: Request,
    sale_data: SaleCreate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_caller),
):
    return sales_service.create(
        db,
        caller.id,
        client_id=sale_data.client_id,
        items=sale_data.items,
        date=sale_data.date,
        description=sale_data.description,
    )


# =========================================================
# CALENDAR LIST
# =========================================================
@router.get("", response_model=list[CalendarSaleResponse])
def list_sales(
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_caller),
):
    return [
        CalendarSaleResponse(
            id=entry.id,
            date=entry.date,
            amount=entry.amount,
            description=entry.description,
            client=CalendarClient(name=entry.client_name),
        )
        for entry in sales_service.list_for_calendar(db, caller.id)
    ]


# =========================================================
# GET SINGLE SALE
# =========================================================
@router.get("/{sale_id}", response_model=SaleDetailResponse)
def get_sale(
    sale_id: int,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_caller),
):
    return _detail_response(sales_service.get(db, sale_id, caller))


# =========================================================
# DELETE SALE
# =========================================================
@router.delete("/{sale_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_sale(
    sale_id: int,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_caller),
):
    sales_service.delete(db, sale_id, caller)
    return None
