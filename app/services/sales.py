# =========================================================
# SALES LEDGER
#
# - Sales are append-only: create and delete, no update
# - Line items snapshot Product.total_price at creation
# - Create and delete run in a single transaction
# - ADMIN callers may read and delete any sale
# =========================================================

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from app.core.errors import (
    AppError,
    ForbiddenError,
    NotFoundError,
    TransientStoreError,
    ValidationError,
)
from app.core.ownership import Caller, can_access
from app.core.pricing import calendar_total, sale_total
from app.models.clients import Client
from app.models.products import Product
from app.models.sales import Sale
from app.models.sale_items import SaleItem

logger = logging.getLogger(__name__)


@dataclass
class SaleDetail:
    sale: Sale
    total: Decimal


@dataclass
class CalendarEntry:
    id: int
    date: datetime
    amount: Decimal
    description: str | None
    client_name: str


def _load_sale(db: Session, sale_id: int) -> Sale | None:
    return (
        db.query(Sale)
        .options(
            joinedload(Sale.client),
            joinedload(Sale.user),
            joinedload(Sale.items).joinedload(SaleItem.product),
        )
        .filter(Sale.id == sale_id)
        .first()
    )


# =========================================================
# GET SINGLE SALE (LOCKED-IN TOTAL)
# =========================================================
def get(db: Session, sale_id: int, caller: Caller) -> SaleDetail:
    sale = _load_sale(db, sale_id)

    if sale is None:
        raise NotFoundError("Sale not found")

    if not can_access(caller.id, caller.role, sale.user_id):
        raise ForbiddenError("Forbidden")

    return SaleDetail(sale=sale, total=sale_total(sale.items))


# =========================================================
# CALENDAR LIST (LIVE NET PRICE + IVA)
# =========================================================
def list_for_calendar(db: Session, owner_id: int) -> list[CalendarEntry]:
    """
    Every sale of the owner, newest first.

    The amount is an estimate from the products' current net price plus
    IVA. It can differ from the locked-in total returned by get().
    """
    sales = (
        db.query(Sale)
        .options(
            joinedload(Sale.client),
            joinedload(Sale.items).joinedload(SaleItem.product),
        )
        .filter(Sale.user_id == owner_id)
        .order_by(Sale.date.desc(), Sale.id.desc())
        .all()
    )

    return [
        CalendarEntry(
            id=sale.id,
            date=sale.date,
            amount=calendar_total(sale.items),
            description=sale.description,
            client_name=sale.client.legal_name or sale.client.name,
        )
        for sale in sales
    ]


# =========================================================
# CREATE SALE (ALL OR NOTHING)
# =========================================================
def create(
    db: Session,
    owner_id: int,
    client_id: int | None,
    items: list,
    date: datetime | None = None,
    description: str | None = None,
) -> Sale:
    if not client_id or not items:
        raise ValidationError("A client and at least one product are required to create a sale")

    for item in items:
        if item.quantity is None or item.quantity <= 0:
            raise ValidationError("Item quantity must be greater than zero")

    product_ids = [item.product_id for item in items]
    if len(product_ids) != len(set(product_ids)):
        raise ValidationError("Duplicate products in sale are not allowed")

    client = (
        db.query(Client)
        .filter(
            Client.id == client_id,
            Client.user_id == owner_id,
        )
        .first()
    )

    if client is None:
        raise NotFoundError("Client not found")

    try:
        sale = Sale(
            user_id=owner_id,
            client_id=client.id,
            date=date or datetime.now(timezone.utc),
            description=description or None,
        )
        db.add(sale)
        db.flush()

        for item in items:
            product = db.query(Product).filter(Product.id == item.product_id).first()

            if product is None:
                raise NotFoundError(f"Product with id {item.product_id} not found")

            db.add(
                SaleItem(
                    sale_id=sale.id,
                    product_id=product.id,
                    quantity=item.quantity,
                    unit_price_at_sale=product.total_price,
                )
            )

        db.commit()

    except AppError:
        db.rollback()
        raise

    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception(f"Failed to create sale for user {owner_id}")
        raise TransientStoreError("Unable to complete sale") from exc

    db.refresh(sale)
    logger.info(f"Sale {sale.id} created for client {client.id} with {len(items)} items")
    return sale


# =========================================================
# DELETE SALE
# =========================================================
def delete(db: Session, sale_id: int, caller: Caller) -> None:
    try:
        # Lock the sale row so line item writes on it serialize with us
        sale = (
            db.query(Sale)
            .filter(Sale.id == sale_id)
            .with_for_update()
            .first()
        )

        if sale is None:
            raise NotFoundError("Sale not found")

        if not can_access(caller.id, caller.role, sale.user_id):
            raise ForbiddenError("Forbidden")

        (
            db.query(SaleItem)
            .filter(SaleItem.sale_id == sale.id)
            .delete(synchronize_session=False)
        )
        (
            db.query(Sale)
            .filter(Sale.id == sale.id)
            .delete(synchronize_session=False)
        )
        db.commit()
        db.expunge(sale)

    except AppError:
        db.rollback()
        raise

    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception(f"Failed to delete sale {sale_id}")
        raise TransientStoreError("Unable to delete sale") from exc

    logger.info(f"Sale {sale_id} deleted by user {caller.id}")
