# =========================================================
# CLIENT REPOSITORY
#
# Owner-scoped CRUD, search/pagination and the upsert used
# by the spreadsheet import.
#
# Deleting a client removes its sales and their line items
# in the same transaction.
# =========================================================

import logging
import math
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from app.core.errors import (
    AppError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    TransientStoreError,
    ValidationError,
)
from app.core.ownership import can_access_client
from app.core.pricing import sale_total
from app.models.clients import Client, PaymentStatus
from app.models.sales import Sale
from app.models.sale_items import SaleItem

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 15

# Writable optional fields. legal_name/email are handled separately.
OPTIONAL_FIELDS = (
    "alias_name",
    "tax_id",
    "phone",
    "address",
    "latitude",
    "longitude",
    "payment_terms",
    "payment_status",
    "company",
    "client_code",
    "dispatch_type",
    "channel",
    "sub_channel",
    "business_line",
    "contact",
    "price_list",
    "sales_rep",
    "address_type",
    "city",
    "district",
)


@dataclass
class ClientPage:
    data: list
    total: int
    page: int
    page_size: int
    total_pages: int


@dataclass
class SaleSummary:
    id: int
    date: datetime
    description: str | None
    total: Decimal


@dataclass
class ClientDetail:
    client: Client
    sales: list[SaleSummary] = field(default_factory=list)


@dataclass
class UpsertResult:
    client: Client
    was_created: bool

    @classmethod
    def from_timestamps(cls, client: Client) -> "UpsertResult":
        """
        Classify a stored client by comparing its timestamps.

        Approximation only: a row updated within the same clock tick as
        its creation is reported as created.
        """
        return cls(client=client, was_created=client.created_at == client.updated_at)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _clean_text(value):
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def _require_identity(data: dict) -> tuple[str, str]:
    legal_name = _clean_text(data.get("legal_name"))
    email = _clean_text(data.get("email"))

    if not legal_name or not email:
        raise ValidationError("Legal name (razón social) and email are required")

    return legal_name, email


def _optional_fields(data: dict) -> dict:
    return {
        key: _clean_text(data[key])
        for key in OPTIONAL_FIELDS
        if key in data
    }


def _check_conflicts(
    db: Session,
    owner_id: int,
    email: str | None,
    tax_id: str | None,
    exclude_id: int | None = None,
):
    base = db.query(Client.id).filter(Client.user_id == owner_id)
    if exclude_id is not None:
        base = base.filter(Client.id != exclude_id)

    if email and base.filter(Client.email == email).first():
        raise ConflictError("Email is already in use by another client", field="email")

    if tax_id and base.filter(Client.tax_id == tax_id).first():
        raise ConflictError("Tax id (RUT) is already in use by another client", field="tax_id")


def _conflict_from_integrity(exc: IntegrityError) -> AppError:
    message = str(exc.orig)

    if "tax_id" in message:
        return ConflictError("Tax id (RUT) is already in use by another client", field="tax_id")
    if "email" in message:
        return ConflictError("Email is already in use by another client", field="email")

    logger.error(f"Unexpected integrity error on clients: {message}")
    return TransientStoreError("Unable to save client")


def _commit(db: Session, action: str):
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise _conflict_from_integrity(exc) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception(f"Database error while trying to {action}")
        raise TransientStoreError(f"Unable to {action}") from exc


@contextmanager
def _guarded(db: Session, action: str):
    """Turn storage failures raised by lookups into TransientStoreError."""
    try:
        yield
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception(f"Database error while trying to {action}")
        raise TransientStoreError(f"Unable to {action}") from exc


# =========================================================
# READ
# =========================================================
def find_by_id(db: Session, client_id: int, owner_id: int) -> Client:
    client = db.query(Client).filter(Client.id == client_id).first()

    if client is None:
        raise NotFoundError("Client not found")

    if not can_access_client(owner_id, client.user_id):
        raise ForbiddenError("Forbidden")

    return client


def get_detail(db: Session, client_id: int, owner_id: int) -> ClientDetail:
    client = find_by_id(db, client_id, owner_id)

    sales = (
        db.query(Sale)
        .options(selectinload(Sale.items))
        .filter(Sale.client_id == client.id)
        .order_by(Sale.date.desc(), Sale.id.desc())
        .all()
    )

    return ClientDetail(
        client=client,
        sales=[
            SaleSummary(
                id=sale.id,
                date=sale.date,
                description=sale.description,
                total=sale_total(sale.items),
            )
            for sale in sales
        ],
    )


def search(
    db: Session,
    owner_id: int,
    query: str | None = None,
    page: int | None = None,
    page_size: int | None = None,
):
    """
    List the owner's clients ordered by legal name.

    Without pagination parameters the full list is returned. With
    either of them a ClientPage is returned instead.
    """
    clients = db.query(Client).filter(Client.user_id == owner_id)

    if query:
        clients = clients.filter(
            or_(
                Client.name.contains(query, autoescape=True),
                Client.legal_name.contains(query, autoescape=True),
                Client.email.contains(query, autoescape=True),
                Client.tax_id.contains(query, autoescape=True),
            )
        )

    ordered = clients.order_by(Client.legal_name.asc(), Client.name.asc(), Client.id.asc())

    if page is None and page_size is None:
        return ordered.all()

    if page is None:
        page = 1
    if page_size is None:
        page_size = DEFAULT_PAGE_SIZE

    if page < 1 or page_size < 1:
        raise ValidationError("page and page_size must be positive")

    total = clients.count()

    data = (
        ordered
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )

    return ClientPage(
        data=data,
        total=total,
        page=page,
        page_size=page_size,
        total_pages=math.ceil(total / page_size),
    )


# =========================================================
# WRITE
# =========================================================
def create(db: Session, owner_id: int, data: dict) -> Client:
    legal_name, email = _require_identity(data)
    fields = _optional_fields(data)

    with _guarded(db, "create client"):
        _check_conflicts(db, owner_id, email, fields.get("tax_id"))

    now = _now()
    client = Client(
        **fields,
        name=legal_name,
        legal_name=legal_name,
        email=email,
        user_id=owner_id,
        created_at=now,
        updated_at=now,
    )
    if client.payment_status is None:
        client.payment_status = PaymentStatus.PENDING

    db.add(client)
    _commit(db, "create client")
    db.refresh(client)

    logger.info(f"Client {client.id} created for user {owner_id}")
    return client


def update(db: Session, client_id: int, owner_id: int, data: dict) -> Client:
    with _guarded(db, "update client"):
        client = find_by_id(db, client_id, owner_id)

    legal_name, email = _require_identity(data)
    fields = _optional_fields(data)

    with _guarded(db, "update client"):
        _check_conflicts(db, owner_id, email, fields.get("tax_id"), exclude_id=client.id)

    for key, value in fields.items():
        if key == "payment_status" and value is None:
            continue
        setattr(client, key, value)

    # Keep legacy display name in sync
    client.name = legal_name
    client.legal_name = legal_name
    client.email = email
    client.updated_at = _now()

    _commit(db, "update client")
    db.refresh(client)

    logger.info(f"Client {client.id} updated by user {owner_id}")
    return client


def upsert(db: Session, owner_id: int, data: dict) -> UpsertResult:
    """
    Create or update the client identified by (email, owner_id).

    The created/updated flag comes from the branch taken here. Inserts
    store created_at == updated_at, so UpsertResult.from_timestamps
    agrees with it except within a single clock tick.
    """
    legal_name, email = _require_identity(data)
    fields = _optional_fields(data)

    with _guarded(db, "save client"):
        existing = (
            db.query(Client)
            .filter(Client.email == email, Client.user_id == owner_id)
            .first()
        )

        _check_conflicts(
            db,
            owner_id,
            email=None,
            tax_id=fields.get("tax_id"),
            exclude_id=existing.id if existing else None,
        )

    now = _now()

    if existing is None:
        client = Client(
            **fields,
            name=legal_name,
            legal_name=legal_name,
            email=email,
            user_id=owner_id,
            created_at=now,
            updated_at=now,
        )
        if client.payment_status is None:
            client.payment_status = PaymentStatus.PENDING
        db.add(client)
        was_created = True
    else:
        client = existing
        # A blank status never resets an existing one, so a PAID client stays PAID on re-import
        for key, value in fields.items():
            if key == "payment_status" and value is None:
                continue
            setattr(client, key, value)
        client.name = legal_name
        client.legal_name = legal_name
        client.updated_at = now
        was_created = False

    _commit(db, "save client")
    db.refresh(client)

    return UpsertResult(client=client, was_created=was_created)


# =========================================================
# DELETE (CASCADING)
# =========================================================
def _cascade_delete(db: Session, client_ids: list[int]) -> int:
    sale_ids = select(Sale.id).where(Sale.client_id.in_(client_ids))

    (
        db.query(SaleItem)
        .filter(SaleItem.sale_id.in_(sale_ids))
        .delete(synchronize_session=False)
    )
    (
        db.query(Sale)
        .filter(Sale.client_id.in_(client_ids))
        .delete(synchronize_session=False)
    )
    return (
        db.query(Client)
        .filter(Client.id.in_(client_ids))
        .delete(synchronize_session=False)
    )


def delete(db: Session, client_id: int, owner_id: int) -> None:
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
        _cascade_delete(db, [client.id])
        db.commit()

    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception(f"Failed to delete client {client_id}")
        raise TransientStoreError("Unable to delete client") from exc

    db.expunge(client)
    logger.info(f"Client {client_id} and its sales deleted by user {owner_id}")


def bulk_delete(db: Session, ids: list[int], owner_id: int) -> int:
    if not ids:
        raise ValidationError("A list of client ids is required")

    # Ids owned by someone else are ignored
    owned_ids = [
        row.id
        for row in db.query(Client.id).filter(
            Client.id.in_(ids),
            Client.user_id == owner_id,
        )
    ]

    if not owned_ids:
        return 0

    try:
        count = _cascade_delete(db, owned_ids)
        db.commit()

    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception(f"Failed to bulk delete clients for user {owner_id}")
        raise TransientStoreError("Unable to delete clients") from exc

    logger.info(f"{count} clients deleted by user {owner_id}")
    return count
