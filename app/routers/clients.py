# app/routers/clients.py

from dataclasses import asdict

from fastapi import APIRouter, Depends, File, Query, Request, UploadFile, status
from sqlalchemy.orm import Session, sessionmaker

from app.database import get_db, get_session_factory
from app.core.auth import get_current_caller
from app.core.config import settings
from app.core.ownership import Caller
from app.core.rate_limiter import limiter
from app.services import clients as client_service
from app.services import client_import
from app.services.clients import ClientPage
from app.schemas.client import (
    BulkDeleteRequest,
    BulkDeleteResponse,
    ClientCreate,
    ClientDetailResponse,
    ClientPage as ClientPageResponse,
    ClientResponse,
    ClientUpdate,
    ImportResultResponse,
)

router = APIRouter(
    prefix="/clients",
    tags=["Clients"],
)


# =========================================================
# IMPORT FROM EXCEL
# =========================================================
@router.post("/import", response_model=ImportResultResponse)
@limiter.limit("5/minute")
def import_clients(
    request: Request,
    file: UploadFile = File(...),
    session_factory: sessionmaker = Depends(get_session_factory),
    caller: Caller = Depends(get_current_caller),
):
    # One byte over the limit is enough for read_rows to reject the file
    content = file.file.read(settings.IMPORT_MAX_FILE_BYTES + 1)

    result = client_import.import_clients(content, caller.id, session_factory)

    return ImportResultResponse(
        message=result.message,
        created_count=result.created_count,
        updated_count=result.updated_count,
        errors=result.errors,
    )


# =========================================================
# SEARCH / LIST
# =========================================================
@router.get("", response_model=list[ClientResponse] | ClientPageResponse)
def search_clients(
    search: str | None = None,
    page: int | None = Query(None, ge=1),
    page_size: int | None = Query(None, ge=1, le=500),
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_caller),
):
    result = client_service.search(
        db,
        caller.id,
        query=search,
        page=page,
        page_size=page_size,
    )

    if isinstance(result, ClientPage):
        return ClientPageResponse(
            data=[ClientResponse.model_validate(client) for client in result.data],
            total=result.total,
            page=result.page,
            page_size=result.page_size,
            total_pages=result.total_pages,
        )

    return [ClientResponse.model_validate(client) for client in result]


@router.get("/{client_id}", response_model=ClientDetailResponse)
def get_client(
    client_id: int,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_caller),
):
    detail = client_service.get_detail(db, client_id, caller.id)

    return ClientDetailResponse(
        **ClientResponse.model_validate(detail.client).model_dump(),
        sales=[asdict(sale) for sale in detail.sales],
    )


# =========================================================
# CREATE / UPDATE
# =========================================================
@router.post(
    "",
    response_model=ClientResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_client(
    client_data: ClientCreate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_caller),
):
    return client_service.create(db, caller.id, client_data.model_dump(exclude_unset=True))


@router.put("/{client_id}", response_model=ClientResponse)
def update_client(
    client_id: int,
    client_data: ClientUpdate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_caller),
):
    return client_service.update(
        db,
        client_id,
        caller.id,
        client_data.model_dump(exclude_unset=True),
    )


# =========================================================
# DELETE
# =========================================================
@router.delete("/{client_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_client(
    client_id: int,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_caller),
):
    client_service.delete(db, client_id, caller.id)
    return None


@router.delete("", response_model=BulkDeleteResponse)
def bulk_delete_clients(
    payload: BulkDeleteRequest,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_current_caller),
):
    count = client_service.bulk_delete(db, payload.ids, caller.id)

    return BulkDeleteResponse(
        message=f"{count} clients deleted.",
        count=count,
    )
