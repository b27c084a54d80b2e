# =========================================================
# CLIENT SPREADSHEET IMPORT
#
# Reconciles the first sheet of an .xlsx file against the
# caller's clients, keyed by (email, owner).
#
# - Best effort: a bad row never aborts the others
# - Rows are upserted concurrently, one session per row
# - Counters are reduced from per-row outcomes afterwards
# =========================================================

import enum
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date, datetime, time
from io import BytesIO
from zipfile import BadZipFile

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from app.core.config import settings
from app.core.errors import AppError, ConflictError, ImportFileError
from app.services import clients as client_repository

logger = logging.getLogger(__name__)


# Client field -> spreadsheet header
COLUMN_MAPPING = {
    "company": "Empresa",
    "client_code": "Cód.Cliente",
    "tax_id": "R.U.T.",
    "legal_name": "Razón Social",
    "alias_name": "Nombre Alias",
    "dispatch_type": "Tipo Despacho",
    "channel": "Canal Cliente",
    "sub_channel": "Sub-Canal",
    "business_line": "Giro Comercial",
    "contact": "Contacto",
    "phone": "Teléfono",
    "email": "Correo",
    "payment_terms": "Condición de Venta",
    "price_list": "Lista Precios",
    "sales_rep": "Ejecutiva Comercial",
    "address_type": "Tipo Dirección",
    "address": "Dirección",
    "city": "Ciudad",
    "district": "Comuna",
}


class RowStatus(str, enum.Enum):
    CREATED = "created"
    UPDATED = "updated"
    ERROR = "error"


@dataclass(frozen=True)
class RowOutcome:
    row_number: int
    status: RowStatus
    error: str | None = None


@dataclass
class ImportResult:
    created_count: int = 0
    updated_count: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def message(self) -> str:
        return (
            f"Import completed. Clients created: {self.created_count}. "
            f"Clients updated: {self.updated_count}."
        )


def cell_to_text(value) -> str | None:
    if value is None:
        return None

    if isinstance(value, float) and value.is_integer():
        return str(int(value))

    if isinstance(value, (datetime, date, time)):
        return value.isoformat()

    text = str(value).strip()
    return text or None


# =========================================================
# PARSING
# =========================================================
def read_rows(content: bytes) -> list[tuple[int, dict]]:
    """
    Return (row_number, {header: value}) for every non-blank data row
    of the first sheet. Row numbers match the spreadsheet (header = 1).
    """
    if not content:
        raise ImportFileError("No file was uploaded or the file is empty")

    if len(content) > settings.IMPORT_MAX_FILE_BYTES:
        raise ImportFileError("The file is too large to import")

    try:
        workbook = load_workbook(BytesIO(content), read_only=True, data_only=True)
    except (InvalidFileException, BadZipFile, KeyError, ValueError, OSError) as exc:
        raise ImportFileError("The Excel file is empty or has an invalid format") from exc

    try:
        if not workbook.worksheets:
            raise ImportFileError("The Excel file is empty or has an invalid format")

        rows = workbook.worksheets[0].iter_rows(values_only=True)
        header_row = next(rows, None)

        if header_row is None:
            raise ImportFileError("The Excel file is empty or has an invalid format")

        headers = [
            str(cell).strip() if cell is not None else None
            for cell in header_row
        ]

        records = []
        for row_number, row in enumerate(rows, start=2):
            record = {
                header: value
                for header, value in zip(headers, row)
                if header and cell_to_text(value) is not None
            }
            if record:
                records.append((row_number, record))

    finally:
        workbook.close()

    if not records:
        raise ImportFileError("The Excel file is empty or has an invalid format")

    return records


def parse_row(row_number: int, record: dict) -> tuple[dict | None, str | None]:
    legal_name = (
        cell_to_text(record.get(COLUMN_MAPPING["legal_name"]))
        or cell_to_text(record.get(COLUMN_MAPPING["alias_name"]))
    )
    email = cell_to_text(record.get(COLUMN_MAPPING["email"]))

    missing = []
    if not legal_name:
        missing.append("'Razón Social' (or 'Nombre Alias')")
    if not email:
        missing.append("'Correo'")

    if missing:
        return None, f"Row {row_number}: missing {' and '.join(missing)}"

    data = {
        client_field: cell_to_text(record.get(header))
        for client_field, header in COLUMN_MAPPING.items()
    }
    data["legal_name"] = legal_name
    data["email"] = email

    return data, None


# =========================================================
# ROW WORKER
# =========================================================
def import_row(
    session_factory: sessionmaker,
    owner_id: int,
    row_number: int,
    data: dict,
) -> RowOutcome:
    # One retry covers two rows racing to create the same email
    for attempt in range(2):
        db = session_factory()
        try:
            result = client_repository.upsert(db, owner_id, data)
            status = RowStatus.CREATED if result.was_created else RowStatus.UPDATED
            return RowOutcome(row_number=row_number, status=status)

        except ConflictError as exc:
            if exc.field == "email" and attempt == 0:
                continue
            return RowOutcome(row_number, RowStatus.ERROR, f"Row {row_number}: {exc.message}")

        except AppError as exc:
            return RowOutcome(row_number, RowStatus.ERROR, f"Row {row_number}: {exc.message}")

        except SQLAlchemyError:
            db.rollback()
            logger.exception(f"Database error while importing row {row_number}")
            return RowOutcome(row_number, RowStatus.ERROR, f"Row {row_number}: could not be saved")

        finally:
            db.close()

    return RowOutcome(row_number, RowStatus.ERROR, f"Row {row_number}: could not be saved")


def summarize(outcomes: list[RowOutcome]) -> ImportResult:
    result = ImportResult()

    for outcome in sorted(outcomes, key=lambda o: o.row_number):
        if outcome.status == RowStatus.CREATED:
            result.created_count += 1
        elif outcome.status == RowStatus.UPDATED:
            result.updated_count += 1
        else:
            result.errors.append(outcome.error)

    return result


# =========================================================
# ENTRY POINT
# =========================================================
def import_clients(
    content: bytes,
    owner_id: int,
    session_factory: sessionmaker,
    max_workers: int | None = None,
) -> ImportResult:
    records = read_rows(content)

    outcomes: list[RowOutcome] = []
    pending: list[tuple[int, dict]] = []

    for row_number, record in records:
        data, error = parse_row(row_number, record)
        if error:
            logger.warning(f"Import by user {owner_id} rejected {error}")
            outcomes.append(RowOutcome(row_number, RowStatus.ERROR, error))
        else:
            pending.append((row_number, data))

    if pending:
        workers = min(max_workers or settings.IMPORT_MAX_WORKERS, len(pending))

        with ThreadPoolExecutor(max_workers=max(workers, 1)) as executor:
            futures = [
                executor.submit(import_row, session_factory, owner_id, row_number, data)
                for row_number, data in pending
            ]
            outcomes.extend(future.result() for future in futures)

    result = summarize(outcomes)

    logger.info(
        f"Client import for user {owner_id}: "
        f"created={result.created_count} "
        f"updated={result.updated_count} "
        f"errors={len(result.errors)}"
    )

    return result
