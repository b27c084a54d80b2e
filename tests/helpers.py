"""Plain helpers shared by the test modules."""

from io import BytesIO

from openpyxl import Workbook
from sqlalchemy import text

from app.core.jwt import create_access_token
from app.core.ownership import Caller
from app.models.users import User


IMPORT_HEADERS = [
    "Empresa",
    "Cód.Cliente",
    "R.U.T.",
    "Razón Social",
    "Nombre Alias",
    "Tipo Despacho",
    "Canal Cliente",
    "Sub-Canal",
    "Giro Comercial",
    "Contacto",
    "Teléfono",
    "Correo",
    "Condición de Venta",
    "Lista Precios",
    "Ejecutiva Comercial",
    "Tipo Dirección",
    "Dirección",
    "Ciudad",
    "Comuna",
]


def caller_for(user: User) -> Caller:
    return Caller(id=user.id, role=user.role)


def auth_headers(user: User) -> dict:
    token = create_access_token({"sub": str(user.id)})
    return {"Authorization": f"Bearer {token}"}


def count_rows(db, model, *criteria) -> int:
    return db.query(model).filter(*criteria).count()


def block_deletes(engine, table: str) -> None:
    """Make every DELETE on `table` fail inside the database."""
    with engine.begin() as conn:
        conn.execute(
            text(
                f"CREATE TRIGGER block_{table}_delete BEFORE DELETE ON {table} "
                f"BEGIN SELECT RAISE(ABORT, 'deletes disabled on {table}'); END"
            )
        )


def build_workbook(headers: list, rows: list[list]) -> bytes:
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "Clientes"
    sheet.append(headers)
    for row in rows:
        sheet.append(row)

    output = BytesIO()
    workbook.save(output)
    return output.getvalue()


def client_row(**values) -> list:
    """A row in IMPORT_HEADERS order, keyed by short aliases of the headers."""
    by_header = {
        "Empresa": values.get("empresa"),
        "Cód.Cliente": values.get("codigo"),
        "R.U.T.": values.get("rut"),
        "Razón Social": values.get("razon_social"),
        "Nombre Alias": values.get("alias"),
        "Tipo Despacho": values.get("despacho"),
        "Canal Cliente": values.get("canal"),
        "Sub-Canal": values.get("subcanal"),
        "Giro Comercial": values.get("giro"),
        "Contacto": values.get("contacto"),
        "Teléfono": values.get("telefono"),
        "Correo": values.get("correo"),
        "Condición de Venta": values.get("condicion"),
        "Lista Precios": values.get("lista"),
        "Ejecutiva Comercial": values.get("ejecutiva"),
        "Tipo Dirección": values.get("tipo_direccion"),
        "Dirección": values.get("direccion"),
        "Ciudad": values.get("ciudad"),
        "Comuna": values.get("comuna"),
    }
    return [by_header[header] for header in IMPORT_HEADERS]
