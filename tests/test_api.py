from __future__ import annotations

from decimal import Decimal

from app.core.config import settings
from app.core.jwt import create_access_token
from app.models.clients import Client
from app.models.sales import Sale

from helpers import IMPORT_HEADERS, auth_headers, block_deletes, build_workbook, client_row, count_rows


XLSX = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def test_health_check(api) -> None:
    response = api.get("/")

    assert response.status_code == 200


# =========================================================
# AUTHENTICATION
# =========================================================
def test_requests_without_token_are_unauthorized(api) -> None:
    assert api.get("/clients").status_code == 401
    assert api.get("/sales/1").status_code == 401
    assert api.post("/sales", json={}).status_code == 401


def test_invalid_token_is_unauthorized(api) -> None:
    response = api.get("/clients", headers={"Authorization": "Bearer not-a-jwt"})

    assert response.status_code == 401


def test_token_for_unknown_user_is_unauthorized(api) -> None:
    token = create_access_token({"sub": "4040"})

    response = api.get("/clients", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401


# =========================================================
# CLIENTS
# =========================================================
def test_client_crud_flow(api, owner) -> None:
    headers = auth_headers(owner)

    created = api.post(
        "/clients",
        json={"legal_name": "Botilleria La Esquina", "email": "esquina@cliente.cl", "tax_id": "12.345.678-5"},
        headers=headers,
    )
    assert created.status_code == 201
    body = created.json()
    assert body["name"] == "Botilleria La Esquina"
    assert body["payment_status"] == "PENDING"

    client_id = body["id"]

    fetched = api.get(f"/clients/{client_id}", headers=headers)
    assert fetched.status_code == 200
    assert fetched.json()["sales"] == []

    updated = api.put(
        f"/clients/{client_id}",
        json={"legal_name": "Botilleria Nueva", "email": "esquina@cliente.cl", "city": "Valparaiso"},
        headers=headers,
    )
    assert updated.status_code == 200
    assert updated.json()["name"] == "Botilleria Nueva"
    assert updated.json()["city"] == "Valparaiso"

    deleted = api.delete(f"/clients/{client_id}", headers=headers)
    assert deleted.status_code == 204
    assert api.get(f"/clients/{client_id}", headers=headers).status_code == 404


def test_create_client_validation_and_conflict(api, owner) -> None:
    headers = auth_headers(owner)

    missing = api.post("/clients", json={"legal_name": "Sin correo"}, headers=headers)
    assert missing.status_code == 400

    api.post("/clients", json={"legal_name": "Uno", "email": "uno@cliente.cl"}, headers=headers)
    conflict = api.post("/clients", json={"legal_name": "Dos", "email": "uno@cliente.cl"}, headers=headers)

    assert conflict.status_code == 409
    assert conflict.json()["field"] == "email"


def test_search_returns_list_or_page(api, owner, make_client) -> None:
    for i in range(17):
        make_client(owner, f"Cliente {i:02d}", f"cliente{i}@correo.cl")
    headers = auth_headers(owner)

    full = api.get("/clients", headers=headers)
    assert full.status_code == 200
    assert isinstance(full.json(), list)
    assert len(full.json()) == 17

    page_one = api.get("/clients", params={"page": 1, "page_size": 15}, headers=headers).json()
    page_two = api.get("/clients", params={"page": 2, "page_size": 15}, headers=headers).json()

    assert len(page_one["data"]) == 15
    assert page_one["total"] == 17
    assert page_one["total_pages"] == 2
    assert len(page_two["data"]) == 2

    filtered = api.get("/clients", params={"search": "Cliente 16"}, headers=headers).json()
    assert [c["legal_name"] for c in filtered] == ["Cliente 16"]


def test_client_access_has_no_admin_override(api, owner, other_user, admin, make_client) -> None:
    client = make_client(owner, "Privado", "privado@cliente.cl")
    payload = {"legal_name": "Hackeado", "email": "x@x.cl"}

    for intruder in (other_user, admin):
        headers = auth_headers(intruder)
        assert api.get(f"/clients/{client.id}", headers=headers).status_code == 403
        assert api.put(f"/clients/{client.id}", json=payload, headers=headers).status_code == 403
        assert api.delete(f"/clients/{client.id}", headers=headers).status_code == 404

    assert api.get(f"/clients/{client.id}", headers=auth_headers(owner)).json()["legal_name"] == "Privado"


def test_bulk_delete_counts_only_owned_clients(api, db, owner, other_user, make_client) -> None:
    mine = make_client(owner, "Mio", "mio@cliente.cl")
    foreign = make_client(other_user, "Ajeno", "ajeno@cliente.cl")

    response = api.request(
        "DELETE",
        "/clients",
        json={"ids": [mine.id, foreign.id]},
        headers=auth_headers(owner),
    )

    assert response.status_code == 200
    assert response.json()["count"] == 1
    assert count_rows(db, Client, Client.id == foreign.id) == 1

    empty = api.request("DELETE", "/clients", json={"ids": []}, headers=auth_headers(owner))
    assert empty.status_code == 400


def test_search_rejects_page_zero(api, owner) -> None:
    response = api.get("/clients", params={"page": 0}, headers=auth_headers(owner))

    assert response.status_code == 422


def test_client_delete_storage_failure_is_500_without_internals(api, db, engine, owner, make_client) -> None:
    client = make_client(owner, "Bloqueado", "bloqueado@cliente.cl")
    block_deletes(engine, "clients")

    response = api.delete(f"/clients/{client.id}", headers=auth_headers(owner))

    assert response.status_code == 500
    assert response.json() == {"detail": "Unable to delete client"}
    assert "deletes disabled" not in response.text
    assert count_rows(db, Client, Client.id == client.id) == 1


# =========================================================
# IMPORT
# =========================================================
def test_import_endpoint(api, owner) -> None:
    content = build_workbook(
        IMPORT_HEADERS,
        [
            client_row(razon_social="Importada Uno", correo="uno@import.cl"),
            client_row(correo="a@b.com"),
        ],
    )
    files = {"file": ("clientes.xlsx", content, XLSX)}

    response = api.post("/clients/import", files=files, headers=auth_headers(owner))

    assert response.status_code == 200
    body = response.json()
    assert body["created_count"] == 1
    assert body["updated_count"] == 0
    assert body["message"] == "Import completed. Clients created: 1. Clients updated: 0."
    assert len(body["errors"]) == 1
    assert body["errors"][0].startswith("Row 3:")


def test_import_endpoint_rejects_bad_file(api, owner) -> None:
    files = {"file": ("clientes.xlsx", b"garbage", XLSX)}

    response = api.post("/clients/import", files=files, headers=auth_headers(owner))

    assert response.status_code == 400


def test_import_endpoint_rejects_oversized_file(api, db, owner, monkeypatch) -> None:
    content = build_workbook(IMPORT_HEADERS, [client_row(razon_social="Grande", correo="grande@import.cl")])
    monkeypatch.setattr(settings, "IMPORT_MAX_FILE_BYTES", 64)
    files = {"file": ("clientes.xlsx", content, XLSX)}

    response = api.post("/clients/import", files=files, headers=auth_headers(owner))

    assert response.status_code == 400
    assert response.json() == {"detail": "The file is too large to import"}
    assert count_rows(db, Client) == 0


# =========================================================
# SALES
# =========================================================
def test_sale_flow_and_admin_override(api, db, owner, other_user, admin, make_client, make_product) -> None:
    client = make_client(owner, "Cliente Ventas", "ventas@cliente.cl")
    product = make_product("Cafe 1kg", "10000.00", "11900.00")

    created = api.post(
        "/sales",
        json={
            "client_id": client.id,
            "items": [{"product_id": product.id, "quantity": 3}],
            "date": "2026-06-01T12:00:00Z",
            "description": "Venta feria",
        },
        headers=auth_headers(owner),
    )
    assert created.status_code == 201
    sale_id = created.json()["id"]

    detail = api.get(f"/sales/{sale_id}", headers=auth_headers(owner))
    assert detail.status_code == 200
    body = detail.json()
    assert Decimal(body["total"]) == Decimal("35700.00")
    assert body["client"]["legal_name"] == "Cliente Ventas"
    assert body["seller"]["username"] == owner.username
    assert Decimal(body["items"][0]["unit_price_at_sale"]) == Decimal("11900.00")

    calendar = api.get("/sales", headers=auth_headers(owner)).json()
    assert [entry["id"] for entry in calendar] == [sale_id]
    assert Decimal(calendar[0]["amount"]) == Decimal("35700.00")
    assert calendar[0]["client"]["name"] == "Cliente Ventas"

    assert api.get(f"/sales/{sale_id}", headers=auth_headers(other_user)).status_code == 403
    assert api.delete(f"/sales/{sale_id}", headers=auth_headers(other_user)).status_code == 403
    assert api.get(f"/sales/{sale_id}", headers=auth_headers(admin)).status_code == 200

    assert api.delete(f"/sales/{sale_id}", headers=auth_headers(admin)).status_code == 204
    assert api.get(f"/sales/{sale_id}", headers=auth_headers(owner)).status_code == 404


def test_create_sale_errors(api, db, owner, make_client, make_product) -> None:
    client = make_client(owner, "Cliente", "cliente@correo.cl")
    headers = auth_headers(owner)

    no_items = api.post("/sales", json={"client_id": client.id, "items": []}, headers=headers)
    assert no_items.status_code == 400

    missing_product = api.post(
        "/sales",
        json={"client_id": client.id, "items": [{"product_id": 999, "quantity": 1}]},
        headers=headers,
    )
    assert missing_product.status_code == 404
    assert "999" in missing_product.json()["detail"]
    assert count_rows(db, Sale, Sale.user_id == owner.id) == 0


def test_delete_missing_sale_is_not_found(api, owner) -> None:
    assert api.delete("/sales/12345", headers=auth_headers(owner)).status_code == 404


def test_sale_delete_storage_failure_is_500_without_internals(api, db, engine, owner, make_client, make_product) -> None:
    client = make_client(owner, "Cliente", "cliente@correo.cl")
    product = make_product("Cafe 1kg", "10000.00", "11900.00")
    created = api.post(
        "/sales",
        json={"client_id": client.id, "items": [{"product_id": product.id, "quantity": 1}]},
        headers=auth_headers(owner),
    )
    sale_id = created.json()["id"]
    block_deletes(engine, "sales")

    response = api.delete(f"/sales/{sale_id}", headers=auth_headers(owner))

    assert response.status_code == 500
    assert response.json() == {"detail": "Unable to delete sale"}
    assert "sqlite" not in response.text.lower()
    assert api.get(f"/sales/{sale_id}", headers=auth_headers(owner)).status_code == 200
