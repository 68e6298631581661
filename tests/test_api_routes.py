from __future__ import annotations

import json
from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.config import ExportSettings, ImportSettings
from app.main import create_app
from app.services.export_service import ExportService, get_export_service
from app.services.import_service import ImportService, get_import_service
from app.services.ticket_type_catalog import TicketTypeCatalog
from db.models import Customer
from db.session import get_db

CUSTOMER_CSV = "Namn,Efternamn,Epost\r\nAnna,Berg,anna@example.se\r\n".encode("utf-8")


@pytest.fixture()
def client(db_session: Session, session_factory, seeded_store) -> Iterator[TestClient]:  # noqa: ANN001
    application = create_app(check_database=False)
    import_service = ImportService(
        settings=ImportSettings(batch_size=5),
        ticket_type_catalog=TicketTypeCatalog(ttl_seconds=60, session_factory=session_factory),
    )
    export_service = ExportService(settings=ExportSettings(default_limit=100, max_limit=500))

    def _db() -> Iterator[Session]:
        yield db_session

    application.dependency_overrides[get_db] = _db
    application.dependency_overrides[get_import_service] = lambda: import_service
    application.dependency_overrides[get_export_service] = lambda: export_service
    with TestClient(application) as test_client:
        yield test_client


@pytest.fixture()
def store_headers(seeded_store) -> dict[str, str]:  # noqa: ANN001
    return {"X-Store-Id": str(seeded_store.store_id)}


def test_health(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_preview_returns_mapping(client: TestClient, store_headers: dict[str, str]) -> None:
    response = client.post(
        "/import/preview",
        params={"entity": "customers"},
        headers=store_headers,
        files={"file": ("kunder.csv", CUSTOMER_CSV, "text/csv")},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["file_type"] == "csv"
    assert body["total_rows"] == 1
    assert body["mapping"] == {"Namn": "firstName", "Efternamn": "lastName", "Epost": "email"}
    assert body["rows"] == [{"Namn": "Anna", "Efternamn": "Berg", "Epost": "anna@example.se"}]


def test_preview_rejects_unsupported_files(client: TestClient, store_headers: dict[str, str]) -> None:
    response = client.post(
        "/import/preview",
        headers=store_headers,
        files={"file": ("kunder.pdf", b"%PDF-1.4", "application/pdf")},
    )

    assert response.status_code == 415


def test_preview_rejects_unreadable_files(client: TestClient, store_headers: dict[str, str]) -> None:
    response = client.post(
        "/import/preview",
        headers=store_headers,
        files={"file": ("kunder.json", b"{not json", "application/json")},
    )

    assert response.status_code == 400


def test_store_header_is_required(client: TestClient) -> None:
    response = client.post(
        "/import/preview",
        files={"file": ("kunder.csv", CUSTOMER_CSV, "text/csv")},
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "Header X-Store-Id must be a positive integer."


def test_customer_import(client: TestClient, store_headers: dict[str, str], db_session: Session) -> None:
    response = client.post(
        "/import/customers",
        headers=store_headers,
        json={
            "rows": [
                {"Namn": "Anna", "Epost": "anna@example.se"},
                {"Namn": "Bo", "Epost": "inte-en-adress"},
            ],
            "mapping": {"Namn": "firstName", "Epost": "email"},
            "options": {"skipExisting": True},
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Import slutförd. 1 av 2 kunder importerade."
    assert (body["total"], body["success"], body["failed"]) == (2, 1, 1)
    assert body["error_categories"]["validation"] == body["errors"]
    assert body["error_categories"]["duplicate"] == []
    assert db_session.query(Customer).count() == 1


def test_import_rejects_unknown_entity(client: TestClient, store_headers: dict[str, str]) -> None:
    response = client.post(
        "/import/orders",
        headers=store_headers,
        json={"rows": [{"a": 1}], "mapping": {"a": "email"}},
    )

    assert response.status_code == 400


def test_csv_export_is_a_download(client: TestClient, store_headers: dict[str, str], db_session: Session, seeded_store) -> None:  # noqa: ANN001
    db_session.add(Customer(store_id=seeded_store.store_id, email="anna@example.se", first_name="Anna", dynamic_fields={}))
    db_session.commit()

    response = client.get("/export", params={"type": "customers", "format": "csv"}, headers=store_headers)

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert response.headers["content-disposition"].startswith('attachment; filename="customers-export-')
    lines = response.content.decode("utf-8-sig").splitlines()
    assert lines[0].startswith("id,firstName,lastName,email")
    assert "anna@example.se" in lines[1]


def test_csv_export_of_everything_is_rejected(client: TestClient, store_headers: dict[str, str]) -> None:
    response = client.get("/export", params={"type": "all", "format": "csv"}, headers=store_headers)

    assert response.status_code == 400


def test_json_export_of_everything(client: TestClient, store_headers: dict[str, str]) -> None:
    response = client.get("/export", params={"type": "all", "format": "json"}, headers=store_headers)

    assert response.status_code == 200
    assert set(json.loads(response.content)) == {"customers", "tickets"}
