import io
from datetime import datetime
from decimal import Decimal

import pandas as pd
import pytest

from honesty_store.stock.accounting.models import DailyInventory

from conftest import make_token

BASE = "/stock/accounting"
DAY = "2024-05-01"


@pytest.fixture
def stocked(make_product):
    chips = make_product(name="Chips", category="Snacks", unit_price="10.00", opening_stock=50)
    cola = make_product(name="Cola", category="Drinks", unit_price="25.50", opening_stock=4)
    return chips, cola


def _load(client, headers, **params):
    params.setdefault("date", DAY)
    response = client.get(f"{BASE}/", params=params, headers=headers)
    assert response.status_code == 200, response.text
    return response.json()


def _edit(client, headers, rows, field, value, **target):
    return client.post(
        f"{BASE}/edit",
        json={"rows": rows, "field": field, "value": value, **target},
        headers=headers,
    )


# ---------------------------------------------------------------------------
# access
# ---------------------------------------------------------------------------


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_requires_token(client, stocked):
    response = client.get(f"{BASE}/", params={"date": DAY})
    assert response.status_code == 401


def test_rejects_bad_token(client, stocked):
    response = client.get(
        f"{BASE}/", params={"date": DAY}, headers={"Authorization": "Bearer not-a-jwt"}
    )
    assert response.status_code == 401


def test_students_are_forbidden(client, stocked, student_headers):
    response = client.get(f"{BASE}/", params={"date": DAY}, headers=student_headers)
    assert response.status_code == 403


def test_role_from_app_metadata(client, stocked):
    token = make_token(role=None, app_metadata={"role": "developer"})
    response = client.get(
        f"{BASE}/", params={"date": DAY}, headers={"Authorization": f"Bearer {token}"}
    )
    assert response.status_code == 200


def test_app_metadata_role_wins_over_provider_role(client, stocked):
    token = make_token(role="authenticated", app_metadata={"role": "admin"})
    response = client.get(
        f"{BASE}/", params={"date": DAY}, headers={"Authorization": f"Bearer {token}"}
    )
    assert response.status_code == 200


def test_signed_in_without_store_role_is_forbidden(client, stocked):
    token = make_token(role="authenticated")
    response = client.get(
        f"{BASE}/", params={"date": DAY}, headers={"Authorization": f"Bearer {token}"}
    )
    assert response.status_code == 403


# ---------------------------------------------------------------------------
# load and edit
# ---------------------------------------------------------------------------


def test_load_rows(client, stocked, admin_headers):
    body = _load(client, admin_headers)

    assert body["date"] == DAY
    assert body["total_products"] == 2
    assert body["categories"] == ["Drinks", "Snacks"]

    chips = body["rows"][0]
    assert chips["product"] == "Chips"
    assert chips["id"] is None
    assert chips["opening_stock"] == 50
    assert chips["estimated_closing_stock"] == 50
    assert chips["stolen_stock"] == 50
    assert Decimal(chips["sales"]) == 0


def test_load_category_filter(client, stocked, admin_headers):
    body = _load(client, admin_headers, category="Drinks")
    assert [r["product"] for r in body["rows"]] == ["Cola"]
    # categories always describe the full list
    assert body["categories"] == ["Drinks", "Snacks"]


def test_edit_recalculates_target_row(client, stocked, admin_headers):
    chips, _ = stocked
    rows = _load(client, admin_headers)["rows"]

    response = _edit(client, admin_headers, rows, "actual_closing_stock", 45, product_id=chips.id)
    assert response.status_code == 200
    rows = response.json()["rows"]

    response = _edit(client, admin_headers, rows, "order_count", 3, product_id=chips.id)
    assert response.status_code == 200
    rows = response.json()["rows"]

    assert rows[0]["estimated_closing_stock"] == 47
    assert rows[0]["stolen_stock"] == 2
    assert Decimal(rows[0]["sales"]) == Decimal("30")
    assert rows[1]["stolen_stock"] == 4


def test_edit_rejects_negative_value(client, stocked, admin_headers):
    chips, _ = stocked
    rows = _load(client, admin_headers)["rows"]

    response = _edit(client, admin_headers, rows, "wasted_stock", -2, product_id=chips.id)

    assert response.status_code == 422
    detail = response.json()["detail"]
    assert detail["field"] == "wasted_stock"
    assert detail["row"] == chips.id


def test_edit_rejects_non_integer_value(client, stocked, admin_headers):
    chips, _ = stocked
    rows = _load(client, admin_headers)["rows"]

    response = _edit(client, admin_headers, rows, "order_count", 2.5, product_id=chips.id)
    assert response.status_code == 422


def test_edit_unknown_row(client, stocked, admin_headers):
    rows = _load(client, admin_headers)["rows"]
    response = _edit(client, admin_headers, rows, "order_count", 1, row_id=999)
    assert response.status_code == 404


@pytest.mark.parametrize("target", [{}, {"row_id": 1, "product_id": 1}])
def test_edit_needs_exactly_one_target(client, stocked, admin_headers, target):
    rows = _load(client, admin_headers)["rows"]
    response = _edit(client, admin_headers, rows, "order_count", 1, **target)
    assert response.status_code == 422


# ---------------------------------------------------------------------------
# save, history, export
# ---------------------------------------------------------------------------


def _save_body(rows):
    return {
        "date": DAY,
        "rows": [
            {
                "id": r["id"],
                "product_id": r["product_id"],
                "opening_stock": r["opening_stock"],
                "additional_stock": r["additional_stock"],
                "order_count": r["order_count"],
                "actual_closing_stock": r["actual_closing_stock"],
                "wastage_stock": r["wasted_stock"],
            }
            for r in rows
        ],
    }


def test_save_then_reload(client, db_session, stocked, admin_headers):
    chips, _ = stocked
    rows = _load(client, admin_headers)["rows"]
    rows = _edit(client, admin_headers, rows, "order_count", 3, product_id=chips.id).json()["rows"]
    rows = _edit(client, admin_headers, rows, "actual_closing_stock", 45, product_id=chips.id).json()["rows"]

    response = client.post(f"{BASE}/save", json=_save_body(rows), headers=admin_headers)

    assert response.status_code == 200, response.text
    result = response.json()
    assert result["success"] is True
    assert result["message"] == "Inventory data saved successfully"
    assert result["created"] == 2

    record = db_session.query(DailyInventory).filter_by(product_id=chips.id).one()
    assert record.created_by == "admin-1"
    assert record.created_at == datetime(2024, 5, 1)

    reloaded = _load(client, admin_headers)["rows"]
    assert reloaded[0]["id"] == record.id
    assert reloaded[0]["stolen_stock"] == 2

    # saving again updates instead of duplicating
    response = client.post(f"{BASE}/save", json=_save_body(reloaded), headers=admin_headers)
    assert response.json()["updated"] == 2
    assert db_session.query(DailyInventory).count() == 2


def test_save_rejects_negative_quantity(client, stocked, admin_headers):
    chips, _ = stocked
    body = {"date": DAY, "rows": [{"product_id": chips.id, "opening_stock": 50, "wastage_stock": -1}]}
    response = client.post(f"{BASE}/save", json=body, headers=admin_headers)
    assert response.status_code == 422


def test_history_and_export(client, stocked, admin_headers):
    chips, cola = stocked
    body = {
        "date": DAY,
        "rows": [
            {"product_id": chips.id, "opening_stock": 50, "order_count": 3, "actual_closing_stock": 45},
            {"product_id": cola.id, "opening_stock": 4, "order_count": 2, "actual_closing_stock": 1},
        ],
    }
    assert client.post(f"{BASE}/save", json=body, headers=admin_headers).status_code == 200

    response = client.get(
        f"{BASE}/history",
        params={"start_date": DAY, "end_date": DAY},
        headers=admin_headers,
    )
    assert response.status_code == 200
    history = response.json()
    assert len(history["records"]) == 2
    assert Decimal(history["summary"]["total_sales_value"]) == Decimal("81.00")
    assert history["summary"]["total_stolen_units"] == 3

    response = client.get(f"{BASE}/export", params={"date": DAY}, headers=admin_headers)
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "daily-inventory-2024-05-01.csv" in response.headers["content-disposition"]
    df = pd.read_csv(io.StringIO(response.text))
    assert list(df["Product"]) == ["Chips", "Cola"]

    response = client.get(
        f"{BASE}/export", params={"date": DAY, "format": "json"}, headers=admin_headers
    )
    assert response.json()["data"][1][0] == "Cola"


def test_history_rejects_reversed_range(client, admin_headers):
    response = client.get(
        f"{BASE}/history",
        params={"start_date": "2024-05-02", "end_date": "2024-05-01"},
        headers=admin_headers,
    )
    assert response.status_code == 400


def test_export_rejects_unknown_format(client, admin_headers):
    response = client.get(
        f"{BASE}/export", params={"date": DAY, "format": "xlsx"}, headers=admin_headers
    )
    assert response.status_code == 422
