"""Integration tests for /api/portfolio endpoints."""

from datetime import date

from fastapi.testclient import TestClient

from models import PurchaseLot, SaleEvent, UserProfile
from tests.fixtures import add_lot, make_acme_ledger


def _purchase(client: TestClient, **stock) -> dict:
    body = {
        "userId": "user-1",
        "stock": {
            "ticker": "ACME",
            "purchaseDate": "2024-01-01",
            "quantity": "10",
            "purchasePrice": "100",
            "brokerageFees": "5",
            **stock,
        },
    }
    return client.post("/api/portfolio/addDetails", json=body)


def _sell(client: TestClient, quantity: str, ticker: str = "ACME", user_id: str = "user-1"):
    return client.post(
        "/api/portfolio/sell",
        json={
            "userId": user_id,
            "ticker": ticker,
            "sellDate": "2024-03-01",
            "quantitySold": quantity,
            "sellPrice": "130",
            "brokerageFees": "2",
        },
    )


class TestAddDetails:
    def test_records_lot(self, client: TestClient, db):
        response = _purchase(client, ticker=" acme ", name="Acme Corp", assetType="Stock")
        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Stock details added to portfolio"
        lot = data["lot"]
        assert lot["ticker"] == "ACME"
        assert lot["userId"] == "user-1"
        assert lot["name"] == "Acme Corp"
        assert float(lot["totalCost"]) == 1005.0
        assert db.query(PurchaseLot).count() == 1

    def test_snake_case_body_accepted(self, client: TestClient):
        body = {
            "user_id": "user-1",
            "stock": {
                "ticker": "ACME",
                "purchase_date": "2024-01-01",
                "quantity": "1",
                "purchase_price": "100",
            },
        }
        response = client.post("/api/portfolio/addDetails", json=body)
        assert response.status_code == 200
        assert float(response.json()["lot"]["brokerageFees"]) == 0.0

    def test_negative_quantity_rejected(self, client: TestClient, db):
        response = _purchase(client, quantity="-1")
        assert response.status_code == 400
        assert response.json()["kind"] == "validation_error"
        assert db.query(PurchaseLot).count() == 0

    def test_zero_quantity_rejected(self, client: TestClient):
        response = _purchase(client, quantity="0")
        assert response.status_code == 400

    def test_empty_ticker_rejected(self, client: TestClient):
        response = _purchase(client, ticker="   ")
        assert response.status_code == 400
        assert "ticker" in response.json()["detail"]

    def test_non_numeric_price_is_unprocessable(self, client: TestClient):
        response = _purchase(client, purchasePrice="abc")
        assert response.status_code == 422
        body = response.json()
        assert body["kind"] == "validation_error"
        assert isinstance(body["detail"], list)

    def test_missing_date_is_unprocessable(self, client: TestClient):
        body = {"userId": "user-1", "stock": {"ticker": "ACME", "quantity": "1", "purchasePrice": "1"}}
        response = client.post("/api/portfolio/addDetails", json=body)
        assert response.status_code == 422
        assert response.json()["kind"] == "validation_error"


class TestAggregate:
    def test_folds_lots_per_ticker(self, client: TestClient, db):
        make_acme_ledger(db)
        add_lot(db, "user-1", "GLOBEX", "2", "50", purchase_date=date(2024, 1, 3))
        db.commit()

        response = client.get("/api/portfolio/aggregate/user-1")
        assert response.status_code == 200
        data = response.json()
        assert [h["ticker"] for h in data] == ["ACME", "GLOBEX"]
        acme = data[0]
        assert acme["name"] == "Acme Corp"
        assert float(acme["totalQuantity"]) == 15
        assert float(acme["totalCost"]) == 1560
        assert float(acme["averagePurchasePrice"]) == 104

    def test_unknown_user_404(self, client: TestClient):
        response = client.get("/api/portfolio/aggregate/ghost")
        assert response.status_code == 404
        assert response.json()["kind"] == "not_found"

    def test_profile_without_lots_is_empty_portfolio(self, client: TestClient, db):
        db.add(UserProfile(user_id="new-user", email="new@example.com"))
        db.commit()

        response = client.get("/api/portfolio/aggregate/new-user")
        assert response.status_code == 200
        assert response.json() == []


class TestSell:
    def test_partial_sale_updates_holding(self, client: TestClient, db, recompute_calls):
        make_acme_ledger(db)
        db.commit()

        response = _sell(client, "12")
        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Stock sold successfully"
        assert float(data["remainingQuantity"]) == 3
        assert float(data["sale"]["totalSaleValue"]) == 1558.0
        assert recompute_calls == ["user-1"]

        aggregate = client.get("/api/portfolio/aggregate/user-1").json()
        assert float(aggregate[0]["totalQuantity"]) == 3
        # 3 left of the 5 @ 110 lot with 3/5 of its 5 fee
        assert float(aggregate[0]["totalCost"]) == 333

    def test_selling_everything_removes_holding(self, client: TestClient, db):
        make_acme_ledger(db)
        db.commit()

        assert _sell(client, "15").status_code == 200
        assert client.get("/api/portfolio/aggregate/user-1").json() == []
        assert db.query(PurchaseLot).count() == 2

    def test_oversell_rejected(self, client: TestClient, db, recompute_calls):
        make_acme_ledger(db)
        db.commit()

        response = _sell(client, "16")
        assert response.status_code == 400
        assert response.json()["kind"] == "insufficient_holding"
        assert db.query(SaleEvent).count() == 0
        assert recompute_calls == []

    def test_unknown_ticker_404(self, client: TestClient, db):
        make_acme_ledger(db)
        db.commit()

        response = _sell(client, "1", ticker="GLOBEX")
        assert response.status_code == 404

    def test_unknown_user_404(self, client: TestClient):
        response = _sell(client, "1", user_id="ghost")
        assert response.status_code == 404

    def test_zero_quantity_rejected(self, client: TestClient, db):
        make_acme_ledger(db)
        db.commit()

        response = _sell(client, "0")
        assert response.status_code == 400
        assert response.json()["kind"] == "validation_error"


class TestRawPortfolio:
    def test_lists_open_lots_with_remaining_quantity(self, client: TestClient, db):
        make_acme_ledger(db)
        db.commit()
        _sell(client, "12")

        response = client.get("/api/portfolio/user-1")
        assert response.status_code == 200
        lots = response.json()
        assert len(lots) == 1
        assert float(lots[0]["originalQuantity"]) == 5
        assert float(lots[0]["quantity"]) == 3
        assert lots[0]["purchaseDate"] == "2024-01-02"

    def test_unknown_user_404(self, client: TestClient):
        assert client.get("/api/portfolio/ghost").status_code == 404


class TestSales:
    def test_most_recent_first(self, client: TestClient, db):
        make_acme_ledger(db)
        db.commit()
        client.post(
            "/api/portfolio/sell",
            json={"userId": "user-1", "ticker": "ACME", "sellDate": "2024-02-01", "quantitySold": "1", "sellPrice": "120"},
        )
        _sell(client, "2")

        response = client.get("/api/portfolio/sales/user-1")
        assert response.status_code == 200
        sales = response.json()
        assert [s["sellDate"] for s in sales] == ["2024-03-01", "2024-02-01"]
        assert float(sales[1]["totalSaleValue"]) == 120.0

    def test_unknown_user_404(self, client: TestClient):
        assert client.get("/api/portfolio/sales/ghost").status_code == 404
