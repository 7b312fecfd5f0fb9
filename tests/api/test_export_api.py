"""
Tests for the export endpoint.
"""

from decimal import Decimal

DATE = "2024-05-10"


def add_entry(client, **overrides):
    body = {
        "date": DATE,
        "source_name": "Cash-Wallet",
        "person_name": "Asha",
        "category": "Home Expenses",
        "item_name": "Rice",
        "unit_price": "50",
        "direction": "CREDIT",
        "channel": "CASH",
    }
    body.update(overrides)
    client.post("/api/expenses", json=body)


class TestExport:

    def test_csv_download(self, client):
        add_entry(client)

        response = client.get("/api/export", params={"type": "csv", "screen": "daily", "date": DATE})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert response.headers["content-disposition"] == 'attachment; filename="Daily_10-05-2024.csv"'
        assert "GRAND TOTAL,50.00," in response.text

    def test_pdf_download(self, client):
        add_entry(client)

        response = client.get("/api/export", params={"type": "pdf", "screen": "daily", "date": DATE})

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert response.content.startswith(b"%PDF")

    def test_accounts_filename(self, client):
        client.post("/api/accounts", json={
            "date": DATE, "from_holder": "A", "to_holder": "B",
            "amount": "10", "direction": "DEBIT", "channel": "CASH",
        })
        response = client.get("/api/export", params={"type": "csv", "screen": "acc", "date": DATE})
        assert 'filename="Accounts_10-05-2024.csv"' in response.headers["content-disposition"]

    def test_history_uses_month_of_range_start(self, client):
        add_entry(client, date="2024-05-20")
        response = client.get("/api/export", params={"type": "pdf", "screen": "hist", "date": DATE})
        assert 'filename="Monthly_05-2024.pdf"' in response.headers["content-disposition"]

    def test_empty_screen_returns_204(self, client):
        response = client.get("/api/export", params={"type": "csv", "screen": "daily", "date": DATE})
        assert response.status_code == 204
        assert response.content == b""

    def test_oversized_amount_does_not_break_export(self, client):
        created = client.post("/api/expenses", json={
            "date": DATE,
            "source_name": "Cash-Wallet",
            "category": "Home Expenses",
            "item_name": "Typo",
            "total_amount": "1e30",
            "direction": "CREDIT",
            "channel": "CASH",
        })
        assert created.status_code == 201
        assert Decimal(created.json()["total_amount"]) == 0

        for export_type in ("csv", "pdf"):
            response = client.get(
                "/api/export", params={"type": export_type, "screen": "daily", "date": DATE}
            )
            assert response.status_code == 200
        assert "GRAND TOTAL,0.00,0.00" in client.get(
            "/api/export", params={"type": "csv", "screen": "daily", "date": DATE}
        ).text

    def test_accounts_ignore_entries(self, client):
        add_entry(client)
        response = client.get("/api/export", params={"type": "csv", "screen": "acc", "date": DATE})
        assert response.status_code == 204

    def test_invalid_screen_returns_400(self, client):
        response = client.get("/api/export", params={"type": "csv", "screen": "weekly"})
        assert response.status_code == 400

    def test_invalid_type_returns_400(self, client):
        response = client.get("/api/export", params={"type": "xlsx", "screen": "daily"})
        assert response.status_code == 400
