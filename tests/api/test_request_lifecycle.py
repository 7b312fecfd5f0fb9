"""
Tests for request lifecycle tracking and error mapping.
"""

import pytest

from expense_ledger.api.lifecycle import RequestStage, RequestTrace
from expense_ledger.services.ledger_service import LedgerService
from expense_ledger.store.errors import StoreError


class TestRequestTrace:

    def test_success_path(self):
        trace = RequestTrace("GET", "/api/summary")
        for stage in (RequestStage.PARSED, RequestStage.AUTHORIZED, RequestStage.EXECUTED):
            trace.advance(stage)
        assert trace.finish(200) == RequestStage.RESPONDED

    def test_executed_passes_parse_and_authorization(self):
        trace = RequestTrace("GET", "/health")
        trace.executed()
        assert trace.stage == RequestStage.EXECUTED
        assert trace.finish(200) == RequestStage.RESPONDED

    def test_cannot_respond_without_executing(self):
        trace = RequestTrace("GET", "/health")
        with pytest.raises(ValueError):
            trace.finish(200)

    def test_error_from_any_stage(self):
        trace = RequestTrace("POST", "/api/expenses")
        trace.advance(RequestStage.PARSED)
        assert trace.finish(400) == RequestStage.RESPONDED_WITH_ERROR

    def test_cannot_skip_to_executed(self):
        trace = RequestTrace("GET", "/")
        with pytest.raises(ValueError):
            trace.advance(RequestStage.EXECUTED)

    def test_terminal_stage_is_final(self):
        trace = RequestTrace("GET", "/")
        trace.finish(500)
        assert not trace.can_transition_to(RequestStage.RESPONDED)

    def test_ids_are_unique(self):
        assert RequestTrace("GET", "/").id != RequestTrace("GET", "/").id


class TestErrorMapping:

    def test_unhandled_error_is_500_and_listener_survives(self, client, monkeypatch):
        def explode(self, day):
            raise RuntimeError("boom")

        monkeypatch.setattr(LedgerService, "day_view", explode)
        response = client.get("/api/summary", params={"date": "2024-05-10"})
        assert response.status_code == 500
        assert response.json() == {"detail": "Internal server error"}

        monkeypatch.undo()
        assert client.get("/api/summary", params={"date": "2024-05-10"}).status_code == 200

    def test_store_error_is_503(self, client, monkeypatch):
        def unavailable(self, request):
            raise StoreError("insert")

        monkeypatch.setattr(LedgerService, "add_entry", unavailable)
        response = client.post("/api/expenses", json={
            "source_name": "Wallet",
            "category": "Home Expenses",
            "item_name": "Bread",
            "direction": "DEBIT",
            "channel": "CASH",
        })
        assert response.status_code == 503
        assert response.json() == {"detail": "Store operation failed"}


class TestStagesThroughGateway:

    @pytest.fixture
    def stages(self, monkeypatch):
        """Every stage each request passes through, keyed by request id."""
        seen = {}
        advance = RequestTrace.advance

        def recording(self, stage):
            advance(self, stage)
            seen.setdefault(self.id, []).append(stage)

        monkeypatch.setattr(RequestTrace, "advance", recording)
        return seen

    def test_handled_request_walks_every_stage(self, client, stages):
        assert client.get("/api/summary", params={"date": "2024-05-10"}).status_code == 200

        (path,) = stages.values()
        assert path == [
            RequestStage.PARSED,
            RequestStage.AUTHORIZED,
            RequestStage.EXECUTED,
            RequestStage.RESPONDED,
        ]

    def test_malformed_body_never_authorized(self, client, stages):
        response = client.post("/api/expenses", json={
            "source_name": "Wallet",
            "category": "Home Expenses",
            "item_name": "Bread",
            "direction": "SIDEWAYS",
            "channel": "CASH",
        })

        assert response.status_code == 400
        (path,) = stages.values()
        assert path == [RequestStage.RESPONDED_WITH_ERROR]

    def test_crashed_handler_never_executed(self, client, stages, monkeypatch):
        def explode(self, day):
            raise RuntimeError("boom")

        monkeypatch.setattr(LedgerService, "day_view", explode)
        client.get("/api/summary", params={"date": "2024-05-10"})

        (path,) = stages.values()
        assert RequestStage.EXECUTED not in path
        assert path[-1] == RequestStage.RESPONDED_WITH_ERROR
