"""
Unit tests for main.py
Tests FastAPI endpoints and API functionality
"""
import pytest
from unittest.mock import Mock, patch, MagicMock
from datetime import date, datetime
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fastapi import HTTPException


class TestRootEndpoint:
    """Test root health check endpoint"""

    def test_root_returns_status(self):
        """Test root endpoint returns status"""
        from main import root

        response = root()

        assert response['status'] == 'online'
        assert response['app'] == "Trading Journal API"
        assert response['version'] == "1.0.0"

    def test_root_over_http(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()['status'] == 'online'


class TestErrorTranslation:
    """Test storage errors become HTTP errors"""

    def test_missing_metrics_is_404(self):
        from main import get_metrics
        from storage import DataNotFoundError

        storage = Mock()
        storage.get_metrics.side_effect = DataNotFoundError("Metrics not found for user 1")

        with pytest.raises(HTTPException) as exc_info:
            get_metrics(storage)

        assert exc_info.value.status_code == 404

    def test_unexpected_error_is_500_with_message(self):
        from main import get_open_trades

        storage = Mock()
        storage.get_open_trades.side_effect = RuntimeError("connection lost")

        with pytest.raises(HTTPException) as exc_info:
            get_open_trades(storage)

        assert exc_info.value.status_code == 500
        assert exc_info.value.detail == "Failed to fetch open trades"

    def test_equity_history_error_is_500(self):
        from main import get_equity_history

        storage = Mock()
        storage.get_equity_history.side_effect = RuntimeError("boom")

        with pytest.raises(HTTPException) as exc_info:
            get_equity_history(storage)

        assert exc_info.value.detail == "Failed to fetch equity history"


class TestDashboardEndpoints:
    """Test metrics, open trades and history endpoints"""

    def test_get_metrics(self, client):
        response = client.get("/api/metrics")

        assert response.status_code == 200
        body = response.json()
        assert body['totalPnl'] == 12450
        assert body['winRate'] == 67.3
        assert body['totalTrades'] == 183

    def test_get_open_trades(self, client):
        response = client.get("/api/trades/open")

        assert response.status_code == 200
        trades = response.json()
        assert len(trades) == 3
        assert {t['symbol'] for t in trades} == {"EURUSD", "GOLD", "BTCUSD"}
        assert all(t['status'] == 'open' for t in trades)

    def test_equity_history_format(self, client):
        response = client.get("/api/equity-history")

        history = response.json()
        assert len(history) == 31
        assert history[-1]['date'] == "2023-02-15"
        assert set(history[0]) == {'date', 'equity'}

    def test_drawdown_history_format(self, client):
        history = client.get("/api/drawdown-history").json()

        assert len(history) == 31
        assert all(point['drawdown'] <= 0 for point in history)

    def test_daily_performance(self, client):
        rows = client.get("/api/daily-performance").json()

        assert len(rows) == 11
        assert rows[0] == {
            'id': rows[0]['id'], 'userId': 1, 'date': '2023-01-01', 'pnl': 243,
            'tradesCount': 5, 'winCount': 3, 'lossCount': 2
        }

    def test_daily_performance_filtered(self, client):
        assert client.get("/api/daily-performance", params={"year": 2023, "month": 2}).json() == []

    def test_calendar(self, client):
        response = client.get("/api/calendar/2023/1")

        assert response.status_code == 200
        body = response.json()
        assert body['summary']['tradingDays'] == 11
        assert body['weeks'][0][0]['date'] == '2022-12-26'

    def test_calendar_invalid_month(self, client):
        assert client.get("/api/calendar/2023/13").status_code == 422


class TestTradeEndpoints:
    """Test editing and closing trades"""

    def _trade_id(self, client, symbol):
        return next(t['id'] for t in client.get("/api/trades/open").json() if t['symbol'] == symbol)

    def test_update_trade(self, client):
        trade_id = self._trade_id(client, "EURUSD")

        response = client.patch(f"/api/trades/{trade_id}", json={"currentPrice": 1.1, "symbol": "EURGBP"})

        assert response.status_code == 200
        assert response.json()['currentPrice'] == 1.1
        assert response.json()['symbol'] == "EURGBP"
        assert response.json()['entryPrice'] == 1.0865

    def test_update_trade_invalid_direction(self, client):
        trade_id = self._trade_id(client, "EURUSD")

        response = client.patch(f"/api/trades/{trade_id}", json={"direction": "sideways"})

        assert response.status_code == 422

    def test_update_trade_null_required_field(self, client):
        trade_id = self._trade_id(client, "EURUSD")

        response = client.patch(f"/api/trades/{trade_id}", json={"entryPrice": None})

        assert response.status_code == 422
        trade = next(t for t in client.get("/api/trades/open").json() if t['id'] == trade_id)
        assert trade['entryPrice'] == 1.0865

    def test_update_missing_trade(self, client):
        response = client.patch("/api/trades/999", json={"symbol": "X"})

        assert response.status_code == 404

    def test_close_trade(self, client):
        trade_id = self._trade_id(client, "GOLD")

        response = client.post(
            f"/api/trades/{trade_id}/close",
            json={"exitPrice": 2025.67, "exitDate": "2023-01-20T15:00:00"}
        )

        assert response.status_code == 200
        body = response.json()
        assert body['status'] == 'closed'
        assert body['exitDate'] == "2023-01-20T15:00:00"
        assert body['pnl'] == pytest.approx(1000.0)
        assert trade_id not in [t['id'] for t in client.get("/api/trades/open").json()]

    def test_close_trade_defaults_exit_date(self, client):
        trade_id = self._trade_id(client, "BTCUSD")

        body = client.post(f"/api/trades/{trade_id}/close", json={"exitPrice": 43000}).json()

        assert body['exitDate'] is not None

    def test_close_trade_rejects_non_positive_price(self, client):
        trade_id = self._trade_id(client, "BTCUSD")

        assert client.post(f"/api/trades/{trade_id}/close", json={"exitPrice": 0}).status_code == 422

    def test_close_missing_trade(self, client):
        assert client.post("/api/trades/999/close", json={"exitPrice": 1.0}).status_code == 404


class TestJournalEndpoint:
    """Test the journal day endpoint"""

    def test_journal_day(self, client):
        response = client.get("/api/journal/2024-03-04")

        assert response.status_code == 200
        body = response.json()
        metrics = body['metrics']
        assert body['date'] == "2024-03-04"
        assert 3 <= len(body['trades']) <= 7
        assert metrics['totalTrades'] == len(body['trades'])
        assert metrics['winningTrades'] + metrics['losingTrades'] == metrics['totalTrades']
        assert metrics['timestamps'] == ["09:00", "10:00", "11:00", "12:00", "13:00", "14:00", "15:00", "16:00"]
        assert len(metrics['netCumulativePL']) == 8

    def test_journal_day_is_stable_with_seed(self, client):
        """Test a configured seed gives the same day every time"""
        first = client.get("/api/journal/2024-03-04").json()
        second = client.get("/api/journal/2024-03-04").json()

        assert first == second

    def test_journal_metrics_match_trades(self):
        """Test the endpoint summarizes exactly the trades it returns"""
        from main import get_journal_day

        body = get_journal_day(date(2024, 3, 5))
        wins = [t['netPL'] for t in body['trades'] if t['status'] == 'Win']

        assert body['metrics']['winningTrades'] == len(wins)

    def test_invalid_day(self, client):
        assert client.get("/api/journal/not-a-date").status_code == 422


class TestStrategyEndpoints:
    """Test strategy builder endpoints"""

    def _payload(self, **overrides):
        payload = {
            "name": "RSI dip",
            "type": "mean-reversion",
            "entry_rules": [{
                "id": "g1", "name": "Group 1", "logical_operator": "AND",
                "rules": [{"id": "r1", "indicator": "rsi", "operator": "<", "value": 30}]
            }],
            "risk_parameters": {"max_risk_per_trade": 1, "target_risk_reward": 2}
        }
        payload.update(overrides)
        return payload

    def test_indicators(self, client):
        body = client.get("/api/strategies/indicators").json()

        assert {i['value'] for i in body['indicators']} >= {'sma', 'rsi', 'candlestick'}
        assert body['indicatorOperators']['sma'] == 'moving_average'

    def test_templates(self, client):
        assert len(client.get("/api/strategies/templates").json()['templates']) == 5

    def test_create_from_template(self, client):
        response = client.post("/api/strategies/templates/template-3")

        assert response.status_code == 200
        assert response.json()['type'] == 'breakout'

    def test_create_from_missing_template(self, client):
        assert client.post("/api/strategies/templates/nope").status_code == 404

    def test_create_and_fetch_strategy(self, client):
        created = client.post("/api/strategies", json=self._payload())

        assert created.status_code == 201
        strategy_id = created.json()['id']
        fetched = client.get(f"/api/strategies/{strategy_id}").json()
        assert fetched['name'] == "RSI dip"
        assert fetched['entry_rules'][0]['rules'][0]['indicator'] == 'rsi'
        assert [s['id'] for s in client.get("/api/strategies").json()['strategies']] == [strategy_id]

    def test_create_invalid_strategy(self, client):
        payload = self._payload(entry_rules=[{
            "id": "g1", "name": "Group 1",
            "rules": [{"id": "r1", "indicator": "sma", "operator": ">", "value": 30}]
        }])

        response = client.post("/api/strategies", json=payload)

        assert response.status_code == 422
        assert "not allowed" in response.json()['detail']

    def test_create_malformed_rule(self, client):
        payload = self._payload(entry_rules=[{"id": "g1", "name": "Group 1", "rules": [{"id": "r1"}]}])

        assert client.post("/api/strategies", json=payload).status_code == 422

    def test_replace_strategy(self, client):
        strategy_id = client.post("/api/strategies", json=self._payload()).json()['id']

        response = client.put(f"/api/strategies/{strategy_id}", json=self._payload(name="RSI dip v2"))

        assert response.status_code == 200
        assert client.get(f"/api/strategies/{strategy_id}").json()['name'] == "RSI dip v2"

    def test_replace_missing_strategy(self, client):
        assert client.put("/api/strategies/missing", json=self._payload()).status_code == 404

    def test_delete_strategy(self, client):
        strategy_id = client.post("/api/strategies", json=self._payload()).json()['id']

        assert client.delete(f"/api/strategies/{strategy_id}").status_code == 204
        assert client.get(f"/api/strategies/{strategy_id}").status_code == 404

    def test_delete_missing_strategy(self, client):
        assert client.delete("/api/strategies/missing").status_code == 404

    def test_create_with_existing_id_conflicts(self, client):
        """Test a second create with the same client id does not overwrite the first"""
        first = client.post("/api/strategies", json=self._payload(id="s-1"))
        second = client.post("/api/strategies", json=self._payload(id="s-1", name="Other"))

        assert first.status_code == 201
        assert second.status_code == 409
        assert client.get("/api/strategies/s-1").json()['name'] == "RSI dip"

    def test_create_with_new_client_id(self, client):
        response = client.post("/api/strategies", json=self._payload(id="s-2"))

        assert response.status_code == 201
        assert response.json()['id'] == "s-2"

    def test_create_unknown_strategy_type(self, client):
        response = client.post("/api/strategies", json=self._payload(type="nonsense"))

        assert response.status_code == 422
        assert "strategy type" in response.json()['detail']

    def test_create_list_indicator(self, client):
        payload = self._payload(entry_rules=[{
            "id": "g1", "name": "Group 1",
            "rules": [{"id": "r1", "indicator": ["sma"], "operator": "<", "value": 30}]
        }])

        assert client.post("/api/strategies", json=payload).status_code == 422
