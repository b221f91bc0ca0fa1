from __future__ import annotations

import json
from datetime import date, datetime
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from psycopg.types.json import Jsonb

from stockledger.models.financials import FinancialHistory, YearlyRawFacts
from stockledger.models.investment import InvestmentAction, InvestmentSnapshot, StockType
from stockledger.models.stock import Exchange, Stock
from stockledger.registry.db import Database
from stockledger.registry.queries import Registry


@pytest.fixture
def mock_db() -> MagicMock:
    return MagicMock(spec=Database)


@pytest.fixture
def registry(mock_db: MagicMock) -> Registry:
    return Registry(mock_db)


def _stock_row(**overrides) -> dict:
    row = {
        "id": 1,
        "ticker": "5031",
        "company_name": "Time dotCom",
        "abbreviation": "TIMECOM",
        "description": "",
        "exchange_id": 3,
        "sector": "Communication Services",
        "country": "Malaysia",
        "ai_description": None,
        "updated_at": datetime(2024, 1, 1, 12, 0),
    }
    row.update(overrides)
    return row


# ------------------------------------------------------------------
# Exchanges
# ------------------------------------------------------------------


class TestExchanges:
    def test_list(self, registry: Registry, mock_db: MagicMock) -> None:
        mock_db.execute.return_value = [
            {"id": 1, "name": "Bursa Malaysia", "abbreviation": "KLSE", "country": "MY"},
        ]
        result = registry.list_exchanges()
        assert result == [Exchange(id=1, name="Bursa Malaysia", abbreviation="KLSE", country="MY")]

    def test_get_missing(self, registry: Registry, mock_db: MagicMock) -> None:
        mock_db.execute_one.return_value = None
        assert registry.get_exchange(99) is None

    def test_create(self, registry: Registry, mock_db: MagicMock) -> None:
        mock_db.execute_one.return_value = {"id": 4}
        new_id = registry.create_exchange(Exchange(name="SGX", abbreviation="SGX", country="SG"))
        assert new_id == 4
        sql, params = mock_db.execute_one.call_args[0]
        assert "INSERT INTO ledger.exchanges" in sql
        assert params == ("SGX", "SGX", "SG")

    def test_delete(self, registry: Registry, mock_db: MagicMock) -> None:
        mock_db.execute.return_value = []
        assert registry.delete_exchange(4) is False


# ------------------------------------------------------------------
# Stocks
# ------------------------------------------------------------------


class TestStocks:
    def test_list(self, registry: Registry, mock_db: MagicMock) -> None:
        mock_db.execute.return_value = [_stock_row()]
        stocks = registry.list_stocks()
        assert len(stocks) == 1
        assert stocks[0].ticker == "5031"
        assert stocks[0].abbreviation == "TIMECOM"
        assert stocks[0].ai_description == ""

    def test_get_by_ticker_is_case_insensitive(self, registry: Registry, mock_db: MagicMock) -> None:
        mock_db.execute_one.return_value = _stock_row(ticker="AAPL")
        stock = registry.get_stock_by_ticker("aapl")
        assert stock is not None
        assert mock_db.execute_one.call_args[0][1] == ("AAPL",)

    def test_get_missing(self, registry: Registry, mock_db: MagicMock) -> None:
        mock_db.execute_one.return_value = None
        assert registry.get_stock(123) is None

    def test_create(self, registry: Registry, mock_db: MagicMock) -> None:
        mock_db.execute_one.return_value = {"id": 9}
        stock = Stock(ticker="AAPL", company_name="Apple", country="United States")
        assert registry.create_stock(stock) == 9
        sql, params = mock_db.execute_one.call_args[0]
        assert "INSERT INTO ledger.stocks" in sql
        assert params[0] == "AAPL"
        assert params[6] == "United States"

    def test_update(self, registry: Registry, mock_db: MagicMock) -> None:
        mock_db.execute.return_value = [{"id": 9}]
        stock = Stock(ticker="AAPL", company_name="Apple Inc.", id=9)
        assert registry.update_stock(stock) is True
        sql, params = mock_db.execute.call_args[0]
        assert "UPDATE ledger.stocks" in sql
        assert params[-1] == 9


# ------------------------------------------------------------------
# Financials
# ------------------------------------------------------------------


class TestFinancials:
    def test_get_missing_is_none(self, registry: Registry, mock_db: MagicMock) -> None:
        mock_db.execute_one.return_value = None
        assert registry.get_financials(1) is None

    def test_get_parses_json_shape(self, registry: Registry, mock_db: MagicMock) -> None:
        mock_db.execute_one.return_value = {
            "data": {
                "2023-12-31": {"revenue": 1000, "cash": 250.5},
                "2022-12-31": {"revenue": 900},
            }
        }
        history = registry.get_financials(1)
        assert history.years == ["2022-12-31", "2023-12-31"]
        assert history.get("2023-12-31").cash == Decimal("250.5")

    def test_save_upserts_jsonb(self, registry: Registry, mock_db: MagicMock) -> None:
        history = FinancialHistory(
            {"2023-12-31": YearlyRawFacts(revenue=Decimal("12345678901234567.89"))}
        )
        registry.save_financials(1, history)

        sql, params = mock_db.execute.call_args[0]
        assert "INSERT INTO ledger.financials" in sql
        assert "ON CONFLICT (stock_id)" in sql
        assert params[0] == 1
        assert isinstance(params[1], Jsonb)
        assert params[1].obj == {"2023-12-31": {"revenue": Decimal("12345678901234567.89")}}
        assert json.loads(params[1].dumps(params[1].obj)) == {
            "2023-12-31": {"revenue": "12345678901234567.89"}
        }


# ------------------------------------------------------------------
# Investment summary
# ------------------------------------------------------------------


class TestInvestmentSummary:
    def test_get_missing_is_none(self, registry: Registry, mock_db: MagicMock) -> None:
        mock_db.execute_one.return_value = None
        assert registry.get_investment_summary(1) is None

    def test_get(self, registry: Registry, mock_db: MagicMock) -> None:
        mock_db.execute_one.return_value = {
            "curr_date": date(2024, 6, 30),
            "current_share_price": Decimal("4.85"),
            "past_4q_revenue": Decimal("1700000000"),
            "past_4q_net_profit": None,
            "past_4q_earnings_per_share": 0.28,
            "stock_type": "stalwart",
            "invest": "wait",
            "investment_reasoning": None,
        }
        snap = registry.get_investment_summary(1)
        assert snap.current_share_price == Decimal("4.85")
        assert snap.past_4q_net_profit is None
        assert snap.past_4q_earnings_per_share == Decimal("0.28")
        assert snap.stock_type == StockType.STALWART
        assert snap.invest == InvestmentAction.WAIT
        assert snap.investment_reasoning == ""

    def test_save(self, registry: Registry, mock_db: MagicMock) -> None:
        snap = InvestmentSnapshot(
            curr_date=date(2024, 6, 30),
            current_share_price=Decimal("4.85"),
            stock_type=StockType.BAGGERS,
            invest=InvestmentAction.INVEST,
            investment_reasoning="Cheap vs growth",
        )
        registry.save_investment_summary(1, snap)
        sql, params = mock_db.execute.call_args[0]
        assert "INSERT INTO ledger.investment_summaries" in sql
        assert "ON CONFLICT (stock_id)" in sql
        assert params[0] == 1
        assert params[6] == "baggers"
        assert params[7] == "invest"
        assert params[8] == "Cheap vs growth"


# ------------------------------------------------------------------
# Prompts and reference data
# ------------------------------------------------------------------


class TestPrompts:
    def test_get_prompts(self, registry: Registry, mock_db: MagicMock) -> None:
        mock_db.execute.return_value = [
            {"id": "Q1", "prompt": "Revenue trend?"},
            {"id": "Q2", "prompt": "Balance sheet?"},
        ]
        assert registry.get_prompts() == {"Q1": "Revenue trend?", "Q2": "Balance sheet?"}

    def test_get_responses(self, registry: Registry, mock_db: MagicMock) -> None:
        mock_db.execute.return_value = [{"prompt_id": "Q1", "response": "Growing."}]
        assert registry.get_prompt_responses(1) == {"Q1": "Growing."}
        assert mock_db.execute.call_args[0][1] == (1,)

    def test_save_response(self, registry: Registry, mock_db: MagicMock) -> None:
        registry.save_prompt_response(1, "Q1", "Growing.", provider="deepseek", model="deepseek-chat")
        sql, params = mock_db.execute.call_args[0]
        assert "INSERT INTO ledger.prompt_responses" in sql
        assert params == (1, "Q1", "Growing.", "deepseek", "deepseek-chat")


class TestReferenceData:
    def test_sectors(self, registry: Registry, mock_db: MagicMock) -> None:
        mock_db.execute.return_value = [{"name": "Energy"}, {"name": "Utilities"}]
        assert registry.get_sectors() == ["Energy", "Utilities"]

    def test_countries(self, registry: Registry, mock_db: MagicMock) -> None:
        mock_db.execute.return_value = [{"code": "MY", "name": "Malaysia"}]
        assert registry.get_countries() == [{"code": "MY", "name": "Malaysia"}]
