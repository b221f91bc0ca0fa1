from __future__ import annotations

import logging
from decimal import Decimal

from psycopg.types.json import Jsonb

from stockledger.models.financials import FinancialHistory, dumps
from stockledger.models.investment import InvestmentAction, InvestmentSnapshot, StockType
from stockledger.models.stock import Exchange, Stock
from stockledger.registry.db import Database

logger = logging.getLogger(__name__)

_STOCK_COLUMNS = (
    "id, ticker, company_name, abbreviation, description, exchange_id, "
    "sector, country, ai_description, updated_at"
)


class Registry:
    """Query layer bridging the ledger models and the ledger schema."""

    def __init__(self, db: Database) -> None:
        self._db = db

    # ------------------------------------------------------------------
    # Exchanges
    # ------------------------------------------------------------------

    def list_exchanges(self) -> list[Exchange]:
        rows = self._db.execute(
            "SELECT id, name, abbreviation, country FROM ledger.exchanges ORDER BY name"
        )
        return [self._row_to_exchange(r) for r in rows]

    def get_exchange(self, exchange_id: int) -> Exchange | None:
        row = self._db.execute_one(
            "SELECT id, name, abbreviation, country FROM ledger.exchanges WHERE id = %s",
            (exchange_id,),
        )
        return self._row_to_exchange(row) if row else None

    def create_exchange(self, exchange: Exchange) -> int:
        """Insert an exchange. Returns its id."""
        row = self._db.execute_one(
            "INSERT INTO ledger.exchanges (name, abbreviation, country) "
            "VALUES (%s, %s, %s) RETURNING id",
            (exchange.name, exchange.abbreviation, exchange.country),
        )
        return row["id"]

    def update_exchange(self, exchange: Exchange) -> bool:
        rows = self._db.execute(
            "UPDATE ledger.exchanges SET name = %s, abbreviation = %s, country = %s "
            "WHERE id = %s RETURNING id",
            (exchange.name, exchange.abbreviation, exchange.country, exchange.id),
        )
        return bool(rows)

    def delete_exchange(self, exchange_id: int) -> bool:
        rows = self._db.execute(
            "DELETE FROM ledger.exchanges WHERE id = %s RETURNING id", (exchange_id,)
        )
        return bool(rows)

    # ------------------------------------------------------------------
    # Stocks
    # ------------------------------------------------------------------

    def list_stocks(self) -> list[Stock]:
        rows = self._db.execute(f"SELECT {_STOCK_COLUMNS} FROM ledger.stocks ORDER BY ticker")
        return [self._row_to_stock(r) for r in rows]

    def get_stock(self, stock_id: int) -> Stock | None:
        row = self._db.execute_one(
            f"SELECT {_STOCK_COLUMNS} FROM ledger.stocks WHERE id = %s", (stock_id,)
        )
        return self._row_to_stock(row) if row else None

    def get_stock_by_ticker(self, ticker: str) -> Stock | None:
        row = self._db.execute_one(
            f"SELECT {_STOCK_COLUMNS} FROM ledger.stocks WHERE UPPER(ticker) = %s",
            (ticker.upper(),),
        )
        return self._row_to_stock(row) if row else None

    def create_stock(self, stock: Stock) -> int:
        """Insert a stock. Returns its id."""
        row = self._db.execute_one(
            "INSERT INTO ledger.stocks "
            "(ticker, company_name, abbreviation, description, exchange_id, sector, country, ai_description) "
            "VALUES (%s, %s, %s, %s, %s, %s, %s, %s) RETURNING id",
            (
                stock.ticker, stock.company_name, stock.abbreviation, stock.description,
                stock.exchange_id, stock.sector, stock.country, stock.ai_description,
            ),
        )
        logger.info("Created stock %s (id=%s)", stock.ticker, row["id"])
        return row["id"]

    def update_stock(self, stock: Stock) -> bool:
        rows = self._db.execute(
            "UPDATE ledger.stocks SET ticker = %s, company_name = %s, abbreviation = %s, "
            "description = %s, exchange_id = %s, sector = %s, country = %s, "
            "ai_description = %s, updated_at = NOW() WHERE id = %s RETURNING id",
            (
                stock.ticker, stock.company_name, stock.abbreviation, stock.description,
                stock.exchange_id, stock.sector, stock.country, stock.ai_description,
                stock.id,
            ),
        )
        return bool(rows)

    def delete_stock(self, stock_id: int) -> bool:
        rows = self._db.execute(
            "DELETE FROM ledger.stocks WHERE id = %s RETURNING id", (stock_id,)
        )
        return bool(rows)

    # ------------------------------------------------------------------
    # Financial history
    # ------------------------------------------------------------------

    def get_financials(self, stock_id: int) -> FinancialHistory | None:
        """The stored yearly facts, or None when nothing has been saved yet."""
        row = self._db.execute_one(
            "SELECT data FROM ledger.financials WHERE stock_id = %s", (stock_id,)
        )
        if row is None:
            return None
        return FinancialHistory.from_dict(row["data"] or {})

    def save_financials(self, stock_id: int, history: FinancialHistory) -> None:
        """Replace the stored history for a stock."""
        self._db.execute(
            "INSERT INTO ledger.financials (stock_id, data, updated_at) "
            "VALUES (%s, %s, NOW()) "
            "ON CONFLICT (stock_id) DO UPDATE SET data = EXCLUDED.data, updated_at = NOW()",
            (stock_id, Jsonb(history.to_dict(), dumps=dumps)),
        )
        logger.info("Saved %d years of financials for stock %s", len(history), stock_id)

    # ------------------------------------------------------------------
    # Investment summary
    # ------------------------------------------------------------------

    def get_investment_summary(self, stock_id: int) -> InvestmentSnapshot | None:
        row = self._db.execute_one(
            "SELECT curr_date, current_share_price, past_4q_revenue, past_4q_net_profit, "
            "past_4q_earnings_per_share, stock_type, invest, investment_reasoning "
            "FROM ledger.investment_summaries WHERE stock_id = %s",
            (stock_id,),
        )
        if row is None:
            return None
        return self._row_to_snapshot(row)

    def save_investment_summary(self, stock_id: int, snapshot: InvestmentSnapshot) -> None:
        self._db.execute(
            """
            INSERT INTO ledger.investment_summaries (
                stock_id, curr_date, current_share_price, past_4q_revenue,
                past_4q_net_profit, past_4q_earnings_per_share, stock_type, invest,
                investment_reasoning, updated_at
            ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, NOW())
            ON CONFLICT (stock_id) DO UPDATE SET
                curr_date = EXCLUDED.curr_date,
                current_share_price = EXCLUDED.current_share_price,
                past_4q_revenue = EXCLUDED.past_4q_revenue,
                past_4q_net_profit = EXCLUDED.past_4q_net_profit,
                past_4q_earnings_per_share = EXCLUDED.past_4q_earnings_per_share,
                stock_type = EXCLUDED.stock_type,
                invest = EXCLUDED.invest,
                investment_reasoning = EXCLUDED.investment_reasoning,
                updated_at = NOW()
            """,
            (
                stock_id,
                snapshot.curr_date,
                snapshot.current_share_price,
                snapshot.past_4q_revenue,
                snapshot.past_4q_net_profit,
                snapshot.past_4q_earnings_per_share,
                snapshot.stock_type.value if snapshot.stock_type else None,
                snapshot.invest.value if snapshot.invest else None,
                snapshot.investment_reasoning,
            ),
        )
        logger.info("Saved investment summary for stock %s", stock_id)

    # ------------------------------------------------------------------
    # Prompts and AI responses
    # ------------------------------------------------------------------

    def get_prompts(self) -> dict[str, str]:
        rows = self._db.execute("SELECT id, prompt FROM ledger.prompts ORDER BY id")
        return {r["id"]: r["prompt"] for r in rows}

    def get_prompt_responses(self, stock_id: int) -> dict[str, str]:
        rows = self._db.execute(
            "SELECT prompt_id, response FROM ledger.prompt_responses "
            "WHERE stock_id = %s ORDER BY prompt_id",
            (stock_id,),
        )
        return {r["prompt_id"]: r["response"] for r in rows}

    def save_prompt_response(
        self, stock_id: int, prompt_id: str, response: str, provider: str = "", model: str = ""
    ) -> None:
        self._db.execute(
            "INSERT INTO ledger.prompt_responses (stock_id, prompt_id, response, provider, model) "
            "VALUES (%s, %s, %s, %s, %s) "
            "ON CONFLICT (stock_id, prompt_id) DO UPDATE SET "
            "response = EXCLUDED.response, provider = EXCLUDED.provider, "
            "model = EXCLUDED.model, created_at = NOW()",
            (stock_id, prompt_id, response, provider, model),
        )

    # ------------------------------------------------------------------
    # Reference data
    # ------------------------------------------------------------------

    def get_sectors(self) -> list[str]:
        rows = self._db.execute("SELECT name FROM ledger.sectors ORDER BY name")
        return [r["name"] for r in rows]

    def get_countries(self) -> list[dict]:
        rows = self._db.execute("SELECT code, name FROM ledger.countries ORDER BY name")
        return [{"code": r["code"], "name": r["name"]} for r in rows]

    # ------------------------------------------------------------------
    # Row mappers
    # ------------------------------------------------------------------

    @staticmethod
    def _row_to_exchange(r: dict) -> Exchange:
        return Exchange(
            id=r["id"],
            name=r["name"],
            abbreviation=r["abbreviation"],
            country=r["country"] or "",
        )

    @staticmethod
    def _row_to_stock(r: dict) -> Stock:
        return Stock(
            id=r["id"],
            ticker=r["ticker"],
            company_name=r["company_name"],
            abbreviation=r.get("abbreviation") or "",
            description=r.get("description") or "",
            exchange_id=r.get("exchange_id"),
            sector=r.get("sector") or "",
            country=r.get("country") or "",
            ai_description=r.get("ai_description") or "",
            updated_at=r.get("updated_at"),
        )

    @staticmethod
    def _row_to_snapshot(r: dict) -> InvestmentSnapshot:
        def _dec(v) -> Decimal | None:
            return Decimal(str(v)) if v is not None else None

        return InvestmentSnapshot(
            curr_date=r["curr_date"],
            current_share_price=_dec(r["current_share_price"]),
            past_4q_revenue=_dec(r["past_4q_revenue"]),
            past_4q_net_profit=_dec(r["past_4q_net_profit"]),
            past_4q_earnings_per_share=_dec(r["past_4q_earnings_per_share"]),
            stock_type=StockType(r["stock_type"]) if r["stock_type"] else None,
            invest=InvestmentAction(r["invest"]) if r["invest"] else None,
            investment_reasoning=r["investment_reasoning"] or "",
        )
