"""CLI entry point for stockledger.

Commands:
  - migrate: Run database migrations
  - stocks / add-stock: List or register stocks
  - show / chart / summary: Derived tables, chart series and the investment summary
  - import / export / set-summary: Move financial history and snapshots in and out as JSON
  - refresh-price: Update the snapshot's share price from Yahoo Finance
  - prompts / commentary: AI commentary prompts and generation
"""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import json
import logging
import sys
from datetime import date
from pathlib import Path

from stockledger.config import load_config
from stockledger.formatting import render_chart_series, render_financial_table, render_summary
from stockledger.metrics.deriver import derive_history
from stockledger.metrics.snapshot import evaluate
from stockledger.models.financials import FinancialHistory, dumps
from stockledger.models.investment import InvestmentSnapshot
from stockledger.models.stock import Stock
from stockledger.registry.db import Database
from stockledger.registry.queries import Registry


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _open_registry() -> Registry:
    config = load_config()
    db = Database(config.db_dsn)
    db.connect()
    return Registry(db)


def _require_stock(registry: Registry, ticker: str) -> Stock:
    stock = registry.get_stock_by_ticker(ticker)
    if stock is None:
        print(f"Unknown ticker: {ticker}", file=sys.stderr)
        sys.exit(1)
    return stock


def _load_history(registry: Registry, stock: Stock) -> FinancialHistory:
    return registry.get_financials(stock.id) or FinancialHistory()


def _read_json(path: str) -> dict:
    data = json.loads(Path(path).read_text())
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a JSON object")
    return data


def cmd_migrate(args: argparse.Namespace) -> None:
    """Run database migrations."""
    config = load_config()
    db = Database(config.db_dsn)
    db.connect()
    applied = db.run_migrations()
    if applied:
        print(f"Applied: {', '.join(applied)}")
    print("Migrations complete.")


def cmd_stocks(args: argparse.Namespace) -> None:
    registry = _open_registry()
    stocks = registry.list_stocks()
    if not stocks:
        print("No stocks registered.")
        return
    for s in stocks:
        print(f"  {s.ticker:10s} {s.company_name:40s} {s.country:16s} {s.sector}")


def cmd_add_stock(args: argparse.Namespace) -> None:
    registry = _open_registry()
    if registry.get_stock_by_ticker(args.ticker) is not None:
        print(f"Stock {args.ticker} already exists.", file=sys.stderr)
        sys.exit(1)
    stock_id = registry.create_stock(
        Stock(
            ticker=args.ticker.upper(),
            company_name=args.name,
            abbreviation=args.abbreviation,
            sector=args.sector,
            country=args.country,
        )
    )
    print(f"Created {args.ticker.upper()} (id={stock_id})")


def cmd_show(args: argparse.Namespace) -> None:
    """Print the derived yearly table with a change row per metric."""
    registry = _open_registry()
    stock = _require_stock(registry, args.ticker)
    history = _load_history(registry, stock)
    if not len(history):
        print(f"No financial data for {stock.ticker}.")
        return
    print(f"{stock.ticker} - {stock.company_name}")
    for line in render_financial_table(derive_history(history)):
        print(line)


def cmd_chart(args: argparse.Namespace) -> None:
    registry = _open_registry()
    stock = _require_stock(registry, args.ticker)
    history = _load_history(registry, stock)
    for line in render_chart_series(derive_history(history)):
        print(line)


def cmd_summary(args: argparse.Namespace) -> None:
    """Print the investment snapshot and its comparison against history."""
    registry = _open_registry()
    stock = _require_stock(registry, args.ticker)
    snapshot = registry.get_investment_summary(stock.id) or InvestmentSnapshot()
    records = derive_history(_load_history(registry, stock))
    print(f"{stock.ticker} - {stock.company_name}")
    for line in render_summary(snapshot, evaluate(snapshot, records)):
        print(line)


def cmd_import(args: argparse.Namespace) -> None:
    """Replace a stock's financial history from a {year: {field: number}} JSON file."""
    registry = _open_registry()
    stock = _require_stock(registry, args.ticker)
    history = FinancialHistory.from_dict(_read_json(args.file))
    registry.save_financials(stock.id, history)
    print(f"Imported {len(history)} years for {stock.ticker}: {', '.join(history.years)}")


def cmd_export(args: argparse.Namespace) -> None:
    registry = _open_registry()
    stock = _require_stock(registry, args.ticker)
    text = dumps(_load_history(registry, stock).to_dict(), indent=2)
    if args.output:
        Path(args.output).write_text(text + "\n")
        print(f"Wrote {args.output}")
    else:
        print(text)


def cmd_set_summary(args: argparse.Namespace) -> None:
    registry = _open_registry()
    stock = _require_stock(registry, args.ticker)
    snapshot = InvestmentSnapshot.from_dict(_read_json(args.file))
    registry.save_investment_summary(stock.id, snapshot)
    print(f"Saved investment summary for {stock.ticker}")


def cmd_refresh_price(args: argparse.Namespace) -> None:
    """Fetch the current share price and store it on the snapshot."""
    from stockledger.data.price_feed import PriceFeed

    config = load_config()
    db = Database(config.db_dsn)
    db.connect()
    registry = Registry(db)
    stock = _require_stock(registry, args.ticker)

    price = PriceFeed(cache_minutes=config.price_cache_minutes).get_stock_price(stock)
    if price is None:
        print(f"Could not fetch a price for {stock.ticker}.", file=sys.stderr)
        sys.exit(1)

    snapshot = registry.get_investment_summary(stock.id) or InvestmentSnapshot()
    snapshot = dataclasses.replace(snapshot, current_share_price=price, curr_date=date.today())
    registry.save_investment_summary(stock.id, snapshot)
    print(f"{stock.ticker}: {price}")


def cmd_prompts(args: argparse.Namespace) -> None:
    registry = _open_registry()
    prompts = registry.get_prompts()
    responses: dict[str, str] = {}
    if args.ticker:
        responses = registry.get_prompt_responses(_require_stock(registry, args.ticker).id)
    for prompt_id, prompt in prompts.items():
        print(f"{prompt_id} - {prompt}")
        if args.ticker:
            print(f"    {responses.get(prompt_id) or '(no response yet)'}")


def cmd_commentary(args: argparse.Namespace) -> None:
    """Generate AI commentary for one prompt, or every unanswered prompt with --all."""
    from stockledger.commentary.gateway import LLMGateway
    from stockledger.commentary.service import CommentaryService

    config = load_config()
    db = Database(config.db_dsn)
    db.connect()
    registry = Registry(db)
    stock = _require_stock(registry, args.ticker)
    history = _load_history(registry, stock)

    if not args.all and not args.prompt_id:
        print("Give a PROMPT_ID or --all.", file=sys.stderr)
        sys.exit(2)

    gateway = LLMGateway.from_config(config)
    service = CommentaryService(
        registry,
        gateway,
        provider=args.provider or config.commentary_provider,
        model=config.commentary_model or None,
        max_tokens=config.commentary_max_tokens,
    )

    async def _run() -> dict[str, str]:
        await gateway.start()
        try:
            if args.all:
                return await service.generate_missing(stock.id, history)
            text = await service.generate(stock.id, args.prompt_id, history)
            return {args.prompt_id: text}
        finally:
            await gateway.close()

    try:
        results = asyncio.run(_run())
    except KeyError as e:
        print(f"Unknown prompt: {e.args[0]}", file=sys.stderr)
        sys.exit(1)

    if not results:
        print("All prompts already have responses.")
    for prompt_id, text in results.items():
        print(f"[{prompt_id}]\n{text}\n")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="stockledger",
        description="Financial-statement ledger with derived metrics and investment screening",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")

    subs = parser.add_subparsers(dest="command", required=True)

    subs.add_parser("migrate", help="Run database migrations")
    subs.add_parser("stocks", help="List registered stocks")

    p_add = subs.add_parser("add-stock", help="Register a stock")
    p_add.add_argument("ticker")
    p_add.add_argument("name", help="Company name")
    p_add.add_argument("--abbreviation", default="")
    p_add.add_argument("--sector", default="")
    p_add.add_argument("--country", default="")

    for name, help_text in (
        ("show", "Derived financial table with yearly changes"),
        ("chart", "Share price / EPS and revenue / profit series"),
        ("summary", "Investment snapshot and screening ratios"),
    ):
        p = subs.add_parser(name, help=help_text)
        p.add_argument("ticker")

    p_import = subs.add_parser("import", help="Replace financial history from a JSON file")
    p_import.add_argument("ticker")
    p_import.add_argument("file")

    p_export = subs.add_parser("export", help="Write financial history as JSON")
    p_export.add_argument("ticker")
    p_export.add_argument("-o", "--output", help="Output file (default: stdout)")

    p_summary = subs.add_parser("set-summary", help="Save the investment snapshot from a JSON file")
    p_summary.add_argument("ticker")
    p_summary.add_argument("file")

    p_price = subs.add_parser("refresh-price", help="Update the current share price")
    p_price.add_argument("ticker")

    p_prompts = subs.add_parser("prompts", help="List AI prompts (and responses for a ticker)")
    p_prompts.add_argument("ticker", nargs="?")

    p_comm = subs.add_parser("commentary", help="Generate AI commentary")
    p_comm.add_argument("ticker")
    p_comm.add_argument("prompt_id", nargs="?")
    p_comm.add_argument("--all", action="store_true", help="Answer every prompt without a response")
    p_comm.add_argument("--provider", help="Override COMMENTARY_PROVIDER")

    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    commands = {
        "migrate": cmd_migrate,
        "stocks": cmd_stocks,
        "add-stock": cmd_add_stock,
        "show": cmd_show,
        "chart": cmd_chart,
        "summary": cmd_summary,
        "import": cmd_import,
        "export": cmd_export,
        "set-summary": cmd_set_summary,
        "refresh-price": cmd_refresh_price,
        "prompts": cmd_prompts,
        "commentary": cmd_commentary,
    }
    commands[args.command](args)


if __name__ == "__main__":
    main()
