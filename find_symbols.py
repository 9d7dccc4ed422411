#!/usr/bin/env python3
"""
Find MEXC symbols worth monitoring.

Usage:
    python find_symbols.py spot suggest
    python find_symbols.py futures top 20
    python find_symbols.py spot lowcap
    python find_symbols.py futures volatile 8
"""
import argparse
import asyncio
import logging
import sys

from core.market_data import MarketDataRouter
from core.models import MarketType
from core.symbol_finder import SymbolFinder
from utils.formatting import format_symbol_suggestions, format_ticker_table

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Screen MEXC tickers for volume monitoring candidates")
    parser.add_argument("market", choices=[m.value for m in MarketType], help="market to screen")
    parser.add_argument(
        "command",
        nargs="?",
        default="suggest",
        choices=["suggest", "top", "lowcap", "volatile"],
        help="screen to run (default: suggest)",
    )
    parser.add_argument(
        "value",
        nargs="?",
        type=float,
        help="row limit for 'top', minimum %% change for 'volatile'",
    )
    return parser


async def run(args: argparse.Namespace) -> int:
    market_type = MarketType(args.market)
    data_source = MarketDataRouter()
    finder = SymbolFinder(data_source)

    try:
        if args.command == "top":
            limit = int(args.value) if args.value else 30
            tickers = await finder.top_volume(market_type, limit)
            print(f"\n💰 Top {len(tickers)} {market_type.label} symbols by 24h volume\n")
            print(format_ticker_table(tickers, numbered=True))

        elif args.command == "lowcap":
            tickers = await finder.low_cap(market_type)
            print(f"\n🔍 {len(tickers)} low-cap {market_type.label} symbols\n")
            print(format_ticker_table(tickers))

        elif args.command == "volatile":
            tickers = await finder.high_volatility(market_type, args.value)
            print(f"\n🔥 {len(tickers)} high-volatility {market_type.label} symbols\n")
            print(format_ticker_table(tickers))

        else:
            symbols = await finder.suggest(market_type)
            print(f"\n🎯 Suggested {market_type.label} symbols for monitoring:\n")
            print(format_symbol_suggestions(symbols, comment=f"{market_type.label} suggestions"))
            if market_type == MarketType.FUTURES:
                print("\n💡 Mix with spot pairs for the full picture, e.g. SYMBOLS=BTCUSDT,BTC_USDT")
            tickers = symbols

    finally:
        await data_source.close()

    return 0 if tickers else 1


if __name__ == "__main__":
    sys.exit(asyncio.run(run(build_parser().parse_args())))
