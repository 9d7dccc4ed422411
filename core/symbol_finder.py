"""
Symbol screener for picking monitoring candidates.

Ranks the exchange's USDT-quoted spot pairs or futures contracts by 24h
volume and price change.
"""
import logging
from typing import Dict, List, Sequence

from core.market_data import MarketDataRouter
from core.models import DataUnavailable, MarketType, Ticker24h

logger = logging.getLogger(__name__)

# Screening defaults per market: futures turnover runs much higher than spot
SCREEN_DEFAULTS: Dict[MarketType, Dict[str, float]] = {
    MarketType.SPOT: {
        "low_cap_min": 50_000,
        "low_cap_max": 500_000,
        "volatile_min_change": 10.0,
        "volatile_min_volume": 10_000,
    },
    MarketType.FUTURES: {
        "low_cap_min": 100_000,
        "low_cap_max": 1_000_000,
        "volatile_min_change": 5.0,
        "volatile_min_volume": 100_000,
    },
}


def top_by_volume(tickers: Sequence[Ticker24h], limit: int = 30) -> List[Ticker24h]:
    return sorted(tickers, key=lambda t: t.quote_volume, reverse=True)[:limit]


def low_cap(tickers: Sequence[Ticker24h], min_volume: float, max_volume: float, limit: int = 30) -> List[Ticker24h]:
    """Thin markets: 24h volume within [min_volume, max_volume], largest first."""
    selected = [t for t in tickers if min_volume <= t.quote_volume <= max_volume]
    return top_by_volume(selected, limit)


def high_volatility(
    tickers: Sequence[Ticker24h], min_change_percent: float, min_volume: float, limit: int = 30
) -> List[Ticker24h]:
    """Biggest absolute 24h movers with at least `min_volume` traded."""
    selected = [
        t for t in tickers
        if abs(t.price_change_percent) >= min_change_percent and t.quote_volume > min_volume
    ]
    return sorted(selected, key=lambda t: abs(t.price_change_percent), reverse=True)[:limit]


def unique_symbols(groups: Sequence[Sequence[Ticker24h]], limit: int = 10) -> List[str]:
    """Merge ticker groups into an ordered, de-duplicated symbol list."""
    seen: List[str] = []
    for group in groups:
        for ticker in group:
            if ticker.symbol not in seen:
                seen.append(ticker.symbol)
    return seen[:limit]


class SymbolFinder:
    """Fetches all tickers for a market and applies the screens above."""

    def __init__(self, data_source: MarketDataRouter, quote_asset: str = "USDT"):
        self.data_source = data_source
        self.quote_asset = quote_asset

    async def tickers(self, market_type: MarketType) -> List[Ticker24h]:
        """All tickers quoted in `quote_asset` (empty list if unavailable)."""
        result = await self.data_source.fetch_all_tickers(market_type)
        if isinstance(result, DataUnavailable):
            logger.error(f"Could not load {market_type.label} tickers: {result.reason}")
            return []
        return [t for t in result if t.symbol.endswith(self.quote_asset)]

    async def top_volume(self, market_type: MarketType, limit: int = 30) -> List[Ticker24h]:
        return top_by_volume(await self.tickers(market_type), limit)

    async def low_cap(self, market_type: MarketType, min_volume=None, max_volume=None, limit: int = 30) -> List[Ticker24h]:
        defaults = SCREEN_DEFAULTS[market_type]
        return low_cap(
            await self.tickers(market_type),
            defaults["low_cap_min"] if min_volume is None else min_volume,
            defaults["low_cap_max"] if max_volume is None else max_volume,
            limit,
        )

    async def high_volatility(self, market_type: MarketType, min_change_percent=None, limit: int = 30) -> List[Ticker24h]:
        defaults = SCREEN_DEFAULTS[market_type]
        return high_volatility(
            await self.tickers(market_type),
            defaults["volatile_min_change"] if min_change_percent is None else min_change_percent,
            defaults["volatile_min_volume"],
            limit,
        )

    async def suggest(self, market_type: MarketType, limit: int = 10) -> List[str]:
        """
        Suggest symbols worth monitoring.

        Spot: thin pairs (easy to move) plus the strongest movers.
        Futures: a few liquid contracts, movers and thin contracts.
        """
        tickers = await self.tickers(market_type)
        defaults = SCREEN_DEFAULTS[market_type]

        if market_type == MarketType.SPOT:
            groups = [
                low_cap(tickers, 50_000, 300_000)[:5],
                high_volatility(tickers, 15.0, defaults["volatile_min_volume"])[:5],
            ]
        else:
            groups = [
                top_by_volume(tickers, 3),
                high_volatility(tickers, 10.0, defaults["volatile_min_volume"])[:3],
                low_cap(tickers, 100_000, 500_000)[:4],
            ]

        return unique_symbols(groups, limit)
