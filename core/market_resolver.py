"""
Market type resolution for configured symbols.

Futures contracts on MEXC are written with an underscore (BTC_USDT),
spot pairs without one (BTCUSDT). An explicit override always wins.
"""
import logging
from typing import Dict, Mapping, Optional

from core.errors import ConfigurationError
from core.models import MarketType

logger = logging.getLogger(__name__)

FUTURES_SEPARATOR = "_"


def resolve_market_type(symbol: str, overrides: Optional[Mapping[str, MarketType]] = None) -> MarketType:
    """
    Determine the market type for a symbol.

    Args:
        symbol: Symbol as configured (e.g. "BTCUSDT" or "BTC_USDT")
        overrides: Optional explicit symbol -> market type mapping

    Returns:
        MarketType.FUTURES or MarketType.SPOT
    """
    if overrides and symbol in overrides:
        return MarketType(overrides[symbol])

    if FUTURES_SEPARATOR in symbol:
        return MarketType.FUTURES

    return MarketType.SPOT


def parse_market_type_overrides(raw: Optional[str]) -> Dict[str, MarketType]:
    """
    Parse overrides from a config string.

    Format: "BTCUSDT:futures,ETH_USDT:spot"
    """
    overrides: Dict[str, MarketType] = {}
    if not raw:
        return overrides

    for entry in raw.split(","):
        entry = entry.strip()
        if not entry:
            continue

        if ":" not in entry:
            raise ConfigurationError(f"Invalid market type override '{entry}' (expected SYMBOL:spot|futures)")

        symbol, market = entry.split(":", 1)
        symbol = symbol.strip()
        market = market.strip().lower()

        try:
            overrides[symbol] = MarketType(market)
        except ValueError:
            raise ConfigurationError(f"Unknown market type '{market}' for {symbol}") from None

    logger.debug(f"Parsed {len(overrides)} market type overrides")
    return overrides
