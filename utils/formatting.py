"""
Message formatting utilities for Telegram alerts and console output.
"""
from datetime import datetime
from typing import Iterable, List, Mapping, Optional

from core.models import AnomalyEvent, DetectionResult, DetectionStatus, MarketType, MonitorConfig, Ticker24h

SPOT_TRADE_URL = "https://www.mexc.com/exchange/{symbol}"
FUTURES_TRADE_URL = "https://futures.mexc.com/exchange/{symbol}"


def format_volume(amount: float) -> str:
    """Format a volume with a magnitude suffix (K, M, B)."""
    if amount >= 1_000_000_000:
        return f"{amount / 1_000_000_000:.2f}B"
    elif amount >= 1_000_000:
        return f"{amount / 1_000_000:.2f}M"
    elif amount >= 1_000:
        return f"{amount / 1_000:.2f}K"
    else:
        return f"{amount:.2f}"


def format_usd(amount: float) -> str:
    """Format USD amount with appropriate suffix (K, M, B)."""
    return f"${format_volume(amount)}"


def format_timestamp(timestamp: datetime) -> str:
    return timestamp.strftime('%d/%m/%Y, %I:%M:%S %p')


def trading_url(symbol: str, market_type: MarketType) -> str:
    """Exchange page where the symbol can be traded."""
    if market_type == MarketType.FUTURES:
        return FUTURES_TRADE_URL.format(symbol=symbol)
    return SPOT_TRADE_URL.format(symbol=symbol)


def format_anomaly_alert(event: AnomalyEvent) -> str:
    """
    Format an anomaly event into a Telegram message.

    Args:
        event: The detected anomaly

    Returns:
        Plain-text message with emojis
    """
    lines = [
        "🚨 ABNORMAL VOLUME DETECTED 🚨",
        "",
        f"{event.market_type.emoji} Market: {event.market_type.label}",
        f"💰 Symbol: {event.symbol}",
        f"📊 Current volume: {format_usd(event.current_volume)}",
        f"📈 Average volume: {format_usd(event.historical_average)}",
        f"🔥 Multiplier: x{event.multiplier:.2f}",
        "",
        f"🕒 {format_timestamp(event.detected_at)}",
        "",
        f"🔗 Trade: {trading_url(event.symbol, event.market_type)}",
    ]
    return "\n".join(lines)


def format_detection_lines(result: DetectionResult) -> List[str]:
    """Diagnostic lines logged after evaluating a symbol."""
    lines = []
    sample = result.sample

    if sample is not None:
        if sample.volume_24h is not None:
            lines.append(f"  💵 24h volume: {format_usd(sample.volume_24h)}")
        lines.append(f"  📊 Current volume: {format_usd(sample.value)}")
        lines.append(f"  📉 Short-term average: {format_usd(result.short_term_average)}")
        lines.append(f"  📈 Historical average: {format_usd(result.historical_average)}")

    if result.status == DetectionStatus.ANOMALY:
        lines.append(f"  🚨 ANOMALY! Volume is x{result.multiplier:.2f} the average")
    elif result.status == DetectionStatus.NORMAL:
        lines.append(f"  ✅ Normal (x{result.multiplier:.2f})")
    elif result.status == DetectionStatus.ACCUMULATING:
        lines.append(f"  ⏳ Accumulating history... ({result.progress})")
    else:
        lines.append("  ⚠️  No data this cycle")

    return lines


def format_startup_summary(
    config: MonitorConfig,
    market_types: Mapping[str, MarketType],
    alerts_enabled: bool,
) -> List[str]:
    """Startup banner lines: symbol counts, thresholds and the symbol list."""
    futures_count = sum(1 for m in market_types.values() if m == MarketType.FUTURES)
    spot_count = len(market_types) - futures_count

    lines = [
        "🚀 Volume Monitor started",
        "═" * 60,
        f"📊 Symbols: {len(config.symbols)}",
        f"   💰 Spot: {spot_count} | 📈 Futures: {futures_count}",
        f"🔥 Anomaly threshold: x{config.volume_multiplier}",
        f"⏱️  Check interval: {config.poll_interval_ms / 1000:g}s",
        f"📱 Telegram: {'enabled' if alerts_enabled else 'disabled'}",
    ]
    if config.alert_cooldown_seconds > 0:
        lines.append(f"🔕 Alert cooldown: {config.alert_cooldown_seconds:g}s")
    lines.append("═" * 60)

    lines.append("📋 Symbol list:")
    for i, symbol in enumerate(config.symbols, start=1):
        market_type = market_types[symbol]
        lines.append(f"   {i}. {market_type.emoji} {symbol} ({market_type.value})")

    return lines


def format_ticker_table(tickers: Iterable[Ticker24h], numbered: bool = False, width: int = 80) -> str:
    """Render tickers as a fixed-width table for the symbol finder."""
    header = ("#".ljust(5) if numbered else "") + "Symbol".ljust(22) + "24h Volume".ljust(18) + "Change %".ljust(16) + "Price"
    lines = ["═" * width, header, "═" * width]

    for index, ticker in enumerate(tickers, start=1):
        change = ticker.price_change_percent
        change_emoji = "📈" if change > 0 else "📉" if change < 0 else "➡️"
        row = (
            (f"{index}.".ljust(5) if numbered else "")
            + ticker.symbol.ljust(22)
            + format_usd(ticker.quote_volume).ljust(18)
            + f"{change_emoji} {change:.2f}%".ljust(16)
            + f"${ticker.last_price:g}"
        )
        lines.append(row)

    return "\n".join(lines)


def format_symbol_suggestions(symbols: Iterable[str], comment: Optional[str] = None) -> str:
    """Render a SYMBOLS= line ready to paste into .env."""
    symbols = list(symbols)
    lines = []
    if comment:
        lines.append(f"# {comment}")
    lines.append(f"SYMBOLS={','.join(symbols)}")
    return "\n".join(lines)
