"""
Tests for alert and console formatting.
"""
from datetime import datetime

import pytest

from core.models import AnomalyEvent, DetectionResult, DetectionStatus, MarketType, MonitorConfig, Ticker24h
from utils.formatting import (
    format_anomaly_alert,
    format_detection_lines,
    format_startup_summary,
    format_symbol_suggestions,
    format_ticker_table,
    format_usd,
    format_volume,
    trading_url,
)


class TestFormatVolume:

    @pytest.mark.parametrize("amount,expected", [
        (0, "0.00"),
        (999.994, "999.99"),
        (1_000, "1.00K"),
        (2_500, "2.50K"),
        (1_000_000, "1.00M"),
        (12_345_678, "12.35M"),
        (1_000_000_000, "1.00B"),
        (7_250_000_000, "7.25B"),
    ])
    def test_suffixes(self, amount, expected):
        assert format_volume(amount) == expected

    def test_usd_prefix(self):
        assert format_usd(2_500_000) == "$2.50M"


class TestAlertMessage:

    def test_trading_urls(self):
        assert trading_url("BTCUSDT", MarketType.SPOT) == "https://www.mexc.com/exchange/BTCUSDT"
        assert trading_url("BTC_USDT", MarketType.FUTURES) == "https://futures.mexc.com/exchange/BTC_USDT"

    def test_alert_contents(self):
        event = AnomalyEvent(
            symbol="STABLEUSDT",
            market_type=MarketType.SPOT,
            current_volume=2_500,
            historical_average=1_000,
            multiplier=2.5,
            detected_at=datetime(2025, 3, 4, 15, 6, 7),
        )

        message = format_anomaly_alert(event)

        assert "Market: SPOT" in message
        assert "Symbol: STABLEUSDT" in message
        assert "Current volume: $2.50K" in message
        assert "Average volume: $1.00K" in message
        assert "Multiplier: x2.50" in message
        assert "04/03/2025, 03:06:07 PM" in message
        assert "https://www.mexc.com/exchange/STABLEUSDT" in message


class TestConsoleLines:

    def test_accumulating_progress(self):
        result = DetectionResult(
            symbol="X",
            market_type=MarketType.SPOT,
            status=DetectionStatus.ACCUMULATING,
            history_size=2,
            history_capacity=24,
        )
        assert format_detection_lines(result)[-1].strip() == "⏳ Accumulating history... (2/24)"

    def test_startup_summary_counts(self):
        config = MonitorConfig(symbols=["A", "B_USDT", "C_USDT"], alert_cooldown_seconds=300)
        market_types = {"A": MarketType.SPOT, "B_USDT": MarketType.FUTURES, "C_USDT": MarketType.FUTURES}

        text = "\n".join(format_startup_summary(config, market_types, alerts_enabled=False))

        assert "Spot: 1 | 📈 Futures: 2" in text
        assert "Telegram: disabled" in text
        assert "Alert cooldown: 300s" in text
        assert "3. 📈 C_USDT (futures)" in text

    def test_ticker_table(self):
        tickers = [Ticker24h(symbol="ABCUSDT", market_type=MarketType.SPOT, quote_volume=120_000, price_change_percent=-3.2, last_price=0.5)]
        table = format_ticker_table(tickers, numbered=True)
        assert "1.   ABCUSDT" in table
        assert "$120.00K" in table
        assert "📉 -3.20%" in table

    def test_symbol_suggestions(self):
        assert format_symbol_suggestions(["A", "B"]) == "SYMBOLS=A,B"
