"""
Configuration module for Volume Monitor.
Loads environment variables and provides application settings.
"""
from typing import List, Optional

from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.errors import ConfigurationError
from core.market_data import FUTURES_REST_URL, SPOT_REST_URL
from core.market_resolver import parse_market_type_overrides
from core.models import MonitorConfig


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Symbols to monitor, comma separated: "STABLEUSDT,BTC_USDT"
    symbols: str = ""

    # Detection
    volume_multiplier: float = 2.0
    check_interval_ms: int = 60_000
    history_size: int = 24
    # Format: "BTCUSDT:futures,ETH_USDT:spot"
    market_types: str = ""
    baseline_includes_current: bool = True
    alert_cooldown_seconds: float = 0.0

    # Polling
    symbol_delay_ms: int = 1_000
    kline_interval_minutes: int = 5
    kline_limit: int = 12
    request_timeout: float = 10.0

    # Upstream
    spot_rest_url: str = SPOT_REST_URL
    futures_rest_url: str = FUTURES_REST_URL

    # Telegram (optional; alerting is disabled without both)
    # Chat format: "chat_id" or "chat_id:thread_id" for topics
    bot_token: Optional[str] = None
    alert_chat_id: Optional[str] = None
    verify_bot_on_startup: bool = True

    # Shutdown
    shutdown_grace_seconds: float = 5.0

    # Logging
    log_level: str = "INFO"
    log_dir: str = "logs"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @property
    def symbol_list(self) -> List[str]:
        return [s.strip() for s in self.symbols.split(",") if s.strip()]

    @property
    def telegram_configured(self) -> bool:
        return bool(self.bot_token and self.alert_chat_id)

    def to_monitor_config(self) -> MonitorConfig:
        """
        Build the immutable engine configuration.

        Raises:
            ConfigurationError: if symbols are missing or any value is invalid
        """
        symbols = self.symbol_list
        if not symbols:
            raise ConfigurationError(
                "No symbols configured. Set SYMBOLS, e.g. SYMBOLS=STABLEUSDT,BTC_USDT"
            )

        overrides = parse_market_type_overrides(self.market_types)

        try:
            return MonitorConfig(
                symbols=symbols,
                volume_multiplier=self.volume_multiplier,
                poll_interval_ms=self.check_interval_ms,
                history_size=self.history_size,
                market_type_overrides=overrides,
                alert_chat_id=self.alert_chat_id if self.telegram_configured else None,
                symbol_delay_ms=self.symbol_delay_ms,
                kline_interval_minutes=self.kline_interval_minutes,
                kline_limit=self.kline_limit,
                alert_cooldown_seconds=self.alert_cooldown_seconds,
                baseline_includes_current=self.baseline_includes_current,
            )
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
            )
            raise ConfigurationError(f"Invalid configuration: {problems}") from e


def get_settings() -> Settings:
    """Get application settings."""
    try:
        return Settings()
    except ValidationError as e:
        raise ConfigurationError(f"Invalid environment settings: {e}") from e
