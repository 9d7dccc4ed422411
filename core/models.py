"""
Pydantic models for Volume Monitor data structures.
"""
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Candle intervals available on both MEXC spot and futures
KLINE_INTERVALS_MINUTES = (1, 5, 15, 30, 60)


class MarketType(str, Enum):
    """Market type enumeration."""
    SPOT = "spot"
    FUTURES = "futures"

    @property
    def label(self) -> str:
        return self.value.upper()

    @property
    def emoji(self) -> str:
        return "📈" if self is MarketType.FUTURES else "💰"


class DetectionStatus(str, Enum):
    """Outcome of evaluating one symbol in one cycle."""
    ANOMALY = "anomaly"
    NORMAL = "normal"
    ACCUMULATING = "accumulating"  # not enough history for a baseline yet
    UNAVAILABLE = "unavailable"


class VolumeSample(BaseModel):
    """A single volume observation (quote currency)."""
    value: float = Field(ge=0)
    timestamp: datetime
    volume_24h: Optional[float] = None  # informational only


class AnomalyEvent(BaseModel):
    """Abnormal volume detected for a symbol. Produced and consumed within one cycle."""
    symbol: str
    market_type: MarketType
    current_volume: float
    historical_average: float
    multiplier: float
    detected_at: datetime


class DetectionResult(BaseModel):
    """Result of AnomalyDetector.evaluate for one symbol."""
    symbol: str
    market_type: MarketType
    status: DetectionStatus
    sample: Optional[VolumeSample] = None
    short_term_average: float = 0.0
    historical_average: float = 0.0
    multiplier: Optional[float] = None
    history_size: int = 0
    history_capacity: int = 0
    event: Optional[AnomalyEvent] = None

    @property
    def is_anomaly(self) -> bool:
        return self.status == DetectionStatus.ANOMALY

    @property
    def progress(self) -> str:
        """History accumulation progress, e.g. '3/24'."""
        return f"{self.history_size}/{self.history_capacity}"


class Ticker24h(BaseModel):
    """24-hour ticker summary normalized across spot and futures."""
    symbol: str
    market_type: MarketType
    quote_volume: float = 0.0
    price_change_percent: float = 0.0
    last_price: float = 0.0


class DataUnavailable(BaseModel):
    """Upstream data could not be fetched or parsed for a symbol this cycle."""
    symbol: str
    market_type: MarketType
    reason: str


class MonitorConfig(BaseModel):
    """Immutable engine configuration, built once at startup."""
    model_config = ConfigDict(frozen=True)

    symbols: List[str] = Field(min_length=1)
    volume_multiplier: float = Field(default=2.0, ge=1.0)
    poll_interval_ms: int = Field(default=60_000, gt=0)
    history_size: int = Field(default=24, gt=0)
    market_type_overrides: Dict[str, MarketType] = Field(default_factory=dict)
    alert_chat_id: Optional[str] = None

    symbol_delay_ms: int = Field(default=1_000, ge=0)
    kline_interval_minutes: int = Field(default=5, gt=0)
    kline_limit: int = Field(default=12, ge=2)
    alert_cooldown_seconds: float = Field(default=0.0, ge=0)
    baseline_includes_current: bool = True

    @field_validator("symbols")
    @classmethod
    def _validate_symbols(cls, symbols: List[str]) -> List[str]:
        cleaned = [s.strip() for s in symbols if s and s.strip()]
        if not cleaned:
            raise ValueError("at least one symbol is required")
        duplicates = sorted({s for s in cleaned if cleaned.count(s) > 1})
        if duplicates:
            raise ValueError(f"duplicate symbols: {', '.join(duplicates)}")
        return cleaned

    @field_validator("kline_interval_minutes")
    @classmethod
    def _validate_interval(cls, minutes: int) -> int:
        if minutes not in KLINE_INTERVALS_MINUTES:
            allowed = ", ".join(str(m) for m in KLINE_INTERVALS_MINUTES)
            raise ValueError(f"kline interval must be one of {allowed} minutes")
        return minutes
