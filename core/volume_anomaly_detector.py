"""
Volume Anomaly Detector

Compares the most recent completed candle's quote volume against the
rolling per-symbol history and flags it when it reaches
`threshold` times the historical average.

By default the new sample is pushed into the history before the average
is taken, so it takes part in its own baseline. Set
`baseline_includes_current=False` to compare against prior samples only.
"""
import logging
from datetime import datetime
from typing import Optional, Sequence

from core.models import AnomalyEvent, DetectionResult, DetectionStatus, MarketType, VolumeSample
from core.volume_history import VolumeHistory

logger = logging.getLogger(__name__)


def coerce_volume(value) -> float:
    """Convert an upstream volume figure to a non-negative float (0.0 if malformed)."""
    try:
        volume = float(value)
    except (TypeError, ValueError):
        return 0.0
    if volume != volume or volume < 0 or volume == float("inf"):
        return 0.0
    return volume


class VolumeAnomalyDetector:
    """Decide whether a fresh volume sample is anomalous relative to its history."""

    def __init__(self, threshold: float = 2.0, baseline_includes_current: bool = True):
        if threshold < 1:
            raise ValueError("threshold must be >= 1")
        self.threshold = threshold
        self.baseline_includes_current = baseline_includes_current

    def evaluate(
        self,
        symbol: str,
        market_type: MarketType,
        recent_volumes: Sequence,
        history: VolumeHistory,
        volume_24h: Optional[float] = None,
        observed_at: Optional[datetime] = None,
    ) -> DetectionResult:
        """
        Evaluate the latest candle volume and update the symbol's history.

        Args:
            symbol: Symbol being evaluated
            market_type: Market the volumes come from
            recent_volumes: Per-interval quote volumes, oldest first
            history: The symbol's rolling history (mutated: one push)
            volume_24h: Optional 24h volume, carried on the sample for display
            observed_at: Observation time (defaults to now)

        Returns:
            DetectionResult. Series shorter than two entries yield
            UNAVAILABLE and leave the history untouched.
        """
        observed_at = observed_at or datetime.now()

        if recent_volumes is None or len(recent_volumes) < 2:
            return DetectionResult(
                symbol=symbol,
                market_type=market_type,
                status=DetectionStatus.UNAVAILABLE,
                history_size=history.size(),
                history_capacity=history.capacity,
            )

        volumes = [coerce_volume(v) for v in recent_volumes]
        current_volume = volumes[-1]
        previous = volumes[:-1]
        short_term_average = sum(previous) / len(previous)

        if self.baseline_includes_current:
            history.push(current_volume)
            historical_average = history.average()
        else:
            historical_average = history.average()
            history.push(current_volume)

        sample = VolumeSample(value=current_volume, timestamp=observed_at, volume_24h=volume_24h)

        result = DetectionResult(
            symbol=symbol,
            market_type=market_type,
            status=DetectionStatus.ACCUMULATING,
            sample=sample,
            short_term_average=short_term_average,
            historical_average=historical_average,
            history_size=history.size(),
            history_capacity=history.capacity,
        )

        if historical_average <= 0:
            return result

        multiplier = current_volume / historical_average
        result.multiplier = multiplier

        if multiplier >= self.threshold:
            result.status = DetectionStatus.ANOMALY
            result.event = AnomalyEvent(
                symbol=symbol,
                market_type=market_type,
                current_volume=current_volume,
                historical_average=historical_average,
                multiplier=multiplier,
                detected_at=observed_at,
            )
        else:
            result.status = DetectionStatus.NORMAL

        return result
