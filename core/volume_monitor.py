"""
Volume monitor loop.

Polls every configured symbol in order, feeds the latest candle volume to
the anomaly detector and sends an alert when it fires. One symbol's
failure never stops the cycle or the loop.
"""
import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional

from bot.notifier import Notifier
from core.market_data import MarketDataRouter
from core.market_resolver import resolve_market_type
from core.models import DataUnavailable, DetectionResult, DetectionStatus, MarketType, MonitorConfig
from core.scheduler import Scheduler
from core.volume_anomaly_detector import VolumeAnomalyDetector
from core.volume_history import VolumeHistory
from utils.formatting import format_detection_lines, format_startup_summary
from utils.logging_config import log_anomaly

logger = logging.getLogger(__name__)


class VolumeMonitor:
    """Sequential polling loop over the configured symbols."""

    def __init__(
        self,
        config: MonitorConfig,
        data_source: MarketDataRouter,
        notifier: Optional[Notifier] = None,
        detector: Optional[VolumeAnomalyDetector] = None,
        scheduler: Optional[Scheduler] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.config = config
        self.data_source = data_source
        self.notifier = notifier
        self.detector = detector or VolumeAnomalyDetector(
            threshold=config.volume_multiplier,
            baseline_includes_current=config.baseline_includes_current,
        )
        self.scheduler = scheduler or Scheduler()
        self._clock = clock

        # Resolved once; configuration is immutable for the process lifetime
        self.market_types: Dict[str, MarketType] = {
            symbol: resolve_market_type(symbol, config.market_type_overrides)
            for symbol in config.symbols
        }
        self.histories: Dict[str, VolumeHistory] = {
            symbol: VolumeHistory(config.history_size) for symbol in config.symbols
        }
        self._last_alert_at: Dict[str, datetime] = {}
        self.cycles_completed = 0

    @property
    def alerts_enabled(self) -> bool:
        return self.notifier is not None

    @property
    def running(self) -> bool:
        return not self.scheduler.cancelled

    def log_startup_summary(self):
        for line in format_startup_summary(self.config, self.market_types, self.alerts_enabled):
            logger.info(line)

    def stop(self):
        """Request the loop to stop; interrupts any pending sleep."""
        if not self.scheduler.cancelled:
            logger.info("Stopping volume monitor...")
        self.scheduler.cancel()

    async def run(self):
        """Run cycles until stop() is called."""
        logger.info("▶️  Starting monitoring loop")

        while self.running:
            await self.run_cycle()

            if not self.running:
                break

            interval = self.config.poll_interval_ms / 1000
            logger.info(f"⏳ Next check in {interval:g}s...")
            if await self.scheduler.sleep(interval):
                break

        logger.info(f"Monitoring loop stopped after {self.cycles_completed} cycle(s)")

    async def run_cycle(self) -> List[DetectionResult]:
        """
        Check every symbol once, in configuration order.

        Returns:
            Results for the symbols that were evaluated (symbols whose check
            raised unexpectedly are omitted)
        """
        logger.info("═" * 60)
        logger.info(f"⏰ Cycle {self.cycles_completed + 1} at {self._clock().strftime('%Y-%m-%d %H:%M:%S')}")
        logger.info("═" * 60)

        results = []
        delay = self.config.symbol_delay_ms / 1000

        for index, symbol in enumerate(self.config.symbols):
            if not self.running:
                logger.info(f"Cycle interrupted after {index}/{len(self.config.symbols)} symbols")
                break

            try:
                results.append(await self.check_symbol(symbol))
            except Exception as e:
                logger.error(f"Unexpected error checking {symbol}: {e}", exc_info=True)

            if index < len(self.config.symbols) - 1:
                await self.scheduler.sleep(delay)
        else:
            # Only cycles that visited every symbol count
            self.cycles_completed += 1

        return results

    async def check_symbol(self, symbol: str) -> DetectionResult:
        """Fetch, evaluate and (if anomalous) alert for one symbol."""
        market_type = self.market_types[symbol]
        history = self.histories[symbol]

        logger.info(f"🔍 Checking {market_type.emoji} {symbol} ({market_type.value})...")

        volumes = await self.data_source.fetch_recent_volume_series(
            symbol,
            market_type,
            interval_minutes=self.config.kline_interval_minutes,
            count=self.config.kline_limit,
        )
        if isinstance(volumes, DataUnavailable):
            logger.warning(f"  ⚠️  Skipping {symbol} this cycle: {volumes.reason}")
            return DetectionResult(
                symbol=symbol,
                market_type=market_type,
                status=DetectionStatus.UNAVAILABLE,
                history_size=history.size(),
                history_capacity=history.capacity,
            )

        volume_24h = await self.data_source.fetch_24h_volume(symbol, market_type)
        if isinstance(volume_24h, DataUnavailable):
            volume_24h = None

        now = self._clock()
        result = self.detector.evaluate(
            symbol,
            market_type,
            volumes,
            history,
            volume_24h=volume_24h,
            observed_at=now,
        )

        for line in format_detection_lines(result):
            logger.info(line)

        if result.is_anomaly:
            log_anomaly(result.event)
            await self._dispatch_alert(result, now)

        return result

    async def _dispatch_alert(self, result: DetectionResult, now: datetime):
        if self.notifier is None:
            return

        symbol = result.symbol
        cooldown = self.config.alert_cooldown_seconds
        last_alert = self._last_alert_at.get(symbol)
        if cooldown > 0 and last_alert is not None and (now - last_alert).total_seconds() < cooldown:
            logger.info(f"  🔕 Alert for {symbol} suppressed (cooldown {cooldown:g}s)")
            return

        if await self.notifier.notify_anomaly(result.event):
            self._last_alert_at[symbol] = now
