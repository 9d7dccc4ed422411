"""
Volume Monitor - Main Entry Point
Watches MEXC spot and futures candle volumes and alerts on anomalies.
"""
import asyncio
import logging
import signal
import sys
from typing import Optional

from aiogram import Bot

from bot.notifier import Notifier
from config import Settings, get_settings
from core.errors import ConfigurationError, StartupDependencyFailure
from core.market_data import MarketDataRouter
from core.volume_monitor import VolumeMonitor
from utils.logging_config import setup_logging

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_CONFIG = 2


class VolumeMonitorApp:
    """Main application wiring settings, data source, notifier and monitor loop."""

    def __init__(self, settings: Settings):
        """Validate settings and prepare components."""
        self.settings = settings
        self.config = settings.to_monitor_config()

        self.data_source: Optional[MarketDataRouter] = None
        self.notifier: Optional[Notifier] = None
        self.monitor: Optional[VolumeMonitor] = None

        self._task: Optional[asyncio.Task] = None
        self._grace_handle: Optional[asyncio.TimerHandle] = None

    async def setup(self):
        """Setup all components."""
        logger.info("Setting up Volume Monitor...")

        self.data_source = MarketDataRouter(
            spot_url=self.settings.spot_rest_url,
            futures_url=self.settings.futures_rest_url,
            request_timeout=self.settings.request_timeout,
        )
        self.notifier = await self._create_notifier()
        self.monitor = VolumeMonitor(self.config, self.data_source, self.notifier)
        self.monitor.log_startup_summary()

        logger.info("Setup complete!")

    async def _create_notifier(self) -> Optional[Notifier]:
        """
        Build the Telegram notifier if credentials are configured.

        Raises:
            StartupDependencyFailure: if credentials are supplied but the bot
                cannot be created or reached
        """
        if not self.settings.telegram_configured:
            if self.settings.bot_token or self.settings.alert_chat_id:
                logger.warning("Telegram alerts need both BOT_TOKEN and ALERT_CHAT_ID; alerts disabled")
            else:
                logger.info("Telegram not configured; alerts disabled")
            return None

        try:
            bot = Bot(token=self.settings.bot_token)
        except Exception as e:
            raise StartupDependencyFailure(f"Could not create Telegram bot: {e}") from e

        try:
            notifier = Notifier(bot, self.config.alert_chat_id)
            if self.settings.verify_bot_on_startup:
                me = await bot.get_me()
                logger.info(f"Telegram bot @{me.username} ready")
        except ConfigurationError:
            await bot.session.close()
            raise
        except Exception as e:
            await bot.session.close()
            raise StartupDependencyFailure(f"Telegram bot check failed: {e}") from e

        return notifier

    async def start(self):
        """Run the monitor loop until stopped, then shut down."""
        logger.info("Starting Volume Monitor...")
        self._install_signal_handlers()

        self._task = asyncio.create_task(self.monitor.run(), name="volume_monitor")
        try:
            await self._task
        except asyncio.CancelledError:
            logger.info("Monitoring task cancelled")
        finally:
            await self.shutdown()

    def request_stop(self, reason: str = "stop requested"):
        """Stop accepting new cycles and give in-flight I/O a grace period."""
        if self.monitor is None or not self.monitor.running:
            return

        logger.info(f"👋 {reason}, stopping monitor...")
        self.monitor.stop()

        if self._task is not None and not self._task.done():
            loop = asyncio.get_running_loop()
            self._grace_handle = loop.call_later(self.settings.shutdown_grace_seconds, self._cancel_task)

    def _cancel_task(self):
        if self._task is not None and not self._task.done():
            logger.warning(f"Monitor did not stop within {self.settings.shutdown_grace_seconds:g}s, cancelling")
            self._task.cancel()

    def _install_signal_handlers(self):
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self.request_stop, f"Received {sig.name}")
            except (NotImplementedError, RuntimeError):
                # Windows event loops have no add_signal_handler
                signal.signal(
                    sig,
                    lambda signum, frame: loop.call_soon_threadsafe(self.request_stop, f"Received signal {signum}"),
                )

    async def shutdown(self):
        """Graceful shutdown."""
        logger.info("Shutting down Volume Monitor...")

        if self._grace_handle is not None:
            self._grace_handle.cancel()
            self._grace_handle = None

        if self.data_source is not None:
            await self.data_source.close()

        if self.notifier is not None:
            await self.notifier.close()

        logger.info("Shutdown complete")


async def main() -> int:
    """Main entry point. Returns the process exit status."""
    try:
        settings = get_settings()
    except ConfigurationError as e:
        setup_logging()
        logger.error(f"❌ {e}")
        return EXIT_CONFIG

    setup_logging(log_level=settings.log_level, log_dir=settings.log_dir)

    app: Optional[VolumeMonitorApp] = None
    try:
        app = VolumeMonitorApp(settings)
        await app.setup()
    except ConfigurationError as e:
        logger.error(f"❌ Configuration error: {e}")
        if app is not None:
            await app.shutdown()
        return EXIT_CONFIG
    except StartupDependencyFailure as e:
        logger.error(f"❌ Startup failed: {e}")
        await app.shutdown()
        return EXIT_FATAL

    try:
        await app.start()
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        return EXIT_FATAL

    return EXIT_OK


if __name__ == "__main__":
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        logger.info("Monitor stopped by user")
        sys.exit(EXIT_OK)
