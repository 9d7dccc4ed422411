"""
Tests for application wiring, startup failures and exit codes.
"""
import asyncio
import functools
import os
import signal
import sys
from unittest.mock import AsyncMock, Mock, patch

import pytest

import main
from config import Settings
from core.errors import ConfigurationError, StartupDependencyFailure


def settings(**values) -> Settings:
    values.setdefault("symbols", "BTCUSDT,ETH_USDT")
    return Settings(_env_file=None, **values)


class HangingDataSource:
    """Market data whose candle fetch never completes."""

    def __init__(self, *args, on_fetch=None, **kwargs):
        self.started = asyncio.Event()
        self.close = AsyncMock()
        self._on_fetch = on_fetch

    async def fetch_recent_volume_series(self, symbol, market_type, **kwargs):
        self.started.set()
        if self._on_fetch is not None:
            self._on_fetch()
        await asyncio.Event().wait()

    async def fetch_24h_volume(self, symbol, market_type):
        return 0.0


def mock_bot():
    bot = Mock()
    bot.get_me = AsyncMock(return_value=Mock(username="volume_bot"))
    bot.session = Mock()
    bot.session.close = AsyncMock()
    return bot


class TestCreateNotifier:

    @pytest.mark.asyncio
    async def test_alerts_disabled_without_credentials(self):
        app = main.VolumeMonitorApp(settings())
        assert await app._create_notifier() is None

    @pytest.mark.asyncio
    async def test_alerts_disabled_with_only_token(self):
        app = main.VolumeMonitorApp(settings(bot_token="123:abc"))
        with patch("main.Bot") as bot_cls:
            assert await app._create_notifier() is None
        bot_cls.assert_not_called()

    @pytest.mark.asyncio
    async def test_notifier_created_and_verified(self):
        bot = mock_bot()
        app = main.VolumeMonitorApp(settings(bot_token="123:abc", alert_chat_id="-100:5"))

        with patch("main.Bot", return_value=bot):
            notifier = await app._create_notifier()

        assert notifier.chat_id == -100
        assert notifier.thread_id == 5
        bot.get_me.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_notifier_uses_engine_chat_destination(self):
        app = main.VolumeMonitorApp(settings(bot_token="123:abc", alert_chat_id="-100:5"))
        app.config = app.config.model_copy(update={"alert_chat_id": "42"})

        with patch("main.Bot", return_value=mock_bot()):
            notifier = await app._create_notifier()

        assert (notifier.chat_id, notifier.thread_id) == (42, None)

    @pytest.mark.asyncio
    async def test_invalid_token_is_startup_failure(self):
        app = main.VolumeMonitorApp(settings(bot_token="nonsense", alert_chat_id="1"))

        with patch("main.Bot", side_effect=ValueError("Token is invalid!")):
            with pytest.raises(StartupDependencyFailure):
                await app._create_notifier()

    @pytest.mark.asyncio
    async def test_unreachable_bot_is_startup_failure(self):
        bot = mock_bot()
        bot.get_me.side_effect = OSError("network down")
        app = main.VolumeMonitorApp(settings(bot_token="123:abc", alert_chat_id="1"))

        with patch("main.Bot", return_value=bot):
            with pytest.raises(StartupDependencyFailure):
                await app._create_notifier()

        bot.session.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_bad_chat_id_is_configuration_error(self):
        bot = mock_bot()
        app = main.VolumeMonitorApp(settings(bot_token="123:abc", alert_chat_id="general"))

        with patch("main.Bot", return_value=bot):
            with pytest.raises(ConfigurationError):
                await app._create_notifier()

        bot.session.close.assert_awaited_once()


class TestApp:

    def test_invalid_settings_rejected_at_construction(self):
        with pytest.raises(ConfigurationError):
            main.VolumeMonitorApp(settings(symbols=""))

    @pytest.mark.asyncio
    async def test_setup_builds_monitor(self):
        app = main.VolumeMonitorApp(settings())

        await app.setup()
        try:
            assert app.notifier is None
            assert [str(m.value) for m in app.monitor.market_types.values()] == ["spot", "futures"]
        finally:
            await app.shutdown()


class TestShutdown:

    async def start_with_hanging_fetch(self, stop):
        app = main.VolumeMonitorApp(settings(shutdown_grace_seconds=0.05, symbol_delay_ms=0))
        await app.setup()
        data_source = HangingDataSource()
        notifier = Mock()
        notifier.close = AsyncMock()
        app.data_source = app.monitor.data_source = data_source
        app.notifier = notifier

        runner = asyncio.create_task(app.start())
        await asyncio.wait_for(data_source.started.wait(), timeout=2)
        stop(app)
        await asyncio.wait_for(runner, timeout=2)
        return app, data_source, notifier

    @pytest.mark.asyncio
    async def test_request_stop_cancels_after_grace(self):
        app, data_source, notifier = await self.start_with_hanging_fetch(lambda app: app.request_stop("test"))

        assert not app.monitor.running
        assert app._task.cancelled()
        data_source.close.assert_awaited_once()
        notifier.close.assert_awaited_once()

    @pytest.mark.asyncio
    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX signals")
    async def test_sigterm_triggers_graceful_stop(self):
        app, data_source, notifier = await self.start_with_hanging_fetch(
            lambda app: os.kill(os.getpid(), signal.SIGTERM)
        )

        assert not app.monitor.running
        assert app._task.cancelled()
        data_source.close.assert_awaited_once()
        notifier.close.assert_awaited_once()


class TestMainExitCodes:

    @pytest.mark.asyncio
    async def test_configuration_error_exit_code(self):
        with patch("main.get_settings", return_value=settings(symbols="")), patch("main.setup_logging"):
            assert await main.main() == main.EXIT_CONFIG

    @pytest.mark.asyncio
    async def test_unloadable_settings_exit_code(self):
        with patch("main.get_settings", side_effect=ConfigurationError("bad env")), patch("main.setup_logging"):
            assert await main.main() == main.EXIT_CONFIG

    @pytest.mark.asyncio
    async def test_startup_failure_exit_code(self):
        broken = settings(bot_token="123:abc", alert_chat_id="1")
        with patch("main.get_settings", return_value=broken), \
                patch("main.setup_logging"), \
                patch("main.Bot", side_effect=ValueError("Token is invalid!")):
            assert await main.main() == main.EXIT_FATAL

    @pytest.mark.asyncio
    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX signals")
    async def test_sigterm_exit_code(self):
        def terminate():
            os.kill(os.getpid(), signal.SIGTERM)

        router = functools.partial(HangingDataSource, on_fetch=terminate)
        with patch("main.get_settings", return_value=settings(shutdown_grace_seconds=0.05)), \
                patch("main.setup_logging"), \
                patch("main.MarketDataRouter", router):
            assert await asyncio.wait_for(main.main(), timeout=2) == main.EXIT_OK
