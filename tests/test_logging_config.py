"""
Tests for log file setup and retention.
"""
import logging
import os
import time
from datetime import datetime

import pytest

from core.models import AnomalyEvent, MarketType
from utils.logging_config import cleanup_old_logs, log_anomaly, setup_logging


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    anomalies = logging.getLogger("anomalies")
    saved = (list(root.handlers), root.level, list(anomalies.handlers))
    yield
    for handler in root.handlers + anomalies.handlers:
        if handler not in saved[0]:
            handler.close()
    root.handlers[:] = saved[0]
    root.setLevel(saved[1])
    anomalies.handlers[:] = saved[2]


def test_cleanup_removes_only_expired_logs(tmp_path):
    old = tmp_path / "system.log.1"
    fresh = tmp_path / "system.log"
    old.write_text("old")
    fresh.write_text("fresh")
    ten_days_ago = time.time() - 10 * 24 * 3600
    os.utime(old, (ten_days_ago, ten_days_ago))

    assert cleanup_old_logs(tmp_path, retention_days=7) == 1
    assert not old.exists()
    assert fresh.exists()


def test_setup_creates_log_files(tmp_path, restore_logging):
    log_dir = tmp_path / "logs"

    loggers = setup_logging(log_level="DEBUG", log_dir=log_dir)
    log_anomaly(AnomalyEvent(
        symbol="BTCUSDT",
        market_type=MarketType.SPOT,
        current_volume=3_000,
        historical_average=1_000,
        multiplier=3.0,
        detected_at=datetime.now(),
    ))
    for handler in loggers["anomalies"].handlers:
        handler.flush()

    assert {p.name for p in log_dir.iterdir()} >= {"system.log", "anomalies.log", "errors.log"}
    assert "SPOT BTCUSDT current=$3,000.00 avg=$1,000.00 x3.00" in (log_dir / "anomalies.log").read_text()
