"""
Logging configuration for Volume Monitor.

Features:
- Separate log files for system events, anomalies and errors
- Rotating file handlers (max 50MB per file, keep 5 backups)
- Automatic cleanup of old logs (keeps last 7 days)
- Console output for real-time monitoring
"""
import logging
import logging.handlers
from pathlib import Path
from datetime import datetime, timedelta
from typing import Union

from core.models import AnomalyEvent

# Rotation settings
MAX_BYTES = 50 * 1024 * 1024  # 50 MB per file
BACKUP_COUNT = 5  # Keep 5 backup files (total ~250 MB per log type)

# Cleanup settings
LOG_RETENTION_DAYS = 7  # Keep logs for 7 days

ANOMALIES_LOGGER = "anomalies"


def _rotating_handler(path: Path, level: int, formatter: logging.Formatter) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        path,
        maxBytes=MAX_BYTES,
        backupCount=BACKUP_COUNT,
        encoding='utf-8'
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(log_level: str = "INFO", log_dir: Union[str, Path] = "logs") -> dict:
    """
    Configure logging with rotation and cleanup.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_dir: Directory for log files (created if missing)

    Returns:
        dict: Dictionary of specialized loggers
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)

    # ===== SYSTEM LOG =====
    system_handler = _rotating_handler(log_dir / "system.log", level, formatter)

    # ===== ANOMALIES LOG =====
    # One line per detected anomaly
    anomalies_handler = _rotating_handler(log_dir / "anomalies.log", logging.INFO, formatter)

    # ===== ERRORS LOG =====
    errors_handler = _rotating_handler(log_dir / "errors.log", logging.ERROR, formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.addHandler(console_handler)
    root_logger.addHandler(system_handler)
    root_logger.addHandler(errors_handler)

    anomalies_logger = logging.getLogger(ANOMALIES_LOGGER)
    anomalies_logger.handlers.clear()
    anomalies_logger.addHandler(anomalies_handler)
    anomalies_logger.propagate = True  # Also log to root (console + system)

    # aiohttp access noise is not useful here
    logging.getLogger("aiohttp").setLevel(max(level, logging.WARNING))

    cleanup_old_logs(log_dir)

    root_logger.info("=" * 80)
    root_logger.info("Volume Monitor logging system initialized")
    root_logger.info(f"Log directory: {log_dir.absolute()}")
    root_logger.info(f"Log level: {log_level}")
    root_logger.info(f"Rotation: {MAX_BYTES // (1024*1024)} MB per file, {BACKUP_COUNT} backups")
    root_logger.info(f"Retention: {LOG_RETENTION_DAYS} days")
    root_logger.info("=" * 80)

    return {
        'system': root_logger,
        'anomalies': anomalies_logger,
    }


def cleanup_old_logs(log_dir: Union[str, Path] = "logs", retention_days: int = LOG_RETENTION_DAYS) -> int:
    """
    Delete log files older than `retention_days`.

    Runs on startup to prevent disk space issues.

    Returns:
        Number of deleted files
    """
    log_dir = Path(log_dir)
    cutoff_time = datetime.now() - timedelta(days=retention_days)
    deleted_count = 0
    total_size_freed = 0

    for pattern in ("*.log", "*.log.*"):  # current logs and backups (.log.1, .log.2, ...)
        for log_path in log_dir.glob(pattern):
            if not log_path.exists():
                continue

            try:
                stat = log_path.stat()
                if datetime.fromtimestamp(stat.st_mtime) < cutoff_time:
                    log_path.unlink()
                    deleted_count += 1
                    total_size_freed += stat.st_size
            except OSError as e:
                logging.error(f"Error cleaning up {log_path}: {e}")

    if deleted_count > 0:
        size_mb = total_size_freed / (1024 * 1024)
        logging.info(f"Cleaned up {deleted_count} old log files ({size_mb:.2f} MB freed)")

    return deleted_count


def log_anomaly(event: AnomalyEvent):
    """Log anomaly event to dedicated anomalies log."""
    logger = logging.getLogger(ANOMALIES_LOGGER)
    logger.info(
        f"{event.market_type.label} {event.symbol} "
        f"current=${event.current_volume:,.2f} avg=${event.historical_average:,.2f} "
        f"x{event.multiplier:.2f}"
    )
