"""
Exception types for the volume monitor.

Upstream fetch failures are not exceptions: market data sources return a
DataUnavailable result instead (see core.models).
"""


class VolumeMonitorError(Exception):
    """Base class for volume monitor errors."""


class ConfigurationError(VolumeMonitorError):
    """Missing or invalid configuration. Fatal at startup."""


class StartupDependencyFailure(VolumeMonitorError):
    """A required startup dependency (e.g. the Telegram bot) could not be built."""


class NotificationFailure(VolumeMonitorError):
    """An alert could not be delivered."""

    def __init__(self, chat_id, reason: str):
        super().__init__(f"Failed to notify chat {chat_id}: {reason}")
        self.chat_id = chat_id
        self.reason = reason
