"""
Tests for the Telegram check script.
"""
from unittest.mock import patch

import pytest

import check_telegram
from config import Settings
from core.errors import ConfigurationError


@pytest.mark.asyncio
async def test_invalid_settings_exit_status():
    args = check_telegram.build_parser().parse_args([])

    with patch("check_telegram.get_settings", side_effect=ConfigurationError("Invalid environment settings")), \
            patch("check_telegram.Bot") as bot_cls:
        assert await check_telegram.run(args) == 1

    bot_cls.assert_not_called()


@pytest.mark.asyncio
async def test_missing_token_exit_status():
    args = check_telegram.build_parser().parse_args([])

    with patch("check_telegram.get_settings", return_value=Settings(_env_file=None, bot_token=None)):
        assert await check_telegram.run(args) == 1
