"""Tests for the admin CLI."""

from __future__ import annotations

import json
from unittest.mock import patch

from click.testing import CliRunner

from relay.cli import cli
from relay.shared.config import Settings


class TestPermsCommand:
    def test_decodes_flags(self):
        result = CliRunner().invoke(cli, ["perms", "0x11"])

        assert result.exit_code == 0
        assert "0x00000011" in result.output
        assert "TIER_1: FIRST" in result.output
        assert "TIER_2: FIRST" in result.output
        assert "admin override" not in result.output

    def test_admin_override(self):
        result = CliRunner().invoke(cli, ["perms", str(0x10000000)])

        assert result.exit_code == 0
        assert "admin override" in result.output

    def test_rejects_non_integer(self):
        result = CliRunner().invoke(cli, ["perms", "lots"])
        assert result.exit_code != 0


class TestCheckConfigCommand:
    def test_reports_missing(self):
        settings = Settings(_env_file=None, environment="development")
        with patch("relay.shared.config.get_settings", return_value=settings):
            result = CliRunner().invoke(cli, ["check-config"])

        assert result.exit_code == 1
        assert "missing: BOT_TOKEN" in result.output
        assert "missing: DISCORD_TIER_1_ROLE" in result.output

    def test_valid(self):
        settings = Settings(
            _env_file=None,
            environment="development",
            bot_token="token",
            discord_test_server="1",
            discord_test_channel="2",
            discord_tier_1_role="11",
            discord_tier_2_role="12",
            discord_tier_3_role="13",
        )
        with patch("relay.shared.config.get_settings", return_value=settings):
            result = CliRunner().invoke(cli, ["check-config"])

        assert result.exit_code == 0
        assert "Configuration OK (development)" in result.output


class TestPingCommand:
    def test_publishes_identity(self, mock_redis):
        with patch("relay.shared.redis.get_redis", return_value=mock_redis), patch(
            "relay.shared.redis.close_redis"
        ):
            result = CliRunner().invoke(cli, ["ping", "alice"])

        assert result.exit_code == 0, result.output
        channel, payload = mock_redis.publish.await_args.args
        assert channel == "discord-ping"
        assert json.loads(payload) == {"identity": "alice"}
        assert "Ping sent for alice." in result.output
