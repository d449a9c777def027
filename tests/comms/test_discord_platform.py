"""Tests for the discord.py chat platform adapter."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from relay.comms.discord_bot.platform import DiscordChatPlatform


def _member(name: str, global_name: str | None = None):
    member = MagicMock(spec=discord.Member)
    member.name = name
    member.global_name = global_name
    member.__str__.return_value = name
    member.send = AsyncMock()
    member.add_roles = AsyncMock()
    member.remove_roles = AsyncMock()
    return member


@pytest.fixture
def guild():
    guild = MagicMock(spec=discord.Guild)
    guild.get_member_named.return_value = None
    guild.query_members = AsyncMock(return_value=[])
    return guild


@pytest.fixture
def client():
    client = MagicMock(spec=discord.Client)
    client.fetch_channel = AsyncMock()
    return client


class TestResolveMember:
    @pytest.mark.asyncio
    async def test_cached_member(self, client, guild):
        alice = _member("alice")
        guild.get_member_named.return_value = alice

        platform = DiscordChatPlatform(client, guild)

        assert await platform.resolve_member("alice") is alice
        guild.query_members.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_falls_back_to_gateway_query(self, client, guild):
        alice = _member("alice")
        guild.query_members.return_value = [_member("alicia"), alice]

        platform = DiscordChatPlatform(client, guild)

        assert await platform.resolve_member("alice") is alice

    @pytest.mark.asyncio
    async def test_prefix_match_is_not_enough(self, client, guild):
        guild.query_members.return_value = [_member("alicia")]
        platform = DiscordChatPlatform(client, guild)

        assert await platform.resolve_member("alice") is None

    @pytest.mark.asyncio
    async def test_query_timeout_is_a_miss(self, client, guild):
        import asyncio

        guild.query_members.side_effect = asyncio.TimeoutError()
        platform = DiscordChatPlatform(client, guild)

        assert await platform.resolve_member("alice") is None


class TestDelivery:
    @pytest.mark.asyncio
    async def test_direct_message(self, client, guild):
        alice = _member("alice")
        platform = DiscordChatPlatform(client, guild)

        await platform.send_direct_message(alice, "hi")

        alice.send.assert_awaited_once_with("hi")

    @pytest.mark.asyncio
    async def test_channel_message_uses_cache_then_fetch(self, client, guild):
        channel = MagicMock()
        channel.send = AsyncMock()
        client.get_channel.return_value = None
        client.fetch_channel.return_value = channel
        embed = discord.Embed(title="Low stock: PLA")

        platform = DiscordChatPlatform(client, guild)
        await platform.send_channel_message(555, content="heads up", embed=embed)

        client.fetch_channel.assert_awaited_once_with(555)
        channel.send.assert_awaited_once_with(content="heads up", embed=embed)

    @pytest.mark.asyncio
    async def test_role_changes(self, client, guild):
        alice = _member("alice")
        platform = DiscordChatPlatform(client, guild)

        await platform.revoke_roles(alice, (1, 2, 3))
        await platform.grant_role(alice, 2)

        removed = alice.remove_roles.await_args.args
        assert [role.id for role in removed] == [1, 2, 3]
        assert alice.add_roles.await_args.args[0].id == 2

    @pytest.mark.asyncio
    async def test_revoking_nothing_skips_api_call(self, client, guild):
        alice = _member("alice")
        platform = DiscordChatPlatform(client, guild)

        await platform.revoke_roles(alice, ())

        alice.remove_roles.assert_not_awaited()
