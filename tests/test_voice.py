"""
Unit tests for VoiceSessionManager (start / stop / forget).
"""

import asyncio

import pytest

from linkplayer.errors import ConnectionFailed, NoActiveSession, NotInVoiceChannel
from linkplayer.player import PlayerStatus
from linkplayer.voice import VoiceSessionManager
from tests.helpers import CHANNEL_ID, GUILD_ID, make_voice_client


class TestVoiceSessionManager:

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_start_requires_member_in_voice(self, store, mock_guild, lonely_member, mock_channel):
        manager = VoiceSessionManager(store)

        with pytest.raises(NotInVoiceChannel):
            await manager.start(mock_guild, lonely_member)

        assert GUILD_ID not in store
        mock_channel.connect.assert_not_called()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_start_registers_session_and_subscribes_player(self, store, mock_guild, mock_member, mock_channel, voice_client):
        manager = VoiceSessionManager(store)

        session = await manager.start(mock_guild, mock_member)

        assert store.get(GUILD_ID) is session
        assert session.connection is voice_client
        assert session.player.connection is voice_client
        assert session.channel_id == CHANNEL_ID
        assert session.player.status is PlayerStatus.IDLE
        mock_channel.connect.assert_awaited_once_with(timeout=30.0, self_deaf=True)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_start_timeout_leaves_registry_untouched(self, store, mock_guild, mock_member, mock_channel):
        mock_channel.connect.side_effect = asyncio.TimeoutError()
        manager = VoiceSessionManager(store)

        with pytest.raises(ConnectionFailed):
            await manager.start(mock_guild, mock_member)

        assert len(store) == 0

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_start_then_stop_cleans_up(self, store, mock_guild, mock_member, voice_client):
        manager = VoiceSessionManager(store)
        await manager.start(mock_guild, mock_member)

        await manager.stop(GUILD_ID)

        assert GUILD_ID not in store
        voice_client.disconnect.assert_awaited_once_with(force=True)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_second_stop_fails_cleanly(self, store, mock_guild, mock_member, voice_client):
        manager = VoiceSessionManager(store)
        await manager.start(mock_guild, mock_member)
        await manager.stop(GUILD_ID)

        with pytest.raises(NoActiveSession):
            await manager.stop(GUILD_ID)

        voice_client.disconnect.assert_awaited_once()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_repeated_start_tears_down_previous_connection(self, store, mock_guild, mock_member, mock_channel, voice_client):
        manager = VoiceSessionManager(store)
        first = await manager.start(mock_guild, mock_member)

        second_voice = make_voice_client()
        mock_channel.connect.return_value = second_voice
        second = await manager.start(mock_guild, mock_member)

        voice_client.disconnect.assert_awaited_once_with(force=True)
        assert first.player.connection is None
        assert store.get(GUILD_ID) is second
        assert second.connection is second_voice

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_concurrent_starts_are_serialized(self, store, mock_guild, mock_member, mock_channel, voice_client):
        second_voice = make_voice_client()
        mock_channel.connect.side_effect = [voice_client, second_voice]
        manager = VoiceSessionManager(store)

        await asyncio.gather(manager.start(mock_guild, mock_member), manager.start(mock_guild, mock_member))

        # la primera conexión no queda colgada
        voice_client.disconnect.assert_awaited_once_with(force=True)
        assert store.get(GUILD_ID).connection is second_voice

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_forget_drops_session_without_disconnecting(self, store, mock_guild, mock_member, voice_client):
        manager = VoiceSessionManager(store)
        await manager.start(mock_guild, mock_member)

        forgotten = manager.forget(GUILD_ID)

        assert forgotten is not None
        assert GUILD_ID not in store
        voice_client.disconnect.assert_not_called()
        assert manager.forget(GUILD_ID) is None
