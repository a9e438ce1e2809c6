"""Builders for mocked Discord objects shared by the tests."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import discord

GUILD_ID = 123456789
CHANNEL_ID = 987654321
STREAM_URL = "https://example.com/radio.mp3"


async def flush_loop(times: int = 5):
    """Let call_soon_threadsafe callbacks and the tasks they spawn run."""
    for _ in range(times):
        await asyncio.sleep(0)


def make_voice_client():
    voice = MagicMock(spec=discord.VoiceClient)
    voice.is_connected.return_value = True
    voice.is_playing.return_value = False
    voice.is_paused.return_value = False
    voice.disconnect = AsyncMock()
    return voice


def make_interaction(guild, user, channel=None):
    """Interaction whose response flips to 'done' after the first acknowledgement."""
    interaction = MagicMock()
    interaction.guild = guild
    interaction.guild_id = guild.id
    interaction.user = user
    interaction.channel = channel or MagicMock(send=AsyncMock())

    acked = {"done": False}

    async def _ack(*args, **kwargs):
        acked["done"] = True

    interaction.response.is_done = MagicMock(side_effect=lambda: acked["done"])
    interaction.response.send_message = AsyncMock(side_effect=_ack)
    interaction.response.defer = AsyncMock(side_effect=_ack)
    interaction.followup.send = AsyncMock()
    interaction.edit_original_response = AsyncMock()
    interaction.delete_original_response = AsyncMock()
    return interaction
