"""
Pytest configuration and shared fixtures for the linkplayer test suite.

Discord objects are mocked; no gateway or voice connection is opened.
"""

import pytest
import pytest_asyncio
from unittest.mock import AsyncMock, MagicMock

import discord

from linkplayer.player import AudioPlayer
from linkplayer.state import GuildAudioSession, SessionStore
from tests.helpers import CHANNEL_ID, GUILD_ID, make_voice_client


@pytest.fixture
def store():
    return SessionStore()


@pytest.fixture
def voice_client():
    return make_voice_client()


@pytest.fixture
def mock_channel(voice_client):
    """Create a mock Discord voice channel whose connect() succeeds."""
    channel = MagicMock(spec=discord.VoiceChannel)
    channel.id = CHANNEL_ID
    channel.name = "Sala de música"
    channel.connect = AsyncMock(return_value=voice_client)
    return channel


@pytest.fixture
def mock_guild(mock_channel):
    guild = MagicMock(spec=discord.Guild)
    guild.id = GUILD_ID
    guild.name = "Servidor de pruebas"
    guild.voice_client = None
    guild.get_channel = MagicMock(return_value=mock_channel)
    return guild


@pytest.fixture
def mock_member(mock_channel):
    """Member currently sitting in mock_channel."""
    member = MagicMock(spec=discord.Member)
    member.id = 111222333
    member.display_name = "Usuario"
    member.voice = MagicMock()
    member.voice.channel = mock_channel
    return member


@pytest.fixture
def lonely_member():
    """Member that is not in any voice channel."""
    member = MagicMock(spec=discord.Member)
    member.id = 444555666
    member.voice = None
    return member


@pytest_asyncio.fixture
async def session(store, voice_client):
    """A registered session bound to the running loop."""
    player = AudioPlayer(GUILD_ID)
    player.subscribe(voice_client)
    sess = GuildAudioSession(guild_id=GUILD_ID, connection=voice_client, player=player, channel_id=CHANNEL_ID)
    store.upsert(sess)
    return sess
