# linkplayer/state.py
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

import discord

from .player import AudioPlayer


@dataclass
class GuildAudioSession:
    guild_id: int
    connection: discord.VoiceClient
    player: AudioPlayer
    channel_id: int = 0

    # listeners del play actual: (evento, callback)
    listeners: List[Tuple[str, Callable]] = field(default_factory=list)


class SessionStore:
    """
    Registro de sesiones por servidor.
    - Conexión y reproductor viven en el mismo registro
    - Un lock por guild para serializar start/stop
    """

    def __init__(self):
        self._sessions: Dict[int, GuildAudioSession] = {}
        self._locks: Dict[int, asyncio.Lock] = {}

    def get(self, guild_id: int) -> Optional[GuildAudioSession]:
        return self._sessions.get(guild_id)

    def upsert(self, session: GuildAudioSession) -> Optional[GuildAudioSession]:
        previous = self._sessions.get(session.guild_id)
        self._sessions[session.guild_id] = session
        return previous

    def remove(self, guild_id: int) -> Optional[GuildAudioSession]:
        return self._sessions.pop(guild_id, None)

    def lock(self, guild_id: int) -> asyncio.Lock:
        lk = self._locks.get(guild_id)
        if lk is None:
            lk = asyncio.Lock()
            self._locks[guild_id] = lk
        return lk

    def guild_ids(self) -> List[int]:
        return list(self._sessions)

    def __contains__(self, guild_id: int) -> bool:
        return guild_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
