# linkplayer/voice.py
from __future__ import annotations

import asyncio
import ctypes.util
import logging
from typing import Optional

import discord

from .config import VOICE_READY_TIMEOUT
from .errors import ConnectionFailed, NoActiveSession, NotInVoiceChannel
from .player import AudioPlayer
from .state import GuildAudioSession, SessionStore

log = logging.getLogger("linkplayer.voice")


def load_opus():
    if discord.opus.is_loaded():
        return
    opus_path = ctypes.util.find_library("opus")
    if not opus_path:
        log.warning("No se encontró libopus; discord.py intentará cargarla por su cuenta.")
        return
    try:
        discord.opus.load_opus(opus_path)
    except OSError as e:
        log.warning("No se pudo cargar opus (%s): %s", opus_path, e)


def detach_listeners(session: GuildAudioSession):
    for event, cb in session.listeners:
        session.player.off(event, cb)
    session.listeners.clear()


def voice_channel_of(member) -> discord.abc.Connectable:
    voice_state = getattr(member, "voice", None)
    channel = voice_state.channel if voice_state else None
    if channel is None:
        raise NotInVoiceChannel()
    return channel


class VoiceSessionManager:
    """Abre y cierra la conexión de voz + reproductor de cada servidor."""

    def __init__(self, store: SessionStore, *, ready_timeout: float = VOICE_READY_TIMEOUT):
        self.store = store
        self.ready_timeout = ready_timeout
        load_opus()

    async def _teardown(self, session: GuildAudioSession):
        detach_listeners(session)
        session.player.stop()
        session.player.unsubscribe()
        try:
            await session.connection.disconnect(force=True)
        except (discord.ClientException, discord.HTTPException) as e:
            log.warning("[%s] Error al desconectar: %s", session.guild_id, e)

    async def start(self, guild: discord.Guild, member: discord.Member) -> GuildAudioSession:
        channel = voice_channel_of(member)

        async with self.store.lock(guild.id):
            previous = self.store.remove(guild.id)
            if previous:
                log.info("[%s] Reemplazando sesión anterior.", guild.id)
                await self._teardown(previous)
            elif guild.voice_client:
                # conexión huérfana (sin sesión registrada)
                await guild.voice_client.disconnect(force=True)

            try:
                connection = await channel.connect(timeout=self.ready_timeout, self_deaf=True)
            except asyncio.TimeoutError as e:
                log.error("[%s] Timeout conectando a %s.", guild.id, channel.name)
                raise ConnectionFailed() from e
            except (discord.ClientException, discord.HTTPException, OSError) as e:
                log.error("[%s] Error al conectar al canal de voz: %s", guild.id, e)
                raise ConnectionFailed() from e

            player = AudioPlayer(guild.id)
            player.subscribe(connection)
            session = GuildAudioSession(
                guild_id=guild.id,
                connection=connection,
                player=player,
                channel_id=channel.id,
            )
            self.store.upsert(session)

        log.info("[%s] Conectado al canal de voz %s.", guild.id, channel.name)
        return session

    async def stop(self, guild_id: int):
        async with self.store.lock(guild_id):
            session = self.store.remove(guild_id)
            if session is None:
                raise NoActiveSession()
            await self._teardown(session)
        log.info("[%s] Desconectado del canal de voz.", guild_id)

    def forget(self, guild_id: int) -> Optional[GuildAudioSession]:
        """Olvida la sesión sin tocar la conexión (Discord ya la cerró)."""
        session = self.store.remove(guild_id)
        if session:
            detach_listeners(session)
            session.player.stop()
            session.player.unsubscribe()
            log.info("[%s] Sesión descartada: el bot salió del canal de voz.", guild_id)
        return session
