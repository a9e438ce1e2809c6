# linkplayer/playback.py
from __future__ import annotations

import logging
from typing import Awaitable, Callable, Optional

import discord

from .config import PLAYLIST_SUFFIX
from .errors import (
    InvalidUrl,
    NoActiveSession,
    NothingToToggle,
    StreamResolutionFailed,
    UnsupportedFormat,
)
from .player import PlayerStatus
from .source import StreamResolver, create_resource
from .state import GuildAudioSession, SessionStore
from .voice import detach_listeners

log = logging.getLogger("linkplayer.playback")

PLAYER_ERROR_MESSAGE = "❌ Error al reproducir el audio."


def is_playlist(url: str) -> bool:
    return url.lower().endswith(PLAYLIST_SUFFIX)


class PlaybackController:
    """
    Reproduce una URL en el reproductor del servidor y maneja pausa/stop.
    Sin cola: cada play sustituye la pista actual.
    """

    def __init__(self, store: SessionStore, resolver: Optional[StreamResolver] = None, resource_factory=create_resource):
        self.store = store
        self.resolver = resolver if resolver is not None else StreamResolver()
        self.resource_factory = resource_factory

    def _session(self, guild_id: int, mensaje: Optional[str] = None) -> GuildAudioSession:
        session = self.store.get(guild_id)
        if session is None:
            raise NoActiveSession(mensaje)
        return session

    def validate(self, guild_id: int, url: Optional[str], *, mensaje_sin_sesion: Optional[str] = None) -> str:
        """Comprueba sesión y URL antes de contestar nada al usuario."""
        self._session(guild_id, mensaje_sin_sesion)
        url = (url or "").strip()
        if not url:
            raise InvalidUrl()
        if is_playlist(url):
            raise UnsupportedFormat()
        return url

    def _attach_listeners(self, session: GuildAudioSession, url: str, channel: Optional[discord.abc.Messageable]):
        detach_listeners(session)
        guild_id = session.guild_id

        def on_playing():
            log.info("[%s] Reproduciendo audio: %s", guild_id, url)

        async def on_error(error: Exception):
            if channel is None:
                return
            try:
                await channel.send(PLAYER_ERROR_MESSAGE)
            except discord.HTTPException as e:
                log.warning("[%s] No se pudo avisar del error en el canal: %s", guild_id, e)

        for event, cb in (("playing", on_playing), ("error", on_error)):
            session.player.on(event, cb)
            session.listeners.append((event, cb))

    async def play(
        self,
        guild_id: int,
        url: Optional[str],
        *,
        announce: Optional[Callable[[], Awaitable[None]]] = None,
        channel: Optional[discord.abc.Messageable] = None,
        mensaje_sin_sesion: Optional[str] = None,
    ):
        url = self.validate(guild_id, url, mensaje_sin_sesion=mensaje_sin_sesion)

        # el panel sale antes de resolver el stream
        if announce:
            await announce()

        source = await self.resolver.resolve(url)
        try:
            resource = self.resource_factory(source)
        except discord.ClientException as e:
            raise StreamResolutionFailed() from e

        # la sesión pudo cerrarse mientras se resolvía
        session = self.store.get(guild_id)
        if session is None:
            resource.cleanup()
            raise NoActiveSession(mensaje_sin_sesion)
        self._attach_listeners(session, url, channel)
        try:
            session.player.play(resource)
        except Exception:
            detach_listeners(session)
            resource.cleanup()
            raise
        return source

    def toggle_play_pause(self, guild_id: int, *, mensaje: Optional[str] = None) -> PlayerStatus:
        player = self._session(guild_id, mensaje).player
        if player.status is PlayerStatus.PLAYING:
            player.pause()
        elif player.status is PlayerStatus.PAUSED:
            player.unpause()
        else:
            raise NothingToToggle()
        return player.status

    def stop_playback(self, guild_id: int, *, mensaje: Optional[str] = None):
        self._session(guild_id, mensaje).player.stop()
