# linkplayer/player.py
from __future__ import annotations

import asyncio
import inspect
import logging
from enum import Enum
from typing import Callable, Dict, List, Optional

import discord

log = logging.getLogger("linkplayer.player")


class PlayerStatus(str, Enum):
    IDLE = "idle"
    BUFFERING = "buffering"
    PLAYING = "playing"
    PAUSED = "paused"


class AudioPlayer:
    """
    Reproductor por servidor, montado sobre el VoiceClient.
    - Un recurso a la vez: play() sustituye lo que esté sonando
    - Eventos: "playing", "error"
    - El callback `after` de discord.py llega desde el hilo de audio
    """

    def __init__(self, guild_id: int, *, loop: Optional[asyncio.AbstractEventLoop] = None):
        self.guild_id = guild_id
        self.loop = loop or asyncio.get_running_loop()

        self.connection: Optional[discord.VoiceClient] = None
        self.status = PlayerStatus.IDLE

        self._listeners: Dict[str, List[Callable]] = {}
        self._generation = 0
        self._tasks: set[asyncio.Task] = set()

    # ---------- conexión ----------
    def subscribe(self, connection: discord.VoiceClient):
        self.connection = connection

    def unsubscribe(self):
        self.connection = None

    def is_connected(self) -> bool:
        return bool(self.connection and self.connection.is_connected())

    # ---------- listeners ----------
    def on(self, event: str, callback: Callable):
        self._listeners.setdefault(event, []).append(callback)

    def off(self, event: str, callback: Callable):
        cbs = self._listeners.get(event)
        if cbs and callback in cbs:
            cbs.remove(callback)

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, ()))

    def _emit(self, event: str, *args):
        for cb in list(self._listeners.get(event, ())):
            try:
                result = cb(*args)
            except Exception:
                log.exception("[%s] Listener '%s' falló.", self.guild_id, event)
                continue
            if inspect.isawaitable(result):
                task = self.loop.create_task(result)
                self._tasks.add(task)
                task.add_done_callback(self._tasks.discard)

    def _set_status(self, status: PlayerStatus):
        previous = self.status
        self.status = status
        if status is PlayerStatus.PLAYING and previous is not PlayerStatus.PLAYING:
            self._emit("playing")

    # ---------- reproducción ----------
    def play(self, resource: discord.AudioSource):
        if not self.is_connected():
            raise discord.ClientException("No conectado a voz.")

        self._generation += 1
        gen = self._generation

        # el after del track anterior queda huérfano (gen distinto)
        if self.connection.is_playing() or self.connection.is_paused():
            self.connection.stop()

        self._set_status(PlayerStatus.BUFFERING)

        def _after(err: Optional[Exception]):
            try:
                self.loop.call_soon_threadsafe(self._on_track_end, gen, err)
            except RuntimeError:
                # loop cerrado: el proceso se está apagando
                log.debug("[%s] Loop cerrado, fin de pista ignorado.", self.guild_id)

        self.connection.play(resource, after=_after)
        self._set_status(PlayerStatus.PLAYING)

    def _on_track_end(self, gen: int, err: Optional[Exception]):
        if gen != self._generation:
            return
        self._set_status(PlayerStatus.IDLE)
        if err:
            log.error("[%s] Error en el reproductor: %s", self.guild_id, err)
            self._emit("error", err)

    # ---------- controles ----------
    def pause(self) -> bool:
        if self.status is not PlayerStatus.PLAYING or not self.connection:
            return False
        self.connection.pause()
        self._set_status(PlayerStatus.PAUSED)
        return True

    def unpause(self) -> bool:
        if self.status is not PlayerStatus.PAUSED or not self.connection:
            return False
        self.connection.resume()
        self._set_status(PlayerStatus.PLAYING)
        return True

    def stop(self) -> bool:
        was_active = self.status is not PlayerStatus.IDLE
        self._generation += 1
        if self.connection and (self.connection.is_playing() or self.connection.is_paused()):
            self.connection.stop()
        self._set_status(PlayerStatus.IDLE)
        return was_active
