# linkplayer/source.py
from __future__ import annotations

import asyncio
import logging
import os
import shlex
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import discord
import yt_dlp

from .config import (
    AUTH_EXPIRED_MARKERS,
    FFMPEG_BEFORE_OPTIONS,
    FFMPEG_OPTIONS,
    FFMPEG_PATH,
    PLAYER_VOLUME,
    YTDL_OPTIONS,
    YTDLP_COOKIES,
)
from .errors import StreamResolutionFailed

log = logging.getLogger("linkplayer.source")


@dataclass
class StreamSource:
    url: str
    title: str = ""
    webpage_url: str = ""
    is_live: bool = False
    http_headers: Dict[str, str] = field(default_factory=dict)


def is_auth_expired(error: BaseException) -> bool:
    text = str(error).lower()
    return any(marker in text for marker in AUTH_EXPIRED_MARKERS)


class StreamResolver:
    """
    Resuelve una URL a un stream reproducible usando yt-dlp.
    - No descarga nada: solo extrae la URL directa del medio
    - Si las credenciales caducaron, las refresca y reintenta UNA vez
    """

    def __init__(self, options: Optional[Dict[str, Any]] = None, cookiefile: str = YTDLP_COOKIES):
        self._options = dict(options or YTDL_OPTIONS)
        self.cookiefile = cookiefile
        self._expired = False
        self.refresh_count = 0

    def _build_opts(self) -> Dict[str, Any]:
        opts = dict(self._options)
        if self.cookiefile and os.path.exists(self.cookiefile):
            opts["cookiefile"] = self.cookiefile
        return opts

    def is_expired(self) -> bool:
        return self._expired

    def _extract(self, url: str) -> Optional[Dict[str, Any]]:
        with yt_dlp.YoutubeDL(self._build_opts()) as ydl:
            info = ydl.extract_info(url, download=False)
            if isinstance(info, dict) and "entries" in info:
                info = next((e for e in info["entries"] if e), None)
            return info

    def _clear_cache(self):
        with yt_dlp.YoutubeDL(self._build_opts()) as ydl:
            ydl.cache.remove()

    async def refresh_credentials(self):
        """Borra la caché de yt-dlp; la cookie se vuelve a leer en la siguiente instancia."""
        await asyncio.to_thread(self._clear_cache)
        self._expired = False
        self.refresh_count += 1
        log.info("Credenciales de yt-dlp refrescadas.")

    async def _retry_after_refresh(self, url: str) -> Optional[Dict[str, Any]]:
        log.warning("Credenciales caducadas al resolver %s, reintentando.", url)
        self._expired = True
        try:
            await self.refresh_credentials()
            return await asyncio.to_thread(self._extract, url)
        except Exception as e:
            if is_auth_expired(e):
                self._expired = True
            raise StreamResolutionFailed() from e

    async def resolve(self, url: str) -> StreamSource:
        try:
            if self.is_expired():
                await self.refresh_credentials()
            info = await asyncio.to_thread(self._extract, url)
        except yt_dlp.utils.DownloadError as e:
            if not is_auth_expired(e):
                raise StreamResolutionFailed() from e
            info = await self._retry_after_refresh(url)
        except Exception as e:
            # yt-dlp también suelta errores fuera de DownloadError (extractores rotos, red)
            raise StreamResolutionFailed() from e

        if not info or not info.get("url"):
            raise StreamResolutionFailed()

        return StreamSource(
            url=info["url"],
            title=info.get("title") or "",
            webpage_url=info.get("webpage_url") or url,
            is_live=bool(info.get("is_live")),
            http_headers=dict(info.get("http_headers") or {}),
        )


def _headers_option(headers: Dict[str, str]) -> str:
    if not headers:
        return ""
    joined = "".join(f"{k}: {v}\r\n" for k, v in headers.items())
    return " -headers " + shlex.quote(joined)


def create_resource(source: StreamSource, *, volume: float = PLAYER_VOLUME) -> discord.PCMVolumeTransformer:
    audio = discord.FFmpegPCMAudio(
        source.url,
        executable=FFMPEG_PATH,
        before_options=FFMPEG_BEFORE_OPTIONS + _headers_option(source.http_headers),
        options=FFMPEG_OPTIONS,
    )
    return discord.PCMVolumeTransformer(audio, volume=volume)
