# linkplayer/config.py
from __future__ import annotations
import os

# ==========================================
# ⚙️ ENTORNO
# ==========================================
FFMPEG_PATH = os.getenv("FFMPEG_PATH", "ffmpeg")
YTDLP_COOKIES = os.getenv("YTDLP_COOKIES", "").strip()
PLAYER_VOLUME = float(os.getenv("PLAYER_VOLUME", "0.5"))

# ==========================================
# 🔊 VOZ
# ==========================================
VOICE_READY_TIMEOUT = 30.0  # segundos hasta que la conexión quede lista

# ==========================================
# 🎵 STREAM (yt-dlp / FFmpeg)
# ==========================================
PLAYLIST_SUFFIX = ".m3u"

YTDL_OPTIONS = {
    "format": "bestaudio/best",
    "noplaylist": True,
    "quiet": True,
    "no_warnings": True,
    "nocheckcertificate": True,
    "default_search": "auto",
    "source_address": "0.0.0.0",
}

# reconnect ayuda a streams que se cortan
FFMPEG_BEFORE_OPTIONS = "-nostdin -reconnect 1 -reconnect_streamed 1 -reconnect_delay_max 5"
FFMPEG_OPTIONS = "-vn -ar 48000 -ac 2"

# Fragmentos (en minúsculas) con los que yt-dlp avisa de credenciales caducadas
AUTH_EXPIRED_MARKERS = (
    "sign in to confirm",
    "cookies are no longer valid",
    "token has expired",
    "login required",
)

# ==========================================
# 🎨 PANEL
# ==========================================
EMBED_COLOR = 0x0099FF
EMBED_TITLE = "Reproductor de Audio"
EMBED_THUMBNAIL = "https://cdn-icons-png.flaticon.com/512/3659/3659899.png"
