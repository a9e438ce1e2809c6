# linkplayer/errors.py
from __future__ import annotations
from typing import Optional


class LinkPlayerError(Exception):
    """Error con un mensaje corto y fijo para el usuario."""

    mensaje = "❌ Ocurrió un error al procesar el comando."

    def __init__(self, mensaje: Optional[str] = None):
        if mensaje:
            self.mensaje = mensaje
        super().__init__(self.mensaje)


class NotInVoiceChannel(LinkPlayerError):
    mensaje = "❌ Debes estar en un canal de voz para usar este comando."


class ConnectionFailed(LinkPlayerError):
    mensaje = "❌ Error al conectar al canal de voz."


class NoActiveSession(LinkPlayerError):
    mensaje = "❌ El bot no está conectado a un canal de voz."


class InvalidUrl(LinkPlayerError):
    mensaje = "❌ Debes proporcionar una URL de audio."


class UnsupportedFormat(LinkPlayerError):
    mensaje = "❌ El formato M3U no está soportado."


class StreamResolutionFailed(LinkPlayerError):
    mensaje = "❌ Error al obtener el stream de audio. Verifica la URL."


class NothingToToggle(LinkPlayerError):
    mensaje = "❌ No hay audio para pausar/reanudar."


class InternalError(LinkPlayerError):
    pass
