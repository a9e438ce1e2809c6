import logging
from typing import Optional

import discord
from discord import app_commands
from discord.ext import commands

from linkplayer.errors import InternalError, LinkPlayerError, NoActiveSession
from linkplayer.playback import PlaybackController
from linkplayer.player import PlayerStatus
from linkplayer.state import SessionStore
from linkplayer.views import PLAY_PAUSE_ID, STOP_ID, ControlesReproductor, build_player_embed
from linkplayer.voice import VoiceSessionManager, voice_channel_of

log = logging.getLogger("linkplayer.reproductor")

SIN_REPRODUCTOR = "❌ No hay un reproductor activo."
SIN_CONEXION_LINK = "❌ El bot no está conectado a un canal de voz. Usa primero `/startbot`."


# ==========================================
# 🎧 COG REPRODUCTOR
# ==========================================
class Reproductor(commands.Cog):
    def __init__(
        self,
        bot: commands.Bot,
        *,
        store: Optional[SessionStore] = None,
        voice: Optional[VoiceSessionManager] = None,
        playback: Optional[PlaybackController] = None,
    ):
        self.bot = bot
        self.store = store if store is not None else SessionStore()
        self.voice = voice if voice is not None else VoiceSessionManager(self.store)
        self.playback = playback if playback is not None else PlaybackController(self.store)

        # Despacho por nombre exacto
        self._comandos = {
            "startbot": self.start_bot,
            "detener": self.stop_bot,
            "link": self.link,
        }
        self._botones = {
            PLAY_PAUSE_ID: self.toggle_button,
            STOP_ID: self.stop_button,
        }

    async def cog_load(self):
        # botones de mensajes viejos siguen respondiendo tras reiniciar
        self.bot.add_view(ControlesReproductor(self))

    async def cog_unload(self):
        for guild_id in self.store.guild_ids():
            try:
                await self.voice.stop(guild_id)
            except NoActiveSession:
                pass

    # -------------------------
    # Respuestas
    # -------------------------
    async def _responder(self, interaction: discord.Interaction, content: str, *, ephemeral: bool = True):
        if interaction.response.is_done():
            await interaction.followup.send(content, ephemeral=ephemeral)
        else:
            await interaction.response.send_message(content, ephemeral=ephemeral)

    async def _avisar_error(self, interaction: discord.Interaction, content: str):
        try:
            if interaction.response.is_done():
                # el primer followup tras un defer público reemplaza el "pensando..." y no es efímero
                try:
                    await interaction.delete_original_response()
                except discord.NotFound:
                    pass
            await self._responder(interaction, content, ephemeral=True)
        except discord.HTTPException as e:
            log.error("[%s] No se pudo enviar el mensaje de error: %s", interaction.guild_id, e)

    async def _ejecutar(self, interaction: discord.Interaction, nombre: str, handler, **opciones):
        """Frontera de errores: se loguea todo, al usuario solo le llega un mensaje corto."""
        try:
            await handler(interaction, **opciones)
        except LinkPlayerError as e:
            log.warning("[%s] %s en '%s': %s", interaction.guild_id, type(e).__name__, nombre, e)
            await self._avisar_error(interaction, e.mensaje)
        except Exception:
            log.exception("[%s] Error al procesar '%s'.", interaction.guild_id, nombre)
            await self._avisar_error(interaction, InternalError.mensaje)

    # -------------------------
    # Despacho
    # -------------------------
    async def dispatch_command(self, interaction: discord.Interaction, nombre: str, **opciones):
        handler = self._comandos.get(nombre)
        if handler is None:
            log.debug("Comando desconocido ignorado: %s", nombre)
            return
        await self._ejecutar(interaction, nombre, handler, **opciones)

    async def dispatch_button(self, interaction: discord.Interaction, custom_id: str):
        handler = self._botones.get(custom_id)
        if handler is None:
            log.debug("Botón desconocido ignorado: %s", custom_id)
            return
        await self._ejecutar(interaction, custom_id, handler)

    # -------------------------
    # Handlers
    # -------------------------
    async def start_bot(self, interaction: discord.Interaction):
        # sin canal de voz: respuesta efímera inmediata, sin tocar nada
        voice_channel_of(interaction.user)
        await interaction.response.defer(thinking=True)

        session = await self.voice.start(interaction.guild, interaction.user)
        channel = interaction.guild.get_channel(session.channel_id)
        nombre = channel.name if channel else session.channel_id
        await interaction.followup.send(
            f"🎶 Bot conectado al canal de voz **{nombre}**. Usa `/link <url>` para reproducir audio."
        )

    async def stop_bot(self, interaction: discord.Interaction):
        await self.voice.stop(interaction.guild_id)
        await self._responder(interaction, "🔴 Bot desconectado del canal de voz.", ephemeral=False)

    async def link(self, interaction: discord.Interaction, url: Optional[str] = None):
        guild_id = interaction.guild_id
        url = self.playback.validate(guild_id, url, mensaje_sin_sesion=SIN_CONEXION_LINK)
        await interaction.response.defer()

        async def announce():
            await interaction.edit_original_response(
                embed=build_player_embed(url),
                view=ControlesReproductor(self, url),
            )

        try:
            await self.playback.play(
                guild_id,
                url,
                announce=announce,
                channel=interaction.channel,
                mensaje_sin_sesion=SIN_CONEXION_LINK,
            )
        except LinkPlayerError as e:
            log.warning("[%s] No se pudo reproducir %s: %s", guild_id, url, e.__cause__ or e)
            await interaction.edit_original_response(content=e.mensaje, embed=None, view=None)
        except Exception:
            log.exception("[%s] Error en el comando link.", guild_id)
            await interaction.edit_original_response(content=InternalError.mensaje, embed=None, view=None)

    async def toggle_button(self, interaction: discord.Interaction):
        status = self.playback.toggle_play_pause(interaction.guild_id, mensaje=SIN_REPRODUCTOR)
        if status is PlayerStatus.PAUSED:
            await self._responder(interaction, "⏸️ Audio pausado.")
        else:
            await self._responder(interaction, "▶️ Audio reanudado.")

    async def stop_button(self, interaction: discord.Interaction):
        self.playback.stop_playback(interaction.guild_id, mensaje=SIN_REPRODUCTOR)
        await self._responder(interaction, "⏹️ Audio detenido.")

    # -------------------------
    # Slash commands
    # -------------------------
    @app_commands.command(name="startbot", description="Inicia el bot en el canal de voz actual")
    @app_commands.guild_only()
    async def startbot_cmd(self, interaction: discord.Interaction):
        await self.dispatch_command(interaction, "startbot")

    @app_commands.command(name="detener", description="Detiene el bot y lo desconecta del canal de voz")
    @app_commands.guild_only()
    async def detener_cmd(self, interaction: discord.Interaction):
        await self.dispatch_command(interaction, "detener")

    @app_commands.command(name="link", description="Reproduce audio desde una URL")
    @app_commands.describe(url="URL del audio (MP3, M3U, etc.)")
    @app_commands.guild_only()
    async def link_cmd(self, interaction: discord.Interaction, url: str):
        await self.dispatch_command(interaction, "link", url=url)

    async def cog_app_command_error(self, interaction: discord.Interaction, error: app_commands.AppCommandError):
        log.error("[%s] Error de app command: %s", interaction.guild_id, error, exc_info=error)
        await self._avisar_error(interaction, InternalError.mensaje)

    # -------------------------
    # Eventos
    # -------------------------
    @commands.Cog.listener()
    async def on_voice_state_update(self, member: discord.Member, before: discord.VoiceState, after: discord.VoiceState):
        if not self.bot.user or member.id != self.bot.user.id:
            return
        session = self.store.get(member.guild.id)
        if not session:
            return

        if after.channel is None:
            # expulsado o desconectado desde Discord
            if before.channel and before.channel.id == session.channel_id and not session.connection.is_connected():
                self.voice.forget(member.guild.id)
        elif after.channel.id != session.channel_id:
            log.info("[%s] Movido al canal de voz %s.", member.guild.id, after.channel.name)
            session.channel_id = after.channel.id


async def setup(bot):
    await bot.add_cog(Reproductor(bot))
