# linkplayer/views.py
from __future__ import annotations

from typing import Optional

import discord

from .config import EMBED_COLOR, EMBED_THUMBNAIL, EMBED_TITLE

PLAY_PAUSE_ID = "play_pause"
STOP_ID = "stop"
LINK_URL_MAX_LENGTH = 512


def build_player_embed(url: str) -> discord.Embed:
    embed = discord.Embed(
        title=EMBED_TITLE,
        description=f"Reproduciendo: [{url}]({url})",
        color=EMBED_COLOR,
    )
    embed.set_thumbnail(url=EMBED_THUMBNAIL)
    return embed


def is_linkable(url: Optional[str]) -> bool:
    # Discord rechaza botones link con URLs de más de 512 caracteres
    return bool(url) and len(url) <= LINK_URL_MAX_LENGTH and url.lower().startswith(("http://", "https://"))


class ControlesReproductor(discord.ui.View):
    """
    View persistente (timeout=None).
    custom_id fijos para que los botones sigan funcionando tras reiniciar;
    cada botón delega en el cog, que es quien despacha.
    """

    def __init__(self, cog, url: Optional[str] = None):
        super().__init__(timeout=None)
        self.cog = cog
        if is_linkable(url):
            self.add_item(discord.ui.Button(label="Abrir en navegador", style=discord.ButtonStyle.link, url=url))

    @discord.ui.button(label="⏯️ Play/Pause", style=discord.ButtonStyle.primary, custom_id=PLAY_PAUSE_ID)
    async def play_pause(self, interaction: discord.Interaction, button: discord.ui.Button):
        await self.cog.dispatch_button(interaction, PLAY_PAUSE_ID)

    @discord.ui.button(label="⏹️ Stop", style=discord.ButtonStyle.danger, custom_id=STOP_ID)
    async def stop_btn(self, interaction: discord.Interaction, button: discord.ui.Button):
        await self.cog.dispatch_button(interaction, STOP_ID)
