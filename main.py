import os
import sys
import asyncio
import logging

import discord
from discord.ext import commands
from dotenv import load_dotenv

# =========================
#  Config
# =========================
load_dotenv()
TOKEN = os.getenv("DISCORD_TOKEN")
# Si estás probando en un solo servidor, pon aquí su ID o en .env DEV_GUILD_ID=1234567890
DEV_GUILD_ID = int(os.getenv("DEV_GUILD_ID", "0"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# =========================
#  Logging
# =========================
logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s:%(name)s: %(message)s")
log = logging.getLogger("linkplayer")
logging.getLogger("discord").setLevel(LOG_LEVEL)

# =========================
#  Intents & Bot
# =========================
intents = discord.Intents.default()
intents.guilds = True
intents.guild_messages = True
intents.voice_states = True
bot = commands.Bot(command_prefix=commands.when_mentioned, intents=intents, help_command=None)

EXTENSIONS = ("cogs.reproductor",)


def _log_loop_exception(loop: asyncio.AbstractEventLoop, context: dict):
    # log y seguir: un error suelto no debe tumbar el bot
    exc = context.get("exception")
    log.error("Excepción no capturada: %s", context.get("message"), exc_info=exc)


# =========================
#  setup_hook = lugar correcto para preparar el bot
# =========================
@bot.event
async def setup_hook():
    asyncio.get_running_loop().set_exception_handler(_log_loop_exception)

    for ext in EXTENSIONS:
        await bot.load_extension(ext)
        log.info("✅ Cargado: %s", ext)

    try:
        if DEV_GUILD_ID:
            # Sync SOLO en tu servidor (aparecen al instante, ideal para pruebas)
            guild = discord.Object(id=DEV_GUILD_ID)
            bot.tree.copy_global_to(guild=guild)
            synced = await bot.tree.sync(guild=guild)
            log.info("[SYNC] Guild %s: %d slash commands registrados.", DEV_GUILD_ID, len(synced))
        else:
            synced = await bot.tree.sync()
            log.info("[SYNC] Global: %d slash commands registrados.", len(synced))
    except discord.HTTPException as e:
        log.error("[SYNC][ERROR] %s", e)


# =========================
#  Eventos
# =========================
@bot.event
async def on_ready():
    log.info("✅ Bot conectado como %s", bot.user)
    log.info("🆔 ID: %s", bot.user.id)
    log.info("🏓 Ping: %.0fms", bot.latency * 1000)
    log.info("👂 Servidores: %d", len(bot.guilds))


# =========================
#  Run
# =========================
async def main() -> int:
    if not TOKEN:
        log.critical("❌ CRÍTICO: No se encontró DISCORD_TOKEN en .env")
        return 1
    async with bot:
        try:
            await bot.start(TOKEN)
        except discord.LoginFailure as e:
            log.critical("❌ Error al iniciar sesión: %s", e)
            return 1
    return 0


if __name__ == "__main__":
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        log.info("🛑 Bot apagado manualmente.")
