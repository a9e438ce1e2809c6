# linkplayer/__init__.py
from .state import GuildAudioSession, SessionStore
from .player import AudioPlayer, PlayerStatus
from .source import StreamResolver, StreamSource, create_resource
from .voice import VoiceSessionManager
from .playback import PlaybackController
from .views import ControlesReproductor, build_player_embed
