"""
Shared constants used across the selector and ingestion tools.
"""

# Configuration paths
DEFAULT_CONFIG_DIR = "~/.config/audio-selector"
CONFIG_FILENAME = "config.json"
ENV_PREFIX = "AUDIO_SELECTOR_"

# Selection settings
DEFAULT_PROMPT_TIMEOUT = 30  # seconds
DEFAULT_CANCEL_KEYWORD = "cancel"

# Voice transports (narrowband delivery)
DEFAULT_VOICE_SAMPLE_RATE = 24000  # Hz
VOICE_CHANNELS = 1
DEFAULT_VOICE_BITRATE = "24k"
PCM_FORMAT = "s16le"
VOICE_CODEC = "libopus"
VOICE_CONTAINER = "ogg"
VOICE_MIME = "audio/ogg"

# Network Settings
DEFAULT_NETWORK_TIMEOUT = 30  # seconds
DEFAULT_DOWNLOAD_CHUNK_SIZE = 64 * 1024  # bytes
PARTIAL_SUFFIX = ".part"

# Extensions for sniffed audio types; anything else falls back to mimetypes
AUDIO_EXTENSION_BY_MIME = {
    "audio/mpeg": "mp3",
    "audio/mp3": "mp3",
    "audio/flac": "flac",
    "audio/x-flac": "flac",
    "audio/ogg": "ogg",
    "audio/opus": "opus",
    "audio/wav": "wav",
    "audio/x-wav": "wav",
    "audio/vnd.wave": "wav",
    "audio/mp4": "m4a",
    "audio/x-m4a": "m4a",
    "audio/aac": "aac",
    "audio/x-hx-aac-adts": "aac",
    "audio/x-aiff": "aiff",
    "audio/aiff": "aiff",
    "audio/amr": "amr",
    "audio/x-ms-wma": "wma",
    "audio/midi": "mid",
    "audio/webm": "weba",
}

# User-facing messages
MSG_RESULTS_HEADER = "Search results:"
MSG_NO_RESULTS = "Nothing found"
MSG_SELECT_PROMPT = "Send a number within {timeout} seconds to play it, or '{cancel}' to cancel"
MSG_CANCELLED = "Playback cancelled"
MSG_INVALID_SELECTION = "Invalid number"
MSG_SENDING = "Sending..."
MSG_UPLOADED = "Upload succeeded"
MSG_UNEXPECTED = "Something went wrong, please check the logs"
