"""
Playback dispatch: hand a selected catalog entry to the requester's transport.
"""

import logging
from pathlib import Path
from typing import Any, Iterable, Optional

import ffmpeg

from shared.constants import DEFAULT_VOICE_SAMPLE_RATE, VOICE_CHANNELS, MSG_SENDING
from shared.errors import PlaybackFailed
from shared.models import AudioPayload, CatalogEntry, DeliveryResult, FileReference
from selector.codec import Transcoder, VoiceEncoder, describe_ffmpeg_error
from selector.transports import MessageTransport

logger = logging.getLogger(__name__)


class PlaybackDispatcher:
    """
    Delivers catalog files either as a direct file reference or, for
    voice-only platforms, as an inline encoded voice clip.
    """

    def __init__(self, directory: Path,
                 transcoder: Optional[Transcoder] = None,
                 encoder: Optional[VoiceEncoder] = None,
                 voice_platforms: Iterable[str] = (),
                 sample_rate: int = DEFAULT_VOICE_SAMPLE_RATE):
        self.directory = Path(directory).expanduser()
        self.transcoder = transcoder
        self.encoder = encoder
        self.voice_platforms = set(voice_platforms)
        self.sample_rate = sample_rate

    def needs_voice(self, transport: MessageTransport) -> bool:
        return transport.platform in self.voice_platforms

    def resolve(self, entry: CatalogEntry) -> Path:
        return (self.directory / entry.raw_name).absolute()

    def dispatch(self, entry: CatalogEntry, transport: MessageTransport) -> DeliveryResult:
        """
        Send ``entry`` to ``transport``.

        Raises:
            PlaybackFailed: if the file could not be converted or delivered
        """
        try:
            status = transport.send(MSG_SENDING)
        except Exception as e:
            raise PlaybackFailed(f"Status message over {transport.platform} failed: {e}") from e
        path = self.resolve(entry)

        if self.needs_voice(transport):
            payload = self._encode_voice(path)
        else:
            payload = FileReference(path)

        try:
            handle = transport.send(payload)
        except Exception as e:
            raise PlaybackFailed(f"Delivery of {path} over {transport.platform} failed: {e}") from e

        logger.info("Delivered %s to %s via %s", entry.raw_name, transport.user_id, transport.platform)
        self._cleanup_status(transport, status)
        return DeliveryResult(handle=handle, payload=payload)

    def _encode_voice(self, path: Path) -> AudioPayload:
        if self.transcoder is None or self.encoder is None:
            raise PlaybackFailed("Voice delivery requested but no transcoder/encoder is configured")
        if not (self.transcoder.is_available and self.encoder.is_available):
            raise PlaybackFailed("Voice delivery requested but the audio services are unavailable")

        try:
            data = path.read_bytes()
            pcm = self.transcoder.resample(data, self.sample_rate, VOICE_CHANNELS)
            encoded = self.encoder.encode(pcm, self.sample_rate)
        except ffmpeg.Error as e:
            raise PlaybackFailed(f"ffmpeg failed on {path}: {describe_ffmpeg_error(e)}") from e
        except Exception as e:
            raise PlaybackFailed(f"Voice conversion of {path} failed: {e}") from e

        if not encoded:
            raise PlaybackFailed(f"Voice encoder produced no data for {path}")
        return AudioPayload(data=encoded, mime=self.encoder.mime)

    @staticmethod
    def _cleanup_status(transport: MessageTransport, handle: Any) -> None:
        try:
            if not transport.delete_message(handle):
                logger.debug("Status message %r was not deleted", handle)
        except Exception as e:
            logger.debug("Could not delete status message %r: %s", handle, e)
