"""
Audio conversion for voice-only transports.

Some chat platforms only accept short narrowband voice clips, so files are
resampled to mono PCM and then encoded with a voice codec. Both steps shell
out to ffmpeg; neither is required for plain file delivery.
"""

import logging
import shutil
from abc import ABC, abstractmethod

import ffmpeg

from shared.constants import (
    PCM_FORMAT,
    VOICE_CODEC,
    VOICE_CONTAINER,
    VOICE_MIME,
    DEFAULT_VOICE_BITRATE,
)

logger = logging.getLogger(__name__)


class Transcoder(ABC):
    """Resamples arbitrary audio to raw PCM."""

    @property
    @abstractmethod
    def is_available(self) -> bool:
        pass

    @abstractmethod
    def resample(self, data: bytes, sample_rate: int, channels: int) -> bytes:
        """Decode ``data`` and return signed 16-bit little-endian PCM."""
        pass


class VoiceEncoder(ABC):
    """Encodes PCM into a compact voice codec."""

    mime: str = VOICE_MIME

    @property
    @abstractmethod
    def is_available(self) -> bool:
        pass

    @abstractmethod
    def encode(self, pcm: bytes, sample_rate: int) -> bytes:
        pass


def ffmpeg_installed(binary: str = "ffmpeg") -> bool:
    return shutil.which(binary) is not None


class FfmpegTranscoder(Transcoder):
    """Resampler backed by the ffmpeg binary."""

    def __init__(self, binary: str = "ffmpeg"):
        self.binary = binary

    @property
    def is_available(self) -> bool:
        return ffmpeg_installed(self.binary)

    def resample(self, data: bytes, sample_rate: int, channels: int) -> bytes:
        stream = ffmpeg.input('pipe:0')
        stream = ffmpeg.output(
            stream,
            'pipe:1',
            format=PCM_FORMAT,
            acodec='pcm_' + PCM_FORMAT,
            ac=channels,
            ar=sample_rate
        )
        pcm, _ = ffmpeg.run(stream, cmd=self.binary, input=data,
                            capture_stdout=True, capture_stderr=True)
        logger.debug("Resampled %d bytes to %d bytes of PCM", len(data), len(pcm))
        return pcm


class FfmpegVoiceEncoder(VoiceEncoder):
    """Opus-in-Ogg voice encoder (VoIP profile, low bitrate) backed by ffmpeg."""

    def __init__(self, binary: str = "ffmpeg", bitrate: str = DEFAULT_VOICE_BITRATE,
                 codec: str = VOICE_CODEC, container: str = VOICE_CONTAINER,
                 mime: str = VOICE_MIME):
        self.binary = binary
        self.bitrate = bitrate
        self.codec = codec
        self.container = container
        self.mime = mime

    @property
    def is_available(self) -> bool:
        return ffmpeg_installed(self.binary)

    def encode(self, pcm: bytes, sample_rate: int) -> bytes:
        stream = ffmpeg.input('pipe:0', format=PCM_FORMAT, ac=1, ar=sample_rate)
        stream = ffmpeg.output(
            stream,
            'pipe:1',
            format=self.container,
            acodec=self.codec,
            audio_bitrate=self.bitrate,
            application='voip'
        )
        encoded, _ = ffmpeg.run(stream, cmd=self.binary, input=pcm,
                                capture_stdout=True, capture_stderr=True)
        return encoded


def describe_ffmpeg_error(error: ffmpeg.Error) -> str:
    """Last stderr line of a failed ffmpeg run, for log messages."""
    stderr = (error.stderr or b"").decode('utf-8', errors='replace').strip()
    return stderr.splitlines()[-1] if stderr else str(error)
