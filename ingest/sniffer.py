"""
Content sniffing from leading bytes.

Uploads are classified by libmagic on the first received chunk; the URL
and the server's Content-Type are never trusted.
"""

import logging
import mimetypes
from abc import ABC, abstractmethod
from typing import Optional

from shared.constants import AUDIO_EXTENSION_BY_MIME
from shared.models import SniffResult

logger = logging.getLogger(__name__)


def extension_for(mime: str) -> Optional[str]:
    """File extension (no dot) for a MIME type, or None if unknown."""
    mime = mime.lower()
    if mime in AUDIO_EXTENSION_BY_MIME:
        return AUDIO_EXTENSION_BY_MIME[mime]
    guess = mimetypes.guess_extension(mime, strict=False)
    if guess:
        return guess.lstrip('.')
    if mime.startswith("audio/x-"):
        return mime[len("audio/x-"):] or None
    return None


class ContentSniffer(ABC):
    """Classifies a byte buffer by its content."""

    @abstractmethod
    def sniff(self, chunk: bytes) -> SniffResult:
        pass


class MagicSniffer(ContentSniffer):
    """libmagic-backed sniffer (python-magic)."""

    def __init__(self):
        # python-magic needs the libmagic shared library at import time
        import magic
        self._magic = magic.Magic(mime=True)

    def sniff(self, chunk: bytes) -> SniffResult:
        if not chunk:
            return SniffResult(mime="application/x-empty")
        mime = self._magic.from_buffer(chunk) or "application/octet-stream"
        result = SniffResult(mime=mime, extension=extension_for(mime))
        logger.debug("Sniffed %d bytes as %s", len(chunk), result.mime)
        return result
