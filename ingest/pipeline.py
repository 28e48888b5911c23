"""
Streaming ingestion of remote audio files into the catalog folder.

The body is written while it downloads. Only the first chunk is inspected
before anything touches the disk: it decides whether the upload is audio at
all and which extension the file gets. Bytes go to a hidden ``.part`` file
that is linked to its final name once the transfer is complete, so a file
under the final name is never partial.
"""

import logging
import os
import time
import uuid
from pathlib import Path
from typing import Callable, Iterator, Optional

from shared.constants import PARTIAL_SUFFIX
from shared.errors import InvalidFilename, NameCollision, NotAudio, TooLarge, TransferFailed
from shared.models import IngestionResult, IngestionTask, SniffResult
from ingest.fetcher import RemoteFetcher, RemoteStream
from ingest.sniffer import ContentSniffer

logger = logging.getLogger(__name__)

_SEPARATORS = ('/', '\\', os.sep) + ((os.altsep,) if os.altsep else ())


def validate_requested_name(name: str) -> str:
    """Reject names that would escape the catalog folder."""
    name = name.strip()
    if not name or name in ('.', '..') or any(sep in name for sep in _SEPARATORS) or '\x00' in name:
        raise InvalidFilename(f"Refusing upload name {name!r}")
    return name


def generated_name(uploader_id: str, clock: Callable[[], float] = time.time) -> str:
    """``<uploader>-<unix millis>``."""
    safe_id = uploader_id
    for sep in _SEPARATORS:
        safe_id = safe_id.replace(sep, '_')
    return f"{safe_id}-{int(clock() * 1000)}"


def _extension(sniffed: SniffResult) -> str:
    if sniffed.extension:
        return sniffed.extension
    subtype = sniffed.mime.split('/', 1)[-1].split(';', 1)[0].strip()
    return subtype or "audio"


class IngestionPipeline:
    """
    Runs one upload at a time per call; holds no per-upload state, so a
    single pipeline can serve concurrent requests.
    """

    def __init__(self, fetcher: RemoteFetcher, sniffer: ContentSniffer,
                 clock: Callable[[], float] = time.time):
        self.fetcher = fetcher
        self.sniffer = sniffer
        self.clock = clock

    def run(self, task: IngestionTask) -> IngestionResult:
        """
        Download ``task.source_url`` into ``task.target_dir``.

        Raises:
            InvalidFilename, TooLarge, NotAudio, NameCollision, TransferFailed
        """
        base_name = validate_requested_name(task.requested_name) if task.requested_name else None
        target_dir = Path(task.target_dir).expanduser()

        if task.size_limit is not None:
            self._probe_size(task.source_url, task.size_limit)

        with self.fetcher.stream_get(task.source_url) as stream:
            chunks = stream.chunks()
            first = next(chunks, b"")

            sniffed = self.sniffer.sniff(first)
            if not sniffed.is_audio:
                self._abort(stream, "not audio (%s)" % sniffed.mime)
                raise NotAudio(f"{task.source_url} sniffed as {sniffed.mime}")

            filename = f"{base_name or generated_name(task.uploader_id, self.clock)}.{_extension(sniffed)}"
            final_path = target_dir / filename
            if final_path.exists():
                self._abort(stream, "name collision on %s" % filename)
                raise NameCollision(f"{final_path} already exists")

            written = self._commit(first, chunks, final_path, task.size_limit)

        logger.info("Stored %s (%s, %d bytes) from %s", final_path, sniffed.mime, written, task.source_url)
        return IngestionResult(path=final_path, mime=sniffed.mime, bytes_written=written)

    def _probe_size(self, url: str, limit: int) -> None:
        meta = self.fetcher.head_metadata(url)
        if meta.content_length is None:
            logger.debug("%s advertises no size; enforcing %d bytes while streaming", url, limit)
        elif meta.content_length > limit:
            raise TooLarge(f"{url} advertises {meta.content_length} bytes, limit is {limit}")

    @staticmethod
    def _abort(stream: RemoteStream, reason: str) -> None:
        logger.info("Cancelling transfer after %d bytes: %s", stream.bytes_read, reason)
        stream.close()

    def _commit(self, first: bytes, rest: Iterator[bytes], final_path: Path,
                limit: Optional[int]) -> int:
        partial = final_path.with_name(f".{final_path.name}.{uuid.uuid4().hex[:8]}{PARTIAL_SUFFIX}")
        written = 0
        try:
            try:
                with open(partial, 'xb') as f:
                    for chunk in self._with_first(first, rest):
                        written += len(chunk)
                        if limit is not None and written > limit:
                            raise TooLarge(f"Body exceeded {limit} bytes while streaming")
                        f.write(chunk)
            except OSError as e:
                raise TransferFailed(f"Could not write {partial}: {e}") from e
            self._publish(partial, final_path)
        finally:
            if partial.exists():
                partial.unlink()
        return written

    @staticmethod
    def _with_first(first: bytes, rest: Iterator[bytes]) -> Iterator[bytes]:
        yield first
        yield from rest

    @staticmethod
    def _publish(partial: Path, final_path: Path) -> None:
        """Give the finished file its name without replacing an existing one."""
        try:
            os.link(partial, final_path)
        except FileExistsError as e:
            raise NameCollision(f"{final_path} appeared during the transfer") from e
        except OSError:
            # No hard links on this filesystem
            if final_path.exists():
                raise NameCollision(f"{final_path} appeared during the transfer")
            os.replace(partial, final_path)
