"""In-memory collaborators for selector and ingestion tests."""

import itertools
from typing import Any, List, Optional

import pytest

from shared.errors import TransferFailed
from shared.models import RemoteMetadata, SelectorConfig, SniffResult
from selector.transports import MessageTransport
from ingest.sniffer import ContentSniffer

MP3_HEADER = b"ID3\x04\x00\x00\x00\x00\x00\x00" + b"\xff\xfb\x90\x64" + b"\x00" * 64
WAV_HEADER = b"RIFF\x24\x00\x00\x00WAVEfmt " + b"\x00" * 64
PNG_HEADER = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR" + b"\x00" * 64
TEXT_BODY = b"<html><body>definitely not a song</body></html>"


class FakeTransport(MessageTransport):
    """Replays scripted replies and records everything sent."""

    def __init__(self, replies: Optional[List[Optional[str]]] = None, platform: str = "console",
                 user_id: str = "alice", fail_send_types=(), delete_raises: bool = False):
        self.replies = list(replies or [])
        self.platform = platform
        self._user_id = user_id
        self.sent: List[Any] = []
        self.deleted: List[Any] = []
        self.timeouts: List[float] = []
        self.fail_send_types = tuple(fail_send_types)
        self.delete_raises = delete_raises
        self._handles = itertools.count(100)

    @property
    def user_id(self) -> str:
        return self._user_id

    def send(self, content):
        if self.fail_send_types and isinstance(content, self.fail_send_types):
            raise ConnectionError("transport down")
        self.sent.append(content)
        return next(self._handles)

    def await_reply(self, timeout):
        self.timeouts.append(timeout)
        if not self.replies:
            return None
        return self.replies.pop(0)

    def delete_message(self, handle):
        if self.delete_raises:
            raise RuntimeError("cannot delete")
        self.deleted.append(handle)
        return True


class FakeStream:
    def __init__(self, chunks, fail_after: Optional[int] = None):
        self._chunks = list(chunks)
        self.fail_after = fail_after
        self.bytes_read = 0
        self.chunks_read = 0
        self.closed = False

    def chunks(self):
        for chunk in self._chunks:
            if self.fail_after is not None and self.chunks_read >= self.fail_after:
                raise TransferFailed("connection reset")
            self.chunks_read += 1
            self.bytes_read += len(chunk)
            yield chunk

    def close(self):
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


class FakeFetcher:
    """Serves a fixed body; counts HEAD probes and opened streams."""

    def __init__(self, chunks, content_length: Optional[int] = None, fail_after: Optional[int] = None):
        self.chunk_list = list(chunks)
        self.content_length = content_length
        self.fail_after = fail_after
        self.head_calls: List[str] = []
        self.streams: List[FakeStream] = []

    def head_metadata(self, url):
        self.head_calls.append(url)
        return RemoteMetadata(url=url, content_length=self.content_length)

    def stream_get(self, url):
        stream = FakeStream(self.chunk_list, fail_after=self.fail_after)
        self.streams.append(stream)
        return stream

    @property
    def body_bytes_read(self) -> int:
        return sum(s.bytes_read for s in self.streams)


class PrefixSniffer(ContentSniffer):
    """Recognises the handful of headers used in these tests."""

    def sniff(self, chunk):
        if chunk.startswith(b"ID3") or chunk.startswith(b"\xff\xfb"):
            return SniffResult(mime="audio/mpeg", extension="mp3")
        if chunk.startswith(b"RIFF") and chunk[8:12] == b"WAVE":
            return SniffResult(mime="audio/x-wav", extension="wav")
        if chunk.startswith(b"\x89PNG"):
            return SniffResult(mime="image/png", extension="png")
        if not chunk:
            return SniffResult(mime="application/x-empty")
        return SniffResult(mime="text/plain", extension="txt")


@pytest.fixture
def catalog_dir(tmp_path):
    folder = tmp_path / "music"
    folder.mkdir()
    for name in ("a.mp3", "ab.mp3", "abc.wav"):
        (folder / name).write_bytes(b"audio:" + name.encode())
    return folder


@pytest.fixture
def config(catalog_dir):
    return SelectorConfig(path=str(catalog_dir), allow_upload=True)
