"""
Remote fetching for uploads.

Wraps a shared ``requests`` session: a metadata-only HEAD probe and a
streamed GET whose body is read chunk by chunk and can be abandoned at any
point by closing it.
"""

import logging
from typing import Iterator, Optional

import requests

from shared.constants import DEFAULT_NETWORK_TIMEOUT, DEFAULT_DOWNLOAD_CHUNK_SIZE
from shared.errors import TransferFailed
from shared.models import RemoteMetadata

logger = logging.getLogger(__name__)

USER_AGENT = "audio-selector/1.0"


def _build_session() -> requests.Session:
    session = requests.Session()
    adapter = requests.adapters.HTTPAdapter(pool_connections=10, pool_maxsize=10, max_retries=2)
    session.mount('https://', adapter)
    session.mount('http://', adapter)
    session.headers['User-Agent'] = USER_AGENT
    return session


def _parse_length(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        length = int(value)
    except ValueError:
        return None
    return length if length >= 0 else None


class RemoteStream:
    """
    An open streamed response.

    Iterate ``chunks()`` to read the body; call ``close()`` (or leave the
    ``with`` block) to cancel the transfer and release the connection.
    """

    def __init__(self, response: requests.Response, chunk_size: int = DEFAULT_DOWNLOAD_CHUNK_SIZE):
        self.response = response
        self.chunk_size = chunk_size
        self.bytes_read = 0
        self.closed = False

    @property
    def content_length(self) -> Optional[int]:
        return _parse_length(self.response.headers.get('Content-Length'))

    @property
    def content_type(self) -> Optional[str]:
        return self.response.headers.get('Content-Type')

    def chunks(self) -> Iterator[bytes]:
        try:
            for chunk in self.response.iter_content(chunk_size=self.chunk_size):
                if chunk:
                    self.bytes_read += len(chunk)
                    yield chunk
        except requests.RequestException as e:
            raise TransferFailed(f"Transfer from {self.response.url} broke after {self.bytes_read} bytes: {e}") from e

    def close(self) -> None:
        if not self.closed:
            self.closed = True
            self.response.close()

    def __enter__(self) -> 'RemoteStream':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class RemoteFetcher:
    """HTTP(S) fetcher for direct file links."""

    def __init__(self, session: Optional[requests.Session] = None,
                 timeout: int = DEFAULT_NETWORK_TIMEOUT,
                 chunk_size: int = DEFAULT_DOWNLOAD_CHUNK_SIZE):
        self.session = session or _build_session()
        self.timeout = timeout
        self.chunk_size = chunk_size

    def head_metadata(self, url: str) -> RemoteMetadata:
        """
        Probe ``url`` without downloading the body.

        A server that refuses HEAD yields metadata without a length rather
        than an error; only network failures raise.
        """
        try:
            response = self.session.head(url, allow_redirects=True, timeout=self.timeout)
        except requests.RequestException as e:
            raise TransferFailed(f"HEAD {url} failed: {e}") from e

        with response:
            if not response.ok:
                logger.debug("HEAD %s returned %s; size unknown", url, response.status_code)
                return RemoteMetadata(url=url)
            return RemoteMetadata(
                url=url,
                content_length=_parse_length(response.headers.get('Content-Length')),
                content_type=response.headers.get('Content-Type'),
            )

    def stream_get(self, url: str) -> RemoteStream:
        """Open a streamed GET; the caller owns the returned stream."""
        try:
            response = self.session.get(url, stream=True, timeout=self.timeout)
        except requests.RequestException as e:
            raise TransferFailed(f"GET {url} failed: {e}") from e

        try:
            response.raise_for_status()
        except requests.HTTPError as e:
            response.close()
            raise TransferFailed(f"GET {url} returned {response.status_code}") from e
        return RemoteStream(response, chunk_size=self.chunk_size)
