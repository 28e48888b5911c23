"""
Data models for catalog entries, selection outcomes, uploads and configuration.

This module defines the core data structures shared by the selector
(search, selection, playback) and the ingestion pipeline.
"""

from dataclasses import dataclass, asdict, field
from typing import List, Dict, Optional, Any, Union
from enum import Enum
from pathlib import Path
import dataclasses
import json

from shared.constants import (
    DEFAULT_PROMPT_TIMEOUT,
    DEFAULT_CANCEL_KEYWORD,
    DEFAULT_VOICE_SAMPLE_RATE,
    DEFAULT_VOICE_BITRATE,
    DEFAULT_DOWNLOAD_CHUNK_SIZE,
    DEFAULT_NETWORK_TIMEOUT,
)


def strip_extension(name: str) -> str:
    """Drop the final ``.ext`` segment; names without a dot are kept whole."""
    dot = name.rfind('.')
    if dot == -1:
        return name
    return name[:dot]


@dataclass(frozen=True)
class CatalogEntry:
    """
    A single playable file in the catalog directory.

    Attributes:
        raw_name: Literal directory entry name (e.g. ``song.mp3``)
        display_name: ``raw_name`` without its final extension
    """
    raw_name: str
    display_name: str

    @classmethod
    def from_name(cls, raw_name: str) -> 'CatalogEntry':
        return cls(raw_name=raw_name, display_name=strip_extension(raw_name))


SearchResult = List[CatalogEntry]


class SelectionState(Enum):
    """States of an interactive selection session."""
    AWAITING_REPLY = "awaiting_reply"
    CANCELLED = "cancelled"
    INVALID = "invalid"
    SELECTED = "selected"
    TIMED_OUT = "timed_out"


@dataclass
class SelectionOutcome:
    """Terminal result of a selection session."""
    state: SelectionState
    index: Optional[int] = None  # 1-based
    entry: Optional[CatalogEntry] = None
    reply: Optional[str] = None

    @property
    def is_selected(self) -> bool:
        return self.state is SelectionState.SELECTED


@dataclass
class AudioPayload:
    """Encoded audio bytes delivered inline with an explicit MIME tag."""
    data: bytes
    mime: str

    def __repr__(self) -> str:
        return f"AudioPayload(mime={self.mime!r}, size={len(self.data)})"


@dataclass
class FileReference:
    """A direct reference to a file on local disk."""
    path: Path

    @property
    def uri(self) -> str:
        return Path(self.path).absolute().as_uri()


Deliverable = Union[str, AudioPayload, FileReference]


@dataclass
class DeliveryResult:
    """What the dispatcher handed to the transport."""
    handle: Any
    payload: Union[AudioPayload, FileReference]

    @property
    def transcoded(self) -> bool:
        return isinstance(self.payload, AudioPayload)


@dataclass
class SniffResult:
    """Content type classified from leading bytes."""
    mime: str
    extension: Optional[str] = None

    @property
    def is_audio(self) -> bool:
        return self.mime.startswith("audio/")


@dataclass
class RemoteMetadata:
    """Metadata-only view of a remote resource."""
    url: str
    content_length: Optional[int] = None
    content_type: Optional[str] = None


@dataclass
class IngestionTask:
    """
    A single upload request.

    Attributes:
        source_url: Direct link to the audio file
        target_dir: Catalog directory the file is committed into
        uploader_id: Stable identity of the requester
        requested_name: Optional base name (without extension)
        size_limit: Optional maximum size in bytes
    """
    source_url: str
    target_dir: Path
    uploader_id: str
    requested_name: Optional[str] = None
    size_limit: Optional[int] = None


@dataclass
class IngestionResult:
    """A committed upload."""
    path: Path
    mime: str
    bytes_written: int


@dataclass
class SelectorConfig:
    """
    Selector configuration stored locally.

    Contains the catalog location, upload permissions and voice settings.
    """
    path: str
    allow_upload: bool = False
    whitelist: List[str] = field(default_factory=list)
    max_upload_bytes: Optional[int] = None
    prompt_timeout: int = DEFAULT_PROMPT_TIMEOUT
    cancel_keyword: str = DEFAULT_CANCEL_KEYWORD
    voice_platforms: List[str] = field(default_factory=list)
    voice_sample_rate: int = DEFAULT_VOICE_SAMPLE_RATE
    voice_bitrate: str = DEFAULT_VOICE_BITRATE
    chunk_size: int = DEFAULT_DOWNLOAD_CHUNK_SIZE
    network_timeout: int = DEFAULT_NETWORK_TIMEOUT
    log_file: Optional[str] = None

    @property
    def catalog_dir(self) -> Path:
        return Path(self.path).expanduser()

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SelectorConfig':
        """Create SelectorConfig from dictionary, filtering unknown keys."""
        field_names = {f.name for f in dataclasses.fields(cls)}
        filtered_data = {k: v for k, v in data.items() if k in field_names}
        # Older configs stored a null whitelist when uploads were off
        if filtered_data.get('whitelist') is None:
            filtered_data.pop('whitelist', None)
        return cls(**filtered_data)

    def to_json(self, indent: int = 2) -> str:
        """Serialize to JSON."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_json(cls, json_str: str) -> 'SelectorConfig':
        """Deserialize from JSON."""
        return cls.from_dict(json.loads(json_str))
