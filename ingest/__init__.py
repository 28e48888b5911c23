"""Streaming upload of remote audio files into the catalog folder."""

from .fetcher import RemoteFetcher, RemoteStream
from .permissions import check_upload_permission
from .pipeline import IngestionPipeline

__all__ = ["RemoteFetcher", "RemoteStream", "check_upload_permission", "IngestionPipeline"]
