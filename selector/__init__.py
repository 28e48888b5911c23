"""Catalog search, interactive selection and playback dispatch."""

from .catalog import CatalogIndex, DirectoryLister, LocalDirectoryLister
from .session import SelectionSession, interpret_reply, render_results
from .dispatcher import PlaybackDispatcher
from .transports import MessageTransport, ConsoleTransport

__all__ = [
    "CatalogIndex", "DirectoryLister", "LocalDirectoryLister",
    "SelectionSession", "interpret_reply", "render_results",
    "PlaybackDispatcher", "MessageTransport", "ConsoleTransport",
]
