"""
Catalog index for the local audio folder.

The folder is listed fresh on every search; nothing is cached between
requests, so results always reflect what is on disk right now.
"""

import logging
import os
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional

from shared.constants import PARTIAL_SUFFIX
from shared.errors import DirectoryUnavailable, InvalidPattern
from shared.models import CatalogEntry, SearchResult

logger = logging.getLogger(__name__)


def is_partial_upload(name: str) -> bool:
    """Hidden ``.<name>.<id>.part`` files are uploads still being written."""
    return name.startswith(".") and name.endswith(PARTIAL_SUFFIX)


class DirectoryLister(ABC):
    """Interface for listing the entries of the catalog folder."""

    @abstractmethod
    def list(self, dir_path: Path) -> List[str]:
        """
        Return the names of the non-directory entries in ``dir_path``.

        Raises:
            DirectoryUnavailable: if the folder is missing or unreadable
        """
        pass


class LocalDirectoryLister(DirectoryLister):
    """Lists a folder on the local filesystem, one level deep."""

    def list(self, dir_path: Path) -> List[str]:
        try:
            with os.scandir(dir_path) as it:
                return [entry.name for entry in it if not entry.is_dir()]
        except OSError as e:
            raise DirectoryUnavailable(f"Cannot list {dir_path}: {e}") from e


class CatalogIndex:
    """Searches the catalog folder by display name."""

    def __init__(self, directory: Path, lister: Optional[DirectoryLister] = None):
        self.directory = Path(directory).expanduser()
        self.lister = lister or LocalDirectoryLister()

    def entries(self) -> SearchResult:
        """All entries in enumeration order, without in-flight uploads."""
        return [CatalogEntry.from_name(name) for name in self.lister.list(self.directory)
                if not is_partial_upload(name)]

    def search(self, pattern: str) -> SearchResult:
        """
        Find entries whose display name matches ``pattern``.

        Args:
            pattern: Regular expression, matched anywhere in the display name

        Returns:
            Matching entries, shortest display name first (stable on ties)

        Raises:
            InvalidPattern: if ``pattern`` does not compile
            DirectoryUnavailable: if the folder cannot be listed
        """
        try:
            regex = re.compile(pattern)
        except re.error as e:
            raise InvalidPattern(f"Bad pattern {pattern!r}: {e}") from e

        matches = [entry for entry in self.entries() if regex.search(entry.display_name)]
        # sorted() is stable, so equal lengths keep listing order
        result = sorted(matches, key=lambda entry: len(entry.display_name))
        logger.debug("Search %r in %s: %d match(es)", pattern, self.directory, len(result))
        return result
