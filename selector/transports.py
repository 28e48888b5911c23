"""
Message transports.

A transport is the chat-like channel a request arrives on: it sends text and
audio back to the requester and waits for their reply.
"""

import itertools
import logging
import os
import queue
import sys
import threading
from abc import ABC, abstractmethod
from typing import Any, Optional

import mutagen
from rich.console import Console
from rich.text import Text

from shared.models import AudioPayload, Deliverable, FileReference

logger = logging.getLogger(__name__)


class MessageTransport(ABC):
    """Interface for a chat channel bound to one requester."""

    #: Transport class name, used to pick the delivery format
    platform: str = "generic"

    @property
    @abstractmethod
    def user_id(self) -> str:
        """Stable identity of the requester."""
        pass

    @abstractmethod
    def send(self, content: Deliverable) -> Any:
        """
        Deliver text, an inline audio payload or a file reference.

        Returns:
            A handle that can later be passed to ``delete_message``
        """
        pass

    @abstractmethod
    def await_reply(self, timeout: float) -> Optional[str]:
        """Block until the requester replies; None if ``timeout`` elapses first."""
        pass

    @abstractmethod
    def delete_message(self, handle: Any) -> bool:
        """Best-effort removal of a previously sent message."""
        pass


def _format_duration(path) -> Optional[str]:
    try:
        audio = mutagen.File(path)
    except (mutagen.MutagenError, OSError):
        return None
    if audio is None or not getattr(audio.info, 'length', None):
        return None
    length = int(audio.info.length)
    return f"{length // 60}:{length % 60:02d}"


class ConsoleTransport(MessageTransport):
    """
    Terminal transport: prints to a rich console and reads replies from stdin.

    A timed-out read leaves its reader thread waiting on stdin; it is a daemon
    thread and the CLI exits right after the session ends.
    """

    def __init__(self, user_id: Optional[str] = None, platform: str = "console",
                 console: Optional[Console] = None, stdin=None):
        self._user_id = user_id or os.getenv("USER") or "local"
        self.platform = platform
        self.console = console if console is not None else Console()
        self.stdin = stdin if stdin is not None else sys.stdin
        self._handles = itertools.count(1)

    @property
    def user_id(self) -> str:
        return self._user_id

    def send(self, content: Deliverable) -> int:
        if isinstance(content, FileReference):
            duration = _format_duration(content.path)
            line = Text("▶ ", style="bold green")
            line.append(os.path.basename(str(content.path)), style="bold white")
            if duration:
                line.append(f" ({duration})", style="cyan")
            self.console.print(line)
            self.console.print(Text(content.uri, style="dim"))
        elif isinstance(content, AudioPayload):
            self.console.print(Text(
                f"♪ voice message ({content.mime}, {len(content.data) / 1024:.1f} KB)",
                style="bold green"
            ))
        else:
            self.console.print(Text(str(content)))
        return next(self._handles)

    def _read_line(self, replies: "queue.Queue[str]") -> None:
        try:
            replies.put(self.stdin.readline())
        except (OSError, ValueError) as e:
            logger.debug("stdin read failed: %s", e)
            replies.put("")

    def await_reply(self, timeout: float) -> Optional[str]:
        replies: "queue.Queue[str]" = queue.Queue(maxsize=1)
        reader = threading.Thread(target=self._read_line, args=(replies,), daemon=True)
        reader.start()
        try:
            line = replies.get(timeout=timeout)
        except queue.Empty:
            return None
        if line == "":
            # EOF counts as no reply
            return None
        return line.rstrip("\r\n")

    def delete_message(self, handle: Any) -> bool:
        # Printed lines cannot be taken back
        return False
