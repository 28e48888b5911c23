"""
Interactive selection over a search result.

A session shows the numbered result list, waits for exactly one reply and
turns it into one of four outcomes. It never re-prompts: a bad reply ends
the session just like a good one.
"""

import logging
import re
from typing import Optional

from shared.constants import (
    DEFAULT_PROMPT_TIMEOUT,
    DEFAULT_CANCEL_KEYWORD,
    MSG_RESULTS_HEADER,
    MSG_SELECT_PROMPT,
)
from shared.models import SearchResult, SelectionOutcome, SelectionState
from selector.transports import MessageTransport

logger = logging.getLogger(__name__)

_DIGITS = re.compile(r"[0-9]+")


def render_results(result: SearchResult, timeout: int = DEFAULT_PROMPT_TIMEOUT,
                   cancel_keyword: str = DEFAULT_CANCEL_KEYWORD) -> str:
    """Numbered list of display names (1-based) followed by the reply instructions."""
    lines = [MSG_RESULTS_HEADER]
    for number, entry in enumerate(result, start=1):
        lines.append(f"{number}. {entry.display_name}")
    lines.append("")
    lines.append(MSG_SELECT_PROMPT.format(timeout=timeout, cancel=cancel_keyword))
    return "\n".join(lines)


def interpret_reply(reply: str, count: int,
                    cancel_keyword: str = DEFAULT_CANCEL_KEYWORD) -> SelectionOutcome:
    """
    Classify a single reply against a result list of ``count`` entries.

    Order matters: the cancel keyword wins, then anything that is not an
    integer in ``[1, count]`` is invalid.
    """
    text = reply.strip()
    if text == cancel_keyword:
        return SelectionOutcome(SelectionState.CANCELLED, reply=reply)
    # Plain ASCII digits only; int() would also take "1_0", "+2" or "２"
    if not _DIGITS.fullmatch(text):
        return SelectionOutcome(SelectionState.INVALID, reply=reply)
    number = int(text)
    if number < 1 or number > count:
        return SelectionOutcome(SelectionState.INVALID, reply=reply)
    return SelectionOutcome(SelectionState.SELECTED, index=number, reply=reply)


class SelectionSession:
    """One bounded-time selection exchange, owned by a single request."""

    def __init__(self, result: SearchResult, transport: MessageTransport,
                 timeout: int = DEFAULT_PROMPT_TIMEOUT,
                 cancel_keyword: str = DEFAULT_CANCEL_KEYWORD):
        if not result:
            raise ValueError("A selection session needs at least one result")
        self.result = list(result)
        self.transport = transport
        self.timeout = timeout
        self.cancel_keyword = cancel_keyword
        self.state = SelectionState.AWAITING_REPLY

    def present(self) -> str:
        text = render_results(self.result, self.timeout, self.cancel_keyword)
        self.transport.send(text)
        return text

    def await_reply(self) -> SelectionOutcome:
        reply: Optional[str] = self.transport.await_reply(self.timeout)
        if reply is None:
            logger.debug("Selection timed out after %ss for %s", self.timeout, self.transport.user_id)
            outcome = SelectionOutcome(SelectionState.TIMED_OUT)
        else:
            outcome = interpret_reply(reply, len(self.result), self.cancel_keyword)
            if outcome.is_selected:
                outcome.entry = self.result[outcome.index - 1]
        self.state = outcome.state
        return outcome

    def run(self) -> SelectionOutcome:
        """Present the list and consume one reply."""
        self.present()
        return self.await_reply()
