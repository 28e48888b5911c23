"""
Command handlers: the boundary where every recoverable error becomes a
short reply for the requester.

Handlers return the final text to send back, or None when nothing should be
said (a selection that timed out ends silently).
"""

import logging
from typing import Optional

from shared.constants import MSG_CANCELLED, MSG_INVALID_SELECTION, MSG_NO_RESULTS, MSG_UPLOADED
from shared.errors import SelectorError
from shared.models import IngestionTask, SelectionState, SelectorConfig
from selector.catalog import CatalogIndex
from selector.dispatcher import PlaybackDispatcher
from selector.session import SelectionSession
from selector.transports import MessageTransport
from ingest.permissions import check_upload_permission
from ingest.pipeline import IngestionPipeline

logger = logging.getLogger(__name__)


def search_and_play(pattern: str, transport: MessageTransport, catalog: CatalogIndex,
                    dispatcher: PlaybackDispatcher, config: SelectorConfig) -> Optional[str]:
    """Search the catalog, let the requester pick one result and play it."""
    try:
        result = catalog.search(pattern)
        if not result:
            return MSG_NO_RESULTS

        session = SelectionSession(result, transport,
                                   timeout=config.prompt_timeout,
                                   cancel_keyword=config.cancel_keyword)
        outcome = session.run()

        if outcome.state is SelectionState.TIMED_OUT:
            return None
        if outcome.state is SelectionState.CANCELLED:
            return MSG_CANCELLED
        if outcome.state is SelectionState.INVALID:
            return MSG_INVALID_SELECTION

        dispatcher.dispatch(outcome.entry, transport)
        return None
    except SelectorError as e:
        logger.warning("Search %r for %s failed: %s", pattern, transport.user_id, e, exc_info=True)
        return e.user_message


def upload(link: str, name: Optional[str], transport: MessageTransport,
           pipeline: IngestionPipeline, config: SelectorConfig) -> str:
    """Check permissions, then stream ``link`` into the catalog folder."""
    try:
        check_upload_permission(config.allow_upload, config.whitelist, transport.user_id)
        task = IngestionTask(
            source_url=link,
            target_dir=config.catalog_dir,
            uploader_id=transport.user_id,
            requested_name=name,
            size_limit=config.max_upload_bytes,
        )
        pipeline.run(task)
        return MSG_UPLOADED
    except SelectorError as e:
        logger.warning("Upload of %s by %s failed: %s", link, transport.user_id, e, exc_info=True)
        return e.user_message
