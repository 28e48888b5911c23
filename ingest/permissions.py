"""Upload permission checks against the static allow-list."""

import logging
from typing import Iterable, Optional

from shared.errors import NotAuthorized, UploadDisabled

logger = logging.getLogger(__name__)


def check_upload_permission(allow_upload: bool, whitelist: Optional[Iterable[str]], user_id: str) -> None:
    """
    Raise unless ``user_id`` may upload.

    An empty or missing whitelist lets everyone upload once uploads are on.
    """
    if not allow_upload:
        raise UploadDisabled("Uploads are disabled in the configuration")
    allowed = set(whitelist or ())
    if allowed and user_id not in allowed:
        raise NotAuthorized(f"User {user_id!r} is not in the upload whitelist")
    logger.debug("Upload permitted for %s", user_id)
