"""Error types recovered at the command boundary.

Each error carries a short ``user_message`` that is safe to show in chat;
the full cause stays in the exception chain for the operational log.
"""

from typing import Optional


class SelectorError(RuntimeError):
    """Base class for every recoverable selector/ingestion failure."""

    user_message = "Request failed, please check the logs"

    def __init__(self, detail: str = "", user_message: Optional[str] = None):
        super().__init__(detail or self.user_message)
        if user_message is not None:
            self.user_message = user_message


class ConfigError(SelectorError):
    user_message = "The selector is not configured"


class InvalidPattern(SelectorError):
    user_message = "Invalid search pattern"


class DirectoryUnavailable(SelectorError):
    user_message = "The audio folder is unavailable"


class PlaybackFailed(SelectorError):
    user_message = "Failed to send, please check the logs"


class UploadDisabled(SelectorError):
    user_message = "Uploading is disabled"


class NotAuthorized(SelectorError):
    user_message = "You are not allowed to upload"


class TooLarge(SelectorError):
    user_message = "The file is too large"


class NotAudio(SelectorError):
    user_message = "Wrong file type, make sure the link points to an audio file"


class InvalidFilename(SelectorError):
    user_message = "Invalid file name"


class NameCollision(SelectorError):
    user_message = "A file with that name already exists"


class TransferFailed(SelectorError):
    user_message = "Upload failed, please check the logs"
