"""
Configuration loading for the selector.

Values come from ``config.json`` in the config directory, then from
``AUDIO_SELECTOR_*`` environment variables (a ``.env`` file is honoured).
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from shared.constants import DEFAULT_CONFIG_DIR, CONFIG_FILENAME, ENV_PREFIX
from shared.errors import ConfigError
from shared.models import SelectorConfig

logger = logging.getLogger(__name__)

_LIST_FIELDS = ("whitelist", "voice_platforms")
_INT_FIELDS = ("max_upload_bytes", "prompt_timeout", "voice_sample_rate", "chunk_size", "network_timeout")
_BOOL_FIELDS = ("allow_upload",)
_STR_FIELDS = ("path", "cancel_keyword", "voice_bitrate", "log_file")


def default_config_path() -> Path:
    return Path(DEFAULT_CONFIG_DIR).expanduser() / CONFIG_FILENAME


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def env_overrides(environ: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    """Collect config values from ``AUDIO_SELECTOR_<FIELD>`` variables."""
    environ = os.environ if environ is None else environ
    overrides: Dict[str, Any] = {}

    for name in _STR_FIELDS + _BOOL_FIELDS + _INT_FIELDS + _LIST_FIELDS:
        raw = environ.get(ENV_PREFIX + name.upper())
        if raw is None or raw == "":
            continue
        if name in _BOOL_FIELDS:
            overrides[name] = _parse_bool(raw)
        elif name in _INT_FIELDS:
            try:
                overrides[name] = int(raw)
            except ValueError as e:
                raise ConfigError(f"{ENV_PREFIX}{name.upper()} must be an integer, got {raw!r}") from e
        elif name in _LIST_FIELDS:
            overrides[name] = [item.strip() for item in raw.split(",") if item.strip()]
        else:
            overrides[name] = raw
    return overrides


def load_config(config_path: Optional[Path] = None, use_env: bool = True) -> SelectorConfig:
    """
    Load selector configuration.

    Args:
        config_path: Explicit config file; defaults to the user config dir
        use_env: Apply ``.env`` and environment overrides

    Returns:
        SelectorConfig instance

    Raises:
        ConfigError: if no catalog path is configured or the file is unreadable
    """
    config_path = Path(config_path).expanduser() if config_path else default_config_path()
    data: Dict[str, Any] = {}

    if config_path.exists():
        try:
            with open(config_path, 'r') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise ConfigError(f"Could not read config {config_path}: {e}") from e
    else:
        logger.debug("No config file at %s", config_path)

    if use_env:
        load_dotenv()
        data.update(env_overrides())

    if not data.get("path"):
        raise ConfigError(
            f"No audio folder configured. Run 'audio-selector init <folder>' "
            f"or set {ENV_PREFIX}PATH."
        )

    try:
        return SelectorConfig.from_dict(data)
    except TypeError as e:
        raise ConfigError(f"Invalid config {config_path}: {e}") from e


def save_config(config: SelectorConfig, config_path: Optional[Path] = None) -> Path:
    """Write config as JSON, creating the config directory if needed."""
    config_path = Path(config_path).expanduser() if config_path else default_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, 'w') as f:
        f.write(config.to_json())
    logger.info("Configuration saved to %s", config_path)
    return config_path
