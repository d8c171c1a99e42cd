# ============================================================================
# FILE: config.py
# Configuration, constants and the persisted preference provider
# ============================================================================

import logging
import os
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class Config:
    """Application configuration constants."""
    APP_TITLE = "PicoZot"
    PAGE_ICON = "🧬"
    PREF_BRANCH = "extensions.picozot."
    DATA_DIR = Path(os.getenv("PICOZOT_DATA_DIR", str(Path.home() / ".picozot")))
    PREFS_FILE = "prefs.json"
    LIBRARY_PATH = os.getenv("PICOZOT_LIBRARY", "")
    PLUGIN_DIR_NAME = "PicoZot"
    DEFAULT_MODEL = "gpt-4"
    DEFAULT_API_ENDPOINT = "https://api.openai.com/v1/chat/completions"
    DEFAULT_TEMPERATURE = 0.7
    DEFAULT_MAX_TOKENS = 4000
    REVIEW_MAX_TOKENS = 8000
    PICO_NOTE_TITLE = "PICO Analysis"
    DEFAULT_REVIEW_FILENAME = "Literature Review.docx"
    PDF_MAX_PAGES = 50
    METADATA_WORKERS = 8
    MODEL_CHOICES = ["gpt-4", "gpt-3.5-turbo", "Custom"]


class AIProvider(Enum):
    """Chat model backends selectable through the model name."""
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    OLLAMA = "ollama"


class LogLevel(Enum):
    """Values accepted by the logLevel setting."""
    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


LOG_LEVEL_MAP = {
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.WARN: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
}

LOG_FORMAT = "[%(asctime)s] [PicoZot] [%(levelname)s] %(name)s: %(message)s"

DEFAULT_CONFIG: Dict[str, Any] = {
    "aiApiKey": "",
    "aiModel": Config.DEFAULT_MODEL,
    "aiApiEndpoint": Config.DEFAULT_API_ENDPOINT,
    "showSidebar": True,
    "logLevel": LogLevel.INFO.value,
}


def configure_logging(level: str = LogLevel.INFO.value) -> bool:
    """Apply a logLevel setting to the root logger. Returns False for unknown levels."""
    try:
        log_level = LogLevel(str(level).lower())
    except ValueError:
        logger.error(f"Invalid log level: {level}")
        return False

    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(format=LOG_FORMAT)
    root.setLevel(LOG_LEVEL_MAP[log_level])
    logger.debug(f"Logging configured at level {log_level.value}")
    return True


class ConfigProvider:
    """
    Loads and saves the add-on settings.

    Values are read from a flat key/value preference store under
    ``Config.PREF_BRANCH``. The merged map is cached after the first load and
    replaced wholesale on every save.
    """

    def __init__(self, store=None):
        self.store = store
        self._cache: Optional[Dict[str, Any]] = None

    def load(self) -> Dict[str, Any]:
        """Return the cached configuration, building it from defaults and preferences if needed."""
        if self._cache is not None:
            return self._cache

        logger.debug("Loading configuration")
        config = dict(DEFAULT_CONFIG)

        if self.store is None:
            logger.warning("Preference store not available, using default configuration")
        else:
            try:
                for key, default in DEFAULT_CONFIG.items():
                    pref_key = Config.PREF_BRANCH + key
                    if not self.store.has_user_value(pref_key):
                        continue
                    value = self.store.get(pref_key, default)
                    if isinstance(value, type(default)):
                        config[key] = value
                    else:
                        logger.warning(f"Ignoring preference {pref_key}: expected {type(default).__name__}")
            except Exception as e:
                logger.error(f"Failed to load configuration from preferences: {e}")
                config = dict(DEFAULT_CONFIG)

        self._cache = config
        return config

    def get(self) -> Dict[str, Any]:
        return self._cache if self._cache is not None else self.load()

    def save(self, partial: Dict[str, Any]) -> bool:
        """Merge ``partial`` into the current settings and persist every key."""
        logger.debug("Saving configuration")
        new_config = {**self.get(), **partial}

        try:
            if self.store is None:
                logger.warning("Preference store not available, keeping configuration in memory only")
            else:
                for key, value in new_config.items():
                    self.store.set(Config.PREF_BRANCH + key, value)
        except Exception as e:
            logger.error(f"Failed to save configuration to preferences: {e}")
            return False

        self._cache = new_config
        logger.debug("Configuration saved successfully")
        return True

    def reset(self) -> bool:
        return self.save(dict(DEFAULT_CONFIG))

    def get_value(self, key: str, default: Any = None) -> Any:
        config = self.get()
        return config[key] if key in config else default

    def set_value(self, key: str, value: Any) -> bool:
        return self.save({key: value})
