# ============================================================================
# FILE: state_manager.py
# Session handle and Streamlit session state management
# ============================================================================

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import streamlit as st

from config import Config, ConfigProvider, configure_logging
from data_services import DocumentWriter, ItemContentService, JsonPreferenceStore, LocalLibrary
from literature_review import LiteratureReviewService
from pico_parser import PicoParser
from utils import AIService

logger = logging.getLogger(__name__)


@dataclass
class PicoZotSession:
    """Everything one add-on session needs, created by initialize()."""
    config: Dict[str, Any]
    config_provider: ConfigProvider
    library: LocalLibrary
    ai_service: AIService
    content_service: ItemContentService
    document_writer: DocumentWriter
    pico_parser: PicoParser
    review_service: LiteratureReviewService
    active: bool = True


def initialize(config_provider: Optional[ConfigProvider] = None,
               library: Optional[LocalLibrary] = None,
               output_dir: Optional[Path] = None) -> PicoZotSession:
    """Load configuration and wire the services into a session handle."""
    logger.info("Initializing PicoZot")
    config_provider = config_provider or ConfigProvider(JsonPreferenceStore(Config.DATA_DIR / Config.PREFS_FILE))
    config = config_provider.get()
    configure_logging(config.get("logLevel", "info"))

    library = library if library is not None else LocalLibrary()
    ai_service = AIService(config)
    if not ai_service.is_ready:
        logger.warning("AI API key not found in configuration")

    content_service = ItemContentService(library)
    document_writer = DocumentWriter(output_dir)
    pico_parser = PicoParser(ai_service, content_service)
    review_service = LiteratureReviewService(ai_service, pico_parser, content_service, document_writer)

    logger.info("PicoZot initialized successfully")
    return PicoZotSession(
        config=config,
        config_provider=config_provider,
        library=library,
        ai_service=ai_service,
        content_service=content_service,
        document_writer=document_writer,
        pico_parser=pico_parser,
        review_service=review_service,
    )


def shutdown(session: PicoZotSession) -> None:
    if not session.active:
        return
    session.library.save()
    session.active = False
    logger.info("PicoZot shut down")


class SessionState:
    """Manages Streamlit session state around the PicoZot session handle."""

    @staticmethod
    def initialize():
        """Initialize session state with default values."""
        defaults = {
            'analysis_results': [],
            'comparison': None,
            'review': "",
            'selected_ids': [],
            'sidebar_open': None,
        }

        for key, default in defaults.items():
            if key not in st.session_state:
                st.session_state[key] = default

        if 'picozot' not in st.session_state:
            library = SessionState.default_library()
            st.session_state.picozot = initialize(library=library)

        if st.session_state.sidebar_open is None:
            st.session_state.sidebar_open = bool(st.session_state.picozot.config.get("showSidebar", True))

    @staticmethod
    def default_library() -> LocalLibrary:
        if Config.LIBRARY_PATH and Path(Config.LIBRARY_PATH).exists():
            try:
                return LocalLibrary.load(Config.LIBRARY_PATH)
            except (OSError, ValueError) as e:
                logger.error(f"Failed to load library {Config.LIBRARY_PATH}: {e}")
        return LocalLibrary()

    @staticmethod
    def session() -> PicoZotSession:
        return st.session_state.picozot

    @staticmethod
    def reload(library: Optional[LocalLibrary] = None):
        """Rebuild the session, e.g. after settings changed or a new library was loaded."""
        current = st.session_state.picozot
        shutdown(current)
        st.session_state.picozot = initialize(current.config_provider, library or current.library)

    @staticmethod
    def reset():
        """Clear results and the item selection. Call before the sidebar widgets render."""
        reset_keys = {
            'analysis_results': [],
            'comparison': None,
            'review': "",
            'selected_ids': [],
        }

        for key, value in reset_keys.items():
            st.session_state[key] = value
