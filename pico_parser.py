# ============================================================================
# FILE: pico_parser.py
# PICO analysis pipeline over library items
# ============================================================================

import logging
from typing import List, Optional

from config import Config
from errors import ContentUnavailable
from models import AnalysisResult, LibraryItem, PicoComparison, PicoRecord

logger = logging.getLogger(__name__)


class PicoParser:
    """
    Extracts, caches and compares PICO elements for library items.

    Batch analysis is sequential and never aborts: an item whose content is
    empty or whose extraction fails is logged and left out of the result.
    """

    def __init__(self, ai_service, content_service):
        self.ai_service = ai_service
        self.content_service = content_service

    def analyze_pico(self, items: List[LibraryItem]) -> List[AnalysisResult]:
        """Analyze every item in order; returns results for the items that succeeded."""
        logger.info(f"Analyzing PICO elements for {len(items)} items")
        results = []

        for item in items:
            try:
                logger.debug(f"Processing item: {item.title}")
                content = self.content_service.get_item_content(item)
                if not content:
                    logger.warning(f"No content found for item: {item.title}")
                    continue

                pico_elements = self.ai_service.extract_pico_elements(content)
            except Exception as e:
                logger.error(f"Failed to process item: {item.title}: {e}")
                continue

            self.save_pico_elements(item, pico_elements)
            results.append(AnalysisResult(item=item, pico_elements=pico_elements))
            logger.debug(f"Successfully processed item: {item.title}")

        logger.info(f"Completed PICO analysis for {len(results)} items")
        return results

    def save_pico_elements(self, item: LibraryItem, pico_elements: PicoRecord) -> bool:
        """Store the record as a note on the item. A failed write is only logged."""
        try:
            saved = self.content_service.save_item_annotation(
                item, Config.PICO_NOTE_TITLE, pico_elements.format_note()
            )
        except Exception as e:
            logger.error(f"Failed to save PICO elements for item: {item.title}: {e}")
            return False

        if not saved:
            logger.warning(f"PICO elements for item {item.title} were not saved")
        return saved

    def get_pico_elements(self, item: LibraryItem) -> PicoRecord:
        """PICO record for one item, reusing a saved analysis when there is one."""
        existing = self.content_service.get_existing_pico_analysis(item)
        if existing:
            return existing

        content = self.content_service.get_item_content(item)
        if not content:
            raise ContentUnavailable(f"No content found for item: {item.title}")

        pico_elements = self.ai_service.extract_pico_elements(content)
        self.save_pico_elements(item, pico_elements)
        return pico_elements

    def compare_pico_elements(self, items: List[LibraryItem]) -> PicoComparison:
        logger.info(f"Comparing PICO elements for {len(items)} items")
        analysed = []

        for item in items:
            try:
                analysed.append(AnalysisResult(item=item, pico_elements=self.get_pico_elements(item)))
            except Exception as e:
                logger.error(f"Failed to get PICO elements for item: {item.title}: {e}")

        comparison = PicoComparison(
            similarities={f: self.find_common_elements(analysed, f) for f in PicoRecord.FIELDS},
            differences={f: self.find_different_elements(analysed, f) for f in PicoRecord.FIELDS},
        )
        logger.info("PICO comparison completed")
        return comparison

    @staticmethod
    def find_common_elements(results: List[AnalysisResult], element: str) -> Optional[str]:
        """
        Shared content of one PICO field across items.

        How similarity should be judged is not specified yet; returns None so
        callers can show the field as not computed.
        """
        return None

    @staticmethod
    def find_different_elements(results: List[AnalysisResult], element: str) -> List[dict]:
        return [
            {"itemTitle": r.item.title, "value": getattr(r.pico_elements, element)}
            for r in results
        ]
