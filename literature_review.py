# ============================================================================
# FILE: literature_review.py
# Literature review assembly from PICO records and citation metadata
# ============================================================================

import copy
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, Iterable, List, Optional

from config import Config
from errors import ExtractionError, NoCitations
from models import CitationMetadata, LibraryItem, PicoRecord, ReviewOptions, ReviewRequest

logger = logging.getLogger(__name__)


REVIEW_TEMPLATES: Dict[str, Dict[str, Any]] = {
    "default": {
        "sections": [
            {"title": "Introduction", "content": "Provide background information and context for the review."},
            {"title": "Methods", "content": "Describe the search strategy, inclusion criteria, and analysis methods."},
            {"title": "Results", "content": "Present the findings from the included studies."},
            {"title": "Discussion", "content": "Interpret the results and discuss implications."},
            {"title": "Conclusion", "content": "Summarize the main findings and their significance."},
        ],
        "format": {"headingStyle": "Title Case", "citationStyle": "APA"},
    },
    "systematic": {
        "sections": [
            {"title": "Abstract", "content": "Provide a structured summary of the review."},
            {"title": "Introduction", "content": "Provide background information and rationale for the review."},
            {
                "title": "Methods",
                "subsections": [
                    {"title": "Search Strategy", "content": "Describe the search strategy and databases used."},
                    {"title": "Inclusion and Exclusion Criteria",
                     "content": "Specify the criteria for including and excluding studies."},
                    {"title": "Data Extraction",
                     "content": "Describe how data was extracted from the included studies."},
                    {"title": "Quality Assessment",
                     "content": "Describe how the quality of the included studies was assessed."},
                ],
            },
            {"title": "Results", "content": "Present the findings from the included studies."},
            {"title": "Discussion", "content": "Interpret the results and discuss implications."},
            {"title": "Conclusion", "content": "Summarize the main findings and their significance."},
        ],
        "format": {"headingStyle": "Title Case", "citationStyle": "Vancouver"},
    },
}


class LiteratureReviewService:
    """Builds literature reviews for a selection of items."""

    def __init__(self, ai_service, pico_parser, content_service, document_writer):
        self.ai_service = ai_service
        self.pico_parser = pico_parser
        self.content_service = content_service
        self.document_writer = document_writer

    def generate_literature_review(self, items: List[LibraryItem],
                                   options: Optional[ReviewOptions] = None) -> str:
        """
        Generate review prose for ``items``.

        Uses the merged PICO record of all items when ``options.combine_pico``
        is set, otherwise the record of the first item. Items whose metadata
        cannot be read are dropped; with none left, NoCitations is raised.
        The text is returned even if saving it to a file fails.
        """
        options = options or ReviewOptions()
        logger.info(f"Generating literature review for {len(items)} items")
        if not items:
            raise NoCitations("No items selected for review")

        if options.combine_pico:
            pico_elements = self.combine_pico_elements(items)
        else:
            pico_elements = self.pico_parser.get_pico_elements(items[0])

        citations = self.collect_citations(items)
        if not citations:
            raise NoCitations("No valid citations found")

        request = ReviewRequest(
            pico_elements=pico_elements,
            citations=citations,
            additional_instructions=options.additional_instructions,
        )
        review = self.ai_service.generate_review(request)

        if options.save_to_file:
            filename = options.filename or Config.DEFAULT_REVIEW_FILENAME
            path = self.document_writer.save_document(review, filename)
            if path:
                logger.info(f"Literature review saved to {path}")

        logger.info("Literature review generated successfully")
        return review

    def collect_citations(self, items: List[LibraryItem]) -> List[CitationMetadata]:
        """Fetch metadata for all items concurrently, keeping input order and dropping failures."""
        with ThreadPoolExecutor(max_workers=Config.METADATA_WORKERS) as executor:
            futures = [executor.submit(self.content_service.get_item_metadata, item) for item in items]

        citations = []
        for item, future in zip(items, futures):
            try:
                citations.append(future.result())
            except Exception as e:
                logger.error(f"Failed to get metadata for item: {item.title}: {e}")
        return citations

    def combine_pico_elements(self, items: List[LibraryItem]) -> PicoRecord:
        logger.info(f"Combining PICO elements from {len(items)} items")
        records = []

        for item in items:
            try:
                records.append(self.pico_parser.get_pico_elements(item))
            except Exception as e:
                logger.error(f"Failed to get PICO elements for item: {item.title}: {e}")

        if not records:
            raise ExtractionError("No PICO elements found")

        combined = {
            f: self.combine_element_values(getattr(r, f) for r in records)
            for f in PicoRecord.FIELDS
        }
        return PicoRecord(**combined)

    @staticmethod
    def combine_element_values(values: Iterable[Optional[str]]) -> str:
        """
        Join the distinct non-empty values with " | ", keeping their first-seen order.

        Repeated values are collapsed on purpose so a shared population is not listed once per item.
        """
        distinct = []
        for value in values:
            if value and value not in distinct:
                distinct.append(value)

        if not distinct:
            return ""
        if len(distinct) == 1:
            return distinct[0]
        return " | ".join(distinct)

    @staticmethod
    def get_review_template(template_name: str = "default") -> Dict[str, Any]:
        logger.info(f"Loading literature review template: {template_name}")
        template = REVIEW_TEMPLATES.get(template_name, REVIEW_TEMPLATES["default"])
        return copy.deepcopy(template)

    @staticmethod
    def format_review(review: str, style: str = "apa") -> str:
        """Apply a citation style to the review. No styles are defined yet, so the text is returned as is."""
        return review
