# ============================================================================
# FILE: data_services.py
# Library, preference and document services backing the PICO workflow
# ============================================================================

import html
import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from docx import Document
from pypdf import PdfReader
from pypdf.errors import PdfReadError

from config import Config
from models import Attachment, CitationMetadata, LibraryItem, PicoRecord
from utils import strip_html

logger = logging.getLogger(__name__)


class JsonPreferenceStore:
    """Flat key/value preferences persisted as a JSON object."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        with self.path.open(encoding="utf-8") as fh:
            data = json.load(fh)
        return data if isinstance(data, dict) else {}

    def has_user_value(self, key: str) -> bool:
        return key in self._read()

    def get(self, key: str, default: Any = None) -> Any:
        return self._read().get(key, default)

    def set(self, key: str, value: Any) -> None:
        data = self._read()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as fh:
            json.dump(data, fh, indent=2)


class PDFService:
    """Handles PDF text extraction."""

    @staticmethod
    def extract_text(path: str, max_pages: int = Config.PDF_MAX_PAGES) -> str:
        """Extract text from a PDF file."""
        reader = PdfReader(path)
        text_parts = []
        for page in reader.pages[:max_pages]:
            text_parts.append(page.extract_text() or "")
        return "\n".join(text_parts).strip()


class LocalLibrary:
    """
    The items the add-on works on, loaded from a JSON library export.

    The export is either a list of item objects or ``{"items": [...]}``; each
    object carries the item's fields plus ``notes`` (HTML strings) and
    ``attachments`` (``{"path", "contentType"}``). Notes written by the
    add-on are saved back to the same file.
    """

    def __init__(self, items: Optional[List[LibraryItem]] = None, path: Optional[Path] = None):
        self.items: List[LibraryItem] = list(items or [])
        self.path = Path(path) if path else None

    @classmethod
    def load(cls, path) -> "LocalLibrary":
        path = Path(path)
        with path.open(encoding="utf-8") as fh:
            data = json.load(fh)
        library = cls(cls.parse_items(data), path)
        logger.info(f"Loaded {len(library.items)} items from {path}")
        return library

    @staticmethod
    def parse_items(data: Any) -> List[LibraryItem]:
        entries = data.get("items", []) if isinstance(data, dict) else data
        items = []
        for entry in entries:
            # API exports wrap the item fields in "data"
            entry = entry.get("data", entry) if isinstance(entry, dict) else entry
            if isinstance(entry, dict) and (entry.get("key") or entry.get("id")):
                items.append(LibraryItem.from_dict(entry))
            else:
                logger.warning("Skipping library entry without a key")
        return items

    def get(self, item_id: str) -> Optional[LibraryItem]:
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def save(self) -> None:
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as fh:
            json.dump({"items": [item.to_dict() for item in self.items]}, fh, indent=2)

    def add_note(self, item: LibraryItem, note_html: str) -> None:
        """Append a note and persist the library. The note is removed again if the write fails."""
        item.notes.append(note_html)
        try:
            self.save()
        except Exception:
            item.notes.pop()
            raise

    def add_pdf_items(self, files: Iterable, upload_dir: Path) -> List[LibraryItem]:
        """Create one item per uploaded PDF, storing the file under ``upload_dir``."""
        upload_dir = Path(upload_dir)
        upload_dir.mkdir(parents=True, exist_ok=True)
        added = []

        for file in files:
            name = Path(file.name).name
            target = unique_path(upload_dir, name)
            target.write_bytes(file.getvalue())
            item = LibraryItem(
                id=f"pdf-{len(self.items) + 1}",
                item_type="document",
                fields={"title": Path(name).stem},
                attachments=[Attachment(path=str(target))],
            )
            self.items.append(item)
            added.append(item)

        self.save()
        return added


class ItemContentService:
    """Reads analysable text and metadata from items and writes notes onto them."""

    def __init__(self, library: LocalLibrary, pdf_service=PDFService):
        self.library = library
        self.pdf_service = pdf_service

    def get_item_content(self, item: LibraryItem) -> str:
        """Abstract, note text and PDF text, separated by blank lines."""
        logger.debug(f"Getting content for item: {item.title}")
        sections = []

        abstract = item.get_field("abstractNote")
        if abstract:
            sections.append(abstract)

        sections.extend(self.get_notes(item))

        pdf_content = self.get_pdf_content(item)
        if pdf_content:
            sections.append(pdf_content)

        content = "\n\n".join(sections)
        if not content:
            logger.warning(f"No content found for item: {item.title}")
        return content

    def get_notes(self, item: LibraryItem) -> List[str]:
        notes = [strip_html(note) for note in item.get_notes()]
        notes = [note for note in notes if note]
        logger.debug(f"Retrieved {len(notes)} notes for item: {item.title}")
        return notes

    def get_pdf_content(self, item: LibraryItem) -> str:
        texts = []
        for attachment in item.get_attachments():
            if not attachment.is_pdf:
                continue
            try:
                text = self.pdf_service.extract_text(attachment.path)
            except (PdfReadError, OSError) as e:
                logger.warning(f"Failed to get PDF content for attachment {attachment.path}: {e}")
                continue
            if text:
                texts.append(text)
        return "\n\n".join(texts)

    def save_item_annotation(self, item: LibraryItem, title: str, content: str) -> bool:
        """Attach a note to ``item``. Returns False when the write fails."""
        note_html = f"<h1>{html.escape(title)}</h1><p>{html.escape(content).replace(chr(10), '<br>')}</p>"
        try:
            self.library.add_note(item, note_html)
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Failed to save annotation to item: {item.title}: {e}")
            return False
        logger.debug(f"Annotation saved to item: {item.title}")
        return True

    def get_item_metadata(self, item: LibraryItem) -> CitationMetadata:
        logger.debug(f"Getting metadata for item: {item.title}")
        return CitationMetadata(
            title=item.get_field("title"),
            authors=item.get_field("creators") or item.get_field("author"),
            year=item.get_field("year") or item.get_field("date"),
            journal=item.get_field("publicationTitle") or item.get_field("publisher"),
            abstract=item.get_field("abstractNote"),
            item_type=item.item_type,
            tags=item.get_tags(),
            id=item.id,
        )

    def get_existing_pico_analysis(self, item: LibraryItem) -> Optional[PicoRecord]:
        """
        Previously saved PICO analysis for ``item``.

        Reading analyses back from notes is not specified yet, so nothing is
        ever found and callers always recompute.
        """
        return None


def unique_path(directory: Path, filename: str) -> Path:
    """``directory/filename``, or ``name (n).ext`` with the first free n."""
    directory = Path(directory)
    candidate = directory / filename
    if not candidate.exists():
        return candidate

    stem, suffix = Path(filename).stem, Path(filename).suffix
    counter = 1
    while True:
        candidate = directory / f"{stem} ({counter}){suffix}"
        if not candidate.exists():
            return candidate
        counter += 1


class DocumentWriter:
    """Writes generated documents into the add-on's own directory."""

    HEADING_RE = re.compile(r"^(#{1,6})\s+(.*)$")

    def __init__(self, output_dir: Optional[Path] = None):
        self.output_dir = Path(output_dir) if output_dir else Config.DATA_DIR / Config.PLUGIN_DIR_NAME

    def save_document(self, content: str, filename: str) -> Optional[Path]:
        """Write ``content`` without overwriting existing files. Returns the path, or None on failure."""
        safe_name = Path(filename).name or Config.DEFAULT_REVIEW_FILENAME
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            path = unique_path(self.output_dir, safe_name)
            if path.suffix.lower() == ".docx":
                self.build_docx(content).save(str(path))
            else:
                path.write_text(content, encoding="utf-8")
        except OSError as e:
            logger.error(f"Failed to save document to file: {safe_name}: {e}")
            return None

        logger.info(f"Document saved to file: {path}")
        return path

    @classmethod
    def build_docx(cls, content: str):
        doc = Document()
        for line in content.splitlines():
            match = cls.HEADING_RE.match(line.strip())
            if match:
                doc.add_heading(match.group(2), level=len(match.group(1)))
            elif line.strip():
                doc.add_paragraph(line.strip())
        return doc
