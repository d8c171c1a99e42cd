# ============================================================================
# FILE: models.py
# Data models and structures
# ============================================================================

import json
import re
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List

from config import Config


@dataclass(frozen=True)
class PicoRecord:
    """PICO fields extracted from one item's content."""
    population: str
    intervention: str
    outcome: str
    comparison: str = ""

    FIELDS = ("population", "intervention", "comparison", "outcome")
    REQUIRED = ("population", "intervention", "outcome")

    @classmethod
    def from_dict(cls, data: Any) -> "PicoRecord":
        """
        Build a record from a decoded model response.

        Unknown keys are ignored. Missing mandatory keys or non-string values
        raise ValueError so a malformed response never becomes a record.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Expected a JSON object, got {type(data).__name__}")

        missing = [key for key in cls.REQUIRED if key not in data]
        if missing:
            raise ValueError(f"Missing required keys: {missing}")

        values = {}
        for key in cls.FIELDS:
            value = data.get(key)
            if value is None and key == "comparison":
                value = ""
            if not isinstance(value, str):
                raise ValueError(f"Field '{key}' must be a string, got {type(value).__name__}")
            values[key] = value
        return cls(**values)

    @classmethod
    def from_json(cls, text: str) -> "PicoRecord":
        return cls.from_dict(json.loads(text))

    def to_dict(self) -> Dict[str, str]:
        return {key: getattr(self, key) for key in self.FIELDS}

    def format_note(self) -> str:
        """Plain-text body of the "PICO Analysis" note."""
        return (
            f"{Config.PICO_NOTE_TITLE}\n"
            f"-------------\n\n"
            f"Population/Problem:\n{self.population}\n\n"
            f"Intervention:\n{self.intervention}\n\n"
            f"Comparison:\n{self.comparison or 'N/A'}\n\n"
            f"Outcome:\n{self.outcome}\n"
        )


@dataclass
class CitationMetadata:
    """Read-only projection of an item used to build the review prompt."""
    title: str
    authors: str = ""
    year: str = ""
    journal: str = ""
    abstract: str = ""
    item_type: str = ""
    tags: List[str] = field(default_factory=list)
    id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "authors": self.authors,
            "year": self.year,
            "journal": self.journal,
            "abstract": self.abstract,
            "itemType": self.item_type,
            "tags": list(self.tags),
            "id": self.id,
        }

    def to_prompt(self) -> str:
        return (
            f"Title: {self.title}\n"
            f"Authors: {self.authors}\n"
            f"Abstract: {self.abstract}\n"
            f"Year: {self.year}\n"
            f"Journal: {self.journal}"
        )


@dataclass
class Attachment:
    """A file attached to a library item."""
    path: str
    content_type: str = "application/pdf"

    @property
    def is_pdf(self) -> bool:
        return self.content_type == "application/pdf"


@dataclass
class LibraryItem:
    """
    A bibliographic record from the local library.

    Mirrors the slice of the reference manager's item API the services use:
    fields by name, child notes (HTML), attachments and tags.
    """
    id: str
    item_type: str = "journalArticle"
    fields: Dict[str, str] = field(default_factory=dict)
    creators: List[Dict[str, str]] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    notes: List[str] = field(default_factory=list)
    attachments: List[Attachment] = field(default_factory=list)

    @property
    def title(self) -> str:
        return self.get_field("title")

    def get_field(self, name: str) -> str:
        if name == "creators":
            return self.format_creators()
        if name == "year":
            match = re.search(r"\b(\d{4})\b", self.fields.get("date", ""))
            return self.fields.get("year") or (match.group(1) if match else "")
        return self.fields.get(name) or ""

    def format_creators(self) -> str:
        names = []
        for creator in self.creators:
            if creator.get("name"):
                names.append(creator["name"])
                continue
            last = creator.get("lastName", "")
            first = creator.get("firstName", "")
            initials = "".join(part[0] for part in first.split() if part)
            names.append(f"{last} {initials}".strip())
        return ", ".join(n for n in names if n)

    def get_notes(self) -> List[str]:
        return list(self.notes)

    def get_attachments(self) -> List[Attachment]:
        return list(self.attachments)

    def get_tags(self) -> List[str]:
        return list(self.tags)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LibraryItem":
        """Build an item from a library export entry (item data plus notes and attachments)."""
        reserved = {"key", "id", "itemType", "creators", "tags", "notes", "attachments", "relations", "collections"}
        fields = {k: str(v) for k, v in data.items() if k not in reserved and isinstance(v, (str, int))}
        tags = [t["tag"] if isinstance(t, dict) else str(t) for t in data.get("tags", [])]
        attachments = [
            Attachment(path=a["path"], content_type=a.get("contentType", "application/pdf"))
            for a in data.get("attachments", [])
            if a.get("path")
        ]
        return cls(
            id=str(data.get("key") or data.get("id")),
            item_type=data.get("itemType", "journalArticle"),
            fields=fields,
            creators=list(data.get("creators", [])),
            tags=tags,
            notes=list(data.get("notes", [])),
            attachments=attachments,
        )

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"key": self.id, "itemType": self.item_type}
        result.update(self.fields)
        result["creators"] = list(self.creators)
        result["tags"] = [{"tag": t} for t in self.tags]
        result["notes"] = list(self.notes)
        result["attachments"] = [
            {"path": a.path, "contentType": a.content_type} for a in self.attachments
        ]
        return result


@dataclass
class AnalysisResult:
    """PICO analysis outcome for one item."""
    item: LibraryItem
    pico_elements: PicoRecord

    def to_dict(self) -> Dict[str, Any]:
        result = {"Title": self.item.title, "ID": self.item.id}
        result.update({k.capitalize(): v for k, v in self.pico_elements.to_dict().items()})
        return result


@dataclass
class ReviewRequest:
    """Everything the review prompt is built from. Consumed once."""
    pico_elements: PicoRecord
    citations: List[CitationMetadata]
    additional_instructions: str = ""


@dataclass
class ReviewOptions:
    """Options of a literature review run."""
    combine_pico: bool = False
    save_to_file: bool = False
    filename: str = Config.DEFAULT_REVIEW_FILENAME
    additional_instructions: str = ""


@dataclass
class PicoComparison:
    """Per-field comparison of several items' PICO records."""
    similarities: Dict[str, Any] = field(default_factory=dict)
    differences: Dict[str, List[Dict[str, str]]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"similarities": dict(self.similarities), "differences": dict(self.differences)}
