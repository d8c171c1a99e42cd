"""Pytest configuration and fixtures for PicoZot tests."""

import json
from unittest.mock import MagicMock

import pytest

from data_services import ItemContentService, LocalLibrary
from models import LibraryItem, PicoRecord
from utils import AIService


MOCK_CITATIONS = [
    {
        "title": "Effects of Exercise on Cardiovascular Health in Patients with Type 2 Diabetes",
        "authors": "Smith J, Johnson A, Williams B",
        "year": "2022",
        "journal": "Journal of Diabetes Research",
        "abstract": (
            "Background: Regular physical activity is recommended for patients with type 2 diabetes to "
            "improve cardiovascular health, but the optimal exercise regimen remains unclear. Methods: We "
            "conducted a randomized controlled trial with 120 patients with type 2 diabetes, comparing "
            "high-intensity interval training (HIIT) with moderate-intensity continuous training (MICT) over "
            "12 weeks. Results: Both HIIT and MICT improved cardiovascular parameters, but HIIT showed greater "
            "improvements in VO2max and insulin sensitivity."
        ),
        "tags": ["diabetes", "exercise", "cardiovascular health"],
        "id": "item1",
    },
    {
        "title": "Comparative Effectiveness of Aerobic and Resistance Exercise in Type 2 Diabetes Management",
        "authors": "Brown R, Davis C, Miller E",
        "year": "2021",
        "journal": "Diabetes Care",
        "abstract": (
            "Objective: To compare the effectiveness of aerobic exercise versus resistance training in "
            "managing type 2 diabetes. Research Design and Methods: 150 adults with type 2 diabetes were "
            "randomly assigned to aerobic exercise, resistance training, or a combination of both for 24 "
            "weeks. Results: All exercise groups showed improvements in glycemic control."
        ),
        "tags": ["diabetes", "exercise", "glycemic control"],
        "id": "item2",
    },
    {
        "title": "Long-term Effects of Different Exercise Modalities on Cardiovascular Risk in Type 2 Diabetes",
        "authors": "Garcia M, Rodriguez P, Hernandez L",
        "year": "2023",
        "journal": "European Journal of Preventive Cardiology",
        "abstract": (
            "Background: The long-term cardiovascular benefits of different exercise modalities in type 2 "
            "diabetes remain uncertain. Methods: We followed 200 patients with type 2 diabetes for 3 years "
            "who were assigned to different exercise programs."
        ),
        "tags": ["diabetes", "exercise", "cardiovascular risk", "long-term"],
        "id": "item3",
    },
]

MOCK_PICO = {
    "item1": PicoRecord(
        population="Patients with type 2 diabetes",
        intervention="High-intensity interval training (HIIT)",
        comparison="Moderate-intensity continuous training (MICT)",
        outcome="Cardiovascular health parameters, VO2max, insulin sensitivity",
    ),
    "item2": PicoRecord(
        population="Adults with type 2 diabetes",
        intervention="Aerobic exercise, resistance training, or combined exercise",
        comparison="Between exercise modalities",
        outcome="Glycemic control, HbA1c levels",
    ),
    "item3": PicoRecord(
        population="Patients with type 2 diabetes",
        intervention="Different exercise programs including combined aerobic and resistance training",
        comparison="Sedentary controls",
        outcome="Cardiovascular events, long-term cardiovascular protection",
    ),
}


def creators_from(authors: str):
    creators = []
    for name in authors.split(","):
        last, _, first = name.strip().partition(" ")
        creators.append({"creatorType": "author", "lastName": last, "firstName": first})
    return creators


@pytest.fixture
def make_item():
    """Factory for library items with sensible defaults."""
    def _make(item_id="mock1", title="Mock Item Title", abstract="Mock abstract text for testing purposes.",
              authors="Author M", year="2023", journal="Mock Journal", tags=None, notes=None,
              attachments=None, item_type="journalArticle"):
        return LibraryItem(
            id=item_id,
            item_type=item_type,
            fields={"title": title, "abstractNote": abstract, "date": year, "publicationTitle": journal},
            creators=creators_from(authors) if authors else [],
            tags=list(tags or []),
            notes=list(notes or []),
            attachments=list(attachments or []),
        )
    return _make


@pytest.fixture
def citation_items(make_item):
    """The three exercise/diabetes studies as library items."""
    return [
        make_item(item_id=c["id"], title=c["title"], abstract=c["abstract"], authors=c["authors"],
                  year=c["year"], journal=c["journal"], tags=c["tags"])
        for c in MOCK_CITATIONS
    ]


@pytest.fixture
def content_service(citation_items):
    """Real content service over an in-memory library."""
    return ItemContentService(LocalLibrary(citation_items))


def pico_for_text(text: str) -> PicoRecord:
    if "HIIT" in text:
        return MOCK_PICO["item1"]
    if "aerobic exercise versus resistance" in text:
        return MOCK_PICO["item2"]
    return MOCK_PICO["item3"]


@pytest.fixture
def mock_ai_service():
    """AIService stand-in returning the mock PICO records by abstract content."""
    service = MagicMock(spec=AIService)
    service.extract_pico_elements.side_effect = pico_for_text
    service.generate_review.return_value = "This is a mock literature review content."
    return service


@pytest.fixture
def pico_json():
    """A well-formed model response."""
    return json.dumps(MOCK_PICO["item1"].to_dict())


@pytest.fixture
def mock_pico():
    """Expected PICO records keyed by item id."""
    return dict(MOCK_PICO)
