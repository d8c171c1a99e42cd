"""Tests for the data models."""

import json

import pytest

from models import CitationMetadata, LibraryItem, PicoRecord


class TestPicoRecord:
    """Tests for parsing model responses into PicoRecord."""

    def test_from_json_ignores_unknown_keys(self) -> None:
        text = json.dumps({
            "population": "Adults with type 2 diabetes",
            "intervention": "Aerobic exercise",
            "comparison": "Resistance training",
            "outcome": "HbA1c",
            "notes": "ignored",
        })
        record = PicoRecord.from_json(text)

        assert record.population == "Adults with type 2 diabetes"
        assert record.comparison == "Resistance training"
        assert record.to_dict() == {
            "population": "Adults with type 2 diabetes",
            "intervention": "Aerobic exercise",
            "comparison": "Resistance training",
            "outcome": "HbA1c",
        }

    @pytest.mark.parametrize("payload", [
        {"population": "P", "intervention": "I", "outcome": "O"},
        {"population": "P", "intervention": "I", "comparison": None, "outcome": "O"},
    ])
    def test_comparison_is_optional(self, payload) -> None:
        record = PicoRecord.from_dict(payload)
        assert record.comparison == ""

    def test_empty_strings_are_accepted(self) -> None:
        record = PicoRecord.from_dict({"population": "", "intervention": "", "outcome": ""})
        assert record.population == ""

    @pytest.mark.parametrize("payload", [
        {"intervention": "I", "outcome": "O"},
        {"population": "P", "outcome": "O"},
        {"population": "P", "intervention": "I"},
    ])
    def test_missing_required_key_fails(self, payload) -> None:
        with pytest.raises(ValueError, match="Missing required keys"):
            PicoRecord.from_dict(payload)

    def test_non_string_value_fails(self) -> None:
        with pytest.raises(ValueError):
            PicoRecord.from_dict({"population": ["P"], "intervention": "I", "outcome": "O"})

    def test_non_object_json_fails(self) -> None:
        with pytest.raises(ValueError):
            PicoRecord.from_json('["population", "intervention"]')

    def test_malformed_json_fails(self) -> None:
        with pytest.raises(ValueError):
            PicoRecord.from_json("Here are the PICO elements: population is adults")

    def test_record_is_immutable(self) -> None:
        record = PicoRecord(population="P", intervention="I", outcome="O")
        with pytest.raises(AttributeError):
            record.population = "changed"

    def test_format_note(self) -> None:
        note = PicoRecord(population="Adults", intervention="HIIT", outcome="VO2max").format_note()

        assert note.startswith("PICO Analysis")
        assert "Population/Problem:\nAdults" in note
        assert "Intervention:\nHIIT" in note
        assert "Comparison:\nN/A" in note
        assert "Outcome:\nVO2max" in note


class TestLibraryItem:
    """Tests for LibraryItem field access."""

    def test_creators_are_formatted(self) -> None:
        item = LibraryItem(id="a", creators=[
            {"firstName": "John Paul", "lastName": "Smith"},
            {"name": "WHO Collaborative Group"},
        ])
        assert item.get_field("creators") == "Smith JP, WHO Collaborative Group"

    def test_year_comes_from_date(self) -> None:
        item = LibraryItem(id="a", fields={"date": "March 2021"})
        assert item.get_field("year") == "2021"
        assert LibraryItem(id="b").get_field("year") == ""

    def test_unknown_field_is_empty(self) -> None:
        assert LibraryItem(id="a").get_field("publisher") == ""

    def test_from_dict_reads_tags_notes_and_attachments(self) -> None:
        item = LibraryItem.from_dict({
            "key": "ABC123",
            "itemType": "journalArticle",
            "title": "A trial",
            "tags": [{"tag": "diabetes"}, "exercise"],
            "notes": ["<p>note</p>"],
            "attachments": [{"path": "/tmp/a.pdf", "contentType": "application/pdf"}, {"contentType": "text/html"}],
        })

        assert item.id == "ABC123"
        assert item.title == "A trial"
        assert item.get_tags() == ["diabetes", "exercise"]
        assert item.get_notes() == ["<p>note</p>"]
        assert [a.path for a in item.get_attachments()] == ["/tmp/a.pdf"]
        assert LibraryItem.from_dict(item.to_dict()) == item


class TestCitationMetadata:
    """Tests for CitationMetadata."""

    def test_to_dict_uses_item_type_key(self) -> None:
        citation = CitationMetadata(title="T", item_type="journalArticle", tags=["x"], id="1")
        data = citation.to_dict()
        assert data["itemType"] == "journalArticle"
        assert data["tags"] == ["x"]

    def test_to_prompt_lists_fields(self) -> None:
        text = CitationMetadata(title="T", authors="A", year="2020", journal="J", abstract="Abs").to_prompt()
        assert text == "Title: T\nAuthors: A\nAbstract: Abs\nYear: 2020\nJournal: J"
