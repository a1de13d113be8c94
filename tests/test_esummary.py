"""
Tests for ESummary brief-summary extraction.
"""

import pytest

from pubmed_connections.parsing.esummary import (
    extract_brief_summaries,
    summaries_by_pmid,
)
from pubmed_connections.utils.error_handler import ParseError


def document_summary(uid, **fields):
    doc = {"@uid": uid}
    doc.update(fields)
    return doc


class TestDocumentSummarySet:
    """Tests for ESummary 2.0 responses."""

    def test_full_record(self):
        """Test every supported field is extracted."""
        result = {
            "DocumentSummarySet": {
                "@status": "OK",
                "DocumentSummary": document_summary(
                    "31452104",
                    Title="Gene therapy outcomes.",
                    Authors={"Author": [
                        {"Name": "Smith J", "AuthType": "Author"},
                        {"Name": "Doe A", "AuthType": "Author"},
                    ]},
                    Source="Nat Med",
                    PubDate="2019 Sep",
                    EPubDate="2019 Aug 26",
                    Volume="25",
                    Issue="9",
                    Pages="1342-1350",
                    ArticleIds={"ArticleId": [
                        {"IdType": "pubmed", "Value": "31452104"},
                        {"IdType": "doi", "Value": "10.1038/s41591-019-0564-6"},
                    ]},
                ),
            }
        }

        summaries = extract_brief_summaries(result)

        assert len(summaries) == 1
        summary = summaries[0]
        assert summary.pmid == "31452104"
        assert summary.title == "Gene therapy outcomes."
        assert summary.authors == ["Smith J", "Doe A"]
        assert summary.source == "Nat Med"
        assert summary.doi == "10.1038/s41591-019-0564-6"
        assert summary.pub_date == "2019 Sep"
        assert summary.volume == "25"
        assert summary.pages == "1342-1350"

    def test_single_author_and_missing_fields(self):
        """Test a lone author dict and absent fields do not fail."""
        result = {
            "DocumentSummarySet": {
                "DocumentSummary": [
                    document_summary("1", Authors={"Author": {"Name": "Solo A"}}),
                    document_summary("2"),
                ]
            }
        }

        summaries = extract_brief_summaries(result)

        assert [s.pmid for s in summaries] == ["1", "2"]
        assert summaries[0].authors == ["Solo A"]
        assert summaries[0].title is None
        assert summaries[1].authors is None
        assert summaries[1].doi is None

    def test_string_authors_are_split(self):
        result = {"DocumentSummarySet": {"DocumentSummary": document_summary("3", Authors="Smith J; Doe A")}}

        assert extract_brief_summaries(result)[0].authors == ["Smith J", "Doe A"]

    def test_document_without_uid_is_dropped(self):
        result = {"DocumentSummarySet": {"DocumentSummary": [{"Title": "orphan"}, document_summary("4")]}}

        assert [s.pmid for s in extract_brief_summaries(result)] == ["4"]

    def test_empty_set(self):
        assert extract_brief_summaries({"DocumentSummarySet": None}) == []


class TestDocSum:
    """Tests for ESummary 1.0 item-list responses."""

    def test_item_list(self):
        result = {
            "DocSum": {
                "Id": "12345",
                "Item": [
                    {"@Name": "PubDate", "@Type": "Date", "#text": "2020 Jan"},
                    {"@Name": "Source", "@Type": "String", "#text": "Cell"},
                    {"@Name": "AuthorList", "@Type": "List", "Item": [
                        {"@Name": "Author", "@Type": "String", "#text": "Lee K"},
                        {"@Name": "Author", "@Type": "String", "#text": "Park S"},
                    ]},
                    {"@Name": "Title", "@Type": "String", "#text": "Cell atlas."},
                    {"@Name": "ArticleIds", "@Type": "List", "Item": [
                        {"@Name": "pubmed", "@Type": "String", "#text": "12345"},
                        {"@Name": "doi", "@Type": "String", "#text": "10.1016/j.cell"},
                    ]},
                ],
            }
        }

        summary = extract_brief_summaries(result)[0]

        assert summary.pmid == "12345"
        assert summary.title == "Cell atlas."
        assert summary.authors == ["Lee K", "Park S"]
        assert summary.source == "Cell"
        assert summary.pub_date == "2020 Jan"
        assert summary.doi == "10.1016/j.cell"


class TestUnrecognizedShapes:
    """Tests for error and contract-break handling."""

    def test_error_returns_empty(self):
        assert extract_brief_summaries({"ERROR": "Invalid uid"}) == []

    def test_unknown_container_raises(self):
        with pytest.raises(ParseError):
            extract_brief_summaries({"Unexpected": {}})

    def test_non_dict_raises(self):
        with pytest.raises(ParseError):
            extract_brief_summaries("not a document")


class TestHelpers:
    """Tests for lookup and author formatting helpers."""

    def test_last_write_wins(self):
        result = {
            "DocumentSummarySet": {
                "DocumentSummary": [
                    document_summary("5", Title="First"),
                    document_summary("5", Title="Second"),
                ]
            }
        }

        lookup = summaries_by_pmid(extract_brief_summaries(result))

        assert lookup["5"].title == "Second"
