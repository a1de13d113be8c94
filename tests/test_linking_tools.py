"""
Tests for relationship discovery and enrichment.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from pubmed_connections.tools.linking_tools import (
    GENERIC_LINK_ERROR,
    NO_LINKS_MESSAGE,
    parse_link_candidates,
    rank_candidates,
    resolve_relationships,
)
from pubmed_connections.schemas.tool_schemas import LinkCandidate
from pubmed_connections.utils.error_handler import (
    InvalidIDError,
    InvalidQueryError,
    NetworkError,
    ParseError,
)

ELINK_URL = "https://eutils.ncbi.nlm.nih.gov/entrez/eutils/elink.fcgi?dbfrom=pubmed"


def elink_response(links, linkname="pubmed_pubmed"):
    """Build an xmltodict-shaped ELink response."""
    return {
        "eLinkResult": {
            "LinkSet": {
                "DbFrom": "pubmed",
                "IdList": {"Id": "100"},
                "LinkSetDb": {
                    "DbTo": "pubmed",
                    "LinkName": linkname,
                    "Link": links,
                },
            }
        }
    }


def esummary_response(*docs):
    """Build an xmltodict-shaped ESummary 2.0 response."""
    return {
        "eSummaryResult": {
            "DocumentSummarySet": {
                "@status": "OK",
                "DocumentSummary": [
                    {
                        "@uid": pmid,
                        "Title": f"Title {pmid}",
                        "Authors": {"Author": [{"Name": f"Author {pmid}"}]},
                    }
                    for pmid in docs
                ],
            }
        }
    }


def make_client(link_result, summary_result=None, summary_error=None):
    client = MagicMock()
    client.link_url.return_value = ELINK_URL
    client.link = AsyncMock(return_value=link_result)
    if summary_error is not None:
        client.summary = AsyncMock(side_effect=summary_error)
    else:
        client.summary = AsyncMock(return_value=summary_result or {"eSummaryResult": {}})
    return client


def pmids(outcome):
    return [a.pmid for a in outcome.related_articles]


class TestParseLinkCandidates:
    """Tests for reading candidates out of ELink responses."""

    def test_single_link_dict(self):
        """Test a lone Link element (not a list) is read."""
        response = elink_response({"Id": "200", "Score": "50"})

        candidates, error = parse_link_candidates(response, "100", "pubmed_pubmed")

        assert error is None
        assert candidates == [LinkCandidate(pmid="200", score=50.0)]

    def test_filters_source_empty_and_zero(self):
        response = elink_response([
            {"Id": "100", "Score": "99"},
            {"Id": "", "Score": "10"},
            {"Id": "0", "Score": "10"},
            {"Id": {"#text": "300"}, "Score": {"#text": "5"}},
        ])

        candidates, _ = parse_link_candidates(response, "100", "pubmed_pubmed")

        assert candidates == [LinkCandidate(pmid="300", score=5.0)]

    def test_partial_scores_are_dropped(self):
        """Test a set where one link lacks a score is treated as unscored."""
        response = elink_response([{"Id": "1", "Score": "9"}, {"Id": "2"}])

        candidates, _ = parse_link_candidates(response, "100", "pubmed_pubmed")

        assert [c.score for c in candidates] == [None, None]

    def test_non_numeric_score_is_unscored(self):
        response = elink_response([{"Id": "1", "Score": "high"}, {"Id": "2", "Score": "3"}])

        candidates, _ = parse_link_candidates(response, "100", "pubmed_pubmed")

        assert all(c.score is None for c in candidates)

    def test_selects_requested_linkname(self):
        response = elink_response([{"Id": "1"}])
        response["eLinkResult"]["LinkSet"]["LinkSetDb"] = [
            {"LinkName": "pubmed_pubmed", "Link": [{"Id": "7", "Score": "1"}]},
            {"LinkName": "pubmed_pubmed_citedin", "Link": [{"Id": "8"}, {"Id": "9"}]},
        ]

        candidates, _ = parse_link_candidates(response, "100", "pubmed_pubmed_citedin")

        assert [c.pmid for c in candidates] == ["8", "9"]

    def test_error_in_link_set(self):
        response = {"eLinkResult": {"LinkSet": {"DbFrom": "pubmed", "ERROR": "UID=abc: cannot get document summary"}}}

        candidates, error = parse_link_candidates(response, "100", "pubmed_pubmed")

        assert candidates == []
        assert error == "UID=abc: cannot get document summary"

    def test_repeated_error_keeps_remote_text(self):
        """Test a repeated or wrapped ERROR element keeps its first text."""
        response = {"eLinkResult": {"ERROR": [None, {"#text": "Invalid db name", "@code": "1"}]}}

        candidates, error = parse_link_candidates(response, "100", "pubmed_pubmed")

        assert candidates == []
        assert error == "Invalid db name"

    def test_empty_error_uses_generic_message(self):
        response = {"eLinkResult": {"LinkSet": {"ERROR": None}}}

        _, error = parse_link_candidates(response, "100", "pubmed_pubmed")

        assert error == GENERIC_LINK_ERROR

    def test_missing_result(self):
        assert parse_link_candidates({}, "100", "pubmed_pubmed") == ([], None)


class TestRankCandidates:
    """Tests for the all-or-nothing ranking rule."""

    def test_sorts_descending_and_stable(self):
        candidates = [
            LinkCandidate(pmid="a", score=1.0),
            LinkCandidate(pmid="b", score=5.0),
            LinkCandidate(pmid="c", score=1.0),
            LinkCandidate(pmid="d", score=5.0),
        ]

        assert [c.pmid for c in rank_candidates(candidates)] == ["b", "d", "a", "c"]

    def test_any_unscored_keeps_remote_order(self):
        candidates = [
            LinkCandidate(pmid="a", score=1.0),
            LinkCandidate(pmid="b"),
            LinkCandidate(pmid="c", score=9.0),
        ]

        assert [c.pmid for c in rank_candidates(candidates)] == ["a", "b", "c"]


class TestResolveRelationships:
    """Tests for the full link, rank, truncate, enrich pipeline."""

    @pytest.mark.asyncio
    async def test_scored_links_enriched_in_rank_order(self):
        """Scored links come back highest first, with titles."""
        client = make_client(
            elink_response([{"Id": "1", "Score": "5"}, {"Id": "2", "Score": "9"}]),
            esummary_response("1", "2"),
        )

        outcome = await resolve_relationships(client, "100", "similar", 10)

        assert pmids(outcome) == ["2", "1"]
        assert [a.title for a in outcome.related_articles] == ["Title 2", "Title 1"]
        assert outcome.related_articles[0].authors == ["Author 2"]
        assert outcome.related_articles[0].score == 9.0
        assert outcome.retrieved_count == 2
        assert outcome.message is None
        assert outcome.e_utility_url == ELINK_URL

    @pytest.mark.asyncio
    async def test_unscored_link_skips_ranking(self):
        client = make_client(elink_response({"Id": "5"}), esummary_response("5"))

        outcome = await resolve_relationships(client, "100", "similar", 10)

        assert pmids(outcome) == ["5"]
        assert outcome.related_articles[0].score is None

    @pytest.mark.asyncio
    async def test_elink_error_is_terminal(self):
        client = make_client({"eLinkResult": {"ERROR": "no items found"}})

        outcome = await resolve_relationships(client, "100", "similar", 10)

        assert outcome.related_articles == []
        assert outcome.retrieved_count == 0
        assert outcome.message == "no items found"
        assert outcome.e_utility_url == ELINK_URL
        client.summary.assert_not_called()

    @pytest.mark.asyncio
    async def test_no_links_is_terminal(self):
        client = make_client(elink_response([{"Id": "100"}]))

        outcome = await resolve_relationships(client, "100", "similar", 10)

        assert outcome.related_articles == []
        assert outcome.retrieved_count == 0
        assert outcome.message == NO_LINKS_MESSAGE

    @pytest.mark.asyncio
    async def test_truncates_before_enrichment(self):
        """Only the top max_results PMIDs are summarized."""
        client = make_client(
            elink_response([
                {"Id": "1", "Score": "1"},
                {"Id": "2", "Score": "3"},
                {"Id": "3", "Score": "2"},
            ]),
            esummary_response("2", "3"),
        )

        outcome = await resolve_relationships(client, "100", "similar", 2)

        assert pmids(outcome) == ["2", "3"]
        assert outcome.retrieved_count == 2
        client.summary.assert_awaited_once()
        assert client.summary.await_args.kwargs["ids"] == ["2", "3"]

    @pytest.mark.asyncio
    async def test_truncates_unscored_in_remote_order(self):
        client = make_client(
            elink_response([{"Id": "9"}, {"Id": "8"}, {"Id": "7"}], linkname="pubmed_pubmed_citedin"),
            esummary_response("9", "8"),
        )

        outcome = await resolve_relationships(client, "100", "cited_by", 2)

        assert pmids(outcome) == ["9", "8"]

    @pytest.mark.asyncio
    async def test_summary_transport_error_degrades(self):
        """A failed summary call still returns the link-derived records."""
        client = make_client(
            elink_response([{"Id": "1", "Score": "2"}, {"Id": "2", "Score": "1"}]),
            summary_error=NetworkError("Network request failed"),
        )

        outcome = await resolve_relationships(client, "100", "similar", 10)

        assert pmids(outcome) == ["1", "2"]
        assert outcome.retrieved_count == 2
        for article in outcome.related_articles:
            assert article.title is None
            assert article.authors is None
            assert article.score is not None
            assert article.link_url == f"https://pubmed.ncbi.nlm.nih.gov/{article.pmid}/"

    @pytest.mark.asyncio
    async def test_unrecognized_summary_degrades(self):
        client = make_client(
            elink_response([{"Id": "1"}]),
            {"eSummaryResult": {"Unexpected": "shape"}},
        )

        outcome = await resolve_relationships(client, "100", "similar", 10)

        assert pmids(outcome) == ["1"]
        assert outcome.related_articles[0].title is None

    @pytest.mark.asyncio
    async def test_partial_summary_keeps_order_and_drops_extras(self):
        """Missing summaries leave fields empty; unrequested ones are ignored."""
        client = make_client(
            elink_response([{"Id": "1"}, {"Id": "2"}]),
            esummary_response("2", "42"),
        )

        outcome = await resolve_relationships(client, "100", "similar", 10)

        assert pmids(outcome) == ["1", "2"]
        assert outcome.related_articles[0].title is None
        assert outcome.related_articles[1].title == "Title 2"

    @pytest.mark.asyncio
    async def test_elink_failure_propagates(self):
        client = make_client(None)
        client.link = AsyncMock(side_effect=NetworkError("Request timed out"))

        with pytest.raises(NetworkError):
            await resolve_relationships(client, "100", "similar", 10)

    @pytest.mark.asyncio
    async def test_linkname_by_relationship(self):
        """Test each relationship type selects its ELink link name."""
        expected = {
            "cited_by": "pubmed_pubmed_citedin",
            "cites": "pubmed_pubmed_refs",
            "similar": None,
            "something_else": None,
        }
        for relationship_type, linkname in expected.items():
            client = make_client({"eLinkResult": {"ERROR": "none"}})

            await resolve_relationships(client, "100", relationship_type, 5)

            kwargs = client.link.await_args.kwargs
            assert kwargs["linkname"] == linkname
            assert kwargs["cmd"] == "neighbor_score"
            assert kwargs["dbfrom"] == kwargs["db"] == "pubmed"
            assert kwargs["ids"] == ["100"]


class TestFindRelatedArticles:
    """Tests for the find_related_articles tool."""

    @pytest.mark.asyncio
    async def test_serialized_output(self):
        from pubmed_connections.tools.linking_tools import find_related_articles

        with patch('pubmed_connections.tools.linking_tools.EUtilitiesClient') as MockClient:
            mock_instance = make_client(
                elink_response([{"Id": "2", "Score": "9"}]),
                summary_error=ParseError("Malformed XML returned by esummary.fcgi"),
            )
            MockClient.return_value.__aenter__.return_value = mock_instance

            result = await find_related_articles(pmid="100", max_results=5)

        assert result["retrievedCount"] == 1
        assert result["eUtilityUrl"] == ELINK_URL
        assert result["relatedArticles"] == [
            {"pmid": "2", "score": 9.0, "linkUrl": "https://pubmed.ncbi.nlm.nih.gov/2/"}
        ]
        assert "message" not in result

    @pytest.mark.asyncio
    @pytest.mark.parametrize("max_results", [0, -1, 51])
    async def test_max_results_out_of_range(self, max_results):
        """Test out-of-range widths are rejected before any request."""
        from pubmed_connections.tools.linking_tools import find_related_articles

        with patch('pubmed_connections.tools.linking_tools.EUtilitiesClient') as MockClient:
            with pytest.raises(InvalidQueryError) as exc_info:
                await find_related_articles(pmid="100", max_results=max_results)

        assert exc_info.value.parameter == "max_results"
        MockClient.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("pmid", ["", "PMC123", " 100"])
    async def test_invalid_pmid(self, pmid):
        """Test non-numeric PMIDs are rejected before any request."""
        from pubmed_connections.tools.linking_tools import find_related_articles

        with patch('pubmed_connections.tools.linking_tools.EUtilitiesClient') as MockClient:
            with pytest.raises(InvalidIDError) as exc_info:
                await find_related_articles(pmid=pmid)

        assert exc_info.value.identifier == pmid
        MockClient.assert_not_called()

    @pytest.mark.asyncio
    async def test_result_width_is_bounded(self):
        """Test the result never exceeds max_results."""
        from pubmed_connections.tools.linking_tools import find_related_articles

        with patch('pubmed_connections.tools.linking_tools.EUtilitiesClient') as MockClient:
            mock_instance = make_client(
                elink_response([
                    {"Id": "1", "Score": "3"},
                    {"Id": "2", "Score": "2"},
                    {"Id": "3", "Score": "1"},
                ]),
                esummary_response("1"),
            )
            MockClient.return_value.__aenter__.return_value = mock_instance

            result = await find_related_articles(pmid="100", max_results=1)

        assert result["retrievedCount"] == 1
        assert [a["pmid"] for a in result["relatedArticles"]] == ["1"]
        assert mock_instance.summary.await_args.kwargs["ids"] == ["1"]
