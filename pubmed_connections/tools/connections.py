"""
Article Connections Tool

Single entry point that routes a source PMID either to relationship
discovery (similar, cited_by, cites) or to citation formatting.
"""

from typing import Dict, Any, List, Optional
import logging

from ..clients.eutilities import EUtilitiesClient
from ..config import Config
from ..schemas.tool_schemas import ArticleConnectionsInput, ArticleConnectionsOutput
from ..utils.validation import validate_input
from .citation_tools import fetch_citation_formats
from .linking_tools import resolve_relationships

logger = logging.getLogger(__name__)

CITATION_FORMATS = "citation_formats"


async def pubmed_article_connections(
    source_pmid: str,
    relationship_type: str = "similar",
    max_related_results: int = Config.DEFAULT_MAX_RELATED_RESULTS,
    citation_styles: Optional[List[str]] = None
) -> Dict[str, Any]:
    """
    Find connections for a source article or format its citation.

    Args:
        source_pmid: PubMed ID of the source article
        relationship_type: "similar", "cited_by", "cites", or
            "citation_formats"
        max_related_results: Maximum related articles (1-50)
        citation_styles: Styles for "citation_formats"
            ("ris", "bibtex", "apa_string", "mla_string")

    Returns:
        Dictionary with sourcePmid, relationshipType, relatedArticles,
        citations, retrievedCount, eUtilityUrl and an optional message

    Raises:
        InvalidIDError: If source_pmid is not numeric
        InvalidQueryError: If another argument is out of range
    """
    params = dict(
        source_pmid=source_pmid,
        relationship_type=relationship_type,
        max_related_results=max_related_results,
    )
    if citation_styles is not None:
        params["citation_styles"] = citation_styles
    request = validate_input(ArticleConnectionsInput, id_fields=("source_pmid",), **params)

    context = {
        "tool": "pubmed_article_connections",
        "source_pmid": request.source_pmid,
        "relationship_type": request.relationship_type,
    }
    logger.info(f"Executing pubmed_article_connections for {request.source_pmid} ({request.relationship_type})")

    output = ArticleConnectionsOutput(
        source_pmid=request.source_pmid,
        relationship_type=request.relationship_type,
    )

    async with EUtilitiesClient() as client:
        if request.relationship_type == CITATION_FORMATS:
            citation_outcome = await fetch_citation_formats(
                client,
                request.source_pmid,
                list(request.citation_styles),
                context
            )
            output.citations = citation_outcome.citations
            output.retrieved_count = citation_outcome.retrieved_count
            output.e_utility_url = citation_outcome.e_utility_url
            output.message = citation_outcome.message
        else:
            outcome = await resolve_relationships(
                client,
                request.source_pmid,
                request.relationship_type,
                request.max_related_results,
                context
            )
            output.related_articles = outcome.related_articles
            output.retrieved_count = outcome.retrieved_count
            output.e_utility_url = outcome.e_utility_url
            output.message = outcome.message

    logger.info(
        f"pubmed_article_connections: {output.retrieved_count} results for "
        f"{request.source_pmid} ({request.relationship_type})"
    )
    return output.to_output()
