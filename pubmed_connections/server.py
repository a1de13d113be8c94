"""
PubMed Connections MCP Server

A FastMCP-based server that finds articles related to a PubMed record,
formats citations for it, and searches PubMed.

Run with: python -m pubmed_connections.server
Or: fastmcp run pubmed_connections/server.py
"""

from fastmcp import FastMCP
from typing import Dict, Any, List, Optional
import logging

from .config import Config

# Configure logging
logging.basicConfig(
    level=getattr(logging, Config.LOG_LEVEL, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Create FastMCP server
mcp = FastMCP(
    name="PubMed Connections MCP Server",
    instructions="""
    This MCP server explores the neighbourhood of a PubMed article:

    1. **Related articles**: computationally similar articles (ranked by
       PubMed's relevance score), articles citing the source, and articles
       the source cites. Each result carries title, authors, and a PubMed link.

    2. **Citation formats**: RIS, BibTeX, APA, and MLA renderings of the
       source article.

    3. **Search**: keyword search with date and publication type filters,
       optionally returning brief summaries of the top hits.

    The server handles NCBI rate limiting (3 req/sec without API key, 10 with
    key) automatically. Every result includes the E-utilities URL used.
    """
)


# =============================================================================
# Connection Tools
# =============================================================================

@mcp.tool()
async def pubmed_article_connections(
    source_pmid: str,
    relationship_type: str = "similar",
    max_related_results: int = Config.DEFAULT_MAX_RELATED_RESULTS,
    citation_styles: Optional[List[str]] = None
) -> Dict[str, Any]:
    """
    Find articles connected to a PubMed article, or format its citation.

    Args:
        source_pmid: PubMed ID of the source article (digits only)
        relationship_type:
            - "similar": Computationally similar articles, highest score first
            - "cited_by": Articles citing the source
            - "cites": Articles the source references
            - "citation_formats": Formatted citations for the source
        max_related_results: Maximum related articles (1-50, default 5)
        citation_styles: For "citation_formats": any of "ris", "bibtex",
            "apa_string", "mla_string" (default ["ris"])

    Examples:
        - source_pmid="31452104", relationship_type="cited_by"
        - source_pmid="31452104", relationship_type="citation_formats",
          citation_styles=["bibtex", "apa_string"]
    """
    from .tools.connections import pubmed_article_connections as _connections
    return await _connections(
        source_pmid=source_pmid,
        relationship_type=relationship_type,
        max_related_results=max_related_results,
        citation_styles=citation_styles
    )


@mcp.tool()
async def find_related_articles(
    pmid: str,
    relationship_type: str = "similar",
    max_results: int = Config.DEFAULT_MAX_RELATED_RESULTS
) -> Dict[str, Any]:
    """
    Find articles related to a source article.

    Args:
        pmid: Source PubMed ID
        relationship_type: "similar", "cited_by", or "cites"
        max_results: Maximum related articles to return (1-50, default 5)
    """
    from .tools.linking_tools import find_related_articles as _find
    return await _find(
        pmid=pmid,
        relationship_type=relationship_type,
        max_results=max_results
    )


# =============================================================================
# Search Tools
# =============================================================================

@mcp.tool()
async def pubmed_search_articles(
    query_term: str,
    max_results: int = Config.DEFAULT_SEARCH_RESULTS,
    sort_by: str = "relevance",
    min_date: Optional[str] = None,
    max_date: Optional[str] = None,
    date_type: str = "pdat",
    publication_types: Optional[List[str]] = None,
    fetch_brief_summaries: int = 0
) -> Dict[str, Any]:
    """
    Search PubMed and return matching PMIDs.

    Args:
        query_term: Keyword or phrase (at least 3 characters)
        max_results: Maximum PMIDs to retrieve (1-1000, default 20)
        sort_by: "relevance", "pub_date", "author", or "journal_name"
        min_date: Start date (YYYY, YYYY/MM, or YYYY/MM/DD)
        max_date: End date (same formats)
        date_type: "pdat" (publication), "mdat" (modification), "edat" (Entrez)
        publication_types: e.g. ["Review", "Clinical Trial"]
        fetch_brief_summaries: Top PMIDs to summarize (0-50, default 0)

    Examples:
        - query_term="CRISPR gene therapy", fetch_brief_summaries=5
        - query_term="asthma", min_date="2020", publication_types=["Review"]
    """
    from .tools.search_tools import pubmed_search_articles as _search
    return await _search(
        query_term=query_term,
        max_results=max_results,
        sort_by=sort_by,
        min_date=min_date,
        max_date=max_date,
        date_type=date_type,
        publication_types=publication_types,
        fetch_brief_summaries=fetch_brief_summaries
    )


# =============================================================================
# Resources
# =============================================================================

@mcp.resource("pubmed://status")
def get_server_status() -> str:
    """Get PubMed Connections MCP Server status and configuration."""
    from . import __version__

    return f"""
PubMed Connections MCP Server Status
====================================
Version: {__version__}
API Key Configured: {'Yes' if Config.NCBI_API_KEY else 'No'}
Rate Limit: {Config.get_rate_limit()} requests/second

Available Tools (3):
- pubmed_article_connections: similar, cited_by, cites, citation_formats
- find_related_articles: similar, cited_by, cites
- pubmed_search_articles: ESearch with optional brief summaries

E-utilities: {Config.EUTILITIES_BASE_URL}
"""


# =============================================================================
# Entry Point
# =============================================================================

if __name__ == "__main__":
    import os

    host = os.getenv("MCP_HOST", "0.0.0.0")
    port = int(os.getenv("MCP_PORT", "8000"))

    logger.info(f"Starting PubMed Connections MCP Server on {host}:{port} (Streamable HTTP transport)")

    mcp.run(transport="streamable-http", host=host, port=port)
