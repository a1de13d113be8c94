"""MCP Tool modules for the PubMed Connections MCP Server."""

from .linking_tools import (
    find_related_articles,
    resolve_relationships,
)
from .citation_tools import (
    fetch_citation_formats,
    format_citations,
)
from .search_tools import pubmed_search_articles
from .connections import pubmed_article_connections

__all__ = [
    # Connections
    "pubmed_article_connections",
    # Relationship tools
    "find_related_articles",
    "resolve_relationships",
    # Citation tools
    "fetch_citation_formats",
    "format_citations",
    # Search tools
    "pubmed_search_articles",
]
