"""
Configuration management for the PubMed Connections MCP Server.

Handles environment variables, API endpoints, and rate limiting settings.
"""

import os
from typing import Optional
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Config:
    """Central configuration for the PubMed Connections MCP Server."""

    # NCBI API Key (optional but recommended for 10 req/sec vs 3 req/sec)
    NCBI_API_KEY: Optional[str] = os.getenv("NCBI_API_KEY")

    # Tool identification (required by NCBI)
    TOOL_NAME: str = os.getenv("TOOL_NAME", "pubmed-connections-mcp")
    TOOL_EMAIL: str = os.getenv("TOOL_EMAIL", "pubmed-mcp@example.com")

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Rate limiting
    MAX_REQUESTS_PER_SEC_WITH_KEY: int = 10
    MAX_REQUESTS_PER_SEC_WITHOUT_KEY: int = 3

    @classmethod
    def get_rate_limit(cls) -> int:
        """Get the appropriate rate limit based on API key presence."""
        return cls.MAX_REQUESTS_PER_SEC_WITH_KEY if cls.NCBI_API_KEY else cls.MAX_REQUESTS_PER_SEC_WITHOUT_KEY

    # API Base URLs
    EUTILITIES_BASE_URL: str = "https://eutils.ncbi.nlm.nih.gov/entrez/eutils"
    PUBMED_ARTICLE_BASE_URL: str = "https://pubmed.ncbi.nlm.nih.gov"

    # Request settings
    REQUEST_TIMEOUT: int = 60  # seconds
    MAX_RETRIES: int = 3
    RETRY_BACKOFF_FACTOR: float = 1.5

    # Relationship discovery settings
    DEFAULT_MAX_RELATED_RESULTS: int = 5
    MAX_RELATED_RESULTS: int = 50
    ESUMMARY_VERSION: str = "2.0"

    # Search settings
    DEFAULT_SEARCH_RESULTS: int = 20
    MAX_SEARCH_RESULTS: int = 1000
    MAX_SEARCH_SUMMARIES: int = 50

    @classmethod
    def article_url(cls, pmid: str) -> str:
        """Public PubMed page for a PMID."""
        return f"{cls.PUBMED_ARTICLE_BASE_URL}/{pmid}/"
