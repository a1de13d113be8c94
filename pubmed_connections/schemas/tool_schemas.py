"""
Pydantic schemas for the connections tools.

Defines the tool input models and the records passed between the ESearch,
ELink, ESummary, and citation stages. Output models serialize with camelCase
aliases, the field names MCP clients see.
"""

from typing import List, Optional, Dict, Any, Literal
from pydantic import BaseModel, ConfigDict, Field

from ..config import Config


CitationStyle = Literal["ris", "bibtex", "apa_string", "mla_string"]
SearchSort = Literal["relevance", "pub_date", "author", "journal_name"]
DateType = Literal["pdat", "mdat", "edat"]

PMID_PATTERN = r"^\d+$"
SEARCH_DATE_PATTERN = r"^\d{4}(/\d{2}(/\d{2})?)?$"


# =============================================================================
# Tool Input
# =============================================================================

class RelatedArticlesInput(BaseModel):
    """Input for find_related_articles tool."""
    pmid: str = Field(
        ...,
        pattern=PMID_PATTERN,
        description="Source PubMed ID"
    )
    relationship_type: str = Field(
        "similar",
        description="Type of relationship to find"
    )
    max_results: int = Field(
        Config.DEFAULT_MAX_RELATED_RESULTS,
        ge=1,
        le=Config.MAX_RELATED_RESULTS,
        description="Maximum related articles to return"
    )


class SearchArticlesInput(BaseModel):
    """Input for pubmed_search_articles tool."""
    query_term: str = Field(
        ...,
        min_length=3,
        description="Keyword or phrase to search for in PubMed"
    )
    max_results: int = Field(
        Config.DEFAULT_SEARCH_RESULTS,
        ge=1,
        le=Config.MAX_SEARCH_RESULTS,
        description="Maximum PMIDs to retrieve (ESearch retmax)"
    )
    sort_by: SearchSort = Field(
        "relevance",
        description="Sort order for results"
    )
    min_date: Optional[str] = Field(
        None,
        pattern=SEARCH_DATE_PATTERN,
        description="Start of the date range (YYYY, YYYY/MM, or YYYY/MM/DD)"
    )
    max_date: Optional[str] = Field(
        None,
        pattern=SEARCH_DATE_PATTERN,
        description="End of the date range (YYYY, YYYY/MM, or YYYY/MM/DD)"
    )
    date_type: DateType = Field(
        "pdat",
        description="Date the range applies to: publication, modification, or Entrez"
    )
    publication_types: Optional[List[str]] = Field(
        None,
        description="Publication types to filter by (e.g., Review, Clinical Trial)"
    )
    fetch_brief_summaries: int = Field(
        0,
        ge=0,
        le=Config.MAX_SEARCH_SUMMARIES,
        description="Number of top PMIDs to summarize with ESummary; 0 disables"
    )


class ArticleConnectionsInput(BaseModel):
    """Input for the pubmed_article_connections tool."""
    source_pmid: str = Field(
        ...,
        pattern=PMID_PATTERN,
        description="PubMed ID of the source article"
    )
    relationship_type: str = Field(
        "similar",
        description=(
            "similar, cited_by, cites, or citation_formats; other values use "
            "ELink's default link"
        )
    )
    max_related_results: int = Field(
        Config.DEFAULT_MAX_RELATED_RESULTS,
        ge=1,
        le=Config.MAX_RELATED_RESULTS,
        description="Maximum related articles to return"
    )
    citation_styles: List[CitationStyle] = Field(
        default_factory=lambda: ["ris"],
        description="Styles rendered when relationship_type is citation_formats"
    )


# =============================================================================
# Pipeline Records
# =============================================================================

class LinkCandidate(BaseModel):
    """A related PMID from ELink, with its score when every link had one."""
    pmid: str
    score: Optional[float] = None


class BriefSummary(BaseModel):
    """The subset of an ESummary document used for enrichment and citations."""
    pmid: str
    title: Optional[str] = None
    authors: Optional[List[str]] = None
    source: Optional[str] = None
    doi: Optional[str] = None
    pub_date: Optional[str] = None
    epub_date: Optional[str] = None
    volume: Optional[str] = None
    issue: Optional[str] = None
    pages: Optional[str] = None


class _AliasedModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_output(self) -> Dict[str, Any]:
        """JSON-ready dict with camelCase keys and unset optionals dropped."""
        return self.model_dump(by_alias=True, exclude_none=True)


class EnrichedRelation(_AliasedModel):
    """A related article as returned to the caller."""
    pmid: str
    title: Optional[str] = None
    authors: Optional[List[str]] = None
    score: Optional[float] = None
    link_url: str = Field(..., alias="linkUrl")


class PipelineOutcome(_AliasedModel):
    """Result of one relationship lookup."""
    related_articles: List[EnrichedRelation] = Field(default_factory=list, alias="relatedArticles")
    retrieved_count: int = Field(0, alias="retrievedCount")
    message: Optional[str] = None
    e_utility_url: Optional[str] = Field(None, alias="eUtilityUrl")


class CitationOutcome(_AliasedModel):
    """Formatted citations for the source article."""
    citations: Dict[str, str] = Field(default_factory=dict)
    retrieved_count: int = Field(0, alias="retrievedCount")
    message: Optional[str] = None
    e_utility_url: Optional[str] = Field(None, alias="eUtilityUrl")


class ArticleConnectionsOutput(_AliasedModel):
    """Output of the pubmed_article_connections tool."""
    source_pmid: str = Field(..., alias="sourcePmid")
    relationship_type: str = Field(..., alias="relationshipType")
    related_articles: List[EnrichedRelation] = Field(default_factory=list, alias="relatedArticles")
    citations: Dict[str, str] = Field(default_factory=dict)
    retrieved_count: int = Field(0, alias="retrievedCount")
    e_utility_url: Optional[str] = Field(None, alias="eUtilityUrl")
    message: Optional[str] = None


class SearchArticlesOutput(_AliasedModel):
    """Output of the pubmed_search_articles tool."""
    search_parameters: Dict[str, Any] = Field(..., alias="searchParameters")
    effective_term: str = Field(..., alias="effectiveESearchTerm")
    total_found: int = Field(0, alias="totalFound")
    retrieved_pmid_count: int = Field(0, alias="retrievedPmidCount")
    pmids: List[str] = Field(default_factory=list)
    brief_summaries: List[BriefSummary] = Field(default_factory=list, alias="briefSummaries")
    e_search_url: str = Field(..., alias="eSearchUrl")
    e_summary_url: Optional[str] = Field(None, alias="eSummaryUrl")
