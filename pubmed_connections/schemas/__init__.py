"""Pydantic schemas for the PubMed Connections MCP Server."""

from .tool_schemas import (
    CitationStyle,
    ArticleConnectionsInput,
    RelatedArticlesInput,
    SearchArticlesInput,
    LinkCandidate,
    BriefSummary,
    EnrichedRelation,
    PipelineOutcome,
    CitationOutcome,
    ArticleConnectionsOutput,
    SearchArticlesOutput,
)

__all__ = [
    "CitationStyle",
    "ArticleConnectionsInput",
    "RelatedArticlesInput",
    "SearchArticlesInput",
    "LinkCandidate",
    "BriefSummary",
    "EnrichedRelation",
    "PipelineOutcome",
    "CitationOutcome",
    "ArticleConnectionsOutput",
    "SearchArticlesOutput",
]
