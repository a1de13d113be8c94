"""Utility modules for the PubMed Connections MCP Server."""

from .rate_limiter import RateLimiter, RetryHandler
from .validation import validate_input
from .error_handler import (
    PubMedError,
    RateLimitError,
    InvalidQueryError,
    ArticleNotFoundError,
    ServiceUnavailableError,
    InvalidIDError,
    NetworkError,
    ParseError,
)

__all__ = [
    "RateLimiter",
    "RetryHandler",
    "validate_input",
    "PubMedError",
    "RateLimitError",
    "InvalidQueryError",
    "ArticleNotFoundError",
    "ServiceUnavailableError",
    "InvalidIDError",
    "NetworkError",
    "ParseError",
]
