"""
Custom exception hierarchy for the PubMed Connections MCP Server.

Every error carries a user-facing message and serializes to a dictionary
that tool handlers can hand back to the MCP client.
"""

from typing import Optional


class PubMedError(Exception):
    """Base exception for all PubMed Connections errors."""

    def __init__(self, message: str, details: Optional[str] = None):
        self.message = message
        self.details = details
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert error to dictionary for MCP response."""
        result = {"error": self.__class__.__name__, "message": self.message}
        if self.details:
            result["details"] = self.details
        return result


class RateLimitError(PubMedError):
    """
    Rate limit exceeded - NCBI returned 429.

    Raised once the retry budget is exhausted.
    """

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        retry_after: Optional[float] = None
    ):
        super().__init__(message)
        self.retry_after = retry_after

    def to_dict(self) -> dict:
        result = super().to_dict()
        if self.retry_after:
            result["retry_after_seconds"] = self.retry_after
        return result


class InvalidQueryError(PubMedError):
    """
    Request parameters rejected, either locally or by E-utilities (HTTP 400).
    """

    def __init__(
        self,
        message: str = "Invalid request parameters",
        details: Optional[str] = None,
        parameter: Optional[str] = None
    ):
        super().__init__(message, details)
        self.parameter = parameter

    def to_dict(self) -> dict:
        result = super().to_dict()
        if self.parameter:
            result["parameter"] = self.parameter
        return result


class ArticleNotFoundError(PubMedError):
    """Resource not found (HTTP 404)."""

    def __init__(
        self,
        message: str = "Article not found",
        details: Optional[str] = None,
        identifier: Optional[str] = None
    ):
        super().__init__(message, details)
        self.identifier = identifier

    def to_dict(self) -> dict:
        result = super().to_dict()
        if self.identifier:
            result["identifier"] = self.identifier
        return result


class ServiceUnavailableError(PubMedError):
    """
    NCBI service unavailable - temporary outage.

    Client should retry after the suggested delay.
    """

    def __init__(
        self,
        message: str = "NCBI service temporarily unavailable",
        retry_after: Optional[float] = 60.0
    ):
        super().__init__(message)
        self.retry_after = retry_after

    def to_dict(self) -> dict:
        result = super().to_dict()
        if self.retry_after:
            result["retry_after_seconds"] = self.retry_after
        return result


class InvalidIDError(PubMedError):
    """The provided identifier is not a PMID."""

    def __init__(
        self,
        message: str = "Invalid identifier format",
        identifier: Optional[str] = None,
        expected_format: Optional[str] = None
    ):
        super().__init__(message)
        self.identifier = identifier
        self.expected_format = expected_format

    def to_dict(self) -> dict:
        result = super().to_dict()
        if self.identifier:
            result["identifier"] = self.identifier
        if self.expected_format:
            result["expected_format"] = self.expected_format
        return result


class NetworkError(PubMedError):
    """
    Network connectivity error.
    """

    def __init__(
        self,
        message: str = "Network error occurred",
        original_error: Optional[str] = None
    ):
        super().__init__(message)
        self.original_error = original_error

    def to_dict(self) -> dict:
        result = super().to_dict()
        if self.original_error:
            result["original_error"] = self.original_error
        return result


class ParseError(PubMedError):
    """
    Response payload could not be understood.

    Raised for malformed XML and for payloads missing every container the
    parser knows about, which signals an API contract change rather than a
    missing optional field.
    """

    def __init__(
        self,
        message: str = "Unrecognized response structure",
        details: Optional[str] = None,
        endpoint: Optional[str] = None
    ):
        super().__init__(message, details)
        self.endpoint = endpoint

    def to_dict(self) -> dict:
        result = super().to_dict()
        if self.endpoint:
            result["endpoint"] = self.endpoint
        return result


def map_http_status_to_error(
    status_code: int,
    response_text: Optional[str] = None
) -> PubMedError:
    """
    Map HTTP status codes to appropriate PubMedError subclasses.

    Args:
        status_code: HTTP status code
        response_text: Optional response body for additional context

    Returns:
        Appropriate PubMedError subclass instance
    """
    if status_code == 400:
        return InvalidQueryError(
            message="Bad request - check E-utilities parameters",
            details=response_text
        )
    if status_code in (401, 403):
        return PubMedError(
            message="Authentication error - check API key",
            details=response_text
        )
    if status_code == 404:
        return ArticleNotFoundError(
            message="Resource not found",
            details=response_text
        )
    if status_code == 429:
        return RateLimitError(
            message="Rate limit exceeded - retry with backoff",
            retry_after=60.0
        )
    if status_code in (502, 504):
        return ServiceUnavailableError(
            message="NCBI gateway error",
            retry_after=30.0
        )
    if status_code >= 500:
        return ServiceUnavailableError(
            message=f"NCBI server error ({status_code})",
            retry_after=60.0
        )
    return PubMedError(
        message=f"HTTP error {status_code}",
        details=response_text
    )
