"""
Base HTTP client for NCBI API interactions.

Provides request pacing, retries, and HTTP error mapping shared by every
E-utilities call.
"""

import httpx
from typing import Optional, Dict, Any
import logging

from ..config import Config
from ..utils.rate_limiter import RateLimiter, RetryHandler
from ..utils.error_handler import (
    PubMedError,
    RateLimitError,
    ServiceUnavailableError,
    NetworkError,
    map_http_status_to_error,
)

logger = logging.getLogger(__name__)


class BaseClient:
    """
    Base HTTP client with rate limiting and retry logic.

    Subclasses issue requests through ``get`` and own response parsing.
    """

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout: int = 30
    ):
        """
        Initialize the base client.

        Args:
            base_url: Base URL for API requests
            api_key: Optional NCBI API key for higher rate limits
            timeout: Request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key or Config.NCBI_API_KEY
        self.timeout = timeout

        self.rate_limiter = RateLimiter.for_api_key(bool(self.api_key))
        self.retry_handler = RetryHandler(
            max_retries=Config.MAX_RETRIES,
            base_delay=1.0,
            backoff_factor=Config.RETRY_BACKOFF_FACTOR
        )

        self._client: Optional[httpx.AsyncClient] = None

        logger.debug(
            f"BaseClient initialized for {base_url} "
            f"(rate limit: {self.rate_limiter.max_requests}/sec)"
        )

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                headers=self._get_default_headers(),
                follow_redirects=True
            )
        return self._client

    def _get_default_headers(self) -> Dict[str, str]:
        return {
            "User-Agent": f"{Config.TOOL_NAME}/1.0 (mailto:{Config.TOOL_EMAIL})",
            "Accept": "application/xml, text/xml",
        }

    def _build_params(self, **kwargs) -> Dict[str, str]:
        """
        Build query parameters with common fields.

        Adds tool, email, and api_key; drops None values and joins lists.
        """
        params = {
            "tool": Config.TOOL_NAME,
            "email": Config.TOOL_EMAIL,
        }

        if self.api_key:
            params["api_key"] = self.api_key

        for key, value in kwargs.items():
            if value is None:
                continue
            if isinstance(value, bool):
                params[key] = "y" if value else "n"
            elif isinstance(value, (list, tuple)):
                params[key] = ",".join(str(v) for v in value)
            else:
                params[key] = str(value)

        return params

    def build_url(self, endpoint: str, **params) -> str:
        """
        Fully-qualified URL for a request, for diagnostics.

        The API key is left out so the URL is safe to return to callers.
        """
        full_params = self._build_params(**params)
        full_params.pop("api_key", None)
        return str(httpx.URL(f"{self.base_url}/{endpoint}", params=full_params))

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None
    ) -> httpx.Response:
        """
        Make an HTTP request with rate limiting and retries.

        Raises:
            PubMedError: For API errors
            NetworkError: For network issues
        """
        url = f"{self.base_url}/{endpoint}"
        client = await self._get_client()

        for attempt in range(self.retry_handler.max_retries + 1):
            try:
                await self.rate_limiter.acquire()

                logger.debug(f"Request: {method} {url} (attempt {attempt + 1})")
                response = await client.request(method, url, params=params)

                if response.status_code >= 400:
                    if self.retry_handler.should_retry(response.status_code, attempt):
                        await self.retry_handler.wait(attempt)
                        continue
                    if response.status_code == 429:
                        raise RateLimitError(
                            message="Rate limit exceeded after retries",
                            retry_after=float(response.headers.get("Retry-After", 60))
                        )
                    if response.status_code >= 500:
                        raise ServiceUnavailableError(
                            message=f"Server error: {response.status_code}",
                            retry_after=60.0
                        )
                    raise map_http_status_to_error(
                        response.status_code,
                        response.text[:500]
                    )

                logger.debug(f"Response: {response.status_code} ({len(response.text)} bytes)")
                return response

            except httpx.TimeoutException as e:
                if attempt < self.retry_handler.max_retries:
                    await self.retry_handler.wait(attempt)
                    continue
                raise NetworkError(
                    message="Request timed out",
                    original_error=str(e)
                )

            except httpx.RequestError as e:
                if attempt < self.retry_handler.max_retries:
                    await self.retry_handler.wait(attempt)
                    continue
                raise NetworkError(
                    message="Network request failed",
                    original_error=str(e)
                )

        raise PubMedError("Max retries exceeded")

    async def get(
        self,
        endpoint: str,
        **params
    ) -> httpx.Response:
        """Make a GET request."""
        full_params = self._build_params(**params)
        return await self._request("GET", endpoint, params=full_params)

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
