"""
NCBI E-Utilities client for the PubMed Connections MCP Server.

Wraps the endpoints the tools depend on:
- ESearch: keyword search returning PMIDs
- ELink: related-record discovery (neighbors, citations, references)
- ESummary: batch document summaries

Responses are requested as XML and converted with xmltodict. The resulting
dict tree keeps XML's ambiguity: a repeated element becomes a list, a single
one does not, and an element carrying attributes becomes a dict with its text
under ``#text``. Callers normalize with ``parsing.xml_helpers``.
"""

from typing import List, Dict, Any, Optional
from xml.parsers.expat import ExpatError
import logging

import xmltodict

from .base import BaseClient
from ..config import Config
from ..parsing.xml_helpers import first_text, get_text, normalize_values, to_number
from ..utils.error_handler import InvalidQueryError, ParseError

logger = logging.getLogger(__name__)

ESEARCH_ENDPOINT = "esearch.fcgi"
ELINK_ENDPOINT = "elink.fcgi"
ESUMMARY_ENDPOINT = "esummary.fcgi"


class EUtilitiesClient(BaseClient):
    """
    Client for NCBI E-Utilities API.

    Base URL: https://eutils.ncbi.nlm.nih.gov/entrez/eutils
    """

    def __init__(self, api_key: Optional[str] = None):
        """Initialize E-Utilities client."""
        super().__init__(
            base_url=Config.EUTILITIES_BASE_URL,
            api_key=api_key,
            timeout=Config.REQUEST_TIMEOUT
        )

    @staticmethod
    def _search_params(db: str, term: str, retmax: int, sort: str) -> Dict[str, Any]:
        return {
            "db": db,
            "term": term,
            "retmax": retmax,
            "sort": sort,
            "retmode": "xml",
        }

    @staticmethod
    def _link_params(
        dbfrom: str,
        db: str,
        ids: List[str],
        cmd: str,
        linkname: Optional[str]
    ) -> Dict[str, Any]:
        return {
            "dbfrom": dbfrom,
            "db": db,
            "id": ",".join(str(i) for i in ids),
            "cmd": cmd,
            "linkname": linkname,
            "retmode": "xml",
        }

    @staticmethod
    def _summary_params(db: str, ids: List[str], version: str) -> Dict[str, Any]:
        return {
            "db": db,
            "id": ",".join(str(i) for i in ids),
            "version": version,
            "retmode": "xml",
        }

    def search_url(
        self,
        db: str,
        term: str,
        retmax: int = 20,
        sort: str = "relevance"
    ) -> str:
        """URL that ``search`` would request with the same arguments."""
        return self.build_url(ESEARCH_ENDPOINT, **self._search_params(db, term, retmax, sort))

    def link_url(
        self,
        dbfrom: str,
        db: str,
        ids: List[str],
        cmd: str = "neighbor",
        linkname: Optional[str] = None
    ) -> str:
        """URL that ``link`` would request with the same arguments."""
        return self.build_url(ELINK_ENDPOINT, **self._link_params(dbfrom, db, ids, cmd, linkname))

    def summary_url(self, db: str, ids: List[str], version: str = "2.0") -> str:
        """URL that ``summary`` would request with the same arguments."""
        return self.build_url(ESUMMARY_ENDPOINT, **self._summary_params(db, ids, version))

    async def search(
        self,
        db: str,
        term: str,
        retmax: int = 20,
        sort: str = "relevance"
    ) -> Dict[str, Any]:
        """
        Search a database using ESearch.

        Args:
            db: Database to search (pubmed, pmc, etc.)
            term: Search query in E-utilities syntax
            retmax: Maximum number of IDs to return
            sort: Sort order (relevance, pub_date, Author, JournalName)

        Returns:
            Dictionary with search results including:
            - count: Total matches
            - ids: Matching IDs in ESearch order
            - query_translation: How NCBI interpreted the query

        Raises:
            InvalidQueryError: If ESearch rejected the query
        """
        response = await self.get(
            ESEARCH_ENDPOINT,
            **self._search_params(db, term, retmax, sort)
        )
        return self._parse_esearch(self._parse_xml(response.text, ESEARCH_ENDPOINT))

    def _parse_esearch(self, parsed: Dict[str, Any]) -> Dict[str, Any]:
        result = parsed.get("eSearchResult")
        if not isinstance(result, dict):
            raise ParseError(
                message="Unrecognized ESearch response structure",
                details=f"keys: {sorted(parsed.keys())}",
                endpoint=ESEARCH_ENDPOINT
            )

        if "ERROR" in result:
            raise InvalidQueryError(
                message="Search error",
                details=first_text(result["ERROR"])
            )

        id_list = result.get("IdList")
        ids = [
            value.text
            for value in normalize_values(id_list.get("Id") if isinstance(id_list, dict) else None)
            if value.text
        ]
        count = to_number(get_text(result.get("Count"), "0"))

        return {
            "count": int(count) if count is not None else 0,
            "ids": ids,
            "query_translation": get_text(result.get("QueryTranslation"), ""),
        }

    async def link(
        self,
        dbfrom: str,
        db: str,
        ids: List[str],
        cmd: str = "neighbor",
        linkname: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Find related records using ELink.

        Args:
            dbfrom: Source database
            db: Target database
            ids: Source IDs
            cmd: Link command (neighbor, neighbor_score, neighbor_history, ...)
            linkname: Specific link name; omitted to let ELink pick its default

        Returns:
            The parsed XML document, rooted at ``eLinkResult``
        """
        response = await self.get(
            ELINK_ENDPOINT,
            **self._link_params(dbfrom, db, ids, cmd, linkname)
        )
        return self._parse_xml(response.text, ELINK_ENDPOINT)

    async def summary(
        self,
        db: str,
        ids: List[str],
        version: str = "2.0"
    ) -> Dict[str, Any]:
        """
        Get document summaries using ESummary.

        Args:
            db: Database (pubmed, pmc, etc.)
            ids: IDs to summarize, sent as one comma-joined batch
            version: ESummary version (1.0 item lists or 2.0 DocumentSummary)

        Returns:
            The parsed XML document, rooted at ``eSummaryResult``
        """
        if not ids:
            return {"eSummaryResult": {}}

        response = await self.get(
            ESUMMARY_ENDPOINT,
            **self._summary_params(db, ids, version)
        )
        return self._parse_xml(response.text, ESUMMARY_ENDPOINT)

    def _parse_xml(self, response_text: str, endpoint: str) -> Dict[str, Any]:
        """Convert an XML response body into a dict tree."""
        try:
            parsed = xmltodict.parse(response_text)
        except ExpatError as e:
            logger.error(f"Failed to parse {endpoint} XML: {e}")
            raise ParseError(
                message=f"Malformed XML returned by {endpoint}",
                details=str(e),
                endpoint=endpoint
            )
        logger.debug(f"Parsed {endpoint} response ({len(response_text)} bytes)")
        return parsed or {}
