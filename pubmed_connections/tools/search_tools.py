"""
Search Tools

Keyword search over PubMed with ESearch, optionally followed by one batched
ESummary call for brief summaries of the top hits.
"""

from typing import Dict, Any, List, Optional
import logging

from ..clients.eutilities import EUtilitiesClient
from ..config import Config
from ..parsing.esummary import extract_brief_summaries
from ..schemas.tool_schemas import SearchArticlesInput, SearchArticlesOutput
from ..utils.validation import validate_input

logger = logging.getLogger(__name__)

PUBMED_DB = "pubmed"

# ESearch sort keys for the tool's sort options
SORT_PARAMS = {
    "relevance": "relevance",
    "pub_date": "pub_date",
    "author": "Author",
    "journal_name": "JournalName",
}


def build_search_term(request: SearchArticlesInput) -> str:
    """
    ESearch term for a request: the query plus date and publication type filters.

    >>> build_search_term(SearchArticlesInput(query_term="asthma", min_date="2020"))
    'asthma AND 2020[pdat]'
    """
    term = request.query_term.strip()
    date_type = request.date_type

    if request.min_date and request.max_date:
        term += f" AND ({request.min_date}[{date_type}] : {request.max_date}[{date_type}])"
    elif request.min_date:
        term += f" AND {request.min_date}[{date_type}]"
    elif request.max_date:
        term += f" AND {request.max_date}[{date_type}]"

    types = [
        pt.replace('"', "").strip()
        for pt in request.publication_types or []
        if pt.replace('"', "").strip()
    ]
    if types:
        term += " AND (" + " OR ".join(f'"{pt}"[Publication Type]' for pt in types) + ")"

    return term


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
    Search PubMed for articles.

    Args:
        query_term: Keyword or phrase (at least 3 characters)
        max_results: Maximum PMIDs to retrieve (1-1000)
        sort_by: relevance, pub_date, author, or journal_name
        min_date: Start of the date range (YYYY, YYYY/MM, or YYYY/MM/DD)
        max_date: End of the date range
        date_type: pdat, mdat, or edat
        publication_types: Publication types to filter by
        fetch_brief_summaries: Number of top PMIDs to summarize (0-50)

    Returns:
        Dictionary with searchParameters, effectiveESearchTerm, totalFound,
        retrievedPmidCount, pmids, briefSummaries, eSearchUrl and, when
        summaries were fetched, eSummaryUrl

    Raises:
        InvalidQueryError: If an argument is invalid or ESearch rejects the query
    """
    request = validate_input(
        SearchArticlesInput,
        query_term=query_term,
        max_results=max_results,
        sort_by=sort_by,
        min_date=min_date,
        max_date=max_date,
        date_type=date_type,
        publication_types=publication_types,
        fetch_brief_summaries=fetch_brief_summaries
    )
    term = build_search_term(request)
    context = {"tool": "pubmed_search_articles", "term": term}
    logger.info(f"Executing pubmed_search_articles: {term}")

    search_args = dict(
        db=PUBMED_DB,
        term=term,
        retmax=request.max_results,
        sort=SORT_PARAMS[request.sort_by],
    )

    async with EUtilitiesClient() as client:
        output = SearchArticlesOutput(
            search_parameters=request.model_dump(exclude_none=True),
            effective_term=term,
            e_search_url=client.search_url(**search_args),
        )

        search_result = await client.search(**search_args)
        output.pmids = search_result["ids"]
        output.total_found = search_result["count"]
        output.retrieved_pmid_count = len(output.pmids)

        if request.fetch_brief_summaries and output.pmids:
            summary_ids = output.pmids[:request.fetch_brief_summaries]
            output.e_summary_url = client.summary_url(
                db=PUBMED_DB,
                ids=summary_ids,
                version=Config.ESUMMARY_VERSION
            )
            response = await client.summary(
                db=PUBMED_DB,
                ids=summary_ids,
                version=Config.ESUMMARY_VERSION
            )
            result = response.get("eSummaryResult", response.get("result", response))
            output.brief_summaries = extract_brief_summaries(result, context)

    logger.info(
        f"pubmed_search_articles: {output.total_found} found, "
        f"{output.retrieved_pmid_count} PMIDs, {len(output.brief_summaries)} summaries"
    )
    return output.to_output()
