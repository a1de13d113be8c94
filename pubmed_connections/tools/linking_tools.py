"""
Relationship Tools

Finds articles related to a source PMID through ELink and enriches them
with ESummary metadata.

The ELink call is essential: if it fails the error propagates. The ESummary
call is best-effort: if it fails the related PMIDs are still returned, just
without titles and authors.
"""

from typing import Dict, Any, List, Optional, Tuple
import logging

import httpx

from ..clients.eutilities import EUtilitiesClient
from ..config import Config
from ..parsing.esummary import extract_brief_summaries, summaries_by_pmid
from ..parsing.xml_helpers import ensure_list, first_text, get_text, normalize_values
from ..schemas.tool_schemas import (
    BriefSummary,
    EnrichedRelation,
    LinkCandidate,
    PipelineOutcome,
    RelatedArticlesInput,
)
from ..utils.error_handler import PubMedError
from ..utils.validation import validate_input

logger = logging.getLogger(__name__)

PUBMED_DB = "pubmed"
NEIGHBOR_SCORE_CMD = "neighbor_score"
DEFAULT_LINKNAME = "pubmed_pubmed"

# Relationship types without an entry use ELink's default (similar articles)
LINKNAME_BY_RELATIONSHIP = {
    "cited_by": "pubmed_pubmed_citedin",
    "cites": "pubmed_pubmed_refs",
}

NO_LINKS_MESSAGE = "No related articles found."
GENERIC_LINK_ERROR = "ELink returned an error"


# =============================================================================
# ELink response handling
# =============================================================================

def _link_error(elink_result: Dict[str, Any]) -> Optional[str]:
    """Error text from ``eLinkResult/ERROR`` or ``LinkSet/ERROR``."""
    if "ERROR" in elink_result:
        return first_text(elink_result["ERROR"]) or GENERIC_LINK_ERROR
    for link_set in ensure_list(elink_result.get("LinkSet")):
        if isinstance(link_set, dict) and "ERROR" in link_set:
            return first_text(link_set["ERROR"]) or GENERIC_LINK_ERROR
    return None


def _select_link_set_db(link_set: Any, linkname: str) -> Optional[Dict[str, Any]]:
    """
    The LinkSetDb holding links for ``linkname``.

    When no entry is named ``linkname`` a lone LinkSetDb is used as is.
    """
    if not isinstance(link_set, dict):
        return None
    dbs = [db for db in ensure_list(link_set.get("LinkSetDb")) if isinstance(db, dict)]
    for db in dbs:
        if get_text(db.get("LinkName"), "").strip() == linkname:
            return db
    if len(dbs) == 1:
        return dbs[0]
    return None


def parse_link_candidates(
    elink_response: Dict[str, Any],
    source_pmid: str,
    linkname: str
) -> Tuple[List[LinkCandidate], Optional[str]]:
    """
    Link candidates from an ELink response, in the order ELink sent them.

    Returns ``(candidates, error)``; ``error`` is set when ELink reported one.
    PMIDs that are empty, ``"0"``, or the source PMID are dropped. Scores are
    kept only when every remaining candidate has one.
    """
    elink_result = ensure_list((elink_response or {}).get("eLinkResult"))
    first_result = elink_result[0] if elink_result else None
    if not isinstance(first_result, dict):
        return [], None

    error = _link_error(first_result)
    if error:
        return [], error

    link_sets = ensure_list(first_result.get("LinkSet"))
    link_set_db = _select_link_set_db(link_sets[0] if link_sets else None, linkname)
    if link_set_db is None:
        return [], None

    candidates = []
    for link in ensure_list(link_set_db.get("Link")):
        if isinstance(link, dict):
            id_node, score_node = link.get("Id"), link.get("Score")
        else:
            id_node, score_node = link, None

        pmid = first_text(id_node) or ""
        if not pmid or pmid == "0" or pmid == source_pmid:
            continue

        scores = normalize_values(score_node)
        score = scores[0].number if scores else None
        candidates.append(LinkCandidate(pmid=pmid, score=score))

    # Mixed scored/unscored sets have no ordering; treat them as unscored
    if any(c.score is None for c in candidates):
        candidates = [LinkCandidate(pmid=c.pmid) for c in candidates]

    return candidates, None


def rank_candidates(candidates: List[LinkCandidate]) -> List[LinkCandidate]:
    """
    Order candidates by descending score when every one is scored.

    Python's sort is stable, so equal scores keep ELink's order. If any
    candidate lacks a score the list is returned in ELink's order untouched.
    """
    if candidates and all(c.score is not None for c in candidates):
        return sorted(candidates, key=lambda c: c.score, reverse=True)
    return list(candidates)


# =============================================================================
# Enrichment
# =============================================================================

def _relation(candidate: LinkCandidate, summary: Optional[BriefSummary] = None) -> EnrichedRelation:
    return EnrichedRelation(
        pmid=candidate.pmid,
        title=summary.title if summary else None,
        authors=summary.authors if summary else None,
        score=candidate.score,
        link_url=Config.article_url(candidate.pmid),
    )


async def enrich_candidates(
    client: EUtilitiesClient,
    candidates: List[LinkCandidate],
    context: Optional[Dict[str, Any]] = None
) -> List[EnrichedRelation]:
    """
    Attach ESummary titles and authors to candidates, keeping their order.

    Any failure of the summary call or its parsing degrades to records with
    only PMID, score, and link URL.
    """
    if not candidates:
        return []

    pmids = [c.pmid for c in candidates]
    try:
        response = await client.summary(
            db=PUBMED_DB,
            ids=pmids,
            version=Config.ESUMMARY_VERSION
        )
        result = response.get("eSummaryResult", response.get("result", response))
        lookup = summaries_by_pmid(extract_brief_summaries(result, context))
    except (PubMedError, httpx.HTTPError) as e:
        logger.error(f"Failed to enrich {len(pmids)} related articles with summaries: {e}")
        return [_relation(c) for c in candidates]

    missing = [pmid for pmid in pmids if pmid not in lookup]
    if missing:
        logger.debug(f"ESummary returned no document for {len(missing)} PMIDs: {missing[:5]}")

    return [_relation(c, lookup.get(c.pmid)) for c in candidates]


# =============================================================================
# Pipeline
# =============================================================================

async def resolve_relationships(
    client: EUtilitiesClient,
    source_pmid: str,
    relationship_type: str,
    max_results: int,
    context: Optional[Dict[str, Any]] = None
) -> PipelineOutcome:
    """
    Find, rank, and enrich articles related to ``source_pmid``.

    Args:
        client: E-utilities client used for both remote calls
        source_pmid: PubMed ID of the source article
        relationship_type: "similar", "cited_by", or "cites"; other values
            fall back to ELink's default link
        max_results: Maximum related articles to return
        context: Key/value pairs included in log messages

    Returns:
        PipelineOutcome with related articles in ranked order. When ELink
        reports an error or finds nothing, the list is empty and ``message``
        explains why.

    Raises:
        PubMedError: If the ELink request itself fails
    """
    context = context or {"source_pmid": source_pmid, "relationship_type": relationship_type}
    linkname = LINKNAME_BY_RELATIONSHIP.get(relationship_type)

    link_args = dict(
        dbfrom=PUBMED_DB,
        db=PUBMED_DB,
        ids=[source_pmid],
        cmd=NEIGHBOR_SCORE_CMD,
        linkname=linkname,
    )
    outcome = PipelineOutcome(e_utility_url=client.link_url(**link_args))

    elink_response = await client.link(**link_args)
    logger.debug(f"Raw ELink response for {source_pmid}: {str(elink_response)[:1000]}")

    candidates, error = parse_link_candidates(
        elink_response,
        source_pmid,
        linkname or DEFAULT_LINKNAME
    )

    if error:
        logger.warning(f"ELink returned an error for {source_pmid}: {error}")
        outcome.message = error
        return outcome

    if not candidates:
        logger.warning(f"No related PMIDs found for {source_pmid} ({relationship_type})")
        outcome.message = NO_LINKS_MESSAGE
        return outcome

    ranked = rank_candidates(candidates)
    selected = ranked[:max_results]
    logger.debug(
        f"Found {len(candidates)} related PMIDs for {source_pmid}, "
        f"enriching {len(selected)}: {[c.pmid for c in selected[:3]]}"
    )

    outcome.related_articles = await enrich_candidates(client, selected, context)
    outcome.retrieved_count = len(outcome.related_articles)
    return outcome


async def find_related_articles(
    pmid: str,
    relationship_type: str = "similar",
    max_results: int = Config.DEFAULT_MAX_RELATED_RESULTS
) -> Dict[str, Any]:
    """
    Find articles related to a source article.

    Discovers related literature through:
    - Computational similarity, ranked by ELink's relevance score ("similar")
    - Articles citing this one ("cited_by")
    - Articles this one cites ("cites")

    Args:
        pmid: Source PubMed ID
        relationship_type: Type of relationship
        max_results: Maximum related articles to return

    Returns:
        Dictionary with relatedArticles, retrievedCount, eUtilityUrl and,
        when nothing was found, message

    Raises:
        InvalidIDError: If pmid is not numeric
        InvalidQueryError: If max_results is outside 1-50
    """
    request = validate_input(
        RelatedArticlesInput,
        id_fields=("pmid",),
        pmid=pmid,
        relationship_type=relationship_type,
        max_results=max_results
    )

    async with EUtilitiesClient() as client:
        outcome = await resolve_relationships(
            client,
            source_pmid=request.pmid,
            relationship_type=request.relationship_type,
            max_results=request.max_results
        )

    logger.info(
        f"find_related_articles: {outcome.retrieved_count} {request.relationship_type} "
        f"articles for {request.pmid}"
    )
    return outcome.to_output()
