"""
ESummary result parsing.

Turns an ``eSummaryResult`` tree into ``BriefSummary`` records. Two layouts
are understood:

- ``DocumentSummarySet/DocumentSummary`` (version 2.0), named child elements
  with the PMID in the ``uid`` attribute;
- ``DocSum`` (version 1.0), a flat list of ``Item`` elements distinguished by
  their ``Name`` and ``Type`` attributes.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

from ..schemas.tool_schemas import BriefSummary
from ..utils.error_handler import ParseError
from .xml_helpers import ensure_list, first_text, get_attribute, get_text

logger = logging.getLogger(__name__)


def _describe(context: Optional[Dict[str, Any]]) -> str:
    if not context:
        return ""
    return " [" + ", ".join(f"{k}={v}" for k, v in context.items()) + "]"


# =============================================================================
# ESummary 2.0: DocumentSummary
# =============================================================================

def _author_name(raw: Any) -> str:
    name = get_text(raw, "")
    if not name and isinstance(raw, dict):
        name = get_text(raw.get("Name") or raw.get("name"), "")
    return name.strip()


def _parse_authors(authors_node: Any) -> List[str]:
    if authors_node is None:
        return []

    if isinstance(authors_node, str):
        # Flattened author strings are comma or semicolon separated
        parts = authors_node.replace(";", ",").split(",")
        return [part.strip() for part in parts if part.strip()]

    if isinstance(authors_node, dict) and "Author" in authors_node:
        raw_authors = ensure_list(authors_node["Author"])
    else:
        raw_authors = ensure_list(authors_node)

    names = []
    for raw in raw_authors:
        name = _author_name(raw)
        if name:
            names.append(name)
        else:
            logger.debug(f"Skipping author entry without a name: {str(raw)[:100]}")
    return names


def _doi_from_article_ids(article_ids: Any) -> Optional[str]:
    if isinstance(article_ids, dict) and "ArticleId" in article_ids:
        entries = ensure_list(article_ids["ArticleId"])
    else:
        entries = ensure_list(article_ids)

    for entry in entries:
        if not isinstance(entry, dict):
            continue
        id_type = get_text(entry.get("IdType") or entry.get("idtype"), "")
        if id_type.lower() == "doi":
            return first_text(entry.get("Value") or entry.get("value"))
    return None


def _parse_document_summary(doc: Any) -> Optional[BriefSummary]:
    if not isinstance(doc, dict):
        return None

    pmid = get_attribute(doc, "uid").strip()
    if not pmid:
        return None

    authors = _parse_authors(doc.get("Authors"))
    doi = first_text(doc.get("DOI")) or _doi_from_article_ids(doc.get("ArticleIds"))

    return BriefSummary(
        pmid=pmid,
        title=first_text(doc.get("Title")),
        authors=authors or None,
        source=(
            first_text(doc.get("Source"))
            or first_text(doc.get("FullJournalName"))
            or first_text(doc.get("SO"))
        ),
        doi=doi,
        pub_date=first_text(doc.get("PubDate")),
        epub_date=first_text(doc.get("EPubDate")),
        volume=first_text(doc.get("Volume")),
        issue=first_text(doc.get("Issue")),
        pages=first_text(doc.get("Pages")),
    )


# =============================================================================
# ESummary 1.0: DocSum
# =============================================================================

class _DocSumItems:
    """Lookup over a DocSum's ``Item`` list by Name/Type."""

    def __init__(self, items: Any):
        self.items = [item for item in ensure_list(items) if isinstance(item, dict)]

    def find(self, name: str, item_type: Optional[str] = None) -> Optional[Dict[str, Any]]:
        for item in self.items:
            if get_attribute(item, "Name") != name:
                continue
            found_type = get_attribute(item, "Type")
            if found_type == "ERROR":
                continue
            if item_type and found_type != item_type:
                continue
            return item
        return None

    def value(self, names: Iterable[str], item_type: Optional[str] = None) -> Optional[str]:
        for name in names:
            item = self.find(name, item_type)
            if item is not None:
                text = get_text(item, "").strip()
                if text:
                    return text
        return None

    def authors(self) -> List[str]:
        author_list = self.find("AuthorList", "List")
        if author_list is not None:
            candidates = ensure_list(author_list.get("Item"))
        else:
            candidates = self.items
        return [
            get_text(a, "").strip()
            for a in candidates
            if isinstance(a, dict)
            and get_attribute(a, "Name") == "Author"
            and get_text(a, "").strip()
        ]

    def doi(self) -> Optional[str]:
        doi = self.value(["DOI"], "String")
        if doi:
            return doi
        article_ids = self.find("ArticleIds", "List")
        if article_ids is None:
            return None
        for sub in ensure_list(article_ids.get("Item")):
            if get_attribute(sub, "Name") == "doi" or get_attribute(sub, "idtype") == "doi":
                return get_text(sub, "").strip() or None
        return None


def _parse_docsum(docsum: Any) -> Optional[BriefSummary]:
    if not isinstance(docsum, dict):
        return None

    pmid = (first_text(docsum.get("Id")) or "").strip()
    if not pmid:
        return None

    items = _DocSumItems(docsum.get("Item"))
    authors = items.authors()

    return BriefSummary(
        pmid=pmid,
        title=items.value(["Title"], "String"),
        authors=authors or None,
        source=items.value(["Source", "FullJournalName", "SO"], "String"),
        doi=items.doi(),
        pub_date=items.value(["PubDate", "ArticleDate"], "Date"),
        epub_date=items.value(["EPubDate"], "Date"),
        volume=items.value(["Volume"], "String"),
        issue=items.value(["Issue"], "String"),
        pages=items.value(["Pages"], "String"),
    )


# =============================================================================
# Entry Points
# =============================================================================

def extract_brief_summaries(
    result: Any,
    context: Optional[Dict[str, Any]] = None
) -> List[BriefSummary]:
    """
    Extract brief summaries from an ``eSummaryResult`` node.

    Returns one record per document present in the response, which may be
    fewer than were requested. Missing optional fields come back as None.

    Args:
        result: The ``eSummaryResult`` element of a parsed ESummary response
        context: Key/value pairs included in log messages

    Returns:
        List of BriefSummary records in response order

    Raises:
        ParseError: If neither document container nor an ERROR is present
    """
    where = _describe(context)

    if not isinstance(result, dict):
        raise ParseError(
            message="ESummary response is not a document",
            details=f"got {type(result).__name__}",
            endpoint="esummary.fcgi"
        )

    if "DocumentSummarySet" in result:
        doc_set = result["DocumentSummarySet"]
        docs = ensure_list(doc_set.get("DocumentSummary")) if isinstance(doc_set, dict) else []
        summaries = [s for s in map(_parse_document_summary, docs) if s is not None]
    elif "DocSum" in result:
        summaries = [s for s in map(_parse_docsum, ensure_list(result["DocSum"])) if s is not None]
    elif "ERROR" in result:
        logger.warning(f"ESummary result contains an error: {get_text(result['ERROR'])}{where}")
        return []
    else:
        raise ParseError(
            message="Unrecognized ESummary response structure",
            details=f"keys: {sorted(result.keys())}",
            endpoint="esummary.fcgi"
        )

    logger.debug(f"Extracted {len(summaries)} brief summaries{where}")
    return summaries


def summaries_by_pmid(summaries: Iterable[BriefSummary]) -> Dict[str, BriefSummary]:
    """Index summaries by PMID; a repeated PMID keeps its last record."""
    return {summary.pmid: summary for summary in summaries}
