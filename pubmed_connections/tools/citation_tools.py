"""
Citation Tools

Renders the source article as RIS, BibTeX, APA, or MLA from its ESummary
record.
"""

from typing import Dict, Any, List, Optional, Iterable
import logging
import re

from pylatexenc.latexencode import unicode_to_latex

from ..clients.eutilities import EUtilitiesClient
from ..config import Config
from ..parsing.esummary import extract_brief_summaries, summaries_by_pmid
from ..schemas.tool_schemas import BriefSummary, CitationOutcome

logger = logging.getLogger(__name__)

NO_DETAILS_MESSAGE = "Could not retrieve article details for citation formatting."

_YEAR_PATTERN = re.compile(r"\b(\d{4})\b")


def _year(summary: BriefSummary) -> Optional[str]:
    for value in (summary.pub_date, summary.epub_date):
        if value:
            match = _YEAR_PATTERN.search(value)
            if match:
                return match.group(1)
    return None


def _split_pages(pages: Optional[str]):
    if not pages:
        return None, None
    start, _, end = pages.partition("-")
    return start.strip() or None, end.strip() or None


def format_ris(summary: BriefSummary) -> str:
    """RIS record (EndNote, Zotero, Mendeley)."""
    lines = ["TY  - JOUR"]
    if summary.title:
        lines.append(f"TI  - {summary.title}")
    for author in summary.authors or []:
        lines.append(f"AU  - {author}")
    if summary.source:
        lines.append(f"JO  - {summary.source}")
    year = _year(summary)
    if year:
        lines.append(f"PY  - {year}")
    if summary.volume:
        lines.append(f"VL  - {summary.volume}")
    if summary.issue:
        lines.append(f"IS  - {summary.issue}")
    start, end = _split_pages(summary.pages)
    if start:
        lines.append(f"SP  - {start}")
    if end:
        lines.append(f"EP  - {end}")
    if summary.doi:
        lines.append(f"DO  - {summary.doi}")
    lines.append(f"AN  - {summary.pmid}")
    lines.append(f"UR  - {Config.article_url(summary.pmid)}")
    lines.append("ER  - ")
    return "\n".join(lines) + "\n"


def _latex(text: Optional[str]) -> Optional[str]:
    """LaTeX-encode special and non-ASCII characters for a BibTeX value."""
    if not text:
        return text
    return unicode_to_latex(text)


def format_bibtex(summary: BriefSummary) -> str:
    """
    BibTeX @article entry keyed ``pmid<PMID>``.

    Title, authors, and journal are LaTeX-encoded so braces, ``%``, ``&``,
    ``_`` and accented letters keep the entry well-formed.
    """
    authors = [_latex(author) for author in summary.authors or []]
    fields = [
        ("title", _latex(summary.title)),
        ("author", " and ".join(authors) if authors else None),
        ("journal", _latex(summary.source)),
        ("year", _year(summary)),
        ("volume", summary.volume),
        ("number", summary.issue),
        ("pages", summary.pages.replace("-", "--") if summary.pages else None),
        ("doi", summary.doi),
        ("pmid", summary.pmid),
    ]
    body = ",\n".join(f"  {name} = {{{value}}}" for name, value in fields if value)
    return f"@article{{pmid{summary.pmid},\n{body}\n}}\n"


def _sentence(text: str) -> str:
    text = text.strip()
    return text if text.endswith((".", "?", "!")) else f"{text}."


def format_apa(summary: BriefSummary) -> str:
    """APA-style reference string."""
    parts = []
    authors = summary.authors or []
    if len(authors) > 1:
        parts.append(", ".join(authors[:-1]) + f", & {authors[-1]}")
    elif authors:
        parts.append(authors[0])
    parts.append(f"({_year(summary) or 'n.d.'}).")
    if summary.title:
        parts.append(_sentence(summary.title))

    if summary.source:
        journal = summary.source
        if summary.volume:
            journal += f", {summary.volume}"
            if summary.issue:
                journal += f"({summary.issue})"
        if summary.pages:
            journal += f", {summary.pages}"
        parts.append(_sentence(journal))

    if summary.doi:
        parts.append(f"https://doi.org/{summary.doi}")
    return " ".join(parts)


def format_mla(summary: BriefSummary) -> str:
    """MLA-style reference string."""
    parts = []
    authors = summary.authors or []
    if len(authors) > 2:
        parts.append(f"{authors[0]}, et al.")
    elif len(authors) == 2:
        parts.append(f"{authors[0]}, and {authors[1]}.")
    elif authors:
        parts.append(_sentence(authors[0]))
    if summary.title:
        parts.append(f"\"{_sentence(summary.title)}\"")

    container = [
        summary.source,
        f"vol. {summary.volume}" if summary.volume else None,
        f"no. {summary.issue}" if summary.issue else None,
        _year(summary),
        f"pp. {summary.pages}" if summary.pages else None,
    ]
    container = [part for part in container if part]
    if container:
        parts.append(", ".join(container) + ".")
    if summary.doi:
        parts.append(f"doi:{summary.doi}.")
    return " ".join(parts)


FORMATTERS = {
    "ris": format_ris,
    "bibtex": format_bibtex,
    "apa_string": format_apa,
    "mla_string": format_mla,
}


def format_citations(summary: BriefSummary, styles: Iterable[str]) -> Dict[str, str]:
    """Render ``summary`` in each requested style; unknown styles are skipped."""
    citations = {}
    for style in styles:
        formatter = FORMATTERS.get(style)
        if formatter is None:
            logger.debug(f"Ignoring unsupported citation style: {style}")
            continue
        citations[style] = formatter(summary)
    return citations


async def fetch_citation_formats(
    client: EUtilitiesClient,
    source_pmid: str,
    styles: List[str],
    context: Optional[Dict[str, Any]] = None
) -> CitationOutcome:
    """
    Fetch the source article's summary and format it as citations.

    Args:
        client: E-utilities client
        source_pmid: PubMed ID to cite
        styles: Citation styles to render
        context: Key/value pairs included in log messages

    Returns:
        CitationOutcome; ``message`` is set when no summary was found
    """
    outcome = CitationOutcome(
        e_utility_url=client.summary_url(
            db="pubmed",
            ids=[source_pmid],
            version=Config.ESUMMARY_VERSION
        )
    )

    response = await client.summary(
        db="pubmed",
        ids=[source_pmid],
        version=Config.ESUMMARY_VERSION
    )
    result = response.get("eSummaryResult", response.get("result", response))
    summary = summaries_by_pmid(extract_brief_summaries(result, context)).get(source_pmid)

    if summary is None:
        logger.warning(f"{NO_DETAILS_MESSAGE} (pmid={source_pmid})")
        outcome.message = NO_DETAILS_MESSAGE
        return outcome

    outcome.citations = format_citations(summary, styles)
    outcome.retrieved_count = 1
    return outcome
