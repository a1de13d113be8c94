"""Parsers for E-utilities response trees."""

from .xml_helpers import (
    WrappedValue,
    ensure_list,
    get_text,
    get_attribute,
    to_number,
    normalize_values,
)
from .esummary import (
    BriefSummary,
    extract_brief_summaries,
    summaries_by_pmid,
)

__all__ = [
    "WrappedValue",
    "ensure_list",
    "get_text",
    "get_attribute",
    "to_number",
    "normalize_values",
    "BriefSummary",
    "extract_brief_summaries",
    "summaries_by_pmid",
]
