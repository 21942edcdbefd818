"""
Citation extraction for LLM-authored research answers.

Perplexity answers cite numbered references inline ([1], [2]) and usually end
with a REFERENCES block; when the API omits structured citations these helpers
recover URLs and titles from the text itself.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass
class Citation:
    url: str = ""
    title: str = ""
    text: str = ""

    @classmethod
    def from_api(cls, raw: Any) -> Optional["Citation"]:
        """Normalize an API citation (bare URL string or dict) into a Citation."""
        if isinstance(raw, str):
            url = raw.strip()
            return cls(url=url) if url else None
        if isinstance(raw, dict):
            return cls(
                url=str(raw.get("url") or "").strip(),
                title=str(raw.get("title") or "").strip(),
                text=str(raw.get("text") or raw.get("snippet") or "").strip(),
            )
        return None


URL_PATTERNS = [
    re.compile(r"(https?://[^\s)<>\"']+)"),
    re.compile(
        r"\bhttps?://(?:www\.)?[-a-zA-Z0-9@:%._+~#=]{1,256}\.[a-zA-Z0-9()]{1,6}\b"
        r"(?:[-a-zA-Z0-9()@:%_+.~#?&/=]*)"
    ),
    re.compile(r"\[.*?\]\((https?://[^\s)]+)\)"),
    re.compile(r"\bhttps?://(?:(?!\.\.)\S)+"),
    re.compile(
        r"\b(?:https?://)?(?:www\.)?[a-zA-Z0-9][-a-zA-Z0-9]{0,62}"
        r"(?:\.[a-zA-Z0-9][-a-zA-Z0-9]{0,62})+(?:/[^\s)]*)?"
    ),
]
BRACKET_URL_RE = re.compile(r"\[([^\]]*)(https?://[^\s\]]+)([^\]]*)\]")
PAREN_URL_RE = re.compile(r"\(([^)]*)(https?://[^\s)]+)([^)]*)\)")
MARKDOWN_LINK_RE = re.compile(r"\]\((https?://[^)]+)\)")
TRAILING_PUNCT_RE = re.compile(r"[,.\"':;]+$")

REFERENCE_SECTION_PATTERNS = [
    re.compile(r"\breferences:?\s*\n([\s\S]+)$", re.IGNORECASE),
    re.compile(r"\bsources:?\s*\n([\s\S]+)$", re.IGNORECASE),
    re.compile(r"\bbibliography:?\s*\n([\s\S]+)$", re.IGNORECASE),
]
NUMBERED_CITATION_RE = re.compile(r"\[(\d+)\]\s*([^\[.]+)(?:\.|$)")
REFERENCE_ENTRY_RE = re.compile(r"\[\s*(\d+)\s*\]\s*([^\[]+?)(?=\[\d+\]|$)")
REFERENCE_URL_RE = re.compile(r"(https?://[^\s,]+)")
TITLE_BEFORE_URL_RE = re.compile(
    r"(?:[\"“”']([^\"“”']+)[\"“”']|([^,.;:]+))\s*(?::|–|-|,|\.)\s*$"
)


def clean_url(url: str) -> str:
    cleaned = TRAILING_PUNCT_RE.sub("", url.strip())
    markdown = MARKDOWN_LINK_RE.search(cleaned)
    if markdown:
        cleaned = markdown.group(1)
    while cleaned.endswith((")", "]")) and cleaned.count("(") < cleaned.count(")") + cleaned.count("]"):
        cleaned = TRAILING_PUNCT_RE.sub("", cleaned[:-1])
    return cleaned


def extract_urls(content: str) -> List[str]:
    """Every distinct http(s) URL mentioned in the text, in first-seen order."""
    found: Dict[str, None] = {}
    for pattern in URL_PATTERNS:
        for match in pattern.finditer(content or ""):
            url = clean_url(match.group(0))
            if url.startswith("http"):
                found.setdefault(url, None)
    for pattern in (BRACKET_URL_RE, PAREN_URL_RE):
        for match in pattern.finditer(content or ""):
            url = clean_url(match.group(2))
            if url.startswith("http"):
                found.setdefault(url, None)
    return list(found)


def extract_references_section(content: str) -> str:
    """Return the body of a trailing references/sources block, or '' when absent."""
    for pattern in REFERENCE_SECTION_PATTERNS:
        match = pattern.search(content or "")
        if match and match.group(1).strip():
            logger.debug(f"Found references section with pattern {pattern.pattern}")
            return match.group(1)

    lines = (content or "").split("\n")
    last_section = "\n".join(lines[-min(15, len(lines)):])
    if re.search(r"\[\d+\]", last_section) and re.search(r"https?://", last_section):
        logger.debug("Using trailing lines as references section")
        return last_section
    return ""


def find_numbered_citations(content: str) -> List[Tuple[str, str]]:
    """(number, text) pairs for every inline [n] marker followed by text."""
    return [
        (match.group(1), match.group(2).strip())
        for match in NUMBERED_CITATION_RE.finditer(content or "")
    ]


def parse_reference_entries(section: str, label: str = "Referenced as [{num}] in the analysis") -> List[Citation]:
    """Split '[n] Title. Publisher. URL: https://...' lines into citations."""
    citations: List[Citation] = []
    for match in REFERENCE_ENTRY_RE.finditer((section or "") + "[999]"):
        num, ref_text = match.group(1), match.group(2).strip()
        if not ref_text:
            continue
        url_match = REFERENCE_URL_RE.search(ref_text)
        if url_match:
            url = clean_url(url_match.group(0))
            title = ref_text.replace(url_match.group(0), "").strip()
            title = re.sub(r"\s*URL:?\s*$", "", title).strip()
            citations.append(Citation(url=url, title=title, text=label.format(num=num)))
        else:
            citations.append(Citation(url="", title=ref_text, text=label.format(num=num)))
    return citations


def guess_title(content: str, url: str, index: int) -> str:
    """Best-effort title from the phrase that precedes a bare URL in the text."""
    title = f"Source {index + 1}"
    position = (content or "").find(url)
    if position > 0:
        preceding = content[max(0, position - 100):position]
        match = TITLE_BEFORE_URL_RE.search(preceding)
        if match:
            candidate = (match.group(1) or match.group(2) or "").strip()
            if candidate:
                title = candidate
    return title


def citations_from_urls(content: str, urls: Iterable[str]) -> List[Citation]:
    citations = []
    for index, url in enumerate(urls):
        title = guess_title(content, url, index)
        citations.append(Citation(url=url, title=title, text=f"Information from {title}"))
    return citations


def merge_unique(primary: List[Citation], extra: Iterable[Citation]) -> List[Citation]:
    """Append extra citations whose URL is non-empty and not already present."""
    merged = list(primary)
    seen = {c.url for c in primary}
    for citation in extra:
        if citation.url and citation.url not in seen:
            merged.append(citation)
            seen.add(citation.url)
    return merged
