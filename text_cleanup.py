"""
Heuristic text cleanup for research content.

Signals are rendered as tight bullet lists, noise as reflowed paragraphs, and
display text is stripped of provider attributions, filler phrases and Markdown
markup before it reaches the terminal.
"""

from __future__ import annotations

import logging
import re
from typing import List, Optional

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

BULLET = "•"
TERMINAL_PUNCTUATION = (".", "!", "?")

FILLER_PATTERNS = [
    r"(?:additionally|furthermore|moreover|in addition|besides),?\s+",
    r"(?:specifically|particularly|especially|in particular),?\s+",
    r"(?:generally|typically|usually|commonly|frequently|often),?\s+",
    r"it is (?:important|worth noting|notable|significant) (?:that|to note)?,?\s*",
    r"notably,?\s*",
    r"in conclusion,?\s*",
    r"to summarize,?\s*",
    r"in summary,?\s*",
]

ATTRIBUTION_PATTERNS = [
    r"sources:?\s*perplexity",
    r"sources:?\s*exa\b",
    r"according to perplexity,?\s*",
    r"according to exa,?\s*",
    r"perplexity (?:reports|indicates|states|says|suggests|notes),?\s*",
    r"exa (?:reports|indicates|states|says|suggests|notes),?\s*",
    r"research (?:shows|indicates|suggests|demonstrates|reveals),?\s*",
    r"studies (?:show|indicate|suggest|demonstrate|reveal),?\s*",
    r"it is (?:important|worth noting|notable|significant) (?:that|to note)?,?\s*",
    r"notably,?\s*",
    r"in conclusion,?\s*",
    r"to summarize,?\s*",
    r"in summary,?\s*",
]

CONDENSE_REMOVALS = [
    r"(?:it is|there is|there are) (?:important|worth noting|notable|significant) that\s+",
    r"it (?:can|should|may|might|could) be noted that\s+",
    r"(?:additionally|furthermore|moreover|in addition|besides),?\s+",
    r"(?:specifically|particularly|especially|in particular),?\s+",
    r"(?:generally|typically|usually|commonly|frequently|often),?\s+",
    r"(?:for example|for instance|such as),?\s+",
    r"\b(?:very|extremely|significantly|substantially|considerably)\s+",
]

CONDENSE_REWRITES = [
    (r"\bin order to\b", "to"),
    (r"\bin the context of\b", "in"),
    (r"\bwith (?:regards|respect) to\b", "regarding"),
    (r"\bon the (?:basis|grounds) of\b", "based on"),
    (r"\bat this (?:time|point in time|moment|juncture)\b", "now"),
    (r"\bin the event that\b", "if"),
    (r"\bin spite of the fact that\b", "although"),
    (r"\bdue to the fact that\b", "because"),
    (r"\bin the near future\b", "soon"),
]

PROVIDER_TITLE_PATTERNS = {
    "perplexity": r"perplexity\.ai|perplexity\s+ai|\bperplexity\b",
    "exa": r"exa\.ai|exa\s+ai|exa\s+search|\bexa\b",
}

PLACEHOLDER_MARKERS = (
    "Content summary not available for this resource",
    "Please visit the source directly:",
)

_SENTENCE_SPLIT = re.compile(r"(?<=[.!?])\s+")
_REPEATED_SENTENCE = re.compile(r"([A-Za-z][^.!?]{10,}[.!?])(?:\s+\1)+")
_HTML_TAG = re.compile(r"<[a-zA-Z/!][^>]*>")


def _capitalize(text: str) -> str:
    return text[:1].upper() + text[1:]


def _ensure_terminal(text: str) -> str:
    if text and not text.endswith(TERMINAL_PUNCTUATION):
        return text + "."
    return text


def _remove_patterns(text: str, patterns: List[str]) -> str:
    for pattern in patterns:
        text = re.sub(pattern, "", text, flags=re.IGNORECASE)
    return text


def enhance_content_formatting(content: str) -> str:
    """Drop transition filler and make sure the text ends like a sentence."""
    improved = _remove_patterns(content or "", FILLER_PATTERNS)
    if not re.search(r"[.!?]$", improved):
        improved += "."
    return improved


def format_signal_content(content: str) -> str:
    """Normalize signal text into '• ' bullets with capitalized, punctuated lines."""
    if not content:
        return ""

    content = re.sub(r"^Statistical Analysis:\s*", "", content, flags=re.MULTILINE)
    content = re.sub(r"\[(\d+)\]\s*", "", content)

    if any(marker in content for marker in (BULLET, "-", "*")):
        lines: List[str] = []
        for raw_line in re.split(r"[\n\r]+", content):
            line = raw_line.strip()
            if not line:
                continue
            if re.match(r"^https?://", line) or re.match(r"^Confidence: \d+%$", line):
                continue
            if line.startswith((BULLET, "-", "*")):
                bullet_content = re.sub(r"^[•\-*]\s*", "", line).strip()
                if not bullet_content:
                    continue
                line = f"{BULLET} {_capitalize(bullet_content)}"
                if len(line) > 10:
                    line = _ensure_terminal(line)
            elif len(line) > 10:
                line = _ensure_terminal(f"{BULLET} {_capitalize(line)}")
            lines.append(line)
        return "\n".join(lines)

    bullets: List[str] = []
    for paragraph in re.split(r"[\n\r]+", content):
        paragraph = paragraph.strip()
        if not paragraph:
            continue
        pieces = [paragraph] if len(paragraph) < 100 else _SENTENCE_SPLIT.split(paragraph)
        for piece in pieces:
            piece = piece.strip()
            if piece:
                bullets.append(_ensure_terminal(f"{BULLET} {_capitalize(piece)}"))
    return "\n".join(bullets)


def format_noise_content(content: str) -> str:
    """Reflow noise text into clean paragraphs, stripping citation boilerplate."""
    if not content:
        return ""

    if any(marker in content for marker in PLACEHOLDER_MARKERS):
        url_match = re.search(r"https?://[^\s.]+\.\S+", content)
        url = url_match.group(0) if url_match else ""
        return f"This resource requires direct access to view its content. You can find it at: {url}"

    content = re.sub(r"\n+Sources:.*\Z", "", content, flags=re.DOTALL)
    content = re.sub(r"\n+References:.*\Z", "", content, flags=re.DOTALL)
    content = re.sub(r"\n+URLs?:.*\Z", "", content, flags=re.DOTALL)

    content = re.sub(r"\[(\d+)\](?:\s*|:)", "", content)
    content = re.sub(r"Referenced as (?:\[\d+\]|[^.]+) in the analysis\.\s*", "", content)
    content = re.sub(r"Referenced as in the analysis\.\s*", "", content)
    content = re.sub(r"Confidence: \d+%\s*", "", content)

    # Collapse back-to-back repeats until nothing changes
    previous = None
    while previous != content:
        previous = content
        content = _REPEATED_SENTENCE.sub(r"\1", content)

    content = re.sub(r"^[•\-*]\s*", "", content, flags=re.MULTILINE)

    paragraphs: List[str] = []
    for paragraph in re.split(r"\n{2,}", content):
        if not paragraph.strip() or re.match(r"^https?://", paragraph.strip()):
            continue
        paragraph = re.sub(r"\s{2,}", " ", paragraph)
        paragraph = paragraph.replace("\n", " ").strip()
        if len(paragraph) < 10:
            continue
        paragraphs.append(_ensure_terminal(_capitalize(paragraph)))

    combined: List[str] = []
    current = ""
    for paragraph in paragraphs:
        if len(paragraph) < 60 and current and not current.endswith(":") and "http" not in paragraph:
            current += " " + paragraph
        else:
            if current:
                combined.append(current)
            current = paragraph
    if current:
        combined.append(current)

    if not combined:
        sentences = _SENTENCE_SPLIT.split(content.replace("\n", " "))
        return " ".join(
            _ensure_terminal(_capitalize(s.strip())) for s in sentences if len(s.strip()) > 15
        )

    result = "\n\n".join(combined)
    result = re.sub(r"\[\s*\.\.\.\s*\]", "", result)
    result = re.sub(r"[ \t]+\.", ".", result)
    result = re.sub(r"\.[ \t]+\.", ".", result)
    result = re.sub(r"[ \t]{2,}", " ", result)
    return result


def clean_display_content(content: Optional[str]) -> List[str]:
    """Turn stored content into display bullets without provider attributions or markup."""
    if not content:
        return []

    cleaned = _remove_patterns(content, ATTRIBUTION_PATTERNS)
    cleaned = cleaned.replace("**", "").replace("*", "").replace("`", "")
    cleaned = re.sub(r"#{1,6}\s", "", cleaned)

    bullets: List[str] = []
    for paragraph in re.split(r"\n+", cleaned):
        stripped = paragraph.strip()
        if not stripped:
            continue
        if stripped.startswith(("- ", f"{BULLET} ", "* ")):
            bullet = re.sub(r"^\s*[-•*]\s", "", paragraph).strip()
            if bullet:
                bullets.append(f"{BULLET} {_ensure_terminal(bullet)}")
        elif len(stripped) > 10:
            bullets.append(f"{BULLET} {_ensure_terminal(stripped)}")

    if len(bullets) <= 1 and len(cleaned) > 100:
        fragments = re.split(r"[;,]\s+", cleaned)
        if len(fragments) > 1:
            return [
                f"{BULLET} {_ensure_terminal(_capitalize(fragment.strip()))}"
                for fragment in fragments
                if len(fragment.strip()) > 15
            ]
    return bullets


def condense_text(text: str, limit: int = 130) -> str:
    """Remove filler, simplify wordy phrases and truncate at a clause boundary."""
    condensed = _remove_patterns(text or "", CONDENSE_REMOVALS)
    for pattern, replacement in CONDENSE_REWRITES:
        condensed = re.sub(pattern, replacement, condensed, flags=re.IGNORECASE)

    if len(condensed) > limit:
        window = condensed[: limit + 2]
        cut_point = max(
            window.rfind(". "),
            window.rfind("? "),
            window.rfind("! "),
            condensed[: limit - 10 + 2].rfind(", "),
        )
        if cut_point > 60:
            if condensed[cut_point] == ".":
                condensed = condensed[: cut_point + 1]
            else:
                condensed = condensed[: cut_point + 1] + "..."
        else:
            condensed = condensed[:limit] + "..."

    if not re.search(r"[.!?]$", condensed):
        condensed += "."
    return condensed


def clean_source_title(title: Optional[str], provider: str) -> str:
    """Replace provider branding in a source title with a neutral label."""
    pattern = PROVIDER_TITLE_PATTERNS.get(provider)
    if not title or not pattern:
        return title or ""
    return re.sub(pattern, "Research", title, flags=re.IGNORECASE)


def strip_html(text: Optional[str]) -> str:
    """Return visible text when the payload carries HTML markup, else the text unchanged."""
    if not text:
        return ""
    if not _HTML_TAG.search(text):
        return text
    soup = BeautifulSoup(text, "html.parser")
    visible = soup.get_text(separator=" ", strip=True)
    return re.sub(r"[ \t]{2,}", " ", visible)


def split_paragraphs(text: str) -> List[str]:
    return [p.strip() for p in (text or "").split("\n\n") if p.strip()]
