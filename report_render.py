"""Markdown rendering of a classified research result."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from jinja2 import BaseLoader, Environment

from confidence import percent, rank_by_confidence
from models import ClassifiedData, ResearchItem
from text_cleanup import clean_display_content, condense_text, split_paragraphs

PROVIDER_LABELS = {"perplexity": "Perplexity", "exa": "Exa"}

ENV = Environment(
    loader=BaseLoader(),
    autoescape=False,
    trim_blocks=True,
    lstrip_blocks=True,
    variable_start_string="[[",
    variable_end_string="]]",
)

MARKDOWN_TEMPLATE = ENV.from_string(
    """# Market Research: [[ query ]]

## Strategic Decision

{% for paragraph in decision_paragraphs -%}
[[ paragraph ]]

{% endfor %}
{% for section in sections -%}
## [[ section.title ]] ([[ section.cards | length ]])

{% if not section.cards -%}
_No [[ section.title | lower ]] identified._

{% endif -%}
{% for card in section.cards -%}
### [[ card.title ]]

{% for bullet in card.bullets -%}
[[ bullet ]]
{% endfor %}

_Confidence: [[ card.percent ]]%{% if card.source_number %} · Source #[[ card.source_number ]]{% endif %}{% if card.provider %} · [[ card.provider ]]{% endif %}_

{% endfor %}
{% endfor %}
## Sources

{% if not sources -%}
_No sources available._
{% endif -%}
{% for source in sources -%}
[[ source.number ]]. [[ source.link ]] · [[ source.provider ]] · [[ source.percent ]]%
{% if source.summary -%}
   [[ source.summary ]]
{% endif %}
{% endfor %}
"""
)


def provider_label(fetched_by: Optional[str]) -> str:
    return PROVIDER_LABELS.get(fetched_by or "", "Unknown")


def _source_key(item: ResearchItem) -> str:
    url = (item.url or "").strip()
    if url and url != "#":
        return url.rstrip("/").lower()
    return f"source:{item.source}"


def build_sources(sources: Sequence[ResearchItem]) -> List[Dict[str, Any]]:
    """Number the sources by descending confidence."""
    entries = []
    for number, item in enumerate(rank_by_confidence(sources), start=1):
        url = (item.url or "").strip()
        link = f"[{item.source}]({url})" if url and url != "#" else item.source
        entries.append({
            "number": number,
            "key": _source_key(item),
            "link": link,
            "provider": provider_label(item.fetched_by),
            "percent": percent(item.confidence),
            "summary": condense_text(item.content) if item.content else "",
        })
    return entries


def _cards(items: Sequence[ResearchItem], numbers: Dict[str, int]) -> List[Dict[str, Any]]:
    cards = []
    for item in items:
        bullets = clean_display_content(item.content) or [item.content or "No content available."]
        cards.append({
            "title": item.source,
            "bullets": bullets,
            "percent": percent(item.confidence),
            "source_number": numbers.get(_source_key(item)),
            "provider": provider_label(item.fetched_by) if item.fetched_by else "",
        })
    return cards


def render_markdown(query: str, result: ClassifiedData, sources: Sequence[ResearchItem] = ()) -> str:
    source_entries = build_sources(sources)
    numbers: Dict[str, int] = {}
    for entry in source_entries:
        numbers.setdefault(entry["key"], entry["number"])

    context = {
        "query": query,
        "decision_paragraphs": split_paragraphs(result.strategic_decision)
        or ["No strategic decision available."],
        "sections": [
            {"title": "Signals", "cards": _cards(result.signals, numbers)},
            {"title": "Noise", "cards": _cards(result.noise, numbers)},
        ],
        "sources": source_entries,
    }
    return MARKDOWN_TEMPLATE.render(**context).strip() + "\n"
