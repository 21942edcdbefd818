"""
Perplexity research fetcher.

Runs a citation-heavy sonar query, recovers sources from the API payload or the
answer text, tops up thin results with a second sources-only call, and returns
one synthesis item plus one item per citation.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

import requests

import citations as cite
from citations import Citation
from config import ResearchConfig
from logging_utils import log_exception
from mock_data import perplexity_mock
from models import Provider, ResearchItem
from text_cleanup import clean_source_title

logger = logging.getLogger(__name__)

RESEARCH_SYSTEM_PROMPT = """You are a market research analyst providing evidence-based information.

Rules:
1. Every claim must be cited using numbered citations [1], [2], etc.
2. Include at least 12 different citations from diverse sources.
3. Format all URLs as complete links starting with http:// or https://
4. Include a REFERENCES section at the end with full details for each source.
5. Use different publishers - never cite the same source twice.

Steps:
1. Research the topic thoroughly using multiple sources.
2. Format each reference as: [number] Title. Publisher. URL: full-url
3. Include the complete URL for every source directly in your text.
4. Ensure all important statements have an appropriate citation.
5. Create a properly formatted REFERENCES section at the end."""

RESEARCH_USER_PROMPT = """Conduct comprehensive market research on: {query}.

I need research with AT LEAST 12 citations from different sources. Format each citation in the text with numbers [1], [2], etc.

IMPORTANT: Include a REFERENCES section at the end with ALL sources used, formatted like:
[1] Title of Source. Publisher Name. URL: https://example.com
[2] Another Source Title. Another Publisher. URL: https://another-example.com"""

SOURCES_SYSTEM_PROMPT = """You are a citation specialist. Your ONLY job is to provide additional research citations that were NOT included previously.
CRITICAL REQUIREMENTS:
1. Format each citation with a number [1], [2], etc.
2. Include ONLY the title, publisher, and FULL URL for each source
3. Do not include any additional text or analysis
4. Include the COMPLETE URL for each source (with https://)
5. Format exactly like this: [1] Title. Publisher. URL: https://example.com
6. Find DIFFERENT sources than were provided previously"""

SOURCES_USER_PROMPT = """Find 10 additional high-quality sources about: {query}.

The following sources have ALREADY BEEN FOUND, so DO NOT repeat them:
{known}

ONLY provide sources in this format:
[1] Title. Publisher. URL: https://example.com
[2] Another Title. Another Publisher. URL: https://another-example.com

IMPORTANT: Include the full URL starting with http:// or https:// for EVERY source."""

CITATION_PLACEHOLDER = "Source information available at the provided URL. Referenced in market analysis."


class PerplexityClient:
    """Fetch market research snippets from the Perplexity chat completions API."""

    def __init__(self, api_key: Optional[str] = None, session: Optional[requests.Session] = None):
        self.api_key = ResearchConfig.PERPLEXITY_API_KEY if api_key is None else api_key
        self.session = session or requests.Session()

    def fetch(self, query: str) -> List[ResearchItem]:
        if not self.api_key:
            logger.warning("Perplexity API key not found. Using mock data.")
            return perplexity_mock(query)

        logger.info(f"Fetching data from Perplexity for query: {query}")
        try:
            first = self._complete(
                RESEARCH_SYSTEM_PROMPT,
                RESEARCH_USER_PROMPT.format(query=query),
                temperature=0.25,
                max_tokens=4000,
                timeout=ResearchConfig.PERPLEXITY_TIMEOUT,
            )
            main_content = self._message_content(first)
            logger.debug(f"Perplexity response preview: {json.dumps(first)[:500]}")

            first_sources = self._primary_citations(first, main_content)
            logger.info(f"Perplexity first call retrieved {len(first_sources)} citations")

            second_sources: List[Citation] = []
            if len(first_sources) < ResearchConfig.PERPLEXITY_MIN_SOURCES:
                second_sources = self._additional_citations(query, first_sources)

            all_sources = cite.merge_unique(first_sources, second_sources)
            logger.info(f"Perplexity total unique sources: {len(all_sources)}")
            return self._to_items(main_content, all_sources)
        except (requests.RequestException, ValueError, KeyError, IndexError, TypeError) as exc:
            log_exception(logger, exc, context="perplexity_fetch", query=query)
            logger.warning("Falling back to Perplexity mock data due to API error")
            return perplexity_mock(query)

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------
    def _complete(
        self, system_prompt: str, user_prompt: str, temperature: float, max_tokens: int, timeout: float
    ) -> Dict[str, Any]:
        payload = {
            "model": ResearchConfig.PERPLEXITY_MODEL,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": temperature,
            "max_tokens": max_tokens,
            "search_recency_filter": ResearchConfig.PERPLEXITY_RECENCY,
            "top_p": 0.9,
            "frequency_penalty": 1.0,
        }
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }
        resp = self.session.post(
            ResearchConfig.PERPLEXITY_API_URL, json=payload, headers=headers, timeout=timeout
        )
        resp.raise_for_status()
        data = resp.json()
        if not isinstance(data, dict):
            raise ValueError("Unexpected Perplexity payload")
        return data

    @staticmethod
    def _message_content(data: Dict[str, Any]) -> str:
        return data["choices"][0]["message"]["content"] or ""

    @staticmethod
    def _api_citations(data: Dict[str, Any]) -> List[Citation]:
        """Citations from the documented top-level field, then the per-choice fallbacks."""
        choice = (data.get("choices") or [{}])[0] or {}
        for raw_list in (
            data.get("citations"),
            (choice.get("message") or {}).get("citations"),
            choice.get("citations"),
        ):
            if raw_list:
                found = [c for c in (Citation.from_api(raw) for raw in raw_list) if c]
                if found:
                    return found
        return []

    # ------------------------------------------------------------------
    # Citation recovery
    # ------------------------------------------------------------------
    def _primary_citations(self, data: Dict[str, Any], content: str) -> List[Citation]:
        sources = self._api_citations(data)
        found_urls = cite.extract_urls(content)
        references = cite.extract_references_section(content)
        numbered = cite.find_numbered_citations(content)
        logger.debug(
            f"Perplexity content has {len(numbered)} numbered citations and {len(found_urls)} URLs"
        )

        if numbered and references:
            sources.extend(cite.parse_reference_entries(references))

        if not sources and found_urls:
            logger.info(f"Using {len(found_urls)} URLs found in Perplexity content")
            sources = cite.citations_from_urls(content, found_urls)

        if not sources:
            logger.info("No Perplexity sources found, using synthesis placeholder")
            sources = [Citation(url="", title="Market Analysis", text="Based on AI-powered market analysis")]
        return sources

    def _additional_citations(self, query: str, known: List[Citation]) -> List[Citation]:
        known_lines = "\n".join(
            f"{i + 1}. {c.title} {c.url}".rstrip() for i, c in enumerate(known)
        )
        try:
            logger.info("Perplexity making second call for additional sources")
            second = self._complete(
                SOURCES_SYSTEM_PROMPT,
                SOURCES_USER_PROMPT.format(query=query, known=known_lines),
                temperature=0.3,
                max_tokens=3000,
                timeout=ResearchConfig.PERPLEXITY_SECOND_TIMEOUT,
            )
            content = self._message_content(second)
        except (requests.RequestException, ValueError, KeyError, IndexError, TypeError) as exc:
            log_exception(logger, exc, context="perplexity_second_call", query=query)
            return []

        sources = self._api_citations(second)
        if sources:
            logger.info(f"Perplexity second call retrieved {len(sources)} API citations")
            return sources

        sources = cite.parse_reference_entries(content, label="Additional source [{num}]")
        if not sources:
            sources = [
                Citation(url=url, title=f"Additional Source {i + 1}", text="Information from additional research")
                for i, url in enumerate(cite.extract_urls(content))
            ]
        logger.info(f"Perplexity extracted {len(sources)} citations from second call content")
        return sources

    # ------------------------------------------------------------------
    # Conversion
    # ------------------------------------------------------------------
    def _to_items(self, main_content: str, sources: List[Citation]) -> List[ResearchItem]:
        items = [
            ResearchItem(
                source="Market Analysis Synthesis",
                content=main_content,
                confidence=ResearchConfig.SYNTHESIS_CONFIDENCE,
                url=sources[0].url if sources else "",
                fetched_by=Provider.PERPLEXITY,
            )
        ]
        for index, citation in enumerate(sources):
            if not citation.title and not citation.url:
                continue
            title = clean_source_title(citation.title or f"Research Source {index + 1}", "perplexity")
            items.append(
                ResearchItem(
                    source=title,
                    content=citation.text or CITATION_PLACEHOLDER,
                    confidence=ResearchConfig.CITATION_CONFIDENCE,
                    url=citation.url,
                    fetched_by=Provider.PERPLEXITY,
                )
            )
        return items
