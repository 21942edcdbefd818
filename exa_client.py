"""
Exa research fetcher.

Searches Exa for the query, then pulls page text for every hit with staggered,
retried /contents calls. Paywalled or document URLs are not fetched; they get a
placeholder that points the reader at the source.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

import requests

from config import ResearchConfig
from confidence import clamp
from logging_utils import log_exception
from mock_data import exa_mock
from models import Provider, ResearchItem
from text_cleanup import clean_source_title, strip_html

logger = logging.getLogger(__name__)


def is_problematic_url(url: Optional[str]) -> bool:
    """True for URLs whose content the contents endpoint cannot usefully return."""
    if not url or not url.strip():
        return True
    lower_url = url.lower()
    if lower_url.endswith(ResearchConfig.EXA_PROBLEMATIC_EXTENSIONS) or "/pdf/" in lower_url:
        return True
    host = urlparse(lower_url if "://" in lower_url else f"https://{lower_url}").hostname or ""
    return any(
        host == domain or host.endswith("." + domain) for domain in ResearchConfig.EXA_PROBLEMATIC_DOMAINS
    )


def score_to_confidence(score: Any) -> float:
    if score is None:
        return ResearchConfig.EXA_DEFAULT_SCORE
    return clamp(score, default=ResearchConfig.EXA_DEFAULT_SCORE)


class ExaClient:
    """Fetch market research snippets from the Exa search and contents APIs."""

    def __init__(self, api_key: Optional[str] = None, session: Optional[requests.Session] = None):
        self.api_key = ResearchConfig.EXA_API_KEY if api_key is None else api_key
        self.session = session or requests.Session()

    @property
    def _headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
            "x-api-key": self.api_key,
            "Accept": "application/json",
        }

    def fetch(self, query: str) -> List[ResearchItem]:
        if not self.api_key:
            logger.warning("Exa API key not found. Using mock data.")
            return exa_mock(query)

        logger.info(f"Fetching data from Exa for query: {query}")
        try:
            results = self._search(query)
        except (requests.RequestException, ValueError) as exc:
            log_exception(logger, exc, context="exa_search", query=query)
            logger.warning("Falling back to Exa mock data due to API error")
            return exa_mock(query)

        if not results:
            logger.warning("No search results from Exa. Using mock data.")
            return exa_mock(query)

        started = time.monotonic()
        workers = max(1, min(ResearchConfig.EXA_MAX_WORKERS, len(results)))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [
                executor.submit(self._content_for_result, result, index, started)
                for index, result in enumerate(results)
            ]
            items = [future.result() for future in futures]

        valid = [item for item in items if item is not None]
        if valid:
            return valid
        logger.warning("All Exa content fetches failed. Using mock data.")
        return exa_mock(query)

    def _search(self, query: str) -> List[Dict[str, Any]]:
        payload = {
            "query": query,
            "numResults": ResearchConfig.EXA_NUM_RESULTS,
            "type": "auto",
            "useAutoprompt": True,
            "highlightResults": True,
            "includeDomains": [],
        }
        resp = self.session.post(
            ResearchConfig.EXA_SEARCH_URL,
            json=payload,
            headers=self._headers,
            timeout=ResearchConfig.EXA_SEARCH_TIMEOUT,
        )
        resp.raise_for_status()
        data = resp.json() or {}
        if not isinstance(data, dict):
            raise ValueError(f"Unexpected Exa search payload: {type(data).__name__}")
        results = data.get("results") or []
        if not isinstance(results, list):
            raise ValueError(f"Unexpected Exa search results: {type(results).__name__}")
        return [result for result in results if isinstance(result, dict)]

    @staticmethod
    def _wait_for_slot(index: int, started: float) -> None:
        """Sleep until result `index` is due, measured from when the batch started."""
        delay = started + index * ResearchConfig.EXA_STAGGER_DELAY - time.monotonic()
        if delay > 0:
            time.sleep(delay)

    def _content_for_result(
        self, result: Dict[str, Any], index: int, started: Optional[float] = None
    ) -> Optional[ResearchItem]:
        url = str(result.get("url") or "").strip()
        if is_problematic_url(url):
            return ResearchItem(
                source=result.get("title") or "Research Result",
                content=(
                    "Content summary not available for this resource. "
                    f"Please visit the source directly: {url or 'URL not provided'}"
                ),
                confidence=score_to_confidence(result.get("score")),
                url=url or "#",
                fetched_by=Provider.EXA,
            )

        # Stagger request starts to stay under the provider's rate limit
        if index and ResearchConfig.EXA_STAGGER_DELAY > 0:
            self._wait_for_slot(index, time.monotonic() if started is None else started)
        return self._fetch_content_with_retry(result)

    def _fetch_content_with_retry(self, result: Dict[str, Any]) -> ResearchItem:
        url = str(result.get("url") or "").strip()
        title = clean_source_title(result.get("title") or "Research Result", "exa")
        confidence = score_to_confidence(result.get("score"))

        attempts = ResearchConfig.EXA_MAX_RETRIES + 1
        for attempt in range(1, attempts + 1):
            try:
                content = self._fetch_text(url)
                limit = ResearchConfig.EXA_CONTENT_CHAR_LIMIT
                if len(content) > limit:
                    content = content[:limit] + "..."
                return ResearchItem(
                    source=title,
                    content=content or f"Please visit the source directly: {url}",
                    confidence=confidence,
                    url=url,
                    fetched_by=Provider.EXA,
                )
            except (requests.RequestException, ValueError) as exc:
                logger.error(f"Error fetching Exa content for {url}: {exc}")
                if attempt < attempts:
                    logger.info(f"Retrying ({attempt}/{ResearchConfig.EXA_MAX_RETRIES}) for {url}")
                    time.sleep(ResearchConfig.EXA_RETRY_DELAY)

        snippet = result.get("snippet") or next(iter(result.get("highlights") or []), "")
        return ResearchItem(
            source=title,
            content=f"Information available at the source: {snippet or 'No snippet available'}",
            confidence=confidence * ResearchConfig.EXA_FALLBACK_MULTIPLIER,
            url=url or "#",
            fetched_by=Provider.EXA,
        )

    def _fetch_text(self, url: str) -> str:
        payload = {"urls": [url], "text": True, "livecrawl": "fallback"}
        resp = self.session.post(
            ResearchConfig.EXA_CONTENTS_URL,
            json=payload,
            headers=self._headers,
            timeout=ResearchConfig.EXA_CONTENTS_TIMEOUT,
        )
        resp.raise_for_status()
        data = resp.json() or {}
        if not isinstance(data, dict):
            raise ValueError(f"Unexpected Exa contents payload: {type(data).__name__}")
        results = data.get("results") or []
        if not isinstance(results, list) or not results:
            raise ValueError("No content in response")
        first = results[0] or {}
        if not isinstance(first, dict):
            raise ValueError(f"Unexpected Exa contents entry: {type(first).__name__}")
        return strip_html(first.get("text") or first.get("content") or "")
