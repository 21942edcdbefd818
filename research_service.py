"""
Research orchestration: enhance the query, fetch both providers in parallel,
aggregate the sources and classify them into signals and noise.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, List, Optional, Tuple

from config import ResearchConfig
from confidence import cap_sources, dedupe_by_url
from exa_client import ExaClient
from logging_utils import log_exception
from models import ClassifiedData, ResearchItem
from perplexity_client import PerplexityClient
from query_enhancer import enhance_query
from signal_classifier import classify_data

logger = logging.getLogger(__name__)


def _safe_fetch(client: Any, name: str, query: str) -> List[ResearchItem]:
    try:
        return client.fetch(query)
    except Exception as exc:
        log_exception(logger, exc, context=f"{name}_fetch", query=query)
        return []


def fetch_research_data(
    query: str,
    perplexity: Optional[PerplexityClient] = None,
    exa: Optional[ExaClient] = None,
    llm: Optional[Any] = None,
) -> List[ResearchItem]:
    """Fetch, dedupe and cap research items from both providers."""
    logger.info(f"Fetching research data for query: {query}")
    try:
        enhanced = enhance_query(query, llm=llm)
        logger.info(f"Using enhanced query: {enhanced}")

        perplexity = perplexity or PerplexityClient()
        exa = exa or ExaClient()
        started = time.monotonic()
        with ThreadPoolExecutor(max_workers=2) as executor:
            perplexity_future = executor.submit(_safe_fetch, perplexity, "perplexity", enhanced)
            exa_future = executor.submit(_safe_fetch, exa, "exa", enhanced)
            perplexity_items = perplexity_future.result()
            exa_items = exa_future.result()
        elapsed_ms = (time.monotonic() - started) * 1000
        logger.info(
            f"Fetched {len(perplexity_items)} Perplexity and {len(exa_items)} Exa items in {elapsed_ms:.0f} ms"
        )

        combined = dedupe_by_url(perplexity_items + exa_items)
        if len(combined) > ResearchConfig.MAX_TOTAL_SOURCES:
            logger.info(
                f"Limiting sources from {len(combined)} to {ResearchConfig.MAX_TOTAL_SOURCES} by confidence"
            )
        return cap_sources(combined, ResearchConfig.MAX_TOTAL_SOURCES)
    except Exception as exc:
        log_exception(logger, exc, context="fetch_research_data", query=query)
        return []


def classify_research_data(
    research_data: List[ResearchItem], query: str, llm: Optional[Any] = None
) -> ClassifiedData:
    started = time.monotonic()
    result = classify_data(research_data, query, llm=llm)
    elapsed_ms = (time.monotonic() - started) * 1000
    logger.info(
        f"Classification finished in {elapsed_ms:.0f} ms: "
        f"{len(result.signals)} signals, {len(result.noise)} noise"
    )
    return result


def run_research(
    query: str,
    perplexity: Optional[PerplexityClient] = None,
    exa: Optional[ExaClient] = None,
    llm: Optional[Any] = None,
) -> Tuple[List[ResearchItem], ClassifiedData]:
    """Return the aggregated sources together with their classification."""
    try:
        research_data = fetch_research_data(query, perplexity=perplexity, exa=exa, llm=llm)
        if not research_data:
            logger.warning(f"No research data found for query: {query}")
            return [], ClassifiedData(strategic_decision=f"No research data found for: {query}")
        return research_data, classify_research_data(research_data, query, llm=llm)
    except Exception as exc:
        log_exception(logger, exc, context="process_research_query", query=query)
        return [], ClassifiedData(strategic_decision=f"Error processing query: {exc}")


def process_research_query(
    query: str,
    perplexity: Optional[PerplexityClient] = None,
    exa: Optional[ExaClient] = None,
    llm: Optional[Any] = None,
) -> ClassifiedData:
    _, result = run_research(query, perplexity=perplexity, exa=exa, llm=llm)
    return result
