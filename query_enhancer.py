"""LLM rewrite of the user's query into a more searchable market-research query."""

from __future__ import annotations

import logging
import time
from typing import Any, Optional

from config import ResearchConfig
from llm import build_chat_model, invoke_text
from logging_utils import log_exception

logger = logging.getLogger(__name__)

ENHANCE_SYSTEM_PROMPT = """You are a market research optimization assistant. Your job is to enhance user queries for better search results.

Focus on:
1. Adding relevant industry terms and specific metrics that would improve search results
2. Making the query more specific and searchable
3. Maintaining the core intent of the original query

DO NOT:
1. Add arbitrary timeframes or dates that weren't in the original query
2. Change the fundamental meaning or intent of the query
3. Add explanations or commentary
4. Add any content that wasn't implied by the original query

Return ONLY the enhanced query text with no additional explanation."""


def enhance_query(query: str, llm: Optional[Any] = None, api_key: Optional[str] = None) -> str:
    """Return the enhanced query, or the original one when enhancement is unavailable."""
    key = ResearchConfig.OPENAI_API_KEY if api_key is None else api_key
    if llm is None and not key:
        logger.warning("OpenAI API key not found. Using original query.")
        return query

    start = time.monotonic()
    try:
        model = llm or build_chat_model(
            ResearchConfig.ENHANCE_TEMPERATURE, ResearchConfig.ENHANCE_MAX_TOKENS, api_key=key
        )
        enhanced = invoke_text(model, ENHANCE_SYSTEM_PROMPT, query)
    except Exception as exc:
        log_exception(logger, exc, context="enhance_query", query=query)
        logger.info("Falling back to original query")
        return query

    logger.info(f"Query enhanced in {(time.monotonic() - start) * 1000:.0f} ms")
    logger.debug(f"Original query: {query} | Enhanced query: {enhanced}")
    return enhanced or query
