"""
Signal/noise classification of research items.

The primary path sends items to the LLM in chunks, asking it to classify every
item, rewrite the content and extract statistics. When that yields nothing the
legacy single-call classifier runs, and when no LLM is available the
deterministic confidence heuristics take over.
"""

from __future__ import annotations

import logging
import math
import re
import time
from collections import Counter
from typing import Any, Dict, List, Optional, Sequence

from pydantic import ValidationError

from config import ResearchConfig
from confidence import cap_sources, rank_by_confidence
from llm import build_chat_model, invoke_text, parse_json_object
from logging_utils import log_exception
from models import ChunkResult, ClassifiedData, Provider, ResearchItem
from text_cleanup import enhance_content_formatting, format_noise_content, format_signal_content

logger = logging.getLogger(__name__)

QUERY_STOP_WORDS = {
    "about", "there", "their", "would", "should", "could",
    "while", "these", "those", "have", "this", "that",
}

PROCESS_SYSTEM_PROMPT = """You are a strategic market intelligence analyst with expertise in extracting valuable insights from large volumes of research data.

Your task is to analyze the provided market research items and:

1. Classify EVERY item as either SIGNAL (high-value, verified, impactful) or NOISE (less relevant, unverified, low-impact)
2. COMPLETELY REWRITE both signal and noise content to improve readability and clarity
3. For SIGNAL items: Reformat and enhance content as 3-5 well-formatted bullet points
4. For NOISE items: Rewrite as coherent, readable paragraphs with proper grammar and sentence structure
5. Extract key statistics and metrics from SIGNAL items
6. Create a strategic recommendation based on the SIGNAL items

Follow these rules when processing the data:
- Be confident and decisive in your classification - if you're uncertain about an item, it's NOISE
- IMPORTANT: You MUST classify EVERY item in the input as either SIGNAL or NOISE - do not skip any items
- The "index" of an item is the number shown in its "Item <number>:" header
- Evaluate each item on its individual merit regardless of source
- SIGNALS must contain specific data, metrics, or actionable insights - general information is NOISE
- REWRITE ALL content to ensure highest readability regardless of original quality - do not simply copy original text
- For SIGNAL items: Create clear, impactful bullet points highlighting key information
- For NOISE items: Write 1-2 coherent paragraphs that summarize the content professionally
- NEVER include phrases like "Referenced as in the analysis" or "Confidence: X%" in your output
- Do not include references to markdown formatting or analysis numbering
- Ensure all text is well-formatted with complete sentences and proper punctuation
- Identify high-quality signals based strictly on content value, not quantity targets
- For URLs, ensure they are properly attributed and direct links (not search links)

Your response must be valid JSON with this exact structure:
{
  "signals": [
    {
      "index": 0,
      "content": "• First important bullet point with complete sentence.\\n• Second important bullet point with key insight.\\n• Third bullet point that completes the thought.",
      "reason": "Explanation of why this is a signal"
    }
  ],
  "noise": [
    {
      "index": 3,
      "content": "A cohesive, well-written paragraph summarizing this less relevant information.",
      "reason": "Explanation of why this is noise"
    }
  ],
  "statistics": [
    "Statistic 1: Specific numerical data point extracted from signals",
    "Statistic 2: Another specific numerical data point"
  ],
  "strategicDecision": "Provide a specific, actionable strategic recommendation based on ALL research sources that includes:\\n\\n1) A clear directive on what action to take\\n2) Key factors from the data supporting this decision\\n3) Specific implementation steps or focus areas\\n4) Potential risks or considerations to be aware of\\n\\nFormat this as 3-5 well-structured paragraphs with clear line breaks between paragraphs."
}"""

LEGACY_SYSTEM_PROMPT = """You are a market intelligence analyst with expertise in filtering high-value insights from large volumes of data.

You'll analyze market research results and classify each item as either:
1. SIGNAL: High-impact, verified insights with significant strategic value
2. NOISE: Less relevant, unverified, or low-impact information

Important classification guidelines:
- Evaluate each item on its individual content quality and relevance, regardless of its source
- Sources from both research services should be judged equally - some from each may be signals, others noise
- Focus on factual information, clear insights, and actionable data when identifying signals
- Include specific sources that provide unique perspectives or valuable data points
- A mix of sources in both signals and noise categories is expected
- The "index" of an item is the number shown in its "Item <number>:" header

Then, you'll provide a strategic decision recommendation based solely on the SIGNAL items.

Your output must follow this exact JSON format:
{
  "signals": [
    {"index": 0, "reason": "Explanation of why this is a signal"}
  ],
  "noise": [
    {"index": 2, "reason": "Explanation of why this is noise"}
  ],
  "strategicDecision": "Provide a specific, actionable strategic recommendation (3-5 sentences) based on ALL research sources that includes: 1) A clear directive on what action to take, 2) Key factors from ALL the data supporting this decision, 3) Specific implementation steps or focus areas, and 4) Potential risks or considerations to be aware of."
}

Focus on providing a confident, clear strategic decision that would be useful for business leaders."""

MOCK_DECISION = (
    'Based on high-confidence market research for "{query}", we recommend proceeding with market '
    "expansion while monitoring competitor consolidation trends. Strategic opportunities exist in "
    "differentiation through product innovation and targeted marketing to the most receptive "
    "customer segments identified in the data."
)
MOCK_NO_DECISION = 'Not enough high-confidence data available for "{query}" to make a strategic decision.'
SIMPLE_DECISION = (
    "Based on the available data, we recommend proceeding with caution while gathering more "
    "specific market information to validate these initial findings."
)
SIMPLE_NO_DECISION = (
    "Insufficient high-quality data available to make a strategic decision. "
    "Recommend conducting more targeted research."
)


# ----------------------------------------------------------------------
# Entry point
# ----------------------------------------------------------------------
def classify_data(
    research_data: Sequence[ResearchItem],
    query: str,
    llm: Optional[Any] = None,
    api_key: Optional[str] = None,
) -> ClassifiedData:
    """Classify items into signals and noise, falling back processor -> legacy -> mock."""
    key = ResearchConfig.OPENAI_API_KEY if api_key is None else api_key
    logger.info(f"Classifying {len(research_data)} items for query: {query}")
    if (llm is None and not key) or not research_data:
        logger.warning("OpenAI API key not found or no research data. Using mock classification.")
        return mock_classification(research_data, query)

    start = time.monotonic()
    try:
        processed = process_research_data(research_data, query, llm=llm, api_key=key)
        logger.info(f"Processing completed in {(time.monotonic() - start) * 1000:.0f} ms")
        if not processed.is_empty:
            logger.info(
                f"Processor returned {len(processed.signals)} signals, {len(processed.noise)} noise items"
            )
            return processed
        logger.info("Processor returned no results, falling back to legacy classification")
    except Exception as exc:
        log_exception(logger, exc, context="process_research_data", query=query)

    return classify_data_legacy(research_data, query, llm=llm, api_key=key)


# ----------------------------------------------------------------------
# Chunked processor
# ----------------------------------------------------------------------
def process_research_data(
    research_data: Sequence[ResearchItem],
    query: Optional[str] = None,
    llm: Optional[Any] = None,
    api_key: Optional[str] = None,
) -> ClassifiedData:
    key = ResearchConfig.OPENAI_API_KEY if api_key is None else api_key
    if llm is None and not key:
        logger.warning("OpenAI API key not found. Using simple categorization.")
        return simple_categorization(research_data)

    try:
        query_to_use = query or derive_query_from_research_data(research_data) or "market research"
        items = cap_sources(research_data, ResearchConfig.MAX_TOTAL_SOURCES)
        if len(items) < len(research_data):
            logger.info(f"Limited sources from {len(research_data)} to {len(items)}")

        model = llm or build_chat_model(
            ResearchConfig.PROCESS_TEMPERATURE,
            ResearchConfig.PROCESS_MAX_TOKENS,
            json_mode=True,
            api_key=key,
        )
        merged = _process_in_chunks(model, items, query_to_use)
        return _assemble(merged, items, query_to_use)
    except Exception as exc:
        log_exception(logger, exc, context="process_research_data", query=query)
        logger.info("Falling back to simple categorization")
        return simple_categorization(research_data)


def _process_in_chunks(model: Any, items: List[ResearchItem], query: str) -> Dict[str, Any]:
    size = max(1, ResearchConfig.MAX_ITEMS_PER_REQUEST)
    merged: Dict[str, Any] = {"signals": [], "noise": [], "statistics": [], "strategic_decision": "", "direct": []}

    for start in range(0, len(items), size):
        chunk = items[start:start + size]
        is_last = start + size >= len(items)
        if start > 0 and is_last and len(chunk) < ResearchConfig.SMALL_CHUNK_THRESHOLD:
            logger.info(f"Last chunk has only {len(chunk)} items - using simplified processing")
            simple = simple_categorize_chunk(chunk)
            merged["direct"].append(simple)
            continue

        logger.info(f"Processing chunk {start // size + 1} with {len(chunk)} items")
        result = process_chunk(model, format_items(chunk), query, start, len(chunk))
        merged["signals"].extend(result.signals)
        merged["noise"].extend(result.noise)
        if start == 0:
            merged["statistics"] = result.statistics
            merged["strategic_decision"] = result.strategic_decision
    return merged


def process_chunk(model: Any, formatted_data: str, query: str, start_index: int, item_count: int) -> ChunkResult:
    """Classify one chunk; indices in the result refer to the full item list."""
    started = time.monotonic()
    try:
        reply = invoke_text(model, PROCESS_SYSTEM_PROMPT, f"Query: {query}\n\nResearch Items:\n\n{formatted_data}")
        result = ChunkResult.model_validate(parse_json_object(reply))
    except (ValueError, ValidationError) as exc:
        logger.error(f"Error parsing chunk response: {exc}")
        return ChunkResult()
    except Exception as exc:
        log_exception(logger, exc, context="process_chunk")
        return ChunkResult()

    elapsed_ms = (time.monotonic() - started) * 1000
    classified = len(result.signals) + len(result.noise)
    logger.info(
        f"Chunk processed in {elapsed_ms:.0f} ms: {classified}/{item_count} items classified "
        f"({len(result.signals)} signals, {len(result.noise)} noise)"
    )
    return result.offset(start_index)


def _assemble(merged: Dict[str, Any], items: List[ResearchItem], query: str) -> ClassifiedData:
    signals: List[ResearchItem] = []
    for entry in merged["signals"]:
        if 0 <= entry.index < len(items):
            original = items[entry.index]
            signals.append(original.model_copy(update={
                "content": format_signal_content(entry.content or "") or original.content,
                "confidence": ResearchConfig.PROCESSED_SIGNAL_CONFIDENCE,
            }))

    noise: List[ResearchItem] = []
    for entry in merged["noise"]:
        if 0 <= entry.index < len(items):
            original = items[entry.index]
            noise.append(original.model_copy(update={
                "content": entry.content or format_noise_content(original.content),
                "confidence": ResearchConfig.PROCESSED_NOISE_CONFIDENCE,
            }))

    for simple in merged["direct"]:
        signals.extend(simple.signals)
        noise.extend(simple.noise)

    statistics = _statistics_items(merged["statistics"], signals, items)
    logger.info(
        f"Final processed data: {len(signals)} signals, {len(noise)} noise items, {len(statistics)} statistics"
    )
    return ClassifiedData(
        signals=signals + statistics,
        noise=noise,
        strategic_decision=merged["strategic_decision"]
        or f'Insufficient data to provide a strategic decision for "{query}".',
    )


def _statistics_items(
    statistics: List[str], signals: List[ResearchItem], items: List[ResearchItem]
) -> List[ResearchItem]:
    formatted = []
    for i, stat in enumerate(statistics):
        pool = signals or items
        attribution = pool[min(i, len(pool) - 1)] if pool else None
        if attribution is not None:
            formatted.append(ResearchItem(
                source=f"Statistical Analysis: {attribution.source}",
                content=stat,
                url=attribution.url,
                confidence=ResearchConfig.STATISTIC_CONFIDENCE,
                fetched_by=attribution.fetched_by or Provider.PERPLEXITY,
            ))
        else:
            formatted.append(ResearchItem(
                source="Market Analysis Statistics",
                content=stat,
                url="",
                confidence=ResearchConfig.STATISTIC_CONFIDENCE,
                fetched_by=Provider.PERPLEXITY,
            ))
    return formatted


def format_items(items: Sequence[ResearchItem]) -> str:
    """Render items as numbered prompt blocks; numbering is zero-based per chunk."""
    blocks = []
    for index, item in enumerate(items):
        blocks.append(
            f"Item {index}:\n"
            f"Source: {item.source or 'Unknown'}\n"
            f"Content: {item.content or 'No content available'}\n"
            f"URL: {item.url or 'N/A'}\n"
            f"From: {item.fetched_by or 'Unknown service'}\n"
        )
    return "\n\n".join(blocks)


# ----------------------------------------------------------------------
# Legacy single-call classifier
# ----------------------------------------------------------------------
def classify_data_legacy(
    research_data: Sequence[ResearchItem],
    query: str,
    llm: Optional[Any] = None,
    api_key: Optional[str] = None,
) -> ClassifiedData:
    key = ResearchConfig.OPENAI_API_KEY if api_key is None else api_key
    if (llm is None and not key) or not research_data:
        logger.warning("OpenAI API key not found or no research data. Using mock classification.")
        return mock_classification(research_data, query)

    items = list(research_data)
    formatted = "\n\n".join(
        f"Item {i}:\nSource: {item.source}\nContent: {item.content}\nURL: {item.url or 'N/A'}\n"
        for i, item in enumerate(items)
    )
    try:
        model = llm or build_chat_model(
            ResearchConfig.LEGACY_TEMPERATURE,
            ResearchConfig.LEGACY_MAX_TOKENS,
            json_mode=True,
            api_key=key,
        )
        started = time.monotonic()
        reply = invoke_text(model, LEGACY_SYSTEM_PROMPT, f"Query: {query}\n\nResearch Items:\n\n{formatted}")
        logger.info(f"Legacy classification response received in {(time.monotonic() - started) * 1000:.0f} ms")
    except Exception as exc:
        log_exception(logger, exc, context="classify_data_legacy", query=query)
        return mock_classification(research_data, query)

    try:
        raw = parse_json_object(reply)
        if "signals" not in raw or "noise" not in raw:
            logger.warning("Legacy response missing required fields, falling back to mock classification")
            return mock_classification(research_data, query)
        result = ChunkResult.model_validate(raw)
    except (ValueError, ValidationError) as exc:
        logger.error(f"Error parsing legacy response: {exc} (preview: {reply[:200]})")
        return mock_classification(research_data, query)

    signals = [
        items[e.index].model_copy(update={"content": enhance_content_formatting(items[e.index].content)})
        for e in result.signals
        if 0 <= e.index < len(items)
    ]
    noise = [items[e.index] for e in result.noise if 0 <= e.index < len(items)]
    logger.info(f"Legacy mapped {len(signals)} signals and {len(noise)} noise items")
    return ClassifiedData(
        signals=signals,
        noise=noise,
        strategic_decision=result.strategic_decision
        or f'Not enough data to provide a strategic decision for "{query}".',
    )


# ----------------------------------------------------------------------
# Deterministic fallbacks
# ----------------------------------------------------------------------
def mock_classification(research_data: Sequence[ResearchItem], query: str) -> ClassifiedData:
    """Top 60% of URL-bearing items by confidence become signals if confident enough."""
    valid = [item for item in research_data if item.url and item.source]
    ranked = rank_by_confidence(valid)
    signal_count = max(1, math.floor(len(ranked) * ResearchConfig.SIGNAL_RATIO))
    head, tail = ranked[:signal_count], ranked[signal_count:]

    signals = [item for item in head if item.confidence >= ResearchConfig.SIGNAL_MIN_CONFIDENCE]
    noise = tail + [item for item in head if item.confidence < ResearchConfig.SIGNAL_MIN_CONFIDENCE]
    decision = (MOCK_DECISION if signals else MOCK_NO_DECISION).format(query=query)
    logger.info(f"Mock classification complete - {len(signals)} signals, {len(noise)} noise items")
    return ClassifiedData(signals=signals, noise=noise, strategic_decision=decision)


def simple_categorization(research_data: Sequence[ResearchItem]) -> ClassifiedData:
    ranked = rank_by_confidence(research_data)
    target = max(ResearchConfig.SIMPLE_MIN_SIGNALS, math.ceil(len(ranked) * ResearchConfig.SIGNAL_RATIO))

    signals, noise = [], []
    for index, item in enumerate(ranked):
        substantive = len(item.content or "") > 100 and bool(item.url)
        if index < target and (item.confidence > ResearchConfig.SIGNAL_MIN_CONFIDENCE or substantive):
            signals.append(item)
        else:
            noise.append(item)
    logger.info(f"Simple categorization: {len(signals)} signals, {len(noise)} noise")
    return ClassifiedData(
        signals=signals,
        noise=noise,
        strategic_decision=SIMPLE_DECISION if signals else SIMPLE_NO_DECISION,
    )


def simple_categorize_chunk(chunk: Sequence[ResearchItem]) -> ClassifiedData:
    ranked = rank_by_confidence(chunk)
    target = math.ceil(len(ranked) * ResearchConfig.SIGNAL_RATIO)

    signals, noise = [], []
    for index, item in enumerate(ranked):
        if index < target and (len(item.content or "") > 200 or item.confidence > ResearchConfig.SIGNAL_MIN_CONFIDENCE):
            signals.append(item.model_copy(update={
                "source": item.source or "Unknown Source",
                "content": item.content or "No content available",
                "fetched_by": item.fetched_by or Provider.PERPLEXITY.value,
            }))
        else:
            noise.append(item)
    return ClassifiedData(signals=signals, noise=noise)


def derive_query_from_research_data(research_data: Sequence[ResearchItem]) -> Optional[str]:
    """Guess a topic from the most frequent words when no query was supplied."""
    if not research_data:
        return None
    text = " ".join(item.content or "" for item in research_data).lower()
    words = [w for w in re.split(r"\W+", text) if len(w) > 3 and w not in QUERY_STOP_WORDS]
    top = [word for word, _ in Counter(words).most_common(5)]
    if not top:
        logger.info("Failed to derive meaningful query")
        return None
    derived = f"Latest market trends about {' '.join(top)}"
    logger.info(f"Derived query: {derived}")
    return derived
