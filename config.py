"""
Research Assistant Configuration

Environment-driven settings for the signal/noise research pipeline. Provider
keys are optional: every stage degrades to mock or heuristic output when its
key is missing, so the CLI stays usable offline.
"""

import os
from typing import Dict, List

from dotenv import load_dotenv

load_dotenv()


def _env_float(name: str, default: str) -> float:
    return float(os.getenv(name, default))


def _env_int(name: str, default: str) -> int:
    return int(os.getenv(name, default))


class ResearchConfig:
    """Runtime configuration shared by fetchers, classifier and CLI."""

    # API keys
    OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
    OPENAI_ORGANIZATION = os.getenv("OPENAI_ORGANIZATION")
    PERPLEXITY_API_KEY = os.getenv("PERPLEXITY_API_KEY", "")
    EXA_API_KEY = os.getenv("EXA_API_KEY", "")

    # Endpoints
    PERPLEXITY_API_URL = os.getenv(
        "PERPLEXITY_API_URL", "https://api.perplexity.ai/chat/completions"
    )
    EXA_SEARCH_URL = os.getenv("EXA_SEARCH_URL", "https://api.exa.ai/search")
    EXA_CONTENTS_URL = os.getenv("EXA_CONTENTS_URL", "https://api.exa.ai/contents")

    # Models
    OPENAI_MODEL = os.getenv("RESEARCH_OPENAI_MODEL", "gpt-4o")
    PERPLEXITY_MODEL = os.getenv("RESEARCH_PERPLEXITY_MODEL", "sonar-pro")
    RESPONSE_FORMAT = {"type": "json_object"}
    ENHANCE_TEMPERATURE = 0.3
    ENHANCE_MAX_TOKENS = 500
    PROCESS_TEMPERATURE = 0.3
    PROCESS_MAX_TOKENS = 4000
    LEGACY_TEMPERATURE = 0.2
    LEGACY_MAX_TOKENS = 2000
    LLM_TIMEOUT_SECONDS = _env_float("RESEARCH_LLM_TIMEOUT", "120")

    # Source limits
    MAX_TOTAL_SOURCES = _env_int("RESEARCH_MAX_SOURCES", "25")
    MAX_ITEMS_PER_REQUEST = _env_int("RESEARCH_ITEMS_PER_REQUEST", "25")
    SMALL_CHUNK_THRESHOLD = 3
    SIGNAL_RATIO = 0.6
    SIMPLE_MIN_SIGNALS = 5

    # Perplexity
    PERPLEXITY_MIN_SOURCES = _env_int("RESEARCH_PERPLEXITY_MIN_SOURCES", "8")
    PERPLEXITY_TIMEOUT = _env_float("RESEARCH_PERPLEXITY_TIMEOUT", "45")
    PERPLEXITY_SECOND_TIMEOUT = _env_float("RESEARCH_PERPLEXITY_SECOND_TIMEOUT", "30")
    PERPLEXITY_RECENCY = os.getenv("RESEARCH_PERPLEXITY_RECENCY", "month")

    # Exa
    EXA_NUM_RESULTS = _env_int("RESEARCH_EXA_RESULTS", "15")
    EXA_MAX_RETRIES = _env_int("RESEARCH_EXA_RETRIES", "2")
    EXA_RETRY_DELAY = _env_float("RESEARCH_EXA_RETRY_DELAY", "1.0")
    EXA_STAGGER_DELAY = _env_float("RESEARCH_EXA_STAGGER", "0.3")
    EXA_SEARCH_TIMEOUT = _env_float("RESEARCH_EXA_SEARCH_TIMEOUT", "30")
    EXA_CONTENTS_TIMEOUT = _env_float("RESEARCH_EXA_CONTENTS_TIMEOUT", "20")
    EXA_CONTENT_CHAR_LIMIT = 1000
    EXA_MAX_WORKERS = _env_int("RESEARCH_EXA_WORKERS", "5")
    EXA_PROBLEMATIC_EXTENSIONS = (".pdf", ".ppt", ".doc", ".xls", ".xlsx", ".docx", ".pptx")
    EXA_PROBLEMATIC_DOMAINS = [
        "bloomberg.com",
        "bnef.com",
        "ft.com",
        "wsj.com",
        "nytimes.com",
        "sciencedirect.com",
        "springer.com",
        "ieee.org",
        "onlinelibrary.wiley.com",
        "jstor.org",
        "tandfonline.com",
        "elsevier.com",
        "gmatclub.com",
        "dmnews.com",
        "energydigital.com",
        "linkedin.com",
        "facebook.com",
        "twitter.com",
    ]

    # Confidence assignments
    SYNTHESIS_CONFIDENCE = 0.90
    CITATION_CONFIDENCE = 0.80
    PROCESSED_SIGNAL_CONFIDENCE = 0.95
    PROCESSED_NOISE_CONFIDENCE = 0.40
    STATISTIC_CONFIDENCE = 0.99
    EXA_FALLBACK_MULTIPLIER = 0.7
    EXA_DEFAULT_SCORE = 0.5
    SIGNAL_MIN_CONFIDENCE = 0.5

    EXAMPLE_QUERIES: Dict[str, List[str]] = {
        "Technology": [
            "What are the emerging AI governance frameworks?",
            "How is quantum computing affecting cybersecurity?",
            "What's the impact of extended reality on remote work?",
        ],
        "Healthcare": [
            "Which personalized medicine breakthroughs are expected?",
            "How are biosensors transforming preventative healthcare?",
            "What advances in gene editing are shaping healthcare?",
        ],
        "Finance": [
            "How is decentralized finance disrupting traditional banking?",
            "What are the emerging central bank digital currencies?",
            "How are AI-driven risk models changing investment strategies?",
        ],
        "Retail": [
            "How is metaverse shopping transforming retail?",
            "What circular economy practices are retailers adopting?",
            "How is hyper-personalization changing customer loyalty?",
        ],
        "Manufacturing": [
            "How is additive manufacturing scaling in industry?",
            "What digital twin implementations are driving efficiency?",
            "How are cobots transforming manufacturing workforce?",
        ],
        "Energy": [
            "What breakthroughs in energy storage are impacting renewables?",
            "How is fusion energy progressing commercially?",
            "What carbon capture technologies are scaling?",
        ],
        "Education": [
            "How are AI tutors transforming personalized learning?",
            "What microlearning platforms are gaining traction?",
            "How is extended reality changing classroom education?",
        ],
        "Entertainment": [
            "How is AI-generated content transforming creative industries?",
            "What metaverse experiences are gaining mainstream adoption?",
            "How are NFTs evolving for digital content monetization?",
        ],
        "Real Estate": [
            "How is tokenized real estate changing property investment?",
            "What sustainable building technologies are becoming standard?",
            "How is remote work permanently affecting commercial real estate?",
        ],
    }

    @classmethod
    def industries(cls) -> List[str]:
        return list(cls.EXAMPLE_QUERIES.keys())

    @classmethod
    def example_queries(cls, industry: str) -> List[str]:
        for name, queries in cls.EXAMPLE_QUERIES.items():
            if name.lower() == (industry or "").strip().lower():
                return list(queries)
        return []
