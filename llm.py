"""Chat model construction and response helpers shared by the LLM stages."""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, Optional

from langchain_openai import ChatOpenAI

from config import ResearchConfig

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


def build_chat_model(
    temperature: float,
    max_tokens: int,
    json_mode: bool = False,
    api_key: Optional[str] = None,
    model_name: Optional[str] = None,
) -> ChatOpenAI:
    """Create a ChatOpenAI client configured for one pipeline stage."""
    llm_params: Dict[str, Any] = {
        "api_key": api_key or ResearchConfig.OPENAI_API_KEY,
        "model": model_name or ResearchConfig.OPENAI_MODEL,
        "temperature": temperature,
        "max_tokens": max_tokens,
        "timeout": ResearchConfig.LLM_TIMEOUT_SECONDS,
    }
    if json_mode:
        llm_params["response_format"] = ResearchConfig.RESPONSE_FORMAT
    if ResearchConfig.OPENAI_ORGANIZATION:
        llm_params["openai_organization"] = ResearchConfig.OPENAI_ORGANIZATION
    return ChatOpenAI(**llm_params)


def invoke_text(llm: Any, system_prompt: str, user_prompt: str) -> str:
    """Send a system/user exchange and return the reply text ('' when empty)."""
    response = llm.invoke([("system", system_prompt), ("human", user_prompt)])
    content = getattr(response, "content", response)
    if isinstance(content, list):
        content = "".join(
            part.get("text", "") if isinstance(part, dict) else str(part) for part in content
        )
    return (content or "").strip()


def parse_json_object(text: str) -> Dict[str, Any]:
    """Parse a JSON object reply, tolerating Markdown code fences.

    Raises:
        ValueError: when the reply is not a JSON object.
    """
    cleaned = _FENCE_RE.sub("", (text or "").strip())
    data = json.loads(cleaned or "{}")
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
    return data
