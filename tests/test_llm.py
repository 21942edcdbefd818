from unittest.mock import Mock, patch

import pytest

from config import ResearchConfig
from llm import build_chat_model, invoke_text, parse_json_object


def test_parse_json_object_strips_fences():
    assert parse_json_object('```json\n{"signals": []}\n```') == {"signals": []}
    assert parse_json_object("") == {}


def test_parse_json_object_rejects_non_objects():
    with pytest.raises(ValueError):
        parse_json_object("[1, 2]")
    with pytest.raises(ValueError):
        parse_json_object("not json")


def test_invoke_text_joins_content_parts():
    llm = Mock()
    llm.invoke.return_value = Mock(content=[{"type": "text", "text": "Hello "}, "world "])
    assert invoke_text(llm, "sys", "user") == "Hello world"
    llm.invoke.assert_called_once_with([("system", "sys"), ("human", "user")])


@patch("llm.ChatOpenAI")
def test_build_chat_model_json_mode(mock_chat):
    build_chat_model(0.2, 2000, json_mode=True, api_key="sk-test")
    kwargs = mock_chat.call_args.kwargs
    assert kwargs["api_key"] == "sk-test"
    assert kwargs["model"] == ResearchConfig.OPENAI_MODEL
    assert kwargs["max_tokens"] == 2000
    assert kwargs["response_format"] == {"type": "json_object"}


@patch("llm.ChatOpenAI")
def test_build_chat_model_plain_text(mock_chat):
    build_chat_model(0.3, 500, api_key="sk-test")
    assert "response_format" not in mock_chat.call_args.kwargs
