import json
from unittest.mock import Mock, patch

from config import ResearchConfig
from models import Provider, ResearchItem
from signal_classifier import (
    SIMPLE_DECISION,
    classify_data,
    classify_data_legacy,
    derive_query_from_research_data,
    format_items,
    mock_classification,
    process_research_data,
    simple_categorization,
    simple_categorize_chunk,
)


def _item(n, confidence, url=True, content=None):
    return ResearchItem(
        source=f"S{n}",
        content=content or f"Finding number {n} about the market.",
        confidence=confidence,
        url=f"https://example.com/{n}" if url else None,
        fetched_by=Provider.EXA,
    )


def _llm(*replies):
    llm = Mock()
    llm.invoke.side_effect = [Mock(content=reply if isinstance(reply, str) else json.dumps(reply))
                              for reply in replies]
    return llm


def test_mock_classification_uses_confident_top_share():
    items = [_item(0, 0.9), _item(1, 0.8), _item(2, 0.4), _item(3, 0.7, url=False), _item(4, 0.3)]
    result = mock_classification(items, "solar")
    assert [i.source for i in result.signals] == ["S0", "S1"]
    assert [i.source for i in result.noise] == ["S2", "S4"]
    assert '"solar"' in result.strategic_decision


def test_mock_classification_without_confident_items():
    result = mock_classification([_item(0, 0.3), _item(1, 0.2)], "solar")
    assert result.signals == []
    assert [i.source for i in result.noise] == ["S1", "S0"]
    assert result.strategic_decision.startswith("Not enough high-confidence data")


def test_simple_categorization_thresholds():
    items = [_item(n, n / 10) for n in range(10)]
    result = simple_categorization(items)
    assert [i.source for i in result.signals] == ["S9", "S8", "S7", "S6"]
    assert len(result.noise) == 6
    assert result.strategic_decision == SIMPLE_DECISION


def test_simple_categorization_accepts_substantive_items():
    long_text = "Detailed market sizing " * 10
    result = simple_categorization([_item(0, 0.2, content=long_text), _item(1, 0.2)])
    assert [i.source for i in result.signals] == ["S0"]


def test_simple_categorize_chunk():
    result = simple_categorize_chunk([_item(0, 0.2), _item(1, 0.9)])
    assert [i.source for i in result.signals] == ["S1"]
    assert [i.source for i in result.noise] == ["S0"]


def test_derive_query_from_research_data():
    items = [_item(0, 0.5, content="battery battery battery storage storage grid this that")]
    assert derive_query_from_research_data(items) == "Latest market trends about battery storage grid"
    assert derive_query_from_research_data([]) is None


def test_format_items_numbers_from_zero():
    text = format_items([_item(0, 0.5), _item(1, 0.5, url=False)])
    assert text.startswith("Item 0:\nSource: S0")
    assert "Item 1:" in text
    assert "URL: N/A" in text
    assert "From: exa" in text


def test_process_research_data_maps_llm_output():
    items = [
        _item(0, 0.6),
        _item(1, 0.5, content="competitors are consolidating across the region quickly"),
        _item(2, 0.4),
    ]
    llm = _llm({
        "signals": [{"index": 0, "content": "- growth is 20%", "reason": "metric"}],
        "noise": [{"index": 1, "content": "", "reason": "vague"},
                  {"index": 2, "content": "Rewritten noise.", "reason": "old"}],
        "statistics": ["20% growth"],
        "strategicDecision": "Invest now.",
    })

    result = process_research_data(items, "grid storage", llm=llm)

    prompt = llm.invoke.call_args[0][0][1][1]
    assert prompt.startswith("Query: grid storage")
    assert "Item 2:" in prompt

    signal, statistic = result.signals
    assert signal.content == "• Growth is 20%."
    assert signal.confidence == ResearchConfig.PROCESSED_SIGNAL_CONFIDENCE
    assert statistic.source == "Statistical Analysis: S0"
    assert statistic.content == "20% growth"
    assert statistic.url == "https://example.com/0"
    assert statistic.confidence == ResearchConfig.STATISTIC_CONFIDENCE

    assert [n.content for n in result.noise] == [
        "Competitors are consolidating across the region quickly.",
        "Rewritten noise.",
    ]
    assert all(n.confidence == ResearchConfig.PROCESSED_NOISE_CONFIDENCE for n in result.noise)
    assert result.strategic_decision == "Invest now."


def test_process_research_data_ignores_out_of_range_indices():
    llm = _llm({"signals": [{"index": 7}], "noise": [{"index": 0}]})
    result = process_research_data([_item(0, 0.5)], "q", llm=llm)
    assert result.signals == []
    assert [n.source for n in result.noise] == ["S0"]
    assert result.strategic_decision == 'Insufficient data to provide a strategic decision for "q".'


@patch.object(ResearchConfig, "MAX_ITEMS_PER_REQUEST", 2)
def test_process_research_data_offsets_chunks_and_simplifies_tail():
    items = [_item(n, 0.9) for n in range(5)]
    llm = _llm(
        {"signals": [{"index": 0}], "noise": [{"index": 1}], "strategicDecision": "First."},
        {"signals": [{"index": 0}], "noise": [{"index": 1}], "strategicDecision": "Second."},
    )

    result = process_research_data(items, "q", llm=llm)

    assert llm.invoke.call_count == 2
    assert [s.source for s in result.signals] == ["S0", "S2", "S4"]
    assert [n.source for n in result.noise] == ["S1", "S3"]
    assert result.signals[1].content == items[2].content
    assert result.signals[2].confidence == 0.9
    assert result.strategic_decision == "First."


def test_process_research_data_without_key_is_simple():
    result = process_research_data([_item(0, 0.9)], "q", api_key="")
    assert [s.source for s in result.signals] == ["S0"]
    assert result.strategic_decision == SIMPLE_DECISION


def test_classify_data_without_key_uses_mock():
    result = classify_data([_item(0, 0.9), _item(1, 0.2)], "q", api_key="")
    assert [s.source for s in result.signals] == ["S0"]


def test_classify_data_with_no_items():
    result = classify_data([], "q", llm=Mock())
    assert result.is_empty
    assert result.strategic_decision.startswith("Not enough high-confidence data")


def test_classify_data_falls_back_to_legacy():
    items = [_item(0, 0.9, content="Additionally, sales grew"), _item(1, 0.3)]
    llm = _llm(
        "not json",
        {"signals": [{"index": 0, "reason": "r"}], "noise": [{"index": 1, "reason": "r"}],
         "strategicDecision": "Legacy call."},
    )

    result = classify_data(items, "q", llm=llm, api_key="")

    assert llm.invoke.call_count == 2
    assert [s.content for s in result.signals] == ["sales grew."]
    assert [n.source for n in result.noise] == ["S1"]
    assert result.strategic_decision == "Legacy call."


def test_legacy_missing_fields_uses_mock():
    llm = _llm({"strategicDecision": "x"})
    result = classify_data_legacy([_item(0, 0.9)], "q", llm=llm)
    assert [s.source for s in result.signals] == ["S0"]
    assert "q" in result.strategic_decision


def test_legacy_llm_error_uses_mock():
    llm = Mock()
    llm.invoke.side_effect = RuntimeError("boom")
    result = classify_data_legacy([_item(0, 0.9)], "q", llm=llm)
    assert [s.source for s in result.signals] == ["S0"]
