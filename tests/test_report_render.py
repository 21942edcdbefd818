from models import ClassifiedData, Provider, ResearchItem
from report_render import build_sources, provider_label, render_markdown


def _sources():
    return [
        ResearchItem(source="Sector Notes", content="Old news about the sector in general terms.",
                     confidence=0.4, url="https://b.example.com", fetched_by=Provider.PERPLEXITY),
        ResearchItem(source="Battery Report", content="Costs fell 10% in 2024.", confidence=0.9,
                     url="https://a.example.com", fetched_by=Provider.EXA),
    ]


def test_build_sources_orders_by_confidence():
    entries = build_sources(_sources())
    assert [e["number"] for e in entries] == [1, 2]
    assert entries[0]["link"] == "[Battery Report](https://a.example.com)"
    assert entries[0]["provider"] == "Exa"
    assert entries[1]["percent"] == 40


def test_provider_label():
    assert provider_label("perplexity") == "Perplexity"
    assert provider_label(None) == "Unknown"


def test_render_markdown_sections():
    sources = _sources()
    result = ClassifiedData(
        signals=[sources[1].model_copy(update={"content": "- costs fell 10%", "confidence": 0.95})],
        noise=[sources[0]],
        strategic_decision="First paragraph.\n\nSecond paragraph.",
    )

    markdown = render_markdown("ev batteries", result, sources)

    assert markdown.startswith("# Market Research: ev batteries")
    assert "First paragraph.\n\nSecond paragraph." in markdown
    assert "## Signals (1)" in markdown
    assert "• costs fell 10%." in markdown
    assert "_Confidence: 95% · Source #1 · Exa_" in markdown
    assert "## Noise (1)" in markdown
    assert "_Confidence: 40% · Source #2 · Perplexity_" in markdown
    assert "1. [Battery Report](https://a.example.com) · Exa · 90%" in markdown
    assert "2. [Sector Notes](https://b.example.com) · Perplexity · 40%" in markdown


def test_render_markdown_empty_result():
    markdown = render_markdown("ev", ClassifiedData())
    assert "No strategic decision available." in markdown
    assert "_No signals identified._" in markdown
    assert "_No noise identified._" in markdown
    assert "_No sources available._" in markdown
