from confidence import cap_sources, clamp, dedupe_by_url, percent, rank_by_confidence
from models import ResearchItem


def _item(source, confidence, url=None):
    return ResearchItem(source=source, content=f"{source} content", confidence=confidence, url=url)


def test_clamp_bounds_and_defaults():
    assert clamp(1.4) == 1.0
    assert clamp(-0.2) == 0.0
    assert clamp("0.25") == 0.25
    assert clamp("not a number") == 0.5
    assert clamp(None, default=0.3) == 0.3
    assert clamp(float("nan")) == 0.5


def test_rank_is_stable_for_ties():
    items = [_item("a", 0.5), _item("b", 0.9), _item("c", 0.5)]
    assert [i.source for i in rank_by_confidence(items)] == ["b", "a", "c"]


def test_cap_sources_keeps_order_within_limit():
    items = [_item("a", 0.1), _item("b", 0.9)]
    assert [i.source for i in cap_sources(items, 5)] == ["a", "b"]


def test_cap_sources_keeps_most_confident():
    items = [_item(str(n), n / 10) for n in range(10)]
    capped = cap_sources(items, 3)
    assert [i.source for i in capped] == ["9", "8", "7"]
    assert cap_sources(items, 0) == []


def test_dedupe_keeps_higher_confidence_in_first_position():
    items = [
        _item("low", 0.4, "https://example.com/report/"),
        _item("other", 0.6, "https://example.com/other"),
        _item("high", 0.9, "HTTPS://EXAMPLE.COM/report"),
    ]
    deduped = dedupe_by_url(items)
    assert [i.source for i in deduped] == ["high", "other"]


def test_dedupe_never_merges_missing_urls():
    items = [_item("a", 0.5), _item("b", 0.5, "#"), _item("c", 0.5, "#"), _item("d", 0.5, "")]
    assert len(dedupe_by_url(items)) == 4


def test_percent_rounds():
    assert percent(0.854) == 85
    assert percent(0.855) in (85, 86)
    assert percent(1.7) == 100
