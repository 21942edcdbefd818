from citations import (
    Citation,
    citations_from_urls,
    clean_url,
    extract_references_section,
    extract_urls,
    find_numbered_citations,
    merge_unique,
    parse_reference_entries,
)


def test_citation_from_api_normalizes_strings_and_dicts():
    assert Citation.from_api(" https://a.example.com ") == Citation(url="https://a.example.com")
    assert Citation.from_api({"url": "https://b.example.com", "title": "B", "snippet": "text"}) == Citation(
        url="https://b.example.com", title="B", text="text"
    )
    assert Citation.from_api("") is None
    assert Citation.from_api(42) is None


def test_clean_url_strips_trailing_punctuation_and_brackets():
    assert clean_url("https://example.com/report.") == "https://example.com/report"
    assert clean_url("https://example.com/report),") == "https://example.com/report"
    assert clean_url("https://en.example.org/wiki/Foo_(bar)") == "https://en.example.org/wiki/Foo_(bar)"


def test_extract_urls_is_ordered_and_unique():
    content = "See https://one.example.com/a and https://two.example.com/b then https://one.example.com/a again."
    urls = extract_urls(content)
    assert urls[:2] == ["https://one.example.com/a", "https://two.example.com/b"]
    assert len(urls) == 2


def test_extract_urls_from_markdown_link():
    urls = extract_urls("Read [the report](https://example.com/report) today")
    assert "https://example.com/report" in urls


def test_references_section_found_by_heading():
    content = "Body text [1].\n\nReferences:\n[1] Report. Publisher. URL: https://example.com/r"
    assert extract_references_section(content).strip() == "[1] Report. Publisher. URL: https://example.com/r"


def test_references_heading_requires_word_boundary():
    assert extract_references_section("User preferences:\nnothing cited here") == ""


def test_numbered_citations():
    found = find_numbered_citations("Growth hit 20% [1] in Europe. Costs fell [2] sharply.")
    assert [num for num, _ in found] == ["1", "2"]


def test_parse_reference_entries():
    section = (
        "[1] Market Report. Acme Research. URL: https://example.com/market\n"
        "[2] Untitled industry note\n"
    )
    entries = parse_reference_entries(section)
    assert entries[0] == Citation(
        url="https://example.com/market",
        title="Market Report. Acme Research.",
        text="Referenced as [1] in the analysis",
    )
    assert entries[1].url == ""
    assert entries[1].title == "Untitled industry note"

    extra = parse_reference_entries(section, label="Additional source [{num}]")
    assert extra[1].text == "Additional source [2]"


def test_citations_from_urls_guesses_titles():
    content = "Global Outlook 2025: https://example.com/outlook and https://example.com/bare"
    citations = citations_from_urls(content, ["https://example.com/outlook", "https://example.com/bare"])
    assert citations[0].title == "Global Outlook 2025"
    assert citations[0].text == "Information from Global Outlook 2025"
    assert citations[1].title == "Source 2"


def test_merge_unique_skips_known_and_empty_urls():
    primary = [Citation(url="https://a.example.com")]
    extra = [Citation(url="https://a.example.com"), Citation(url=""), Citation(url="https://b.example.com")]
    merged = merge_unique(primary, extra)
    assert [c.url for c in merged] == ["https://a.example.com", "https://b.example.com"]
