from text_cleanup import (
    clean_display_content,
    clean_source_title,
    condense_text,
    enhance_content_formatting,
    format_noise_content,
    format_signal_content,
    split_paragraphs,
    strip_html,
)


def test_enhance_content_formatting_drops_filler_and_punctuates():
    assert enhance_content_formatting("Additionally, revenue grew") == "revenue grew."
    assert enhance_content_formatting("Done!") == "Done!"


def test_signal_bullets_are_normalized():
    content = "- revenue grew 20% in 2024\nhttps://example.com\nConfidence: 80%\n* margins improved"
    assert format_signal_content(content) == "• Revenue grew 20% in 2024.\n• Margins improved."


def test_signal_short_paragraph_becomes_one_bullet():
    assert format_signal_content("Market size reached $4B [1]") == "• Market size reached $4B."


def test_signal_long_paragraph_split_into_sentences():
    content = (
        "Revenue grew strongly this year across all regions. "
        "Margins expanded as costs fell sharply in the second half. "
        "Outlook remains positive."
    )
    lines = format_signal_content(content).split("\n")
    assert len(lines) == 3
    assert all(line.startswith("• ") and line.endswith(".") for line in lines)


def test_signal_statistical_prefix_removed():
    assert format_signal_content("Statistical Analysis: 42% of buyers switched") == "• 42% of buyers switched."


def test_noise_placeholder_becomes_direct_access_sentence():
    content = (
        "Content summary not available for this resource. "
        "Please visit the source directly: https://example.com/paper.pdf"
    )
    assert format_noise_content(content) == (
        "This resource requires direct access to view its content. "
        "You can find it at: https://example.com/paper.pdf"
    )


def test_noise_collapses_repeated_sentences():
    content = "The market is growing quickly. The market is growing quickly. Prices are stable overall."
    assert format_noise_content(content) == "The market is growing quickly. Prices are stable overall."


def test_noise_strips_citations_and_reference_section():
    content = "Demand is rising in Europe [1] and Asia [2].\n\nReferences:\n[1] Foo https://a.example.com"
    assert format_noise_content(content) == "Demand is rising in Europe and Asia."


def test_noise_keeps_paragraph_breaks():
    content = (
        "The first paragraph describes the overall competitive landscape in detail.\n\n"
        "The second paragraph covers pricing pressure from new market entrants."
    )
    assert format_noise_content(content).count("\n\n") == 1


def test_noise_empty():
    assert format_noise_content("") == ""


def test_clean_display_content_strips_attribution_and_markup():
    content = "**Key finding**: according to perplexity, sales rose 10%\n- margins improved a lot"
    assert clean_display_content(content) == [
        "• Key finding: sales rose 10%.",
        "• margins improved a lot.",
    ]
    assert clean_display_content(None) == []


def test_clean_display_content_splits_long_single_block():
    content = (
        "Sales in the region rose sharply last year, driven by new product launches in retail, "
        "while margins held steady across all segments"
    )
    assert clean_display_content(content) == [
        "• Sales in the region rose sharply last year.",
        "• Driven by new product launches in retail.",
        "• While margins held steady across all segments.",
    ]


def test_condense_text_simplifies_phrases():
    assert condense_text("Growth is very strong due to the fact that demand rose") == (
        "Growth is strong because demand rose."
    )


def test_condense_text_truncates_without_boundary():
    condensed = condense_text("word " * 40)
    assert condensed.endswith("...")
    assert len(condensed) == 133


def test_clean_source_title_uses_word_boundaries():
    assert clean_source_title("Perplexity AI Market Report", "perplexity") == "Research Market Report"
    assert clean_source_title("Exa Search results", "exa") == "Research results"
    assert clean_source_title("Example Corp", "exa") == "Example Corp"
    assert clean_source_title("Anything", "other") == "Anything"


def test_strip_html_only_touches_markup():
    assert strip_html("<p>Hello <b>world</b></p>") == "Hello world"
    assert strip_html("a < b") == "a < b"
    assert strip_html(None) == ""


def test_split_paragraphs():
    assert split_paragraphs("a\n\n\n b \n\n") == ["a", "b"]
