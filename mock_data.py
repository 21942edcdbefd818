"""Offline datasets returned when a provider key is missing or a provider call fails."""

from __future__ import annotations

from typing import List

from models import Provider, ResearchItem


def perplexity_mock(query: str) -> List[ResearchItem]:
    entries = [
        (
            "Market Trends Analysis",
            f'Market analysis for "{query}" shows promising growth trends in the next quarter. '
            "Consumer research indicates a 23% increase in adoption rates across key demographics. "
            "The market valuation is currently estimated at $3.7B with projected YoY growth of 17.4%. "
            "Leading industry analysts predict continued expansion driven by technological advances "
            "and shifting consumer preferences toward sustainable solutions.",
            0.85,
            "https://example.com/market-report",
        ),
        (
            "Competitive Landscape Report",
            f'Competitor landscape for "{query}" is becoming more consolidated with 3 major players '
            "dominating 62% of market share. Emerging startups are disrupting traditional business "
            "models through innovative approaches to distribution and customer engagement. Venture "
            "capital investment in the sector reached $1.2B in Q2, a 34% increase from the previous "
            "year. Regional analysis shows particularly strong growth in APAC markets at 28% CAGR.",
            0.76,
            "https://example.com/research/market-trends",
        ),
        (
            "Industry Innovation Review",
            f'A comprehensive analysis of "{query}" reveals significant innovation across the value '
            "chain. Technology adoption has increased 34% YoY, with AI implementations showing the "
            "strongest growth at 42%. Market leaders are investing an average of 11.2% of revenue in "
            "R&D, compared to the industry average of 7.6%. These investments are primarily directed "
            "toward sustainability initiatives and digital transformation projects.",
            0.82,
            "https://example.com/industry-innovation",
        ),
        (
            "Consumer Behavior Insights",
            f'Recent survey data on "{query}" indicates a significant shift in consumer preferences. '
            "68% of respondents prioritize sustainable practices when making purchasing decisions, up "
            "from 53% last year. Brand loyalty metrics show that companies perceived as industry "
            "leaders in sustainability enjoy 2.4x higher retention rates. The 18-34 demographic shows "
            "the strongest alignment with these values, representing a critical target market for "
            "future growth.",
            0.79,
            "https://example.com/consumer-insights",
        ),
        (
            "Regulatory Landscape Overview",
            f'The regulatory environment surrounding "{query}" continues to evolve rapidly. New '
            "legislation in key markets will impact operational standards by Q3. Compliance "
            "requirements are expected to increase by 28%, with particular focus on environmental "
            "impact reporting. Forward-thinking organizations are already implementing governance "
            "frameworks that exceed minimum standards, positioning them advantageously for upcoming "
            "regulatory changes.",
            0.81,
            "https://example.com/regulatory-trends",
        ),
    ]
    return [
        ResearchItem(source=source, content=content, confidence=confidence, url=url,
                     fetched_by=Provider.PERPLEXITY)
        for source, content, confidence, url in entries
    ]


def exa_mock(query: str) -> List[ResearchItem]:
    entries = [
        (
            "Industry Research Report",
            f'Primary research indicates "{query}" market size is approximately $4.2B with CAGR of '
            "14.5%. The industry has seen significant growth in adoption across retail, "
            "manufacturing, and service sectors, with sustainability metrics showing positive impact "
            "on both cost reduction and consumer perception. Leading organizations implementing these "
            "practices have reported 15-20% improvements in resource utilization.",
            0.92,
            "https://www.example.com/market-research",
        ),
        (
            "Customer Satisfaction Survey",
            f'Recent survey data shows customer satisfaction for "{query}" products has increased by '
            "12% YoY. Consumer preference studies indicate that 68% of respondents consider "
            'sustainability practices a "very important" factor in purchasing decisions. Brand '
            "loyalty among environmentally conscious consumers shows 2.3x higher retention rates "
            "compared to the general market.",
            0.78,
            "https://www.example.com/market-research/customer-satisfaction",
        ),
        (
            "Technology Innovation Report",
            f'Industry analysts predict "{query}" sector disruption due to emerging technologies in '
            "Q3. Machine learning applications are revolutionizing how companies approach resource "
            "optimization, with early adopters reporting 30% efficiency improvements. Blockchain "
            "solutions for supply chain transparency have reached market maturity, with "
            "implementation costs dropping 45% over the past 18 months.",
            0.65,
            "https://www.example.com/industry-analysis/tech-disruption",
        ),
    ]
    return [
        ResearchItem(source=source, content=content, confidence=confidence, url=url,
                     fetched_by=Provider.EXA)
        for source, content, confidence, url in entries
    ]
