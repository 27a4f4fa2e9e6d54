"""
Parsing of the tagged free-text analysis returned by the model.

The model answers in natural language with bracketed section markers:

    [SUMMARY] ... [PRICE] ... [PE] ... [EPS] ... [ROE] ... [TREND] ...
    [SUPPORT] ... [RESISTANCE] ... [TECH_ANALYSIS] ... [KEY_POINTS] ...
    [VERDICT]
    SENTIMENT: POSITIVE|NEGATIVE|NEUTRAL
    RECOMMENDATION: BUY|SELL|HOLD|WATCH

Every function here is total over strings: a missing or malformed marker
resolves to a placeholder ("N/A", UNKNOWN, WATCH, empty tuple), never an
exception.
"""
from __future__ import annotations

import re
from functools import lru_cache
from typing import Any, Iterable, List, Optional, Tuple

from schemas.market_analysis import (
    MAX_KEY_POINTS,
    NOT_AVAILABLE,
    UNKNOWN_TREND,
    AnalysisResult,
    Recommendation,
    Sentiment,
)
from services.ai.analysis.source_dedup import dedupe_sources
from utils.common_helpers import as_text

SECTION_TAGS = (
    "SUMMARY",
    "PRICE",
    "PE",
    "EPS",
    "ROE",
    "TREND",
    "SUPPORT",
    "RESISTANCE",
    "TECH_ANALYSIS",
    "KEY_POINTS",
    "VERDICT",
)

BULLET_MARKERS = ("•", "-")

# Checked in order; first hit wins.
SENTIMENT_MARKERS: Tuple[Tuple[str, Sentiment], ...] = (
    ("SENTIMENT: POSITIVE", Sentiment.POSITIVE),
    ("SENTIMENT: NEGATIVE", Sentiment.NEGATIVE),
    ("SENTIMENT: NEUTRAL", Sentiment.NEUTRAL),
)
RECOMMENDATION_MARKERS: Tuple[Tuple[str, Recommendation], ...] = (
    ("RECOMMENDATION: BUY", Recommendation.BUY),
    ("RECOMMENDATION: SELL", Recommendation.SELL),
    ("RECOMMENDATION: HOLD", Recommendation.HOLD),
)

EMPTY_RESPONSE_TEXT = "Unable to retrieve analysis data."
FAILED_SUMMARY = "Analysis failed."
FAILED_TECHNICALS = "Technical data unavailable."


@lru_cache(maxsize=64)
def _section_pattern(tag: str) -> "re.Pattern[str]":
    # Content runs until the next "[" or the end of the document.
    return re.compile(r"\[" + re.escape(tag) + r"\](.*?)(?=\[|\Z)", re.DOTALL)


def extract_tagged_section(text: Any, tag: str) -> str:
    """Return the trimmed content after ``[tag]``, or ``"N/A"`` when the tag is absent."""
    body = as_text(text)
    if not body or not tag:
        return NOT_AVAILABLE
    match = _section_pattern(tag).search(body)
    if not match:
        return NOT_AVAILABLE
    return match.group(1).strip()


def extract_key_points(text: Any) -> List[str]:
    section = extract_tagged_section(text, "KEY_POINTS")
    points: List[str] = []
    for line in section.splitlines():
        stripped = line.strip()
        if not stripped.startswith(BULLET_MARKERS):
            continue
        points.append(stripped[1:].strip())
        if len(points) >= MAX_KEY_POINTS:
            break
    return points


def extract_sentiment(text: Any) -> Sentiment:
    body = as_text(text)
    for marker, sentiment in SENTIMENT_MARKERS:
        if marker in body:
            return sentiment
    return Sentiment.UNKNOWN


def extract_recommendation(text: Any) -> Recommendation:
    body = as_text(text)
    for marker, recommendation in RECOMMENDATION_MARKERS:
        if marker in body:
            return recommendation
    return Recommendation.WATCH


def build_analysis_result(
    ticker: str,
    text: Any,
    citations: Optional[Iterable[Any]] = None,
) -> AnalysisResult:
    """Assemble the full record for one ticker from the model's raw answer."""
    body = as_text(text).strip() or EMPTY_RESPONSE_TEXT
    return AnalysisResult(
        ticker=ticker,
        summary=extract_tagged_section(body, "SUMMARY"),
        currentPrice=extract_tagged_section(body, "PRICE"),
        pe=extract_tagged_section(body, "PE"),
        eps=extract_tagged_section(body, "EPS"),
        roe=extract_tagged_section(body, "ROE"),
        trend=extract_tagged_section(body, "TREND"),
        support=extract_tagged_section(body, "SUPPORT"),
        resistance=extract_tagged_section(body, "RESISTANCE"),
        technicalAnalysis=extract_tagged_section(body, "TECH_ANALYSIS"),
        keyPoints=extract_key_points(body),
        sentiment=extract_sentiment(body),
        recommendation=extract_recommendation(body),
        sources=dedupe_sources(citations),
    )


def failed_analysis_result(ticker: str) -> AnalysisResult:
    return AnalysisResult(
        ticker=ticker,
        summary=FAILED_SUMMARY,
        currentPrice=NOT_AVAILABLE,
        pe=NOT_AVAILABLE,
        eps=NOT_AVAILABLE,
        roe=NOT_AVAILABLE,
        trend=UNKNOWN_TREND,
        support=NOT_AVAILABLE,
        resistance=NOT_AVAILABLE,
        technicalAnalysis=FAILED_TECHNICALS,
        keyPoints=(),
        sentiment=Sentiment.UNKNOWN,
        recommendation=Recommendation.WATCH,
        sources=(),
    )
