from __future__ import annotations

from collections import Counter
from typing import Iterable, List, Sequence, Tuple

from schemas.market_analysis import (
    AnalysisResult,
    DashboardBucket,
    DashboardSummary,
    Recommendation,
    Sentiment,
)

# Chart order; UNKNOWN sentiment is not charted.
SENTIMENT_BUCKETS: Tuple[Tuple[Sentiment, str], ...] = (
    (Sentiment.POSITIVE, "Positive"),
    (Sentiment.NEGATIVE, "Negative"),
    (Sentiment.NEUTRAL, "Neutral"),
)
RECOMMENDATION_BUCKETS: Tuple[Tuple[Recommendation, str], ...] = (
    (Recommendation.BUY, "Buy"),
    (Recommendation.SELL, "Sell"),
    (Recommendation.HOLD, "Hold"),
    (Recommendation.WATCH, "Watch"),
)


def _buckets(counts: Counter, order: Sequence[Tuple[object, str]]) -> List[DashboardBucket]:
    out: List[DashboardBucket] = []
    for member, label in order:
        n = counts.get(member, 0)
        if n > 0:
            out.append(DashboardBucket(key=member.value, label=label, count=n))
    return out


def summarize_results(results: Iterable[AnalysisResult]) -> DashboardSummary:
    items = list(results or [])
    sentiments = Counter(r.sentiment for r in items)
    recommendations = Counter(r.recommendation for r in items)
    return DashboardSummary(
        total=len(items),
        sentiment=_buckets(sentiments, SENTIMENT_BUCKETS),
        recommendation=_buckets(recommendations, RECOMMENDATION_BUCKETS),
    )
