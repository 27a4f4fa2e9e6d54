from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import List, Tuple

from pydantic import BaseModel, Field, field_validator

from config.settings import get_settings
from utils.common_helpers import normalize_ticker


class Sentiment(str, Enum):
    POSITIVE = "POSITIVE"
    NEGATIVE = "NEGATIVE"
    NEUTRAL = "NEUTRAL"
    UNKNOWN = "UNKNOWN"


class Recommendation(str, Enum):
    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"
    WATCH = "WATCH"  # fallback when no explicit verdict


MAX_KEY_POINTS = 3
MAX_SOURCES = 5
NOT_AVAILABLE = "N/A"
UNKNOWN_TREND = "Unknown"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Source(BaseModel):
    title: str
    url: str

    model_config = {"frozen": True}


class AnalysisResult(BaseModel):
    """One ticker's analysis as rendered by the dashboard. Never mutated after creation."""

    ticker: str
    summary: str = NOT_AVAILABLE
    currentPrice: str = NOT_AVAILABLE
    pe: str = NOT_AVAILABLE
    eps: str = NOT_AVAILABLE
    roe: str = NOT_AVAILABLE
    trend: str = UNKNOWN_TREND
    support: str = NOT_AVAILABLE
    resistance: str = NOT_AVAILABLE
    technicalAnalysis: str = NOT_AVAILABLE
    keyPoints: Tuple[str, ...] = Field(default_factory=tuple, max_length=MAX_KEY_POINTS)
    sentiment: Sentiment = Sentiment.UNKNOWN
    recommendation: Recommendation = Recommendation.WATCH
    sources: Tuple[Source, ...] = Field(default_factory=tuple, max_length=MAX_SOURCES)
    lastUpdated: datetime = Field(default_factory=_utcnow)

    model_config = {"frozen": True}


class StockInfo(BaseModel):
    ticker: str
    name: str
    sector: str

    model_config = {"frozen": True}


class AnalyzeRequest(BaseModel):
    tickers: List[str] = Field(default_factory=list)

    @field_validator("tickers")
    @classmethod
    def _normalize_tickers(cls, v: List[str]) -> List[str]:
        out: List[str] = []
        seen: set[str] = set()
        for raw in v or []:
            ticker = normalize_ticker(raw)
            if not ticker or ticker in seen:
                continue
            seen.add(ticker)
            out.append(ticker)
        limit = get_settings().max_tickers_per_run
        if len(out) > limit:
            raise ValueError(f"At most {limit} tickers per analysis run")
        return out


class AnalysisProgress(BaseModel):
    completed: int
    total: int

    model_config = {"frozen": True}

    @property
    def fraction(self) -> float:
        if self.total <= 0:
            return 0.0
        return self.completed / self.total

    @property
    def percent(self) -> float:
        return self.fraction * 100.0

    def to_payload(self) -> dict:
        return {
            "completed": self.completed,
            "total": self.total,
            "fraction": self.fraction,
            "percent": self.percent,
        }


class DashboardBucket(BaseModel):
    key: str
    label: str
    count: int


class DashboardSummary(BaseModel):
    total: int
    sentiment: List[DashboardBucket]
    recommendation: List[DashboardBucket]
