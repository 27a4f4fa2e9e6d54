"""
Runtime settings for the analysis service, read from the environment.

A local .env file is loaded first so development setups do not need to
export variables by hand.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()

DEFAULT_CORS_ORIGINS = "http://localhost:3000,http://localhost:5173"


def _split_csv(value: str) -> List[str]:
    return [part.strip() for part in (value or "").split(",") if part.strip()]


@dataclass
class AnalysisSettings:
    max_tickers_per_run: int = 30
    ticker_timeout_s: Optional[float] = 120.0
    cors_origins: List[str] = field(default_factory=lambda: _split_csv(DEFAULT_CORS_ORIGINS))
    analysis_rate_limit: str = "5/minute"

    @staticmethod
    def from_env() -> "AnalysisSettings":
        timeout = float(os.getenv("ANALYSIS_TICKER_TIMEOUT_S", "120"))
        return AnalysisSettings(
            max_tickers_per_run=max(1, int(os.getenv("MAX_TICKERS_PER_RUN", "30"))),
            # 0 or negative disables the per-ticker timeout
            ticker_timeout_s=timeout if timeout > 0 else None,
            cors_origins=_split_csv(os.getenv("CORS_ORIGINS", DEFAULT_CORS_ORIGINS)),
            analysis_rate_limit=os.getenv("RATE_LIMIT_ANALYSIS", "5/minute"),
        )


_settings: Optional[AnalysisSettings] = None


def get_settings() -> AnalysisSettings:
    global _settings
    if _settings is None:
        _settings = AnalysisSettings.from_env()
    return _settings
