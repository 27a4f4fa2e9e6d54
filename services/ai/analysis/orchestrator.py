"""Sequential multi-ticker analysis run.

Flow per run:
  1. For each ticker, in request order, call the model client (one call in flight)
  2. Parse the raw answer into an ``AnalysisResult``, or build the failure record
  3. Emit the result, then the progress ``(i+1)/N``
  4. Move to the next ticker; a failure never aborts the run
"""
from __future__ import annotations

import asyncio
import inspect
import logging
import time
from typing import Any, AsyncIterator, Callable, Iterable, List, Optional, Tuple, Union

from schemas.market_analysis import AnalysisProgress, AnalysisResult
from services.ai.analysis.gemini_analysis_client import AnalysisClient
from services.ai.analysis.response_extractor import build_analysis_result, failed_analysis_result
from utils.common_helpers import elapsed_ms

logger = logging.getLogger(__name__)

ResultCallback = Callable[[AnalysisResult], Any]
ProgressCallback = Callable[[AnalysisProgress], Any]
RunEvent = Tuple[str, Union[AnalysisResult, AnalysisProgress]]


async def _notify(callback: Optional[Callable[[Any], Any]], payload: Any) -> None:
    if callback is None:
        return
    out = callback(payload)
    if inspect.isawaitable(out):
        await out


class AnalysisOrchestrator:
    def __init__(self, client: AnalysisClient):
        self.client = client

    async def analyze_ticker(self, ticker: str) -> AnalysisResult:
        """Analyse one ticker; any client fault becomes the failure record."""
        started = time.perf_counter()
        try:
            # Awaited to completion: the client owns its deadline, so no call
            # outlives its ticker.
            raw = await self.client.analyze(ticker)
            result = build_analysis_result(ticker, raw.text, raw.citations)
        except asyncio.CancelledError:
            raise
        except (asyncio.TimeoutError, TimeoutError):
            logger.warning("analysis.ticker.timeout ticker=%s", ticker)
            return failed_analysis_result(ticker)
        except Exception:
            logger.exception("analysis.ticker.failed ticker=%s", ticker)
            return failed_analysis_result(ticker)

        logger.info(
            "analysis.ticker.done ticker=%s sentiment=%s recommendation=%s sources=%s elapsed_ms=%s",
            ticker,
            result.sentiment.value,
            result.recommendation.value,
            len(result.sources),
            elapsed_ms(started, time.perf_counter()),
        )
        return result

    async def stream(self, tickers: Iterable[str]) -> AsyncIterator[RunEvent]:
        """Yield ``("result", AnalysisResult)`` then ``("progress", AnalysisProgress)`` per ticker."""
        items = list(tickers or [])
        total = len(items)
        if total == 0:
            return

        started = time.perf_counter()
        logger.info("analysis.run.start total=%s", total)
        for i, ticker in enumerate(items):
            result = await self.analyze_ticker(ticker)
            yield "result", result
            yield "progress", AnalysisProgress(completed=i + 1, total=total)
        logger.info(
            "analysis.run.done total=%s elapsed_ms=%s",
            total,
            elapsed_ms(started, time.perf_counter()),
        )

    async def run(
        self,
        tickers: Iterable[str],
        on_result: Optional[ResultCallback] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> List[AnalysisResult]:
        results: List[AnalysisResult] = []
        async for kind, payload in self.stream(tickers):
            if kind == "result":
                results.append(payload)
                await _notify(on_result, payload)
            else:
                await _notify(on_progress, payload)
        return results
