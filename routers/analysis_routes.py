# routers/analysis_routes.py
"""
FastAPI routes for multi-ticker AI market analysis.
"""
from __future__ import annotations

import logging
from typing import Any, AsyncGenerator, Dict, List

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import StreamingResponse

from config.settings import get_settings
from middleware.rate_limit import limiter
from schemas.market_analysis import AnalysisResult, AnalyzeRequest, DashboardSummary, StockInfo
from services.ai.analysis.dashboard import summarize_results
from services.ai.analysis.events import format_sse, progress_event, result_event
from services.ai.analysis.gemini_analysis_client import get_shared_analysis_client
from services.ai.analysis.orchestrator import AnalysisOrchestrator
from services.ai.analysis.universe import get_universe, is_known_ticker

logger = logging.getLogger(__name__)

router = APIRouter()


def _analysis_rate_limit() -> str:
    return get_settings().analysis_rate_limit


def build_orchestrator() -> AnalysisOrchestrator:
    try:
        client = get_shared_analysis_client()
    except ValueError as e:
        logger.error("analysis_client_unconfigured err=%s", e)
        raise HTTPException(status_code=503, detail="Analysis model is not configured")
    return AnalysisOrchestrator(client)


def _unknown_tickers(tickers: List[str]) -> List[str]:
    """Tickers outside the VN30 list; they are still analysed."""
    unknown = [t for t in tickers if not is_known_ticker(t)]
    if unknown:
        logger.info("analysis_unknown_tickers count=%s tickers=%s", len(unknown), ",".join(unknown))
    return unknown


# ============================================================================
# ENDPOINTS
# ============================================================================

@router.get("/universe", response_model=List[StockInfo])
async def get_ticker_universe():
    """VN30 constituents offered as the default selection."""
    return get_universe()


@router.post("/stream")
@limiter.limit(_analysis_rate_limit)
async def analysis_stream_endpoint(request: Request, req: AnalyzeRequest):
    """
    Run one analysis pass and stream it as Server-Sent Events.

    Events: ``meta`` (tickers, total, and any outside VN30), then ``result``
    + ``progress`` per ticker in request order, then ``done``. An empty ticker list yields ``meta`` and ``done`` only.
    """
    tickers = list(req.tickers)
    unknown = _unknown_tickers(tickers)
    orchestrator = build_orchestrator() if tickers else None

    async def event_stream() -> AsyncGenerator[str, None]:
        yield format_sse("meta", {"tickers": tickers, "total": len(tickers), "unknown": unknown})
        count = 0
        if orchestrator is not None:
            try:
                async for kind, payload in orchestrator.stream(tickers):
                    if kind == "result":
                        count += 1
                        yield result_event(payload)
                    else:
                        yield progress_event(payload)
            except Exception as exc:
                logger.exception("analysis_stream_failed tickers=%s", len(tickers))
                yield format_sse("error", {"error": type(exc).__name__})
                return
        yield format_sse("done", {"status": "ok", "count": count})

    headers = {
        "Cache-Control": "no-cache",
        "X-Accel-Buffering": "no",
    }
    return StreamingResponse(event_stream(), media_type="text/event-stream", headers=headers)


@router.post("")
@limiter.limit(_analysis_rate_limit)
async def analysis_batch_endpoint(request: Request, req: AnalyzeRequest) -> Dict[str, Any]:
    """Run one analysis pass and return every result once the pass completes."""
    tickers = list(req.tickers)
    results: List[AnalysisResult] = []
    if tickers:
        _unknown_tickers(tickers)
        orchestrator = build_orchestrator()
        try:
            results = await orchestrator.run(tickers)
        except Exception as e:
            logger.exception("analysis_batch_failed tickers=%s: %s", len(tickers), e)
            raise HTTPException(status_code=500, detail="Analysis failed")

    return {
        "results": [r.model_dump(mode="json") for r in results],
        "summary": summarize_results(results).model_dump(mode="json"),
    }


@router.post("/summary", response_model=DashboardSummary)
async def analysis_summary_endpoint(results: List[AnalysisResult]):
    """Sentiment and recommendation distribution for a result set."""
    return summarize_results(results)
