from __future__ import annotations

import json
from typing import Any, Dict, Literal

from schemas.market_analysis import AnalysisProgress, AnalysisResult

SSEEventType = Literal[
    "meta",
    "result",
    "progress",
    "done",
    "error",
]


def format_sse(event: SSEEventType, data: Dict[str, Any]) -> str:
    payload = json.dumps(data, separators=(",", ":"), ensure_ascii=True)
    return f"event: {event}\ndata: {payload}\n\n"


def result_event(result: AnalysisResult) -> str:
    return format_sse("result", result.model_dump(mode="json"))


def progress_event(progress: AnalysisProgress) -> str:
    return format_sse("progress", progress.to_payload())
