from __future__ import annotations

import asyncio
import logging
import os
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

from config.settings import get_settings
from services.ai.analysis.prompts import ANALYSIS_SYSTEM_PROMPT, build_analysis_prompt
from utils.common_helpers import clean_str, elapsed_ms

logger = logging.getLogger(__name__)


@dataclass
class RawAnalysis:
    text: str
    citations: List[Dict[str, str]] = field(default_factory=list)


class AnalysisClient(Protocol):
    async def analyze(self, ticker: str) -> RawAnalysis:
        """Return the model's raw tagged text and its grounding citations."""


@dataclass
class GeminiAnalysisConfig:
    model: str
    use_web: bool
    temperature: float
    thinking_budget: int
    api_key: str
    project_id: str
    location: str
    # Transport-level deadline per generate_content call; None = SDK default
    timeout_s: Optional[float] = None

    @staticmethod
    def from_env() -> "GeminiAnalysisConfig":
        api_key = (os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY") or "").strip()
        project_id = (
            os.getenv("GCP_PROJECT_ID")
            or os.getenv("GOOGLE_CLOUD_PROJECT")
            or ""
        ).strip()
        if not api_key and not project_id:
            raise ValueError("Missing GEMINI_API_KEY or GCP_PROJECT_ID")
        return GeminiAnalysisConfig(
            model=os.getenv("GEMINI_MODEL") or "gemini-2.5-flash",
            use_web=os.getenv("GEMINI_USE_WEB", "1") == "1",
            temperature=float(os.getenv("AI_TEMPERATURE", "0.2")),
            thinking_budget=int(os.getenv("GEMINI_THINKING_BUDGET", "1024")),
            api_key=api_key,
            project_id=project_id,
            location=(
                os.getenv("GCP_LOCATION")
                or os.getenv("GOOGLE_CLOUD_LOCATION")
                or "us-central1"
            ).strip(),
            timeout_s=get_settings().ticker_timeout_s,
        )


class GeminiAnalysisClient:
    _thinking_unsupported_models: set = set()

    def __init__(self, config: Optional[GeminiAnalysisConfig] = None):
        self.config = config or GeminiAnalysisConfig.from_env()
        from google import genai

        client_kwargs: Dict[str, Any] = {"http_options": self._http_options()}
        if self.config.api_key:
            client_kwargs["api_key"] = self.config.api_key
        else:
            client_kwargs.update(
                vertexai=True,
                project=self.config.project_id,
                location=self.config.location,
            )
        self._client = genai.Client(**client_kwargs)

    def _http_options(self):
        from google.genai import types

        # The deadline lives in the HTTP transport so a timed-out call really
        # ends before the next ticker starts.
        if not self.config.timeout_s:
            return None
        return types.HttpOptions(timeout=int(self.config.timeout_s * 1000))

    @classmethod
    def _model_supports_thinking(cls, model: str) -> bool:
        m = (model or "").lower()
        if m in cls._thinking_unsupported_models:
            return False
        if "lite" in m:
            return False
        return "gemini-3" in m or "gemini-2.5" in m

    @classmethod
    def _blacklist_thinking(cls, model: str) -> None:
        cls._thinking_unsupported_models.add((model or "").lower())

    @staticmethod
    def _is_thinking_unsupported_error(exc: Exception) -> bool:
        text = str(exc).lower()
        return ("thinking" in text) and ("not supported" in text or "unsupported" in text)

    @staticmethod
    def _as_dict(node: Any) -> Any:
        if node is None or isinstance(node, (dict, list)):
            return node
        if hasattr(node, "model_dump"):
            return node.model_dump(mode="python")
        if hasattr(node, "to_dict"):
            return node.to_dict()
        return None

    @classmethod
    def extract_grounding_citations(cls, response: Any) -> List[Dict[str, str]]:
        """
        Raw ``{title, url}`` pairs from the first candidate's grounding chunks.

        Duplicates are kept; deduplication happens when the result is built.
        """
        payload = cls._as_dict(response)
        if not isinstance(payload, dict):
            return []
        candidates = payload.get("candidates") or []
        if not candidates or not isinstance(candidates[0], dict):
            return []
        metadata = candidates[0].get("grounding_metadata")
        if not isinstance(metadata, dict):
            return []
        chunks = metadata.get("grounding_chunks") or []

        citations: List[Dict[str, str]] = []
        for chunk in chunks:
            web = chunk.get("web") if isinstance(chunk, dict) else None
            if not isinstance(web, dict):
                continue
            url = clean_str(web.get("uri"))
            if not url:
                continue
            citations.append({"title": clean_str(web.get("title")) or url, "url": url})
        return citations

    def _build_config(self, *, disable_thinking: bool = False):
        from google.genai import types

        tools = [types.Tool(google_search=types.GoogleSearch())] if self.config.use_web else None
        thinking_config = None
        if (not disable_thinking) and self._model_supports_thinking(self.config.model):
            thinking_config = types.ThinkingConfig(thinking_budget=self.config.thinking_budget)

        return types.GenerateContentConfig(
            system_instruction=ANALYSIS_SYSTEM_PROMPT,
            thinking_config=thinking_config,
            tools=tools,
            temperature=self.config.temperature,
        )

    def _sync_analyze(self, ticker: str) -> RawAnalysis:
        from google.genai import types

        model = self.config.model
        contents = [
            types.Content(role="user", parts=[types.Part.from_text(text=build_analysis_prompt(ticker))])
        ]
        try:
            resp = self._client.models.generate_content(
                model=model,
                contents=contents,
                config=self._build_config(),
            )
        except Exception as exc:
            if not self._is_thinking_unsupported_error(exc):
                raise
            self._blacklist_thinking(model)
            logger.warning("gemini.analysis.retry_without_thinking model=%s (blacklisted)", model)
            resp = self._client.models.generate_content(
                model=model,
                contents=contents,
                config=self._build_config(disable_thinking=True),
            )
        return RawAnalysis(
            text=getattr(resp, "text", None) or "",
            citations=self.extract_grounding_citations(resp),
        )

    async def analyze(self, ticker: str) -> RawAnalysis:
        started = time.perf_counter()
        logger.info("gemini.analysis.start model=%s ticker=%s", self.config.model, ticker)
        raw = await asyncio.to_thread(self._sync_analyze, ticker)
        logger.info(
            "gemini.analysis.done ticker=%s elapsed_ms=%s chars=%s citations=%s",
            ticker,
            elapsed_ms(started, time.perf_counter()),
            len(raw.text),
            len(raw.citations),
        )
        return raw


# ── Singleton ────────────────────────────────────────────────────────────

_shared_client: Optional[GeminiAnalysisClient] = None
_shared_client_lock = threading.Lock()


def get_shared_analysis_client() -> GeminiAnalysisClient:
    global _shared_client
    if _shared_client is not None:
        return _shared_client
    with _shared_client_lock:
        if _shared_client is None:
            _shared_client = GeminiAnalysisClient()
    return _shared_client
