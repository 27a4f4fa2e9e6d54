import json
import unittest
from unittest.mock import patch

from fastapi.testclient import TestClient

from config.settings import get_settings
from main import app
from middleware.rate_limit import limiter
from services.ai.analysis.gemini_analysis_client import RawAnalysis


class _FakeClient:
    def __init__(self, failing=()):
        self.failing = set(failing)
        self.calls = []

    async def analyze(self, ticker: str) -> RawAnalysis:
        self.calls.append(ticker)
        if ticker in self.failing:
            raise RuntimeError("upstream 500")
        return RawAnalysis(
            text="[SUMMARY]ok\n[VERDICT]\nSENTIMENT: NEGATIVE\nRECOMMENDATION: SELL",
            citations=[{"title": "VnExpress", "url": f"https://vnexpress.net/{ticker}"}],
        )


def _parse_sse(body: str):
    events = []
    for block in body.strip().split("\n\n"):
        lines = [ln for ln in block.split("\n") if ln]
        event = lines[0].replace("event: ", "")
        payload = json.loads(lines[1].replace("data: ", ""))
        events.append((event, payload))
    return events


class AnalysisRoutesTests(unittest.TestCase):
    def setUp(self):
        self._limiter_enabled = limiter.enabled
        limiter.enabled = False
        self.client = TestClient(app)

    def tearDown(self):
        limiter.enabled = self._limiter_enabled

    def test_universe_lists_vn30(self):
        resp = self.client.get("/api/analysis/universe")
        self.assertEqual(resp.status_code, 200)
        tickers = [s["ticker"] for s in resp.json()]
        self.assertEqual(len(tickers), 30)
        self.assertIn("VCB", tickers)

    def test_stream_emits_results_then_progress_then_done(self):
        fake = _FakeClient(failing={"XYZ"})
        with patch("routers.analysis_routes.get_shared_analysis_client", return_value=fake):
            resp = self.client.post("/api/analysis/stream", json={"tickers": ["vcb", "XYZ", "fpt"]})

        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.headers["content-type"].startswith("text/event-stream"))
        events = _parse_sse(resp.text)
        names = [name for name, _ in events]
        self.assertEqual(
            names,
            ["meta", "result", "progress", "result", "progress", "result", "progress", "done"],
        )
        self.assertEqual(
            events[0][1],
            {"tickers": ["VCB", "XYZ", "FPT"], "total": 3, "unknown": ["XYZ"]},
        )

        results = [payload for name, payload in events if name == "result"]
        self.assertEqual([r["ticker"] for r in results], ["VCB", "XYZ", "FPT"])
        self.assertEqual(results[0]["recommendation"], "SELL")
        self.assertEqual(results[1]["recommendation"], "WATCH")
        self.assertEqual(results[1]["sentiment"], "UNKNOWN")
        self.assertEqual(results[1]["sources"], [])

        progress = [payload["percent"] for name, payload in events if name == "progress"]
        self.assertAlmostEqual(progress[0], 100 / 3)
        self.assertEqual(progress[-1], 100.0)
        self.assertEqual(events[-1][1], {"status": "ok", "count": 3})

    def test_stream_with_no_tickers_skips_model(self):
        with patch("routers.analysis_routes.get_shared_analysis_client") as factory:
            resp = self.client.post("/api/analysis/stream", json={"tickers": ["  ", ""]})
        factory.assert_not_called()
        names = [name for name, _ in _parse_sse(resp.text)]
        self.assertEqual(names, ["meta", "done"])

    def test_unconfigured_model_returns_503(self):
        with patch(
            "routers.analysis_routes.get_shared_analysis_client",
            side_effect=ValueError("Missing GEMINI_API_KEY or GCP_PROJECT_ID"),
        ):
            resp = self.client.post("/api/analysis/stream", json={"tickers": ["VCB"]})
        self.assertEqual(resp.status_code, 503)

    def test_too_many_tickers_is_rejected(self):
        limit = get_settings().max_tickers_per_run
        tickers = [f"T{i}" for i in range(limit + 1)]
        resp = self.client.post("/api/analysis", json={"tickers": tickers})
        self.assertEqual(resp.status_code, 422)

    def test_batch_returns_results_and_summary(self):
        fake = _FakeClient()
        with patch("routers.analysis_routes.get_shared_analysis_client", return_value=fake):
            resp = self.client.post("/api/analysis", json={"tickers": ["HPG", "HPG", "MSN"]})

        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(fake.calls, ["HPG", "MSN"])
        self.assertEqual([r["ticker"] for r in body["results"]], ["HPG", "MSN"])
        self.assertEqual(body["summary"]["total"], 2)
        self.assertEqual(
            body["summary"]["recommendation"],
            [{"key": "SELL", "label": "Sell", "count": 2}],
        )

    def test_unknown_tickers_are_logged_and_still_analysed(self):
        fake = _FakeClient()
        with patch("routers.analysis_routes.get_shared_analysis_client", return_value=fake):
            with self.assertLogs("routers.analysis_routes", level="INFO") as logs:
                resp = self.client.post("/api/analysis", json={"tickers": ["VNM", "ABC"]})

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(fake.calls, ["VNM", "ABC"])
        self.assertTrue(any("analysis_unknown_tickers" in line and "ABC" in line for line in logs.output))
        self.assertFalse(any("VNM" in line for line in logs.output))

    def test_stream_meta_lists_no_unknown_for_vn30_tickers(self):
        with patch("routers.analysis_routes.get_shared_analysis_client", return_value=_FakeClient()):
            resp = self.client.post("/api/analysis/stream", json={"tickers": ["VCB", "FPT"]})
        meta = _parse_sse(resp.text)[0][1]
        self.assertEqual(meta["unknown"], [])

    def test_summary_endpoint(self):
        payload = [
            {"ticker": "VCB", "sentiment": "POSITIVE", "recommendation": "BUY"},
            {"ticker": "BID", "sentiment": "POSITIVE", "recommendation": "WATCH"},
            {"ticker": "XYZ"},
        ]
        resp = self.client.post("/api/analysis/summary", json=payload)
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["total"], 3)
        self.assertEqual(body["sentiment"], [{"key": "POSITIVE", "label": "Positive", "count": 2}])
        self.assertEqual(
            body["recommendation"],
            [
                {"key": "BUY", "label": "Buy", "count": 1},
                {"key": "WATCH", "label": "Watch", "count": 2},
            ],
        )

    def test_health_and_request_id(self):
        resp = self.client.get("/health", headers={"X-Request-ID": "abc123"})
        self.assertEqual(resp.json(), {"status": "ok"})
        self.assertEqual(resp.headers["X-Request-ID"], "abc123")


if __name__ == "__main__":
    unittest.main()
