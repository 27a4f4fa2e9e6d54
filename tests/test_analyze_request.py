import unittest

from pydantic import ValidationError

from config.settings import get_settings
from schemas.market_analysis import AnalysisProgress, AnalyzeRequest
from services.ai.analysis.universe import get_universe, is_known_ticker


class AnalyzeRequestTests(unittest.TestCase):
    def test_tickers_are_normalized_and_deduplicated(self):
        req = AnalyzeRequest(tickers=[" vcb", "FPT", "", "VCB", "hpg "])
        self.assertEqual(req.tickers, ["VCB", "FPT", "HPG"])

    def test_empty_selection_is_allowed(self):
        self.assertEqual(AnalyzeRequest().tickers, [])
        self.assertEqual(AnalyzeRequest(tickers=[]).tickers, [])

    def test_selection_is_bounded(self):
        limit = get_settings().max_tickers_per_run
        with self.assertRaises(ValidationError):
            AnalyzeRequest(tickers=[f"T{i}" for i in range(limit + 1)])


class AnalysisProgressTests(unittest.TestCase):
    def test_fraction_and_percent(self):
        p = AnalysisProgress(completed=2, total=4)
        self.assertEqual(p.fraction, 0.5)
        self.assertEqual(p.percent, 50.0)
        self.assertEqual(
            p.to_payload(),
            {"completed": 2, "total": 4, "fraction": 0.5, "percent": 50.0},
        )

    def test_zero_total(self):
        self.assertEqual(AnalysisProgress(completed=0, total=0).fraction, 0.0)


class UniverseTests(unittest.TestCase):
    def test_universe_is_unique_vn30(self):
        tickers = [s.ticker for s in get_universe()]
        self.assertEqual(len(tickers), 30)
        self.assertEqual(len(set(tickers)), 30)

    def test_known_ticker_lookup(self):
        self.assertTrue(is_known_ticker(" vnm "))
        self.assertFalse(is_known_ticker("AAPL"))


if __name__ == "__main__":
    unittest.main()
