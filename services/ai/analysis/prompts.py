ANALYSIS_SYSTEM_PROMPT = """
You are a senior equity analyst and trader (CFA/CMT) covering the Vietnamese
stock market (HOSE, VN30 basket). You answer with plain text using exactly the
bracketed section tags you are given, in the given order, with no Markdown
headings and no extra tags.
""".strip()


ANALYSIS_USER_PROMPT_TEMPLATE = """
Analyse the stock {ticker} in depth.

Use Google Search to find the LATEST data (last 7 days) on:
1. Financial health: current or most recent P/E, EPS and ROE.
2. Technicals: price, volume and indicators.

Analysis requirements:
- FUNDAMENTAL: judge whether the stock is cheap or expensive from P/E and growth potential.
- TECHNICAL: beyond the trend, look for chart patterns (head and shoulders,
  cup and handle, double top/bottom, Wyckoff accumulation/distribution) and
  signals from RSI divergence, MACD and Bollinger Bands.

Return text with exactly these tags:

[SUMMARY]
Two or three sentences on the fundamental story (catalysts) and current market sentiment.

[PRICE]
Current price (VND).

[PE]
P/E ratio (e.g. 12.5). If no exact figure is found, estimate from the latest report.

[EPS]
EPS (e.g. 3,500).

[ROE]
ROE (e.g. 18%).

[TREND]
Main trend (e.g. short-term uptrend, sideways accumulation, downtrend).

[SUPPORT]
Key support zone.

[RESISTANCE]
Key resistance zone.

[TECH_ANALYSIS]
In-depth price action. Identify candlestick or chart patterns forming. Comment on volume (money flow).

[KEY_POINTS]
• Highlight 1 (fundamentals/news)
• Highlight 2 (technicals/money flow)
• Highlight 3 (risk or opportunity)

[VERDICT]
SENTIMENT: one of POSITIVE, NEGATIVE, NEUTRAL
RECOMMENDATION: one of BUY, SELL, HOLD, WATCH

Write the verdict words bare, e.g. "SENTIMENT: POSITIVE".
Do not use the "[" character anywhere except in the tags above.
""".strip()


def build_analysis_prompt(ticker: str) -> str:
    return ANALYSIS_USER_PROMPT_TEMPLATE.format(ticker=ticker)
