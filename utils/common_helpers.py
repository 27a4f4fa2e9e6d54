from typing import Any, Optional


def normalize_ticker(ticker: Any) -> str:
    """Normalize ticker symbol to uppercase, stripped."""
    if ticker is None:
        return ""
    return str(ticker).strip().upper()


def as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return str(value)


def clean_str(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    v = value.strip()
    return v or None


def elapsed_ms(started: float, now: float) -> int:
    return int((now - started) * 1000)
