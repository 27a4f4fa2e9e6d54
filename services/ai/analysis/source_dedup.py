from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from schemas.market_analysis import MAX_SOURCES, Source
from utils.common_helpers import clean_str


def _citation_fields(item: Any) -> Optional[Dict[str, Optional[str]]]:
    """Pull (url, title) out of the shapes citations arrive in."""
    if item is None:
        return None
    if isinstance(item, Source):
        return {"url": item.url, "title": item.title}
    if not isinstance(item, dict):
        return None
    # Grounding chunk: {"web": {"uri": ..., "title": ...}}
    web = item.get("web")
    if isinstance(web, dict):
        item = web
    url = clean_str(item.get("url")) or clean_str(item.get("uri"))
    return {"url": url, "title": clean_str(item.get("title"))}


def dedupe_sources(citations: Optional[Iterable[Any]], limit: int = MAX_SOURCES) -> List[Source]:
    """
    Turn a raw citation list into at most ``limit`` sources.

    Entries without a URL are dropped, duplicates by exact URL keep the
    first-seen title, and first-seen order is preserved.
    """
    out: List[Source] = []
    if not citations or limit <= 0:
        return out
    seen_urls: set[str] = set()
    for item in citations:
        fields = _citation_fields(item)
        if not fields or not fields["url"]:
            continue
        url = fields["url"]
        if url in seen_urls:
            continue
        seen_urls.add(url)
        out.append(Source(title=fields["title"] or url, url=url))
        if len(out) >= limit:
            break
    return out
