from __future__ import annotations

from collections.abc import Sequence
from typing import Any

MAX_SUMMARY_LENGTH = 300
ELLIPSIS = "…"


def summarize_news(articles: Sequence[Any] | None, max_length: int = MAX_SUMMARY_LENGTH) -> str:
    if not articles:
        return ""
    combined = " ".join(_description(article) for article in articles)
    if len(combined) > max_length:
        return combined[:max_length] + ELLIPSIS
    return combined


def _description(article: Any) -> str:
    # Accepts NewsItem models as well as raw dicts.
    if isinstance(article, dict):
        value = article.get("description")
    else:
        value = getattr(article, "description", None)
    return str(value or "")
