"""
Pure views over a list of articles.

None of these fetch; they operate on whatever the RSS client returned.
"""
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

from ..config.constants import SPORT_NEWS_KEYWORDS
from .models import Article


def search_articles(articles: Iterable[Article], query: str) -> list[Article]:
    """
    Case-insensitive substring search over title, description, author and
    categories. A blank query matches everything.
    """
    term = query.strip().lower()
    if not term:
        return list(articles)

    return [
        a
        for a in articles
        if term in a.title.lower()
        or term in a.description.lower()
        or term in a.author.lower()
        or any(term in c.lower() for c in a.categories)
    ]


def filter_by_category(articles: Iterable[Article], category: str) -> list[Article]:
    """Articles with a category containing ``category`` (case-insensitive)."""
    term = category.strip().lower()
    return [a for a in articles if any(term in c.lower() for c in a.categories)]


def filter_recent(
    articles: Iterable[Article],
    days: int = 7,
    now: Optional[datetime] = None,
) -> list[Article]:
    """Articles published within the last ``days`` days."""
    now = now or datetime.now(timezone.utc)
    cutoff = now - timedelta(days=days)
    return [a for a in articles if a.published_at >= cutoff]


def featured(articles: Iterable[Article], count: int = 5) -> list[Article]:
    """The ``count`` most recent articles, newest first."""
    ordered = sorted(articles, key=lambda a: a.published_at, reverse=True)
    return ordered[:count]


def filter_by_sport(articles: Iterable[Article], sport: str) -> list[Article]:
    """
    Articles whose title or description mentions a keyword for ``sport``.

    Unknown sports fall back to matching the sport name itself.
    """
    keywords = SPORT_NEWS_KEYWORDS.get(sport.lower(), [sport.lower()])
    matches = []
    for article in articles:
        text = f"{article.title} {article.description}".lower()
        if any(k in text for k in keywords):
            matches.append(article)
    return matches
