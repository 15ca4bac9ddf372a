"""
Constants for the Wolfpack feed layer.

Contains sport definitions, ESPN endpoint paths, cache TTLs and news keywords.
"""
from enum import Enum
from typing import Final


# =============================================================================
# SPORTS
# =============================================================================
class Sport(str, Enum):
    """Sports tracked on the fan hub."""

    FOOTBALL = "football"
    BASKETBALL = "basketball"
    BASEBALL = "baseball"


class GameStatus(str, Enum):
    """Lifecycle of a game between polls."""

    UPCOMING = "upcoming"
    LIVE = "live"
    COMPLETED = "completed"


# ESPN path segment for each sport (men's programs)
SPORT_PATHS: Final[dict[Sport, str]] = {
    Sport.FOOTBALL: "football/college-football",
    Sport.BASKETBALL: "basketball/mens-college-basketball",
    Sport.BASEBALL: "baseball/college-baseball",
}

# ESPN status.type.state -> GameStatus
ESPN_STATE_MAP: Final[dict[str, GameStatus]] = {
    "pre": GameStatus.UPCOMING,
    "in": GameStatus.LIVE,
    "post": GameStatus.COMPLETED,
}


# =============================================================================
# UPSTREAMS
# =============================================================================
ESPN_SITE_API: Final[str] = "https://site.api.espn.com/apis/site/v2/sports"
NC_STATE_TEAM_ID: Final[str] = "152"
ACC_GROUP_ID: Final[str] = "1"
DEFAULT_FEED_URL: Final[str] = "https://www.backingthepack.com/rss/current.xml"


# =============================================================================
# CACHE TTLS (seconds)
# =============================================================================
SCORES_TTL_SECONDS: Final[int] = 300  # 5 minutes, live data
NEWS_TTL_SECONDS: Final[int] = 600  # 10 minutes


# =============================================================================
# NEWS
# =============================================================================
SPORT_NEWS_KEYWORDS: Final[dict[str, list[str]]] = {
    "basketball": ["basketball", "hoops", "court", "ncaam"],
    "football": ["football", "gridiron", "touchdown", "ncaaf"],
    "baseball": ["baseball", "diamond", "home run", "ncaab"],
    "recruiting": ["recruit", "commitment", "transfer", "portal"],
}

DEFAULT_AUTHOR: Final[str] = "Unknown"
DEFAULT_TITLE: Final[str] = "Untitled"
