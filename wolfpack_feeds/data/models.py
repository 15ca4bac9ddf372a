"""
Records produced by the feed clients.

All records are frozen so a value handed out of the cache can be shared
between callers without copying.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ..config.constants import GameStatus


@dataclass(frozen=True)
class TeamScore:
    """One competitor in a game."""

    team_id: str
    name: str
    short_name: str = ""
    abbreviation: str = ""
    logo: str = ""
    score: Optional[int] = None
    home_away: str = ""
    winner: bool = False

    @property
    def is_home(self) -> bool:
        return self.home_away == "home"


@dataclass(frozen=True)
class Game:
    """
    A game involving (usually) the tracked team.

    ``opponent``, ``is_home`` and ``is_win`` are derived relative to the
    tracked team and are None when the tracked team is not a competitor.
    ``is_win`` is only known once the game is completed.
    """

    id: str
    name: str
    date: Optional[datetime]
    status: GameStatus
    home_team: Optional[TeamScore]
    away_team: Optional[TeamScore]
    status_detail: str = ""
    period: int = 0
    clock: str = ""
    venue: str = ""
    opponent: Optional[TeamScore] = None
    is_home: Optional[bool] = None
    is_win: Optional[bool] = None

    @property
    def is_live(self) -> bool:
        return self.status == GameStatus.LIVE


@dataclass(frozen=True)
class Article:
    """A single news item."""

    id: str
    guid: str
    title: str
    description: str
    link: str
    published_at: datetime
    author: str
    categories: frozenset[str] = field(default_factory=frozenset)
    content: str = ""
    image_url: Optional[str] = None


@dataclass(frozen=True)
class Feed:
    """A parsed RSS/Atom document."""

    url: str
    title: str
    description: str
    link: str
    last_build_date: str
    articles: tuple[Article, ...] = ()
