"""
ESPN API client for NC State scores, schedules and rosters.

ESPN provides hidden/undocumented APIs that are free and require no authentication.
These are the same endpoints used by ESPN's website and mobile apps.

Data provided:
- Scoreboard games involving the tracked team (live polling)
- Team schedule (upcoming and recent games)
- Team info, roster and single-game summaries
- ACC standings

Note: These are unofficial APIs and may change without notice.
"""
import asyncio
import json
from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Union

import aiohttp
import polars as pl

from ...config.constants import (
    ACC_GROUP_ID,
    ESPN_SITE_API,
    ESPN_STATE_MAP,
    NC_STATE_TEAM_ID,
    SCORES_TTL_SECONDS,
    SPORT_PATHS,
    GameStatus,
    Sport,
)
from ..cache.cache_manager import CacheManager
from ..models import Game, TeamScore
from .base import (
    CachedDataSource,
    DataSourceHealth,
    DataSourceStatus,
    FeedError,
    ParseError,
    UnsupportedSportError,
)


class ESPNClient(CachedDataSource):
    """
    Client for ESPN's college sports APIs, scoped to one tracked team.

    Raw JSON payloads are cached per endpoint; every call re-derives Game
    records from the cached payload so repeated calls inside the TTL window
    never touch the network.
    """

    def __init__(
        self,
        cache: Optional[CacheManager] = None,
        team_id: str = NC_STATE_TEAM_ID,
        site_api: str = ESPN_SITE_API,
        cache_ttl_seconds: float = SCORES_TTL_SECONDS,
        enabled: bool = True,
        user_agent: str = "NC State Sports Hub/1.0",
        session: Optional[aiohttp.ClientSession] = None,
    ):
        super().__init__(
            source_name="espn",
            cache=cache,
            cache_ttl_seconds=cache_ttl_seconds,
            enabled=enabled,
            user_agent=user_agent,
            session=session,
        )
        self.team_id = str(team_id)
        self.site_api = site_api.rstrip("/")

    @classmethod
    def from_settings(cls, settings, cache: Optional[CacheManager] = None) -> "ESPNClient":
        return cls(
            cache=cache,
            team_id=settings.espn.team_id,
            site_api=settings.espn.site_api,
            cache_ttl_seconds=settings.espn.cache_ttl_seconds,
            user_agent=settings.espn.user_agent,
        )

    def _sport_path(self, sport: Union[str, Sport]) -> tuple[Sport, str]:
        """Resolve a sport name to its ESPN path segment."""
        try:
            resolved = Sport(sport)
        except ValueError:
            raise UnsupportedSportError(self.source_name, str(sport)) from None
        return resolved, f"{self.site_api}/{SPORT_PATHS[resolved]}"

    async def _request_json(self, url: str, cache_key: str) -> dict[str, Any]:
        """GET a JSON endpoint through the cache."""

        async def load() -> dict[str, Any]:
            body = await self._get(url)
            try:
                data = json.loads(body)
            except ValueError as e:
                self._record_failure(f"Invalid JSON from {url}")
                raise ParseError(
                    f"ESPN returned invalid JSON for {url}",
                    self.source_name,
                    original_error=e,
                ) from e
            if not isinstance(data, dict):
                self._record_failure(f"Unexpected payload from {url}")
                raise ParseError(
                    f"ESPN returned {type(data).__name__}, expected an object",
                    self.source_name,
                )
            return data

        return await self.fetch_cached(cache_key, load)

    async def health_check(self) -> DataSourceHealth:
        """Check if ESPN API is available."""
        if not self.enabled:
            return DataSourceHealth(
                source_name=self.source_name,
                status=DataSourceStatus.DISABLED,
                error_message="ESPN integration disabled",
            )

        try:
            _, base = self._sport_path(Sport.BASKETBALL)
            await self._get(f"{base}/scoreboard")
            return DataSourceHealth(
                source_name=self.source_name,
                status=DataSourceStatus.HEALTHY,
                last_success=datetime.now(),
                latency_ms=self._health.latency_ms,
            )
        except FeedError as e:
            return DataSourceHealth(
                source_name=self.source_name,
                status=DataSourceStatus.UNHEALTHY,
                last_failure=datetime.now(),
                error_message=str(e),
            )

    # ------------------------------------------------------------------
    # Scoreboard
    # ------------------------------------------------------------------

    async def fetch_live_games(self, sport: Union[str, Sport] = Sport.BASKETBALL) -> list[Game]:
        """
        Get scoreboard games involving the tracked team.

        Args:
            sport: "football", "basketball" or "baseball"

        Returns:
            Games on the current scoreboard that include the tracked team,
            in scoreboard order. Games where the tracked team or an opponent
            cannot be found are dropped.
        """
        resolved, base = self._sport_path(sport)
        data = await self._request_json(
            f"{base}/scoreboard", f"live-games-{resolved.value}"
        )
        return self._parse_team_games(data, url=f"{base}/scoreboard")

    async def is_team_playing(self, sport: Union[str, Sport] = Sport.BASKETBALL) -> bool:
        """Check if the tracked team has a game in progress."""
        games = await self.fetch_live_games(sport)
        return any(game.status == GameStatus.LIVE for game in games)

    # ------------------------------------------------------------------
    # Schedule
    # ------------------------------------------------------------------

    async def fetch_schedule(
        self,
        sport: Union[str, Sport] = Sport.BASKETBALL,
        season: Optional[int] = None,
    ) -> list[Game]:
        """
        Get the tracked team's schedule.

        Args:
            sport: Sport name
            season: Season year (defaults to the current year)
        """
        resolved, base = self._sport_path(sport)
        season = season or datetime.now().year
        url = f"{base}/teams/{self.team_id}/schedule"
        if season != datetime.now().year:
            url = f"{url}?season={season}"

        data = await self._request_json(url, f"schedule-{resolved.value}-{season}")
        return self._parse_team_games(data, url=url)

    async def fetch_upcoming_games(
        self,
        sport: Union[str, Sport] = Sport.BASKETBALL,
        days: int = 7,
        now: Optional[datetime] = None,
    ) -> list[Game]:
        """Scheduled games starting within the next ``days`` days."""
        now = _as_utc(now)
        horizon = now + timedelta(days=days)
        schedule = await self.fetch_schedule(sport)
        return [g for g in schedule if g.date is not None and now <= g.date <= horizon]

    async def fetch_recent_games(
        self,
        sport: Union[str, Sport] = Sport.BASKETBALL,
        days: int = 7,
        now: Optional[datetime] = None,
    ) -> list[Game]:
        """Scheduled games that started within the last ``days`` days."""
        now = _as_utc(now)
        cutoff = now - timedelta(days=days)
        schedule = await self.fetch_schedule(sport)
        return [g for g in schedule if g.date is not None and cutoff <= g.date <= now]

    # ------------------------------------------------------------------
    # Team, roster, game details
    # ------------------------------------------------------------------

    async def fetch_team(self, sport: Union[str, Sport] = Sport.BASKETBALL) -> dict[str, Any]:
        """Get the tracked team's record, colors and logos as returned by ESPN."""
        resolved, base = self._sport_path(sport)
        data = await self._request_json(
            f"{base}/teams/{self.team_id}", f"team-{resolved.value}"
        )
        team = data.get("team")
        if not isinstance(team, dict):
            raise ParseError("ESPN team payload has no team object", self.source_name)
        return team

    async def fetch_roster(self, sport: Union[str, Sport] = Sport.BASKETBALL) -> pl.DataFrame:
        """
        Get the tracked team's roster.

        Returns:
            DataFrame with columns:
            - player_id, player_name, first_name, last_name
            - position, jersey_number, headshot
        """
        resolved, base = self._sport_path(sport)
        data = await self._request_json(
            f"{base}/teams/{self.team_id}/roster", f"roster-{resolved.value}"
        )

        # Football rosters come grouped by unit, others as a flat list
        athletes: list[dict[str, Any]] = []
        for entry in data.get("athletes", []):
            if isinstance(entry, dict) and "items" in entry:
                athletes.extend(entry.get("items") or [])
            elif isinstance(entry, dict):
                athletes.append(entry)

        players = [
            {
                "player_id": str(athlete.get("id", "")),
                "player_name": athlete.get("fullName") or athlete.get("displayName", ""),
                "first_name": athlete.get("firstName", ""),
                "last_name": athlete.get("lastName", ""),
                "position": (athlete.get("position") or {}).get("abbreviation", ""),
                "jersey_number": athlete.get("jersey", ""),
                "headshot": (athlete.get("headshot") or {}).get("href", ""),
            }
            for athlete in athletes
        ]

        return pl.DataFrame(players) if players else pl.DataFrame()

    async def fetch_game_details(
        self,
        game_id: str,
        sport: Union[str, Sport] = Sport.BASKETBALL,
    ) -> Game:
        """Get a single game from the summary endpoint."""
        resolved, base = self._sport_path(sport)
        url = f"{base}/summary?event={game_id}"
        data = await self._request_json(url, f"game-details-{resolved.value}-{game_id}")

        header = data.get("header")
        if not isinstance(header, dict):
            raise ParseError(f"ESPN summary for {game_id} has no header", self.source_name)

        game = self._parse_event(header, require_tracked=False)
        if game is None:
            raise ParseError(f"ESPN summary for {game_id} has no competition", self.source_name)
        return game

    async def fetch_standings(self, sport: Union[str, Sport] = Sport.BASKETBALL) -> list[dict[str, Any]]:
        """
        Get ACC conference standings.

        Returns:
            Standings entries as returned by ESPN, or an empty list when the
            payload carries none
        """
        resolved, base = self._sport_path(sport)
        data = await self._request_json(
            f"{base}/standings?group={ACC_GROUP_ID}", f"acc-standings-{resolved.value}"
        )

        standings = data.get("standings") or []
        # Some sports wrap the table as {"entries": [...]}
        if isinstance(standings, dict):
            standings = standings.get("entries") or []
        if not isinstance(standings, list):
            raise ParseError("ESPN standings payload is not a list", self.source_name)
        return standings

    async def fetch_all_sports(self) -> dict[str, dict[str, Any]]:
        """
        Get schedule, team and roster for every supported sport at once.

        All requests run concurrently; the first failure propagates.

        Returns:
            ``{sport: {"games": [...], "team": {...}, "roster": DataFrame}}``
        """
        sports = list(Sport)
        results = await asyncio.gather(
            *(
                call(sport)
                for sport in sports
                for call in (self.fetch_schedule, self.fetch_team, self.fetch_roster)
            )
        )

        bundles = {}
        for index, sport in enumerate(sports):
            games, team, roster = results[index * 3 : index * 3 + 3]
            bundles[sport.value] = {"games": games, "team": team, "roster": roster}
        return bundles

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    def _parse_team_games(self, data: dict[str, Any], url: str) -> list[Game]:
        events = data.get("events", [])
        if not isinstance(events, list):
            raise ParseError(f"ESPN events for {url} is not a list", self.source_name)

        games = []
        for event in events:
            if not isinstance(event, dict):
                continue
            game = self._parse_event(event, require_tracked=True)
            if game is not None:
                games.append(game)

        self.logger.debug(f"{len(games)}/{len(events)} events involve team {self.team_id}")
        return games

    def _parse_event(self, event: dict[str, Any], require_tracked: bool) -> Optional[Game]:
        """
        Build a Game from an ESPN event.

        Returns None when the event has no competition, or when
        ``require_tracked`` is set and the tracked team or its opponent is
        missing.
        """
        competitions = event.get("competitions") or []
        if not competitions:
            return None
        competition = competitions[0]

        competitors = [
            self._parse_competitor(c) for c in competition.get("competitors", [])
        ]
        tracked = next((c for c in competitors if c.team_id == self.team_id), None)
        opponent = next((c for c in competitors if c.team_id != self.team_id), None)

        if require_tracked and (tracked is None or opponent is None):
            return None

        status_data = competition.get("status") or event.get("status") or {}
        status_type = status_data.get("type") or {}
        status = ESPN_STATE_MAP.get(status_type.get("state", ""))
        if status is None:
            status = GameStatus.COMPLETED if status_type.get("completed") else GameStatus.UPCOMING

        home = next((c for c in competitors if c.home_away == "home"), None)
        away = next((c for c in competitors if c.home_away == "away"), None)

        is_home = is_win = None
        if tracked is not None:
            is_home = tracked.is_home
            if status == GameStatus.COMPLETED:
                is_win = tracked.winner

        return Game(
            id=str(event.get("id", "")),
            name=event.get("name") or event.get("shortName", ""),
            date=_parse_date(event.get("date") or competition.get("date")),
            status=status,
            home_team=home,
            away_team=away,
            status_detail=status_type.get("shortDetail") or status_type.get("detail", ""),
            period=int(status_data.get("period") or 0),
            clock=status_data.get("displayClock", ""),
            venue=(competition.get("venue") or {}).get("fullName", ""),
            opponent=opponent if tracked is not None else None,
            is_home=is_home,
            is_win=is_win,
        )

    @staticmethod
    def _parse_competitor(competitor: dict[str, Any]) -> TeamScore:
        team = competitor.get("team") or {}
        logo = team.get("logo", "")
        if not logo and team.get("logos"):
            logo = team["logos"][0].get("href", "")

        return TeamScore(
            team_id=str(team.get("id", competitor.get("id", ""))),
            name=team.get("displayName", ""),
            short_name=team.get("shortDisplayName", ""),
            abbreviation=team.get("abbreviation", ""),
            logo=logo,
            score=_parse_score(competitor.get("score")),
            home_away=competitor.get("homeAway", ""),
            winner=bool(competitor.get("winner", False)),
        )


def _parse_score(raw: Any) -> Optional[int]:
    """Scoreboard scores are strings, schedule scores are objects."""
    if isinstance(raw, dict):
        raw = raw.get("value", raw.get("displayValue"))
    if raw is None or raw == "":
        return None
    try:
        return int(float(raw))
    except (TypeError, ValueError):
        return None


def _as_utc(now: Optional[datetime]) -> datetime:
    """Current time, or ``now`` with naive values read as UTC."""
    if now is None:
        return datetime.now(timezone.utc)
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now


def _parse_date(raw: Optional[str]) -> Optional[datetime]:
    """Parse ESPN's ISO dates (e.g. ``2024-11-30T17:00Z``) as aware UTC."""
    if not raw:
        return None
    try:
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
