"""Shared fixtures: a fake clock, a stub aiohttp session and ESPN payloads."""
import json
from typing import Any, Union

import aiohttp
import pytest

from wolfpack_feeds.data.cache import CacheManager

TRACKED_ID = "152"


class FakeClock:
    """Monotonic clock the tests move by hand."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeResponse:
    def __init__(self, status: int, body: bytes):
        self.status = status
        self._body = body

    async def read(self) -> bytes:
        return self._body

    async def __aenter__(self) -> "FakeResponse":
        return self

    async def __aexit__(self, *exc) -> None:
        return None


class FakeSession:
    """
    Stands in for aiohttp.ClientSession.

    Routes map a URL to (status, body) or to an exception instance to raise.
    Every call is recorded in ``requests``.
    """

    def __init__(self, routes: dict[str, Any] = None):
        self.routes = routes or {}
        self.requests: list[str] = []
        self.closed = False

    def add(self, url: str, body: Union[bytes, str, dict], status: int = 200) -> None:
        if isinstance(body, dict):
            body = json.dumps(body)
        if isinstance(body, str):
            body = body.encode("utf-8")
        self.routes[url] = (status, body)

    def fail(self, url: str, error: Exception) -> None:
        self.routes[url] = error

    def calls(self, url: str) -> int:
        return self.requests.count(url)

    def get(self, url: str, headers=None) -> FakeResponse:
        self.requests.append(url)
        route = self.routes.get(url)
        if route is None:
            return FakeResponse(404, b"not found")
        if isinstance(route, Exception):
            raise route
        status, body = route
        return FakeResponse(status, body)

    async def close(self) -> None:
        self.closed = True


def competitor(team_id: str, name: str, home_away: str, score: Any = "0", winner: bool = False) -> dict:
    return {
        "id": team_id,
        "homeAway": home_away,
        "score": score,
        "winner": winner,
        "team": {
            "id": team_id,
            "displayName": name,
            "shortDisplayName": name.split()[0],
            "abbreviation": name[:3].upper(),
            "logo": f"https://a.espncdn.com/{team_id}.png",
        },
    }


def event(
    event_id: str,
    home: dict,
    away: dict,
    state: str = "in",
    date: str = "2026-10-17T23:00Z",
) -> dict:
    return {
        "id": event_id,
        "name": f"{away['team']['displayName']} at {home['team']['displayName']}",
        "date": date,
        "competitions": [
            {
                "id": event_id,
                "venue": {"fullName": "PNC Arena"},
                "competitors": [home, away],
                "status": {
                    "clock": 300,
                    "displayClock": "5:00",
                    "period": 2,
                    "type": {
                        "state": state,
                        "completed": state == "post",
                        "shortDetail": "5:00 - 2nd",
                    },
                },
            }
        ],
    }


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> CacheManager:
    return CacheManager.create_memory_cache(clock=clock)


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def scoreboard() -> dict:
    """Three games: A vs C, B (tracked) at home vs A, C vs B (tracked) away and finished."""
    return {
        "events": [
            event(
                "1",
                competitor("10", "Alpha State", "home", "55"),
                competitor("30", "Charlie Tech", "away", "50"),
            ),
            event(
                "2",
                competitor(TRACKED_ID, "NC State Wolfpack", "home", "61"),
                competitor("10", "Alpha State", "away", "58"),
            ),
            event(
                "3",
                competitor("30", "Charlie Tech", "home", "70", winner=False),
                competitor(TRACKED_ID, "NC State Wolfpack", "away", "77", winner=True),
                state="post",
            ),
        ]
    }


@pytest.fixture
def connection_error() -> aiohttp.ClientError:
    return aiohttp.ClientConnectionError("connection refused")
