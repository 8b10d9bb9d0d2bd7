"""
External player -> sport directory backed by the ESPN search API.

Advisory only: every failure (timeout, non-2xx, malformed body) resolves to
``Sport.UNKNOWN`` and is logged at debug level.
"""

import threading
import time
from typing import Callable, Dict, Optional, Protocol, Tuple

import httpx

from cardex.errors import ExternalLookupFailure
from cardex.models.sport import Sport
from cardex.utils.config import MAX_SPORT_LOOKUP_TIMEOUT, Settings
from cardex.utils.logger import httpx_logger

# ESPN defaultLeagueSlug -> sport
LEAGUE_SPORTS = {
    "nfl": Sport.FOOTBALL,
    "college-football": Sport.FOOTBALL,
    "xfl": Sport.FOOTBALL,
    "usfl": Sport.FOOTBALL,
    "cfl": Sport.FOOTBALL,
    "nba": Sport.BASKETBALL,
    "wnba": Sport.BASKETBALL,
    "college-basketball": Sport.BASKETBALL,
    "mens-college-basketball": Sport.BASKETBALL,
    "womens-college-basketball": Sport.BASKETBALL,
    "g-league": Sport.BASKETBALL,
    "nba-development": Sport.BASKETBALL,
    "mlb": Sport.BASEBALL,
    "minor-league-baseball": Sport.BASEBALL,
    "college-baseball": Sport.BASEBALL,
    "nhl": Sport.HOCKEY,
    "ahl": Sport.HOCKEY,
    "f1": Sport.RACING,
    "nascar": Sport.RACING,
    "nascar-premier": Sport.RACING,
    "indycar": Sport.RACING,
    "irl": Sport.RACING,
    "soccer": Sport.SOCCER,
    "mls": Sport.SOCCER,
    "nwsl": Sport.SOCCER,
    "premier-league": Sport.SOCCER,
    "pga": Sport.GOLF,
    "lpga": Sport.GOLF,
    "atp": Sport.TENNIS,
    "wta": Sport.TENNIS,
    "boxing": Sport.BOXING,
    "ufc": Sport.MMA,
    "mma": Sport.MMA,
}

# Slug prefixes used for the long tail of soccer competitions (eng.1, uefa.champions)
SOCCER_SLUG_PREFIXES = ("eng.", "esp.", "ger.", "ita.", "fra.", "usa.", "uefa.", "fifa.", "conmebol.")


def league_to_sport(slug) -> Sport:
    if not slug or not isinstance(slug, str):
        return Sport.UNKNOWN
    slug = slug.lower().strip()
    if slug in LEAGUE_SPORTS:
        return LEAGUE_SPORTS[slug]
    if slug.startswith(SOCCER_SLUG_PREFIXES):
        return Sport.SOCCER
    return Sport.UNKNOWN


def _display_name(player: dict) -> str:
    name = player.get("displayName")
    return name.lower().strip() if isinstance(name, str) else ""


class PlayerDirectory(Protocol):
    def resolve_sport_for_player(self, name: str) -> Sport: ...


class EspnPlayerDirectory:
    """Cached, throttled ESPN player search."""

    def __init__(
        self,
        base_url: str,
        timeout: float = MAX_SPORT_LOOKUP_TIMEOUT,
        cache_ttl: float = 24 * 60 * 60,
        min_interval: float = 0.0,
        client: Optional[httpx.Client] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.base_url = base_url
        self.timeout = min(timeout, MAX_SPORT_LOOKUP_TIMEOUT)
        self.cache_ttl = cache_ttl
        self.min_interval = min_interval
        self._client = client
        self._clock = clock
        self._sleep = sleep
        self._cache: Dict[str, Tuple[float, Sport]] = {}
        self._lock = threading.Lock()
        self._throttle = threading.Lock()
        self._last_call = 0.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "EspnPlayerDirectory":
        return cls(
            base_url=settings.sport_lookup_url,
            timeout=settings.sport_lookup_timeout,
            cache_ttl=settings.sport_lookup_cache_ttl,
            min_interval=settings.sport_lookup_min_interval,
        )

    # ------------------------------------------------------------------
    # cache
    # ------------------------------------------------------------------
    def _cached(self, key: str) -> Optional[Sport]:
        with self._lock:
            hit = self._cache.get(key)
            if hit is None:
                return None
            stored_at, sport = hit
            if self._clock() - stored_at > self.cache_ttl:
                del self._cache[key]
                return None
            return sport

    def _store(self, key: str, sport: Sport):
        with self._lock:
            self._cache[key] = (self._clock(), sport)

    def clear_cache(self):
        with self._lock:
            self._cache.clear()

    # ------------------------------------------------------------------
    # network
    # ------------------------------------------------------------------
    def _wait_turn(self):
        if self.min_interval <= 0:
            return
        with self._throttle:
            wait = self._last_call + self.min_interval - self._clock()
            if wait > 0:
                self._sleep(wait)
            self._last_call = self._clock()

    def _fetch(self, name: str) -> dict:
        self._wait_turn()
        params = {"limit": 100, "query": name}
        try:
            if self._client is not None:
                resp = self._client.get(self.base_url, params=params, timeout=self.timeout)
            else:
                with httpx.Client(timeout=httpx.Timeout(self.timeout), follow_redirects=True) as client:
                    resp = client.get(self.base_url, params=params)
            resp.raise_for_status()
            return resp.json()
        except httpx.TimeoutException as e:
            raise ExternalLookupFailure(f"timeout after {self.timeout}s") from e
        except httpx.HTTPStatusError as e:
            raise ExternalLookupFailure(f"HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise ExternalLookupFailure(f"network error: {e}") from e
        except ValueError as e:
            raise ExternalLookupFailure(f"invalid JSON: {e}") from e

    @staticmethod
    def _pick_player(data: dict, name: str) -> Optional[dict]:
        results = data.get("results") if isinstance(data, dict) else None
        if not isinstance(results, list):
            raise ExternalLookupFailure("response has no results list")

        players = next(
            (r.get("contents") for r in results if isinstance(r, dict) and r.get("type") == "player"),
            None,
        )
        if not players or not isinstance(players, list):
            return None

        wanted = name.lower().strip()
        candidates = [p for p in players if isinstance(p, dict)]
        for player in candidates:
            if _display_name(player) == wanted:
                return player
        for player in candidates:
            display = _display_name(player)
            if display and (wanted in display or display in wanted):
                return player
        return candidates[0] if candidates else None

    def resolve_sport_for_player(self, name: str) -> Sport:
        if not name or not name.strip():
            return Sport.UNKNOWN

        key = name.lower().strip()
        cached = self._cached(key)
        if cached is not None:
            return cached

        try:
            data = self._fetch(name)
            player = self._pick_player(data, name)
        except ExternalLookupFailure as e:
            httpx_logger.debug(f"🔍 Player lookup failed for '{name}': {e}")
            return Sport.UNKNOWN

        if player is None:
            sport = Sport.UNKNOWN
        else:
            sport = league_to_sport(player.get("defaultLeagueSlug"))
            if sport is Sport.UNKNOWN:
                sport = Sport.from_label(player.get("sport"))

        httpx_logger.debug(f"🔍 Player lookup '{name}' -> {sport.value}")
        self._store(key, sport)
        return sport
