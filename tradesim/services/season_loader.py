import asyncio
import logging
import time
from collections import OrderedDict
from datetime import date
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from .. import client
from ..config import settings
from ..models.sleeper import Draft, DraftPick, League, Matchup, Roster, SeasonBundle, User
from .season_chain import resolve_season_id

logger = logging.getLogger(__name__)

SeasonCompletePredicate = Callable[[int], bool]


def completed_before_current_year(year: int) -> bool:
    # There is no reliable "playoffs finished" signal, so only past years count.
    return year < date.today().year


def status_aware_season_complete(league_seasons: Sequence[League]) -> SeasonCompletePredicate:
    """A predicate that also trusts a league whose status is already ``complete``."""
    statuses = {season.year: season.status for season in league_seasons}

    def is_complete(year: int) -> bool:
        return statuses.get(year) == "complete" or completed_before_current_year(year)

    return is_complete


class LeagueDataCache:
    """
    In-memory store of fetched season bundles and weekly matchups.

    Both stores drop their least recently used entries past ``maxsize``.
    Matchups also expire after ``matchup_ttl_seconds`` so an in-season league
    picks up newly played weeks.
    """

    def __init__(self, maxsize: Optional[int] = None, matchup_ttl_seconds: Optional[float] = None) -> None:
        self.maxsize = settings.league_cache_maxsize if maxsize is None else maxsize
        self.matchup_ttl_seconds = (
            settings.matchup_cache_ttl_seconds if matchup_ttl_seconds is None else matchup_ttl_seconds
        )
        self._bundles: "OrderedDict[Tuple[str, int], SeasonBundle]" = OrderedDict()
        self._matchups: "OrderedDict[str, Tuple[float, Dict[int, List[Matchup]]]]" = OrderedDict()

    def _prune(self, store: OrderedDict) -> None:
        while len(store) > self.maxsize:
            store.popitem(last=False)

    def get_bundle(self, league_id: str, year: int) -> Optional[SeasonBundle]:
        key = (league_id, year)
        if key not in self._bundles:
            return None
        self._bundles.move_to_end(key)
        return self._bundles[key]

    def set_bundle(self, league_id: str, bundle: SeasonBundle) -> None:
        key = (league_id, bundle.year)
        self._bundles[key] = bundle
        self._bundles.move_to_end(key)
        self._prune(self._bundles)

    def get_matchups(self, league_id: str) -> Optional[Dict[int, List[Matchup]]]:
        if league_id not in self._matchups:
            return None
        stored_at, matchups = self._matchups[league_id]
        if time.monotonic() - stored_at >= self.matchup_ttl_seconds:
            del self._matchups[league_id]
            return None
        self._matchups.move_to_end(league_id)
        return matchups

    def set_matchups(self, league_id: str, matchups: Dict[int, List[Matchup]]) -> None:
        self._matchups[league_id] = (time.monotonic(), matchups)
        self._matchups.move_to_end(league_id)
        self._prune(self._matchups)

    def invalidate(self, league_id: Optional[str] = None) -> None:
        """Forget one league's data, or everything when no league is given."""
        if league_id is None:
            self._bundles.clear()
            self._matchups.clear()
            return
        for key in [key for key in self._bundles if key[0] == league_id]:
            del self._bundles[key]
        self._matchups.pop(league_id, None)


async def _load_draft_picks(drafts: Iterable[Draft], api) -> Dict[str, List[DraftPick]]:
    picks_by_draft: Dict[str, List[DraftPick]] = {}
    for draft in drafts:
        try:
            picks_data = await api.get_draft_picks(draft.draft_id)
            picks_by_draft[draft.draft_id] = [DraftPick(**p) for p in picks_data or []]
        except Exception as e:
            logger.warning("Failed to load picks for draft %s: %r", draft.draft_id, e)
            picks_by_draft[draft.draft_id] = []
    return picks_by_draft


async def load_season(
    year: int,
    league_id: str,
    api=client,
    is_season_complete: SeasonCompletePredicate = completed_before_current_year,
) -> SeasonBundle:
    rosters_data, users_data, drafts_data = await asyncio.gather(
        api.get_league_rosters(league_id),
        api.get_league_users(league_id),
        api.get_league_drafts(league_id),
    )
    drafts = [Draft(**d) for d in drafts_data or []]
    return SeasonBundle(
        year=year,
        league_id=league_id,
        rosters=[Roster(**r) for r in rosters_data or []],
        users=[User(**u) for u in users_data or []],
        drafts=drafts,
        draft_picks_by_draft_id=await _load_draft_picks(drafts, api),
        season_complete=is_season_complete(year),
    )


async def load_seasons(
    years: Iterable[int],
    league_seasons: Sequence[League],
    api=client,
    cache: Optional[LeagueDataCache] = None,
    cache_key: Optional[str] = None,
    is_season_complete: SeasonCompletePredicate = completed_before_current_year,
) -> Dict[int, SeasonBundle]:
    """
    Fetch a bundle for every requested year that can be resolved to a league id.

    Years that cannot be resolved or whose fetch fails are left out of the
    result; one bad season never aborts the batch.
    """
    bundles: Dict[int, SeasonBundle] = {}
    to_fetch: List[Tuple[int, str]] = []

    for year in sorted(set(years)):
        league_id = resolve_season_id(year, league_seasons)
        if not league_id:
            logger.warning("Could not find league id for season %s", year)
            continue
        cached = cache.get_bundle(cache_key or league_id, year) if cache is not None else None
        if cached is not None:
            bundles[year] = cached
        else:
            to_fetch.append((year, league_id))

    results = await asyncio.gather(
        *(load_season(year, league_id, api, is_season_complete) for year, league_id in to_fetch),
        return_exceptions=True,
    )
    for (year, league_id), result in zip(to_fetch, results):
        if isinstance(result, BaseException):
            logger.warning("Failed to load data for season %s (league %s): %r", year, league_id, result)
            continue
        bundles[year] = result
        if cache is not None:
            cache.set_bundle(cache_key or league_id, result)
        logger.debug(
            "Loaded %s season: %d rosters, %d users, %d drafts",
            year, len(result.rosters), len(result.users), len(result.drafts),
        )

    return dict(sorted(bundles.items()))
