import logging
from typing import Dict, Iterable, Optional, Sequence, Set

from ..config import settings
from ..models.sleeper import League, Transaction

logger = logging.getLogger(__name__)


def season_years(league_seasons: Iterable[League]) -> Dict[int, str]:
    """Map each known season year to its league id."""
    return {season.year: season.league_id for season in league_seasons}


def resolve_season_id(year: int, league_seasons: Sequence[League]) -> Optional[str]:
    """
    Find the league id to fetch ``year``'s rosters, users and drafts from.

    Returns ``None`` when the year is outside the recorded history; callers are
    expected to degrade rather than fail.
    """
    if not league_seasons:
        return None

    # 1. Exact match
    known = season_years(league_seasons)
    if year in known:
        return known[year]

    # 2. A continuing league keeps the same franchises going forward
    most_recent = max(league_seasons, key=lambda s: s.year)
    if year > most_recent.year:
        logger.debug("Season %s is after %s; using the most recent league %s", year, most_recent.year, most_recent.league_id)
        return most_recent.league_id

    # 3. One step further back through the following season's back-pointer
    for season in league_seasons:
        if season.year == year + 1 and season.previous_league_id:
            logger.debug("Found %s via previous_league_id from %s", year, season.season)
            return season.previous_league_id

    logger.debug("Could not find league id for season %s", year)
    return None


def seasons_needed_for_picks(trades: Iterable[Transaction], earliest: Optional[int] = None) -> Set[int]:
    """Every season a traded pick belongs to, plus the season whose standings set its draft order."""
    earliest = settings.earliest_season if earliest is None else earliest
    needed: Set[int] = set()
    for trade in trades:
        for pick in trade.draft_picks:
            needed.add(pick.season)
            if pick.season - 1 >= earliest:
                needed.add(pick.season - 1)
    return needed
