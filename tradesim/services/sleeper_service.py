import asyncio
import logging
from typing import List, Dict, Iterable, Mapping, Optional, Sequence

from .. import client
from ..config import settings
from ..models.sleeper import (
    League,
    Roster,
    User,
    Player,
    Transaction,
    Matchup,
    SeasonBundle,
    TradeSide,
    TradeSummary,
)
from .draft_picks import format_player, resolve
from .standings import team_name

logger = logging.getLogger(__name__)


async def get_league_history(league_id: str, api=client) -> List[League]:
    """Follow ``previous_league_id`` back from ``league_id``; newest season first."""
    history: List[League] = []
    seen = set()
    current_league_id = league_id

    while current_league_id and current_league_id not in seen:
        seen.add(current_league_id)
        try:
            league_data = await api.get_league(current_league_id)
        except Exception as e:
            logger.warning("Stopping league history at %s: %r", current_league_id, e)
            break  # A gap in the chain is not fatal
        if not league_data:
            break
        league = League(**league_data)
        history.append(league)
        current_league_id = league.previous_league_id

    return history


async def _fetch_weeks(fetch, league_id: str, weeks: Iterable[int]) -> list:
    """Run ``fetch(league_id, week)`` for each week, at most ``max_concurrent_requests`` at a time."""
    limit = asyncio.Semaphore(max(1, settings.max_concurrent_requests))

    async def fetch_week(week: int):
        async with limit:
            return await fetch(league_id, week)

    return await asyncio.gather(*(fetch_week(week) for week in weeks), return_exceptions=True)


async def get_all_trades(league_id: str, api=client) -> List[Transaction]:
    """Every trade in one season, newest first. Weeks that fail to load are skipped."""
    weeks = range(1, settings.max_week + 1)
    weekly_results = await _fetch_weeks(api.get_league_transactions, league_id, weeks)

    trades: List[Transaction] = []
    for week, result in zip(weeks, weekly_results):
        if isinstance(result, BaseException):
            logger.warning("Failed to fetch transactions for week %s: %r", week, result)
            continue
        for tx_data in result or []:
            if tx_data.get("type") != "trade":
                continue
            tx_data.setdefault("week", week)
            trades.append(Transaction(**tx_data))

    trades.sort(key=lambda t: t.status_updated or 0, reverse=True)
    return trades


async def current_nfl_week(api=client) -> Optional[int]:
    try:
        state = await api.get_nfl_state()
    except Exception as e:
        logger.warning("Failed to fetch NFL state: %r", e)
        return None
    week = (state or {}).get("week")
    return int(week) if week else None


async def scored_weeks(league: League, api=client) -> range:
    """
    Weeks whose results count towards the official regular-season record.

    Playoff weeks are excluded, and while the league is in season so are the
    current week and everything after it.
    """
    last_week = settings.max_week
    playoff_week_start = league.settings.get("playoff_week_start")
    if playoff_week_start:
        last_week = min(last_week, int(playoff_week_start) - 1)
    if league.status == "in_season":
        current_week = await current_nfl_week(api)
        if current_week:
            last_week = min(last_week, current_week - 1)
    return range(1, last_week + 1)


async def get_all_matchups(league_id: str, api=client, weeks: Optional[Iterable[int]] = None) -> Dict[int, List[Matchup]]:
    """Weekly matchups keyed by week. Failed and not-yet-played weeks are omitted."""
    weeks = list(range(1, settings.max_week + 1) if weeks is None else weeks)
    weekly_results = await _fetch_weeks(api.get_league_matchups, league_id, weeks)

    all_matchups: Dict[int, List[Matchup]] = {}
    for week, result in zip(weeks, weekly_results):
        if isinstance(result, BaseException):
            logger.warning("Failed to fetch matchups for week %s: %r", week, result)
            continue
        matchups = [Matchup(**{**m, "week": week}) for m in result or []]
        if not any(m.points for m in matchups):
            # Scheduled weeks come back with every score at zero.
            continue
        all_matchups[week] = matchups
    return all_matchups


async def get_players_directory(api=client) -> Dict[str, Player]:
    try:
        players_data = await api.get_all_players()
    except Exception as e:
        logger.warning("Failed to fetch player directory: %r", e)
        return {}
    return {
        p_id: Player(**{**p_data, "player_id": p_data.get("player_id") or p_id})
        for p_id, p_data in (players_data or {}).items()
        if isinstance(p_data, dict)
    }


def summarize_trade(
    trade: Transaction,
    rosters: Sequence[Roster],
    users: Sequence[User],
    players: Optional[Mapping[str, Player]] = None,
    bundles: Optional[Mapping[int, SeasonBundle]] = None,
) -> TradeSummary:
    """Who received and sent what in ``trade``, with picks labelled as far as they resolve."""
    rosters_by_id = {r.roster_id: r for r in rosters}
    sides: Dict[int, TradeSide] = {}
    for roster_id in trade.roster_ids:
        roster = rosters_by_id.get(roster_id)
        name = team_name(roster, users) if roster else f"Team {roster_id}"
        sides[roster_id] = TradeSide(roster_id=roster_id, team_name=name)

    for player_id, to_roster_id in trade.adds.items():
        if to_roster_id in sides:
            sides[to_roster_id].received.append(format_player(player_id, players))

    for player_id, from_roster_id in trade.drops.items():
        if from_roster_id in sides:
            sides[from_roster_id].sent.append(format_player(player_id, players))

    for pick in trade.draft_picks:
        label = resolve(pick, bundles or {}, players).label
        if pick.owner_id in sides:
            sides[pick.owner_id].received_picks.append(label)
        if pick.previous_owner_id in sides:
            sides[pick.previous_owner_id].sent_picks.append(label)

    return TradeSummary(
        transaction_id=trade.transaction_id,
        week=trade.week,
        status_updated=trade.status_updated,
        sides=list(sides.values()),
    )
