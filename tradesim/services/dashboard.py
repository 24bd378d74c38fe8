import asyncio
import logging
from typing import List, Mapping, Optional, Sequence

from .. import client
from ..models.sleeper import (
    ActivityItem,
    League,
    LeagueDashboard,
    LeagueStats,
    Matchup,
    MatchupPairing,
    MatchupTeam,
    Player,
    Roster,
    Transaction,
    User,
)
from .draft_picks import format_player
from .sleeper_service import current_nfl_week
from .standings import group_pairings, rank, team_name

logger = logging.getLogger(__name__)

RECENT_ACTIVITY_LIMIT = 10

TYPE_LABELS = {
    "waiver": "Waiver Claim",
    "free_agent": "Free Agent",
    "trade": "Trade",
}


def transaction_type_label(transaction_type: str) -> str:
    return TYPE_LABELS.get(transaction_type, transaction_type[:1].upper() + transaction_type[1:])


def _name_for(roster_id: int, rosters: Sequence[Roster], users: Sequence[User]) -> str:
    roster = next((r for r in rosters if r.roster_id == roster_id), None)
    return team_name(roster, users) if roster else f"Team {roster_id}"


def week_pairings(matchups: Sequence[Matchup], rosters: Sequence[Roster], users: Sequence[User]) -> List[MatchupPairing]:
    """Head-to-head pairings for one week, in ``matchup_id`` order. Byes and odd groups are dropped."""
    pairings = []
    for matchup_id, pairing in sorted(group_pairings(matchups).items()):
        if len(pairing) != 2:
            continue
        pairings.append(MatchupPairing(
            matchup_id=matchup_id,
            teams=[
                MatchupTeam(roster_id=m.roster_id, team_name=_name_for(m.roster_id, rosters, users), points=round(m.points, 2))
                for m in pairing
            ],
        ))
    return pairings


def recent_activity(
    transactions: Sequence[Transaction],
    rosters: Sequence[Roster],
    users: Sequence[User],
    players: Optional[Mapping[str, Player]] = None,
) -> List[ActivityItem]:
    """The latest completed transactions, newest first."""
    completed = sorted(
        (t for t in transactions if t.status == "complete"),
        key=lambda t: t.status_updated or 0,
        reverse=True,
    )
    return [
        ActivityItem(
            transaction_id=t.transaction_id,
            type=t.type,
            type_label=transaction_type_label(t.type),
            status_updated=t.status_updated,
            team_names=[_name_for(roster_id, rosters, users) for roster_id in t.roster_ids],
            added=[format_player(player_id, players) for player_id in t.adds],
            dropped=[format_player(player_id, players) for player_id in t.drops],
        )
        for t in completed[:RECENT_ACTIVITY_LIMIT]
    ]


def league_stats(rosters: Sequence[Roster], users: Sequence[User], transactions: Sequence[Transaction]) -> LeagueStats:
    if not rosters:
        return LeagueStats(total_transactions=len(transactions))
    total_points = sum(r.settings.points_for for r in rosters)
    top_roster = max(rosters, key=lambda r: r.settings.points_for)
    owner = next((u for u in users if u.user_id == top_roster.owner_id), None)
    return LeagueStats(
        total_teams=len(rosters),
        total_transactions=len(transactions),
        average_score=round(total_points / len(rosters), 2),
        highest_score=round(top_roster.settings.points_for, 2),
        top_scorer=(owner.display_name or owner.username or "Unknown") if owner else "Unknown",
    )


async def build_dashboard(
    league_id: str,
    api=client,
    players: Optional[Mapping[str, Player]] = None,
) -> Optional[LeagueDashboard]:
    """
    Overview of a league at the current NFL week.

    Returns ``None`` when the league does not exist. The week's matchups and
    transactions degrade to empty lists when they cannot be fetched.
    """
    league_data, rosters_data, users_data, week = await asyncio.gather(
        api.get_league(league_id),
        api.get_league_rosters(league_id),
        api.get_league_users(league_id),
        current_nfl_week(api),
    )
    if not league_data:
        return None
    league = League(**league_data)
    rosters = [Roster(**r) for r in rosters_data or []]
    users = [User(**u) for u in users_data or []]
    week = week or 1

    matchups_data, transactions_data = await asyncio.gather(
        api.get_league_matchups(league_id, week),
        api.get_league_transactions(league_id, week),
        return_exceptions=True,
    )
    if isinstance(matchups_data, BaseException):
        logger.warning("Failed to fetch week %s matchups for %s: %r", week, league_id, matchups_data)
        matchups_data = []
    if isinstance(transactions_data, BaseException):
        logger.warning("Failed to fetch week %s transactions for %s: %r", week, league_id, transactions_data)
        transactions_data = []

    matchups = [Matchup(**{**m, "week": week}) for m in matchups_data or []]
    transactions = [Transaction(**{"week": week, **t}) for t in transactions_data or []]

    return LeagueDashboard(
        league_id=league.league_id,
        name=league.name,
        season=league.season,
        status=league.status,
        current_week=week,
        standings=rank(rosters, users),
        matchups=week_pairings(matchups, rosters, users),
        recent_activity=recent_activity(transactions, rosters, users, players),
        stats=league_stats(rosters, users, transactions),
    )
