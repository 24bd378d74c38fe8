from collections import defaultdict
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from ..models.sleeper import Matchup, Roster, Standing, User


def team_name(roster: Roster, users: Iterable[User]) -> str:
    user = next((u for u in users if u.user_id == roster.owner_id), None)
    if user:
        return user.display_name or user.username or f"Team {roster.roster_id}"
    return f"Team {roster.roster_id}"


def _sorted_standings(standings: List[Standing]) -> List[Standing]:
    # sorted() is stable: rosters tied on wins and points keep their input order.
    ordered = sorted(standings, key=lambda s: (-s.wins, -s.points_for))
    for index, standing in enumerate(ordered):
        standing.rank = index + 1
    return ordered


def rank(rosters: Sequence[Roster], users: Iterable[User] = ()) -> List[Standing]:
    """Rank rosters by wins, then points-for, using their season settings."""
    users = list(users)
    return _sorted_standings([
        Standing(
            roster_id=roster.roster_id,
            team_name=team_name(roster, users),
            wins=roster.settings.wins,
            losses=roster.settings.losses,
            ties=roster.settings.ties,
            points_for=roster.settings.points_for,
            points_against=roster.settings.points_against,
        )
        for roster in rosters
    ])


def roster_rank(roster_id: int, rosters: Sequence[Roster]) -> Optional[int]:
    for standing in rank(rosters):
        if standing.roster_id == roster_id:
            return standing.rank
    return None


def group_pairings(week_matchups: Iterable[Matchup]) -> Dict[int, List[Matchup]]:
    """Group one week's matchups by ``matchup_id``. Byes (no id) are left out."""
    pairings: Dict[int, List[Matchup]] = defaultdict(list)
    for matchup in week_matchups:
        if matchup.matchup_id is not None:
            pairings[matchup.matchup_id].append(matchup)
    return pairings


def rank_from_matchups(
    matchups_by_week: Mapping[int, Sequence[Matchup]],
    rosters: Sequence[Roster],
    users: Iterable[User] = (),
) -> List[Standing]:
    """Derive records from weekly pairings, then rank them like :func:`rank`."""
    users = list(users)
    stats = {
        roster.roster_id: {"wins": 0, "losses": 0, "ties": 0, "points_for": 0.0, "points_against": 0.0}
        for roster in rosters
    }

    for week_matchups in matchups_by_week.values():
        for pairing in group_pairings(week_matchups).values():
            if len(pairing) != 2:
                continue
            team1, team2 = pairing
            if team1.roster_id not in stats or team2.roster_id not in stats:
                continue
            stats[team1.roster_id]["points_for"] += team1.points
            stats[team1.roster_id]["points_against"] += team2.points
            stats[team2.roster_id]["points_for"] += team2.points
            stats[team2.roster_id]["points_against"] += team1.points

            if team1.points > team2.points:
                stats[team1.roster_id]["wins"] += 1
                stats[team2.roster_id]["losses"] += 1
            elif team2.points > team1.points:
                stats[team2.roster_id]["wins"] += 1
                stats[team1.roster_id]["losses"] += 1
            else:
                stats[team1.roster_id]["ties"] += 1
                stats[team2.roster_id]["ties"] += 1

    return _sorted_standings([
        Standing(
            roster_id=roster.roster_id,
            team_name=team_name(roster, users),
            wins=stats[roster.roster_id]["wins"],
            losses=stats[roster.roster_id]["losses"],
            ties=stats[roster.roster_id]["ties"],
            points_for=round(stats[roster.roster_id]["points_for"], 2),
            points_against=round(stats[roster.roster_id]["points_against"], 2),
        )
        for roster in rosters
    ])


def matchup_result(matchup: Matchup, week_matchups: Iterable[Matchup]) -> str:
    """'W', 'L' or 'T' against the other side of the pairing; no opponent counts as 'L'."""
    opponent = next(
        (
            m for m in week_matchups
            if matchup.matchup_id is not None
            and m.matchup_id == matchup.matchup_id
            and m.roster_id != matchup.roster_id
        ),
        None,
    )
    if opponent is None:
        return "L"
    if matchup.points > opponent.points:
        return "W"
    if matchup.points < opponent.points:
        return "L"
    return "T"
