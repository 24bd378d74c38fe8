from typing import Dict, Iterable, List, Mapping, NamedTuple, Optional, Sequence

from ..models.sleeper import Matchup, Roster, Standing, User
from .standings import rank_from_matchups


class PointDeltaHeuristic:
    """
    Estimate an alternate weekly score from roster differences alone.

    Gained players add, lost players subtract, their recorded points from the
    original box score. Bench and lineup choices are not modelled; an
    optimal-lineup strategy can replace this behind :func:`resimulate`.
    """

    def estimate(self, matchup: Matchup, alternate_roster: Roster, original_players: Sequence[str]) -> float:
        original = set(original_players)
        alternate = set(alternate_roster.players)

        adjustment = 0.0
        for player_id in alternate - original:
            adjustment += matchup.players_points.get(player_id, 0) or 0
        for player_id in original - alternate:
            adjustment -= matchup.players_points.get(player_id, 0) or 0

        return max(0.0, matchup.points + adjustment)


class Resimulation(NamedTuple):
    alternate_matchups: Dict[int, List[Matchup]]
    alternate_standings: List[Standing]


def resimulate(
    all_weekly_matchups: Mapping[int, Sequence[Matchup]],
    alternate_rosters: Sequence[Roster],
    original_rosters: Sequence[Roster],
    users: Iterable[User] = (),
    strategy: Optional[PointDeltaHeuristic] = None,
) -> Resimulation:
    strategy = strategy or PointDeltaHeuristic()
    alternate_by_id = {r.roster_id: r for r in alternate_rosters}
    original_players = {r.roster_id: r.players for r in original_rosters}

    alternate_matchups: Dict[int, List[Matchup]] = {}
    for week, matchups in all_weekly_matchups.items():
        week_matchups = []
        for matchup in matchups:
            alternate_roster = alternate_by_id.get(matchup.roster_id)
            if alternate_roster is None:
                week_matchups.append(matchup)
                continue
            points = strategy.estimate(matchup, alternate_roster, original_players.get(matchup.roster_id, []))
            week_matchups.append(matchup.model_copy(update={"points": points}))
        alternate_matchups[week] = week_matchups

    alternate_standings = rank_from_matchups(alternate_matchups, alternate_rosters, users)
    return Resimulation(alternate_matchups, alternate_standings)
