import logging
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from .. import client
from ..models.sleeper import (
    League,
    Matchup,
    PickResolution,
    Player,
    Roster,
    SeasonBundle,
    SimulationResult,
    TeamWeeklyImpact,
    TradeSummary,
    Transaction,
    User,
    WeeklyImpact,
)
from .draft_picks import resolve_all
from .resimulator import PointDeltaHeuristic, resimulate
from .season_chain import seasons_needed_for_picks
from .season_loader import LeagueDataCache, SeasonCompletePredicate, completed_before_current_year, load_seasons
from .sleeper_service import get_all_matchups, scored_weeks, summarize_trade
from .standings import matchup_result, rank, team_name
from .timeline import undo_trades

logger = logging.getLogger(__name__)


def affected_teams(trades: Iterable[Transaction]) -> List[str]:
    """Roster ids (as strings) party to any of ``trades``, in first-seen order."""
    affected: Dict[str, None] = {}
    for trade in trades:
        for roster_id in trade.roster_ids:
            affected[str(roster_id)] = None
    return list(affected)


class TradeSimulationEngine:
    """
    Replays a season as if selected trades never happened.

    The engine owns a :class:`LeagueDataCache`; pass a shared one to reuse
    fetched matchups and season bundles, and invalidate it when the selected
    league changes.
    """

    def __init__(
        self,
        league: League,
        rosters: Sequence[Roster],
        users: Sequence[User],
        players: Optional[Mapping[str, Player]] = None,
        api=client,
        cache: Optional[LeagueDataCache] = None,
        strategy: Optional[PointDeltaHeuristic] = None,
    ):
        self.league = league
        self.original_rosters = list(rosters)
        self.users = list(users)
        self.players = players or {}
        self.api = api
        self.cache = cache if cache is not None else LeagueDataCache()
        self.strategy = strategy or PointDeltaHeuristic()

    async def load_matchups(self) -> Dict[int, List[Matchup]]:
        matchups = self.cache.get_matchups(self.league.league_id)
        if matchups is None:
            weeks = await scored_weeks(self.league, self.api)
            matchups = await get_all_matchups(self.league.league_id, self.api, weeks)
            self.cache.set_matchups(self.league.league_id, matchups)
        return matchups

    async def simulate(self, trades_to_undo: Sequence[Transaction]) -> SimulationResult:
        all_matchups = await self.load_matchups()

        original_standings = rank(self.original_rosters, self.users)
        simulated_rosters = undo_trades(self.original_rosters, trades_to_undo)
        alternate_matchups, simulated_standings = resimulate(
            all_matchups, simulated_rosters, self.original_rosters, self.users, self.strategy
        )
        if not trades_to_undo:
            # Nothing changed; keep the official record rather than a matchup-derived one.
            simulated_standings = [s.model_copy() for s in original_standings]

        logger.info(
            "Simulated league %s without %d trade(s) over %d week(s)",
            self.league.league_id, len(trades_to_undo), len(alternate_matchups),
        )
        return SimulationResult(
            original_standings=original_standings,
            simulated_standings=simulated_standings,
            weekly_impact=self.weekly_impact(all_matchups, alternate_matchups),
            affected_teams=affected_teams(trades_to_undo),
        )

    def weekly_impact(
        self,
        original_matchups: Mapping[int, Sequence[Matchup]],
        simulated_matchups: Mapping[int, Sequence[Matchup]],
    ) -> List[WeeklyImpact]:
        weekly: List[WeeklyImpact] = []
        for week in sorted(simulated_matchups):
            matchups = simulated_matchups[week]
            originals = original_matchups.get(week, [])
            team_impacts = []
            for simulated in matchups:
                original = next((m for m in originals if m.roster_id == simulated.roster_id), None)
                name = self.team_name_for(simulated.roster_id)
                if original is None:
                    team_impacts.append(TeamWeeklyImpact(
                        roster_id=simulated.roster_id,
                        team_name=name,
                        original_points=0,
                        simulated_points=round(simulated.points, 2),
                        difference=round(simulated.points, 2),
                        original_result="L",
                        simulated_result="L",
                    ))
                    continue
                team_impacts.append(TeamWeeklyImpact(
                    roster_id=simulated.roster_id,
                    team_name=name,
                    original_points=round(original.points, 2),
                    simulated_points=round(simulated.points, 2),
                    difference=round(simulated.points - original.points, 2),
                    original_result=matchup_result(original, originals),
                    simulated_result=matchup_result(simulated, matchups),
                ))
            weekly.append(WeeklyImpact(week=week, team_impacts=team_impacts))
        return weekly

    def team_name_for(self, roster_id: int) -> str:
        roster = next((r for r in self.original_rosters if r.roster_id == roster_id), None)
        return team_name(roster, self.users) if roster else f"Team {roster_id}"

    async def load_pick_seasons(
        self,
        trades: Sequence[Transaction],
        league_seasons: Sequence[League],
        is_season_complete: SeasonCompletePredicate = completed_before_current_year,
    ) -> Dict[int, SeasonBundle]:
        return await load_seasons(
            seasons_needed_for_picks(trades),
            league_seasons,
            api=self.api,
            cache=self.cache,
            cache_key=self.league.league_id,
            is_season_complete=is_season_complete,
        )

    async def resolve_picks(
        self,
        trades: Sequence[Transaction],
        league_seasons: Sequence[League],
        is_season_complete: SeasonCompletePredicate = completed_before_current_year,
    ) -> Dict[str, PickResolution]:
        """Resolve every traded pick in ``trades`` against the league's season history."""
        bundles = await self.load_pick_seasons(trades, league_seasons, is_season_complete)
        return resolve_all(trades, bundles, self.players)

    async def summarize_trades(
        self,
        trades: Sequence[Transaction],
        league_seasons: Sequence[League],
        is_season_complete: SeasonCompletePredicate = completed_before_current_year,
    ) -> List[TradeSummary]:
        bundles = await self.load_pick_seasons(trades, league_seasons, is_season_complete)
        return [
            summarize_trade(trade, self.original_rosters, self.users, self.players, bundles)
            for trade in trades
        ]
