import logging
from datetime import date
from typing import Dict, Mapping, Optional

from ..models.sleeper import Draft, DraftPickRef, PickResolution, Player, SeasonBundle
from .standings import roster_rank, team_name

logger = logging.getLogger(__name__)


def ordinal(number: int) -> str:
    if 10 <= number % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(number % 10, "th")
    return f"{number}{suffix}"


def display_round(season: int, round_number: int) -> str:
    return f"{season} {ordinal(round_number)} Round Pick"


def draft_slot_for_rank(final_rank: int, total_teams: int) -> int:
    """
    Draft slot within a round for a team that finished at ``final_rank``.

    Worst record picks first: the champion-ranked team (rank 1) picks last.
    """
    return total_teams - final_rank + 1


def format_slot(round_number: int, slot: int) -> str:
    return f"{round_number}.{slot:02d}"


def format_player(player_id: str, players: Optional[Mapping[str, Player]]) -> str:
    player = (players or {}).get(player_id)
    if player is None:
        return f"Player {player_id}"
    name = player.full_name or " ".join(n for n in (player.first_name, player.last_name) if n) or f"Player {player_id}"
    return f"{name} ({player.position})" if player.position else name


def _completed_draft(bundle: SeasonBundle, season: int) -> Optional[Draft]:
    # A bundle reused for a future season carries an older season's drafts.
    drafts = [d for d in bundle.drafts if d.season is None or str(d.season) == str(season)]
    for draft in drafts:
        if draft.status == "complete":
            return draft
    for draft in drafts:
        if bundle.draft_picks_by_draft_id.get(draft.draft_id):
            return draft
    return None


def resolve(
    pick: DraftPickRef,
    bundles: Mapping[int, SeasonBundle],
    players: Optional[Mapping[str, Player]] = None,
    current_year: Optional[int] = None,
) -> PickResolution:
    """
    Resolve a traded pick to its draft slot and, once drafted, the player taken.

    Each missing piece of information only makes the result less specific;
    nothing here raises for absent data.
    """
    resolution = PickResolution(season=pick.season, round=pick.round, display_round=display_round(pick.season, pick.round))

    standings_year = pick.season - 1
    standings_bundle = bundles.get(standings_year)
    if standings_bundle is None or not standings_bundle.season_complete or not standings_bundle.rosters:
        logger.debug("No final standings from %s for %s draft order", standings_year, pick.season)
        return resolution

    if pick.original_owner is None:
        return resolution
    original_roster = next((r for r in standings_bundle.rosters if r.roster_id == pick.original_owner), None)
    if original_roster is None:
        logger.debug("Roster %s not found in %s season", pick.original_owner, standings_year)
        return resolution

    final_rank = roster_rank(original_roster.roster_id, standings_bundle.rosters)
    total_teams = len(standings_bundle.rosters)
    slot = draft_slot_for_rank(final_rank, total_teams)
    resolution.slot = format_slot(pick.round, slot)
    if original_roster.owner_id:
        resolution.original_owner_name = team_name(original_roster, standings_bundle.users)

    current_year = date.today().year if current_year is None else current_year
    pick_bundle = bundles.get(pick.season)
    draft = _completed_draft(pick_bundle, pick.season) if pick_bundle else None
    if draft is None:
        return resolution
    if pick.season > current_year and draft.status != "complete":
        return resolution

    overall_pick = (pick.round - 1) * total_teams + slot
    selected = next(
        (p for p in pick_bundle.draft_picks_by_draft_id.get(draft.draft_id, []) if p.pick_no == overall_pick),
        None,
    )
    if selected and selected.player_id:
        resolution.player = format_player(selected.player_id, players)
        logger.debug("Pick %s (overall %d) became %s", resolution.slot, overall_pick, resolution.player)
    return resolution


def resolve_all(
    trades,
    bundles: Mapping[int, SeasonBundle],
    players: Optional[Mapping[str, Player]] = None,
    current_year: Optional[int] = None,
) -> Dict[str, PickResolution]:
    """Resolutions for every pick in ``trades``, keyed by ``season-round-original_owner``."""
    resolved: Dict[str, PickResolution] = {}
    for trade in trades:
        for pick in trade.draft_picks:
            resolved[pick_key(pick)] = resolve(pick, bundles, players, current_year)
    return resolved


def pick_key(pick: DraftPickRef) -> str:
    return f"{pick.season}-{pick.round}-{pick.original_owner}"
