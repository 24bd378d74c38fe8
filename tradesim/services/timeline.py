from typing import Dict, Iterable, List, Sequence

from ..models.sleeper import Roster, Transaction


def _by_id(rosters: Iterable[Roster]) -> Dict[int, Roster]:
    return {roster.roster_id: roster for roster in rosters}


def undo_trade(rosters: Sequence[Roster], trade: Transaction) -> None:
    """Reverse one trade in place on ``rosters``. Undoing it twice changes nothing."""
    lookup = _by_id(rosters)

    for player_id, receiving_roster_id in trade.adds.items():
        roster = lookup.get(receiving_roster_id)
        if roster:
            roster.players = [p for p in roster.players if p != player_id]
            roster.starters = [p for p in roster.starters if p != player_id]

    # Starters are not restored; the original lineup decisions are unknown.
    for player_id, sending_roster_id in trade.drops.items():
        roster = lookup.get(sending_roster_id)
        if roster and player_id not in roster.players:
            roster.players.append(player_id)


def apply_trade(rosters: Sequence[Roster], trade: Transaction) -> None:
    """Replay a trade forward in place: players leave ``drops`` rosters and join ``adds`` rosters."""
    lookup = _by_id(rosters)

    for player_id, sending_roster_id in trade.drops.items():
        roster = lookup.get(sending_roster_id)
        if roster:
            roster.players = [p for p in roster.players if p != player_id]
            roster.starters = [p for p in roster.starters if p != player_id]

    for player_id, receiving_roster_id in trade.adds.items():
        roster = lookup.get(receiving_roster_id)
        if roster and player_id not in roster.players:
            roster.players.append(player_id)


def undo_trades(current_rosters: Sequence[Roster], trades_to_undo: Iterable[Transaction]) -> List[Roster]:
    """
    Build the alternate-timeline rosters in which ``trades_to_undo`` never happened.

    Works on deep copies; ``current_rosters`` is left untouched. Trades are
    reversed most recent first so a player who moved more than once ends up
    back with their earliest holder.
    """
    alternate_rosters = [roster.model_copy(deep=True) for roster in current_rosters]
    for trade in sorted(trades_to_undo, key=lambda t: t.status_updated or 0, reverse=True):
        undo_trade(alternate_rosters, trade)
    return alternate_rosters
