from tradesim.models.sleeper import Roster, Transaction
from tradesim.services.timeline import apply_trade, undo_trades


def _trade(transaction_id, adds, drops, status_updated, roster_ids=(1, 2)):
    return Transaction(
        transaction_id=transaction_id,
        type="trade",
        status="complete",
        status_updated=status_updated,
        roster_ids=list(roster_ids),
        adds=adds,
        drops=drops,
    )


def _players(rosters):
    return {r.roster_id: set(r.players) for r in rosters}


def test_undo_moves_player_back(make_roster):
    rosters = [
        Roster(**make_roster(1, players=["P1", "P2"], starters=["P1"])),
        Roster(**make_roster(2, players=["P3"])),
    ]
    trade = _trade("t1", adds={"P1": 1}, drops={"P1": 2}, status_updated=1_000)

    alternate = undo_trades(rosters, [trade])

    assert alternate[0].players == ["P2"]
    assert alternate[0].starters == []
    assert alternate[1].players == ["P3", "P1"]
    # Reversing a trade does not put the player into the old starting lineup.
    assert alternate[1].starters == []


def test_undo_never_mutates_input(make_roster):
    rosters = [
        Roster(**make_roster(1, players=["P1", "P2"], starters=["P1"])),
        Roster(**make_roster(2, players=["P3"])),
    ]
    trade = _trade("t1", adds={"P1": 1}, drops={"P1": 2}, status_updated=1_000)

    undo_trades(rosters, [trade])

    assert rosters[0].players == ["P1", "P2"]
    assert rosters[0].starters == ["P1"]
    assert rosters[1].players == ["P3"]


def test_undo_is_idempotent(make_roster):
    rosters = [
        Roster(**make_roster(1, players=["P1", "P2", "P4"])),
        Roster(**make_roster(2, players=["P3", "P5"])),
    ]
    trade = _trade("t1", adds={"P1": 1, "P5": 2}, drops={"P1": 2, "P5": 1}, status_updated=1_000)

    once = undo_trades(rosters, [trade])
    twice = undo_trades(rosters, [trade, trade])

    assert _players(once) == _players(twice)


def test_reapplying_trade_restores_rosters(make_roster):
    rosters = [
        Roster(**make_roster(1, players=["P1", "P2", "P4"])),
        Roster(**make_roster(2, players=["P3", "P5"])),
        Roster(**make_roster(3, players=["P6"])),
    ]
    trade = _trade("t1", adds={"P1": 1, "P5": 2}, drops={"P1": 2, "P5": 1}, status_updated=1_000)

    alternate = undo_trades(rosters, [trade])
    apply_trade(alternate, trade)

    assert _players(alternate) == _players(rosters)


def test_multi_hop_player_returns_to_earliest_holder(make_roster):
    # P1 went 3 -> 2 (older trade), then 2 -> 1 (newer trade).
    rosters = [
        Roster(**make_roster(1, players=["P1"])),
        Roster(**make_roster(2, players=[])),
        Roster(**make_roster(3, players=[])),
    ]
    older = _trade("old", adds={"P1": 2}, drops={"P1": 3}, status_updated=1_000, roster_ids=(2, 3))
    newer = _trade("new", adds={"P1": 1}, drops={"P1": 2}, status_updated=2_000, roster_ids=(1, 2))

    alternate = undo_trades(rosters, [older, newer])

    assert _players(alternate) == {1: set(), 2: set(), 3: {"P1"}}


def test_unknown_rosters_are_ignored(make_roster):
    rosters = [Roster(**make_roster(1, players=["P1"]))]
    trade = _trade("t1", adds={"P9": 7}, drops={"P9": 8}, status_updated=None)

    alternate = undo_trades(rosters, [trade])

    assert alternate[0].players == ["P1"]
