import asyncio

from tradesim.models.sleeper import League
from tradesim.services import sleeper_service


class CountingApi:
    """Tracks how many matchup requests are in flight at once."""

    def __init__(self):
        self.in_flight = 0
        self.peak = 0

    async def get_league_matchups(self, league_id, week):
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)
        await asyncio.sleep(0)
        self.in_flight -= 1
        return [{"roster_id": 1, "matchup_id": 1, "points": week}]


def test_week_requests_are_bounded(offline_settings, monkeypatch):
    monkeypatch.setattr(offline_settings, "max_concurrent_requests", 2)
    api = CountingApi()

    matchups = asyncio.run(sleeper_service.get_all_matchups("L1", api))

    assert api.peak == 2
    assert sorted(matchups) == list(range(1, offline_settings.max_week + 1))


def test_zero_score_weeks_are_dropped(fake_api):
    api = fake_api(matchups={
        ("L1", 1): [{"roster_id": 1, "matchup_id": 1, "points": 88.1}, {"roster_id": 2, "matchup_id": 1, "points": 0}],
        ("L1", 2): [{"roster_id": 1, "matchup_id": 1, "points": 0}, {"roster_id": 2, "matchup_id": 1, "points": 0}],
    })

    matchups = asyncio.run(sleeper_service.get_all_matchups("L1", api, weeks=[1, 2]))

    assert list(matchups) == [1]
    assert all(m.week == 1 for m in matchups[1])


def test_scored_weeks_for_finished_league(fake_api):
    league = League(league_id="L1", season="2023", status="complete", settings={"playoff_week_start": 15})
    api = fake_api(nfl_state={"week": 3})

    assert asyncio.run(sleeper_service.scored_weeks(league, api)) == range(1, 15)
    assert api.calls == []


def test_scored_weeks_for_in_season_league(fake_api):
    league = League(league_id="L1", season="2024", status="in_season")

    assert asyncio.run(sleeper_service.scored_weeks(league, fake_api(nfl_state={"week": 6}))) == range(1, 6)
    # Without a usable state only the configured limit applies.
    failing = fake_api(failures={("state",)})
    assert asyncio.run(sleeper_service.scored_weeks(league, failing)) == range(1, 19)


def test_get_all_trades_keeps_trades_newest_first(fake_api):
    api = fake_api(
        transactions={
            ("L1", 2): [
                {"transaction_id": "old", "type": "trade", "status_updated": 10, "roster_ids": [1, 2]},
                {"transaction_id": "w", "type": "waiver", "status_updated": 50, "roster_ids": [1]},
            ],
            ("L1", 5): [{"transaction_id": "new", "type": "trade", "status_updated": 40, "roster_ids": [3, 4]}],
        },
        failures={("transactions", "L1", 7)},
    )

    trades = asyncio.run(sleeper_service.get_all_trades("L1", api))

    assert [t.transaction_id for t in trades] == ["new", "old"]
    assert [t.week for t in trades] == [5, 2]


def test_history_stops_at_a_gap(fake_api):
    api = fake_api(
        leagues={
            "L3": {"league_id": "L3", "season": "2024", "previous_league_id": "L2"},
            "L2": {"league_id": "L2", "season": "2023", "previous_league_id": "L1"},
        },
        failures={("league", "L1")},
    )

    history = asyncio.run(sleeper_service.get_league_history("L3", api))

    assert [league.league_id for league in history] == ["L3", "L2"]
