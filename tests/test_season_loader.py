import asyncio

from tradesim.models.sleeper import League, SeasonBundle
from tradesim.services.season_loader import (
    LeagueDataCache,
    completed_before_current_year,
    load_seasons,
    status_aware_season_complete,
)


def _history():
    return [
        League(league_id="L2024", season="2024", status="complete", previous_league_id="L2023"),
        League(league_id="L2023", season="2023", status="complete", previous_league_id="L2022"),
        League(league_id="L2022", season="2022", status="complete", previous_league_id=None),
    ]


def _api(fake_api, make_roster, **kwargs):
    league_ids = ("L2022", "L2023", "L2024")
    return fake_api(
        rosters={lid: [make_roster(1, owner_id="u1"), make_roster(2, owner_id="u2")] for lid in league_ids},
        users={lid: [{"user_id": "u1", "username": "one"}, {"user_id": "u2", "username": "two"}] for lid in league_ids},
        drafts={lid: [{"draft_id": f"D{lid[1:]}", "season": lid[1:], "status": "complete"}] for lid in league_ids},
        picks={f"D{lid[1:]}": [{"pick_no": 1, "round": 1, "player_id": "100", "roster_id": 2}] for lid in league_ids},
        **kwargs,
    )


def test_loads_a_bundle_per_resolvable_year(fake_api, make_roster):
    api = _api(fake_api, make_roster)

    bundles = asyncio.run(load_seasons({2023, 2024}, _history(), api=api, is_season_complete=lambda year: True))

    assert sorted(bundles) == [2023, 2024]
    bundle = bundles[2023]
    assert bundle.league_id == "L2023"
    assert [r.roster_id for r in bundle.rosters] == [1, 2]
    assert [u.username for u in bundle.users] == ["one", "two"]
    assert bundle.draft_picks_by_draft_id["D2023"][0].player_id == "100"
    assert bundle.season_complete is True


def test_partial_failures_leave_other_years(fake_api, make_roster):
    api = _api(fake_api, make_roster)

    # 2019 and 2020 cannot be resolved to a league id.
    bundles = asyncio.run(load_seasons([2019, 2020, 2022, 2023, 2024], _history(), api=api))

    assert sorted(bundles) == [2022, 2023, 2024]


def test_failed_season_fetch_is_skipped(fake_api, make_roster):
    api = _api(fake_api, make_roster, failures={("users", "L2023")})

    bundles = asyncio.run(load_seasons([2022, 2023, 2024], _history(), api=api))

    assert sorted(bundles) == [2022, 2024]


def test_failed_draft_picks_become_empty_list(fake_api, make_roster):
    api = _api(fake_api, make_roster, failures={("picks", "D2024")})

    bundles = asyncio.run(load_seasons([2024], _history(), api=api))

    assert bundles[2024].draft_picks_by_draft_id == {"D2024": []}
    assert len(bundles[2024].rosters) == 2


def test_cache_avoids_refetching(fake_api, make_roster):
    api = _api(fake_api, make_roster)
    cache = LeagueDataCache()

    asyncio.run(load_seasons([2023], _history(), api=api, cache=cache, cache_key="L2024"))
    calls_after_first = len(api.calls)
    asyncio.run(load_seasons([2023], _history(), api=api, cache=cache, cache_key="L2024"))

    assert len(api.calls) == calls_after_first
    assert cache.get_bundle("L2024", 2023) is not None

    cache.invalidate("L2024")
    assert cache.get_bundle("L2024", 2023) is None


def test_cache_invalidate_everything():
    cache = LeagueDataCache()
    cache.set_matchups("L1", {1: []})
    cache.set_matchups("L2", {1: []})

    cache.invalidate("L1")
    assert cache.get_matchups("L1") is None
    assert cache.get_matchups("L2") == {1: []}

    cache.invalidate()
    assert cache.get_matchups("L2") is None


def test_current_and_future_seasons_are_incomplete():
    assert completed_before_current_year(2000) is True
    assert completed_before_current_year(9999) is False


def test_status_aware_predicate_trusts_complete_status():
    seasons = [League(league_id="L9998", season="9998", status="complete"), League(league_id="L9999", season="9999", status="in_season")]
    is_complete = status_aware_season_complete(seasons)

    assert is_complete(9998) is True
    assert is_complete(9999) is False
    assert is_complete(2001) is True


def test_cache_drops_least_recently_used_bundles():
    cache = LeagueDataCache(maxsize=2)
    for year in (2022, 2023):
        cache.set_bundle("L1", SeasonBundle(year=year, league_id="L1"))

    cache.get_bundle("L1", 2022)
    cache.set_bundle("L1", SeasonBundle(year=2024, league_id="L1"))

    assert cache.get_bundle("L1", 2023) is None
    assert cache.get_bundle("L1", 2022) is not None
    assert cache.get_bundle("L1", 2024) is not None


def test_cached_matchups_expire():
    cache = LeagueDataCache(matchup_ttl_seconds=0)
    cache.set_matchups("L1", {1: []})

    assert cache.get_matchups("L1") is None
