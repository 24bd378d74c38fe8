import httpx
import pytest

from tradesim.config import settings


@pytest.fixture(autouse=True)
def offline_settings(monkeypatch, tmp_path):
    monkeypatch.setattr(settings, "request_pace_seconds", 0)
    monkeypatch.setattr(settings, "use_cache", False)
    monkeypatch.setattr(settings, "database_url", str(tmp_path / "cache.db"))
    return settings


class FakeSleeperApi:
    """In-memory stand-in for ``tradesim.client``. Keys listed in ``failures`` raise."""

    def __init__(
        self,
        leagues=None,
        rosters=None,
        users=None,
        drafts=None,
        picks=None,
        matchups=None,
        transactions=None,
        players=None,
        accounts=None,
        nfl_state=None,
        failures=(),
    ):
        self.leagues = leagues or {}
        self.rosters = rosters or {}
        self.users = users or {}
        self.drafts = drafts or {}
        self.picks = picks or {}
        self.matchups = matchups or {}
        self.transactions = transactions or {}
        self.players = players or {}
        self.accounts = accounts or {}
        self.nfl_state = nfl_state or {}
        self.failures = set(failures)
        self.calls = []

    def _call(self, *key):
        self.calls.append(key)
        if key in self.failures or key[:1] in self.failures:
            raise httpx.ConnectError(f"simulated failure for {key}")

    async def get_user_by_username(self, username):
        self._call("user", username)
        return self.accounts.get(username)

    async def get_leagues_for_user(self, user_id, season):
        self._call("user_leagues", user_id, season)
        return [l for l in self.leagues.values() if l.get("season") == season]

    async def get_league(self, league_id):
        self._call("league", league_id)
        return self.leagues.get(league_id)

    async def get_league_rosters(self, league_id):
        self._call("rosters", league_id)
        return self.rosters.get(league_id, [])

    async def get_league_users(self, league_id):
        self._call("users", league_id)
        return self.users.get(league_id, [])

    async def get_league_drafts(self, league_id):
        self._call("drafts", league_id)
        return self.drafts.get(league_id, [])

    async def get_draft_picks(self, draft_id):
        self._call("picks", draft_id)
        return self.picks.get(draft_id, [])

    async def get_league_matchups(self, league_id, week):
        self._call("matchups", league_id, week)
        return self.matchups.get((league_id, week), [])

    async def get_league_transactions(self, league_id, week):
        self._call("transactions", league_id, week)
        return self.transactions.get((league_id, week), [])

    async def get_all_players(self):
        self._call("players")
        return self.players

    async def get_nfl_state(self):
        self._call("state")
        return self.nfl_state


@pytest.fixture
def fake_api():
    return FakeSleeperApi


def roster_data(roster_id, owner_id=None, players=(), starters=(), wins=0, losses=0, ties=0, fpts=0, fpts_against=0):
    return {
        "roster_id": roster_id,
        "owner_id": owner_id,
        "players": list(players),
        "starters": list(starters),
        "settings": {"wins": wins, "losses": losses, "ties": ties, "fpts": fpts, "fpts_against": fpts_against},
    }


@pytest.fixture
def make_roster():
    return roster_data
