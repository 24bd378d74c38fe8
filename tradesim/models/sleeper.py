from typing import List, Dict, Any, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class User(BaseModel):
    user_id: str
    username: Optional[str] = None
    display_name: Optional[str] = None
    avatar: Optional[str] = None


class League(BaseModel):
    """One season of a league. Seasons link backwards via ``previous_league_id``."""
    league_id: str
    name: Optional[str] = None
    season: str
    status: Optional[str] = None
    total_rosters: Optional[int] = None
    previous_league_id: Optional[str] = None
    settings: Dict[str, Any] = {}

    @property
    def year(self) -> int:
        return int(self.season)


class RosterSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    wins: int = 0
    losses: int = 0
    ties: int = 0
    fpts: float = 0
    fpts_decimal: float = 0
    fpts_against: float = 0
    fpts_against_decimal: float = 0

    @field_validator("*", mode="before")
    @classmethod
    def _none_is_zero(cls, value):
        return 0 if value is None else value

    @property
    def points_for(self) -> float:
        return round(self.fpts + self.fpts_decimal / 100, 2)

    @property
    def points_against(self) -> float:
        return round(self.fpts_against + self.fpts_against_decimal / 100, 2)


class Roster(BaseModel):
    roster_id: int
    owner_id: Optional[str] = None
    players: List[str] = []
    starters: List[str] = []
    settings: RosterSettings = RosterSettings()

    @field_validator("players", "starters", mode="before")
    @classmethod
    def _none_is_empty(cls, value):
        return value or []

    @field_validator("settings", mode="before")
    @classmethod
    def _settings_default(cls, value):
        return value or {}


class DraftPickRef(BaseModel):
    """A traded draft pick as it appears inside a transaction.

    Sleeper has used several field names for the pick's original owner over
    time. ``original_owner`` is filled once here, preferring an explicit
    ``original_owner``, then ``previous_owner_id``, then ``roster_id``.
    """
    season: int
    round: int
    roster_id: Optional[int] = None
    owner_id: Optional[int] = None
    previous_owner_id: Optional[int] = None
    original_owner: Optional[int] = None

    @model_validator(mode="before")
    @classmethod
    def _normalize_original_owner(cls, data):
        if isinstance(data, dict) and data.get("original_owner") is None:
            for key in ("previous_owner_id", "roster_id"):
                if data.get(key) is not None:
                    data = {**data, "original_owner": data[key]}
                    break
        return data


class Transaction(BaseModel):
    transaction_id: str
    type: str
    status: Optional[str] = None
    status_updated: Optional[int] = None  # Unix timestamp in ms
    week: Optional[int] = None
    roster_ids: List[int] = []
    adds: Dict[str, int] = {}
    drops: Dict[str, int] = {}
    draft_picks: List[DraftPickRef] = []

    @field_validator("roster_ids", "adds", "drops", "draft_picks", mode="before")
    @classmethod
    def _none_is_empty(cls, value, info):
        if value is None:
            return {} if info.field_name in ("adds", "drops") else []
        return value

    @property
    def is_trade(self) -> bool:
        return self.type == "trade"


class Matchup(BaseModel):
    roster_id: int
    matchup_id: Optional[int] = None
    points: float = 0
    players: List[str] = []
    starters: List[str] = []
    players_points: Dict[str, float] = {}
    week: Optional[int] = None

    @field_validator("points", mode="before")
    @classmethod
    def _points_default(cls, value):
        return 0 if value is None else value

    @field_validator("players", "starters", "players_points", mode="before")
    @classmethod
    def _none_is_empty(cls, value, info):
        if value is None:
            return {} if info.field_name == "players_points" else []
        return value


class Draft(BaseModel):
    draft_id: str
    season: Optional[str] = None
    status: Optional[str] = None
    type: Optional[str] = None
    settings: Dict[str, Any] = {}


class DraftPick(BaseModel):
    pick_no: int
    round: int
    player_id: Optional[str] = None
    roster_id: Optional[int] = None
    draft_slot: Optional[int] = None


class Player(BaseModel):
    player_id: str
    full_name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    position: Optional[str] = None
    team: Optional[str] = None


class SeasonBundle(BaseModel):
    """Everything fetched for one season of a league."""
    year: int
    league_id: str
    rosters: List[Roster] = []
    users: List[User] = []
    drafts: List[Draft] = []
    draft_picks_by_draft_id: Dict[str, List[DraftPick]] = {}
    season_complete: bool = False


# Produced outputs use camelCase keys for the presentation layer.

class _Output(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class Standing(_Output):
    roster_id: int = Field(alias="rosterId")
    team_name: str = Field(alias="teamName")
    wins: int = 0
    losses: int = 0
    ties: int = 0
    points_for: float = Field(0, alias="pointsFor")
    points_against: float = Field(0, alias="pointsAgainst")
    rank: int = 0


class TeamWeeklyImpact(_Output):
    roster_id: int = Field(alias="rosterId")
    team_name: str = Field(alias="teamName")
    original_points: float = Field(alias="originalPoints")
    simulated_points: float = Field(alias="simulatedPoints")
    difference: float
    original_result: str = Field(alias="originalResult")
    simulated_result: str = Field(alias="simulatedResult")


class WeeklyImpact(_Output):
    week: int
    team_impacts: List[TeamWeeklyImpact] = Field(alias="teamImpacts")


class SimulationResult(_Output):
    original_standings: List[Standing] = Field(alias="originalStandings")
    simulated_standings: List[Standing] = Field(alias="simulatedStandings")
    weekly_impact: List[WeeklyImpact] = Field(alias="weeklyImpact")
    affected_teams: List[str] = Field(alias="affectedTeams")


class PickResolution(_Output):
    season: int
    round: int
    display_round: str = Field(alias="displayRound")
    slot: Optional[str] = None
    player: Optional[str] = None
    original_owner_name: Optional[str] = Field(None, alias="originalOwnerName")

    @property
    def label(self) -> str:
        if self.slot and self.player:
            return f"{self.display_round} ({self.slot} - {self.player})"
        if self.slot and self.original_owner_name:
            return f"{self.display_round} ({self.slot} - from {self.original_owner_name})"
        if self.slot:
            return f"{self.display_round} ({self.slot})"
        return self.display_round


class TradeSide(_Output):
    roster_id: int = Field(alias="rosterId")
    team_name: str = Field(alias="teamName")
    received: List[str] = []
    sent: List[str] = []
    received_picks: List[str] = Field([], alias="receivedPicks")
    sent_picks: List[str] = Field([], alias="sentPicks")


class TradeSummary(_Output):
    transaction_id: str = Field(alias="transactionId")
    week: Optional[int] = None
    status_updated: Optional[int] = Field(None, alias="statusUpdated")
    sides: List[TradeSide] = []


class MatchupTeam(_Output):
    roster_id: int = Field(alias="rosterId")
    team_name: str = Field(alias="teamName")
    points: float = 0


class MatchupPairing(_Output):
    matchup_id: int = Field(alias="matchupId")
    teams: List[MatchupTeam] = []


class ActivityItem(_Output):
    transaction_id: str = Field(alias="transactionId")
    type: str
    type_label: str = Field(alias="typeLabel")
    status_updated: Optional[int] = Field(None, alias="statusUpdated")
    team_names: List[str] = Field([], alias="teamNames")
    added: List[str] = []
    dropped: List[str] = []


class LeagueStats(_Output):
    total_teams: int = Field(0, alias="totalTeams")
    total_transactions: int = Field(0, alias="totalTransactions")
    average_score: float = Field(0, alias="averageScore")
    highest_score: float = Field(0, alias="highestScore")
    top_scorer: str = Field("Unknown", alias="topScorer")


class LeagueDashboard(_Output):
    league_id: str = Field(alias="leagueId")
    name: Optional[str] = None
    season: str
    status: Optional[str] = None
    current_week: int = Field(alias="currentWeek")
    standings: List[Standing] = []
    matchups: List[MatchupPairing] = []
    recent_activity: List[ActivityItem] = Field([], alias="recentActivity")
    stats: LeagueStats = LeagueStats()


class SimulateRequest(BaseModel):
    transaction_ids: List[str] = []
