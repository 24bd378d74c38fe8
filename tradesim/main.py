import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware

from . import client, database
from .models.sleeper import (
    League,
    LeagueDashboard,
    PickResolution,
    Roster,
    SimulateRequest,
    SimulationResult,
    Standing,
    TradeSummary,
    User,
)
from .services import dashboard, sleeper_service
from .services.season_loader import LeagueDataCache, status_aware_season_complete
from .services.simulation import TradeSimulationEngine
from .services.standings import rank

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await database.create_tables()
    app.state.cache = LeagueDataCache()
    yield


app = FastAPI(lifespan=lifespan)

# Configure CORS for frontend integration
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",  # Vite development server
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_api():
    return client


def get_cache(request: Request) -> LeagueDataCache:
    cache = getattr(request.app.state, "cache", None)
    if cache is None:
        cache = request.app.state.cache = LeagueDataCache()
    return cache


async def _load_engine(league_id: str, api, cache: LeagueDataCache) -> TradeSimulationEngine:
    try:
        league_data, rosters_data, users_data = await asyncio.gather(
            api.get_league(league_id),
            api.get_league_rosters(league_id),
            api.get_league_users(league_id),
        )
    except Exception as e:
        logger.warning("Failed to load league %s: %r", league_id, e)
        raise HTTPException(status_code=502, detail="Failed to load league data")
    if not league_data:
        raise HTTPException(status_code=404, detail="League not found")

    players = await sleeper_service.get_players_directory(api)
    return TradeSimulationEngine(
        League(**league_data),
        [Roster(**r) for r in rosters_data or []],
        [User(**u) for u in users_data or []],
        players,
        api=api,
        cache=cache,
    )


@app.get("/")
def read_root():
    return {"Hello": "World"}


@app.get("/user/{username}", response_model=User)
async def get_user(username: str, api=Depends(get_api)):
    try:
        user_data = await api.get_user_by_username(username)
    except Exception as e:
        logger.warning("Failed to look up user %s: %r", username, e)
        raise HTTPException(status_code=502, detail="Failed to load user")
    if not user_data:
        raise HTTPException(status_code=404, detail="User not found")
    return User(**user_data)


@app.get("/user/{username}/leagues/{season}", response_model=List[League])
async def get_leagues_for_user(username: str, season: str, api=Depends(get_api)):
    user = await get_user(username, api)
    try:
        leagues_data = await api.get_leagues_for_user(user.user_id, season)
    except Exception as e:
        logger.warning("Failed to load leagues for %s: %r", username, e)
        raise HTTPException(status_code=502, detail="Failed to load leagues")
    return [League(**league) for league in leagues_data or []]


@app.get("/league/{league_id}/history", response_model=List[League])
async def get_league_history(league_id: str, api=Depends(get_api)):
    return await sleeper_service.get_league_history(league_id, api)


@app.get("/league/{league_id}/standings", response_model=List[Standing])
async def get_league_standings(league_id: str, api=Depends(get_api)):
    try:
        rosters_data, users_data = await asyncio.gather(
            api.get_league_rosters(league_id),
            api.get_league_users(league_id),
        )
    except Exception as e:
        logger.warning("Failed to load standings for %s: %r", league_id, e)
        raise HTTPException(status_code=502, detail="Failed to load league data")
    return rank([Roster(**r) for r in rosters_data or []], [User(**u) for u in users_data or []])


@app.get("/league/{league_id}/dashboard", response_model=LeagueDashboard)
async def get_league_dashboard(league_id: str, api=Depends(get_api)):
    """Current-week overview: standings, matchups, recent activity and league stats."""
    players = await sleeper_service.get_players_directory(api)
    try:
        overview = await dashboard.build_dashboard(league_id, api, players)
    except Exception as e:
        logger.warning("Failed to load dashboard for %s: %r", league_id, e)
        raise HTTPException(status_code=502, detail="Failed to load league data")
    if overview is None:
        raise HTTPException(status_code=404, detail="League not found")
    return overview


@app.get("/league/{league_id}/picks", response_model=Dict[str, PickResolution])
async def get_traded_picks(league_id: str, api=Depends(get_api), cache: LeagueDataCache = Depends(get_cache)):
    """Every pick traded this season, keyed by ``season-round-original_owner``."""
    engine = await _load_engine(league_id, api, cache)
    trades = await sleeper_service.get_all_trades(league_id, api)
    if not trades:
        return {}
    history = await sleeper_service.get_league_history(league_id, api)
    return await engine.resolve_picks(trades, history, status_aware_season_complete(history))


@app.get("/league/{league_id}/trades", response_model=List[TradeSummary])
async def get_league_trades(league_id: str, api=Depends(get_api), cache: LeagueDataCache = Depends(get_cache)):
    """All trades of the season, with traded picks resolved as far as history allows."""
    engine = await _load_engine(league_id, api, cache)
    trades = await sleeper_service.get_all_trades(league_id, api)
    if not trades:
        return []
    history = await sleeper_service.get_league_history(league_id, api)
    return await engine.summarize_trades(trades, history, status_aware_season_complete(history))


@app.post("/league/{league_id}/simulate", response_model=SimulationResult)
async def simulate_without_trades(
    league_id: str,
    request: SimulateRequest,
    api=Depends(get_api),
    cache: LeagueDataCache = Depends(get_cache),
):
    """Recompute the season as if the selected trades never happened."""
    engine = await _load_engine(league_id, api, cache)
    trades = await sleeper_service.get_all_trades(league_id, api)
    wanted = set(request.transaction_ids)
    selected = [t for t in trades if t.transaction_id in wanted]
    missing = wanted - {t.transaction_id for t in selected}
    if missing:
        raise HTTPException(status_code=404, detail=f"Trades not found: {', '.join(sorted(missing))}")
    return await engine.simulate(selected)


@app.delete("/cache")
async def clear_cache(league_id: Optional[str] = None, cache: LeagueDataCache = Depends(get_cache)):
    """Forget in-memory season data (one league or all) and, for a full reset, the HTTP cache."""
    cache.invalidate(league_id)
    removed = 0
    if league_id is None:
        removed = await database.clear_api_cache()
    return {"invalidated": league_id or "all", "cached_responses_removed": removed}
