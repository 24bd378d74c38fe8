import httpx
import asyncio
import json
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from . import database
from .config import settings

logger = logging.getLogger(__name__)


async def _fetch(url: str):
    async with httpx.AsyncClient(timeout=settings.http_timeout) as client:
        response = await client.get(url)
        response.raise_for_status()
        # Sleeper answers some unknown ids with an empty 200.
        data = response.json() if response.content else None
    # Sleeper rate-limits bursts of sequential calls.
    if settings.request_pace_seconds > 0:
        await asyncio.sleep(settings.request_pace_seconds)
    return data


async def get(url: str):
    """
    A generic, caching GET request for the Sleeper API.
    """
    if not settings.use_cache:
        return await _fetch(url)

    db = await database.get_db_connection()
    try:
        # 1. Check cache
        cursor = await db.execute("SELECT data, timestamp FROM api_cache WHERE url = ?", (url,))
        row = await cursor.fetchone()

        if row:
            cached_data = json.loads(row["data"])
            timestamp = datetime.fromisoformat(row["timestamp"])
            if datetime.utcnow() - timestamp < timedelta(seconds=settings.cache_ttl_seconds):
                return cached_data

        # 2. If not in cache or stale, fetch from API
        fresh_data = await _fetch(url)

        # 3. Store in cache
        await db.execute(
            "INSERT OR REPLACE INTO api_cache (url, data, timestamp) VALUES (?, ?, ?)",
            (url, json.dumps(fresh_data), datetime.utcnow().isoformat()),
        )
        await db.commit()
        return fresh_data

    finally:
        await db.close()


async def get_user_by_username(username: str) -> Optional[Dict[str, Any]]:
    url = f"{settings.api_url}/user/{username}"
    try:
        return await get(url)
    except httpx.HTTPStatusError as e:
        if e.response.status_code == 404:
            return None
        raise


async def get_leagues_for_user(user_id: str, season: str) -> List[Dict[str, Any]]:
    url = f"{settings.api_url}/user/{user_id}/leagues/nfl/{season}"
    return await get(url) or []


async def get_league(league_id: str) -> Optional[Dict[str, Any]]:
    url = f"{settings.api_url}/league/{league_id}"
    return await get(url)


async def get_league_rosters(league_id: str) -> List[Dict[str, Any]]:
    url = f"{settings.api_url}/league/{league_id}/rosters"
    return await get(url) or []


async def get_league_users(league_id: str) -> List[Dict[str, Any]]:
    url = f"{settings.api_url}/league/{league_id}/users"
    return await get(url) or []


async def get_league_drafts(league_id: str) -> List[Dict[str, Any]]:
    url = f"{settings.api_url}/league/{league_id}/drafts"
    return await get(url) or []


async def get_draft_picks(draft_id: str) -> List[Dict[str, Any]]:
    url = f"{settings.api_url}/draft/{draft_id}/picks"
    return await get(url) or []


async def get_league_matchups(league_id: str, week: int) -> List[Dict[str, Any]]:
    url = f"{settings.api_url}/league/{league_id}/matchups/{week}"
    try:
        return await get(url) or []
    except httpx.HTTPStatusError as e:
        if e.response.status_code == 404:
            return []
        raise


async def get_league_transactions(league_id: str, week: int) -> List[Dict[str, Any]]:
    url = f"{settings.api_url}/league/{league_id}/transactions/{week}"
    # This endpoint can return 404 for weeks that never happened, handle it gracefully
    try:
        return await get(url) or []
    except httpx.HTTPStatusError as e:
        if e.response.status_code == 404:
            return []
        raise


async def get_all_players() -> Dict[str, Dict[str, Any]]:
    url = f"{settings.api_url}/players/nfl"
    return await get(url) or {}


async def get_nfl_state() -> Dict[str, Any]:
    url = f"{settings.api_url}/state/nfl"
    return await get(url) or {}
