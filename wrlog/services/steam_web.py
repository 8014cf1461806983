"""
Steam Web backend.

Reads leaderboards from the public Steam Community XML pages and workshop
items and player names from the Steam Web API.
"""

import asyncio
import logging
import xml.etree.ElementTree as ElementTree
from typing import Any, AsyncIterator, Dict, Iterable, List, Optional, Sequence

import aiohttp

from wrlog.constants import SteamConstants
from wrlog.data_models.leaderboard import LeaderboardEntry, WorkshopItem
from wrlog.services.backend import LeaderboardBackend
from wrlog.utils.exceptions import BackendError, LeaderboardNotFoundError

logger = logging.getLogger(__name__)

COMMUNITY_BASE = "https://steamcommunity.com/stats"
API_BASE = "https://api.steampowered.com"

# IPublishedFileService query parameters
QUERY_TYPE_RANKED_BY_PUBLICATION_DATE = 1
FILE_TYPE_ITEMS_READY_TO_USE = 2


def parse_leaderboard_list(text: str) -> Dict[str, int]:
    """Map leaderboard names to ids from the community leaderboard listing."""
    root = _parse_xml(text)
    ids = {}
    for leaderboard in root.iter('leaderboard'):
        name = leaderboard.findtext('name')
        lbid = leaderboard.findtext('lbid')
        if name and lbid:
            ids[name] = int(lbid)
    return ids


def parse_leaderboard_entries(text: str) -> List[LeaderboardEntry]:
    """Parse the entries of one community leaderboard page."""
    root = _parse_xml(text)
    entries = []
    for entry in root.iter('entry'):
        try:
            entries.append(
                LeaderboardEntry(
                    steam_id=int(entry.findtext('steamid')),
                    global_rank=int(entry.findtext('rank')),
                    score=int(entry.findtext('score')),
                )
            )
        except (TypeError, ValueError) as e:
            raise BackendError("Malformed leaderboard entry", str(e)) from e
    return entries


def parse_workshop_item(details: Dict[str, Any]) -> WorkshopItem:
    """Convert one QueryFiles result into a WorkshopItem (without author name)."""
    return WorkshopItem(
        published_file_id=int(details['publishedfileid']),
        steam_id_owner=int(details['creator']),
        file_name=details.get('filename', ''),
        title=details.get('title', ''),
        score=float(details.get('vote_data', {}).get('score', 0.0)),
        tags=tuple(tag['tag'] for tag in details.get('tags', []) if 'tag' in tag),
        preview_url=details.get('preview_url', ''),
    )


def _parse_xml(text: str) -> ElementTree.Element:
    try:
        return ElementTree.fromstring(text)
    except ElementTree.ParseError as e:
        raise BackendError("Steam returned malformed XML", str(e)) from e


class SteamWebBackend(LeaderboardBackend):
    """LeaderboardBackend backed by Steam's HTTP endpoints."""

    def __init__(self, app_id: int, api_key: Optional[str] = None, session: Optional[aiohttp.ClientSession] = None):
        self.app_id = app_id
        self.api_key = api_key
        self.session = session
        self._owns_session = session is None
        self._leaderboard_ids: Optional[Dict[str, int]] = None
        self._ids_lock = asyncio.Lock()
        self._names: Dict[int, Optional[str]] = {}

    async def query_leaderboard_range(self, leaderboard_name: str, start: int, end: int) -> List[LeaderboardEntry]:
        lbid = await self._leaderboard_id(leaderboard_name)
        text = await self._get_text(
            f"{COMMUNITY_BASE}/{self.app_id}/leaderboards/{lbid}/",
            params={'xml': 1, 'start': start, 'end': end}
        )
        return parse_leaderboard_entries(text)

    async def query_ready_items(self, tags: Sequence[str]) -> AsyncIterator[WorkshopItem]:
        if not self.api_key:
            raise BackendError("STEAM_WEB_API_KEY is required to query the workshop")

        cursor = '*'
        while True:
            params = {
                'key': self.api_key,
                'appid': self.app_id,
                'query_type': QUERY_TYPE_RANKED_BY_PUBLICATION_DATE,
                'filetype': FILE_TYPE_ITEMS_READY_TO_USE,
                'cursor': cursor,
                'numperpage': SteamConstants.WORKSHOP_PAGE_SIZE,
                'match_all_tags': 'false',
                'return_tags': 'true',
                'return_metadata': 'true',
            }
            for index, tag in enumerate(tags):
                params[f'requiredtags[{index}]'] = tag

            data = await self._get_json(f"{API_BASE}/IPublishedFileService/QueryFiles/v1/", params=params)
            response = data.get('response', {})
            page = response.get('publishedfiledetails', [])
            if not page:
                return

            try:
                items = [parse_workshop_item(details) for details in page]
            except (KeyError, TypeError, ValueError) as e:
                raise BackendError("Malformed workshop item", str(e)) from e

            try:
                names = await self._resolve_names(item.steam_id_owner for item in items)
            except BackendError as e:
                logger.debug(f"Couldn't resolve workshop author names: {e}")
                names = {}
            for item in items:
                yield WorkshopItem(
                    published_file_id=item.published_file_id,
                    steam_id_owner=item.steam_id_owner,
                    file_name=item.file_name,
                    title=item.title,
                    score=item.score,
                    tags=item.tags,
                    author_name=names.get(item.steam_id_owner),
                    preview_url=item.preview_url,
                )

            next_cursor = response.get('next_cursor')
            if not next_cursor or next_cursor == cursor:
                return
            cursor = next_cursor

    async def resolve_display_name(self, steam_id: int) -> Optional[str]:
        names = await self._resolve_names([steam_id])
        return names.get(steam_id)

    async def close(self):
        if self._owns_session and self.session is not None and not self.session.closed:
            await self.session.close()

    async def _leaderboard_id(self, leaderboard_name: str) -> int:
        async with self._ids_lock:
            if self._leaderboard_ids is None:
                text = await self._get_text(f"{COMMUNITY_BASE}/{self.app_id}/leaderboards/", params={'xml': 1})
                self._leaderboard_ids = parse_leaderboard_list(text)
                logger.info(f"Discovered {len(self._leaderboard_ids)} leaderboards")

        lbid = self._leaderboard_ids.get(leaderboard_name)
        if lbid is None:
            raise LeaderboardNotFoundError(leaderboard_name)
        return lbid

    async def _resolve_names(self, steam_ids: Iterable[int]) -> Dict[int, Optional[str]]:
        steam_ids = list(dict.fromkeys(steam_ids))
        unknown = [steam_id for steam_id in steam_ids if steam_id not in self._names]

        if unknown and self.api_key:
            batch_size = SteamConstants.PLAYER_SUMMARIES_BATCH
            for offset in range(0, len(unknown), batch_size):
                batch = unknown[offset:offset + batch_size]
                data = await self._get_json(
                    f"{API_BASE}/ISteamUser/GetPlayerSummaries/v2/",
                    params={'key': self.api_key, 'steamids': ','.join(str(steam_id) for steam_id in batch)}
                )
                try:
                    for player in data.get('response', {}).get('players', []):
                        self._names[int(player['steamid'])] = player.get('personaname')
                except (AttributeError, KeyError, TypeError, ValueError) as e:
                    raise BackendError("Malformed player summaries", str(e)) from e
                for steam_id in batch:
                    self._names.setdefault(steam_id, None)

        return {steam_id: self._names.get(steam_id) for steam_id in steam_ids}

    async def _get_session(self) -> aiohttp.ClientSession:
        if self.session is None:
            self.session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=SteamConstants.HTTP_TIMEOUT_SECONDS)
            )
        return self.session

    async def _get_text(self, url: str, params: Optional[Dict[str, Any]] = None) -> str:
        session = await self._get_session()
        try:
            async with session.get(url, params=params) as resp:
                resp.raise_for_status()
                return await resp.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise BackendError(f"Request to {url} failed", str(e)) from e

    async def _get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        session = await self._get_session()
        try:
            async with session.get(url, params=params) as resp:
                resp.raise_for_status()
                return await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise BackendError(f"Request to {url} failed", str(e)) from e
