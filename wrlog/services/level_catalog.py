"""
Level catalog for the WR log.

Enumerates official levels from the compiled-in table and discovers workshop
levels through the backend's catalog query.
"""

import logging
from typing import AsyncIterator, List

from wrlog.data_models.leaderboard import LevelRequest, WorkshopItem, WORKSHOP_MODES
from wrlog.data_models.official_levels import iter_official_levels
from wrlog.services.backend import LeaderboardBackend
from wrlog.utils.exceptions import BackendError, CatalogError, ConfigurationError
from wrlog.utils.leaderboard_keys import create_leaderboard_name, remove_bytes_extension

logger = logging.getLogger(__name__)


class LevelCatalog:
    """Produces the (level, mode) pairs to fetch for one run."""

    def __init__(self, backend: LeaderboardBackend):
        self.backend = backend

    def official_requests(self) -> List[LevelRequest]:
        """Build requests for every official level and mode."""
        requests = []
        for level_name, mode in iter_official_levels():
            leaderboard_name = create_leaderboard_name(level_name, mode)
            if leaderboard_name is None:
                raise ConfigurationError(
                    f"Couldn't create a leaderboard name for the official level '{level_name}'",
                    mode.label
                )
            requests.append(LevelRequest(name=level_name, mode=mode, leaderboard_name=leaderboard_name))
        return requests

    async def community_requests(self) -> AsyncIterator[LevelRequest]:
        """Yield requests for workshop levels in the sprint, challenge and stunt modes."""
        tags = [mode.label for mode in WORKSHOP_MODES]
        try:
            async for item in self.backend.query_ready_items(tags):
                if not item.file_name:
                    continue
                for request in self._expand_item(item):
                    yield request
        except BackendError as e:
            raise CatalogError(str(e)) from e

    async def requests(self) -> AsyncIterator[LevelRequest]:
        """Official requests followed by workshop requests, one per leaderboard name."""
        official = self.official_requests()
        logger.info(f"Enumerated {len(official)} official leaderboards")

        seen = set()
        for request in official:
            seen.add(request.leaderboard_name)
            yield request
        async for request in self.community_requests():
            if request.leaderboard_name in seen:
                logger.debug(f"Skipping workshop level '{request.name}' ({request.mode}): duplicate leaderboard name")
                continue
            seen.add(request.leaderboard_name)
            yield request

    def _expand_item(self, item: WorkshopItem) -> List[LevelRequest]:
        level = remove_bytes_extension(item.file_name)
        requests = []
        for mode in WORKSHOP_MODES:
            if not item.has_tag(mode):
                continue
            leaderboard_name = create_leaderboard_name(level, mode, item.steam_id_owner)
            if leaderboard_name is None:
                logger.debug(f"Skipping workshop item {item.published_file_id} ({mode}): no valid leaderboard name")
                continue
            requests.append(
                LevelRequest(
                    name=item.title,
                    mode=mode,
                    leaderboard_name=leaderboard_name,
                    workshop_item=item
                )
            )
        return requests
