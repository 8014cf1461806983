import asyncio
import logging
import sys
from typing import List, Optional

from wrlog.config import Config, PipelineSettings
from wrlog.data_models.changelist import ChangelistEntry
from wrlog.services.backend import LeaderboardBackend
from wrlog.services.changelist_engine import update_changelist
from wrlog.services.feed_announcer import FeedAnnouncer
from wrlog.services.leaderboard_fetcher import LeaderboardFetcher
from wrlog.services.level_catalog import LevelCatalog
from wrlog.services.persistence import FileJsonPersistence
from wrlog.services.snapshot_reconciler import add_missing_entries_from, sort_by_leaderboard_name
from wrlog.services.steam_web import SteamWebBackend
from wrlog.utils.exceptions import DoesNotExist, WrLogException
from wrlog.utils.logger import setup_logging

# Named explicitly so `python -m wrlog.main` still logs under the package
logger = logging.getLogger('wrlog.main')


async def update(
    backend: LeaderboardBackend,
    persistence: FileJsonPersistence,
    settings: Optional[PipelineSettings] = None,
    fetcher: Optional[LeaderboardFetcher] = None
) -> List[ChangelistEntry]:
    """
    Run one fetch, reconcile and diff pass.

    Returns:
        The changelist entries appended by this run
    """
    try:
        old_level_infos = persistence.load_query_results()
        logger.info("Loaded previous query results")
    except DoesNotExist:
        logger.warning("No previous query results found")
        old_level_infos = None

    try:
        changelist = persistence.load_changelist()
        logger.info("Loaded changelist")
    except DoesNotExist:
        logger.warning("No existing changelist found")
        changelist = []

    catalog = LevelCatalog(backend)
    fetcher = fetcher or LeaderboardFetcher(backend, settings)
    new_level_infos = await fetcher.fetch_all(catalog.requests())

    # Steam sometimes fails to return data; fill those gaps from the stored data
    if old_level_infos is not None:
        new_level_infos = add_missing_entries_from(new_level_infos, old_level_infos)
    else:
        new_level_infos = sort_by_leaderboard_name(new_level_infos)

    appended = []
    if old_level_infos is not None:
        logger.info("Computing changelist")
        appended = update_changelist(changelist, new_level_infos, old_level_infos)

    logger.info("Saving changelist")
    persistence.save_changelist(changelist)

    logger.info("Saving level info")
    persistence.save_query_results(new_level_infos)

    return appended


async def announce(entries: List[ChangelistEntry]):
    """Post new records to Discord when a webhook is configured"""
    if not Config.DISCORD_WEBHOOK_URL or not entries:
        return
    try:
        await FeedAnnouncer(Config.DISCORD_WEBHOOK_URL).announce(entries)
    except Exception as e:
        logger.error(f"Failed to announce new records: {e}", exc_info=True)


def print_error(error: BaseException):
    """Log an error followed by its cause chain"""
    logger.error(f"error: {error}")
    details = getattr(error, 'details', None)
    if details:
        logger.error(f" details: {details}")
    cause = error.__cause__
    while cause is not None:
        logger.error(f" caused by: {cause}")
        cause = cause.__cause__


async def main() -> int:
    """Main entry point"""
    Config.validate()

    backend = SteamWebBackend(Config.STEAM_APP_ID, Config.STEAM_WEB_API_KEY)
    persistence = FileJsonPersistence(Config.QUERY_RESULTS_PATH, Config.CHANGELIST_PATH)

    try:
        logger.info("Starting update procedure")
        appended = await update(backend, persistence, Config.pipeline_settings())
        logger.info("Finished update procedure")
    except WrLogException as e:
        print_error(e)
        return 1
    finally:
        await backend.close()

    await announce(appended)
    return 0


def run():
    setup_logging('wr_log')
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
