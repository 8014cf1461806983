"""
Discord feed for new world records.

Posts freshly appended changelist entries to a Discord webhook. The changelist
file remains the source of truth; announcements are best effort.
"""

import logging
from datetime import datetime
from email.utils import parsedate_to_datetime
from typing import List, Optional

import aiohttp
import discord

from wrlog.constants import FeedConstants
from wrlog.data_models.changelist import ChangelistEntry

logger = logging.getLogger(__name__)


def build_record_embed(entry: ChangelistEntry) -> discord.Embed:
    """
    Build the embed announcing one world record.

    Args:
        entry: Changelist entry describing the record change

    Returns:
        Formatted Discord embed ready for sending
    """
    embed = discord.Embed(
        title=f"🏆 New {entry.mode} world record",
        description=f"**{entry.map_name}**",
        color=discord.Color.gold(),
        timestamp=_parse_fetch_time(entry.fetch_time)
    )

    embed.add_field(
        name="New record",
        value=f"**{entry.record_new}** by {entry.new_recordholder}",
        inline=True
    )

    if entry.record_old is not None:
        embed.add_field(
            name="Previous record",
            value=f"{entry.record_old} by {entry.old_recordholder}",
            inline=True
        )

    if entry.workshop_item_id is not None:
        embed.add_field(
            name="Workshop level",
            value=f"by {entry.map_author or 'unknown author'}",
            inline=False
        )
        embed.url = f"https://steamcommunity.com/sharedfiles/filedetails/?id={entry.workshop_item_id}"

    if entry.map_preview:
        embed.set_thumbnail(url=entry.map_preview)

    return embed


def _parse_fetch_time(fetch_time: str) -> Optional[datetime]:
    try:
        return parsedate_to_datetime(fetch_time)
    except (TypeError, ValueError):
        return None


class FeedAnnouncer:
    """Sends record embeds to a Discord webhook."""

    def __init__(self, webhook_url: str):
        self.webhook_url = webhook_url

    async def announce(self, entries: List[ChangelistEntry]) -> int:
        """
        Post entries to the webhook.

        Returns:
            Number of entries announced
        """
        if not entries:
            return 0

        embeds = [build_record_embed(entry) for entry in entries]
        chunk_size = FeedConstants.MAX_EMBEDS_PER_MESSAGE

        async with aiohttp.ClientSession() as session:
            webhook = discord.Webhook.from_url(self.webhook_url, session=session)
            for offset in range(0, len(embeds), chunk_size):
                await webhook.send(
                    embeds=embeds[offset:offset + chunk_size],
                    username=FeedConstants.WEBHOOK_USERNAME
                )

        logger.info(f"Announced {len(entries)} new records")
        return len(entries)
