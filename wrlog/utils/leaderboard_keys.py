"""
Leaderboard name construction.

Names must match the ones the game itself registers with Steam, e.g.
``Broken Symmetry_1_stable`` or ``my_level_1_76561198000000000_stable``.
"""

from pathlib import PurePosixPath
from typing import Optional

from wrlog.constants import SteamConstants
from wrlog.data_models.leaderboard import GameMode


def create_leaderboard_name(level: str, mode: GameMode, steam_id_owner: Optional[int] = None) -> Optional[str]:
    """
    Build the canonical leaderboard name for a level.

    Args:
        level: Official level name, or a workshop level's file stem
        mode: Game mode of the leaderboard
        steam_id_owner: Workshop item owner, None for official levels

    Returns:
        The leaderboard name, or None if no valid name can be built
    """
    if not level or not level.strip():
        return None

    if steam_id_owner is None:
        name = f"{level}_{mode.leaderboard_id}_stable"
    else:
        name = f"{level}_{mode.leaderboard_id}_{steam_id_owner}_stable"

    if len(name) > SteamConstants.MAX_LEADERBOARD_NAME_LENGTH:
        return None
    return name


def remove_bytes_extension(file_name: str) -> str:
    """Return a workshop file name without its directory or extension"""
    # Workshop file names use forward slashes regardless of platform
    return PurePosixPath(file_name.replace("\\", "/")).stem
