"""
Official Distance levels with a leaderboard, per game mode.
"""

from typing import Iterator, Tuple

from wrlog.data_models.leaderboard import GameMode

SPRINT_LEVELS = (
    "Broken Symmetry",
    "Lost Society",
    "Negative Space",
    "Ground Zero",
    "Departure",
    "Friction",
    "Aftermath",
    "The Thing About Machines",
    "Amusement",
    "Corruption",
    "The Observer Effect",
    "Dissolution",
    "Falling Through",
    "Monolith",
    "Uncanny Valley",
    "Cataclysm",
    "Diversion",
    "Euphoria",
    "Entanglement",
    "Automation",
    "Abyss",
    "Embers",
    "Isolation",
    "Repulsion",
    "Compression",
    "Research",
    "Contagion",
    "Overload",
    "Ascension",
    "Enemy",
    "Echoes",
    "Collapse",
    "Destination Unknown",
    "Instability",
    "Resonance",
    "Zenith",
)

CHALLENGE_LEVELS = (
    "Dodge",
    "Thunder Struck",
    "Descent",
    "Detached",
    "Elevation",
    "Red",
    "Grinder",
    "Hexahorrific",
    "Lift Off",
    "Mayhem",
    "Pulse",
    "Zero Gravity",
)

STUNT_LEVELS = (
    "Stunt Playground",
    "Refraction",
    "Space Skate",
    "Spooky Town",
    "Tagtastic Park",
    "Neon Park",
)

_LEVELS_BY_MODE = {
    GameMode.SPRINT: SPRINT_LEVELS,
    GameMode.CHALLENGE: CHALLENGE_LEVELS,
    GameMode.STUNT: STUNT_LEVELS,
}


def iter_official_levels() -> Iterator[Tuple[str, GameMode]]:
    """Yield (level name, mode) for every official leaderboard"""
    for mode in (GameMode.SPRINT, GameMode.CHALLENGE, GameMode.STUNT):
        for level in _LEVELS_BY_MODE[mode]:
            yield level, mode
