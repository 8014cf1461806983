"""
Score formatting utilities for changelist entries.

Handles conversion of raw leaderboard scores into display strings.
"""

from wrlog.data_models.leaderboard import GameMode


def format_milliseconds_to_time(milliseconds: int) -> str:
    """
    Format an elapsed time into a human-readable string.

    Args:
        milliseconds: Elapsed time in milliseconds

    Returns:
        Formatted time string (e.g., "0:45.12" or "1:02:03.45")

    Raises:
        ValueError: If the time is negative
    """
    if milliseconds < 0:
        raise ValueError(f"Negative time not allowed: {milliseconds}")

    total_seconds, remainder_ms = divmod(milliseconds, 1000)
    hundredths = remainder_ms // 10

    hours, remainder = divmod(total_seconds, 3600)
    minutes, secs = divmod(remainder, 60)

    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}.{hundredths:02d}"
    return f"{minutes}:{secs:02d}.{hundredths:02d}"


def format_score(score: int, mode: GameMode) -> str:
    """Format a raw leaderboard score for the given mode"""
    if mode.is_time_based:
        return format_milliseconds_to_time(score)
    return str(score)
