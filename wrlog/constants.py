"""
Project-wide constants for the Distance WR log.

This module contains the magic numbers used by the fetch pipeline, the
persistence layer and the supervisor.
"""

class SteamConstants:
    """Constants describing the Steam backend."""

    # Distance on Steam
    DISTANCE_APP_ID = 233610

    # Steam rejects leaderboard names longer than this
    MAX_LEADERBOARD_NAME_LENGTH = 128

    # Steam's placeholder when a persona name is not known
    UNKNOWN_PLAYER_NAME = "[unknown]"

    # Workshop paging
    WORKSHOP_PAGE_SIZE = 100

    # GetPlayerSummaries accepts at most this many ids per call
    PLAYER_SUMMARIES_BATCH = 100

    HTTP_TIMEOUT_SECONDS = 30

class FetchConstants:
    """Constants for leaderboard retrieval."""

    # Ranks requested per leaderboard (record holder and runner-up)
    FIRST_RANK = 1
    LAST_RANK = 2

    # Outstanding requests across official and workshop levels combined
    MAX_IN_FLIGHT = 512

    # Ceiling for producing each successive snapshot
    STEP_TIMEOUT_SECONDS = 60

    POLICY_FAIL_FAST = "fail_fast"
    POLICY_PER_ITEM = "per_item"
    TIMEOUT_POLICIES = (POLICY_FAIL_FAST, POLICY_PER_ITEM)

class PersistenceConstants:
    """Constants for the JSON files."""

    # World-readable, owner-writable
    FILE_MODE = 0o644

    ENCODING = "utf-8"

class SupervisorConstants:
    """Constants for the process supervisor."""

    UPDATE_PERIOD_SECONDS = 5 * 60
    MAX_UPDATE_DURATION_SECONDS = 60 * 60
    CLIENT_RESTART_PERIOD_SECONDS = 3 * 60 * 60

    # Grace period after asking the client to shut down
    CLIENT_SHUTDOWN_GRACE_SECONDS = 30

    # Exponential backoff parameters
    BACKOFF_INITIAL_INTERVAL = 0.5
    BACKOFF_MULTIPLIER = 1.5
    BACKOFF_RANDOMIZATION_FACTOR = 0.5
    BACKOFF_MAX_INTERVAL = 60.0

class FeedConstants:
    """Constants for Discord feed announcements."""

    # Discord accepts at most 10 embeds per message
    MAX_EMBEDS_PER_MESSAGE = 10

    WEBHOOK_USERNAME = "Distance WR Log"
