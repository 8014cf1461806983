"""
Custom exceptions for the WR log pipeline.

Errors that abort a run derive from WrLogException so the entrypoint can
report them uniformly.
"""

from typing import Optional


class WrLogException(Exception):
    """Base exception for WR log errors."""
    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.details = details

class ConfigurationError(WrLogException):
    """Raised when trusted, compiled-in data is unusable."""

class BackendError(WrLogException):
    """Raised by leaderboard backends when a query fails."""

class LeaderboardNotFoundError(BackendError):
    """Raised when the backend has no leaderboard with the requested name."""
    def __init__(self, leaderboard_name: str):
        super().__init__(
            f"Leaderboard '{leaderboard_name}' not found",
            leaderboard_name
        )
        self.leaderboard_name = leaderboard_name

class CatalogError(WrLogException):
    """Raised when the workshop catalog query fails."""
    def __init__(self, details: Optional[str] = None):
        super().__init__("Error querying the workshop catalog", details)

class FetchError(WrLogException):
    """Raised when fetching an official level's leaderboard fails."""
    def __init__(self, leaderboard_name: str, details: Optional[str] = None):
        super().__init__(
            f"Error fetching leaderboard '{leaderboard_name}'",
            details
        )
        self.leaderboard_name = leaderboard_name

class PersistenceError(WrLogException):
    """Base exception for persisted state errors."""

class LoadError(PersistenceError):
    """Raised when a persisted file exists but cannot be loaded."""

class DoesNotExist(LoadError):
    """Raised when the requested file does not exist."""
    def __init__(self, path: str):
        super().__init__("The requested item does not exist.", path)
        self.path = path

class SaveError(PersistenceError):
    """Raised when a collection cannot be written."""
