import os
from dataclasses import dataclass
from dotenv import load_dotenv

from wrlog.constants import FetchConstants, SupervisorConstants, SteamConstants

load_dotenv()


@dataclass(frozen=True)
class PipelineSettings:
    """Values the fetch pipeline is constructed with."""
    max_in_flight: int = FetchConstants.MAX_IN_FLIGHT
    step_timeout: float = FetchConstants.STEP_TIMEOUT_SECONDS
    timeout_policy: str = FetchConstants.POLICY_FAIL_FAST


class Config:
    """WR log configuration settings"""

    # Persistence settings
    QUERY_RESULTS_PATH = os.getenv('QUERY_RESULTS_PATH', '/data/query_results.json')
    CHANGELIST_PATH = os.getenv('CHANGELIST_PATH', '/data/changelist.json')

    # Steam settings
    STEAM_APP_ID = int(os.getenv('STEAM_APP_ID', SteamConstants.DISTANCE_APP_ID))
    STEAM_WEB_API_KEY = os.getenv('STEAM_WEB_API_KEY')

    # Fetch settings
    MAX_IN_FLIGHT = int(os.getenv('WRLOG_MAX_IN_FLIGHT', FetchConstants.MAX_IN_FLIGHT))
    STEP_TIMEOUT = float(os.getenv('WRLOG_STEP_TIMEOUT', FetchConstants.STEP_TIMEOUT_SECONDS))
    TIMEOUT_POLICY = os.getenv('WRLOG_TIMEOUT_POLICY', FetchConstants.POLICY_FAIL_FAST).lower()

    # Feed settings
    DISCORD_WEBHOOK_URL = os.getenv('DISCORD_WEBHOOK_URL')

    # Supervisor settings
    HEALTHCHECKS_URL = os.getenv('HEALTHCHECKS_URL')
    UPDATE_PERIOD = float(os.getenv('UPDATE_PERIOD', SupervisorConstants.UPDATE_PERIOD_SECONDS))
    MAX_UPDATE_DURATION = float(os.getenv('MAX_UPDATE_DURATION', SupervisorConstants.MAX_UPDATE_DURATION_SECONDS))
    CLIENT_RESTART_PERIOD = float(os.getenv('CLIENT_RESTART_PERIOD', SupervisorConstants.CLIENT_RESTART_PERIOD_SECONDS))
    CLIENT_COMMAND = os.getenv('CLIENT_COMMAND', '')  # Shell-style command line, empty disables

    # Logging settings
    LOG_DIR = os.getenv('LOG_DIR', 'logs')
    DEBUG = os.getenv('DEBUG', 'False').lower() == 'true'

    @classmethod
    def pipeline_settings(cls) -> PipelineSettings:
        """Snapshot the fetch settings for the pipeline"""
        return PipelineSettings(
            max_in_flight=cls.MAX_IN_FLIGHT,
            step_timeout=cls.STEP_TIMEOUT,
            timeout_policy=cls.TIMEOUT_POLICY
        )

    @classmethod
    def validate(cls):
        """Validate that configuration values are usable"""
        if cls.MAX_IN_FLIGHT <= 0:
            raise ValueError("WRLOG_MAX_IN_FLIGHT must be a positive integer")
        if cls.STEP_TIMEOUT <= 0:
            raise ValueError("WRLOG_STEP_TIMEOUT must be positive")
        if cls.TIMEOUT_POLICY not in FetchConstants.TIMEOUT_POLICIES:
            raise ValueError(
                f"WRLOG_TIMEOUT_POLICY must be one of {', '.join(FetchConstants.TIMEOUT_POLICIES)}"
            )
        if cls.UPDATE_PERIOD <= 0 or cls.MAX_UPDATE_DURATION <= 0:
            raise ValueError("UPDATE_PERIOD and MAX_UPDATE_DURATION must be positive")
