"""
Logging setup for the WR log entrypoints.

Modules log through ``logging.getLogger(__name__)``. Handlers are attached once
to the ``wrlog`` package logger by whichever process is starting up, so the
update run and the supervisor each write their own daily file.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

from wrlog.config import Config

PACKAGE_LOGGER = 'wrlog'

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def log_file_path(file_prefix: str, log_dir: Optional[str] = None) -> Path:
    """Daily log file for a process, e.g. logs/wr_log_20240501.log"""
    directory = Path(log_dir or Config.LOG_DIR)
    return directory / f'{file_prefix}_{datetime.now().strftime("%Y%m%d")}.log'


def setup_logging(file_prefix: str = 'wr_log', log_dir: Optional[str] = None) -> logging.Logger:
    """
    Attach console and file handlers to the package logger.

    Calling this again in the same process is a no-op.

    Args:
        file_prefix: Log file name prefix for this process
        log_dir: Directory for log files, Config.LOG_DIR by default

    Returns:
        The configured package logger
    """
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    if package_logger.handlers:
        return package_logger

    console_level = logging.DEBUG if Config.DEBUG else logging.INFO
    package_logger.setLevel(logging.DEBUG)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(formatter)
    package_logger.addHandler(console_handler)

    path = log_file_path(file_prefix, log_dir)
    path.parent.mkdir(parents=True, exist_ok=True)
    # The file always gets debug output, e.g. each fetched level
    file_handler = logging.FileHandler(path, encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)
    package_logger.addHandler(file_handler)

    return package_logger
