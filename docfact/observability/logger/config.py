"""
logger configuration read from environment variables.

kept as a plain class (no pydantic) so logging can be configured before any
other settings are loaded.
"""

import os
from typing import Literal

LogLevel = Literal["DEBUG", "INFO", "WARN", "ERROR"]
LogOutput = Literal["STDOUT", "FILE", "BOTH"]

VALID_LEVELS = ("DEBUG", "INFO", "WARN", "ERROR")
VALID_OUTPUTS = ("STDOUT", "FILE", "BOTH")


class LoggerConfig:
    """environment-based logger configuration"""

    def __init__(self):
        self.log_level: LogLevel = os.getenv("LOG_LEVEL", "INFO").upper()  # type: ignore
        self.log_output: LogOutput = os.getenv("LOG_OUTPUT", "STDOUT").upper()  # type: ignore

        # file output
        self.log_dir: str = os.getenv("LOG_DIR", "logs")
        self.log_file_max_bytes: int = int(os.getenv("LOG_FILE_MAX_BYTES", 10485760))
        self.log_file_backup_count: int = int(os.getenv("LOG_FILE_BACKUP_COUNT", 5))
        self.split_by_pipeline_step: bool = os.getenv("LOG_SPLIT_BY_STEP", "false").lower() == "true"

        self.log_format: str = os.getenv(
            "LOG_FORMAT",
            "%(asctime)s | %(levelname)-5s | %(pipeline_step)-18s | %(name)s | %(message)s"
        )
        self.log_date_format: str = os.getenv("LOG_DATE_FORMAT", "%Y-%m-%d %H:%M:%S")

        if self.log_level not in VALID_LEVELS:
            raise ValueError(f"invalid LOG_LEVEL: {self.log_level}. must be one of {list(VALID_LEVELS)}")

        if self.log_output not in VALID_OUTPUTS:
            raise ValueError(f"invalid LOG_OUTPUT: {self.log_output}. must be one of {list(VALID_OUTPUTS)}")


def get_logger_config() -> LoggerConfig:
    """build the logger configuration from the current environment"""
    return LoggerConfig()
