import os
from dataclasses import dataclass

from .time_range import DEFAULT_TIME_RANGE, TimeRange


@dataclass(frozen=True)
class Config:
    database_url: str
    log_format: str = "json"
    log_level: str = "INFO"
    time_range: str = DEFAULT_TIME_RANGE
    connect_timeout_seconds: float = 10.0

    @classmethod
    def from_env(cls) -> "Config":
        database_url = os.environ.get("DATABASE_URL")
        if not database_url:
            raise RuntimeError("DATABASE_URL must be set")

        time_range = os.environ.get("SENDTREND_TIME_RANGE", DEFAULT_TIME_RANGE)
        TimeRange.parse(time_range)

        return cls(
            database_url=database_url,
            log_format=os.environ.get("SENDTREND_LOG_FORMAT", "json"),
            log_level=os.environ.get("SENDTREND_LOG_LEVEL", "INFO").upper(),
            time_range=time_range,
            connect_timeout_seconds=float(os.environ.get("SENDTREND_CONNECT_TIMEOUT", "10")),
        )
