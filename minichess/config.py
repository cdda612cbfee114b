import os
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_ARBITER_URL = "http://127.0.0.1:8000"
DEFAULT_TIMEOUT = 5.0
DEFAULT_LOG_LEVEL = "WARNING"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class Settings:
    arbiter_url: str = DEFAULT_ARBITER_URL
    timeout: float = DEFAULT_TIMEOUT  # seconds, per request
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ

        raw_timeout = env.get("MINICHESS_TIMEOUT", str(DEFAULT_TIMEOUT))
        try:
            timeout = float(raw_timeout)
        except ValueError:
            raise ValueError(f"MINICHESS_TIMEOUT must be a number, got {raw_timeout!r}") from None
        if timeout <= 0:
            raise ValueError("MINICHESS_TIMEOUT must be positive")

        log_level = env.get("MINICHESS_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper()
        if log_level not in LOG_LEVELS:
            raise ValueError(f"MINICHESS_LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}, got {log_level!r}")

        return cls(
            arbiter_url=env.get("MINICHESS_ARBITER_URL", DEFAULT_ARBITER_URL).rstrip("/"),
            timeout=timeout,
            log_level=log_level,
        )
