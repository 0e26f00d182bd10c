"""Runtime settings for the protocol engine.

Read from the environment once per process via EngineConfig.from_env().
"""

from __future__ import annotations

import os
from dataclasses import dataclass


def _positive_number(name: str, default, cast=int):
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = cast(raw)
    except ValueError:
        return default
    return value if value > 0 else default


@dataclass(frozen=True)
class EngineConfig:
    """Retry settings for protocol generation clients.

    Attributes:
        client_max_attempts: Attempts per client call, first try included.
        client_min_wait_seconds: Lower bound of the randomized backoff.
        client_max_wait_seconds: Upper bound of the randomized backoff.
    """

    client_max_attempts: int = 3
    client_min_wait_seconds: float = 2.0
    client_max_wait_seconds: float = 10.0

    @classmethod
    def from_env(cls) -> "EngineConfig":
        """Create EngineConfig from environment variables.

        Invalid or non-positive values fall back to the defaults.
        """
        return cls(
            client_max_attempts=_positive_number(
                "PROTOCOL_CLIENT_MAX_ATTEMPTS", cls.client_max_attempts
            ),
            client_min_wait_seconds=_positive_number(
                "PROTOCOL_CLIENT_MIN_WAIT_SECONDS", cls.client_min_wait_seconds, float
            ),
            client_max_wait_seconds=_positive_number(
                "PROTOCOL_CLIENT_MAX_WAIT_SECONDS", cls.client_max_wait_seconds, float
            ),
        )
