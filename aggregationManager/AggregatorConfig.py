from __future__ import annotations

import os
from dataclasses import asdict, dataclass
from typing import Mapping, Optional

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    value = env.get(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in _TRUE_VALUES


@dataclass
class AggregatorConfig:
    """Runtime settings for one aggregation run.

    Parameters:
        workers: Threads used to decode and apply trades. ``1`` or less
            applies every trade inline on the reading thread.
        strict_window: Only aggregate data lines seen between BEGIN and END.
        skip_malformed: Skip and count undecodable data lines instead of
            aborting the run.
        s3_bucket: Bucket to publish results to; no S3 output when unset.
        s3_prefix: Key prefix inside ``s3_bucket``.
        log_level: Root logging level name.
    """

    workers: int = 1
    strict_window: bool = False
    skip_malformed: bool = False
    s3_bucket: Optional[str] = None
    s3_prefix: str = "market-aggregates"
    log_level: str = "WARNING"

    def __post_init__(self) -> None:
        if self.workers < 0:
            raise ValueError(f"workers must be >= 0, got {self.workers}")

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "AggregatorConfig":
        """Build a config from environment variables (``os.environ`` by default)."""
        if env is None:
            env = os.environ
        workers = env.get("AGGREGATOR_WORKERS", "").strip()
        try:
            parsed_workers = int(workers) if workers else 1
        except ValueError:
            raise ValueError(f"AGGREGATOR_WORKERS must be an integer, got {workers!r}") from None
        return cls(
            workers=parsed_workers,
            strict_window=_env_bool(env, "AGGREGATOR_STRICT_WINDOW", False),
            skip_malformed=_env_bool(env, "AGGREGATOR_SKIP_MALFORMED", False),
            s3_bucket=env.get("S3_BUCKET_NAME") or None,
            s3_prefix=env.get("AGGREGATOR_S3_PREFIX", "market-aggregates"),
            log_level=env.get("LOG_LEVEL", "WARNING").upper(),
        )

    def to_dict(self) -> dict:
        return asdict(self)
