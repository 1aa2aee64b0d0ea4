from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from dasbench.core.errors import SamplingConfigError

# Leaf counts the path renderer knows how to address: powers of two up to 256.
SUPPORTED_LEAF_COUNTS = (2, 4, 8, 16, 32, 64, 128, 256)

DEFAULT_IPFS_API_URL = "http://127.0.0.1:5001"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="DAS_", extra="ignore")

    log_level: str = "INFO"

    # Leaf store backend: ipfs | memory
    store_backend: str = "ipfs"
    ipfs_api_url: str = DEFAULT_IPFS_API_URL

    cids_file: Path = Path("testfiles/cids.json")
    out_dir: Path = Path("ipfs-experiment-results")

    num_leaves: int = Field(default=32, description="Leaves per tree; decides the depth of sampled paths")
    num_samples: int = Field(default=15, description="Concurrent samples per tree (one round)")

    initial_delay_seconds: float = 180.0
    round_pause_seconds: float = 30.0
    fetch_timeout_seconds: float = Field(default=60.0, description="Deadline for a single leaf fetch")

    seed: int | None = None

    def model_post_init(self, __context) -> None:
        problems: list[str] = []
        if self.num_leaves not in SUPPORTED_LEAF_COUNTS:
            problems.append(
                f"num_leaves={self.num_leaves} is not supported; use a power of two <= 256"
            )
        if self.num_samples < 1:
            problems.append(f"num_samples={self.num_samples} must be at least 1")
        elif self.num_leaves in SUPPORTED_LEAF_COUNTS and self.num_samples > self.num_leaves:
            problems.append(
                f"num_samples={self.num_samples} exceeds the {self.num_leaves} distinct leaves of a tree"
            )
        if self.initial_delay_seconds < 0 or self.round_pause_seconds < 0:
            problems.append("delays must not be negative")
        if self.fetch_timeout_seconds <= 0:
            problems.append("fetch_timeout_seconds must be positive")
        if self.store_backend not in {"ipfs", "memory"}:
            problems.append(f"unknown store_backend: {self.store_backend}")

        if problems:
            raise SamplingConfigError("invalid sampling configuration: " + "; ".join(problems))


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
