"""
Configuration management for the fibscope pattern engine.
"""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

from .constants import GOLDEN_RATIO


class AnalysisConfig(BaseModel):
    """Per-call options recognized by ``analyze``."""

    model_config = ConfigDict(frozen=True)

    tolerance: float = Field(default=0.03, gt=0.0, lt=1.0)
    window_size: int = Field(default=3, ge=3, le=256)
    use_cache: bool = Field(default=True)
    prefer_parallel: bool = Field(default=True)
    golden_ratio: float = Field(default=GOLDEN_RATIO, gt=1.0)
    require_ordered_timestamps: bool = Field(default=True)
    enforce_template_tolerance: bool = Field(default=False)
    detect_retracements: bool = Field(default=True)


class CacheConfig(BaseModel):
    """Result cache sizing and expiry."""

    max_entries: int = Field(default=256, ge=1)
    ttl_seconds: float = Field(default=5.0, gt=0.0)
    fingerprint_window: int = Field(default=100, ge=1)


class BackendConfig(BaseModel):
    """Parallel compute backend settings."""

    max_workers: int = Field(default=4, ge=1, le=64)
    chunk_size: int = Field(default=256, ge=1)


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="WARNING")
    file_path: Optional[str] = Field(default=None)
    max_size: str = Field(default="10MB")
    backup_count: int = Field(default=5)


class Config(BaseModel):
    """Main configuration class."""

    analysis: AnalysisConfig = Field(default_factory=AnalysisConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    backend: BackendConfig = Field(default_factory=BackendConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def load_from_env(cls, env_file: Optional[str] = None) -> "Config":
        """Load configuration from environment variables."""
        if env_file:
            load_dotenv(env_file)
        else:
            # Try to load from .env file in current directory
            env_path = Path(".env")
            if env_path.exists():
                load_dotenv(env_path)

        analysis = AnalysisConfig(
            tolerance=float(os.getenv("FIBSCOPE_TOLERANCE", "0.03")),
            window_size=int(os.getenv("FIBSCOPE_WINDOW_SIZE", "3")),
            use_cache=_env_flag("FIBSCOPE_USE_CACHE", True),
            prefer_parallel=_env_flag("FIBSCOPE_PREFER_PARALLEL", True),
            require_ordered_timestamps=_env_flag("FIBSCOPE_REQUIRE_ORDERED", True),
            enforce_template_tolerance=_env_flag("FIBSCOPE_STRICT_TEMPLATES", False),
            detect_retracements=_env_flag("FIBSCOPE_DETECT_RETRACEMENTS", True)
        )

        cache = CacheConfig(
            max_entries=int(os.getenv("FIBSCOPE_CACHE_MAX_ENTRIES", "256")),
            ttl_seconds=float(os.getenv("FIBSCOPE_CACHE_TTL_SECONDS", "5.0")),
            fingerprint_window=int(os.getenv("FIBSCOPE_FINGERPRINT_WINDOW", "100"))
        )

        backend = BackendConfig(
            max_workers=int(os.getenv("FIBSCOPE_MAX_WORKERS", "4")),
            chunk_size=int(os.getenv("FIBSCOPE_CHUNK_SIZE", "256"))
        )

        logging = LoggingConfig(
            level=os.getenv("FIBSCOPE_LOG_LEVEL", "WARNING"),
            file_path=os.getenv("FIBSCOPE_LOG_FILE"),
            max_size=os.getenv("FIBSCOPE_LOG_MAX_SIZE", "10MB"),
            backup_count=int(os.getenv("FIBSCOPE_LOG_BACKUP_COUNT", "5"))
        )

        return cls(
            analysis=analysis,
            cache=cache,
            backend=backend,
            logging=logging
        )


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ('true', '1', 'yes', 'on')
