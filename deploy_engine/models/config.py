"""Engine settings model."""

from pydantic import BaseModel, Field

from ..core.constants import (
    DEFAULT_CPU_LIMIT,
    DEFAULT_DOCKER_BINARY,
    DEFAULT_HEALTH_HOST,
    DEFAULT_IMAGE_RETENTION,
    DEFAULT_LOG_TAIL,
    DEFAULT_MEMORY_LIMIT,
    DEFAULT_RESTART_POLICY,
    DEFAULT_STOP_TIMEOUT,
    DIAGNOSTIC_LOG_LINES,
    HEALTH_CHECK_INTERVAL_MS,
    HEALTH_CHECK_TIMEOUT_MS,
)


class EngineSettings(BaseModel):
    """Tunable settings for the deploy engine."""
    docker_binary: str = DEFAULT_DOCKER_BINARY
    memory_limit: str = DEFAULT_MEMORY_LIMIT
    cpu_limit: str = DEFAULT_CPU_LIMIT
    restart_policy: str = DEFAULT_RESTART_POLICY
    stop_timeout: int = Field(default=DEFAULT_STOP_TIMEOUT, ge=0)
    health_host: str = DEFAULT_HEALTH_HOST
    health_check_interval_ms: int = Field(default=HEALTH_CHECK_INTERVAL_MS, gt=0)
    health_check_timeout_ms: int = Field(default=HEALTH_CHECK_TIMEOUT_MS, gt=0)
    diagnostic_log_lines: int = Field(default=DIAGNOSTIC_LOG_LINES, ge=0)
    image_retention: int = Field(default=DEFAULT_IMAGE_RETENTION, ge=1)
    default_log_tail: int = Field(default=DEFAULT_LOG_TAIL, ge=0)
