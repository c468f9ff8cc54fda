"""Build and deployment result models."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict

from ..core.constants import DEFAULT_INTERNAL_PORT, STATIC_APP_TYPES, STATIC_INTERNAL_PORT


class AppType(str, Enum):
    """Supported application types."""
    NEXTJS = "nextjs"
    VITE = "vite"
    EXPRESS = "express"
    HONO = "hono"
    ELYSIA = "elysia"

    @property
    def is_static(self) -> bool:
        return self.value in STATIC_APP_TYPES

    @property
    def internal_port(self) -> int:
        return STATIC_INTERNAL_PORT if self.is_static else DEFAULT_INTERNAL_PORT


class DeployStage(str, Enum):
    """Stages a deployment moves through."""
    PREPARING = "preparing"
    BUILDING = "building"
    STARTING = "starting"
    HEALTH_CHECKING = "health_checking"
    READY = "ready"
    ROLLED_BACK = "rolled_back"
    PRUNING = "pruning"
    STREAMING = "streaming"


class LogLevel(str, Enum):
    """Severity passed to log sinks."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    SUCCESS = "success"


class ExecResult(BaseModel):
    """Buffered result of a runtime command."""
    stdout: str = ""
    stderr: str = ""
    exit_code: int

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


class StreamResult(BaseModel):
    """Result of a streamed runtime command."""
    exit_code: int
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


class BuildArtifact(BaseModel):
    """A resolved build recipe and the image built from it."""
    project_id: str
    build_id: str
    image_name: str
    dockerfile: str
    generated: bool


class DeploymentOutcome(BaseModel):
    """Terminal result of one deploy attempt."""
    model_config = ConfigDict(frozen=True)

    success: bool
    container_id: Optional[str] = None
    error: Optional[str] = None
    stage: DeployStage

    @classmethod
    def failed(cls, error: str, stage: DeployStage = DeployStage.ROLLED_BACK) -> "DeploymentOutcome":
        return cls(success=False, error=error, stage=stage)
