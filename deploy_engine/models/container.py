"""Container models and naming conventions."""

from typing import Dict, Literal, Optional

from pydantic import BaseModel, Field

from ..core.constants import (
    BUILD_LABEL,
    CONTAINER_PREFIX,
    DEFAULT_CPU_LIMIT,
    DEFAULT_MEMORY_LIMIT,
    DEFAULT_RESTART_POLICY,
    ID_PREFIX_LENGTH,
    IMAGE_NAMESPACE,
    PROJECT_LABEL,
)


ContainerStatus = Literal[
    "created", "running", "paused", "restarting", "removing", "exited", "dead"
]


def get_container_name(project_id: str) -> str:
    """Container name for a project.

    Only the first 8 characters of the identifier are used, so two projects
    sharing that prefix map to the same container name.
    """
    return f"{CONTAINER_PREFIX}{project_id[:ID_PREFIX_LENGTH]}"


def get_image_prefix(project_id: str) -> str:
    """Image repository shared by every build of a project."""
    return f"{IMAGE_NAMESPACE}{project_id[:ID_PREFIX_LENGTH]}"


def get_image_name(project_id: str, build_id: str) -> str:
    """Image reference for one build of a project."""
    return f"{get_image_prefix(project_id)}:{build_id[:ID_PREFIX_LENGTH]}"


class ContainerDescriptor(BaseModel):
    """Everything needed to start a project's container."""
    project_id: str
    build_id: str
    image_name: str
    container_name: str
    host_port: int
    internal_port: int
    env_vars: Dict[str, str] = Field(default_factory=dict)
    memory_limit: str = DEFAULT_MEMORY_LIMIT
    cpu_limit: str = DEFAULT_CPU_LIMIT
    restart_policy: str = DEFAULT_RESTART_POLICY

    @property
    def labels(self) -> Dict[str, str]:
        return {PROJECT_LABEL: self.project_id, BUILD_LABEL: self.build_id}


class ContainerInfo(BaseModel):
    """Identifier and lifecycle status of an existing container."""
    id: str
    name: str
    status: str


class ManagedContainer(BaseModel):
    """A running container discovered through its management labels."""
    container_name: str
    project_id: str
    build_id: str


class RunResult(BaseModel):
    """Result of starting a container."""
    success: bool
    container_id: str = ""
    error: Optional[str] = None
