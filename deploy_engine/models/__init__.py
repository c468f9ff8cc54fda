"""Models for the deploy engine."""

from .config import EngineSettings
from .container import (
    ContainerDescriptor,
    ContainerInfo,
    ManagedContainer,
    RunResult,
    get_container_name,
    get_image_name,
    get_image_prefix,
)
from .deployment import (
    AppType,
    BuildArtifact,
    DeploymentOutcome,
    DeployStage,
    ExecResult,
    LogLevel,
    StreamResult,
)

__all__ = [
    'EngineSettings',
    'ContainerDescriptor',
    'ContainerInfo',
    'ManagedContainer',
    'RunResult',
    'get_container_name',
    'get_image_name',
    'get_image_prefix',
    'AppType',
    'BuildArtifact',
    'DeploymentOutcome',
    'DeployStage',
    'ExecResult',
    'LogLevel',
    'StreamResult',
]
