"""Service layer exceptions for the deploy engine."""

from .exceptions import (
    ServiceError,
    ConfigError,
    DockerServiceError,
    BuildError,
    SourceNotFoundError,
    UnsupportedAppTypeError,
    ImageBuildError,
    ContainerStartError,
    HealthCheckError,
    DeploymentInProgressError,
)

__all__ = [
    "ServiceError",
    "ConfigError",
    "DockerServiceError",
    "BuildError",
    "SourceNotFoundError",
    "UnsupportedAppTypeError",
    "ImageBuildError",
    "ContainerStartError",
    "HealthCheckError",
    "DeploymentInProgressError",
]
