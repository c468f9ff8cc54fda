"""Custom exceptions for the deploy engine."""


class ServiceError(Exception):
    """Base exception for all deploy engine errors."""

    pass


class ConfigError(ServiceError):
    """Exception raised for invalid engine settings."""

    pass


class DockerServiceError(ServiceError):
    """Exception raised for container runtime operations."""

    pass


class BuildError(DockerServiceError):
    """Exception raised when an image cannot be built."""

    pass


class SourceNotFoundError(BuildError):
    """Exception raised when the build source directory does not exist."""

    pass


class UnsupportedAppTypeError(BuildError):
    """Exception raised for an application type outside the supported set."""

    pass


class ImageBuildError(BuildError):
    """Exception raised when the runtime fails to build an image."""

    pass


class ContainerStartError(DockerServiceError):
    """Exception raised when a container fails to start."""

    pass


class HealthCheckError(DockerServiceError):
    """Exception raised when a container never becomes healthy."""

    pass


class DeploymentInProgressError(DockerServiceError):
    """Exception raised when a project already has a deployment in flight."""

    pass
