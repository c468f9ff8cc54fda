"""Core functionality for the deploy engine."""

from .container_runner import ContainerRunner
from .deployer import Deployer
from .docker_exec import DockerExecutor
from .dockerfile_generator import DockerfileGenerator, sanitize_dockerfile
from .health import HealthChecker
from .image_builder import ImageBuilder
from .log_streams import LogStream, LogStreamRegistry

__all__ = [
    'ContainerRunner',
    'Deployer',
    'DockerExecutor',
    'DockerfileGenerator',
    'sanitize_dockerfile',
    'HealthChecker',
    'ImageBuilder',
    'LogStream',
    'LogStreamRegistry',
]
