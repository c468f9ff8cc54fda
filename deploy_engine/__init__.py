"""Deploy Engine - single-host container deployments, one container per project."""

__version__ = "0.1.0"

from .core.deployer import Deployer
from .models.deployment import AppType, DeploymentOutcome, LogLevel

__all__ = ['Deployer', 'AppType', 'DeploymentOutcome', 'LogLevel']
