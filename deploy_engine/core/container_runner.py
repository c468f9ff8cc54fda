"""Container lifecycle operations on top of the Docker CLI."""

import logging
from typing import List, Optional

from ..models.config import EngineSettings
from ..models.container import ContainerDescriptor, ContainerInfo, ManagedContainer, RunResult
from .constants import BUILD_LABEL, PROJECT_LABEL
from .docker_exec import DockerExecutor, OutputCallback
from .log_streams import LogStream

logger = logging.getLogger(__name__)


def _is_not_found(stderr: str) -> bool:
    return 'no such container' in stderr.lower()


class ContainerRunner:
    """Starts, stops, inspects and follows managed containers."""

    def __init__(self, executor: DockerExecutor, settings: Optional[EngineSettings] = None):
        self.executor = executor
        self.settings = settings or EngineSettings()

    def _run_args(self, descriptor: ContainerDescriptor) -> List[str]:
        args = [
            'run',
            '-d',
            '--name', descriptor.container_name,
            '-p', f'{descriptor.host_port}:{descriptor.internal_port}',
            '--restart', descriptor.restart_policy,
            '--memory', descriptor.memory_limit,
            '--cpus', descriptor.cpu_limit,
        ]
        for key, value in descriptor.labels.items():
            args.extend(['--label', f'{key}={value}'])

        # Caller-supplied variables come after the default so they win
        args.extend(['-e', 'NODE_ENV=production'])
        for key, value in descriptor.env_vars.items():
            args.extend(['-e', f'{key}={value}'])
        if 'PORT' not in descriptor.env_vars:
            args.extend(['-e', f'PORT={descriptor.internal_port}'])

        args.append(descriptor.image_name)
        return args

    async def run(self, descriptor: ContainerDescriptor) -> RunResult:
        """Start a detached container for the descriptor."""
        result = await self.executor.run(self._run_args(descriptor))
        if not result.ok:
            return RunResult(
                success=False,
                error=result.stderr or "Failed to start container",
            )
        logger.info(f"Started container {descriptor.container_name}")
        return RunResult(success=True, container_id=result.stdout.strip())

    async def stop(self, name: str, timeout: Optional[int] = None) -> bool:
        """Stop a container. An absent container counts as stopped."""
        timeout = self.settings.stop_timeout if timeout is None else timeout
        result = await self.executor.run(['stop', '-t', str(timeout), name])
        return result.ok or _is_not_found(result.stderr)

    async def remove(self, name: str, force: bool = True) -> bool:
        """Remove a container. With force, an absent container is not an error."""
        args = ['rm', '-f', name] if force else ['rm', name]
        result = await self.executor.run(args)
        if result.ok:
            return True
        if force and _is_not_found(result.stderr):
            return True
        logger.warning(f"Could not remove container {name}: {result.stderr}")
        return False

    async def stop_and_remove(self, name: str) -> bool:
        """Tear a container down. Idempotent."""
        await self.stop(name)
        return await self.remove(name, force=True)

    async def inspect(self, name: str) -> Optional[ContainerInfo]:
        """Return the container's id and status, or None if it does not exist."""
        result = await self.executor.run([
            'inspect', '--format', '{{.Id}} {{.State.Status}}', name,
        ])
        if not result.ok:
            return None
        container_id, _, status = result.stdout.partition(' ')
        return ContainerInfo(id=container_id, name=name, status=status.strip())

    async def exists(self, name: str) -> bool:
        return await self.inspect(name) is not None

    async def is_running(self, name: str) -> bool:
        info = await self.inspect(name)
        return info is not None and info.status == 'running'

    async def get_logs(self, name: str, tail: Optional[int] = None) -> str:
        """Fetch the last `tail` lines of combined stdout and stderr."""
        tail = self.settings.default_log_tail if tail is None else tail
        result = await self.executor.run(['logs', '--tail', str(tail), name])
        if not result.ok and _is_not_found(result.stderr):
            return ''
        return '\n'.join(part for part in (result.stdout, result.stderr) if part)

    async def stream_logs(self, name: str, on_line: OutputCallback) -> Optional[LogStream]:
        """Follow a container's logs from now on.

        Every call opens an independent stream that its caller must cancel.

        Returns:
            The stream handle, or None if the follow process could not start
        """
        process = await self.executor.spawn(['logs', '-f', '--tail', '0', name])
        if process is None:
            return None
        return LogStream(name, process, on_line)

    async def list_managed(self) -> List[ManagedContainer]:
        """Discover running containers carrying the management labels."""
        result = await self.executor.run([
            'ps',
            '--format', f'{{{{.Names}}}} {{{{.Label "{PROJECT_LABEL}"}}}} {{{{.Label "{BUILD_LABEL}"}}}}',
            '--filter', f'label={PROJECT_LABEL}',
        ])
        if not result.ok:
            logger.warning(f"Could not list managed containers: {result.stderr}")
            return []

        containers = []
        for line in result.stdout.splitlines():
            parts = line.split()
            if len(parts) < 3:
                continue
            container_name, project_id, build_id = parts[:3]
            containers.append(ManagedContainer(
                container_name=container_name,
                project_id=project_id,
                build_id=build_id,
            ))
        return containers
