"""Deployment orchestration: one health-verified container per project."""

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional, Union

from ..models.config import EngineSettings
from ..models.container import ContainerDescriptor, get_container_name
from ..models.deployment import AppType, DeploymentOutcome, DeployStage, LogLevel
from ..services.exceptions import (
    ContainerStartError,
    DeploymentInProgressError,
    HealthCheckError,
    ServiceError,
    UnsupportedAppTypeError,
)
from .docker_exec import DockerExecutor, OutputCallback, deliver
from .container_runner import ContainerRunner
from .health import HealthChecker
from .image_builder import ImageBuilder
from .log_streams import LogStream, LogStreamRegistry

logger = logging.getLogger(__name__)

LogSink = Callable[[str, LogLevel], Union[None, Awaitable[Any]]]

_LOGGER_LEVELS = {
    LogLevel.INFO: logging.INFO,
    LogLevel.SUCCESS: logging.INFO,
    LogLevel.WARNING: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
}


def logger_sink(build_id: str) -> LogSink:
    """Default sink: forward build output to the module logger."""
    def sink(message: str, level: LogLevel) -> None:
        logger.log(_LOGGER_LEVELS.get(level, logging.INFO), f"[{build_id[:8]}] {message}")
    return sink


def resolve_app_type(app_type: Union[str, AppType]) -> AppType:
    try:
        return AppType(app_type)
    except ValueError:
        supported = ', '.join(t.value for t in AppType)
        raise UnsupportedAppTypeError(
            f"Unsupported app type: {app_type} (expected one of: {supported})"
        ) from None


class Deployer:
    """Sequences build, run, health check, pruning and log streaming.

    Operations on one project are mutually exclusive: an overlapping deploy
    is rejected, stop and cleanup wait for the in-flight operation.
    Different projects never block each other.
    """

    def __init__(
        self,
        executor: Optional[DockerExecutor] = None,
        settings: Optional[EngineSettings] = None,
        sink_factory: Optional[Callable[[str], LogSink]] = None,
        health_checker: Optional[HealthChecker] = None,
    ):
        self.settings = settings or EngineSettings()
        self.executor = executor or DockerExecutor(self.settings.docker_binary)
        self.images = ImageBuilder(self.executor, self.settings)
        self.containers = ContainerRunner(self.executor, self.settings)
        self.health_checker = health_checker or HealthChecker(
            host=self.settings.health_host,
            interval_ms=self.settings.health_check_interval_ms,
        )
        self.sink_factory = sink_factory or logger_sink
        self.log_streams = LogStreamRegistry()
        self._project_locks: Dict[str, asyncio.Lock] = {}

    def _lock_for(self, project_id: str) -> asyncio.Lock:
        lock = self._project_locks.get(project_id)
        if lock is None:
            lock = self._project_locks[project_id] = asyncio.Lock()
        return lock

    @asynccontextmanager
    async def _exclusive(self, project_id: str, reject: bool = False):
        lock = self._lock_for(project_id)
        if reject and lock.locked():
            raise DeploymentInProgressError(
                f"Deployment already in progress for project {project_id}"
            )
        async with lock:
            yield

    async def is_available(self) -> bool:
        return await self.executor.is_available()

    async def deploy(
        self,
        project_id: str,
        build_id: str,
        source_dir: Union[str, Path],
        host_port: int,
        app_type: Union[str, AppType],
        env_vars: Optional[Dict[str, str]] = None,
        log_sink: Optional[LogSink] = None,
    ) -> DeploymentOutcome:
        """Deploy a build of a project as its single running container.

        Returns:
            DeploymentOutcome; on failure no container is left running
        """
        sink = log_sink or self.sink_factory(build_id)
        try:
            async with self._exclusive(project_id, reject=True):
                return await self._deploy(
                    project_id, build_id, Path(source_dir), host_port, app_type, env_vars or {}, sink
                )
        except DeploymentInProgressError as e:
            await deliver(sink, str(e), LogLevel.ERROR)
            return DeploymentOutcome.failed(str(e), stage=DeployStage.PREPARING)

    async def _deploy(
        self,
        project_id: str,
        build_id: str,
        source_dir: Path,
        host_port: int,
        app_type: Union[str, AppType],
        env_vars: Dict[str, str],
        sink: LogSink,
    ) -> DeploymentOutcome:
        container_name = get_container_name(project_id)
        stage = DeployStage.PREPARING
        started = False

        async def emit(message: str, level: LogLevel = LogLevel.INFO) -> None:
            try:
                await deliver(sink, message, level)
            except Exception as e:
                logger.warning(f"Log sink failed: {e}")

        async def build_output(line: str) -> None:
            await emit(line)

        try:
            resolved_type = resolve_app_type(app_type)
            internal_port = resolved_type.internal_port

            await emit("Preparing container environment...")
            await self.log_streams.cancel(project_id)
            await self.containers.stop_and_remove(container_name)

            stage = DeployStage.BUILDING
            await emit("Building Docker image...")
            artifact = await self.images.build(
                project_id, build_id, source_dir, resolved_type, internal_port, build_output
            )

            stage = DeployStage.STARTING
            await emit("Starting container...")
            descriptor = ContainerDescriptor(
                project_id=project_id,
                build_id=build_id,
                image_name=artifact.image_name,
                container_name=container_name,
                host_port=host_port,
                internal_port=internal_port,
                env_vars=env_vars,
                memory_limit=self.settings.memory_limit,
                cpu_limit=self.settings.cpu_limit,
                restart_policy=self.settings.restart_policy,
            )
            started = True
            run_result = await self.containers.run(descriptor)
            if not run_result.success:
                raise ContainerStartError(run_result.error or "Failed to start container")
            await emit(f"Container started: {container_name}")

            stage = DeployStage.HEALTH_CHECKING
            await emit("Performing health check...")
            healthy = await self.health_checker.wait_for_healthy(
                host_port, self.settings.health_check_timeout_ms
            )
            if not healthy:
                logs = await self.containers.get_logs(
                    container_name, self.settings.diagnostic_log_lines
                )
                await emit(f"Container logs:\n{logs}", LogLevel.WARNING)
                raise HealthCheckError("Health check failed")
        except ServiceError as e:
            logger.error(f"Deployment of {project_id} failed during {stage.value}: {e}")
            await emit(self._failure_message(stage, e), LogLevel.ERROR)
            if started:
                await self.containers.stop_and_remove(container_name)
            return DeploymentOutcome.failed(str(e))
        except Exception as e:
            logger.exception(f"Unexpected error deploying {project_id} during {stage.value}")
            await emit(f"Deployment error: {e}", LogLevel.ERROR)
            if started:
                await self.containers.stop_and_remove(container_name)
            return DeploymentOutcome.failed(str(e) or type(e).__name__)
        except BaseException:
            # Cancelled or interrupted: remove the container, then propagate
            if started:
                logger.warning(f"Deployment of {project_id} interrupted, removing {container_name}")
                await self.containers.stop_and_remove(container_name)
            raise

        await emit("Container deployed successfully!", LogLevel.SUCCESS)

        try:
            await self.images.prune_project_images(project_id, self.settings.image_retention)
        except Exception as e:
            logger.warning(f"Image pruning failed for {project_id}: {e}")

        stream = await self._start_log_streaming(project_id, sink)
        if stream is None:
            logger.warning(f"Runtime log stream not attached for {project_id}")

        return DeploymentOutcome(
            success=True,
            container_id=run_result.container_id,
            stage=DeployStage.STREAMING if stream is not None else DeployStage.READY,
        )

    @staticmethod
    def _failure_message(stage: DeployStage, error: Exception) -> str:
        if stage == DeployStage.BUILDING:
            return f"Image build failed: {error}"
        if stage == DeployStage.STARTING:
            return f"Container failed to start: {error}"
        if stage == DeployStage.HEALTH_CHECKING:
            return str(error)
        return f"Deployment error: {error}"

    async def _start_log_streaming(self, project_id: str, sink: LogSink) -> Optional[LogStream]:
        container_name = get_container_name(project_id)

        async def on_line(line: str) -> None:
            await deliver(sink, line, LogLevel.INFO)

        async def opener() -> Optional[LogStream]:
            return await self.containers.stream_logs(container_name, on_line)

        return await self.log_streams.replace(project_id, opener)

    async def stop(self, project_id: str, build_id: Optional[str] = None) -> bool:
        """Stop a project's container, cancelling its log stream first."""
        sink = self.sink_factory(build_id) if build_id else None
        async with self._exclusive(project_id):
            await self.log_streams.cancel(project_id)
            if sink:
                await deliver(sink, "Stopping container...", LogLevel.INFO)
            stopped = await self.containers.stop_and_remove(get_container_name(project_id))
            if sink and stopped:
                await deliver(sink, "Container stopped", LogLevel.SUCCESS)
            return stopped

    async def cleanup(self, project_id: str, build_ids: Optional[Iterable[str]] = None) -> None:
        """Remove everything a project owns: stream, container and build images."""
        async with self._exclusive(project_id):
            await self.log_streams.cancel(project_id)
            await self.containers.stop_and_remove(get_container_name(project_id))
            if build_ids:
                await self.images.remove_project_images(project_id, list(build_ids))

    async def wait_for_healthy(self, port: int, timeout_ms: Optional[int] = None) -> bool:
        timeout_ms = self.settings.health_check_timeout_ms if timeout_ms is None else timeout_ms
        return await self.health_checker.wait_for_healthy(port, timeout_ms)

    async def is_running(self, project_id: str) -> bool:
        return await self.containers.is_running(get_container_name(project_id))

    async def get_logs(self, project_id: str, tail: Optional[int] = None) -> str:
        return await self.containers.get_logs(get_container_name(project_id), tail)

    async def stream_logs(self, project_id: str, on_line: OutputCallback) -> Optional[LogStream]:
        """Open a caller-owned log stream; it is not tracked by the registry."""
        return await self.containers.stream_logs(get_container_name(project_id), on_line)

    async def recover_log_streams(self) -> int:
        """Re-attach log streams for managed containers after a restart.

        Returns:
            Number of streams attached
        """
        logger.info("Recovering log streams for running containers...")
        count = 0
        for container in await self.containers.list_managed():
            sink = self.sink_factory(container.build_id)
            if await self._start_log_streaming(container.project_id, sink) is not None:
                count += 1
        logger.info(f"Recovered log streams for {count} containers")
        return count

    async def shutdown(self) -> None:
        """Cancel every registered log stream."""
        cancelled = await self.log_streams.cancel_all()
        if cancelled:
            logger.info(f"Cancelled {cancelled} log stream(s)")
