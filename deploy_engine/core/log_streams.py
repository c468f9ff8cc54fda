"""Follow-mode log streams and the per-project registry that owns them."""

import asyncio
import logging
from asyncio.subprocess import Process
from typing import Awaitable, Callable, Dict, List, Optional

from .docker_exec import OutputCallback, pump_lines

logger = logging.getLogger(__name__)


class LogStream:
    """A live log subscription: the following process plus its output pumps.

    Cancellation is cooperative. `cancel()` sends SIGTERM; a few buffered
    lines may still be delivered before the process exits.
    """

    def __init__(self, name: str, process: Process, on_line: OutputCallback):
        self.name = name
        self.process = process
        self._cancelled = False
        self._pumps = [
            asyncio.ensure_future(pump_lines(process.stdout, on_line)),
            asyncio.ensure_future(pump_lines(process.stderr, on_line)),
        ]

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def done(self) -> bool:
        return self.process.returncode is not None and all(p.done() for p in self._pumps)

    def cancel(self) -> None:
        """Terminate the underlying process. Safe to call more than once."""
        self._cancelled = True
        if self.process.returncode is not None:
            return
        try:
            self.process.terminate()
        except ProcessLookupError:
            pass

    async def wait_closed(self) -> int:
        """Wait for the process to exit and the pumps to drain."""
        returncode = await self.process.wait()
        await asyncio.gather(*self._pumps, return_exceptions=True)
        return returncode

    async def aclose(self) -> None:
        self.cancel()
        await self.wait_closed()


class LogStreamRegistry:
    """At most one active log stream per project key.

    Replacement always cancels the previous handle before the new one is
    stored, so no follow process is left without an owner.
    """

    def __init__(self):
        self._streams: Dict[str, LogStream] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._streams)

    def __contains__(self, project_id: str) -> bool:
        return project_id in self._streams

    def get(self, project_id: str) -> Optional[LogStream]:
        return self._streams.get(project_id)

    def active_projects(self) -> List[str]:
        return list(self._streams)

    def _cancel_locked(self, project_id: str) -> bool:
        stream = self._streams.pop(project_id, None)
        if stream is None:
            return False
        stream.cancel()
        logger.debug(f"Cancelled log stream for project {project_id}")
        return True

    async def replace(
        self,
        project_id: str,
        opener: Callable[[], Awaitable[Optional[LogStream]]],
    ) -> Optional[LogStream]:
        """Cancel any stream for the project, then open and store a new one.

        Returns:
            The new stream, or None if the opener could not start one
        """
        async with self._lock:
            self._cancel_locked(project_id)
            stream = await opener()
            if stream is not None:
                self._streams[project_id] = stream
            return stream

    async def cancel(self, project_id: str) -> bool:
        """Cancel the project's stream, returning whether one was active."""
        async with self._lock:
            return self._cancel_locked(project_id)

    async def cancel_all(self) -> int:
        async with self._lock:
            projects = list(self._streams)
            for project_id in projects:
                self._cancel_locked(project_id)
            return len(projects)
