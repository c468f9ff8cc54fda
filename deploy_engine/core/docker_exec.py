"""Runtime bridge: runs Docker CLI commands without a shell."""

import asyncio
import inspect
import logging
from asyncio.subprocess import Process
from typing import Any, Awaitable, Callable, List, Optional, Union

from ..models.deployment import ExecResult, StreamResult
from .constants import DEFAULT_DOCKER_BINARY, STREAM_READER_LIMIT

logger = logging.getLogger(__name__)

OutputCallback = Callable[[str], Union[None, Awaitable[Any]]]


async def deliver(callback: Optional[Callable[..., Any]], *args) -> None:
    """Invoke a plain or coroutine callback, awaiting it when needed."""
    if callback is None:
        return
    result = callback(*args)
    if inspect.isawaitable(result):
        await result


def decode(data: bytes) -> str:
    return data.decode('utf-8', errors='replace')


async def pump_lines(
    reader: Optional[asyncio.StreamReader],
    on_line: Optional[OutputCallback],
    on_chunk: Optional[Callable[[str], None]] = None,
) -> None:
    """Forward every non-empty line from a pipe as it arrives."""
    if reader is None:
        return
    while True:
        try:
            raw = await reader.readline()
        except ValueError:
            # Line longer than the reader limit, already discarded by the reader
            continue
        if not raw:
            break
        text = decode(raw).rstrip('\r\n')
        if on_chunk is not None and text:
            on_chunk(text)
        if not text.strip():
            continue
        try:
            await deliver(on_line, text)
        except Exception as e:
            logger.warning(f"Output callback failed: {e}")


class DockerExecutor:
    """Executes Docker CLI commands as argument vectors."""

    def __init__(self, binary: str = DEFAULT_DOCKER_BINARY):
        self.binary = binary

    async def _spawn(self, args: List[str]) -> Process:
        return await asyncio.create_subprocess_exec(
            self.binary,
            *args,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            limit=STREAM_READER_LIMIT,
        )

    def _describe(self, args: List[str]) -> str:
        return ' '.join([self.binary, *args])

    async def run(self, args: List[str]) -> ExecResult:
        """Run a command and collect its output.

        Args:
            args: Arguments passed to the Docker binary

        Returns:
            ExecResult with stripped stdout/stderr and the exit code. A
            command that cannot be spawned yields exit code 1 and the
            error text in stderr.
        """
        logger.debug(f"Docker command: {self._describe(args)}")
        try:
            process = await self._spawn(args)
        except OSError as e:
            logger.error(f"Failed to start {self._describe(args)}: {e}")
            return ExecResult(stdout='', stderr=str(e), exit_code=1)

        stdout, stderr = await process.communicate()
        exit_code = process.returncode if process.returncode is not None else 1
        return ExecResult(
            stdout=decode(stdout).strip(),
            stderr=decode(stderr).strip(),
            exit_code=exit_code,
        )

    async def run_streaming(self, args: List[str], on_output: Optional[OutputCallback]) -> StreamResult:
        """Run a command, forwarding stdout and stderr line by line.

        Docker build writes its progress to stderr, so both pipes go to
        the same callback. Lines keep their order within a pipe only.

        Returns:
            StreamResult with the exit code and, on failure, the last chunk
            written to stderr.
        """
        logger.debug(f"Docker command (streaming): {self._describe(args)}")
        try:
            process = await self._spawn(args)
        except OSError as e:
            logger.error(f"Failed to start {self._describe(args)}: {e}")
            return StreamResult(exit_code=1, error=str(e))

        last_error: List[str] = []

        def remember(text: str) -> None:
            last_error[:] = [text]

        await asyncio.gather(
            pump_lines(process.stdout, on_output),
            pump_lines(process.stderr, on_output, on_chunk=remember),
        )
        exit_code = await process.wait()
        if exit_code != 0:
            return StreamResult(exit_code=exit_code, error=last_error[0] if last_error else None)
        return StreamResult(exit_code=exit_code)

    async def spawn(self, args: List[str]) -> Optional[Process]:
        """Start a long-running command with piped output.

        Returns:
            The process, or None when it could not be started
        """
        logger.debug(f"Docker command (background): {self._describe(args)}")
        try:
            return await self._spawn(args)
        except OSError as e:
            logger.error(f"Failed to start {self._describe(args)}: {e}")
            return None

    async def is_available(self) -> bool:
        """Check whether the Docker daemon answers a version query."""
        result = await self.run(['version', '--format', '{{.Server.Version}}'])
        return result.ok and len(result.stdout) > 0
