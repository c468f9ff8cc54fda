import sys

import pytest

from deploy_engine.core.docker_exec import DockerExecutor, deliver


def python_executor():
    """Executor whose 'binary' is the Python interpreter, so commands are scripts."""
    return DockerExecutor(binary=sys.executable)


class TestDockerExecutor:
    """Tests for the runtime bridge, driven by real subprocesses."""

    @pytest.mark.asyncio
    async def test_run_collects_stripped_output(self):
        """Test buffered mode returns both pipes and the exit code."""
        executor = python_executor()
        result = await executor.run([
            '-c', 'import sys; print("  hello  "); print("oops", file=sys.stderr); sys.exit(3)'
        ])

        assert result.stdout == "hello"
        assert result.stderr == "oops"
        assert result.exit_code == 3
        assert result.ok is False

    @pytest.mark.asyncio
    async def test_run_missing_binary_is_a_failed_result(self):
        """Test spawn failures come back as results, not exceptions."""
        executor = DockerExecutor(binary="/nonexistent/docker-binary")
        result = await executor.run(['ps'])

        assert result.exit_code == 1
        assert result.stderr
        assert result.stdout == ""

    @pytest.mark.asyncio
    async def test_run_streaming_delivers_lines_from_both_pipes(self):
        """Test stdout and stderr lines each arrive in order, blank lines dropped."""
        executor = python_executor()
        lines = []
        script = (
            'import sys\n'
            'for i in range(3):\n'
            '    print(f"out {i}", flush=True)\n'
            '    print(f"err {i}", file=sys.stderr, flush=True)\n'
            'print("", flush=True)\n'
        )
        result = await executor.run_streaming(['-c', script], lines.append)

        assert result.exit_code == 0
        assert result.error is None
        assert [line for line in lines if line.startswith('out')] == ['out 0', 'out 1', 'out 2']
        assert [line for line in lines if line.startswith('err')] == ['err 0', 'err 1', 'err 2']
        assert '' not in lines

    @pytest.mark.asyncio
    async def test_run_streaming_reports_last_error_chunk(self):
        """Test a failing streamed command returns its last stderr line."""
        executor = python_executor()
        script = 'import sys; print("step 1", file=sys.stderr); print("boom", file=sys.stderr); sys.exit(1)'
        result = await executor.run_streaming(['-c', script], None)

        assert result.exit_code == 1
        assert result.error == "boom"

    @pytest.mark.asyncio
    async def test_run_streaming_accepts_async_callbacks(self):
        """Test coroutine callbacks are awaited."""
        executor = python_executor()
        received = []

        async def on_line(line):
            received.append(line)

        await executor.run_streaming(['-c', 'print("a"); print("b")'], on_line)

        assert received == ['a', 'b']

    @pytest.mark.asyncio
    async def test_run_streaming_survives_callback_errors(self):
        """Test a failing callback does not stop the pump or the command."""
        executor = python_executor()
        seen = []

        def on_line(line):
            seen.append(line)
            raise RuntimeError("sink down")

        result = await executor.run_streaming(['-c', 'print("a"); print("b")'], on_line)

        assert result.exit_code == 0
        assert seen == ['a', 'b']

    @pytest.mark.asyncio
    async def test_run_streaming_missing_binary(self):
        """Test streaming spawn failures are reported in the result."""
        executor = DockerExecutor(binary="/nonexistent/docker-binary")
        result = await executor.run_streaming(['build', '.'], None)

        assert result.exit_code == 1
        assert result.error

    @pytest.mark.asyncio
    async def test_spawn_missing_binary_returns_none(self):
        """Test background spawn failures yield None."""
        executor = DockerExecutor(binary="/nonexistent/docker-binary")
        assert await executor.spawn(['logs', '-f', 'x']) is None

    @pytest.mark.asyncio
    async def test_is_available_requires_output(self):
        """Test availability needs a zero exit and a non-empty version."""
        executor = python_executor()

        async def fake_run(args):
            from deploy_engine.models.deployment import ExecResult
            return ExecResult(stdout="", exit_code=0)

        executor.run = fake_run
        assert await executor.is_available() is False

    @pytest.mark.asyncio
    async def test_is_available_missing_binary(self):
        """Test availability is False when the runtime binary is absent."""
        executor = DockerExecutor(binary="/nonexistent/docker-binary")
        assert await executor.is_available() is False


class TestDeliver:
    """Tests for callback delivery."""

    @pytest.mark.asyncio
    async def test_deliver_none_callback(self):
        """Test a missing callback is ignored."""
        await deliver(None, "line")

    @pytest.mark.asyncio
    async def test_deliver_passes_all_arguments(self):
        """Test extra arguments reach the callback."""
        received = []
        await deliver(lambda *args: received.append(args), "message", "info")
        assert received == [("message", "info")]
