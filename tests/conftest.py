import pytest
from click.testing import CliRunner
from unittest.mock import AsyncMock, MagicMock
import tempfile
from pathlib import Path

from deploy_engine.core.deployer import Deployer
from deploy_engine.core.health import HealthChecker
from deploy_engine.models.config import EngineSettings

from tests.fake_docker import FakeDocker


@pytest.fixture
def cli_runner():
    """Provides a Click CLI runner for testing commands."""
    return CliRunner()


@pytest.fixture
def fake_docker():
    """Provides an in-memory Docker CLI."""
    return FakeDocker()


@pytest.fixture
def settings():
    return EngineSettings()


@pytest.fixture
def temp_source_dir():
    """Creates a temporary backend project without a Dockerfile."""
    with tempfile.TemporaryDirectory() as tmpdir:
        source = Path(tmpdir)
        (source / "src").mkdir()
        (source / "src" / "index.ts").write_text("Bun.serve({ port: process.env.PORT, fetch: () => new Response('ok') })")
        yield source


@pytest.fixture
def mock_health_checker():
    """Provides a health checker that reports healthy immediately."""
    checker = MagicMock(spec=HealthChecker)
    checker.wait_for_healthy = AsyncMock(return_value=True)
    return checker


@pytest.fixture
def sink_messages():
    """Collects (build_id, message, level) tuples sent to log sinks."""
    return []


@pytest.fixture
def deployer(fake_docker, settings, mock_health_checker, sink_messages):
    """Provides a Deployer wired to the fake Docker CLI."""
    def sink_factory(build_id):
        def sink(message, level):
            sink_messages.append((build_id, message, level))
        return sink

    return Deployer(
        executor=fake_docker,
        settings=settings,
        sink_factory=sink_factory,
        health_checker=mock_health_checker,
    )
