import json

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from deploy_engine.cli.main import cli
from deploy_engine.models.container import ManagedContainer
from deploy_engine.models.deployment import DeploymentOutcome, DeployStage


@pytest.fixture
def mock_deployer():
    """Patches the Deployer used by CLI commands."""
    deployer = MagicMock()
    deployer.deploy = AsyncMock(return_value=DeploymentOutcome(
        success=True, container_id="abcdef1234567890", stage=DeployStage.STREAMING
    ))
    deployer.shutdown = AsyncMock()
    deployer.stop = AsyncMock(return_value=True)
    deployer.cleanup = AsyncMock()
    deployer.is_available = AsyncMock(return_value=True)
    deployer.is_running = AsyncMock(return_value=True)
    deployer.get_logs = AsyncMock(return_value="line one\nline two")
    deployer.containers.list_managed = AsyncMock(return_value=[])
    with patch('deploy_engine.cli.helpers.Deployer', return_value=deployer):
        yield deployer


class TestMainCLI:
    """Smoke tests for main CLI functionality."""

    def test_cli_help(self, cli_runner):
        """Test that CLI shows help."""
        result = cli_runner.invoke(cli, ['--help'])
        assert result.exit_code == 0
        assert 'Deploy Engine' in result.output
        for cmd in ['deploy', 'stop', 'cleanup', 'status', 'logs']:
            assert cmd in result.output

    def test_cli_no_args(self, cli_runner):
        """Test CLI with no arguments shows usage."""
        result = cli_runner.invoke(cli, [])
        assert result.exit_code in (0, 2)  # 2 since Click 8.2
        assert 'Usage:' in result.output

    def test_cli_invalid_command(self, cli_runner):
        result = cli_runner.invoke(cli, ['invalid-command'])
        assert result.exit_code != 0

    def test_invalid_config_exits(self, cli_runner, tmp_path, mock_deployer):
        """Test bad settings stop the CLI before any command runs."""
        config_file = tmp_path / "settings.json"
        config_file.write_text(json.dumps({"image_retention": 0}))

        result = cli_runner.invoke(cli, ['--config', str(config_file), 'status'])

        assert result.exit_code == 1
        mock_deployer.is_available.assert_not_awaited()


class TestDeployCommand:
    """Tests for the deploy command."""

    def test_deploy_success(self, cli_runner, mock_deployer, tmp_path):
        result = cli_runner.invoke(cli, [
            'deploy', 'proj-aaaa1111', 'bld-bbbb2222', str(tmp_path),
            '--port', '4001', '--app-type', 'express', '-e', 'API_KEY=a=b',
        ])

        assert result.exit_code == 0
        assert 'Deployed proj-aaaa1111' in result.output
        mock_deployer.deploy.assert_awaited_once_with(
            'proj-aaaa1111', 'bld-bbbb2222', str(tmp_path), 4001, 'express', {'API_KEY': 'a=b'}
        )
        mock_deployer.shutdown.assert_awaited_once()

    def test_deploy_failure_exits_nonzero(self, cli_runner, mock_deployer, tmp_path):
        mock_deployer.deploy.return_value = DeploymentOutcome.failed("Health check failed")

        result = cli_runner.invoke(cli, [
            'deploy', 'proj-aaaa1111', 'bld-bbbb2222', str(tmp_path),
            '--port', '4001', '--app-type', 'express',
        ])

        assert result.exit_code == 1
        assert 'Health check failed' in result.output

    def test_deploy_rejects_unknown_app_type(self, cli_runner, mock_deployer, tmp_path):
        result = cli_runner.invoke(cli, [
            'deploy', 'proj-aaaa1111', 'bld-bbbb2222', str(tmp_path),
            '--port', '4001', '--app-type', 'django',
        ])

        assert result.exit_code == 2
        mock_deployer.deploy.assert_not_awaited()

    def test_deploy_rejects_malformed_env(self, cli_runner, mock_deployer, tmp_path):
        result = cli_runner.invoke(cli, [
            'deploy', 'proj-aaaa1111', 'bld-bbbb2222', str(tmp_path),
            '--port', '4001', '--app-type', 'express', '-e', 'NOEQUALS',
        ])

        assert result.exit_code == 2
        assert 'KEY=VALUE' in result.output


class TestOperatorCommands:
    """Tests for stop, cleanup, status and logs."""

    def test_stop(self, cli_runner, mock_deployer):
        result = cli_runner.invoke(cli, ['stop', 'proj-aaaa1111'])

        assert result.exit_code == 0
        assert 'Stopped proj-aaaa1111' in result.output
        mock_deployer.stop.assert_awaited_once_with('proj-aaaa1111')

    def test_cleanup_with_builds(self, cli_runner, mock_deployer):
        result = cli_runner.invoke(cli, ['cleanup', 'proj-aaaa1111', '-b', 'bld-1', '-b', 'bld-2'])

        assert result.exit_code == 0
        mock_deployer.cleanup.assert_awaited_once_with('proj-aaaa1111', ['bld-1', 'bld-2'])

    def test_status_lists_managed(self, cli_runner, mock_deployer):
        mock_deployer.containers.list_managed.return_value = [
            ManagedContainer(container_name='thakur-proj-aaa', project_id='proj-aaaa1111', build_id='bld-bbbb2222'),
        ]

        result = cli_runner.invoke(cli, ['status'])

        assert result.exit_code == 0
        assert 'thakur-proj-aaa' in result.output
        assert 'Container' in result.output

    def test_status_empty(self, cli_runner, mock_deployer):
        result = cli_runner.invoke(cli, ['status'])

        assert result.exit_code == 0
        assert 'No managed containers running.' in result.output

    def test_status_single_project(self, cli_runner, mock_deployer):
        mock_deployer.is_running.return_value = False

        result = cli_runner.invoke(cli, ['status', 'proj-aaaa1111'])

        assert result.exit_code == 0
        assert 'thakur-proj-aaa: not running' in result.output

    def test_status_docker_unavailable(self, cli_runner, mock_deployer):
        mock_deployer.is_available.return_value = False

        result = cli_runner.invoke(cli, ['status'])

        assert result.exit_code == 1
        assert 'Docker is not available' in result.output

    def test_logs(self, cli_runner, mock_deployer):
        result = cli_runner.invoke(cli, ['logs', 'proj-aaaa1111', '-n', '20'])

        assert result.exit_code == 0
        assert 'line one\nline two' in result.output
        mock_deployer.get_logs.assert_awaited_once_with('proj-aaaa1111', 20)
