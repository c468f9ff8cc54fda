"""Tests for container and deployment models."""

import pytest
from pydantic import ValidationError

from deploy_engine.models.config import EngineSettings
from deploy_engine.models.container import (
    ContainerDescriptor,
    get_container_name,
    get_image_name,
    get_image_prefix,
)
from deploy_engine.models.deployment import AppType, DeploymentOutcome, DeployStage, ExecResult


class TestNaming:
    """Test suite for deterministic naming."""

    def test_container_name(self):
        assert get_container_name("proj-aaaa1111") == "thakur-proj-aaa"

    def test_image_name(self):
        assert get_image_name("proj-aaaa1111", "bld-bbbb2222") == "thakur-deploy/proj-aaa:bld-bbbb"

    def test_image_prefix(self):
        assert get_image_prefix("proj-aaaa1111") == "thakur-deploy/proj-aaa"

    def test_short_ids_used_whole(self):
        assert get_container_name("abc") == "thakur-abc"
        assert get_image_name("abc", "x1") == "thakur-deploy/abc:x1"

    def test_shared_prefix_collides(self):
        """Test identifiers sharing their first 8 characters share a container."""
        assert get_container_name("12345678-aaaa") == get_container_name("12345678-bbbb")


class TestContainerDescriptor:
    """Test suite for ContainerDescriptor."""

    def test_defaults_and_labels(self):
        descriptor = ContainerDescriptor(
            project_id="proj-aaaa1111",
            build_id="bld-bbbb2222",
            image_name="thakur-deploy/proj-aaa:bld-bbbb",
            container_name="thakur-proj-aaa",
            host_port=4001,
            internal_port=3000,
        )

        assert descriptor.memory_limit == "512m"
        assert descriptor.cpu_limit == "0.5"
        assert descriptor.restart_policy == "unless-stopped"
        assert descriptor.env_vars == {}
        assert descriptor.labels == {
            "thakur.projectId": "proj-aaaa1111",
            "thakur.buildId": "bld-bbbb2222",
        }


class TestDeploymentModels:
    """Test suite for deployment result models."""

    @pytest.mark.parametrize("app_type,port,static", [
        (AppType.VITE, 80, True),
        (AppType.NEXTJS, 3000, False),
        (AppType.EXPRESS, 3000, False),
        (AppType.HONO, 3000, False),
        (AppType.ELYSIA, 3000, False),
    ])
    def test_app_type_ports(self, app_type, port, static):
        assert app_type.internal_port == port
        assert app_type.is_static is static

    def test_failed_outcome(self):
        outcome = DeploymentOutcome.failed("Health check failed")

        assert outcome.success is False
        assert outcome.container_id is None
        assert outcome.stage == DeployStage.ROLLED_BACK

    def test_outcome_is_immutable(self):
        outcome = DeploymentOutcome(success=True, container_id="abc", stage=DeployStage.READY)
        with pytest.raises(ValidationError):
            outcome.success = False

    def test_exec_result_ok(self):
        assert ExecResult(exit_code=0).ok is True
        assert ExecResult(exit_code=125).ok is False


class TestEngineSettings:
    """Test suite for EngineSettings."""

    def test_defaults(self):
        settings = EngineSettings()

        assert settings.docker_binary == "docker"
        assert settings.health_check_timeout_ms == 15000
        assert settings.health_check_interval_ms == 500
        assert settings.image_retention == 3
        assert settings.diagnostic_log_lines == 50

    def test_retention_must_be_positive(self):
        with pytest.raises(ValidationError):
            EngineSettings(image_retention=0)
