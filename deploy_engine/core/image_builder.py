"""Docker image building, removal and retention."""

import asyncio
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from ..models.config import EngineSettings
from ..models.container import get_image_name, get_image_prefix
from ..models.deployment import AppType, BuildArtifact
from ..services.exceptions import ImageBuildError, SourceNotFoundError
from .constants import DOCKERFILE_NAME
from .docker_exec import DockerExecutor, OutputCallback, deliver
from .dockerfile_generator import DockerfileGenerator, sanitize_dockerfile

logger = logging.getLogger(__name__)

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def parse_created_at(value: str) -> Optional[datetime]:
    """Parse the CreatedAt column of `docker images`.

    Docker prints e.g. "2024-05-01 10:22:33 +0000 UTC"; the trailing zone
    name is redundant with the offset.
    """
    parts = value.split()
    if len(parts) < 3:
        return None
    try:
        return datetime.strptime(' '.join(parts[:3]), '%Y-%m-%d %H:%M:%S %z')
    except ValueError:
        return None


class ImageBuilder:
    """Builds project images and enforces image retention."""

    def __init__(self, executor: DockerExecutor, settings: Optional[EngineSettings] = None):
        self.executor = executor
        self.settings = settings or EngineSettings()

    async def build(
        self,
        project_id: str,
        build_id: str,
        source_dir: Path,
        app_type: AppType,
        internal_port: int,
        on_log: Optional[OutputCallback] = None,
    ) -> BuildArtifact:
        """Build the image for one build of a project.

        A Dockerfile shipped with the source is sanitized in place and kept;
        otherwise one is generated for the app type and deleted after the
        build whatever its outcome.

        Raises:
            SourceNotFoundError: If the source directory does not exist
            ImageBuildError: If the recipe cannot be written or the build fails
        """
        source_dir = Path(source_dir)
        image_name = get_image_name(project_id, build_id)

        if not await asyncio.to_thread(source_dir.is_dir):
            raise SourceNotFoundError(f"Source directory not found: {source_dir}")

        dockerfile_path = source_dir / DOCKERFILE_NAME
        dockerfile, generated = await self._resolve_dockerfile(
            dockerfile_path, app_type, internal_port, on_log
        )

        await deliver(on_log, f"Building Docker image: {image_name}")
        try:
            result = await self.executor.run_streaming(
                ['build', '-t', image_name, str(source_dir)], on_log
            )
        finally:
            if generated:
                await self._remove_generated(dockerfile_path)

        if not result.ok:
            raise ImageBuildError(result.error or "Docker build failed")

        await deliver(on_log, f"Image built successfully: {image_name}")
        logger.info(f"Built image {image_name}")
        return BuildArtifact(
            project_id=project_id,
            build_id=build_id,
            image_name=image_name,
            dockerfile=dockerfile,
            generated=generated,
        )

    async def _resolve_dockerfile(
        self,
        dockerfile_path: Path,
        app_type: AppType,
        internal_port: int,
        on_log: Optional[OutputCallback],
    ) -> Tuple[str, bool]:
        try:
            if await asyncio.to_thread(dockerfile_path.exists):
                original = await asyncio.to_thread(dockerfile_path.read_text, encoding='utf-8')
                sanitized = sanitize_dockerfile(original, internal_port)
                if sanitized != original:
                    await asyncio.to_thread(dockerfile_path.write_text, sanitized, encoding='utf-8')
                    await deliver(on_log, "Using existing Dockerfile (sanitized for security)")
                else:
                    await deliver(on_log, "Using existing Dockerfile")
                return sanitized, False

            messages: List[str] = []
            generator = DockerfileGenerator(dockerfile_path.parent)
            content = await asyncio.to_thread(
                generator.generate, app_type, internal_port, messages.append
            )
            for message in messages:
                await deliver(on_log, message)
            await asyncio.to_thread(dockerfile_path.write_text, content, encoding='utf-8')
            await deliver(on_log, f"Generated Dockerfile for {app_type.value}")
            return content, True
        except (OSError, UnicodeDecodeError) as e:
            raise ImageBuildError(f"Failed to prepare Dockerfile: {e}") from e

    async def _remove_generated(self, dockerfile_path: Path) -> None:
        try:
            await asyncio.to_thread(dockerfile_path.unlink)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not remove generated Dockerfile {dockerfile_path}: {e}")

    async def remove_image(self, image_name: str) -> bool:
        """Remove an image, returning whether the runtime accepted it."""
        result = await self.executor.run(['rmi', '-f', image_name])
        if not result.ok:
            logger.warning(f"Could not remove image {image_name}: {result.stderr}")
        return result.ok

    async def list_project_images(self, project_id: str) -> List[Tuple[str, datetime]]:
        """List a project's images, newest first."""
        prefix = get_image_prefix(project_id)
        result = await self.executor.run([
            'images',
            '--format', '{{.Repository}}:{{.Tag}} {{.CreatedAt}}',
            '--filter', f'reference={prefix}:*',
        ])
        if not result.ok or not result.stdout:
            return []

        images = []
        for line in result.stdout.splitlines():
            name, _, created = line.strip().partition(' ')
            if not name:
                continue
            created_at = parse_created_at(created)
            if created_at is None:
                logger.warning(f"Unparseable creation time for {name}: {created!r}")
                created_at = _OLDEST
            images.append((name, created_at))

        images.sort(key=lambda image: image[1], reverse=True)
        return images

    async def prune_project_images(self, project_id: str, keep: Optional[int] = None) -> List[str]:
        """Remove a project's images beyond the newest `keep`.

        Each removal is independent; failures are logged and skipped.

        Returns:
            Names of the images actually removed
        """
        keep = self.settings.image_retention if keep is None else keep
        images = await self.list_project_images(project_id)
        removed = []
        for name, _ in images[keep:]:
            if await self.remove_image(name):
                removed.append(name)
        if removed:
            logger.info(f"Pruned {len(removed)} old image(s) for project {project_id}")
        return removed

    async def remove_project_images(self, project_id: str, build_ids: Iterable[str]) -> List[str]:
        """Remove the images of the given builds, regardless of retention."""
        removed = []
        for build_id in build_ids:
            image_name = get_image_name(project_id, build_id)
            if await self.remove_image(image_name):
                removed.append(image_name)
        return removed
