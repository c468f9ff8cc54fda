"""Dockerfile resolution: synthesis for bare sources, sanitization for user recipes."""

import json
import logging
import re
from pathlib import Path
from typing import Iterator, List, Optional

from ..models.deployment import AppType
from .constants import DANGEROUS_PATTERNS, ENTRY_PATTERNS, PACKAGE_JSON_NAME, REMOVED_MARKER
from .dockerfile_template import generate_dockerfile

logger = logging.getLogger(__name__)

_DANGEROUS = [re.compile(pattern, re.IGNORECASE) for pattern in DANGEROUS_PATTERNS]
_EXPOSE = re.compile(r'^(\s*)(EXPOSE)\b.*$', re.IGNORECASE)
_ENV = re.compile(r'^\s*ENV\s', re.IGNORECASE)
# PORT as a whole variable name, in either `PORT=value` or legacy `PORT value` form
_ENV_PORT = re.compile(r'(?<![\w])(PORT)(\s*=\s*|\s+)("[^"]*"|\'[^\']*\'|[^\s\\]+)')
_PROCESS_START = re.compile(r'^\s*(CMD|ENTRYPOINT)\b', re.IGNORECASE)


def _is_comment(line: str) -> bool:
    return line.lstrip().startswith('#')


def _is_dangerous(line: str) -> bool:
    return any(pattern.search(line) for pattern in _DANGEROUS)


def _instructions(lines: List[str]) -> Iterator[List[str]]:
    """Group physical lines into instructions joined by trailing backslashes."""
    group: List[str] = []
    for line in lines:
        if not group and _is_comment(line):
            yield [line]
            continue
        group.append(line)
        if not line.rstrip().endswith('\\'):
            yield group
            group = []
    if group:
        yield group


def _rewrite_port_env(group: List[str], internal_port: int) -> Optional[List[str]]:
    for i, line in enumerate(group):
        if _ENV_PORT.search(line):
            rewritten = list(group)
            rewritten[i] = _ENV_PORT.sub(
                lambda m: f"{m.group(1)}{'=' if '=' in m.group(2) else m.group(2)}{internal_port}",
                line,
                count=1,
            )
            return rewritten
    return None


def _content_end(lines: List[str]) -> int:
    """Index just past the last non-empty line."""
    end = len(lines)
    while end > 0 and lines[end - 1] == '':
        end -= 1
    return end


def sanitize_dockerfile(content: str, internal_port: int) -> str:
    """Sanitize a user-supplied Dockerfile.

    Rules apply to whole instructions, backslash continuation lines included.

    - Every EXPOSE is rewritten to the assigned internal port, one is
      appended if missing.
    - Every ENV assigning PORT gets the internal port; if none exists one is
      inserted before the first CMD/ENTRYPOINT (or appended).
    - Instructions that elevate privileges or reach host devices/sockets are
      commented out line by line, leaving a trace of what was removed.

    A recipe that already complies comes back unchanged, trailing newline
    included.
    """
    sanitized: List[str] = []
    has_expose = False
    has_port_env = False
    start_index = None

    for group in _instructions(content.split('\n')):
        head = group[0]
        if _is_comment(head):
            sanitized.extend(group)
            continue

        if any(_is_dangerous(line) for line in group):
            sanitized.extend(f"{REMOVED_MARKER}{line}" for line in group)
            continue

        expose = _EXPOSE.match(head)
        if expose:
            has_expose = True
            sanitized.append(f"{expose.group(1)}{expose.group(2)} {internal_port}")
            continue

        if _ENV.match(head):
            rewritten = _rewrite_port_env(group, internal_port)
            if rewritten is not None:
                has_port_env = True
                group = rewritten

        if start_index is None and _PROCESS_START.match(head):
            start_index = len(sanitized)
        sanitized.extend(group)

    if not has_expose:
        sanitized.insert(_content_end(sanitized), f"EXPOSE {internal_port}")

    if not has_port_env:
        if start_index is None:
            start_index = _content_end(sanitized)
        sanitized.insert(start_index, f"ENV PORT={internal_port}")

    return '\n'.join(sanitized)


class DockerfileGenerator:
    """Synthesizes Dockerfiles for projects that do not ship one."""

    def __init__(self, source_dir: Path):
        self.source_dir = source_dir

    def has_start_script(self) -> bool:
        """Check whether package.json declares a start script."""
        package_json = self.source_dir / PACKAGE_JSON_NAME
        if not package_json.exists():
            return False
        try:
            data = json.loads(package_json.read_text(encoding='utf-8'))
        except (OSError, ValueError) as e:
            logger.debug(f"Ignoring unreadable {package_json}: {e}")
            return False
        scripts = data.get('scripts') if isinstance(data, dict) else None
        return isinstance(scripts, dict) and bool(scripts.get('start'))

    def detect_entry_file(self) -> Optional[str]:
        """Return the first conventional entry file present in the source."""
        for pattern in ENTRY_PATTERNS:
            if (self.source_dir / pattern).is_file():
                return pattern
        return None

    def generate(self, app_type: AppType, internal_port: int, on_message=None) -> str:
        """Generate a Dockerfile for the source directory.

        Args:
            app_type: Application type selecting the template
            internal_port: Port the application listens on in the container
            on_message: Optional callable receiving progress messages

        Returns:
            Dockerfile content
        """
        entry_file = None
        if not app_type.is_static and not self.has_start_script():
            entry_file = self.detect_entry_file()
            if on_message:
                if entry_file:
                    on_message(f"Detected entry file: {entry_file}")
                else:
                    on_message("Warning: No start script or entry file found")

        return generate_dockerfile(app_type, internal_port, entry_file)
