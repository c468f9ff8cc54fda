"""Dockerfile templates per application type."""

import json
from typing import Optional

from ..models.deployment import AppType

STATIC_DOCKERFILE = """FROM nginx:alpine
COPY dist/ /usr/share/nginx/html
EXPOSE 80
CMD ["nginx", "-g", "daemon off;"]
"""

# Install in a builder stage, ship a slim runtime stage
BUN_DOCKERFILE = """FROM oven/bun:1-alpine AS builder
WORKDIR /app
COPY package.json ./
RUN bun install
COPY . .

FROM oven/bun:1-alpine
WORKDIR /app
COPY --from=builder /app .
ENV NODE_ENV=production
ENV PORT={internal_port}
EXPOSE {internal_port}
{start_command}
"""


def start_command(entry_file: Optional[str] = None) -> str:
    """CMD instruction running an entry file, or the declared start script."""
    target = entry_file or "start"
    return f"CMD {json.dumps(['bun', 'run', target])}"


def generate_dockerfile(app_type: AppType, internal_port: int, entry_file: Optional[str] = None) -> str:
    """Generate a Dockerfile for an application type."""
    if app_type.is_static:
        return STATIC_DOCKERFILE

    return BUN_DOCKERFILE.format(
        internal_port=internal_port,
        start_command=start_command(entry_file),
    )
