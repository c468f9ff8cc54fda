"""Constants used throughout the deploy engine."""


# Naming (must stay stable: containers are found out-of-band by these names)
CONTAINER_PREFIX = "thakur-"
IMAGE_NAMESPACE = "thakur-deploy/"
ID_PREFIX_LENGTH = 8

# Labels attached at container creation, used for self-discovery
PROJECT_LABEL = "thakur.projectId"
BUILD_LABEL = "thakur.buildId"

# Application types and their internal ports
APP_TYPES = ["nextjs", "vite", "express", "hono", "elysia"]
STATIC_APP_TYPES = ["vite"]
DEFAULT_INTERNAL_PORT = 3000
STATIC_INTERNAL_PORT = 80  # nginx serves on 80

# Build recipe
DOCKERFILE_NAME = "Dockerfile"
PACKAGE_JSON_NAME = "package.json"

# Entry files checked in priority order when no start script is declared
ENTRY_PATTERNS = [
    "src/index.ts",
    "src/index.js",
    "src/server.ts",
    "src/server.js",
    "index.ts",
    "index.js",
    "server.ts",
    "server.js",
]

# Recipe lines matching any of these are commented out by the sanitizer
DANGEROUS_PATTERNS = [
    r"^\s*USER\s+(root|0)(\s|:|$)",
    r"--privileged",
    r"--security=insecure",
    r"--cap-add",
    r"--device",
    r"docker\.sock",
]
REMOVED_MARKER = "# REMOVED FOR SECURITY: "

# Resource limits
DEFAULT_MEMORY_LIMIT = "512m"
DEFAULT_CPU_LIMIT = "0.5"
DEFAULT_RESTART_POLICY = "unless-stopped"

# Timeout values
DEFAULT_STOP_TIMEOUT = 10  # seconds
HEALTH_CHECK_TIMEOUT_MS = 15000
HEALTH_CHECK_INTERVAL_MS = 500
DEFAULT_HEALTH_HOST = "localhost"

# Retention and diagnostics
DEFAULT_IMAGE_RETENTION = 3
DIAGNOSTIC_LOG_LINES = 50
DEFAULT_LOG_TAIL = 100

# Runtime binary
DEFAULT_DOCKER_BINARY = "docker"
STREAM_READER_LIMIT = 1024 * 1024

# Configuration
ENV_PREFIX = "DEPLOY_ENGINE_"
CONFIG_FILE_NAME = "deploy_engine.json"
