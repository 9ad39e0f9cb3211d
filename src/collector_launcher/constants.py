"""Release API endpoints and launcher defaults."""

# GitHub API URL structure
GITHUB_API_BASE = "https://api.github.com"
GITHUB_REPOS_PATH = "repos"
RELEASES_PATH = "releases"
LATEST_PATH = "latest"

USER_AGENT = "collector-launcher"
DOWNLOAD_CHUNK_SIZE = 8192

# Readiness polling
READY_TIMEOUT = 10.0
POLL_INTERVAL = 0.5

# Collector
COLLECTOR_EXECUTABLE = "otelcol-contrib"
COLLECTOR_REPO = "open-telemetry/opentelemetry-collector-releases"
COLLECTOR_ASSET_TEMPLATE = "otelcol-contrib_{version}_{platform}_{arch}.{ext}"
COLLECTOR_PORT = 4317
COLLECTOR_CONFIG_FILE = "collector-gcp.yaml"
COLLECTOR_LOG_FILE = "collector-gcp.log"

# Per-project cache layout: <base>/tmp/<hash>/otel/bin
DEFAULT_BASE_DIR = "~/.gemini"
CACHE_SUBDIR = "otel"
BIN_SUBDIR = "bin"

# Environment
PROJECT_ENV = "OTLP_GOOGLE_CLOUD_PROJECT"
HOME_ENV = "COLLECTOR_LAUNCHER_HOME"
PORT_ENV = "COLLECTOR_PORT"
TIMEOUT_ENV = "COLLECTOR_READY_TIMEOUT"
LOG_LEVEL_ENV = "COLLECTOR_LAUNCHER_LOG_LEVEL"
