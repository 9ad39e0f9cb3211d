"""OpenTelemetry Collector (contrib) exporting to Google Cloud."""

from pathlib import Path

from collector_launcher.binaries.assets import template_naming
from collector_launcher.constants import (
    COLLECTOR_ASSET_TEMPLATE,
    COLLECTOR_EXECUTABLE,
    COLLECTOR_REPO,
)
from collector_launcher.types import BinarySpec

COLLECTOR = BinarySpec(
    executable_name=COLLECTOR_EXECUTABLE,
    repo=COLLECTOR_REPO,
    asset_name=template_naming(COLLECTOR_ASSET_TEMPLATE),
    binary_in_archive=COLLECTOR_EXECUTABLE,
)

CONFIG_TEMPLATE = """\
receivers:
  otlp:
    protocols:
      grpc:
        endpoint: "localhost:{port}"
processors:
  batch:
    timeout: 1s
exporters:
  googlecloud:
    project: "{project_id}"
    metric:
      prefix: "custom.googleapis.com/gemini_cli"
    log:
      default_log_name: "gemini_cli"
  debug:
    verbosity: detailed
    sampling_initial: 2
    sampling_thereafter: 500
service:
  telemetry:
    logs:
      level: "debug"
    metrics:
      level: "none"
  pipelines:
    traces:
      receivers: [otlp]
      processors: [batch]
      exporters: [googlecloud, debug]
    metrics:
      receivers: [otlp]
      processors: [batch]
      exporters: [googlecloud, debug]
    logs:
      receivers: [otlp]
      processors: [batch]
      exporters: [googlecloud, debug]
"""

SETTINGS_HINT = """\
To enable telemetry, include these settings in your settings_json:
{
  "telemetry": {
    "enabled": true,
    "target": "gcp"
  },
  "sandbox": false
}"""


def render_config(project_id: str, port: int) -> str:
    return CONFIG_TEMPLATE.format(project_id=project_id, port=port)


def write_config(path: Path, project_id: str, port: int) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_config(project_id, port), encoding="utf-8")
    return path


def collector_args(config_path: Path) -> list[str]:
    return ["--config", str(config_path)]


def console_links(project_id: str) -> dict[str, str]:
    """Where exported telemetry shows up in the Cloud console."""
    log_query = f"logName%3D%22projects%2F{project_id}%2Flogs%2Fgemini_cli%22"
    return {
        "logs": f"https://console.cloud.google.com/logs/query;query={log_query}?project={project_id}",
        "metrics": f"https://console.cloud.google.com/monitoring/metrics-explorer?project={project_id}",
        "traces": f"https://console.cloud.google.com/traces/list?project={project_id}",
    }
