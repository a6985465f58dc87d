"""
Report writers.

Renders a DiagnosticData snapshot as a standalone HTML page (jinja2, with
autoescaping) and/or as JSON in the canonical camelCase schema.

A failure to write one format is fatal to that format only. In combined
mode the HTML report is written first and a failure there aborts the JSON
write.
"""

import json
import logging
from pathlib import Path
from typing import List, Optional, Union

from jinja2 import Environment, select_autoescape

from .models import GIB, DiagnosticData, to_iso

logger = logging.getLogger(__name__)

FORMAT_HTML = "html"
FORMAT_JSON = "json"
FORMAT_BOTH = "both"
FORMATS = (FORMAT_HTML, FORMAT_JSON, FORMAT_BOTH)

HTML_FILENAME = "report.html"
JSON_FILENAME = "report.json"

MAX_EVENT_ROWS = 100
MAX_MESSAGE_LENGTH = 100


class ReportError(Exception):
    """A report could not be produced."""

    def __init__(self, message: str, path: Optional[Path] = None):
        super().__init__(message)
        self.path = path


class WriteError(ReportError):
    """The output file could not be created or written."""


class SerializationError(ReportError):
    """The snapshot could not be rendered or serialized."""


REPORT_HTML = '''<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>hostscope report - {{ hw.computerName }}</title>
    <style>
        :root {
            --bg: #f5f6fa;
            --card: #ffffff;
            --accent: #1e6fd9;
            --text: #222;
            --muted: #777;
            --grade: {{ perf.healthColor }};
        }
        * { box-sizing: border-box; }
        body {
            font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
            background: var(--bg);
            color: var(--text);
            margin: 0;
            padding: 24px;
        }
        h1 { color: var(--accent); margin: 0 0 4px 0; }
        h2 { border-bottom: 2px solid var(--accent); padding-bottom: 4px; margin-top: 32px; }
        .subtitle { color: var(--muted); }
        .grid {
            display: grid;
            grid-template-columns: repeat(auto-fit, minmax(200px, 1fr));
            gap: 16px;
        }
        .card {
            background: var(--card);
            border-radius: 8px;
            padding: 16px;
            box-shadow: 0 1px 3px rgba(0, 0, 0, 0.1);
        }
        .card h3 { margin: 0 0 8px 0; font-size: 0.9em; color: var(--muted); text-transform: uppercase; }
        .score { font-size: 2em; font-weight: bold; }
        .grade { color: var(--grade); }
        .bar { background: #e0e0e0; border-radius: 4px; height: 8px; overflow: hidden; }
        .bar > div { background: var(--accent); height: 100%; }
        table { width: 100%; border-collapse: collapse; background: var(--card); }
        th, td { text-align: left; padding: 6px 8px; border-bottom: 1px solid #eee; font-size: 0.9em; }
        th { background: #fafafa; }
        .sev-Error { color: #F44336; font-weight: bold; }
        .sev-Warning { color: #FF9800; }
        .muted { color: var(--muted); }
    </style>
</head>
<body>
    <header>
        <h1>hostscope diagnostic report</h1>
        <div class="subtitle">Collected {{ collected_at }}</div>
    </header>

    <h2>System overview</h2>
    <div class="grid">
        <div class="card"><h3>Host</h3>{{ hw.computerName }}</div>
        <div class="card"><h3>Operating system</h3>{{ hw.osVersion }}</div>
        <div class="card"><h3>CPU</h3>{{ hw.cpuBrand }} ({{ hw.cpuCores }} cores)</div>
        <div class="card"><h3>Memory</h3>{{ "%.2f"|format(hw.totalMemory / gib) }} GB</div>
    </div>

    <h2>Health</h2>
    <div class="grid">
        <div class="card">
            <h3>Overall</h3>
            <div class="score grade">{{ "%.0f"|format(perf.systemHealthScore) }}</div>
            <div class="grade">{{ perf.healthGrade }}</div>
        </div>
        {% for label, key in score_cards %}
        <div class="card">
            <h3>{{ label }}</h3>
            <div class="score">{{ "%.0f"|format(perf[key]) }}</div>
            <div class="bar"><div style="width: {{ "%.0f"|format(perf[key]) }}%"></div></div>
        </div>
        {% endfor %}
        <div class="card">
            <h3>Critical issues</h3>
            <div class="score">{{ perf.criticalIssuesCount }}</div>
            <div class="muted">{{ perf.warningsCount }} warning(s)</div>
        </div>
    </div>

    <h2>Recommendations</h2>
    {% if perf.recommendations %}
    <ul>
        {% for item in perf.recommendations %}<li>{{ item }}</li>
        {% endfor %}
    </ul>
    {% else %}
    <p class="muted">No recommendations.</p>
    {% endif %}

    <h2>Disks</h2>
    <div class="grid">
        {% for disk in hw.disks %}
        <div class="card">
            <h3>{{ disk.name }} ({{ disk.fileSystem }})</h3>
            {% set used = 100 - (disk.availableSpace * 100 / disk.totalSpace if disk.totalSpace else 0) %}
            <div class="bar"><div style="width: {{ "%.0f"|format(used) }}%"></div></div>
            <small>Free {{ "%.2f"|format(disk.availableSpace / gib) }} GB of {{ "%.2f"|format(disk.totalSpace / gib) }} GB</small>
        </div>
        {% else %}
        <p class="muted">No disks detected.</p>
        {% endfor %}
    </div>

    <h2>Graphics</h2>
    <table>
        <thead><tr><th>Name</th><th>Driver</th><th>Memory</th></tr></thead>
        <tbody>
        {% for gpu in hw.gpus %}
            <tr>
                <td>{{ gpu.name }}</td>
                <td>{{ gpu.driverVersion or "" }}</td>
                <td>{% if gpu.videoMemory %}{{ "%.2f"|format(gpu.videoMemory / gib) }} GB{% endif %}</td>
            </tr>
        {% endfor %}
        </tbody>
    </table>

    <h2>Network adapters</h2>
    <table>
        <thead><tr><th>Name</th><th>MAC</th><th>Addresses</th></tr></thead>
        <tbody>
        {% for nic in hw.networkAdapters %}
            <tr><td>{{ nic.name }}</td><td>{{ nic.macAddress }}</td><td>{{ nic.ipAddresses|join(", ") }}</td></tr>
        {% endfor %}
        </tbody>
    </table>

    <h2>USB controllers ({{ hw.usbControllers|length }})</h2>
    <table>
        <thead><tr><th>Name</th><th>Manufacturer</th><th>Protocol</th><th>Device ID</th></tr></thead>
        <tbody>
        {% for ctl in hw.usbControllers %}
            <tr><td>{{ ctl.name or "" }}</td><td>{{ ctl.manufacturer or "" }}</td><td>{{ ctl.protocolVersion or "" }}</td><td>{{ ctl.deviceId }}</td></tr>
        {% endfor %}
        </tbody>
    </table>

    <h2>USB devices ({{ hw.usbDevices|length }})</h2>
    <table>
        <thead><tr><th>Name</th><th>Description</th><th>Manufacturer</th><th>Status</th></tr></thead>
        <tbody>
        {% for dev in hw.usbDevices %}
            <tr><td>{{ dev.name or "" }}</td><td>{{ dev.description or "" }}</td><td>{{ dev.manufacturer or "" }}</td><td>{{ dev.status or "" }}</td></tr>
        {% endfor %}
        </tbody>
    </table>

    <h2>Reliability records ({{ reliability|length }})</h2>
    <table>
        <thead><tr><th>Time</th><th>Source</th><th>Type</th><th>Message</th></tr></thead>
        <tbody>
        {% for rec in reliability %}
            <tr><td>{{ rec.timestamp }}</td><td>{{ rec.sourceName }}</td><td>{{ rec.eventType }}</td><td>{{ rec.message|truncate_message }}</td></tr>
        {% endfor %}
        </tbody>
    </table>

    <h2>Recent errors and warnings ({{ events|length }})</h2>
    {% if events|length > max_events %}<p class="muted">Showing the first {{ max_events }}.</p>{% endif %}
    <table>
        <thead><tr><th>Time</th><th>Log</th><th>Source</th><th>Type</th><th>ID</th><th>Message</th></tr></thead>
        <tbody>
        {% for ev in events[:max_events] %}
            <tr>
                <td>{{ ev.timeGenerated }}</td>
                <td>{{ ev.logFile }}</td>
                <td>{{ ev.sourceName }}</td>
                <td class="sev-{{ ev.eventType }}">{{ ev.eventType }}</td>
                <td>{{ ev.eventId }}</td>
                <td>{{ ev.message|truncate_message }}</td>
            </tr>
        {% endfor %}
        </tbody>
    </table>
</body>
</html>
'''

SCORE_CARDS = (
    ("Stability", "stabilityScore"),
    ("Performance", "performanceScore"),
    ("Memory", "memoryUsageScore"),
    ("Disk", "diskHealthScore"),
)


def truncate_message(text: Optional[str], limit: int = MAX_MESSAGE_LENGTH) -> str:
    text = text or ""
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


def _environment() -> Environment:
    env = Environment(autoescape=select_autoescape(default=True, default_for_string=True))
    env.filters['truncate_message'] = truncate_message
    return env


def render_html(data: DiagnosticData) -> str:
    """Render the snapshot as a standalone HTML document."""
    payload = data.to_dict()
    try:
        template = _environment().from_string(REPORT_HTML)
        return template.render(
            hw=payload["hardware"],
            perf=payload["performance"],
            reliability=payload["reliability"],
            events=payload["events"],
            collected_at=to_iso(data.collected_at),
            score_cards=SCORE_CARDS,
            max_events=MAX_EVENT_ROWS,
            gib=GIB,
        )
    except Exception as e:
        raise SerializationError(f"Failed to render HTML report: {e}") from e


def render_json(data: DiagnosticData) -> str:
    try:
        return json.dumps(data.to_dict(), indent=2, ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Failed to serialize report: {e}") from e


def _write(path: Path, content: str) -> Path:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding='utf-8')
    except OSError as e:
        raise WriteError(f"Cannot write {path}: {e}", path=path) from e
    logger.info(f"Report written: {path}")
    return path


def _render_to(render, data: DiagnosticData, path: Union[str, Path]) -> Path:
    path = Path(path)
    try:
        content = render(data)
    except SerializationError as e:
        e.path = path
        raise
    return _write(path, content)


def write_html(data: DiagnosticData, path: Union[str, Path]) -> Path:
    return _render_to(render_html, data, path)


def write_json(data: DiagnosticData, path: Union[str, Path]) -> Path:
    return _render_to(render_json, data, path)


def write_reports(data: DiagnosticData, fmt: str, output_dir: Union[str, Path]) -> List[Path]:
    """
    Write the requested report format(s) into ``output_dir``.

    Args:
        data: Snapshot to write
        fmt: One of "html", "json", "both"
        output_dir: Target directory (created if missing)

    Returns:
        Paths written, in write order

    Raises:
        ValueError: Unknown format
        ReportError: A format could not be written; with "both", nothing
            after the failing format is attempted
    """
    fmt = fmt.lower()
    if fmt not in FORMATS:
        raise ValueError(f"Unknown report format: {fmt} (expected one of {', '.join(FORMATS)})")

    directory = Path(output_dir)
    written = []
    if fmt in (FORMAT_HTML, FORMAT_BOTH):
        written.append(write_html(data, directory / HTML_FILENAME))
    if fmt in (FORMAT_JSON, FORMAT_BOTH):
        written.append(write_json(data, directory / JSON_FILENAME))
    return written
