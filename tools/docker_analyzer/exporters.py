"""JSON and HTML export of analysis reports."""

import json
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from jinja2 import Environment

from shared.logger import get_logger

from .models import Issue, Report

logger = get_logger(__name__)

EXPORT_FORMATS = ("json", "html")

HTML_TEMPLATE = r"""<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8"/>
  <title>Docker Analysis Report - {{ label }}</title>
  <style>
    body { font-family: -apple-system, "Segoe UI", Helvetica, Arial, sans-serif; margin: 2em; color: #1e293b; background: #f8fafc; }
    h1 { margin-bottom: 0.2em; }
    .meta { color: #64748b; margin-bottom: 1.5em; }
    .metrics { display: flex; flex-wrap: wrap; gap: 1em; margin-bottom: 2em; }
    .metric { background: #fff; border: 1px solid #e2e8f0; border-radius: 8px; padding: 1em 1.5em; min-width: 10em; }
    .metric .value { font-size: 1.6em; font-weight: 600; }
    .metric .label { color: #64748b; font-size: 0.9em; }
    .issue { background: #fff; border-left: 4px solid #94a3b8; border-radius: 4px; padding: 0.8em 1em; margin-bottom: 0.8em; }
    .issue.high { border-left-color: #dc2626; }
    .issue.medium { border-left-color: #d97706; }
    .issue.low { border-left-color: #2563eb; }
    .severity { text-transform: uppercase; font-size: 0.8em; font-weight: 600; }
    .impact { color: #16a34a; }
  </style>
</head>
<body>
  <header>
    <h1>Docker Analysis Report</h1>
    <div class="meta">
      <div>{{ label_kind }}: <strong>{{ label }}</strong></div>
      <div>Analyzed: {{ report.analysis_date }}</div>
    </div>
  </header>

  <section class="metrics">
    <div class="metric"><div class="value">{{ report.size_reduction }}</div><div class="label">Size reduction</div></div>
    <div class="metric"><div class="value">{{ report.original_size }}</div><div class="label">Original size</div></div>
    <div class="metric"><div class="value">{{ report.optimized_size }}</div><div class="label">Optimized size</div></div>
    <div class="metric"><div class="value">{{ report.security_score }}/10</div><div class="label">Security score</div></div>
    <div class="metric"><div class="value">{{ report.layers }} &rarr; {{ report.optimized_layers }}</div><div class="label">Layers (current &rarr; optimized)</div></div>
  </section>

  <section class="issues">
    <h2>Issues ({{ report.issues | length }})</h2>
    {% for issue in report.issues %}
    <div class="issue {{ issue.severity.value }}">
      <div><strong>{{ issue.type }}</strong> <span class="severity">{{ issue.severity.value }}</span>{% if issue.line_number %} &middot; line {{ issue.line_number }}{% endif %}</div>
      <p>{{ issue.description }}</p>
      <p><em>Suggestion:</em> {{ issue.suggestion }}</p>
      <p class="impact"><em>Impact:</em> {{ issue.impact }}</p>
    </div>
    {% else %}
    <p>No issues found.</p>
    {% endfor %}
  </section>

  <section class="optimizations">
    <h2>Optimizations</h2>
    <ul>
    {% for suggestion in report.optimizations %}
      <li>{{ suggestion }}</li>
    {% endfor %}
    </ul>
  </section>
</body>
</html>
"""

_environment = Environment(autoescape=True, trim_blocks=True, lstrip_blocks=True)
_template = _environment.from_string(HTML_TEMPLATE)


def issue_to_dict(issue: Issue) -> Dict[str, Any]:
    """Serialize an issue, omitting lineNumber when absent."""
    data: Dict[str, Any] = {
        "severity": issue.severity.value,
        "type": issue.type,
        "description": issue.description,
        "suggestion": issue.suggestion,
        "impact": issue.impact,
    }
    if issue.line_number is not None:
        data["lineNumber"] = issue.line_number
    return data


def report_to_dict(report: Report) -> Dict[str, Any]:
    """
    Serialize a report using its export field names.

    Keys come out in a fixed order so exports diff cleanly.
    """
    data: Dict[str, Any] = {}
    if report.file_name is not None:
        data["fileName"] = report.file_name
    else:
        data["imageName"] = report.image_name

    data.update(
        {
            "analysisDate": report.analysis_date,
            "originalSize": report.original_size,
            "optimizedSize": report.optimized_size,
            "sizeReduction": report.size_reduction,
            "securityScore": report.security_score,
            "layers": report.layers,
            "optimizedLayers": report.optimized_layers,
            "issues": [issue_to_dict(issue) for issue in report.issues],
            "optimizations": list(report.optimizations),
            "hasIssues": report.has_issues,
        }
    )
    return data


def to_json(report: Report, indent: Optional[int] = 2) -> str:
    """Render a report as JSON text."""
    return json.dumps(report_to_dict(report), indent=indent, ensure_ascii=False)


def to_html(report: Report) -> str:
    """Render a report as a standalone HTML page with inline styles only."""
    return _template.render(
        report=report,
        label=report.source_label,
        label_kind="File" if report.file_name is not None else "Image",
    )


def _slug(label: str) -> str:
    slug = re.sub(r"[^A-Za-z0-9._-]+", "-", label).strip("-.")
    return slug or "report"


def export_filename(report: Report, fmt: str, now: Optional[datetime] = None) -> str:
    """
    Build a collision-resistant export file name.

    Example: docker-analysis-Dockerfile-1700000000000.json
    """
    if fmt not in EXPORT_FORMATS:
        raise ValueError(f"Unsupported export format: {fmt}")

    now = now or datetime.now(timezone.utc)
    millis = int(now.timestamp() * 1000)
    return f"docker-analysis-{_slug(report.source_label)}-{millis}.{fmt}"


def render(report: Report, fmt: str) -> str:
    """Render a report in the given export format."""
    if fmt == "json":
        return to_json(report)
    if fmt == "html":
        return to_html(report)
    raise ValueError(f"Unsupported export format: {fmt}")


def export_report(
    report: Report, fmt: str, output_dir: Path, now: Optional[datetime] = None
) -> Path:
    """
    Write a report export to a directory.

    Args:
        report: Report to export
        fmt: "json" or "html"
        output_dir: Target directory (created if missing)
        now: Export time used in the file name

    Returns:
        Path of the written file
    """
    content = render(report, fmt)

    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / export_filename(report, fmt, now)
    path.write_text(content, encoding="utf-8")

    logger.info(f"Exported {fmt.upper()} report to {path}")
    return path
