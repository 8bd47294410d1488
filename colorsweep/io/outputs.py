"""Output helpers for persisting the comparison report."""

from __future__ import annotations

from html import escape
from pathlib import Path

from .models import BatchReport, ConfigReport, ImageReport

REPORT_HEADING = (
    "Colors listed in order of dominance: hex color followed by number of entries"
)
_SWATCH_STYLE = "background-color: {color};width:200px;height:50px;text-align:center;"


def render_html(report: BatchReport) -> str:
    """Return the HTML comparison table for *report*."""
    parts = [
        "<html><body>",
        f"<h1>{escape(REPORT_HEADING)}</h1>",
        '<table border="1">',
    ]
    for image in report.images:
        parts.append(_render_image(image))
    parts.append("</table>")
    if report.failures:
        parts.append("<h2>Skipped images</h2><ul>")
        for name, reason in report.failures.items():
            parts.append(f"<li>{escape(name)}: {escape(reason)}</li>")
        parts.append("</ul>")
    parts.append("</body></html>")
    return "".join(parts)


def write_html(path: Path, report: BatchReport) -> Path:
    """Write the HTML rendering of *report* to *path* and return the path."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_html(report), encoding="utf-8")
    return path


def _render_image(image: ImageReport) -> str:
    parts = [
        f'<tr><td><img src="{escape(image.name, quote=True)}" width="200" border="1"></td><td>'
    ]
    prefix = f"K={image.cluster_count}, "
    for entry in image.entries:
        parts.append(f"<h3>{escape(prefix + entry.label)}</h3>")
        parts.append(_render_entry(entry))
    parts.append("</td></tr>")
    return "".join(parts)


def _render_entry(entry: ConfigReport) -> str:
    raw = []
    matched = []
    for match in entry.matches:
        cluster_hex = match.cluster.hex
        raw.append(
            f'<td style="{_SWATCH_STYLE.format(color=cluster_hex)}">'
            f"{cluster_hex} {match.cluster.count}</td>"
        )
        label = escape(match.entry.label)
        matched.append(
            f'<td style="{_SWATCH_STYLE.format(color=label)}">'
            f"{label} {match.distance:.2f}</td>"
        )
    return (
        "<table><tr>" + "".join(raw) + "</tr></table>"
        "<table><tr>" + "".join(matched) + "</tr></table>"
    )
