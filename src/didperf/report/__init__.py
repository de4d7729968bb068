from __future__ import annotations

from didperf.report.summary import (
    SummaryReport,
    build_summary,
    render_json,
    render_text,
    write_summary,
)

__all__ = ["SummaryReport", "build_summary", "render_json", "render_text", "write_summary"]
