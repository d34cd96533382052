"""
HTML summary of tuning results: the top configurations of each search group.
"""
import html
import os
from datetime import datetime

import pandas as pd
from loguru import logger

from astrosena.output_exporter import RATE_COLUMNS, tuning_frame
from astrosena.tuning import TuningReport

_STYLE = """
body { font-family: sans-serif; margin: 24px; background: #f6f7f9; color: #222; }
.card { background: #fff; border-radius: 8px; padding: 16px; margin-bottom: 20px; }
table { border-collapse: collapse; width: 100%; font-size: 13px; }
th, td { border-bottom: 1px solid #ddd; padding: 6px 8px; text-align: right; }
th:first-child, td:first-child { text-align: left; }
"""

_HEADERS = {
    "name": "Name",
    "windowSize": "Window",
    "halfLife": "HalfLife",
    "explore": "Explore",
    "hotBoost": "Hot",
    "coldBoost": "Cold",
    "coldWindow": "ColdWindow",
    "avgBestHits": "AvgBest",
    "avgAvgHits": "AvgAvg",
    "pctAtLeast2": "Pct≥2",
    "pctAtLeast3": "Pct≥3",
}

_TITLES = {"grid": "Grid search", "candidates": "Candidates", "random": "Random search"}


def _render_group(title: str, df: pd.DataFrame) -> str:
    if df.empty:
        body = "<p>No results.</p>"
    else:
        table = df.drop(columns=["group"]).rename(columns=_HEADERS)
        formatters = {_HEADERS[c]: "{:.4f}".format for c in RATE_COLUMNS}
        body = table.to_html(index=False, border=0, formatters=formatters)
    return f'<div class="card">\n<h2>{html.escape(title)}</h2>\n{body}\n</div>'


def render_tuning_report(report: TuningReport, top_n: int = 10) -> str:
    """Returns a standalone HTML page with the top `top_n` rows of each group."""
    df = tuning_frame(report)
    sections = []
    for group, title in _TITLES.items():
        sections.append(_render_group(title, df[df["group"] == group].head(top_n)))

    summary = ", ".join(f"{k}={v}" for k, v in report.summary.items())
    generated = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    return (
        "<!DOCTYPE html>\n<html>\n<head>\n<meta charset=\"utf-8\">\n"
        f"<title>Tuning report</title>\n<style>{_STYLE}</style>\n</head>\n<body>\n"
        f"<h1>Tuning report</h1>\n<p>{html.escape(summary)}</p>\n<p>Generated {generated}</p>\n"
        + "\n".join(sections)
        + "\n</body>\n</html>\n"
    )


def write_tuning_report(report: TuningReport, path: str, top_n: int = 10) -> str:
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(render_tuning_report(report, top_n=top_n))
    logger.info(f"Wrote {path}")
    return path
