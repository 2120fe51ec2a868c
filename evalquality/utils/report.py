"""
HTML report of an evaluation.

Rendering is a pure function of an EvaluationResult: the report is built as a
string and written in one step once the evaluation has succeeded.
"""

import base64
import html
import io
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Union
import logging

import matplotlib
matplotlib.use('Agg')  # Non-interactive backend
import matplotlib.pyplot as plt
import numpy as np

from ..core.statistics import SummaryStatistics

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "openMVG Quality evaluation."


def _histogram_png(values: Sequence[float], bins: int, title: str, xlabel: str, dpi: int) -> str:
    """Residual histogram as a base64 encoded PNG."""
    fig, ax = plt.subplots(figsize=(8, 4))
    ax.hist(np.asarray(values, dtype=np.float64), bins=bins, alpha=0.7, color='steelblue', edgecolor='black')
    ax.set_title(title)
    ax.set_xlabel(xlabel)
    ax.set_ylabel('Cameras')
    ax.grid(True, alpha=0.3)
    fig.tight_layout()

    buffer = io.BytesIO()
    fig.savefig(buffer, format='png', dpi=dpi, bbox_inches='tight')
    plt.close(fig)
    return base64.b64encode(buffer.getvalue()).decode('ascii')


def _statistics_table(name: str, statistics: SummaryStatistics, unit: str) -> str:
    rows = [
        ('Count', f"{statistics.count}"),
        ('Min', f"{statistics.minimum:.6g}"),
        ('Max', f"{statistics.maximum:.6g}"),
        ('Mean', f"{statistics.mean:.6g}"),
        ('Median', f"{statistics.median:.6g}"),
        ('RMS', f"{statistics.rms:.6g}"),
    ]
    body = ''.join(f"<tr><td>{label}</td><td>{value}</td></tr>" for label, value in rows)
    return (f"<h3>{html.escape(name)} ({html.escape(unit)})</h3>"
            f"<table><tr><th>Statistic</th><th>Value</th></tr>{body}</table>")


def _matrix_html(matrix: np.ndarray) -> str:
    rows = ''.join(
        '<tr>' + ''.join(f"<td>{value:.6f}</td>" for value in row) + '</tr>'
        for row in np.atleast_2d(matrix)
    )
    return f"<table class=\"matrix\">{rows}</table>"


def render_report(result, config: Optional[Dict[str, Any]] = None) -> str:
    """
    Render an EvaluationResult as a standalone HTML document.

    Args:
        result: Completed EvaluationResult
        config: Configuration with an optional ``report`` section

    Returns:
        HTML document
    """
    config = config if config is not None else {}
    report_config = config.get('report', {})
    title = report_config.get('title', DEFAULT_TITLE)
    bins = int(report_config.get('histogram_bins', 20))
    dpi = int(report_config.get('figure_dpi', 100))

    position_errors = [r.position_error for r in result.records]
    rotation_errors = [r.rotation_error_deg for r in result.records]

    position_png = _histogram_png(position_errors, bins, 'Baseline_Residual', 'Residual (GT unit)', dpi)
    rotation_png = _histogram_png(rotation_errors, bins, 'Angular_Residuals', 'Residual (degree)', dpi)

    per_camera = ''.join(
        f"<tr><td>{html.escape(r.key)}</td><td>{r.position_error:.6g}</td>"
        f"<td>{r.rotation_error_deg:.6g}</td></tr>"
        for r in result.records
    )

    transform = result.transform
    return f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <title>{html.escape(title)}</title>
    <style>
        body {{ font-family: Arial, sans-serif; margin: 20px; }}
        table {{ border-collapse: collapse; margin-bottom: 16px; }}
        td, th {{ border: 1px solid #999; padding: 4px 8px; text-align: right; }}
        th {{ background: #eee; }}
        table.matrix td {{ border: none; }}
    </style>
</head>
<body>
    <h1>{html.escape(title)}</h1>
    <p>Ground truth: {html.escape(str(result.ground_truth_path or ''))}<br>
       Reconstruction: {html.escape(str(result.reconstruction_path or ''))}<br>
       Ground-truth cameras: {result.num_ground_truth_cameras},
       posed views: {result.num_posed_views},
       compared cameras: {len(result.records)}</p>
    <hr>
    <h1>Compare GT camera position and looking direction.</h1>
    <p>Display per camera after a 3D similarity estimation:</p>
    <ul>
        <li>Baseline_Residual -&gt; localization error of camera center to GT (in GT unit),</li>
        <li>Angular_residuals -&gt; direction error as an angular degree error.</li>
    </ul>
    <h2>Similarity transform (estimate to GT)</h2>
    <p>Scale: {transform.scale:.6f}</p>
    <p>Rotation:</p>
    {_matrix_html(transform.rotation)}
    <p>Translation:</p>
    {_matrix_html(transform.translation)}
    <h2>Baseline_Residual</h2>
    <img src="data:image/png;base64,{position_png}" alt="Baseline residual histogram">
    {_statistics_table('Baseline error statistics', result.statistics.position, 'GT unit')}
    <h2>Angular_Residuals</h2>
    <img src="data:image/png;base64,{rotation_png}" alt="Angular residual histogram">
    {_statistics_table('Angular error statistics', result.statistics.rotation, 'degree')}
    <h2>Per camera residuals</h2>
    <table>
        <tr><th>Camera</th><th>Baseline residual</th><th>Angular residual (deg)</th></tr>
        {per_camera}
    </table>
</body>
</html>
"""


def write_report(result, output_path: Union[str, Path], config: Optional[Dict[str, Any]] = None) -> Path:
    """Render the report and write it to ``output_path``."""
    output_path = Path(output_path)
    document = render_report(result, config)
    with open(output_path, 'w', encoding='utf-8') as f:
        f.write(document)
    logger.info(f"HTML report saved to {output_path}")
    return output_path
