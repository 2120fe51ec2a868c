"""
Output sinks: PLY point clouds, JSON and HTML reports.
"""

from .export import write_ply, write_registered_ply, read_ply, save_json_report
from .report import render_report, write_report

__all__ = [
    'write_ply',
    'write_registered_ply',
    'read_ply',
    'save_json_report',
    'render_report',
    'write_report'
]
