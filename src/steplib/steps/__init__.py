"""Pipeline step procedures, one per pipeline stage."""

from .analysis import analysis_environment, run_static_analysis
from .build import compile_project, run_tests
from .deploy import deploy_to_cluster
from .image import build_image, push_image
from .report import render_step_table, render_summary_line
from .scm import checkout_repo

__all__ = [
    "analysis_environment",
    "build_image",
    "checkout_repo",
    "compile_project",
    "deploy_to_cluster",
    "push_image",
    "render_step_table",
    "render_summary_line",
    "run_static_analysis",
    "run_tests",
]
