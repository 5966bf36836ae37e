"""
Allure reporting helpers.
"""

from .allure_utils import (
    AllureReportProcessor,
    TestResultSummary,
    allure_step,
    attach_frame_tree,
    attach_json,
    attach_resolution_outcome,
    attach_text,
    format_frame_path,
    generate_allure_report,
)

__all__ = [
    "AllureReportProcessor",
    "TestResultSummary",
    "allure_step",
    "attach_frame_tree",
    "attach_json",
    "attach_resolution_outcome",
    "attach_text",
    "format_frame_path",
    "generate_allure_report",
]
