"""
================================================================================
Allure Report Utilities
================================================================================

Attachments and report processing for element resolution diagnostics.

Features:
- Resolution outcome and frame tree attachments
- Sync/async step decorator
- Result parsing and summary generation
- HTML report generation with history

================================================================================
"""

import asyncio
import json
import shutil
import subprocess
from dataclasses import dataclass, field
from datetime import datetime
from functools import wraps
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import allure
from loguru import logger

from boundary_tools.common import safe_json_serialize


# ================================================================================
# Attachment Helpers
# ================================================================================

def attach_json(data: Any, name: str = "Data"):
    """
    Attach JSON data to Allure report.

    Args:
        data: Data to attach (objects with to_dict() are serialized through it)
        name: Attachment name
    """
    json_str = json.dumps(data, indent=2, default=safe_json_serialize)
    allure.attach(
        json_str,
        name=name,
        attachment_type=allure.attachment_type.JSON
    )


def attach_text(text: str, name: str = "Text"):
    """Attach text content to Allure report."""
    allure.attach(
        text,
        name=name,
        attachment_type=allure.attachment_type.TEXT
    )


def format_frame_path(frame_path: Iterable[int]) -> str:
    """Human-readable frame path: [] -> "main document", [1, 0] -> "frame 1 -> 0"."""
    path = list(frame_path)
    if not path:
        return "main document"
    return "frame " + " -> ".join(str(index) for index in path)


def attach_resolution_outcome(selector: Any, outcome: Any, name: Optional[str] = None):
    """
    Attach how a selector was resolved.

    Args:
        selector: The selector that was resolved
        outcome: ResolutionOutcome, or None when every strategy missed
        name: Attachment name (defaults to "🔎 Resolution: <selector>")
    """
    if outcome is None:
        data = {"selector": str(selector), "resolved": False}
    else:
        data = {
            "selector": str(selector),
            "resolved": True,
            "strategy": outcome.strategy,
            "frame_path": list(outcome.frame_path),
            "location": format_frame_path(outcome.frame_path),
        }
    attach_json(data, name=name or f"🔎 Resolution: {selector}")


def attach_frame_tree(frames: List[Any], name: str = "🪟 Frame Tree"):
    """
    Attach the frame tree discovered by FrameManager.get_all_frames().

    Args:
        frames: FrameInfo entries in depth-first order
        name: Attachment name
    """
    lines = []
    for info in frames:
        indent = "  " * (len(info.path) - 1)
        lines.append(f"{indent}- {format_frame_path(info.path)}")
    attach_text("\n".join(lines) if lines else "(no frames)", name=name)


# ================================================================================
# Report Processing
# ================================================================================

@dataclass
class TestResultSummary:
    """Summary of test execution results."""
    __test__ = False

    total: int = 0
    passed: int = 0
    failed: int = 0
    broken: int = 0
    skipped: int = 0
    unknown: int = 0
    duration_ms: int = 0
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())

    @property
    def pass_rate(self) -> float:
        """Calculate pass rate percentage."""
        if self.total == 0:
            return 0.0
        return (self.passed / self.total) * 100

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "total": self.total,
            "passed": self.passed,
            "failed": self.failed,
            "broken": self.broken,
            "skipped": self.skipped,
            "unknown": self.unknown,
            "pass_rate": f"{self.pass_rate:.2f}%",
            "duration_ms": self.duration_ms,
            "timestamp": self.timestamp,
        }

    def format(self) -> str:
        """Console summary block."""
        return "\n".join([
            "=" * 60,
            "TEST EXECUTION SUMMARY",
            "=" * 60,
            f"Total Tests:    {self.total}",
            f"Passed:         {self.passed} ✅",
            f"Failed:         {self.failed} ❌",
            f"Broken:         {self.broken} ⚠️",
            f"Skipped:        {self.skipped} ⏭️",
            f"Pass Rate:      {self.pass_rate:.2f}%",
            f"Duration:       {self.duration_ms / 1000:.2f}s",
            "=" * 60,
        ])


class AllureReportProcessor:
    """
    Processes Allure results and generates reports.

    Usage:
        processor = AllureReportProcessor(Path("reports/allure-results"))
        summary = processor.generate_summary()
        processor.generate_report()
    """

    def __init__(
        self,
        results_dir: Path,
        report_dir: Optional[Path] = None,
        history_dir: Optional[Path] = None
    ):
        """
        Initialize processor.

        Args:
            results_dir: Allure results directory
            report_dir: Output report directory
            history_dir: History data directory
        """
        self.results_dir = Path(results_dir)
        self.report_dir = Path(report_dir or self.results_dir.parent / "allure-report")
        self.history_dir = Path(history_dir or self.results_dir.parent / "allure-history")

    def parse_results(self) -> List[Dict[str, Any]]:
        """Parse every *-result.json file in the results directory."""
        results = []

        for result_file in sorted(self.results_dir.glob("*-result.json")):
            try:
                with open(result_file, encoding="utf-8") as f:
                    results.append(json.load(f))
            except (OSError, json.JSONDecodeError) as e:
                logger.warning(f"⚠️ Failed to parse {result_file}: {e}")

        return results

    def generate_summary(self) -> TestResultSummary:
        """Count results by status and sum their durations."""
        results = self.parse_results()
        summary = TestResultSummary(total=len(results))

        for result in results:
            status = result.get("status", "unknown")
            if status in ("passed", "failed", "broken", "skipped"):
                setattr(summary, status, getattr(summary, status) + 1)
            else:
                summary.unknown += 1

            summary.duration_ms += result.get("stop", 0) - result.get("start", 0)

        return summary

    def copy_history(self):
        """Copy history from previous report to results."""
        history_source = self.report_dir / "history"
        history_dest = self.results_dir / "history"

        if history_source.exists():
            if history_dest.exists():
                shutil.rmtree(history_dest)
            shutil.copytree(history_source, history_dest)
            logger.info("Copied history from previous report")

    def generate_report(self) -> bool:
        """
        Generate Allure HTML report with the allure command line.

        Returns:
            True if successful
        """
        self.copy_history()
        cmd = [
            "allure", "generate",
            str(self.results_dir),
            "-o", str(self.report_dir),
            "--clean"
        ]

        try:
            result = subprocess.run(cmd, capture_output=True, text=True)
        except FileNotFoundError:
            logger.error("❌ Allure command not found. Install allure-commandline.")
            return False

        if result.returncode != 0:
            logger.error(f"❌ Report generation failed: {result.stderr}")
            return False

        logger.info(f"✅ Report generated at {self.report_dir}")
        return True

    def save_history(self):
        """Keep a timestamped copy of the report history plus a 'current' copy."""
        history_source = self.report_dir / "history"
        if not history_source.exists():
            return

        self.history_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        shutil.copytree(history_source, self.history_dir / timestamp)

        current_dir = self.history_dir / "current"
        if current_dir.exists():
            shutil.rmtree(current_dir)
        shutil.copytree(history_source, current_dir)

        logger.info(f"History saved to {self.history_dir}")

    def log_summary(self):
        """Log the summary block."""
        logger.info("\n" + self.generate_summary().format())


# ================================================================================
# Decorators
# ================================================================================

def allure_step(step_name: str):
    """
    Decorator to wrap a function or coroutine as an Allure step.

    Args:
        step_name: Step name for report
    """
    def decorator(func):
        if asyncio.iscoroutinefunction(func):
            @wraps(func)
            async def async_wrapper(*args, **kwargs):
                with allure.step(step_name):
                    return await func(*args, **kwargs)
            return async_wrapper

        @wraps(func)
        def sync_wrapper(*args, **kwargs):
            with allure.step(step_name):
                return func(*args, **kwargs)
        return sync_wrapper

    return decorator


# ================================================================================
# Convenience Functions
# ================================================================================

def generate_allure_report(
    results_dir: str,
    output_dir: Optional[str] = None,
    open_report: bool = False
) -> bool:
    """
    Generate Allure report from results.

    Args:
        results_dir: Path to allure-results directory
        output_dir: Optional output directory
        open_report: Whether to open report in browser

    Returns:
        True if successful
    """
    processor = AllureReportProcessor(
        Path(results_dir),
        Path(output_dir) if output_dir else None
    )

    success = processor.generate_report()

    if success:
        processor.log_summary()
        processor.save_history()

        if open_report:
            subprocess.run(["allure", "open", str(processor.report_dir)])

    return success


__all__ = [
    "attach_json",
    "attach_text",
    "attach_resolution_outcome",
    "attach_frame_tree",
    "format_frame_path",
    "TestResultSummary",
    "AllureReportProcessor",
    "allure_step",
    "generate_allure_report",
]
