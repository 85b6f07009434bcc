"""
================================================================================
Allure Report Utilities
================================================================================

This module provides utilities for enhancing Allure test reports with
screenshots, JSON/text attachments and report processing.

Features:
- Attachment helpers (JSON, text, PNG files)
- Auth/session snapshots with secrets masked
- Report post-processing
- History management
- Summary generation

================================================================================
"""

import json
import shutil
from pathlib import Path
from typing import Dict, Any, Iterable, List, Optional, Union
from dataclasses import dataclass, field
from datetime import datetime
import subprocess

import allure
from loguru import logger


# Keys masked whenever state is attached to the report
SENSITIVE_KEYS = ("password", "access_token", "id_token", "refresh_token", "value")


# ================================================================================
# Attachment Helpers
# ================================================================================

def attach_json(data: Any, name: str = "Data"):
    """
    Attach JSON data to Allure report.
    
    Args:
        data: Data to attach (will be JSON serialized)
        name: Attachment name
    """
    json_str = json.dumps(data, indent=2, default=str)
    allure.attach(
        json_str,
        name=name,
        attachment_type=allure.attachment_type.JSON
    )


def attach_text(text: str, name: str = "Text"):
    """
    Attach text content to Allure report.
    
    Args:
        text: Text to attach
        name: Attachment name
    """
    allure.attach(
        text,
        name=name,
        attachment_type=allure.attachment_type.TEXT
    )


def attach_png(path: Union[str, Path], name: Optional[str] = None) -> bool:
    """
    Attach a PNG file from disk to the Allure report.

    Args:
        path: Screenshot file path
        name: Attachment name (defaults to file stem)

    Returns:
        True if the file existed and was attached
    """
    path = Path(path)
    if not path.exists():
        logger.debug(f"Screenshot not attached, file missing: {path}")
        return False
    allure.attach.file(
        str(path),
        name=name or path.stem,
        attachment_type=allure.attachment_type.PNG
    )
    return True


def mask_sensitive(data: Any, keys: Iterable[str] = SENSITIVE_KEYS) -> Any:
    """
    Return a copy of ``data`` with sensitive values replaced.

    Cookie and localStorage entries carry their secret under ``value``, so
    storage-state dumps are safe to attach after masking.
    """
    keys = tuple(k.lower() for k in keys)
    if isinstance(data, dict):
        return {
            k: "***MASKED***" if str(k).lower() in keys else mask_sensitive(v, keys)
            for k, v in data.items()
        }
    if isinstance(data, list):
        return [mask_sensitive(item, keys) for item in data]
    return data


def attach_session_summary(state: Dict[str, Any], name: str = "Session State"):
    """
    Attach a masked summary of a Playwright storage state.

    Args:
        state: Storage state dict (cookies + origins)
        name: Attachment name
    """
    summary = {
        "cookies": len(state.get("cookies", [])),
        "origins": [o.get("origin") for o in state.get("origins", [])],
        "state": mask_sensitive(state),
    }
    attach_json(summary, name=name)


# ================================================================================
# Report Processing
# ================================================================================

@dataclass
class RunSummary:
    """Summary of one suite execution, built from allure result files."""
    total: int = 0
    passed: int = 0
    failed: int = 0
    broken: int = 0
    skipped: int = 0
    duration_ms: int = 0
    failed_names: List[str] = field(default_factory=list)
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())

    @property
    def pass_rate(self) -> float:
        """Pass rate over executed (non-skipped) tests, in percent."""
        executed = self.total - self.skipped
        if executed <= 0:
            return 0.0
        return (self.passed / executed) * 100


def summarize_results(results_dir: Union[str, Path]) -> RunSummary:
    """
    Build a RunSummary from ``*-result.json`` files.

    Unreadable files are logged and skipped.
    """
    summary = RunSummary()
    for result_file in Path(results_dir).glob("*-result.json"):
        try:
            result = json.loads(result_file.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Failed to parse {result_file}: {e}")
            continue

        summary.total += 1
        status = result.get("status", "unknown")
        if status == "passed":
            summary.passed += 1
        elif status == "failed":
            summary.failed += 1
            summary.failed_names.append(result.get("name", result_file.stem))
        elif status == "broken":
            summary.broken += 1
            summary.failed_names.append(result.get("name", result_file.stem))
        elif status == "skipped":
            summary.skipped += 1
        summary.duration_ms += result.get("stop", 0) - result.get("start", 0)
    return summary


def log_summary(summary: RunSummary) -> None:
    """Log a run summary in the suite's usual banner format."""
    logger.info("=" * 60)
    logger.info("TEST EXECUTION SUMMARY")
    logger.info("=" * 60)
    logger.info(f"Total Tests:    {summary.total}")
    logger.info(f"Passed:         {summary.passed} ✅")
    logger.info(f"Failed:         {summary.failed} ❌")
    logger.info(f"Broken:         {summary.broken} ⚠️")
    logger.info(f"Skipped:        {summary.skipped} ⏭️")
    logger.info(f"Pass Rate:      {summary.pass_rate:.2f}%")
    logger.info(f"Duration:       {summary.duration_ms / 1000:.2f}s")
    for name in summary.failed_names:
        logger.info(f"  ❌ {name}")
    logger.info("=" * 60)


# ================================================================================
# Convenience Functions
# ================================================================================

def generate_allure_report(
    results_dir: Union[str, Path],
    output_dir: Union[str, Path],
    open_report: bool = False
) -> bool:
    """
    Generate an Allure HTML report, carrying history over from the last run.

    Args:
        results_dir: Path to allure-results directory
        output_dir: Report output directory
        open_report: Whether to open report in browser

    Returns:
        True if successful
    """
    results_dir = Path(results_dir)
    output_dir = Path(output_dir)

    history_source = output_dir / "history"
    if history_source.exists():
        history_dest = results_dir / "history"
        if history_dest.exists():
            shutil.rmtree(history_dest)
        shutil.copytree(history_source, history_dest)
        logger.debug("Copied history from previous report")

    cmd = ["allure", "generate", str(results_dir), "-o", str(output_dir), "--clean"]
    try:
        result = subprocess.run(cmd, capture_output=True, text=True)
    except FileNotFoundError:
        logger.warning("Allure CLI not found. Please install Allure to generate reports.")
        return False

    if result.returncode != 0:
        logger.error(f"Report generation failed: {result.stderr}")
        return False

    logger.info(f"📊 Report generated at {output_dir}")
    log_summary(summarize_results(results_dir))

    if open_report:
        subprocess.run(["allure", "open", str(output_dir)])
    return True
