#!/usr/bin/env python3
# ================================================================================
# LiveShare Suite Runner
# ================================================================================
#
# Single entry point for local runs and CI jobs. Selects the unit and/or
# browser suites, prepares the child environment (MODE, HEADLESS, RUN_E2E,
# FORCE_AUTH), runs pytest and renders the Allure report afterwards.
#
# Usage:
#   python run_tests.py --suite unit
#   python run_tests.py --suite ui --tags P0 smoke --mode staging
#   python run_tests.py --suite all --parallel 4 --force-auth
#
# The exit code is pytest's, so pipelines can gate on it directly.
#
# ================================================================================

import argparse
import os
import subprocess
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from loguru import logger

from liveshare_tools.report_tools.allure_utils import generate_allure_report


ROOT_DIR = Path(__file__).parent
REPORTS_DIR = ROOT_DIR / "reports"
ALLURE_RESULTS = REPORTS_DIR / "allure-results"
ALLURE_REPORT = REPORTS_DIR / "allure-report"

SUITE_PATHS = {
    "unit": ["liveshare_e2e/unit"],
    "ui": ["liveshare_e2e/ui_testing/tests"],
    "all": ["liveshare_e2e/unit", "liveshare_e2e/ui_testing/tests"],
}

BROWSERS = ("chromium", "firefox", "webkit")
MODES = ("dev", "staging", "production")


@dataclass
class RunOptions:
    """What to run and how; built from the command line."""

    suite: str = "all"
    tags: List[str] = field(default_factory=list)
    workers: int = 1
    browser: str = "chromium"
    headless: bool = True
    mode: str = ""
    force_auth: bool = False
    allure: bool = True
    verbose: bool = False

    @property
    def uses_browser(self) -> bool:
        return self.suite in ("ui", "all")


def build_environment(options: RunOptions, base: Optional[Dict[str, str]] = None) -> Dict[str, str]:
    """
    Environment handed to the pytest child.

    Browser settings are only exported when a browser suite is selected so a
    unit run never flips RUN_E2E on.
    """
    env = dict(os.environ if base is None else base)
    if options.mode:
        env["MODE"] = options.mode
    if options.uses_browser:
        env["RUN_E2E"] = "true"
        env["BROWSER__TYPE"] = options.browser
        env["HEADLESS"] = str(options.headless).lower()
        if options.force_auth:
            env["FORCE_AUTH"] = "true"
    return env


def build_command(options: RunOptions, results_dir: Path = ALLURE_RESULTS) -> List[str]:
    cmd = [sys.executable, "-m", "pytest", *SUITE_PATHS[options.suite]]
    if options.tags:
        cmd += ["-m", " or ".join(options.tags)]
    if options.workers > 1:
        # pytest-xdist
        cmd += ["-n", str(options.workers)]
    if options.allure:
        cmd += ["--alluredir", str(results_dir)]
    cmd.append("-v" if options.verbose else "-q")
    return cmd


def _log_banner(options: RunOptions, env: Dict[str, str]) -> None:
    logger.info("=" * 60)
    logger.info(f"🚀 LiveShare run: suite={options.suite} mode={env.get('MODE', 'dev')}")
    logger.info(f"   tags={options.tags or 'all'} workers={options.workers}")
    if options.uses_browser:
        logger.info(
            f"   browser={options.browser} headless={options.headless} "
            f"force_auth={options.force_auth}"
        )
    logger.info("=" * 60)


def run(options: RunOptions) -> int:
    """
    Run pytest for the selected suite and render the report.

    Returns:
        pytest's exit code (1 if the interpreter could not be started)
    """
    env = build_environment(options)
    _log_banner(options, env)

    ALLURE_RESULTS.mkdir(parents=True, exist_ok=True)
    cmd = build_command(options)
    logger.info(f"▶️ {' '.join(cmd)}")

    try:
        exit_code = subprocess.run(cmd, cwd=str(ROOT_DIR), env=env).returncode
    except OSError as e:
        logger.error(f"❌ Could not start pytest: {e}")
        exit_code = 1

    if options.allure:
        generate_allure_report(ALLURE_RESULTS, ALLURE_REPORT)

    if exit_code == 0:
        logger.info("✅ All selected tests passed")
    else:
        logger.error(f"❌ Test run failed (exit code: {exit_code})")
    if options.allure:
        logger.info(f"📊 Report: {ALLURE_REPORT}")
    return exit_code


def parse_args(argv: Optional[Sequence[str]] = None) -> RunOptions:
    parser = argparse.ArgumentParser(
        description="LiveShare E2E test runner",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python run_tests.py --suite unit
  python run_tests.py --suite ui --tags P0 smoke --parallel 4 --mode staging
  python run_tests.py --suite ui --no-headless --browser firefox --force-auth
        """,
    )
    parser.add_argument("--suite", choices=list(SUITE_PATHS), default="all",
                        help="Suite to run (default: all)")
    parser.add_argument("--tags", nargs="+", default=[],
                        help="Markers to select, OR-ed together (e.g. P0 smoke)")
    parser.add_argument("--parallel", "-n", type=int, default=1, dest="workers",
                        help="pytest-xdist workers (default: 1)")
    parser.add_argument("--browser", choices=BROWSERS, default="chromium",
                        help="Browser engine for UI tests (default: chromium)")
    parser.add_argument("--no-headless", action="store_true",
                        help="Show the browser window")
    parser.add_argument("--mode", choices=MODES, default="",
                        help="Configuration profile (default: MODE env or dev)")
    parser.add_argument("--force-auth", action="store_true",
                        help="Log in again even if auth/user-auth.json is fresh")
    parser.add_argument("--no-allure", action="store_true",
                        help="Skip Allure results and report generation")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Verbose pytest output")

    args = parser.parse_args(argv)
    return RunOptions(
        suite=args.suite,
        tags=args.tags,
        workers=args.workers,
        browser=args.browser,
        headless=not args.no_headless,
        mode=args.mode,
        force_auth=args.force_auth,
        allure=not args.no_allure,
        verbose=args.verbose,
    )


def main() -> None:
    logger.remove()
    logger.add(
        sys.stdout,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | {message}",
        level="INFO",
    )
    sys.exit(run(parse_args()))


if __name__ == "__main__":
    main()
