import sys

import pytest

from run_tests import RunOptions, build_command, build_environment, parse_args


@pytest.mark.unit
def test_unit_suite_never_enables_browser_runs():
    env = build_environment(RunOptions(suite="unit", force_auth=True), base={})

    assert "RUN_E2E" not in env
    assert "FORCE_AUTH" not in env


@pytest.mark.unit
def test_ui_suite_exports_browser_settings():
    options = parse_args(["--suite", "ui", "--no-headless", "--browser", "firefox",
                          "--mode", "staging", "--force-auth"])

    env = build_environment(options, base={"PATH": "/bin"})

    assert env == {
        "PATH": "/bin",
        "MODE": "staging",
        "RUN_E2E": "true",
        "BROWSER__TYPE": "firefox",
        "HEADLESS": "false",
        "FORCE_AUTH": "true",
    }


@pytest.mark.unit
def test_command_joins_tags_and_adds_workers(tmp_path):
    options = parse_args(["--suite", "all", "--tags", "P0", "smoke", "-n", "4"])

    cmd = build_command(options, results_dir=tmp_path)

    assert cmd[:3] == [sys.executable, "-m", "pytest"]
    assert cmd[3:5] == ["liveshare_e2e/unit", "liveshare_e2e/ui_testing/tests"]
    assert cmd[cmd.index("-m", 3) + 1] == "P0 or smoke"
    assert cmd[cmd.index("-n") + 1] == "4"
    assert cmd[cmd.index("--alluredir") + 1] == str(tmp_path)
    assert cmd[-1] == "-q"


@pytest.mark.unit
def test_single_worker_without_allure():
    cmd = build_command(parse_args(["--suite", "unit", "--no-allure", "-v"]))

    assert "-n" not in cmd
    assert "--alluredir" not in cmd
    assert cmd[-1] == "-v"
