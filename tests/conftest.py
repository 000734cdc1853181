"""Pytest configuration for the sessionlog test suite."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

import pytest

from sessionlog.log import LOG_DIR_ENV


@pytest.fixture(autouse=True)
def _isolated_log_dir(monkeypatch: pytest.MonkeyPatch, tmp_path_factory: pytest.TempPathFactory) -> Path:
    """Keep log files written during tests out of the user's home directory."""

    log_dir = tmp_path_factory.mktemp("sessionlog-logs")
    monkeypatch.setenv(LOG_DIR_ENV, str(log_dir))
    return log_dir


@dataclass(frozen=True)
class Suite:
    """Named marker expression selecting part of the test tree."""

    name: str
    markexpr: str
    description: str


SUITES: Mapping[str, Suite] = {
    suite.name: suite
    for suite in (
        Suite("core", "not integration and not slow", "Fast in-process unit checks"),
        Suite("integration", "integration", "CLI flows executed in a subprocess"),
        Suite("all", "", "Everything that is collected"),
    )
}


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--suite",
        action="store",
        choices=sorted(SUITES),
        help="Select a logical test suite (ignored when -m is given)",
    )
    parser.addoption(
        "--list-suites",
        action="store_true",
        help="List available sessionlog suites and exit",
    )


def pytest_configure(config: pytest.Config) -> None:
    if config.getoption("--list-suites"):
        width = max(len(name) for name in SUITES)
        for suite in SUITES.values():
            print(f"{suite.name:<{width}}  {suite.markexpr or '-':<30}  {suite.description}")
        pytest.exit("suite listing requested", returncode=0)
    suite_name = config.getoption("--suite")
    if suite_name is None or config.option.markexpr:
        return
    config.option.markexpr = SUITES[suite_name].markexpr


def pytest_report_header(config: pytest.Config) -> list[str]:
    suite_name = config.getoption("--suite")
    return [f"sessionlog test suite: {suite_name}"] if suite_name else []
