"""
Pytest configuration and shared fixtures for RestoreKit tests.
"""

import subprocess
from pathlib import Path
from typing import List

import pytest


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--integration",
        action="store_true",
        default=False,
        help="run integration tests that require network access",
    )


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless --integration flag is provided."""
    if config.getoption("--integration"):
        return
    skip_integration = pytest.mark.skip(reason="need --integration option to run")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


# ============================================================================
# Shared Test Fixtures
# ============================================================================


class FakeProcessRunner:
    """Stand-in for subprocess.run that records commands."""

    def __init__(self, returncodes=None):
        self.returncodes = list(returncodes or [0])
        self.calls: List[List[str]] = []

    def __call__(self, cmd, *args, **kwargs):
        self.calls.append(list(cmd))
        index = min(len(self.calls) - 1, len(self.returncodes) - 1)
        outcome = self.returncodes[index]
        if isinstance(outcome, BaseException):
            raise outcome
        return subprocess.CompletedProcess(cmd, outcome)


@pytest.fixture
def fake_run():
    """Process runner that always succeeds."""
    return FakeProcessRunner()


@pytest.fixture
def make_runner():
    """Factory for process runners with scripted outcomes.

    Outcomes are return codes or exceptions, one per call; the last one repeats.
    """
    return FakeProcessRunner


@pytest.fixture
def no_sleep():
    """Sleep replacement recording requested delays."""
    delays = []

    def sleep(seconds):
        delays.append(seconds)

    sleep.delays = delays
    return sleep


@pytest.fixture
def solution_project(tmp_path: Path) -> Path:
    """
    Xamarin-style project tree::

        app/
          App.sln
          src/
            packages/
              x.txt
    """
    root = tmp_path / "app"
    (root / "src" / "packages").mkdir(parents=True)
    (root / "src" / "packages" / "x.txt").write_text("package")
    solution = root / "App.sln"
    solution.write_text("Microsoft Visual Studio Solution File\n")
    return solution
