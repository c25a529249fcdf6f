"""
Pytest configuration and shared fixtures for the sdlocal test suite.

This module provides common fixtures, fake processes and configuration
for all test modules in the project.
"""

import io
import shutil
import subprocess
import sys
import tempfile
import threading
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import pytest

# Add src to Python path for testing
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


# ============================================================================
# Test Configuration
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


# ============================================================================
# Core Fixtures
# ============================================================================


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def fast_settings():
    """Launcher settings with a short termination window."""
    from sdlocal.models import LauncherSettings

    return LauncherSettings(poll_interval=0.01, max_attempts=5)


@pytest.fixture
def sample_option():
    """Launch options for a small job."""
    from sdlocal.models import EndpointConfig, Job, LauncherImage, LaunchOption, Step

    return LaunchOption(
        job=Job(
            image="node:18",
            steps=[Step(name="install", command="npm install"), Step(name="test", command="npm test")],
            environment={"FOO": "1", "BAR": "job"},
        ),
        entry=EndpointConfig(
            api_url="http://api.example.com",
            store_url="http://store.example.com",
            launcher=LauncherImage(image="screwdrivercd/launcher", version="v6.0.1"),
        ),
        job_name="main",
        jwt="jwt-token",
        artifacts_path="/home/user/project/sd-artifacts",
        src_path="/home/user/project",
        option_env={"FOO": "2"},
        meta={"build": {"foo": "bar"}},
    )


# ============================================================================
# Fake Processes
# ============================================================================


class FakeProcess:
    """Stand-in for subprocess.Popen driven by a FakePopenFactory."""

    def __init__(self, argv: List[str], pid: int, kwargs: Dict[str, Any],
                 returncode: int = 0, stderr_data: bytes = b"", stdout_data: bytes = b"",
                 block: Optional[threading.Event] = None):
        self.argv = argv
        self.pid = pid
        self.kwargs = kwargs
        self.returncode: Optional[int] = None
        self._final_returncode = returncode
        self._block = block
        self.stdout = io.BytesIO(stdout_data) if kwargs.get("stdout") == subprocess.PIPE else None
        stderr = kwargs.get("stderr")
        if stderr_data and hasattr(stderr, "write"):
            stderr.write(stderr_data)

    def wait(self, timeout=None):
        if self._block is not None:
            self._block.wait()
        self.returncode = self._final_returncode
        return self.returncode


class FakePopenFactory:
    """
    Records every spawned argument vector.

    ``behaviour(argv)`` may return a dict with ``returncode``,
    ``stderr_data``, ``stdout_data``, ``block`` or ``raise_error``.
    """

    def __init__(self, behaviour: Optional[Callable[[List[str]], Dict[str, Any]]] = None):
        self.behaviour = behaviour or (lambda argv: {})
        self.calls: List[List[str]] = []
        self.processes: List[FakeProcess] = []
        self._next_pid = 1000

    def __call__(self, argv, **kwargs):
        argv = list(argv)
        self.calls.append(argv)
        options = dict(self.behaviour(argv))
        error = options.pop("raise_error", None)
        if error is not None:
            raise error
        process = FakeProcess(argv, self._next_pid, kwargs, **options)
        self._next_pid += 1
        self.processes.append(process)
        return process


@pytest.fixture
def fake_popen():
    """A FakePopenFactory where every command succeeds."""
    return FakePopenFactory()


@pytest.fixture
def popen_factory_cls():
    """The FakePopenFactory class, for tests that need custom behaviour."""
    return FakePopenFactory


@pytest.fixture
def failing_popen():
    """Build a FakePopenFactory failing every command containing *fragment*."""

    def _make(fragment: str, returncode: int = 1, stderr_data: bytes = b""):
        def behaviour(argv):
            if fragment in " ".join(argv):
                return {"returncode": returncode, "stderr_data": stderr_data}
            return {}

        return FakePopenFactory(behaviour)

    return _make


@pytest.fixture(autouse=True)
def clear_config_after_test():
    """Automatically clear configuration cache after each test."""
    yield

    from sdlocal.config import clear_config_cache, reset_config_path

    clear_config_cache()
    reset_config_path()
