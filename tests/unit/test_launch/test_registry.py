"""
Unit tests for the process registry.

Tests registration at spawn time, exit bookkeeping and the bounded wait
used to confirm that signaled processes exited.
"""

import threading
import time

import pytest

from sdlocal.launch.registry import ProcessRegistry
from sdlocal.validation import RunnerTerminatedError, TerminationTimeoutError


@pytest.mark.unit
class TestProcessRegistry:
    """Test cases for registry bookkeeping."""

    def test_spawn_registers_process(self, fake_popen):
        registry = ProcessRegistry(fake_popen)

        tracked = registry.spawn(["docker", "pull", "alpine"], stdout=None)

        assert len(registry) == 1
        assert tracked.pid == 1000
        assert tracked.argv == ["docker", "pull", "alpine"]
        assert tracked.exit_code is None
        assert fake_popen.calls == [["docker", "pull", "alpine"]]
        assert fake_popen.processes[0].kwargs == {"stdout": None}

    def test_spawn_failure_registers_nothing(self):
        def factory(argv, **kwargs):
            raise FileNotFoundError("docker")

        registry = ProcessRegistry(factory)

        with pytest.raises(FileNotFoundError):
            registry.spawn(["docker", "version"])
        assert len(registry) == 0

    def test_lock_released_after_spawn_failure(self):
        def factory(argv, **kwargs):
            raise OSError("boom")

        registry = ProcessRegistry(factory)
        with pytest.raises(OSError):
            registry.spawn(["docker"])

        assert registry.snapshot() == []

    def test_mark_exited(self, fake_popen):
        registry = ProcessRegistry(fake_popen)
        tracked = registry.spawn(["docker", "info"])

        registry.mark_exited(tracked, 0)

        assert registry.has_exited(tracked)
        assert tracked.exit_code == 0

    def test_running_excludes_exited(self, fake_popen):
        registry = ProcessRegistry(fake_popen)
        first = registry.spawn(["docker", "a"])
        second = registry.spawn(["docker", "b"])
        registry.mark_exited(first, 1)

        assert registry.running() == [second]
        assert registry.snapshot() == [first, second]

    def test_closed_registry_refuses_spawn(self, fake_popen):
        registry = ProcessRegistry(fake_popen)
        registry.close()

        with pytest.raises(RunnerTerminatedError):
            registry.spawn(["docker", "pull", "alpine"])

        assert registry.closed
        assert len(registry) == 0
        assert fake_popen.calls == []

    def test_forced_spawn_after_close(self, fake_popen):
        registry = ProcessRegistry(fake_popen)
        registry.close()

        tracked = registry.spawn(["docker", "volume", "rm", "--force", "X"], force=True)

        assert registry.snapshot() == [tracked]
        assert fake_popen.processes[0].kwargs == {}

    def test_entries_are_never_removed(self, fake_popen):
        registry = ProcessRegistry(fake_popen)
        for name in ("a", "b", "c"):
            registry.mark_exited(registry.spawn(["docker", name]), 0)

        assert len(registry) == 3


@pytest.mark.unit
class TestWaitForExit:
    """Test cases for the termination confirmation wait."""

    def test_returns_immediately_when_nothing_pending(self, fake_popen):
        registry = ProcessRegistry(fake_popen)
        tracked = registry.spawn(["docker", "a"])
        registry.mark_exited(tracked, 0)

        start = time.monotonic()
        assert registry.wait_for_exit([tracked], poll_interval=5.0, max_attempts=3) is True
        assert time.monotonic() - start < 1.0

    def test_empty_list_confirms(self, fake_popen):
        registry = ProcessRegistry(fake_popen)
        assert registry.wait_for_exit([], poll_interval=5.0, max_attempts=3) is True

    def test_confirms_exit_observed_from_other_thread(self, fake_popen):
        registry = ProcessRegistry(fake_popen)
        tracked = registry.spawn(["docker", "run"])

        timer = threading.Timer(0.05, registry.mark_exited, args=(tracked, -15))
        timer.start()
        try:
            assert registry.wait_for_exit([tracked], poll_interval=0.01, max_attempts=500) is True
        finally:
            timer.cancel()

    def test_timeout(self, fake_popen):
        registry = ProcessRegistry(fake_popen)
        tracked = registry.spawn(["docker", "run"])

        with pytest.raises(TerminationTimeoutError) as exc_info:
            registry.wait_for_exit([tracked], poll_interval=0.01, max_attempts=3)

        assert exc_info.value.pending_pids == [tracked.pid]
        assert "could not confirm that the process was dead" in str(exc_info.value)

    def test_timeout_message_reports_waited_seconds(self, fake_popen):
        registry = ProcessRegistry(fake_popen)
        tracked = registry.spawn(["docker", "run"])

        with pytest.raises(TerminationTimeoutError) as exc_info:
            registry.wait_for_exit([tracked], poll_interval=0.25, max_attempts=2)

        assert str(exc_info.value).startswith("waited 0.5 seconds")

    def test_only_waits_for_given_processes(self, fake_popen):
        registry = ProcessRegistry(fake_popen)
        signaled = registry.spawn(["docker", "a"])
        registry.spawn(["docker", "b"])
        registry.mark_exited(signaled, -15)

        assert registry.wait_for_exit([signaled], poll_interval=0.01, max_attempts=1) is True

    def test_cancel(self, fake_popen):
        registry = ProcessRegistry(fake_popen)
        tracked = registry.spawn(["docker", "run"])
        cancel_event = threading.Event()
        cancel_event.set()

        assert registry.wait_for_exit(
            [tracked], poll_interval=10.0, max_attempts=10, cancel_event=cancel_event
        ) is False

    def test_lock_not_held_while_sleeping(self, fake_popen):
        registry = ProcessRegistry(fake_popen)
        tracked = registry.spawn(["docker", "run"])
        results = []

        waiter = threading.Thread(
            target=lambda: results.append(
                registry.wait_for_exit([tracked], poll_interval=0.2, max_attempts=50)
            )
        )
        waiter.start()
        time.sleep(0.05)

        # Spawning needs the lock; it must not wait for the poll interval
        start = time.monotonic()
        registry.spawn(["docker", "other"])
        registry.mark_exited(tracked, 0)
        elapsed = time.monotonic() - start

        waiter.join(5.0)
        assert elapsed < 0.15
        assert results == [True]
