# ============================================================================
# HEALTH REGISTRY TESTS
# ============================================================================
# STATUS: Tests - Name allocation and registration handles
# PURPOSE: Verify unique names, idempotent deregistration and thread safety
# CREATED: 19 OCT 2026
# ============================================================================
"""
Health Registry Tests

Covers:
1. Linear-probe name allocation ("x", "x-1", "x-2")
2. Default names for anonymous registrations
3. Deregistration is idempotent and never removes a successor
4. Concurrent register/deregister/check_now
5. Process-wide wrappers

Run with:
    pytest tests/test_registry.py -v
"""

import asyncio
import threading

import pytest

from healthjson.executor import HealthCheckExecutor
from healthjson.models import Check, Status
from healthjson.registry import (
    FuncChecker,
    HealthRegistry,
    ReadWriteLock,
    deregister_all,
    get_registry,
    register,
    register_func,
)


def passing(ctx):
    return [Check(status=Status.PASS)]


class DiskChecker:
    def check_health(self, ctx):
        return [Check(status=Status.WARN, output="disk 91% full")]


# ============================================================================
# NAME ALLOCATION
# ============================================================================

class TestNameAllocation:
    """Tests for unique name assignment."""

    def test_first_registration_keeps_name(self):
        registry = HealthRegistry()
        assert registry.register_func("db", passing).name == "db"

    def test_collisions_probe_linearly(self):
        registry = HealthRegistry()
        names = [registry.register_func("dup", passing).name for _ in range(3)]
        assert names == ["dup", "dup-1", "dup-2"]
        assert registry.names() == ["dup", "dup-1", "dup-2"]

    def test_freed_name_is_reused(self):
        registry = HealthRegistry()
        first = registry.register_func("dup", passing)
        registry.register_func("dup", passing)

        first.deregister()

        assert registry.register_func("dup", passing).name == "dup"

    def test_probe_skips_taken_suffix(self):
        registry = HealthRegistry()
        registry.register_func("dup-1", passing)
        registry.register_func("dup", passing)
        assert registry.register_func("dup", passing).name == "dup-2"

    def test_empty_name_uses_type_name(self):
        registry = HealthRegistry()
        assert registry.register("", DiskChecker()).name == "DiskChecker"
        assert registry.register("", DiskChecker()).name == "DiskChecker-1"

    def test_empty_name_for_function(self):
        registry = HealthRegistry()
        assert registry.register_func("", passing).name == "FuncChecker"


# ============================================================================
# DEREGISTRATION
# ============================================================================

class TestDeregistration:
    """Tests for Registration.deregister."""

    def test_deregister_removes_entry(self):
        registry = HealthRegistry()
        registration = registry.register_func("db", passing)

        registration.deregister()

        assert "db" not in registry
        assert len(registry) == 0

    def test_deregister_twice_is_noop(self):
        registry = HealthRegistry()
        registration = registry.register_func("db", passing)
        registration.deregister()
        registration.deregister()
        assert registry.names() == []

    def test_stale_handle_does_not_remove_successor(self):
        registry = HealthRegistry()
        old = registry.register_func("db", passing)
        old.deregister()
        new = registry.register_func("db", passing)
        assert new.name == "db"

        old.deregister()

        assert "db" in registry

    def test_deregister_all(self):
        registry = HealthRegistry()
        registry.register_func("a", passing)
        registry.register_func("b", passing)

        registry.deregister_all()

        assert len(registry) == 0

    def test_snapshot_is_a_copy(self):
        registry = HealthRegistry()
        registration = registry.register("disk", DiskChecker())

        snapshot = registry.snapshot()
        registration.deregister()

        assert [name for name, _ in snapshot] == ["disk"]
        assert isinstance(snapshot[0][1], DiskChecker)


# ============================================================================
# CONCURRENCY
# ============================================================================

class TestConcurrency:
    """Tests for concurrent registry use."""

    def test_concurrent_registration_yields_unique_names(self):
        registry = HealthRegistry()
        names = []
        lock = threading.Lock()

        def worker():
            for _ in range(25):
                name = registry.register_func("c", passing).name
                with lock:
                    names.append(name)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(names) == 200
        assert len(set(names)) == 200
        assert set(names) == {"c"} | {f"c-{i}" for i in range(1, 200)}

    def test_register_deregister_and_check_concurrently(self):
        registry = HealthRegistry()
        executor = HealthCheckExecutor(registry=registry)
        keep = []
        errors = []
        lock = threading.Lock()

        def churn():
            try:
                for _ in range(20):
                    registration = registry.register_func("churn", passing)
                    registration.deregister()
                    kept = registry.register_func("kept", passing)
                    with lock:
                        keep.append(kept.name)
            except Exception as e:
                errors.append(e)

        def aggregate():
            try:
                for _ in range(10):
                    response = asyncio.run(executor.check_now())
                    assert response.status == Status.PASS
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=churn) for _ in range(4)]
        threads += [threading.Thread(target=aggregate) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert sorted(registry.names()) == sorted(keep)
        assert not any(name.startswith("churn") for name in registry.names())


class TestReadWriteLock:
    """Tests for the reader-writer lock."""

    def test_readers_share(self):
        lock = ReadWriteLock()
        with lock.read():
            acquired = threading.Event()

            def reader():
                with lock.read():
                    acquired.set()

            t = threading.Thread(target=reader)
            t.start()
            assert acquired.wait(1.0)
            t.join()

    def test_writer_excludes_readers(self):
        lock = ReadWriteLock()
        acquired = threading.Event()

        def reader():
            with lock.read():
                acquired.set()

        with lock.write():
            t = threading.Thread(target=reader)
            t.start()
            assert not acquired.wait(0.1)

        assert acquired.wait(1.0)
        t.join()


# ============================================================================
# PROCESS-WIDE REGISTRY
# ============================================================================

class TestGlobalRegistry:
    """Tests for the module-level wrappers."""

    @pytest.fixture(autouse=True)
    def clean_registry(self):
        deregister_all()
        yield
        deregister_all()

    def test_singleton(self):
        assert get_registry() is get_registry()

    def test_register_func(self):
        registration = register_func("queue", passing)
        assert registration.name == "queue"
        assert "queue" in get_registry()

    def test_register_checker(self):
        registration = register("disk", DiskChecker())
        assert registration.registry is get_registry()

        registration.deregister()

        assert "disk" not in get_registry()

    def test_func_checker_calls_function(self):
        checker = FuncChecker(lambda ctx: [Check(output=str(ctx))])
        assert checker.check_health("ctx")[0].output == "ctx"
