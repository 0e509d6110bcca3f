"""Tests for jobrunner.activation.registry — explicit job registration."""

import abc
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from types import ModuleType

import pytest

from jobrunner.activation.registry import (
    JobRegistry,
    get_default_registry,
    register_job,
    reset_default_registry,
)
from tests._support import jobs
from tests._support.jobs import NoOpJob, TypedJob


class TestJobRegistry:
    """Basic register / lookup behaviour."""

    def test_register_and_get(self):
        registry = JobRegistry()
        registry.register("noop", NoOpJob)

        assert registry.get("noop") is NoOpJob
        assert registry.has("noop")
        assert len(registry) == 1

    def test_get_missing_returns_none(self):
        assert JobRegistry().get("missing") is None

    def test_register_same_class_twice_is_idempotent(self):
        registry = JobRegistry()
        registry.register("noop", NoOpJob)
        registry.register("noop", NoOpJob)
        assert registry.list_jobs() == ["noop"]

    def test_register_conflicting_class_raises(self):
        registry = JobRegistry()
        registry.register("job", NoOpJob)
        with pytest.raises(ValueError, match="already registered"):
            registry.register("job", TypedJob)

    def test_register_non_class_raises(self):
        with pytest.raises(TypeError):
            JobRegistry().register("fn", lambda: None)

    def test_list_jobs_sorted(self):
        registry = JobRegistry()
        registry.register("b", TypedJob)
        registry.register("a", NoOpJob)
        assert registry.list_jobs() == ["a", "b"]

    def test_unregister(self):
        registry = JobRegistry()
        registry.register("noop", NoOpJob)
        assert registry.unregister("noop") is True
        assert registry.unregister("noop") is False
        assert not registry.has("noop")

    def test_clear(self):
        registry = JobRegistry()
        registry.register("noop", NoOpJob)
        registry.clear()
        assert len(registry) == 0


class TestRegisterModule:
    """Bulk registration of a module's job classes."""

    def test_registers_public_job_classes(self):
        registry = JobRegistry()
        names = registry.register_module(jobs)

        assert "NoOpJob" in names
        assert "TypedJob" in names
        assert registry.get("FailingJob") is jobs.FailingJob

    def test_skips_classes_without_run(self):
        registry = JobRegistry()
        registry.register_module(jobs)

        assert not registry.has("NoEntryPointJob")
        assert not registry.has("JobBodyFailure")
        assert not registry.has("ReportSettings")

    def test_skips_imported_private_and_abstract_classes(self):
        module = ModuleType("sample_jobs")

        class _Hidden:
            def run(self):
                pass

        class Abstract(abc.ABC):
            @abc.abstractmethod
            def run(self): ...

        _Hidden.__module__ = Abstract.__module__ = "sample_jobs"
        module._Hidden = _Hidden
        module.Abstract = Abstract
        module.NoOpJob = NoOpJob  # defined elsewhere

        assert JobRegistry().register_module(module) == []


class TestDefaultRegistry:
    """Global registry and the decorator."""

    def test_singleton(self):
        assert get_default_registry() is get_default_registry()

    def test_reset(self):
        first = get_default_registry()
        reset_default_registry()
        assert get_default_registry() is not first

    def test_decorator_uses_class_name_by_default(self):
        @register_job()
        class NightlyCleanup:
            def run(self):
                pass

        assert get_default_registry().get("NightlyCleanup") is NightlyCleanup

    def test_decorator_with_name_and_empty_registry(self):
        registry = JobRegistry()

        @register_job("cleanup", registry=registry)
        class Cleanup:
            def run(self):
                pass

        assert registry.get("cleanup") is Cleanup
        assert not get_default_registry().has("cleanup")


class TestJobRegistryThreadSafety:
    """Concurrent registration and lookup."""

    def test_concurrent_registration(self):
        registry = JobRegistry()
        errors = []

        def register(i: int):
            try:
                registry.register(f"job_{i}", type(f"Job{i}", (), {"run": lambda self: None}))
            except Exception as e:
                errors.append(e)

        with ThreadPoolExecutor(max_workers=10) as pool:
            futures = [pool.submit(register, i) for i in range(100)]
            for f in as_completed(futures):
                f.result()

        assert errors == []
        assert len(registry.list_jobs()) == 100

    def test_concurrent_read_write(self):
        registry = JobRegistry()
        registry.register("noop", NoOpJob)
        barrier = threading.Barrier(4)
        seen = []

        def reader():
            barrier.wait()
            for _ in range(200):
                seen.append(registry.get("noop"))

        threads = [threading.Thread(target=reader) for _ in range(3)]
        for t in threads:
            t.start()
        barrier.wait()
        for i in range(50):
            registry.register(f"extra_{i}", TypedJob)
        for t in threads:
            t.join()

        assert all(cls is NoOpJob for cls in seen)
        assert len(registry) == 51
