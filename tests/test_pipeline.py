"""
End-to-end tests for the restore pipeline.

Network and child processes are faked; the filesystem is real.
"""

import json
import logging
from pathlib import Path
from unittest.mock import patch

import pytest
import responses

from restorekit.config.parser import RestoreRequest
from restorekit.core.cache_registry import CacheIncludeRegistry
from restorekit.core.exceptions import (
    AcquisitionError,
    CacheCollectionError,
    CacheRegistryError,
    ExecutionError,
)
from restorekit.nuget.cache import CacheCategory, CacheLevel, CachePathCollector
from restorekit.nuget.restore import RestoreRunner
from restorekit.nuget.tool import MONO_PATH, SYSTEM_NUGET_PATH, ToolResolver
from restorekit.pipeline import run_pipeline


@pytest.fixture
def home(tmp_path):
    return tmp_path / "home"


@pytest.fixture
def registry(tmp_path):
    return CacheIncludeRegistry(tmp_path / "cache_include.json")


def make_request(solution, version="", level=CacheLevel.ALL):
    return RestoreRequest(
        solution_path=solution, nuget_version=version, cache_level=level
    )


class TestPipelineSuccess:
    """Test successful runs."""

    def test_installed_nuget_all_caches(self, solution_project, fake_run, home, registry):
        """Test default NuGet, cache level all, one local packages directory."""
        collector = CachePathCollector(environ={}, home=home)

        result = run_pipeline(
            make_request(solution_project),
            runner=RestoreRunner(run=fake_run),
            collector=collector,
            registry=registry,
        )

        assert fake_run.calls == [[SYSTEM_NUGET_PATH, "restore", str(solution_project)]]
        assert result.command == fake_run.calls[0]
        assert result.warnings == []

        local = solution_project.parent / "src" / "packages"
        global_dir = home / ".nuget" / "packages"
        assert result.cache_set.by_category(CacheCategory.LOCAL_PACKAGES) == [local]
        assert result.cache_set.by_category(CacheCategory.GLOBAL_PACKAGES) == [global_dir]
        assert registry.list_paths() == [str(local), str(global_dir)]

    def test_env_overridden_global_dir(self, solution_project, fake_run, registry):
        collector = CachePathCollector(environ={"NUGET_PACKAGES": "/custom/path"})

        result = run_pipeline(
            make_request(solution_project),
            runner=RestoreRunner(run=fake_run),
            collector=collector,
            registry=registry,
        )

        assert Path("/custom/path") in result.cache_set.paths()

    def test_cache_level_none_skips_registry(self, solution_project, fake_run, registry):
        result = run_pipeline(
            make_request(solution_project, level=CacheLevel.NONE),
            runner=RestoreRunner(run=fake_run),
            collector=CachePathCollector(environ={}),
            registry=registry,
        )

        assert len(result.cache_set) == 0
        assert not registry.registry_path.exists()

    @responses.activate
    def test_downloaded_nuget(self, solution_project, fake_run, tmp_path, no_sleep, home, registry):
        url = "https://dist.nuget.org/win-x86-commandline/v6.9.1/nuget.exe"
        responses.add(responses.GET, url, body=b"MZ", status=200)
        download_dir = tmp_path / "dl"
        download_dir.mkdir()
        resolver = ToolResolver(
            temp_dir_factory=lambda prefix: download_dir, sleep=no_sleep
        )

        result = run_pipeline(
            make_request(solution_project, version="6.9.1", level=CacheLevel.LOCAL),
            resolver=resolver,
            runner=RestoreRunner(run=fake_run),
            collector=CachePathCollector(environ={}, home=home),
            registry=registry,
        )

        assert fake_run.calls == [
            [MONO_PATH, str(download_dir / "nuget.exe"), "restore", str(solution_project)]
        ]
        assert result.invocation.args == (MONO_PATH, str(download_dir / "nuget.exe"))

    def test_default_collaborators_from_request(
        self, solution_project, fake_run, tmp_path, monkeypatch
    ):
        """Test collector and registry are built from the request."""
        monkeypatch.setenv("NUGET_PACKAGES", str(tmp_path / "global"))
        registry_path = tmp_path / "reg" / "cache_include.json"
        request = RestoreRequest(
            solution_path=solution_project,
            cache_level=CacheLevel.GLOBAL,
            registry_path=registry_path,
        )

        run_pipeline(request, runner=RestoreRunner(run=fake_run))

        data = json.loads(registry_path.read_text())
        assert data["include_paths"] == [str(tmp_path / "global")]


class TestPipelineFatal:
    """Test failures that abort the run."""

    @responses.activate
    def test_download_fails_twice(self, solution_project, fake_run, tmp_path, no_sleep):
        """Test acquisition error is fatal and restore is never run."""
        for filename in ("nuget.exe", "NuGet.exe"):
            responses.add(
                responses.GET,
                f"https://dist.nuget.org/win-x86-commandline/v9.9.9/{filename}",
                status=404,
            )
        resolver = ToolResolver(temp_dir_factory=lambda prefix: tmp_path, sleep=no_sleep)

        with pytest.raises(AcquisitionError):
            run_pipeline(
                make_request(solution_project, version="9.9.9"),
                resolver=resolver,
                runner=RestoreRunner(run=fake_run),
            )

        assert len(responses.calls) == 2
        assert fake_run.calls == []

    def test_restore_fails_twice(self, solution_project, make_runner, registry):
        fake_run = make_runner([1])

        with pytest.raises(ExecutionError):
            run_pipeline(
                make_request(solution_project),
                runner=RestoreRunner(run=fake_run),
                collector=CachePathCollector(environ={}),
                registry=registry,
            )

        assert len(fake_run.calls) == 2
        assert not registry.registry_path.exists()


class TestPipelineCacheWarnings:
    """Test cache problems degrade to warnings."""

    def test_collection_error(self, solution_project, fake_run, registry, caplog):
        class BrokenCollector:
            def collect(self, cache_level, project_root):
                raise CacheCollectionError("walk failed")

        with caplog.at_level(logging.WARNING):
            result = run_pipeline(
                make_request(solution_project),
                runner=RestoreRunner(run=fake_run),
                collector=BrokenCollector(),
                registry=registry,
            )

        assert result.warnings == ["walk failed"]
        assert "walk failed" in caplog.text
        assert len(fake_run.calls) == 1

    def test_unresolvable_home(self, solution_project, fake_run, monkeypatch):
        """Test a missing home directory neither aborts the run nor drops local paths."""
        monkeypatch.delenv("NUGET_PACKAGES", raising=False)
        monkeypatch.delenv("RESTOREKIT_CACHE_REGISTRY", raising=False)

        with patch(
            "pathlib.Path.home",
            side_effect=RuntimeError("Could not determine home directory."),
        ):
            result = run_pipeline(
                make_request(solution_project),
                runner=RestoreRunner(run=fake_run),
            )

        assert len(fake_run.calls) == 1
        assert result.cache_set.paths() == [solution_project.parent / "src" / "packages"]
        assert len(result.warnings) == 2
        assert all("home directory" in warning for warning in result.warnings)

    def test_walk_error_keeps_global(self, tmp_path, fake_run, registry):
        solution = tmp_path / "App.sln"
        solution.write_text("")
        request = make_request(solution)
        collector = CachePathCollector(environ={"NUGET_PACKAGES": "/custom/path"})

        with patch(
            "restorekit.nuget.cache.find_directory",
            side_effect=PermissionError("denied"),
        ):
            result = run_pipeline(
                request,
                runner=RestoreRunner(run=fake_run),
                collector=collector,
                registry=registry,
            )

        assert result.cache_set.paths() == [Path("/custom/path")]
        assert len(result.warnings) == 1
        assert "Failed to walk" in result.warnings[0]
        assert registry.list_paths() == ["/custom/path"]

    def test_commit_error(self, solution_project, fake_run, home):
        class BrokenRegistry:
            def commit(self, paths):
                raise CacheRegistryError("disk full")

        result = run_pipeline(
            make_request(solution_project),
            runner=RestoreRunner(run=fake_run),
            collector=CachePathCollector(environ={}, home=home),
            registry=BrokenRegistry(),
        )

        assert result.warnings == ["disk full"]
        assert len(result.cache_set) == 2
