"""
Integration tests — real ``bundle install`` against a local path gem.

Skipped unless Bundler is on PATH and GEMSTAGE_INTEGRATION=1.  The
Gemfile only references a path gem, so no network access is needed.
"""

import os
import shutil
import textwrap
from pathlib import Path

import pytest

from gemstage.core.models.config import GemstageConfig
from gemstage.core.models.install import FailureKind
from gemstage.core.services.install_orchestrator import InstallOrchestrator

pytestmark = pytest.mark.skipif(
    shutil.which("bundle") is None or os.environ.get("GEMSTAGE_INTEGRATION") != "1",
    reason="requires bundler and GEMSTAGE_INTEGRATION=1",
)


def _path_gem_project(root: Path, gem_version: str = "0.1.0") -> Path:
    gem_dir = root / "vendor" / "hello"
    (gem_dir / "lib").mkdir(parents=True)
    (gem_dir / "lib" / "hello.rb").write_text("module Hello; end\n")
    (gem_dir / "hello.gemspec").write_text(textwrap.dedent(f"""\
        Gem::Specification.new do |s|
          s.name = "hello"
          s.version = "{gem_version}"
          s.summary = "hello"
          s.authors = ["gemstage"]
          s.files = ["lib/hello.rb"]
        end
    """))
    gemfile = root / "Gemfile"
    gemfile.write_text('gem "hello", path: "vendor/hello"\n')
    return gemfile


@pytest.fixture
def orchestrator() -> InstallOrchestrator:
    return InstallOrchestrator(config=GemstageConfig(timeout=300), echo=lambda _msg: None)


class TestRealBundler:
    def test_install_then_check(self, tmp_path: Path, orchestrator: InstallOrchestrator):
        gemfile = _path_gem_project(tmp_path / "app")
        target = tmp_path / "gems"

        ok, message = orchestrator.install_from_manifest(target, gemfile)
        assert ok, message
        assert (tmp_path / "app" / "Gemfile.lock").is_file()

        assert orchestrator.check(target, gemfile).ok

    def test_unsatisfiable_constraint(self, tmp_path: Path, orchestrator: InstallOrchestrator):
        gemfile = _path_gem_project(tmp_path / "app")
        gemfile.write_text('gem "hello", "~> 9.0", path: "vendor/hello"\n')

        outcome = orchestrator.install_from_manifest(tmp_path / "gems", gemfile)
        assert not outcome.ok
        assert outcome.kind == FailureKind.RESOLVE
        assert outcome.message
