"""
Shared test fixtures and configuration.
"""

import textwrap
from pathlib import Path

import pytest

from gemstage.adapters.base import ExecutionContext
from gemstage.adapters.mock import MockAdapter

GEMFILE = textwrap.dedent("""\
    source "https://rubygems.org"

    gem "rack", "~> 2.2"
""")

GEMFILE_LOCK = textwrap.dedent("""\
    GEM
      remote: https://rubygems.org/
      specs:
        rack (2.2.8)

    PLATFORMS
      ruby

    DEPENDENCIES
      rack (~> 2.2)

    BUNDLED WITH
       2.4.22
""")


def _write_project(root: Path, with_lock: bool = True) -> Path:
    root.mkdir(parents=True, exist_ok=True)
    gemfile = root / "Gemfile"
    gemfile.write_text(GEMFILE)
    if with_lock:
        (root / "Gemfile.lock").write_text(GEMFILE_LOCK)
    return gemfile


@pytest.fixture
def gemfile(tmp_path: Path) -> Path:
    """A Gemfile with a matching Gemfile.lock."""
    return _write_project(tmp_path / "app")


@pytest.fixture
def unlocked_gemfile(tmp_path: Path) -> Path:
    """A Gemfile without a lock file."""
    return _write_project(tmp_path / "unlocked", with_lock=False)


@pytest.fixture
def make_project(tmp_path: Path):
    """Factory: make_project("name", with_lock=True) -> Gemfile path."""

    def _make(name: str, with_lock: bool = True) -> Path:
        return _write_project(tmp_path / name, with_lock=with_lock)

    return _make


def populate_install_path(context: ExecutionContext) -> None:
    """Simulate Bundler unpacking a gem into BUNDLE_PATH."""
    gems = Path(context.env["BUNDLE_PATH"]) / "ruby" / "3.2.0" / "gems" / "rack-2.2.8"
    gems.mkdir(parents=True, exist_ok=True)
    (gems / "rack.gemspec").write_text("# rack\n")


@pytest.fixture
def mock_bundler() -> MockAdapter:
    """Mock Bundler that 'installs' rack into the target directory."""
    return MockAdapter(on_execute=populate_install_path)
