"""
Install models — manifest reference, per-run Bundler settings, outcome.

``BundleSettings`` is the explicit configuration for ONE install run.
It is built fresh for every call and rendered into the child process
environment; nothing here touches ``os.environ`` or any other
process-wide state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import Any, Iterator

from pydantic import BaseModel, Field

from gemstage.core.models.action import Receipt

# Lock file lives next to the manifest: Gemfile -> Gemfile.lock
LOCKFILE_SUFFIX = ".lock"


class FailureKind(StrEnum):
    """Which stage of the resolve/install pipeline failed."""

    MANIFEST = "manifest"   # Gemfile / lock file missing or unparseable
    RESOLVE = "resolve"     # unsatisfiable constraints, unknown gem
    FETCH = "fetch"         # network, git sources, API mismatches
    UNPACK = "unpack"       # gem install, native extensions, permissions
    TOOLING = "tooling"     # bundler missing, timeout, target not writable
    UNKNOWN = "unknown"


class ManifestRef(BaseModel):
    """Absolute reference to a Gemfile and the files derived from it."""

    path: Path

    @classmethod
    def from_path(cls, manifest_path: str | Path) -> ManifestRef:
        return cls(path=Path(manifest_path).expanduser().resolve())

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def root(self) -> Path:
        """Resolution root: the directory that contains the manifest."""
        return self.path.parent

    @property
    def lockfile(self) -> Path:
        return self.root / f"{self.path.name}{LOCKFILE_SUFFIX}"

    @property
    def exists(self) -> bool:
        return self.path.is_file()

    @property
    def has_lockfile(self) -> bool:
        return self.lockfile.is_file()


class BundleSettings(BaseModel):
    """Bundler configuration for a single install run.

    Every field maps onto a ``BUNDLE_*`` setting understood by Bundler.
    Shared (system) gems are always disabled so the install path ends
    up holding the complete closure.
    """

    gemfile: Path
    install_path: Path
    app_config_dir: Path | None = None

    disable_shared_gems: bool = True
    without: list[str] = Field(default_factory=list)
    jobs: int | None = None
    frozen: bool = False
    ignore_user_config: bool = False
    extra_env: dict[str, str] = Field(default_factory=dict)

    def to_env(self) -> dict[str, str]:
        """Render the settings as ``BUNDLE_*`` environment variables.

        ``extra_env`` is applied first so it can never override the
        settings that pin the manifest and install path.
        """
        env: dict[str, str] = dict(self.extra_env)
        env["BUNDLE_GEMFILE"] = str(self.gemfile)
        env["BUNDLE_PATH"] = str(self.install_path)
        if self.disable_shared_gems:
            env["BUNDLE_DISABLE_SHARED_GEMS"] = "true"
        if self.app_config_dir is not None:
            env["BUNDLE_APP_CONFIG"] = str(self.app_config_dir)
        if self.without:
            env["BUNDLE_WITHOUT"] = ":".join(self.without)
        if self.jobs:
            env["BUNDLE_JOBS"] = str(self.jobs)
        if self.frozen:
            env["BUNDLE_FROZEN"] = "true"
        if self.ignore_user_config:
            env["BUNDLE_IGNORE_CONFIG"] = "true"
        return env


@dataclass
class InstallOutcome:
    """Result of ``install_from_manifest``.

    Unpacks as ``(ok, message)``::

        ok, message = install_from_manifest(target, "Gemfile")
    """

    ok: bool
    message: str | None = None
    kind: FailureKind | None = None
    manifest: str = ""
    target_dir: str = ""
    lockfile_present: bool = False
    duration_ms: int = 0
    receipt: Receipt | None = field(default=None, repr=False)

    def __iter__(self) -> Iterator[Any]:
        yield self.ok
        yield self.message

    def __bool__(self) -> bool:
        return self.ok

    def to_dict(self) -> dict:
        """Convert to a JSON-serializable dictionary."""
        result: dict = {
            "ok": self.ok,
            "message": self.message,
            "kind": self.kind.value if self.kind else None,
            "manifest": self.manifest,
            "target_dir": self.target_dir,
            "lockfile_present": self.lockfile_present,
            "duration_ms": self.duration_ms,
        }
        if self.receipt is not None:
            result["return_code"] = self.receipt.return_code
        return result
