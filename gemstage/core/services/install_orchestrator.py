"""
Install orchestrator — resolve a Gemfile and install its closure into a directory.

    ok, message = install_from_manifest("build/gems", "Gemfile")

Each call builds its own ``BundleSettings`` and hands them to the
adapter as the child-process environment.  Nothing is memoized between
calls and ``os.environ`` is never written, so successive installs of
different projects in one process cannot see each other's settings.

Every failure (missing Gemfile, unwritable target, missing Bundler,
resolution conflict, network error, broken gem) ends up as an
``InstallOutcome`` with ``ok=False``, a message, and a FailureKind.
The message is also echoed to stdout.  Nothing is retried, and gems
already unpacked into the target by a failed run are left in place.
"""

from __future__ import annotations

import logging
import tempfile
import time
import uuid
from pathlib import Path
from typing import Callable

import click

from gemstage.adapters.base import Adapter, ExecutionContext
from gemstage.adapters.bundler import BundlerAdapter
from gemstage.core.models.action import Action, Receipt
from gemstage.core.models.config import GemstageConfig
from gemstage.core.models.install import (
    BundleSettings,
    FailureKind,
    InstallOutcome,
    ManifestRef,
)
from gemstage.core.persistence.audit import AuditEntry, AuditWriter
from gemstage.core.services.install_failure import classify_failure, summarize_failure

logger = logging.getLogger(__name__)


class InstallOrchestrator:
    """Drives one Bundler adapter through install and check runs."""

    def __init__(
        self,
        config: GemstageConfig | None = None,
        adapter: Adapter | None = None,
        audit: AuditWriter | None = None,
        echo: Callable[[str], None] = click.echo,
    ):
        self._config = config or GemstageConfig()
        self._adapter = adapter or BundlerAdapter(self._config.bundle_command)
        self._audit = audit
        self._echo = echo

    @property
    def config(self) -> GemstageConfig:
        return self._config

    @property
    def adapter(self) -> Adapter:
        return self._adapter

    def build_settings(
        self,
        manifest: ManifestRef,
        target_dir: Path,
        app_config_dir: Path | None = None,
    ) -> BundleSettings:
        """Fresh Bundler settings for one run."""
        return BundleSettings(
            gemfile=manifest.path,
            install_path=target_dir,
            app_config_dir=app_config_dir,
            disable_shared_gems=True,
            without=list(self._config.without),
            jobs=self._config.jobs,
            frozen=self._config.frozen,
            ignore_user_config=self._config.ignore_user_config,
            extra_env=dict(self._config.env),
        )

    def install_from_manifest(
        self,
        target_dir: str | Path,
        manifest_path: str | Path,
    ) -> InstallOutcome:
        """Install the gems required by ``manifest_path`` into ``target_dir``.

        Uses ``<manifest>.lock`` when present; otherwise Bundler resolves
        from scratch.  Never raises.
        """
        return self._run("install", target_dir, manifest_path)

    def check(
        self,
        target_dir: str | Path,
        manifest_path: str | Path,
    ) -> InstallOutcome:
        """Report whether ``target_dir`` already satisfies the manifest.

        Runs ``bundle check``; nothing is fetched or installed.
        """
        return self._run("check", target_dir, manifest_path)

    # ── Internals ───────────────────────────────────────────────

    def _run(
        self,
        operation: str,
        target_dir: str | Path,
        manifest_path: str | Path,
    ) -> InstallOutcome:
        start = time.monotonic()
        try:
            outcome = self._run_unguarded(operation, Path(target_dir), Path(manifest_path))
        except Exception as e:
            logger.exception("Unexpected error during %s", operation)
            outcome = InstallOutcome(
                ok=False,
                message=f"Unexpected error: {e}",
                kind=FailureKind.UNKNOWN,
                manifest=str(manifest_path),
                target_dir=str(target_dir),
            )

        outcome.duration_ms = int((time.monotonic() - start) * 1000)

        if outcome.ok:
            logger.info("%s finished for %s in %dms", operation, outcome.manifest, outcome.duration_ms)
        else:
            self._report_failure(outcome)

        if self._audit is not None and operation == "install":
            self._audit.write(AuditEntry.from_outcome(outcome, adapter=self._adapter.name))

        return outcome

    def _run_unguarded(
        self,
        operation: str,
        target_dir: Path,
        manifest_path: Path,
    ) -> InstallOutcome:
        manifest = ManifestRef.from_path(manifest_path)
        target = target_dir.expanduser().resolve()

        def fail(kind: FailureKind, message: str, receipt: Receipt | None = None) -> InstallOutcome:
            return InstallOutcome(
                ok=False,
                message=message,
                kind=kind,
                manifest=str(manifest.path),
                target_dir=str(target),
                lockfile_present=manifest.has_lockfile,
                receipt=receipt,
            )

        # Checked before the target is touched, so a bad path leaves no directory behind
        if not manifest.exists:
            return fail(
                FailureKind.MANIFEST,
                f"No {manifest.name} was found at {manifest.path}. Please ensure it exists, "
                "is readable, and is in the root of your project.",
            )

        if not self._adapter.is_available():
            return fail(
                FailureKind.TOOLING,
                f"The '{self._adapter.name}' tool is not available. "
                "Install Bundler (gem install bundler) and make sure it is on PATH.",
            )

        if operation == "install":
            try:
                target.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                return fail(FailureKind.TOOLING, f"Cannot create target directory {target}: {e}")

        if manifest.has_lockfile:
            logger.info("Installing from %s (locked by %s)", manifest.path, manifest.lockfile.name)
        else:
            logger.info("No %s next to %s; Bundler will resolve from scratch",
                        manifest.lockfile.name, manifest.path)

        # Per-run app config dir: keeps .bundle/config of the project (and of
        # earlier runs) out of this one, and keeps this run's settings out of it.
        with tempfile.TemporaryDirectory(prefix="gemstage-bundle-") as app_config:
            settings = self.build_settings(manifest, target, Path(app_config))
            context = ExecutionContext(
                action=Action(
                    id=f"{operation}-{uuid.uuid4().hex[:8]}",
                    adapter=self._adapter.name,
                    operation=operation,
                    params={
                        "gemfile": str(manifest.path),
                        "path": str(target),
                        "local": self._config.local,
                    },
                ),
                project_root=str(manifest.root),
                env=settings.to_env(),
                timeout=self._config.timeout,
            )

            valid, error = self._adapter.validate(context)
            if not valid:
                return fail(FailureKind.MANIFEST, f"Validation failed: {error}")

            receipt = self._adapter.execute(context)

        if receipt.ok:
            return InstallOutcome(
                ok=True,
                message=None,
                manifest=str(manifest.path),
                target_dir=str(target),
                lockfile_present=manifest.has_lockfile,
                receipt=receipt,
            )

        stderr = receipt.metadata.get("stderr", "")
        if receipt.metadata.get("tool_missing") or receipt.metadata.get("timed_out"):
            kind = FailureKind.TOOLING
        else:
            kind = classify_failure(receipt.return_code, stderr, receipt.output)
        return fail(kind, summarize_failure(receipt.error, stderr, receipt.output), receipt)

    def _report_failure(self, outcome: InstallOutcome) -> None:
        kind = outcome.kind.value if outcome.kind else "unknown"
        logger.info("%s failed (%s): %s", outcome.manifest, kind, outcome.message)
        # The operator channel: printed regardless of what the caller does with the outcome
        self._echo(outcome.message or "Install failed")


def install_from_manifest(
    target_dir: str | Path,
    manifest_path: str | Path,
    *,
    config: GemstageConfig | None = None,
    adapter: Adapter | None = None,
    audit: AuditWriter | None = None,
) -> InstallOutcome:
    """Install a Gemfile's resolved gems into ``target_dir``.

    Convenience wrapper building a one-off InstallOrchestrator; returns
    an InstallOutcome that unpacks as ``(ok, message)``.
    """
    orchestrator = InstallOrchestrator(config=config, adapter=adapter, audit=audit)
    return orchestrator.install_from_manifest(target_dir, manifest_path)
