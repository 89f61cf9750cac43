"""
Bundler adapter — drives ``bundle`` as an opaque resolver/installer.

All configuration reaches Bundler through the child environment built
for the current action.  The parent's own ``BUNDLE_*`` variables are
stripped first, so a run only ever sees the settings it was given.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import time
from pathlib import Path
from typing import Mapping

from gemstage.adapters.base import Adapter, ExecutionContext
from gemstage.core.models.action import Receipt

logger = logging.getLogger(__name__)

# Keep receipts small; Bundler can be very chatty with --verbose
_TAIL_CHARS = 2000

# `bundle exec` also exports BUNDLER_SETUP and BUNDLER_VERSION, which pin the child
_INHERITED_PREFIXES = ("BUNDLE_", "BUNDLER_ORIG_", "BUNDLER_SETUP", "BUNDLER_VERSION")


def child_environment(
    overrides: Mapping[str, str],
    base: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Build the environment for a Bundler child process.

    Starts from ``base`` (default: ``os.environ``), drops inherited
    Bundler state, then applies ``overrides``.  ``base`` is never mutated.
    """
    source = os.environ if base is None else base
    env = {
        key: value
        for key, value in source.items()
        if not key.startswith(_INHERITED_PREFIXES)
    }

    # A parent running under `bundle exec` injects -rbundler/setup
    rubyopt = env.get("RUBYOPT", "")
    if "bundler/setup" in rubyopt:
        cleaned = " ".join(t for t in rubyopt.split() if "bundler/setup" not in t)
        if cleaned:
            env["RUBYOPT"] = cleaned
        else:
            env.pop("RUBYOPT")

    env.update(overrides)
    return env


class BundlerAdapter(Adapter):
    """Bundler toolchain adapter.

    Operations:
        install: ``bundle install`` using the context's BUNDLE_* env.
            params: gemfile (str), path (str), local (bool)
        check: ``bundle check``, succeeds when the install path already
            satisfies the Gemfile. Same params as install.
    """

    def __init__(self, command: list[str] | None = None):
        self._command = list(command) if command else ["bundle"]

    @property
    def name(self) -> str:
        return "bundler"

    @property
    def command(self) -> list[str]:
        return list(self._command)

    def is_available(self) -> bool:
        return shutil.which(self._command[0]) is not None

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        operation = context.action.operation
        if operation not in {"install", "check"}:
            return False, f"Unknown operation '{operation}'. Valid: check, install"

        gemfile = context.params.get("gemfile", "")
        if not gemfile:
            return False, "Missing required param: 'gemfile'"
        if not Path(gemfile).is_file():
            return False, f"Gemfile not found: {gemfile}"
        if not context.params.get("path"):
            return False, "Missing required param: 'path'"
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        operation = context.action.operation
        try:
            if operation == "install":
                cmd = [*self._command, "install"]
                if context.params.get("local"):
                    cmd.append("--local")
                return self._exec(context, cmd)
            elif operation == "check":
                return self._exec(context, [*self._command, "check"])
            else:
                return Receipt.failure(
                    adapter=self.name,
                    action_id=context.action.id,
                    error=f"Unknown operation: {operation}",
                )
        except Exception as e:
            logger.exception("Bundler adapter error during %s", operation)
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Bundler error: {e}",
            )

    # ── Internals ───────────────────────────────────────────────

    def _exec(self, ctx: ExecutionContext, cmd: list[str]) -> Receipt:
        """Run one Bundler command.  The only place ``subprocess.run`` is used for installs."""
        display = " ".join(cmd)
        env = child_environment(ctx.env)
        logger.info("Running %s (cwd=%s)", display, ctx.project_root)
        logger.debug("Bundler env: %s", ctx.env)

        start = time.monotonic()
        try:
            result = subprocess.run(
                cmd,
                cwd=ctx.project_root,
                env=env,
                capture_output=True,
                text=True,
                timeout=ctx.timeout,
            )
        except subprocess.TimeoutExpired:
            return Receipt.failure(
                adapter=self.name,
                action_id=ctx.action.id,
                error=f"Command timed out after {ctx.timeout}s",
                duration_ms=int((time.monotonic() - start) * 1000),
                metadata={"command": display, "timed_out": True},
            )
        except FileNotFoundError:
            return Receipt.failure(
                adapter=self.name,
                action_id=ctx.action.id,
                error=f"Bundler executable not found: {cmd[0]}",
                metadata={"command": display, "tool_missing": True},
            )

        elapsed_ms = int((time.monotonic() - start) * 1000)
        stdout = result.stdout[-_TAIL_CHARS:] if result.stdout else ""
        stderr = result.stderr[-_TAIL_CHARS:] if result.stderr else ""
        metadata = {
            "command": display,
            "return_code": result.returncode,
            "stderr": stderr,
        }

        if result.returncode == 0:
            return Receipt.success(
                adapter=self.name,
                action_id=ctx.action.id,
                output=stdout.strip(),
                duration_ms=elapsed_ms,
                metadata=metadata,
            )

        return Receipt.failure(
            adapter=self.name,
            action_id=ctx.action.id,
            error=f"{display} failed (exit {result.returncode})",
            output=stdout.strip(),
            duration_ms=elapsed_ms,
            metadata=metadata,
        )
