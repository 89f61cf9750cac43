"""
Audit ledger — append-only record of install runs.

One NDJSON line per ``gemstage install``, written under the project's
``.state`` directory.  Entries are never rewritten; unreadable lines are
skipped when reading back.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from gemstage.core.models.install import InstallOutcome

logger = logging.getLogger(__name__)

DEFAULT_AUDIT_DIR = ".state"
DEFAULT_AUDIT_FILE = "audit.ndjson"


class AuditEntry(BaseModel):
    """A single install run."""

    timestamp: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    operation_type: str = "install"

    manifest: str = ""
    target_dir: str = ""
    lockfile_present: bool = False

    status: str = ""               # ok, failed
    failure_kind: str | None = None
    duration_ms: int = 0
    errors: list[str] = Field(default_factory=list)

    context: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_outcome(cls, outcome: InstallOutcome, **context: Any) -> AuditEntry:
        return cls(
            manifest=outcome.manifest,
            target_dir=outcome.target_dir,
            lockfile_present=outcome.lockfile_present,
            status="ok" if outcome.ok else "failed",
            failure_kind=outcome.kind.value if outcome.kind else None,
            duration_ms=outcome.duration_ms,
            errors=[outcome.message] if outcome.message else [],
            context=context,
        )


class AuditWriter:
    """Append-only audit ledger writer."""

    def __init__(self, path: Path | None = None, project_root: Path | None = None):
        if path is not None:
            self._path = path
        elif project_root is not None:
            self._path = project_root / DEFAULT_AUDIT_DIR / DEFAULT_AUDIT_FILE
        else:
            self._path = Path(DEFAULT_AUDIT_DIR) / DEFAULT_AUDIT_FILE

    @property
    def path(self) -> Path:
        return self._path

    def write(self, entry: AuditEntry) -> None:
        """Append one entry. Write errors are logged, not raised."""
        line = json.dumps(entry.model_dump(mode="json"), ensure_ascii=False) + "\n"
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("a", encoding="utf-8") as f:
                f.write(line)
            logger.debug("Audit entry written: %s %s", entry.status, entry.manifest)
        except OSError as e:
            logger.error("Failed to write audit entry: %s", e)

    def read_all(self) -> list[AuditEntry]:
        """Read all entries, oldest first."""
        if not self._path.is_file():
            return []

        entries = []
        try:
            with self._path.open("r", encoding="utf-8") as f:
                for line_num, line in enumerate(f, start=1):
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        entries.append(AuditEntry.model_validate(json.loads(line)))
                    except (json.JSONDecodeError, ValidationError) as e:
                        logger.warning("Skipping corrupt audit entry at line %d: %s", line_num, e)
        except OSError as e:
            logger.error("Failed to read audit ledger: %s", e)

        return entries

    def read_recent(self, n: int = 20) -> list[AuditEntry]:
        return self.read_all()[-n:]
