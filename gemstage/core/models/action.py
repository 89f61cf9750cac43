"""
Action and Receipt models — the adapter contract.

An Action asks an adapter to do one thing (``bundle install`` for a
given Gemfile, say).  A Receipt is what comes back.  Adapters report
failure through the Receipt, never by raising.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class Action(BaseModel):
    """A single operation routed to an adapter."""

    id: str                         # unique per invocation
    adapter: str                    # adapter name, e.g. "bundler"
    operation: str = "install"
    params: dict[str, Any] = Field(default_factory=dict)


class Receipt(BaseModel):
    """Outcome of one adapter execution.

    ``output`` holds the tail of the tool's stdout, ``error`` a one-line
    reason.  Anything else the caller may want to inspect (command line,
    exit status, stderr tail) goes into ``metadata``.
    """

    adapter: str
    action_id: str
    status: Literal["ok", "failed"] = "ok"

    started_at: str = Field(default_factory=_now_iso)
    ended_at: str = Field(default_factory=_now_iso)
    duration_ms: int = 0

    output: str = ""
    error: str | None = None

    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @property
    def failed(self) -> bool:
        return self.status == "failed"

    @property
    def return_code(self) -> int | None:
        """Exit status of the underlying command, if one ran."""
        return self.metadata.get("return_code")

    @classmethod
    def success(
        cls,
        adapter: str,
        action_id: str,
        output: str = "",
        **kwargs: Any,
    ) -> Receipt:
        return cls(
            adapter=adapter,
            action_id=action_id,
            status="ok",
            output=output,
            **kwargs,
        )

    @classmethod
    def failure(
        cls,
        adapter: str,
        action_id: str,
        error: str,
        **kwargs: Any,
    ) -> Receipt:
        return cls(
            adapter=adapter,
            action_id=action_id,
            status="failed",
            error=error,
            **kwargs,
        )
