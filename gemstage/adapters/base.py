"""
Adapter base — the contract between the orchestrator and external tools.

The orchestrator never shells out on its own.  It hands an Action to an
adapter together with an ExecutionContext and gets a Receipt back.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, Field

from gemstage.core.models.action import Action, Receipt


class ExecutionContext(BaseModel):
    """Everything an adapter needs for one execution.

    ``env`` holds only the variables this run sets; adapters layer them
    over a sanitized copy of the parent environment.
    """

    action: Action
    project_root: str = "."
    env: dict[str, str] = Field(default_factory=dict)
    timeout: int = 1800

    @property
    def params(self) -> dict[str, Any]:
        return self.action.params


class Adapter(ABC):
    """Abstract base class for tool adapters.

    Implementations MUST NOT raise from ``execute``; every failure is
    reported as a failed Receipt.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """The adapter identifier (e.g. 'bundler')."""

    @abstractmethod
    def is_available(self) -> bool:
        """Whether the underlying tool can be run. Fast, never raises."""

    @abstractmethod
    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        """Check that the action can run.

        Returns:
            (is_valid, error_message). error_message is empty if valid.
        """

    @abstractmethod
    def execute(self, context: ExecutionContext) -> Receipt:
        """Run the action and return a receipt."""

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
