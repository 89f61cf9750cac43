"""
Mock adapter — stands in for Bundler without touching the network.

Records every ExecutionContext it receives and answers with success
unless told otherwise for a given operation.
"""

from __future__ import annotations

from typing import Callable

from gemstage.adapters.base import Adapter, ExecutionContext
from gemstage.core.models.action import Receipt


class MockAdapter(Adapter):
    """Scriptable test double for the Bundler adapter.

    ``on_execute`` runs before the response is chosen, which lets tests
    simulate side effects such as gems appearing in the install path.
    """

    def __init__(
        self,
        adapter_name: str = "bundler",
        available: bool = True,
        default_output: str = "[mock] Bundle complete!",
        on_execute: Callable[[ExecutionContext], None] | None = None,
    ):
        self._name = adapter_name
        self._available = available
        self._default_output = default_output
        self._on_execute = on_execute
        self._responses: dict[str, Receipt] = {}
        self._call_log: list[ExecutionContext] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def call_log(self) -> list[ExecutionContext]:
        return self._call_log

    @property
    def call_count(self) -> int:
        return len(self._call_log)

    def is_available(self) -> bool:
        return self._available

    def set_response(self, operation: str, receipt: Receipt) -> None:
        """Answer every ``operation`` action with ``receipt``."""
        self._responses[operation] = receipt

    def set_failure(
        self,
        operation: str = "install",
        error: str = "Mock failure",
        return_code: int | None = None,
        stderr: str = "",
    ) -> None:
        metadata: dict = {"stderr": stderr}
        if return_code is not None:
            metadata["return_code"] = return_code
        self._responses[operation] = Receipt.failure(
            adapter=self._name,
            action_id="mock",
            error=error,
            metadata=metadata,
        )

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        self._call_log.append(context)
        if self._on_execute is not None:
            self._on_execute(context)

        scripted = self._responses.get(context.action.operation)
        if scripted is not None:
            return scripted.model_copy(update={"action_id": context.action.id})

        return Receipt.success(
            adapter=self._name,
            action_id=context.action.id,
            output=self._default_output,
            metadata={"mock": True, "return_code": 0},
        )

    def reset(self) -> None:
        self._call_log.clear()
        self._responses.clear()
