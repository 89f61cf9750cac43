"""Adapters — bindings for the external tools gemstage drives."""

from gemstage.adapters.base import Adapter, ExecutionContext
from gemstage.adapters.bundler import BundlerAdapter
from gemstage.adapters.mock import MockAdapter

__all__ = [
    "Adapter",
    "BundlerAdapter",
    "ExecutionContext",
    "MockAdapter",
]
