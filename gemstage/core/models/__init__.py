"""
Domain models — pydantic and dataclass types used across gemstage.

    from gemstage.core.models import Action, Receipt, ManifestRef, InstallOutcome
"""

from gemstage.core.models.action import Action, Receipt
from gemstage.core.models.config import GemstageConfig
from gemstage.core.models.install import (
    LOCKFILE_SUFFIX,
    BundleSettings,
    FailureKind,
    InstallOutcome,
    ManifestRef,
)

__all__ = [
    "LOCKFILE_SUFFIX",
    # action.py
    "Action",
    "Receipt",
    # config.py
    "GemstageConfig",
    # install.py
    "BundleSettings",
    "FailureKind",
    "InstallOutcome",
    "ManifestRef",
]
