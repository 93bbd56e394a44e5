"""Center Ledger mock backend package.

``application`` is imported on first attribute access so that settings can be
changed through the environment before the database engine is created.
"""
from __future__ import annotations

from importlib import import_module
from types import ModuleType
from typing import Any, List

_IMPL_MODULE: ModuleType | None = None

__all__: List[str] = ["ApiError", "app", "issue_token", "logger", "register_ledger", "require_user", "verify_token"]


def _load_impl() -> ModuleType:
    global _IMPL_MODULE
    if _IMPL_MODULE is None:
        _IMPL_MODULE = import_module(".application", __name__)
    return _IMPL_MODULE


def __getattr__(name: str) -> Any:
    if name not in __all__:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    return getattr(_load_impl(), name)
