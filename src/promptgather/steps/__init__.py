"""Step modules used by the gather pipeline."""

from importlib import import_module
from typing import Any

__all__ = [
    "scan",
    "collect",
]


def __getattr__(name: str) -> Any:
    if name not in __all__:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    module = import_module(f"{__name__}.{name}")
    globals()[name] = module
    return module
