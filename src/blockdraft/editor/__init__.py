"""Editor package containing the block document model, reducer and renderers."""

from importlib import import_module
from typing import Any

from . import block_store, document_model, history, segmenter, transitions

__all__ = ["block_store", "document_model", "history", "segmenter", "session", "transitions"]

_LAZY_MODULES = {"qt_surface", "session"}


def __getattr__(name: str) -> Any:
	if name in _LAZY_MODULES:
		module = import_module(f"{__name__}.{name}")
		globals()[name] = module
		return module
	raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
