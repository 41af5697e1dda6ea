"""Block-structured rich-text document model with undo/redo and renderers."""

__version__ = "0.1.0"

__all__ = ["__version__"]
