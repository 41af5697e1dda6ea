"""Core domain types shared by the editor model and its hosts."""

from .ranges import TextRange

__all__ = ["TextRange"]
