from __future__ import annotations


class DocumentTextError(ValueError):
    """Raised when a document yields no usable text at all."""
