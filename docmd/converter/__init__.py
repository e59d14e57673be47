"""Per-package documentation converters."""

from .base import ConversionOutcome, ConversionRequest, ConversionStatus, DocConverter
from .renderer import CommandRenderer, JsonRenderer
from .rustdoc import NO_LIBRARY_MARKER, RustdocConverter, ToolchainError

__all__ = [
    "CommandRenderer",
    "ConversionOutcome",
    "ConversionRequest",
    "ConversionStatus",
    "DocConverter",
    "JsonRenderer",
    "NO_LIBRARY_MARKER",
    "RustdocConverter",
    "ToolchainError",
]
