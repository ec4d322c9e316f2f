"""Application entrypoints for the extractor."""

from .extractor import ExtractionResult, Extractor
from .master import build_config, cli, main

__all__ = ["ExtractionResult", "Extractor", "build_config", "cli", "main"]
