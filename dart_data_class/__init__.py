"""Dart data class generator: class model and incremental diff/patch engine."""

from .generator import GenerationResult, generate_data_classes, run

__all__ = ["GenerationResult", "generate_data_classes", "run"]
