"""Custom exceptions for terrain generation."""


class TerrainError(Exception):
    """Base exception for terrain generation errors."""

    pass


class ConfigurationError(TerrainError, ValueError):
    """Raised when generation parameters are degenerate or inconsistent."""

    pass


class GenerationError(TerrainError):
    """Raised when a generation run fails and its output was discarded."""

    pass
