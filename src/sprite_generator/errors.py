"""
Error taxonomy for sprite generation.

- ConfigurationError: a procedural-only entrypoint was called for a pack that is
  not procedural, or a pack descriptor is malformed. Never retried.
- RenderEnvironmentError: no drawing surface could be created.

An unsupported sheet kind is not an error; generators return None instead.
"""


class SpriteGeneratorError(Exception):
    """Base class for all sprite generator errors."""


class ConfigurationError(SpriteGeneratorError, ValueError):
    """Raised when a pack is not usable for the requested operation."""


class RenderEnvironmentError(SpriteGeneratorError, RuntimeError):
    """Raised when no drawing surface is available."""
