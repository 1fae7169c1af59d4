"""
Export modules for generated sheets.

Supported formats:
- PNG (.png) - The sheet image itself
- JSON atlas (.json) - Frame rectangles per sprite key, for engines that
  slice sheets by name
"""

from .png_exporter import PNGSheetExporter
from .atlas_exporter import AtlasExporter

__all__ = ["PNGSheetExporter", "AtlasExporter"]
