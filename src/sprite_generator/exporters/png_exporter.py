"""
PNG Sheet Exporter

Writes a generated sheet as a lossless RGBA PNG. Optional integer upscaling
uses nearest-neighbor so cell edges stay crisp.
"""

from pathlib import Path
from typing import Union

from PIL import Image


class PNGSheetExporter:
    """
    Export sheet images to PNG.
    """

    def __init__(self, scale: int = 1, optimize: bool = False):
        """
        Initialize the exporter.

        Args:
            scale: Integer upscale factor (1 = original size)
            optimize: Let Pillow spend extra time compressing
        """
        if scale < 1:
            raise ValueError(f"Scale must be >= 1, got {scale}")
        self.scale = int(scale)
        self.optimize = optimize

    def export(self, sheet: Image.Image, output_path: Union[str, Path]) -> Path:
        """
        Export a sheet to a PNG file.

        Args:
            sheet: Generated sheet
            output_path: Output file path (.png)

        Returns:
            The written path
        """
        output_path = Path(output_path)
        if sheet.width == 0 or sheet.height == 0:
            raise ValueError("Cannot export empty sheet")

        image = sheet if sheet.mode == "RGBA" else sheet.convert("RGBA")
        if self.scale != 1:
            image = image.resize(
                (image.width * self.scale, image.height * self.scale),
                Image.Resampling.NEAREST
            )

        output_path.parent.mkdir(parents=True, exist_ok=True)
        image.save(output_path, format="PNG", optimize=self.optimize)
        return output_path
