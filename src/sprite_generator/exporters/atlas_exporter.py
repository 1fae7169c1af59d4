"""
JSON Atlas Exporter

Describes where every sprite lives on a sheet:

    {
      "meta": {"pack": "procedural", "kind": "dense", "image": "procedural_dense.png",
               "size": {"w": 1280, "h": 1278}, "tile": {"w": 256, "h": 213},
               "grid": {"cols": 5, "rows": 6}, "seed": 1337},
      "frames": {
        "dense:apartment_high": [{"col": 0, "row": 0, "x": 0, "y": 0, "w": 256, "h": 213,
                                  "salt": "0"}, ...]
      }
    }

A key occupying several cells (visual variants) lists every frame.
"""

import json
from pathlib import Path
from typing import Any, Dict, Optional, Union

from ..compositor import SheetLayout
from ..packs import SpritePack, procedural_config


class AtlasExporter:
    """
    Export a sheet layout as a JSON frame atlas.
    """

    def __init__(self, indent: Optional[int] = 2):
        """
        Args:
            indent: JSON indentation (None for compact output)
        """
        self.indent = indent

    def build(
        self,
        pack: SpritePack,
        layout: SheetLayout,
        image_name: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Build the atlas document.

        Args:
            pack: Pack the sheet belongs to
            layout: Layout the sheet was drawn from
            image_name: File name of the sheet image

        Returns:
            JSON-serialisable dict
        """
        config = procedural_config(pack)
        tile_w, tile_h = config.cell_size

        frames: Dict[str, Any] = {}
        for sprite_key, cells in layout.frames().items():
            frames[sprite_key] = [
                {
                    "col": cell.col,
                    "row": cell.row,
                    "x": cell.col * tile_w,
                    "y": cell.row * tile_h,
                    "w": tile_w,
                    "h": tile_h,
                    "salt": cell.salt,
                }
                for cell in cells
            ]

        return {
            "meta": {
                "pack": pack.id,
                "kind": layout.kind.value,
                "variant": layout.variant.value,
                "image": image_name,
                "size": {"w": tile_w * layout.cols, "h": tile_h * layout.rows},
                "tile": {"w": tile_w, "h": tile_h},
                "grid": {"cols": layout.cols, "rows": layout.rows},
                "seed": config.seed,
            },
            "frames": frames,
        }

    def export(
        self,
        pack: SpritePack,
        layout: SheetLayout,
        output_path: Union[str, Path],
        image_name: Optional[str] = None
    ) -> Path:
        """Write the atlas to a JSON file."""
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(self.build(pack, layout, image_name), f, indent=self.indent)
        return output_path
