"""
Projection Mathematics for Isometric Sprite Cells

This module implements the 2:1 projection used to draw axis-aligned prisms
inside a sprite cell.

A world point (x, y, z) maps to screen space (u, v) as:
    | W/2   -W/2    0 |
    | H/2    H/2   -1 |

Where:
    - W = width of one isometric unit in pixels
    - H = height of one isometric unit in pixels (W/2 for 2:1)
    - z is already in pixels (a vertical lift)
    - v grows downward, as in image space

Only axis-aligned prisms are supported; anything else is out of scope.
"""

from dataclasses import dataclass
from typing import List, Tuple
import numpy as np

Point = Tuple[float, float]


@dataclass
class ProjectionMatrix:
    """
    2:1 projection for one isometric unit.

    Attributes:
        unit_width: Screen width of one world unit along both ground axes
        unit_height: Screen height of one world unit (typically unit_width / 2)
    """

    unit_width: float = 32.0
    unit_height: float = 16.0

    def __post_init__(self):
        """Precompute projection constants."""
        self.w = self.unit_width
        self.h = self.unit_height
        self._build_matrix()

    def _build_matrix(self):
        """Construct the projection matrix."""
        # Ground axes: x runs down-right, y runs down-left
        self.proj_matrix = np.array([
            [self.w / 2, -self.w / 2, 0.0],
            [self.h / 2, self.h / 2, -1.0]
        ], dtype=np.float64)

    def world_to_screen_batch(
        self,
        xyz: np.ndarray,
        offset_u: float = 0, offset_v: float = 0
    ) -> np.ndarray:
        """
        Batch projection.

        Args:
            xyz: Array of shape (N, 3)
            offset_u, offset_v: Screen position of the world origin

        Returns:
            uv: Array of shape (N, 2)
        """
        uv = (self.proj_matrix @ np.asarray(xyz, dtype=np.float64).T).T
        uv[:, 0] += offset_u
        uv[:, 1] += offset_v
        return uv


@dataclass
class PrismFaces:
    """
    Screen-space polygons of a projected prism.

    Corner order for base/top: back-left, back-right, front-right, front-left.
    """
    base: List[Point]
    top: List[Point]
    left: List[Point]
    right: List[Point]


def face_bounds(face: List[Point]) -> Tuple[float, float, float, float]:
    """
    Bounding box of a polygon.

    Returns:
        (min_x, min_y, max_x, max_y)
    """
    pts = np.asarray(face, dtype=np.float64)
    mins = pts.min(axis=0)
    maxs = pts.max(axis=0)
    return (float(mins[0]), float(mins[1]), float(maxs[0]), float(maxs[1]))


def face_center(face: List[Point]) -> Point:
    """Center of a polygon's bounding box."""
    min_x, min_y, max_x, max_y = face_bounds(face)
    return ((min_x + max_x) / 2, (min_y + max_y) / 2)


class IsometricProjection:
    """
    Projects footprint-sized prisms anchored on a ground point.

    The anchor is the center of the prism's base on the ground plane.
    """

    def __init__(self, unit_width: float, unit_height: float):
        """
        Initialize the projection.

        Args:
            unit_width: Width of one isometric unit in pixels
            unit_height: Height of one isometric unit in pixels
        """
        self.unit_width = unit_width
        self.unit_height = unit_height
        self.proj = ProjectionMatrix(unit_width, unit_height)

    @classmethod
    def for_cell(cls, cell_width: float) -> "IsometricProjection":
        """Standard unit size for a sprite cell (26% of the cell width, 2:1)."""
        unit_w = cell_width * 0.26
        return cls(unit_w, unit_w * 0.5)

    def prism(
        self,
        anchor: Point,
        size_x: float,
        size_y: float,
        height_px: float
    ) -> PrismFaces:
        """
        Compute the faces of an axis-aligned prism.

        Args:
            anchor: Screen position of the base center
            size_x: Footprint width in isometric units
            size_y: Footprint depth in isometric units
            height_px: Vertical lift of the top face in pixels

        Returns:
            PrismFaces with base, top, left and right quads
        """
        hx = size_x / 2
        hy = size_y / 2
        corners = np.array([
            [-hx, -hy, 0.0],  # back-left
            [hx, -hy, 0.0],   # back-right
            [hx, hy, 0.0],    # front-right
            [-hx, hy, 0.0],   # front-left
        ], dtype=np.float64)
        lifted = corners.copy()
        lifted[:, 2] = height_px

        base_uv = self.proj.world_to_screen_batch(corners, anchor[0], anchor[1])
        top_uv = self.proj.world_to_screen_batch(lifted, anchor[0], anchor[1])

        p0, p1, p2, p3 = [tuple(p) for p in base_uv.tolist()]
        t0, t1, t2, t3 = [tuple(p) for p in top_uv.tolist()]

        # Only the two front walls are visible from the camera
        return PrismFaces(
            base=[p0, p1, p2, p3],
            top=[t0, t1, t2, t3],
            left=[p3, p2, t2, t3],
            right=[p2, p1, t1, t2],
        )
